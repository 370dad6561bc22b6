"""Unit tests for the GitHub REST client.

Requests are served by an httpx.MockTransport, so no network is used.
Backoff delays are zeroed via base_delay.
"""

import asyncio
import json
from typing import Callable, List

import httpx
import pytest

from src.lyricbot.github.client import GitHubAPIError, GitHubClient, RateLimitError
from src.lyricbot.github.models import PRCreateRequest

API = "https://api.github.com"


def run_async(coro):
    return asyncio.run(coro)


class Recorder:
    """Serves canned responses and records the requests it receives."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]):
        self.handler = handler
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.handler(request)


def _client(recorder: Recorder, max_retries: int = 3) -> GitHubClient:
    return GitHubClient(
        token="ghp_test",
        max_retries=max_retries,
        base_delay=0,
        transport=httpx.MockTransport(recorder),
    )


async def _call(client: GitHubClient, method: str, *args, **kwargs):
    async with client:
        return await getattr(client, method)(*args, **kwargs)


class TestPagination:
    def test_follows_next_links(self):
        def handler(request):
            if request.url.params.get("page") == "2":
                return httpx.Response(200, json=[{"number": 3}])
            return httpx.Response(
                200,
                json=[{"number": 1}, {"number": 2}],
                headers={
                    "Link": f'<{API}/repos/o/r/issues?labels=x&page=2>; rel="next"'
                },
            )

        recorder = Recorder(handler)
        items = run_async(_call(_client(recorder), "list_issues", "o", "r", labels=["x"]))

        assert [item["number"] for item in items] == [1, 2, 3]
        first, second = recorder.requests
        assert first.url.path == "/repos/o/r/issues"
        assert first.url.params["labels"] == "x"
        assert first.url.params["state"] == "open"
        assert first.url.params["per_page"] == "100"
        assert second.url.params["page"] == "2"

    def test_list_pulls_filters_by_head(self):
        recorder = Recorder(lambda request: httpx.Response(200, json=[]))

        pulls = run_async(
            _call(_client(recorder), "list_pulls", "o", "r", head="o:experimental-submission/issue-1")
        )

        assert pulls == []
        params = recorder.requests[0].url.params
        assert params["head"] == "o:experimental-submission/issue-1"
        assert params["state"] == "all"

    def test_sends_auth_headers(self):
        recorder = Recorder(lambda request: httpx.Response(200, json=[]))

        run_async(_call(_client(recorder), "list_issue_comments", "o", "r", 5))

        request = recorder.requests[0]
        assert request.url.path == "/repos/o/r/issues/5/comments"
        assert request.headers["Authorization"] == "Bearer ghp_test"
        assert request.headers["Accept"] == "application/vnd.github+json"


class TestRetries:
    def test_retries_server_errors(self):
        responses = iter([httpx.Response(502), httpx.Response(200, json={"id": 1})])
        recorder = Recorder(lambda request: next(responses))

        result = run_async(_call(_client(recorder), "create_comment", "o", "r", 5, "hi"))

        assert result == {"id": 1}
        assert len(recorder.requests) == 2

    def test_gives_up_after_max_retries(self):
        recorder = Recorder(lambda request: httpx.Response(503, text="unavailable"))

        with pytest.raises(GitHubAPIError) as exc_info:
            run_async(_call(_client(recorder, max_retries=2), "create_comment", "o", "r", 5, "hi"))

        assert exc_info.value.status_code == 503
        assert len(recorder.requests) == 3

    def test_retries_transport_errors(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        recorder = Recorder(handler)

        with pytest.raises(GitHubAPIError) as exc_info:
            run_async(_call(_client(recorder, max_retries=1), "list_issue_comments", "o", "r", 5))

        assert "after 1 retries" in exc_info.value.message
        assert len(recorder.requests) == 2

    def test_client_errors_are_not_retried(self):
        recorder = Recorder(lambda request: httpx.Response(404, text="Not Found"))

        with pytest.raises(GitHubAPIError) as exc_info:
            run_async(_call(_client(recorder), "create_comment", "o", "r", 5, "hi"))

        assert exc_info.value.status_code == 404
        assert exc_info.value.response_body == "Not Found"
        assert len(recorder.requests) == 1


class TestRateLimit:
    def test_exhausted_quota(self):
        recorder = Recorder(
            lambda request: httpx.Response(
                403,
                headers={"x-ratelimit-remaining": "0", "retry-after": "60"},
            )
        )

        with pytest.raises(RateLimitError) as exc_info:
            run_async(_call(_client(recorder), "list_issue_comments", "o", "r", 5))

        assert exc_info.value.retry_after == 60
        assert len(recorder.requests) == 1

    def test_too_many_requests(self):
        recorder = Recorder(lambda request: httpx.Response(429))

        with pytest.raises(RateLimitError):
            run_async(_call(_client(recorder), "list_issue_comments", "o", "r", 5))

    def test_plain_forbidden_is_api_error(self):
        recorder = Recorder(lambda request: httpx.Response(403, text="forbidden"))

        with pytest.raises(GitHubAPIError) as exc_info:
            run_async(_call(_client(recorder), "list_issue_comments", "o", "r", 5))

        assert not isinstance(exc_info.value, RateLimitError)
        assert exc_info.value.status_code == 403


class TestCreatePr:
    def _request(self, labels):
        return PRCreateRequest(
            title="[实验性提交] Song (#5)",
            body="Closes #5",
            head_branch="experimental-submission/issue-5",
            base_branch="main",
            labels=labels,
        )

    def _handler(self, request):
        if request.url.path.endswith("/pulls"):
            return httpx.Response(
                201, json={"number": 12, "html_url": "https://github.com/o/r/pull/12"}
            )
        return httpx.Response(200, json=[{"name": "experimental-submission"}])

    def test_creates_and_labels(self):
        recorder = Recorder(self._handler)

        result = run_async(
            _call(_client(recorder), "create_pr", "o", "r", self._request(["experimental-submission"]))
        )

        assert result.pr_number == 12
        assert result.pr_url == "https://github.com/o/r/pull/12"
        create, label = recorder.requests
        assert json.loads(create.content) == {
            "title": "[实验性提交] Song (#5)",
            "body": "Closes #5",
            "head": "experimental-submission/issue-5",
            "base": "main",
        }
        assert label.url.path == "/repos/o/r/issues/12/labels"
        assert json.loads(label.content) == {"labels": ["experimental-submission"]}

    def test_no_labels_skips_label_request(self):
        recorder = Recorder(self._handler)

        run_async(_call(_client(recorder), "create_pr", "o", "r", self._request([])))

        assert len(recorder.requests) == 1

    def test_label_failure_keeps_created_pr(self, caplog):
        def handler(request):
            if request.url.path.endswith("/pulls"):
                return self._handler(request)
            return httpx.Response(422, text="Validation Failed")

        recorder = Recorder(handler)

        with caplog.at_level("WARNING"):
            result = run_async(
                _call(_client(recorder), "create_pr", "o", "r", self._request(["missing-label"]))
            )

        assert result.pr_number == 12
        assert len(recorder.requests) == 2
        assert "Failed to label pull request" in caplog.text
