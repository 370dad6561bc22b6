"""Unit tests for the repository-bound issue tracker."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from src.lyricbot.github.models import ChangeRequest, PRCreateResult
from src.lyricbot.github.tracker import IssueTracker, submission_branch
from src.lyricbot.github.workspace import GitCommandError


def run_async(coro):
    return asyncio.run(coro)


@pytest.fixture
def client():
    return AsyncMock()


@pytest.fixture
def workspace():
    return AsyncMock()


@pytest.fixture
def tracker(client, workspace):
    return IssueTracker(
        client=client,
        workspace=workspace,
        owner="octo",
        repo="lyrics",
        label="实验性歌词提交/修正",
        bot_login="github-actions[bot]",
        base_branch="main",
    )


def test_submission_branch_is_derived_from_issue_number():
    assert submission_branch(42) == "experimental-submission/issue-42"


class TestListSubmissionIssues:
    def test_filters_pull_requests_and_sorts(self, tracker, client):
        client.list_issues.return_value = [
            {"number": 9, "title": "b", "body": None, "user": {"login": "bob"}},
            {"number": 4, "title": "pr", "pull_request": {"url": "x"}},
            {"number": 2, "title": "a", "body": "text", "user": None},
        ]

        issues = run_async(tracker.list_submission_issues())

        assert [issue.number for issue in issues] == [2, 9]
        assert issues[0].author == ""
        assert issues[1].body == ""
        client.list_issues.assert_awaited_once_with(
            "octo", "lyrics", labels=["实验性歌词提交/修正"]
        )


class TestPrForIssueExists:
    def test_queries_by_head_branch(self, tracker, client):
        client.list_pulls.return_value = []

        assert run_async(tracker.pr_for_issue_exists(5)) is False
        client.list_pulls.assert_awaited_once_with(
            "octo", "lyrics", head="octo:experimental-submission/issue-5"
        )

    def test_any_pull_request_counts(self, tracker, client):
        client.list_pulls.return_value = [{"number": 11, "state": "closed"}]
        assert run_async(tracker.pr_for_issue_exists(5)) is True


class TestHasBotCommented:
    def test_detects_bot_comment(self, tracker, client):
        client.list_issue_comments.return_value = [
            {"user": {"login": "alice"}},
            {"user": {"login": "github-actions[bot]"}},
        ]
        assert run_async(tracker.has_bot_commented(5)) is True

    def test_ignores_other_users_and_deleted_accounts(self, tracker, client):
        client.list_issue_comments.return_value = [
            {"user": {"login": "alice"}},
            {"user": None},
        ]
        assert run_async(tracker.has_bot_commented(5)) is False


def test_post_comment(tracker, client):
    run_async(tracker.post_comment(5, "hello"))
    client.create_comment.assert_awaited_once_with("octo", "lyrics", 5, "hello")


class TestOpenChangeRequest:
    def _request(self):
        return ChangeRequest(
            issue_number=5,
            branch=submission_branch(5),
            title="[实验性提交] Song (#5)",
            body="Closes #5",
            commit_message="提交歌词: Song",
            files={"raw-lyrics/a.ttml": "<tt/>"},
            labels=["experimental-submission"],
        )

    def test_commits_then_opens_pr(self, tracker, client, workspace):
        client.create_pr.return_value = PRCreateResult(pr_number=12, pr_url="https://x/12")

        result = run_async(tracker.open_change_request(self._request()))

        assert result.pr_number == 12
        workspace.commit_files_on_branch.assert_awaited_once_with(
            branch="experimental-submission/issue-5",
            base_branch="main",
            files={"raw-lyrics/a.ttml": "<tt/>"},
            message="提交歌词: Song",
        )
        owner, repo, pr_request = client.create_pr.await_args.args
        assert (owner, repo) == ("octo", "lyrics")
        assert pr_request.head_branch == "experimental-submission/issue-5"
        assert pr_request.base_branch == "main"
        assert pr_request.labels == ["experimental-submission"]

    def test_push_failure_skips_pr(self, tracker, client, workspace):
        workspace.commit_files_on_branch.side_effect = GitCommandError(
            ["push"], 1, "rejected"
        )

        with pytest.raises(GitCommandError):
            run_async(tracker.open_change_request(self._request()))
        client.create_pr.assert_not_called()
