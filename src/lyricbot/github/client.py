"""GitHub REST client for the submission bot.

Covers the calls the bot makes: listing labelled issues, their comments and
pull requests by head branch, commenting, opening pull requests and
labelling them. Transient failures are retried with backoff; rate limiting
is surfaced as RateLimitError.
"""

import asyncio
import logging
import random
import time
from typing import Any, Dict, List, Optional

import httpx

from src.lyricbot.github.models import PRCreateRequest, PRCreateResult


logger = logging.getLogger(__name__)

PAGE_SIZE = 100


class GitHubAPIError(Exception):
    """Raised when a GitHub API request fails.

    Attributes:
        status_code: HTTP status of the failed response, if any.
        response_body: Body of the failed response, if any.
        request_url: URL of the failed request.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response_body: Optional[str] = None,
        request_url: Optional[str] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.response_body = response_body
        self.request_url = request_url
        super().__init__(message)


class RateLimitError(GitHubAPIError):
    """Raised when the token's rate limit is exhausted.

    Attributes:
        reset_at: Unix time the quota resets, from x-ratelimit-reset.
        retry_after: Seconds to wait, from retry-after or reset_at.
    """

    def __init__(
        self,
        message: str,
        reset_at: Optional[int] = None,
        retry_after: Optional[int] = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.reset_at = reset_at
        self.retry_after = retry_after


class GitHubClient:
    """Async GitHub REST client bound to one token.

    The underlying httpx client is created lazily and closed by close() or
    by leaving the async context.

    Attributes:
        token: Actions token or PAT.
        base_url: API root, overridable for GitHub Enterprise.
        max_retries: Retries after the first attempt for transient failures.
        base_delay: Backoff base in seconds; 0 disables waiting.
        max_delay: Backoff ceiling in seconds.
        timeout: Per-request timeout in seconds.
    """

    RETRYABLE_STATUS_CODES = {408, 429, 500, 502, 503, 504}

    def __init__(
        self,
        token: str,
        base_url: str = "https://api.github.com",
        max_retries: int = 3,
        base_delay: float = 1.0,
        max_delay: float = 60.0,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.token = token
        self.base_url = base_url.rstrip("/")
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers={
                    "Authorization": f"Bearer {self.token}",
                    "Accept": "application/vnd.github+json",
                    "X-GitHub-Api-Version": "2022-11-28",
                    "User-Agent": "lyricbot/1.0",
                },
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "GitHubClient":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    def _calculate_backoff(self, attempt: int) -> float:
        """Full-jitter exponential backoff for a 0-indexed retry attempt."""
        capped_delay = min(self.base_delay * (2 ** attempt), self.max_delay)
        return random.uniform(0, capped_delay)

    @staticmethod
    def _int_header(headers: httpx.Headers, name: str) -> Optional[int]:
        value = headers.get(name)
        if value is not None and value.isdigit():
            return int(value)
        return None

    def _is_rate_limited(self, response: httpx.Response) -> bool:
        if response.status_code == 429:
            return True
        return (
            response.status_code == 403
            and self._int_header(response.headers, "x-ratelimit-remaining") == 0
        )

    def _rate_limit_error(self, response: httpx.Response) -> RateLimitError:
        reset_at = self._int_header(response.headers, "x-ratelimit-reset")
        retry_after = self._int_header(response.headers, "retry-after")
        if retry_after is None and reset_at is not None:
            retry_after = max(0, reset_at - int(time.time()))

        logger.warning(
            "GitHub API rate limit exceeded",
            extra={"reset_at": reset_at, "retry_after": retry_after},
        )
        return RateLimitError(
            message="GitHub API rate limit exceeded",
            status_code=response.status_code,
            reset_at=reset_at,
            retry_after=retry_after,
            request_url=str(response.url),
        )

    async def _request(
        self,
        method: str,
        path: str,
        json_data: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> httpx.Response:
        """Send a request, retrying transient failures.

        Args:
            method: HTTP method.
            path: API path, or an absolute URL taken from a Link header.
            json_data: JSON body.
            params: Query parameters.

        Raises:
            RateLimitError: If the rate limit is exhausted; never retried.
            GitHubAPIError: On any other error status, or when retries run out.
        """
        last_error: Optional[Exception] = None

        for attempt in range(self.max_retries + 1):
            retries_left = attempt < self.max_retries
            try:
                response = await self.client.request(
                    method=method, url=path, json=json_data, params=params
                )
            except httpx.RequestError as exc:
                last_error = exc
                if retries_left:
                    await self._backoff(attempt, path, error=str(exc))
                continue

            if self._is_rate_limited(response):
                raise self._rate_limit_error(response)

            if response.status_code in self.RETRYABLE_STATUS_CODES and retries_left:
                await self._backoff(attempt, path, status_code=response.status_code)
                continue

            if response.status_code >= 400:
                logger.error(
                    "GitHub API error",
                    extra={
                        "method": method,
                        "path": path,
                        "status_code": response.status_code,
                    },
                )
                raise GitHubAPIError(
                    message=f"GitHub API error: {response.status_code}",
                    status_code=response.status_code,
                    response_body=response.text,
                    request_url=str(response.url),
                )

            return response

        logger.error(
            "GitHub API request failed after all retries",
            extra={"method": method, "path": path, "error": str(last_error)},
        )
        raise GitHubAPIError(
            message=f"Request failed after {self.max_retries} retries: {last_error}",
            request_url=f"{self.base_url}{path}",
        )

    async def _backoff(self, attempt: int, path: str, **context: Any) -> None:
        delay = self._calculate_backoff(attempt)
        logger.warning(
            "Retrying GitHub API request",
            extra={"path": path, "attempt": attempt + 1, "delay": delay, **context},
        )
        await asyncio.sleep(delay)

    async def _paginate(
        self,
        path: str,
        params: Optional[Dict[str, Any]] = None,
    ) -> List[Dict[str, Any]]:
        """Collect every item of a list endpoint by following Link headers."""
        items: List[Dict[str, Any]] = []
        query = {"per_page": PAGE_SIZE, **(params or {})}
        url: Optional[str] = path

        while url is not None:
            response = await self._request(method="GET", path=url, params=query)
            items.extend(response.json())
            url = response.links.get("next", {}).get("url")
            # the next link already carries the query string
            query = None

        return items

    async def list_issues(
        self,
        owner: str,
        repo: str,
        labels: List[str],
        state: str = "open",
    ) -> List[Dict[str, Any]]:
        """List issues carrying all of the given labels.

        The issues endpoint also returns pull requests; callers filter them
        out by the presence of the "pull_request" key.
        """
        path = f"/repos/{owner}/{repo}/issues"
        logger.info("Listing issues", extra={"labels": labels, "state": state})

        return await self._paginate(
            path, params={"labels": ",".join(labels), "state": state}
        )

    async def list_issue_comments(
        self,
        owner: str,
        repo: str,
        issue_number: int,
    ) -> List[Dict[str, Any]]:
        """List all comments on an issue."""
        path = f"/repos/{owner}/{repo}/issues/{issue_number}/comments"
        return await self._paginate(path)

    async def list_pulls(
        self,
        owner: str,
        repo: str,
        head: Optional[str] = None,
        state: str = "all",
    ) -> List[Dict[str, Any]]:
        """List pull requests, optionally filtered by a "user:branch" head."""
        path = f"/repos/{owner}/{repo}/pulls"
        params: Dict[str, Any] = {"state": state}
        if head:
            params["head"] = head
        return await self._paginate(path, params=params)

    async def create_comment(
        self,
        owner: str,
        repo: str,
        issue_number: int,
        body: str,
    ) -> Dict[str, Any]:
        """Post a markdown comment on an issue and return the created comment."""
        path = f"/repos/{owner}/{repo}/issues/{issue_number}/comments"
        response = await self._request(method="POST", path=path, json_data={"body": body})
        result = response.json()
        logger.info(
            "Comment created",
            extra={"issue_number": issue_number, "comment_id": result.get("id")},
        )
        return result

    async def add_labels(
        self,
        owner: str,
        repo: str,
        issue_number: int,
        labels: List[str],
    ) -> List[Dict[str, Any]]:
        """Add labels to an issue or pull request (pull requests share the issues API)."""
        path = f"/repos/{owner}/{repo}/issues/{issue_number}/labels"
        response = await self._request(method="POST", path=path, json_data={"labels": labels})
        return response.json()

    async def create_pr(
        self,
        owner: str,
        repo: str,
        request: PRCreateRequest,
    ) -> PRCreateResult:
        """Open a pull request, then add the request's labels.

        Raises:
            GitHubAPIError: If the pull request cannot be created. A failure
                to add labels is only logged, since the pull request exists.
        """
        path = f"/repos/{owner}/{repo}/pulls"
        response = await self._request(
            method="POST",
            path=path,
            json_data={
                "title": request.title,
                "body": request.body,
                "head": request.head_branch,
                "base": request.base_branch,
            },
        )
        result = PRCreateResult.from_github_response(response.json())
        logger.info(
            "Pull request created",
            extra={"pr_number": result.pr_number, "head": request.head_branch},
        )

        if request.labels:
            try:
                await self.add_labels(owner, repo, result.pr_number, request.labels)
            except GitHubAPIError:
                logger.warning(
                    "Failed to label pull request",
                    extra={"pr_number": result.pr_number, "labels": request.labels},
                    exc_info=True,
                )

        return result
