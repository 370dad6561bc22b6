"""Issue tracker operations used by the submission pipeline.

Binds the GitHub client to one repository and exposes the five operations
the pipeline needs: list submission issues, detect a linked pull request,
detect a prior bot comment, post a comment, and open a change request.
"""

import logging
from typing import List

from src.lyricbot.github.client import GitHubClient
from src.lyricbot.github.models import (
    ChangeRequest,
    Issue,
    PRCreateRequest,
    PRCreateResult,
)
from src.lyricbot.github.workspace import GitWorkspace

logger = logging.getLogger(__name__)

SUBMISSION_BRANCH_PREFIX = "experimental-submission/issue-"


def submission_branch(issue_number: int) -> str:
    """Return the head branch used for an issue's change request."""
    return f"{SUBMISSION_BRANCH_PREFIX}{issue_number}"


class IssueTracker:
    """Repository-bound view of the issue tracker.

    Attributes:
        client: GitHub API client.
        workspace: Git workspace the change request files are committed in.
        owner: Repository owner.
        repo: Repository name.
        label: Label carried by submission issues.
        bot_login: Login whose comments mark an issue as handled.
        base_branch: Branch change requests target.
    """

    def __init__(
        self,
        client: GitHubClient,
        workspace: GitWorkspace,
        owner: str,
        repo: str,
        label: str,
        bot_login: str,
        base_branch: str = "main",
    ):
        self.client = client
        self.workspace = workspace
        self.owner = owner
        self.repo = repo
        self.label = label
        self.bot_login = bot_login
        self.base_branch = base_branch

    async def list_submission_issues(self) -> List[Issue]:
        """List open issues carrying the submission label, oldest first."""
        raw_issues = await self.client.list_issues(
            self.owner, self.repo, labels=[self.label]
        )
        issues = [
            Issue.from_github_response(item)
            for item in raw_issues
            if "pull_request" not in item
        ]
        issues.sort(key=lambda issue: issue.number)
        logger.info(
            "Found submission issues",
            extra={"label": self.label, "count": len(issues)},
        )
        return issues

    async def pr_for_issue_exists(self, issue_number: int) -> bool:
        """Check whether a pull request from the issue's branch exists.

        Closed and merged pull requests count, so a rejected submission is
        not resubmitted automatically.
        """
        head = f"{self.owner}:{submission_branch(issue_number)}"
        pulls = await self.client.list_pulls(self.owner, self.repo, head=head)
        if pulls:
            logger.info(
                "Pull request already exists for issue",
                extra={"issue_number": issue_number, "pr_number": pulls[0].get("number")},
            )
            return True
        return False

    async def has_bot_commented(self, issue_number: int) -> bool:
        """Check whether the bot has already commented on the issue."""
        comments = await self.client.list_issue_comments(
            self.owner, self.repo, issue_number
        )
        return any(
            (comment.get("user") or {}).get("login") == self.bot_login
            for comment in comments
        )

    async def post_comment(self, issue_number: int, body: str) -> None:
        await self.client.create_comment(self.owner, self.repo, issue_number, body)

    async def open_change_request(self, request: ChangeRequest) -> PRCreateResult:
        """Commit the request's files on its branch and open a pull request.

        Raises:
            GitCommandError: If committing or pushing fails.
            GitHubAPIError: If the pull request cannot be created.
        """
        await self.workspace.commit_files_on_branch(
            branch=request.branch,
            base_branch=self.base_branch,
            files=request.files,
            message=request.commit_message,
        )
        return await self.client.create_pr(
            self.owner,
            self.repo,
            PRCreateRequest(
                title=request.title,
                body=request.body,
                head_branch=request.branch,
                base_branch=self.base_branch,
                labels=request.labels,
            ),
        )
