"""Reporting pipeline outcomes back to the issue tracker.

A declined submission gets one comment. An accepted submission gets a pull
request and then a confirmation comment linking to it. Either artifact
marks the issue as handled for later runs.
"""

import logging
from datetime import datetime, timezone
from typing import Callable, List, Optional

from src.lyricbot.github.models import ChangeRequest, Issue, PRCreateResult
from src.lyricbot.github.tracker import IssueTracker, submission_branch
from src.lyricbot.processing.models import Declined, PipelineOutcome, Success
from src.lyricbot.reporting.formatting import (
    build_commit_message,
    build_pr_body,
    build_pr_title,
    build_submission_path,
    format_decline_comment,
    format_success_comment,
)

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ResultReporter:
    """Posts decline and success outcomes to the issue tracker.

    Attributes:
        tracker: Repository-bound issue tracker.
        submission_dir: Workspace-relative directory for submitted files.
        pr_labels: Labels added to submission pull requests.
    """

    def __init__(
        self,
        tracker: IssueTracker,
        submission_dir: str = "raw-lyrics",
        pr_labels: Optional[List[str]] = None,
        clock: Callable[[], datetime] = _utc_now,
    ):
        self.tracker = tracker
        self.submission_dir = submission_dir
        self.pr_labels = list(pr_labels or [])
        self.clock = clock

    async def report(self, issue: Issue, outcome: PipelineOutcome) -> None:
        if isinstance(outcome, Declined):
            await self.report_declined(issue, outcome)
        else:
            await self.report_success(issue, outcome)

    async def report_declined(self, issue: Issue, outcome: Declined) -> None:
        """Post the decline comment, with the original document if any."""
        body = format_decline_comment(outcome.reason, outcome.diagnostic_context)
        await self.tracker.post_comment(issue.number, body)
        logger.info("Submission declined", extra={"issue_number": issue.number})

    async def report_success(self, issue: Issue, outcome: Success) -> PRCreateResult:
        """Open the submission pull request, then confirm on the issue.

        The pull request is created first: if commenting fails afterwards,
        the existing pull request still stops the issue from being processed
        again.

        Raises:
            GitCommandError: If the submission branch cannot be pushed.
            GitHubAPIError: If the pull request or comment cannot be created.
        """
        path = build_submission_path(self.submission_dir, issue, self.clock())
        request = ChangeRequest(
            issue_number=issue.number,
            branch=submission_branch(issue.number),
            title=build_pr_title(issue),
            body=build_pr_body(issue, outcome),
            commit_message=build_commit_message(issue),
            files={path: outcome.compact},
            labels=self.pr_labels,
        )

        result = await self.tracker.open_change_request(request)
        await self.tracker.post_comment(
            issue.number, format_success_comment(result.pr_number, result.pr_url)
        )

        logger.info(
            "Submission accepted",
            extra={
                "issue_number": issue.number,
                "pr_number": result.pr_number,
                "file": path,
            },
        )
        return result
