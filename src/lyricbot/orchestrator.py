"""Submission orchestrator driving one pass over the submission issues.

Lists the labelled issues and drives each one, strictly in order, through:
idempotency gate → document pipeline → result reporter.

Each issue runs inside its own failure boundary. An unexpected error is
logged and the pass continues with the next issue; nothing is posted for
the failed issue, so it is picked up again by the next pass.
"""

import logging
from collections import Counter
from enum import Enum
from typing import Dict

from src.lyricbot.github.models import Issue
from src.lyricbot.github.tracker import IssueTracker
from src.lyricbot.processing.models import Declined
from src.lyricbot.processing.pipeline import DocumentPipeline
from src.lyricbot.reporting.reporter import ResultReporter
from src.lyricbot.submission.gate import IdempotencyGate

logger = logging.getLogger(__name__)


class IssueResult(str, Enum):
    """How processing of one issue ended.

    Attributes:
        SKIPPED: The issue already had a pull request or bot comment.
        DECLINED: A decline comment was posted.
        SUBMITTED: A pull request and confirmation comment were created.
        FAILED: An unexpected error occurred; the issue will be retried.
    """

    SKIPPED = "skipped"
    DECLINED = "declined"
    SUBMITTED = "submitted"
    FAILED = "failed"


class SubmissionOrchestrator:
    """Runs the submission pipeline over all labelled issues.

    Attributes:
        tracker: Repository-bound issue tracker.
        gate: Idempotency gate.
        pipeline: Document pipeline.
        reporter: Result reporter.
    """

    def __init__(
        self,
        tracker: IssueTracker,
        gate: IdempotencyGate,
        pipeline: DocumentPipeline,
        reporter: ResultReporter,
    ):
        self.tracker = tracker
        self.gate = gate
        self.pipeline = pipeline
        self.reporter = reporter

    async def run_pass(self) -> Dict[int, IssueResult]:
        """Process every open submission issue once.

        Returns:
            Mapping of issue number to its result.

        Raises:
            GitHubAPIError: If the issues cannot be listed.
        """
        issues = await self.tracker.list_submission_issues()

        results: Dict[int, IssueResult] = {}
        for issue in issues:
            results[issue.number] = await self.process_issue(issue)

        summary = Counter(result.value for result in results.values())
        logger.info(
            "Submission pass complete",
            extra={"issue_count": len(issues), **{f"{k}_count": v for k, v in summary.items()}},
        )
        return results

    async def process_issue(self, issue: Issue) -> IssueResult:
        """Drive one issue through gate, pipeline and reporter.

        Never raises: unexpected errors are logged and reported as FAILED.
        """
        logger.info(
            "Processing issue",
            extra={"issue_number": issue.number, "title": issue.title},
        )

        try:
            return await self._process(issue)
        except Exception:
            logger.exception(
                "Failed to process issue",
                extra={"issue_number": issue.number},
            )
            return IssueResult.FAILED

    async def _process(self, issue: Issue) -> IssueResult:
        if await self.gate.already_handled(issue.number):
            return IssueResult.SKIPPED

        outcome = await self.pipeline.run(issue)
        await self.reporter.report(issue, outcome)

        if isinstance(outcome, Declined):
            return IssueResult.DECLINED
        return IssueResult.SUBMITTED
