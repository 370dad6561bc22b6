"""Idempotency gate for submission issues.

An issue is handled at most once per terminal event: once a linked pull
request or a bot comment exists, it is never processed again. Issues that
failed without leaving either artifact pass the gate on the next run,
which is how transient failures are retried.
"""

import logging

from src.lyricbot.github.tracker import IssueTracker

logger = logging.getLogger(__name__)


class IdempotencyGate:
    """Decides whether an issue has already been handled."""

    def __init__(self, tracker: IssueTracker):
        self.tracker = tracker

    async def already_handled(self, issue_number: int) -> bool:
        """Check the tracker for a linked pull request, then a bot comment.

        Raises:
            GitHubAPIError: If either lookup fails.
        """
        if await self.tracker.pr_for_issue_exists(issue_number):
            return True

        if await self.tracker.has_bot_commented(issue_number):
            logger.info(
                "Issue already commented on by the bot, skipping",
                extra={"issue_number": issue_number},
            )
            return True

        return False
