"""GitHub integration for the submission bot.

This package provides:
- An async GitHub REST client with retry and rate-limit handling
- Git operations on the checked-out target repository
- The repository-bound issue tracker used by the pipeline
"""

from src.lyricbot.github.client import (
    GitHubAPIError,
    GitHubClient,
    RateLimitError,
)
from src.lyricbot.github.models import (
    ChangeRequest,
    Issue,
    PRCreateRequest,
    PRCreateResult,
)
from src.lyricbot.github.tracker import IssueTracker, submission_branch
from src.lyricbot.github.workspace import GitCommandError, GitWorkspace

__all__ = [
    "ChangeRequest",
    "GitCommandError",
    "GitHubAPIError",
    "GitHubClient",
    "GitWorkspace",
    "Issue",
    "IssueTracker",
    "PRCreateRequest",
    "PRCreateResult",
    "RateLimitError",
    "submission_branch",
]
