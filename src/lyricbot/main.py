"""Command-line entry point for the submission bot.

Reads the configuration, wires the collaborators and runs one pass over
the submission issues. Meant to be run by a scheduled or label-triggered
GitHub Actions workflow.
"""

import asyncio
import logging
import sys

from pydantic import ValidationError

from .config import BotSettings, get_settings
from .engine.base import LyricEngine
from .engine.loader import EngineLoadError, load_engine
from .github.client import GitHubAPIError, GitHubClient
from .github.tracker import IssueTracker
from .github.workspace import GitWorkspace
from .orchestrator import SubmissionOrchestrator
from .processing.fetcher import DocumentFetcher
from .processing.pipeline import DocumentPipeline
from .reporting.reporter import ResultReporter
from .submission.gate import IdempotencyGate

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

logger = logging.getLogger(__name__)


def _redact_secret(value: str, visible_chars: int = 4) -> str:
    """Redact a secret value, showing only the first few characters.

    Args:
        value: The secret value to redact.
        visible_chars: Number of characters to show at the start.

    Returns:
        Redacted string with asterisks replacing hidden characters.
    """
    if len(value) <= visible_chars:
        return "*" * len(value)
    return value[:visible_chars] + "*" * (len(value) - visible_chars)


def _log_configuration(settings: BotSettings) -> None:
    """Log configuration values with secrets redacted."""
    logger.info("Bot configuration:")
    logger.info(f"  GitHub Base URL: {settings.github_base_url}")
    logger.info(f"  GitHub Token: {_redact_secret(settings.github_token)}")
    logger.info(f"  Repository: {settings.github_repository}")
    logger.info(f"  Workspace Root: {settings.workspace_root}")
    logger.info(f"  Base Branch: {settings.base_branch}")
    logger.info(f"  Submission Label: {settings.submission_label}")
    logger.info(f"  Submission Dir: {settings.submission_dir}")
    logger.info(f"  Bot Login: {settings.bot_login}")
    logger.info(f"  Engine: {settings.engine}")
    logger.info(f"  Fetch Timeout Seconds: {settings.fetch_timeout_seconds}")
    logger.info(f"  Max Document Bytes: {settings.max_document_bytes}")


def build_orchestrator(
    settings: BotSettings,
    engine: LyricEngine,
    github_client: GitHubClient,
    fetcher: DocumentFetcher,
) -> SubmissionOrchestrator:
    """Wire all collaborators into a SubmissionOrchestrator.

    Args:
        settings: Validated bot settings.
        engine: Loaded lyric document engine.
        github_client: Authenticated GitHub API client.
        fetcher: Document downloader.

    Returns:
        Fully wired SubmissionOrchestrator.
    """
    owner, repo = settings.repository_parts
    tracker = IssueTracker(
        client=github_client,
        workspace=GitWorkspace(root=settings.workspace_root),
        owner=owner,
        repo=repo,
        label=settings.submission_label,
        bot_login=settings.bot_login,
        base_branch=settings.base_branch,
    )
    return SubmissionOrchestrator(
        tracker=tracker,
        gate=IdempotencyGate(tracker),
        pipeline=DocumentPipeline(engine=engine, fetcher=fetcher),
        reporter=ResultReporter(
            tracker=tracker,
            submission_dir=settings.submission_dir,
            pr_labels=settings.pr_labels,
        ),
    )


async def run(settings: BotSettings, engine: LyricEngine) -> None:
    """Run one pass with clients that are closed afterwards."""
    async with GitHubClient(
        token=settings.github_token,
        base_url=settings.github_base_url,
    ) as github_client, DocumentFetcher(
        timeout_seconds=settings.fetch_timeout_seconds,
        max_bytes=settings.max_document_bytes,
    ) as fetcher:
        orchestrator = build_orchestrator(settings, engine, github_client, fetcher)
        await orchestrator.run_pass()


def main() -> int:
    """Run the bot once and return the process exit status."""
    logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)
    logger.info("Experimental lyric submission bot starting...")

    try:
        settings = get_settings()
    except ValidationError as exc:
        logger.error(f"Invalid configuration:\n{exc}")
        return 2

    logging.getLogger().setLevel(settings.log_level)
    _log_configuration(settings)

    try:
        engine = load_engine(settings.engine)
    except EngineLoadError:
        logger.exception("Failed to load lyric engine")
        return 2

    try:
        asyncio.run(run(settings, engine))
    except GitHubAPIError:
        logger.exception("Failed to list submission issues")
        return 1

    logger.info("All submission issues processed.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
