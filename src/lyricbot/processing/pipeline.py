"""Document pipeline for one submission issue.

Drives a submission through the stages:
extract → fetch → parse → sort → smooth → metadata → validate → generate.

Problems the submitter can fix (missing link, unparsable document, failed
validation) end the pipeline with a Declined outcome. Everything else,
such as download or generation failures, is raised to the caller.
"""

import dataclasses
import logging
from typing import List, Sequence

from src.lyricbot.engine.base import (
    GenerationOptions,
    LanguageOptions,
    LyricEngine,
    ParsedDocument,
    ParseError,
    TimedLine,
)
from src.lyricbot.engine.metadata import MetadataStore
from src.lyricbot.github.models import Issue
from src.lyricbot.processing.fetcher import DocumentFetcher
from src.lyricbot.processing.models import Declined, PipelineOutcome, Success
from src.lyricbot.submission.models import MissingRequiredField, SubmissionParameters
from src.lyricbot.submission.parser import extract_parameters

logger = logging.getLogger(__name__)

MISSING_URL_REASON = "无法在 Issue 中找到有效的“TTML 歌词文件下载直链”。"
PARSE_FAILED_REASON = "解析 TTML 文件失败: `{detail}`"
VALIDATION_FAILED_REASON = "文件验证失败:\n- {errors}"


def sort_lines(lines: List[TimedLine]) -> None:
    """Stably sort lines in place by start time."""
    lines.sort(key=lambda line: line.start_ms)


def format_validation_errors(errors: Sequence[str]) -> str:
    # continuation lines stay inside their bullet
    bullets = (error.strip().replace("\n", "\n  ") for error in errors)
    return VALIDATION_FAILED_REASON.format(errors="\n- ".join(bullets))


class DocumentPipeline:
    """Turns a submission issue into a pipeline outcome.

    Attributes:
        engine: Lyric document engine.
        fetcher: Downloader for submitted documents.
    """

    def __init__(self, engine: LyricEngine, fetcher: DocumentFetcher):
        self.engine = engine
        self.fetcher = fetcher

    async def run(self, issue: Issue) -> PipelineOutcome:
        """Process one issue.

        Args:
            issue: The submission issue.

        Returns:
            Declined or Success.

        Raises:
            DocumentFetchError: If the document cannot be downloaded.
            GenerationError: If TTML generation fails.
        """
        try:
            params = extract_parameters(issue.body)
        except MissingRequiredField:
            logger.info(
                "Issue has no document link",
                extra={"issue_number": issue.number},
            )
            return Declined(reason=MISSING_URL_REASON)

        logger.info(
            "Resolved submission parameters",
            extra={
                "issue_number": issue.number,
                "timing_mode": params.timing_mode.value,
                "smoothing": params.smoothing is not None,
                "auto_split": params.splitting.enabled,
            },
        )

        raw_text = await self.fetcher.fetch_text(params.document_url)
        return self.process_document(issue.number, raw_text, params)

    def process_document(
        self,
        issue_number: int,
        raw_text: str,
        params: SubmissionParameters,
    ) -> PipelineOutcome:
        """Run the engine stages over a downloaded document."""
        try:
            document = self._parse(issue_number, raw_text)
        except ParseError as exc:
            detail = f"{exc}: {exc.detail}" if exc.detail else str(exc)
            logger.info(
                "Document failed to parse",
                extra={"issue_number": issue_number, "error": detail},
            )
            return Declined(
                reason=PARSE_FAILED_REASON.format(detail=detail),
                diagnostic_context=raw_text,
            )

        sort_lines(document.lines)

        if params.smoothing is not None:
            logger.info("Applying smoothing", extra={"issue_number": issue_number})
            self.engine.apply_smoothing(document.lines, params.smoothing)

        metadata = MetadataStore.from_raw(document.raw_metadata)
        logger.debug(
            "Assembled metadata",
            extra={"issue_number": issue_number, "metadata": metadata.to_dict()},
        )

        # generation must not see changes made after validation
        lines = tuple(document.lines)
        errors = list(self.engine.validate(lines, metadata))
        if errors:
            logger.info(
                "Document failed validation",
                extra={"issue_number": issue_number, "error_count": len(errors)},
            )
            return Declined(
                reason=format_validation_errors(errors),
                diagnostic_context=raw_text,
            )

        base_options = GenerationOptions(
            timing_mode=params.timing_mode,
            auto_word_splitting=params.splitting.enabled,
            punctuation_weight=params.splitting.punctuation_weight,
        )
        compact = self.engine.generate(
            lines, metadata, dataclasses.replace(base_options, format=False)
        )
        formatted = self.engine.generate(
            lines, metadata, dataclasses.replace(base_options, format=True)
        )

        logger.info(
            "Document validated and generated",
            extra={"issue_number": issue_number, "line_count": len(lines)},
        )

        return Success(
            original=raw_text,
            compact=compact,
            formatted=formatted,
            metadata=metadata,
            warnings=list(document.warnings),
            remarks=params.remarks,
            timing_mode=params.timing_mode,
        )

    def _parse(self, issue_number: int, raw_text: str) -> ParsedDocument:
        document = self.engine.parse(raw_text, LanguageOptions())
        for warning in document.warnings:
            logger.warning(
                "Parse warning",
                extra={"issue_number": issue_number, "warning": warning},
            )
        if document.warnings:
            logger.warning(
                "Document parsed with warnings",
                extra={"issue_number": issue_number, "warning_count": len(document.warnings)},
            )
        return document
