"""Formatting and posting of submission results."""

from src.lyricbot.reporting.formatting import (
    build_pr_body,
    build_pr_title,
    format_decline_comment,
    format_success_comment,
)
from src.lyricbot.reporting.reporter import ResultReporter

__all__ = [
    "ResultReporter",
    "build_pr_body",
    "build_pr_title",
    "format_decline_comment",
    "format_success_comment",
]
