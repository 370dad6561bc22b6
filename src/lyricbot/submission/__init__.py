"""Submission intake: issue-form parsing and the idempotency gate."""

from src.lyricbot.submission.gate import IdempotencyGate
from src.lyricbot.submission.models import (
    MissingRequiredField,
    ParameterSet,
    SplittingOptions,
    SubmissionParameters,
)
from src.lyricbot.submission.parser import extract_parameters, parse_issue_body

__all__ = [
    "IdempotencyGate",
    "MissingRequiredField",
    "ParameterSet",
    "SplittingOptions",
    "SubmissionParameters",
    "extract_parameters",
    "parse_issue_body",
]
