"""Shared fixtures: a scripted lyric engine and issue-form body builder."""

import copy
from typing import Dict, List, Optional, Sequence

import pytest

from src.lyricbot.engine.base import (
    GenerationError,
    GenerationOptions,
    LanguageOptions,
    ParsedDocument,
    ParseError,
    SmoothingOptions,
    TimedLine,
)
from src.lyricbot.engine.metadata import MetadataStore
from src.lyricbot.submission.parser import FIELD_DOCUMENT_URL


class FakeEngine:
    """Scripted lyric engine recording every call it receives."""

    def __init__(
        self,
        document: Optional[ParsedDocument] = None,
        parse_error: Optional[ParseError] = None,
        validation_errors: Sequence[str] = (),
        generation_error: Optional[GenerationError] = None,
    ):
        self.document = document or ParsedDocument(
            lines=[
                TimedLine(start_ms=2000, end_ms=3000, text="second"),
                TimedLine(start_ms=0, end_ms=1000, text="first"),
            ],
            raw_metadata={"musicName": ["Song", "Song"], "artists": ["A"]},
        )
        self.parse_error = parse_error
        self.validation_errors = list(validation_errors)
        self.generation_error = generation_error
        self.calls: List[str] = []
        self.smoothing_options: List[SmoothingOptions] = []
        self.generation_options: List[GenerationOptions] = []
        self.validated_lines: List[TimedLine] = []

    def parse(self, raw_text: str, language_options: LanguageOptions) -> ParsedDocument:
        self.calls.append("parse")
        if self.parse_error is not None:
            raise self.parse_error
        return copy.deepcopy(self.document)

    def apply_smoothing(self, lines: List[TimedLine], options: SmoothingOptions) -> None:
        self.calls.append("smooth")
        self.smoothing_options.append(options)
        for line in lines:
            line.end_ms += 10

    def validate(self, lines: Sequence[TimedLine], metadata: MetadataStore) -> List[str]:
        self.calls.append("validate")
        self.validated_lines = list(lines)
        return list(self.validation_errors)

    def generate(
        self,
        lines: Sequence[TimedLine],
        metadata: MetadataStore,
        options: GenerationOptions,
    ) -> str:
        self.calls.append("generate")
        self.generation_options.append(options)
        if self.generation_error is not None:
            raise self.generation_error
        body = ";".join(f"{line.start_ms}-{line.end_ms}:{line.text}" for line in lines)
        meta = ",".join(f"{k}={'/'.join(v)}" for k, v in metadata.items())
        separator = "\n" if options.format else ""
        return (
            f"<tt mode={options.timing_mode.value} split={options.auto_word_splitting} "
            f"weight={options.punctuation_weight}>{separator}{body}{separator}[{meta}]</tt>"
        )


def build_issue_body(fields: Dict[str, str]) -> str:
    """Render fields the way GitHub renders an issue form."""
    return "\n\n".join(f"### {label}\n\n{value}" for label, value in fields.items())


@pytest.fixture
def fake_engine_cls():
    return FakeEngine


@pytest.fixture
def fake_engine():
    return FakeEngine()


@pytest.fixture
def issue_body():
    return build_issue_body


@pytest.fixture
def submission_body():
    """Body of a minimal valid submission."""
    return build_issue_body({FIELD_DOCUMENT_URL: "https://example.com/lyrics.ttml"})
