"""Lyric document engine interface.

The engine owns the TTML format: parsing raw text into timed lines,
syllable smoothing, consistency validation and TTML generation. The bot
only sequences these operations, so an engine is any object providing the
four methods of LyricEngine.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Protocol, Sequence, runtime_checkable

from src.lyricbot.engine.metadata import MetadataStore


class TimingMode(str, Enum):
    """Granularity of the timing written to generated TTML.

    Attributes:
        LINE: One timestamp pair per line.
        WORD: Timestamps per word or syllable.
    """

    LINE = "line"
    WORD = "word"


@dataclass
class TimedSyllable:
    text: str
    start_ms: int
    end_ms: int


@dataclass
class TimedLine:
    """A lyric line with its timing.

    Attributes:
        start_ms: Line start in milliseconds.
        end_ms: Line end in milliseconds.
        text: Plain text of the line.
        syllables: Word or syllable timings, empty for line-timed lyrics.
        agent: Singer identifier, if the document declares one.
    """

    start_ms: int
    end_ms: int
    text: str = ""
    syllables: List[TimedSyllable] = field(default_factory=list)
    agent: Optional[str] = None


@dataclass
class ParsedDocument:
    """Result of parsing a TTML document.

    Attributes:
        lines: Timed lines in document order.
        raw_metadata: Metadata entries as found, key to values.
        warnings: Non-fatal problems noticed while parsing.
    """

    lines: List[TimedLine] = field(default_factory=list)
    raw_metadata: Dict[str, List[str]] = field(default_factory=dict)
    warnings: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class LanguageOptions:
    """Default languages assumed for untagged text while parsing."""

    main: str = ""
    translation: str = ""
    romanization: str = ""


@dataclass(frozen=True)
class SmoothingOptions:
    """Parameters of the syllable smoothing transform.

    Attributes:
        factor: Strength of each smoothing iteration.
        duration_threshold_ms: Largest duration difference grouped together.
        gap_threshold_ms: Largest gap between syllables grouped together.
        iterations: Number of smoothing passes.
    """

    factor: float = 0.15
    duration_threshold_ms: int = 50
    gap_threshold_ms: int = 100
    iterations: int = 5


@dataclass(frozen=True)
class GenerationOptions:
    """Options for rendering TTML.

    Attributes:
        timing_mode: Line or word timing.
        format: Pretty-print the output when True.
        auto_word_splitting: Derive word segmentation heuristically.
        punctuation_weight: Weight of punctuation in word splitting.
    """

    timing_mode: TimingMode = TimingMode.WORD
    format: bool = False
    auto_word_splitting: bool = False
    punctuation_weight: float = 0.3


class EngineError(Exception):
    """Base class for errors raised by a lyric engine."""


class ParseError(EngineError):
    """Raised when a document cannot be parsed.

    Attributes:
        detail: Engine-specific description of the failure.
    """

    def __init__(self, message: str, detail: Optional[str] = None):
        self.detail = detail
        super().__init__(message)


class GenerationError(EngineError):
    """Raised when TTML cannot be generated from validated lines."""


@runtime_checkable
class LyricEngine(Protocol):
    """Operations the bot needs from a lyric document engine."""

    def parse(self, raw_text: str, language_options: LanguageOptions) -> ParsedDocument:
        """Parse raw TTML text.

        Raises:
            ParseError: If the document is not valid TTML.
        """
        ...

    def apply_smoothing(self, lines: List[TimedLine], options: SmoothingOptions) -> None:
        """Smooth syllable timing in place."""
        ...

    def validate(self, lines: Sequence[TimedLine], metadata: MetadataStore) -> List[str]:
        """Return consistency errors; an empty list means the document is valid."""
        ...

    def generate(
        self,
        lines: Sequence[TimedLine],
        metadata: MetadataStore,
        options: GenerationOptions,
    ) -> str:
        """Render TTML text.

        Raises:
            GenerationError: If the document cannot be rendered.
        """
        ...
