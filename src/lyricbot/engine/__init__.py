"""Lyric document engine interface and loader.

The TTML parser, smoothing transform, validator and generator live in an
external engine; this package defines the types exchanged with it.
"""

from src.lyricbot.engine.base import (
    EngineError,
    GenerationError,
    GenerationOptions,
    LanguageOptions,
    LyricEngine,
    ParsedDocument,
    ParseError,
    SmoothingOptions,
    TimedLine,
    TimedSyllable,
    TimingMode,
)
from src.lyricbot.engine.loader import EngineLoadError, load_engine
from src.lyricbot.engine.metadata import MetadataStore

__all__ = [
    "EngineError",
    "EngineLoadError",
    "GenerationError",
    "GenerationOptions",
    "LanguageOptions",
    "LyricEngine",
    "MetadataStore",
    "ParsedDocument",
    "ParseError",
    "SmoothingOptions",
    "TimedLine",
    "TimedSyllable",
    "TimingMode",
    "load_engine",
]
