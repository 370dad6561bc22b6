"""Outcomes of the document pipeline.

Every issue that reaches the pipeline produces exactly one outcome:
Declined, reported to the submitter as a comment, or Success, reported
as a pull request. Unexpected errors are raised instead and produce no
outcome at all.
"""

from dataclasses import dataclass, field
from typing import List, Union

from src.lyricbot.engine.base import TimingMode
from src.lyricbot.engine.metadata import MetadataStore


@dataclass(frozen=True)
class Declined:
    """A submission rejected with a user-visible reason.

    Attributes:
        reason: Explanation shown to the submitter.
        diagnostic_context: Original document text, empty when none was
            downloaded.
    """

    reason: str
    diagnostic_context: str = ""


@dataclass(frozen=True)
class Success:
    """A validated submission and its generated documents.

    Attributes:
        original: The downloaded document text.
        compact: Compact TTML rendering.
        formatted: Pretty-printed TTML rendering.
        metadata: Deduplicated document metadata.
        warnings: Non-fatal parse warnings.
        remarks: Submitter's remarks.
        timing_mode: Timing mode used for both renderings.
    """

    original: str
    compact: str
    formatted: str
    metadata: MetadataStore
    warnings: List[str] = field(default_factory=list)
    remarks: str = ""
    timing_mode: TimingMode = TimingMode.WORD


PipelineOutcome = Union[Declined, Success]
