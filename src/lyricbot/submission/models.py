"""Submission parameter models.

SubmissionParameters is the typed view of an issue-form body: the document
URL, the user's remarks, and the resolved processing options.
"""

from dataclasses import dataclass
from typing import Dict, Optional

from src.lyricbot.engine.base import SmoothingOptions, TimingMode

# Mapping of recognized issue-form label to the raw section text.
ParameterSet = Dict[str, str]

DEFAULT_PUNCTUATION_WEIGHT = 0.3


class MissingRequiredField(Exception):
    """Raised when a required issue-form field is absent or empty.

    Attributes:
        field: Label of the missing field.
    """

    def __init__(self, field: str):
        self.field = field
        super().__init__(f"Required field missing: {field}")


@dataclass(frozen=True)
class SplittingOptions:
    """Automatic word splitting settings.

    Attributes:
        enabled: Whether the generator derives word segmentation.
        punctuation_weight: Punctuation weight, defaulted even when disabled.
    """

    enabled: bool = False
    punctuation_weight: float = DEFAULT_PUNCTUATION_WEIGHT


@dataclass(frozen=True)
class SubmissionParameters:
    """Resolved parameters of one submission.

    Attributes:
        document_url: Download link of the submitted TTML document.
        remarks: Free-text remarks, carried into the pull request only.
        timing_mode: Line or word timing for the generated TTML.
        smoothing: Smoothing options, None when not requested.
        splitting: Word splitting options.
    """

    document_url: str
    remarks: str = ""
    timing_mode: TimingMode = TimingMode.WORD
    smoothing: Optional[SmoothingOptions] = None
    splitting: SplittingOptions = SplittingOptions()
