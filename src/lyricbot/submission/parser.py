"""Issue-form body parsing and parameter resolution.

GitHub renders an issue form as a sequence of sections, each introduced by
a "### <label>" heading and followed by the submitted value. Fields the
user left blank are rendered as "_No response_".

Options are opted into by marker phrases inside free-text fields. A marker
counts when it appears anywhere in the field, except on an unchecked
task-list line ("- [ ] ..."), so both dropdown and checkbox renderings of
the form are understood. Numeric fields fall back to their defaults rather
than failing the submission.
"""

import logging
import math
import re
from typing import Callable, Iterable, List, Optional, TypeVar

from src.lyricbot.engine.base import SmoothingOptions, TimingMode
from src.lyricbot.submission.models import (
    DEFAULT_PUNCTUATION_WEIGHT,
    MissingRequiredField,
    ParameterSet,
    SplittingOptions,
    SubmissionParameters,
)

logger = logging.getLogger(__name__)

T = TypeVar("T", int, float)

NO_RESPONSE = "_No response_"

FIELD_DOCUMENT_URL = "TTML 歌词文件下载直链"
FIELD_REMARKS = "备注"
FIELD_LYRIC_OPTIONS = "歌词选项"
FIELD_FEATURE_SWITCHES = "功能开关"
FIELD_SMOOTHING_FACTOR = "[平滑] 平滑因子"
FIELD_DURATION_THRESHOLD = "[平滑] 分组时长差异阈值 (毫秒)"
FIELD_GAP_THRESHOLD = "[平滑] 分组间隔阈值 (毫秒)"
FIELD_ITERATIONS = "[平滑] 迭代次数"
FIELD_PUNCTUATION_WEIGHT = "[分词] 标点符号权重"

KNOWN_FIELDS = frozenset(
    {
        FIELD_DOCUMENT_URL,
        FIELD_REMARKS,
        FIELD_LYRIC_OPTIONS,
        FIELD_FEATURE_SWITCHES,
        FIELD_SMOOTHING_FACTOR,
        FIELD_DURATION_THRESHOLD,
        FIELD_GAP_THRESHOLD,
        FIELD_ITERATIONS,
        FIELD_PUNCTUATION_WEIGHT,
    }
)

MARKER_LINE_TIMED = "这是逐行歌词"
MARKER_SMOOTHING = "启用平滑优化"
MARKER_AUTO_SPLIT = "启用自动分词"

_SECTION_HEADING = "### "
_UNCHECKED_TASK = re.compile(r"^\s*[-*]\s*\[ \]")


def parse_issue_body(body: str) -> ParameterSet:
    """Split an issue-form body into its recognized fields.

    Unrecognized headings are ignored. Empty sections and "_No response_"
    sections are left out, so a missing value is always an absent key.

    Args:
        body: Raw issue body text.

    Returns:
        Mapping of field label to stripped section text.
    """
    params: ParameterSet = {}
    label: Optional[str] = None
    section: List[str] = []

    for line in body.splitlines():
        if line.startswith(_SECTION_HEADING):
            _store_section(params, label, section)
            label = line[len(_SECTION_HEADING):].strip()
            section = []
        elif label is not None:
            section.append(line)

    _store_section(params, label, section)
    return params


def _store_section(params: ParameterSet, label: Optional[str], lines: List[str]) -> None:
    if label is None or label not in KNOWN_FIELDS:
        return
    value = "\n".join(lines).strip()
    if value and value != NO_RESPONSE:
        params[label] = value


def has_marker(text: str, marker: str) -> bool:
    """Check whether a marker phrase is selected in a field's text."""
    return any(
        marker in line and not _UNCHECKED_TASK.match(line)
        for line in text.splitlines()
    )


def resolve_timing_mode(params: ParameterSet) -> TimingMode:
    """Line timing when the line-timed marker is selected, word timing otherwise."""
    text = params.get(FIELD_LYRIC_OPTIONS, "")
    _warn_if_unrecognized(FIELD_LYRIC_OPTIONS, text, [MARKER_LINE_TIMED])
    if has_marker(text, MARKER_LINE_TIMED):
        return TimingMode.LINE
    return TimingMode.WORD


def resolve_number(
    params: ParameterSet,
    label: str,
    parse: Callable[[str], T],
    default: T,
) -> T:
    """Resolve a numeric field, falling back to its default.

    Absent fields, unparsable text and non-finite numbers all resolve to
    the default.
    """
    raw = params.get(label)
    if raw is None:
        return default
    try:
        value = parse(raw.strip())
    except ValueError:
        logger.warning(
            "Unparsable numeric field, using default",
            extra={"field": label, "value": raw, "default": default},
        )
        return default
    if isinstance(value, float) and not math.isfinite(value):
        return default
    return value


def resolve_smoothing(params: ParameterSet) -> SmoothingOptions:
    defaults = SmoothingOptions()
    return SmoothingOptions(
        factor=resolve_number(params, FIELD_SMOOTHING_FACTOR, float, defaults.factor),
        duration_threshold_ms=resolve_number(
            params, FIELD_DURATION_THRESHOLD, int, defaults.duration_threshold_ms
        ),
        gap_threshold_ms=resolve_number(
            params, FIELD_GAP_THRESHOLD, int, defaults.gap_threshold_ms
        ),
        iterations=resolve_number(params, FIELD_ITERATIONS, int, defaults.iterations),
    )


def extract_parameters(body: str) -> SubmissionParameters:
    """Extract the submission parameters from an issue body.

    Args:
        body: Raw issue body text.

    Returns:
        Fully resolved SubmissionParameters.

    Raises:
        MissingRequiredField: If the document URL field is absent or empty.
    """
    params = parse_issue_body(body)

    document_url = params.get(FIELD_DOCUMENT_URL)
    if not document_url:
        raise MissingRequiredField(FIELD_DOCUMENT_URL)

    switches = params.get(FIELD_FEATURE_SWITCHES, "")
    _warn_if_unrecognized(
        FIELD_FEATURE_SWITCHES, switches, [MARKER_SMOOTHING, MARKER_AUTO_SPLIT]
    )
    enable_smoothing = has_marker(switches, MARKER_SMOOTHING)
    auto_split = has_marker(switches, MARKER_AUTO_SPLIT)

    punctuation_weight = DEFAULT_PUNCTUATION_WEIGHT
    if auto_split:
        punctuation_weight = resolve_number(
            params, FIELD_PUNCTUATION_WEIGHT, float, DEFAULT_PUNCTUATION_WEIGHT
        )

    return SubmissionParameters(
        document_url=document_url,
        remarks=params.get(FIELD_REMARKS, ""),
        timing_mode=resolve_timing_mode(params),
        smoothing=resolve_smoothing(params) if enable_smoothing else None,
        splitting=SplittingOptions(
            enabled=auto_split,
            punctuation_weight=punctuation_weight,
        ),
    )


def _warn_if_unrecognized(label: str, text: str, markers: Iterable[str]) -> None:
    if text and not any(marker in text for marker in markers):
        logger.warning(
            "No recognized option in field, using defaults",
            extra={"field": label, "value": text[:200]},
        )
