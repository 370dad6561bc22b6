"""Property-based tests for pipeline ordering helpers."""

from hypothesis import given, strategies as st

from src.lyricbot.engine.base import TimedLine
from src.lyricbot.processing.pipeline import format_validation_errors, sort_lines

timed_lines = st.lists(
    st.builds(
        TimedLine,
        start_ms=st.integers(min_value=0, max_value=50),
        end_ms=st.integers(min_value=0, max_value=100),
        text=st.text(max_size=5),
    ),
    max_size=30,
)


@given(timed_lines)
def test_sort_orders_by_start_time(lines):
    sort_lines(lines)
    starts = [line.start_ms for line in lines]
    assert starts == sorted(starts)


@given(timed_lines)
def test_sort_keeps_input_order_for_equal_starts(lines):
    tagged = [
        TimedLine(start_ms=line.start_ms, end_ms=line.end_ms, text=str(index))
        for index, line in enumerate(lines)
    ]
    sort_lines(tagged)
    for earlier, later in zip(tagged, tagged[1:]):
        if earlier.start_ms == later.start_ms:
            assert int(earlier.text) < int(later.text)


@given(timed_lines)
def test_sort_is_a_permutation(lines):
    before = sorted(id(line) for line in lines)
    sort_lines(lines)
    assert sorted(id(line) for line in lines) == before


@given(st.lists(st.text(alphabet="abc xyz-\n", min_size=1, max_size=12), min_size=1, max_size=8))
def test_every_validation_error_gets_one_bullet(errors):
    rendered = format_validation_errors(errors)
    assert rendered.count("\n- ") == len(errors)
    for line in rendered.splitlines()[1:]:
        assert line.startswith("- ") or line.startswith("  ")
