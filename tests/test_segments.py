import math

import pytest

from loggrid_config import DEFAULT_CONFIG
from loggrid_core import Segment, SegmentValidationError, TimeOfDay
from loggrid_segments import (
    append_segment,
    clear_segments,
    compute_totals,
    find_connectors,
    segment_hours,
)


def _t(hour, minute=0):
    return TimeOfDay(hour, minute)


def test_first_segment_keeps_its_own_start():
    segments = append_segment([], _t(6), _t(8), 3, "pre-trip")
    assert segments == [Segment(300, 400, 3, "pre-trip")]


def test_times_are_snapped_before_conversion():
    segments = append_segment([], _t(6, 7), _t(7, 53), 0)
    assert segments == [Segment(300, 400, 0, "")]


def test_append_does_not_mutate_input():
    original = append_segment([], _t(0), _t(6), 1)
    updated = append_segment(original, _t(6), _t(8), 2)
    assert len(original) == 1
    assert len(updated) == 2


def test_chaining_overrides_caller_start():
    segments = append_segment([], _t(0), _t(6), 1)
    segments = append_segment(segments, _t(9), _t(11), 2, "driving")
    assert segments[1] == Segment(300, 550, 2, "driving")


def test_chaining_invariant_over_many_appends():
    segments = []
    for hour in range(1, 12):
        segments = append_segment(segments, _t(0), _t(hour * 2), hour % 4)
    assert len(segments) == 11
    for prev, cur in zip(segments, segments[1:]):
        assert cur.from_x == prev.to_x


def test_wraparound_entry_is_split_at_midnight():
    segments = append_segment([], _t(22), _t(2), 2, "x")
    assert segments == [Segment(1100, 1200, 2, "x"), Segment(0, 100, 2, "x")]

    totals = compute_totals(segments)
    assert totals.formatted()[2] == "04:00"
    assert totals.grand_total_label == "04:00"


def test_wraparound_after_chaining_preserves_span():
    segments = append_segment([], _t(14), _t(20), 3)
    segments = append_segment(segments, _t(0), _t(4, 30), 0)
    first, second = segments[1], segments[2]
    assert first.from_x == 1000 and first.to_x == DEFAULT_CONFIG.grid_width
    assert second.from_x == 0 and second.to_x == 225
    assert first.width + second.width == (1200 - 1000) + 225


def test_snap_to_midnight_with_chaining_is_zero_width():
    segments = append_segment([], _t(0), _t(23, 53), 1)
    assert segments == [Segment(0, 0, 1, "")]
    assert compute_totals(segments).grand_total_hours == 0


@pytest.mark.parametrize("category", [-1, 4, 2.0, "2", True, None])
def test_invalid_category_is_rejected(category):
    with pytest.raises(SegmentValidationError):
        append_segment([], _t(1), _t(2), category)


def test_non_finite_time_is_rejected():
    with pytest.raises(SegmentValidationError):
        append_segment([], TimeOfDay(math.nan, 0), _t(2), 0)


def test_clear_returns_empty_sequence():
    assert clear_segments() == []


def test_totals_sum_each_segment_independently():
    segments = [
        Segment(0, 300, 1),
        Segment(300, 550, 2),
        Segment(550, 550, 3),
        Segment(900, 800, 0),
        Segment(100, 200, 2),
    ]
    totals = compute_totals(segments)
    assert totals.per_category_hours == [0.0, 6.0, 7.0, 0.0]
    assert totals.grand_total_hours == sum(totals.per_category_hours)
    assert totals.grand_total_hours == sum(segment_hours(s) for s in segments)


def test_totals_of_empty_sequence():
    totals = compute_totals([])
    assert totals.formatted() == ["00:00"] * 4
    assert totals.grand_total_label == "00:00"


def test_connectors_link_touching_segments():
    segments = [
        Segment(0, 300, 1),
        Segment(300, 300, 3),
        Segment(300, 550, 2),
    ]
    assert find_connectors(segments) == [(0, 1), (0, 2)]
