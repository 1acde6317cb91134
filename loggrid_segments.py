from __future__ import annotations

import logging
import math
from typing import Iterable, Sequence

from loggrid_config import DEFAULT_CONFIG, GridConfig
from loggrid_core import (
    CategoryTotals,
    Segment,
    SegmentValidationError,
    TimeOfDay,
    is_close,
    snap_to_quarter_hour,
    time_to_x,
)


logger = logging.getLogger(__name__)


def validate_category_index(category_index: object, config: GridConfig = DEFAULT_CONFIG) -> int:
    if isinstance(category_index, bool) or not isinstance(category_index, int):
        raise SegmentValidationError(f"Category index must be an integer, got {category_index!r}")
    if not 0 <= category_index < len(config.categories):
        raise SegmentValidationError(
            f"Category index {category_index} is outside [0, {len(config.categories) - 1}]"
        )
    return category_index


def _check_time(label: str, value: TimeOfDay) -> None:
    for part in (value.hour, value.minute):
        if isinstance(part, bool) or not isinstance(part, (int, float)) or not math.isfinite(part):
            raise SegmentValidationError(f"{label} time has a non-finite component: {value!r}")


def split_at_midnight(
    from_x: float,
    to_x: float,
    category_index: int,
    remark: str,
    grid_width: float,
) -> list[Segment]:
    if to_x >= from_x:
        return [Segment(from_x, to_x, category_index, remark)]
    return [
        Segment(from_x, grid_width, category_index, remark),
        Segment(0, to_x, category_index, remark),
    ]


def append_segment(
    segments: Sequence[Segment],
    from_time: TimeOfDay,
    to_time: TimeOfDay,
    category_index: int,
    remark: str = "",
    config: GridConfig = DEFAULT_CONFIG,
) -> list[Segment]:
    """Return a new sequence with one entry appended.

    Both times are snapped to the quarter hour. A non-empty sequence forces the
    entry to start where the last stored segment ends, and an entry that crosses
    midnight is stored as two segments sharing category and remark.
    """
    validate_category_index(category_index, config)
    _check_time("From", from_time)
    _check_time("To", to_time)

    snapped_from = snap_to_quarter_hour(from_time.hour, from_time.minute)
    snapped_to = snap_to_quarter_hour(to_time.hour, to_time.minute)
    from_x = time_to_x(snapped_from.hour, snapped_from.minute, config.px_per_hour)
    to_x = time_to_x(snapped_to.hour, snapped_to.minute, config.px_per_hour)

    if segments:
        from_x = segments[-1].to_x

    new_segments = split_at_midnight(from_x, to_x, category_index, remark or "", config.grid_width)
    if len(new_segments) > 1:
        logger.debug("Entry %s-%s crosses midnight, split in two", snapped_from, snapped_to)
    logger.debug("Appending %d segment(s) in category %d", len(new_segments), category_index)
    return [*segments, *new_segments]


def clear_segments() -> list[Segment]:
    return []


def segment_hours(segment: Segment, config: GridConfig = DEFAULT_CONFIG) -> float:
    hours_span = (segment.to_x - segment.from_x) / config.px_per_hour
    if not math.isfinite(hours_span) or hours_span <= 0:
        return 0.0
    return hours_span


def compute_totals(segments: Iterable[Segment], config: GridConfig = DEFAULT_CONFIG) -> CategoryTotals:
    per_category = [0.0] * len(config.categories)
    for segment in segments:
        per_category[segment.category_index] += segment_hours(segment, config)
    return CategoryTotals(per_category_hours=per_category, grand_total_hours=sum(per_category))


def find_connectors(segments: Sequence[Segment]) -> list[tuple[int, int]]:
    """Index pairs (a, b) where segment a ends exactly where segment b starts."""
    connectors: list[tuple[int, int]] = []
    for a, seg_a in enumerate(segments):
        if is_close(seg_a.to_x, seg_a.from_x):
            continue
        for b, seg_b in enumerate(segments):
            if a != b and is_close(seg_a.to_x, seg_b.from_x):
                connectors.append((a, b))
    return connectors
