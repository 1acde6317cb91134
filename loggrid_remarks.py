from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Callable, Sequence

from loggrid_config import DEFAULT_CONFIG, GridConfig
from loggrid_core import Segment, TextSize, clamp, is_close


logger = logging.getLogger(__name__)

MeasureFn = Callable[[str], TextSize]

CHAR_WIDTH_AT_12PX = 7
EMPTY_TEXT_WIDTH = 8


@dataclass(frozen=True)
class RemarkPlacement:
    segment_index: int
    row_index: int
    text: str
    anchor_x: float
    text_left_x: float
    text_baseline_y: float
    width: float
    height: float

    @property
    def left(self) -> float:
        return self.text_left_x

    @property
    def right(self) -> float:
        return self.text_left_x + self.width

    @property
    def text_top_y(self) -> float:
        return self.text_baseline_y - self.height


@dataclass
class RemarkLayout:
    placements: list[RemarkPlacement] = field(default_factory=list)
    row_count: int = 0
    base_y: float = 0.0
    row_height: float = 0.0
    bottom_margin: float = 0.0

    @property
    def required_height(self) -> float:
        return self.base_y + self.row_count * self.row_height + self.bottom_margin

    def rows(self) -> list[list[RemarkPlacement]]:
        grouped: list[list[RemarkPlacement]] = [[] for _ in range(self.row_count)]
        for placement in self.placements:
            grouped[placement.row_index].append(placement)
        return grouped


def estimate_text_size(text: str, font_size: float = 12) -> TextSize:
    scale = font_size / 12
    width = len(text) * CHAR_WIDTH_AT_12PX * scale if text else EMPTY_TEXT_WIDTH
    return TextSize(width=width, height=font_size + 2)


def _usable(size: object) -> bool:
    width = getattr(size, "width", None)
    height = getattr(size, "height", None)
    for value in (width, height):
        if not isinstance(value, (int, float)) or not math.isfinite(value) or value <= 0:
            return False
    return True


def with_measure_fallback(measure: MeasureFn, font_size: float = 12) -> MeasureFn:
    """Wrap ``measure`` so failed or unusable measurements fall back to an estimate."""

    def robust_measure(text: str) -> TextSize:
        try:
            size = measure(text)
        except Exception as exc:
            logger.warning("Text measurement failed for %r, using estimate: %s", text, exc)
            return estimate_text_size(text, font_size)
        if not _usable(size):
            logger.warning("Text measurement returned %r for %r, using estimate", size, text)
            return estimate_text_size(text, font_size)
        return size

    return robust_measure


def _remark_candidates(segments: Sequence[Segment], config: GridConfig) -> list[tuple[float, str, int]]:
    candidates: list[tuple[float, str, int]] = []
    for index, segment in enumerate(segments):
        text = segment.remark or ""
        if not text and not config.include_empty_remarks:
            continue
        if is_close(segment.to_x, segment.from_x) and not config.include_zero_width_remarks:
            continue
        candidates.append((segment.to_x, text, index))
    # sorted() is stable, so equal x keeps original segment order
    return sorted(candidates, key=lambda item: item[0])


def _overlaps_row(row: list[tuple[float, float]], left: float, right: float, pad: float) -> bool:
    return any(not (right + pad < occ_left or left - pad > occ_right) for occ_left, occ_right in row)


def layout_remarks(
    segments: Sequence[Segment],
    measure: MeasureFn,
    grid_width: float | None = None,
    config: GridConfig = DEFAULT_CONFIG,
    base_y: float | None = None,
) -> RemarkLayout:
    """Pack remark labels below the grid into as few non-overlapping rows as first-fit allows.

    Labels are processed by ascending anchor x (each segment's ``to_x``), centred on
    the anchor and nudged inward to stay inside the grid, then dropped into the
    first row where they keep ``remark_pad`` pixels clear of every label already
    there. A new row is opened only when no existing row fits.
    """
    if grid_width is None:
        grid_width = config.grid_width
    if base_y is None:
        base_y = config.remark_base_y

    margin = config.remark_edge_margin
    pad = config.remark_pad
    rows: list[list[tuple[float, float]]] = []
    placements: list[RemarkPlacement] = []

    for x, text, index in _remark_candidates(segments, config):
        size = measure(text)
        width = size.width
        center_x = clamp(x, margin + width / 2, grid_width - margin - width / 2)
        left = center_x - width / 2
        right = center_x + width / 2

        row_index = -1
        for r, row in enumerate(rows):
            if not _overlaps_row(row, left, right, pad):
                row_index = r
                break
        if row_index == -1:
            row_index = len(rows)
            rows.append([])
        rows[row_index].append((left, right))

        placements.append(
            RemarkPlacement(
                segment_index=index,
                row_index=row_index,
                text=text,
                anchor_x=x,
                text_left_x=left,
                text_baseline_y=base_y + row_index * config.remark_row_height + size.height,
                width=width,
                height=size.height,
            )
        )

    logger.debug("Placed %d remark(s) in %d row(s)", len(placements), len(rows))
    return RemarkLayout(
        placements=placements,
        row_count=len(rows),
        base_y=base_y,
        row_height=config.remark_row_height,
        bottom_margin=config.bottom_margin,
    )
