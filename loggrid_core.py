from __future__ import annotations

import math
import re
from dataclasses import dataclass, field


DEFAULT_PX_PER_HOUR = 50
MINUTES_PER_DAY = 24 * 60
SNAP_MINUTES = 15
EPS = 0.001

_CLOCK_RE = re.compile(r"^\s*(?P<h>\d{1,2})(?::?(?P<m>\d{2}))?\s*$")


class LogGridError(Exception):
    """Base class for errors raised by the log grid modules."""


class SegmentValidationError(LogGridError, ValueError):
    pass


class ConfigError(LogGridError, ValueError):
    pass


class StorageError(LogGridError):
    pass


@dataclass(frozen=True)
class TimeOfDay:
    hour: int
    minute: int

    def __str__(self) -> str:
        return format_time_of_day(self.hour, self.minute)


@dataclass(frozen=True)
class Segment:
    from_x: float
    to_x: float
    category_index: int
    remark: str = ""

    @property
    def width(self) -> float:
        return self.to_x - self.from_x

    def to_record(self) -> dict:
        return {
            "fromX": self.from_x,
            "toX": self.to_x,
            "sectionIndex": self.category_index,
            "remark": self.remark,
        }


@dataclass(frozen=True)
class TextSize:
    width: float
    height: float


@dataclass
class CategoryTotals:
    per_category_hours: list[float] = field(default_factory=lambda: [0.0, 0.0, 0.0, 0.0])
    grand_total_hours: float = 0.0

    def formatted(self) -> list[str]:
        return [format_hours_as_clock(value) for value in self.per_category_hours]

    @property
    def grand_total_label(self) -> str:
        return format_hours_as_clock(self.grand_total_hours)


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def is_close(a: float, b: float) -> bool:
    return abs(a - b) < EPS


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


# -------------------------
# Geometry
# -------------------------
def time_to_x(hour: float, minute: float, px_per_hour: float = DEFAULT_PX_PER_HOUR) -> float:
    return (hour + minute / 60) * px_per_hour


def x_to_time(x: float, px_per_hour: float = DEFAULT_PX_PER_HOUR) -> TimeOfDay:
    total_hours = x / px_per_hour
    whole = math.floor(total_hours)
    minute = round_half_up((total_hours - whole) * 60)
    if minute == 60:
        whole += 1
        minute = 0
    return TimeOfDay(int(whole) % 24, minute)


def snap_to_quarter_hour(hour: float, minute: float) -> TimeOfDay:
    """Round to the nearest 15 minutes on a circular 24h clock (23:53 -> 00:00)."""
    total = hour * 60 + minute
    snapped = round_half_up(total / SNAP_MINUTES) * SNAP_MINUTES
    snapped %= MINUTES_PER_DAY
    return TimeOfDay(snapped // 60, snapped % 60)


def format_hours_as_clock(decimal_hours: float) -> str:
    """Format decimal hours as ``HH:MM``. Negative or non-finite input gives ``00:00``."""
    try:
        value = float(decimal_hours)
    except (TypeError, ValueError):
        return "00:00"
    if not math.isfinite(value) or value < 0:
        return "00:00"
    total_minutes = round_half_up(value * 60)
    return f"{total_minutes // 60:02d}:{total_minutes % 60:02d}"


def format_time_of_day(hour: int, minute: int) -> str:
    return f"{hour:02d}:{minute:02d}"


def parse_clock(value: object) -> TimeOfDay:
    """Parse ``HH:MM`` (or ``HHMM`` / ``H``) into a range-checked TimeOfDay."""
    match = _CLOCK_RE.match(str(value))
    if not match:
        raise SegmentValidationError(f"Invalid clock time: {value!r} (expected HH:MM)")
    hour = int(match.group("h"))
    minute = int(match.group("m") or 0)
    if not 0 <= hour <= 23 or not 0 <= minute <= 59:
        raise SegmentValidationError(f"Clock time out of range: {value!r}")
    return TimeOfDay(hour, minute)
