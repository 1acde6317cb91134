from __future__ import annotations

import json
import logging
import math
import numbers
import os
import tempfile
from dataclasses import dataclass
from datetime import datetime, time as dt_time
from pathlib import Path
from typing import Iterable, Sequence

import pandas as pd

from loggrid_config import DEFAULT_CONFIG, GridConfig
from loggrid_core import (
    Segment,
    SegmentValidationError,
    StorageError,
    TimeOfDay,
    parse_clock,
    x_to_time,
)
from loggrid_segments import append_segment, segment_hours


logger = logging.getLogger(__name__)

ENTRY_COLUMNS = {"From", "To", "Category"}


class JsonKeyValueStore:
    """A JSON file holding one object of string keys, used like browser local storage."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def _read_all(self) -> dict:
        if not self.path.exists():
            return {}
        text = self.path.read_text(encoding="utf-8")
        if not text.strip():
            return {}
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise StorageError(f"Store file is not valid JSON: {self.path} ({exc})") from exc
        if not isinstance(data, dict):
            raise StorageError(f"Store file must contain a JSON object: {self.path}")
        return data

    def _write_all(self, data: dict) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=self.path.name, suffix=".tmp", dir=self.path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(data, handle, ensure_ascii=False, indent=2)
            os.replace(tmp_name, self.path)
        except BaseException:
            os.unlink(tmp_name)
            raise

    def get(self, key: str) -> object | None:
        return self._read_all().get(key)

    def set(self, key: str, value: object) -> None:
        data = self._read_all()
        data[key] = value
        self._write_all(data)

    def remove(self, key: str) -> None:
        data = self._read_all()
        if key in data:
            del data[key]
            self._write_all(data)


def coerce_segment_records(records: object, config: GridConfig = DEFAULT_CONFIG) -> list[Segment]:
    """Turn untrusted stored records into Segments.

    Numeric fields are coerced to numbers and a missing remark becomes ``""``.
    Records that still cannot be used (non-numeric position, unknown category,
    a span reversed or outside the grid) are dropped with a warning.
    """
    if not isinstance(records, list) or not records:
        return []

    rows = [record if isinstance(record, dict) else {} for record in records]
    df = pd.DataFrame(rows)
    for column in ("fromX", "toX", "sectionIndex", "remark"):
        if column not in df.columns:
            df[column] = None

    from_x = pd.to_numeric(df["fromX"], errors="coerce")
    to_x = pd.to_numeric(df["toX"], errors="coerce")
    category = pd.to_numeric(df["sectionIndex"], errors="coerce")

    segments: list[Segment] = []
    for idx in df.index:
        fx, tx, cat = from_x[idx], to_x[idx], category[idx]
        if any(pd.isna(value) or not math.isfinite(value) for value in (fx, tx, cat)):
            logger.warning("Dropping stored record %d: non-numeric field in %r", idx, records[idx])
            continue
        if float(cat) != int(cat) or not 0 <= int(cat) < len(config.categories):
            logger.warning("Dropping stored record %d: category %r out of range", idx, cat)
            continue
        if not 0 <= fx <= config.grid_width or not 0 <= tx <= config.grid_width or tx < fx:
            logger.warning("Dropping stored record %d: span %r-%r outside the grid", idx, fx, tx)
            continue
        remark = df.at[idx, "remark"]
        remark = "" if remark is None or pd.isna(remark) else str(remark)
        segments.append(Segment(float(fx), float(tx), int(cat), remark))
    return segments


class SegmentRepository:
    """Loads and saves one log's segment list under the configured storage key."""

    def __init__(self, store: JsonKeyValueStore, config: GridConfig = DEFAULT_CONFIG):
        self.store = store
        self.config = config

    def load(self) -> list[Segment]:
        return coerce_segment_records(self.store.get(self.config.storage_key), self.config)

    def save(self, segments: Sequence[Segment]) -> None:
        self.store.set(self.config.storage_key, [segment.to_record() for segment in segments])
        logger.debug("Saved %d segment(s) to %s", len(segments), self.store.path)

    def clear(self) -> None:
        self.store.remove(self.config.storage_key)


# -------------------------
# Spreadsheet import / export
# -------------------------
@dataclass(frozen=True)
class LogEntry:
    from_time: TimeOfDay
    to_time: TimeOfDay
    category_index: int
    remark: str = ""


def parse_category(value: object, config: GridConfig = DEFAULT_CONFIG) -> int:
    if value is None or pd.isna(value):
        raise SegmentValidationError("Missing category")
    if isinstance(value, numbers.Real) and not isinstance(value, bool):
        if float(value) != int(value):
            raise SegmentValidationError(f"Category index must be whole, got {value!r}")
        return int(value)

    text = str(value).strip()
    try:
        number = float(text)
    except ValueError:
        number = None
    if number is not None:
        if not math.isfinite(number) or number != int(number):
            raise SegmentValidationError(f"Category index must be whole, got {text!r}")
        return int(number)
    lookup = {name.casefold(): index for index, name in enumerate(config.categories)}
    if text.casefold() not in lookup:
        raise SegmentValidationError(f"Unknown category: {text!r}")
    return lookup[text.casefold()]


def parse_entry_time(value: object) -> TimeOfDay:
    if isinstance(value, (pd.Timestamp, datetime)):
        return TimeOfDay(value.hour, value.minute)
    if isinstance(value, dt_time):
        return TimeOfDay(value.hour, value.minute)
    return parse_clock(value)


def read_entries_from_table(table_path: str | Path, config: GridConfig = DEFAULT_CONFIG) -> list[LogEntry]:
    table_path = Path(table_path)
    if table_path.suffix.lower() == ".csv":
        df = pd.read_csv(table_path, dtype=str)
    else:
        df = pd.read_excel(table_path)

    missing = ENTRY_COLUMNS.difference(df.columns)
    if missing:
        raise SegmentValidationError(f"Missing columns in {table_path.name}: {', '.join(sorted(missing))}")

    entries: list[LogEntry] = []
    for idx, row in df.iterrows():
        remark = ""
        if "Remark" in df.columns and not pd.isna(row["Remark"]):
            remark = str(row["Remark"]).strip()
        try:
            entries.append(
                LogEntry(
                    from_time=parse_entry_time(row["From"]),
                    to_time=parse_entry_time(row["To"]),
                    category_index=parse_category(row["Category"], config),
                    remark=remark,
                )
            )
        except SegmentValidationError as exc:
            raise SegmentValidationError(f"Row {int(idx) + 2}: {exc}") from exc
    return entries


def append_entries(
    segments: Sequence[Segment],
    entries: Iterable[LogEntry],
    config: GridConfig = DEFAULT_CONFIG,
) -> list[Segment]:
    result = list(segments)
    for entry in entries:
        result = append_segment(result, entry.from_time, entry.to_time, entry.category_index, entry.remark, config)
    return result


def segments_to_frame(segments: Sequence[Segment], config: GridConfig = DEFAULT_CONFIG) -> pd.DataFrame:
    rows = []
    for segment in segments:
        end = x_to_time(segment.to_x, config.px_per_hour)
        rows.append(
            {
                "From": str(x_to_time(segment.from_x, config.px_per_hour)),
                # A segment ending on the right edge of the grid ends at midnight
                "To": "24:00" if segment.to_x >= config.grid_width else str(end),
                "Category": config.category_name(segment.category_index),
                "Hours": round(segment_hours(segment, config), 4),
                "Remark": segment.remark,
            }
        )
    return pd.DataFrame(rows, columns=["From", "To", "Category", "Hours", "Remark"])


def export_segments_table(
    segments: Sequence[Segment],
    output_path: str | Path,
    config: GridConfig = DEFAULT_CONFIG,
) -> Path:
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    df = segments_to_frame(segments, config)
    if output_path.suffix.lower() == ".csv":
        df.to_csv(output_path, index=False)
    else:
        df.to_excel(output_path, index=False)
    return output_path
