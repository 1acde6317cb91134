from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Sequence

from loggrid_config import GridConfig, load_config
from loggrid_core import LogGridError, Segment, format_hours_as_clock, parse_clock, x_to_time
from loggrid_segments import append_segment, clear_segments, compute_totals, segment_hours
from loggrid_storage import (
    JsonKeyValueStore,
    SegmentRepository,
    append_entries,
    export_segments_table,
    parse_category,
    read_entries_from_table,
)
from loggrid_svg import LogSheetInfo, generate_log_sheet


DEFAULT_STORE = Path("loggrid_segments.json")


def _add_sheet_options(parser: argparse.ArgumentParser, default_output: str) -> None:
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=Path(default_output),
        help="Path to output file (.html for the full sheet, .svg for the grid only).",
    )
    parser.add_argument("--date", dest="log_date", default="", help="Log date (defaults to today).")
    parser.add_argument("--from-location", default="", help="Starting location.")
    parser.add_argument("--to-location", default="", help="Destination.")
    parser.add_argument("--miles-driving", default="", help="Miles driving today.")
    parser.add_argument("--total-mileage", default="", help="Total mileage today.")
    parser.add_argument("--carrier", default="", help="Carrier name.")
    parser.add_argument("--truck", dest="truck_number", default="", help="Truck/tractor and trailer numbers.")
    parser.add_argument("--main-office", default="", help="Main office address.")
    parser.add_argument("--home-terminal", default="", help="Home terminal address.")
    parser.add_argument("--remarks", default="", help="Free-text remarks printed below the grid.")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="loggrid",
        description="Record a 24-hour activity log and render it as a log grid.",
    )
    parser.add_argument("--store", type=Path, default=DEFAULT_STORE, help="Path to the JSON segment store.")
    parser.add_argument("--config", type=Path, default=None, help="Path to a JSON grid config.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    add = subparsers.add_parser("add", help="Append an entry to the log.")
    add.add_argument("--from", dest="from_time", required=True, help="Start time, HH:MM.")
    add.add_argument("--to", dest="to_time", required=True, help="End time, HH:MM.")
    add.add_argument("-c", "--category", required=True, help="Category index (0-3) or name.")
    add.add_argument("-r", "--remark", default="", help="Optional remark.")

    subparsers.add_parser("show", help="List stored segments.")
    subparsers.add_parser("totals", help="Print per-category and grand totals.")
    subparsers.add_parser("clear", help="Remove all stored segments.")

    importer = subparsers.add_parser("import", help="Append entries from a CSV or Excel table.")
    importer.add_argument("-i", "--input", required=True, type=Path, help="Path to input table.")

    table = subparsers.add_parser("table", help="Write stored segments to a CSV or Excel table.")
    table.add_argument("-o", "--output", required=True, type=Path, help="Path to output table.")

    render = subparsers.add_parser("render", help="Render the log sheet.")
    _add_sheet_options(render, "drivers_daily_log.html")

    export = subparsers.add_parser("export", help="Render the log sheet, then clear the stored log.")
    _add_sheet_options(export, "drivers_daily_log.html")
    return parser


def _sheet_info(args: argparse.Namespace) -> LogSheetInfo:
    return LogSheetInfo(
        log_date=args.log_date,
        from_location=args.from_location,
        to_location=args.to_location,
        miles_driving=args.miles_driving,
        total_mileage=args.total_mileage,
        carrier=args.carrier,
        truck_number=args.truck_number,
        main_office=args.main_office,
        home_terminal=args.home_terminal,
        remarks=args.remarks,
    )


def _print_segments(segments: Sequence[Segment], config: GridConfig) -> None:
    if not segments:
        print("No segments recorded.")
        return
    for index, seg in enumerate(segments):
        start = x_to_time(seg.from_x, config.px_per_hour)
        end = "24:00" if seg.to_x >= config.grid_width else str(x_to_time(seg.to_x, config.px_per_hour))
        hours = format_hours_as_clock(segment_hours(seg, config))
        line = f"{index:>3}  {start} - {end}  {hours}  {config.category_name(seg.category_index)}"
        if seg.remark:
            line += f"  ({seg.remark})"
        print(line)


def _print_totals(segments: Sequence[Segment], config: GridConfig) -> None:
    totals = compute_totals(segments, config)
    for name, value in zip(config.categories, totals.formatted()):
        print(f"{name:<16}{value}")
    print(f"{'Total':<16}{totals.grand_total_label}")


def run(args: argparse.Namespace) -> int:
    config = load_config(args.config)
    repository = SegmentRepository(JsonKeyValueStore(args.store), config)
    segments = repository.load()

    if args.command == "add":
        segments = append_segment(
            segments,
            parse_clock(args.from_time),
            parse_clock(args.to_time),
            parse_category(args.category, config),
            args.remark.strip(),
            config,
        )
        repository.save(segments)
        _print_segments(segments, config)
        return 0
    if args.command == "show":
        _print_segments(segments, config)
        return 0
    if args.command == "totals":
        _print_totals(segments, config)
        return 0
    if args.command == "clear":
        repository.clear()
        print("Cleared all entries.")
        return 0
    if args.command == "import":
        entries = read_entries_from_table(args.input, config)
        segments = append_entries(segments, entries, config)
        repository.save(segments)
        print(f"Imported {len(entries)} entries from {args.input}")
        return 0
    if args.command == "table":
        output_path = export_segments_table(segments, args.output, config)
        print(f"Segments saved to {output_path.resolve()}")
        return 0
    if args.command == "render":
        generate_log_sheet(segments, args.output, _sheet_info(args), config)
        return 0
    if args.command == "export":
        output_path = generate_log_sheet(segments, args.output, _sheet_info(args), config)
        repository.save(clear_segments())
        print(f"Exported {output_path.name} and cleared saved logs.")
        return 0

    raise LogGridError(f"Unknown command: {args.command}")


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        return run(args)
    except LogGridError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
