from __future__ import annotations

import html
from dataclasses import dataclass
from datetime import date
from functools import partial
from pathlib import Path
from typing import Sequence

from loggrid_config import DEFAULT_CONFIG, GridConfig
from loggrid_core import Segment
from loggrid_remarks import MeasureFn, estimate_text_size, layout_remarks, with_measure_fallback
from loggrid_segments import compute_totals, find_connectors


SVG_NS = "http://www.w3.org/2000/svg"
SEGMENT_COLOR = "red"
REMARK_COLOR = "#00f"


@dataclass
class LogSheetInfo:
    log_date: str = ""
    from_location: str = ""
    to_location: str = ""
    miles_driving: str = ""
    total_mileage: str = ""
    carrier: str = ""
    truck_number: str = ""
    main_office: str = ""
    home_terminal: str = ""
    remarks: str = ""

    def meta_fields(self) -> list[tuple[str, str]]:
        return [
            ("Date:", self.log_date or date.today().isoformat()),
            ("From:", self.from_location),
            ("To:", self.to_location),
            ("Miles Driving Today:", self.miles_driving),
            ("Total Mileage Today:", self.total_mileage),
            ("Carrier:", self.carrier),
            ("Truck/Tractor & Trailer:", self.truck_number),
            ("Main Office Address:", self.main_office),
            ("Home Terminal Address:", self.home_terminal),
        ]


def _num(value: float) -> str:
    return f"{value:.3f}".rstrip("0").rstrip(".")


def _attrs(**attrs: object) -> str:
    parts = []
    for key, value in attrs.items():
        name = key.rstrip("_").replace("_", "-")
        text = _num(value) if isinstance(value, float) else str(value)
        parts.append(f"{name}='{html.escape(text, quote=True)}'")
    return " ".join(parts)


def _text(content: str, **attrs: object) -> str:
    return f"<text {_attrs(**attrs)}>{html.escape(content)}</text>"


def _line(x1: float, y1: float, x2: float, y2: float, stroke: str, width: float) -> str:
    attrs = _attrs(
        x1=float(x1),
        y1=float(y1),
        x2=float(x2),
        y2=float(y2),
        stroke=stroke,
        stroke_width=float(width),
    )
    return f"<line {attrs} />"


def _row_mid_y(category_index: int, config: GridConfig) -> float:
    return category_index * config.section_height + config.section_height / 2


def build_svg(
    segments: Sequence[Segment],
    config: GridConfig = DEFAULT_CONFIG,
    measure: MeasureFn | None = None,
) -> str:
    """Draw the 24h grid, totals column, segment lines, connectors and remark labels."""
    if measure is None:
        measure = partial(estimate_text_size, font_size=config.remark_font_size)
    else:
        measure = with_measure_fallback(measure, config.remark_font_size)

    font = config.font_family
    grid_width = config.grid_width
    grid_height = config.grid_height
    layout = layout_remarks(segments, measure, grid_width, config)
    svg_height = max(grid_height + 200, layout.required_height)
    totals = compute_totals(segments, config)

    parts = [
        f"<svg xmlns='{SVG_NS}' {_attrs(width=float(config.svg_width), height=float(svg_height))}>",
        f"<rect {_attrs(x=0, y=0, width=float(grid_width), height=grid_height, fill='#fff')} />",
    ]

    # Category rows
    for i, label in enumerate(config.categories):
        y = i * config.section_height
        parts.append(
            f"<rect {_attrs(x=0, y=y, width=float(grid_width), height=config.section_height, fill='none', stroke='#000')} />"
        )
        parts.append(_text(label, x=6, y=y + 16, font_size=14, font_family=font))

    # Hour lines with quarter-hour ticks
    for h in range(config.hours + 1):
        x = float(h * config.px_per_hour)
        parts.append(_line(x, 0, x, grid_height, "#000", 1))
        parts.append(_text(str(h % 24), x=x + 2, y=grid_height + 16, font_size=12, font_family=font))
        if h < config.hours:
            for s in range(1, 4):
                sub_x = x + config.px_per_hour * (s / 4)
                parts.append(_line(sub_x, 0, sub_x, grid_height, "#888", 1.2 if s == 2 else 0.5))

    # Totals column
    col_x = float(config.totals_col_x)
    parts.append(
        f"<rect {_attrs(x=col_x, y=0, width=config.totals_col_width, height=grid_height, fill='none', stroke='#000')} />"
    )
    for i, (label, value) in enumerate(zip(config.categories, totals.formatted())):
        y = i * config.section_height
        parts.append(_text(label, x=col_x + 8, y=y + 18, font_size=13, font_family=font))
        parts.append(
            _text(value, id=f"total-{i}", x=col_x + 8, y=y + 38, font_size=14, font_family=font, font_weight="bold")
        )
    parts.append(
        _text(
            f"Total: {totals.grand_total_label}",
            id="grand-total",
            x=col_x + 8,
            y=grid_height - 8,
            font_size=14,
            font_family=font,
            font_weight="bold",
        )
    )

    # Segments and the vertical connectors between them
    for seg in segments:
        y = _row_mid_y(seg.category_index, config)
        parts.append(_line(seg.from_x, y, seg.to_x, y, SEGMENT_COLOR, 3))
    for a, b in find_connectors(segments):
        seg_a, seg_b = segments[a], segments[b]
        parts.append(
            _line(
                seg_a.to_x,
                _row_mid_y(seg_a.category_index, config),
                seg_a.to_x,
                _row_mid_y(seg_b.category_index, config),
                SEGMENT_COLOR,
                3,
            )
        )

    # Remarks below the grid
    for p in layout.placements:
        parts.append(_line(p.anchor_x, grid_height, p.anchor_x, p.text_top_y - 4, REMARK_COLOR, 1))
        parts.append(
            _text(
                p.text,
                x=float(p.text_left_x),
                y=float(p.text_baseline_y),
                font_size=config.remark_font_size,
                font_family=font,
                fill=REMARK_COLOR,
            )
        )

    parts.append("</svg>")
    return "\n".join(parts)


def build_log_sheet_html(
    segments: Sequence[Segment],
    info: LogSheetInfo | None = None,
    config: GridConfig = DEFAULT_CONFIG,
    measure: MeasureFn | None = None,
) -> str:
    info = info or LogSheetInfo()
    svg = build_svg(segments, config, measure)
    remarks_text = info.remarks.strip() or "(none)"

    html_parts = [
        "<!DOCTYPE html>",
        "<html lang='en'>",
        "<head>",
        "<meta charset='utf-8' />",
        "<title>Drivers Daily Log</title>",
        "<style>",
        "body { font-family: Arial, Helvetica, sans-serif; margin: 20px; color: #111; }",
        "h1 { font-size: 20px; margin: 0 0 6px 0; }",
        ".subtitle { font-size: 14px; margin-bottom: 16px; }",
        ".meta { font-size: 13px; line-height: 18px; margin-bottom: 16px; }",
        ".meta span { font-weight: 600; }",
        ".remarks h2 { font-size: 14px; margin: 16px 0 6px 0; }",
        ".remarks p { font-size: 13px; white-space: pre-wrap; max-width: 1400px; }",
        "</style>",
        "</head>",
        "<body>",
        "<h1>Drivers Daily Log</h1>",
        "<div class='subtitle'>(24 hours) Original: File at home terminal. "
        "Duplicate: Driver retains in his/her possession.</div>",
        "<div class='meta'>",
    ]
    for label, value in info.meta_fields():
        html_parts.append(f"<div><span>{html.escape(label)}</span> {html.escape(value)}</div>")
    html_parts.extend(
        [
            "</div>",
            "<div class='grid'>",
            svg,
            "</div>",
            "<div class='remarks'>",
            "<h2>Remarks:</h2>",
            f"<p>{html.escape(remarks_text)}</p>",
            "</div>",
            "</body>",
            "</html>",
        ]
    )
    return "\n".join(html_parts)


def generate_log_sheet(
    segments: Sequence[Segment],
    output_path: str | Path,
    info: LogSheetInfo | None = None,
    config: GridConfig = DEFAULT_CONFIG,
    measure: MeasureFn | None = None,
) -> Path:
    output_path = Path(output_path)
    if output_path.suffix.lower() == ".svg":
        content = "<?xml version='1.0' standalone='no'?>\n" + build_svg(segments, config, measure)
    else:
        content = build_log_sheet_html(segments, info, config, measure)

    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(content, encoding="utf-8")
    print(f"Log sheet saved to {output_path.resolve()}")
    return output_path
