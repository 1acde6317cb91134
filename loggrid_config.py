from __future__ import annotations

import json
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path

from loggrid_core import DEFAULT_PX_PER_HOUR, ConfigError


HOURS_PER_DAY = 24
CATEGORY_COUNT = 4


@dataclass(frozen=True)
class GridConfig:
    hours: int = HOURS_PER_DAY
    px_per_hour: float = DEFAULT_PX_PER_HOUR
    categories: tuple[str, ...] = ("Off Duty", "Sleeper Berth", "Driving", "On Duty")
    section_height: int = 80
    font_family: str = "Arial"
    remark_font_size: int = 12
    remark_row_height: int = 18
    remark_top_gap: int = 18
    remark_pad: float = 6
    remark_edge_margin: float = 4
    bottom_margin: int = 40
    totals_col_gap: int = 20
    totals_col_width: int = 160
    include_zero_width_remarks: bool = True
    include_empty_remarks: bool = False
    storage_key: str = "svgLogSegments_v3"

    @property
    def grid_width(self) -> float:
        return self.hours * self.px_per_hour

    @property
    def grid_height(self) -> int:
        return len(self.categories) * self.section_height

    @property
    def remark_base_y(self) -> int:
        return self.grid_height + self.remark_top_gap

    @property
    def totals_col_x(self) -> float:
        return self.grid_width + self.totals_col_gap

    @property
    def svg_width(self) -> float:
        return self.totals_col_x + self.totals_col_width + 20

    def category_name(self, index: int) -> str:
        return self.categories[index]

    def to_dict(self) -> dict:
        data = asdict(self)
        data["categories"] = list(self.categories)
        return data


DEFAULT_CONFIG = GridConfig()


def validate_config(config: GridConfig) -> GridConfig:
    if config.hours != HOURS_PER_DAY:
        raise ConfigError(f"Only a {HOURS_PER_DAY}-hour grid is supported, got hours={config.hours}")
    if len(config.categories) != CATEGORY_COUNT:
        raise ConfigError(f"Exactly {CATEGORY_COUNT} categories are required, got {len(config.categories)}")
    if config.px_per_hour <= 0:
        raise ConfigError("px_per_hour must be positive")
    for name in ("section_height", "remark_font_size", "remark_row_height"):
        if getattr(config, name) <= 0:
            raise ConfigError(f"{name} must be positive")
    for name in ("remark_top_gap", "remark_pad", "remark_edge_margin", "bottom_margin"):
        if getattr(config, name) < 0:
            raise ConfigError(f"{name} must not be negative")
    return config


def config_from_mapping(data: dict, base: GridConfig = DEFAULT_CONFIG) -> GridConfig:
    known = {f.name for f in fields(GridConfig)}
    unknown = set(data).difference(known)
    if unknown:
        raise ConfigError(f"Unknown config keys: {', '.join(sorted(unknown))}")

    values = dict(data)
    if "categories" in values:
        values["categories"] = tuple(str(name) for name in values["categories"])
    try:
        config = replace(base, **values)
    except TypeError as exc:
        raise ConfigError(str(exc)) from exc
    return validate_config(config)


def load_config(config_path: str | Path | None) -> GridConfig:
    """Read a JSON object of ``GridConfig`` overrides; ``None`` means defaults."""
    if config_path is None:
        return DEFAULT_CONFIG

    config_path = Path(config_path)
    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise ConfigError(f"Config file not found: {config_path}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Config file is not valid JSON: {config_path} ({exc})") from exc

    if not isinstance(data, dict):
        raise ConfigError("Config file must contain a JSON object")
    return config_from_mapping(data)
