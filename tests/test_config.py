import json

import pytest

from loggrid_config import DEFAULT_CONFIG, config_from_mapping, load_config
from loggrid_core import ConfigError


def test_default_geometry():
    assert DEFAULT_CONFIG.grid_width == 1200
    assert DEFAULT_CONFIG.grid_height == 320
    assert DEFAULT_CONFIG.remark_base_y == 338
    assert DEFAULT_CONFIG.svg_width == 1400


def test_load_config_none_gives_defaults():
    assert load_config(None) is DEFAULT_CONFIG


def test_load_config_overrides(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"px_per_hour": 60, "remark_pad": 8}), encoding="utf-8")
    config = load_config(path)
    assert config.grid_width == 1440
    assert config.remark_pad == 8
    assert config.categories == DEFAULT_CONFIG.categories


@pytest.mark.parametrize(
    "data",
    [
        {"hours": 12},
        {"categories": ["A", "B", "C"]},
        {"px_per_hour": 0},
        {"remark_pad": -1},
        {"colour": "red"},
    ],
)
def test_invalid_config_is_rejected(data):
    with pytest.raises(ConfigError):
        config_from_mapping(data)


def test_load_config_reports_bad_files(tmp_path):
    with pytest.raises(ConfigError):
        load_config(tmp_path / "missing.json")

    broken = tmp_path / "broken.json"
    broken.write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(broken)
