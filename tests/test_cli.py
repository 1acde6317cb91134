import json

import pytest

from loggrid_cli import main


@pytest.fixture
def store(tmp_path):
    return tmp_path / "segments.json"


def _run(store, *args):
    return main(["--store", str(store), *args])


def test_add_and_totals(store, capsys):
    assert _run(store, "add", "--from", "22:00", "--to", "02:00", "-c", "2", "-r", "x") == 0
    out = capsys.readouterr().out
    assert "22:00 - 24:00" in out
    assert "00:00 - 02:00" in out

    assert _run(store, "totals") == 0
    out = capsys.readouterr().out
    assert "Driving         04:00" in out
    assert "Total           04:00" in out


def test_add_accepts_category_name(store, capsys):
    assert _run(store, "add", "--from", "0:00", "--to", "6:00", "-c", "sleeper berth") == 0
    assert _run(store, "show") == 0
    assert "Sleeper Berth" in capsys.readouterr().out


def test_invalid_category_is_reported(store, capsys):
    assert _run(store, "add", "--from", "0:00", "--to", "6:00", "-c", "9") == 2
    assert "error:" in capsys.readouterr().err
    assert not store.exists()


def test_clear(store, capsys):
    _run(store, "add", "--from", "0:00", "--to", "6:00", "-c", "0")
    assert _run(store, "clear") == 0
    assert _run(store, "show") == 0
    assert "No segments recorded." in capsys.readouterr().out


def test_import_and_table(store, tmp_path, capsys):
    entries = tmp_path / "entries.csv"
    entries.write_text("From,To,Category,Remark\n00:00,06:00,1,\n06:00,08:00,On Duty,Pre-trip\n", encoding="utf-8")
    assert _run(store, "import", "-i", str(entries)) == 0
    assert "Imported 2 entries" in capsys.readouterr().out

    table = tmp_path / "table.csv"
    assert _run(store, "table", "-o", str(table)) == 0
    assert table.read_text(encoding="utf-8").splitlines()[2] == "06:00,08:00,On Duty,2.0,Pre-trip"


def test_render_keeps_log_and_export_clears_it(store, tmp_path, capsys):
    _run(store, "add", "--from", "0:00", "--to", "6:00", "-c", "1", "-r", "Motel")
    sheet = tmp_path / "sheet.html"
    assert _run(store, "render", "-o", str(sheet), "--carrier", "ACME") == 0
    assert "ACME" in sheet.read_text(encoding="utf-8")

    exported = tmp_path / "export.svg"
    assert _run(store, "export", "-o", str(exported)) == 0
    assert "Motel" in exported.read_text(encoding="utf-8")
    assert "cleared saved logs" in capsys.readouterr().out
    raw = json.loads(store.read_text(encoding="utf-8"))
    assert all(value == [] for value in raw.values())


def test_custom_config(store, tmp_path, capsys):
    config = tmp_path / "config.json"
    config.write_text(json.dumps({"categories": ["Rest", "Bunk", "Drive", "Work"]}), encoding="utf-8")
    assert main(["--store", str(store), "--config", str(config), "add", "--from", "1:00", "--to", "2:00", "-c", "drive"]) == 0
    assert "Drive" in capsys.readouterr().out
