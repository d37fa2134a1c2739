import json
from pathlib import Path

from taleflow.presentation.cli import config
from taleflow.services import DEFAULT_MAX_AUTO_ADVANCE


def test_load_config_defaults_when_missing(tmp_path: Path) -> None:
    assert config.load_config(tmp_path / "config.json") == {
        "max_auto_advance": DEFAULT_MAX_AUTO_ADVANCE,
        "show_variables": False,
    }


def test_load_config_defaults_when_unreadable(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text("{broken", encoding="utf-8")
    assert config.load_config(path) == config.default_config()

    path.write_text("[1, 2]", encoding="utf-8")
    assert config.load_config(path) == config.default_config()


def test_load_config_normalises_values(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"max_auto_advance": 0, "show_variables": "yes"}), encoding="utf-8")
    assert config.load_config(path) == config.default_config()

    path.write_text(json.dumps({"max_auto_advance": 50, "show_variables": True}), encoding="utf-8")
    assert config.load_config(path) == {"max_auto_advance": 50, "show_variables": True}


def test_save_config_round_trip(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "config.json"

    config.save_config({"max_auto_advance": 25, "show_variables": True, "extra": 1}, path)

    assert json.loads(path.read_text(encoding="utf-8")) == {"max_auto_advance": 25, "show_variables": True}
    assert config.load_config(path)["max_auto_advance"] == 25


def test_default_config_path_under_home(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setattr(config.os, "name", "posix")
    monkeypatch.setenv("HOME", str(tmp_path))

    assert config.get_default_config_path() == tmp_path / ".config" / "taleflow" / "config.json"
