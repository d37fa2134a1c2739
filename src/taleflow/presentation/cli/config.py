"""Player preferences persisted between CLI sessions."""
from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Dict

from taleflow.services import DEFAULT_MAX_AUTO_ADVANCE

logger = logging.getLogger(__name__)


def get_user_data_dir() -> Path:
    """Return the per-user data directory."""
    if os.name == "nt":
        base = os.environ.get("APPDATA")
        if base:
            return Path(base) / "Taleflow"
        return Path.home() / "Taleflow"
    return Path.home() / ".config" / "taleflow"


def get_default_config_path() -> Path:
    return get_user_data_dir() / "config.json"


def default_config() -> Dict[str, object]:
    return {"max_auto_advance": DEFAULT_MAX_AUTO_ADVANCE, "show_variables": False}


def _normalize_max_auto_advance(value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        return DEFAULT_MAX_AUTO_ADVANCE
    return value


def _normalize_show_variables(value: object) -> bool:
    return value is True


def _normalize(raw: Dict[str, object]) -> Dict[str, object]:
    return {
        "max_auto_advance": _normalize_max_auto_advance(raw.get("max_auto_advance")),
        "show_variables": _normalize_show_variables(raw.get("show_variables")),
    }


def load_config(path: Path | None = None) -> Dict[str, object]:
    """Load config from disk or return defaults."""
    config_path = path or get_default_config_path()
    try:
        raw = json.loads(config_path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return default_config()
    except (OSError, ValueError) as exc:
        logger.warning("Ignoring unreadable config %s: %s", config_path, exc)
        return default_config()
    if not isinstance(raw, dict):
        return default_config()
    return _normalize(raw)


def save_config(config: Dict[str, object], path: Path | None = None) -> None:
    """Persist config to disk."""
    config_path = path or get_default_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)
    payload = _normalize(config)
    config_path.write_text(json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8")
