"""Helpers for resolving bundled project locations."""
from __future__ import annotations

from pathlib import Path

SAMPLE_PROJECT_FILENAME = "dark_castle.json"


def get_repo_root() -> Path:
    """Return the repository root."""
    return Path(__file__).resolve().parents[3]


def get_projects_path(base_path: Path | str | None = None) -> Path:
    """Return the directory containing bundled project documents."""
    if base_path is not None:
        return Path(base_path)
    return get_repo_root() / "data" / "projects"


def get_sample_project_path() -> Path:
    """Return the path of the bundled sample story."""
    return get_projects_path() / SAMPLE_PROJECT_FILENAME
