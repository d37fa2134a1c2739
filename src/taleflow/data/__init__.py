"""Data layer utilities for loading project documents."""

from .errors import DataError, DataLoadError, DataValidationError
from .paths import get_projects_path, get_repo_root, get_sample_project_path
from .project_loader import ProjectLoader, load_project, parse_project

__all__ = [
    "DataError",
    "DataLoadError",
    "DataValidationError",
    "ProjectLoader",
    "get_projects_path",
    "get_repo_root",
    "get_sample_project_path",
    "load_project",
    "parse_project",
]
