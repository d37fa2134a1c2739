from pathlib import Path

from taleflow.data import paths


def test_get_projects_path_base_path(tmp_path: Path) -> None:
    assert paths.get_projects_path(tmp_path) == tmp_path


def test_get_projects_path_source_repo_exists() -> None:
    projects_path = paths.get_projects_path()
    assert projects_path.name == "projects"
    assert projects_path.exists()


def test_sample_project_path_exists() -> None:
    sample = paths.get_sample_project_path()
    assert sample.name == paths.SAMPLE_PROJECT_FILENAME
    assert sample.is_file()
