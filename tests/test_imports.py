def test_import_taleflow_package() -> None:
    import importlib

    module = importlib.import_module("taleflow")
    assert module.__version__


def test_import_runtime_no_side_effects() -> None:
    from taleflow.services import StoryRuntime
    from taleflow.data import parse_project

    runtime = StoryRuntime(parse_project({"boards": []}))
    assert runtime.project.name == "Untitled"
