from pathlib import Path

import pytest

from flowpack.config import resolve_project_dir, resolve_unpack_paths, workflows_root


@pytest.fixture(autouse=True)
def _root(monkeypatch, tmp_path):
    monkeypatch.setenv("FLOWPACK_WORKFLOWS_DIR", str(tmp_path / "wf"))
    monkeypatch.chdir(tmp_path)


def test_workflows_root_from_env(tmp_path):
    assert workflows_root() == tmp_path / "wf"


def test_default_workflows_root(monkeypatch):
    monkeypatch.delenv("FLOWPACK_WORKFLOWS_DIR")
    assert workflows_root() == Path("workflows")


def test_name_resolves_under_root(tmp_path):
    assert resolve_project_dir("My Workflow") == tmp_path / "wf" / "my-workflow"


def test_paths_are_used_as_is():
    assert resolve_project_dir("./custom/dir") == Path("./custom/dir")


def test_existing_local_directory_wins(tmp_path):
    (tmp_path / "local").mkdir()
    assert resolve_project_dir("local") == Path("local")


def test_unpack_paths_for_name(tmp_path):
    doc, out = resolve_unpack_paths("Lead Intake")
    assert doc == tmp_path / "wf" / "lead-intake" / "workflow.json"
    assert out == tmp_path / "wf" / "lead-intake"


def test_unpack_paths_for_file():
    doc, out = resolve_unpack_paths("exports/flow.json", "proj")
    assert (doc, out) == (Path("exports/flow.json"), Path("proj"))
    with pytest.raises(ValueError):
        resolve_unpack_paths("exports/flow.json")
