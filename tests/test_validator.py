import shutil

from conftest import disk_node, flow, minimal_project
from flowpack.structural.validator import validate_project
from flowpack.utils.io import read_yaml, write_yaml


def test_unpacked_project_is_valid(project_dir):
    report = validate_project(project_dir)
    assert report.ok, f"unexpected errors: {report.errors}"
    assert report.warnings == []
    assert report.stats == {"node_files": 6, "connection_files": 1, "flows": 5, "credentials": 3}


def test_missing_structure_is_reported(tmp_path):
    report = validate_project(tmp_path)
    assert not report.ok
    assert "Missing required file: workflow.yaml" in report.errors
    assert "Missing required file: project.json" in report.errors
    for d in ("nodes", "connections", "settings", "credentials"):
        assert f"Missing required directory: {d}" in report.errors
    assert "No node files found" in report.errors
    assert "No connection files found" in report.warnings
    assert "No credential mappings file found" in report.warnings


def test_manifest_without_identity(tmp_path):
    root = minimal_project(tmp_path, [disk_node("Start")], metadata={"description": "x"})
    report = validate_project(root)
    assert "Manifest metadata is missing the workflow id" in report.errors
    assert "Manifest metadata is missing the workflow name" in report.errors


def test_manifest_without_includes_is_a_warning(project_dir):
    manifest = read_yaml(project_dir / "workflow.yaml")
    del manifest["includes"]
    write_yaml(project_dir / "workflow.yaml", manifest)
    report = validate_project(project_dir)
    assert report.ok
    assert report.warnings == ["Manifest has no includes section"]


def test_unparsable_manifest_does_not_stop_other_checks(project_dir):
    (project_dir / "workflow.yaml").write_text("metadata: [", encoding="utf-8")
    report = validate_project(project_dir)
    assert len(report.errors) == 1
    assert report.errors[0].startswith("Cannot parse workflow.yaml")
    assert report.stats["node_files"] == 6


def test_duplicates_across_files(tmp_path):
    root = minimal_project(tmp_path, [
        disk_node("Start", node_id="n1"),
        disk_node("Start", node_id="n2"),
        disk_node("Other", node_id="n2"),
    ])
    report = validate_project(root)
    assert report.errors == ["Duplicate node name: Start", "Duplicate node id: n2"]


def test_node_field_checks(tmp_path):
    no_type = disk_node("Typeless", node_type="")
    bad_pos = disk_node("Floating")
    bad_pos["position"] = {"x": "left"}
    root = minimal_project(tmp_path, [no_type, bad_pos])
    write_yaml(root / "nodes/processors/empty.yaml", {"other": 1})
    report = validate_project(root)
    assert report.errors == [
        "Node file has no 'node' mapping: nodes/processors/empty.yaml",
        "Node Typeless is missing a type",
        "Node Floating has an invalid position (expected x and y)",
    ]


def test_unparsable_node_file_is_an_error(project_dir):
    (project_dir / "nodes/processors/broken.yaml").write_text("node: {", encoding="utf-8")
    report = validate_project(project_dir)
    assert not report.ok
    assert len(report.errors) == 1
    assert "nodes/processors/broken.yaml" in report.errors[0]


def test_incomplete_flows(tmp_path):
    flows = [
        flow("Start", "End"),
        {"name": "no-target", "source": {"node": "Start"}},
        {"name": "no-node", "source": {"node": "Start"}, "target": {"input": "main"}},
    ]
    root = minimal_project(tmp_path, [disk_node("Start"), disk_node("End")], flows=flows)
    report = validate_project(root)
    assert report.errors == [
        "Flow 1 in connections/main-flow.yaml is missing a source or target",
        "Flow 2 in connections/main-flow.yaml is missing a node reference",
    ]
    assert report.stats["flows"] == 3


def test_unknown_flow_reference_is_a_warning(tmp_path):
    root = minimal_project(tmp_path, [disk_node("Start")], flows=[flow("Start", "Ghost")])
    report = validate_project(root)
    assert report.ok
    assert "Connection references a node no node file declares: Ghost" in report.warnings


def test_missing_credential_mapping_is_a_warning(project_dir):
    (project_dir / "credentials/credential-mappings.yaml").unlink()
    report = validate_project(project_dir)
    assert report.ok
    assert report.warnings == ["No credential mappings file found"]


def test_missing_directory_only_fails_structure(project_dir):
    shutil.rmtree(project_dir / "settings")
    report = validate_project(project_dir)
    assert report.errors == ["Missing required directory: settings"]
