import copy
import json
from pathlib import Path

import pytest

from flowpack.unpack.unpacker import unpack_workflow
from flowpack.utils.io import write_json, write_yaml

DATA_DIR = Path(__file__).parent / "data"


@pytest.fixture
def sample_path() -> Path:
    return DATA_DIR / "lead_intake.json"


@pytest.fixture
def sample_workflow(sample_path):
    with sample_path.open("r", encoding="utf-8") as f:
        return json.load(f)


@pytest.fixture
def project_dir(tmp_path, sample_path) -> Path:
    """The sample workflow unpacked into a fresh directory."""
    out = tmp_path / "lead-intake"
    unpack_workflow(sample_path, out)
    return out


def minimal_project(root: Path, nodes, flows=None, metadata=None) -> Path:
    """
    Hand-written modular project: one file per node dict (already in the
    on-disk node shape) plus a single connections file.
    """
    write_yaml(root / "workflow.yaml", {
        "metadata": metadata or {"id": "wf-1", "name": "Minimal"},
        "includes": {"nodes": "./nodes/**/*.yaml", "connections": "./connections/**/*.yaml"},
        "build": {"output": "./workflow.json", "validate": True, "minify": False},
    })
    write_json(root / "project.json", {"name": "minimal"})
    for d in ("settings", "credentials"):
        (root / d).mkdir(parents=True, exist_ok=True)
    for i, node in enumerate(nodes):
        write_yaml(root / "nodes" / "processors" / f"node-{i}.yaml", {"node": copy.deepcopy(node)})
    write_yaml(root / "connections" / "main-flow.yaml", {"connections": {"flows": flows or []}})
    return root


def disk_node(name, node_id=None, node_type="n8n-nodes-base.set", x=0, y=0):
    return {
        "id": node_id or f"id-{name}",
        "name": name,
        "type": node_type,
        "type_version": 1,
        "position": {"x": x, "y": y},
        "parameters": {},
    }


def flow(source, target, output_index=0, input_index=0):
    return {
        "name": f"{source}_to_{target}",
        "source": {"node": source, "output": "main", "index": output_index},
        "target": {"node": target, "input": "main", "index": input_index},
    }
