# flowpack/unpack/unpacker.py
# Split one workflow document into a modular project tree.

from __future__ import annotations

import copy
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Union

from jsonschema import validate, ValidationError

from flowpack.errors import DocumentError, ProjectLayoutError
from flowpack.model import layout
from flowpack.model.catalog import (
    NODE_CATEGORIES,
    categorize,
    credential_display_name,
    credential_env_var,
    describe_node_type,
    node_tags,
    slugify_name,
)
from flowpack.model.document import Document, FlowRecord, Node
from flowpack.model.schema import WORKFLOW_DOCUMENT_SCHEMA
from flowpack.utils.io import PathLike, ensure_dir, read_json, to_path, write_text, write_yaml, dump_json
from flowpack.utils.logger import get_logger

log = get_logger("unpack")

AUTHOR = "flowpack"
PROJECT_VERSION = "1.0.0"

EXECUTION_DEFAULTS = {
    "order": "v1",
    "timezone": "UTC",
    "save_manual_executions": True,
    "data_retention": {"success": "all", "error": "all"},
    "timeout": {"workflow": 3600, "node": 300},
}

ERROR_HANDLING_DEFAULTS = {
    "error_workflow": None,
    "caller_policy": "workflowsFromSameOwner",
    "default_retry": {"enabled": False, "max_tries": 3, "wait_between_tries": 1000},
    "notifications": {"on_error": True, "on_success": False, "channels": ["email"]},
}


@dataclass
class UnpackResult:
    output_dir: Path
    files: List[Path] = field(default_factory=list)
    node_count: int = 0
    flow_count: int = 0
    credential_types: List[str] = field(default_factory=list)


def load_document(path: PathLike) -> Document:
    """
    Read and shape-check a serialized workflow. Any failure here is fatal
    and happens before anything is written.
    """
    p = to_path(path)
    if not p.is_file():
        raise DocumentError(f"Workflow document not found: {p}")
    try:
        raw = read_json(p)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise DocumentError(f"Cannot read workflow document {p}: {e}") from e
    try:
        validate(instance=raw, schema=WORKFLOW_DOCUMENT_SCHEMA)
    except ValidationError as e:
        raise DocumentError(f"Malformed workflow document {p}: {e.message}") from e
    return Document.from_dict(raw)


class WorkflowUnpacker:
    """
    Writes the modular tree for one document. Each step writes its own set
    of files; output is deterministic, so re-running over the same
    directory reproduces the same bytes.
    """

    def __init__(self, document: Document, output_dir: PathLike):
        self.document = document
        self.output_dir = to_path(output_dir)
        self.result = UnpackResult(output_dir=self.output_dir)

    def unpack(self) -> UnpackResult:
        log.info("Unpacking workflow '%s' into %s", self.document.name, self.output_dir)
        self.create_directories()
        self.write_manifest()
        self.write_nodes()
        self.write_connections()
        self.write_settings()
        self.write_data()
        self.write_credentials()
        self.write_project_files()
        log.info(
            "Unpacked %d node(s), %d connection(s) into %d file(s)",
            self.result.node_count, self.result.flow_count, len(self.result.files),
        )
        return self.result

    # -------- helpers --------
    def _write(self, rel: str, writer, payload: Any) -> None:
        try:
            self.result.files.append(writer(self.output_dir / rel, payload))
        except OSError as e:
            raise ProjectLayoutError(f"Cannot write {self.output_dir / rel}: {e}") from e

    def _write_yaml(self, rel: str, data: Any) -> None:
        self._write(rel, write_yaml, data)

    def _write_text(self, rel: str, text: str) -> None:
        self._write(rel, write_text, text)

    # -------- steps --------
    def create_directories(self) -> None:
        dirs = [self.output_dir]
        dirs += [self.output_dir / layout.NODES.directory / c for c in NODE_CATEGORIES]
        dirs += [
            self.output_dir / c.directory
            for c in layout.RESOURCE_CATEGORIES
            if c is not layout.NODES
        ]
        try:
            for d in dirs:
                ensure_dir(d)
        except OSError as e:
            raise ProjectLayoutError(f"Cannot create project directory: {e}") from e

    def write_manifest(self) -> None:
        doc = self.document
        metadata: Dict[str, Any] = {
            "id": doc.id,
            "name": doc.name,
            "description": f"Workflow: {doc.name}",
            "version": PROJECT_VERSION,
            "author": AUTHOR,
            "tags": doc.tags,
            "created_at": doc.created_at,
            "updated_at": doc.updated_at,
            "active": doc.active,
            "archived": doc.is_archived,
            "trigger_count": doc.trigger_count,
        }
        if doc.version_id:
            metadata["version_id"] = doc.version_id
        manifest = {
            "metadata": metadata,
            "includes": layout.default_includes(),
            "build": layout.default_build(),
        }
        self._write_yaml(layout.MANIFEST_FILE, manifest)

    def node_files(self) -> Dict[str, Node]:
        """
        Relative file path per node. Names that slug to the same file inside
        one category get -2, -3, ... suffixes in document order.
        """
        taken: set = set()
        out: Dict[str, Node] = {}
        for node in self.document.nodes:
            category = categorize(node.type)
            slug = slugify_name(node.name) or slugify_name(str(node.id or "")) or "node"
            rel = f"{layout.NODES.directory}/{category}/{slug}.yaml"
            n = 2
            while rel in taken:
                rel = f"{layout.NODES.directory}/{category}/{slug}-{n}.yaml"
                n += 1
            taken.add(rel)
            out[rel] = node
        return out

    def node_config(self, node: Node) -> Dict[str, Any]:
        position = node.position if isinstance(node.position, (list, tuple)) and len(node.position) == 2 else [0, 0]
        category = categorize(node.type)
        body: Dict[str, Any] = {
            "id": node.id,
            "name": node.name,
            "description": describe_node_type(node.type),
            "type": node.type,
            "type_version": node.type_version,
            "position": {"x": position[0], "y": position[1]},
            "parameters": node.parameters or {},
            "settings": node.settings.to_file(),
        }
        if node.notes:
            body["notes"] = node.notes
        if node.color:
            body["color"] = node.color
        body["tags"] = node_tags(node.type)
        body["category"] = category
        if node.credentials:
            body["credentials"] = node.credentials
        if node.webhook_id:
            body["webhookId"] = node.webhook_id
        if node.extra:
            body["extra"] = node.extra
        return {"node": body}

    def write_nodes(self) -> None:
        for rel, node in self.node_files().items():
            self._write_yaml(rel, self.node_config(node))
            log.debug("node '%s' -> %s", node.name, rel)
        self.result.node_count = len(self.document.nodes)

    @staticmethod
    def flow_entry(flow: FlowRecord) -> Dict[str, Any]:
        return {
            "name": f"{slugify_name(flow.source)}_to_{slugify_name(flow.target)}",
            "description": f"From {flow.source} to {flow.target}",
            "source": {"node": flow.source, "output": flow.output, "index": flow.output_index},
            "target": {"node": flow.target, "input": flow.input, "index": flow.input_index},
        }

    def write_connections(self) -> None:
        flows = self.document.flows()
        self._write_yaml(layout.CONNECTIONS_FILE, {
            "connections": {
                "description": "Main data flow",
                "flows": [self.flow_entry(f) for f in flows],
            }
        })
        self.result.flow_count = len(flows)

    def write_settings(self) -> None:
        s = self.document.settings or {}

        execution = copy.deepcopy(EXECUTION_DEFAULTS)
        if s.get("executionOrder"):
            execution["order"] = s["executionOrder"]
        if s.get("timezone"):
            execution["timezone"] = s["timezone"]
        if s.get("saveManualExecutions") is not None:
            execution["save_manual_executions"] = s["saveManualExecutions"]
        if s.get("saveDataSuccessExecution"):
            execution["data_retention"]["success"] = s["saveDataSuccessExecution"]
        if s.get("saveDataErrorExecution"):
            execution["data_retention"]["error"] = s["saveDataErrorExecution"]
        if s.get("executionTimeout"):
            execution["timeout"]["workflow"] = s["executionTimeout"]

        error_handling = copy.deepcopy(ERROR_HANDLING_DEFAULTS)
        if s.get("errorWorkflow"):
            error_handling["error_workflow"] = s["errorWorkflow"]
        if s.get("callerPolicy"):
            error_handling["caller_policy"] = s["callerPolicy"]

        self._write_yaml(layout.EXECUTION_SETTINGS_FILE, {"execution": execution})
        self._write_yaml(layout.ERROR_SETTINGS_FILE, {"error_handling": error_handling})

    def write_data(self) -> None:
        if self.document.pin_data:
            self._write_yaml(layout.PINNED_DATA_FILE, {layout.PINNED_DATA.root_key: self.document.pin_data})
        if self.document.static_data:
            self._write_yaml(layout.STATIC_DATA_FILE, {layout.STATIC_DATA.root_key: self.document.static_data})

    def write_credentials(self) -> None:
        usage = self.document.credential_usage()
        credentials: Dict[str, Any] = {}
        env_vars: List[str] = []
        env_lines: List[str] = []
        for cred_type, node_names in usage.items():
            display = credential_display_name(cred_type)
            var = credential_env_var(cred_type)
            # several types share a display name (slackApi, slackOAuth2Api)
            key = display if display not in credentials else f"{display} ({cred_type})"
            credentials[key] = {
                "type": cred_type,
                "name": display,
                "description": f"{display} credentials",
                "required_for": node_names,
            }
            env_vars.append(var)
            env_lines.append(f"# {display}\n{var}=your_{cred_type}_key_here")

        self._write_yaml(layout.CREDENTIAL_MAPPINGS_FILE, {
            "credentials": credentials,
            "environment_variables": env_vars,
        })
        self._write_text(layout.ENV_TEMPLATE_FILE, "\n\n".join(env_lines) + ("\n" if env_lines else ""))
        self.result.credential_types = list(usage)

    def write_project_files(self) -> None:
        doc = self.document
        project = {
            "name": slugify_name(doc.name or "") or "n8n-workflow",
            "version": PROJECT_VERSION,
            "description": f"n8n workflow: {doc.name}",
            "commands": {
                "build": "flowpack pack .",
                "validate": "flowpack validate .",
            },
            "stats": {
                "nodes": len(doc.nodes),
                "connections": self.result.flow_count,
                "credentials": len(doc.credential_usage()),
            },
        }
        self._write_text(layout.PROJECT_FILE, dump_json(project) + "\n")
        self._write_text(layout.README_FILE, render_readme(doc, self.result.flow_count))


def render_readme(doc: Document, flow_count: int) -> str:
    return f"""# {doc.name or 'Untitled workflow'}

## Workflow

- **ID**: {doc.id or 'not created yet'}
- **Status**: {'active' if doc.active else 'inactive'}
- **Nodes**: {len(doc.nodes)}
- **Connections**: {flow_count}
- **Created**: {doc.created_at or 'unknown'}
- **Updated**: {doc.updated_at or 'unknown'}

## Usage

Build the workflow document:

```bash
flowpack pack .
```

Validate the project:

```bash
flowpack validate .
```

## Layout

- `workflow.yaml` - manifest (metadata, include patterns, build options)
- `nodes/` - one file per node, grouped by category
- `connections/` - flow definitions
- `settings/` - execution and error-handling settings
- `credentials/` - credential mappings and `.env.example`
- `data/` - pinned and static data

Configure the credentials listed in `credentials/` before deploying.
"""


def unpack_workflow(source: Union[PathLike, Document], output_dir: PathLike) -> UnpackResult:
    """Unpack a document, or the document file at source, into output_dir."""
    doc = source if isinstance(source, Document) else load_document(source)
    return WorkflowUnpacker(doc, output_dir).unpack()
