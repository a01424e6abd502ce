# flowpack/pack/packer.py
# Assemble a modular project tree back into one workflow document.

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List

import yaml

from flowpack.errors import ManifestError, ProjectLayoutError, WorkflowValidationError
from flowpack.model import layout
from flowpack.model.document import Document, FlowRecord, Node, NodeSettings, add_connection, new_version_id
from flowpack.structural.checker import check_document
from flowpack.utils.graph import build_graph, orphan_nodes, undeclared_nodes
from flowpack.utils.io import PathLike, discover, dump_json, read_yaml, relative, to_path, write_text
from flowpack.utils.logger import get_logger

log = get_logger("pack")

# settings file section -> [(field path, document settings key)]
SETTINGS_FIELDS = {
    "execution": [
        (("order",), "executionOrder"),
        (("save_manual_executions",), "saveManualExecutions"),
        (("data_retention", "success"), "saveDataSuccessExecution"),
        (("data_retention", "error"), "saveDataErrorExecution"),
    ],
    "error_handling": [
        (("error_workflow",), "errorWorkflow"),
        (("caller_policy",), "callerPolicy"),
    ],
}

# value present in the file is enough (false is meaningful)
_KEEP_FALSY = {"saveManualExecutions"}


@dataclass
class PackResult:
    output_path: Path
    document: Document
    node_count: int = 0
    connection_count: int = 0
    size_bytes: int = 0
    warnings: List[str] = field(default_factory=list)


def _dig(data: Any, path: tuple) -> Any:
    cur = data
    for part in path:
        if not isinstance(cur, dict):
            return None
        cur = cur.get(part)
    return cur


def node_from_file(config: Dict[str, Any]) -> Node:
    """Rebuild a document node from the `node` mapping of a node file."""
    position = config.get("position") or {}
    return Node(
        id=config.get("id"),
        name=config.get("name"),
        type=config.get("type"),
        position=[position.get("x") or 0, position.get("y") or 0] if isinstance(position, dict) else position,
        type_version=config.get("type_version") or 1,
        parameters=config.get("parameters") or {},
        credentials=config.get("credentials") or None,
        webhook_id=config.get("webhookId") or None,
        notes=config.get("notes") or None,
        color=config.get("color") or None,
        settings=NodeSettings.from_file(config.get("settings")),
        extra=config.get("extra") or {},
    )


def flow_from_file(entry: Dict[str, Any]) -> FlowRecord:
    source = entry.get("source") or {}
    target = entry.get("target") or {}
    if not source.get("node") or not target.get("node"):
        raise ValueError(f"flow '{entry.get('name', '?')}' is missing a source or target node")
    return FlowRecord(
        source=source["node"],
        output=source.get("output") or "main",
        output_index=int(source.get("index") or 0),
        target=target["node"],
        input=target.get("input") or "main",
        input_index=int(target.get("index") or 0),
    )


class WorkflowPacker:
    """
    Stages run strictly in order: manifest, nodes, connections, settings,
    data, validation, output. Manifest and validation failures are fatal;
    a bad node/connection/settings/data file is skipped with a warning.
    """

    def __init__(self, project_dir: PathLike):
        self.project_dir = to_path(project_dir)
        self.manifest: Dict[str, Any] = {}
        self.document = Document()
        self.warnings: List[str] = []

    def pack(self) -> PackResult:
        log.info("Packing workflow project %s", self.project_dir)
        self.load_manifest()
        self.load_nodes()
        self.load_connections()
        self.load_settings()
        self.load_data()
        self.validate()
        return self.write_output()

    # -------- helpers --------
    def _warn(self, msg: str) -> None:
        log.warning(msg)
        self.warnings.append(msg)

    def _each_file(self, category: layout.ResourceCategory, handle: Callable[[Path, Any], None]) -> int:
        """
        Load every file the manifest includes for a category and pass its
        parsed content to handle. Per-file failures become warnings.
        """
        files = discover(self.project_dir, category.pattern(self.manifest))
        for path in files:
            rel = relative(path, self.project_dir)
            try:
                handle(path, read_yaml(path))
            except (OSError, UnicodeDecodeError, yaml.YAMLError, ValueError, TypeError, AttributeError) as e:
                self._warn(f"Skipping {category.name} file {rel}: {e}")
        return len(files)

    # -------- stages --------
    def load_manifest(self) -> None:
        path = self.project_dir / layout.MANIFEST_FILE
        if not path.is_file():
            raise ManifestError(f"Manifest not found: {path}")
        try:
            manifest = read_yaml(path)
        except (OSError, UnicodeDecodeError, yaml.YAMLError) as e:
            raise ManifestError(f"Cannot parse manifest {path}: {e}") from e
        if not isinstance(manifest, dict):
            raise ManifestError(f"Manifest {path} is not a mapping")
        self.manifest = manifest

        meta = manifest.get("metadata") or {}
        if not isinstance(meta, dict):
            raise ManifestError("Manifest metadata is not a mapping")
        tags = meta.get("tags") or []
        if not isinstance(tags, list):
            raise ManifestError("Manifest metadata tags must be a list")
        doc = self.document
        doc.id = meta.get("id")
        doc.name = meta.get("name")
        doc.active = bool(meta.get("active", False))
        doc.tags = list(tags)
        doc.created_at = meta.get("created_at")
        doc.updated_at = meta.get("updated_at")
        doc.is_archived = bool(meta.get("archived", False))
        doc.trigger_count = meta.get("trigger_count") or 0
        doc.version_id = meta.get("version_id") or new_version_id()

    def load_nodes(self) -> None:
        def handle(path: Path, content: Any) -> None:
            if not isinstance(content, dict) or not isinstance(content.get(layout.NODES.root_key), dict):
                raise ValueError(f"missing '{layout.NODES.root_key}' mapping")
            self.document.nodes.append(node_from_file(content[layout.NODES.root_key]))

        n_files = self._each_file(layout.NODES, handle)
        log.info("Loaded %d node(s) from %d file(s)", len(self.document.nodes), n_files)

    def load_connections(self) -> None:
        connections: Dict[str, Any] = {}

        def handle(path: Path, content: Any) -> None:
            flows = _dig(content, (layout.CONNECTIONS.root_key, "flows"))
            if flows is None:
                raise ValueError("missing 'connections.flows' list")
            # parse the whole file before touching the graph
            records = [flow_from_file(entry) for entry in flows]
            for record in records:
                add_connection(connections, record)

        self._each_file(layout.CONNECTIONS, handle)
        self.document.connections = connections
        log.info("Loaded connections for %d source node(s)", len(connections))

    def load_settings(self) -> None:
        settings: Dict[str, Any] = {}

        def handle(path: Path, content: Any) -> None:
            if not isinstance(content, dict):
                raise ValueError("settings file is not a mapping")
            for section, fields in SETTINGS_FIELDS.items():
                block = content.get(section)
                if not isinstance(block, dict):
                    continue
                for field_path, key in fields:
                    value = _dig(block, field_path)
                    if value or (key in _KEEP_FALSY and value is not None):
                        settings[key] = value

        self._each_file(layout.SETTINGS, handle)
        self.document.settings = settings
        log.debug("Settings: %s", settings)

    def load_data(self) -> None:
        for category, attr in ((layout.PINNED_DATA, "pin_data"), (layout.STATIC_DATA, "static_data")):
            merged: Dict[str, Any] = {}

            def handle(path: Path, content: Any, key: str = category.root_key) -> None:
                data = content.get(key) if isinstance(content, dict) else None
                if data is None:
                    return
                if not isinstance(data, dict):
                    raise ValueError(f"'{key}' is not a mapping")
                merged.update(data)

            self._each_file(category, handle)
            setattr(self.document, attr, merged)

    def validate(self) -> None:
        build = self.manifest.get("build") or {}
        if build.get("validate", True) is False:
            self._warn("Validation disabled by manifest (build.validate: false)")
            return
        errors = check_document(self.document)
        if errors:
            for e in errors:
                log.error("- %s", e)
            raise WorkflowValidationError(errors)
        log.info("Workflow validation passed")

    def write_output(self) -> PackResult:
        build = self.manifest.get("build") or {}
        output = build.get("output") or layout.DEFAULT_OUTPUT
        out_path = (self.project_dir / output).resolve()

        text = dump_json(self.document.to_dict(), minify=bool(build.get("minify")))
        try:
            write_text(out_path, text)
        except OSError as e:
            raise ProjectLayoutError(f"Cannot write {out_path}: {e}") from e

        G = build_graph(self.document)
        orphans = orphan_nodes(G)
        if orphans and len(self.document.nodes) > 1:
            log.info("Unconnected node(s): %s", ", ".join(orphans))
        # only reachable with build.validate off
        undeclared = undeclared_nodes(G)
        if undeclared:
            self._warn(f"Connections reference undeclared node(s): {', '.join(undeclared)}")

        result = PackResult(
            output_path=out_path,
            document=self.document,
            node_count=len(self.document.nodes),
            connection_count=G.number_of_edges(),
            size_bytes=len(text.encode("utf-8")),
            warnings=list(self.warnings),
        )
        log.info("Workflow written to %s", out_path)
        log.info("- nodes: %d", result.node_count)
        log.info("- connections: %d", result.connection_count)
        log.info("- size: %d KB", round(result.size_bytes / 1024))
        return result


def pack_project(project_dir: PathLike) -> PackResult:
    return WorkflowPacker(project_dir).pack()

