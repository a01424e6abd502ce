# flowpack/structural/validator.py
# Structural checks of a modular project tree, without packing it.

from __future__ import annotations

from dataclasses import dataclass, field
from numbers import Number
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from flowpack.model import layout
from flowpack.structural.checker import NodeRegistry
from flowpack.utils.io import PathLike, discover, read_yaml, relative, to_path
from flowpack.utils.logger import get_logger

log = get_logger("validate")


@dataclass
class ValidationReport:
    project_dir: Path
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    stats: Dict[str, int] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.errors


def _is_number(v: Any) -> bool:
    return isinstance(v, Number) and not isinstance(v, bool)


class ProjectValidator:
    """
    Runs every check even when earlier ones fail; findings accumulate in
    the report. Errors fail validation, warnings do not.
    """

    def __init__(self, project_dir: PathLike):
        self.project_dir = to_path(project_dir)
        self.report = ValidationReport(project_dir=self.project_dir)
        self.manifest: Optional[Dict[str, Any]] = None
        self.registry = NodeRegistry()

    def validate(self) -> ValidationReport:
        log.info("Validating workflow project %s", self.project_dir)
        self.check_file_structure()
        self.check_manifest()
        self.check_nodes()
        self.check_connections()
        self.check_credentials()
        return self.report

    def _rel(self, path: Path) -> str:
        return relative(path, self.project_dir)

    def _load(self, path: Path) -> Any:
        """read_yaml, with any read/parse failure turned into an error."""
        try:
            return read_yaml(path)
        except (OSError, UnicodeDecodeError, yaml.YAMLError) as e:
            self.report.errors.append(f"Cannot parse {self._rel(path)}: {e}")
            raise

    def _discover(self, category: layout.ResourceCategory) -> List[Path]:
        return discover(self.project_dir, category.pattern(self.manifest))

    # -------- checks --------
    def check_file_structure(self) -> None:
        for name in layout.REQUIRED_FILES:
            if not (self.project_dir / name).is_file():
                self.report.errors.append(f"Missing required file: {name}")
        for name in layout.REQUIRED_DIRS:
            if not (self.project_dir / name).is_dir():
                self.report.errors.append(f"Missing required directory: {name}")

    def check_manifest(self) -> None:
        path = self.project_dir / layout.MANIFEST_FILE
        if not path.is_file():
            return
        try:
            manifest = self._load(path)
        except (OSError, UnicodeDecodeError, yaml.YAMLError):
            return
        if not isinstance(manifest, dict):
            self.report.errors.append(f"{layout.MANIFEST_FILE} is not a mapping")
            return
        self.manifest = manifest

        meta = manifest.get("metadata")
        if not isinstance(meta, dict):
            self.report.errors.append("Manifest has no metadata section")
        else:
            if not meta.get("id"):
                self.report.errors.append("Manifest metadata is missing the workflow id")
            if not meta.get("name"):
                self.report.errors.append("Manifest metadata is missing the workflow name")

        if not manifest.get("includes"):
            self.report.warnings.append("Manifest has no includes section")

    def check_nodes(self) -> None:
        files = self._discover(layout.NODES)
        self.report.stats["node_files"] = len(files)
        if not files:
            self.report.errors.append("No node files found")
            return

        for path in files:
            rel = self._rel(path)
            try:
                content = self._load(path)
            except (OSError, UnicodeDecodeError, yaml.YAMLError):
                continue
            node = content.get(layout.NODES.root_key) if isinstance(content, dict) else None
            if not isinstance(node, dict):
                self.report.errors.append(f"Node file has no '{layout.NODES.root_key}' mapping: {rel}")
                continue

            self.report.errors.extend(self.registry.register(node.get("id"), node.get("name"), rel))
            label = node.get("name") or rel
            if not node.get("type"):
                self.report.errors.append(f"Node {label} is missing a type")
            position = node.get("position")
            if not (isinstance(position, dict) and _is_number(position.get("x")) and _is_number(position.get("y"))):
                self.report.errors.append(f"Node {label} has an invalid position (expected x and y)")

        log.info("Checked %d node file(s)", len(files))

    def check_connections(self) -> None:
        files = self._discover(layout.CONNECTIONS)
        self.report.stats["connection_files"] = len(files)
        if not files:
            self.report.warnings.append("No connection files found")
            return

        flow_count = 0
        unknown: List[str] = []
        for path in files:
            rel = self._rel(path)
            try:
                content = self._load(path)
            except (OSError, UnicodeDecodeError, yaml.YAMLError):
                continue
            block = content.get(layout.CONNECTIONS.root_key) if isinstance(content, dict) else None
            flows = block.get("flows") if isinstance(block, dict) else None
            if not isinstance(flows, list):
                self.report.errors.append(f"Connection file has no flows list: {rel}")
                continue

            for i, flow in enumerate(flows):
                flow_count += 1
                source = flow.get("source") if isinstance(flow, dict) else None
                target = flow.get("target") if isinstance(flow, dict) else None
                if not isinstance(source, dict) or not isinstance(target, dict):
                    self.report.errors.append(f"Flow {i} in {rel} is missing a source or target")
                    continue
                if not source.get("node") or not target.get("node"):
                    self.report.errors.append(f"Flow {i} in {rel} is missing a node reference")
                    continue
                for name in (source["node"], target["node"]):
                    if name not in self.registry.names and name not in unknown:
                        unknown.append(name)

        # packing is the blocking check for dangling references
        for name in unknown:
            self.report.warnings.append(f"Connection references a node no node file declares: {name}")
        self.report.stats["flows"] = flow_count
        log.info("Checked %d connection file(s)", len(files))

    def check_credentials(self) -> None:
        path = self.project_dir / layout.CREDENTIAL_MAPPINGS_FILE
        if not path.is_file():
            self.report.warnings.append("No credential mappings file found")
            return
        try:
            content = self._load(path)
        except (OSError, UnicodeDecodeError, yaml.YAMLError):
            return
        creds = content.get(layout.CREDENTIALS.root_key) if isinstance(content, dict) else None
        count = len(creds) if isinstance(creds, dict) else 0
        self.report.stats["credentials"] = count
        log.info("Checked %d credential mapping(s)", count)


def validate_project(project_dir: PathLike) -> ValidationReport:
    return ProjectValidator(project_dir).validate()
