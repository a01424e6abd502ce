# flowpack/model/document.py
# In-memory workflow document shared by the packer and the unpacker.

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional

# Node keys modelled explicitly; anything else is preserved in Node.extra.
_NODE_KEYS = (
    "id", "name", "type", "typeVersion", "position", "parameters",
    "credentials", "webhookId", "notes", "color",
    "disabled", "continueOnFail", "alwaysOutputData", "executeOnce",
    "retryOnFail", "maxTries", "waitBetweenTries",
)

# document key <-> node-file settings key, in emission order
MODIFIER_FIELDS = (
    ("disabled", "disabled"),
    ("continueOnFail", "continue_on_fail"),
    ("alwaysOutputData", "always_output_data"),
    ("executeOnce", "execute_once"),
    ("retryOnFail", "retry_on_fail"),
    ("maxTries", "max_tries"),
    ("waitBetweenTries", "wait_between_tries"),
)

DEFAULT_MAX_TRIES = 3
DEFAULT_WAIT_BETWEEN_TRIES = 1000


def new_version_id() -> str:
    return str(uuid.uuid4())


@dataclass
class NodeSettings:
    """
    Execution modifier flags of a node. None means "not set"; the
    serialized document only ever carries the keys that are set.
    """
    disabled: Optional[bool] = None
    continue_on_fail: Optional[bool] = None
    always_output_data: Optional[bool] = None
    execute_once: Optional[bool] = None
    retry_on_fail: Optional[bool] = None
    max_tries: Optional[int] = None
    wait_between_tries: Optional[int] = None

    @classmethod
    def from_node_dict(cls, data: Dict[str, Any]) -> "NodeSettings":
        return cls(**{attr: data.get(key) for key, attr in MODIFIER_FIELDS})

    @classmethod
    def from_file(cls, data: Optional[Dict[str, Any]]) -> "NodeSettings":
        """Read a node file's settings block; only truthy values are kept."""
        data = data or {}
        return cls(**{attr: data[attr] for _, attr in MODIFIER_FIELDS if data.get(attr)})

    def to_file(self) -> Dict[str, Any]:
        """
        Settings block for a node file: truthy flags only. Retry counters are
        written when set and defaulted whenever retry_on_fail is on.
        """
        out: Dict[str, Any] = {}
        for _, attr in MODIFIER_FIELDS[:5]:
            if getattr(self, attr):
                out[attr] = getattr(self, attr)
        max_tries, wait = self.max_tries, self.wait_between_tries
        if self.retry_on_fail:
            max_tries = max_tries or DEFAULT_MAX_TRIES
            wait = wait or DEFAULT_WAIT_BETWEEN_TRIES
        if max_tries:
            out["max_tries"] = max_tries
        if wait:
            out["wait_between_tries"] = wait
        return out

    def items(self) -> Iterator[tuple]:
        """(document key, value) for every flag that is set."""
        for key, attr in MODIFIER_FIELDS:
            value = getattr(self, attr)
            if value is not None:
                yield key, value


@dataclass
class Node:
    id: str
    name: str
    type: str
    position: List[float] = field(default_factory=lambda: [0, 0])
    type_version: Any = 1
    parameters: Dict[str, Any] = field(default_factory=dict)
    credentials: Optional[Dict[str, Any]] = None
    webhook_id: Optional[str] = None
    notes: Optional[str] = None
    color: Optional[str] = None
    settings: NodeSettings = field(default_factory=NodeSettings)
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Node":
        return cls(
            id=data.get("id"),
            name=data.get("name"),
            type=data.get("type"),
            position=data.get("position"),
            type_version=data.get("typeVersion", 1),
            parameters=data.get("parameters") or {},
            credentials=data.get("credentials"),
            webhook_id=data.get("webhookId"),
            notes=data.get("notes"),
            color=data.get("color"),
            settings=NodeSettings.from_node_dict(data),
            extra={k: v for k, v in data.items() if k not in _NODE_KEYS},
        )

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "position": self.position,
            "parameters": self.parameters,
            "typeVersion": self.type_version,
        }
        if self.credentials:
            out["credentials"] = self.credentials
        if self.webhook_id:
            out["webhookId"] = self.webhook_id
        out.update(self.settings.items())
        if self.notes:
            out["notes"] = self.notes
        if self.color:
            out["color"] = self.color
        out.update(self.extra)
        return out

    @property
    def credential_types(self) -> List[str]:
        return list((self.credentials or {}).keys())


@dataclass
class Connection:
    """One target of a source output port."""
    node: str
    type: str = "main"
    index: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {"node": self.node, "type": self.type, "index": self.index}


@dataclass
class FlowRecord:
    """A single flattened edge, as stored in connection files."""
    source: str
    output: str
    output_index: int
    target: str
    input: str = "main"
    input_index: int = 0

    def key(self) -> tuple:
        return (self.source, self.output, self.output_index, self.target, self.input, self.input_index)


def iter_flows(connections: Dict[str, Any]) -> Iterator[FlowRecord]:
    """
    Flatten source -> output type -> [output index] -> [targets] into
    FlowRecords, in document order. Malformed entries are skipped.
    """
    for source, outputs in (connections or {}).items():
        if not isinstance(outputs, dict):
            continue
        for output_type, per_index in outputs.items():
            if not isinstance(per_index, list):
                continue
            for output_index, targets in enumerate(per_index):
                if not isinstance(targets, list):
                    continue
                for conn in targets:
                    if not isinstance(conn, dict) or not conn.get("node"):
                        continue
                    yield FlowRecord(
                        source=source,
                        output=output_type,
                        output_index=output_index,
                        target=conn["node"],
                        input=conn.get("type") or "main",
                        input_index=conn.get("index") or 0,
                    )


def add_connection(connections: Dict[str, Any], flow: FlowRecord) -> None:
    """
    Insert a flow into the nested connection mapping, padding the output
    index list with empty lists so every index below it exists.
    """
    outputs = connections.setdefault(flow.source, {})
    per_index = outputs.setdefault(flow.output, [])
    while len(per_index) <= flow.output_index:
        per_index.append([])
    per_index[flow.output_index].append(
        Connection(node=flow.target, type=flow.input, index=flow.input_index).to_dict()
    )


@dataclass
class Document:
    name: Optional[str] = None
    id: Optional[str] = None
    active: bool = False
    tags: List[Any] = field(default_factory=list)
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    is_archived: bool = False
    trigger_count: int = 0
    version_id: Optional[str] = None
    nodes: List[Node] = field(default_factory=list)
    connections: Dict[str, Any] = field(default_factory=dict)
    settings: Dict[str, Any] = field(default_factory=dict)
    pin_data: Dict[str, Any] = field(default_factory=dict)
    static_data: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Document":
        return cls(
            name=data.get("name"),
            id=data.get("id"),
            active=bool(data.get("active", False)),
            tags=list(data.get("tags") or []),
            created_at=data.get("createdAt"),
            updated_at=data.get("updatedAt"),
            is_archived=bool(data.get("isArchived", False)),
            trigger_count=data.get("triggerCount") or 0,
            version_id=data.get("versionId"),
            nodes=[Node.from_dict(n) for n in data.get("nodes") or []],
            connections=data.get("connections") or {},
            settings=data.get("settings") or {},
            pin_data=data.get("pinData") or {},
            static_data=data.get("staticData") or {},
        )

    def to_dict(self) -> Dict[str, Any]:
        """
        Serializable form, as accepted by the workflow API's create/update
        calls. Top-level mappings that are empty are dropped.
        """
        out: Dict[str, Any] = {}
        if self.id:
            out["id"] = self.id
        out.update({
            "name": self.name,
            "active": self.active,
            "nodes": [n.to_dict() for n in self.nodes],
            "connections": self.connections,
            "settings": self.settings,
            "tags": self.tags,
            "pinData": self.pin_data,
            "staticData": self.static_data,
            "versionId": self.version_id or new_version_id(),
        })
        if self.created_at:
            out["createdAt"] = self.created_at
        if self.updated_at:
            out["updatedAt"] = self.updated_at
        out["isArchived"] = self.is_archived
        out["triggerCount"] = self.trigger_count
        return prune_empty_objects(out)

    def flows(self) -> List[FlowRecord]:
        return list(iter_flows(self.connections))

    def credential_usage(self) -> Dict[str, List[str]]:
        """credential type -> names of the nodes using it, first-seen order."""
        usage: Dict[str, List[str]] = {}
        for node in self.nodes:
            for cred_type in node.credential_types:
                usage.setdefault(cred_type, []).append(node.name)
        return usage


def prune_empty_objects(data: Dict[str, Any]) -> Dict[str, Any]:
    """Drop top-level keys whose value is an empty mapping (lists are kept)."""
    return {k: v for k, v in data.items() if not (isinstance(v, dict) and not v)}
