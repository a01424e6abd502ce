# flowpack/structural/checker.py

from numbers import Number
from typing import Any, List, Set

from flowpack.model.document import Document


def is_position_pair(position: Any) -> bool:
    """True for an [x, y] pair of numbers."""
    return (
        isinstance(position, (list, tuple))
        and len(position) == 2
        and all(isinstance(v, Number) and not isinstance(v, bool) for v in position)
    )


class NodeRegistry:
    """
    Tracks node ids and names seen so far and reports missing values and
    duplicates. Shared by the document check and the on-disk validator.
    """

    def __init__(self):
        self.ids: Set[Any] = set()
        self.names: Set[str] = set()

    def register(self, node_id: Any, name: Any, label: str) -> List[str]:
        errors: List[str] = []
        if not node_id:
            errors.append(f"Node {label} is missing an id")
        elif node_id in self.ids:
            errors.append(f"Duplicate node id: {node_id}")
        else:
            self.ids.add(node_id)

        if not name:
            errors.append(f"Node {label} is missing a name")
        elif name in self.names:
            errors.append(f"Duplicate node name: {name}")
        else:
            self.names.add(name)
        return errors


def check_document(document: Document) -> List[str]:
    """
    Check an assembled document against the structural invariants.
    Every violation is collected; nothing is raised here.

    Returns:
        list of human-readable error messages (empty when valid)
    """
    errors: List[str] = []

    if not document.name:
        errors.append("Workflow name is missing")
    if not document.nodes:
        errors.append("Workflow must contain at least one node")

    registry = NodeRegistry()
    for index, node in enumerate(document.nodes):
        errors.extend(registry.register(node.id, node.name, str(index)))
        label = node.name or str(index)
        if not node.type:
            errors.append(f"Node {label} is missing a type")
        if not is_position_pair(node.position):
            errors.append(f"Node {label} has an invalid position (expected [x, y])")

    # each unknown name is reported once, however many flows use it
    unknown_sources: List[str] = []
    unknown_targets: List[str] = []
    for flow in document.flows():
        if flow.source not in registry.names and flow.source not in unknown_sources:
            unknown_sources.append(flow.source)
        if flow.target not in registry.names and flow.target not in unknown_targets:
            unknown_targets.append(flow.target)
    # sources without any flow record still count
    for source in document.connections:
        if source not in registry.names and source not in unknown_sources:
            unknown_sources.append(source)

    errors.extend(f"Connection references unknown source node: {n}" for n in unknown_sources)
    errors.extend(f"Connection references unknown target node: {n}" for n in unknown_targets)
    return errors
