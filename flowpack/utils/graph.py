# utils/graph.py
from typing import Iterable, List, Set

import networkx as nx

from flowpack.model.document import Document, FlowRecord


def build_graph(document: Document) -> nx.MultiDiGraph:
    """
    Connection graph keyed by node name. Declared nodes carry declared=True;
    names that only appear in connections are added without it.
    Parallel edges (same pair, different ports) are kept.
    """
    G = nx.MultiDiGraph()
    for n in document.nodes:
        if n.name:
            G.add_node(n.name, declared=True, id=n.id, type=n.type)
    for f in document.flows():
        G.add_edge(
            f.source,
            f.target,
            output=f.output,
            output_index=f.output_index,
            input=f.input,
            input_index=f.input_index,
        )
    return G


def undeclared_nodes(G: nx.MultiDiGraph) -> List[str]:
    return [n for n, declared in G.nodes(data="declared") if not declared]


def orphan_nodes(G: nx.MultiDiGraph) -> List[str]:
    """Declared nodes with no incoming and no outgoing connection."""
    return [n for n, declared in G.nodes(data="declared") if declared and G.degree(n) == 0]


def flow_keys(flows: Iterable[FlowRecord]) -> Set[tuple]:
    """(source, output, output_index, target, input, input_index) tuples."""
    return {f.key() for f in flows}
