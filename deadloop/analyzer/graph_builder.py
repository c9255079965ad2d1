"""Function reference graph builder using NetworkX.

The graph is a reporting aid: it shows which functions read which, and lets
the detector group dead functions into clusters. Liveness itself is always
decided by the ClusterResolver.
"""
from typing import Any, Dict, Iterable, List

import networkx as nx

from .classifier import UsageKind
from .reference_tracker import ReferenceTracker
from .verdict import Unit

MODULE_NODE = '<module>'


def unit_id(unit: Unit) -> str:
    """Stable graph node id for a unit (names alone can repeat in one file)."""
    return f"{unit.name}@{unit.line}:{unit.column}"


class ReferenceGraphBuilder:
    """Build a directed reference graph for the functions of one file."""

    def __init__(self, tracker: ReferenceTracker):
        """Initialize graph builder.

        Args:
            tracker: Reference tracker of the analyzed file
        """
        self.tracker = tracker
        self.graph = nx.DiGraph()

    def build_graph(self) -> nx.DiGraph:
        """Build the reference graph.

        Creates a directed graph where edge (X, Y) means "function X reads
        function Y". The `<module>` node stands for module-level code and has
        an edge to every exported function and every function used from
        module level.

        Returns:
            NetworkX DiGraph with function references
        """
        self.graph.add_node(MODULE_NODE, name=MODULE_NODE, line=0, column=0, exported=False)

        for unit in self.tracker.units:
            self.graph.add_node(
                unit_id(unit),
                name=unit.name,
                line=unit.line,
                column=unit.column,
                exported=self.tracker.is_exported(unit),
            )

        for unit in self.tracker.units:
            self._add_incoming_edges(unit)

        return self.graph

    def _add_incoming_edges(self, unit: Unit):
        target = unit_id(unit)
        if self.graph.nodes[target]['exported']:
            self.graph.add_edge(MODULE_NODE, target, kind='export')

        for site in self.tracker.read_references(unit):
            enclosing = self.tracker.enclosing_unit(site)
            if enclosing is None:
                if self.tracker.classify(site) is UsageKind.DEFINITELY_USED:
                    self.graph.add_edge(MODULE_NODE, target, kind='module', line=site.line)
                continue
            self.graph.add_edge(unit_id(enclosing), target, kind='reference', line=site.line)


def build_graph(tracker: ReferenceTracker) -> nx.DiGraph:
    """Convenience wrapper around ReferenceGraphBuilder."""
    return ReferenceGraphBuilder(tracker).build_graph()


def unused_clusters(graph: nx.DiGraph, unused: Iterable[str]) -> List[List[str]]:
    """Group unused functions that reference each other.

    Args:
        graph: Reference graph from build_graph
        unused: Node ids of functions found unused

    Returns:
        Weakly connected components of the unused subgraph, each in document
        order, the components ordered by their first member
    """
    def position(node_id: str):
        data = graph.nodes[node_id]
        return (data['line'], data['column'], node_id)

    members = [node_id for node_id in unused if node_id in graph]
    subgraph = graph.subgraph(members)
    clusters = [sorted(component, key=position) for component in nx.weakly_connected_components(subgraph)]
    clusters.sort(key=lambda cluster: position(cluster[0]))
    return clusters


def to_node_link(graph: nx.DiGraph) -> Dict[str, Any]:
    """Serialize a reference graph to node-link JSON data."""
    return nx.node_link_data(graph, edges='links')
