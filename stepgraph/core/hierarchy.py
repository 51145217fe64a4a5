"""Graph view of parent/child links between step records."""

from typing import Any, Hashable, List, Optional

import networkx as nx


class StepHierarchy:
    """Directed graph with one edge per resolved parent -> child link.

    Nodes are keyed by record, not by step id, so records sharing an id stay
    separate nodes. The step id is kept as a node attribute for reporting.
    """

    def __init__(self):
        self.graph = nx.DiGraph()

    def add_step(self, key: Hashable, step_id: Any) -> None:
        self.graph.add_node(key, step_id=step_id)

    def add_link(self, parent_key: Hashable, child_key: Hashable) -> None:
        """Record that the ``child_key`` record is nested under ``parent_key``."""
        self.graph.add_edge(parent_key, child_key)

    def find_cycle(self) -> Optional[List[Any]]:
        """Find a cycle among the parent links.

        Returns:
            The step ids along the cycle, first id repeated at the end,
            or None if no cycle exists.
        """
        try:
            cycle_edges = list(nx.find_cycle(self.graph))
        except nx.NetworkXNoCycle:
            return None
        path = [self.graph.nodes[u]["step_id"] for u, _ in cycle_edges]
        path.append(path[0])
        return path
