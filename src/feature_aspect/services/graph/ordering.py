"""
Deterministic topological ordering of the dependency graph.
"""

import logging

import networkx as nx

from feature_aspect.models.workspace import DependencyKind
from feature_aspect.utils.errors import CycleError

logger = logging.getLogger(__name__)


def dependency_order(graph: nx.MultiDiGraph) -> list[str]:
    """Return node ids with every dependency before its dependees.

    Ties between independent packages are broken by node id, so identical
    input always gives identical output. Dev-only edges are ignored because
    dev-dependency cycles are legal.

    Raises:
        CycleError: if normal/build dependencies form a cycle
    """
    ordering_graph = nx.DiGraph()
    ordering_graph.add_nodes_from(graph.nodes)
    for source, target, data in graph.edges(data=True):
        if data["kinds"] - {DependencyKind.DEV}:
            # reversed: dependency -> dependee
            ordering_graph.add_edge(target, source)

    try:
        order = list(nx.lexicographical_topological_sort(ordering_graph, key=str))
    except nx.NetworkXUnfeasible as e:
        cycle = [graph.nodes[u].get("name", u) for u, _ in nx.find_cycle(ordering_graph)]
        cycle.reverse()
        raise CycleError(
            f"Dependency cycle detected: {' -> '.join(cycle + cycle[:1])}",
            cycle=cycle,
        ) from e

    logger.debug(f"Topologically sorted package order: {[graph.nodes[n].get('name', n) for n in order]}")
    return order
