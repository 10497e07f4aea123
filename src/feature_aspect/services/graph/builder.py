"""
Dependency graph construction.

Builds a `networkx.MultiDiGraph` with an edge from each package to each of its
dependencies. Edges are keyed by the manifest-visible dependency name, so a
package depending on the same crate under two names has two edges.
"""

import logging

import networkx as nx

from feature_aspect.models.workspace import Dependency, DependencyKind, Package, WorkspaceMetadata

logger = logging.getLogger(__name__)

EXTERNAL_PREFIX = "external:"


class GraphBuilder:
    """Converts workspace metadata into a dependency graph.

    Node attributes:
        package: the `Package` for workspace members, None for external nodes
        member: whether the node is a workspace member
        name: package name

    Edge attributes:
        dep_name: manifest-visible dependency name (also the edge key)
        kinds: set of `DependencyKind` the dependency is declared with

    Graph attributes:
        unresolved: list of (package name, manifest name, crate name) triples that matched
            no member and no known external package
    """

    def __init__(self, metadata: WorkspaceMetadata):
        self.metadata = metadata
        self._members_by_name: dict[str, list[Package]] = {}
        for package in metadata.packages:
            self._members_by_name.setdefault(package.name, []).append(package)
        self._external_names = {p.name for p in metadata.external_packages}

    def build(self) -> nx.MultiDiGraph:
        graph = nx.MultiDiGraph(unresolved=[])

        for package in self.metadata.packages:
            graph.add_node(package.id, package=package, member=True, name=package.name)

        for package in self.metadata.packages:
            for dependency in package.dependencies:
                target = self._resolve(package, dependency)
                if target is None:
                    logger.warning(
                        f"Package `{package.name}`: dependency `{dependency.manifest_name}` "
                        "does not resolve to any known package"
                    )
                    graph.graph["unresolved"].append((package.name, dependency.manifest_name, dependency.name))
                    continue

                if target not in graph:
                    graph.add_node(target, package=None, member=False, name=dependency.name)

                key = dependency.manifest_name
                if graph.has_edge(package.id, target, key=key):
                    graph.edges[package.id, target, key]["kinds"].add(dependency.kind)
                else:
                    graph.add_edge(package.id, target, key=key, dep_name=key, kinds={dependency.kind})

        logger.debug(
            f"Built dependency graph: {graph.number_of_nodes()} nodes, {graph.number_of_edges()} edges, "
            f"{len(graph.graph['unresolved'])} unresolved"
        )
        return graph

    def _resolve(self, package: Package, dependency: Dependency) -> str | None:
        """Return the node id for a dependency, or None if it cannot be resolved."""
        if not dependency.is_external:
            candidates = self._members_by_name.get(dependency.name, [])
            if dependency.path is not None:
                by_path = [c for c in candidates if c.manifest_dir == dependency.path]
                if by_path:
                    return by_path[0].id
            if len(candidates) == 1:
                return candidates[0].id
            if len(candidates) > 1:
                logger.debug(
                    f"Package `{package.name}`: ambiguous dependency `{dependency.name}`, "
                    f"using {candidates[0].id}"
                )
                return candidates[0].id

        if dependency.is_external or dependency.name in self._external_names:
            return f"{EXTERNAL_PREFIX}{dependency.name}"

        return None


def propagation_edges(graph: nx.MultiDiGraph, node: str):
    """Yield (target, dep_name) for the edges of `node` that features may reference.

    Features cannot reference dev-dependencies, so dev-only edges are skipped.
    Edges come out grouped by target, in first-declaration order.
    """
    for _, target, data in graph.out_edges(node, data=True):
        if data["kinds"] - {DependencyKind.DEV}:
            yield target, data["dep_name"]
