"""
Aspect resolution.

Walks the dependency graph dependencies-first and works out, for every package
that reaches a leaf, which forwarding references its aspect feature must hold.
"""

import logging

import networkx as nx

from feature_aspect.models.plan import AspectOptions, AspectPlan
from feature_aspect.models.workspace import DependencyKind
from feature_aspect.services.graph.builder import propagation_edges
from feature_aspect.services.graph.ordering import dependency_order
from feature_aspect.utils.errors import ConfigurationError, GraphError

logger = logging.getLogger(__name__)


def referenced_dependency(param: str) -> str | None:
    """Return the dependency name a feature param refers to, if any.

    `dep:logging` and `logging/feat` (or `logging?/feat`) refer to `logging`;
    a bare feature name refers to no dependency.
    """
    if param.startswith("dep:"):
        return param[len("dep:"):]
    if "/" in param:
        return param.split("/", 1)[0].rstrip("?")
    return None


class AspectResolver:
    """Computes per-package aspect plans for one set of options."""

    def __init__(self, graph: nx.MultiDiGraph, options: AspectOptions):
        self.graph = graph
        self.options = options
        self.aspect = options.aspect_name

    def find_leaves(self) -> dict[str, list[str]]:
        """Map each leaf package node to the leaf features it declares.

        A package matched only by an unqualified spec is a leaf only if it does not
        itself depend on another matched package. Otherwise it is a dependent, which
        covers packages that received the aspect feature on an earlier run.
        """
        qualified: dict[str, list[str]] = {}
        unqualified: dict[str, list[str]] = {}
        matched = set()
        for node in sorted(self.graph.nodes):
            package = self.graph.nodes[node]["package"]
            if package is None:
                continue
            for feature in package.features:
                for leaf in self.options.leaf_features:
                    if leaf.matches(package.name, feature):
                        matched.add(str(leaf))
                        found = qualified if leaf.package is not None else unqualified
                        if feature not in found.setdefault(node, []):
                            found[node].append(feature)

        for leaf in self.options.leaf_features:
            if str(leaf) not in matched:
                logger.warning(f"Leaf feature `{leaf}` does not match any workspace package")

        candidates = set(qualified) | set(unqualified)
        propagating = self.propagation_graph()
        leaves: dict[str, list[str]] = {}
        for node in sorted(candidates):
            features = list(qualified.get(node, []))
            if node not in qualified:
                if nx.descendants(propagating, node) & candidates:
                    logger.debug(
                        f"Package `{self.graph.nodes[node]['name']}` declares {unqualified[node]} "
                        "but depends on another leaf, treating it as a dependent"
                    )
                    continue
            features += [f for f in unqualified.get(node, []) if f not in features]
            leaves[node] = features

        if not leaves:
            specs = ", ".join(f"`{leaf}`" for leaf in self.options.leaf_features)
            raise ConfigurationError(
                f"No workspace package declares the leaf feature(s) {specs}",
                suggestions=["Check the package and feature names in --leaf-feature."],
            )
        return leaves

    def check_unresolved(self) -> None:
        """Fail if an unresolved dependency could be the route to a leaf."""
        leaf_packages = {leaf.package for leaf in self.options.leaf_features if leaf.package}
        for package_name, dep_name, crate_name in self.graph.graph.get("unresolved", []):
            if crate_name in leaf_packages or dep_name in leaf_packages:
                raise GraphError(
                    f"Package `{package_name}`: dependency `{dep_name}` cannot be resolved "
                    "but may lead to the leaf package",
                    package=package_name,
                    dependency=dep_name,
                )
            logger.debug(f"Ignoring unresolved dependency `{dep_name}` of `{package_name}`")

    def resolve(self, order: list[str] | None = None) -> dict[str, AspectPlan]:
        """Return aspect plans keyed by package id, in dependencies-first order.

        Leaf packages get no plan. A package with no path to a leaf gets a plan only
        when its aspect feature still forwards to a workspace member, so that the
        stale references are dropped.
        """
        leaves = self.find_leaves()
        self.check_unresolved()
        if order is None:
            order = dependency_order(self.graph)

        reaching = set(leaves)
        plans: dict[str, AspectPlan] = {}

        for node in order:
            package = self.graph.nodes[node]["package"]
            if package is None or node in leaves:
                continue

            forwarding: list[str] = []
            owned: set[str] = set()
            member_refs: set[str] = set()
            dep_names: set[str] = set()
            for target, dep_name in propagation_edges(self.graph, node):
                dep_names.add(dep_name)
                owned.add(f"{dep_name}/{self.aspect}")
                if self.graph.nodes[target]["member"]:
                    member_refs.add(f"{dep_name}/{self.aspect}")
                if target in leaves:
                    refs = [f"{dep_name}/{feature}" for feature in leaves[target]]
                    owned.update(refs)
                elif target in reaching:
                    refs = [f"{dep_name}/{self.aspect}"]
                else:
                    continue
                forwarding.extend(ref for ref in refs if ref not in forwarding)

            existing = package.features.get(self.aspect, [])
            if forwarding:
                reaching.add(node)
                extra_params = self._params_for(dep_names)
            elif member_refs.intersection(existing):
                owned = member_refs
                extra_params = []
            else:
                continue

            plan = AspectPlan(
                package_id=node,
                package_name=package.name,
                manifest_path=package.manifest_path,
                feature=self.aspect,
                forwarding=forwarding,
                extra_params=extra_params,
                owned=owned,
                sort=self.options.sort,
            )
            stale = sorted(ref for ref in existing if ref in owned and ref not in plan.required)
            if stale:
                logger.info(f"Package `{package.name}` feature `{self.aspect}`: dropping references {stale}")
            if forwarding:
                logger.debug(f"Package `{package.name}` reaches the leaf via {forwarding}")
            plans[node] = plan

        logger.info(
            f"{len(reaching) - len(leaves)} package(s) depend on leaf packages "
            f"{[self.graph.nodes[n]['name'] for n in leaves]}, {len(plans)} planned"
        )
        return plans

    def propagation_graph(self) -> nx.MultiDiGraph:
        """View of the graph without dev-only edges."""
        return nx.subgraph_view(
            self.graph,
            filter_edge=lambda u, v, k: bool(self.graph.edges[u, v, k]["kinds"] - {DependencyKind.DEV}),
        )

    def _params_for(self, dep_names: set[str]) -> list[str]:
        params = []
        for param in self.options.add_feature_params:
            dependency = referenced_dependency(param)
            if dependency is None or dependency in dep_names:
                params.append(param)
        return params
