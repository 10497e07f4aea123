"""
Test aspect resolution over the dependency graph.
"""

import pytest

from feature_aspect.models.plan import AspectOptions
from feature_aspect.models.workspace import Dependency, Package, WorkspaceMetadata
from feature_aspect.services.aspect.resolver import AspectResolver, referenced_dependency
from feature_aspect.services.graph.builder import GraphBuilder
from feature_aspect.utils.errors import ConfigurationError, GraphError


def resolve(workspace, *leaf_features, **kwargs):
    options = AspectOptions.from_args(leaf_features=list(leaf_features), **kwargs)
    graph = GraphBuilder(workspace.metadata()).build()
    plans = AspectResolver(graph, options).resolve()
    return {plan.package_name: plan for plan in plans.values()}


class TestAspectResolver:
    """Test AspectResolver functionality."""

    def test_chain_forwards_to_next_dependency(self, logging_workspace):
        plans = resolve(logging_workspace, "logging/enable-tracing", name=None)

        assert plans["foo"].forwarding == ["logging/enable-tracing"]
        assert plans["bar"].forwarding == ["foo/enable-tracing"]
        assert plans["foo"].feature == "enable-tracing"

    def test_leaf_and_unrelated_packages_get_no_plan(self, logging_workspace):
        plans = resolve(logging_workspace, "logging/enable-tracing", name=None)

        assert "logging" not in plans
        assert "baz" not in plans
        assert list(plans) == ["foo", "bar"]

    def test_diamond_gets_one_reference_per_direct_edge(self, workspace):
        workspace.add_package("logging", features={"enable-tracing": []})
        workspace.add_package("left", dependencies=["logging"])
        workspace.add_package("right", dependencies=["logging"])
        workspace.add_package("top", dependencies=["left", "right", "logging"])

        plans = resolve(workspace, "logging/enable-tracing", name=None)

        assert sorted(plans["top"].forwarding) == [
            "left/enable-tracing",
            "logging/enable-tracing",
            "right/enable-tracing",
        ]

    def test_dependencies_not_leading_to_leaf_are_ignored(self, workspace):
        workspace.add_package("logging", features={"enable-tracing": []})
        workspace.add_package("util")
        workspace.add_package("foo", dependencies=["logging", "util"], external=["serde"])

        plans = resolve(workspace, "logging/enable-tracing", name=None)

        assert plans["foo"].forwarding == ["logging/enable-tracing"]
        assert "util/enable-tracing" in plans["foo"].owned
        assert "serde/enable-tracing" in plans["foo"].owned

    def test_renamed_aspect_forwards_leaf_feature_to_leaf(self, logging_workspace):
        plans = resolve(logging_workspace, "logging/enable-tracing", name="tracing")

        assert plans["foo"].feature == "tracing"
        assert plans["foo"].forwarding == ["logging/enable-tracing"]
        assert plans["bar"].forwarding == ["foo/tracing"]

    def test_renamed_dependency_reference_uses_alias(self, workspace):
        workspace.add_package("logging", features={"enable-tracing": []})
        workspace.add_package("foo", renamed={"log": "logging"})

        plans = resolve(workspace, "logging/enable-tracing", name=None)

        assert plans["foo"].forwarding == ["log/enable-tracing"]

    def test_each_alias_is_a_forwarding_target(self, workspace):
        workspace.add_package("logging", features={"enable-tracing": []})
        workspace.add_package("foo", dependencies=["logging"], renamed={"log2": "logging"})

        plans = resolve(workspace, "logging/enable-tracing", name=None)

        assert sorted(plans["foo"].forwarding) == ["log2/enable-tracing", "logging/enable-tracing"]

    def test_dev_dependency_does_not_reach_leaf(self, workspace):
        workspace.add_package("logging", features={"enable-tracing": []})
        workspace.add_package("foo", dev_dependencies=["logging"])

        plans = resolve(workspace, "logging/enable-tracing", name=None)

        assert plans == {}

    def test_build_dependency_reaches_leaf(self, workspace):
        workspace.add_package("logging", features={"enable-tracing": []})
        workspace.add_package("foo", build_dependencies=["logging"])

        plans = resolve(workspace, "logging/enable-tracing", name=None)

        assert plans["foo"].forwarding == ["logging/enable-tracing"]

    def test_unqualified_leaf_matches_every_declaring_package(self, workspace):
        workspace.add_package("logging", features={"enable-tracing": []})
        workspace.add_package("metrics", features={"enable-tracing": []})
        workspace.add_package("foo", dependencies=["logging", "metrics"])

        plans = resolve(workspace, "enable-tracing", name=None)

        assert "metrics" not in plans
        assert sorted(plans["foo"].forwarding) == ["logging/enable-tracing", "metrics/enable-tracing"]

    def test_unqualified_leaf_ignores_packages_depending_on_another_match(self, workspace):
        workspace.add_package("logging", features={"enable-tracing": []})
        workspace.add_package("foo", dependencies=["logging"],
                              features={"enable-tracing": ["logging/enable-tracing"]})
        workspace.add_package("bar", dependencies=["foo"], features={"enable-tracing": ["foo/enable-tracing"]})

        plans = resolve(workspace, "enable-tracing", name=None, add_feature_params=["dep:logging"])

        assert list(plans) == ["foo", "bar"]
        assert plans["foo"].extra_params == ["dep:logging"]
        assert plans["bar"].forwarding == ["foo/enable-tracing"]

    def test_dev_dependency_does_not_demote_unqualified_leaf(self, workspace):
        workspace.add_package("logging", features={"enable-tracing": []})
        workspace.add_package("metrics", dev_dependencies=["logging"], features={"enable-tracing": []})
        workspace.add_package("foo", dependencies=["metrics"])

        plans = resolve(workspace, "enable-tracing", name=None)

        assert "metrics" not in plans
        assert plans["foo"].forwarding == ["metrics/enable-tracing"]

    def test_unreached_package_still_forwarding_gets_cleanup_plan(self, workspace):
        workspace.add_package("logging", features={"enable-tracing": []})
        workspace.add_package("foo", features={"enable-tracing": []})
        workspace.add_package("bar", dependencies=["foo"], features={"enable-tracing": ["foo/enable-tracing"]})

        plans = resolve(workspace, "logging/enable-tracing", name=None, add_feature_params=["std"])

        assert list(plans) == ["bar"]
        assert plans["bar"].forwarding == []
        assert plans["bar"].extra_params == []
        assert plans["bar"].owned == {"foo/enable-tracing"}

    def test_unreached_package_with_external_reference_is_untouched(self, logging_workspace):
        logging_workspace.add_package("baz", external=["serde"],
                                      features={"enable-tracing": ["serde/enable-tracing"]})

        plans = resolve(logging_workspace, "logging/enable-tracing", name=None)

        assert "baz" not in plans

    def test_dep_param_only_applies_to_direct_dependents(self, logging_workspace):
        plans = resolve(logging_workspace, "logging/enable-tracing", name=None,
                        add_feature_params=["dep:logging"])

        assert plans["foo"].extra_params == ["dep:logging"]
        assert plans["bar"].extra_params == []

    def test_plain_param_applies_to_every_dependent(self, logging_workspace):
        plans = resolve(logging_workspace, "logging/enable-tracing", name=None,
                        add_feature_params=["std"])

        assert plans["foo"].extra_params == ["std"]
        assert plans["bar"].extra_params == ["std"]

    def test_sort_flag_is_carried(self, logging_workspace):
        plans = resolve(logging_workspace, "logging/enable-tracing", name=None, sort=False)

        assert plans["foo"].sort is False

    def test_no_matching_leaf_raises(self, logging_workspace):
        with pytest.raises(ConfigurationError):
            resolve(logging_workspace, "logging/does-not-exist", name=None)

    def test_unresolved_dependency_named_like_leaf_raises(self):
        metadata = WorkspaceMetadata(packages=[
            Package(id="other-id", name="other", manifest_path="/ws/other/Cargo.toml",
                    features={"enable-tracing": []}),
            Package(id="foo-id", name="foo", manifest_path="/ws/foo/Cargo.toml",
                    dependencies=[Dependency(name="logging", path="/elsewhere/logging")]),
        ])
        options = AspectOptions.from_args(name="enable-tracing",
                                          leaf_features=["other/enable-tracing", "logging/enable-tracing"])

        with pytest.raises(GraphError) as exc_info:
            AspectResolver(GraphBuilder(metadata).build(), options).resolve()

        assert exc_info.value.package == "foo"
        assert exc_info.value.dependency == "logging"

    def test_unrelated_unresolved_dependency_is_tolerated(self, logging_workspace):
        metadata = logging_workspace.metadata()
        metadata.packages.append(Package(
            id="qux-id",
            name="qux",
            manifest_path=logging_workspace.root / "qux" / "Cargo.toml",
            dependencies=[Dependency(name="ghost", path="/nowhere/ghost")],
        ))
        options = AspectOptions.from_args(name=None, leaf_features=["logging/enable-tracing"])

        plans = AspectResolver(GraphBuilder(metadata).build(), options).resolve()

        assert {plan.package_name for plan in plans.values()} == {"foo", "bar"}


@pytest.mark.parametrize("param,expected", [
    ("dep:logging", "logging"),
    ("logging/enable-tracing", "logging"),
    ("logging?/enable-tracing", "logging"),
    ("std", None),
])
def test_referenced_dependency(param, expected):
    assert referenced_dependency(param) == expected
