"""
Tests for Plugin Dependency Graph.

This test suite covers:
1. Forward closure (what an enabled list needs)
2. Reverse closure (what removing plugins affects)
3. Cycle detection
4. Dependency-first ordering
"""

from pathlib import Path

import pytest

from hotplug.plugin.catalog import Catalog
from hotplug.plugin.descriptor import PackageKind, PluginDescriptor
from hotplug.plugin.errors import CyclicDependency
from hotplug.plugin.graph import DependencyGraph, dependencies


def make_catalog(graph: dict[str, list[str]]) -> Catalog:
    return Catalog(
        PluginDescriptor(
            name=name,
            version="1.0.0",
            description="",
            dependencies=tuple(deps),
            kind=PackageKind.DIRECTORY,
            location=Path("/plugins") / name,
        )
        for name, deps in graph.items()
    )


# D -> B -> A, D -> C -> A, E standalone
DIAMOND = {
    "a": [],
    "b": ["a"],
    "c": ["a"],
    "d": ["b", "c"],
    "e": [],
}


class TestForwardClosure:
    """Test reachable sets."""

    def test_includes_sources(self):
        """The closure should contain every known source."""
        catalog = make_catalog(DIAMOND)
        assert dependencies(["e"], catalog) == {"e"}

    def test_transitive_dependencies(self):
        """The closure should follow dependencies transitively."""
        catalog = make_catalog(DIAMOND)
        assert dependencies(["d"], catalog) == {"a", "b", "c", "d"}

    def test_closed_under_dependencies(self):
        """Every dependency of a member should be a member."""
        catalog = make_catalog(DIAMOND)
        for sources in (["b"], ["d", "e"], ["c"], []):
            result = dependencies(sources, catalog)
            assert set(sources) <= result
            for name in result:
                assert set(catalog.get(name).dependencies) <= result

    def test_unknown_sources_ignored(self):
        """Names outside the catalog should not appear in the result."""
        catalog = make_catalog(DIAMOND)
        assert dependencies(["b", "nope"], catalog) == {"a", "b"}

    def test_empty_sources(self):
        """No sources should give an empty closure."""
        assert dependencies([], make_catalog(DIAMOND)) == set()


class TestReverseClosure:
    """Test reaching sets."""

    def test_dependents_of_leaf(self):
        """Everything depending on a leaf should be affected."""
        catalog = make_catalog(DIAMOND)
        assert dependencies(["a"], catalog, reverse=True) == {"a", "b", "c", "d"}

    def test_dependents_of_middle(self):
        """Only plugins above the source should be affected."""
        catalog = make_catalog(DIAMOND)
        assert dependencies(["b"], catalog, reverse=True) == {"b", "d"}

    def test_top_level_plugin(self):
        """A plugin nobody depends on affects only itself."""
        catalog = make_catalog(DIAMOND)
        assert dependencies(["d"], catalog, reverse=True) == {"d"}


class TestCycles:
    """Test cycle detection."""

    def test_two_node_cycle(self):
        """A -> B -> A should be rejected."""
        catalog = make_catalog({"a": ["b"], "b": ["a"]})

        with pytest.raises(CyclicDependency, match="Circular dependency") as exc_info:
            dependencies(["a"], catalog)

        assert exc_info.value.cycle == ["a", "b"]

    def test_self_dependency(self):
        """A plugin depending on itself is a cycle."""
        with pytest.raises(CyclicDependency):
            DependencyGraph.from_catalog(make_catalog({"a": ["a"]}))

    def test_cycle_elsewhere_still_fails(self):
        """Construction fails even when the sources avoid the cycle."""
        catalog = make_catalog({"a": [], "x": ["y"], "y": ["z"], "z": ["x"]})

        with pytest.raises(CyclicDependency):
            dependencies(["a"], catalog)

    def test_acyclic_always_builds(self):
        """Acyclic catalogs should always build."""
        DependencyGraph.from_catalog(make_catalog(DIAMOND))
        DependencyGraph.from_catalog(make_catalog({}))


class TestTopologicalOrder:
    """Test dependency-first ordering."""

    def test_dependencies_first(self):
        """Every plugin should come after its dependencies."""
        graph = DependencyGraph.from_catalog(make_catalog(DIAMOND))
        order = graph.topological_order(["d", "c", "b", "a"])

        assert order[0] == "a"
        assert order.index("b") < order.index("d")
        assert order.index("c") < order.index("d")

    def test_subset_and_unknown_names(self):
        """Only requested, known names should be returned."""
        graph = DependencyGraph.from_catalog(make_catalog(DIAMOND))
        assert graph.topological_order(["d", "a", "zzz"]) == ["a", "d"]

    def test_edges_to_unknown_names_ignored(self):
        """Edges leaving the graph should not create vertices."""
        graph = DependencyGraph({"a": ["outside"], "b": ["a"]})
        assert graph.reachable(["b"]) == {"a", "b"}
        assert "outside" not in graph
