"""
Plugin Dependency Graph.

This module answers reachability questions over a plugin catalog.

Key features:
- Acyclic graph construction with cycle detection (Kahn's algorithm)
- Forward closure: everything an enabled list needs
- Reverse closure: everything affected by removing plugins
- Dependency-first ordering for start/stop
"""

from collections import deque
from collections.abc import Iterable

from hotplug.plugin.catalog import Catalog
from hotplug.plugin.errors import CyclicDependency


class DependencyGraph:
    """
    Directed acyclic graph of plugin -> dependency edges.

    Edges only connect names present in the catalog.
    """

    def __init__(self, edges: dict[str, list[str]]):
        """
        Initialize DependencyGraph.

        Args:
            edges: Plugin name -> names it depends on

        Raises:
            CyclicDependency: If the edges contain a cycle
        """
        self._deps: dict[str, list[str]] = {
            name: sorted({dep for dep in deps if dep in edges})
            for name, deps in edges.items()
        }
        self._dependents: dict[str, list[str]] = {name: [] for name in self._deps}
        for name, deps in self._deps.items():
            for dep in deps:
                self._dependents[dep].append(name)

        self._order = self._sort()

    @classmethod
    def from_catalog(cls, catalog: Catalog) -> "DependencyGraph":
        """Build the graph for every plugin in a catalog."""
        return cls({d.name: list(d.dependencies) for d in catalog})

    def _sort(self) -> list[str]:
        # Kahn's algorithm over dependency counts; leaves come first
        remaining = {name: len(deps) for name, deps in self._deps.items()}
        queue = deque(sorted(name for name, count in remaining.items() if count == 0))
        result = []

        while queue:
            node = queue.popleft()
            result.append(node)

            for dependent in sorted(self._dependents[node]):
                remaining[dependent] -= 1
                if remaining[dependent] == 0:
                    queue.append(dependent)

        if len(result) != len(self._deps):
            placed = set(result)
            raise CyclicDependency(sorted(n for n in self._deps if n not in placed))

        return result

    def __contains__(self, name: object) -> bool:
        return name in self._deps

    def _walk(self, sources: Iterable[str], adjacency: dict[str, list[str]]) -> set[str]:
        seen = set()
        stack = [s for s in sources if s in adjacency]

        while stack:
            node = stack.pop()
            if node in seen:
                continue
            seen.add(node)
            stack.extend(adjacency[node])

        return seen

    def reachable(self, sources: Iterable[str]) -> set[str]:
        """
        Forward closure of sources.

        Args:
            sources: Starting plugin names (unknown names are ignored)

        Returns:
            The sources plus every plugin they transitively depend on
        """
        return self._walk(sources, self._deps)

    def reaching(self, sources: Iterable[str]) -> set[str]:
        """
        Reverse closure of sources.

        Args:
            sources: Starting plugin names (unknown names are ignored)

        Returns:
            The sources plus every plugin that transitively depends on them
        """
        return self._walk(sources, self._dependents)

    def topological_order(self, names: Iterable[str]) -> list[str]:
        """
        Order names so dependencies come before their dependents.

        Args:
            names: Plugin names to order (unknown names are dropped)

        Returns:
            Ordered list of names
        """
        wanted = set(names)
        return [name for name in self._order if name in wanted]


def dependencies(
    sources: Iterable[str], catalog: Catalog, reverse: bool = False
) -> set[str]:
    """
    Calculate the dependency closure of sources over a catalog.

    A fresh graph is built for every call.

    Args:
        sources: Starting plugin names
        catalog: Validated plugin catalog
        reverse: False for what sources need, True for what needs sources

    Returns:
        Set of plugin names

    Raises:
        CyclicDependency: If the catalog's dependencies contain a cycle
    """
    graph = DependencyGraph.from_catalog(catalog)
    if reverse:
        return graph.reaching(sources)
    return graph.reachable(sources)
