"""Ordering of factories by their dependencies.

The graph records, for every factory name, the names of the factories that
must run before it. Traversal is a Kahn-style elimination performed in
rounds: every factory whose prerequisites have all been yielded is ready, and
the ready factories of a round are yielded in registration order, which keeps
the order deterministic.
"""

from collections import defaultdict, deque
from typing import Iterable, Iterator

from resolvent.errors import CircularDependencyError

__all__ = ["DependencyGraph"]


class DependencyGraph:
    """A directed graph of factory names, edges pointing from prerequisite to dependee."""

    def __init__(self):
        self._dependencies: dict[str, set[str]] = {}
        self._rank: dict[str, int] = {}

    def add_node(self, name: str, rank: int):
        """Add a factory to the graph.

        Args:
            name: The factory name.
            rank: Tie-breaking position; lower ranks are yielded first among
                factories that become ready in the same round.
        """
        self._dependencies.setdefault(name, set())
        self._rank[name] = rank

    def add_dependencies(self, dependee: str, dependencies: Iterable[str]):
        """Record that ``dependee`` must run after each of ``dependencies``."""
        self._dependencies[dependee].update(dependencies)

    def prerequisites(self) -> dict[str, frozenset[str]]:
        return {name: frozenset(deps) for name, deps in self._dependencies.items()}

    def traverse(self) -> Iterator[str]:
        """
        Perform a topological traversal of the dependency graph.

        Yields:
            Factory names in an order where all prerequisites of each factory
            are yielded before the factory itself.

        Raises:
            CircularDependencyError: If some factories can never become ready.
        """
        remaining = {name: set(deps) for name, deps in self._dependencies.items()}
        dependents: dict[str, set[str]] = defaultdict(set)
        for dependee, dependencies in remaining.items():
            for dependency in dependencies:
                dependents[dependency].add(dependee)

        ready = self._ranked(name for name, deps in remaining.items() if not deps)

        while ready:
            next_ready = []
            for name in ready:
                yield name
                del remaining[name]
                for dependee in dependents[name]:
                    dependencies = remaining[dependee]
                    dependencies.discard(name)
                    if not dependencies:
                        next_ready.append(dependee)
            ready = self._ranked(next_ready)

        if remaining:
            raise CircularDependencyError(self._cycle_members(remaining, dependents))

    def _ranked(self, names: Iterable[str]) -> list[str]:
        return sorted(names, key=self._rank.__getitem__)

    def _cycle_members(
        self, remaining: dict[str, set[str]], dependents: dict[str, set[str]]
    ) -> list[str]:
        """Narrow the unorderable factories down to those lying on a cycle.

        Factories left over after elimination either sit on a cycle or depend
        on one. The latter are peeled away from the downstream end: a leftover
        factory nothing else leftover depends on cannot be on a cycle.
        """
        downstream = {
            name: {dependee for dependee in dependents[name] if dependee in remaining}
            for name in remaining
        }
        peelable = deque(name for name, dependees in downstream.items() if not dependees)
        peeled = set()

        while peelable:
            name = peelable.popleft()
            peeled.add(name)
            for dependency in remaining[name]:
                dependees = downstream[dependency]
                dependees.discard(name)
                if not dependees and dependency not in peeled:
                    peelable.append(dependency)

        return self._ranked(name for name in remaining if name not in peeled)
