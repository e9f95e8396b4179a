"""Construction of resolution plans.

A plan is the blueprint of a resolve call: it links every factory to the
producers of the types it requires, reports every requirement without a
producer, and fixes the order in which the factories will run.
"""

from dataclasses import dataclass
from typing import Any

from resolvent.constants import LOGGER
from resolvent.domain import FactoryDescriptor
from resolvent.errors import MissingDependenciesError
from resolvent.graph import DependencyGraph
from resolvent.registry import FactoryRegistry

__all__ = ["ResolutionPlan", "ResolutionPlanBuilder"]


@dataclass(frozen=True)
class ResolutionPlan:
    """Description of how to run the factories of a registry."""

    descriptors: dict[str, FactoryDescriptor]
    """Registered factories keyed by name."""

    dependencies: dict[str, frozenset[str]]
    """Names of the factories each factory must run after."""

    build_order: list[str]
    """Order in which the factories are invoked."""

    def ordered_factories(self) -> list[FactoryDescriptor]:
        return [self.descriptors[name] for name in self.build_order]


class ResolutionPlanBuilder:
    """Resolve the factories of a registry into a :class:`ResolutionPlan`."""

    def build(self, registry: FactoryRegistry) -> ResolutionPlan:
        """Build a plan from a snapshot of the registry.

        Raises:
            MissingDependenciesError: If any required type has no producer. All
                missing types are reported at once.
            CircularDependencyError: If the factories depend on each other in a cycle.
        """
        factories = registry.registered_factories()
        graph = self._build_dependency_graph(factories, registry.producers())
        build_order = list(graph.traverse())

        LOGGER.debug("Resolved build order: %s", build_order)

        return ResolutionPlan(
            {descriptor.name: descriptor for descriptor in factories},
            graph.prerequisites(),
            build_order,
        )

    def _build_dependency_graph(
        self,
        factories: list[FactoryDescriptor],
        producers: dict[Any, FactoryDescriptor],
    ) -> DependencyGraph:
        """
        Construct a graph mapping each factory to the producers of its required types.

        Raises:
            MissingDependenciesError: If a required type has no producer.
        """
        graph = DependencyGraph()
        missing: dict[Any, list[str]] = {}

        for descriptor in factories:
            graph.add_node(descriptor.name, descriptor.index)

        for descriptor in factories:
            dependencies = set()
            for required_type in descriptor.requires:
                producer = producers.get(required_type)
                if producer is None:
                    required_by = missing.setdefault(required_type, [])
                    if descriptor.name not in required_by:
                        required_by.append(descriptor.name)
                    continue
                dependencies.add(producer.name)
            graph.add_dependencies(descriptor.name, dependencies)

        if missing:
            raise MissingDependenciesError(missing)

        return graph
