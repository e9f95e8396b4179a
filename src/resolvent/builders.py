"""High level entry points for resolving registries."""

from resolvent.constants import LOGGER
from resolvent.invoker import FactoryInvoker
from resolvent.plan import ResolutionPlan, ResolutionPlanBuilder
from resolvent.registry import FactoryRegistry
from resolvent.value_store import Executor, ValueStore

__all__ = ["make_plan", "resolve"]


def make_plan(registry: FactoryRegistry) -> ResolutionPlan:
    """Create a :class:`ResolutionPlan` for the given registry without running anything.

    Args:
        registry: The registry containing the factories to order.

    Returns:
        The plan describing the order factories will run in.

    Raises:
        MissingDependenciesError: If required types have no producer.
        CircularDependencyError: If factories depend on each other in a cycle.

    Example:
        >>> plan = make_plan(registry)
        >>> print(plan.build_order)
    """
    return ResolutionPlanBuilder().build(registry)


def resolve(registry: FactoryRegistry) -> ValueStore:
    """Run every factory of the registry in dependency order.

    The graph is rebuilt and re-sorted on every call, so this is meant to be
    called once, at startup, rather than repeatedly.

    Args:
        registry: The registry containing the factories to run.

    Returns:
        The :class:`ValueStore` of every value the factories produced.

    Raises:
        MissingDependenciesError: If required types have no producer.
        CircularDependencyError: If factories depend on each other in a cycle.
        FactoryFailedError: If a factory returns a non-``None`` failure value.
        InvocationError: If a factory raises or returns a malformed result.
    """
    plan = make_plan(registry)
    store = Executor(plan, FactoryInvoker()).execute()
    LOGGER.info("Resolved %d factories into %d values", len(plan.build_order), len(store))
    return store
