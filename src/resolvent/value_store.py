"""
Execution of resolution plans into value stores.

The Executor runs each factory of a plan in order, feeding it the values
produced by the factories before it. Outputs are collected into a ValueStore
keyed by type. Execution stops at the first factory that reports a failure,
and nothing produced up to that point is returned.
"""

from collections.abc import Mapping
from typing import Any, Iterator

from resolvent.constants import LOGGER
from resolvent.domain import FactoryDescriptor
from resolvent.errors import FactoryFailedError, InvocationError, type_name
from resolvent.invoker import FactoryInvoker
from resolvent.plan import ResolutionPlan

__all__ = ["ValueStore", "Executor"]


class ValueStore(Mapping):
    """
    The values produced by a successful resolve call, keyed by type.

    Attributes:
        build_order: Names of the factories that ran, in the order they ran.

    Example:
        >>> store = resolve(registry)
        >>> connection = store[Connection]
    """

    def __init__(self, values: dict[Any, Any], build_order: list[str]):
        self._values = dict(values)
        self.build_order = tuple(build_order)

    def __getitem__(self, key: Any) -> Any:
        try:
            return self._values[key]
        except KeyError:
            raise KeyError(f"No value of type {type_name(key)}") from None

    def __iter__(self) -> Iterator[Any]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"ValueStore({[type_name(t) for t in self._values]})"


class Executor:
    """Run the factories of a :class:`ResolutionPlan` in order."""

    def __init__(self, plan: ResolutionPlan, invoker: FactoryInvoker):
        self._plan = plan
        self._invoker = invoker

    def execute(self) -> ValueStore:
        """Invoke every factory of the plan and collect their outputs.

        Returns:
            A :class:`ValueStore` holding every value produced.

        Raises:
            FactoryFailedError: If a factory returns a non-``None`` failure value.
            InvocationError: If a factory cannot be invoked.
        """
        values: dict[Any, Any] = {}

        for descriptor in self._plan.ordered_factories():
            arguments = [
                _look_up(values, descriptor, required_type)
                for required_type in descriptor.requires
            ]

            LOGGER.debug("Invoking factory '%s'", descriptor.name)
            for provided_type, value in self._invoker.invoke(descriptor, arguments):
                if descriptor.is_failure(provided_type) and value is not None:
                    LOGGER.warning("Factory '%s' failed: %r", descriptor.name, value)
                    raise FactoryFailedError(descriptor.name, value)
                values[provided_type] = value

        return ValueStore(values, self._plan.build_order)


def _look_up(values: dict[Any, Any], descriptor: FactoryDescriptor, required_type: Any) -> Any:
    if required_type not in values:
        raise InvocationError(
            descriptor.name,
            f"required value of type {type_name(required_type)} was never produced",
        )
    return values[required_type]
