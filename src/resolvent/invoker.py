"""Invocation of a single factory.

The FactoryInvoker calls a factory with its positional inputs and pairs each
returned value with the output type declared for its position.
"""

from typing import Any

from resolvent.domain import FactoryDescriptor
from resolvent.errors import InvocationError

__all__ = ["FactoryInvoker"]


class FactoryInvoker:
    """Call factories and unpack their results into typed outputs."""

    def invoke(
        self, descriptor: FactoryDescriptor, arguments: list[Any]
    ) -> list[tuple[Any, Any]]:
        """Invoke a factory.

        Args:
            descriptor: The factory being executed.
            arguments: Input values, positionally matching ``descriptor.requires``.

        Returns:
            ``(type, value)`` pairs positionally matching ``descriptor.provides``.

        Raises:
            InvocationError: If the factory raises, or returns a result that
                does not match its declared outputs.
        """
        try:
            result = descriptor.func(*arguments)
        except Exception as e:
            raise InvocationError(
                descriptor.name, f"{e.__class__.__name__}: {e}", e
            ) from e

        return list(zip(descriptor.provides, _unpacked(descriptor, result)))


def _unpacked(descriptor: FactoryDescriptor, result: Any) -> tuple[Any, ...]:
    expected = len(descriptor.provides)
    if expected == 0:
        return ()
    if not descriptor.unpack_outputs:
        return (result,)
    if not isinstance(result, (tuple, list)) or len(result) != expected:
        raise InvocationError(
            descriptor.name,
            f"expected a sequence of {expected} outputs, got {result!r}",
        )
    return tuple(result)
