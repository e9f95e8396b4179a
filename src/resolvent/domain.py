"""Domain models used throughout the resolver."""

from dataclasses import dataclass
from typing import Any, Callable, Optional


@dataclass(frozen=True)
class FactoryDescriptor:
    """A registered factory together with its declared type signature.

    Attributes:
        name: Unique name of the factory within its registry.
        func: The callable doing the work.
        requires: Types of the callable's positional inputs, in order. A type
            may appear more than once.
        provides: Types of the callable's outputs, in order.
        failure_type: The type whose non-``None`` value in ``provides`` signals
            that the factory failed, or ``None`` if the factory cannot fail
            that way.
        index: Registration position, used to break ordering ties.
        unpack_outputs: Whether the callable returns its outputs as a sequence
            to be matched against ``provides``, rather than a single value.
    """

    name: str
    func: Callable
    requires: tuple[Any, ...]
    provides: tuple[Any, ...]
    failure_type: Optional[Any]
    index: int
    unpack_outputs: bool = False

    def is_failure(self, provided_type: Any) -> bool:
        return self.failure_type is not None and provided_type == self.failure_type

    @property
    def produced_types(self) -> tuple[Any, ...]:
        """Types this factory is the unique producer of (its failure type excluded)."""
        return tuple(t for t in self.provides if not self.is_failure(t))

    @property
    def failure_output(self) -> Optional[Any]:
        """The failure type, if one of this factory's outputs is of it."""
        return next((t for t in self.provides if self.is_failure(t)), None)
