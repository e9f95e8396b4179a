"""Exception hierarchy for resolvent.

Every error raised by the resolver derives from :class:`ResolutionError`, so a
host application can catch any registration or resolution failure with a
single ``except ResolutionError`` clause.
"""

from typing import Any, Iterable, Mapping, Optional

__all__ = [
    "ResolutionError",
    "InvalidFactoryError",
    "NotCallableError",
    "DuplicateNameError",
    "DuplicateProducerError",
    "MissingDependenciesError",
    "CircularDependencyError",
    "FactoryFailedError",
    "InvocationError",
    "type_name",
]


def type_name(type_id: Any) -> str:
    """Render a type identifier as a stable string for diagnostics.

    Classes render as their qualified name; any other annotation (generic
    aliases, ``Annotated`` types, ``NewType`` tokens) renders as its ``repr``.

    Example:
        >>> type_name(int)                  # "int"
        >>> type_name(Callable[[str], str]) # "typing.Callable[[str], str]"
    """
    if isinstance(type_id, type):
        return type_id.__qualname__
    return repr(type_id)


class ResolutionError(Exception):
    """Base class for all errors raised while registering or resolving factories."""

    pass


class InvalidFactoryError(ResolutionError):
    """Raised when ``None`` (or an empty name) is registered as a factory."""

    pass


class NotCallableError(ResolutionError):
    """Raised when a factory has no well-defined input/output type signature.

    Attributes:
        factory: The object that was rejected.
    """

    def __init__(self, factory: Any, reason: str):
        super().__init__(f"{factory!r} cannot be used as a factory: {reason}")
        self.factory = factory


class DuplicateNameError(ResolutionError):
    def __init__(self, name: str):
        super().__init__(f"Duplicate factory name '{name}'")
        self.name = name


class DuplicateProducerError(ResolutionError):
    """Raised when two factories declare the same non-failure produced type.

    Attributes:
        provided_type: The contested type.
        existing: Name of the factory already registered as its producer.
        rejected: Name of the factory whose registration was refused.
    """

    def __init__(self, provided_type: Any, existing: str, rejected: str):
        super().__init__(
            f"Type {type_name(provided_type)} is provided by '{existing}', "
            f"so '{rejected}' cannot also provide it"
        )
        self.provided_type = provided_type
        self.existing = existing
        self.rejected = rejected


class MissingDependenciesError(ResolutionError):
    """Raised when required types have no registered producer.

    All missing types found in the registry are reported together.

    Attributes:
        missing: The missing type identifiers.
        missing_names: Stable string renderings of ``missing``, sorted.
        required_by: Mapping from each missing type's rendering to the names of
            the factories requiring it.
    """

    def __init__(self, required_by: Mapping[Any, Iterable[str]]):
        self.missing = frozenset(required_by)
        self.required_by = {
            type_name(missing_type): tuple(factory_names)
            for missing_type, factory_names in required_by.items()
        }
        self.missing_names = tuple(sorted(self.required_by))
        details = ", ".join(
            f"{name} (required by {', '.join(self.required_by[name])})"
            for name in self.missing_names
        )
        super().__init__(f"Missing dependencies: {details}")


class CircularDependencyError(ResolutionError):
    """Raised when no execution order exists because factories depend on each other.

    Attributes:
        names: Names of the factories taking part in the cycle(s).
    """

    def __init__(self, names: Iterable[str]):
        self.names = tuple(names)
        super().__init__(f"Circular dependency between factories: {list(self.names)}")


class FactoryFailedError(ResolutionError):
    """Raised when a factory yields a non-``None`` value of its failure type.

    Attributes:
        factory: Name of the failing factory.
        failure: The failure value, exactly as the factory returned it.
    """

    def __init__(self, factory: str, failure: Any):
        super().__init__(f"Factory '{factory}' failed: {failure}")
        self.factory = factory
        self.failure = failure


class InvocationError(ResolutionError):
    """Raised when a factory cannot be invoked or its result cannot be unpacked.

    Attributes:
        factory: Name of the factory being invoked.
        cause: The underlying exception, if the factory raised one.
    """

    def __init__(self, factory: str, message: str, cause: Optional[Exception] = None):
        super().__init__(f"Invocation of factory '{factory}' failed: {message}")
        self.factory = factory
        self.cause = cause
