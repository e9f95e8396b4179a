"""Registration and introspection utilities for factories."""

import inspect
import types
from typing import (
    Any,
    Callable,
    Iterable,
    Optional,
    Union,
    get_args,
    get_origin,
)

from resolvent.constants import LOGGER, MAKE_PREFIX
from resolvent.domain import FactoryDescriptor
from resolvent.errors import (
    DuplicateNameError,
    DuplicateProducerError,
    InvalidFactoryError,
    NotCallableError,
    type_name,
)

__all__ = [
    "FactoryDescriptor",
    "FactoryRegistry",
    "ensure_valid_factory",
    "inferred_name",
    "make_descriptor",
]

_REGISTRY_DEFAULT: Any = object()
"""Marker meaning "use the registry's failure type"."""

_NONE_TYPES = (None, type(None))


def ensure_valid_factory(item: Any) -> None:
    """Check that an item can be used as a factory at all.

    Raises:
        InvalidFactoryError: If the item is ``None``.
        NotCallableError: If the item is not callable.
    """
    if item is None:
        raise InvalidFactoryError("Factory cannot be None")
    if not callable(item):
        raise NotCallableError(item, "it is not callable")


def inferred_name(target: Any) -> str:
    """Derive a factory name from a class or function name, removing any 'make_' prefix.

    Example:
        >>> inferred_name(Database)       # Returns "Database"
        >>> inferred_name(make_database)  # Returns "database"
        >>> inferred_name(my_service)     # Returns "my_service"

    Raises:
        NotCallableError: If the target has no name to derive one from.
    """
    if inspect.isclass(target):
        return target.__name__

    name = getattr(target, "__name__", None)
    if name is None:
        raise NotCallableError(
            target,
            "it has no __name__ to infer a factory name from; register it with an explicit name",
        )
    if name.startswith(MAKE_PREFIX) and len(name) > len(MAKE_PREFIX):
        return name[len(MAKE_PREFIX):]
    return name


def make_descriptor(
    name: str,
    func: Callable,
    index: int,
    failure_type: Optional[Any],
    requires: Optional[Iterable[Any]] = None,
    provides: Optional[Iterable[Any]] = None,
) -> FactoryDescriptor:
    """Create a FactoryDescriptor, inferring whatever part of its signature was not declared.

    Args:
        name: Unique name to give the factory.
        func: The callable (function, class or other callable object).
        index: Registration position of the factory.
        failure_type: The type signalling failure when returned non-``None``.
        requires: Explicitly declared input types; inferred from the positional
            parameter annotations if omitted.
        provides: Explicitly declared output types; inferred from the return
            annotation if omitted; a class provides itself.

    Returns:
        The validated descriptor.

    Raises:
        InvalidFactoryError: If ``func`` is ``None`` or ``name`` is empty.
        NotCallableError: If ``func`` has no well-defined type signature.
    """
    ensure_valid_factory(func)
    if not name:
        raise InvalidFactoryError("Factory name cannot be empty")

    is_class = inspect.isclass(func)
    if requires is None or (provides is None and not is_class):
        signature = _signature(func)
    if requires is None:
        requires = _inferred_requirements(func, signature)
    if provides is None and is_class:
        provides, unpack_outputs = (func,), False
    elif provides is None:
        provides, unpack_outputs = _inferred_provisions(func, signature)
    else:
        provides = tuple(provides)
        unpack_outputs = len(provides) != 1

    requires = tuple(requires)
    provides = tuple(_normalised(t, failure_type) for t in provides)
    _ensure_hashable(func, requires + provides)

    if failure_type is not None and sum(1 for t in provides if t == failure_type) > 1:
        raise NotCallableError(
            func, f"more than one output is of the failure type {type_name(failure_type)}"
        )

    return FactoryDescriptor(
        name, func, requires, provides, failure_type, index, unpack_outputs
    )


class FactoryRegistry:
    """Registry of factories, indexed by unique name and by the types they produce.

    Args:
        failure_type: The type whose non-``None`` value, when output by a
            factory, aborts resolution. Individual registrations may override
            it; ``None`` disables failure signalling.

    Example:
        >>> registry = FactoryRegistry()
        >>>
        >>> @registry.factory()
        >>> def make_connection(config: Config) -> tuple[Connection, Optional[Exception]]:
        ...     ...
    """

    def __init__(self, failure_type: Optional[Any] = Exception):
        self._failure_type = failure_type
        self._factories: dict[str, FactoryDescriptor] = {}
        self._producers: dict[Any, FactoryDescriptor] = {}
        self._failure_outputs: dict[Any, FactoryDescriptor] = {}

    @property
    def failure_type(self) -> Optional[Any]:
        return self._failure_type

    def register(
        self,
        name: str,
        factory: Callable,
        *,
        requires: Optional[Iterable[Any]] = None,
        provides: Optional[Iterable[Any]] = None,
        failure_type: Optional[Any] = _REGISTRY_DEFAULT,
    ) -> FactoryDescriptor:
        """Register a factory under the given name.

        The registry is left unchanged if registration fails.

        Args:
            name: Unique name of the factory.
            factory: The callable to register.
            requires: Optional explicit input types (see :func:`make_descriptor`).
            provides: Optional explicit output types (see :func:`make_descriptor`).
            failure_type: Overrides the registry's failure type for this factory.

        Returns:
            The descriptor that was added.

        Raises:
            InvalidFactoryError: If the factory is ``None`` or the name is empty.
            NotCallableError: If the factory has no usable type signature.
            DuplicateNameError: If the name is already registered.
            DuplicateProducerError: If a produced type already has a producer,
                if it is another factory's failure output, or if this factory's
                failure output is produced by another factory.
        """
        if failure_type is _REGISTRY_DEFAULT:
            failure_type = self._failure_type

        descriptor = make_descriptor(
            name, factory, len(self._factories), failure_type, requires, provides
        )

        if descriptor.name in self._factories:
            raise DuplicateNameError(descriptor.name)

        produced: set[Any] = set()
        for provided_type in descriptor.produced_types:
            existing = self._producers.get(provided_type)
            if existing is not None:
                raise DuplicateProducerError(provided_type, existing.name, descriptor.name)
            if provided_type in produced:
                raise DuplicateProducerError(provided_type, descriptor.name, descriptor.name)
            produced.add(provided_type)

        failure_output = descriptor.failure_output
        if failure_output is not None and failure_output in self._producers:
            raise DuplicateProducerError(
                failure_output, self._producers[failure_output].name, descriptor.name
            )
        for provided_type in produced:
            declarer = self._failure_outputs.get(provided_type)
            if declarer is not None:
                raise DuplicateProducerError(provided_type, declarer.name, descriptor.name)

        self._factories[descriptor.name] = descriptor
        for provided_type in produced:
            self._producers[provided_type] = descriptor
        if failure_output is not None:
            self._failure_outputs.setdefault(failure_output, descriptor)

        LOGGER.debug(
            "Registered factory '%s' requiring %s and providing %s",
            descriptor.name,
            [type_name(t) for t in descriptor.requires],
            [type_name(t) for t in descriptor.provides],
        )
        return descriptor

    def factory(
        self,
        name: Optional[str] = None,
        *,
        requires: Optional[Iterable[Any]] = None,
        provides: Optional[Iterable[Any]] = None,
        failure_type: Optional[Any] = _REGISTRY_DEFAULT,
    ) -> Callable:
        """Decorator to register a function or class as a factory.

        Args:
            name: Optional name; defaults to the function name with any 'make_'
                prefix removed, or the class name.

        Returns:
            A decorator that registers its target and returns it unchanged.

        Example:
            @registry.factory()
            def make_config() -> Config:
                return Config.from_env()
        """

        def decorator(obj):
            self.register(
                name or inferred_name(obj),
                obj,
                requires=requires,
                provides=provides,
                failure_type=failure_type,
            )
            return obj

        return decorator

    def registered_factories(self) -> list[FactoryDescriptor]:
        """Return the registered factories in registration order."""
        return list(self._factories.values())

    def producer_of(self, provided_type: Any) -> Optional[FactoryDescriptor]:
        return self._producers.get(provided_type)

    def producers(self) -> dict[Any, FactoryDescriptor]:
        """Return a snapshot of the type-to-producer mapping."""
        return dict(self._producers)

    def resolve(self):
        """Execute every registered factory in dependency order.

        See :func:`resolvent.builders.resolve`.
        """
        from resolvent.builders import resolve

        return resolve(self)

    def __contains__(self, name: str) -> bool:
        return name in self._factories

    def __len__(self) -> int:
        return len(self._factories)


def _signature(func: Callable) -> inspect.Signature:
    try:
        return inspect.signature(func, eval_str=True)
    except (TypeError, ValueError, NameError, AttributeError, SyntaxError) as e:
        raise NotCallableError(func, f"its signature cannot be inspected ({e})") from e


def _inferred_requirements(func: Callable, signature: inspect.Signature) -> list[Any]:
    """Extract the required types from a callable's positional parameter annotations.

    Example:
        >>> def service(db: Database, cache: Annotated[Cache, "redis"]) -> Service:
        ...     pass
        >>> # Returns [Database, Annotated[Cache, "redis"]]
    """
    requirements = []
    for parameter in signature.parameters.values():
        if parameter.kind in (parameter.VAR_POSITIONAL, parameter.VAR_KEYWORD):
            raise NotCallableError(func, f"variadic parameter '{parameter.name}' has no fixed type")
        if parameter.kind is parameter.KEYWORD_ONLY:
            if parameter.default is parameter.empty:
                raise NotCallableError(
                    func, f"keyword-only parameter '{parameter.name}' cannot be supplied"
                )
            continue
        if parameter.annotation is parameter.empty:
            raise NotCallableError(func, f"parameter '{parameter.name}' is not annotated")
        requirements.append(parameter.annotation)
    return requirements


def _inferred_provisions(
    func: Callable, signature: inspect.Signature
) -> tuple[tuple[Any, ...], bool]:
    """Extract the provided types from a callable's return annotation.

    A ``tuple[A, B]`` return annotation provides each of its element types, and
    the callable returns them as a sequence; this holds for ``tuple[A]`` too. A
    missing or ``None`` annotation provides nothing.

    Returns:
        The provided types, and whether the result must be unpacked into them.
    """
    annotation = signature.return_annotation
    if annotation is signature.empty or annotation in _NONE_TYPES:
        return (), False

    if get_origin(annotation) is tuple:
        args = get_args(annotation)
        if args in ((), ((),)):
            return (), True
        if len(args) == 2 and args[1] is Ellipsis:
            raise NotCallableError(func, "a variable-length tuple has no fixed outputs")
        return args, True

    return (annotation,), False


def _normalised(provided_type: Any, failure_type: Optional[Any]) -> Any:
    """Collapse ``Optional[failure_type]`` to ``failure_type``."""
    if failure_type is None or get_origin(provided_type) not in (Union, types.UnionType):
        return provided_type
    if set(get_args(provided_type)) == {failure_type, type(None)}:
        return failure_type
    return provided_type


def _ensure_hashable(func: Callable, declared: tuple[Any, ...]) -> None:
    for declared_type in declared:
        try:
            hash(declared_type)
        except TypeError as e:
            raise NotCallableError(func, f"type {declared_type!r} is not hashable") from e
