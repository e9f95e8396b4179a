"""Resolvent: type-directed factory resolution.

Resolvent runs a set of independently written factories ("plugins") in an
order inferred purely from the types each one requires and provides. A host
application registers factories without knowing how they relate; on resolve,
every factory runs once, after the producers of all the types it needs, and
the values they produce are collected by type.

Key Features:
    - Input and output types inferred from standard type hints, or declared explicitly
    - One producer per type, enforced at registration
    - Every missing dependency reported at once
    - Cycle detection naming the factories involved
    - Failure signalled by returning a value of a declared failure type

Basic Usage:
    >>> from resolvent.registry import FactoryRegistry
    >>> from resolvent.builders import resolve
    >>>
    >>> registry = FactoryRegistry()
    >>>
    >>> @registry.factory()
    >>> def make_database(config: Config) -> tuple[Database, Optional[Exception]]:
    ...     return Database(config.url), None
    >>>
    >>> store = resolve(registry)
    >>> db = store[Database]

The package consists of several modules:
    - registry: Factory registration and signature introspection
    - domain: The FactoryDescriptor model
    - graph: Dependency ordering with cycle detection
    - plan: Producer lookup, missing-dependency detection and ordering
    - invoker: Invocation of a single factory
    - value_store: Ordered execution into a ValueStore
    - builders: High-level entry points
    - errors: Resolver exceptions
"""
