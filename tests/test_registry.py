import functools
from dataclasses import dataclass
from typing import Annotated, Callable, NewType, Optional

import pytest

from resolvent.errors import (
    DuplicateNameError,
    DuplicateProducerError,
    InvalidFactoryError,
    NotCallableError,
)
from resolvent.registry import (
    FactoryDescriptor,
    FactoryRegistry,
    ensure_valid_factory,
    inferred_name,
)

UserId = NewType("UserId", str)


class Config:
    pass


class Connection:
    pass


class Problem:
    pass


@pytest.fixture
def registry():
    return FactoryRegistry()


@pytest.fixture
def factory_finder(registry):
    def find(name: str) -> FactoryDescriptor:
        return next(f for f in registry.registered_factories() if f.name == name)

    return find


def test_factory_is_registered_with_inferred_signature(registry, factory_finder):
    @registry.factory()
    def make_connection(config: Config, user: UserId) -> Connection:
        return Connection()

    connection = factory_finder("connection")
    assert connection.requires == (Config, UserId)
    assert connection.provides == (Connection,)
    assert connection.func is make_connection
    assert connection.index == 0


def test_decorator_returns_target_unchanged(registry):
    @registry.factory()
    def make_config() -> Config:
        return Config()

    assert isinstance(make_config(), Config)


def test_factory_may_require_the_same_type_twice(registry, factory_finder):
    @registry.factory(name="pair")
    def pair(left: Config, right: Config) -> Connection:
        pass

    assert factory_finder("pair").requires == (Config, Config)


def test_tuple_return_provides_each_element(registry, factory_finder):
    @registry.factory()
    def make_both() -> tuple[Config, Connection]:
        pass

    assert factory_finder("both").provides == (Config, Connection)


def test_factory_can_provide_nothing(registry, factory_finder):
    @registry.factory()
    def unannotated(config: Config):
        pass

    @registry.factory()
    def returns_none(config: Config) -> None:
        pass

    @registry.factory()
    def returns_empty_tuple(config: Config) -> tuple[()]:
        pass

    assert factory_finder("unannotated").provides == ()
    assert factory_finder("returns_none").provides == ()
    assert factory_finder("returns_empty_tuple").provides == ()


def test_class_provides_itself_and_requires_its_constructor_arguments(registry, factory_finder):
    @registry.factory()
    @dataclass
    class Service:
        config: Config
        connection: Connection

    service = factory_finder("Service")
    assert service.requires == (Config, Connection)
    assert service.provides == (Service,)


def test_explicit_declaration_overrides_inference(registry, factory_finder):
    def build(*parts):
        return Connection(), None

    registry.register(
        "explicit", build, requires=[Config, UserId], provides=[Connection, Exception]
    )

    explicit = factory_finder("explicit")
    assert explicit.requires == (Config, UserId)
    assert explicit.provides == (Connection, Exception)


def test_annotated_types_are_distinct_identifiers(registry):
    @registry.factory()
    def make_primary() -> Annotated[Connection, "primary"]:
        pass

    @registry.factory()
    def make_replica() -> Annotated[Connection, "replica"]:
        pass

    assert registry.producer_of(Annotated[Connection, "primary"]).name == "primary"
    assert registry.producer_of(Annotated[Connection, "replica"]).name == "replica"
    assert registry.producer_of(Connection) is None


def test_generic_aliases_are_type_identifiers(registry):
    @registry.factory()
    def make_greeter() -> Callable[[str], str]:
        return lambda name: f"Hello {name}"

    assert registry.producer_of(Callable[[str], str]).name == "greeter"


def test_name_is_inferred_from_function_or_class():
    def make_database():
        pass

    def my_service():
        pass

    assert inferred_name(make_database) == "database"
    assert inferred_name(my_service) == "my_service"
    assert inferred_name(Config) == "Config"


def test_none_is_an_invalid_factory(registry):
    with pytest.raises(InvalidFactoryError, match="cannot be None"):
        registry.register("nothing", None)

    with pytest.raises(InvalidFactoryError):
        ensure_valid_factory(None)


def test_empty_name_is_rejected(registry):
    with pytest.raises(InvalidFactoryError, match="name cannot be empty"):
        registry.register("", lambda: None)


def test_non_callable_is_rejected(registry):
    with pytest.raises(NotCallableError, match="not callable"):
        registry.register("answer", 42)

    assert len(registry) == 0


def test_unannotated_parameter_is_rejected(registry):
    with pytest.raises(NotCallableError, match="parameter 'untyped' is not annotated"):

        @registry.factory()
        def make_foo(untyped) -> Config:
            pass


@pytest.mark.parametrize(
    "factory",
    [
        lambda *args: None,
        lambda **kwargs: None,
    ],
)
def test_variadic_parameters_are_rejected(registry, factory):
    with pytest.raises(NotCallableError, match="variadic"):
        registry.register("variadic", factory)


def test_required_keyword_only_parameter_is_rejected(registry):
    def make_foo(*, config: Config) -> Connection:
        pass

    with pytest.raises(NotCallableError, match="keyword-only"):
        registry.register("foo", make_foo)


def test_keyword_only_parameter_with_default_is_ignored(registry, factory_finder):
    def make_foo(config: Config, *, retries: int = 3) -> Connection:
        pass

    registry.register("foo", make_foo)
    assert factory_finder("foo").requires == (Config,)


def test_variable_length_tuple_return_is_rejected(registry):
    def make_many() -> tuple[Connection, ...]:
        pass

    with pytest.raises(NotCallableError, match="variable-length"):
        registry.register("many", make_many)


def test_more_than_one_failure_output_is_rejected(registry):
    def make_twice() -> tuple[Connection, Exception, Exception]:
        pass

    with pytest.raises(NotCallableError, match="more than one output"):
        registry.register("twice", make_twice)


def test_duplicate_name_is_rejected_and_registry_unchanged(registry):
    @registry.factory(name="config")
    def first() -> Config:
        pass

    with pytest.raises(DuplicateNameError, match="Duplicate factory name 'config'"):

        @registry.factory(name="config")
        def second() -> Connection:
            pass

    assert len(registry) == 1
    assert registry.producer_of(Connection) is None


@pytest.mark.parametrize("order", [("a", "b"), ("b", "a")])
def test_duplicate_producer_is_rejected_regardless_of_order(registry, order):
    factories = {
        "a": lambda: Config(),
        "b": lambda: Config(),
    }
    first, second = order

    registry.register(first, factories[first], provides=[Config])
    with pytest.raises(DuplicateProducerError) as exc_info:
        registry.register(second, factories[second], provides=[Config])

    assert exc_info.value.provided_type is Config
    assert exc_info.value.existing == first
    assert exc_info.value.rejected == second
    assert second not in registry


def test_rejected_registration_records_none_of_its_types(registry):
    @registry.factory()
    def make_connection() -> Connection:
        pass

    with pytest.raises(DuplicateProducerError):

        @registry.factory()
        def make_both() -> tuple[Config, Connection]:
            pass

    assert registry.producer_of(Config) is None
    assert registry.producer_of(Connection).name == "connection"
    assert [f.name for f in registry.registered_factories()] == ["connection"]


def test_factory_cannot_provide_the_same_type_twice(registry):
    def make_configs() -> tuple[Config, Config]:
        pass

    with pytest.raises(DuplicateProducerError):
        registry.register("configs", make_configs)


def test_failure_type_is_exempt_from_uniqueness(registry):
    @registry.factory()
    def make_config() -> tuple[Config, Optional[Exception]]:
        pass

    @registry.factory()
    def make_connection() -> tuple[Connection, Exception | None]:
        pass

    assert len(registry) == 2
    assert registry.producer_of(Exception) is None


def test_optional_failure_type_is_normalised(registry, factory_finder):
    @registry.factory()
    def make_config() -> tuple[Config, Optional[Exception]]:
        pass

    config = factory_finder("config")
    assert config.provides == (Config, Exception)
    assert config.produced_types == (Config,)


def test_failure_type_can_be_chosen_per_registry():
    registry = FactoryRegistry(failure_type=Problem)

    @registry.factory()
    def make_config() -> tuple[Config, Optional[Problem]]:
        pass

    @registry.factory()
    def make_other() -> tuple[Connection, Problem]:
        pass

    @registry.factory()
    def make_error() -> Exception:
        pass

    assert registry.producer_of(Problem) is None
    assert registry.producer_of(Exception).name == "error"


def test_failure_type_can_be_overridden_per_factory(registry, factory_finder):
    @registry.factory(failure_type=Problem)
    def make_config() -> tuple[Config, Problem]:
        pass

    @registry.factory(failure_type=None)
    def make_error() -> Exception:
        pass

    assert factory_finder("config").failure_type is Problem
    assert factory_finder("error").failure_type is None
    assert registry.producer_of(Exception).name == "error"


def test_produced_type_cannot_be_an_earlier_failure_output(registry):
    @registry.factory(failure_type=ValueError)
    def make_config() -> tuple[Config, Optional[ValueError]]:
        pass

    with pytest.raises(DuplicateProducerError) as exc_info:

        @registry.factory()
        def make_value() -> ValueError:
            pass

    assert exc_info.value.provided_type is ValueError
    assert exc_info.value.existing == "config"
    assert exc_info.value.rejected == "value"
    assert "value" not in registry
    assert registry.producer_of(ValueError) is None


def test_failure_output_cannot_be_an_earlier_produced_type(registry):
    @registry.factory()
    def make_value() -> ValueError:
        pass

    with pytest.raises(DuplicateProducerError) as exc_info:

        @registry.factory(failure_type=ValueError)
        def make_config() -> tuple[Config, Optional[ValueError]]:
            pass

    assert exc_info.value.provided_type is ValueError
    assert exc_info.value.existing == "value"
    assert exc_info.value.rejected == "config"
    assert "config" not in registry
    assert registry.producer_of(Config) is None


def test_failure_type_without_failure_output_does_not_clash(registry):
    @registry.factory(failure_type=None)
    def make_error() -> Exception:
        pass

    @registry.factory()
    def make_config() -> Config:
        pass

    assert registry.producer_of(Exception).name == "error"
    assert len(registry) == 2


def test_single_element_tuple_return_is_unpacked(registry, factory_finder):
    @registry.factory()
    def make_config() -> tuple[Config]:
        pass

    @registry.factory()
    def make_connection() -> Connection:
        pass

    registry.register("explicit", lambda: None, provides=[UserId])

    assert factory_finder("config").provides == (Config,)
    assert factory_finder("config").unpack_outputs
    assert not factory_finder("connection").unpack_outputs
    assert not factory_finder("explicit").unpack_outputs


@pytest.mark.parametrize(
    "annotation",
    ["pytest.no_such_attribute", "Config(", "no_such_name"],
)
def test_unresolvable_string_annotation_is_rejected(registry, annotation):
    def make_connection(config) -> Connection:
        pass

    make_connection.__annotations__["config"] = annotation

    with pytest.raises(NotCallableError, match="signature cannot be inspected"):
        registry.register("connection", make_connection)


def test_nameless_callable_needs_an_explicit_name(registry, factory_finder):
    def build(config: Config) -> Connection:
        pass

    nameless = functools.partial(build)

    with pytest.raises(NotCallableError, match="explicit name"):
        registry.factory()(nameless)

    registry.register("connection", nameless)
    assert factory_finder("connection").requires == (Config,)
