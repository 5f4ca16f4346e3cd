"""Tests for Binding construction, lifecycles, and disposal."""

from abc import ABC, abstractmethod
from typing import Annotated, Protocol

import pytest

from dibind.bindings import Binding
from dibind.dependencies import Dependency
from dibind.exceptions import DIBindBindingTypeMismatchError
from dibind.markers import Inject
from dibind.types import Lifecycle


class Interface(ABC):
    @abstractmethod
    def name(self) -> str: ...


class ConcreteInterface(Interface):
    def name(self) -> str:
        return "concrete"


class BaseClass:
    pass


class SubClass(BaseClass):
    pass


class SubClassWithFieldDependencies(BaseClass):
    interface: Annotated[Interface, Inject()]
    first_interface: Annotated[Interface, Inject("First")]


class SubClassWithConstructorArgs(BaseClass):
    def __init__(self, count: int, ratio: float) -> None:
        self.count = count
        self.ratio = ratio


class Greeter(Protocol):
    def greet(self, name: str) -> str: ...


class EnglishGreeter:
    def greet(self, name: str) -> str:
        return f"Hello {name}"


class StrictGreeter:
    def greet(self, name: str, punctuation: str) -> str:
        return f"Hello {name}{punctuation}"


class Mute:
    pass


class Resource:
    def __init__(self) -> None:
        self.dispose_calls = 0

    def dispose(self) -> None:
        self.dispose_calls += 1


class Connection:
    def __init__(self) -> None:
        self.closed = False

    def close(self) -> None:
        self.closed = True


class TestBindingValidation:
    def test_to_type_must_inherit_from_type(self) -> None:
        with pytest.raises(DIBindBindingTypeMismatchError) as exc_info:
            Binding(SubClass, BaseClass)

        assert exc_info.value.from_type is SubClass
        assert exc_info.value.to_type is BaseClass
        assert "must inherit from" in str(exc_info.value)

    def test_unrelated_types_are_rejected(self) -> None:
        with pytest.raises(DIBindBindingTypeMismatchError):
            Binding(Interface, SubClass)

    def test_subclass_is_accepted(self) -> None:
        binding = Binding(BaseClass, SubClass)

        assert binding.from_type is BaseClass
        assert binding.to_type is SubClass

    def test_to_type_defaults_to_from_type(self) -> None:
        binding = Binding(SubClass)

        assert binding.to_type is SubClass

    def test_to_type_defaults_to_instance_type(self) -> None:
        instance = SubClass()

        binding = Binding(BaseClass, instance=instance)

        assert binding.to_type is SubClass

    def test_instance_must_match_to_type(self) -> None:
        with pytest.raises(DIBindBindingTypeMismatchError):
            Binding(BaseClass, SubClass, BaseClass())

    def test_non_class_target_is_rejected(self) -> None:
        with pytest.raises(DIBindBindingTypeMismatchError) as exc_info:
            Binding(BaseClass, "SubClass")

        assert "not a class" in str(exc_info.value)


class TestProtocolBindings:
    def test_structural_implementation_is_accepted(self) -> None:
        binding = Binding(Greeter, EnglishGreeter)

        assert binding.resolve().greet("dibind") == "Hello dibind"

    def test_missing_method_is_rejected(self) -> None:
        with pytest.raises(DIBindBindingTypeMismatchError) as exc_info:
            Binding(Greeter, Mute)

        assert "missing member 'greet'" in str(exc_info.value)

    def test_extra_required_parameters_are_rejected(self) -> None:
        with pytest.raises(DIBindBindingTypeMismatchError) as exc_info:
            Binding(Greeter, StrictGreeter)

        assert "requires 2 positional parameters" in str(exc_info.value)


class TestBindingLifecycle:
    def test_default_lifecycle_is_transient(self) -> None:
        binding = Binding(BaseClass, SubClass)

        assert binding.lifecycle is Lifecycle.TRANSIENT
        assert binding.resolve() is not binding.resolve()

    def test_singleton_returns_same_instance(self) -> None:
        binding = Binding(BaseClass, SubClass).as_singleton()

        first = binding.resolve()

        assert isinstance(first, SubClass)
        assert binding.resolve() is first
        assert binding.has_instance_available()

    def test_as_transient_restores_new_instances(self) -> None:
        binding = Binding(BaseClass, SubClass).as_singleton().as_transient()

        assert binding.lifecycle is Lifecycle.TRANSIENT
        assert binding.resolve() is not binding.resolve()
        assert not binding.has_instance_available()

    def test_fluent_methods_return_binding(self) -> None:
        binding = Binding(BaseClass, SubClass)

        assert binding.as_singleton() is binding
        assert binding.as_proxy() is binding
        assert binding.is_proxy

    def test_instance_is_always_returned(self) -> None:
        instance = SubClass()
        binding = Binding(BaseClass, SubClass, instance)

        assert binding.has_instance_available()
        assert binding.resolve() is instance
        assert binding.resolve() is instance

    def test_instance_ignores_arguments(self) -> None:
        instance = SubClassWithConstructorArgs(1, 1.5)
        binding = Binding(BaseClass, instance=instance)

        assert binding.resolve(42, 4.2) is instance

    def test_transient_passes_arguments_to_constructor(self) -> None:
        binding = Binding(BaseClass, SubClassWithConstructorArgs)

        resolved = binding.resolve(42, 4.2)

        assert resolved.count == 42
        assert resolved.ratio == 4.2

    def test_singleton_ignores_arguments_after_first_call(self) -> None:
        binding = Binding(BaseClass, SubClassWithConstructorArgs).as_singleton()

        first = binding.resolve(42, 4.2)
        second = binding.resolve(7, 0.5)

        assert second is first
        assert second.count == 42
        assert second.ratio == 4.2


class TestBindingDependencies:
    def test_dependencies_are_discovered_once(self) -> None:
        binding = Binding(BaseClass, SubClassWithFieldDependencies)

        dependencies = binding.get_dependencies()

        assert binding.get_dependencies() is dependencies
        assert [dependency.member_name for dependency in dependencies] == [
            "interface",
            "first_interface",
        ]

    def test_custom_dependency_finder_is_used(self) -> None:
        class FixedFinder:
            def __init__(self) -> None:
                self.calls: list[type] = []

            def get_dependencies(self, cls: type) -> list[Dependency]:
                self.calls.append(cls)
                return []

        finder = FixedFinder()
        binding = Binding(BaseClass, SubClassWithFieldDependencies, dependency_finder=finder)

        assert binding.get_dependencies() == []
        assert finder.calls == [SubClassWithFieldDependencies]


class TestBindingDispose:
    def test_dispose_clears_dependencies_and_instance(self) -> None:
        binding = Binding(BaseClass, SubClassWithFieldDependencies).as_singleton()
        binding.resolve()
        dependencies = binding.get_dependencies()
        assert len(dependencies) == 2

        binding.dispose()

        assert dependencies == []
        assert not binding.has_instance_available()

    def test_dispose_calls_release_hook_once(self) -> None:
        binding = Binding(Resource).as_singleton()
        resource = binding.resolve()

        binding.dispose()
        binding.dispose()

        assert resource.dispose_calls == 1

    def test_dispose_falls_back_to_close(self) -> None:
        connection = Connection()
        binding = Binding(Connection, instance=connection)

        binding.dispose()

        assert connection.closed

    def test_transient_instances_are_not_released(self) -> None:
        binding = Binding(Resource)
        resource = binding.resolve()

        binding.dispose()

        assert resource.dispose_calls == 0

    def test_on_dispose_runs_after_release(self) -> None:
        events: list[str] = []

        class TrackingBinding(Binding):
            def on_dispose(self) -> None:
                events.append(f"disposed, instance={self.has_instance_available()}")

        binding = TrackingBinding(Resource).as_singleton()
        binding.resolve()

        binding.dispose()

        assert events == ["disposed, instance=False"]

    def test_on_dispose_runs_when_release_hook_raises(self) -> None:
        events: list[str] = []

        class Failing:
            def dispose(self) -> None:
                msg = "release failed"
                raise RuntimeError(msg)

        class TrackingBinding(Binding):
            def on_dispose(self) -> None:
                events.append("disposed")

        binding = TrackingBinding(Failing, instance=Failing())

        with pytest.raises(RuntimeError, match="release failed"):
            binding.dispose()

        assert events == ["disposed"]
        assert not binding.has_instance_available()


def test_repr_mentions_types_and_lifecycle() -> None:
    binding = Binding(BaseClass, SubClass).as_singleton()

    assert repr(binding) == "Binding(BaseClass -> SubClass, lifecycle=singleton, instance=False)"
