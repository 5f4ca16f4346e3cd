"""Tests for the ContextRegistry of live containers."""

import logging

import pytest

from dibind.container import Container
from dibind.context import ContextRegistry
from dibind.exceptions import DIBindContainerNotFoundError, DIBindDuplicateContainerError


class NameableContainer(Container):
    pass


class UnboundContainer(Container):
    pass


class Resource:
    def __init__(self) -> None:
        self.dispose_calls = 0

    def dispose(self) -> None:
        self.dispose_calls += 1


class TestRegistration:
    def test_container_registers_under_its_name(self, dibind_context: ContextRegistry) -> None:
        container = Container("Named", context=dibind_context)

        assert "Named" in dibind_context
        assert len(dibind_context) == 1
        assert dibind_context.containers == [container]
        assert list(dibind_context) == [container]

    def test_duplicate_name_is_rejected(self, dibind_context: ContextRegistry) -> None:
        existing = Container("Named", context=dibind_context)

        with pytest.raises(DIBindDuplicateContainerError) as exc_info:
            Container("Named", context=dibind_context)

        assert exc_info.value.name == "Named"
        assert exc_info.value.existing is existing
        assert dibind_context.get_container_by_name("Named") is existing

    def test_same_name_in_other_registries(self, dibind_context: ContextRegistry) -> None:
        other_context = ContextRegistry()
        try:
            first = Container("Named", context=dibind_context)
            second = Container("Named", context=other_context)

            assert dibind_context.get_container_by_name("Named") is first
            assert other_context.get_container_by_name("Named") is second
        finally:
            other_context.global_dispose()

    def test_remove_unknown_container_logs(
        self,
        dibind_context: ContextRegistry,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        container = Container("Transient", context=dibind_context)
        container.dispose()

        with caplog.at_level(logging.INFO, logger="dibind.context"):
            dibind_context.remove_container(container)

        assert "is not registered" in caplog.text
        assert len(dibind_context) == 0

    def test_remove_drops_outgoing_edges(self, dibind_context: ContextRegistry) -> None:
        Container("Parent", context=dibind_context)
        child = Container("Child", parents=["Parent"], context=dibind_context)
        assert dibind_context.get_inheritance_edges("Child") == ["Parent"]

        child.dispose()

        assert dibind_context.get_inheritance_edges("Child") == []


class TestLookup:
    def test_get_container_by_name(self, dibind_context: ContextRegistry) -> None:
        container = NameableContainer(context=dibind_context)

        assert dibind_context.get_container_by_name("NameableContainer") is container

    def test_unknown_name_raises(self, dibind_context: ContextRegistry) -> None:
        with pytest.raises(DIBindContainerNotFoundError) as exc_info:
            dibind_context.get_container_by_name("Missing")

        assert exc_info.value.name == "Missing"
        assert exc_info.value.container_type is None

    def test_get_container_by_type_uses_class_name(self, dibind_context: ContextRegistry) -> None:
        container = NameableContainer(context=dibind_context)

        assert dibind_context.get_container_by_type(NameableContainer) is container

    def test_get_container_by_type_and_name(self, dibind_context: ContextRegistry) -> None:
        container = NameableContainer("One", context=dibind_context)

        assert dibind_context.get_container_by_type(NameableContainer, "One") is container
        assert dibind_context.get_container_by_type(Container, "One") is container

    def test_get_container_by_wrong_type_raises(self, dibind_context: ContextRegistry) -> None:
        NameableContainer("One", context=dibind_context)

        with pytest.raises(DIBindContainerNotFoundError) as exc_info:
            dibind_context.get_container_by_type(UnboundContainer, "One")

        assert exc_info.value.container_type is UnboundContainer
        assert "UnboundContainer" in str(exc_info.value)

    def test_disposed_container_is_not_found(self, dibind_context: ContextRegistry) -> None:
        container = NameableContainer(context=dibind_context)
        container.dispose()

        with pytest.raises(DIBindContainerNotFoundError):
            dibind_context.get_container_by_type(NameableContainer)


class TestGlobalDispose:
    def test_disposes_every_container(self, dibind_context: ContextRegistry) -> None:
        first = Container("First", context=dibind_context)
        second = Container("Second", parents=[first], context=dibind_context)
        first_resource = Resource()
        second_resource = Resource()
        first.bind(Resource, instance=first_resource)
        second.bind(Resource, instance=second_resource)

        dibind_context.global_dispose()

        assert first.is_disposed
        assert second.is_disposed
        assert first_resource.dispose_calls == 1
        assert second_resource.dispose_calls == 1
        assert len(dibind_context) == 0
        assert dibind_context.get_inheritance_edges("Second") == []

    def test_mutually_inheriting_containers(self, dibind_context: ContextRegistry) -> None:
        first = Container("First", context=dibind_context)
        second = Container("Second", parents=["First"], context=dibind_context)
        first.inherit_from(second)
        resource = Resource()
        first.bind(Resource, instance=resource)

        dibind_context.global_dispose()

        assert resource.dispose_calls == 1
        assert first.is_disposed
        assert second.is_disposed

    def test_global_dispose_continues_past_failing_container(
        self,
        dibind_context: ContextRegistry,
    ) -> None:
        class Broken:
            def dispose(self) -> None:
                msg = "release failed"
                raise RuntimeError(msg)

        first = Container("First", context=dibind_context)
        second = Container("Second", context=dibind_context)
        resource = Resource()
        first.bind(Broken, instance=Broken())
        second.bind(Resource, instance=resource)

        with pytest.raises(RuntimeError, match="release failed"):
            dibind_context.global_dispose()

        assert second.is_disposed
        assert resource.dispose_calls == 1
        assert len(dibind_context) == 0
        assert "Second" not in dibind_context

    def test_registry_is_usable_after_global_dispose(self, dibind_context: ContextRegistry) -> None:
        Container("Named", context=dibind_context)
        dibind_context.global_dispose()

        container = Container("Named", context=dibind_context)

        assert dibind_context.get_container_by_name("Named") is container
        container.dispose()
        assert "Named" not in dibind_context
