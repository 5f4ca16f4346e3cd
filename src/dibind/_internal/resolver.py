from __future__ import annotations

from typing import TYPE_CHECKING, Any

from dibind.dependencies import ConstructorDependency, Dependency
from dibind.exceptions import (
    DIBindCircularDependencyError,
    DIBindCircularProxyError,
    DIBindResolutionError,
)
from dibind.types import CircularDependencyPolicy, Lifecycle, MemberKind

if TYPE_CHECKING:
    from dibind.bindings import Binding
    from dibind.container import Container


class Resolver:
    """Build one object graph for a single ``Container.resolve`` call.

    Constructor arguments are resolved first, then the instance is built, then
    injected members are resolved and assigned, each group in discovery order.

    For every owner type the resolver keeps the bindings whose resolution is
    still in progress beneath it. Requesting one of them again for the same
    owner is a cycle, which ``circular_policy`` decides to reject or allow.
    With ``CircularDependencyPolicy.STRICT`` any binding still on the current
    resolution path is rejected, even when its singleton already exists.
    """

    def __init__(self, container: Container, circular_policy: CircularDependencyPolicy) -> None:
        self._container = container
        self._circular_policy = circular_policy
        self._in_progress: dict[type[Any], list[Binding]] = {}
        self._path: list[Binding] = []

    def resolve(self, service_type: Any, category: str) -> Any:
        return self._resolve(service_type, None, category)

    def _resolve(
        self,
        service_type: Any,
        owner: type[Any] | None,
        category: str,
        dependency: Dependency | None = None,
        resolving_onto: object | None = None,
    ) -> Any:
        self._container.pre_resolve(service_type, owner, category, dependency, resolving_onto)
        binding = self._follow_proxies(
            self._container.get_binding(service_type, category),
            owner or service_type,
            category,
        )
        if self._circular_policy is CircularDependencyPolicy.STRICT and binding in self._path:
            raise DIBindCircularDependencyError(owner or service_type, binding.to_type)

        if binding.has_instance_available():
            return binding.resolve(resolving_onto=resolving_onto, dependency=dependency)

        in_progress = self._in_progress.setdefault(owner, []) if owner is not None else []
        if binding in in_progress and self._is_fatal_revisit(binding, dependency):
            raise DIBindCircularDependencyError(owner or service_type, binding.to_type)

        in_progress.append(binding)
        self._path.append(binding)
        try:
            return self._build(binding, service_type, owner, dependency, resolving_onto)
        finally:
            self._path.pop()
            in_progress.remove(binding)

    def _build(
        self,
        binding: Binding,
        service_type: Any,
        owner: type[Any] | None,
        dependency: Dependency | None,
        resolving_onto: object | None,
    ) -> Any:
        dependencies = binding.get_dependencies()

        args: list[Any] = []
        if dependencies and isinstance(dependencies[0], ConstructorDependency):
            args = [
                self._resolve_dependency(binding, argument)
                for argument in dependencies[0].arguments
            ]

        instance = binding.resolve(*args, resolving_onto=resolving_onto, dependency=dependency)
        if instance is None:
            msg = f"Could not resolve {_name(service_type)}: binding produced None"
            raise DIBindResolutionError(msg, service_type=service_type, owner=owner)

        for member in dependencies:
            if member.member_kind is MemberKind.CONSTRUCTOR:
                continue
            value = self._resolve_dependency(binding, member, instance)
            self._inject(binding, member, instance, value)
        return instance

    def _resolve_dependency(
        self,
        binding: Binding,
        dependency: Dependency,
        resolving_onto: object | None = None,
    ) -> Any:
        try:
            return self._resolve(
                dependency.target_type,
                binding.to_type,
                dependency.category,
                dependency,
                resolving_onto,
            )
        except Exception as e:
            msg = (
                f"Could not resolve {_name(dependency.target_type)} "
                f"for {_describe(dependency)} of {_name(binding.to_type)}"
            )
            raise DIBindResolutionError(
                msg,
                service_type=dependency.target_type,
                owner=binding.to_type,
            ) from e

    def _inject(self, binding: Binding, dependency: Dependency, instance: object, value: Any) -> None:
        try:
            setattr(instance, dependency.member_name, value)
        except AttributeError as e:
            msg = f"Cannot assign {_describe(dependency)} of {_name(binding.to_type)}"
            raise DIBindResolutionError(
                msg,
                service_type=dependency.target_type,
                owner=binding.to_type,
            ) from e

    def _follow_proxies(self, binding: Binding, owner: Any, category: str) -> Binding:
        chain: list[Binding] = []
        while binding.is_proxy and not binding.has_instance_available():
            if binding in chain:
                raise DIBindCircularProxyError(owner, binding.to_type)
            chain.append(binding)
            binding = self._container.get_binding(binding.to_type, category)
        return binding

    def _is_fatal_revisit(self, binding: Binding, dependency: Dependency | None) -> bool:
        if self._circular_policy is CircularDependencyPolicy.STRICT:
            return True
        if dependency is None or dependency.member_kind is MemberKind.CONSTRUCTOR:
            return True
        return binding.lifecycle is Lifecycle.TRANSIENT


def _describe(dependency: Dependency) -> str:
    if dependency.member_kind is MemberKind.CONSTRUCTOR:
        return f"constructor argument '{dependency.member_name}'"
    return f"{dependency.member_kind.value} '{dependency.member_name}'"


def _name(value: Any) -> str:
    return getattr(value, "__name__", repr(value))


__all__ = ["Resolver"]
