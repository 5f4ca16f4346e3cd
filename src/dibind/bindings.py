from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from typing_extensions import Self

from dibind._internal.type_checks import is_protocol, is_runtime_class, protocol_conformance_errors
from dibind.defaults import DEFAULT_LIFECYCLE
from dibind.dependencies import ConstructorDependency, Dependency
from dibind.discovery import DEFAULT_DEPENDENCY_FINDER, DependencyFinder
from dibind.exceptions import DIBindBindingTypeMismatchError
from dibind.types import Lifecycle

logger = logging.getLogger(__name__)

_RELEASE_HOOKS = ("dispose", "close")


class Binding:
    """Construction rule from an abstract type to a concrete type or instance.

    A binding either owns a supplied instance, which it always returns, or
    builds ``to_type`` according to its lifecycle: a new object per call for
    ``Lifecycle.TRANSIENT``, one cached object for ``Lifecycle.SINGLETON``.

    Subclasses may override ``resolve`` to produce values relative to the object
    being injected into (``resolving_onto``) and the dependency being filled.
    The container passes both on every member injection.

    Examples:
        .. code-block:: python

            binding = Binding(Repository, SqlRepository).as_singleton()
            assert binding.resolve() is binding.resolve()

    """

    def __init__(
        self,
        from_type: Any,
        to_type: Any = None,
        instance: object | None = None,
        *,
        dependency_finder: DependencyFinder | None = None,
    ) -> None:
        """Create a binding and check that ``to_type`` satisfies ``from_type``.

        Args:
            from_type: Abstract type (class, ABC, or protocol) requested by callers.
            to_type: Concrete type to build. Defaults to the instance type, or to
                ``from_type`` when no instance is given.
            instance: Pre-built object always returned by ``resolve``.
            dependency_finder: Source of the dependency list of ``to_type``.

        Raises:
            DIBindBindingTypeMismatchError: ``to_type`` or ``instance`` does not
                satisfy ``from_type``.

        """
        if to_type is None:
            to_type = type(instance) if instance is not None else from_type

        self.from_type = from_type
        self.to_type = to_type
        self._validate(from_type, to_type)
        if instance is not None:
            self._validate_instance(instance)

        self._instance = instance
        self._lifecycle = DEFAULT_LIFECYCLE
        self._is_proxy = False
        self._dependencies: list[Dependency] | None = None
        self._dependency_finder = dependency_finder or DEFAULT_DEPENDENCY_FINDER

    @property
    def lifecycle(self) -> Lifecycle:
        return self._lifecycle

    @property
    def is_proxy(self) -> bool:
        return self._is_proxy

    def as_singleton(self) -> Self:
        """Cache the first built instance and return it on every later call."""
        self._lifecycle = Lifecycle.SINGLETON
        return self

    def as_transient(self) -> Self:
        """Build a new instance on every call."""
        self._lifecycle = Lifecycle.TRANSIENT
        return self

    def as_proxy(self) -> Self:
        """Forward resolution to the binding registered for ``to_type``.

        The container looks up ``to_type`` with the same category and resolves
        that binding instead, so several abstract types can share one
        registration (and one singleton).
        """
        self._is_proxy = True
        return self

    def has_instance_available(self) -> bool:
        return self._instance is not None

    def get_dependencies(self) -> list[Dependency]:
        """Return the dependencies of ``to_type``, discovered once per binding lifetime."""
        if self._dependencies is None:
            self._dependencies = self._dependency_finder.get_dependencies(self.to_type)
        return self._dependencies

    def resolve(
        self,
        *args: Any,
        resolving_onto: object | None = None,
        dependency: Dependency | None = None,
    ) -> Any:
        """Return an instance of ``to_type``.

        Args:
            *args: Constructor arguments. Ignored once an instance is cached.
            resolving_onto: Object whose member is being filled, if any.
            dependency: Dependency being filled, if any.

        """
        if self._instance is not None:
            return self._instance

        if self._lifecycle is Lifecycle.TRANSIENT:
            return self._create(args)

        self._instance = self._create(args)
        logger.debug("Created singleton %s for %s", _name(self.to_type), _name(self.from_type))
        return self._instance

    def dispose(self) -> None:
        """Release the cached instance and forget discovered dependencies.

        The cached instance gets its ``dispose()`` or ``close()`` hook called,
        whichever it defines first. Calling ``dispose`` again is a no-op.

        Release is tracked per binding, not per instance: an instance supplied
        to several bindings has its hook called once by each of them. Make the
        hook idempotent when sharing an instance that way. If the hook raises,
        ``on_dispose`` still runs and the error propagates.
        """
        instance, self._instance = self._instance, None
        if self._dependencies is not None:
            self._dependencies.clear()
            self._dependencies = None
        try:
            if instance is not None:
                _release(instance)
        finally:
            self.on_dispose()

    def on_dispose(self) -> None:
        """Run after ``dispose`` released the binding state."""

    def _create(self, args: tuple[Any, ...]) -> Any:
        return self._constructor()(*args)

    def _constructor(self) -> Callable[..., Any]:
        dependencies = self.get_dependencies()
        if dependencies and isinstance(dependencies[0], ConstructorDependency):
            constructor_dependency = dependencies[0]
            if constructor_dependency.uses_alternative_constructor:
                return getattr(self.to_type, constructor_dependency.member_name)
        return self.to_type

    def _validate(self, from_type: Any, to_type: Any) -> None:
        if not is_runtime_class(to_type):
            raise DIBindBindingTypeMismatchError(from_type, to_type, "target is not a class")
        if not is_runtime_class(from_type):
            raise DIBindBindingTypeMismatchError(from_type, to_type, "source is not a class")
        if is_protocol(from_type):
            errors = protocol_conformance_errors(from_type, to_type)
            if errors:
                raise DIBindBindingTypeMismatchError(from_type, to_type, "; ".join(errors))
        elif not issubclass(to_type, from_type):
            msg = f"{to_type.__name__} must inherit from {from_type.__name__}"
            raise DIBindBindingTypeMismatchError(from_type, to_type, msg)

    def _validate_instance(self, instance: object) -> None:
        if is_protocol(self.to_type):
            errors = protocol_conformance_errors(self.to_type, type(instance))
            if errors:
                raise DIBindBindingTypeMismatchError(self.from_type, type(instance), "; ".join(errors))
        elif not isinstance(instance, self.to_type):
            msg = f"instance of {type(instance).__name__} is not a {self.to_type.__name__}"
            raise DIBindBindingTypeMismatchError(self.from_type, self.to_type, msg)

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}({_name(self.from_type)} -> {_name(self.to_type)}, "
            f"lifecycle={self._lifecycle.value}, instance={self._instance is not None})"
        )


def _release(instance: object) -> None:
    for hook_name in _RELEASE_HOOKS:
        hook = getattr(instance, hook_name, None)
        if callable(hook):
            hook()
            return


def _name(value: Any) -> str:
    return getattr(value, "__name__", repr(value))


__all__ = ["Binding", "Lifecycle"]
