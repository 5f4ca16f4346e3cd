from __future__ import annotations

import logging
from collections.abc import Iterable
from types import TracebackType
from typing import Any, TypeVar

from typing_extensions import Self

from dibind._internal.resolver import Resolver
from dibind.bindings import Binding
from dibind.context import ContextRegistry
from dibind.context import context as default_context
from dibind.defaults import DEFAULT_CATEGORY, DEFAULT_CIRCULAR_POLICY
from dibind.dependencies import Dependency
from dibind.exceptions import (
    DIBindBindingNotFoundError,
    DIBindContainerDisposedError,
    DIBindDuplicateBindingError,
)
from dibind.types import CircularDependencyPolicy

T = TypeVar("T")

logger = logging.getLogger(__name__)


class Container:
    """Named registry of bindings keyed by ``(abstract type, category)``.

    A container registers itself in a ``ContextRegistry`` under its name when
    created, adds its inheritance edges, then calls ``set_bindings`` and
    ``on_setup_complete`` once. Subclass and override ``set_bindings`` to
    declare registrations, or call ``bind`` on a plain instance.

    Resolution looks up the local binding first and falls back to inherited
    containers in the order their edges were added. The container owns its
    bindings: ``dispose`` deregisters it and disposes every binding.

    Examples:
        .. code-block:: python

            class AppContainer(Container):
                def set_bindings(self) -> None:
                    self.bind(Database, PostgresDatabase).as_singleton()
                    self.bind(Database, ReplicaDatabase, "replica")


            app = AppContainer()
            db = app.resolve(Database)

    """

    def __init__(
        self,
        name: str | None = None,
        *,
        parents: Iterable[str | Container | type[Container]] = (),
        context: ContextRegistry | None = None,
        circular_policy: CircularDependencyPolicy = DEFAULT_CIRCULAR_POLICY,
    ) -> None:
        """Create, register, and set up a container.

        Args:
            name: Process-unique name within ``context``. Defaults to the class name.
            parents: Containers to inherit bindings from, as names, container
                classes (meaning their default name), or instances.
            context: Registry to join. Defaults to ``dibind.context.context``.
            circular_policy: How revisited bindings are treated during resolution.

        Raises:
            DIBindDuplicateContainerError: ``name`` is already live in ``context``.

        """
        self.name = name if name is not None else type(self).__name__
        self.context = context if context is not None else default_context
        self.circular_policy = circular_policy
        self._bindings: dict[Any, dict[str, Binding]] = {}
        self._override_binding: Binding | None = None
        self._disposed = False

        self.context.add_container(self)
        try:
            for parent in parents:
                self.inherit_from(parent)
            self.set_bindings()
            self.on_setup_complete()
        except BaseException:
            self.dispose()
            raise

    def set_bindings(self) -> None:
        """Declare the bindings of this container. Called once on construction."""

    def on_setup_complete(self) -> None:
        """Run after ``set_bindings``."""

    def pre_resolve(
        self,
        service_type: Any,
        owner: type[Any] | None,
        category: str,
        dependency: Dependency | None,
        resolving_onto: object | None,
    ) -> None:
        """Run before every binding lookup made while resolving.

        Override to inspect the request, typically to call
        ``override_next_binding`` for dependencies that need a special-purpose
        binding.

        Args:
            service_type: Type about to be looked up.
            owner: Type whose dependency is being resolved, ``None`` for the root.
            category: Category of the lookup.
            dependency: Dependency being filled, ``None`` for the root.
            resolving_onto: Object receiving the value for member dependencies.

        """

    def bind(
        self,
        from_type: Any,
        to_type: Any = None,
        category: str = DEFAULT_CATEGORY,
        instance: object | None = None,
    ) -> Binding:
        """Register a binding for ``(from_type, category)`` and return it.

        The returned binding is transient; chain ``as_singleton()`` or
        ``as_proxy()`` to change that.

        Example:
          container.bind(Repository, SqlRepository).as_singleton()
          container.bind(Settings, instance=Settings(debug=True))

        Raises:
            DIBindBindingTypeMismatchError: ``to_type`` does not satisfy ``from_type``.
            DIBindDuplicateBindingError: The pair is already bound in this container.
            DIBindContainerDisposedError: The container has been disposed.

        """
        self._ensure_active()
        self._ensure_unbound(from_type, category)
        return self.add_binding(self.create_binding(from_type, to_type, instance), category)

    def add_binding(self, binding: Binding, category: str = DEFAULT_CATEGORY) -> Binding:
        """Register a pre-built binding, such as a custom ``Binding`` subclass."""
        self._ensure_active()
        self._ensure_unbound(binding.from_type, category)
        self._bindings.setdefault(binding.from_type, {})[category] = binding
        logger.debug("Bound %r with category %r in container %r", binding, category, self.name)
        return binding

    def create_binding(self, from_type: Any, to_type: Any, instance: object | None) -> Binding:
        """Return the binding object used by ``bind``."""
        return Binding(from_type, to_type, instance)

    def inherit_from(self, parent: str | Container | type[Container]) -> None:
        """Fall back to ``parent`` for bindings this container does not declare."""
        if isinstance(parent, Container):
            parent_name = parent.name
        elif isinstance(parent, type) and issubclass(parent, Container):
            parent_name = parent.__name__
        elif isinstance(parent, str):
            parent_name = parent
        else:
            msg = f"Cannot inherit from {parent!r}: expected a name, a container, or a container class"
            raise TypeError(msg)
        self.context.add_inheritance_edge(self.name, parent_name)

    def override_next_binding(self, binding: Binding) -> None:
        """Use ``binding`` for the next lookup only.

        When the lookup finds a registered binding, ``binding`` takes over its
        ``from_type`` and ``to_type``; when it finds none, ``binding`` is used
        as is instead of failing.
        """
        self._override_binding = binding

    def resolve(self, service_type: type[T], category: str = DEFAULT_CATEGORY) -> T:
        """Resolve ``service_type`` and everything it depends on.

        Raises:
            DIBindBindingNotFoundError: The root type is not bound here or in a parent.
            DIBindCircularProxyError: The root binding is a proxy chain that loops.
            DIBindResolutionError: A dependency failed; the original error is
                available as ``root_cause``.

        """
        resolver = Resolver(self, self.circular_policy)
        return resolver.resolve(service_type, category)

    def find_binding(self, service_type: Any, category: str = DEFAULT_CATEGORY) -> Binding:
        """Return the binding for a key, searching inherited containers.

        Raises:
            DIBindBindingNotFoundError: Neither this container nor a live parent binds the key.

        """
        binding = self.lookup_binding(service_type, category)
        if binding is None:
            raise DIBindBindingNotFoundError(service_type, category, self.name)
        return binding

    def lookup_binding(
        self,
        service_type: Any,
        category: str = DEFAULT_CATEGORY,
        visited: set[str] | None = None,
    ) -> Binding | None:
        """Return the binding for a key, or ``None`` when no container binds it."""
        binding = self._bindings.get(service_type, {}).get(category)
        if binding is not None:
            return binding
        return self.context.find_inherited_binding(self.name, service_type, category, visited)

    def get_binding(self, service_type: Any, category: str) -> Binding:
        """Return the binding used for one resolution step, honouring the override slot."""
        override, self._override_binding = self._override_binding, None
        try:
            binding = self.find_binding(service_type, category)
        except DIBindBindingNotFoundError:
            if override is None:
                raise
            return override

        if override is None:
            return binding
        override.from_type = binding.from_type
        override.to_type = binding.to_type
        return override

    def get_bindings(self) -> list[tuple[str, Binding]]:
        """Return ``(category, binding)`` pairs of this container in registration order."""
        return [
            (category, binding)
            for category_map in self._bindings.values()
            for category, binding in category_map.items()
        ]

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    def dispose(self) -> None:
        """Deregister from the context and dispose every owned binding.

        Later lookups fail with ``DIBindBindingNotFoundError`` and later
        registrations with ``DIBindContainerDisposedError``. Calling ``dispose``
        again is a no-op.

        Every binding is disposed even when a release hook raises; the first
        such error is re-raised once all bindings have been processed.
        """
        if self._disposed:
            return
        self._disposed = True
        self.context.remove_container(self)
        dispose_error: BaseException | None = None
        for category_map in self._bindings.values():
            for binding in category_map.values():
                try:
                    binding.dispose()
                except Exception as error:  # noqa: BLE001
                    logger.exception("Failed to dispose %r in container %r", binding, self.name)
                    if dispose_error is None:
                        dispose_error = error
            category_map.clear()
        self._bindings.clear()
        self._override_binding = None
        logger.debug("Disposed container %r", self.name)
        if dispose_error is not None:
            raise dispose_error

    def _ensure_active(self) -> None:
        if self._disposed:
            raise DIBindContainerDisposedError(self.name)

    def _ensure_unbound(self, from_type: Any, category: str) -> None:
        if category in self._bindings.get(from_type, {}):
            raise DIBindDuplicateBindingError(from_type, category, self.name)

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.dispose()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, bindings={len(self.get_bindings())})"


__all__ = ["Container"]
