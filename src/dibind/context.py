from __future__ import annotations

import logging
from collections.abc import Iterator
from typing import TYPE_CHECKING, Any, TypeVar

from dibind.exceptions import DIBindContainerNotFoundError, DIBindDuplicateContainerError

if TYPE_CHECKING:
    from dibind.bindings import Binding
    from dibind.container import Container

logger = logging.getLogger(__name__)

C = TypeVar("C", bound="Container")


class ContextRegistry:
    """Directory of live containers and the inheritance edges between them.

    Containers register themselves on construction and deregister on
    ``dispose``. The registry only references containers: it never owns their
    bindings. Inheritance edges are stored by container name, so an edge may
    point at a container that is not (or no longer) live; such edges are
    skipped during lookups.

    There is no internal locking. Guard registration, resolution, and disposal
    with external synchronization when containers are shared across threads.
    """

    def __init__(self) -> None:
        self._containers: dict[str, Container] = {}
        self._inheritance: dict[str, list[str]] = {}
        self._disposing = False

    def add_container(self, container: Container) -> None:
        """Register a live container under its name.

        Raises:
            DIBindDuplicateContainerError: Another live container has the same name.

        """
        existing = self._containers.get(container.name)
        if existing is not None:
            raise DIBindDuplicateContainerError(container.name, existing)
        self._containers[container.name] = container
        logger.debug("Registered container %r", container.name)

    def remove_container(self, container: Container) -> None:
        """Deregister a container and drop its inheritance edges.

        Unknown containers are ignored. During ``global_dispose`` this is a no-op
        because the registry is cleared as a whole afterwards.
        """
        if self._disposing:
            return
        if self._containers.get(container.name) is not container:
            logger.info("Container %r is not registered; nothing to remove", container.name)
            return
        del self._containers[container.name]
        self._inheritance.pop(container.name, None)
        logger.debug("Removed container %r", container.name)

    def add_inheritance_edge(self, child_name: str, parent_name: str) -> None:
        """Make ``child_name`` fall back to ``parent_name`` for missing bindings.

        Edges are kept in insertion order. Adding an existing edge is a no-op.
        """
        parents = self._inheritance.setdefault(child_name, [])
        if parent_name not in parents:
            parents.append(parent_name)
            logger.debug("Container %r inherits from %r", child_name, parent_name)

    def get_inheritance_edges(self, child_name: str) -> list[str]:
        return list(self._inheritance.get(child_name, ()))

    def find_inherited_binding(
        self,
        child_name: str,
        service_type: Any,
        category: str,
        visited: set[str] | None = None,
    ) -> Binding | None:
        """Return the first binding found through the inheritance edges of a container.

        Parents are searched in edge order, each through its own inheritance
        chain. ``visited`` holds names already searched in this lookup so
        containers that inherit from each other do not recurse forever.

        Returns:
            The binding, or ``None`` when no live parent binds the key.

        """
        if visited is None:
            visited = set()
        visited.add(child_name)

        for parent_name in self._inheritance.get(child_name, ()):
            if parent_name in visited:
                continue
            parent = self._containers.get(parent_name)
            if parent is None:
                logger.debug("Skipping inheritance edge %r -> %r: not live", child_name, parent_name)
                continue
            binding = parent.lookup_binding(service_type, category, visited)
            if binding is not None:
                return binding
        return None

    def get_container_by_name(self, name: str) -> Container:
        """Return the live container called ``name``.

        Raises:
            DIBindContainerNotFoundError: No live container has that name.

        """
        container = self._containers.get(name)
        if container is None:
            raise DIBindContainerNotFoundError(name)
        return container

    def get_container_by_type(self, container_type: type[C], name: str | None = None) -> C:
        """Return the live container called ``name`` if it is a ``container_type``.

        ``name`` defaults to the class name, which is also the default name of
        containers created without one.

        Raises:
            DIBindContainerNotFoundError: No live container of that type has that name.

        """
        if name is None:
            name = container_type.__name__
        container = self._containers.get(name)
        if not isinstance(container, container_type):
            raise DIBindContainerNotFoundError(name, container_type)
        return container

    @property
    def containers(self) -> list[Container]:
        return list(self._containers.values())

    def global_dispose(self) -> None:
        """Dispose every live container, then clear all registry state.

        A container whose disposal raises does not stop the others. The registry
        is cleared regardless, and the first error is re-raised at the end.
        """
        dispose_error: BaseException | None = None
        self._disposing = True
        try:
            self._inheritance.clear()
            for container in list(self._containers.values()):
                try:
                    container.dispose()
                except Exception as error:  # noqa: BLE001
                    if dispose_error is None:
                        dispose_error = error
        finally:
            self._containers.clear()
            self._disposing = False
        logger.debug("Context disposed")
        if dispose_error is not None:
            raise dispose_error

    def __contains__(self, name: object) -> bool:
        return name in self._containers

    def __len__(self) -> int:
        return len(self._containers)

    def __iter__(self) -> Iterator[Container]:
        return iter(list(self._containers.values()))


context = ContextRegistry()
"""Default registry used by containers created without ``context=``."""


__all__ = ["ContextRegistry", "context"]
