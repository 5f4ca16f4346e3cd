from __future__ import annotations

from typing import Any


class DIBindError(Exception):
    """Represent a base class for all DIBind-specific failures.

    Catch this type when you want to handle any DIBind error path without
    matching each concrete exception class individually.
    """


class DIBindBindingTypeMismatchError(DIBindError):
    """Signal a binding whose target type does not satisfy its source type.

    Raised when ``Binding`` (and therefore ``Container.bind``) is created with a
    ``to_type`` that is not a subclass of ``from_type``, does not structurally
    conform to a ``typing.Protocol`` ``from_type``, or with an instance that is
    not an instance of ``to_type``.
    """

    def __init__(self, from_type: Any, to_type: Any, reason: str) -> None:
        self.from_type = from_type
        self.to_type = to_type
        super().__init__(
            f"Type {_name(to_type)} cannot be bound to {_name(from_type)}: {reason}",
        )


class DIBindDuplicateBindingError(DIBindError):
    """Signal a second registration for the same ``(type, category)`` pair.

    Each container holds at most one binding per pair. Use a different category
    to register several implementations of the same abstract type.
    """

    def __init__(self, service_type: Any, category: str, container_name: str) -> None:
        self.service_type = service_type
        self.category = category
        self.container_name = container_name
        super().__init__(
            f"Type {_name(service_type)} with category {category!r} "
            f"is already bound in container {container_name!r}",
        )


class DIBindDuplicateContainerError(DIBindError):
    """Signal a container created with a name that is already live."""

    def __init__(self, name: str, existing: Any) -> None:
        self.name = name
        self.existing = existing
        super().__init__(
            f"Container name {name!r} is already bound to {type(existing).__name__}",
        )


class DIBindContainerDisposedError(DIBindError):
    """Signal a registration on a container that has already been disposed."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Container {name!r} is disposed and cannot accept bindings")


class DIBindDuplicateDefaultConstructorError(DIBindError):
    """Signal a class that marks more than one designated constructor.

    This is a structural configuration defect: fix the class so that exactly one
    of ``__init__`` or its alternative constructors carries
    ``@default_constructor``.
    """

    def __init__(self, cls: type[Any], constructor_names: list[str]) -> None:
        self.cls = cls
        self.constructor_names = constructor_names
        super().__init__(
            f"Type {cls.__name__} cannot declare more than one default constructor "
            f"(found: {', '.join(constructor_names)})",
        )


class DIBindDependencyDiscoveryError(DIBindError):
    """Signal that the dependency list of a class cannot be built.

    Common triggers are designated-constructor parameters without annotations
    and annotations that reference names which cannot be evaluated.
    """

    def __init__(self, cls: type[Any], reason: str) -> None:
        self.cls = cls
        super().__init__(f"Cannot discover dependencies of {_name(cls)}: {reason}")


class DIBindBindingNotFoundError(DIBindError):
    """Signal that neither a container nor its ancestors bind a key.

    Raised by ``Container.find_binding`` and therefore by ``Container.resolve``
    once the local map and every inherited container have been searched.
    """

    def __init__(self, service_type: Any, category: str, container_name: str) -> None:
        self.service_type = service_type
        self.category = category
        self.container_name = container_name
        super().__init__(
            f"Type {_name(service_type)} with category {category!r} "
            f"is not bound in container {container_name!r}",
        )


class DIBindContainerNotFoundError(DIBindError):
    """Signal a registry lookup for a container that is not live."""

    def __init__(self, name: str, container_type: type[Any] | None = None) -> None:
        self.name = name
        self.container_type = container_type
        if container_type is None:
            msg = f"No container bound for name {name!r}"
        else:
            msg = f"No container of type {container_type.__name__} bound for name {name!r}"
        super().__init__(msg)


class DIBindCircularDependencyError(DIBindError):
    """Signal a dependency cycle that cannot be broken.

    Cycles through constructor arguments always fail. Cycles through injected
    members fail when the revisited binding is transient, because every pass
    would build a new instance.
    """

    def __init__(self, owner: type[Any], service_type: Any) -> None:
        self.owner = owner
        self.service_type = service_type
        super().__init__(
            f"Circular dependency detected in {_name(owner)} on {_name(service_type)}",
        )


class DIBindCircularProxyError(DIBindCircularDependencyError):
    """Signal a chain of proxy bindings that forwards back onto itself."""


class DIBindResolutionError(DIBindError):
    """Signal that an object graph could not be built.

    Raised directly when a binding produces ``None``. Also used to wrap failures
    raised deeper in the graph: each frame adds the failing type and its owner,
    and chains the original error as ``__cause__``.
    """

    def __init__(self, msg: str, *, service_type: Any = None, owner: Any = None) -> None:
        self.service_type = service_type
        self.owner = owner
        super().__init__(msg)

    @property
    def root_cause(self) -> BaseException:
        """Return the innermost error of the ``__cause__`` chain."""
        error: BaseException = self
        while error.__cause__ is not None:
            error = error.__cause__
        return error


def _name(value: Any) -> str:
    return getattr(value, "__name__", repr(value))
