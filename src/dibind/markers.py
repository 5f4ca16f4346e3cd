from __future__ import annotations

from typing import Annotated, Any, TypeVar, get_args, get_origin

from dibind.defaults import DEFAULT_CATEGORY
from dibind.dependencies import ConstructorDependency, Dependency
from dibind.types import MemberKind

F = TypeVar("F")
_ANNOTATED_MARKER_MIN_ARGS = 2
DEFAULT_CONSTRUCTOR_ATTR = "__dibind_default_constructor__"


class Inject:
    """Mark a class attribute or property for member injection.

    Attach ``Inject`` metadata through ``typing.Annotated``. On a class-level
    annotation it produces a field dependency; on the return annotation of a
    property getter it produces a property dependency (the property needs a
    setter).

    Subclass to customize discovery: override ``can_be_used_on_type`` to refuse
    host classes, and ``create_dependency`` to return a specialised
    ``Dependency`` that a custom ``Binding`` understands.

    Examples:
        .. code-block:: python

            class Service:
                repository: Annotated[Repository, Inject()]
                replica: Annotated[Database, Inject("replica")]

    """

    def __init__(self, category: str = DEFAULT_CATEGORY) -> None:
        self.category = category

    def can_be_used_on_type(self, cls: type[Any]) -> bool:
        """Return whether this marker applies to members of ``cls``."""
        return True

    def create_dependency(
        self,
        member_name: str,
        member_kind: MemberKind,
        target_type: Any,
    ) -> Dependency:
        return Dependency(
            member_name=member_name,
            member_kind=member_kind,
            target_type=target_type,
            category=self.category,
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}(category={self.category!r})"


class InjectArgument:
    """Override the category of one designated-constructor parameter.

    Parameters without this marker resolve with the default category.

    Examples:
        .. code-block:: python

            class Service:
                @default_constructor
                def __init__(self, db: Annotated[Database, InjectArgument("replica")]) -> None:
                    self.db = db

    """

    def __init__(self, category: str = DEFAULT_CATEGORY) -> None:
        self.category = category

    def create_dependency(self, member_name: str, target_type: Any) -> Dependency:
        return Dependency(
            member_name=member_name,
            member_kind=MemberKind.CONSTRUCTOR,
            target_type=target_type,
            category=self.category,
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}(category={self.category!r})"


class DefaultConstructor:
    """Decorator marking the constructor used when a binding builds its type.

    Decorate ``__init__`` or a ``classmethod`` alternative constructor. A class
    must not mark more than one. Without a marked constructor the type is
    built with no arguments.
    """

    def __call__(self, func: F) -> F:
        target: Any = func.__func__ if isinstance(func, classmethod | staticmethod) else func
        setattr(target, DEFAULT_CONSTRUCTOR_ATTR, self)
        return func

    def create_dependency(
        self,
        member_name: str,
        owner: type[Any],
        arguments: list[Dependency],
    ) -> ConstructorDependency:
        return ConstructorDependency(
            member_name=member_name,
            member_kind=MemberKind.CONSTRUCTOR,
            target_type=owner,
            arguments=tuple(arguments),
        )


default_constructor = DefaultConstructor()


def get_default_constructor_marker(member: object) -> DefaultConstructor | None:
    """Return the constructor marker of a class ``__dict__`` entry, if any."""
    target = member.__func__ if isinstance(member, classmethod | staticmethod) else member
    marker = getattr(target, DEFAULT_CONSTRUCTOR_ATTR, None)
    if isinstance(marker, DefaultConstructor):
        return marker
    return None


def split_annotated(annotation: Any) -> tuple[Any, tuple[Any, ...]]:
    """Return the inner type and metadata of an ``Annotated`` hint.

    Non-annotated hints are returned unchanged with empty metadata.
    """
    if get_origin(annotation) is not Annotated:
        return annotation, ()
    args = get_args(annotation)
    if len(args) < _ANNOTATED_MARKER_MIN_ARGS:
        return annotation, ()  # pragma: no cover - Annotated requires at least 2 args
    return args[0], tuple(args[1:])


def find_marker(metadata: tuple[Any, ...], marker_type: type[Any]) -> Any | None:
    for item in metadata:
        if isinstance(item, marker_type):
            return item
    return None


__all__ = [
    "DefaultConstructor",
    "Inject",
    "InjectArgument",
    "default_constructor",
    "find_marker",
    "get_default_constructor_marker",
    "split_annotated",
]
