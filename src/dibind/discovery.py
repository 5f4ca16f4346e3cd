from __future__ import annotations

import inspect
import logging
import sys
from typing import Any, ForwardRef

from dibind.dependencies import ConstructorDependency, Dependency
from dibind.exceptions import DIBindDependencyDiscoveryError, DIBindDuplicateDefaultConstructorError
from dibind.markers import (
    DefaultConstructor,
    Inject,
    InjectArgument,
    find_marker,
    get_default_constructor_marker,
    split_annotated,
)
from dibind.types import MemberKind

logger = logging.getLogger(__name__)


class DependencyFinder:
    """Build the ordered dependency list used to populate instances of a class.

    The designated constructor, if any, comes first as one
    ``ConstructorDependency``; member dependencies follow, base classes first,
    fields before properties within each class, in declaration order.

    The result depends only on the class metadata. Subclass and pass an instance
    to ``Binding`` to read dependencies from another source, for example an
    explicit registration table.
    """

    def get_dependencies(self, cls: type[Any]) -> list[Dependency]:
        """Return the dependencies of ``cls``.

        Raises:
            DIBindDuplicateDefaultConstructorError: More than one constructor of
                the same class is marked with ``@default_constructor``.
            DIBindDependencyDiscoveryError: A constructor parameter has no
                annotation, or an annotation that may carry a marker cannot be
                evaluated. Unmarked annotations that cannot be evaluated, such
                as names imported only under ``TYPE_CHECKING``, are skipped.

        """
        dependencies: list[Dependency] = []
        constructor_dependency = self.get_constructor_dependency(cls)
        if constructor_dependency is not None:
            dependencies.append(constructor_dependency)
        dependencies.extend(self.get_member_dependencies(cls))
        return dependencies

    def get_constructor_dependency(self, cls: type[Any]) -> ConstructorDependency | None:
        for klass in cls.__mro__:
            if klass is object:
                return None
            marked = self._marked_constructors(klass)
            if len(marked) > 1:
                raise DIBindDuplicateDefaultConstructorError(cls, [name for name, _, _ in marked])
            if marked:
                name, member, marker = marked[0]
                if inspect.getattr_static(cls, name) is not member:
                    # Overridden closer to ``cls`` without a marker.
                    return None
                return self._build_constructor_dependency(cls, name, member, marker)
            if "__init__" in vars(klass):
                return None
        return None

    def get_member_dependencies(self, cls: type[Any]) -> list[Dependency]:
        dependencies: list[Dependency] = []
        seen: set[str] = set()
        declared_in = _field_declarations(cls)

        for klass in reversed(cls.__mro__):
            if klass is object:
                continue
            for name in inspect.get_annotations(klass):
                if name in seen:
                    continue
                seen.add(name)
                owner = declared_in[name]
                dependency = self._member_dependency(
                    cls,
                    name,
                    MemberKind.FIELD,
                    inspect.get_annotations(owner)[name],
                    _module_namespace(owner),
                    vars(owner),
                )
                if dependency is not None:
                    dependencies.append(dependency)

            for name, member in vars(klass).items():
                if name in seen or not isinstance(member, property) or member.fget is None:
                    continue
                if inspect.getattr_static(cls, name) is not member:
                    continue
                annotation = inspect.get_annotations(member.fget).get("return")
                if annotation is None:
                    continue
                seen.add(name)
                dependency = self._member_dependency(
                    cls,
                    name,
                    MemberKind.PROPERTY,
                    annotation,
                    getattr(member.fget, "__globals__", {}),
                    vars(klass),
                )
                if dependency is not None:
                    dependencies.append(dependency)

        return dependencies

    def _member_dependency(
        self,
        cls: type[Any],
        name: str,
        kind: MemberKind,
        annotation: Any,
        globalns: dict[str, Any],
        localns: Any,
    ) -> Dependency | None:
        try:
            target_type, metadata = _evaluate(annotation, globalns, localns)
        except _EVALUATION_ERRORS as e:
            if not _may_carry_marker(annotation):
                logger.debug(
                    "Skipping member '%s' of %s: annotation %r cannot be evaluated",
                    name,
                    cls.__qualname__,
                    annotation,
                )
                return None
            msg = f"annotation of member '{name}' cannot be evaluated: {e}"
            raise DIBindDependencyDiscoveryError(cls, msg) from e

        marker = find_marker(metadata, Inject)
        if marker is None:
            return None
        if not marker.can_be_used_on_type(cls):
            logger.warning(
                "%r cannot be used on %s; member '%s' is not injected",
                marker,
                cls.__qualname__,
                name,
            )
            return None
        return marker.create_dependency(name, kind, target_type)

    def _marked_constructors(
        self,
        klass: type[Any],
    ) -> list[tuple[str, Any, DefaultConstructor]]:
        marked = []
        for name, member in vars(klass).items():
            marker = get_default_constructor_marker(member)
            if marker is not None:
                marked.append((name, member, marker))
        return marked

    def _build_constructor_dependency(
        self,
        cls: type[Any],
        name: str,
        member: Any,
        marker: DefaultConstructor,
    ) -> ConstructorDependency | None:
        func = member.__func__ if isinstance(member, classmethod | staticmethod) else member
        globalns = getattr(func, "__globals__", {})
        parameters = list(inspect.signature(func).parameters.values())
        if not isinstance(member, staticmethod):
            # Drop ``self``/``cls``.
            parameters = parameters[1:]

        arguments: list[Dependency] = []
        for parameter in parameters:
            if parameter.kind in (parameter.VAR_POSITIONAL, parameter.VAR_KEYWORD):
                continue
            if parameter.kind is parameter.KEYWORD_ONLY:
                if parameter.default is parameter.empty:
                    msg = f"keyword-only parameter '{parameter.name}' of {name} has no default"
                    raise DIBindDependencyDiscoveryError(cls, msg)
                continue
            if parameter.annotation is parameter.empty:
                msg = f"parameter '{parameter.name}' of {name} has no type annotation"
                raise DIBindDependencyDiscoveryError(cls, msg)

            try:
                target_type, metadata = _evaluate(parameter.annotation, globalns, None)
            except _EVALUATION_ERRORS as e:
                msg = f"annotation of parameter '{parameter.name}' of {name} cannot be evaluated: {e}"
                raise DIBindDependencyDiscoveryError(cls, msg) from e
            argument_marker = find_marker(metadata, InjectArgument) or InjectArgument()
            arguments.append(argument_marker.create_dependency(parameter.name, target_type))

        if not arguments and name == "__init__":
            return None
        return marker.create_dependency(name, cls, arguments)


_EVALUATION_ERRORS = (NameError, AttributeError, TypeError, SyntaxError)
_MARKER_NAMES = ("Annotated", Inject.__name__, InjectArgument.__name__)


def _evaluate(annotation: Any, globalns: dict[str, Any], localns: Any) -> tuple[Any, tuple[Any, ...]]:
    """Evaluate one annotation and split it into its type and ``Annotated`` metadata."""
    if isinstance(annotation, str):
        annotation = eval(annotation, globalns, localns)  # noqa: S307
    target_type, metadata = split_annotated(annotation)
    if isinstance(target_type, ForwardRef):
        target_type = target_type.__forward_arg__
    if isinstance(target_type, str):
        target_type = eval(target_type, globalns, localns)  # noqa: S307
    return target_type, metadata


def _may_carry_marker(annotation: Any) -> bool:
    text = annotation if isinstance(annotation, str) else repr(annotation)
    return any(marker_name in text for marker_name in _MARKER_NAMES)


def _field_declarations(cls: type[Any]) -> dict[str, type[Any]]:
    """Map each annotated attribute name to the most derived class declaring it."""
    declared_in: dict[str, type[Any]] = {}
    for klass in cls.__mro__:
        for name in inspect.get_annotations(klass):
            declared_in.setdefault(name, klass)
    return declared_in


def _module_namespace(klass: type[Any]) -> dict[str, Any]:
    module = sys.modules.get(klass.__module__)
    return vars(module) if module is not None else {}


DEFAULT_DEPENDENCY_FINDER = DependencyFinder()


def get_dependencies(cls: type[Any]) -> list[Dependency]:
    """Return the dependencies of ``cls`` using the default finder."""
    return DEFAULT_DEPENDENCY_FINDER.get_dependencies(cls)


__all__ = ["DEFAULT_DEPENDENCY_FINDER", "DependencyFinder", "get_dependencies"]
