from __future__ import annotations

from enum import Enum


class Lifecycle(str, Enum):
    """Defines how a binding creates instances of its bound-to type."""

    TRANSIENT = "transient"
    """A new instance is created every time the binding is resolved."""

    SINGLETON = "singleton"
    """One instance is created on first resolution and cached by the binding."""


class MemberKind(str, Enum):
    """Kind of slot a dependency fills on the object being built."""

    FIELD = "field"
    PROPERTY = "property"
    CONSTRUCTOR = "constructor"


class CircularDependencyPolicy(str, Enum):
    """Select how a revisited binding is treated during one resolution.

    A binding is revisited when it is requested again for the same owner type
    while its first request is still being resolved.
    """

    ALLOW_SINGLETON_MEMBERS = "allow_singleton_members"
    """Fail for constructor arguments and transient bindings only.

    A member dependency back onto a singleton binding is allowed, so two
    singletons may reference each other through injected members.
    """

    STRICT = "strict"
    """Fail whenever a binding is requested while its own resolution is in progress.

    This includes back-references to a singleton that already exists but is
    still having its members injected.
    """
