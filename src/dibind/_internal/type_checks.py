from __future__ import annotations

import inspect
import types
import typing
from typing import Any, TypeGuard, get_type_hints


def is_runtime_class(candidate: object) -> TypeGuard[type[Any]]:
    """Return true when candidate is a runtime class safe for class-only operations.

    Args:
        candidate: Value being checked for eligibility or runtime type constraints.

    """
    return isinstance(candidate, type) and not isinstance(candidate, types.GenericAlias)


def is_protocol(candidate: object) -> bool:
    """Return true when candidate is a ``typing.Protocol`` class."""
    if not is_runtime_class(candidate):
        return False
    if hasattr(typing, "is_protocol"):
        return typing.is_protocol(candidate)
    return bool(getattr(candidate, "_is_protocol", False)) and candidate is not typing.Protocol


def protocol_conformance_errors(protocol: type[Any], impl: type[Any]) -> list[str]:
    """Return why ``impl`` does not structurally satisfy ``protocol``.

    Nominal subclasses always conform. Otherwise every public annotated
    attribute and method of the protocol must exist on ``impl``, and methods
    must not require more positional parameters than the protocol declares.
    An empty list means ``impl`` conforms.
    """
    if protocol in getattr(impl, "__mro__", ()):
        return []

    errors: list[str] = []
    try:
        protocol_hints = get_type_hints(protocol)
    except (NameError, TypeError):
        protocol_hints = {}

    for name in protocol_hints:
        if not name.startswith("_") and not hasattr(impl, name):
            errors.append(f"missing member '{name}'")

    for name, protocol_attr in vars(protocol).items():
        if name.startswith("_") or not inspect.isfunction(protocol_attr):
            continue
        impl_attr = getattr(impl, name, None)
        if impl_attr is None:
            errors.append(f"missing member '{name}'")
            continue
        if not callable(impl_attr):
            errors.append(f"member '{name}' is not callable")
            continue
        try:
            protocol_arity = _required_positional_arity(inspect.signature(protocol_attr))
            impl_arity = _required_positional_arity(inspect.signature(impl_attr))
        except (TypeError, ValueError):
            continue
        if impl_arity > protocol_arity:
            errors.append(
                f"method '{name}' requires {impl_arity} positional parameters, "
                f"protocol allows {protocol_arity}",
            )
    return errors


def _required_positional_arity(signature: inspect.Signature) -> int:
    return sum(
        1
        for parameter in signature.parameters.values()
        if parameter.name != "self"
        and parameter.kind in (parameter.POSITIONAL_ONLY, parameter.POSITIONAL_OR_KEYWORD)
        and parameter.default is parameter.empty
    )


__all__ = ["is_protocol", "is_runtime_class", "protocol_conformance_errors"]
