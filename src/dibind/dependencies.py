from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from dibind.defaults import DEFAULT_CATEGORY
from dibind.types import MemberKind


@dataclass(frozen=True)
class Dependency:
    """One slot to fill while populating a new instance.

    Attributes:
        member_name: Attribute, property, or parameter name that receives the value.
        member_kind: Where the value goes: a field, a property, or a constructor argument.
        target_type: Abstract type resolved from the container for this slot.
        category: Binding category used for the lookup.

    """

    member_name: str
    member_kind: MemberKind
    target_type: Any
    category: str = DEFAULT_CATEGORY


@dataclass(frozen=True)
class ConstructorDependency(Dependency):
    """Designated constructor of a class together with its ordered arguments.

    ``member_name`` names the constructor callable: ``"__init__"`` or the name of
    a classmethod alternative constructor.
    """

    arguments: tuple[Dependency, ...] = field(default=())

    @property
    def uses_alternative_constructor(self) -> bool:
        return self.member_name != "__init__"


__all__ = ["ConstructorDependency", "Dependency", "MemberKind"]
