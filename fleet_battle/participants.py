"""Fleet participants: the sanitized input side of a battle."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional


class Role(str, Enum):
    ATTACKER = "attacker"
    DEFENDER = "defender"

    @property
    def opponent(self) -> "Role":
        return Role.DEFENDER if self is Role.ATTACKER else Role.ATTACKER


def _coerce_int(value: Any) -> Optional[int]:
    """Truncate numeric-like input toward zero; ``None`` when it is not a number."""
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return None


def _coerce_float(value: Any) -> Optional[float]:
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def sanitize_composition(composition: Optional[Mapping[Any, Any]]) -> Dict[str, int]:
    sanitized: Dict[str, int] = {}
    for ship_key, quantity in (composition or {}).items():
        key = str(ship_key)
        count = _coerce_int(quantity)
        if not key or count is None or count <= 0:
            continue
        sanitized[key] = count
    return dict(sorted(sanitized.items()))


def sanitize_modifiers(modifiers: Optional[Mapping[Any, Any]]) -> Dict[str, float]:
    sanitized: Dict[str, float] = {}
    for name, value in (modifiers or {}).items():
        number = _coerce_float(value)
        if number is None:
            continue
        sanitized[str(name)] = number
    return sanitized


@dataclass(frozen=True)
class FleetParticipant:
    """One side of a battle with its ships and modifiers.

    Construction never fails.  Quantities that are zero, negative or not
    numbers are dropped, and the remaining entries are kept in key order so
    that iteration is deterministic.  Both maps are read-only views.
    """

    role: Role
    composition: Mapping[str, int] = field(default_factory=dict)
    modifiers: Mapping[str, float] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "role", Role(self.role))
        object.__setattr__(self, "composition", MappingProxyType(sanitize_composition(self.composition)))
        object.__setattr__(self, "modifiers", MappingProxyType(sanitize_modifiers(self.modifiers)))

    @classmethod
    def attacking(
        cls,
        composition: Optional[Mapping[Any, Any]] = None,
        modifiers: Optional[Mapping[Any, Any]] = None,
    ) -> "FleetParticipant":
        return cls(Role.ATTACKER, dict(composition or {}), dict(modifiers or {}))

    @classmethod
    def defending(
        cls,
        composition: Optional[Mapping[Any, Any]] = None,
        modifiers: Optional[Mapping[Any, Any]] = None,
    ) -> "FleetParticipant":
        return cls(Role.DEFENDER, dict(composition or {}), dict(modifiers or {}))

    @property
    def total_units(self) -> int:
        return sum(self.composition.values())

    @property
    def is_empty(self) -> bool:
        return not self.composition

    def multiplier(self, kind: str) -> float:
        """Resolve ``<kind>_multiplier`` or ``<kind>_bonus`` into a positive factor."""
        if f"{kind}_multiplier" in self.modifiers:
            value = self.modifiers[f"{kind}_multiplier"]
        elif f"{kind}_bonus" in self.modifiers:
            value = 1.0 + self.modifiers[f"{kind}_bonus"]
        else:
            return 1.0
        return value if value > 0.0 else 1.0

    @property
    def damage_multiplier(self) -> float:
        return self.multiplier("damage")

    @property
    def hull_multiplier(self) -> float:
        return self.multiplier("hull")


__all__ = [
    "FleetParticipant",
    "Role",
    "sanitize_composition",
    "sanitize_modifiers",
]
