"""Battle output types: the per-round ledger and the aggregate result.

Both types describe an outcome that has already been computed, so their
constructors coerce loosely typed input instead of rejecting it.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

from .participants import _coerce_int


class Winner(str, Enum):
    ATTACKER = "attacker"
    DEFENDER = "defender"
    DRAW = "draw"

    @classmethod
    def normalize(cls, value: Any) -> "Winner":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.DRAW


def sanitize_losses(values: Optional[Mapping[Any, Any]]) -> Dict[str, int]:
    out: Dict[str, int] = {}
    for key, value in (values or {}).items():
        count = _coerce_int(value)
        if count is None or count <= 0:
            continue
        out[str(key)] = count
    return dict(sorted(out.items()))


def sanitize_remaining(values: Optional[Mapping[Any, Any]]) -> Dict[str, int]:
    out: Dict[str, int] = {}
    for key, value in (values or {}).items():
        count = _coerce_int(value)
        if count is None:
            continue
        out[str(key)] = max(0, count)
    return dict(sorted(out.items()))


@dataclass(frozen=True)
class RoundRecord:
    """Losses and post-round compositions for one simulated round."""

    round: int
    attacker_losses: Dict[str, int] = field(default_factory=dict)
    defender_losses: Dict[str, int] = field(default_factory=dict)
    attacker_remaining: Dict[str, int] = field(default_factory=dict)
    defender_remaining: Dict[str, int] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "round", _coerce_int(self.round) or 0)
        object.__setattr__(self, "attacker_losses", sanitize_losses(self.attacker_losses))
        object.__setattr__(self, "defender_losses", sanitize_losses(self.defender_losses))
        object.__setattr__(self, "attacker_remaining", sanitize_remaining(self.attacker_remaining))
        object.__setattr__(self, "defender_remaining", sanitize_remaining(self.defender_remaining))

    @property
    def total_attacker_losses(self) -> int:
        return sum(self.attacker_losses.values())

    @property
    def total_defender_losses(self) -> int:
        return sum(self.defender_losses.values())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "round": self.round,
            "attacker_losses": dict(self.attacker_losses),
            "defender_losses": dict(self.defender_losses),
            "attacker_remaining": dict(self.attacker_remaining),
            "defender_remaining": dict(self.defender_remaining),
        }


@dataclass(frozen=True)
class BattleResult:
    """Aggregate outcome of one battle.

    ``winner`` is normalized to a :class:`Winner`; anything unrecognized
    becomes ``draw``.  Remaining compositions keep zero entries so a caller
    can see a ship type that was wiped out.  ``rounds`` only retains
    :class:`RoundRecord` instances.
    """

    winner: Winner
    attacker_remaining: Dict[str, int] = field(default_factory=dict)
    defender_remaining: Dict[str, int] = field(default_factory=dict)
    rounds: List[RoundRecord] = field(default_factory=list)
    attacker_retreated: bool = False
    defender_retreated: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "winner", Winner.normalize(self.winner))
        object.__setattr__(self, "attacker_remaining", sanitize_remaining(self.attacker_remaining))
        object.__setattr__(self, "defender_remaining", sanitize_remaining(self.defender_remaining))
        object.__setattr__(
            self, "rounds", [r for r in (self.rounds or []) if isinstance(r, RoundRecord)]
        )
        object.__setattr__(self, "attacker_retreated", bool(self.attacker_retreated))
        object.__setattr__(self, "defender_retreated", bool(self.defender_retreated))

    @property
    def rounds_fought(self) -> int:
        return len(self.rounds)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "winner": self.winner.value,
            "attacker_remaining": dict(self.attacker_remaining),
            "defender_remaining": dict(self.defender_remaining),
            "rounds": [r.to_dict() for r in self.rounds],
            "rounds_fought": self.rounds_fought,
            "attacker_retreated": self.attacker_retreated,
            "defender_retreated": self.defender_retreated,
        }


__all__ = [
    "BattleResult",
    "RoundRecord",
    "Winner",
    "sanitize_losses",
    "sanitize_remaining",
]
