"""Deterministic fleet battle resolution.

Two fleets exchange fire in rounds.  Each round both sides compute their
casualties from pre-round strength, the losses are applied simultaneously and
a :class:`~fleet_battle.reports.RoundRecord` is appended to the ledger.  The
battle stops on annihilation or retreat, and otherwise at the configured
round cap.

Damage model, per attacking ship type:

* attack power is ``quantity * attack * stat_multipliers.attack * side multiplier``;
* it is spent along the type's target order, scaled by the damage modifier of
  each (attacker, target) pair, filling each target's hull pool for the round
  and spilling over to the next target once a pool is exhausted;
* absorbed damage becomes ``floor(absorbed / unit hull)`` destroyed units and
  any remainder is lost at the end of the round.

A minimum-loss floor forces ``ceil(units * min_losses_ratio)`` casualties per
side and round.  The driver is :func:`resolve_battle`.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from fractions import Fraction
import logging
import math
import sys
from typing import Dict, List, Mapping, Optional

from ..config import BalanceConfig
from ..participants import FleetParticipant, Role
from ..reports import BattleResult, RoundRecord, Winner
from ..ship_catalog import ShipStats

logger = logging.getLogger(__name__)

MIN_UNIT_HULL = 1.0
MIN_HULL_MULTIPLIER = 0.1
MAX_AMOUNT = sys.float_info.max


def _bounded(value: float, lower: float) -> float:
    """Clamp ``value`` into ``[lower, MAX_AMOUNT]``; NaN maps to ``lower``."""
    if math.isnan(value):
        return lower
    return min(max(lower, value), MAX_AMOUNT)


def _scaled(count: int, per_unit: float) -> float:
    try:
        total = float(count) * per_unit
    except OverflowError:
        total = MAX_AMOUNT if per_unit > 0.0 else 0.0
    return _bounded(total, 0.0)


# =============================
# Runtime structures
# =============================


@dataclass
class ShipGroup:
    """All units of one ship type on one side."""

    key: str
    quantity: int
    attack: float
    hull: float

    def alive(self) -> bool:
        return self.quantity > 0

    def hull_pool(self) -> float:
        return _scaled(self.quantity, self.hull)

    def attack_power(self) -> float:
        return _scaled(self.quantity, self.attack)


@dataclass
class Side:
    """Mutable battle state for one participant."""

    role: Role
    groups: Dict[str, ShipGroup] = field(default_factory=dict)
    initial_units: int = 0

    def alive(self) -> bool:
        return any(g.alive() for g in self.groups.values())

    def total_units(self) -> int:
        return sum(g.quantity for g in self.groups.values())

    def quantities(self) -> Dict[str, int]:
        return {key: g.quantity for key, g in sorted(self.groups.items())}

    def available_targets(self) -> List[str]:
        return [key for key, g in sorted(self.groups.items()) if g.alive()]


def build_side(
    participant: FleetParticipant,
    ship_stats: Mapping[str, ShipStats],
    balance: BalanceConfig,
) -> Side:
    """Turn a participant into per-type groups with effective attack and hull."""
    multipliers = balance.combat.stat_multipliers
    damage_multiplier = balance.attack_multiplier(participant.role) * participant.damage_multiplier
    hull_multiplier = max(MIN_HULL_MULTIPLIER, participant.hull_multiplier)

    side = Side(role=participant.role, initial_units=participant.total_units)
    for key, quantity in participant.composition.items():
        stats = ship_stats[key]
        attack = max(0.0, float(stats.attack)) * multipliers.attack * damage_multiplier
        defense = max(0.0, float(stats.defense))
        hull = (multipliers.base_hull + defense * multipliers.hull_per_defense) * hull_multiplier
        side.groups[key] = ShipGroup(
            key=key,
            quantity=quantity,
            attack=_bounded(attack, 0.0),
            hull=_bounded(hull, MIN_UNIT_HULL),
        )
    return side


# =============================
# Core battle driver
# =============================


class BattleResolver:
    def __init__(
        self,
        attacker: FleetParticipant,
        defender: FleetParticipant,
        ship_stats: Mapping[str, ShipStats],
        balance: BalanceConfig,
    ):
        self.balance = balance
        self.attacker = build_side(attacker, ship_stats, balance)
        self.defender = build_side(defender, ship_stats, balance)
        self.rounds: List[RoundRecord] = []
        self.attacker_retreated = False
        self.defender_retreated = False

    # ----- Public API -----

    def resolve(self) -> BattleResult:
        instant = self._instant_winner()
        if instant is not None:
            return self._result(instant)

        winner = Winner.DRAW
        for round_index in range(1, self.balance.max_rounds + 1):
            self._fight_round(round_index)
            decided = self._decide(round_index)
            if decided is not None:
                winner = decided
                break

        result = self._result(winner)
        logger.info(
            "battle resolved: winner=%s rounds=%d attacker_left=%d defender_left=%d",
            result.winner.value,
            result.rounds_fought,
            self.attacker.total_units(),
            self.defender.total_units(),
        )
        return result

    # ----- Rounds -----

    def _fight_round(self, round_index: int) -> None:
        attacker_before = self.attacker.total_units()
        defender_before = self.defender.total_units()

        defender_losses = self._casualties(self.attacker, self.defender)
        attacker_losses = self._casualties(self.defender, self.attacker)

        self._enforce_minimum_losses(self.attacker, attacker_losses, attacker_before)
        self._enforce_minimum_losses(self.defender, defender_losses, defender_before)

        self._apply_losses(self.attacker, attacker_losses)
        self._apply_losses(self.defender, defender_losses)

        self.rounds.append(
            RoundRecord(
                round=round_index,
                attacker_losses=attacker_losses,
                defender_losses=defender_losses,
                attacker_remaining=self.attacker.quantities(),
                defender_remaining=self.defender.quantities(),
            )
        )
        logger.debug(
            "round %d: attacker lost %s, defender lost %s",
            round_index,
            attacker_losses,
            defender_losses,
        )

    def _casualties(self, shooters: Side, targets: Side) -> Dict[str, int]:
        available = targets.available_targets()
        pools = {key: targets.groups[key].hull_pool() for key in available}
        absorbed = {key: 0.0 for key in available}
        exhausted = set()

        for shooter_key, group in sorted(shooters.groups.items()):
            remaining = group.attack_power()
            if remaining <= 0.0:
                continue
            for target_key in self.balance.target_order(shooter_key, available):
                modifier = self.balance.damage_modifier(shooter_key, target_key)
                capacity = pools[target_key]
                if modifier <= 0.0 or capacity <= 0.0:
                    continue
                dealt = remaining * modifier
                if dealt < capacity:
                    pools[target_key] = capacity - dealt
                    absorbed[target_key] += dealt
                    remaining = 0.0
                    break
                pools[target_key] = 0.0
                absorbed[target_key] += capacity
                exhausted.add(target_key)
                remaining -= capacity / modifier
                if remaining <= 0.0:
                    break
            # overflow past the last target is discarded

        tolerance = self.balance.rounding_tolerance
        losses: Dict[str, int] = {}
        for target_key, damage in absorbed.items():
            group = targets.groups[target_key]
            if target_key in exhausted:
                kills = group.quantity
            else:
                kills = int(math.floor(damage / group.hull + tolerance))
            if kills > 0:
                losses[target_key] = min(kills, group.quantity)
        return losses

    def _enforce_minimum_losses(self, side: Side, losses: Dict[str, int], units_before: int) -> None:
        ratio = self.balance.min_loss_ratio
        if units_before <= 0 or ratio <= 0.0:
            return
        minimum = min(units_before, _minimum_losses(units_before, ratio, self.balance.rounding_tolerance))
        additional = minimum - sum(losses.values())
        if additional <= 0:
            return

        order = sorted(side.groups.values(), key=lambda g: (-g.hull, -g.quantity, g.key))
        for group in order:
            if additional <= 0:
                break
            spare = group.quantity - losses.get(group.key, 0)
            if spare <= 0:
                continue
            take = min(spare, additional)
            losses[group.key] = losses.get(group.key, 0) + take
            additional -= take

    def _apply_losses(self, side: Side, losses: Mapping[str, int]) -> None:
        for key, lost in losses.items():
            group = side.groups[key]
            group.quantity = max(0, group.quantity - lost)

    # ----- Outcome -----

    def _instant_winner(self) -> Optional[Winner]:
        attacker_alive = self.attacker.alive()
        defender_alive = self.defender.alive()
        if attacker_alive and defender_alive:
            return None
        if attacker_alive:
            return Winner.ATTACKER
        if defender_alive:
            return Winner.DEFENDER
        return Winner.DRAW

    def _decide(self, round_index: int) -> Optional[Winner]:
        attacker_units = self.attacker.total_units()
        defender_units = self.defender.total_units()

        if attacker_units == 0 or defender_units == 0:
            return _compare(attacker_units, defender_units)

        retreating = [side.role for side in (self.attacker, self.defender) if self._retreats(side)]
        self.attacker_retreated = Role.ATTACKER in retreating
        self.defender_retreated = Role.DEFENDER in retreating
        if len(retreating) == 2:
            return Winner.DRAW
        if retreating:
            return Winner(retreating[0].opponent.value)

        if round_index >= self.balance.max_rounds:
            return _compare(attacker_units, defender_units)
        return None

    def _retreats(self, side: Side) -> bool:
        threshold = self.balance.retreat_threshold(side.role)
        if threshold <= 0.0 or side.initial_units <= 0:
            return False
        ratio = side.total_units() / side.initial_units
        return ratio <= threshold + self.balance.rounding_tolerance

    def _result(self, winner: Winner) -> BattleResult:
        return BattleResult(
            winner=winner,
            attacker_remaining=self.attacker.quantities(),
            defender_remaining=self.defender.quantities(),
            rounds=list(self.rounds),
            attacker_retreated=self.attacker_retreated,
            defender_retreated=self.defender_retreated,
        )


def _minimum_losses(units: int, ratio: float, tolerance: float) -> int:
    try:
        return math.ceil(units * ratio - tolerance)
    except OverflowError:
        # fleets beyond float range
        return math.ceil(Fraction(units) * Fraction(ratio) - Fraction(tolerance))


def _compare(attacker_units: int, defender_units: int) -> Winner:
    if attacker_units > defender_units:
        return Winner.ATTACKER
    if defender_units > attacker_units:
        return Winner.DEFENDER
    return Winner.DRAW


def resolve_battle(
    attacker: FleetParticipant,
    defender: FleetParticipant,
    ship_stats: Mapping[str, ShipStats],
    balance: BalanceConfig,
) -> BattleResult:
    """Resolve one battle between an attacking and a defending participant."""
    return BattleResolver(attacker, defender, ship_stats, balance).resolve()


__all__ = [
    "BattleResolver",
    "ShipGroup",
    "Side",
    "build_side",
    "resolve_battle",
]
