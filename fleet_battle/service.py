"""Caller-side wiring: resolve ship statistics, then run the battle engine."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Mapping, Optional, Sequence, Union

from .config import BalanceConfig, load_balance_config
from .participants import FleetParticipant, Role
from .reports import BattleResult
from .ship_catalog import ShipCatalog, load_ship_catalog
from .simulators.combat import resolve_battle

logger = logging.getLogger(__name__)


class BattleService:
    """Resolves battles against one catalog and one balance configuration."""

    def __init__(self, catalog: ShipCatalog, balance: BalanceConfig) -> None:
        self.catalog = catalog
        self.balance = balance

    @classmethod
    def from_files(
        cls,
        ships_path: Union[str, Path, None] = None,
        config_paths: Optional[Sequence[Union[str, Path]]] = None,
        env_prefix: Optional[str] = None,
    ) -> "BattleService":
        catalog = load_ship_catalog(ships_path)
        balance = load_balance_config(config_paths, env_prefix=env_prefix)
        return cls(catalog, balance)

    def resolve_battle(self, attacker: FleetParticipant, defender: FleetParticipant) -> BattleResult:
        if attacker.role is not Role.ATTACKER or defender.role is not Role.DEFENDER:
            raise ValueError("resolve_battle expects an attacking and a defending participant")
        ship_stats = self.catalog.resolve(list(attacker.composition) + list(defender.composition))
        logger.debug(
            "resolving battle: attacker=%s defender=%s",
            dict(attacker.composition),
            dict(defender.composition),
        )
        return resolve_battle(attacker, defender, ship_stats, self.balance)

    def resolve(
        self,
        attacker_ships: Mapping[Any, Any],
        defender_ships: Mapping[Any, Any],
        attacker_modifiers: Optional[Mapping[Any, Any]] = None,
        defender_modifiers: Optional[Mapping[Any, Any]] = None,
    ) -> BattleResult:
        """Build both participants from raw ship maps and resolve the battle."""
        return self.resolve_battle(
            FleetParticipant.attacking(attacker_ships, attacker_modifiers),
            FleetParticipant.defending(defender_ships, defender_modifiers),
        )


__all__ = ["BattleService"]
