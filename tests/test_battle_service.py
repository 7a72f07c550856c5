import pytest

from fleet_battle.config import BalanceConfig
from fleet_battle.participants import FleetParticipant
from fleet_battle.reports import Winner
from fleet_battle.service import BattleService
from fleet_battle.ship_catalog import ShipCatalog, UnknownShipError


def service(rounds: int = 6) -> BattleService:
    catalog = ShipCatalog({"fighter": {"label": "Fighter", "stats": {"attack": 10, "defense": 5}}})
    balance = BalanceConfig.from_mapping(
        {
            "combat": {
                "rounds": rounds,
                "stat_multipliers": {"attack": 1.0, "hull_per_defense": 5.0, "base_hull": 5.0},
            },
            "target_priorities": {"default": ["fighter"]},
        }
    )
    return BattleService(catalog, balance)


def test_resolve_builds_participants_from_raw_maps():
    result = service().resolve({"fighter": 10, "ghost": 0}, {"fighter": "5"})
    assert result.winner == Winner.ATTACKER
    assert result.defender_remaining == {"fighter": 0}
    assert result.rounds_fought == 2


def test_empty_defender_needs_no_battle():
    result = service().resolve({"fighter": 5}, {})
    assert result.winner == Winner.ATTACKER
    assert result.attacker_remaining == {"fighter": 5}
    assert result.rounds_fought == 0


def test_unknown_ship_propagates_before_engine_runs():
    with pytest.raises(UnknownShipError, match="dreadnought"):
        service().resolve({"fighter": 1}, {"dreadnought": 1})


def test_unknown_ship_propagates_even_against_empty_fleet():
    with pytest.raises(UnknownShipError):
        service().resolve({"ghost": 3}, {})


def test_roles_must_match_positions():
    attacker = FleetParticipant.attacking({"fighter": 1})
    with pytest.raises(ValueError):
        service().resolve_battle(attacker, attacker)


def test_from_files_uses_packaged_defaults():
    svc = BattleService.from_files()
    result = svc.resolve({"cruiser": 2}, {"transport": 3})
    assert result.winner == Winner.ATTACKER
    assert svc.balance.max_rounds == 6
    assert "carrier" in svc.catalog
