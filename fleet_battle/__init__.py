"""Fleet battle: deterministic round-by-round resolution of fleet engagements."""

from importlib import import_module
from typing import Any

__version__ = "0.1.0"
__all__ = [
    "BalanceConfig",
    "BalanceConfigError",
    "BattleResolver",
    "BattleResult",
    "BattleService",
    "FleetParticipant",
    "Role",
    "RoundRecord",
    "ShipCatalog",
    "ShipCatalogError",
    "ShipStats",
    "UnknownShipError",
    "Winner",
    "get_catalog",
    "load_balance_config",
    "load_ship_catalog",
    "resolve_battle",
    "__version__",
]

_EXPORTS = {
    "BalanceConfig": ("config", "BalanceConfig"),
    "BalanceConfigError": ("config", "BalanceConfigError"),
    "load_balance_config": ("config", "load_balance_config"),
    "FleetParticipant": ("participants", "FleetParticipant"),
    "Role": ("participants", "Role"),
    "BattleResult": ("reports", "BattleResult"),
    "RoundRecord": ("reports", "RoundRecord"),
    "Winner": ("reports", "Winner"),
    "ShipCatalog": ("ship_catalog", "ShipCatalog"),
    "ShipCatalogError": ("ship_catalog", "ShipCatalogError"),
    "ShipStats": ("ship_catalog", "ShipStats"),
    "UnknownShipError": ("ship_catalog", "UnknownShipError"),
    "get_catalog": ("ship_catalog", "get_catalog"),
    "load_ship_catalog": ("ship_catalog", "load_ship_catalog"),
    "BattleResolver": ("simulators.combat", "BattleResolver"),
    "resolve_battle": ("simulators.combat", "resolve_battle"),
    "BattleService": ("service", "BattleService"),
}


def __getattr__(name: str) -> Any:
    if name in _EXPORTS:
        module_name, attr_name = _EXPORTS[name]
        module = import_module(f".{module_name}", __name__)
        attr = getattr(module, attr_name)
        globals()[name] = attr
        return attr
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")


def __dir__() -> list[str]:
    return sorted(set(list(globals().keys()) + list(__all__)))
