"""Ship catalog: resolves ship keys to combat statistics."""
from __future__ import annotations

from dataclasses import dataclass, field
import math
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from .config import BalanceConfigError, _load_one

DEFAULT_SHIPS_PATH = Path(__file__).resolve().parent / "data" / "ships.yaml"


class UnknownShipError(KeyError):
    """Raised when a ship key is not registered in the catalog."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else super().__str__()


class ShipCatalogError(ValueError):
    """Raised when a ship definition is malformed."""


@dataclass(frozen=True)
class ShipStats:
    """Immutable combat statistics for one ship type."""

    key: str
    label: str
    category: str = "misc"
    role: str = ""
    stats: Dict[str, int] = field(default_factory=dict)

    @property
    def attack(self) -> int:
        return self.stats.get("attack", 0)

    @property
    def defense(self) -> int:
        return self.stats.get("defense", 0)


def _round_stat(ship_key: str, stat_key: str, value: Any) -> int:
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise ShipCatalogError(f"stat '{stat_key}' of ship '{ship_key}' is not a number") from exc
    if not math.isfinite(number):
        raise ShipCatalogError(f"stat '{stat_key}' of ship '{ship_key}' is not finite")
    return int(round(number))


def build_ship_stats(key: str, block: Mapping[str, Any]) -> ShipStats:
    if not isinstance(block, Mapping):
        raise ShipCatalogError(f"definition of ship '{key}' must be a mapping")
    stats = block.get("stats", {})
    if not isinstance(stats, Mapping):
        raise ShipCatalogError(f"invalid stats definition for ship '{key}'")
    return ShipStats(
        key=key,
        label=str(block.get("label", key)),
        category=str(block.get("category", "misc")),
        role=str(block.get("role", "")),
        stats={str(k): _round_stat(key, str(k), v) for k, v in stats.items()},
    )


class ShipCatalog:
    """Read-only registry of ship definitions."""

    def __init__(self, definitions: Optional[Mapping[str, Mapping[str, Any]]] = None) -> None:
        self._ships: Dict[str, ShipStats] = {}
        for key, block in (definitions or {}).items():
            key = str(key)
            if not key:
                raise ShipCatalogError("ship keys must be non-empty strings")
            self._ships[key] = build_ship_stats(key, block)

    def __contains__(self, key: object) -> bool:
        return key in self._ships

    def __len__(self) -> int:
        return len(self._ships)

    def keys(self) -> List[str]:
        return sorted(self._ships)

    def all(self) -> List[ShipStats]:
        return [self._ships[k] for k in self.keys()]

    def get(self, key: str) -> ShipStats:
        try:
            return self._ships[key]
        except KeyError as exc:
            available = ", ".join(self.keys())
            raise UnknownShipError(f"Unknown ship '{key}'. Available: {available}") from exc

    def resolve(self, keys: Iterable[str]) -> Dict[str, ShipStats]:
        """Look up every key, failing on the first unknown one."""
        return {key: self.get(key) for key in sorted(set(keys))}

    def grouped_by_category(self) -> Dict[str, List[ShipStats]]:
        groups: Dict[str, List[ShipStats]] = {}
        for ship in self.all():
            groups.setdefault(ship.category, []).append(ship)
        return groups

    def to_dict(self) -> Dict[str, Dict[str, Any]]:
        return {
            ship.key: {
                "label": ship.label,
                "category": ship.category,
                "role": ship.role,
                "stats": dict(ship.stats),
            }
            for ship in self.all()
        }


def load_ship_catalog(path: Union[str, Path, None] = None) -> ShipCatalog:
    """Load a catalog from YAML or JSON; the document may nest entries under ``ships``."""
    try:
        payload = _load_one(path or DEFAULT_SHIPS_PATH)
    except BalanceConfigError as exc:
        raise ShipCatalogError(str(exc)) from exc
    ships = payload.get("ships", payload)
    if not isinstance(ships, Mapping):
        raise ShipCatalogError("'ships' must be a mapping of ship key to definition")
    return ShipCatalog(ships)


_catalog: Optional[ShipCatalog] = None


def get_catalog(path: Union[str, Path, None] = None) -> ShipCatalog:
    """Return the cached packaged catalog, or a freshly loaded one for ``path``."""
    global _catalog
    if path is not None:
        return load_ship_catalog(path)
    if _catalog is None:
        _catalog = load_ship_catalog()
    return _catalog


__all__ = [
    "DEFAULT_SHIPS_PATH",
    "ShipCatalog",
    "ShipCatalogError",
    "ShipStats",
    "UnknownShipError",
    "build_ship_stats",
    "get_catalog",
    "load_ship_catalog",
]
