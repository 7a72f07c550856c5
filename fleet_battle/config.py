"""Balance configuration: file loading, layering and validation.

Configuration files are YAML or JSON documents that are deep-merged in order,
optionally topped with environment overrides, and finally validated into an
immutable :class:`BalanceConfig`.  Loading is strict: an unreadable file, a
document that is not a mapping, or a missing required field raises
:class:`BalanceConfigError` instead of falling back to defaults.
"""
from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .participants import Role

DEFAULT_BALANCE_PATH = Path(__file__).resolve().parent / "data" / "balance.yaml"
DEFAULT_ENV_PREFIX = "FLEET_BATTLE__"


class BalanceConfigError(ValueError):
    """Raised when balance configuration cannot be loaded or validated."""


# =============================
# File layering
# =============================


def _deep_merge(a: Dict[str, Any], b: Dict[str, Any]) -> Dict[str, Any]:
    out = dict(a)
    for k, v in (b or {}).items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = _deep_merge(out[k], v)
        else:
            out[k] = v
    return out


def _load_one(path: Union[str, Path]) -> Dict[str, Any]:
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise BalanceConfigError(f"configuration file '{path}' cannot be read") from exc
    suffix = path.suffix.lower()
    try:
        if suffix == ".json":
            data = json.loads(text)
        elif suffix in (".yaml", ".yml"):
            data = yaml.safe_load(text)
        else:
            raise BalanceConfigError(f"unsupported configuration format '{suffix}' for '{path}'")
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise BalanceConfigError(f"configuration file '{path}' is not valid {suffix[1:]}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise BalanceConfigError(f"configuration file '{path}' must contain a mapping")
    return data


def load_configs(paths: Iterable[Union[str, Path]] | None) -> Dict[str, Any]:
    cfg: Dict[str, Any] = {}
    for p in (paths or []):
        cfg = _deep_merge(cfg, _load_one(p))
    return cfg


def env_overrides(prefix: str = DEFAULT_ENV_PREFIX) -> Dict[str, Any]:
    # Nested via double underscores: FLEET_BATTLE__COMBAT__ROUNDS=8
    out: Dict[str, Any] = {}
    for k, v in os.environ.items():
        if not k.startswith(prefix):
            continue
        parts = k[len(prefix):].split("__")
        cur = out
        for i, part in enumerate(parts):
            key = part.lower()
            if i == len(parts) - 1:
                cur[key] = _coerce(v)
            else:
                cur = cur.setdefault(key, {})
    return out


def _coerce(s: str) -> Any:
    t = s.strip().lower()
    if t in ("true", "false"):
        return t == "true"
    try:
        if "." in t or "e" in t:
            return float(t)
        return int(t)
    except ValueError:
        return s


def apply_cli_overrides(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    return _deep_merge(base, overrides or {})


# =============================
# Schema
# =============================


class _Section(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")


class RetreatThresholds(_Section):
    attacker: float = Field(default=0.0, ge=0.0, le=1.0)
    defender: float = Field(default=0.0, ge=0.0, le=1.0)


class StatMultipliers(_Section):
    attack: float = Field(default=1.0, ge=0.0)
    hull_per_defense: float = Field(default=1.0, ge=0.0)
    base_hull: float = Field(default=0.0, ge=0.0)


class AttackMultipliers(_Section):
    attacker: float = Field(default=1.0, ge=0.0)
    defender: float = Field(default=1.0, ge=0.0)


class CombatSettings(_Section):
    rounds: int = Field(ge=1)
    min_losses_ratio: float = Field(default=0.0, ge=0.0, le=1.0)
    retreat_threshold: RetreatThresholds = Field(default_factory=RetreatThresholds)
    stat_multipliers: StatMultipliers
    attack_multipliers: AttackMultipliers = Field(default_factory=AttackMultipliers)
    default_damage_modifier: Optional[float] = Field(default=None, gt=0.0)


DamageModifier = Union[float, Dict[str, float]]


class BalanceConfig(_Section):
    """Validated, read-only numeric tuning for one battle or game mode."""

    combat: CombatSettings
    rounding_tolerance: float = Field(default=1e-6, ge=0.0)
    target_priorities: Dict[str, List[str]] = Field(default_factory=dict)
    damage_modifiers: Dict[str, DamageModifier] = Field(default_factory=dict)

    @field_validator("target_priorities")
    @classmethod
    def _dedupe_priorities(cls, value: Dict[str, List[str]]) -> Dict[str, List[str]]:
        cleaned: Dict[str, List[str]] = {}
        for context, entries in value.items():
            ordered: List[str] = []
            for entry in entries:
                entry = str(entry)
                if entry and entry not in ordered:
                    ordered.append(entry)
            cleaned[str(context)] = ordered
        return cleaned

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "BalanceConfig":
        try:
            return cls.model_validate(dict(data))
        except ValidationError as exc:
            raise BalanceConfigError(f"invalid balance configuration: {exc}") from exc

    # ----- Accessors -----

    @property
    def max_rounds(self) -> int:
        return self.combat.rounds

    @property
    def min_loss_ratio(self) -> float:
        return self.combat.min_losses_ratio

    def retreat_threshold(self, role: Role) -> float:
        return getattr(self.combat.retreat_threshold, Role(role).value)

    def attack_multiplier(self, role: Role) -> float:
        return getattr(self.combat.attack_multipliers, Role(role).value)

    @property
    def default_damage_modifier(self) -> float:
        if self.combat.default_damage_modifier is not None:
            return self.combat.default_damage_modifier
        fallback = self.damage_modifiers.get("default")
        if isinstance(fallback, (int, float)) and fallback > 0:
            return float(fallback)
        return 1.0

    def target_order(self, attacker_key: str, available: Iterable[str]) -> List[str]:
        """Order the ``available`` target keys for one attacking ship type.

        The attacker's own priority list wins over the default list; target
        types named in neither follow in ascending key order.
        """
        present = sorted(set(available))
        ordered = self.target_priorities.get(attacker_key) or self.target_priorities.get("default", [])
        result = [key for key in ordered if key in present]
        result.extend(key for key in present if key not in result)
        return result

    def damage_modifier(self, attacker_key: str, target_key: str) -> float:
        specific = self.damage_modifiers.get(attacker_key)
        if isinstance(specific, dict):
            if target_key in specific:
                return max(0.0, float(specific[target_key]))
            if "default" in specific:
                return max(0.0, float(specific["default"]))
        elif specific is not None and attacker_key != "default":
            return max(0.0, float(specific))
        fallback = self.damage_modifiers.get("default")
        if isinstance(fallback, (int, float)):
            return max(0.0, float(fallback))
        return self.default_damage_modifier


def load_balance_config(
    paths: Sequence[Union[str, Path]] | None = None,
    env_prefix: Optional[str] = None,
) -> BalanceConfig:
    """Load, merge and validate balance files (the packaged defaults when ``paths`` is empty)."""
    data = load_configs(paths or [DEFAULT_BALANCE_PATH])
    if env_prefix:
        data = apply_cli_overrides(data, env_overrides(env_prefix))
    return BalanceConfig.from_mapping(data)


__all__ = [
    "AttackMultipliers",
    "BalanceConfig",
    "BalanceConfigError",
    "CombatSettings",
    "DEFAULT_BALANCE_PATH",
    "DEFAULT_ENV_PREFIX",
    "RetreatThresholds",
    "StatMultipliers",
    "apply_cli_overrides",
    "env_overrides",
    "load_balance_config",
    "load_configs",
    "_deep_merge",
]
