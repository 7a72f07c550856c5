"""Battle simulators."""

from .combat import BattleResolver, resolve_battle

__all__ = ["BattleResolver", "resolve_battle"]
