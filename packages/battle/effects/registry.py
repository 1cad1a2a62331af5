"""
Effect Registry.

Decorator-based registration of the handlers that interpret CardEffect
payloads. Cards and consumable items are both tuples of payloads, so one
registry serves both.

Usage:
    @effect("draw")
    def draw_cards(ctx: EffectContext, payload: CardEffect) -> None:
        ctx.draw_cards(payload.value)

    # Later, in card execution:
    execute_effect(card.effects[0], ctx)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional

if TYPE_CHECKING:
    from ..combat_engine import BattleEngine
    from ..content.cards import Card, CardEffect
    from ..state.combat import Combatant, CombatState

logger = logging.getLogger(__name__)


@dataclass
class EffectContext:
    """
    Context passed to effect handlers.

    Wraps the engine so handlers never touch state directly; every change
    goes through the same clamping, terminal checks and logging as the rest
    of the battle.
    """
    engine: BattleEngine
    source: str  # Card or item name, for the battle log
    card: Optional[Card] = None

    # Tracking for effect execution
    damage_dealt: int = 0
    healing_done: int = 0
    cards_drawn: List[str] = field(default_factory=list)
    energy_gained: int = 0
    statuses_applied: List[str] = field(default_factory=list)
    rolls: List[int] = field(default_factory=list)
    extra_data: Dict[str, Any] = field(default_factory=dict)

    # ------------------------------------------------------------------
    # State Access
    # ------------------------------------------------------------------

    @property
    def state(self) -> CombatState:
        return self.engine.state

    @property
    def player(self) -> Combatant:
        return self.engine.state.player

    @property
    def enemy(self) -> Combatant:
        return self.engine.state.enemy

    @property
    def battle_over(self) -> bool:
        return self.engine.state.terminal

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def roll_die(self, sides: int = 6) -> int:
        roll = self.engine.rng.card_rng.roll_die(sides)
        self.rolls.append(roll)
        return roll

    def deal_damage(self, base: int, talents: bool = True) -> int:
        """Attack the enemy through the damage pipeline."""
        dealt = self.engine.player_attack(base, self.source, apply_talents=talents)
        self.damage_dealt += dealt
        return dealt

    def deal_raw_damage_to_enemy(self, amount: int) -> int:
        """Damage that skips the pipeline (execute bonus)."""
        dealt = self.engine.damage_enemy_direct(amount, self.source)
        self.damage_dealt += dealt
        return dealt

    def damage_player(self, amount: int) -> int:
        """Self-inflicted damage (recoil)."""
        return self.engine.damage_player_direct(amount, self.source)

    def heal_player(self, amount: int) -> int:
        healed = self.engine.heal_player(amount, self.source)
        self.healing_done += healed
        return healed

    def draw_cards(self, count: int) -> List[str]:
        drawn = self.engine.draw_cards(count)
        self.cards_drawn.extend(drawn)
        return drawn

    def gain_energy(self, amount: int) -> int:
        gained = self.player.gain_energy(amount)
        self.energy_gained += gained
        return gained

    def apply_status_to_player(self, status: str, stacks: int = 1,
                               duration: Optional[int] = None) -> None:
        self.engine.apply_status(self.player, status, stacks, duration, self.source)
        self.statuses_applied.append(status)

    def apply_status_to_enemy(self, status: str, stacks: int = 1,
                              duration: Optional[int] = None) -> None:
        self.engine.apply_status(self.enemy, status, stacks, duration, self.source)
        self.statuses_applied.append(status)

    def remove_status_from_player(self, status: str) -> bool:
        return self.engine.cleanse(self.player, status, self.source)

    def clear_player_statuses(self, debuffs_only: bool = False) -> int:
        return self.engine.clear_statuses(self.player, debuffs_only, self.source)


# =============================================================================
# Registry
# =============================================================================

EffectHandler = Callable[[EffectContext, "CardEffect"], None]

_EFFECT_REGISTRY: Dict[str, EffectHandler] = {}


def effect(name: str):
    """
    Decorator to register an effect handler.

    Args:
        name: effect_type the handler interprets (e.g., "damage", "draw")
    """
    def decorator(func: EffectHandler) -> EffectHandler:
        if name in _EFFECT_REGISTRY:
            raise ValueError(f"Effect already registered: {name}")
        _EFFECT_REGISTRY[name] = func
        return func

    return decorator


def get_effect_handler(effect_type: str) -> Optional[EffectHandler]:
    return _EFFECT_REGISTRY.get(effect_type)


def execute_effect(payload: CardEffect, ctx: EffectContext) -> bool:
    """
    Run one payload. Returns False for an unknown effect type.

    Stops silently once the battle has ended so a killing blow never
    triggers the rest of a card.
    """
    if ctx.battle_over:
        return False
    handler = get_effect_handler(payload.effect_type)
    if handler is None:
        logger.warning("No handler for effect %r (%s)", payload.effect_type, ctx.source)
        return False
    handler(ctx, payload)
    return True


def execute_effects(payloads, ctx: EffectContext) -> EffectContext:
    for payload in payloads:
        execute_effect(payload, ctx)
    return ctx


def list_registered_effects() -> List[str]:
    return sorted(_EFFECT_REGISTRY)
