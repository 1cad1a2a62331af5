"""
Effect registries.

- registry: @effect handlers for card and item payloads, EffectContext
- cards: the payload handlers (importing registers them)
- counters: @counter_effect handlers that resolve a pending enemy strike

Usage:
    from packages.battle.effects import effect, EffectContext

    @effect("draw")
    def draw(ctx: EffectContext, payload) -> None:
        ctx.draw_cards(payload.value)
"""

from .registry import EffectContext, effect, execute_effect, execute_effects, list_registered_effects
from . import cards  # noqa: F401
from .counters import CounterOutcome, counter_effect, resolve_counter, list_counter_types
