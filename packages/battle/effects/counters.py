"""
Counter effect handlers.

A counter handler turns a pending enemy strike into a CounterOutcome: how
much of the strike still reaches the player, how much damage goes back to
the enemy and how much shield the player gains. Handlers are pure apart
from dice rolls; the engine applies the outcome.

Usage:
    @counter_effect("block")
    def block(spec: CounterSpec, incoming: int, rng: Random) -> CounterOutcome:
        return CounterOutcome(incoming=0, blocked=incoming)
"""

import math
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from ..content.cards import CounterSpec
from ..state.rng import Random


@dataclass(frozen=True)
class CounterOutcome:
    incoming: int  # Damage still applied to the player (through the shield path)
    blocked: int = 0
    damage_back: int = 0
    shield_gain: int = 0
    roll: Optional[int] = None


CounterHandler = Callable[[CounterSpec, int, Random], CounterOutcome]

_COUNTER_REGISTRY: Dict[str, CounterHandler] = {}


def counter_effect(counter_type: str):
    """Decorator to register a counter handler for a counter type."""
    def decorator(func: CounterHandler) -> CounterHandler:
        _COUNTER_REGISTRY[counter_type] = func
        return func

    return decorator


def resolve_counter(spec: CounterSpec, incoming: int, rng: Random) -> CounterOutcome:
    handler = _COUNTER_REGISTRY.get(spec.counter_type)
    if handler is None:
        raise ValueError(f"Unknown counter type: {spec.counter_type}")
    return handler(spec, incoming, rng)


def list_counter_types() -> List[str]:
    return sorted(_COUNTER_REGISTRY)


# =============================================================================
# Handlers
# =============================================================================

@counter_effect("block")
def block(spec: CounterSpec, incoming: int, rng: Random) -> CounterOutcome:
    return CounterOutcome(incoming=0, blocked=incoming)


@counter_effect("block_and_damage")
def block_and_damage(spec: CounterSpec, incoming: int, rng: Random) -> CounterOutcome:
    return CounterOutcome(incoming=0, blocked=incoming, damage_back=spec.damage_back)


@counter_effect("reduce_and_damage")
def reduce_and_damage(spec: CounterSpec, incoming: int, rng: Random) -> CounterOutcome:
    reduced = math.floor(incoming * spec.reduction)
    return CounterOutcome(incoming=incoming - reduced, blocked=reduced,
                          damage_back=spec.damage_back)


@counter_effect("dice_counter")
def dice_counter(spec: CounterSpec, incoming: int, rng: Random) -> CounterOutcome:
    """Roll a d6: at or above the threshold, block and hit back per pip."""
    roll = rng.roll_die()
    if roll >= spec.threshold:
        return CounterOutcome(incoming=0, blocked=incoming,
                              damage_back=roll * spec.damage_per_pip, roll=roll)
    return CounterOutcome(incoming=incoming, roll=roll)


@counter_effect("block_and_shield")
def block_and_shield(spec: CounterSpec, incoming: int, rng: Random) -> CounterOutcome:
    return CounterOutcome(incoming=0, blocked=incoming, shield_gain=spec.shield_gain)
