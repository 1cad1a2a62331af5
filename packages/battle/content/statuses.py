"""
Status Registry - catalog of every status effect kind.

A status definition is a bundle of pure formulas keyed by status id. Nothing
here reads combat state: every formula takes the instance's stack count and
returns a number, and the engine decides when to call it.

=== STATUS HOOKS ===

Turn end (owner's ledger, before ticking):
- damage_per_turn(stacks)   - DOT (burn, poison)
- heal_per_turn(stacks)     - regeneration

Turn start:
- energy_drain(stacks)      - energy lost after the refill (slow)
- draw_penalty(stacks)      - fewer cards drawn (dazed)
- skips_turn                - owner passes its turn (freeze, stun)

Damage pipeline (see calc/damage.py for the order):
- damage_boost(stacks)      - flat bonus on attacker (strength)
- damage_dealt_multiplier   - attacker multiplier (weak, enraged)
- damage_taken_multiplier   - defender multiplier (vulnerable, enraged)
- next_hit_multiplier       - defender one-shot multiplier, consumed (marked, fragile)
- damage_reduction(stacks)  - flat cut to every hit taken, after the floor (ward)
- block_amount(stacks)      - absorbable capacity (shield)
- evades_hit                - a hit is dodged entirely, one stack consumed (dodge)
- reflect_damage(stacks)    - retaliation on a landed hit (thorns)

Actions:
- energy_cost_delta(stacks) - card cost change (cursed, dazed, focus)
- damage_on_action(stacks)  - owner is hurt whenever it acts (bleed)

Tick behaviour:
- escalating                - stacks grow by one per tick instead of expiring (burn)
- default_duration          - turns until removal; None = permanent
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional


class StackingPolicy(Enum):
    STACKABLE = "stackable"
    REFRESH_ONLY = "refresh_only"


def _zero(stacks: int) -> int:
    return 0


@dataclass(frozen=True)
class StatusDefinition:
    """Immutable description of one status kind."""
    id: str
    name: str
    stacking: StackingPolicy
    max_stacks: int = 1
    default_duration: Optional[int] = None
    is_debuff: bool = False
    description: str = ""

    # Formulas of stacks
    damage_per_turn: Callable[[int], int] = _zero
    heal_per_turn: Callable[[int], int] = _zero
    damage_boost: Callable[[int], int] = _zero
    block_amount: Callable[[int], int] = _zero
    damage_reduction: Callable[[int], int] = _zero
    energy_cost_delta: Callable[[int], int] = _zero
    reflect_damage: Callable[[int], int] = _zero
    damage_on_action: Callable[[int], int] = _zero
    energy_drain: Callable[[int], int] = _zero
    draw_penalty: Callable[[int], int] = _zero

    # Multipliers
    damage_dealt_multiplier: float = 1.0
    damage_taken_multiplier: float = 1.0
    next_hit_multiplier: float = 1.0

    # Flags
    escalating: bool = False
    skips_turn: bool = False
    consumed_on_hit: bool = False
    evades_hit: bool = False
    shield: bool = False

    @property
    def stackable(self) -> bool:
        return self.stacking is StackingPolicy.STACKABLE

    @property
    def reflects(self) -> bool:
        return self.reflect_damage is not _zero

    def __post_init__(self):
        if self.max_stacks < 1:
            raise ValueError(f"{self.id}: max_stacks must be >= 1")
        if not self.stackable and self.max_stacks != 1:
            raise ValueError(f"{self.id}: refresh-only statuses hold exactly one stack")


STACKABLE = StackingPolicy.STACKABLE
REFRESH_ONLY = StackingPolicy.REFRESH_ONLY


# =============================================================================
# Status Catalog
# =============================================================================

BURN = StatusDefinition(
    id="burn", name="Burn", stacking=STACKABLE, max_stacks=10, is_debuff=True,
    description="Takes stacks + 1 damage each turn end; grows by one stack per turn.",
    damage_per_turn=lambda s: s + 1,
    escalating=True,
)

POISON = StatusDefinition(
    id="poison", name="Poison", stacking=STACKABLE, max_stacks=10, is_debuff=True,
    description="Takes 3 damage per stack each turn end.",
    damage_per_turn=lambda s: s * 3,
)

BLEED = StatusDefinition(
    id="bleed", name="Bleed", stacking=STACKABLE, max_stacks=10, is_debuff=True,
    description="Takes 2 damage per stack whenever it acts.",
    damage_on_action=lambda s: s * 2,
)

VULNERABLE = StatusDefinition(
    id="vulnerable", name="Vulnerable", stacking=REFRESH_ONLY, default_duration=3,
    is_debuff=True,
    description="Takes 50% more damage.",
    damage_taken_multiplier=1.5,
)

WEAK = StatusDefinition(
    id="weak", name="Weak", stacking=REFRESH_ONLY, default_duration=3, is_debuff=True,
    description="Deals 25% less damage.",
    damage_dealt_multiplier=0.75,
)

FREEZE = StatusDefinition(
    id="freeze", name="Freeze", stacking=REFRESH_ONLY, default_duration=1,
    is_debuff=True,
    description="Skips its next turn.",
    skips_turn=True,
)

STUN = StatusDefinition(
    id="stun", name="Stun", stacking=REFRESH_ONLY, default_duration=1, is_debuff=True,
    description="Skips its next turn.",
    skips_turn=True,
)

SLOW = StatusDefinition(
    id="slow", name="Slow", stacking=STACKABLE, max_stacks=3, is_debuff=True,
    description="Starts each turn with 1 less energy per stack.",
    energy_drain=lambda s: s,
)

MARKED = StatusDefinition(
    id="marked", name="Marked", stacking=REFRESH_ONLY, default_duration=2,
    is_debuff=True,
    description="Next hit taken deals double damage.",
    next_hit_multiplier=2.0,
    consumed_on_hit=True,
)

CURSED = StatusDefinition(
    id="cursed", name="Cursed", stacking=STACKABLE, max_stacks=3, is_debuff=True,
    description="Cards cost 1 more energy per stack.",
    energy_cost_delta=lambda s: s,
)

STRENGTH = StatusDefinition(
    id="strength", name="Strength", stacking=STACKABLE, max_stacks=10,
    description="Deals 3 extra damage per stack.",
    damage_boost=lambda s: s * 3,
)

SHIELD = StatusDefinition(
    id="shield", name="Shield", stacking=STACKABLE, max_stacks=99,
    description="Absorbs one damage per stack.",
    block_amount=lambda s: s,
    consumed_on_hit=True,
    shield=True,
)

REGENERATION = StatusDefinition(
    id="regeneration", name="Regeneration", stacking=STACKABLE, max_stacks=10,
    description="Heals 2 per stack each turn end.",
    heal_per_turn=lambda s: s * 2,
)

THORNS = StatusDefinition(
    id="thorns", name="Thorns", stacking=STACKABLE, max_stacks=10,
    description="Reflects 2 damage per stack to attackers.",
    reflect_damage=lambda s: s * 2,
)

WARD = StatusDefinition(
    id="ward", name="Ward", stacking=STACKABLE, max_stacks=5,
    description="Every hit taken deals 1 less damage per stack.",
    damage_reduction=lambda s: s,
)

DODGE = StatusDefinition(
    id="dodge", name="Dodge", stacking=STACKABLE, max_stacks=3,
    description="Evades the next hit. One stack per hit.",
    evades_hit=True,
    consumed_on_hit=True,
)

FOCUS = StatusDefinition(
    id="focus", name="Focus", stacking=STACKABLE, max_stacks=3,
    description="Cards cost 1 less energy per stack.",
    energy_cost_delta=lambda s: -s,
)

DAZED = StatusDefinition(
    id="dazed", name="Dazed", stacking=REFRESH_ONLY, default_duration=2, is_debuff=True,
    description="Cards cost 1 more and one fewer card is drawn.",
    energy_cost_delta=lambda s: 1,
    draw_penalty=lambda s: 1,
)

FRAGILE = StatusDefinition(
    id="fragile", name="Fragile", stacking=REFRESH_ONLY, is_debuff=True,
    description="Next hit taken deals double damage.",
    next_hit_multiplier=2.0,
    consumed_on_hit=True,
)

ENRAGED = StatusDefinition(
    id="enraged", name="Enraged", stacking=REFRESH_ONLY, default_duration=3,
    description="Deals 50% more damage but takes 25% more.",
    damage_dealt_multiplier=1.5,
    damage_taken_multiplier=1.25,
)


STATUS_DEFINITIONS: Dict[str, StatusDefinition] = {
    d.id: d for d in (
        BURN, POISON, BLEED, VULNERABLE, WEAK, FREEZE, STUN, SLOW, MARKED,
        CURSED, STRENGTH, SHIELD, REGENERATION, THORNS, WARD, DODGE, FOCUS, DAZED,
        FRAGILE, ENRAGED,
    )
}


def get_status(status_id: str) -> StatusDefinition:
    """Look up a status definition by id (case-insensitive)."""
    try:
        return STATUS_DEFINITIONS[status_id.lower()]
    except KeyError:
        raise KeyError(f"Unknown status: {status_id}") from None


def register_status(definition: StatusDefinition, replace: bool = False) -> None:
    """Add a status kind to the catalog."""
    if definition.id in STATUS_DEFINITIONS and not replace:
        raise ValueError(f"Status already registered: {definition.id}")
    STATUS_DEFINITIONS[definition.id] = definition


def list_statuses(debuffs_only: bool = False) -> List[StatusDefinition]:
    return [d for d in STATUS_DEFINITIONS.values() if d.is_debuff or not debuffs_only]
