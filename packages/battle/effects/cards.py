"""
Card and item effect handlers.

Importing this module registers every handler with the effect registry.
"""

from ..content.cards import DICE_MULTIPLIER, CardEffect
from .registry import EffectContext, effect


# =============================================================================
# Damage
# =============================================================================

@effect("damage")
def damage(ctx: EffectContext, payload: CardEffect) -> None:
    """
    Attack the enemy.

    Multi-hit cards multiply the base and resolve once, so statuses consumed
    on hit (marked, fragile, dodge, shield) interact with a single strike.
    """
    extra = payload.extra
    base = payload.value
    if extra.get("dice"):
        base += ctx.roll_die() * DICE_MULTIPLIER
    base *= max(1, payload.hits)

    # Execute threshold is checked against health before the hit
    threshold = extra.get("execute_threshold")
    execute_ready = threshold is not None and ctx.enemy.hp <= ctx.enemy.max_hp * threshold

    ctx.deal_damage(base)

    if extra.get("recoil") and not ctx.battle_over:
        ctx.damage_player(extra["recoil"])
    if execute_ready and not ctx.battle_over:
        ctx.deal_raw_damage_to_enemy(extra.get("execute_bonus", 0))


# =============================================================================
# Recovery
# =============================================================================

@effect("heal")
def heal(ctx: EffectContext, payload: CardEffect) -> None:
    amount = payload.value
    if payload.extra.get("dice"):
        amount += ctx.roll_die() * DICE_MULTIPLIER
    ctx.heal_player(amount)


@effect("gain_energy")
def gain_energy(ctx: EffectContext, payload: CardEffect) -> None:
    ctx.gain_energy(payload.value)


# =============================================================================
# Cards
# =============================================================================

@effect("draw")
def draw(ctx: EffectContext, payload: CardEffect) -> None:
    ctx.draw_cards(payload.value)


@effect("draw_roll")
def draw_roll(ctx: EffectContext, payload: CardEffect) -> None:
    ctx.draw_cards(ctx.roll_die())


# =============================================================================
# Statuses
# =============================================================================

@effect("apply_self")
def apply_self(ctx: EffectContext, payload: CardEffect) -> None:
    ctx.apply_status_to_player(payload.extra["status"], payload.value,
                               payload.extra.get("duration"))


@effect("apply_enemy")
def apply_enemy(ctx: EffectContext, payload: CardEffect) -> None:
    ctx.apply_status_to_enemy(payload.extra["status"], payload.value,
                              payload.extra.get("duration"))


@effect("shield")
def shield(ctx: EffectContext, payload: CardEffect) -> None:
    ctx.apply_status_to_player("shield", payload.value)


@effect("cleanse")
def cleanse(ctx: EffectContext, payload: CardEffect) -> None:
    ctx.remove_status_from_player(payload.extra["status"])


@effect("cleanse_all")
def cleanse_all(ctx: EffectContext, payload: CardEffect) -> None:
    ctx.clear_player_statuses()


@effect("cleanse_debuffs")
def cleanse_debuffs(ctx: EffectContext, payload: CardEffect) -> None:
    ctx.clear_player_statuses(debuffs_only=True)
