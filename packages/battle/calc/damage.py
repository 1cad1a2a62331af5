"""
Damage Resolution Pipeline - pure functions from ledgers to integers.

Design principles:
1. Pure functions - ledgers in, numbers and new ledgers out
2. Every modifier comes from a status definition, never from a status name
3. Multipliers compose in ledger insertion order
4. Health is never touched here; the engine clamps it

Calculation order (resolve_damage):
1. Base amount
2. Flat adds from attacker (damage_boost: Strength)
3. Attacker dealt multipliers (Weak 0.75, Enraged 1.5)
4. Defender taken multipliers (Vulnerable 1.5, Enraged 1.25)
5. Defender next-hit multipliers (Marked 2.0, Fragile 2.0), consumed on landing
6. Floor to int
7. Defender flat reduction (Ward), minimum 0

Landing a hit (land_hit):
1. Consume the next-hit statuses that were read in step 5
2. Shield absorbs min(capacity, amount)
3. Thorns on the defender reflect damage back if anything got past the shield
"""

import math
from dataclasses import dataclass
from typing import Tuple

from ..state.ledger import StatusLedger, reduce_status, remove_status

__all__ = [
    "DamageResolution",
    "ShieldResult",
    "HitResult",
    "preview_damage",
    "resolve_damage",
    "consume_on_hit",
    "apply_shield_block",
    "evade_hit",
    "reflect_damage",
    "land_hit",
    "damage_on_action",
]


@dataclass(frozen=True)
class DamageResolution:
    """Result of a damage calculation before anything is committed."""
    amount: int
    consumed: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ShieldResult:
    final_damage: int
    blocked: int
    ledger: StatusLedger


@dataclass(frozen=True)
class HitResult:
    """A landed hit: what got through and the defender's new ledger."""
    amount: int
    blocked: int
    final_damage: int
    reflected: int
    ledger: StatusLedger


# =============================================================================
# DAMAGE CALCULATION
# =============================================================================

def preview_damage(
    base: int,
    attacker: StatusLedger,
    defender: StatusLedger,
) -> DamageResolution:
    """
    Calculate damage without consuming anything.

    Args:
        base: Base damage (>= 0)
        attacker: Attacker's status ledger
        defender: Defender's status ledger

    Returns:
        DamageResolution with the floored amount and the ids of one-shot
        statuses on the defender whose multiplier was used
    """
    assert base >= 0, f"negative base damage: {base}"

    # 1-2. Base + flat adds
    damage = float(base)
    for inst, definition in attacker.with_definitions():
        damage += definition.damage_boost(inst.stacks)

    # 3. Attacker multipliers
    for _, definition in attacker.with_definitions():
        damage *= definition.damage_dealt_multiplier

    # 4. Defender multipliers
    for _, definition in defender.with_definitions():
        damage *= definition.damage_taken_multiplier

    # 5. One-shot multipliers
    consumed = []
    for inst, definition in defender.with_definitions():
        if definition.next_hit_multiplier != 1.0:
            damage *= definition.next_hit_multiplier
            if definition.consumed_on_hit:
                consumed.append(inst.status_id)

    # 6-7. Floor, then flat reduction
    amount = math.floor(damage)
    for inst, definition in defender.with_definitions():
        amount -= definition.damage_reduction(inst.stacks)
    return DamageResolution(max(0, amount), tuple(consumed))


def resolve_damage(base: int, attacker: StatusLedger, defender: StatusLedger) -> int:
    """Final damage for base against defender, as an int (minimum 0)."""
    return preview_damage(base, attacker, defender).amount


def consume_on_hit(ledger: StatusLedger, resolution: DamageResolution) -> StatusLedger:
    """Remove the one-shot statuses a resolution used."""
    for status_id in resolution.consumed:
        ledger = remove_status(ledger, status_id)
    return ledger


# =============================================================================
# DEFENSIVE STATUSES
# =============================================================================

def apply_shield_block(ledger: StatusLedger, incoming: int) -> ShieldResult:
    """
    Absorb incoming damage with the first shield-class status.

    blocked = min(capacity, incoming); the shield keeps capacity - incoming
    stacks or is removed at 0. No shield is a passthrough.
    """
    for inst, definition in ledger.with_definitions():
        if not definition.shield:
            continue
        capacity = definition.block_amount(inst.stacks)
        blocked = min(capacity, incoming)
        remaining = max(0, capacity - incoming)
        if remaining == 0:
            ledger = remove_status(ledger, inst.status_id)
        else:
            ledger = reduce_status(ledger, inst.status_id, inst.stacks - remaining)
        return ShieldResult(incoming - blocked, blocked, ledger)
    return ShieldResult(incoming, 0, ledger)


def evade_hit(ledger: StatusLedger) -> Tuple[bool, StatusLedger]:
    """Check for an evasion status; a successful dodge spends one stack."""
    for inst, definition in ledger.with_definitions():
        if definition.evades_hit:
            return True, reduce_status(ledger, inst.status_id, 1)
    return False, ledger


def reflect_damage(ledger: StatusLedger) -> int:
    """Total retaliation damage from reflecting statuses."""
    return sum(d.reflect_damage(i.stacks) for i, d in ledger.with_definitions())


def damage_on_action(ledger: StatusLedger) -> int:
    """Damage the owner takes for acting (Bleed)."""
    return sum(d.damage_on_action(i.stacks) for i, d in ledger.with_definitions())


def land_hit(resolution: DamageResolution, defender: StatusLedger) -> HitResult:
    """
    Commit a resolved hit against the defender's ledger.

    One-shot statuses are consumed only here, after their multiplier was
    read, so each applies to exactly one hit.
    """
    ledger = consume_on_hit(defender, resolution)
    shield = apply_shield_block(ledger, resolution.amount)
    reflected = reflect_damage(shield.ledger) if shield.final_damage > 0 else 0
    return HitResult(
        amount=resolution.amount,
        blocked=shield.blocked,
        final_damage=shield.final_damage,
        reflected=reflected,
        ledger=shield.ledger,
    )
