"""
Damage calculation (pure functions, no side effects).
"""

from .damage import (
    DamageResolution,
    HitResult,
    preview_damage,
    resolve_damage,
    apply_shield_block,
    evade_hit,
    land_hit,
)
