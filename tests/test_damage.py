"""
Damage Resolution Tests

Tests the status-driven pipeline against worked examples.
Verifies order of operations, one-shot consumption and protective statuses.
"""

from packages.battle.calc.damage import (
    DamageResolution,
    apply_shield_block,
    damage_on_action,
    evade_hit,
    land_hit,
    preview_damage,
    reflect_damage,
    resolve_damage,
)
from packages.battle.state.ledger import EMPTY_LEDGER, apply_named


def ledger(*entries):
    """Build a ledger from (status_id, stacks) pairs."""
    result = EMPTY_LEDGER
    for status_id, stacks in entries:
        result = apply_named(result, status_id, stacks)
    return result


class TestBasicDamage:
    """Test basic damage calculation."""

    def test_base_damage_only(self):
        assert resolve_damage(10, EMPTY_LEDGER, EMPTY_LEDGER) == 10
        assert resolve_damage(0, EMPTY_LEDGER, EMPTY_LEDGER) == 0

    def test_strength_adds(self):
        # 10 + 2 stacks x 3 = 16
        assert resolve_damage(10, ledger(("strength", 2)), EMPTY_LEDGER) == 16

    def test_floor(self):
        # 7 x 1.5 = 10.5 -> 10
        assert resolve_damage(7, EMPTY_LEDGER, ledger(("vulnerable", 1))) == 10


class TestMultipliers:
    """Test damage multipliers."""

    def test_weak_reduces(self):
        # 10 x 0.75 = 7.5 -> 7
        assert resolve_damage(10, ledger(("weak", 1)), EMPTY_LEDGER) == 7

    def test_enraged_attacker_and_defender(self):
        # 10 x 1.5 = 15
        assert resolve_damage(10, ledger(("enraged", 1)), EMPTY_LEDGER) == 15
        # 10 x 1.25 = 12.5 -> 12
        assert resolve_damage(10, EMPTY_LEDGER, ledger(("enraged", 1))) == 12

    def test_marked_doubles(self):
        assert resolve_damage(9, EMPTY_LEDGER, ledger(("marked", 1))) == 18


class TestOrderOfOperations:
    """
    Flat adds come first, then attacker multipliers, then defender
    multipliers, then one-shot multipliers, then a single floor.
    """

    def test_strength_then_vulnerable(self):
        # floor((10 + 6) x 1.5) = 24
        attacker = ledger(("strength", 2))
        defender = ledger(("vulnerable", 1))
        assert resolve_damage(10, attacker, defender) == 24

    def test_strength_weak_vulnerable(self):
        # (10 + 3) x 0.75 x 1.5 = 14.625 -> 14
        attacker = ledger(("strength", 1), ("weak", 1))
        defender = ledger(("vulnerable", 1))
        assert resolve_damage(10, attacker, defender) == 14

    def test_single_floor_at_end(self):
        # 5 x 0.75 x 1.5 = 5.625 -> 5 (flooring after weak would give 3 x 1.5 = 4)
        assert resolve_damage(5, ledger(("weak", 1)), ledger(("vulnerable", 1))) == 5

    def test_marked_applied_after_vulnerable(self):
        # 10 x 1.5 x 2 = 30
        defender = ledger(("vulnerable", 1), ("marked", 1))
        assert resolve_damage(10, EMPTY_LEDGER, defender) == 30


class TestOneShot:
    """Statuses consumed by the hit they modify."""

    def test_preview_reports_consumed(self):
        resolution = preview_damage(10, EMPTY_LEDGER, ledger(("marked", 1), ("fragile", 1)))
        assert resolution.amount == 40
        assert set(resolution.consumed) == {"marked", "fragile"}

    def test_preview_does_not_consume(self):
        defender = ledger(("marked", 1))
        preview_damage(10, EMPTY_LEDGER, defender)
        assert "marked" in defender

    def test_land_hit_consumes(self):
        defender = ledger(("marked", 1), ("vulnerable", 1))
        resolution = preview_damage(10, EMPTY_LEDGER, defender)
        hit = land_hit(resolution, defender)
        assert "marked" not in hit.ledger
        assert "vulnerable" in hit.ledger
        assert hit.final_damage == 30


class TestShield:
    """Test apply_shield_block."""

    def test_shield_smaller_than_hit(self):
        result = apply_shield_block(ledger(("shield", 15)), 20)
        assert result.final_damage == 5
        assert result.blocked == 15
        assert "shield" not in result.ledger

    def test_shield_larger_than_hit(self):
        result = apply_shield_block(ledger(("shield", 15)), 6)
        assert result.final_damage == 0
        assert result.blocked == 6
        assert result.ledger.stacks("shield") == 9

    def test_exact_shield_removed(self):
        result = apply_shield_block(ledger(("shield", 10)), 10)
        assert result.final_damage == 0
        assert "shield" not in result.ledger

    def test_no_shield_passthrough(self):
        result = apply_shield_block(ledger(("strength", 1)), 12)
        assert result.final_damage == 12
        assert result.blocked == 0

    def test_land_hit_through_shield(self):
        defender = ledger(("shield", 15))
        hit = land_hit(DamageResolution(20), defender)
        assert hit.final_damage == 5
        assert hit.blocked == 15


class TestDefensive:
    """Dodge, thorns and bleed."""

    def test_dodge_spends_one_stack(self):
        evaded, after = evade_hit(ledger(("dodge", 2)))
        assert evaded
        assert after.stacks("dodge") == 1

    def test_no_dodge(self):
        evaded, after = evade_hit(EMPTY_LEDGER)
        assert not evaded
        assert after == EMPTY_LEDGER

    def test_thorns_reflect_when_hit_lands(self):
        hit = land_hit(DamageResolution(10), ledger(("thorns", 2)))
        assert hit.reflected == 4

    def test_no_reflect_for_zero_damage(self):
        hit = land_hit(DamageResolution(0), ledger(("thorns", 2)))
        assert hit.reflected == 0

    def test_no_reflect_when_shield_absorbs_all(self):
        hit = land_hit(DamageResolution(10), ledger(("shield", 15), ("thorns", 2)))
        assert hit.final_damage == 0
        assert hit.reflected == 0

    def test_reflect_when_hit_breaks_shield(self):
        hit = land_hit(DamageResolution(20), ledger(("shield", 15), ("thorns", 2)))
        assert hit.final_damage == 5
        assert hit.reflected == 4

    def test_reflect_total(self):
        assert reflect_damage(ledger(("thorns", 3))) == 6

    def test_bleed(self):
        assert damage_on_action(ledger(("bleed", 2))) == 4
        assert damage_on_action(EMPTY_LEDGER) == 0


class TestFlatReduction:
    """Ward cuts every hit after the floor."""

    def test_ward_subtracts(self):
        assert resolve_damage(10, EMPTY_LEDGER, ledger(("ward", 2))) == 8

    def test_ward_applies_after_multipliers(self):
        # floor(7 x 1.5) = 10, then - 2
        assert resolve_damage(7, EMPTY_LEDGER, ledger(("vulnerable", 1), ("ward", 2))) == 8

    def test_ward_never_goes_negative(self):
        assert resolve_damage(1, EMPTY_LEDGER, ledger(("ward", 3))) == 0

    def test_attacker_ward_ignored(self):
        assert resolve_damage(10, ledger(("ward", 2)), EMPTY_LEDGER) == 10
