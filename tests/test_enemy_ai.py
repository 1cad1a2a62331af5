"""
Enemy Action Selector Tests

Weighted selection, affordability and the per-turn action cap.
"""

from collections import Counter

from packages.battle.content.enemies import (
    AbilityKind,
    AbilityStep,
    composite,
    flurry,
    hit_step,
    rest,
    self_buff,
    status_step,
    strike,
)
from packages.battle.handlers.enemy_ai import (
    EnemyTurnPlan,
    affordable,
    roll_step_damage,
    select_ability,
)
from packages.battle.state.rng import Random

from conftest import begin_enemy_turn, make_enemy, make_engine


class TestSelection:
    """Test select_ability."""

    def test_weights_respected(self):
        """70/30 weights land within a few points over many trials."""
        abilities = (strike("A", 1, 1, 70), strike("B", 1, 1, 30))
        rng = Random(2024)
        counts = Counter(select_ability(abilities, 3, rng).name for _ in range(10000))
        assert 6500 <= counts["A"] <= 7500
        assert counts["A"] + counts["B"] == 10000

    def test_unaffordable_filtered(self):
        abilities = (strike("Cheap", 1, 1, 10), strike("Pricey", 1, 1, 90, cost=3))
        rng = Random(1)
        for _ in range(200):
            assert select_ability(abilities, 2, rng).name == "Cheap"

    def test_nothing_affordable(self):
        abilities = (strike("Pricey", 1, 1, 90, cost=3),)
        assert select_ability(abilities, 2, Random(1)) is None
        assert affordable(abilities, 2) == []

    def test_single_candidate_always_chosen(self):
        ability = rest("Rest", 5, 1)
        rng = Random(9)
        assert all(select_ability((ability,), 1, rng) is ability for _ in range(50))


class TestStepDamage:
    """Test roll_step_damage."""

    def test_range_inclusive(self):
        step = AbilityStep(AbilityKind.DAMAGE, damage=(4, 7))
        rng = Random(3)
        rolls = {roll_step_damage(step, rng) for _ in range(500)}
        assert rolls == {4, 5, 6, 7}

    def test_multi_hit_summed(self):
        step = flurry("Flurry", 3, 3, 4, 10).steps[0]
        assert roll_step_damage(step, Random(3)) == 12


class TestEnemyTurnPlan:
    """Test the per-turn bookkeeping."""

    def test_begin_and_finish(self):
        plan = EnemyTurnPlan()
        ability = plan.begin((strike("Hit", 5, 5, 1),), 3, Random(1))
        assert plan.current is ability
        assert plan.next_step().kind is AbilityKind.DAMAGE
        assert plan.next_step() is None
        assert plan.finish() is ability
        assert plan.actions_taken == 1
        assert plan.current is None

    def test_no_energy_ends_turn(self):
        plan = EnemyTurnPlan()
        assert plan.begin((strike("Hit", 5, 5, 1),), 0, Random(1)) is None

    def test_action_cap(self):
        plan = EnemyTurnPlan(action_cap=2)
        abilities = (strike("Free", 1, 1, 1, cost=0),)
        rng = Random(1)
        for _ in range(2):
            plan.begin(abilities, 5, rng)
            plan.finish()
        assert not plan.can_continue(5)
        assert plan.begin(abilities, 5, rng) is None


class TestEnemyTurnInEngine:
    """Enemy turns driven through the engine."""

    def test_spends_energy_until_empty(self):
        engine = make_engine(deck=["quick_jab"], enemy=make_enemy(damage=5, energy=3))
        begin_enemy_turn(engine)
        engine.advance(3.0)
        assert engine.state.player.hp == 85
        assert engine.state.enemy.energy == 0
        assert len(engine.log.get_events("enemy_hit")) == 3

    def test_action_cap_stops_free_abilities(self):
        free = (strike("Poke", 1, 1, 100, cost=0),)
        engine = make_engine(deck=["quick_jab"], enemy=make_enemy(abilities=free, energy=1))
        begin_enemy_turn(engine)
        engine.advance(20.0)
        assert len(engine.log.get_events("enemy_hit")) == engine.config.enemy_action_cap
        assert engine.state.phase.value == "player_turn"

    def test_composite_runs_steps_in_order(self):
        bite = composite("Bite", (hit_step(5, 5), status_step("poison", 2)), 100)
        engine = make_engine(deck=["quick_jab"], enemy=make_enemy(abilities=(bite,), energy=2))
        begin_enemy_turn(engine)
        engine.advance(1.0)
        assert engine.state.player.hp == 95
        assert engine.state.player.ledger.stacks("poison") == 2
        assert engine.state.enemy.energy == 0

    def test_self_buff_and_heal(self):
        roar = self_buff("Roar", "strength", 2, 100)
        engine = make_engine(deck=["quick_jab"], enemy=make_enemy(abilities=(roar,)))
        begin_enemy_turn(engine)
        engine.advance(1.0)
        assert engine.state.enemy.ledger.stacks("strength") == 2

        engine = make_engine(deck=["quick_jab"],
                             enemy=make_enemy(abilities=(rest("Rest", 10, 100),)))
        engine.state.enemy.hp = 50
        begin_enemy_turn(engine)
        engine.advance(1.0)
        assert engine.state.enemy.hp == 60

    def test_each_ability_paced(self):
        engine = make_engine(deck=["quick_jab"], enemy=make_enemy(damage=5, energy=2))
        begin_enemy_turn(engine)
        engine.advance(1.0)
        assert engine.state.player.hp == 95
        engine.advance(0.5)
        assert engine.state.player.hp == 95
        engine.advance(0.5)
        assert engine.state.player.hp == 90
