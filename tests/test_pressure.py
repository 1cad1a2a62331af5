"""
Time-Pressure Tests

Stage crossings, enemy buffs, overtime penalties and the enemy timeout.
"""

import pytest

from packages.battle.config import BattleConfig
from packages.battle.handlers.pressure import (
    PressureEventType,
    Stage,
    TimePressure,
)
from packages.battle.state.combat import BattlePhase, BattleResult, EndTurn, Side

from conftest import begin_enemy_turn, begin_player_turn, make_enemy, make_engine


@pytest.fixture
def small_config():
    return BattleConfig(clock_budget=10.0, mid_threshold=6.0, late_threshold=3.0)


class TestStages:
    """Player clock crossings."""

    def test_mid_fires_once(self, small_config):
        pressure = TimePressure(small_config)
        events = pressure.tick(Side.PLAYER, 4.0)
        assert [e.stage for e in events] == [Stage.MID]
        assert events[0].buffs == (("strength", 1),)
        assert pressure.tick(Side.PLAYER, 1.0) == []
        assert pressure.stage is Stage.MID

    def test_late_tops_up_strength(self, small_config):
        pressure = TimePressure(small_config)
        pressure.tick(Side.PLAYER, 4.0)
        events = pressure.tick(Side.PLAYER, 3.0)
        assert events[0].stage is Stage.LATE
        assert events[0].buffs == (("strength", 1), ("enraged", 1))

    def test_jump_straight_to_late(self, small_config):
        pressure = TimePressure(small_config)
        events = pressure.tick(Side.PLAYER, 8.0)
        assert [e.stage for e in events] == [Stage.MID, Stage.LATE]
        total_strength = sum(s for e in events for sid, s in e.buffs if sid == "strength")
        assert total_strength == 2

    def test_all_crossings_in_order(self, small_config):
        pressure = TimePressure(small_config)
        events = pressure.tick(Side.PLAYER, 20.0)
        assert [e.event_type for e in events] == [
            PressureEventType.STAGE, PressureEventType.STAGE, PressureEventType.OVERTIME,
        ]
        assert pressure.overtime
        assert pressure.remaining(Side.PLAYER) == 0.0

    def test_exact_threshold_counts(self, small_config):
        pressure = TimePressure(small_config)
        assert pressure.time_to_next_event(Side.PLAYER) == 4.0
        events = pressure.tick(Side.PLAYER, 4.0)
        assert events and pressure.time_to_next_event(Side.PLAYER) == 3.0

    def test_enemy_clock_does_not_stage(self, small_config):
        pressure = TimePressure(small_config)
        assert pressure.tick(Side.ENEMY, 5.0) == []
        assert pressure.stage is Stage.EARLY


class TestOvertime:
    """Penalties grow each player turn in overtime."""

    def test_no_penalty_before_overtime(self, small_config):
        assert TimePressure(small_config).start_player_turn() == 0

    def test_penalty_grows(self, small_config):
        pressure = TimePressure(small_config)
        pressure.tick(Side.PLAYER, 10.0)
        assert [pressure.start_player_turn() for _ in range(3)] == [10, 20, 30]

    def test_penalty_cap(self):
        config = BattleConfig(clock_budget=1.0, mid_threshold=0.5, late_threshold=0.2,
                              overtime_cap=15)
        pressure = TimePressure(config)
        pressure.tick(Side.PLAYER, 1.0)
        assert [pressure.start_player_turn() for _ in range(3)] == [10, 15, 15]


class TestEnemyTimeout:
    """Enemy clock at zero."""

    def test_fires_once(self, small_config):
        pressure = TimePressure(small_config)
        events = pressure.tick(Side.ENEMY, 12.0)
        assert [e.event_type for e in events] == [PressureEventType.ENEMY_TIMEOUT]
        assert pressure.tick(Side.ENEMY, 1.0) == []
        assert pressure.time_to_next_event(Side.ENEMY) is None


class TestPressureInEngine:
    """The engine runs the acting side's clock and applies the outcomes."""

    def test_enemy_gains_stage_buffs(self, small_config):
        engine = make_engine(deck=["quick_jab"], config=small_config)
        begin_player_turn(engine)
        engine.advance(5.0)
        assert engine.state.enemy.ledger.stacks("strength") == 1
        engine.advance(3.0)
        assert engine.state.enemy.ledger.stacks("strength") == 2
        assert "enraged" in engine.state.enemy.ledger
        assert len(engine.log.get_events("pressure_stage")) == 2

    def test_only_acting_side_clock_runs(self, small_config):
        engine = make_engine(deck=["quick_jab"], config=small_config)
        begin_player_turn(engine)
        engine.advance(2.0)
        assert engine.pressure.remaining(Side.PLAYER) == 8.0
        assert engine.pressure.remaining(Side.ENEMY) == 10.0

    def test_clock_frozen_during_turn_holds(self, small_config):
        engine = make_engine(deck=["quick_jab"], config=small_config)
        engine.start_battle()
        engine.advance(small_config.turn_banner_delay)
        assert engine.pressure.remaining(Side.PLAYER) == 10.0
        assert engine.pressure.remaining(Side.ENEMY) == 10.0

    def test_overtime_does_not_end_turn(self, small_config):
        engine = make_engine(deck=["quick_jab"], config=small_config)
        begin_player_turn(engine)
        engine.advance(12.0)
        assert engine.pressure.overtime
        assert engine.state.phase is BattlePhase.PLAYER_TURN
        assert engine.state.player.hp == 100

    def test_overtime_penalty_each_player_turn(self, small_config):
        engine = make_engine(deck=["quick_jab"], config=small_config)
        begin_player_turn(engine)
        engine.advance(12.0)
        begin_player_turn(engine)
        assert engine.state.player.hp == 90
        begin_player_turn(engine)
        assert engine.state.player.hp == 70

    def test_overtime_penalty_can_kill(self, small_config):
        engine = make_engine(deck=["quick_jab"], config=small_config, hp=5)
        begin_player_turn(engine)
        engine.advance(12.0)
        begin_player_turn(engine)
        assert engine.state.result is BattleResult.DEFEAT

    def test_enemy_timeout_is_victory(self):
        config = BattleConfig(clock_budget=5.0, mid_threshold=3.0, late_threshold=1.0,
                              enemy_action_delay=10.0)
        engine = make_engine(deck=["quick_jab"], config=config)
        begin_enemy_turn(engine)
        engine.advance(6.0)
        assert engine.state.result is BattleResult.TIMEOUT_VICTORY
        assert engine.report.player_won
        assert engine.report.reward is not None
        assert engine.state.player.hp == 100

    def test_enemy_clock_survives_turns(self, small_config):
        engine = make_engine(deck=["quick_jab"], enemy=make_enemy(energy=2), config=small_config)
        begin_player_turn(engine)
        engine.execute_action(EndTurn())
        engine.advance(small_config.turn_banner_delay + small_config.turn_start_delay)
        engine.advance(2.0)
        assert engine.pressure.remaining(Side.ENEMY) == 8.0
