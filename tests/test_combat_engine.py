"""
Battle Engine Tests

Covers:
- Turn flow: coin flip, banner and start-delay holds, hand-off
- Card play, energy costs and rejections
- Per-turn abilities and consumable items
- Turn-end statuses, bleed and skipped turns
- Battle end, reports and determinism
"""

import pytest

from packages.battle.combat_engine import BattleEngine, create_battle
from packages.battle.content.cards import get_card
from packages.battle.state.combat import (
    BattlePhase,
    BattleResult,
    DiscardCard,
    EndTurn,
    Hold,
    PlayCard,
    Rejection,
    Side,
    UseDiscardAbility,
    UseDrawAbility,
    UseItem,
)

from conftest import (
    begin_enemy_turn,
    begin_player_turn,
    hand_card,
    make_enemy,
    make_engine,
    make_profile,
)


# =============================================================================
# Turn Flow
# =============================================================================


class TestTurnFlow:
    """Banner, start delay and hand-off."""

    def test_start_battle_flips_coin(self):
        sides = {make_engine(seed=s).start_battle() for s in range(20)}
        assert sides == {Side.PLAYER, Side.ENEMY}

    def test_start_twice_fails(self, engine):
        engine.start_battle()
        with pytest.raises(AssertionError):
            engine.start_battle()

    def test_holds_in_order(self, engine):
        first = engine.start_battle()
        assert engine.state.first_side is first
        assert engine.state.hold is Hold.TURN_BANNER
        engine.advance(engine.config.turn_banner_delay)
        assert engine.state.hold is Hold.TURN_START_DELAY
        engine.advance(engine.config.turn_start_delay)
        assert engine.state.acting_side is first
        assert engine.state.hold in (Hold.NONE, Hold.ENEMY_ACTION_DELAY)

    def test_actions_refused_during_banner(self, engine):
        engine.start_battle()
        assert engine.get_legal_actions() == []
        result = engine.execute_action(EndTurn())
        assert result["rejection"] is Rejection.INVALID_ACTION

    def test_player_turn_start_fills_hand(self, engine):
        begin_player_turn(engine)
        assert len(engine.state.hand) == 6
        assert engine.state.player.energy == 10

    def test_end_turn_hands_off(self, engine):
        begin_player_turn(engine)
        engine.execute_action(EndTurn())
        assert engine.state.phase is BattlePhase.ENEMY_TURN
        assert engine.state.hold is Hold.TURN_BANNER
        assert engine.state.turn == 2
        assert engine.state.stats.turns == 1

    def test_enemy_hit_then_back_to_player(self, engine):
        begin_enemy_turn(engine)
        engine.advance(1.0)
        assert engine.state.player.hp == 88
        assert not engine.state.terminal
        engine.advance(1.0)
        assert engine.state.phase is BattlePhase.PLAYER_TURN
        assert engine.state.hold is Hold.TURN_BANNER
        engine.advance(3.0)
        assert engine.state.hold is Hold.NONE
        assert len(engine.state.hand) == 6

    def test_full_round(self, engine):
        first = engine.start_battle()
        engine.advance(3.0)
        if first is Side.ENEMY:
            engine.advance(2.0)
            engine.advance(3.0)
        assert engine.state.acting_side is Side.PLAYER
        assert engine.get_legal_actions()

    def test_hand_never_discarded_down(self, engine):
        begin_player_turn(engine)
        engine.execute_action(DiscardCard(engine.state.hand[0]))
        begin_player_turn(engine)
        assert len(engine.state.hand) == 6


# =============================================================================
# Playing Cards
# =============================================================================


class TestPlayCard:
    """Card play through execute_action."""

    def test_damage_card(self, engine):
        begin_player_turn(engine)
        card = hand_card(engine, "quick_jab")
        result = engine.execute_action(PlayCard(card))
        assert result["success"]
        assert result["damage_dealt"] == 15
        assert engine.state.enemy.hp == 85
        assert engine.state.player.energy == 8
        assert card in engine.state.piles.discard
        assert engine.state.stats.cards_played == 1

    def test_insufficient_energy_changes_nothing(self, engine):
        begin_player_turn(engine)
        engine.state.player.energy = 1
        hand = engine.state.hand
        result = engine.execute_action(PlayCard(hand[0]))
        assert result["rejection"] is Rejection.INSUFFICIENT_RESOURCE
        assert engine.state.hand == hand
        assert engine.state.enemy.hp == 100
        assert engine.state.player.energy == 1

    def test_card_not_in_hand(self, engine):
        begin_player_turn(engine)
        result = engine.execute_action(PlayCard("quick_jab#99"))
        assert result["rejection"] is Rejection.INVALID_ACTION

    def test_counter_card_refused_in_player_turn(self):
        engine = make_engine(deck=["perfect_block"])
        begin_player_turn(engine)
        result = engine.execute_action(PlayCard(hand_card(engine, "perfect_block")))
        assert result["rejection"] is Rejection.INVALID_ACTION

    def test_not_players_turn(self, engine):
        begin_enemy_turn(engine)
        result = engine.execute_action(EndTurn())
        assert result["rejection"] is Rejection.INVALID_ACTION

    def test_cost_modifiers(self):
        engine = make_engine(deck=["quick_jab"])
        jab = get_card("quick_jab")
        engine.apply_status(engine.state.player, "focus", 1)
        assert engine.card_cost(jab) == 1
        engine.apply_status(engine.state.player, "focus", 2)
        assert engine.card_cost(jab) == 0
        engine.cleanse(engine.state.player, "focus")
        engine.apply_status(engine.state.player, "cursed", 2)
        assert engine.card_cost(jab) == 4

    def test_legal_actions_respect_energy(self, engine):
        begin_player_turn(engine)
        engine.state.player.energy = 1
        actions = engine.get_legal_actions()
        assert not any(isinstance(a, PlayCard) for a in actions)
        assert EndTurn() in actions

    def test_discard(self, engine):
        begin_player_turn(engine)
        card = engine.state.hand[0]
        assert engine.execute_action(DiscardCard(card))["success"]
        assert card in engine.state.piles.discard
        assert engine.state.player.energy == 10


# =============================================================================
# Abilities and Items
# =============================================================================


class TestAbilities:
    """Draw and discard abilities, once per turn."""

    def test_locked(self, engine):
        begin_player_turn(engine)
        assert engine.execute_action(UseDrawAbility())["rejection"] is Rejection.INVALID_ACTION
        result = engine.execute_action(UseDiscardAbility(engine.state.hand[0]))
        assert result["rejection"] is Rejection.INVALID_ACTION

    def test_draw_ability(self):
        engine = make_engine(deck=["quick_jab"], unlocks=["draw_ability"])
        begin_player_turn(engine)
        result = engine.execute_action(UseDrawAbility())
        assert result["rejection"] is Rejection.INSUFFICIENT_RESOURCE

        engine.execute_action(DiscardCard(engine.state.hand[0]))
        result = engine.execute_action(UseDrawAbility())
        assert result["success"]
        assert len(engine.state.hand) == 6
        assert engine.state.player.energy == 7
        assert engine.execute_action(UseDrawAbility())["rejection"] is Rejection.INVALID_ACTION

    def test_draw_ability_energy(self):
        engine = make_engine(deck=["quick_jab"], unlocks=["draw_ability"])
        begin_player_turn(engine)
        engine.execute_action(DiscardCard(engine.state.hand[0]))
        engine.state.player.energy = 2
        result = engine.execute_action(UseDrawAbility())
        assert result["rejection"] is Rejection.INSUFFICIENT_RESOURCE

    def test_discard_ability(self):
        engine = make_engine(deck=["quick_jab"], unlocks=["discard_ability"])
        begin_player_turn(engine)
        engine.execute_action(PlayCard(engine.state.hand[0]))
        result = engine.execute_action(UseDiscardAbility(engine.state.hand[0]))
        assert result["energy_gained"] == 1
        assert engine.state.player.energy == 9
        again = engine.execute_action(UseDiscardAbility(engine.state.hand[0]))
        assert again["rejection"] is Rejection.INVALID_ACTION

    def test_abilities_reset_each_turn(self):
        engine = make_engine(deck=["quick_jab"], unlocks=["discard_ability"])
        begin_player_turn(engine)
        engine.execute_action(UseDiscardAbility(engine.state.hand[0]))
        begin_player_turn(engine)
        assert not engine.state.discard_ability_used


class TestItems:
    """Consumables are usable once per battle."""

    def test_health_potion(self):
        engine = make_engine(deck=["quick_jab"], items=["health_potion", "health_potion"])
        begin_player_turn(engine)
        engine.state.player.hp = 50
        result = engine.execute_action(UseItem("health_potion#1"))
        assert result["healing"] == 30
        assert engine.state.player.hp == 80
        again = engine.execute_action(UseItem("health_potion#1"))
        assert again["rejection"] is Rejection.INVALID_ACTION
        assert engine.execute_action(UseItem("health_potion#2"))["success"]

    def test_unknown_item(self, engine):
        begin_player_turn(engine)
        assert engine.execute_action(UseItem("mega_potion#1"))["rejection"] is Rejection.INVALID_ACTION

    def test_passives_not_usable(self):
        engine = make_engine(deck=["quick_jab"], items=["thorns_ring"])
        assert engine.state.items == {}
        assert engine.state.player.ledger.stacks("thorns") == 2

    def test_shield_amulet_cuts_enemy_hits(self):
        engine = make_engine(deck=["quick_jab"], items=["shield_amulet"])
        assert engine.state.player.ledger.stacks("ward") == 2
        begin_enemy_turn(engine)
        engine.advance(1.0)
        assert engine.state.player.hp == 90

    def test_strength_potion_lasts_one_turn(self):
        engine = make_engine(deck=["quick_jab"], items=["strength_potion"])
        begin_player_turn(engine)
        engine.execute_action(UseItem("strength_potion#1"))
        engine.execute_action(PlayCard(engine.state.hand[0]))
        assert engine.state.enemy.hp == 100 - 24
        engine.execute_action(EndTurn())
        assert "strength" not in engine.state.player.ledger

    def test_consumed_items_reported(self):
        engine = make_engine(deck=["quick_jab"], items=["energy_drink"], enemy=make_enemy(hp=10))
        begin_player_turn(engine)
        engine.execute_action(UseItem("energy_drink#1"))
        engine.execute_action(PlayCard(engine.state.hand[0]))
        assert engine.report.consumed_items == ["energy_drink"]


# =============================================================================
# Statuses over turns
# =============================================================================


class TestTurnStatuses:
    """Damage over time, regeneration, bleed and skipped turns."""

    def test_poison_at_turn_end(self, engine):
        begin_player_turn(engine)
        engine.apply_status(engine.state.enemy, "poison", 2)
        engine.execute_action(EndTurn())
        assert engine.state.enemy.hp == 94

    def test_regeneration_at_turn_end(self, engine):
        begin_player_turn(engine)
        engine.state.player.hp = 50
        engine.apply_status(engine.state.player, "regeneration", 2)
        engine.execute_action(EndTurn())
        assert engine.state.player.hp == 54

    def test_statuses_tick_at_turn_end(self, engine):
        begin_player_turn(engine)
        engine.apply_status(engine.state.enemy, "vulnerable")
        engine.execute_action(EndTurn())
        assert engine.state.enemy.ledger.get("vulnerable").duration == 2

    def test_bleed_on_card_play(self, engine):
        begin_player_turn(engine)
        engine.apply_status(engine.state.player, "bleed", 2)
        engine.execute_action(PlayCard(engine.state.hand[0]))
        assert engine.state.player.hp == 96
        assert engine.state.enemy.hp == 85

    def test_bleed_on_enemy_ability(self, engine):
        engine.apply_status(engine.state.enemy, "bleed", 3)
        begin_enemy_turn(engine)
        engine.advance(1.0)
        assert engine.state.enemy.hp == 94

    def test_frozen_enemy_skips_turn(self, engine):
        begin_player_turn(engine)
        engine.apply_status(engine.state.enemy, "freeze")
        engine.execute_action(EndTurn())
        engine.advance(3.0)
        assert engine.state.player.hp == 100
        skipped = engine.log.get_events("turn_skipped")
        assert skipped and skipped[0].data["side"] == "enemy"
        assert engine.state.phase is BattlePhase.PLAYER_TURN

    def test_stunned_player_skips_turn(self, engine):
        engine.apply_status(engine.state.player, "stun")
        begin_player_turn(engine)
        assert engine.state.phase is BattlePhase.ENEMY_TURN

    def test_slow_drains_energy(self, engine):
        engine.apply_status(engine.state.player, "slow", 2)
        begin_player_turn(engine)
        assert engine.state.player.energy == 8

    def test_dazed_draws_one_fewer(self, engine):
        engine.apply_status(engine.state.player, "dazed")
        begin_player_turn(engine)
        assert len(engine.state.hand) == 5


# =============================================================================
# Battle End
# =============================================================================


class TestBattleEnd:
    """Terminal states and reports."""

    def test_lethal_card_is_victory(self):
        engine = make_engine(deck=["quick_jab"], enemy=make_enemy(hp=10))
        begin_player_turn(engine)
        engine.execute_action(PlayCard(engine.state.hand[0]))
        assert engine.state.terminal
        assert engine.state.phase is BattlePhase.VICTORY
        assert engine.report.result is BattleResult.VICTORY
        assert engine.report.reward.xp == 15
        assert engine.scheduler.pending(engine.session_id) == []

    def test_actions_after_end(self):
        engine = make_engine(deck=["quick_jab"], enemy=make_enemy(hp=10))
        begin_player_turn(engine)
        engine.execute_action(PlayCard(engine.state.hand[0]))
        result = engine.execute_action(EndTurn())
        assert result["rejection"] is Rejection.BATTLE_OVER
        assert engine.get_legal_actions() == []

    def test_defeat_has_no_reward(self):
        engine = make_engine(deck=["quick_jab"], enemy=make_enemy(damage=200))
        begin_enemy_turn(engine)
        engine.advance(1.0)
        assert engine.report.result is BattleResult.DEFEAT
        assert engine.report.reward is None
        assert engine.state.player.hp == 0

    def test_mutual_knockout_is_defeat(self):
        engine = make_engine(deck=["quick_jab"], hp=3)
        begin_player_turn(engine)
        engine.state.enemy.hp = 3
        engine.apply_status(engine.state.player, "poison", 1)
        engine.apply_status(engine.state.enemy, "poison", 1)
        engine.execute_action(EndTurn())
        assert engine.state.result is BattleResult.DEFEAT

    def test_recoil_skipped_after_kill(self):
        engine = make_engine(deck=["meteor_strike"], enemy=make_enemy(hp=30), hp=5)
        begin_player_turn(engine)
        engine.execute_action(PlayCard(engine.state.hand[0]))
        assert engine.state.result is BattleResult.VICTORY
        assert engine.state.player.hp == 5

    def test_on_end_callback(self):
        reports = []
        engine = create_battle(make_profile(deck=["quick_jab"]), enemy=make_enemy(hp=10),
                               rng=1, on_end=reports.append)
        begin_player_turn(engine)
        engine.execute_action(PlayCard(engine.state.hand[0]))
        assert reports == [engine.report]

    def test_time_stops_after_end(self):
        engine = make_engine(deck=["quick_jab"], enemy=make_enemy(hp=10))
        begin_player_turn(engine)
        engine.execute_action(PlayCard(engine.state.hand[0]))
        clock = engine.pressure.remaining(Side.PLAYER)
        engine.advance(50.0)
        assert engine.pressure.remaining(Side.PLAYER) == clock


# =============================================================================
# Factory, snapshot, determinism
# =============================================================================


class TestFactory:
    """create_battle and snapshots."""

    def test_builds_from_profile(self):
        engine = create_battle(make_profile(), enemy="goblin_scout", rng=5)
        assert isinstance(engine, BattleEngine)
        assert engine.state.enemy.max_hp == 35
        assert engine.state.piles.total == 6 * engine.config.copies_per_card
        assert engine.state.phase is BattlePhase.AWAITING_FIRST_TURN

    def test_unknown_enemy(self):
        with pytest.raises(ValueError):
            create_battle(make_profile(), enemy="dragon_kitten")

    def test_unknown_card_rejected_up_front(self):
        with pytest.raises(ValueError, match="not_a_card"):
            create_battle(make_profile(), deck=["quick_jab", "not_a_card"], rng=1)

    def test_unknown_card_in_profile_deck(self):
        with pytest.raises(ValueError, match="not_a_card"):
            create_battle(make_profile(deck=["not_a_card"]), rng=1)

    def test_snapshot(self, engine):
        begin_player_turn(engine)
        snap = engine.snapshot()
        assert snap["phase"] == "player_turn"
        assert len(snap["hand"]) == 6
        assert snap["pressure"]["player_clock"] == engine.config.clock_budget
        assert snap["report"] is None

    def test_same_seed_same_battle(self):
        def play(seed):
            engine = create_battle(make_profile(), enemy="goblin_scout", rng=seed, session_id="d")
            engine.start_battle()
            for _ in range(200):
                if engine.state.terminal:
                    break
                actions = engine.get_legal_actions()
                if actions:
                    engine.execute_action(actions[0])
                else:
                    engine.advance(1.0)
            return engine.snapshot(), [e.event_type for e in engine.log.entries]

        assert play(77) == play(77)
