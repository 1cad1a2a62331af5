"""
Battle Engine - turn-based duel between one player and one enemy.

This module drives a battle end to end:
1. Turn flow (banner -> start delay -> acting side -> hand-off)
2. Card, item and per-turn ability execution through the effect registry
3. Damage through the status-driven pipeline (calc/damage.py)
4. Enemy turns as paced sequences of weighted abilities
5. Counter windows that pause an enemy strike for a player response
6. Time pressure: per-side clocks, enemy buffs, overtime, enemy timeout

Design principles:
- All waiting is a ScheduledTask on a virtual clock; nothing blocks
- Time only moves through advance(dt), so every battle is reproducible
- Refused actions return a rejection and leave state untouched
- A finished battle cancels everything it had queued

Usage:
    from packages.battle.combat_engine import create_battle

    engine = create_battle(profile, enemy="goblin_scout", rng=42)
    engine.start_battle()

    while not engine.state.terminal:
        actions = engine.get_legal_actions()
        if actions:
            engine.execute_action(actions[0])
        else:
            engine.advance(1.0)

    report = engine.report
"""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, Sequence, Union

from .calc.damage import DamageResolution, damage_on_action, evade_hit, land_hit, preview_damage
from .config import DEFAULT_CONFIG, BattleConfig
from .content.cards import Card, get_card
from .content.enemies import AbilityKind, AbilityStep, EnemyDefinition, get_enemy
from .content.items import get_item
from .content.statuses import get_status
from .content.talents import apply_talent_damage_bonus, apply_talent_healing_bonus
from .effects import cards as _card_effects  # noqa: F401  (registers handlers)
from .effects.counters import resolve_counter
from .effects.registry import EffectContext, execute_effects
from .handlers.counter import can_open_window, counter_cards_in_hand, window_open
from .handlers.enemy_ai import EnemyTurnPlan, roll_step_damage
from .handlers.pressure import PressureEvent, PressureEventType, TimePressure
from .rewards import Reward, roll_rewards
from .scheduler import CHANNEL_COUNTER, CHANNEL_ENEMY, CHANNEL_TURN, Scheduler
from .state.combat import (
    Action,
    BattlePhase,
    BattleResult,
    BattleStats,
    Combatant,
    CombatState,
    DiscardCard,
    EndTurn,
    Hold,
    PendingCounter,
    PlayCard,
    Rejection,
    RespondToCounter,
    Side,
    UseDiscardAbility,
    UseDrawAbility,
    UseItem,
    create_combatant,
)
from .state.ledger import StatusLedger, clear_statuses as clear_ledger
from .state.piles import build_arena, discard, draw, new_piles
from .state.rng import BattleRNG

if TYPE_CHECKING:
    from .profile import PlayerProfile

logger = logging.getLogger(__name__)


# =============================================================================
# BATTLE LOG
# =============================================================================

@dataclass
class BattleLogEntry:
    """A single battle log entry."""
    turn: int
    event_type: str
    data: Dict[str, Any]


@dataclass
class BattleLog:
    """Structured battle events for callers and replays."""
    entries: List[BattleLogEntry] = field(default_factory=list)

    def log(self, turn: int, event_type: str, **data):
        """Add a log entry."""
        self.entries.append(BattleLogEntry(turn=turn, event_type=event_type, data=data))

    def get_events(self, event_type: str) -> List[BattleLogEntry]:
        """Get all events of a specific type."""
        return [e for e in self.entries if e.event_type == event_type]

    def tail(self, count: int = 20) -> List[Dict[str, Any]]:
        return [
            {"turn": e.turn, "event": e.event_type, **e.data}
            for e in self.entries[-count:]
        ]


# =============================================================================
# BATTLE REPORT
# =============================================================================

@dataclass
class BattleReport:
    """Outcome handed to the profile store when a battle ends."""
    result: BattleResult
    final_player_hp: int
    stats: BattleStats
    reward: Optional[Reward] = None
    consumed_items: List[str] = field(default_factory=list)

    @property
    def player_won(self) -> bool:
        return self.result.player_won

    def to_dict(self) -> Dict[str, Any]:
        return {
            "result": self.result.value,
            "final_player_hp": self.final_player_hp,
            "stats": self.stats.to_dict(),
            "reward": self.reward.to_dict() if self.reward else None,
            "consumed_items": list(self.consumed_items),
        }


# =============================================================================
# BATTLE ENGINE
# =============================================================================

class BattleEngine:
    """
    Owns one CombatState and everything that mutates it.

    The engine never sleeps: holds (banner, start delay, enemy pacing,
    counter window) are tasks on its Scheduler, and the host moves time
    with advance(dt). Player actions arrive through execute_action().
    """

    def __init__(
        self,
        state: CombatState,
        enemy_def: EnemyDefinition,
        rng: BattleRNG,
        config: BattleConfig = DEFAULT_CONFIG,
        scheduler: Optional[Scheduler] = None,
        on_end: Optional[Callable[[BattleReport], None]] = None,
    ):
        self.state = state
        self.enemy_def = enemy_def
        self.rng = rng
        self.config = config
        self.scheduler = scheduler or Scheduler()
        self.on_end = on_end

        self.log = BattleLog()
        self.pressure = TimePressure(config)
        self.report: Optional[BattleReport] = None
        self._plan: Optional[EnemyTurnPlan] = None

    # =========================================================================
    # Accessors
    # =========================================================================

    @property
    def session_id(self) -> str:
        return self.state.session_id

    @property
    def now(self) -> float:
        return self.scheduler.now

    def is_battle_over(self) -> bool:
        return self.state.terminal

    def card_cost(self, card: Card) -> int:
        """Energy cost after cost-modifying statuses on the player (minimum 0)."""
        delta = sum(d.energy_cost_delta(i.stacks) for i, d in self.state.player.ledger.with_definitions())
        return max(0, card.cost + delta)

    def snapshot(self) -> Dict[str, Any]:
        data = self.state.to_dict()
        data["time"] = round(self.now, 3)
        data["pressure"] = self.pressure.to_dict()
        data["pending_tasks"] = self.scheduler.pending(self.session_id)
        data["rng"] = {"seed": self.rng.seed, "draws": self.rng.counters()}
        data["report"] = self.report.to_dict() if self.report else None
        return data

    def _log(self, event_type: str, **data):
        self.log.log(self.state.turn, event_type, time=round(self.now, 3), **data)

    # =========================================================================
    # Scheduling
    # =========================================================================

    def _schedule(self, channel: str, delay: float, callback: Callable[[], None]) -> None:
        def run():
            if self.state.terminal:
                return
            callback()

        self.scheduler.schedule(self.session_id, channel, delay, run)

    def _run_due(self) -> None:
        while True:
            task = self.scheduler.pop_due()
            if task is None:
                return
            task.callback()

    def _clock_side(self) -> Optional[Side]:
        """Side whose clock is running, if any."""
        if self.state.terminal or self.state.hold.blocking:
            return None
        return self.state.acting_side

    def advance(self, dt: float) -> None:
        """
        Move virtual time forward by dt.

        Time is cut at every scheduled task and every pressure threshold so
        each fires at its exact moment, in order.
        """
        assert dt >= 0, "time only moves forward"
        remaining = dt
        while not self.state.terminal:
            self._run_due()
            if self.state.terminal:
                break

            side = self._clock_side()
            to_event = self.pressure.time_to_next_event(side) if side else None
            if to_event == 0:
                self._handle_pressure(self.pressure.tick(side, 0.0))
                continue
            if remaining <= 0:
                break

            step = remaining
            for bound in (self.scheduler.next_due_in(), to_event):
                if bound is not None:
                    step = min(step, bound)

            events = self.pressure.tick(side, step) if side else []
            self.scheduler.advance_clock(step)
            remaining -= step
            self._handle_pressure(events)

    def _pump(self) -> None:
        """Fire anything already due without moving time."""
        self.advance(0.0)

    def _handle_pressure(self, events: Sequence[PressureEvent]) -> None:
        for event in events:
            if self.state.terminal:
                return
            if event.event_type is PressureEventType.STAGE:
                self._log("pressure_stage", stage=event.stage.value,
                          buffs=[list(b) for b in event.buffs])
                logger.info("%s: pressure stage %s", self.session_id, event.stage.value)
                for status_id, stacks in event.buffs:
                    self.apply_status(self.state.enemy, status_id, stacks, None, "time pressure")
            elif event.event_type is PressureEventType.OVERTIME:
                self._log("overtime")
            elif event.event_type is PressureEventType.ENEMY_TIMEOUT:
                if self.state.phase is BattlePhase.ENEMY_TURN:
                    self._log("enemy_timeout")
                    self._end_battle(BattleResult.TIMEOUT_VICTORY)

    # =========================================================================
    # Turn Flow
    # =========================================================================

    def start_battle(self) -> Side:
        """Decide the first side with one coin flip and queue its turn."""
        assert self.state.phase is BattlePhase.AWAITING_FIRST_TURN, "battle already started"
        first = Side.PLAYER if self.rng.turn_rng.random_boolean() else Side.ENEMY
        self.state.first_side = first
        self._log("battle_start", first_side=first.value, enemy=self.enemy_def.id)
        logger.info("%s: battle vs %s, %s acts first",
                    self.session_id, self.enemy_def.name, first.value)
        self._begin_turn(first)
        return first

    def _begin_turn(self, side: Side) -> None:
        self.state.phase = BattlePhase.PLAYER_TURN if side is Side.PLAYER else BattlePhase.ENEMY_TURN
        self.state.hold = Hold.TURN_BANNER
        self._log("turn_banner", side=side.value)
        self._schedule(CHANNEL_TURN, self.config.turn_banner_delay,
                       lambda: self._after_banner(side))

    def _after_banner(self, side: Side) -> None:
        self.state.hold = Hold.TURN_START_DELAY
        self._schedule(CHANNEL_TURN, self.config.turn_start_delay,
                       lambda: self._start_turn(side))

    def _start_turn(self, side: Side) -> None:
        self.state.hold = Hold.NONE
        if side is Side.PLAYER:
            self._start_player_turn()
        else:
            self._start_enemy_turn()

    def _start_player_turn(self) -> None:
        state = self.state
        player = state.player

        penalty = self.pressure.start_player_turn()
        if penalty:
            lost = player.lose_hp(penalty)
            state.stats.damage_taken += lost
            self._log("overtime_penalty", round=self.pressure.overtime_round, damage=lost)
            if self._check_battle_end():
                return

        player.energy = max(0, player.max_energy - _total(player.ledger, "energy_drain"))
        state.draw_ability_used = False
        state.discard_ability_used = False

        target = max(0, state.hand_size - _total(player.ledger, "draw_penalty"))
        drawn = self.draw_cards(target - len(state.hand))
        self._log("player_turn_start", energy=player.energy, drawn=len(drawn))

        if _skips_turn(player.ledger):
            self._log("turn_skipped", side=Side.PLAYER.value)
            self._end_player_turn()

    def _end_player_turn(self) -> None:
        state = self.state
        state.hold = Hold.NONE

        for combatant in (state.player, state.enemy):
            if self._apply_turn_statuses(combatant):
                return

        # Read before ticking so a one-turn freeze still costs the enemy its turn
        state.enemy_skips_turn = _skips_turn(state.enemy.ledger)
        state.player.ledger = state.player.ledger.tick()
        state.enemy.ledger = state.enemy.ledger.tick()

        state.turn += 1
        state.stats.turns += 1
        self._log("player_turn_end")
        self._begin_turn(Side.ENEMY)

    def _apply_turn_statuses(self, combatant: Combatant) -> bool:
        """Damage over time, then regeneration. Returns True if the battle ended."""
        dot = _total(combatant.ledger, "damage_per_turn")
        if dot:
            lost = combatant.lose_hp(dot)
            self._record_damage(combatant, lost)
            self._log("status_damage", target=combatant.name, damage=lost)
            if self._check_battle_end():
                return True

        regen = _total(combatant.ledger, "heal_per_turn")
        if regen:
            healed = combatant.heal(regen)
            if combatant is self.state.player:
                self.state.stats.healing_done += healed
            self._log("status_heal", target=combatant.name, healing=healed)
        return False

    # =========================================================================
    # Enemy Turn
    # =========================================================================

    def _start_enemy_turn(self) -> None:
        state = self.state
        enemy = state.enemy
        enemy.energy = max(0, enemy.max_energy - _total(enemy.ledger, "energy_drain"))
        state.enemy_actions_taken = 0

        if state.enemy_skips_turn:
            self._log("turn_skipped", side=Side.ENEMY.value)
            self._finish_enemy_turn()
            return

        self._plan = EnemyTurnPlan(action_cap=self.config.enemy_action_cap)
        self._log("enemy_turn_start", energy=enemy.energy)
        self._queue_enemy_action()

    def _queue_enemy_action(self) -> None:
        self.state.hold = Hold.ENEMY_ACTION_DELAY
        self._schedule(CHANNEL_ENEMY, self.config.enemy_action_delay, self._enemy_step)

    def _enemy_step(self) -> None:
        state = self.state
        state.hold = Hold.NONE
        ability = self._plan.begin(self.enemy_def.abilities, state.enemy.energy, self.rng.ai_rng)
        if ability is None:
            self._finish_enemy_turn()
            return

        self._log("enemy_ability", ability=ability.name, cost=ability.cost,
                  message=f"{self.enemy_def.name} {ability.message}".strip())
        if self._apply_action_bleed(state.enemy):
            return
        self._continue_enemy_ability()

    def _continue_enemy_ability(self) -> None:
        """Run the remaining steps of the current ability until done or paused."""
        state = self.state
        while True:
            if state.terminal:
                return
            step = self._plan.next_step()
            if step is None:
                break
            if self._run_enemy_step(step):
                return

        ability = self._plan.finish()
        state.enemy.spend_energy(ability.cost)
        state.enemy_actions_taken = self._plan.actions_taken
        self._queue_enemy_action()

    def _run_enemy_step(self, step: AbilityStep) -> bool:
        """Execute one step. Returns True when a counter window paused the ability."""
        state = self.state
        ability_name = self._plan.current.name

        if step.kind in (AbilityKind.DAMAGE, AbilityKind.MULTI_HIT):
            amount = roll_step_damage(step, self.rng.ai_rng)
            return self._enemy_strike(amount, ability_name)

        if step.kind is AbilityKind.STATUS:
            target = state.enemy if step.target == "self" else state.player
            self.apply_status(target, step.status, step.stacks, step.duration, ability_name)
        elif step.kind is AbilityKind.HEAL:
            healed = state.enemy.heal(step.healing)
            self._log("enemy_heal", ability=ability_name, healing=healed)
        elif step.kind is AbilityKind.SKIP:
            self._log("enemy_idle", ability=ability_name)
        return False

    def _enemy_strike(self, amount: int, ability_name: str) -> bool:
        state = self.state
        evaded, state.player.ledger = evade_hit(state.player.ledger)
        if evaded:
            self._log("dodge", target=state.player.name, ability=ability_name)
            return False

        resolution = preview_damage(amount, state.enemy.ledger, state.player.ledger)
        if can_open_window(state):
            window = self.config.counter_window
            state.pending_counter = PendingCounter(resolution, ability_name, self.now + window)
            state.hold = Hold.COUNTER_WINDOW
            self._log("counter_window", ability=ability_name, amount=resolution.amount)
            self._schedule(CHANNEL_COUNTER, window, self._counter_timeout)
            return True

        self._land_on_player(resolution, ability_name)
        return False

    def _land_on_player(self, resolution: DamageResolution, source: str) -> None:
        state = self.state
        hit = land_hit(resolution, state.player.ledger)
        state.player.ledger = hit.ledger
        lost = state.player.lose_hp(hit.final_damage)
        state.stats.damage_taken += lost
        self._log("enemy_hit", ability=source, amount=hit.amount, blocked=hit.blocked, damage=lost)
        if self._check_battle_end():
            return

        if hit.reflected:
            dealt = state.enemy.lose_hp(hit.reflected)
            state.stats.damage_dealt += dealt
            self._log("reflect", target=state.enemy.name, damage=dealt)
            self._check_battle_end()

    def _counter_timeout(self) -> None:
        """Land the held strike unmodified and resume the enemy's ability."""
        state = self.state
        pending = state.pending_counter
        state.pending_counter = None
        state.hold = Hold.NONE
        self._log("counter_window_closed", ability=pending.ability, countered=False)
        self._land_on_player(pending.resolution, pending.ability)
        self._continue_enemy_ability()

    def _finish_enemy_turn(self) -> None:
        state = self.state
        self._plan = None
        state.counter_consumed = False
        state.enemy_skips_turn = False
        self._log("enemy_turn_end", actions=state.enemy_actions_taken)
        self._begin_turn(Side.PLAYER)

    # =========================================================================
    # Battle End
    # =========================================================================

    def _check_battle_end(self) -> bool:
        """Terminal check after a health change. Player death is checked first."""
        state = self.state
        if state.terminal:
            return True
        if state.player.is_dead:
            self._end_battle(BattleResult.DEFEAT)
            return True
        if state.enemy.is_dead:
            self._end_battle(BattleResult.VICTORY)
            return True
        return False

    def _end_battle(self, result: BattleResult) -> None:
        state = self.state
        state.terminal = True
        state.result = result
        state.phase = BattlePhase.VICTORY if result.player_won else BattlePhase.DEFEAT
        state.hold = Hold.NONE
        state.pending_counter = None
        self._plan = None
        self.scheduler.cancel_session(self.session_id)

        reward = None
        if result.player_won:
            state.stats.enemies_defeated = 1
            reward = roll_rewards(self.enemy_def, state.talents, self.rng.reward_rng)

        self.report = BattleReport(
            result=result,
            final_player_hp=state.player.hp,
            stats=state.stats,
            reward=reward,
            consumed_items=[state.items[i] for i in sorted(state.used_items)],
        )
        self._log("battle_end", result=result.value, player_hp=state.player.hp)
        logger.info("%s: battle over (%s), player hp %d",
                    self.session_id, result.value, state.player.hp)
        if self.on_end is not None:
            self.on_end(self.report)

    # =========================================================================
    # Legal Actions
    # =========================================================================

    def get_legal_actions(self) -> List[Action]:
        """Actions that would currently be accepted."""
        state = self.state
        if state.terminal:
            return []

        if state.hold is Hold.COUNTER_WINDOW:
            actions: List[Action] = [RespondToCounter(None)]
            for instance_id in counter_cards_in_hand(state):
                if self.card_cost(get_card(state.card_id_of(instance_id))) <= state.player.energy:
                    actions.append(RespondToCounter(instance_id))
            return actions

        if state.hold.blocking or state.phase is not BattlePhase.PLAYER_TURN:
            return []

        actions = []
        for instance_id in state.hand:
            card = get_card(state.card_id_of(instance_id))
            if not card.is_counter and self.card_cost(card) <= state.player.energy:
                actions.append(PlayCard(instance_id))
        if (state.draw_ability_unlocked and not state.draw_ability_used
                and len(state.hand) < state.hand_size
                and state.player.energy >= self.config.draw_ability_cost):
            actions.append(UseDrawAbility())
        if state.discard_ability_unlocked and not state.discard_ability_used:
            actions.extend(UseDiscardAbility(c) for c in state.hand)
        for instance_id, item_id in state.items.items():
            if instance_id not in state.used_items and get_item(item_id).is_consumable:
                actions.append(UseItem(instance_id))
        actions.extend(DiscardCard(c) for c in state.hand)
        actions.append(EndTurn())
        return actions

    # =========================================================================
    # Action Execution
    # =========================================================================

    def execute_action(self, action: Action) -> Dict[str, Any]:
        """
        Apply one player action.

        Returns {"success": True, ...} or
        {"success": False, "rejection": Rejection, "error": str}.
        """
        state = self.state
        if state.terminal:
            return _reject(Rejection.BATTLE_OVER, "battle is over")

        if isinstance(action, RespondToCounter):
            result = self._respond_to_counter(action)
        elif state.hold.blocking:
            result = _reject(Rejection.INVALID_ACTION, f"waiting on {state.hold.value}")
        elif state.phase is not BattlePhase.PLAYER_TURN:
            result = _reject(Rejection.INVALID_ACTION, "not the player's turn")
        elif isinstance(action, PlayCard):
            result = self._play_card(action)
        elif isinstance(action, DiscardCard):
            result = self._discard_card(action)
        elif isinstance(action, UseDrawAbility):
            result = self._use_draw_ability()
        elif isinstance(action, UseDiscardAbility):
            result = self._use_discard_ability(action)
        elif isinstance(action, UseItem):
            result = self._use_item(action)
        elif isinstance(action, EndTurn):
            self._end_player_turn()
            result = {"success": True}
        else:
            result = _reject(Rejection.INVALID_ACTION, f"unknown action: {action!r}")

        if result["success"]:
            self._pump()
        else:
            logger.debug("%s: rejected %r (%s)", self.session_id, action, result["error"])
        return result

    def _play_card(self, action: PlayCard) -> Dict[str, Any]:
        state = self.state
        if not state.piles.in_hand(action.card_id):
            return _reject(Rejection.INVALID_ACTION, f"{action.card_id} is not in hand")
        card = get_card(state.card_id_of(action.card_id))
        if card.is_counter:
            return _reject(Rejection.INVALID_ACTION, "counter cards are played in a counter window")
        cost = self.card_cost(card)
        if state.player.energy < cost:
            return _reject(Rejection.INSUFFICIENT_RESOURCE,
                           f"{card.name} costs {cost}, have {state.player.energy}")

        state.player.spend_energy(cost)
        state.piles = discard(state.piles, action.card_id)
        state.stats.cards_played += 1
        self._log("card_played", card=card.id, cost=cost)

        result = {"success": True, "card": card.id, "energy_spent": cost}
        if self._apply_action_bleed(state.player):
            return result

        ctx = execute_effects(card.effects, EffectContext(self, card.name, card))
        result.update(damage_dealt=ctx.damage_dealt, healing=ctx.healing_done,
                      cards_drawn=ctx.cards_drawn, rolls=ctx.rolls)
        return result

    def _discard_card(self, action: DiscardCard) -> Dict[str, Any]:
        state = self.state
        if not state.piles.in_hand(action.card_id):
            return _reject(Rejection.INVALID_ACTION, f"{action.card_id} is not in hand")
        state.piles = discard(state.piles, action.card_id)
        self._log("card_discarded", card=state.card_id_of(action.card_id))
        return {"success": True}

    def _use_draw_ability(self) -> Dict[str, Any]:
        state = self.state
        if not state.draw_ability_unlocked:
            return _reject(Rejection.INVALID_ACTION, "draw ability is locked")
        if state.draw_ability_used:
            return _reject(Rejection.INVALID_ACTION, "draw ability already used this turn")
        if len(state.hand) >= state.hand_size:
            return _reject(Rejection.INSUFFICIENT_RESOURCE, "hand is full")
        cost = self.config.draw_ability_cost
        if state.player.energy < cost:
            return _reject(Rejection.INSUFFICIENT_RESOURCE,
                           f"draw ability costs {cost}, have {state.player.energy}")

        state.player.spend_energy(cost)
        state.draw_ability_used = True
        drawn = self.draw_cards(1)
        self._log("draw_ability", drawn=drawn)
        return {"success": True, "cards_drawn": drawn}

    def _use_discard_ability(self, action: UseDiscardAbility) -> Dict[str, Any]:
        state = self.state
        if not state.discard_ability_unlocked:
            return _reject(Rejection.INVALID_ACTION, "discard ability is locked")
        if state.discard_ability_used:
            return _reject(Rejection.INVALID_ACTION, "discard ability already used this turn")
        if not state.piles.in_hand(action.card_id):
            return _reject(Rejection.INVALID_ACTION, f"{action.card_id} is not in hand")

        state.piles = discard(state.piles, action.card_id)
        state.discard_ability_used = True
        gained = state.player.gain_energy(self.config.discard_ability_gain)
        self._log("discard_ability", card=state.card_id_of(action.card_id), energy=gained)
        return {"success": True, "energy_gained": gained}

    def _use_item(self, action: UseItem) -> Dict[str, Any]:
        state = self.state
        item_id = state.items.get(action.item_id)
        if item_id is None:
            return _reject(Rejection.INVALID_ACTION, f"no item {action.item_id}")
        if action.item_id in state.used_items:
            return _reject(Rejection.INVALID_ACTION, f"{action.item_id} already used")
        item = get_item(item_id)
        if not item.is_consumable:
            return _reject(Rejection.INVALID_ACTION, f"{item.name} is not usable")

        state.used_items.add(action.item_id)
        state.stats.items_used += 1
        self._log("item_used", item=item.id)
        ctx = execute_effects(item.effects, EffectContext(self, item.name))
        return {"success": True, "item": item.id, "healing": ctx.healing_done,
                "cards_drawn": ctx.cards_drawn, "energy_gained": ctx.energy_gained}

    def _respond_to_counter(self, action: RespondToCounter) -> Dict[str, Any]:
        state = self.state
        pending = state.pending_counter
        if not window_open(state):
            return _reject(Rejection.INVALID_ACTION, "no counter window is open")

        if action.card_id is None:
            self.scheduler.cancel(self.session_id, CHANNEL_COUNTER)
            self._counter_timeout()
            return {"success": True, "countered": False}

        if not state.piles.in_hand(action.card_id):
            return _reject(Rejection.INVALID_ACTION, f"{action.card_id} is not in hand")
        card = get_card(state.card_id_of(action.card_id))
        if not card.is_counter:
            return _reject(Rejection.INVALID_ACTION, f"{card.name} is not a counter card")
        cost = self.card_cost(card)
        if state.player.energy < cost:
            return _reject(Rejection.INSUFFICIENT_RESOURCE,
                           f"{card.name} costs {cost}, have {state.player.energy}")

        self.scheduler.cancel(self.session_id, CHANNEL_COUNTER)
        state.pending_counter = None
        state.hold = Hold.NONE
        state.player.spend_energy(cost)
        state.piles = discard(state.piles, action.card_id)
        state.stats.cards_played += 1
        state.stats.counters_played += 1
        state.counter_consumed = True

        result = {"success": True, "countered": True, "card": card.id}
        if self._apply_action_bleed(state.player):
            return result

        outcome = resolve_counter(card.counter, pending.amount, self.rng.card_rng)
        self._log("counter_played", card=card.id, ability=pending.ability,
                  blocked=outcome.blocked, damage_back=outcome.damage_back, roll=outcome.roll)
        result.update(blocked=outcome.blocked, damage_back=outcome.damage_back, roll=outcome.roll)

        if outcome.shield_gain:
            self.apply_status(state.player, "shield", outcome.shield_gain, None, card.name)
        if outcome.incoming > 0:
            self._land_on_player(DamageResolution(outcome.incoming, pending.resolution.consumed),
                                 pending.ability)
        if state.terminal:
            return result
        if outcome.damage_back:
            self.player_attack(outcome.damage_back, card.name, apply_talents=False)
        if state.terminal:
            return result

        self._continue_enemy_ability()
        return result

    # =========================================================================
    # Mutations (used by effect handlers)
    # =========================================================================

    def player_attack(self, base: int, source: str, apply_talents: bool = True) -> int:
        """Player hits the enemy through the full pipeline. Returns health removed."""
        state = self.state
        evaded, state.enemy.ledger = evade_hit(state.enemy.ledger)
        if evaded:
            self._log("dodge", target=state.enemy.name, source=source)
            return 0

        resolution = preview_damage(base, state.player.ledger, state.enemy.ledger)
        if apply_talents and state.talents:
            boosted = apply_talent_damage_bonus(resolution.amount, state.talents, self.rng.card_rng)
            resolution = DamageResolution(boosted, resolution.consumed)

        hit = land_hit(resolution, state.enemy.ledger)
        state.enemy.ledger = hit.ledger
        dealt = state.enemy.lose_hp(hit.final_damage)
        state.stats.damage_dealt += dealt
        self._log("player_hit", source=source, amount=hit.amount, blocked=hit.blocked, damage=dealt)
        if self._check_battle_end():
            return dealt

        if hit.reflected:
            lost = state.player.lose_hp(hit.reflected)
            state.stats.damage_taken += lost
            self._log("reflect", target=state.player.name, damage=lost)
            self._check_battle_end()
        return dealt

    def damage_enemy_direct(self, amount: int, source: str) -> int:
        dealt = self.state.enemy.lose_hp(amount)
        self.state.stats.damage_dealt += dealt
        self._log("direct_damage", target=self.state.enemy.name, source=source, damage=dealt)
        self._check_battle_end()
        return dealt

    def damage_player_direct(self, amount: int, source: str) -> int:
        lost = self.state.player.lose_hp(amount)
        self.state.stats.damage_taken += lost
        self._log("direct_damage", target=self.state.player.name, source=source, damage=lost)
        self._check_battle_end()
        return lost

    def heal_player(self, amount: int, source: str) -> int:
        amount = apply_talent_healing_bonus(amount, self.state.talents)
        healed = self.state.player.heal(amount)
        self.state.stats.healing_done += healed
        self._log("heal", source=source, healing=healed)
        return healed

    def draw_cards(self, count: int) -> List[str]:
        """Draw up to count cards, never past the hand size."""
        state = self.state
        count = min(count, state.hand_size - len(state.hand))
        if count <= 0:
            return []
        state.piles, drawn = draw(state.piles, count, self.rng.shuffle_rng)
        return drawn

    def apply_status(self, combatant: Combatant, status_id: str, stacks: int = 1,
                     duration: Optional[int] = None, source: str = "") -> None:
        definition = get_status(status_id)
        combatant.ledger = combatant.ledger.apply(definition, stacks, duration)
        self._log("status_applied", target=combatant.name, status=definition.id,
                  stacks=combatant.ledger.stacks(definition.id), source=source)

    def cleanse(self, combatant: Combatant, status_id: str, source: str = "") -> bool:
        if status_id not in combatant.ledger:
            return False
        combatant.ledger = combatant.ledger.remove(status_id)
        self._log("status_removed", target=combatant.name, status=status_id, source=source)
        return True

    def clear_statuses(self, combatant: Combatant, debuffs_only: bool = False,
                       source: str = "") -> int:
        before = len(combatant.ledger)
        combatant.ledger = clear_ledger(combatant.ledger, debuffs_only)
        removed = before - len(combatant.ledger)
        if removed:
            self._log("status_cleared", target=combatant.name, removed=removed, source=source)
        return removed

    def _apply_action_bleed(self, combatant: Combatant) -> bool:
        """Bleed damages its owner for acting. Returns True if the battle ended."""
        amount = damage_on_action(combatant.ledger)
        if not amount:
            return False
        lost = combatant.lose_hp(amount)
        self._record_damage(combatant, lost)
        self._log("bleed", target=combatant.name, damage=lost)
        return self._check_battle_end()

    def _record_damage(self, combatant: Combatant, amount: int) -> None:
        if combatant is self.state.player:
            self.state.stats.damage_taken += amount
        else:
            self.state.stats.damage_dealt += amount


# =============================================================================
# Helpers
# =============================================================================

def _reject(rejection: Rejection, error: str) -> Dict[str, Any]:
    return {"success": False, "rejection": rejection, "error": error}


def _total(ledger: StatusLedger, formula: str) -> int:
    """Sum one per-stack formula over every status in a ledger."""
    return sum(getattr(d, formula)(i.stacks) for i, d in ledger.with_definitions())


def _skips_turn(ledger: StatusLedger) -> bool:
    return any(d.skips_turn for _, d in ledger.with_definitions())


# =============================================================================
# FACTORY
# =============================================================================

def create_battle(
    profile: "PlayerProfile",
    deck: Optional[Sequence[str]] = None,
    enemy: Union[EnemyDefinition, str] = "goblin_scout",
    config: BattleConfig = DEFAULT_CONFIG,
    rng: Union[BattleRNG, int, None] = None,
    session_id: Optional[str] = None,
    scheduler: Optional[Scheduler] = None,
    on_end: Optional[Callable[[BattleReport], None]] = None,
) -> BattleEngine:
    """
    Build a ready-to-start battle from a profile.

    Args:
        profile: Supplies health, energy, hand size, talents, items and unlocks
        deck: Card ids (defaults to the profile's deck); each id becomes
            config.copies_per_card instances
        enemy: Enemy definition or id
        config: Engine constants
        rng: BattleRNG or seed (defaults to a time-based seed)
        session_id: Scheduler key (defaults to a random id)

    Raises:
        ValueError: A deck entry or the enemy id is unknown
    """
    enemy_def = get_enemy(enemy) if isinstance(enemy, str) else enemy
    if rng is None:
        rng = int(time.time() * 1000)
    if isinstance(rng, int):
        rng = BattleRNG(seed=rng)

    loadout = profile.loadout()
    card_ids = list(deck if deck is not None else profile.deck)
    for card_id in card_ids:
        get_card(card_id)
    arena = build_arena(card_ids, config.copies_per_card)
    piles = new_piles(arena.keys(), rng.shuffle_rng)

    player = create_combatant(profile.name, loadout.hp, loadout.max_hp,
                              loadout.max_energy, loadout.ledger)
    foe = create_combatant(enemy_def.name, enemy_def.max_hp, max_energy=enemy_def.max_energy)

    state = CombatState(
        session_id=session_id or uuid.uuid4().hex[:12],
        player=player,
        enemy=foe,
        enemy_id=enemy_def.id,
        arena=arena,
        piles=piles,
        hand_size=loadout.hand_size,
        draw_ability_unlocked=loadout.draw_ability,
        discard_ability_unlocked=loadout.discard_ability,
        items=dict(loadout.items),
        talents=tuple(loadout.talents),
    )
    logger.debug("Created battle %s: %s vs %s (seed %d, %d cards)",
                 state.session_id, profile.name, enemy_def.name, rng.seed, len(arena))
    return BattleEngine(state, enemy_def, rng, config, scheduler, on_end)
