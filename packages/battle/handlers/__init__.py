"""
Battle handlers.

- enemy_ai: weighted ability selection and enemy turn bookkeeping
- counter: when a counter window may open
- pressure: per-side clocks, escalation stages, overtime
"""

from .enemy_ai import EnemyTurnPlan, select_ability, roll_step_damage
from .counter import can_open_window, counter_cards_in_hand
from .pressure import TimePressure, Stage, PressureEvent, PressureEventType
