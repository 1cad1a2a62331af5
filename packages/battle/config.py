"""
Battle configuration.

Timing values are in abstract time units (the host decides how long one unit
is; the bundled CLI and web server treat one unit as one second). Every field
can be overridden through a BATTLE_* environment variable or a .env file.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, fields
from typing import Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

ENV_PREFIX = "BATTLE_"


@dataclass(frozen=True)
class BattleConfig:
    """Tunable engine constants."""

    # Time pressure
    clock_budget: float = 120.0
    mid_threshold: float = 60.0
    late_threshold: float = 30.0
    overtime_step: int = 10
    overtime_cap: int = 0  # 0 = uncapped

    # Scheduled holds
    turn_banner_delay: float = 2.0
    turn_start_delay: float = 1.0
    enemy_action_delay: float = 1.0
    counter_window: float = 15.0

    # Turn rules
    hand_size: int = 6
    enemy_action_cap: int = 10
    copies_per_card: int = 3

    # Per-turn abilities
    draw_ability_cost: int = 3
    discard_ability_gain: int = 1

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> "BattleConfig":
        """Build a config from BATTLE_* environment variables.

        Loads env_file (or a .env found from the working directory) first;
        variables already in the environment win.
        """
        load_dotenv(env_file)

        overrides = {}
        for f in fields(cls):
            raw = os.environ.get(ENV_PREFIX + f.name.upper())
            if raw is None:
                continue
            caster = float if f.type in ("float", float) else int
            try:
                overrides[f.name] = caster(raw)
            except ValueError:
                raise ValueError(
                    f"{ENV_PREFIX}{f.name.upper()}={raw!r} is not a valid {caster.__name__}"
                ) from None

        if overrides:
            logger.info("Battle config overrides: %s", overrides)
        return cls(**overrides)

    def overtime_penalty(self, round_index: int) -> int:
        """Health lost at the start of the given overtime round (1-based)."""
        penalty = self.overtime_step * round_index
        if self.overtime_cap > 0:
            penalty = min(penalty, self.overtime_cap)
        return penalty


DEFAULT_CONFIG = BattleConfig()
