"""
Player profiles and their persistence.

A PlayerProfile is everything that outlives a single battle: health, gold,
XP, the deck, talents, the item inventory and ability unlocks. Battles read
a BattleLoadout from it and write a BattleReport back through a
ProfileStore.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Dict, List, Optional, Tuple

from .content.cards import STARTER_DECK, get_card
from .content.items import STAT_BONUSES, get_item
from .content.talents import talent_energy_bonus, talent_hand_size_bonus, talent_health_bonus
from .state.ledger import EMPTY_LEDGER, StatusLedger, apply_named

if TYPE_CHECKING:
    from .combat_engine import BattleReport

logger = logging.getLogger(__name__)

DRAW_ABILITY = "draw_ability"
DISCARD_ABILITY = "discard_ability"


@dataclass(frozen=True)
class BattleLoadout:
    """Starting numbers for one battle, after talents and passive items."""
    hp: int
    max_hp: int
    max_energy: int
    hand_size: int
    ledger: StatusLedger = EMPTY_LEDGER
    talents: Tuple[str, ...] = ()
    items: Tuple[Tuple[str, str], ...] = ()  # (instance id, item id) for consumables
    draw_ability: bool = False
    discard_ability: bool = False


@dataclass
class PlayerProfile:
    name: str = "Player"
    max_hp: int = 100
    hp: int = 100
    max_energy: int = 10
    hand_size: int = 6
    gold: int = 0
    xp: int = 0
    deck: List[str] = field(default_factory=lambda: list(STARTER_DECK))
    talents: List[str] = field(default_factory=list)
    items: List[str] = field(default_factory=list)
    unlocks: List[str] = field(default_factory=list)
    pending_card_options: List[str] = field(default_factory=list)
    battles_won: int = 0
    battles_lost: int = 0
    lifetime_stats: Dict[str, int] = field(default_factory=dict)

    def _passive_bonus(self, stat: str) -> int:
        total = 0
        for item_id in self.items:
            item = get_item(item_id)
            if not item.is_consumable:
                total += sum(v for k, v in item.passive if k == stat)
        return total

    def effective_max_hp(self) -> int:
        return self.max_hp + talent_health_bonus(self.talents) + self._passive_bonus("max_hp")

    def loadout(self) -> BattleLoadout:
        max_hp = self.effective_max_hp()

        ledger = EMPTY_LEDGER
        consumables = []
        counts: Dict[str, int] = {}
        for item_id in self.items:
            item = get_item(item_id)
            if item.is_consumable:
                counts[item_id] = counts.get(item_id, 0) + 1
                consumables.append((f"{item_id}#{counts[item_id]}", item_id))
                continue
            for key, stacks in item.passive:
                if key not in STAT_BONUSES:
                    ledger = apply_named(ledger, key, stacks)

        return BattleLoadout(
            hp=max(1, min(self.hp, max_hp)),
            max_hp=max_hp,
            max_energy=(self.max_energy + talent_energy_bonus(self.talents)
                        + self._passive_bonus("max_energy")),
            hand_size=(self.hand_size + talent_hand_size_bonus(self.talents)
                       + self._passive_bonus("hand_size")),
            ledger=ledger,
            talents=tuple(self.talents),
            items=tuple(consumables),
            draw_ability=DRAW_ABILITY in self.unlocks,
            discard_ability=DISCARD_ABILITY in self.unlocks,
        )

    def apply_report(self, report: BattleReport) -> None:
        """Fold a finished battle into the profile."""
        for item_id in report.consumed_items:
            if item_id in self.items:
                self.items.remove(item_id)

        for key, value in report.stats.to_dict().items():
            self.lifetime_stats[key] = self.lifetime_stats.get(key, 0) + value

        if report.player_won:
            self.battles_won += 1
            self.hp = report.final_player_hp
            if report.reward is not None:
                self.gold += report.reward.gold
                self.xp += report.reward.xp
                self.items.extend(report.reward.items)
                self.pending_card_options = list(report.reward.card_options)
        else:
            # A lost battle ends the run; the next one starts at full health
            self.battles_lost += 1
            self.hp = self.max_hp
            self.pending_card_options = []

    def take_card_reward(self, card_id: Optional[str]) -> bool:
        """Add one of the offered cards to the deck, or skip with None."""
        if card_id is None:
            self.pending_card_options = []
            return True
        if card_id not in self.pending_card_options:
            return False
        get_card(card_id)
        self.deck.append(card_id)
        self.pending_card_options = []
        return True

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "PlayerProfile":
        known = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        return cls(**known)


# =============================================================================
# Stores
# =============================================================================

class ProfileStore:
    """Load/save interface. Subclasses implement _read and _write."""

    def _read(self, name: str) -> Optional[dict]:
        raise NotImplementedError

    def _write(self, name: str, data: dict) -> None:
        raise NotImplementedError

    def load(self, name: str) -> PlayerProfile:
        """Load a profile, creating a fresh one for an unknown name."""
        data = self._read(name)
        if data is None:
            logger.info("Creating new profile %r", name)
            return PlayerProfile(name=name)
        return PlayerProfile.from_dict(data)

    def save(self, profile: PlayerProfile) -> None:
        self._write(profile.name, profile.to_dict())

    def record_battle(self, name: str, report: BattleReport) -> PlayerProfile:
        profile = self.load(name)
        profile.apply_report(report)
        self.save(profile)
        logger.info("Recorded %s for %r (hp %d, gold %d)",
                    report.result.value, name, profile.hp, profile.gold)
        return profile


class InMemoryProfileStore(ProfileStore):
    def __init__(self):
        self._profiles: Dict[str, dict] = {}

    def _read(self, name: str) -> Optional[dict]:
        data = self._profiles.get(name)
        return json.loads(json.dumps(data)) if data is not None else None

    def _write(self, name: str, data: dict) -> None:
        self._profiles[name] = data


class JsonProfileStore(ProfileStore):
    """One JSON file per profile under a directory."""

    def __init__(self, directory):
        self.directory = Path(directory)

    def _path(self, name: str) -> Path:
        safe = "".join(c if c.isalnum() or c in "-_" else "_" for c in name)
        return self.directory / f"{safe}.json"

    def _read(self, name: str) -> Optional[dict]:
        path = self._path(name)
        if not path.exists():
            return None
        with open(path) as f:
            return json.load(f)

    def _write(self, name: str, data: dict) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        with open(self._path(name), "w") as f:
            json.dump(data, f, indent=2)

    def list_profiles(self) -> List[str]:
        if not self.directory.exists():
            return []
        return sorted(p.stem for p in self.directory.glob("*.json"))
