"""
Enemy Definitions.

Each enemy carries an ability table. An ability has an energy cost, a
selection weight and an ordered tuple of steps:

- DAMAGE    one strike, rolled from a [min, max] range
- MULTI_HIT several rolls summed and resolved as one strike
- STATUS    apply a status to the player (or to itself with target="self")
- HEAL      self-heal
- COMPOSITE several of the above, run in order
- SKIP      do nothing (the enemy loses the action)

Floor table:
- Floor 25: final boss
- Every 8th floor: boss
- Every 5th floor: elite
- Otherwise: basic
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Tuple

from ..state.rng import Random


class EnemyTier(Enum):
    BASIC = "basic"
    ELITE = "elite"
    BOSS = "boss"


class AbilityKind(Enum):
    DAMAGE = "damage"
    MULTI_HIT = "multi_hit"
    STATUS = "status"
    HEAL = "heal"
    COMPOSITE = "composite"
    SKIP = "skip"


@dataclass(frozen=True)
class AbilityStep:
    """One unit of enemy behaviour."""
    kind: AbilityKind
    damage: Tuple[int, int] = (0, 0)
    hits: int = 1
    status: Optional[str] = None
    stacks: int = 1
    duration: Optional[int] = None
    target: str = "player"  # Status target: player or self
    healing: int = 0


@dataclass(frozen=True)
class Ability:
    name: str
    cost: int
    weight: int
    kind: AbilityKind
    steps: Tuple[AbilityStep, ...] = ()
    message: str = ""

    @property
    def deals_damage(self) -> bool:
        return any(s.kind in (AbilityKind.DAMAGE, AbilityKind.MULTI_HIT) for s in self.steps)


@dataclass(frozen=True)
class EnemyDefinition:
    id: str
    name: str
    max_hp: int
    tier: EnemyTier
    abilities: Tuple[Ability, ...]
    gold_reward: Tuple[int, int] = (10, 10)
    max_energy: int = 3
    is_final_boss: bool = False

    @property
    def is_elite(self) -> bool:
        return self.tier is EnemyTier.ELITE

    @property
    def is_boss(self) -> bool:
        return self.tier is EnemyTier.BOSS

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "max_hp": self.max_hp,
            "tier": self.tier.value,
            "max_energy": self.max_energy,
            "abilities": [a.name for a in self.abilities],
        }


# Energy budget per tier
TIER_ENERGY = {
    EnemyTier.BASIC: 3,
    EnemyTier.ELITE: 4,
    EnemyTier.BOSS: 5,
}


# =============================================================================
# Ability builders
# =============================================================================

def strike(name: str, lo: int, hi: int, weight: int, message: str = "", cost: int = 1) -> Ability:
    return Ability(name, cost, weight, AbilityKind.DAMAGE,
                   (AbilityStep(AbilityKind.DAMAGE, damage=(lo, hi)),), message)


def flurry(name: str, lo: int, hi: int, hits: int, weight: int, message: str = "",
           cost: int = 2) -> Ability:
    return Ability(name, cost, weight, AbilityKind.MULTI_HIT,
                   (AbilityStep(AbilityKind.MULTI_HIT, damage=(lo, hi), hits=hits),), message)


def debuff(name: str, status: str, weight: int, stacks: int = 1,
           duration: Optional[int] = None, message: str = "", cost: int = 1) -> Ability:
    return Ability(name, cost, weight, AbilityKind.STATUS,
                   (status_step(status, stacks, duration),), message)


def self_buff(name: str, status: str, stacks: int, weight: int, message: str = "",
              cost: int = 1) -> Ability:
    return Ability(name, cost, weight, AbilityKind.STATUS,
                   (status_step(status, stacks, target="self"),), message)


def rest(name: str, healing: int, weight: int, message: str = "", cost: int = 1) -> Ability:
    return Ability(name, cost, weight, AbilityKind.HEAL,
                   (AbilityStep(AbilityKind.HEAL, healing=healing),), message)


def skip(name: str, weight: int, message: str = "") -> Ability:
    return Ability(name, 1, weight, AbilityKind.SKIP, (), message)


def composite(name: str, steps: Tuple[AbilityStep, ...], weight: int, message: str = "",
              cost: int = 2) -> Ability:
    return Ability(name, cost, weight, AbilityKind.COMPOSITE, steps, message)


def hit_step(lo: int, hi: int) -> AbilityStep:
    return AbilityStep(AbilityKind.DAMAGE, damage=(lo, hi))


def status_step(status: str, stacks: int = 1, duration: Optional[int] = None,
                target: str = "player") -> AbilityStep:
    return AbilityStep(AbilityKind.STATUS, status=status, stacks=stacks,
                       duration=duration, target=target)


def heal_step(healing: int) -> AbilityStep:
    return AbilityStep(AbilityKind.HEAL, healing=healing)


def _enemy(id: str, name: str, max_hp: int, tier: EnemyTier, gold: Tuple[int, int],
           *abilities: Ability, final: bool = False) -> EnemyDefinition:
    return EnemyDefinition(id, name, max_hp, tier, tuple(abilities), gold,
                           TIER_ENERGY[tier], final)


# =============================================================================
# Basic enemies
# =============================================================================

GOBLIN_SCOUT = _enemy(
    "goblin_scout", "Goblin Scout", 35, EnemyTier.BASIC, (8, 15),
    strike("Quick Slash", 4, 7, 60, "slashes at you!"),
    skip("Dodge", 20, "dodges your attack!"),
    rest("Rally", 5, 20, "rallies and recovers!"),
)

BANDIT = _enemy(
    "bandit", "Bandit", 40, EnemyTier.BASIC, (10, 18),
    strike("Dagger Strike", 6, 10, 50, "strikes with a dagger!"),
    debuff("Poison Blade", "poison", 30, stacks=2, message="coats their blade in poison!"),
    skip("Steal", 20, "attempts to steal but misses!"),
)

WILD_WOLF = _enemy(
    "wild_wolf", "Wild Wolf", 45, EnemyTier.BASIC, (8, 12),
    strike("Bite", 8, 12, 60, "bites ferociously!"),
    debuff("Howl", "weak", 25, duration=2, message="howls, weakening you!"),
    strike("Pounce", 5, 8, 15, "pounces quickly!"),
)

SKELETON_WARRIOR = _enemy(
    "skeleton_warrior", "Skeleton Warrior", 50, EnemyTier.BASIC, (12, 20),
    strike("Bone Sword", 7, 11, 50, "swings a bone sword!"),
    debuff("Rattle", "dazed", 30, duration=2, message="rattles its bones, dazing you!"),
    self_buff("Bone Shield", "shield", 8, 20, "raises a bone shield!"),
)

DARK_CULTIST = _enemy(
    "dark_cultist", "Dark Cultist", 42, EnemyTier.BASIC, (15, 22),
    strike("Dark Bolt", 9, 13, 50, "fires a dark bolt!"),
    composite("Curse", (hit_step(5, 8), status_step("cursed")), 35, "casts a cursing spell!"),
    skip("Shadow Step", 15, "steps into shadows!"),
)

FLAME_IMP = _enemy(
    "flame_imp", "Flame Imp", 38, EnemyTier.BASIC, (10, 16),
    strike("Fireball", 10, 14, 50, "hurls a fireball!"),
    debuff("Burning Touch", "burn", 35, stacks=3, message="ignites you with burning flames!"),
    rest("Ember Shield", 8, 15, "creates an ember shield and recovers!"),
)

ICE_SPRITE = _enemy(
    "ice_sprite", "Ice Sprite", 36, EnemyTier.BASIC, (12, 18),
    strike("Frost Bite", 6, 10, 50, "attacks with frost!"),
    debuff("Freeze", "freeze", 30, message="attempts to freeze you!"),
    rest("Ice Armor", 10, 20, "forms ice armor and heals!"),
)

POISON_SPIDER = _enemy(
    "poison_spider", "Poison Spider", 32, EnemyTier.BASIC, (8, 14),
    composite("Venomous Bite", (hit_step(4, 7), status_step("poison", 3)), 60,
              "bites with venomous fangs!"),
    debuff("Web Trap", "slow", 25, stacks=2, message="traps you in webbing!"),
    skip("Scurry", 15, "scurries away!"),
)


# =============================================================================
# Elites
# =============================================================================

OGRE_BRUTE = _enemy(
    "ogre_brute", "Ogre Brute", 80, EnemyTier.ELITE, (30, 50),
    strike("Club Smash", 15, 22, 50, "smashes with a massive club!"),
    composite("Ground Slam", (hit_step(10, 15), status_step("stun")), 30,
              "slams the ground, stunning you!"),
    rest("Berserker Rage", 15, 20, "enters a berserker rage!"),
)

SHADOW_ASSASSIN = _enemy(
    "shadow_assassin", "Shadow Assassin", 65, EnemyTier.ELITE, (35, 55),
    strike("Backstab", 20, 28, 40, "backstabs with deadly precision!", cost=2),
    flurry("Shadow Strike", 8, 12, 3, 35, "strikes from the shadows multiple times!"),
    skip("Smoke Bomb", 25, "vanishes in smoke!"),
)

CORRUPTED_KNIGHT = _enemy(
    "corrupted_knight", "Corrupted Knight", 90, EnemyTier.ELITE, (40, 60),
    strike("Dark Slash", 12, 18, 45, "slashes with a corrupted blade!"),
    composite("Cursed Strike", (hit_step(10, 14), status_step("weak", duration=3)), 35,
              "strikes with cursed energy!"),
    rest("Dark Recovery", 20, 20, "recovers with dark magic!"),
)

FLAME_GOLEM = _enemy(
    "flame_golem", "Flame Golem", 95, EnemyTier.ELITE, (45, 65),
    strike("Molten Punch", 18, 24, 45, "punches with molten fists!", cost=2),
    composite("Inferno", (hit_step(12, 16), status_step("burn", 5)), 40,
              "unleashes an inferno!"),
    rest("Magma Shield", 18, 15, "creates a magma shield and heals!"),
)


# =============================================================================
# Bosses
# =============================================================================

REED = _enemy(
    "reed", "Reed", 120, EnemyTier.BOSS, (60, 100),
    strike("Royal Strike", 20, 28, 40, "strikes with royal authority!", cost=2),
    composite("Summon Minions", (hit_step(8, 12), status_step("vulnerable", duration=3)), 35,
              "summons minions to attack!"),
    rest("Crown's Blessing", 25, 25, "the crown's magic heals the king!", cost=2),
)

ANCIENT_LICH = _enemy(
    "ancient_lich", "Ancient Lich", 150, EnemyTier.BOSS, (80, 120),
    strike("Death Ray", 25, 35, 35, "fires a death ray!", cost=2),
    composite("Necromancy", (hit_step(15, 20), heal_step(20)), 35,
              "uses necromancy to damage and heal!", cost=3),
    composite("Life Drain", (hit_step(18, 25), status_step("weak", duration=3)), 30,
              "drains your life force!", cost=3),
)

DRAGON_LORD = _enemy(
    "dragon_lord", "Dragon Lord", 180, EnemyTier.BOSS, (100, 150),
    composite("Dragon Breath", (hit_step(30, 40), status_step("burn", 6)), 40,
              "breathes scorching fire!", cost=3),
    flurry("Tail Swipe", 15, 20, 2, 35, "swipes with its massive tail!"),
    debuff("Intimidating Roar", "weak", 25, duration=4, message="roars with terrifying might!"),
)

SHADOW_DEMON = _enemy(
    "shadow_demon", "Shadow Demon", 200, EnemyTier.BOSS, (150, 200),
    strike("Shadow Claw", 28, 38, 30, "slashes with shadow claws!", cost=2),
    composite("Dark Ritual",
              (hit_step(20, 28), status_step("cursed", 2), status_step("weak", duration=3)),
              30, "performs a dark ritual!", cost=3),
    flurry("Void Strike", 18, 25, 2, 25, "strikes from the void!", cost=3),
    rest("Demon's Recovery", 30, 15, "recovers with demonic energy!", cost=2),
    final=True,
)


BASIC_ENEMIES: List[EnemyDefinition] = [
    GOBLIN_SCOUT, BANDIT, WILD_WOLF, SKELETON_WARRIOR, DARK_CULTIST, FLAME_IMP,
    ICE_SPRITE, POISON_SPIDER,
]
ELITE_ENEMIES: List[EnemyDefinition] = [OGRE_BRUTE, SHADOW_ASSASSIN, CORRUPTED_KNIGHT, FLAME_GOLEM]
BOSS_ENEMIES: List[EnemyDefinition] = [REED, ANCIENT_LICH, DRAGON_LORD]
FINAL_BOSS = SHADOW_DEMON
FINAL_FLOOR = 25

ALL_ENEMIES: Dict[str, EnemyDefinition] = {
    e.id: e for e in BASIC_ENEMIES + ELITE_ENEMIES + BOSS_ENEMIES + [FINAL_BOSS]
}


def get_enemy(enemy_id: str) -> EnemyDefinition:
    if enemy_id not in ALL_ENEMIES:
        raise ValueError(f"Unknown enemy: {enemy_id}")
    return ALL_ENEMIES[enemy_id]


def get_enemy_for_floor(floor: int, rng: Random) -> EnemyDefinition:
    """Pick the enemy for a floor of the run."""
    if floor == FINAL_FLOOR:
        return FINAL_BOSS
    if floor % 8 == 0:
        pool = BOSS_ENEMIES
    elif floor % 5 == 0:
        pool = ELITE_ENEMIES
    else:
        pool = BASIC_ENEMIES
    return pool[rng.random_int(len(pool) - 1)]
