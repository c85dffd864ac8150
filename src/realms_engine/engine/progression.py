"""Level progression formulas.

Capacities for the creation pools (ability, skill, training, feat points),
the health-energy pool, proficiency and creature currency, all
parametrised by the progression rules table.

Creatures may sit below level 1 (e.g. level 0.5). In that range the
level-1 base is scaled by the fractional level and rounded up.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass

from realms_engine.models.enums import ArchetypeType, EntityKind
from realms_engine.rules.table import RulesTable


def _rules(rules: RulesTable | None) -> RulesTable:
    return rules or RulesTable.fallback()


def _is_creature(entity: EntityKind | str) -> bool:
    return str(entity) == EntityKind.CREATURE


# =============================================================================
# Pool Capacities
# =============================================================================


def ability_points(
    level: float,
    *,
    allow_sub_level: bool = False,
    entity: EntityKind | str = EntityKind.CHARACTER,
    rules: RulesTable | None = None,
) -> int:
    """Ability points available at ``level``: the base, plus one every few levels."""
    table = _rules(rules)
    prog = table.progression_creature if _is_creature(entity) else table.progression_player
    if level < 1:
        return math.ceil(prog.base_ability_points * level) if allow_sub_level else 0
    bonus = math.floor((level - 1) / prog.ability_points_every_n_levels)
    return prog.base_ability_points + bonus * prog.ability_points_per_increase


def skill_points(
    level: float,
    *,
    entity: EntityKind | str = EntityKind.CHARACTER,
    allow_sub_level: bool = False,
    rules: RulesTable | None = None,
) -> int:
    """Skill points available at ``level``.

    Characters get a flat amount per level; creatures start higher at
    level 1 and grow by the same per-level amount.
    """
    table = _rules(rules)
    if _is_creature(entity):
        prog = table.progression_creature
        if level < 1:
            return math.ceil(prog.skill_points_at_level1 * level) if allow_sub_level else 0
        return prog.skill_points_at_level1 + prog.skill_points_per_level * (math.floor(level) - 1)
    if level < 1:
        return 0
    return table.progression_player.skill_points_per_level * math.floor(level)


def health_energy_pool(
    level: float,
    *,
    entity: EntityKind | str = EntityKind.CHARACTER,
    allow_sub_level: bool = False,
    rules: RulesTable | None = None,
) -> int:
    """Points shared between maximum health and maximum energy."""
    table = _rules(rules)
    prog = table.progression_creature if _is_creature(entity) else table.progression_player
    if level < 1 and allow_sub_level:
        return math.ceil(prog.base_hit_energy_pool * level)
    return math.floor(prog.base_hit_energy_pool + prog.hit_energy_per_level * (max(level, 1) - 1))


def proficiency(
    level: float,
    *,
    allow_sub_level: bool = False,
    rules: RulesTable | None = None,
) -> int:
    """Proficiency bonus: the base, plus one every five levels from level 5."""
    prog = _rules(rules).progression_player
    if level < 1:
        return math.ceil(prog.base_proficiency * level) if allow_sub_level else 0
    if level < prog.proficiency_every_n_levels:
        return prog.base_proficiency
    bonus = math.floor(level / prog.proficiency_every_n_levels)
    return prog.base_proficiency + bonus * prog.proficiency_per_increase


def training_points(
    level: float,
    archetype_ability: int = 0,
    *,
    rules: RulesTable | None = None,
) -> int:
    """Character training points: base plus the governing ability, growing per level."""
    prog = _rules(rules).progression_player
    per_level = prog.tp_per_level_multiplier + archetype_ability
    return math.floor(prog.base_training_points + archetype_ability + per_level * (level - 1))


def creature_training_points(
    level: float,
    ability: int = 0,
    *,
    rules: RulesTable | None = None,
) -> int:
    """Creature training points; below level 1 scales the character base."""
    prog = _rules(rules).progression_creature
    if level < 1:
        return math.ceil(prog.sub_level_training_points * level) + ability
    per_level = prog.tp_per_level_multiplier + ability
    return math.floor(prog.base_training_points + ability + (level - 1) * per_level)


def creature_feat_points(
    level: float,
    martial_prof: int = 0,
    *,
    rules: RulesTable | None = None,
) -> float:
    """Creature feat points; may be fractional (1.5 at level 1)."""
    prog = _rules(rules).progression_creature
    base = prog.base_feat_points + martial_prof
    if level < 1:
        return math.ceil(base * level)
    return base + prog.feat_points_per_level * (level - 1)


def creature_currency(level: float, *, rules: RulesTable | None = None) -> int:
    prog = _rules(rules).progression_creature
    return round(prog.base_currency * prog.currency_growth_rate ** (level - 1))


def max_archetype_feats(level: float) -> int:
    return max(0, math.floor(level))


def armament_max(martial_prof: int, *, rules: RulesTable | None = None) -> int:
    """Training points one armament may cost at a martial proficiency."""
    return _rules(rules).armament_proficiency.armament_max(martial_prof)


def archetype_ability(
    archetype: ArchetypeType | str | None,
    abilities: Mapping[str, int],
    *,
    power_ability: str | None = None,
    martial_ability: str | None = None,
) -> int:
    """Value of the archetype's governing ability.

    Hybrid (powered-martial) archetypes use the higher of their two
    abilities; the others use whichever one is set.
    """
    if not archetype:
        return 0
    power_value = abilities.get(power_ability.lower(), 0) if power_ability else None
    martial_value = abilities.get(martial_ability.lower(), 0) if martial_ability else None
    if str(archetype) == ArchetypeType.POWERED_MARTIAL:
        return max(power_value or 0, martial_value or 0)
    if power_value is not None:
        return power_value
    return martial_value or 0


# =============================================================================
# Bundles
# =============================================================================


@dataclass(frozen=True)
class Progression:
    """Every pool capacity for one entity at one level."""

    level: float
    entity: EntityKind
    ability_points: int
    skill_points: int
    health_energy_pool: int
    proficiency: int
    training_points: int
    feat_points: float
    currency: int

    def minus(self, other: Progression) -> dict[str, float]:
        """Per-capacity gain from ``other`` to this progression."""
        return {
            "ability_points": self.ability_points - other.ability_points,
            "skill_points": self.skill_points - other.skill_points,
            "health_energy_pool": self.health_energy_pool - other.health_energy_pool,
            "proficiency": self.proficiency - other.proficiency,
            "training_points": self.training_points - other.training_points,
            "feat_points": self.feat_points - other.feat_points,
            "currency": self.currency - other.currency,
        }


def player_progression(
    level: float,
    archetype_ability_value: int = 0,
    *,
    rules: RulesTable | None = None,
) -> Progression:
    table = _rules(rules)
    return Progression(
        level=level,
        entity=EntityKind.CHARACTER,
        ability_points=ability_points(level, rules=table),
        skill_points=skill_points(level, rules=table),
        health_energy_pool=health_energy_pool(level, rules=table),
        proficiency=proficiency(level, rules=table),
        training_points=training_points(level, archetype_ability_value, rules=table),
        feat_points=max_archetype_feats(level),
        currency=table.progression_player.starting_currency,
    )


def creature_progression(
    level: float,
    ability: int = 0,
    *,
    martial_prof: int = 0,
    rules: RulesTable | None = None,
) -> Progression:
    table = _rules(rules)
    creature = EntityKind.CREATURE
    return Progression(
        level=level,
        entity=creature,
        ability_points=ability_points(level, allow_sub_level=True, entity=creature, rules=table),
        skill_points=skill_points(level, entity=creature, allow_sub_level=True, rules=table),
        health_energy_pool=health_energy_pool(
            level, entity=creature, allow_sub_level=True, rules=table
        ),
        proficiency=proficiency(level, allow_sub_level=True, rules=table),
        training_points=creature_training_points(level, ability, rules=table),
        feat_points=creature_feat_points(level, martial_prof, rules=table),
        currency=creature_currency(level, rules=table),
    )


def level_difference(
    from_level: float,
    to_level: float,
    ability: int = 0,
    *,
    entity: EntityKind | str = EntityKind.CHARACTER,
    rules: RulesTable | None = None,
) -> dict[str, float]:
    """Capacities gained when levelling from ``from_level`` to ``to_level``."""
    build = creature_progression if _is_creature(entity) else player_progression
    return build(to_level, ability, rules=rules).minus(build(from_level, ability, rules=rules))


__all__ = [
    "ability_points",
    "skill_points",
    "health_energy_pool",
    "proficiency",
    "training_points",
    "creature_training_points",
    "creature_feat_points",
    "creature_currency",
    "max_archetype_feats",
    "armament_max",
    "archetype_ability",
    "Progression",
    "player_progression",
    "creature_progression",
    "level_difference",
]
