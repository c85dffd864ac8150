"""Enumerations shared by the engine models."""

from __future__ import annotations

from enum import StrEnum


class BuildKind(StrEnum):
    """Kinds of buildable things that carry a parts list."""

    POWER = "power"
    TECHNIQUE = "technique"
    ARMAMENT = "armament"


class ActionType(StrEnum):
    """Action economy choice of a power or technique."""

    BASIC = "basic"
    QUICK = "quick"
    FREE = "free"
    LONG3 = "long3"
    LONG4 = "long4"


class Ability(StrEnum):
    """The six abilities."""

    STRENGTH = "strength"
    VITALITY = "vitality"
    AGILITY = "agility"
    ACUITY = "acuity"
    INTELLIGENCE = "intelligence"
    CHARISMA = "charisma"


class Defense(StrEnum):
    """The six defenses, one per ability."""

    MIGHT = "might"
    FORTITUDE = "fortitude"
    REFLEXES = "reflexes"
    DISCERNMENT = "discernment"
    MENTAL_FORTITUDE = "mentalFortitude"
    RESOLVE = "resolve"


class ArchetypeType(StrEnum):
    """Character archetypes."""

    POWER = "power"
    POWERED_MARTIAL = "powered-martial"
    MARTIAL = "martial"


class EntityKind(StrEnum):
    """Whether progression applies to a player character or a creature."""

    CHARACTER = "character"
    CREATURE = "creature"


class AreaType(StrEnum):
    """Area shapes a power may cover."""

    SPHERE = "sphere"
    CYLINDER = "cylinder"
    CONE = "cone"
    LINE = "line"
    TRAIL = "trail"


class DurationType(StrEnum):
    """Duration units a power may last for."""

    INSTANT = "instant"
    ROUNDS = "rounds"
    MINUTES = "minutes"
    HOURS = "hours"
    DAYS = "days"
    PERMANENT = "permanent"


__all__ = [
    "BuildKind",
    "ActionType",
    "Ability",
    "Defense",
    "ArchetypeType",
    "EntityKind",
    "AreaType",
    "DurationType",
]
