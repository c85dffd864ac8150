"""Pydantic models and value objects used by the engine."""

from __future__ import annotations

from realms_engine.models.build import (
    AreaChoice,
    Build,
    DamageDice,
    DurationChoice,
    MechanicSelection,
    PartChip,
    RangeChoice,
    ResourceDelta,
    Selection,
    Totals,
    WeaponLink,
)
from realms_engine.models.catalog import (
    RESOURCES,
    CreatureFeatDefinition,
    Definition,
    SkillDefinition,
    coerce_number,
    validate_catalog,
)
from realms_engine.models.enums import (
    Ability,
    ActionType,
    ArchetypeType,
    AreaType,
    BuildKind,
    Defense,
    DurationType,
    EntityKind,
)
from realms_engine.models.pools import PoolState


__all__ = [
    # Catalog
    "RESOURCES",
    "Definition",
    "SkillDefinition",
    "CreatureFeatDefinition",
    "coerce_number",
    "validate_catalog",
    # Builds
    "Selection",
    "MechanicSelection",
    "WeaponLink",
    "DamageDice",
    "RangeChoice",
    "AreaChoice",
    "DurationChoice",
    "Build",
    "ResourceDelta",
    "PartChip",
    "Totals",
    # Pools
    "PoolState",
    # Enums
    "Ability",
    "ActionType",
    "ArchetypeType",
    "AreaType",
    "BuildKind",
    "Defense",
    "DurationType",
    "EntityKind",
]
