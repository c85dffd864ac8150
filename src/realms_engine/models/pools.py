"""Pool allocation state for character and creature creation.

PoolState is immutable: ledgers take a state and return a new one (or the
very same object when a mutation is rejected), so callers can tell an
accepted edit from a rejected one by identity or equality.

Example:
    >>> state = PoolState.from_record({"abilities": {"strength": 2}, "skillVals": {}})
    >>> state.ability("strength"), state.ability("agility")
    (2, 0)
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Any, Self

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from realms_engine.models.catalog import coerce_number
from realms_engine.models.enums import Ability


def _int_map(value: Any) -> dict[str, int]:
    if not value:
        return {}
    return {str(k): int(math.floor(coerce_number(v))) for k, v in dict(value).items()}


class PoolState(BaseModel):
    """Current allocations across all creation pools.

    Attributes:
        abilities: Ability name to score.
        skills: Selected skill names, in selection order.
        skill_vals: Skill name to bought value levels.
        defense_vals: Defense name to bought defense points.
        species_skills: Skills granted by species (free to hold).
        feats: Selected creature feat references, in selection order.
        martial_prof: Martial proficiency points spent.
        power_prof: Power proficiency points spent.
    """

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    abilities: dict[str, int] = Field(default_factory=dict)
    skills: tuple[str, ...] = ()
    skill_vals: dict[str, int] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("skill_vals", "skillVals"),
        serialization_alias="skillVals",
    )
    defense_vals: dict[str, int] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("defense_vals", "defenseVals"),
        serialization_alias="defenseVals",
    )
    species_skills: tuple[str, ...] = Field(
        default=(),
        validation_alias=AliasChoices("species_skills", "speciesSkills"),
        serialization_alias="speciesSkills",
    )
    feats: tuple[str | int, ...] = ()
    martial_prof: int = Field(
        default=0,
        validation_alias=AliasChoices("martial_prof", "martialProf", "mart_prof"),
        serialization_alias="martialProf",
    )
    power_prof: int = Field(
        default=0,
        validation_alias=AliasChoices("power_prof", "powerProf", "pow_prof"),
        serialization_alias="powerProf",
    )

    @field_validator("abilities", "skill_vals", "defense_vals", mode="before")
    @classmethod
    def coerce_int_map(cls, value: Any) -> dict[str, int]:
        return _int_map(value)

    @field_validator("skills", "species_skills", mode="before")
    @classmethod
    def coerce_names(cls, value: Any) -> tuple[str, ...]:
        if not value:
            return ()
        if isinstance(value, Mapping):
            # Legacy records stored selected skills as {name: true}
            return tuple(str(k) for k, v in value.items() if v)
        return tuple(str(v) for v in value)

    @field_validator("feats", mode="before")
    @classmethod
    def coerce_feats(cls, value: Any) -> tuple[str | int, ...]:
        if not value:
            return ()
        refs: list[str | int] = []
        for feat in value:
            if isinstance(feat, Mapping):
                ref = feat.get("id") if feat.get("id") not in (None, "") else feat.get("name")
                if ref is not None:
                    refs.append(ref)
            else:
                refs.append(feat)
        return tuple(refs)

    @field_validator("martial_prof", "power_prof", mode="before")
    @classmethod
    def coerce_prof(cls, value: Any) -> int:
        return max(0, int(math.floor(coerce_number(value))))

    def ability(self, name: str | Ability) -> int:
        return self.abilities.get(str(name), 0)

    def skill_value(self, name: str) -> int:
        return self.skill_vals.get(name, 0)

    def defense_value(self, name: str) -> int:
        return self.defense_vals.get(str(name), 0)

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> Self:
        """Load pool state from its persisted record."""
        return cls.model_validate(dict(record))

    def to_record(self) -> dict[str, Any]:
        """Serialize to the persisted record shape."""
        return self.model_dump(mode="json", by_alias=True)


__all__ = ["PoolState"]
