"""Catalog definition models.

Catalog entries (parts, properties, feats, skills, creature feats) arrive
from the data-fetching collaborator as plain records. These models validate
them into immutable objects, coercing malformed numeric fields to zero
instead of rejecting the record: reference data quality is outside the
engine's control.

Models:
    Definition: A part or property with base and per-option-level costs.
    SkillDefinition: A skill, optionally a sub-skill of a base skill.
    CreatureFeatDefinition: A creature feat with a (possibly negative) point cost.

Example:
    >>> part = Definition.model_validate(
    ...     {"id": 12, "name": "Flame Lash", "base_tp": "2", "op_1_tp": None}
    ... )
    >>> part.base_tp, part.op_1_tp
    (2.0, 0.0)
"""

from __future__ import annotations

import math
import re
from collections.abc import Mapping, Sequence
from typing import Any, Self

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)


# =============================================================================
# Coercion Helpers
# =============================================================================

RESOURCES: tuple[str, ...] = ("en", "tp", "ip", "c")
OPTION_SLOTS: tuple[int, ...] = (1, 2, 3)

BASE_COST_FIELDS: tuple[str, ...] = tuple(f"base_{r}" for r in RESOURCES)
OPTION_COST_FIELDS: tuple[str, ...] = tuple(
    f"op_{slot}_{r}" for slot in OPTION_SLOTS for r in RESOURCES
)

_NUMBER_PREFIX = re.compile(r"^\s*[-+]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][-+]?\d+)?")


def coerce_number(value: Any) -> float:
    """Coerce a raw catalog value to a finite float, defaulting to 0.

    Numeric strings are parsed from their leading numeric prefix, so
    ``"3 TP"`` reads as 3. ``None``, booleans, NaN, infinities and
    unparseable values all read as 0.

    Example:
        >>> coerce_number("2.5"), coerce_number(None), coerce_number("n/a")
        (2.5, 0.0, 0.0)
    """
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        match = _NUMBER_PREFIX.match(value)
        if match is None:
            return 0.0
        number = float(match.group(0))
    else:
        return 0.0
    return number if math.isfinite(number) else 0.0


def coerce_flag(value: Any) -> bool:
    """Coerce a raw catalog flag to bool (``"true"``/``"1"`` are truthy)."""
    if isinstance(value, str):
        return value.strip().lower() in {"true", "1", "yes", "y"}
    return bool(value)


def entry_value(entry: Any, key: str, default: Any = None) -> Any:
    """Read ``key`` from a mapping or an attribute-bearing object."""
    if isinstance(entry, Mapping):
        return entry.get(key, default)
    return getattr(entry, key, default)


# =============================================================================
# Definitions
# =============================================================================


class Definition(BaseModel):
    """A catalog part or property.

    Attributes:
        id: Stable catalog id (numeric or legacy string).
        name: Legacy name, unique within its catalog.
        category: Free-form grouping used by the codex.
        description: Rules text.
        base_en, base_tp, base_ip, base_c: Base cost per resource.
        op_N_desc: Description of option slot N.
        op_N_en, op_N_tp, op_N_ip, op_N_c: Per-level cost of option slot N.
        mechanic: Injected by the engine rather than picked by the user.
        percentage: Option levels scale the base multiplicatively.
        duration: Only costs anything when the selection applies duration.
    """

    model_config = ConfigDict(frozen=True, extra="allow", populate_by_name=True)

    id: int | str | None = None
    name: str = ""
    category: str = ""
    description: str = ""

    base_en: float = 0.0
    base_tp: float = 0.0
    base_ip: float = 0.0
    base_c: float = 0.0

    op_1_desc: str = ""
    op_1_en: float = 0.0
    op_1_tp: float = 0.0
    op_1_ip: float = 0.0
    op_1_c: float = 0.0

    op_2_desc: str = ""
    op_2_en: float = 0.0
    op_2_tp: float = 0.0
    op_2_ip: float = 0.0
    op_2_c: float = 0.0

    op_3_desc: str = ""
    op_3_en: float = 0.0
    op_3_tp: float = 0.0
    op_3_ip: float = 0.0
    op_3_c: float = 0.0

    mechanic: bool = False
    percentage: bool = False
    duration: bool = False

    @field_validator(*BASE_COST_FIELDS, *OPTION_COST_FIELDS, mode="before")
    @classmethod
    def coerce_cost(cls, value: Any) -> float:
        return coerce_number(value)

    @field_validator("mechanic", "percentage", "duration", mode="before")
    @classmethod
    def coerce_flags(cls, value: Any) -> bool:
        return coerce_flag(value)

    @field_validator(
        "name", "category", "description", "op_1_desc", "op_2_desc", "op_3_desc",
        mode="before",
    )
    @classmethod
    def coerce_text(cls, value: Any) -> str:
        if value is None:
            return ""
        return str(value)

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, value: Any) -> int | str | None:
        if value is None or value == "":
            return None
        if isinstance(value, float) and value.is_integer():
            return int(value)
        if isinstance(value, (int, str)):
            return value
        return str(value)

    def base(self, resource: str) -> float:
        """Base cost for ``resource`` (one of en, tp, ip, c)."""
        return getattr(self, f"base_{resource}")

    def option(self, slot: int, resource: str) -> float:
        """Per-level cost of option ``slot`` for ``resource``."""
        return getattr(self, f"op_{slot}_{resource}")

    def option_slots(self) -> list[int]:
        """Option slots that carry any non-zero cost."""
        return [
            slot
            for slot in OPTION_SLOTS
            if any(self.option(slot, r) != 0 for r in RESOURCES)
        ]

    @classmethod
    def from_entry(cls, entry: Any) -> Self:
        """Validate a raw catalog entry (mapping, model or plain object)."""
        if isinstance(entry, cls):
            return entry
        if isinstance(entry, BaseModel):
            return cls.model_validate(entry.model_dump())
        if isinstance(entry, Mapping):
            return cls.model_validate(dict(entry))
        return cls.model_validate(entry, from_attributes=True)


class SkillDefinition(BaseModel):
    """A skill or sub-skill.

    Attributes:
        id: Stable catalog id.
        name: Skill name.
        ability: Abilities the skill may be rolled with.
        base_skill: Name or id of the parent skill for sub-skills.
    """

    model_config = ConfigDict(frozen=True, extra="allow", populate_by_name=True)

    id: int | str | None = None
    name: str = ""
    description: str = ""
    ability: list[str] = Field(default_factory=list)
    base_skill: int | str | None = Field(
        default=None,
        validation_alias=AliasChoices("base_skill", "baseSkill", "base_skill_id"),
    )

    @field_validator("ability", mode="before")
    @classmethod
    def split_abilities(cls, value: Any) -> list[str]:
        if value is None:
            return []
        if isinstance(value, str):
            return [part.strip().lower() for part in value.split(",") if part.strip()]
        return [str(part).strip().lower() for part in value]

    @field_validator("base_skill", mode="before")
    @classmethod
    def blank_base_skill(cls, value: Any) -> Any:
        if value in ("", 0, "0"):
            return None
        return value

    @property
    def is_sub_skill(self) -> bool:
        return self.base_skill is not None

    def is_child_of(self, parent: SkillDefinition) -> bool:
        """Whether ``base_skill`` points at ``parent`` by name or id."""
        if self.base_skill is None:
            return False
        ref = str(self.base_skill)
        return ref == parent.name or (parent.id is not None and ref == str(parent.id))


class CreatureFeatDefinition(BaseModel):
    """A creature feat.

    The point cost is read from ``points``, then ``feat_points``, then
    ``cost``, whichever is present first. It may be negative. ``points`` is
    None when the entry carries none of the three.
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    id: int | str | None = None
    name: str = ""
    description: str = ""
    points: float | None = None
    mechanic: bool = False

    @model_validator(mode="before")
    @classmethod
    def pick_point_field(cls, data: Any) -> Any:
        if not isinstance(data, Mapping):
            return data
        data = dict(data)
        for key in ("points", "feat_points", "cost"):
            if data.get(key) is not None:
                data["points"] = coerce_number(data[key])
                break
        else:
            data["points"] = None
        return data

    def cost(self, default: float = 0.0) -> float:
        """Point cost, or ``default`` when the entry declares none."""
        return default if self.points is None else self.points

    @field_validator("mechanic", mode="before")
    @classmethod
    def coerce_mechanic(cls, value: Any) -> bool:
        return coerce_flag(value)


def validate_catalog(entries: Sequence[Any]) -> list[Definition]:
    """Validate a whole catalog of parts or properties."""
    return [Definition.from_entry(entry) for entry in entries]


__all__ = [
    "RESOURCES",
    "OPTION_SLOTS",
    "coerce_number",
    "coerce_flag",
    "entry_value",
    "Definition",
    "SkillDefinition",
    "CreatureFeatDefinition",
    "validate_catalog",
]
