"""Build, selection and totals models.

A Build (power, technique or armament) is an ordered list of Selections
plus build-level scalars (action type, reaction flag, weapon link, damage
dice and, for powers, range/area/duration). Builds are read, never mutated,
by the engine. Totals are the derived projection the aggregator returns.

Example:
    >>> build = Build.from_record(
    ...     {
    ...         "kind": "technique",
    ...         "name": "Flame Lash",
    ...         "parts": [{"id": 12, "op_1_lvl": 3}],
    ...         "reaction": True,
    ...     }
    ... )
    >>> build.parts[0].op_1_lvl
    3
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Self

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from realms_engine.core.logging import get_logger
from realms_engine.models.catalog import coerce_flag, coerce_number
from realms_engine.models.enums import ActionType, AreaType, BuildKind, DurationType


logger = get_logger(__name__)


def _coerce_level(value: Any) -> int:
    """Option levels are non-negative integers; anything else reads as 0."""
    level = math.floor(coerce_number(value))
    return max(0, level)


def _coerce_int(value: Any) -> int:
    return int(math.floor(coerce_number(value)))


def _coerce_name(value: Any) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


def _coerce_enum(enum: type[StrEnum], value: Any, default: StrEnum | None, *, key: str) -> Any:
    """Read a stored enum value; unknown values fall back to ``default``."""
    if value is None or value == "":
        return default
    if isinstance(value, enum):
        return value
    try:
        return enum(str(value).strip().lower())
    except ValueError:
        logger.warning("Unknown build value replaced", key=key, value=value, default=default)
        return default


def _scalar_choice(value: Any) -> Any:
    """Keep mapping or model scalars; anything else reads as absent."""
    if isinstance(value, (Mapping, BaseModel)):
        return value or None
    return None


# =============================================================================
# Selections
# =============================================================================


class Selection(BaseModel):
    """A chosen part or property: a reference plus option levels.

    Attributes:
        id: Catalog id of the definition, if known.
        name: Legacy name of the definition, if known.
        op_1_lvl, op_2_lvl, op_3_lvl: Levels of the three option slots.
        apply_duration: Whether a duration-flagged definition applies.
    """

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    id: int | str | None = None
    name: str | None = None
    op_1_lvl: int = 0
    op_2_lvl: int = 0
    op_3_lvl: int = 0
    apply_duration: bool = Field(
        default=False,
        validation_alias=AliasChoices("apply_duration", "applyDuration"),
        serialization_alias="applyDuration",
    )

    @field_validator("op_1_lvl", "op_2_lvl", "op_3_lvl", mode="before")
    @classmethod
    def coerce_level(cls, value: Any) -> int:
        return _coerce_level(value)

    @field_validator("apply_duration", mode="before")
    @classmethod
    def coerce_apply_duration(cls, value: Any) -> bool:
        return coerce_flag(value)

    @field_validator("id", mode="before")
    @classmethod
    def blank_id(cls, value: Any) -> Any:
        if value == "":
            return None
        if isinstance(value, float) and value.is_integer():
            return int(value)
        if value is None or isinstance(value, (int, str)):
            return value
        return str(value)

    @field_validator("name", mode="before")
    @classmethod
    def coerce_name(cls, value: Any) -> str | None:
        return _coerce_name(value)

    @property
    def levels(self) -> tuple[int, int, int]:
        return (self.op_1_lvl, self.op_2_lvl, self.op_3_lvl)

    @property
    def label(self) -> str:
        """Best human-readable reference for logs and placeholder chips."""
        if self.name:
            return self.name
        return str(self.id) if self.id is not None else "?"

    def to_record(self) -> dict[str, Any]:
        """Serialize to the persisted record shape."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class MechanicSelection(Selection):
    """A selection synthesized from build-level scalars.

    Attributes:
        fixed_tp: Flat training-point cost taken straight from a linked record
            (no catalog lookup). ``None`` for catalog-backed mechanic parts.
        source: The build scalar that produced this selection.
    """

    fixed_tp: float | None = None
    source: str = ""


# =============================================================================
# Build-Level Scalars
# =============================================================================


class WeaponLink(BaseModel):
    """Reference to the weapon a technique attacks with."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    id: int | str | None = None
    name: str | None = None
    tp: float | None = Field(
        default=None,
        validation_alias=AliasChoices("tp", "totalTP", "training_points"),
    )

    @field_validator("id", "name", mode="before")
    @classmethod
    def coerce_reference(cls, value: Any) -> Any:
        if isinstance(value, (int, str)) or value is None:
            return value if value != "" else None
        return str(value)

    @field_validator("tp", mode="before")
    @classmethod
    def coerce_tp(cls, value: Any) -> float | None:
        if value is None:
            return None
        return coerce_number(value)


class DamageDice(BaseModel):
    """Raw damage dice, e.g. ``2d6`` of a given type."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    amount: int = 0
    size: int = 0
    type: str = "none"
    apply_duration: bool = Field(
        default=False,
        validation_alias=AliasChoices("apply_duration", "applyDuration"),
        serialization_alias="applyDuration",
    )

    @field_validator("apply_duration", mode="before")
    @classmethod
    def coerce_apply_duration(cls, value: Any) -> bool:
        return coerce_flag(value)

    @field_validator("amount", "size", mode="before")
    @classmethod
    def coerce_dice(cls, value: Any) -> int:
        return _coerce_int(value)

    @field_validator("type", mode="before")
    @classmethod
    def lower_type(cls, value: Any) -> str:
        if not value:
            return "none"
        return str(value).strip().lower()


class RangeChoice(BaseModel):
    """Power range in steps beyond melee (0 = melee)."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    steps: int = 0
    apply_duration: bool = Field(
        default=False,
        validation_alias=AliasChoices("apply_duration", "applyDuration"),
        serialization_alias="applyDuration",
    )

    @field_validator("apply_duration", mode="before")
    @classmethod
    def coerce_apply_duration(cls, value: Any) -> bool:
        return coerce_flag(value)

    @field_validator("steps", mode="before")
    @classmethod
    def coerce_steps(cls, value: Any) -> int:
        return _coerce_int(value)


class AreaChoice(BaseModel):
    """Power area of effect; ``level`` is 1-based."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    type: AreaType | None = None
    level: int = 1
    apply_duration: bool = Field(
        default=False,
        validation_alias=AliasChoices("apply_duration", "applyDuration"),
        serialization_alias="applyDuration",
    )

    @field_validator("type", mode="before")
    @classmethod
    def none_type(cls, value: Any) -> Any:
        if isinstance(value, str) and value.strip().lower() == "none":
            return None
        return _coerce_enum(AreaType, value, None, key="area.type")

    @field_validator("apply_duration", mode="before")
    @classmethod
    def coerce_apply_duration(cls, value: Any) -> bool:
        return coerce_flag(value)

    @field_validator("level", mode="before")
    @classmethod
    def coerce_area_level(cls, value: Any) -> int:
        return max(1, _coerce_int(value))


class DurationChoice(BaseModel):
    """Power duration plus its modifiers."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    type: DurationType = DurationType.INSTANT
    value: int = 1
    focus: bool = False
    no_harm: bool = Field(
        default=False,
        validation_alias=AliasChoices("no_harm", "noHarm"),
        serialization_alias="noHarm",
    )
    ends_on_activation: bool = Field(
        default=False,
        validation_alias=AliasChoices("ends_on_activation", "endsOnActivation"),
        serialization_alias="endsOnActivation",
    )
    sustain: int = 0
    apply_duration: bool = Field(
        default=False,
        validation_alias=AliasChoices("apply_duration", "applyDuration"),
        serialization_alias="applyDuration",
    )

    @field_validator("type", mode="before")
    @classmethod
    def default_type(cls, value: Any) -> Any:
        return _coerce_enum(DurationType, value, DurationType.INSTANT, key="duration.type")

    @field_validator("focus", "no_harm", "ends_on_activation", "apply_duration", mode="before")
    @classmethod
    def coerce_flags(cls, value: Any) -> bool:
        return coerce_flag(value)

    @field_validator("value", "sustain", mode="before")
    @classmethod
    def coerce_counts(cls, value: Any) -> int:
        return _coerce_int(value)


# =============================================================================
# Build
# =============================================================================


class Build(BaseModel):
    """A power, technique or armament as persisted by the creator UI.

    Only ``parts`` holds explicit selections. Mechanic parts are never
    stored here; they are derived from the scalars on every aggregation.
    """

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    kind: BuildKind = BuildKind.TECHNIQUE
    name: str = ""
    description: str = ""
    parts: list[Selection] = Field(
        default_factory=list,
        validation_alias=AliasChoices("parts", "properties"),
    )
    action_type: ActionType = Field(
        default=ActionType.BASIC,
        validation_alias=AliasChoices("action_type", "actionType", "actionTypeSelection"),
        serialization_alias="actionType",
    )
    reaction: bool = False
    weapon: WeaponLink | None = None
    damage: list[DamageDice] = Field(default_factory=list)
    range: RangeChoice | None = None
    area: AreaChoice | None = None
    duration: DurationChoice | None = None

    @field_validator("parts", mode="before")
    @classmethod
    def drop_empty_parts(cls, value: Any) -> Any:
        if isinstance(value, (Mapping, Selection)):
            value = [value]
        if not isinstance(value, (list, tuple)):
            return []
        parts: list[Any] = []
        for part in value:
            if isinstance(part, bool) or not part:
                continue
            if isinstance(part, (Mapping, Selection)):
                parts.append(part)
            elif isinstance(part, int):
                parts.append({"id": part})
            elif isinstance(part, str):
                parts.append({"name": part})
        return parts

    @field_validator("damage", mode="before")
    @classmethod
    def wrap_damage(cls, value: Any) -> Any:
        if isinstance(value, (Mapping, DamageDice)):
            value = [value]
        if not isinstance(value, (list, tuple)):
            return []
        return [dice for dice in value if isinstance(dice, (Mapping, DamageDice))]

    @field_validator("range", "area", "duration", mode="before")
    @classmethod
    def drop_malformed_scalars(cls, value: Any) -> Any:
        return _scalar_choice(value)

    @field_validator("action_type", mode="before")
    @classmethod
    def default_action(cls, value: Any) -> Any:
        return _coerce_enum(ActionType, value, ActionType.BASIC, key="action_type")

    @field_validator("kind", mode="before")
    @classmethod
    def default_kind(cls, value: Any) -> Any:
        return _coerce_enum(BuildKind, value, BuildKind.TECHNIQUE, key="kind")

    @field_validator("name", "description", mode="before")
    @classmethod
    def coerce_text(cls, value: Any) -> str:
        return _coerce_name(value) or ""

    @field_validator("reaction", mode="before")
    @classmethod
    def coerce_reaction(cls, value: Any) -> bool:
        return coerce_flag(value)

    @field_validator("weapon", mode="before")
    @classmethod
    def drop_empty_weapon(cls, value: Any) -> Any:
        if isinstance(value, bool) or not value:
            return None
        if isinstance(value, int):
            return {"id": value}
        if isinstance(value, str):
            return {"name": value}
        return _scalar_choice(value)

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> Self:
        """Load a build from its persisted record."""
        return cls.model_validate(dict(record))

    def to_record(self) -> dict[str, Any]:
        """Serialize to the persisted record shape (explicit parts only)."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# =============================================================================
# Derived Values
# =============================================================================


@dataclass(frozen=True)
class ResourceDelta:
    """Per-resource cost contribution."""

    en: float = 0.0
    tp: float = 0.0
    ip: float = 0.0
    c: float = 0.0

    def __add__(self, other: ResourceDelta) -> ResourceDelta:
        if not isinstance(other, ResourceDelta):
            return NotImplemented
        return ResourceDelta(
            en=self.en + other.en,
            tp=self.tp + other.tp,
            ip=self.ip + other.ip,
            c=self.c + other.c,
        )

    def __mul__(self, factor: float) -> ResourceDelta:
        return ResourceDelta(
            en=self.en * factor,
            tp=self.tp * factor,
            ip=self.ip * factor,
            c=self.c * factor,
        )

    __rmul__ = __mul__

    def get(self, resource: str) -> float:
        return getattr(self, resource)

    def is_zero(self) -> bool:
        return self.en == 0 and self.tp == 0 and self.ip == 0 and self.c == 0

    def as_dict(self) -> dict[str, float]:
        return {"en": self.en, "tp": self.tp, "ip": self.ip, "c": self.c}


@dataclass(frozen=True)
class PartChip:
    """Per-part cost breakdown shown as a chip in the creator UI.

    Attributes:
        label: Definition name, or a placeholder for unresolved references.
        level: Option-1 level.
        levels: All three option levels.
        cost: Unrounded resource delta of this part.
        tp: Floored training points of this part.
        description: Rules text of the definition.
        mechanic: Whether the part was injected rather than picked.
        resolved: False for placeholder chips.
    """

    label: str
    level: int
    levels: tuple[int, int, int]
    cost: ResourceDelta
    tp: int
    description: str = ""
    mechanic: bool = False
    resolved: bool = True


@dataclass(frozen=True)
class Totals:
    """Aggregated costs of one build.

    ``total_*`` values follow the display rounding policy; ``raw`` keeps the
    unrounded sums for downstream derivation.
    """

    total_energy: float = 0.0
    total_tp: int = 0
    total_ip: int = 0
    total_currency: int = 0
    raw: ResourceDelta = field(default_factory=ResourceDelta)
    tp_sources: tuple[str, ...] = ()
    part_chips: tuple[PartChip, ...] = ()


__all__ = [
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
]
