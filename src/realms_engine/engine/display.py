"""Display projections of builds.

Pure functions that turn a build and its totals into the strings and
numbers the library and creator screens show. Nothing here feeds back into
cost computation.

Example:
    >>> view = derive_display(build, technique_parts)
    >>> view.action_type, view.damage, view.weapon_name
    ('Quick Action', '+2d6', 'Unarmed')
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from realms_engine.engine.aggregator import (
    ProficiencyInfo,
    aggregate,
    currency_cost_and_rarity,
    extract_proficiencies,
    format_cost,
)
from realms_engine.engine.mechanics import action_type_label, weapon_label
from realms_engine.engine.resolver import as_reference, id_key
from realms_engine.models.build import Build, DamageDice, PartChip, Selection
from realms_engine.models.enums import BuildKind
from realms_engine.rules.table import RulesTable


if TYPE_CHECKING:
    from realms_engine.core.config import Settings


RANGE_PROPERTY_ID = 13
DAMAGE_REDUCTION_PROPERTY_ID = 1


def format_damage(damage: Sequence[DamageDice], kind: BuildKind | str = BuildKind.ARMAMENT) -> str:
    """Damage dice as text.

    Techniques show the bonus dice they add (``"+2d6"``); powers and
    armaments show typed dice (``"2d6 fire, 1d4 cold"``). Dice with no
    amount or size are left out, as are untyped dice outside techniques.
    """
    rolled = [d for d in damage if d.amount > 0 and d.size > 0]
    if str(kind) == BuildKind.TECHNIQUE:
        return ", ".join(f"+{d.amount}d{d.size}" for d in rolled)
    return ", ".join(f"{d.amount}d{d.size} {d.type}" for d in rolled if d.type != "none")


def _find_property(parts: Sequence[Selection], prop_id: int, name: str) -> Selection | None:
    for part in parts:
        ref = as_reference(part)
        if ref.id == id_key(prop_id) or part.name == name:
            return part
    return None


def format_range(parts: Sequence[Selection]) -> str:
    """Armament range: ``Melee`` or ``"<8 + 8*level> Spaces"``."""
    prop = _find_property(parts, RANGE_PROPERTY_ID, "Range")
    if prop is None:
        return "Melee"
    return f"{8 + prop.op_1_lvl * 8} Spaces"


def derive_damage_reduction(parts: Sequence[Selection]) -> int:
    prop = _find_property(parts, DAMAGE_REDUCTION_PROPERTY_ID, "Damage Reduction")
    if prop is None:
        return 0
    return 1 + prop.op_1_lvl


def format_proficiency_chip(prof: ProficiencyInfo) -> str:
    """Chip text for an armament TP source, e.g. ``"Finesse (Level 2) | TP: 1 + 2"``."""
    text = prof.name
    if prof.level > 0:
        text += f" (Level {prof.level})"
    tp = format_cost(prof.base_tp)
    if prof.option_tp:
        tp += f" + {format_cost(prof.option_tp)}"
    return f"{text} | TP: {tp}"


@dataclass(frozen=True)
class BuildDisplay:
    """Everything a library card shows for one build."""

    name: str
    description: str
    kind: BuildKind
    action_type: str
    damage: str
    weapon_name: str
    energy: float
    tp: int
    ip: int
    currency: int
    tp_sources: tuple[str, ...]
    chips: tuple[PartChip, ...]
    rarity: str | None = None
    currency_cost: int | None = None
    range: str | None = None
    damage_reduction: int | None = None
    proficiency_chips: tuple[str, ...] = ()


def derive_display(
    build: Build | Mapping[str, Any],
    catalog: Sequence[Any] | None,
    *,
    weapons: Sequence[Any] | None = None,
    rules: RulesTable | None = None,
    settings: Settings | None = None,
) -> BuildDisplay:
    """Project a build onto its display fields.

    Args:
        build: The build, or its persisted record.
        catalog: Part or property catalog for the build's kind.
        weapons: Weapon records for weapon links without a TP value.
        rules: Rules table for rarity brackets (fallback when omitted).
        settings: Settings to use instead of the cached singleton.
    """
    if not isinstance(build, Build):
        build = Build.from_record(build)
    totals = aggregate(build, catalog, weapons=weapons, settings=settings)

    armament = build.kind == BuildKind.ARMAMENT
    extra: dict[str, Any] = {}
    if armament:
        rarity = currency_cost_and_rarity(totals.raw.c, totals.raw.ip, rules)
        extra = {
            "rarity": rarity.rarity,
            "currency_cost": rarity.currency_cost,
            "range": format_range(build.parts),
            "damage_reduction": derive_damage_reduction(build.parts),
            "proficiency_chips": tuple(
                format_proficiency_chip(p) for p in extract_proficiencies(build, catalog)
            ),
        }

    return BuildDisplay(
        name=build.name,
        description=build.description,
        kind=build.kind,
        action_type="" if armament else action_type_label(build.action_type, build.reaction),
        damage=format_damage(build.damage, build.kind),
        weapon_name="" if armament else weapon_label(build, weapons),
        energy=totals.total_energy,
        tp=totals.total_tp,
        ip=totals.total_ip,
        currency=totals.total_currency,
        tp_sources=totals.tp_sources,
        chips=totals.part_chips,
        **extra,
    )


__all__ = [
    "format_damage",
    "format_range",
    "derive_damage_reduction",
    "format_cost",
    "format_proficiency_chip",
    "BuildDisplay",
    "derive_display",
]
