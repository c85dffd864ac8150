"""Build cost aggregation.

``aggregate`` resolves every explicit selection of a build, adds the
mechanic parts implied by the build's scalars, evaluates each pair and sums
the resources. Display totals are rounded (energy up to one decimal,
training points, item points and currency down to integers); the
unrounded sums stay available on ``Totals.raw``.

Unresolvable references never fail the aggregation. They contribute zero
and show up as placeholder chips. Negative totals are left negative.

Example:
    >>> totals = aggregate(build, parts_catalog)
    >>> totals.total_tp, totals.tp_sources
    (6, ('Flame Lash (Opt1 3) | TP: 5', 'Reaction | TP: 1'))
"""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from realms_engine.core.config import get_settings
from realms_engine.core.logging import get_logger
from realms_engine.engine.evaluator import (
    ZERO,
    evaluate,
    evaluate_fixed,
    floor_clean,
)
from realms_engine.engine.mechanics import inject_mechanic_parts
from realms_engine.engine.resolver import resolve
from realms_engine.models.build import (
    Build,
    MechanicSelection,
    PartChip,
    ResourceDelta,
    Selection,
    Totals,
)
from realms_engine.models.catalog import Definition
from realms_engine.models.enums import BuildKind
from realms_engine.rules.table import RulesTable


if TYPE_CHECKING:
    from realms_engine.core.config import Settings


logger = get_logger(__name__)


# =============================================================================
# Rounding
# =============================================================================


def round_energy(value: float, precision: int = 1) -> float:
    """Round energy up to ``precision`` decimals.

    The scaled value is trimmed to nine decimals first so that binary noise
    (``0.1 * 3 == 0.30000000000000004``) never bumps a value up a step.

    Example:
        >>> round_energy(2.31), round_energy(0.1 * 3)
        (2.4, 0.3)
    """
    factor = 10**precision
    return math.ceil(round(value * factor, 9)) / factor


def format_cost(value: float) -> str:
    """Cost with at most three decimals and no trailing zeros.

    Example:
        >>> format_cost(2.5), format_cost(3.0), format_cost(0.125)
        ('2.5', '3', '0.125')
    """
    text = f"{value:.3f}".rstrip("0").rstrip(".")
    return "0" if text in ("", "-0") else text


def format_tp_source(name: str, levels: Sequence[int], tp: float) -> str:
    """One TP source line, e.g. ``"Flame Lash (Opt1 3) | TP: 5"``.

    Fractional costs keep up to three decimals: ``"Ward | TP: 0.5"``.
    """
    options = "".join(
        f" (Opt{slot} {level})" for slot, level in enumerate(levels, start=1) if level
    )
    return f"{name}{options} | TP: {format_cost(tp)}"


# =============================================================================
# Aggregation
# =============================================================================


def _placeholder(label: str, selection: Selection, *, mechanic: bool) -> PartChip:
    return PartChip(
        label=label,
        level=selection.op_1_lvl,
        levels=selection.levels,
        cost=ZERO,
        tp=0,
        mechanic=mechanic,
        resolved=False,
    )


class _Accumulator:
    """Running sums, TP source lines and chips for one aggregation."""

    def __init__(self, unknown_label: str) -> None:
        self.unknown_label = unknown_label
        self.raw = ZERO
        self.tp_sources: list[str] = []
        self.chips: list[PartChip] = []
        self.unresolved = 0

    def add(
        self,
        name: str,
        selection: Selection,
        delta: ResourceDelta,
        *,
        description: str = "",
        mechanic: bool = False,
    ) -> None:
        self.raw = self.raw + delta
        tp = floor_clean(delta.tp)
        if round(delta.tp, 9) != 0:
            self.tp_sources.append(format_tp_source(name, selection.levels, delta.tp))
        self.chips.append(
            PartChip(
                label=name,
                level=selection.op_1_lvl,
                levels=selection.levels,
                cost=delta,
                tp=tp,
                description=description,
                mechanic=mechanic,
            )
        )

    def skip(self, selection: Selection, *, mechanic: bool = False) -> None:
        self.unresolved += 1
        label = f"{self.unknown_label}: {selection.label}"
        self.chips.append(_placeholder(label, selection, mechanic=mechanic))


def aggregate(
    build: Build | Mapping[str, Any],
    catalog: Sequence[Any] | None,
    *,
    weapons: Sequence[Any] | None = None,
    settings: Settings | None = None,
) -> Totals:
    """Total the costs of a build.

    Args:
        build: The build, or its persisted record.
        catalog: Part catalog (powers/techniques) or property catalog (armaments).
        weapons: Weapon records, for weapon links that carry no TP value.
        settings: Settings to use instead of the cached singleton.

    Returns:
        Totals with display-rounded values, raw sums, TP source lines and
        one chip per explicit or injected part.
    """
    if not isinstance(build, Build):
        build = Build.from_record(build)
    settings = settings or get_settings()
    catalog = catalog or []
    acc = _Accumulator(settings.display.unknown_part_label)

    for selection in build.parts:
        found = resolve(catalog, selection)
        if found is None:
            logger.warning(
                "Unresolved part reference",
                build=build.name,
                ref_id=selection.id,
                ref_name=selection.name,
                catalog_size=len(catalog),
            )
            acc.skip(selection)
            continue
        definition = Definition.from_entry(found)
        if definition.mechanic and build.kind != BuildKind.ARMAMENT:
            # Stored mechanic entries are re-derived from the build scalars
            logger.debug("Stored mechanic part skipped", build=build.name, part=definition.name)
            continue
        acc.add(
            definition.name or selection.label,
            selection,
            evaluate(definition, selection),
            description=definition.description,
        )

    for selection in inject_mechanic_parts(build, catalog, weapons=weapons):
        if isinstance(selection, MechanicSelection) and selection.source == "weapon":
            if selection.fixed_tp is None:
                logger.warning(
                    "Unresolved weapon link",
                    build=build.name,
                    ref_id=selection.id,
                    weapons=len(weapons or ()),
                )
                acc.skip(selection, mechanic=True)
                continue
            acc.add(selection.label, selection, evaluate_fixed(selection), mechanic=True)
            continue
        found = resolve(catalog, selection)
        if found is None:
            acc.skip(selection, mechanic=True)
            continue
        definition = Definition.from_entry(found)
        acc.add(
            definition.name or selection.label,
            selection,
            evaluate(definition, selection),
            description=definition.description,
            mechanic=True,
        )

    raw = acc.raw
    totals = Totals(
        total_energy=round_energy(raw.en, settings.display.energy_precision),
        total_tp=floor_clean(raw.tp),
        total_ip=floor_clean(raw.ip),
        total_currency=floor_clean(raw.c),
        raw=raw,
        tp_sources=tuple(acc.tp_sources),
        part_chips=tuple(acc.chips),
    )
    logger.debug(
        "Build aggregated",
        build=build.name,
        kind=str(build.kind),
        energy=totals.total_energy,
        tp=totals.total_tp,
        unresolved=acc.unresolved,
    )
    return totals


# =============================================================================
# Armament Helpers
# =============================================================================


@dataclass(frozen=True)
class RarityResult:
    rarity: str
    currency_cost: int


def currency_cost_and_rarity(
    total_currency: float,
    total_ip: float,
    rules: RulesTable | None = None,
) -> RarityResult:
    """Rarity tier and currency price of an armament.

    The price is the tier's floor scaled up by 12.5% per currency point,
    never below the floor. Negative inputs read as zero.

    Example:
        >>> currency_cost_and_rarity(2, 5)
        RarityResult(rarity='Uncommon', currency_cost=125)
    """
    rules = rules or RulesTable.fallback()
    item_points = max(0.0, total_ip)
    currency = max(0.0, total_currency)
    tier = rules.rarity_for(item_points)
    scale = rules.rarities.currency_scale_per_point
    cost = max(tier.currency_low, tier.currency_low * (1 + scale * currency))
    return RarityResult(rarity=tier.name, currency_cost=math.floor(cost))


@dataclass(frozen=True)
class ProficiencyInfo:
    """Training-point source of one armament property."""

    id: Any
    name: str
    level: int
    base_tp: float
    option_tp: float
    total_tp: float
    description: str = ""


def extract_proficiencies(
    build: Build | Mapping[str, Any],
    catalog: Sequence[Any] | None,
) -> list[ProficiencyInfo]:
    """Armament properties that cost training points, in selection order."""
    if not isinstance(build, Build):
        build = Build.from_record(build)
    profs: list[ProficiencyInfo] = []
    for selection in build.parts:
        found = resolve(catalog, selection)
        if found is None:
            continue
        definition = Definition.from_entry(found)
        level = selection.op_1_lvl
        option_tp = definition.op_1_tp * level if level > 0 else 0.0
        total = definition.base_tp + option_tp
        if total > 0:
            profs.append(
                ProficiencyInfo(
                    id=definition.id,
                    name=definition.name,
                    level=level,
                    base_tp=definition.base_tp,
                    option_tp=option_tp,
                    total_tp=total,
                    description=definition.description,
                )
            )
    return profs


__all__ = [
    "round_energy",
    "format_cost",
    "format_tp_source",
    "aggregate",
    "RarityResult",
    "currency_cost_and_rarity",
    "ProficiencyInfo",
    "extract_proficiencies",
]
