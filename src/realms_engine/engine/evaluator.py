"""Cost formula evaluation for a single resolved definition.

For every resource R (en, tp, ip, c):

* additive definitions: ``base_R + sum(op_N_R * level_N)``
* percentage definitions: ``base_R * (1 + sum(op_N_R * level_N))``
* duration definitions contribute nothing unless the selection applies
  duration

No rounding happens here; the aggregator owns the display policy.
"""

from __future__ import annotations

import math
from typing import Any

from realms_engine.models.build import MechanicSelection, ResourceDelta, Selection
from realms_engine.models.catalog import OPTION_SLOTS, RESOURCES, Definition


ZERO = ResourceDelta()


def floor_clean(value: float) -> int:
    """Floor after trimming binary noise, so 2.9999999999 floors to 3."""
    return math.floor(round(value, 9))


def option_levels(selection: Any) -> tuple[int, int, int]:
    """Option levels of a selection (model or raw mapping), clamped at 0."""
    if isinstance(selection, Selection):
        return selection.levels
    return Selection.model_validate(selection).levels


def evaluate(definition: Definition | Any, selection: Selection | Any) -> ResourceDelta:
    """Compute the resource delta one definition contributes.

    Args:
        definition: The resolved catalog definition (raw entries are validated).
        selection: The selection carrying option levels and ``apply_duration``.

    Returns:
        The unrounded per-resource delta.

    Example:
        >>> part = Definition(base_tp=2, op_1_tp=1)
        >>> evaluate(part, Selection(op_1_lvl=3)).tp
        5.0
    """
    definition = Definition.from_entry(definition)
    if not isinstance(selection, Selection):
        selection = Selection.model_validate(selection)

    if definition.duration and not selection.apply_duration:
        return ZERO

    levels = selection.levels
    values: dict[str, float] = {}
    for resource in RESOURCES:
        scaled = sum(
            definition.option(slot, resource) * level
            for slot, level in zip(OPTION_SLOTS, levels)
        )
        base = definition.base(resource)
        if definition.percentage:
            values[resource] = base * (1 + scaled)
        else:
            values[resource] = base + scaled
    return ResourceDelta(**values)


def evaluate_fixed(selection: MechanicSelection) -> ResourceDelta:
    """Delta of a mechanic selection whose cost is read off a linked record."""
    return ResourceDelta(tp=selection.fixed_tp or 0.0)


def part_training_points(definition: Definition | Any, selection: Selection | Any) -> int:
    """Floored training points of one part, as shown on chips and TP lines."""
    if isinstance(selection, MechanicSelection) and selection.fixed_tp is not None:
        return floor_clean(selection.fixed_tp)
    return floor_clean(evaluate(definition, selection).tp)


__all__ = [
    "ZERO",
    "floor_clean",
    "option_levels",
    "evaluate",
    "evaluate_fixed",
    "part_training_points",
]
