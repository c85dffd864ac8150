"""Mechanic part injection.

Mechanic parts carry the implicit costs of a build: its action type, the
reaction flag, damage dice, the linked weapon and, for powers, range, area
and duration. The user never picks them; they are re-derived from the
build's scalars every time totals are computed and are never written back
into the build's explicit parts.

Only catalog definitions flagged ``mechanic`` are injected. Each is looked
up by its well-known id first and by name second, so catalogs that predate
stable ids still work.

Example:
    >>> build = Build(kind="technique", action_type="quick", reaction=True)
    >>> [p.name for p in inject_mechanic_parts(build, technique_parts)]
    ['Reaction', 'Quick or Free Action']
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from typing import Any, NamedTuple

from realms_engine.core.logging import get_logger
from realms_engine.engine.evaluator import option_levels
from realms_engine.engine.resolver import as_reference, id_key, resolve
from realms_engine.models.build import (
    Build,
    DamageDice,
    MechanicSelection,
    Selection,
)
from realms_engine.models.catalog import coerce_flag, coerce_number, entry_value
from realms_engine.models.enums import ActionType, BuildKind, DurationType


logger = get_logger(__name__)


VALID_DIE_SIZES: frozenset[int] = frozenset({4, 6, 8, 10, 12})


class PartKey(NamedTuple):
    """Well-known id plus the name used when the id lookup misses."""

    id: int | None
    name: str


# =============================================================================
# Well-Known Mechanic Parts
# =============================================================================

PART_IDS: dict[str, int] = {
    "TRUE_DAMAGE": 1,
    "REACTION": 2,
    "LONG_ACTION": 3,
    "QUICK_OR_FREE_ACTION": 4,
    "SPLIT_DAMAGE_DICE": 5,
    "ADDITIONAL_DAMAGE": 6,
    "ADD_WEAPON_ATTACK": 7,
    "POWER_LONG_ACTION": 81,
    "POWER_REACTION": 82,
    "POWER_QUICK_OR_FREE_ACTION": 83,
    "LINE_OF_EFFECT": 88,
    "CONE_OF_EFFECT": 89,
    "CYLINDER_OF_EFFECT": 231,
    "SPHERE_OF_EFFECT": 232,
    "TRAIL_OF_EFFECT": 233,
    "POWER_RANGE": 292,
    "MAGIC_DAMAGE": 294,
    "LIGHT_DAMAGE": 295,
    "PHYSICAL_DAMAGE": 296,
    "ELEMENTAL_DAMAGE": 297,
    "POISON_OR_NECROTIC_DAMAGE": 298,
    "SONIC_DAMAGE": 299,
    "SPIRITUAL_DAMAGE": 300,
    "PSYCHIC_DAMAGE": 301,
    "DURATION_ENDS_ON_ACTIVATION": 302,
    "DURATION_NO_HARM": 303,
    "DURATION_FOCUS": 304,
    "DURATION_SUSTAIN": 305,
    "DURATION_PERMANENT": 306,
    "DURATION_DAYS": 375,
    "DURATION_HOUR": 376,
    "DURATION_ROUND": 377,
    "DURATION_MINUTE": 378,
}


class ActionParts(NamedTuple):
    reaction: PartKey
    quick_free: PartKey
    long: PartKey


TECHNIQUE_ACTION_PARTS = ActionParts(
    reaction=PartKey(PART_IDS["REACTION"], "Reaction"),
    quick_free=PartKey(PART_IDS["QUICK_OR_FREE_ACTION"], "Quick or Free Action"),
    long=PartKey(PART_IDS["LONG_ACTION"], "Long Action"),
)

POWER_ACTION_PARTS = ActionParts(
    reaction=PartKey(PART_IDS["POWER_REACTION"], "Power Reaction"),
    quick_free=PartKey(PART_IDS["POWER_QUICK_OR_FREE_ACTION"], "Power Quick or Free Action"),
    long=PartKey(PART_IDS["POWER_LONG_ACTION"], "Power Long Action"),
)

# Action type -> (which action part, option-1 level)
ACTION_LEVELS: dict[ActionType, tuple[str, int]] = {
    ActionType.QUICK: ("quick_free", 0),
    ActionType.FREE: ("quick_free", 1),
    ActionType.LONG3: ("long", 0),
    ActionType.LONG4: ("long", 1),
}

ADDITIONAL_DAMAGE = PartKey(PART_IDS["ADDITIONAL_DAMAGE"], "Additional Damage")
SPLIT_DAMAGE_DICE = PartKey(PART_IDS["SPLIT_DAMAGE_DICE"], "Split Damage Dice")
POWER_SPLIT_DAMAGE_DICE = PartKey(None, "Power Split Damage Dice")
POWER_RANGE = PartKey(PART_IDS["POWER_RANGE"], "Power Range")

_MAGIC = PartKey(PART_IDS["MAGIC_DAMAGE"], "Magic Damage")
_LIGHT = PartKey(PART_IDS["LIGHT_DAMAGE"], "Light Damage")
_ELEMENTAL = PartKey(PART_IDS["ELEMENTAL_DAMAGE"], "Elemental Damage")
_POISON = PartKey(PART_IDS["POISON_OR_NECROTIC_DAMAGE"], "Poison or Necrotic Damage")
_PHYSICAL = PartKey(PART_IDS["PHYSICAL_DAMAGE"], "Physical Damage")

DAMAGE_TYPE_PARTS: dict[str, PartKey] = {
    "magic": _MAGIC,
    "light": _LIGHT,
    "radiant": _LIGHT,
    "fire": _ELEMENTAL,
    "cold": _ELEMENTAL,
    "ice": _ELEMENTAL,
    "lightning": _ELEMENTAL,
    "acid": _ELEMENTAL,
    "poison": _POISON,
    "necrotic": _POISON,
    "sonic": PartKey(PART_IDS["SONIC_DAMAGE"], "Sonic Damage"),
    "spiritual": PartKey(PART_IDS["SPIRITUAL_DAMAGE"], "Spiritual Damage"),
    "psychic": PartKey(PART_IDS["PSYCHIC_DAMAGE"], "Psychic Damage"),
    "physical": _PHYSICAL,
    "bludgeoning": _PHYSICAL,
    "piercing": _PHYSICAL,
    "slashing": _PHYSICAL,
}

AREA_PARTS: dict[str, PartKey] = {
    "sphere": PartKey(PART_IDS["SPHERE_OF_EFFECT"], "Sphere of Effect"),
    "cylinder": PartKey(PART_IDS["CYLINDER_OF_EFFECT"], "Cylinder of Effect"),
    "cone": PartKey(PART_IDS["CONE_OF_EFFECT"], "Cone of Effect"),
    "line": PartKey(PART_IDS["LINE_OF_EFFECT"], "Line of Effect"),
    "trail": PartKey(PART_IDS["TRAIL_OF_EFFECT"], "Trail of Effect"),
}

DURATION_PARTS: dict[DurationType, PartKey] = {
    DurationType.ROUNDS: PartKey(PART_IDS["DURATION_ROUND"], "Duration (Round)"),
    DurationType.MINUTES: PartKey(PART_IDS["DURATION_MINUTE"], "Duration (Minute)"),
    DurationType.HOURS: PartKey(PART_IDS["DURATION_HOUR"], "Duration (Hour)"),
    DurationType.DAYS: PartKey(PART_IDS["DURATION_DAYS"], "Duration (Days)"),
    DurationType.PERMANENT: PartKey(PART_IDS["DURATION_PERMANENT"], "Duration (Permanent)"),
}

# Selectable values per duration unit; the index is the option-1 level
DURATION_STEPS: dict[DurationType, tuple[int, ...]] = {
    DurationType.MINUTES: (1, 10, 30),
    DurationType.HOURS: (1, 6, 12),
    DurationType.DAYS: (1, 7, 14),
}

DURATION_FOCUS = PartKey(PART_IDS["DURATION_FOCUS"], "Focus for Duration")
DURATION_NO_HARM = PartKey(PART_IDS["DURATION_NO_HARM"], "No Harm or Adaptation for Duration")
DURATION_ENDS_ON_ACTIVATION = PartKey(
    PART_IDS["DURATION_ENDS_ON_ACTIVATION"], "Duration Ends On Activation"
)
DURATION_SUSTAIN = PartKey(PART_IDS["DURATION_SUSTAIN"], "Sustain for Duration")

WEAPON_TP_FIELDS: tuple[str, ...] = ("tp", "totalTP", "total_tp", "training_points")


# =============================================================================
# Damage Tier Calculators
# =============================================================================


def compute_additional_damage_level(amount: int, size: int) -> int:
    """Option-1 level of the additional damage part for ``amount``d``size``.

    Level 0 is 1d4; every two points of maximum damage above that add a level.

    Example:
        >>> compute_additional_damage_level(2, 6)
        4
    """
    total = amount * size
    if total <= 0:
        return 0
    return max(0, math.floor((total - 4) / 2))


def compute_power_damage_level(amount: int, size: int) -> int:
    """Option-1 level of a typed power damage part."""
    return max(0, math.floor((amount * size - 4) / 2))


def compute_splits(amount: int, size: int) -> int:
    """How many extra dice a roll uses compared to the fewest d12s.

    ``3d4`` (max 12) could be a single d12, so it carries two splits.
    """
    if size not in VALID_DIE_SIZES or amount <= 1:
        return 0
    return max(0, amount - math.ceil(amount * size / 12))


def is_valid_dice(dice: DamageDice) -> bool:
    return dice.amount > 0 and dice.size in VALID_DIE_SIZES


# =============================================================================
# Injection
# =============================================================================


class _Injector:
    """Collects mechanic selections for one build against one catalog."""

    def __init__(self, catalog: Sequence[Any], *, track_duration: bool) -> None:
        self.catalog = catalog
        self.track_duration = track_duration
        self.parts: list[Selection] = []

    def add(
        self,
        key: PartKey,
        level: int = 0,
        *,
        apply_duration: bool = False,
        source: str = "",
    ) -> None:
        found = None
        if key.id is not None:
            found = resolve(self.catalog, {"id": key.id})
        if found is None:
            found = resolve(self.catalog, {"name": key.name})
        if found is None or not coerce_flag(entry_value(found, "mechanic", False)):
            logger.debug("Mechanic part unavailable", part=key.name, part_id=key.id)
            return
        self.parts.append(
            MechanicSelection(
                id=entry_value(found, "id"),
                name=entry_value(found, "name") or key.name,
                op_1_lvl=max(0, level),
                apply_duration=apply_duration if self.track_duration else False,
                source=source,
            )
        )


def _inject_action(injector: _Injector, build: Build, parts: ActionParts) -> None:
    if build.reaction:
        injector.add(parts.reaction, 0, source="reaction")
    mapping = ACTION_LEVELS.get(build.action_type)
    if mapping is not None:
        attr, level = mapping
        injector.add(getattr(parts, attr), level, source="action_type")


def _inject_technique_damage(injector: _Injector, build: Build) -> None:
    dice = next((d for d in build.damage if d.amount > 0), None)
    if dice is None or not is_valid_dice(dice):
        return
    level = compute_additional_damage_level(dice.amount, dice.size)
    injector.add(ADDITIONAL_DAMAGE, level, source="damage")
    splits = compute_splits(dice.amount, dice.size)
    if splits > 0:
        injector.add(SPLIT_DAMAGE_DICE, splits - 1, source="damage")


def _inject_power_damage(injector: _Injector, build: Build) -> None:
    total_amount = 0
    max_size = 0
    for dice in build.damage:
        key = DAMAGE_TYPE_PARTS.get(dice.type)
        if key is None or not is_valid_dice(dice):
            continue
        injector.add(
            key,
            compute_power_damage_level(dice.amount, dice.size),
            apply_duration=dice.apply_duration,
            source="damage",
        )
        total_amount += dice.amount
        max_size = max(max_size, dice.size)

    splits = compute_splits(total_amount, max_size)
    if splits > 0:
        apply_duration = any(d.apply_duration for d in build.damage)
        injector.add(
            POWER_SPLIT_DAMAGE_DICE,
            splits - 1,
            apply_duration=apply_duration,
            source="damage",
        )


def _inject_range(injector: _Injector, build: Build) -> None:
    if build.range is None or build.range.steps <= 0:
        return
    injector.add(
        POWER_RANGE,
        build.range.steps - 1,
        apply_duration=build.range.apply_duration,
        source="range",
    )


def _inject_area(injector: _Injector, build: Build) -> None:
    if build.area is None or build.area.type is None:
        return
    key = AREA_PARTS.get(str(build.area.type))
    if key is None:
        return
    injector.add(
        key,
        build.area.level - 1,
        apply_duration=build.area.apply_duration,
        source="area",
    )


def duration_level(duration_type: DurationType, value: int) -> int | None:
    """Option-1 level of a duration part, or None when no part applies.

    Rounds start costing from 2 rounds (level 0); minutes, hours and days
    index into their selectable steps; permanent is always level 0.
    """
    if duration_type == DurationType.ROUNDS:
        return value - 2 if value > 1 else None
    if duration_type == DurationType.PERMANENT:
        return 0
    steps = DURATION_STEPS.get(duration_type)
    if steps is None:
        return None
    return steps.index(value) if value in steps else 0


def _inject_duration(injector: _Injector, build: Build) -> None:
    duration = build.duration
    if duration is None or duration.type == DurationType.INSTANT:
        return

    if duration.focus:
        injector.add(DURATION_FOCUS, source="duration")
    if duration.no_harm:
        injector.add(DURATION_NO_HARM, source="duration")
    if duration.ends_on_activation:
        injector.add(DURATION_ENDS_ON_ACTIVATION, source="duration")
    if duration.sustain > 0:
        injector.add(DURATION_SUSTAIN, duration.sustain - 1, source="duration")

    level = duration_level(duration.type, duration.value)
    key = DURATION_PARTS.get(duration.type)
    if level is not None and key is not None:
        injector.add(
            key,
            level,
            apply_duration=duration.apply_duration,
            source="duration",
        )


def weapon_training_points(
    build: Build,
    weapons: Sequence[Any] | None = None,
) -> float | None:
    """Training points of the build's linked weapon.

    Read from the link itself when it carries them, else from the weapon
    record it resolves to. None when the weapon cannot be found.
    """
    link = build.weapon
    if link is None:
        return None
    if link.tp is not None:
        return link.tp
    record = resolve(weapons, link)
    if record is None:
        return None
    for key in WEAPON_TP_FIELDS:
        value = entry_value(record, key)
        if value is not None:
            return coerce_number(value)
    return 0.0


def weapon_label(build: Build, weapons: Sequence[Any] | None = None) -> str:
    """Display name of the linked weapon (``Unarmed`` when there is none)."""
    link = build.weapon
    if link is None:
        return "Unarmed"
    if link.name:
        return link.name
    record = resolve(weapons, link)
    if record is not None and entry_value(record, "name"):
        return str(entry_value(record, "name"))
    return f"Weapon #{link.id}" if link.id is not None else "Unarmed"


def _inject_weapon(
    injector: _Injector,
    build: Build,
    weapons: Sequence[Any] | None,
) -> None:
    if build.weapon is None:
        return
    tp = weapon_training_points(build, weapons)
    if tp is not None and tp <= 0:
        return
    # tp None marks an unresolved weapon; the aggregator shows a placeholder
    injector.parts.append(
        MechanicSelection(
            id=build.weapon.id,
            name=f"Weapon: {weapon_label(build, weapons)}",
            fixed_tp=tp,
            source="weapon",
        )
    )


def inject_mechanic_parts(
    build: Build,
    catalog: Sequence[Any] | None,
    *,
    weapons: Sequence[Any] | None = None,
) -> list[Selection]:
    """Synthesize the mechanic selections implied by a build's scalars.

    Args:
        build: The build to derive from (never mutated).
        catalog: The part catalog holding the mechanic definitions.
        weapons: Weapon records for resolving a weapon link without ``tp``.

    Returns:
        Mechanic selections in a stable order: action, damage, range, area,
        duration, weapon. Armaments inject nothing.
    """
    if build.kind == BuildKind.ARMAMENT:
        return []

    catalog = catalog or []
    is_power = build.kind == BuildKind.POWER
    injector = _Injector(catalog, track_duration=is_power)

    _inject_action(injector, build, POWER_ACTION_PARTS if is_power else TECHNIQUE_ACTION_PARTS)
    if is_power:
        _inject_power_damage(injector, build)
        _inject_range(injector, build)
        _inject_area(injector, build)
        _inject_duration(injector, build)
    else:
        _inject_technique_damage(injector, build)
    _inject_weapon(injector, build, weapons)

    logger.debug(
        "Mechanic parts injected",
        build=build.name,
        kind=str(build.kind),
        count=len(injector.parts),
    )
    return injector.parts


# =============================================================================
# Action Type Labels and Legacy Builds
# =============================================================================

_ACTION_BASE_LABELS: dict[ActionType, str] = {
    ActionType.BASIC: "Basic",
    ActionType.QUICK: "Quick",
    ActionType.FREE: "Free",
    ActionType.LONG3: "Long (3)",
    ActionType.LONG4: "Long (4)",
}


def action_type_label(action_type: ActionType | str, reaction: bool) -> str:
    """Display label such as ``"Quick Action"`` or ``"Long (3) Reaction"``."""
    try:
        base = _ACTION_BASE_LABELS[ActionType(action_type)]
    except ValueError:
        base = "Basic"
    return f"{base} Reaction" if reaction else f"{base} Action"


def _matches(selection: Any, key: PartKey, catalog: Sequence[Any]) -> bool:
    ref = as_reference(selection)
    if key.id is not None and ref.id == id_key(key.id):
        return True
    if ref.name == key.name:
        return True
    found = resolve(catalog, selection)
    return found is not None and (
        (key.id is not None and id_key(entry_value(found, "id")) == id_key(key.id))
        or entry_value(found, "name") == key.name
    )


def derive_action_type(
    parts: Sequence[Any],
    catalog: Sequence[Any] | None,
    kind: BuildKind | str = BuildKind.TECHNIQUE,
) -> tuple[ActionType, bool]:
    """Recover action type and reaction flag from stored mechanic parts.

    Builds saved before mechanic parts were derived kept them in the parts
    list; this reads them back into build-level scalars.
    """
    catalog = catalog or []
    action_parts = POWER_ACTION_PARTS if kind == BuildKind.POWER else TECHNIQUE_ACTION_PARTS
    action_type = ActionType.BASIC
    reaction = False
    for part in parts:
        level = option_levels(part)[0]
        if _matches(part, action_parts.reaction, catalog):
            reaction = True
        elif _matches(part, action_parts.quick_free, catalog):
            action_type = {0: ActionType.QUICK, 1: ActionType.FREE}.get(level, action_type)
        elif _matches(part, action_parts.long, catalog):
            action_type = {0: ActionType.LONG3, 1: ActionType.LONG4}.get(level, action_type)
    return action_type, reaction


def strip_stored_mechanics(build: Build, catalog: Sequence[Any] | None) -> Build:
    """Move stored mechanic parts of a legacy build back into its scalars.

    Mechanic entries are dropped from ``parts``. When the build still has
    default action scalars they are re-derived from the dropped entries.
    """
    catalog = catalog or []
    explicit: list[Selection] = []
    stored: list[Selection] = []
    for part in build.parts:
        found = resolve(catalog, part)
        if found is not None and coerce_flag(entry_value(found, "mechanic", False)):
            stored.append(part)
        else:
            explicit.append(part)
    if not stored:
        return build

    update: dict[str, Any] = {"parts": explicit}
    if build.action_type == ActionType.BASIC and not build.reaction:
        action_type, reaction = derive_action_type(stored, catalog, build.kind)
        update["action_type"] = action_type
        update["reaction"] = reaction
    logger.info("Stored mechanic parts migrated", build=build.name, dropped=len(stored))
    return build.model_copy(update=update)


__all__ = [
    "PART_IDS",
    "PartKey",
    "VALID_DIE_SIZES",
    "DAMAGE_TYPE_PARTS",
    "AREA_PARTS",
    "DURATION_PARTS",
    "compute_additional_damage_level",
    "compute_power_damage_level",
    "compute_splits",
    "duration_level",
    "weapon_training_points",
    "weapon_label",
    "inject_mechanic_parts",
    "action_type_label",
    "derive_action_type",
    "strip_stored_mechanics",
]
