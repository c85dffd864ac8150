"""Progression rules table: hardcoded fallback merged with database overrides.

The table is grouped in top-level categories. A category returned by the
override source replaces its fallback wholesale (no deep merge), provided
it validates; categories the source omits, or returns empty or invalid,
keep their fallback. If the source itself fails, the whole fallback table
is used. ``load_rules`` never raises.

Categories the engine computes with are typed models; purely descriptive
ones (combat notes, conditions, sizes, damage types, recovery) stay plain
mappings.

Example:
    >>> rules = load_rules(lambda: {"coreRules": {"EXPERIENCE": {"xpPerLevel": 5}}})
    >>> rules.xp_for_level(3), rules.overridden
    (15, ('EXPERIENCE',))
"""

from __future__ import annotations

import copy
import json
from collections.abc import Callable, Mapping
from functools import lru_cache
from pathlib import Path
from typing import TYPE_CHECKING, Any, Self

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel
from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from realms_engine.core.config import get_settings
from realms_engine.core.exceptions import RulesSourceError
from realms_engine.core.logging import get_logger
from realms_engine.rules.fallback import FALLBACK_RULES


if TYPE_CHECKING:
    from realms_engine.core.config import Settings


logger = get_logger(__name__)

RulesSource = Callable[[], Mapping[str, Any]]


# =============================================================================
# Typed Categories
# =============================================================================


class RulesCategory(BaseModel):
    """Base for typed categories: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(
        frozen=True,
        extra="allow",
        populate_by_name=True,
        alias_generator=to_camel,
    )


class ProgressionPlayer(RulesCategory):
    base_ability_points: int
    ability_points_every_n_levels: int
    ability_points_per_increase: int
    skill_points_per_level: int
    base_hit_energy_pool: int
    hit_energy_per_level: int
    base_proficiency: int
    proficiency_every_n_levels: int
    proficiency_per_increase: int = 1
    base_training_points: int
    tp_per_level_multiplier: int
    starting_currency: int = 200


class ProgressionCreature(RulesCategory):
    base_ability_points: int
    ability_points_every_n_levels: int
    ability_points_per_increase: int = 1
    skill_points_at_level1: int
    skill_points_per_level: int
    base_hit_energy_pool: int
    hit_energy_per_level: int
    base_proficiency: int
    proficiency_every_n_levels: int
    proficiency_per_increase: int = 1
    base_training_points: int
    tp_per_level_multiplier: int
    sub_level_training_points: int = 22
    base_feat_points: float
    feat_points_per_level: float
    base_currency: int
    currency_growth_rate: float


class AbilityRules(RulesCategory):
    min: int
    max_starting: int
    max_absolute_character: int
    max_absolute_creature: int
    cost_increase_threshold: int
    normal_cost: int
    increased_cost: int
    max_total_negative: int
    standard_arrays: dict[str, list[int]] = Field(default_factory=dict)
    abilities: list[str]
    defenses: list[str]
    ability_defense_map: dict[str, str]


class SkillsAndDefenses(RulesCategory):
    max_skill_value: int
    gain_proficiency_cost: int
    skill_value_cost: int = 1
    defense_increase_cost: int
    defense_max: int = 3
    defense_ability_ceiling: int = 0


class ArchetypeProficiency(RulesCategory):
    martial: int
    power: int


class ArchetypeConfig(RulesCategory):
    feat_limit: int
    armament_max: int
    innate_energy: int
    proficiency: ArchetypeProficiency
    training_point_bonus: int = 0


class Archetypes(RulesCategory):
    types: list[str]
    configs: dict[str, ArchetypeConfig]


class ArmamentProficiencyRow(RulesCategory):
    martial_prof: int
    armament_max: int


class ArmamentProficiency(RulesCategory):
    table: list[ArmamentProficiencyRow]

    def armament_max(self, martial_prof: int) -> int:
        """Armament training-point cap for a martial proficiency value."""
        rows = sorted(self.table, key=lambda row: row.martial_prof)
        best = rows[0].armament_max if rows else 0
        for row in rows:
            if row.martial_prof <= martial_prof:
                best = row.armament_max
        return best


class RarityTier(RulesCategory):
    name: str
    currency_low: int
    ip_low: float
    ip_high: float | None = None

    def contains(self, item_points: float) -> bool:
        upper = float("inf") if self.ip_high is None else self.ip_high
        return self.ip_low <= item_points <= upper


class Rarities(RulesCategory):
    tiers: list[RarityTier] = Field(min_length=1)
    currency_scale_per_point: float = 0.125


class Experience(RulesCategory):
    xp_per_level: int = 4
    max_level: int = 20


CATEGORY_MODELS: dict[str, type[RulesCategory] | None] = {
    "PROGRESSION_PLAYER": ProgressionPlayer,
    "PROGRESSION_CREATURE": ProgressionCreature,
    "ABILITY_RULES": AbilityRules,
    "ARCHETYPES": Archetypes,
    "ARMAMENT_PROFICIENCY": ArmamentProficiency,
    "COMBAT": None,
    "SKILLS_AND_DEFENSES": SkillsAndDefenses,
    "CONDITIONS": None,
    "SIZES": None,
    "RARITIES": Rarities,
    "DAMAGE_TYPES": None,
    "RECOVERY": None,
    "EXPERIENCE": Experience,
}


# =============================================================================
# Rules Table
# =============================================================================


class RulesTable(BaseModel):
    """The merged, read-only progression rules table.

    Attributes:
        overridden: Categories taken from the override source.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    progression_player: ProgressionPlayer = Field(alias="PROGRESSION_PLAYER")
    progression_creature: ProgressionCreature = Field(alias="PROGRESSION_CREATURE")
    ability_rules: AbilityRules = Field(alias="ABILITY_RULES")
    archetypes: Archetypes = Field(alias="ARCHETYPES")
    armament_proficiency: ArmamentProficiency = Field(alias="ARMAMENT_PROFICIENCY")
    combat: dict[str, Any] = Field(alias="COMBAT")
    skills_and_defenses: SkillsAndDefenses = Field(alias="SKILLS_AND_DEFENSES")
    conditions: dict[str, Any] = Field(alias="CONDITIONS")
    sizes: dict[str, Any] = Field(alias="SIZES")
    rarities: Rarities = Field(alias="RARITIES")
    damage_types: dict[str, Any] = Field(alias="DAMAGE_TYPES")
    recovery: dict[str, Any] = Field(alias="RECOVERY")
    experience: Experience = Field(alias="EXPERIENCE")

    overridden: tuple[str, ...] = ()

    @classmethod
    def fallback(cls) -> Self:
        """The hardcoded table."""
        return _fallback_table()

    @classmethod
    def merge(cls, overrides: Mapping[str, Any] | None) -> Self:
        """Merge database overrides over the fallback, category by category."""
        if not overrides:
            return cls.fallback()

        merged: dict[str, Any] = copy.deepcopy(FALLBACK_RULES)
        overridden: list[str] = []
        for category, model in CATEGORY_MODELS.items():
            value = overrides.get(category)
            if not value:
                continue
            if not isinstance(value, Mapping):
                logger.warning(
                    "Rules override ignored",
                    category=category,
                    reason="not a mapping",
                )
                continue
            if model is not None:
                try:
                    model.model_validate(value)
                except ValidationError as exc:
                    logger.warning(
                        "Rules override ignored",
                        category=category,
                        reason="invalid",
                        errors=exc.error_count(),
                    )
                    continue
            merged[category] = dict(value)
            overridden.append(category)

        unknown = sorted(set(overrides) - set(CATEGORY_MODELS))
        if unknown:
            logger.debug("Unknown rules categories skipped", categories=unknown)

        return cls.model_validate({**merged, "overridden": tuple(overridden)})

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    def archetype(self, archetype_type: str | None) -> ArchetypeConfig:
        """Config of an archetype; unknown types read as ``power``."""
        configs = self.archetypes.configs
        if archetype_type and archetype_type in configs:
            return configs[archetype_type]
        return configs.get("power") or next(iter(configs.values()))

    def ability_max(self, *, creation: bool = True, creature: bool = False) -> int:
        """Highest ability value allowed in the given context."""
        if creation and not creature:
            return self.ability_rules.max_starting
        if creature:
            return self.ability_rules.max_absolute_creature
        return self.ability_rules.max_absolute_character

    def rarity_for(self, item_points: float) -> RarityTier:
        """Rarity tier containing ``item_points`` (first tier if none does)."""
        for tier in self.rarities.tiers:
            if tier.contains(item_points):
                return tier
        return self.rarities.tiers[0]

    def xp_for_level(self, level: int) -> int:
        return level * self.experience.xp_per_level


@lru_cache(maxsize=1)
def _fallback_table() -> RulesTable:
    return RulesTable.model_validate(copy.deepcopy(FALLBACK_RULES))


# =============================================================================
# Sources and Loading
# =============================================================================


class JsonFileRulesSource:
    """Reads rules overrides from a JSON document on disk.

    The document may hold the categories at its top level or nested under
    ``coreRules``.
    """

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def __call__(self) -> Mapping[str, Any]:
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError as exc:
            raise RulesSourceError("Rules override file not found", source=str(self.path)) from exc
        except OSError as exc:
            raise RulesSourceError(
                f"Rules override file unreadable: {exc}",
                source=str(self.path),
            ) from exc
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise RulesSourceError(
                "Rules override file is not valid JSON",
                source=str(self.path),
                details={"line": exc.lineno},
            ) from exc
        if not isinstance(data, Mapping):
            raise RulesSourceError("Rules override document is not an object", source=str(self.path))
        return data

    def __repr__(self) -> str:
        return f"JsonFileRulesSource({str(self.path)!r})"


def _log_retry(retry_state: RetryCallState) -> None:
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning(
        "Rules source failed, retrying",
        attempt=retry_state.attempt_number,
        error=str(exc) if exc else None,
    )


def _unwrap(payload: Any, source: Any) -> Mapping[str, Any]:
    if not isinstance(payload, Mapping):
        raise RulesSourceError("Rules source returned a non-mapping payload", source=repr(source))
    nested = payload.get("coreRules")
    if nested is not None:
        if not isinstance(nested, Mapping):
            raise RulesSourceError("coreRules is not a mapping", source=repr(source))
        return nested
    return payload


def fetch_overrides(source: RulesSource, settings: Settings) -> Mapping[str, Any]:
    """Call a rules source, retrying transient connection failures.

    Raises:
        Whatever the source raises once retries are exhausted, or
        RulesSourceError for a malformed payload.
    """
    rules_settings = settings.rules
    retryer = Retrying(
        retry=retry_if_exception_type((ConnectionError, TimeoutError)),
        stop=stop_after_attempt(rules_settings.retry_attempts),
        wait=wait_exponential(
            multiplier=1,
            min=rules_settings.retry_wait_min,
            max=rules_settings.retry_wait_max,
        ),
        before_sleep=_log_retry,
        reraise=True,
    )
    return _unwrap(retryer(source), source)


def load_rules(
    source: RulesSource | Mapping[str, Any] | None = None,
    *,
    settings: Settings | None = None,
) -> RulesTable:
    """Load the progression rules table.

    Args:
        source: Callable returning the override document, or the document
            itself. Defaults to the JSON file configured in
            ``REALMS_ENGINE_RULES_OVERRIDE_PATH``, if any.
        settings: Settings to use instead of the cached singleton.

    Returns:
        The merged table, or the fallback table when the source is
        missing or fails.
    """
    settings = settings or get_settings()
    if source is None:
        if settings.rules.override_path is None:
            return RulesTable.fallback()
        source = JsonFileRulesSource(settings.rules.override_path)

    try:
        if isinstance(source, Mapping):
            overrides = _unwrap(source, "mapping")
        else:
            overrides = fetch_overrides(source, settings)
    except Exception as exc:
        logger.warning(
            "Rules source unavailable, using fallback",
            source=repr(source) if not isinstance(source, Mapping) else "mapping",
            error=str(exc),
            error_type=type(exc).__name__,
        )
        return RulesTable.fallback()

    table = RulesTable.merge(overrides)
    logger.info("Rules table loaded", overridden=list(table.overridden))
    return table


__all__ = [
    "RulesSource",
    "RulesCategory",
    "ProgressionPlayer",
    "ProgressionCreature",
    "AbilityRules",
    "SkillsAndDefenses",
    "ArchetypeConfig",
    "Archetypes",
    "ArmamentProficiency",
    "RarityTier",
    "Rarities",
    "Experience",
    "CATEGORY_MODELS",
    "RulesTable",
    "JsonFileRulesSource",
    "fetch_overrides",
    "load_rules",
]
