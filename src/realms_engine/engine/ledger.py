"""Resource pool ledgers for character and creature creation.

Each ledger prices one pool (ability, skill, defense, feat, proficiency or
training points) against a capacity taken from the progression rules. All
ledgers share one contract:

* ``spent(state)`` recomputes spend from the allocation maps
* ``remaining(state, capacity=None)`` is capacity minus spend
* ``can_increase`` / ``can_decrease`` check a +1 / -1 mutation
* ``apply(state, key, delta)`` returns the new state, or the very same
  state object when the mutation is rejected
* ``repair(state, key, delta)`` also accepts a mutation that lowers the
  spend of a loaded state that is already over capacity

Mutations are all-or-nothing. A mutation is rejected when it breaks a
bound or tier rule, or when it would leave spend above capacity.

Cross-pool effects (an ability rising above 0 wipes the points on its
linked defense) are edges of a ``PoolDependencyGraph`` that
``CharacterLedger`` runs after every accepted mutation.

Example:
    >>> ledger = AbilityLedger(capacity=7)
    >>> state = PoolState(abilities={"strength": 3})
    >>> ledger.spent(state), ledger.can_increase(state, "strength")
    (3, False)
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel

from realms_engine.core.logging import get_logger
from realms_engine.engine import progression
from realms_engine.engine.resolver import resolve
from realms_engine.models.build import Totals
from realms_engine.models.catalog import CreatureFeatDefinition, SkillDefinition, entry_value
from realms_engine.models.enums import EntityKind
from realms_engine.models.pools import PoolState
from realms_engine.rules.table import RulesTable


logger = get_logger(__name__)

_EPSILON = 1e-9


@dataclass(frozen=True)
class MutationResult:
    """Outcome of a pool mutation.

    ``state`` is the prior state object itself when ``accepted`` is False.
    """

    state: PoolState
    accepted: bool
    reason: str | None = None


class _Rejected(Exception):
    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


# =============================================================================
# Base Ledger
# =============================================================================


class PoolLedger:
    """Shared mutation protocol; subclasses price and mutate one pool."""

    name = "pool"

    def __init__(self, capacity: float, rules: RulesTable | None = None) -> None:
        self.capacity = capacity
        self.rules = rules or RulesTable.fallback()

    def spent(self, state: PoolState) -> float:
        raise NotImplementedError

    def remaining(self, state: PoolState, capacity: float | None = None) -> float:
        cap = self.capacity if capacity is None else capacity
        return cap - self.spent(state)

    def _mutate(self, state: PoolState, key: str, delta: int) -> PoolState:
        """Return the mutated state or raise _Rejected."""
        raise NotImplementedError

    def _evaluate(
        self,
        state: PoolState,
        key: str,
        delta: int,
        *,
        repairing: bool = False,
    ) -> MutationResult:
        if delta == 0:
            return MutationResult(state, accepted=True)
        try:
            candidate = self._mutate(state, key, delta)
        except _Rejected as rejected:
            return MutationResult(state, accepted=False, reason=rejected.reason)
        before = self.spent(state)
        after = self.spent(candidate)
        if after > self.capacity + _EPSILON and not (repairing and after < before - _EPSILON):
            return MutationResult(state, accepted=False, reason="over capacity")
        return MutationResult(candidate, accepted=True)

    def try_apply(self, state: PoolState, key: str, delta: int) -> MutationResult:
        """Apply a mutation and report whether it was accepted."""
        result = self._evaluate(state, key, delta)
        if not result.accepted:
            logger.warning(
                "Pool mutation rejected",
                pool=self.name,
                key=key,
                delta=delta,
                reason=result.reason,
            )
        return result

    def apply(self, state: PoolState, key: str, delta: int) -> PoolState:
        return self.try_apply(state, key, delta).state

    def repair(self, state: PoolState, key: str, delta: int) -> PoolState:
        """Apply a mutation that brings an over-capacity state closer to capacity.

        Bound and tier rules still hold. The result may stay over capacity
        as long as it spends strictly less than ``state``.
        """
        result = self._evaluate(state, key, delta, repairing=True)
        if not result.accepted:
            logger.warning(
                "Pool repair rejected",
                pool=self.name,
                key=key,
                delta=delta,
                reason=result.reason,
            )
        return result.state

    def can_increase(self, state: PoolState, key: str) -> bool:
        return self._evaluate(state, key, 1).accepted

    def can_decrease(self, state: PoolState, key: str) -> bool:
        return self._evaluate(state, key, -1).accepted


# =============================================================================
# Abilities
# =============================================================================


class AbilityLedger(PoolLedger):
    """Ability points with tiered raise costs and 1:1 refunds below zero."""

    name = "ability"

    def __init__(
        self,
        rules: RulesTable | None = None,
        capacity: float | None = None,
        *,
        creation: bool = True,
        creature: bool = False,
    ) -> None:
        rules = rules or RulesTable.fallback()
        if capacity is None:
            entity = EntityKind.CREATURE if creature else EntityKind.CHARACTER
            capacity = progression.ability_points(1, entity=entity, rules=rules)
        super().__init__(capacity, rules)
        self.creation = creation
        self.creature = creature
        self.limits = rules.ability_rules

    @property
    def max_value(self) -> int:
        return self.rules.ability_max(creation=self.creation, creature=self.creature)

    def ability_increase_cost(self, resulting_value: int) -> int:
        """Cost of the raise that lands on ``resulting_value``."""
        if resulting_value <= self.limits.cost_increase_threshold:
            return self.limits.normal_cost
        return self.limits.increased_cost

    def value_cost(self, value: int) -> int:
        """Total spend of one ability at ``value`` (negative values refund)."""
        if value <= 0:
            return value
        return sum(self.ability_increase_cost(v) for v in range(1, value + 1))

    def negative_total(self, abilities: Mapping[str, int]) -> int:
        return sum(v for v in abilities.values() if v < 0)

    def spent(self, state: PoolState) -> int:
        positive = sum(self.value_cost(v) for v in state.abilities.values() if v > 0)
        refund = max(self.negative_total(state.abilities), self.limits.max_total_negative)
        return positive + refund

    def _mutate(self, state: PoolState, key: str, delta: int) -> PoolState:
        if key not in self.limits.abilities:
            raise _Rejected("unknown ability")
        value = state.ability(key) + delta
        if value < self.limits.min:
            raise _Rejected("below minimum")
        if value > self.max_value:
            raise _Rejected("above maximum")
        abilities = {**state.abilities, key: value}
        if self.negative_total(abilities) < self.limits.max_total_negative:
            raise _Rejected("negative total floor")
        return state.model_copy(update={"abilities": abilities})


# =============================================================================
# Skills and Defenses
# =============================================================================


def _skill_definition(entry: Any) -> SkillDefinition:
    if isinstance(entry, SkillDefinition):
        return entry
    if isinstance(entry, BaseModel):
        return SkillDefinition.model_validate(entry.model_dump())
    if isinstance(entry, Mapping):
        return SkillDefinition.model_validate(dict(entry))
    return SkillDefinition.model_validate(entry, from_attributes=True)


class _SkillBudget(PoolLedger):
    """Skill points fund skill selection, skill values and defenses."""

    def __init__(
        self,
        rules: RulesTable | None = None,
        capacity: float | None = None,
        skills_catalog: Sequence[Any] = (),
    ) -> None:
        rules = rules or RulesTable.fallback()
        if capacity is None:
            capacity = progression.skill_points(1, rules=rules)
        super().__init__(capacity, rules)
        self.costs = rules.skills_and_defenses
        self.catalog = [_skill_definition(entry) for entry in skills_catalog]

    def skill(self, name: str) -> SkillDefinition | None:
        return resolve(self.catalog, name)

    def skill_spent(self, state: PoolState) -> int:
        species = set(state.species_skills)
        selection = sum(
            self.costs.gain_proficiency_cost for name in state.skills if name not in species
        )
        held = set(state.skills) | species
        values = sum(
            value * self.costs.skill_value_cost
            for name, value in state.skill_vals.items()
            if name in held and value > 0
        )
        return selection + values

    def defense_spent(self, state: PoolState) -> int:
        return sum(v for v in state.defense_vals.values() if v > 0) * self.costs.defense_increase_cost

    def spent(self, state: PoolState) -> int:
        return self.skill_spent(state) + self.defense_spent(state)


class SkillLedger(_SkillBudget):
    """Skill selection (1 point) and skill values (1 point per level)."""

    name = "skill"

    def is_selected(self, state: PoolState, name: str) -> bool:
        return name in state.skills or name in state.species_skills

    def sub_skills_of(self, name: str) -> list[str]:
        parent = self.skill(name)
        if parent is None:
            return []
        return [s.name for s in self.catalog if s.is_child_of(parent)]

    def deselect(self, state: PoolState, name: str) -> PoolState:
        """Remove a skill, its value levels and, recursively, its sub-skills."""
        removed: set[str] = set()
        pending = [name]
        while pending:
            current = pending.pop()
            if current in removed:
                continue
            removed.add(current)
            pending.extend(self.sub_skills_of(current))
        skills = tuple(s for s in state.skills if s not in removed)
        skill_vals = {k: v for k, v in state.skill_vals.items() if k not in removed}
        return state.model_copy(update={"skills": skills, "skill_vals": skill_vals})

    def _select(self, state: PoolState, name: str, delta: int) -> PoolState:
        definition = self.skill(name)
        if definition is None:
            raise _Rejected("unknown skill")
        if definition.is_sub_skill:
            parent = resolve(self.catalog, definition.base_skill)
            parent_name = parent.name if parent is not None else str(definition.base_skill)
            if not self.is_selected(state, parent_name):
                raise _Rejected("base skill not selected")
        extra = delta - 1
        if extra > self.costs.max_skill_value:
            raise _Rejected("above maximum")
        update: dict[str, Any] = {"skills": (*state.skills, name)}
        if extra:
            update["skill_vals"] = {**state.skill_vals, name: extra}
        return state.model_copy(update=update)

    def _mutate(self, state: PoolState, key: str, delta: int) -> PoolState:
        if not self.is_selected(state, key):
            if delta < 0:
                raise _Rejected("not selected")
            return self._select(state, key, delta)

        value = state.skill_value(key) + delta
        if value > self.costs.max_skill_value:
            raise _Rejected("above maximum")
        if value >= 0:
            return state.model_copy(update={"skill_vals": {**state.skill_vals, key: value}})
        # Only a single step down from value 0 deselects
        if delta != -1 or state.skill_value(key) != 0:
            raise _Rejected("below minimum")
        if key in state.species_skills:
            raise _Rejected("species skill")
        return self.deselect(state, key)


class DefenseLedger(_SkillBudget):
    """Defense points, bought with skill points while the linked ability is low."""

    name = "defense"

    def __init__(
        self,
        rules: RulesTable | None = None,
        capacity: float | None = None,
        skills_catalog: Sequence[Any] = (),
    ) -> None:
        super().__init__(rules, capacity, skills_catalog)
        ability_map = self.rules.ability_rules.ability_defense_map
        self.linked_ability = {defense: ability for ability, defense in ability_map.items()}

    def _mutate(self, state: PoolState, key: str, delta: int) -> PoolState:
        ability = self.linked_ability.get(key)
        if ability is None:
            raise _Rejected("unknown defense")
        value = state.defense_value(key) + delta
        if value < 0:
            raise _Rejected("below minimum")
        if value > self.costs.defense_max:
            raise _Rejected("above maximum")
        if delta > 0 and state.ability(ability) > self.costs.defense_ability_ceiling:
            raise _Rejected("linked ability too high")
        return state.model_copy(update={"defense_vals": {**state.defense_vals, key: value}})


def reset_invalid_defenses(state: PoolState, rules: RulesTable) -> PoolState:
    """Zero every defense whose linked ability rose above the ceiling."""
    ceiling = rules.skills_and_defenses.defense_ability_ceiling
    defense_vals = dict(state.defense_vals)
    changed = False
    for ability, defense in rules.ability_rules.ability_defense_map.items():
        if state.ability(ability) > ceiling and defense_vals.get(defense, 0) != 0:
            defense_vals[defense] = 0
            changed = True
    if not changed:
        return state
    logger.info("Defense points reset", defenses=[d for d, v in defense_vals.items() if v == 0])
    return state.model_copy(update={"defense_vals": defense_vals})


# =============================================================================
# Feats, Proficiency and Training Points
# =============================================================================


def _feat_definition(entry: Any) -> CreatureFeatDefinition:
    if isinstance(entry, CreatureFeatDefinition):
        return entry
    if isinstance(entry, BaseModel):
        return CreatureFeatDefinition.model_validate(entry.model_dump())
    if isinstance(entry, Mapping):
        return CreatureFeatDefinition.model_validate(dict(entry))
    return CreatureFeatDefinition.model_validate(
        {k: entry_value(entry, k) for k in ("id", "name", "points", "feat_points", "cost")}
    )


class FeatLedger(PoolLedger):
    """Creature feat points: flat, possibly negative, per-feat costs.

    ``delta=+1`` adds a feat and ``delta=-1`` removes it.
    """

    name = "feat"

    def __init__(
        self,
        capacity: float,
        feats_catalog: Sequence[Any] = (),
        *,
        default_cost: float = 0.0,
    ) -> None:
        super().__init__(capacity)
        self.catalog = [_feat_definition(entry) for entry in feats_catalog]
        self.default_cost = default_cost

    def feat_cost(self, ref: Any) -> float:
        feat = resolve(self.catalog, ref)
        if feat is None:
            return 0.0
        return feat.cost(self.default_cost)

    def spent(self, state: PoolState) -> float:
        return sum(self.feat_cost(ref) for ref in state.feats)

    def _held(self, state: PoolState, key: Any) -> int | None:
        target = resolve(self.catalog, key)
        for index, ref in enumerate(state.feats):
            if ref == key or (target is not None and resolve(self.catalog, ref) is target):
                return index
        return None

    def _mutate(self, state: PoolState, key: Any, delta: int) -> PoolState:
        index = self._held(state, key)
        if delta > 0:
            if index is not None:
                raise _Rejected("already selected")
            feat = resolve(self.catalog, key)
            if feat is None:
                raise _Rejected("unknown feat")
            ref = feat.id if feat.id is not None else feat.name
            return state.model_copy(update={"feats": (*state.feats, ref)})
        if index is None:
            raise _Rejected("not selected")
        feats = state.feats[:index] + state.feats[index + 1:]
        return state.model_copy(update={"feats": feats})


class ProficiencyLedger(PoolLedger):
    """Martial and power proficiency, one point per level."""

    name = "proficiency"
    KEYS = ("martial", "power")

    def spent(self, state: PoolState) -> int:
        return state.martial_prof + state.power_prof

    def _mutate(self, state: PoolState, key: str, delta: int) -> PoolState:
        if key not in self.KEYS:
            raise _Rejected("unknown proficiency")
        field_name = f"{key}_prof"
        value = getattr(state, field_name) + delta
        if value < 0:
            raise _Rejected("below minimum")
        return state.model_copy(update={field_name: value})


class TrainingPointLedger:
    """Training points are derived: capacity minus what the builds report."""

    name = "training"

    def __init__(self, capacity: float) -> None:
        self.capacity = capacity

    def spent(self, totals: Iterable[Totals]) -> int:
        return sum(t.total_tp for t in totals)

    def remaining(self, totals: Iterable[Totals], capacity: float | None = None) -> float:
        cap = self.capacity if capacity is None else capacity
        return cap - self.spent(totals)

    def can_afford(self, totals: Iterable[Totals], candidate: Totals) -> bool:
        return self.remaining([*totals, candidate]) >= 0


# =============================================================================
# Dependency Graph
# =============================================================================

Invalidator = Callable[[PoolState, RulesTable], PoolState]


@dataclass(frozen=True)
class PoolEdge:
    """A mutation of ``source`` may invalidate allocations in ``target``."""

    source: str
    target: str
    invalidate: Invalidator


@dataclass
class PoolDependencyGraph:
    """Invalidation edges evaluated after accepted mutations."""

    edges: list[PoolEdge] = field(default_factory=list)

    @classmethod
    def default(cls) -> PoolDependencyGraph:
        return cls([PoolEdge("ability", "defense", reset_invalid_defenses)])

    def run(self, source: str, state: PoolState, rules: RulesTable) -> PoolState:
        """Apply every edge reachable from ``source`` (each pool at most once)."""
        visited: set[str] = set()
        pending = [source]
        while pending:
            current = pending.pop(0)
            if current in visited:
                continue
            visited.add(current)
            for edge in self.edges:
                if edge.source != current:
                    continue
                updated = edge.invalidate(state, rules)
                if updated is not state:
                    state = updated
                    pending.append(edge.target)
        return state


# =============================================================================
# Character Ledger
# =============================================================================


@dataclass(frozen=True)
class PoolSummary:
    spent: float
    capacity: float
    remaining: float


class CharacterLedger:
    """All creation pools of one character or creature at one level.

    Example:
        >>> ledger = CharacterLedger(level=1)
        >>> state = ledger.apply_ability(PoolState(), "strength", 2)
        >>> ledger.summary(state)["ability"].remaining
        5
    """

    def __init__(
        self,
        rules: RulesTable | None = None,
        *,
        level: float = 1,
        entity: EntityKind | str = EntityKind.CHARACTER,
        creation: bool = True,
        skills_catalog: Sequence[Any] = (),
        feats_catalog: Sequence[Any] = (),
        archetype: str | None = None,
        power_ability: str | None = None,
        martial_ability: str | None = None,
        graph: PoolDependencyGraph | None = None,
    ) -> None:
        self.rules = rules or RulesTable.fallback()
        self.level = level
        self.entity = EntityKind(entity)
        self.archetype = archetype
        self.power_ability = power_ability
        self.martial_ability = martial_ability
        self.graph = graph or PoolDependencyGraph.default()

        creature = self.entity == EntityKind.CREATURE
        rules = self.rules
        self.abilities = AbilityLedger(
            rules,
            progression.ability_points(
                level, allow_sub_level=creature, entity=self.entity, rules=rules
            ),
            creation=creation,
            creature=creature,
        )
        skill_capacity = progression.skill_points(
            level, entity=self.entity, allow_sub_level=creature, rules=rules
        )
        self.skills = SkillLedger(rules, skill_capacity, skills_catalog)
        self.defenses = DefenseLedger(rules, skill_capacity, skills_catalog)
        if creature:
            self.feats = FeatLedger(
                progression.creature_feat_points(level, rules=rules), feats_catalog
            )
        else:
            self.feats = FeatLedger(
                progression.max_archetype_feats(level), feats_catalog, default_cost=1.0
            )
        self.proficiencies = ProficiencyLedger(
            progression.proficiency(level, allow_sub_level=creature, rules=rules), rules
        )

    def governing_ability(self, state: PoolState) -> int:
        return progression.archetype_ability(
            self.archetype,
            state.abilities,
            power_ability=self.power_ability,
            martial_ability=self.martial_ability,
        )

    def training(self, state: PoolState) -> TrainingPointLedger:
        """Training-point ledger for the current governing ability."""
        ability = self.governing_ability(state)
        if self.entity == EntityKind.CREATURE:
            capacity = progression.creature_training_points(self.level, ability, rules=self.rules)
        else:
            capacity = progression.training_points(self.level, ability, rules=self.rules)
        return TrainingPointLedger(capacity)

    def _after(self, pool: str, result: MutationResult) -> PoolState:
        if not result.accepted:
            return result.state
        return self.graph.run(pool, result.state, self.rules)

    def apply_ability(self, state: PoolState, key: str, delta: int) -> PoolState:
        return self._after("ability", self.abilities.try_apply(state, key, delta))

    def apply_skill(self, state: PoolState, key: str, delta: int) -> PoolState:
        return self._after("skill", self.skills.try_apply(state, key, delta))

    def apply_defense(self, state: PoolState, key: str, delta: int) -> PoolState:
        return self._after("defense", self.defenses.try_apply(state, key, delta))

    def apply_feat(self, state: PoolState, key: Any, delta: int) -> PoolState:
        return self._after("feat", self.feats.try_apply(state, key, delta))

    def apply_proficiency(self, state: PoolState, key: str, delta: int) -> PoolState:
        return self._after("proficiency", self.proficiencies.try_apply(state, key, delta))

    def summary(
        self,
        state: PoolState,
        builds: Iterable[Totals] = (),
    ) -> dict[str, PoolSummary]:
        """Spend, capacity and remaining points of every pool."""
        pools: dict[str, PoolSummary] = {}
        for name, ledger in (
            ("ability", self.abilities),
            ("skill", self.skills),
            ("feat", self.feats),
            ("proficiency", self.proficiencies),
        ):
            spent = ledger.spent(state)
            pools[name] = PoolSummary(spent, ledger.capacity, ledger.capacity - spent)
        defense_spent = self.defenses.defense_spent(state)
        pools["defense"] = PoolSummary(
            defense_spent, self.defenses.capacity, self.defenses.remaining(state)
        )
        builds = list(builds)
        training = self.training(state)
        pools["training"] = PoolSummary(
            training.spent(builds), training.capacity, training.remaining(builds)
        )
        return pools


__all__ = [
    "MutationResult",
    "PoolLedger",
    "AbilityLedger",
    "SkillLedger",
    "DefenseLedger",
    "reset_invalid_defenses",
    "FeatLedger",
    "ProficiencyLedger",
    "TrainingPointLedger",
    "PoolEdge",
    "PoolDependencyGraph",
    "PoolSummary",
    "CharacterLedger",
]
