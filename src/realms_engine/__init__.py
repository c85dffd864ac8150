"""Realms build engine - build rules and cost resolution for a tabletop RPG.

Turns selections of composable catalog parts (for powers, techniques and
armaments) and creation point allocations (abilities, skills, defenses,
proficiencies, creature feats) into validated, budgeted, displayable costs.

Every entry point is a pure function of catalog data, build state and pool
state. Catalog fetching, persistence and rendering belong to the caller.

Example:
    >>> from realms_engine import aggregate, CharacterLedger, PoolState
    >>>
    >>> totals = aggregate(
    ...     {"kind": "technique", "actionType": "quick",
    ...      "parts": [{"id": 12, "op_1_lvl": 1}]},
    ...     technique_parts,
    ... )
    >>> totals.total_energy, totals.total_tp
    (3.5, 3)
    >>>
    >>> ledger = CharacterLedger(level=1)
    >>> state = ledger.apply_ability(PoolState(), "agility", 3)

Modules:
    core: Configuration, logging and exceptions.
    models: Catalog definitions, builds, totals and pool state.
    engine: Resolver, evaluator, mechanic injector, aggregator, ledgers,
        progression formulas and display projections.
    rules: Progression rules table and its override loader.
"""

from __future__ import annotations

# Core
from realms_engine.core.config import Settings, get_settings
from realms_engine.core.exceptions import RealmsEngineError
from realms_engine.core.logging import configure_logging, get_logger

# Models
from realms_engine.models import (
    Build,
    Definition,
    PoolState,
    ResourceDelta,
    Selection,
    Totals,
)

# Engine
from realms_engine.engine import (
    AbilityLedger,
    CharacterLedger,
    DefenseLedger,
    FeatLedger,
    PoolDependencyGraph,
    ProficiencyLedger,
    SkillLedger,
    TrainingPointLedger,
    aggregate,
    derive_display,
    evaluate,
    inject_mechanic_parts,
    resolve,
)

# Rules
from realms_engine.rules import RulesTable, load_rules


__version__ = "0.1.0"
__all__ = [
    # Version info
    "__version__",
    # Core
    "RealmsEngineError",
    "Settings",
    "get_settings",
    "configure_logging",
    "get_logger",
    # Models
    "Definition",
    "Selection",
    "Build",
    "ResourceDelta",
    "Totals",
    "PoolState",
    # Engine
    "resolve",
    "evaluate",
    "inject_mechanic_parts",
    "aggregate",
    "derive_display",
    "AbilityLedger",
    "SkillLedger",
    "DefenseLedger",
    "FeatLedger",
    "ProficiencyLedger",
    "TrainingPointLedger",
    "PoolDependencyGraph",
    "CharacterLedger",
    # Rules
    "RulesTable",
    "load_rules",
]
