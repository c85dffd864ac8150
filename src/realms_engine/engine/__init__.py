"""Build rules and cost resolution.

Submodules:
    resolver: Catalog reference lookup by id or legacy name
    evaluator: Per-part cost formula
    mechanics: Implicit mechanic parts derived from build scalars
    aggregator: Build totals, TP sources and chips
    ledger: Creation point pools and their dependency graph
    progression: Level formulas for pool capacities
    display: Display projections of builds

Example:
    >>> from realms_engine.engine import aggregate, derive_display
    >>>
    >>> totals = aggregate(technique, technique_parts)
    >>> card = derive_display(technique, technique_parts)
    >>> card.tp == totals.total_tp
    True
"""

from __future__ import annotations

# =============================================================================
# Resolution and Costs
# =============================================================================
from realms_engine.engine.resolver import (
    DEFAULT_STRATEGIES,
    normalize_ref,
    normalize_refs,
    resolve,
    resolve_or_raise,
    sanitize_id,
)
from realms_engine.engine.evaluator import (
    evaluate,
    option_levels,
    part_training_points,
)
from realms_engine.engine.mechanics import (
    PART_IDS,
    action_type_label,
    derive_action_type,
    inject_mechanic_parts,
    strip_stored_mechanics,
)
from realms_engine.engine.aggregator import (
    RarityResult,
    aggregate,
    currency_cost_and_rarity,
    extract_proficiencies,
    round_energy,
)

# =============================================================================
# Pools and Progression
# =============================================================================
from realms_engine.engine.ledger import (
    AbilityLedger,
    CharacterLedger,
    DefenseLedger,
    FeatLedger,
    MutationResult,
    PoolDependencyGraph,
    PoolEdge,
    PoolLedger,
    ProficiencyLedger,
    SkillLedger,
    TrainingPointLedger,
    reset_invalid_defenses,
)
from realms_engine.engine.progression import (
    Progression,
    creature_progression,
    level_difference,
    player_progression,
)

# =============================================================================
# Display
# =============================================================================
from realms_engine.engine.display import BuildDisplay, derive_display


__all__ = [
    # Resolution and costs
    "DEFAULT_STRATEGIES",
    "resolve",
    "resolve_or_raise",
    "sanitize_id",
    "normalize_ref",
    "normalize_refs",
    "evaluate",
    "option_levels",
    "part_training_points",
    "PART_IDS",
    "inject_mechanic_parts",
    "action_type_label",
    "derive_action_type",
    "strip_stored_mechanics",
    "aggregate",
    "round_energy",
    "RarityResult",
    "currency_cost_and_rarity",
    "extract_proficiencies",
    # Pools and progression
    "MutationResult",
    "PoolLedger",
    "AbilityLedger",
    "SkillLedger",
    "DefenseLedger",
    "FeatLedger",
    "ProficiencyLedger",
    "TrainingPointLedger",
    "PoolEdge",
    "PoolDependencyGraph",
    "CharacterLedger",
    "reset_invalid_defenses",
    "Progression",
    "player_progression",
    "creature_progression",
    "level_difference",
    # Display
    "BuildDisplay",
    "derive_display",
]
