"""Progression rules table and its override loader."""

from __future__ import annotations

from realms_engine.rules.fallback import FALLBACK_RULES
from realms_engine.rules.table import (
    AbilityRules,
    ArchetypeConfig,
    JsonFileRulesSource,
    RulesTable,
    load_rules,
)


__all__ = [
    "FALLBACK_RULES",
    "AbilityRules",
    "ArchetypeConfig",
    "JsonFileRulesSource",
    "RulesTable",
    "load_rules",
]
