"""Pytest configuration and shared fixtures.

This module provides the catalogs, builds and pool states shared by the
unit and integration tests of the build rules engine.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pytest

from realms_engine.core.config import DisplaySettings, RulesSettings, Settings
from realms_engine.models.build import Build
from realms_engine.models.pools import PoolState
from realms_engine.rules.table import RulesTable


if TYPE_CHECKING:
    from collections.abc import Generator


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def reset_settings_cache() -> Generator[None, None, None]:
    """Reset the settings cache before and after each test."""
    from realms_engine.core.config import clear_settings_cache

    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def settings() -> Settings:
    """Provide settings with instant retries for rules-source tests.

    Returns:
        A Settings instance that never sleeps between retries.
    """
    return Settings(
        rules=RulesSettings(retry_attempts=3, retry_wait_min=0, retry_wait_max=0),
        display=DisplaySettings(),
    )


@pytest.fixture
def rules() -> RulesTable:
    """Provide the hardcoded rules table."""
    return RulesTable.fallback()


# =============================================================================
# Catalog Fixtures
# =============================================================================


@pytest.fixture
def technique_parts() -> list[dict[str, Any]]:
    """Provide a technique part catalog as raw records.

    Returns:
        Mechanic parts (action, reaction, damage) plus a few explicit parts.
    """
    return [
        {"id": 2, "name": "Reaction", "mechanic": True, "base_en": 1, "base_tp": 1},
        {"id": 3, "name": "Long Action", "mechanic": True, "base_en": -1, "op_1_en": -0.5},
        {"id": 4, "name": "Quick or Free Action", "mechanic": True, "base_en": 1, "op_1_en": 1},
        {"id": 5, "name": "Split Damage Dice", "mechanic": True, "base_en": 0.5, "op_1_en": 0.5},
        {"id": 6, "name": "Additional Damage", "mechanic": True, "base_en": 0.5, "op_1_en": 0.5},
        {
            "id": 12,
            "name": "Flame Lash",
            "description": "A whip of fire.",
            "base_en": 2,
            "base_tp": 2,
            "op_1_desc": "+1 reach",
            "op_1_en": 0.5,
            "op_1_tp": 1,
        },
        {"id": 13, "name": "Precise Strike", "percentage": True, "base_en": 2, "op_1_en": 0.25},
        {"id": 14, "name": "Lingering Burn", "duration": True, "base_en": 1.5, "base_tp": 1},
        {"id": "fire_ball", "name": "Fireball", "base_en": "3", "base_tp": None},
    ]


@pytest.fixture
def power_parts() -> list[dict[str, Any]]:
    """Provide a power part catalog as raw records."""
    return [
        {"id": 81, "name": "Power Long Action", "mechanic": True, "base_en": -1, "op_1_en": -0.5},
        {"id": 82, "name": "Power Reaction", "mechanic": True, "base_en": 2},
        {"id": 83, "name": "Power Quick or Free Action", "mechanic": True, "base_en": 1.5, "op_1_en": 1},
        {"id": 232, "name": "Sphere of Effect", "mechanic": True, "base_en": 1, "op_1_en": 1},
        {"id": 292, "name": "Power Range", "mechanic": True, "base_en": 0.5, "op_1_en": 0.5},
        {"id": 296, "name": "Physical Damage", "mechanic": True, "base_en": 0.5, "op_1_en": 0.5},
        {"id": 297, "name": "Elemental Damage", "mechanic": True, "base_en": 1, "op_1_en": 0.5},
        {"id": 304, "name": "Focus for Duration", "mechanic": True, "base_en": -0.5},
        {"id": 305, "name": "Sustain for Duration", "mechanic": True, "base_en": 0.5, "op_1_en": 0.5},
        {"id": 377, "name": "Duration (Round)", "mechanic": True, "base_en": 1, "op_1_en": 0.5},
        {"id": 400, "name": "Power Split Damage Dice", "mechanic": True, "base_en": 0.5, "op_1_en": 0.5},
        {"id": 100, "name": "Bolt", "base_en": 3, "base_tp": 1},
        {"id": 101, "name": "Lingering Ward", "duration": True, "base_en": 2},
    ]


@pytest.fixture
def armament_properties() -> list[dict[str, Any]]:
    """Provide an armament property catalog as raw records."""
    return [
        {
            "id": 1,
            "name": "Damage Reduction",
            "base_ip": 1,
            "base_tp": 1,
            "base_c": 1,
            "op_1_ip": 1,
            "op_1_tp": 1,
            "op_1_c": 1,
        },
        {"id": 13, "name": "Range", "base_ip": 0.5, "op_1_ip": 0.5, "base_c": 1},
        {"id": 20, "name": "Finesse", "base_ip": 1, "base_tp": 1, "op_1_tp": 2},
    ]


@pytest.fixture
def weapons() -> list[dict[str, Any]]:
    """Provide weapon records as stored in a character's inventory."""
    return [
        {"id": 900, "name": "Longsword", "totalTP": 3},
        {"id": 901, "name": "Club", "tp": 0},
    ]


@pytest.fixture
def skills_catalog() -> list[dict[str, Any]]:
    """Provide skills with two sub-skills under Athletics."""
    return [
        {"id": 1, "name": "Athletics", "ability": "strength, vitality"},
        {"id": 2, "name": "Acrobatics", "ability": "agility"},
        {"id": 3, "name": "Climbing", "ability": "strength", "base_skill": 1},
        {"id": 4, "name": "Swimming", "ability": "vitality", "baseSkill": "Athletics"},
        {"id": 5, "name": "Perception", "ability": ["Acuity"]},
    ]


@pytest.fixture
def creature_feats() -> list[dict[str, Any]]:
    """Provide creature feats covering every point-cost field."""
    return [
        {"id": 1, "name": "Keen Senses", "points": 1},
        {"id": 2, "name": "Weakness", "feat_points": -1},
        {"id": 3, "name": "Tough Hide", "cost": "0.5"},
        {"id": 4, "name": "Pack Tactics"},
    ]


# =============================================================================
# Build and Pool Fixtures
# =============================================================================


@pytest.fixture
def technique_record() -> dict[str, Any]:
    """Provide a persisted technique record.

    Flame Lash at option level 3 plus the reaction flag totals 6 TP.
    """
    return {
        "kind": "technique",
        "name": "Lashing Riposte",
        "description": "Strike back with fire.",
        "parts": [{"id": 12, "name": "Flame Lash", "op_1_lvl": 3}],
        "reaction": True,
    }


@pytest.fixture
def technique_build(technique_record: dict[str, Any]) -> Build:
    """Provide the technique record as a Build."""
    return Build.from_record(technique_record)


@pytest.fixture
def empty_pools() -> PoolState:
    """Provide a fresh pool state."""
    return PoolState()
