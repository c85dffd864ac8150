"""Tests for display projections."""

from __future__ import annotations

from typing import Any

import pytest

from realms_engine.engine.aggregator import ProficiencyInfo
from realms_engine.engine.display import (
    derive_damage_reduction,
    derive_display,
    format_cost,
    format_damage,
    format_proficiency_chip,
    format_range,
)
from realms_engine.models.build import Build, DamageDice, Selection


class TestFormatting:
    """Tests for string helpers."""

    def test_technique_damage(self) -> None:
        """Test techniques show bonus dice."""
        dice = [DamageDice(amount=2, size=6), DamageDice(amount=0, size=4)]
        assert format_damage(dice, "technique") == "+2d6"

    def test_typed_damage(self) -> None:
        """Test powers and armaments show typed dice and skip untyped ones."""
        dice = [
            DamageDice(amount=2, size=6, type="fire"),
            DamageDice(amount=1, size=4, type="cold"),
            DamageDice(amount=1, size=8),
        ]
        assert format_damage(dice, "power") == "2d6 fire, 1d4 cold"

    @pytest.mark.parametrize(
        ("value", "expected"),
        [(2.5, "2.5"), (3.0, "3"), (0.125, "0.125"), (0.0, "0"), (-0.0001, "0"), (-1.5, "-1.5")],
    )
    def test_format_cost(self, value: float, expected: str) -> None:
        """Test trailing zeros are dropped."""
        assert format_cost(value) == expected

    def test_range_and_reduction(self) -> None:
        """Test armament range and damage reduction from properties."""
        parts = [Selection(id=13, op_1_lvl=2), Selection(name="Damage Reduction", op_1_lvl=1)]

        assert format_range(parts) == "24 Spaces"
        assert format_range([]) == "Melee"
        assert derive_damage_reduction(parts) == 2
        assert derive_damage_reduction([]) == 0

    def test_proficiency_chip(self) -> None:
        """Test armament TP chip text."""
        with_level = ProficiencyInfo(
            id=20, name="Finesse", level=1, base_tp=1, option_tp=2, total_tp=3
        )
        flat = ProficiencyInfo(
            id=1, name="Damage Reduction", level=0, base_tp=1, option_tp=0, total_tp=1
        )

        assert format_proficiency_chip(with_level) == "Finesse (Level 1) | TP: 1 + 2"
        assert format_proficiency_chip(flat) == "Damage Reduction | TP: 1"


class TestDeriveDisplay:
    """Tests for the derive_display projection."""

    def test_technique(
        self,
        technique_record: dict[str, Any],
        technique_parts: list[dict[str, Any]],
        weapons: list[dict[str, Any]],
    ) -> None:
        """Test technique display fields."""
        record = {**technique_record, "weapon": {"id": 900}, "damage": {"amount": 1, "size": 4}}
        view = derive_display(record, technique_parts, weapons=weapons)

        assert view.name == "Lashing Riposte"
        assert view.action_type == "Basic Reaction"
        assert view.damage == "+1d4"
        assert view.weapon_name == "Longsword"
        # Flame Lash 5 + Reaction 1 + Longsword 3
        assert view.tp == 9
        assert view.rarity is None
        assert view.range is None

    def test_unarmed_power(self, power_parts: list[dict[str, Any]]) -> None:
        """Test power display without a weapon."""
        build = Build.from_record(
            {"kind": "power", "actionType": "quick", "parts": [{"id": 100}]}
        )
        view = derive_display(build, power_parts)

        assert view.action_type == "Quick Action"
        assert view.weapon_name == "Unarmed"
        assert view.energy == 4.5
        assert view.tp == 1

    def test_legacy_action_type(self, technique_parts: list[dict[str, Any]]) -> None:
        """Test a saved action type outside the known set shows as basic."""
        record = {"name": "Old Strike", "actionType": "full", "parts": [{"id": 12}]}
        view = derive_display(record, technique_parts)

        assert view.action_type == "Basic Action"
        assert view.tp == 2

    def test_armament(self, armament_properties: list[dict[str, Any]]) -> None:
        """Test armament rarity, range, reduction and TP chips."""
        build = Build.from_record(
            {
                "kind": "armament",
                "name": "Guard Bow",
                "properties": [
                    {"id": 1, "op_1_lvl": 1},
                    {"id": 13, "op_1_lvl": 1},
                    {"id": 20, "op_1_lvl": 1},
                ],
            }
        )
        view = derive_display(build, armament_properties)

        # IP: DR 2 + Range 1 + Finesse 1
        assert view.ip == 4
        assert view.rarity == "Common"
        assert view.currency_cost == 34
        assert view.range == "16 Spaces"
        assert view.damage_reduction == 2
        assert view.proficiency_chips == (
            "Damage Reduction (Level 1) | TP: 1 + 1",
            "Finesse (Level 1) | TP: 1 + 2",
        )
        assert view.action_type == ""
        assert view.weapon_name == ""
