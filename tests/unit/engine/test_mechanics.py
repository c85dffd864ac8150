"""Tests for mechanic part injection."""

from __future__ import annotations

from typing import Any

import pytest

from realms_engine.engine.mechanics import (
    PART_IDS,
    action_type_label,
    compute_additional_damage_level,
    compute_power_damage_level,
    compute_splits,
    derive_action_type,
    duration_level,
    inject_mechanic_parts,
    strip_stored_mechanics,
    weapon_label,
    weapon_training_points,
)
from realms_engine.models.build import Build, MechanicSelection
from realms_engine.models.enums import ActionType, DurationType


def _summary(parts: list[Any]) -> list[tuple[str | None, int]]:
    return [(p.name, p.op_1_lvl) for p in parts]


class TestDamageTiers:
    """Tests for damage dice tier calculators."""

    @pytest.mark.parametrize(
        ("amount", "size", "expected"),
        [(1, 4, 0), (1, 6, 1), (2, 6, 4), (3, 8, 10), (0, 6, 0), (1, 2, 0)],
    )
    def test_additional_damage_level(self, amount: int, size: int, expected: int) -> None:
        """Test floor((amount*size - 4) / 2), never negative."""
        assert compute_additional_damage_level(amount, size) == expected

    def test_power_damage_level_matches(self) -> None:
        """Test power damage uses the same tiering."""
        assert compute_power_damage_level(2, 6) == compute_additional_damage_level(2, 6)

    @pytest.mark.parametrize(
        ("amount", "size", "expected"),
        [(3, 4, 2), (2, 6, 1), (1, 12, 0), (4, 12, 0), (1, 4, 0), (3, 7, 0), (6, 6, 3)],
    )
    def test_compute_splits(self, amount: int, size: int, expected: int) -> None:
        """Test extra dice compared to the fewest d12s."""
        assert compute_splits(amount, size) == expected


class TestTechniqueInjection:
    """Tests for technique mechanic parts."""

    def test_reaction_and_action(self, technique_parts: list[dict[str, Any]]) -> None:
        """Test reaction first, then the action part at its level."""
        build = Build(kind="technique", action_type="free", reaction=True)
        parts = inject_mechanic_parts(build, technique_parts)

        assert _summary(parts) == [("Reaction", 0), ("Quick or Free Action", 1)]
        assert all(isinstance(p, MechanicSelection) for p in parts)
        assert [p.source for p in parts] == ["reaction", "action_type"]

    @pytest.mark.parametrize(
        ("action", "expected"),
        [
            ("basic", []),
            ("quick", [("Quick or Free Action", 0)]),
            ("long3", [("Long Action", 0)]),
            ("long4", [("Long Action", 1)]),
        ],
    )
    def test_action_levels(
        self,
        technique_parts: list[dict[str, Any]],
        action: str,
        expected: list[tuple[str, int]],
    ) -> None:
        """Test each action type maps to its part and level."""
        build = Build(kind="technique", action_type=action)
        assert _summary(inject_mechanic_parts(build, technique_parts)) == expected

    def test_damage_parts(self, technique_parts: list[dict[str, Any]]) -> None:
        """Test additional damage and split dice from raw dice."""
        build = Build.from_record({"kind": "technique", "damage": {"amount": 2, "size": 6}})
        parts = inject_mechanic_parts(build, technique_parts)

        assert _summary(parts) == [("Additional Damage", 4), ("Split Damage Dice", 0)]

    def test_invalid_die_size_ignored(self, technique_parts: list[dict[str, Any]]) -> None:
        """Test an invalid die size means no additional damage."""
        build = Build.from_record({"kind": "technique", "damage": [{"amount": 2, "size": 7}]})
        assert inject_mechanic_parts(build, technique_parts) == []

    def test_weapon_contribution(
        self,
        technique_parts: list[dict[str, Any]],
        weapons: list[dict[str, Any]],
    ) -> None:
        """Test the weapon's TP is folded in without a catalog lookup."""
        build = Build.from_record({"kind": "technique", "weapon": {"id": 900}})
        (weapon,) = inject_mechanic_parts(build, technique_parts, weapons=weapons)

        assert weapon.name == "Weapon: Longsword"
        assert weapon.fixed_tp == 3
        assert weapon.source == "weapon"

    def test_zero_tp_weapon_skipped(
        self,
        technique_parts: list[dict[str, Any]],
        weapons: list[dict[str, Any]],
    ) -> None:
        """Test a weapon without training points adds nothing."""
        build = Build.from_record({"kind": "technique", "weapon": {"id": 901}})
        assert inject_mechanic_parts(build, technique_parts, weapons=weapons) == []

    def test_unresolved_weapon_marked(self, technique_parts: list[dict[str, Any]]) -> None:
        """Test an unknown weapon yields a selection without fixed TP."""
        build = Build.from_record({"kind": "technique", "weapon": {"id": 777}})
        (weapon,) = inject_mechanic_parts(build, technique_parts, weapons=[])

        assert weapon.fixed_tp is None
        assert weapon.name == "Weapon: Weapon #777"

    def test_non_mechanic_definition_not_injected(self) -> None:
        """Test only mechanic-flagged definitions are injected."""
        catalog = [{"id": 2, "name": "Reaction", "base_tp": 1}]
        build = Build(kind="technique", reaction=True)
        assert inject_mechanic_parts(build, catalog) == []

    def test_name_fallback(self) -> None:
        """Test mechanic parts resolve by name when the id is unknown."""
        catalog = [{"id": "legacy-reaction", "name": "Reaction", "mechanic": True}]
        build = Build(kind="technique", reaction=True)
        (part,) = inject_mechanic_parts(build, catalog)
        assert part.id == "legacy-reaction"

    def test_build_not_mutated(
        self,
        technique_build: Build,
        technique_parts: list[dict[str, Any]],
    ) -> None:
        """Test injected parts are never written into the build."""
        before = technique_build.model_dump()
        inject_mechanic_parts(technique_build, technique_parts)
        assert technique_build.model_dump() == before
        assert len(technique_build.parts) == 1


class TestPowerInjection:
    """Tests for power mechanic parts."""

    def test_full_power(self, power_parts: list[dict[str, Any]]) -> None:
        """Test action, damage, range, area and duration in order."""
        build = Build.from_record(
            {
                "kind": "power",
                "actionType": "long4",
                "reaction": True,
                "damage": [
                    {"amount": 2, "size": 6, "type": "fire"},
                    {"amount": 1, "size": 8, "type": "slashing"},
                ],
                "range": {"steps": 3},
                "area": {"type": "sphere", "level": 2},
                "duration": {"type": "rounds", "value": 3, "focus": True, "sustain": 2},
            }
        )
        parts = inject_mechanic_parts(build, power_parts)

        assert _summary(parts) == [
            ("Power Reaction", 0),
            ("Power Long Action", 1),
            ("Elemental Damage", 4),
            ("Physical Damage", 2),
            ("Power Split Damage Dice", 0),
            ("Power Range", 2),
            ("Sphere of Effect", 1),
            ("Focus for Duration", 0),
            ("Sustain for Duration", 1),
            ("Duration (Round)", 1),
        ]

    def test_apply_duration_propagated(self, power_parts: list[dict[str, Any]]) -> None:
        """Test apply_duration travels from the owning choice."""
        build = Build.from_record(
            {
                "kind": "power",
                "damage": [{"amount": 1, "size": 6, "type": "fire", "applyDuration": True}],
                "range": {"steps": 1, "applyDuration": False},
            }
        )
        damage, power_range = inject_mechanic_parts(build, power_parts)

        assert damage.apply_duration is True
        assert power_range.apply_duration is False

    def test_untyped_damage_ignored(self, power_parts: list[dict[str, Any]]) -> None:
        """Test power damage needs a known damage type."""
        build = Build.from_record({"kind": "power", "damage": {"amount": 2, "size": 6}})
        assert inject_mechanic_parts(build, power_parts) == []

    def test_melee_and_instant(self, power_parts: list[dict[str, Any]]) -> None:
        """Test melee range and instant duration add nothing."""
        build = Build.from_record(
            {"kind": "power", "range": {"steps": 0}, "duration": {"type": "instant"}}
        )
        assert inject_mechanic_parts(build, power_parts) == []

    @pytest.mark.parametrize(
        ("duration_type", "value", "expected"),
        [
            (DurationType.ROUNDS, 1, None),
            (DurationType.ROUNDS, 2, 0),
            (DurationType.ROUNDS, 6, 4),
            (DurationType.MINUTES, 10, 1),
            (DurationType.HOURS, 12, 2),
            (DurationType.DAYS, 7, 1),
            (DurationType.DAYS, 3, 0),
            (DurationType.PERMANENT, 0, 0),
            (DurationType.INSTANT, 0, None),
        ],
    )
    def test_duration_level(
        self,
        duration_type: DurationType,
        value: int,
        expected: int | None,
    ) -> None:
        """Test duration unit steps map to option levels."""
        assert duration_level(duration_type, value) == expected


class TestArmamentInjection:
    """Tests for armaments."""

    def test_armament_injects_nothing(self, technique_parts: list[dict[str, Any]]) -> None:
        """Test armaments never carry mechanic parts."""
        build = Build(kind="armament", reaction=True, action_type="quick")
        assert inject_mechanic_parts(build, technique_parts) == []


class TestWeaponHelpers:
    """Tests for weapon link helpers."""

    def test_training_points_sources(self, weapons: list[dict[str, Any]]) -> None:
        """Test TP from the link first, then from the weapon record."""
        assert weapon_training_points(Build.from_record({"weapon": {"id": 900, "tp": 5}})) == 5
        assert weapon_training_points(Build.from_record({"weapon": {"id": 900}}), weapons) == 3
        assert weapon_training_points(Build.from_record({"weapon": {"id": 1}}), weapons) is None
        assert weapon_training_points(Build()) is None

    def test_labels(self, weapons: list[dict[str, Any]]) -> None:
        """Test weapon display names."""
        assert weapon_label(Build()) == "Unarmed"
        assert weapon_label(Build.from_record({"weapon": {"name": "Dagger"}})) == "Dagger"
        assert weapon_label(Build.from_record({"weapon": {"id": 900}}), weapons) == "Longsword"
        assert weapon_label(Build.from_record({"weapon": {"id": 5}})) == "Weapon #5"


class TestLegacyBuilds:
    """Tests for action labels and stored mechanic migration."""

    @pytest.mark.parametrize(
        ("action", "reaction", "expected"),
        [
            ("basic", False, "Basic Action"),
            ("quick", False, "Quick Action"),
            ("free", True, "Free Reaction"),
            ("long3", True, "Long (3) Reaction"),
            ("long4", False, "Long (4) Action"),
            ("bogus", False, "Basic Action"),
        ],
    )
    def test_action_type_label(self, action: str, reaction: bool, expected: str) -> None:
        """Test action type display labels."""
        assert action_type_label(action, reaction) == expected

    def test_derive_action_type(self, technique_parts: list[dict[str, Any]]) -> None:
        """Test action scalars are recovered from stored parts."""
        stored = [{"id": PART_IDS["QUICK_OR_FREE_ACTION"], "op_1_lvl": 1}, {"name": "Reaction"}]
        assert derive_action_type(stored, technique_parts) == (ActionType.FREE, True)

    def test_derive_power_action_type(self, power_parts: list[dict[str, Any]]) -> None:
        """Test power builds read the power action parts."""
        stored = [{"id": 81, "op_1_lvl": 0}]
        assert derive_action_type(stored, power_parts, "power") == (ActionType.LONG3, False)

    def test_strip_stored_mechanics(self, technique_parts: list[dict[str, Any]]) -> None:
        """Test stored mechanic parts move back into build scalars."""
        legacy = Build.from_record(
            {
                "kind": "technique",
                "parts": [
                    {"id": 12, "op_1_lvl": 1},
                    {"name": "Long Action", "op_1_lvl": 1},
                    {"id": 2},
                ],
            }
        )
        migrated = strip_stored_mechanics(legacy, technique_parts)

        assert [p.id for p in migrated.parts] == [12]
        assert migrated.action_type == ActionType.LONG4
        assert migrated.reaction is True

    def test_strip_without_stored_parts(
        self,
        technique_build: Build,
        technique_parts: list[dict[str, Any]],
    ) -> None:
        """Test builds without stored mechanics are returned unchanged."""
        assert strip_stored_mechanics(technique_build, technique_parts) is technique_build
