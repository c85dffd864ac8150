"""Tests for build, selection and derived value models."""

from __future__ import annotations

from typing import Any

import pytest
from structlog.testing import capture_logs

from realms_engine.models.build import (
    AreaChoice,
    Build,
    DamageDice,
    DurationChoice,
    MechanicSelection,
    ResourceDelta,
    Selection,
    WeaponLink,
)
from realms_engine.models.enums import ActionType, BuildKind, DurationType


class TestSelection:
    """Tests for the Selection model."""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [(3, 3), ("2", 2), (-1, 0), (None, 0), ("abc", 0), (2.7, 2)],
    )
    def test_levels_coerced(self, raw: Any, expected: int) -> None:
        """Test option levels are non-negative integers."""
        assert Selection.model_validate({"op_1_lvl": raw}).op_1_lvl == expected

    def test_apply_duration_alias(self) -> None:
        """Test the camelCase record key is accepted and written back."""
        selection = Selection.model_validate({"id": 14, "applyDuration": "true"})

        assert selection.apply_duration is True
        assert selection.to_record() == {
            "id": 14,
            "op_1_lvl": 0,
            "op_2_lvl": 0,
            "op_3_lvl": 0,
            "applyDuration": True,
        }

    def test_label(self) -> None:
        """Test the label prefers the name over the id."""
        assert Selection(id=12, name="Flame Lash").label == "Flame Lash"
        assert Selection(id=12).label == "12"
        assert Selection().label == "?"

    def test_levels_property(self) -> None:
        """Test the levels tuple."""
        assert Selection(op_1_lvl=1, op_3_lvl=2).levels == (1, 0, 2)

    def test_mechanic_selection_defaults(self) -> None:
        """Test mechanic selections carry no fixed TP by default."""
        selection = MechanicSelection(name="Reaction", source="reaction")
        assert selection.fixed_tp is None
        assert isinstance(selection, Selection)


class TestBuildScalars:
    """Tests for build-level scalar models."""

    def test_weapon_tp_aliases(self) -> None:
        """Test weapon TP is read from any of its record keys."""
        assert WeaponLink.model_validate({"id": 900, "totalTP": "3"}).tp == 3.0
        assert WeaponLink.model_validate({"id": 900, "training_points": 2}).tp == 2.0
        assert WeaponLink.model_validate({"id": 900}).tp is None

    def test_damage_type_normalized(self) -> None:
        """Test damage types lowercase and default to none."""
        assert DamageDice.model_validate({"amount": 2, "size": 6, "type": "Fire"}).type == "fire"
        assert DamageDice.model_validate({"amount": "2", "size": "6"}).type == "none"

    def test_area_none_type(self) -> None:
        """Test a 'none' area type reads as no area."""
        area = AreaChoice.model_validate({"type": "none", "level": 0})
        assert area.type is None
        assert area.level == 1

    def test_duration_defaults(self) -> None:
        """Test duration defaults to instant."""
        duration = DurationChoice.model_validate({"type": "", "noHarm": True})
        assert duration.type == DurationType.INSTANT
        assert duration.no_harm is True


class TestBuild:
    """Tests for the Build model."""

    def test_from_record(self, technique_record: dict[str, Any]) -> None:
        """Test loading a persisted technique record."""
        build = Build.from_record(technique_record)

        assert build.kind == BuildKind.TECHNIQUE
        assert build.reaction is True
        assert build.action_type == ActionType.BASIC
        assert build.parts[0].op_1_lvl == 3

    def test_properties_alias(self) -> None:
        """Test armaments may store their parts under properties."""
        build = Build.from_record({"kind": "armament", "properties": [{"id": 1, "op_1_lvl": 2}]})
        assert build.parts[0].id == 1

    def test_action_type_aliases(self) -> None:
        """Test every action type spelling is accepted."""
        assert Build.from_record({"actionType": "Quick"}).action_type == ActionType.QUICK
        assert Build.from_record({"actionTypeSelection": "long4"}).action_type == ActionType.LONG4
        assert Build.from_record({"action_type": None}).action_type == ActionType.BASIC

    def test_single_damage_mapping_wrapped(self) -> None:
        """Test a single damage mapping becomes a one-element list."""
        build = Build.from_record({"damage": {"amount": 2, "size": 6}})
        assert len(build.damage) == 1
        assert build.damage[0].amount == 2

    def test_empty_entries_dropped(self) -> None:
        """Test empty parts and weapon links are ignored."""
        build = Build.from_record({"parts": [{}, None, {"id": 12}], "weapon": {}})
        assert [p.id for p in build.parts] == [12]
        assert build.weapon is None

    def test_record_round_trip(self, technique_record: dict[str, Any]) -> None:
        """Test to_record output reloads into an equal build."""
        build = Build.from_record(
            {
                **technique_record,
                "actionType": "free",
                "weapon": {"id": 900, "name": "Longsword"},
                "damage": [{"amount": 2, "size": 6, "type": "fire", "applyDuration": True}],
            }
        )
        record = build.to_record()

        assert record["actionType"] == "free"
        assert record["damage"][0]["applyDuration"] is True
        assert Build.from_record(record) == build


class TestMalformedRecords:
    """Tests for stored values outside the known shapes."""

    def test_unknown_action_type(self) -> None:
        """Test unknown action types read as basic and are logged."""
        with capture_logs() as logs:
            build = Build.from_record({"actionType": "full"})

        assert build.action_type == ActionType.BASIC
        assert logs[0]["event"] == "Unknown build value replaced"
        assert logs[0]["key"] == "action_type"
        assert logs[0]["log_level"] == "warning"

    def test_unknown_kind(self) -> None:
        """Test an unknown build kind reads as a technique."""
        assert Build.from_record({"kind": "spell"}).kind == BuildKind.TECHNIQUE

    def test_unknown_area_and_duration(self) -> None:
        """Test unknown area and duration types degrade to no area and instant."""
        build = Build.from_record(
            {
                "kind": "power",
                "area": {"type": "square", "level": 2},
                "duration": {"type": "fortnight", "focus": "maybe"},
            }
        )

        assert build.area is not None
        assert build.area.type is None
        assert build.duration is not None
        assert build.duration.type == DurationType.INSTANT
        assert build.duration.focus is False

    def test_non_string_names(self) -> None:
        """Test numeric names and ids of odd types become strings."""
        build = Build.from_record(
            {"name": 42, "parts": [{"name": 10}, {"id": 1.5}], "weapon": {"name": 7}}
        )

        assert build.name == "42"
        assert [p.name for p in build.parts] == ["10", None]
        assert build.parts[1].id == "1.5"
        assert build.weapon is not None
        assert build.weapon.name == "7"

    @pytest.mark.parametrize(
        ("key", "value"),
        [("range", 3), ("area", "sphere"), ("duration", [1]), ("damage", "2d6")],
    )
    def test_malformed_scalars_dropped(self, key: str, value: Any) -> None:
        """Test scalars that are not mappings read as absent."""
        build = Build.from_record({key: value})
        assert getattr(build, key) in (None, [])

    def test_bare_part_references(self) -> None:
        """Test bare ids and names in the parts list become selections."""
        build = Build.from_record({"parts": [12, "Fireball", True, 3.5]})

        assert [(p.id, p.name) for p in build.parts] == [(12, None), (None, "Fireball")]


class TestResourceDelta:
    """Tests for the ResourceDelta value object."""

    def test_addition(self) -> None:
        """Test deltas add per resource."""
        total = ResourceDelta(en=1, tp=2) + ResourceDelta(en=0.5, ip=1)
        assert total == ResourceDelta(en=1.5, tp=2, ip=1, c=0)

    def test_scalar_multiplication(self) -> None:
        """Test deltas scale by a factor from either side."""
        assert ResourceDelta(en=1, tp=2) * 2 == ResourceDelta(en=2, tp=4)
        assert 3 * ResourceDelta(c=1) == ResourceDelta(c=3)

    def test_accessors(self) -> None:
        """Test zero checks and dict conversion."""
        assert ResourceDelta().is_zero()
        assert ResourceDelta(tp=1).get("tp") == 1
        assert ResourceDelta(en=1).as_dict() == {"en": 1, "tp": 0.0, "ip": 0.0, "c": 0.0}
