"""Tests for control parameters, state records and colour helpers."""

from __future__ import annotations

import dataclasses

import pytest

from quantum_vacuum.core.particle import hsl_to_rgb
from quantum_vacuum.core.state import (
    CONTROL_NAMES,
    DEFAULT_CONTROLS,
    MATERIALS,
    ControlParams,
    SimulationState,
    normalize_name,
)


class TestControlParams:
    def test_defaults(self):
        assert DEFAULT_CONTROLS == ControlParams(45.0, 100.0, 0.5, 0.0, "none")
        assert CONTROL_NAMES == (
            "mirror_angle", "mirror_spacing", "magnetic_field",
            "field_direction", "inserted_material",
        )

    def test_frozen(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            DEFAULT_CONTROLS.mirror_angle = 10

    def test_clamped(self):
        c = ControlParams(-5, 500, 1.5, 400, "graphene").clamped()
        assert c == ControlParams(0.0, 200.0, 1.0, 360.0, "graphene")

    def test_replace_returns_new_object(self):
        c = DEFAULT_CONTROLS.replace(magnetic_field=0.9)
        assert c.magnetic_field == 0.9
        assert DEFAULT_CONTROLS.magnetic_field == 0.5


class TestSimulationState:
    def test_to_dict_uses_camel_case(self):
        data = SimulationState(energy=10, topological_phase=True).to_dict()
        assert set(data) == {
            "mirrorAngle", "mirrorSpacing", "magneticField", "fieldDirection",
            "insertedMaterial", "energy", "coherence", "chirality", "topologicalPhase",
        }
        assert data["topologicalPhase"] is True

    def test_from_dict_accepts_both_spellings_and_ignores_extras(self):
        state = SimulationState.from_dict(
            {"mirrorAngle": 30, "magnetic_field": 0.2, "score": 500}
        )
        assert state.mirror_angle == 30
        assert state.magnetic_field == 0.2
        assert state.from_dict(state.to_dict()) == state

    def test_controls_view(self):
        state = SimulationState(mirror_angle=12.0, inserted_material="phosphorene", energy=99)
        assert state.controls == ControlParams(12.0, 100.0, 0.5, 0.0, "phosphorene")


def test_normalize_name():
    assert normalize_name("insertedMaterial") == "inserted_material"
    assert normalize_name("field_direction") == "field_direction"
    assert normalize_name("unknown") == "unknown"


def test_material_catalogue():
    assert list(MATERIALS) == ["none", "graphene", "bismuthene", "twisted-bilayer", "phosphorene"]
    assert MATERIALS["bismuthene"].name == "Bismuthene"


def test_hsl_to_rgb():
    assert hsl_to_rgb("hsl(120, 100%, 50%)") == pytest.approx((0.0, 1.0, 0.0))
    assert hsl_to_rgb("hsl(280, 60%, 60%)")[2] > hsl_to_rgb("hsl(280, 60%, 60%)")[1]
