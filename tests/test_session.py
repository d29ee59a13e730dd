"""Tests for the simulation session (inbound/outbound interface)."""

from __future__ import annotations

import pytest

from quantum_vacuum.core.state import DEFAULT_CONTROLS
from quantum_vacuum.simulation.engine import SimulationSession


def _enter_phase(session: SimulationSession) -> None:
    session.apply_patch({"insertedMaterial": "graphene", "magneticField": 0.8})


class TestParameters:
    def test_initial_state_is_derived(self):
        session = SimulationSession()
        assert session.controls == DEFAULT_CONTROLS
        assert session.state.coherence == 78
        assert session.score == 0
        assert session.unlocked_materials == ["graphene"]

    def test_set_parameter_snake_and_camel(self):
        session = SimulationSession()
        session.set_parameter("mirror_angle", 10)
        assert session.state.mirror_angle == 10.0
        session.set_parameter("mirrorSpacing", 150)
        assert session.state.mirror_spacing == 150.0
        assert session.state.energy == 50

    def test_unknown_parameter_raises(self):
        session = SimulationSession()
        with pytest.raises(KeyError):
            session.set_parameter("warp_factor", 9)

    def test_derived_fields_cannot_be_set(self):
        session = SimulationSession()
        with pytest.raises(KeyError):
            session.set_parameter("energy", 1000)

    def test_unknown_material_raises(self):
        session = SimulationSession()
        with pytest.raises(ValueError):
            session.set_parameter("inserted_material", "unobtainium")

    def test_values_are_clamped(self):
        session = SimulationSession()
        session.set_parameter("magnetic_field", 5)
        assert session.controls.magnetic_field == 1.0
        assert session.state.magnetic_field == 1.0

    def test_patch_ignores_derived_keys(self):
        session = SimulationSession()
        state = session.apply_patch({"energy": 999, "topologicalPhase": True, "mirrorAngle": 30})
        assert state.mirror_angle == 30.0
        assert state.energy == 75
        assert state.topological_phase is False

    def test_stats_track_maxima(self):
        session = SimulationSession()
        session.set_parameter("magnetic_field", 1.0)
        session.set_parameter("magnetic_field", 0.1)
        assert session.stats.max_energy == 195
        assert session.stats.max_coherence == 100


class TestPhaseEntry:
    def test_entering_phase_scores_and_unlocks(self):
        session = SimulationSession()
        seen = []
        session.subscribe(seen.append)
        _enter_phase(session)
        assert session.state.topological_phase
        assert session.score == 100
        assert "bismuthene" in session.unlocked_materials
        assert len(seen) == 1
        assert seen[0].topological_phase

    def test_no_refire_while_in_phase(self):
        session = SimulationSession()
        seen = []
        session.subscribe(seen.append)
        _enter_phase(session)
        session.set_parameter("field_direction", 90)
        session.set_parameter("magnetic_field", 0.9)
        assert len(seen) == 1
        assert session.score == 100

    def test_reentry_scores_again_but_unlocks_once(self):
        session = SimulationSession()
        _enter_phase(session)
        session.set_parameter("magnetic_field", 0.5)
        assert not session.state.topological_phase
        session.set_parameter("magnetic_field", 0.8)
        assert session.score == 200
        assert session.unlocked_materials.count("bismuthene") == 1

    def test_unsubscribe(self):
        session = SimulationSession()
        seen = []
        unsubscribe = session.subscribe(seen.append)
        unsubscribe()
        _enter_phase(session)
        assert seen == []

    def test_is_unlocked(self):
        session = SimulationSession()
        assert session.is_unlocked("none")
        assert session.is_unlocked("graphene")
        assert not session.is_unlocked("bismuthene")
        _enter_phase(session)
        assert session.is_unlocked("bismuthene")


class TestRunningAndReset:
    def test_set_running_notifies_on_change_only(self):
        session = SimulationSession()
        calls = []
        session.on_running_change(calls.append)
        session.set_running(True)
        session.set_running(True)
        session.set_running(False)
        assert calls == [True, False]
        assert session.stats.experiments_run == 1

    def test_toggle(self):
        session = SimulationSession()
        assert session.toggle_running() is True
        assert session.toggle_running() is False

    def test_reset_restores_defaults_and_stops(self):
        session = SimulationSession()
        session.set_running(True)
        _enter_phase(session)
        state = session.reset()
        assert not session.running
        assert session.controls == DEFAULT_CONTROLS
        assert state.inserted_material == "none"
        assert not state.topological_phase
        # score and unlocks survive a reset
        assert session.score == 100
        assert "bismuthene" in session.unlocked_materials


class TestMaterialValidation:
    def test_none_material_rejected_by_set_parameter(self):
        session = SimulationSession()
        with pytest.raises(ValueError):
            session.set_parameter("inserted_material", None)
        assert session.state.inserted_material == "none"

    def test_none_material_rejected_by_patch(self):
        session = SimulationSession()
        with pytest.raises(ValueError):
            session.apply_patch({"insertedMaterial": None})
        assert session.controls.inserted_material == "none"


def test_unsubscribe_twice_is_harmless():
    session = SimulationSession()
    seen = []
    unsubscribe = session.subscribe(seen.append)
    unsubscribe()
    unsubscribe()
    _enter_phase(session)
    assert seen == []
