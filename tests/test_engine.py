"""Tests for the state engine."""

from __future__ import annotations

import math

import numpy as np
import pytest

from quantum_vacuum.core.state import ControlParams, DEFAULT_CONTROLS, MATERIALS
from quantum_vacuum.simulation.engine import derive, derive_grid, js_round


def _controls(**kw) -> ControlParams:
    return DEFAULT_CONTROLS.replace(**kw)


class TestDerive:
    def test_reference_configuration(self):
        c = ControlParams(45, 100, 0.8, 0, "graphene")
        s = derive(c).state
        assert s.energy == 156
        assert s.coherence == 100
        assert s.topological_phase is True
        assert s.chirality == 0.57

    def test_defaults(self):
        s = derive(DEFAULT_CONTROLS).state
        assert s.coherence == 78
        assert s.chirality == 0.35
        assert s.topological_phase is False

    def test_no_resonance_no_angle_bonus(self):
        s = derive(_controls(mirror_angle=10, mirror_spacing=150, magnetic_field=0.5)).state
        assert s.energy == 50
        assert s.coherence == 40

    def test_resonance_only(self):
        s = derive(_controls(mirror_angle=10, mirror_spacing=105, magnetic_field=0.4)).state
        assert s.energy == 60
        assert s.coherence == 48

    def test_resonance_window_is_open(self):
        # |spacing - 100| < 10 is strict
        inside = derive(_controls(mirror_angle=0, mirror_spacing=109.9, magnetic_field=1.0)).state
        edge = derive(_controls(mirror_angle=0, mirror_spacing=110, magnetic_field=1.0)).state
        assert inside.energy == 150
        assert edge.energy == 100

    def test_negative_chirality(self):
        s = derive(_controls(mirror_angle=0, field_direction=270, magnetic_field=1.0)).state
        assert s.chirality == -1.0

    def test_zero_field_is_inert(self):
        s = derive(_controls(magnetic_field=0.0)).state
        assert s.energy == 0
        assert s.coherence == 0
        assert s.chirality == 0.0

    def test_out_of_range_values_are_clamped(self):
        s = derive(_controls(magnetic_field=2.0, mirror_angle=-30)).state
        assert s.magnetic_field == 1.0
        assert s.mirror_angle == 0.0
        # spacing 100 resonant, angle 0 not optimal
        assert s.energy == 150

    def test_controls_preserved(self):
        c = ControlParams(12, 160, 0.33, 200, "phosphorene")
        s = derive(c).state
        assert s.controls == c


class TestProperties:
    def test_energy_and_coherence_bounds(self):
        for angle in np.linspace(0, 90, 19):
            for spacing in np.linspace(50, 200, 16):
                for field in np.linspace(0, 1, 11):
                    s = derive(_controls(mirror_angle=angle, mirror_spacing=spacing,
                                         magnetic_field=field)).state
                    assert s.energy >= 0
                    assert 0 <= s.coherence <= 100
                    assert abs(s.chirality) <= field + 0.005

    def test_topological_phase_predicate(self):
        for material in MATERIALS:
            for field in np.linspace(0, 1, 21):
                for spacing in (60, 100, 150):
                    s = derive(_controls(mirror_spacing=spacing, magnetic_field=field,
                                         inserted_material=material)).state
                    expected = (material == "graphene" and s.magnetic_field > 0.7
                                and s.coherence > 60)
                    assert s.topological_phase == expected


class TestPhaseEdge:
    def test_fires_on_rising_edge(self):
        c = ControlParams(45, 100, 0.8, 0, "graphene")
        assert derive(c, previous_topological_phase=False).phase_entered

    def test_does_not_refire_while_active(self):
        c = ControlParams(45, 100, 0.8, 0, "graphene")
        assert not derive(c, previous_topological_phase=True).phase_entered

    def test_no_event_on_falling_edge(self):
        c = ControlParams(45, 100, 0.5, 0, "graphene")
        result = derive(c, previous_topological_phase=True)
        assert not result.state.topological_phase
        assert not result.phase_entered


class TestHelpers:
    @pytest.mark.parametrize("value,expected", [
        (0.5, 1), (1.49, 1), (2.5, 3), (-0.5, 0), (-1.5, -1), (-56.6, -57),
    ])
    def test_js_round(self, value, expected):
        assert js_round(value) == expected

    def test_grid_matches_scalar_derivation(self):
        angles = np.array([0.0, 43.0, 45.0, 60.0])
        spacings = np.array([[95.0], [100.0], [130.0]])
        energy, coherence = derive_grid(angles, spacings, 0.6)
        assert energy.shape == (3, 4)
        for i, spacing in enumerate(spacings[:, 0]):
            for j, angle in enumerate(angles):
                s = derive(_controls(mirror_angle=angle, mirror_spacing=spacing,
                                     magnetic_field=0.6)).state
                assert js_round(energy[i, j]) == s.energy
                assert js_round(coherence[i, j]) == s.coherence

    def test_grid_coherence_capped(self):
        _energy, coherence = derive_grid(45.0, 100.0, np.linspace(0, 1, 50))
        assert coherence.max() == pytest.approx(100.0)
        assert math.isclose(coherence.min(), 0.0)
