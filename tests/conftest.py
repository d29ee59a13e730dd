"""Shared fixtures."""

from __future__ import annotations

import matplotlib

matplotlib.use("Agg")

import numpy as np
import pytest

from quantum_vacuum.core.state import SimulationState


@pytest.fixture
def rng() -> np.random.Generator:
    return np.random.default_rng(1234)


@pytest.fixture
def still_state() -> SimulationState:
    """A state that exerts no force on particles."""
    return SimulationState(magnetic_field=0.0, chirality=0.0, energy=0, coherence=50)
