"""Numeric constants of the particle field, grouped in one immutable object.

Every force coefficient and lifecycle range used by the particle field
lives here so that a demo or a test can tweak the look of the field
without touching the integrator.
"""

from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class FieldConfig:
    """Canvas geometry and per-tick physics coefficients.

    Coordinates are canvas pixels, velocities are pixels per frame and
    ``life`` counts frames.
    """

    width: float = 800.0
    height: float = 400.0  # fixed; only the width follows the container

    min_particles: int = 50

    chiral_force: float = 0.01    # scales chirality into drift
    chiral_wavenumber: float = 0.01
    magnetic_force: float = 0.05  # scales field strength into drift
    damping: float = 0.98
    restitution: float = -0.8     # velocity factor on a wall hit

    life_range: tuple[float, float] = (50.0, 150.0)
    size_range: tuple[float, float] = (1.0, 4.0)
    alpha_range: tuple[float, float] = (0.2, 1.0)
    life_scale: float = 150.0     # alpha = life / life_scale * coherence / 100


DEFAULT_FIELD_CONFIG = FieldConfig()

# Phase entry reward and the material it unlocks.
PHASE_BONUS = 100
PHASE_UNLOCK = "bismuthene"
INITIAL_UNLOCKED = ("graphene",)

# Display-refresh interval for the web UI, in milliseconds.
FRAME_INTERVAL_MS = int(os.environ.get("QV_FRAME_MS", 50))
LOG_LEVEL = os.environ.get("QV_LOG_LEVEL", "INFO")
