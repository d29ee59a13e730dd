"""Particle field — the pool of particles and its per-tick integration."""

from __future__ import annotations

import logging
import math

import numpy as np

from ..core.config import DEFAULT_FIELD_CONFIG, FieldConfig
from ..core.particle import Particle, chiral_color
from ..core.state import SimulationState

logger = logging.getLogger(__name__)


class ParticleField:
    """A fixed-size pool of particles confined to the canvas rectangle.

    The pool is re-seeded in full whenever the coherence it was seeded
    for changes; between re-seeds its length never changes, because dead
    particles are replaced in place.
    """

    def __init__(
        self,
        width: float | None = None,
        height: float | None = None,
        config: FieldConfig = DEFAULT_FIELD_CONFIG,
        rng: np.random.Generator | None = None,
    ) -> None:
        self.config = config
        self.width = float(width if width is not None else config.width)
        self.height = float(height if height is not None else config.height)
        self.rng = rng or np.random.default_rng()
        self.particles: list[Particle] = []
        self.seeded_coherence: int | None = None

    def __len__(self) -> int:
        return len(self.particles)

    # ------------------------------------------------------------------
    # Pool management
    # ------------------------------------------------------------------

    def target_count(self, coherence: float) -> int:
        return max(self.config.min_particles, int(math.floor(coherence + 0.5)))

    def spawn(self, state: SimulationState) -> Particle:
        """Create a fresh particle seeded from the current *state*."""
        cfg = self.config
        speed = state.energy / 100.0
        rng = self.rng
        return Particle(
            x=float(rng.uniform(0.0, self.width)),
            y=float(rng.uniform(0.0, self.height)),
            vx=float((rng.random() - 0.5) * speed * 2.0),
            vy=float((rng.random() - 0.5) * speed * 2.0),
            size=float(rng.uniform(*cfg.size_range)),
            color=chiral_color(state.chirality),
            alpha=float(rng.uniform(*cfg.alpha_range)),
            life=int(rng.uniform(*cfg.life_range)),
            chirality=state.chirality,
        )

    def reseed(self, state: SimulationState) -> None:
        """Discard every particle and seed ``max(50, coherence)`` new ones."""
        count = self.target_count(state.coherence)
        self.particles = [self.spawn(state) for _ in range(count)]
        self.seeded_coherence = state.coherence
        logger.info("particle pool reseeded: %d particles (coherence=%s)",
                    count, state.coherence)

    def sync(self, state: SimulationState) -> bool:
        """Reseed if coherence changed since the last seed. Returns True if so."""
        if self.seeded_coherence is None or state.coherence != self.seeded_coherence:
            self.reseed(state)
            return True
        return False

    def resize(self, width: float, height: float | None = None) -> None:
        """Change the canvas extent; particles are kept as they are."""
        self.width = float(width)
        self.height = float(height if height is not None else self.config.height)

    # ------------------------------------------------------------------
    # Physics
    # ------------------------------------------------------------------

    def step(self, state: SimulationState) -> None:
        """Advance every particle by one frame under the live *state*."""
        cfg = self.config
        width, height = self.width, self.height

        chiral_force = state.chirality * cfg.chiral_force
        magnetic_force = state.magnetic_field * cfg.magnetic_force
        direction = math.radians(state.field_direction)
        drift_x = magnetic_force * math.cos(direction)
        drift_y = magnetic_force * math.sin(direction)
        coherence_factor = state.coherence / 100.0
        color = chiral_color(state.chirality)
        k = cfg.chiral_wavenumber

        for index, p in enumerate(self.particles):
            p.vx += chiral_force * math.sin(p.y * k)
            p.vy += chiral_force * math.cos(p.x * k)

            p.vx += drift_x
            p.vy += drift_y

            p.x += p.vx
            p.y += p.vy

            p.vx *= cfg.damping
            p.vy *= cfg.damping

            if p.x < 0 or p.x > width:
                p.vx *= cfg.restitution
            if p.y < 0 or p.y > height:
                p.vy *= cfg.restitution
            p.x = max(0.0, min(width, p.x))
            p.y = max(0.0, min(height, p.y))

            p.life -= 1
            p.alpha = max(0.0, (p.life / cfg.life_scale) * coherence_factor)

            if p.life <= 0:
                p = self.spawn(state)
                self.particles[index] = p

            p.color = color
