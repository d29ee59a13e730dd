"""Particle record and the chirality colour mapping."""

from __future__ import annotations

import colorsys
from dataclasses import dataclass


@dataclass(slots=True)
class Particle:
    """A single particle of the vacuum field.

    ``color`` and ``alpha`` are caches: the field recomputes both from the
    live simulation state on every tick.
    """

    x: float
    y: float
    vx: float
    vy: float
    size: float
    color: str
    alpha: float
    life: int
    chirality: float


def chiral_color(chirality: float) -> str:
    """HSL colour for a chirality value.

    Right-handed (positive) maps to a red-orange band, left-handed
    (negative) to blue-cyan, zero to a fixed purple.
    """
    intensity = abs(chirality)
    if chirality > 0:
        return f"hsl({20 + intensity * 20:g}, 80%, {50 + intensity * 30:g}%)"
    if chirality < 0:
        return f"hsl({200 + intensity * 20:g}, 80%, {50 + intensity * 30:g}%)"
    return "hsl(280, 60%, 60%)"


def hsl_to_rgb(color: str) -> tuple[float, float, float]:
    """Parse an ``hsl(h, s%, l%)`` string into an RGB triple in [0, 1]."""
    body = color.strip()[len("hsl("):-1]
    h, s, l = (part.strip().rstrip("%") for part in body.split(","))
    r, g, b = colorsys.hls_to_rgb(
        float(h) / 360.0, min(1.0, float(l) / 100.0), float(s) / 100.0,
    )
    return r, g, b
