"""A small immediate-mode 2D canvas vocabulary.

:class:`FieldRenderer` issues drawing calls in canvas pixel coordinates
(origin top-left, y pointing down).  Backends translate the calls: the
matplotlib canvas draws on an ``Axes``, the plotly canvas builds a
``Figure`` for the Dash UI, and :class:`RecordingCanvas` just keeps the
calls so they can be inspected.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any

import matplotlib.colors as mcolors

from ..core.particle import hsl_to_rgb

_RGBA_RE = re.compile(r"rgba?\(([^)]*)\)")

RGBA = tuple[float, float, float, float]


def to_rgba(color: str, alpha: float | None = None) -> RGBA:
    """Convert a CSS-style colour (hex, name, ``rgb[a]()``, ``hsl()``) to RGBA floats.

    If *alpha* is given it multiplies the colour's own alpha.
    """
    text = color.strip()
    if text.startswith("hsl("):
        r, g, b = hsl_to_rgb(text)
        a = 1.0
    else:
        m = _RGBA_RE.fullmatch(text)
        if m:
            parts = [float(v) for v in m.group(1).split(",")]
            r, g, b = (c / 255.0 for c in parts[:3])
            a = parts[3] if len(parts) > 3 else 1.0
        else:
            r, g, b, a = mcolors.to_rgba(text)
    if alpha is not None:
        a *= alpha
    return (r, g, b, max(0.0, min(1.0, a)))


def rgba_string(color: str, alpha: float | None = None) -> str:
    r, g, b, a = to_rgba(color, alpha)
    return f"rgba({round(r * 255)}, {round(g * 255)}, {round(b * 255)}, {a:.3f})"


class Canvas:
    """Base canvas.  Subclasses override the drawing primitives."""

    def __init__(self, width: float = 800.0, height: float = 400.0) -> None:
        self.width = float(width)
        self.height = float(height)
        self.layer = ""

    @property
    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0

    def resize(self, width: float, height: float) -> None:
        self.width = float(width)
        self.height = float(height)

    # Frame / layer bookkeeping ------------------------------------------

    def begin_frame(self) -> None:
        pass

    def end_frame(self) -> None:
        pass

    def begin_layer(self, name: str) -> None:
        self.layer = name

    # Primitives ---------------------------------------------------------

    def fade(self, color: str, alpha: float) -> None:
        """Cover the whole canvas with *color* at opacity *alpha*."""
        raise NotImplementedError

    def line(
        self, x0: float, y0: float, x1: float, y1: float, *,
        color: str, width: float = 1.0, dash: tuple[float, ...] | None = None,
    ) -> None:
        raise NotImplementedError

    def rect(
        self, x: float, y: float, w: float, h: float, *,
        stroke: str | None = None, fill: str | None = None,
        width: float = 1.0, dash: tuple[float, ...] | None = None,
    ) -> None:
        raise NotImplementedError

    def circle(
        self, x: float, y: float, radius: float, *,
        color: str, alpha: float = 1.0, glow: float = 0.0,
    ) -> None:
        raise NotImplementedError

    def text(
        self, x: float, y: float, label: str, *,
        color: str = "#ffffff", size: float = 12.0, align: str = "center",
    ) -> None:
        raise NotImplementedError


@dataclass
class DrawCall:
    kind: str
    layer: str
    args: dict[str, Any] = field(default_factory=dict)


class RecordingCanvas(Canvas):
    """Canvas that records every call; used by tests and for debugging."""

    def __init__(self, width: float = 800.0, height: float = 400.0) -> None:
        super().__init__(width, height)
        self.calls: list[DrawCall] = []
        self.frames = 0

    def begin_frame(self) -> None:
        self.calls = []

    def end_frame(self) -> None:
        self.frames += 1

    def _record(self, kind: str, **args: Any) -> None:
        self.calls.append(DrawCall(kind, self.layer, args))

    def fade(self, color, alpha):
        self._record("fade", color=color, alpha=alpha)

    def line(self, x0, y0, x1, y1, *, color, width=1.0, dash=None):
        self._record("line", x0=x0, y0=y0, x1=x1, y1=y1, color=color, width=width, dash=dash)

    def rect(self, x, y, w, h, *, stroke=None, fill=None, width=1.0, dash=None):
        self._record("rect", x=x, y=y, w=w, h=h, stroke=stroke, fill=fill, width=width, dash=dash)

    def circle(self, x, y, radius, *, color, alpha=1.0, glow=0.0):
        self._record("circle", x=x, y=y, radius=radius, color=color, alpha=alpha, glow=glow)

    def text(self, x, y, label, *, color="#ffffff", size=12.0, align="center"):
        self._record("text", x=x, y=y, label=label, color=color, size=size, align=align)

    def layers(self) -> list[str]:
        """Distinct layer names in the order they were first drawn."""
        seen: list[str] = []
        for call in self.calls:
            if call.layer not in seen:
                seen.append(call.layer)
        return seen

    def of_kind(self, kind: str, layer: str | None = None) -> list[DrawCall]:
        return [
            c for c in self.calls
            if c.kind == kind and (layer is None or c.layer == layer)
        ]
