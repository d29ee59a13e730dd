"""Field renderer — per-frame particle update and the back-to-front draw pass.

The renderer is backend-agnostic: it draws through a
:class:`~quantum_vacuum.visualization.canvas.Canvas`.  A matplotlib canvas
and helpers to drive it live (or as a ``FuncAnimation``) are defined here
as well.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Callable

import numpy as np
import matplotlib.pyplot as plt
from matplotlib.animation import FuncAnimation
from matplotlib.collections import LineCollection, PatchCollection
from matplotlib.patches import Circle, Rectangle

from ..core.state import SimulationState
from ..simulation.field import ParticleField
from .canvas import Canvas, to_rgba

FADE_COLOR = "#000000"
FADE_ALPHA = 0.1

FIELD_LINE_COUNT = 10
FIELD_LINE_MIN_STRENGTH = 0.1
FIELD_LINE_SKEW = 10.0
ARROW_SIZE = 5.0

MIRROR_COLOR = "#60a5fa"
MIRROR_WIDTH = 4.0
CAVITY_COLOR = "#10b981"
CAVITY_DASH = (5.0, 5.0)

GLOW_ENERGY = 50
ECHO_COHERENCE = 70

MATERIAL_SIZE = 40.0
MATERIAL_ACTIVE = ("rgba(16, 185, 129, 0.8)", "#10b981")
MATERIAL_IDLE = ("rgba(107, 114, 128, 0.8)", "#6b7280")

BACKGROUND = "#1a1a2e"


class FieldRenderer:
    """Advances a :class:`ParticleField` and draws it with the cavity overlay."""

    def __init__(self, field: ParticleField, canvas: Canvas) -> None:
        self.field = field
        self.canvas = canvas
        self.canvas.resize(field.width, field.height)

    def resize(self, width: float, height: float | None = None) -> None:
        """Follow a container resize.  The particle pool is not reseeded."""
        self.field.resize(width, height)
        self.canvas.resize(self.field.width, self.field.height)

    def tick(self, state: SimulationState, is_running: bool) -> None:
        """One animation frame: reseed if needed, integrate if running, draw."""
        self.field.sync(state)
        if is_running:
            self.field.step(state)
        self.draw(state)

    # ------------------------------------------------------------------
    # Draw pass
    # ------------------------------------------------------------------

    def draw(self, state: SimulationState) -> None:
        canvas = self.canvas
        if canvas.is_empty:
            return
        canvas.begin_frame()
        canvas.begin_layer("fade")
        canvas.fade(FADE_COLOR, FADE_ALPHA)
        self.draw_magnetic_field(state)
        self.draw_mirrors(state)
        self.draw_particles(state)
        self.draw_material(state)
        canvas.end_frame()

    def draw_magnetic_field(self, state: SimulationState) -> None:
        if state.magnetic_field < FIELD_LINE_MIN_STRENGTH:
            return
        canvas = self.canvas
        canvas.begin_layer("magnetic_field")
        width, height = canvas.width, canvas.height
        color = f"rgba(239, 68, 68, {state.magnetic_field})"
        offset = math.cos(math.radians(state.field_direction)) * FIELD_LINE_SKEW
        start_y = height * 0.2
        end_y = height * 0.8
        mid_y = start_y + (end_y - start_y) * 0.5

        for i in range(FIELD_LINE_COUNT):
            x = width / (FIELD_LINE_COUNT + 1) * (i + 1) + offset
            canvas.line(x, start_y, x, end_y, color=color)
            canvas.line(x, mid_y, x - ARROW_SIZE, mid_y - ARROW_SIZE, color=color)
            canvas.line(x, mid_y, x + ARROW_SIZE, mid_y - ARROW_SIZE, color=color)

    def mirror_geometry(self, state: SimulationState) -> dict[str, Any]:
        """Anchor points, spacing and segment endpoints of the two mirrors."""
        width, height = self.canvas.width, self.canvas.height
        spacing = (state.mirror_spacing / 100.0) * width * 0.3
        angle = math.radians(state.mirror_angle)
        length = height * 0.6
        left_x = width * 0.2
        center_y = height * 0.5
        right_x = left_x + spacing

        def segment(cx: float, theta: float) -> tuple[float, float, float, float]:
            dx = -(length / 2) * math.sin(theta)
            dy = (length / 2) * math.cos(theta)
            return (cx - dx, center_y - dy, cx + dx, center_y + dy)

        return {
            "spacing": spacing,
            "length": length,
            "left_x": left_x,
            "right_x": right_x,
            "center_y": center_y,
            "left": segment(left_x, -angle),
            "right": segment(right_x, angle),
        }

    def draw_mirrors(self, state: SimulationState) -> None:
        canvas = self.canvas
        canvas.begin_layer("mirrors")
        geo = self.mirror_geometry(state)
        for key in ("left", "right"):
            x0, y0, x1, y1 = geo[key]
            canvas.line(x0, y0, x1, y1, color=MIRROR_COLOR, width=MIRROR_WIDTH)

        if state.topological_phase:
            canvas.rect(
                geo["left_x"] - 20,
                geo["center_y"] - geo["length"] / 2,
                geo["spacing"] + 40,
                geo["length"],
                stroke=CAVITY_COLOR, width=2.0, dash=CAVITY_DASH,
            )

    def draw_particles(self, state: SimulationState) -> None:
        canvas = self.canvas
        canvas.begin_layer("particles")
        glow = state.energy > GLOW_ENERGY
        echo = state.coherence > ECHO_COHERENCE
        for p in self.field.particles:
            if echo:
                canvas.circle(
                    p.x - p.vx * 2, p.y - p.vy * 2, p.size * 0.5,
                    color=p.color, alpha=p.alpha * 0.3,
                )
            canvas.circle(
                p.x, p.y, p.size,
                color=p.color, alpha=p.alpha, glow=p.size * 2 if glow else 0.0,
            )

    def draw_material(self, state: SimulationState) -> None:
        if state.inserted_material == "none":
            return
        canvas = self.canvas
        canvas.begin_layer("material")
        cx = canvas.width * 0.5
        cy = canvas.height * 0.5
        fill, stroke = MATERIAL_ACTIVE if state.topological_phase else MATERIAL_IDLE
        half = MATERIAL_SIZE / 2
        canvas.rect(cx - half, cy - half, MATERIAL_SIZE, MATERIAL_SIZE,
                    stroke=stroke, fill=fill, width=2.0)
        canvas.text(cx, cy + half + 15, state.inserted_material,
                    color="#ffffff", size=12.0, align="center")


# ═══════════════════════════════════════════════════════════════════════
#  Matplotlib backend
# ═══════════════════════════════════════════════════════════════════════


@dataclass
class _FadingArtist:
    artist: Any
    face: np.ndarray | None
    edge: np.ndarray | None
    weight: float = 1.0

    def apply(self) -> None:
        if self.face is not None:
            fc = self.face.copy()
            fc[:, 3] *= self.weight
            self.artist.set_facecolor(fc)
        if self.edge is not None:
            ec = self.edge.copy()
            ec[:, 3] *= self.weight
            self.artist.set_edgecolor(ec)
        if self.face is None and self.edge is None:
            self.artist.set_alpha(self.weight)


class MatplotlibCanvas(Canvas):
    """Draws on a matplotlib ``Axes`` whose data units are canvas pixels.

    Earlier frames are kept and dimmed by every :meth:`fade`, which gives
    the same trail effect as painting a translucent rectangle over a
    bitmap.  Artists dimmer than *min_weight* are removed.
    """

    def __init__(
        self,
        ax: Any = None,
        width: float = 800.0,
        height: float = 400.0,
        *,
        background: str = BACKGROUND,
        min_weight: float = 0.02,
    ) -> None:
        super().__init__(width, height)
        if ax is None:
            _fig, ax = plt.subplots(1, 1, figsize=(width / 100, height / 100))
        self.ax = ax
        self.min_weight = min_weight
        self._history: list[_FadingArtist] = []
        self._lines: list[tuple[tuple[float, float], tuple[float, float], tuple, float, Any]] = []
        self._circles: list[tuple[float, float, float, tuple]] = []
        self._rects: list[Rectangle] = []
        ax.set_facecolor(background)
        ax.set_xticks([])
        ax.set_yticks([])
        ax.set_aspect("equal")
        self._apply_limits()

    @property
    def figure(self) -> Any:
        return self.ax.figure

    @property
    def artist_count(self) -> int:
        return len(self._history)

    def _apply_limits(self) -> None:
        self.ax.set_xlim(0, max(self.width, 1.0))
        self.ax.set_ylim(max(self.height, 1.0), 0)  # y grows downwards

    def resize(self, width: float, height: float) -> None:
        super().resize(width, height)
        self._apply_limits()

    def begin_frame(self) -> None:
        self._lines = []
        self._circles = []
        self._rects = []

    def fade(self, color: str, alpha: float) -> None:
        keep = 1.0 - alpha
        alive: list[_FadingArtist] = []
        for item in self._history:
            item.weight *= keep
            if item.weight < self.min_weight:
                item.artist.remove()
                continue
            item.apply()
            alive.append(item)
        self._history = alive

    def line(self, x0, y0, x1, y1, *, color, width=1.0, dash=None):
        style = (0, dash) if dash else "solid"
        self._lines.append(((x0, y0), (x1, y1), to_rgba(color), width, style))

    def rect(self, x, y, w, h, *, stroke=None, fill=None, width=1.0, dash=None):
        patch = Rectangle(
            (x, y), w, h,
            facecolor=to_rgba(fill) if fill else "none",
            edgecolor=to_rgba(stroke) if stroke else "none",
            linewidth=width,
            linestyle=(0, dash) if dash else "solid",
        )
        self._rects.append(patch)

    def circle(self, x, y, radius, *, color, alpha=1.0, glow=0.0):
        if glow > 0:
            self._circles.append((x, y, radius + glow / 2, to_rgba(color, alpha * 0.25)))
        self._circles.append((x, y, radius, to_rgba(color, alpha)))

    def text(self, x, y, label, *, color="#ffffff", size=12.0, align="center"):
        artist = self.ax.text(x, y, label, color=to_rgba(color), fontsize=size * 0.75,
                              ha=align, va="center", zorder=4)
        self._history.append(_FadingArtist(artist, None, None))

    def end_frame(self) -> None:
        ax = self.ax
        if self._lines:
            coll = LineCollection(
                [[a, b] for a, b, _c, _w, _s in self._lines],
                colors=[c for _a, _b, c, _w, _s in self._lines],
                linewidths=[w for _a, _b, _c, w, _s in self._lines],
                linestyles=[s for _a, _b, _c, _w, s in self._lines],
                capstyle="round",
                zorder=2,
            )
            ax.add_collection(coll)
            self._history.append(_FadingArtist(coll, None, np.array(coll.get_edgecolor())))
        if self._circles:
            coll = PatchCollection(
                [Circle((x, y), r) for x, y, r, _c in self._circles],
                facecolors=[c for _x, _y, _r, c in self._circles],
                edgecolors="none",
                zorder=3,
            )
            ax.add_collection(coll)
            self._history.append(_FadingArtist(coll, np.array(coll.get_facecolor()), None))
        if self._rects:
            coll = PatchCollection(self._rects, match_original=True, zorder=3)
            ax.add_collection(coll)
            self._history.append(_FadingArtist(
                coll, np.array(coll.get_facecolor()), np.array(coll.get_edgecolor()),
            ))


def matplotlib_scheduler(figure: Any, interval_ms: int = 16) -> tuple[Callable, Callable]:
    """``(schedule, cancel)`` pair backed by single-shot figure timers."""

    def schedule(callback: Callable[[], None]) -> Any:
        timer = figure.canvas.new_timer(interval=interval_ms)
        timer.single_shot = True
        timer.add_callback(callback)
        timer.start()
        return timer

    def cancel(timer: Any) -> None:
        timer.stop()

    return schedule, cancel


def animate_field(
    renderer: FieldRenderer,
    state_fn: Callable[[], SimulationState],
    *,
    frames: int | None = None,
    interval_ms: int = 33,
) -> FuncAnimation:
    """Animate a renderer that draws on a :class:`MatplotlibCanvas`.

    *state_fn* is called every frame so that parameter changes made while
    the animation runs take effect immediately.
    """
    canvas = renderer.canvas
    if not isinstance(canvas, MatplotlibCanvas):
        raise TypeError("animate_field needs a MatplotlibCanvas")
    title = canvas.ax.set_title("")

    def update(frame: int) -> Any:
        state = state_fn()
        renderer.tick(state, True)
        title.set_text(
            f"E = {state.energy} μeV   C = {state.coherence}%   χ = {state.chirality:+.2f}"
        )
        return (title,)

    return FuncAnimation(canvas.figure, update, frames=frames,
                         interval=interval_ms, blit=False, cache_frame_data=False)
