"""Plotly backend for the field renderer and small status charts."""

from __future__ import annotations

from collections import deque
from typing import Any

import numpy as np
import plotly.graph_objects as go

from ..core.state import SimulationState
from ..simulation.engine import derive_grid
from .canvas import Canvas, rgba_string

_LAYOUT_DEFAULTS = dict(
    template="plotly_dark",
    paper_bgcolor="#0a0a0f",
    plot_bgcolor="#1a1a2e",
    font=dict(family="Inter, -apple-system, sans-serif", color="#e8eaed"),
    margin=dict(l=10, r=10, t=10, b=10),
    uirevision="stable",
)


class PlotlyCanvas(Canvas):
    """Builds a ``go.Figure`` per frame.

    Only particle layers are carried across frames for the fading trail;
    lines, rectangles and labels are redrawn from scratch each frame.
    *trail_frames* bounds how many earlier particle layers are kept.
    """

    def __init__(self, width: float = 800.0, height: float = 400.0, trail_frames: int = 6) -> None:
        super().__init__(width, height)
        self.trail: deque[dict[str, Any]] = deque(maxlen=trail_frames)
        self._shapes: list[dict[str, Any]] = []
        self._annotations: list[dict[str, Any]] = []
        self._circles: dict[str, list[float] | list[str]] = {}
        self.figure: go.Figure = go.Figure()

    def begin_frame(self) -> None:
        self._shapes = []
        self._annotations = []
        self._circles = {"x": [], "y": [], "size": [], "color": []}

    def fade(self, color: str, alpha: float) -> None:
        keep = 1.0 - alpha
        for layer in self.trail:
            layer["opacity"] *= keep

    def line(self, x0, y0, x1, y1, *, color, width=1.0, dash=None):
        self._shapes.append(dict(
            type="line", x0=x0, y0=y0, x1=x1, y1=y1, layer="above",
            line=dict(color=color, width=width, dash="dash" if dash else "solid"),
        ))

    def rect(self, x, y, w, h, *, stroke=None, fill=None, width=1.0, dash=None):
        self._shapes.append(dict(
            type="rect", x0=x, y0=y, x1=x + w, y1=y + h, layer="above",
            fillcolor=fill or "rgba(0,0,0,0)",
            line=dict(color=stroke or "rgba(0,0,0,0)", width=width,
                      dash="dash" if dash else "solid"),
        ))

    def circle(self, x, y, radius, *, color, alpha=1.0, glow=0.0):
        c = self._circles
        if glow > 0:
            c["x"].append(x)
            c["y"].append(y)
            c["size"].append(2 * radius + glow)
            c["color"].append(rgba_string(color, alpha * 0.25))
        c["x"].append(x)
        c["y"].append(y)
        c["size"].append(2 * radius)
        c["color"].append(rgba_string(color, alpha))

    def text(self, x, y, label, *, color="#ffffff", size=12.0, align="center"):
        self._annotations.append(dict(
            x=x, y=y, text=label, showarrow=False,
            font=dict(color=color, size=size), xanchor=align,
        ))

    def end_frame(self) -> None:
        fig = go.Figure()
        for layer in self.trail:
            fig.add_trace(_particle_trace(layer, layer["opacity"]))
        current = dict(self._circles, opacity=1.0)
        fig.add_trace(_particle_trace(current, 1.0))
        self.trail.append(current)

        fig.update_layout(
            shapes=self._shapes,
            annotations=self._annotations,
            xaxis=dict(range=[0, self.width], visible=False, constrain="domain"),
            yaxis=dict(range=[self.height, 0], visible=False,
                       scaleanchor="x", constrain="domain"),
            height=self.height,
            showlegend=False,
            **_LAYOUT_DEFAULTS,
        )
        self.figure = fig


def _particle_trace(layer: dict[str, Any], opacity: float) -> go.Scattergl:
    return go.Scattergl(
        x=layer["x"],
        y=layer["y"],
        mode="markers",
        marker=dict(size=layer["size"], color=layer["color"], line=dict(width=0)),
        opacity=max(0.0, min(1.0, opacity)),
        hoverinfo="skip",
        showlegend=False,
    )


def gauge_figure(state: SimulationState) -> go.Figure:
    """Energy and coherence bars for the phase indicator."""
    fig = go.Figure(go.Bar(
        x=[min(state.energy, 100), state.coherence],
        y=["Energy", "Coherence"],
        orientation="h",
        marker=dict(color=["#60a5fa", "#34d399"]),
        text=[f"{state.energy} μeV", f"{state.coherence}%"],
        textposition="auto",
        hoverinfo="skip",
    ))
    fig.update_layout(
        xaxis=dict(range=[0, 100], showgrid=False),
        height=140,
        **{**_LAYOUT_DEFAULTS, "margin": dict(l=80, r=10, t=10, b=20)},
    )
    return fig


def resonance_map(state: SimulationState, resolution: int = 91) -> go.Figure:
    """Coherence over (mirror angle, mirror spacing) at the current field."""
    angles = np.linspace(0.0, 90.0, resolution)
    spacings = np.linspace(50.0, 200.0, resolution)
    grid_a, grid_s = np.meshgrid(angles, spacings)
    _energy, coherence = derive_grid(grid_a, grid_s, state.magnetic_field)

    fig = go.Figure(go.Heatmap(
        x=angles, y=spacings, z=coherence,
        colorscale="Plasma", zmin=0, zmax=100,
        colorbar=dict(title="Coherence", thickness=12),
        hovertemplate="angle %{x:.0f}°<br>spacing %{y:.0f} nm<br>coherence %{z:.0f}<extra></extra>",
    ))
    fig.add_trace(go.Scatter(
        x=[state.mirror_angle], y=[state.mirror_spacing], mode="markers",
        marker=dict(size=12, color="#ffffff", symbol="x"), hoverinfo="skip",
        showlegend=False,
    ))
    fig.update_layout(
        xaxis=dict(title="Mirror angle (°)"),
        yaxis=dict(title="Mirror spacing (nm)"),
        height=300,
        **{**_LAYOUT_DEFAULTS, "margin": dict(l=60, r=10, t=10, b=50)},
    )
    return fig
