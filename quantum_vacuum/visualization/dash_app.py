"""Interactive Dash UI for the quantum vacuum cavity simulator.

Run with:
    python quantum_vacuum/visualization/dash_app.py

Opens at http://127.0.0.1:8050
"""

from __future__ import annotations

import logging
import threading
from typing import Any

import dash
from dash import dcc, html, ctx, dash_table, Input, Output, State, no_update

# ── Imports from the package ────────────────────────────────────────────
import sys, os

sys.path.insert(
    0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))
)

from quantum_vacuum.core.config import FRAME_INTERVAL_MS, LOG_LEVEL
from quantum_vacuum.core.state import (
    MATERIALS,
    PARAMETER_RANGES,
    SimulationState,
)
from quantum_vacuum.simulation.engine import SimulationSession
from quantum_vacuum.simulation.field import ParticleField
from quantum_vacuum.simulation.catalog import (
    ACHIEVEMENTS,
    DIFFICULTY_COLORS,
    PRESETS,
    PRESETS_BY_ID,
    RARITY_COLORS,
    TUTORIAL_STEPS,
    AchievementTracker,
    chirality_note,
    phase_description,
    preset_available,
)
from quantum_vacuum.simulation import export
from quantum_vacuum.visualization.figures import PlotlyCanvas, gauge_figure, resonance_map
from quantum_vacuum.visualization.renderer import FieldRenderer

logger = logging.getLogger(__name__)

# ═══════════════════════════════════════════════════════════════════════
#  Session (single owner; every callback runs on the server's worker)
# ═══════════════════════════════════════════════════════════════════════

_session = SimulationSession()
_field = ParticleField()
_canvas = PlotlyCanvas(_field.width, _field.height)
_renderer = FieldRenderer(_field, _canvas)
_achievements = AchievementTracker()
_notifications: list[str] = []
# The dev server is threaded; callbacks that touch the session or the
# particle pool hold this lock so mutation stays single-writer.
_lock = threading.Lock()


def _on_phase_entered(state: SimulationState) -> None:
    _notifications.append("🎉 Topological phase achieved! Material properties enhanced!")


_session.subscribe(_on_phase_entered)

_SLIDERS = [
    ("mirror_angle", "Mirror Angle (°)", {0: "0°", 45: "45°", 90: "90°"}),
    ("mirror_spacing", "Mirror Spacing (nm)", {50: "50", 100: "100", 150: "150", 200: "200"}),
    ("magnetic_field", "Magnetic Field (T)", {0: "0", 0.5: "0.5", 1: "1"}),
    ("field_direction", "Field Direction (°)", {0: "0°", 180: "180°", 360: "360°"}),
]
_SLIDER_IDS = [name.replace("_", "-") for name, _label, _marks in _SLIDERS]


def _slider_values(state: SimulationState) -> tuple:
    return tuple(getattr(state, name) for name, _label, _marks in _SLIDERS)


# ═══════════════════════════════════════════════════════════════════════
#  Panel builders
# ═══════════════════════════════════════════════════════════════════════


def _material_options(unlocked: list[str]) -> list[dict[str, Any]]:
    options = []
    for key, material in MATERIALS.items():
        locked = not (key == "none" or key in unlocked)
        label = f"{material.name}{'  🔒' if locked else ''}"
        options.append({"label": label, "value": key, "disabled": locked})
    return options


def _status_badges(state: SimulationState, score: int) -> list:
    badges = [
        html.Span(f"Score: {score}", className="badge"),
        html.Span(f"Energy: {state.energy} μeV", className="badge badge-blue"),
        html.Span(f"Coherence: {state.coherence}%", className="badge badge-green"),
        html.Span(f"Chirality: {state.chirality:+.2f}", className="badge"),
    ]
    if state.topological_phase:
        badges.append(html.Span("🎯 Topological Phase Active", className="badge badge-gold"))
    return badges


def _phase_panel(state: SimulationState) -> html.Div:
    phase = phase_description(state)
    children = [
        html.Div("Material Phase", className="section-card-header", style={"color": phase.color}),
        html.Div(phase.name, style={"color": phase.color, "fontWeight": 600}),
        html.P(phase.description, className="section-card-subheader"),
    ]
    note = chirality_note(state)
    if note is not None:
        children.append(html.Div([html.B("⚡ Chiral Vacuum State Detected"), html.Br(), note],
                                 className="chiral-note"))
    return html.Div(children, className="section-card")


def _material_panel(state: SimulationState) -> html.Div:
    material = MATERIALS[state.inserted_material]
    return html.Div([
        html.Div(material.name, style={"fontWeight": 600}),
        html.Div(material.description, className="section-card-subheader"),
        html.Div(material.properties, style={"fontSize": "0.8em", "color": "var(--text-muted)"}),
    ])


def _achievement_rows() -> list[dict[str, Any]]:
    rows = []
    for a in ACHIEVEMENTS:
        unlocked = a.id in _achievements.unlocked
        rows.append({
            "name": ("🏆 " if unlocked else "🔒 ") + a.name,
            "description": a.description,
            "rarity": a.rarity,
            "points": f"+{a.points}",
        })
    return rows


def _preset_cards(unlocked: list[str]) -> list:
    cards = []
    for preset in PRESETS:
        available = preset_available(preset, unlocked)
        cards.append(html.Div([
            html.Div([
                html.Span(preset.name, style={"fontWeight": 600}),
                html.Span(preset.difficulty, className="badge",
                          style={"color": DIFFICULTY_COLORS[preset.difficulty]}),
            ], className="preset-header"),
            html.P(preset.description, className="section-card-subheader"),
            html.Button(
                "Load Preset" if available else "Material Locked",
                id={"type": "preset-btn", "preset": preset.id},
                disabled=not available, n_clicks=0,
            ),
        ], className="preset-card"))
    return cards


def _tutorial_panel(step_index: int) -> list:
    step = TUTORIAL_STEPS[step_index]
    return [
        html.Div(f"Step {step.id} of {len(TUTORIAL_STEPS)}", className="section-card-subheader"),
        html.Div(step.title, className="section-card-header"),
        html.P(step.description),
        html.P(html.I(step.action), style={"color": "var(--accent-blue)"}),
    ]


def _field_figure(running: bool) -> Any:
    _renderer.tick(_session.state, running)
    return _canvas.figure


# ═══════════════════════════════════════════════════════════════════════
#  Dash app + dark theme
# ═══════════════════════════════════════════════════════════════════════

app = dash.Dash(
    __name__,
    title="Quantum Vacuum Cavity",
    suppress_callback_exceptions=True,
)

app.index_string = """<!DOCTYPE html>
<html>
<head>
    {%metas%}
    <title>{%title%}</title>
    {%favicon%}
    {%css%}
    <style>
        :root {
            --bg-base: #0a0a0f;
            --bg-surface: rgba(15, 15, 25, 0.8);
            --bg-elevated: rgba(25, 25, 45, 0.6);
            --glass-border: rgba(255, 255, 255, 0.08);
            --text-primary: #e8eaed;
            --text-secondary: #9aa0a6;
            --text-muted: #5f6368;
            --accent: #7c5cfc;
            --accent-blue: #60a5fa;
            --radius-md: 12px;
            --radius-lg: 16px;
        }
        * { box-sizing: border-box; }
        body {
            background: var(--bg-base); color: var(--text-primary); margin: 0;
            font-family: 'Inter', -apple-system, BlinkMacSystemFont, sans-serif;
        }
        .sidebar {
            position: fixed; top: 0; left: 0; bottom: 0; width: 320px;
            background: var(--bg-surface); border-right: 1px solid var(--glass-border);
            padding: 24px 20px; overflow-y: auto;
        }
        .sidebar label { display: block; margin: 10px 0 4px 0; color: var(--text-secondary); font-size: 0.8em; }
        .sidebar-section { margin-top: 20px; padding-top: 16px; border-top: 1px solid var(--glass-border); }
        .sidebar-section-header {
            font-size: 0.65em; color: var(--text-muted); text-transform: uppercase;
            letter-spacing: 0.12em; font-weight: 600; margin-bottom: 8px;
        }
        .main-area { margin-left: 320px; padding: 24px 32px; }
        .control-bar { display: flex; gap: 10px; margin: 16px 0; flex-wrap: wrap; align-items: center; }
        button {
            padding: 8px 18px; border: 1px solid var(--glass-border); border-radius: var(--radius-md);
            background: var(--bg-elevated); color: var(--text-secondary); cursor: pointer;
        }
        button:disabled { opacity: 0.4; cursor: not-allowed; }
        button.primary { background: linear-gradient(135deg, #059669, #34d399); color: #fff; }
        button.danger { background: linear-gradient(135deg, #dc2626, #f87171); color: #fff; }
        .badge {
            display: inline-block; padding: 4px 12px; margin-right: 6px;
            border: 1px solid var(--glass-border); border-radius: 999px; font-size: 0.8em;
        }
        .badge-blue { color: #93c5fd; } .badge-green { color: #6ee7b7; } .badge-gold { color: #fde68a; }
        .section-card {
            background: var(--bg-elevated); border: 1px solid var(--glass-border);
            border-radius: var(--radius-lg); padding: 16px 20px; margin: 16px 0;
        }
        .section-card-header { font-size: 1.05em; font-weight: 600; }
        .section-card-subheader { font-size: 0.85em; color: var(--text-muted); margin: 4px 0 8px 0; }
        .preset-card { border: 1px solid var(--glass-border); border-radius: var(--radius-md); padding: 10px; margin: 8px 0; }
        .preset-header { display: flex; justify-content: space-between; }
        .chiral-note { padding: 8px; border: 1px solid rgba(234,179,8,0.3); border-radius: 8px; color: #fde68a; font-size: 0.85em; }
        .toast { color: #fde68a; min-height: 1.4em; }
    </style>
</head>
<body>
    {%app_entry%}
    <footer>
        {%config%}
        {%scripts%}
        {%renderer%}
    </footer>
</body>
</html>
"""


def _simulator_layout():
    state = _session.state
    sliders = []
    for (name, label, marks), slider_id in zip(_SLIDERS, _SLIDER_IDS):
        lo, hi, step = PARAMETER_RANGES[name]
        sliders += [
            html.Label(label),
            dcc.Slider(id=slider_id, min=lo, max=hi, step=step,
                       value=getattr(state, name), marks=marks,
                       tooltip={"placement": "bottom"}, updatemode="drag"),
        ]

    return html.Div([
        # ── Sidebar ──────────────────────────────────────────────────
        html.Div([
            html.H2("Quantum Vacuum Cavity"),

            html.Div(className="sidebar-section", children=[
                html.Div("Cavity & Field", className="sidebar-section-header"),
                *sliders,
            ]),

            html.Div(className="sidebar-section", children=[
                html.Div("Material Insertion", className="sidebar-section-header"),
                dcc.RadioItems(
                    id="material",
                    options=_material_options(_session.unlocked_materials),
                    value=state.inserted_material,
                    style={"color": "#9aa0a6"},
                ),
                html.Div(id="material-info", children=_material_panel(state)),
                html.Div("💡 Achieve topological phases to unlock new materials!",
                         className="section-card-subheader"),
            ]),

            html.Div(className="sidebar-section", children=[
                html.Div("Experiment Presets", className="sidebar-section-header"),
                html.Div(id="preset-list", children=_preset_cards(_session.unlocked_materials)),
            ]),
        ], className="sidebar"),

        # ── Main area ────────────────────────────────────────────────
        html.Div([
            html.Div(id="status-bar", children=_status_badges(state, _session.score)),
            html.Div(id="toast", className="toast"),

            html.Div([
                html.Button("Start", id="btn-run", className="primary", n_clicks=0),
                html.Button("Reset", id="btn-reset", className="danger", n_clicks=0),
                html.Button("Tutorial", id="btn-tutorial", n_clicks=0),
            ], className="control-bar"),

            dcc.Graph(id="field-graph", figure=_field_figure(False),
                      config={"displayModeBar": False}),

            html.Div(id="phase-panel", children=_phase_panel(state)),
            dcc.Graph(id="gauge-graph", figure=gauge_figure(state), config={"displayModeBar": False}),

            html.Details([
                html.Summary("Tutorial"),
                html.Div(id="tutorial-content", className="section-card",
                         children=_tutorial_panel(0)),
                html.Div([
                    html.Button("Previous", id="btn-tut-prev", n_clicks=0),
                    html.Button("Apply Step", id="btn-tut-apply", n_clicks=0),
                    html.Button("Next", id="btn-tut-next", n_clicks=0),
                ], className="control-bar"),
            ], id="tutorial-details"),

            html.Details([
                html.Summary("Resonance Map"),
                dcc.Graph(id="resonance-graph", figure=resonance_map(state),
                          config={"displayModeBar": False}),
            ]),

            html.Div(className="section-card", children=[
                html.Div(id="achievement-header", className="section-card-header",
                         children="Achievements — 0 pts"),
                dash_table.DataTable(
                    id="achievement-table",
                    columns=[
                        {"name": "Achievement", "id": "name"},
                        {"name": "Description", "id": "description"},
                        {"name": "Rarity", "id": "rarity"},
                        {"name": "Points", "id": "points"},
                    ],
                    data=_achievement_rows(),
                    style_cell={"textAlign": "left", "padding": "4px 8px", "fontSize": "0.85em",
                                "backgroundColor": "#12121c", "color": "#e8eaed"},
                    style_data_conditional=[
                        {"if": {"filter_query": f"{{rarity}} = {rarity}"}, "color": color}
                        for rarity, color in RARITY_COLORS.items()
                    ],
                ),
            ]),

            html.Div(className="section-card", children=[
                html.Div("Export Data", className="section-card-header"),
                html.Div([
                    html.Button("Export JSON", id="btn-export-json", n_clicks=0),
                    html.Button("Export CSV", id="btn-export-csv", n_clicks=0),
                    html.Button("Generate Report", id="btn-export-md", n_clicks=0),
                ], className="control-bar"),
                dcc.Download(id="download"),
            ]),

            # Hidden components
            dcc.Interval(id="frame-interval", interval=FRAME_INTERVAL_MS, disabled=True),
            dcc.Store(id="tutorial-step", data=0),
        ], className="main-area"),
    ])


app.layout = _simulator_layout


# ═══════════════════════════════════════════════════════════════════════
#  Callbacks
# ═══════════════════════════════════════════════════════════════════════

# ── CB1: Parameter edits ────────────────────────────────────────────

@app.callback(
    Output("status-bar", "children"),
    Output("phase-panel", "children"),
    Output("gauge-graph", "figure"),
    Output("resonance-graph", "figure"),
    Output("material-info", "children"),
    Output("material", "options"),
    Output("preset-list", "children"),
    Output("achievement-table", "data"),
    Output("achievement-header", "children"),
    Output("toast", "children"),
    Output("field-graph", "figure", allow_duplicate=True),
    *[Input(slider_id, "value") for slider_id in _SLIDER_IDS],
    Input("material", "value"),
    prevent_initial_call=True,
)
def parameters_changed(mirror_angle, mirror_spacing, magnetic_field, field_direction, material):
    patch = {
        "mirror_angle": mirror_angle,
        "mirror_spacing": mirror_spacing,
        "magnetic_field": magnetic_field,
        "field_direction": field_direction,
        "inserted_material": material,
    }
    patch = {k: v for k, v in patch.items() if v is not None}
    if material is not None and not _session.is_unlocked(material):
        patch.pop("inserted_material")
    with _lock:
        state = _session.apply_patch(patch)
        for achievement in _achievements.update(state, _session.score):
            _notifications.append(f"🏆 Achievement Unlocked: {achievement.name}!")
        toast = _notifications[-1] if _notifications else ""
        _notifications.clear()
        figure = no_update if _session.running else _field_figure(False)
    return (
        _status_badges(state, _session.score),
        _phase_panel(state),
        gauge_figure(state),
        resonance_map(state),
        _material_panel(state),
        _material_options(_session.unlocked_materials),
        _preset_cards(_session.unlocked_materials),
        _achievement_rows(),
        f"Achievements — {_achievements.total_points} pts",
        toast,
        figure,
    )


# ── CB2: Animation frame ────────────────────────────────────────────

@app.callback(
    Output("field-graph", "figure", allow_duplicate=True),
    Input("frame-interval", "n_intervals"),
    prevent_initial_call=True,
)
def animation_frame(n_intervals):
    # An interval event already in flight when the user pressed Stop.
    with _lock:
        if not _session.running:
            return no_update
        return _field_figure(True)


# ── CB3: Start / stop ───────────────────────────────────────────────

@app.callback(
    Output("frame-interval", "disabled"),
    Output("btn-run", "children"),
    Output("btn-run", "className"),
    Input("btn-run", "n_clicks"),
    prevent_initial_call=True,
)
def toggle_running(n_clicks):
    with _lock:
        running = _session.toggle_running()
    return (not running), ("Stop" if running else "Start"), ("danger" if running else "primary")


# ── CB4: Reset ───────────────────────────────────────────────────────

@app.callback(
    *[Output(slider_id, "value", allow_duplicate=True) for slider_id in _SLIDER_IDS],
    Output("material", "value", allow_duplicate=True),
    Output("frame-interval", "disabled", allow_duplicate=True),
    Output("btn-run", "children", allow_duplicate=True),
    Output("btn-run", "className", allow_duplicate=True),
    Input("btn-reset", "n_clicks"),
    prevent_initial_call=True,
)
def reset_simulation(n_clicks):
    with _lock:
        state = _session.reset()
    return (*_slider_values(state), state.inserted_material, True, "Start", "primary")


# ── CB5: Presets ─────────────────────────────────────────────────────

@app.callback(
    *[Output(slider_id, "value", allow_duplicate=True) for slider_id in _SLIDER_IDS],
    Output("material", "value", allow_duplicate=True),
    Input({"type": "preset-btn", "preset": dash.ALL}, "n_clicks"),
    prevent_initial_call=True,
)
def load_preset(clicks):
    triggered = ctx.triggered_id
    if not triggered or not any(clicks):
        return (no_update,) * 5
    state = _apply_preset(triggered["preset"])
    if state is None:
        return (no_update,) * 5
    return (*_slider_values(state), state.inserted_material)


def _apply_preset(preset_id: str) -> SimulationState | None:
    """Load a preset into the session; ``None`` while its material is locked."""
    preset = PRESETS_BY_ID[preset_id]
    with _lock:
        if not preset_available(preset, _session.unlocked_materials):
            return None
        state = _session.apply_patch(preset.state)
    logger.info("preset loaded: %s", preset.id)
    return state


# ── CB6: Tutorial ────────────────────────────────────────────────────

@app.callback(
    Output("tutorial-step", "data"),
    Output("tutorial-content", "children"),
    Output("tutorial-details", "open"),
    Input("btn-tut-prev", "n_clicks"),
    Input("btn-tut-next", "n_clicks"),
    Input("btn-tutorial", "n_clicks"),
    State("tutorial-step", "data"),
    prevent_initial_call=True,
)
def tutorial_navigate(prev_clicks, next_clicks, open_clicks, step_index):
    triggered = ctx.triggered_id
    step_index = step_index or 0
    if triggered == "btn-tut-prev":
        step_index = max(0, step_index - 1)
    elif triggered == "btn-tut-next":
        step_index = min(len(TUTORIAL_STEPS) - 1, step_index + 1)
    elif triggered == "btn-tutorial":
        step_index = 0
    return step_index, _tutorial_panel(step_index), True


@app.callback(
    *[Output(slider_id, "value", allow_duplicate=True) for slider_id in _SLIDER_IDS],
    Output("material", "value", allow_duplicate=True),
    Input("btn-tut-apply", "n_clicks"),
    State("tutorial-step", "data"),
    prevent_initial_call=True,
)
def tutorial_apply(n_clicks, step_index):
    step = TUTORIAL_STEPS[step_index or 0]
    if step.target_state is None:
        return (no_update,) * 5
    with _lock:
        state = _session.apply_patch(step.target_state)
    return (*_slider_values(state), state.inserted_material)


# ── CB7: Export ──────────────────────────────────────────────────────

@app.callback(
    Output("download", "data"),
    Input("btn-export-json", "n_clicks"),
    Input("btn-export-csv", "n_clicks"),
    Input("btn-export-md", "n_clicks"),
    prevent_initial_call=True,
)
def export_data(json_clicks, csv_clicks, md_clicks):
    kind = _EXPORT_BUTTONS.get(ctx.triggered_id)
    if kind is None:
        return no_update
    return _export_payload(kind)


_EXPORT_BUTTONS = {"btn-export-json": "json", "btn-export-csv": "csv", "btn-export-md": "md"}


def _export_payload(kind: str) -> dict[str, str]:
    with _lock:
        state, score = _session.state, _session.score
        session_data = _session.stats.to_dict()
    if kind == "json":
        content = export.to_json(state, score, session_data)
    elif kind == "csv":
        content = export.to_csv(state, score)
    else:
        content = export.to_markdown(state, score)
    logger.info("exported %s snapshot", kind)
    return dict(content=content, filename=export.export_filename(kind))


if __name__ == "__main__":
    logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    port = int(os.environ.get("PORT", 8050))
    app.run(host="127.0.0.1", debug=False, port=port)
