"""Session export: JSON snapshot, CSV parameter table and Markdown report."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any

import pandas as pd

from ..core.state import SimulationState

EXPORT_VERSION = "1.0.0"
EXPORT_TYPE = "quantum-vacuum-simulation"

_CSV_ROWS = [
    ("Mirror Angle", "mirror_angle"),
    ("Mirror Spacing", "mirror_spacing"),
    ("Magnetic Field", "magnetic_field"),
    ("Field Direction", "field_direction"),
    ("Chirality", "chirality"),
    ("Inserted Material", "inserted_material"),
    ("Energy", "energy"),
    ("Coherence", "coherence"),
    ("Topological Phase", "topological_phase"),
]


def _fmt(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def export_filename(kind: str, now: datetime | None = None) -> str:
    """File name for an export of *kind* (``json``, ``csv`` or ``md``)."""
    stamp = int((now or datetime.now(timezone.utc)).timestamp() * 1000)
    prefix = {"json": "quantum-simulation", "csv": "quantum-data", "md": "quantum-report"}[kind]
    return f"{prefix}-{stamp}.{kind}"


def to_json(
    state: SimulationState,
    score: int,
    session_data: dict[str, Any] | None = None,
    now: datetime | None = None,
) -> str:
    now = now or datetime.now(timezone.utc)
    data = {
        "timestamp": now.isoformat(),
        "simulationState": state.to_dict(),
        "score": score,
        "sessionData": session_data,
        "metadata": {"version": EXPORT_VERSION, "exportType": EXPORT_TYPE},
    }
    return json.dumps(data, indent=2)


def parameter_table(state: SimulationState, score: int) -> pd.DataFrame:
    """Flattened ``Parameter``/``Value`` table of the state and score."""
    rows = [(label, _fmt(getattr(state, attr))) for label, attr in _CSV_ROWS]
    rows.append(("Score", _fmt(score)))
    return pd.DataFrame(rows, columns=["Parameter", "Value"])


def to_csv(state: SimulationState, score: int) -> str:
    return parameter_table(state, score).to_csv(index=False, lineterminator="\n").rstrip("\n")


def to_markdown(state: SimulationState, score: int, now: datetime | None = None) -> str:
    now = now or datetime.now()
    if state.topological_phase:
        phase = ("✅ **Topological Phase Achieved** - The system has successfully entered "
                 "a topological quantum state, indicating strong material-field coupling.")
    else:
        phase = ("❌ **No Topological Phase** - Consider adjusting magnetic field strength "
                 "or material selection to achieve phase transition.")
    if state.coherence > 80:
        coherence = "✅ **High Coherence** - Excellent quantum coherence maintained."
    else:
        coherence = ("⚠️ **Low Coherence** - System coherence could be improved through "
                     "better cavity optimization.")
    if abs(state.chirality) > 0.5:
        chiral = ("✅ **Strong Chiral Effects** - Significant chirality observed, indicating "
                  "successful manipulation of quantum vacuum properties.")
    else:
        chiral = ("⚠️ **Weak Chiral Effects** - Consider adjusting field direction and "
                  "mirror configuration for stronger chiral coupling.")

    lines = [
        "# Quantum Vacuum Simulation Report",
        "",
        f"**Generated:** {now.strftime('%Y-%m-%d %H:%M:%S')}",
        f"**Total Score:** {score} points",
        "",
        "## Current Configuration",
        f"- **Mirror Angle:** {_fmt(state.mirror_angle)}°",
        f"- **Mirror Spacing:** {_fmt(state.mirror_spacing)} nm",
        f"- **Magnetic Field:** {_fmt(state.magnetic_field)} T",
        f"- **Field Direction:** {_fmt(state.field_direction)}°",
        f"- **Inserted Material:** {state.inserted_material}",
        "",
        "## Results",
        f"- **Energy Level:** {state.energy} μeV",
        f"- **Coherence:** {state.coherence}%",
        f"- **Chirality:** {_fmt(state.chirality)}",
        f"- **Topological Phase:** {'Active' if state.topological_phase else 'Inactive'}",
        "",
        "## Analysis",
        phase,
        "",
        coherence,
        "",
        chiral,
    ]
    return "\n".join(lines)
