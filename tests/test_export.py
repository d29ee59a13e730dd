"""Tests for the JSON/CSV/Markdown exports."""

from __future__ import annotations

import json
from datetime import datetime, timezone

from quantum_vacuum.core.state import ControlParams
from quantum_vacuum.simulation.engine import derive
from quantum_vacuum.simulation.export import (
    EXPORT_TYPE,
    EXPORT_VERSION,
    export_filename,
    parameter_table,
    to_csv,
    to_json,
    to_markdown,
)

STATE = derive(ControlParams(45, 100, 0.8, 0, "graphene")).state
NOW = datetime(2024, 1, 1, tzinfo=timezone.utc)


def test_filenames():
    assert export_filename("json", NOW) == "quantum-simulation-1704067200000.json"
    assert export_filename("csv", NOW) == "quantum-data-1704067200000.csv"
    assert export_filename("md", NOW) == "quantum-report-1704067200000.md"


def test_json_snapshot():
    data = json.loads(to_json(STATE, 100, {"experimentsRun": 2}, now=NOW))
    assert data["timestamp"] == "2024-01-01T00:00:00+00:00"
    assert data["score"] == 100
    assert data["sessionData"] == {"experimentsRun": 2}
    assert data["metadata"] == {"version": EXPORT_VERSION, "exportType": EXPORT_TYPE}
    snap = data["simulationState"]
    assert snap["mirrorAngle"] == 45
    assert snap["insertedMaterial"] == "graphene"
    assert snap["topologicalPhase"] is True
    assert snap["energy"] == 156


def test_csv_rows():
    lines = to_csv(STATE, 100).split("\n")
    assert lines[0] == "Parameter,Value"
    assert "Mirror Angle,45" in lines
    assert "Magnetic Field,0.8" in lines
    assert "Chirality,0.57" in lines
    assert "Topological Phase,true" in lines
    assert lines[-1] == "Score,100"
    assert len(lines) == 11


def test_parameter_table_columns():
    table = parameter_table(STATE, 0)
    assert list(table.columns) == ["Parameter", "Value"]
    assert table.set_index("Parameter").loc["Energy", "Value"] == "156"


def test_markdown_report():
    report = to_markdown(STATE, 250, now=datetime(2024, 1, 2, 3, 4, 5))
    lines = report.split("\n")
    assert lines[0] == "# Quantum Vacuum Simulation Report"
    assert "**Generated:** 2024-01-02 03:04:05" in lines
    assert "**Total Score:** 250 points" in lines
    assert "- **Mirror Spacing:** 100 nm" in lines
    assert "- **Topological Phase:** Active" in lines
    assert any(line.startswith("✅ **Topological Phase Achieved**") for line in lines)
    assert any(line.startswith("✅ **High Coherence**") for line in lines)
    assert any(line.startswith("✅ **Strong Chiral Effects**") for line in lines)


def test_markdown_weak_state():
    weak = derive(ControlParams(10, 150, 0.2, 0, "none")).state
    report = to_markdown(weak, 0, now=NOW)
    assert "❌ **No Topological Phase**" in report
    assert "⚠️ **Low Coherence**" in report
    assert "⚠️ **Weak Chiral Effects**" in report
