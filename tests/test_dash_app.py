"""Tests for the Dash app's session access helpers."""

from __future__ import annotations

import json

import pytest

from quantum_vacuum.simulation.engine import SimulationSession
from quantum_vacuum.visualization import dash_app


class RecordingLock:
    def __init__(self) -> None:
        self.held = False
        self.acquired = 0

    def __enter__(self):
        self.held = True
        self.acquired += 1
        return self

    def __exit__(self, *exc):
        self.held = False
        return False


class GuardedSession:
    """Session proxy that fails on any access made without the lock."""

    def __init__(self, session: SimulationSession, lock: RecordingLock) -> None:
        self._session = session
        self._lock = lock

    def __getattr__(self, name):
        assert self._lock.held, f"session.{name} read outside the lock"
        return getattr(self._session, name)


@pytest.fixture
def guarded(monkeypatch):
    lock = RecordingLock()
    session = SimulationSession()
    monkeypatch.setattr(dash_app, "_lock", lock)
    monkeypatch.setattr(dash_app, "_session", GuardedSession(session, lock))
    return session, lock


class TestSessionAccess:
    @pytest.mark.parametrize("kind", ["json", "csv", "md"])
    def test_export_reads_under_lock(self, guarded, kind):
        _session, lock = guarded
        payload = dash_app._export_payload(kind)
        assert lock.acquired == 1
        assert payload["filename"].endswith(f".{kind}")

    def test_json_export_includes_session_data(self, guarded):
        payload = dash_app._export_payload("json")
        data = json.loads(payload["content"])
        assert data["sessionData"]["experimentsRun"] == 0

    def test_preset_loads_under_lock(self, guarded):
        session, lock = guarded
        state = dash_app._apply_preset("topological")
        assert lock.acquired == 1
        assert state.topological_phase
        assert session.score == 100

    def test_locked_preset_is_refused(self, guarded):
        session, _lock = guarded
        assert dash_app._apply_preset("advanced-chiral") is None
        assert session.state.inserted_material == "none"
