"""Tests for the cooperative animation driver."""

from __future__ import annotations

import itertools

import numpy as np
import pytest

from quantum_vacuum.simulation.driver import AnimationDriver, DriverState
from quantum_vacuum.simulation.engine import SimulationSession
from quantum_vacuum.simulation.field import ParticleField


class FakeScheduler:
    """Display-frame scheduler driven by hand from the test."""

    def __init__(self, honour_cancel: bool = True) -> None:
        self.pending: dict[int, object] = {}
        self.honour_cancel = honour_cancel
        self._ids = itertools.count()
        self.cancelled: list[int] = []

    def schedule(self, callback):
        handle = next(self._ids)
        self.pending[handle] = callback
        return handle

    def cancel(self, handle):
        self.cancelled.append(handle)
        if self.honour_cancel:
            self.pending.pop(handle, None)

    def fire(self) -> int:
        """Run every callback pending right now; returns how many ran."""
        due = list(self.pending.items())
        self.pending.clear()
        for _handle, callback in due:
            callback()
        return len(due)


def _driver(tick=None, honour_cancel=True):
    sched = FakeScheduler(honour_cancel)
    ticks = []
    driver = AnimationDriver(tick or (lambda: ticks.append(1)), sched.schedule, sched.cancel)
    return driver, sched, ticks


class TestAnimationDriver:
    def test_starts_stopped(self):
        driver, sched, _ticks = _driver()
        assert driver.state is DriverState.STOPPED
        assert sched.pending == {}

    def test_start_schedules_one_frame(self):
        driver, sched, ticks = _driver()
        driver.start()
        driver.start()
        assert driver.running
        assert len(sched.pending) == 1
        assert ticks == []

    def test_each_frame_schedules_the_next(self):
        driver, sched, ticks = _driver()
        driver.start()
        for _ in range(5):
            assert sched.fire() == 1
            assert len(sched.pending) == 1
        assert len(ticks) == 5
        assert driver.frames == 5

    def test_stop_cancels_pending_frame(self):
        driver, sched, ticks = _driver()
        driver.start()
        sched.fire()
        driver.stop()
        assert sched.pending == {}
        assert not driver.pending
        assert sched.fire() == 0
        assert len(ticks) == 1

    def test_stale_frame_after_cancel_is_ignored(self):
        driver, sched, ticks = _driver(honour_cancel=False)
        driver.start()
        driver.stop()
        # The scheduler ignored the cancel; the frame still fires.
        assert sched.fire() == 1
        assert ticks == []
        assert sched.pending == {}

    def test_restart_after_stop_ignores_old_frame(self):
        driver, sched, ticks = _driver(honour_cancel=False)
        driver.start()
        driver.stop()
        driver.start()
        sched.fire()  # old and new frame both fire
        assert len(ticks) == 1
        assert len(sched.pending) == 1

    def test_tick_that_stops_does_not_reschedule(self):
        holder = {}

        def tick():
            holder["driver"].stop()

        driver, sched, _ticks = _driver(tick=tick)
        holder["driver"] = driver
        driver.start()
        sched.fire()
        assert not driver.running
        assert sched.pending == {}

    def test_close_cancels_and_refuses_restart(self):
        driver, sched, _ticks = _driver()
        driver.start()
        driver.close()
        assert sched.pending == {}
        with pytest.raises(RuntimeError):
            driver.start()

    def test_failing_tick_stops_loop(self):
        def tick():
            raise ValueError("boom")

        driver, sched, _ticks = _driver(tick=tick)
        driver.start()
        with pytest.raises(ValueError):
            sched.fire()
        assert not driver.running
        assert sched.pending == {}


class TestDriverWithSession:
    def test_no_particle_mutation_while_stopped(self):
        session = SimulationSession()
        field = ParticleField(rng=np.random.default_rng(7))
        field.sync(session.state)

        def tick():
            field.sync(session.state)
            if session.running:
                field.step(session.state)

        sched = FakeScheduler(honour_cancel=False)
        driver = AnimationDriver(tick, sched.schedule, sched.cancel)
        session.on_running_change(driver.set_running)

        session.set_running(True)
        sched.fire()
        sched.fire()
        session.set_running(False)

        snapshot = [(p.x, p.y, p.vx, p.vy, p.life) for p in field.particles]
        for _ in range(3):
            sched.fire()
        assert [(p.x, p.y, p.vx, p.vy, p.life) for p in field.particles] == snapshot
        assert driver.frames == 2

        session.set_running(True)
        sched.fire()
        assert driver.frames == 3
