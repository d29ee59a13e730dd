"""Animation driver — a cooperative, single-threaded frame loop.

The driver never owns a thread.  It asks a scheduler for "call me on the
next display frame" and, after each frame, re-schedules itself only if it
is still running.  That gives at most one pending frame at any time, and
:meth:`AnimationDriver.stop` / :meth:`AnimationDriver.close` cancel it.
"""

from __future__ import annotations

import enum
import logging
from typing import Any, Callable

logger = logging.getLogger(__name__)

Schedule = Callable[[Callable[[], None]], Any]
Cancel = Callable[[Any], None]


class DriverState(enum.Enum):
    STOPPED = "stopped"
    RUNNING = "running"


class AnimationDriver:
    """Stopped/Running state machine around a recurring ``tick`` callable.

    Parameters
    ----------
    tick:
        Called once per frame while running.
    schedule:
        ``schedule(callback) -> handle``; must arrange for *callback* to be
        called once on the next display frame.
    cancel:
        ``cancel(handle)``; must prevent the callback of *handle* from
        running.  Frames that still fire after cancellation are ignored.
    """

    def __init__(self, tick: Callable[[], None], schedule: Schedule, cancel: Cancel) -> None:
        self._tick = tick
        self._schedule = schedule
        self._cancel = cancel
        self._handle: Any = None
        self._generation = 0
        self.state = DriverState.STOPPED
        self.closed = False
        self.frames = 0

    @property
    def running(self) -> bool:
        return self.state is DriverState.RUNNING

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def set_running(self, running: bool) -> None:
        if running:
            self.start()
        else:
            self.stop()

    def start(self) -> None:
        if self.closed:
            raise RuntimeError("driver is closed")
        if self.running:
            return
        self.state = DriverState.RUNNING
        self._schedule_next()

    def stop(self) -> None:
        if not self.running:
            return
        self.state = DriverState.STOPPED
        self._cancel_pending()

    def close(self) -> None:
        """Tear down: stop and cancel any pending frame for good."""
        self.state = DriverState.STOPPED
        self._cancel_pending()
        self.closed = True

    # ------------------------------------------------------------------

    def _schedule_next(self) -> None:
        generation = self._generation

        def frame() -> None:
            self._run_frame(generation)

        self._handle = self._schedule(frame)

    def _cancel_pending(self) -> None:
        # Bumping the generation invalidates a frame the scheduler fails to cancel.
        self._generation += 1
        if self._handle is not None:
            self._cancel(self._handle)
            self._handle = None

    def _run_frame(self, generation: int) -> None:
        if generation != self._generation or not self.running:
            logger.debug("dropping stale frame")
            return
        self._handle = None
        try:
            self._tick()
        except Exception:
            logger.exception("frame tick failed, stopping animation")
            self.state = DriverState.STOPPED
            self._generation += 1
            raise
        self.frames += 1
        # The tick itself may have stopped the driver.
        if self.running and generation == self._generation:
            self._schedule_next()
