"""State engine — derives energy, coherence, chirality and phase from controls.

:func:`derive` is a pure function of the control parameters and of the
previous topological-phase flag; :class:`SimulationSession` is the single
owner of the mutable session (controls, score, unlocked materials, run
flag) and calls :func:`derive` synchronously after every mutation.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable

import numpy as np

from ..core.config import INITIAL_UNLOCKED, PHASE_BONUS, PHASE_UNLOCK
from ..core.state import (
    CONTROL_NAMES,
    DEFAULT_CONTROLS,
    MATERIALS,
    ControlParams,
    SimulationState,
    normalize_name,
)

logger = logging.getLogger(__name__)

RESONANT_SPACING = 100.0
RESONANCE_TOLERANCE = 10.0
OPTIMAL_ANGLE = 45.0
ANGLE_TOLERANCE = 5.0
RESONANCE_GAIN = 1.5
ANGLE_GAIN = 1.3
COHERENCE_RATIO = 0.8
PHASE_MATERIAL = "graphene"
PHASE_FIELD_THRESHOLD = 0.7
PHASE_COHERENCE_THRESHOLD = 60.0


def js_round(value: float) -> int:
    """Round half up, like JavaScript's ``Math.round``."""
    return int(math.floor(value + 0.5))


@dataclass(frozen=True)
class Derivation:
    """Result of one :func:`derive` call."""

    state: SimulationState
    phase_entered: bool


def derive(
    controls: ControlParams,
    previous_topological_phase: bool = False,
) -> Derivation:
    """Compute the derived quantities for *controls*.

    Numeric controls outside their slider range are clamped first.
    ``phase_entered`` is true only on a false -> true transition of the
    topological phase relative to *previous_topological_phase*.
    """
    c = controls.clamped()

    resonance = abs(c.mirror_spacing - RESONANT_SPACING) < RESONANCE_TOLERANCE
    optimal_angle = abs(c.mirror_angle - OPTIMAL_ANGLE) < ANGLE_TOLERANCE

    energy = c.magnetic_field * 100.0
    if resonance:
        energy *= RESONANCE_GAIN
    if optimal_angle:
        energy *= ANGLE_GAIN

    coherence = min(100.0, energy * COHERENCE_RATIO)

    topological_phase = (
        c.inserted_material == PHASE_MATERIAL
        and c.magnetic_field > PHASE_FIELD_THRESHOLD
        and coherence > PHASE_COHERENCE_THRESHOLD
    )

    chirality = math.sin(math.radians(c.field_direction + c.mirror_angle)) * c.magnetic_field

    state = SimulationState(
        mirror_angle=c.mirror_angle,
        mirror_spacing=c.mirror_spacing,
        magnetic_field=c.magnetic_field,
        field_direction=c.field_direction,
        inserted_material=c.inserted_material,
        energy=js_round(energy),
        coherence=js_round(coherence),
        chirality=js_round(chirality * 100) / 100,
        topological_phase=topological_phase,
    )
    return Derivation(
        state=state,
        phase_entered=topological_phase and not previous_topological_phase,
    )


def derive_grid(
    mirror_angle: np.ndarray | float,
    mirror_spacing: np.ndarray | float,
    magnetic_field: np.ndarray | float,
) -> tuple[np.ndarray, np.ndarray]:
    """Vectorised energy/coherence over broadcastable parameter arrays.

    Returns unrounded ``(energy, coherence)`` arrays; useful for sweeps and
    heat maps where calling :func:`derive` per point would be slow.
    """
    angle = np.clip(np.asarray(mirror_angle, dtype=float), 0.0, 90.0)
    spacing = np.clip(np.asarray(mirror_spacing, dtype=float), 50.0, 200.0)
    field = np.clip(np.asarray(magnetic_field, dtype=float), 0.0, 1.0)

    energy = field * 100.0
    energy = np.where(np.abs(spacing - RESONANT_SPACING) < RESONANCE_TOLERANCE,
                      energy * RESONANCE_GAIN, energy)
    energy = np.where(np.abs(angle - OPTIMAL_ANGLE) < ANGLE_TOLERANCE,
                      energy * ANGLE_GAIN, energy)
    coherence = np.minimum(100.0, energy * COHERENCE_RATIO)
    return energy, coherence


# ── Session ──────────────────────────────────────────────────────────

PhaseListener = Callable[[SimulationState], None]
RunningListener = Callable[[bool], None]


@dataclass
class SessionStats:
    """Bookkeeping shown by the export panel."""

    start_time: datetime
    experiments_run: int = 0
    max_energy: int = 0
    max_coherence: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "startTime": self.start_time.isoformat(),
            "experimentsRun": self.experiments_run,
            "maxEnergy": self.max_energy,
            "maxCoherence": self.max_coherence,
        }


class SimulationSession:
    """Single-owner session state driven by parameter edits.

    All mutation goes through :meth:`set_parameter`, :meth:`apply_patch`,
    :meth:`set_running` and :meth:`reset`; each recomputes the derived
    state synchronously.  Phase-entered listeners are notified after the
    score and unlock side effects have been applied.
    """

    def __init__(self, controls: ControlParams | None = None) -> None:
        self.controls = controls or DEFAULT_CONTROLS
        self.state = SimulationState(**_control_kwargs(self.controls))
        self.score = 0
        self.unlocked_materials: list[str] = list(INITIAL_UNLOCKED)
        self.running = False
        self.stats = SessionStats(start_time=datetime.now())
        self._phase_listeners: list[PhaseListener] = []
        self._running_listeners: list[RunningListener] = []
        self._recompute()

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def subscribe(self, listener: PhaseListener) -> Callable[[], None]:
        """Register a phase-entered listener; returns an unsubscribe callable."""
        self._phase_listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._phase_listeners:
                self._phase_listeners.remove(listener)

        return unsubscribe

    def on_running_change(self, listener: RunningListener) -> None:
        self._running_listeners.append(listener)

    # ------------------------------------------------------------------
    # Inbound interface
    # ------------------------------------------------------------------

    def set_parameter(self, name: str, value: Any) -> SimulationState:
        """Apply a single control-field edit."""
        key = normalize_name(name)
        if key not in CONTROL_NAMES:
            raise KeyError(f"unknown control parameter: {name!r}")
        logger.debug("set %s = %r", key, value)
        return self._update({key: value})

    def apply_patch(self, patch: dict[str, Any]) -> SimulationState:
        """Apply several control fields at once (presets, tutorial).

        Derived keys in *patch* are ignored: they are never set directly.
        """
        changes = {}
        for name, value in patch.items():
            key = normalize_name(name)
            if key in CONTROL_NAMES:
                changes[key] = value
        return self._update(changes)

    def set_running(self, running: bool) -> None:
        running = bool(running)
        if running == self.running:
            return
        self.running = running
        if running:
            self.stats.experiments_run += 1
        logger.info("simulation %s", "started" if running else "stopped")
        for listener in list(self._running_listeners):
            listener(running)

    def toggle_running(self) -> bool:
        self.set_running(not self.running)
        return self.running

    def reset(self) -> SimulationState:
        """Restore the default controls and stop; score and unlocks persist."""
        logger.info("session reset to default controls")
        self.set_running(False)
        self.controls = DEFAULT_CONTROLS
        # Phase flag starts cleared, so re-entering the phase scores again.
        self.state = SimulationState(**_control_kwargs(self.controls))
        return self._recompute()

    def is_unlocked(self, material: str) -> bool:
        return material == "none" or material in self.unlocked_materials

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _update(self, changes: dict[str, Any]) -> SimulationState:
        if "inserted_material" in changes and changes["inserted_material"] not in MATERIALS:
            raise ValueError(f"unknown material: {changes['inserted_material']!r}")
        for key in changes:
            if key != "inserted_material":
                changes[key] = float(changes[key])
        self.controls = self.controls.replace(**changes).clamped()
        return self._recompute()

    def _recompute(self) -> SimulationState:
        result = derive(self.controls, self.state.topological_phase)
        self.state = result.state
        self.stats.max_energy = max(self.stats.max_energy, self.state.energy)
        self.stats.max_coherence = max(self.stats.max_coherence, self.state.coherence)
        if result.phase_entered:
            self._on_phase_entered()
        return self.state

    def _on_phase_entered(self) -> None:
        self.score += PHASE_BONUS
        logger.info("topological phase entered, score=%d", self.score)
        if PHASE_UNLOCK not in self.unlocked_materials:
            self.unlocked_materials.append(PHASE_UNLOCK)
            logger.info("material unlocked: %s", PHASE_UNLOCK)
        for listener in list(self._phase_listeners):
            listener(self.state)


def _control_kwargs(controls: ControlParams) -> dict[str, Any]:
    return {name: getattr(controls, name) for name in CONTROL_NAMES}
