"""Presets, tutorial steps, achievements and phase descriptions.

These are read-only consumers of :class:`SimulationState`; presets and
tutorial steps feed parameter patches back through
:meth:`SimulationSession.apply_patch`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable

from ..core.state import SimulationState

logger = logging.getLogger(__name__)


# ── Presets ──────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Preset:
    id: str
    name: str
    description: str
    difficulty: str  # beginner | intermediate | advanced
    state: dict[str, Any]


PRESETS: list[Preset] = [
    Preset(
        "resonance", "Perfect Resonance",
        "Achieve optimal cavity resonance conditions", "beginner",
        {"mirror_angle": 45, "mirror_spacing": 100, "magnetic_field": 0.5,
         "field_direction": 0, "inserted_material": "none"},
    ),
    Preset(
        "graphene-basic", "Graphene Introduction",
        "Basic graphene quantum effects", "beginner",
        {"mirror_angle": 42, "mirror_spacing": 95, "magnetic_field": 0.6,
         "field_direction": 30, "inserted_material": "graphene"},
    ),
    Preset(
        "topological", "Topological Phase",
        "Create topological quantum states", "intermediate",
        {"mirror_angle": 47, "mirror_spacing": 105, "magnetic_field": 0.8,
         "field_direction": 45, "inserted_material": "graphene"},
    ),
    Preset(
        "advanced-chiral", "Advanced Chirality",
        "Maximum chiral quantum effects", "advanced",
        {"mirror_angle": 50, "mirror_spacing": 110, "magnetic_field": 0.9,
         "field_direction": 90, "inserted_material": "bismuthene"},
    ),
]

PRESETS_BY_ID: dict[str, Preset] = {p.id: p for p in PRESETS}

DIFFICULTY_COLORS = {
    "beginner": "#34d399",
    "intermediate": "#fbbf24",
    "advanced": "#f87171",
}


def preset_available(preset: Preset, unlocked_materials: list[str]) -> bool:
    material = preset.state.get("inserted_material", "none")
    return material == "none" or material in unlocked_materials


# ── Tutorial ─────────────────────────────────────────────────────────

@dataclass(frozen=True)
class TutorialStep:
    id: int
    title: str
    description: str
    action: str
    target_state: dict[str, Any] | None = None
    highlight: tuple[str, ...] = ()


TUTORIAL_STEPS: list[TutorialStep] = [
    TutorialStep(
        1, "Welcome to Quantum Vacuum Manipulation",
        "This simulation lets you explore the fascinating world of quantum "
        "vacuum effects using cavity optomechanics.",
        "Click Next to begin your journey",
    ),
    TutorialStep(
        2, "Mirror Configuration",
        "Adjust the mirror angle and spacing to create optical cavities. "
        "The spacing determines resonance conditions.",
        "Try adjusting the Mirror Spacing to 100nm",
        {"mirror_spacing": 100}, ("mirror-spacing",),
    ),
    TutorialStep(
        3, "Mirror Angle Effects",
        "The mirror angle affects how light bounces within the cavity. "
        "45° often provides optimal conditions.",
        "Set the Mirror Angle to 45°",
        {"mirror_angle": 45}, ("mirror-angle",),
    ),
    TutorialStep(
        4, "Magnetic Field Control",
        "Apply magnetic fields to influence quantum states. Higher fields "
        "can induce topological phases.",
        "Increase the Magnetic Field to 0.7T",
        {"magnetic_field": 0.7}, ("magnetic-field",),
    ),
    TutorialStep(
        5, "Field Direction",
        "The direction of the magnetic field affects chirality - the "
        "handedness of quantum states.",
        "Adjust Field Direction to 45°",
        {"field_direction": 45}, ("field-direction",),
    ),
    TutorialStep(
        6, "Material Insertion",
        "Insert materials like graphene to enhance quantum effects. "
        "Different materials have unique properties.",
        "Select Graphene as the inserted material",
        {"inserted_material": "graphene"}, ("material-selector",),
    ),
    TutorialStep(
        7, "Start the Simulation",
        "Now start the simulation to see quantum field dynamics in real-time!",
        "Click the Start Simulation button",
        None, ("start-button",),
    ),
    TutorialStep(
        8, "Observe the Results",
        "Watch the energy, coherence, and topological phase indicators. "
        "Try to achieve a topological phase transition!",
        "Experiment with different parameters",
        None, ("energy", "coherence", "topological-phase"),
    ),
]


# ── Achievements ─────────────────────────────────────────────────────

@dataclass(frozen=True)
class Achievement:
    id: str
    name: str
    description: str
    condition: Callable[[SimulationState, int], bool]
    points: int
    rarity: str  # common | rare | epic | legendary


ACHIEVEMENTS: list[Achievement] = [
    Achievement(
        "first-topological", "Phase Pioneer",
        "Achieve your first topological phase transition",
        lambda s, _score: s.topological_phase, 50, "common",
    ),
    Achievement(
        "high-coherence", "Coherence Master",
        "Maintain 90% coherence or higher",
        lambda s, _score: s.coherence >= 90, 75, "rare",
    ),
    Achievement(
        "energy-efficiency", "Energy Wizard",
        "Reach 80+ energy with minimal magnetic field",
        lambda s, _score: s.energy >= 80 and s.magnetic_field <= 0.3, 100, "epic",
    ),
    Achievement(
        "perfect-resonance", "Resonance Expert",
        "Achieve perfect cavity resonance conditions",
        lambda s, _score: abs(s.mirror_spacing - 100) < 2 and abs(s.mirror_angle - 45) < 2,
        60, "rare",
    ),
    Achievement(
        "score-master", "Quantum Virtuoso",
        "Reach a total score of 500 points",
        lambda _s, score: score >= 500, 150, "epic",
    ),
    Achievement(
        "chiral-master", "Chirality Champion",
        "Achieve maximum chirality effects",
        lambda s, _score: abs(s.chirality) >= 0.8, 120, "legendary",
    ),
]

RARITY_COLORS = {
    "common": "#9ca3af",
    "rare": "#60a5fa",
    "epic": "#a78bfa",
    "legendary": "#facc15",
}


@dataclass
class AchievementTracker:
    """Remembers which achievements have been unlocked in this session."""

    unlocked: list[str] = field(default_factory=list)

    def update(self, state: SimulationState, score: int) -> list[Achievement]:
        """Unlock every achievement whose condition now holds; return the new ones."""
        fresh = []
        for achievement in ACHIEVEMENTS:
            if achievement.id in self.unlocked:
                continue
            if achievement.condition(state, score):
                self.unlocked.append(achievement.id)
                fresh.append(achievement)
                logger.info("achievement unlocked: %s", achievement.name)
        return fresh

    @property
    def total_points(self) -> int:
        return sum(a.points for a in ACHIEVEMENTS if a.id in self.unlocked)


# ── Phase indicator ──────────────────────────────────────────────────

@dataclass(frozen=True)
class PhaseDescription:
    name: str
    description: str
    color: str


def phase_description(state: SimulationState) -> PhaseDescription:
    """Classify the current state for the phase indicator panel."""
    if state.topological_phase:
        return PhaseDescription(
            "Topological Insulator Phase",
            "Material exhibits protected edge states with spin-momentum locking",
            "#34d399",
        )
    if state.energy > 70 and state.coherence > 50:
        return PhaseDescription(
            "High Energy Coherent State",
            "Strong vacuum fluctuations with maintained coherence",
            "#60a5fa",
        )
    if state.inserted_material != "none" and state.magnetic_field > 0.3:
        return PhaseDescription(
            "Symmetry Broken Phase",
            "Magnetic field breaks time-reversal symmetry",
            "#a78bfa",
        )
    return PhaseDescription(
        "Trivial Phase",
        "Standard material properties, no exotic states",
        "#9ca3af",
    )


def chirality_note(state: SimulationState) -> str | None:
    """Handedness message, or ``None`` when chirality is negligible."""
    if abs(state.chirality) <= 0.1:
        return None
    hand = "right" if state.chirality > 0 else "left"
    return f"Circularly polarized fluctuations are {hand}-handed"
