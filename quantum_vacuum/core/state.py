"""Control parameters and simulation state for the vacuum cavity model."""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields, replace
from typing import Any


@dataclass(frozen=True)
class Material:
    """Static description of an insertable material."""

    name: str
    description: str
    color: str
    properties: str


MATERIALS: dict[str, Material] = {
    "none": Material("No Material", "Empty cavity", "#4b5563", "Baseline state"),
    "graphene": Material(
        "Graphene", "Single layer carbon atoms", "#1f2937",
        "High conductivity, Dirac fermions",
    ),
    "bismuthene": Material(
        "Bismuthene", "Topological insulator", "#9333ea",
        "Spin-orbit coupling, edge states",
    ),
    "twisted-bilayer": Material(
        "Twisted Bilayer", "Magic angle graphene", "#2563eb",
        "Superconductivity, flat bands",
    ),
    "phosphorene": Material(
        "Phosphorene", "Black phosphorus monolayer", "#ea580c",
        "Anisotropic transport",
    ),
}

# (min, max, step) of each numeric control, matching the UI sliders.
PARAMETER_RANGES: dict[str, tuple[float, float, float]] = {
    "mirror_angle": (0.0, 90.0, 1.0),
    "mirror_spacing": (50.0, 200.0, 1.0),
    "magnetic_field": (0.0, 1.0, 0.01),
    "field_direction": (0.0, 360.0, 1.0),
}

# camelCase names used by exports and by patches coming from the UI layer.
CAMEL_NAMES: dict[str, str] = {
    "mirror_angle": "mirrorAngle",
    "mirror_spacing": "mirrorSpacing",
    "magnetic_field": "magneticField",
    "field_direction": "fieldDirection",
    "inserted_material": "insertedMaterial",
    "energy": "energy",
    "coherence": "coherence",
    "chirality": "chirality",
    "topological_phase": "topologicalPhase",
}
_SNAKE_NAMES = {camel: snake for snake, camel in CAMEL_NAMES.items()}


def normalize_name(name: str) -> str:
    """Map a camelCase or snake_case field name to its snake_case form."""
    return _SNAKE_NAMES.get(name, name)


@dataclass(frozen=True)
class ControlParams:
    """The five user-controlled inputs of the model."""

    mirror_angle: float = 45.0
    mirror_spacing: float = 100.0
    magnetic_field: float = 0.5
    field_direction: float = 0.0
    inserted_material: str = "none"

    def clamped(self) -> ControlParams:
        """Return a copy with every numeric field clamped into its range."""
        changes: dict[str, float] = {}
        for name, (lo, hi, _step) in PARAMETER_RANGES.items():
            value = float(getattr(self, name))
            changes[name] = min(hi, max(lo, value))
        return replace(self, **changes)

    def replace(self, **patch: Any) -> ControlParams:
        return replace(self, **patch)


CONTROL_NAMES: tuple[str, ...] = tuple(f.name for f in fields(ControlParams))

DEFAULT_CONTROLS = ControlParams()


@dataclass(frozen=True)
class SimulationState:
    """Immutable snapshot: control fields plus the quantities derived from them."""

    mirror_angle: float = 45.0
    mirror_spacing: float = 100.0
    magnetic_field: float = 0.5
    field_direction: float = 0.0
    inserted_material: str = "none"
    energy: int = 0
    coherence: int = 0
    chirality: float = 0.0
    topological_phase: bool = False

    @property
    def controls(self) -> ControlParams:
        return ControlParams(
            mirror_angle=self.mirror_angle,
            mirror_spacing=self.mirror_spacing,
            magnetic_field=self.magnetic_field,
            field_direction=self.field_direction,
            inserted_material=self.inserted_material,
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialise using the camelCase keys of the exported format."""
        return {CAMEL_NAMES[k]: v for k, v in asdict(self).items()}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SimulationState:
        known = {f.name for f in fields(cls)}
        kwargs = {normalize_name(k): v for k, v in data.items()}
        return cls(**{k: v for k, v in kwargs.items() if k in known})
