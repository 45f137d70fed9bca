"""Domain events delivered by the scenario over the event bus."""
from __future__ import annotations

from dataclasses import dataclass

from .samples import TargetCategory, Vec3


@dataclass(frozen=True)
class ScenarioStarted:
    scenario_name: str
    duration: float = 0.0


@dataclass(frozen=True)
class ScenarioEnded:
    scenario_name: str
    elapsed_time: float
    total_classifications: int = 0
    correct_classifications: int = 0


@dataclass(frozen=True)
class TargetSpawned:
    identity: int
    category: TargetCategory
    position: Vec3


@dataclass(frozen=True)
class TargetMoved:
    identity: int
    position: Vec3


@dataclass(frozen=True)
class TargetClassified:
    """The operator labelled a target."""

    identity: int
    actual_category: TargetCategory
    classified_as: TargetCategory
    is_correct: bool
    # Reaction time as measured by the scenario (s)
    reaction_time: float
    target_position: Vec3
    operator_position: Vec3


@dataclass(frozen=True)
class TargetDespawned:
    identity: int
    # "left_playground", "classified" or "timeout"
    reason: str


@dataclass(frozen=True)
class TargetDetected:
    """External detection notice (e.g. the target entered the view frustum)."""

    identity: int


@dataclass(frozen=True)
class TargetLost:
    identity: int


@dataclass(frozen=True)
class StressorActivated:
    name: str
    intensity: float


@dataclass(frozen=True)
class StressorDeactivated:
    name: str

