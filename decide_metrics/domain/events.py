"""Derived events produced by the signal processors."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .samples import Hand, TargetCategory, TargetInfo, Vec3


@dataclass(frozen=True)
class FixationEvent:
    """Stable gaze period of at least the minimum fixation duration."""

    target: Optional[TargetInfo]
    object_name: Optional[str]
    duration: float
    start_time: float
    position: Vec3

    @property
    def category(self) -> Optional[TargetCategory]:
        return self.target.category if self.target is not None else None

    @property
    def end_time(self) -> float:
        return self.start_time + self.duration


@dataclass(frozen=True)
class SaccadeEvent:
    """Rapid gaze shift between fixations."""

    amplitude_deg: float
    # Time since the previous saccade
    duration: float
    velocity_deg_per_s: float
    timestamp: float


class InteractionKind(Enum):
    TRIGGER_PRESS = "TriggerPress"
    GRIP_PRESS = "GripPress"


@dataclass(frozen=True)
class InteractionEvent:
    kind: InteractionKind
    hand: Hand
    target_name: Optional[str]
    timestamp: float
    position: Vec3


@dataclass(frozen=True)
class GestureEvent:
    name: str
    timestamp: float


class StressEventKind(Enum):
    RAPID_INCREASE = "RapidIncrease"
    SUSTAINED_HIGH_STRESS = "SustainedHighStress"
    STRESS_RECOVERY = "StressRecovery"
    TRIGGERED = "Trigger"


@dataclass(frozen=True)
class StressEvent:
    kind: StressEventKind
    impact: float
    timestamp: float
    # Set for externally triggered responses
    source: Optional[str] = None

    @property
    def label(self) -> str:
        if self.kind is StressEventKind.TRIGGERED:
            return f"Trigger_{self.source}"
        return self.kind.value


@dataclass(frozen=True)
class SpatialScan:
    """Sustained horizontal sweep of the view direction."""

    start_angle: float
    end_angle: float
    duration: float
    objects_in_arc: int
    timestamp: float

    @property
    def arc(self) -> float:
        return abs(self.end_angle - self.start_angle)


@dataclass(frozen=True)
class AwarenessEvent:
    """First detection of a target."""

    identity: int
    category: TargetCategory
    # Seconds between spawn and detection
    detection_delay: float
    distance: float
    angle: float
    in_periphery: bool
    timestamp: float


@dataclass
class ThreatAssessment:
    """Live assessment of a detected target, refreshed while visible."""

    identity: int
    category: TargetCategory
    threat_level: float
    distance: float
    direction: Vec3
    tracked: bool
    last_seen: float
