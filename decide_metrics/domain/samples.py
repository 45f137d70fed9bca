"""Raw per-tick samples handed to the metrics by external sources.

The classes carry only data. Vectors are plain ``(x, y, z)`` tuples in metres,
rotations are unit quaternions ``(w, x, y, z)``. The metrics convert them to
numpy arrays internally and never mutate a sample.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol, Tuple

Vec3 = Tuple[float, float, float]
Quat = Tuple[float, float, float, float]

IDENTITY_ROTATION: Quat = (1.0, 0.0, 0.0, 0.0)


class Hand(Enum):
    """Controller hand."""

    LEFT = "Left"
    RIGHT = "Right"

    @property
    def label(self) -> str:
        return self.value


class TargetCategory(Enum):
    """Ground-truth category of a scene target (avatar)."""

    HOSTILE = "Hostile"
    FRIENDLY = "Friendly"
    UNKNOWN = "Unknown"

    @classmethod
    def parse(cls, value: "str | TargetCategory") -> "TargetCategory":
        if isinstance(value, cls):
            return value
        for member in cls:
            if member.value.lower() == str(value).lower():
                return member
        raise ValueError(f"Unknown target category: {value!r}")


@dataclass(frozen=True)
class TargetInfo:
    """A trackable scene entity."""

    identity: int
    category: TargetCategory

    @property
    def name(self) -> str:
        return f"{self.category.value}_{self.identity}"


@dataclass(frozen=True)
class RaycastHit:
    """Result of a scene raycast."""

    point: Vec3
    object_name: str
    distance: float
    target: Optional[TargetInfo] = None


class Raycaster(Protocol):
    """Scene query: first hit along a ray, or ``None`` when nothing is hit."""

    def __call__(self, origin: Vec3, direction: Vec3, max_distance: float) -> Optional[RaycastHit]:
        ...


def no_hit_raycaster(origin: Vec3, direction: Vec3, max_distance: float) -> Optional[RaycastHit]:
    """Raycaster for an empty scene."""
    return None


@dataclass(frozen=True)
class HeadSample:
    """Head (camera) pose."""

    position: Vec3
    forward: Vec3


@dataclass(frozen=True)
class GazeSample:
    """
    Eye-tracker reading plus the head pose it is anchored to.

    Every eye field is optional; without them the head forward vector is
    used as the gaze direction.
    """

    head_position: Vec3
    head_forward: Vec3
    fixation_point: Optional[Vec3] = None
    left_eye_direction: Optional[Vec3] = None
    right_eye_direction: Optional[Vec3] = None
    # Eye openness in [0, 1]
    left_eye_openness: Optional[float] = None
    right_eye_openness: Optional[float] = None

    @classmethod
    def from_head(cls, head: HeadSample) -> "GazeSample":
        return cls(head_position=head.position, head_forward=head.forward)


@dataclass(frozen=True)
class ControllerSample:
    """Pose and input state of one hand controller."""

    hand: Hand
    position: Vec3
    rotation: Quat = IDENTITY_ROTATION
    trigger: float = 0.0
    grip: float = 0.0
    primary_button: bool = False
    secondary_button: bool = False


@dataclass(frozen=True)
class PhysiologicalSample:
    """Measured physiology; missing fields keep their simulated values."""

    heart_rate: Optional[float] = None
    heart_rate_variability: Optional[float] = None
    skin_conductance: Optional[float] = None
    pupil_diameter: Optional[float] = None
