# decide_metrics/processing/kinematics.py
"""Per-hand controller kinematics."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np

from ..core.geometry import as_vec, quat_angle_deg
from ..domain.samples import ControllerSample, Hand, Quat


@dataclass(frozen=True)
class ControllerFrame:
    """A controller sample enriched with the velocities derived from it."""

    hand: Hand
    timestamp: float
    position: np.ndarray
    rotation: Quat
    linear_velocity: float
    angular_velocity: float
    trigger: float
    grip: float
    primary_button: bool
    secondary_button: bool


class HandKinematics:
    """Velocity, cumulative movement and maxima of one hand."""

    def __init__(self, hand: Hand) -> None:
        self.hand = hand
        self.reset()

    def reset(self) -> None:
        self.last_position: Optional[np.ndarray] = None
        self.last_rotation: Optional[Quat] = None
        self.total_linear = 0.0
        self.total_angular = 0.0
        self.max_linear_velocity = 0.0
        self.max_angular_velocity = 0.0

    def step(self, sample: ControllerSample, dt: float, now: float) -> ControllerFrame:
        position = as_vec(sample.position)
        linear = 0.0
        angular = 0.0
        if self.last_position is not None and dt > 0:
            linear = float(np.linalg.norm(position - self.last_position)) / dt
            angular = quat_angle_deg(sample.rotation, self.last_rotation) / dt
            self.total_linear += linear * dt
            self.total_angular += angular * dt
            self.max_linear_velocity = max(self.max_linear_velocity, linear)
            self.max_angular_velocity = max(self.max_angular_velocity, angular)
        self.last_position = position
        self.last_rotation = sample.rotation
        return ControllerFrame(
            hand=sample.hand,
            timestamp=now,
            position=position,
            rotation=sample.rotation,
            linear_velocity=linear,
            angular_velocity=angular,
            trigger=sample.trigger,
            grip=sample.grip,
            primary_button=sample.primary_button,
            secondary_button=sample.secondary_button,
        )
