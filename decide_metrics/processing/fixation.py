# decide_metrics/processing/fixation.py
"""
Online fixation/saccade detection on a stream of 3D gaze points.

The angular change between consecutive gaze points, seen from the gaze
origin, is compared against ``fixation_threshold_deg``:

  - below: the current fixation keeps accumulating time
  - at or above: the fixation ends (emitted when long enough) and the shift
    is a saccade candidate; it is counted only when the previous saccade
    happened less than ``max_saccade_duration_s`` ago
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np

from ..config import GazeTrackingConfig
from ..core.geometry import angle_between_deg
from ..domain.events import FixationEvent, SaccadeEvent
from ..domain.samples import RaycastHit, TargetInfo

logger = logging.getLogger(__name__)


@dataclass
class GazeStep:
    """What a single processed gaze point produced."""

    angle_change_deg: float = 0.0
    is_fixating: bool = False
    fixation: Optional[FixationEvent] = None
    saccade: Optional[SaccadeEvent] = None
    target_switch: bool = False


class FixationDetector:
    """
    Stateful fixation/saccade classifier.

    A fixation is attributed to the first object hit during its window. The
    window opens with the first gaze point and after every saccade.
    """

    def __init__(self, cfg: GazeTrackingConfig | None = None) -> None:
        self.cfg = cfg or GazeTrackingConfig()
        self.reset(0.0)

    def reset(self, now: float) -> None:
        self._last_point: Optional[np.ndarray] = None
        self.fixation_time = 0.0
        self._window_target: Optional[TargetInfo] = None
        self._window_object: Optional[str] = None
        self._last_fixated_entity: Optional[TargetInfo] = None
        self.last_saccade_time = now
        self.switch_count = 0
        self.time_to_first_entity_fixation: Optional[float] = None

    @property
    def is_fixating(self) -> bool:
        return self.fixation_time >= self.cfg.min_fixation_duration_s

    def process(
        self,
        now: float,
        dt: float,
        origin: np.ndarray,
        gaze_point: np.ndarray,
        hit: Optional[RaycastHit],
        elapsed: float,
    ) -> GazeStep:
        if hit is not None and hit.target is not None and self.time_to_first_entity_fixation is None:
            if self.fixation_time >= self.cfg.min_fixation_duration_s:
                self.time_to_first_entity_fixation = elapsed

        if self._last_point is None:
            self._last_point = gaze_point
            self._observe(hit)
            return GazeStep()

        delta = angle_between_deg(gaze_point - origin, self._last_point - origin)
        step = GazeStep(angle_change_deg=delta)

        if delta < self.cfg.fixation_threshold_deg:
            self.fixation_time += dt
            self._observe(hit)
            step.is_fixating = self.is_fixating
        else:
            if self.is_fixating:
                step.fixation, step.target_switch = self._complete_fixation(now)
            step.saccade = self._saccade(now, dt, delta)
            self._clear_window()
            self._observe(hit)

        self._last_point = gaze_point
        return step

    def flush(self, now: float) -> Optional[FixationEvent]:
        """Close an open fixation (e.g. when recording stops)."""
        if not self.is_fixating:
            return None
        fixation, _ = self._complete_fixation(now)
        self._clear_window()
        return fixation

    def _observe(self, hit: Optional[RaycastHit]) -> None:
        if hit is None or self._window_object is not None:
            return
        self._window_object = hit.object_name
        self._window_target = hit.target

    def _clear_window(self) -> None:
        self.fixation_time = 0.0
        self._window_target = None
        self._window_object = None

    def _complete_fixation(self, now: float) -> tuple[FixationEvent, bool]:
        target = self._window_target
        object_name = self._window_object
        duration = self.fixation_time
        point = self._last_point if self._last_point is not None else np.zeros(3)
        event = FixationEvent(
            target=target,
            object_name=object_name,
            duration=duration,
            start_time=now - duration,
            position=tuple(float(c) for c in point),
        )
        switched = False
        if target is not None:
            last = self._last_fixated_entity
            if last is not None and last.identity != target.identity:
                self.switch_count += 1
                switched = True
            self._last_fixated_entity = target
        logger.debug("Fixation on %s for %.3fs", object_name or "empty space", duration)
        return event, switched

    def _saccade(self, now: float, dt: float, amplitude: float) -> Optional[SaccadeEvent]:
        gap = now - self.last_saccade_time
        self.last_saccade_time = now
        if gap >= self.cfg.max_saccade_duration_s:
            return None
        velocity = amplitude / dt if dt > 0 else 0.0
        return SaccadeEvent(amplitude_deg=amplitude, duration=gap, velocity_deg_per_s=velocity, timestamp=now)
