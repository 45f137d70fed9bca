# decide_metrics/processing/gestures.py
"""Heuristic gesture detectors over recent controller frames."""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Mapping, Optional

import numpy as np

from ..core.buffers import BoundedHistory
from ..core.statistics import sample_variance
from ..domain.events import GestureEvent
from ..domain.samples import Hand
from .kinematics import ControllerFrame

Histories = Mapping[Hand, BoundedHistory[ControllerFrame]]


class GestureDetector(ABC):
    """Strategy interface for a single gesture with its own cooldown."""

    name: str = "Gesture"

    def __init__(self, cooldown_s: float = 0.5) -> None:
        self.cooldown_s = cooldown_s
        self._last_fired: Optional[float] = None

    def reset(self) -> None:
        self._last_fired = None

    def evaluate(self, now: float, histories: Histories) -> Optional[GestureEvent]:
        if self._last_fired is not None and now - self._last_fired < self.cooldown_s:
            return None
        if not self.matches(histories):
            return None
        self._last_fired = now
        return GestureEvent(name=self.name, timestamp=now)

    @abstractmethod
    def matches(self, histories: Histories) -> bool:
        """Return True when the recent frames show the gesture."""
        raise NotImplementedError


class PointingGesture(GestureDetector):
    """Right arm extended forward with the trigger held."""

    name = "Pointing"
    window = 10

    def matches(self, histories: Histories) -> bool:
        history = histories.get(Hand.RIGHT)
        if history is None or len(history) < self.window:
            return False
        recent = history.last(self.window)
        trigger = float(np.mean([f.trigger for f in recent]))
        reach = float(np.mean([f.position[2] for f in recent]))
        return trigger > 0.7 and reach > 0.3


class WavingGesture(GestureDetector):
    """Rapid side-to-side movement of the right hand."""

    name = "Waving"
    window = 30

    def matches(self, histories: Histories) -> bool:
        history = histories.get(Hand.RIGHT)
        if history is None or len(history) < self.window:
            return False
        xs = [float(f.position[0]) for f in history.last(self.window)]
        return sample_variance(xs) > 0.1


class GrabbingGesture(GestureDetector):
    """Both grips squeezed."""

    name = "Grabbing"

    def matches(self, histories: Histories) -> bool:
        for hand in (Hand.LEFT, Hand.RIGHT):
            history = histories.get(hand)
            latest = history.newest() if history is not None else None
            if latest is None or latest.grip <= 0.7:
                return False
        return True


def default_gesture_detectors(cooldown_s: float = 0.5) -> List[GestureDetector]:
    return [PointingGesture(cooldown_s), WavingGesture(cooldown_s), GrabbingGesture(cooldown_s)]
