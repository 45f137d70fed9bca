# decide_metrics/stressors.py
"""Active environmental stressors, tracked from bus events."""
from __future__ import annotations

import logging
from typing import Dict, List

from .bus import EventBus
from .domain.results import StressorInfo
from .domain.scenario import StressorActivated, StressorDeactivated

logger = logging.getLogger(__name__)


class ActiveStressors:
    """
    Name-keyed set of running stressors. Instances are callable and return
    the current list, so they can be passed wherever a stressor source is
    expected.
    """

    def __init__(self) -> None:
        self._active: Dict[str, float] = {}

    def activate(self, name: str, intensity: float) -> None:
        self._active[name] = float(intensity)
        logger.debug("Stressor %s active at %.2f", name, intensity)

    def deactivate(self, name: str) -> None:
        self._active.pop(name, None)

    def clear(self) -> None:
        self._active.clear()

    def total_intensity(self) -> float:
        return sum(self._active.values())

    def __call__(self) -> List[StressorInfo]:
        return [StressorInfo(name=n, intensity=i) for n, i in self._active.items()]

    def __len__(self) -> int:
        return len(self._active)

    def on_activated(self, event: StressorActivated) -> None:
        self.activate(event.name, event.intensity)

    def on_deactivated(self, event: StressorDeactivated) -> None:
        self.deactivate(event.name)

    def subscribe(self, bus: EventBus) -> None:
        bus.subscribe(StressorActivated, self.on_activated)
        bus.subscribe(StressorDeactivated, self.on_deactivated)
