from typing import Callable, Optional

import pytest

from decide_metrics.bus import EventBus
from decide_metrics.config import MetricParameters
from decide_metrics.core.clock import SimulationClock
from decide_metrics.domain.samples import RaycastHit, TargetCategory, TargetInfo, Vec3
from decide_metrics.domain.scenario import TargetClassified

HEAD: Vec3 = (0.0, 1.7, 0.0)


class FixedRaycaster:
    """Returns the same hit for every ray (or None once ``hit`` is cleared)."""

    def __init__(self, hit: Optional[RaycastHit] = None) -> None:
        self.hit = hit
        self.calls = 0

    def __call__(self, origin, direction, max_distance):
        self.calls += 1
        return self.hit


def target_hit(identity: int, category: TargetCategory, point: Vec3 = (0.0, 1.7, 10.0)) -> RaycastHit:
    info = TargetInfo(identity, category)
    return RaycastHit(point=point, object_name=info.name, distance=10.0, target=info)


def classified(
    identity: int,
    actual: TargetCategory,
    chosen: TargetCategory,
    reaction_time: float = 1.0,
    target_position: Vec3 = (0.0, 0.0, 5.0),
) -> TargetClassified:
    return TargetClassified(
        identity=identity,
        actual_category=actual,
        classified_as=chosen,
        is_correct=actual is chosen,
        reaction_time=reaction_time,
        target_position=target_position,
        operator_position=(0.0, 0.0, 0.0),
    )


@pytest.fixture
def clock() -> SimulationClock:
    return SimulationClock()


@pytest.fixture
def params() -> MetricParameters:
    """60 Hz sampling so every 60 Hz tick is processed."""
    return MetricParameters(sampling_rate_hz=60.0)


@pytest.fixture
def bus() -> EventBus:
    return EventBus()


@pytest.fixture
def drive(clock) -> Callable:
    """Advance the shared clock and update ``metric`` ``ticks`` times."""

    def _drive(metric, ticks: int, dt: float = 1 / 60, before_tick: Optional[Callable[[int], None]] = None):
        for i in range(ticks):
            if before_tick is not None:
                before_tick(i)
            clock.advance(dt)
            metric.update(dt)
        return metric

    return _drive
