# decide_metrics/core/clock.py
"""Simulation time source shared by the registry and its metrics."""
from __future__ import annotations


class SimulationClock:
    """Monotonic clock advanced explicitly by the tick driver."""

    def __init__(self, start: float = 0.0) -> None:
        self._now = float(start)

    @property
    def now(self) -> float:
        return self._now

    def advance(self, dt: float) -> float:
        if dt < 0:
            raise ValueError(f"dt must be >= 0 (got {dt!r})")
        self._now += dt
        return self._now

    def __repr__(self) -> str:
        return f"SimulationClock(now={self._now:.6f})"
