# decide_metrics/processing/scanning.py
"""Detection of horizontal scanning sweeps."""
from __future__ import annotations

from typing import Iterable, Optional

from ..config import SituationalAwarenessConfig
from ..core.geometry import wrap_angle_deg
from ..domain.events import SpatialScan


def bearings_in_arc(bearings: Iterable[float], start: float, sweep: float) -> int:
    """Count bearings inside the arc swept from ``start`` by ``sweep`` degrees."""
    if abs(sweep) >= 360.0:
        return sum(1 for _ in bearings)
    count = 0
    for bearing in bearings:
        offset = (bearing - start) % 360.0 if sweep >= 0 else (start - bearing) % 360.0
        if offset <= abs(sweep):
            count += 1
    return count


class ScanDetector:
    """
    A scan starts when the yaw changes by more than ``scan_start_deg`` between
    two ticks and ends once the change drops below ``scan_end_deg``. Scans
    longer than ``min_scan_duration_s`` are reported.
    """

    def __init__(self, cfg: SituationalAwarenessConfig | None = None) -> None:
        self.cfg = cfg or SituationalAwarenessConfig()
        self.reset()

    def reset(self) -> None:
        self._last_yaw: Optional[float] = None
        self._scanning = False
        self._start_time = 0.0
        self._start_angle = 0.0
        self._sweep = 0.0

    @property
    def scanning(self) -> bool:
        return self._scanning

    def update(self, yaw: float, now: float, bearings: Iterable[float] = ()) -> Optional[SpatialScan]:
        if self._last_yaw is None:
            self._last_yaw = yaw
            return None

        change = wrap_angle_deg(yaw - self._last_yaw)
        magnitude = abs(change)
        completed: Optional[SpatialScan] = None

        if self._scanning:
            self._sweep += change
        elif magnitude > self.cfg.scan_start_deg:
            self._scanning = True
            self._start_time = now
            self._start_angle = self._last_yaw
            self._sweep = change

        if self._scanning and magnitude < self.cfg.scan_end_deg:
            duration = now - self._start_time
            if duration > self.cfg.min_scan_duration_s:
                completed = SpatialScan(
                    start_angle=self._start_angle,
                    end_angle=self._start_angle + self._sweep,
                    duration=duration,
                    objects_in_arc=bearings_in_arc(bearings, self._start_angle, self._sweep),
                    timestamp=now,
                )
            self._scanning = False
            self._sweep = 0.0

        self._last_yaw = yaw
        return completed
