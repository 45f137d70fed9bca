# decide_metrics/processing/tremor.py
"""
Hand tremor and aim stability estimators.

Tremor is estimated from a rolling window of linear-velocity samples. The
dominant frequency is approximated by counting zero crossings about the
window mean; only frequencies in the physiological tremor band contribute.
"""
from __future__ import annotations

from typing import Sequence, Tuple

import numpy as np

from ..config import ControllerMovementConfig
from ..core.buffers import BoundedHistory
from ..core.statistics import clamp01

_FLAT_SIGNAL = 1e-9


def window_capacity(window_s: float, dt: float) -> int:
    """Samples that fit in ``window_s`` at step ``dt`` (at least one)."""
    if dt <= 0:
        return 1
    return max(1, int(round(window_s / dt)))


def zero_crossing_frequency(values: Sequence[float], dt: float) -> float:
    """Zero crossings about the mean divided by twice the window duration."""
    n = len(values)
    if n < 2 or dt <= 0:
        return 0.0
    arr = np.asarray(values, dtype=float)
    # Rounding noise on a constant signal is not oscillation
    if float(np.ptp(arr)) < _FLAT_SIGNAL:
        return 0.0
    centered = arr - float(arr.mean())
    crossings = int(np.count_nonzero(centered[:-1] * centered[1:] < 0))
    return crossings / (2.0 * n * dt)


def tremor_intensity(values: Sequence[float], dt: float, band: Tuple[float, float]) -> float:
    """Peak-to-peak velocity scaled by frequency, 0 outside ``band``."""
    frequency = zero_crossing_frequency(values, dt)
    low, high = band
    if not (low <= frequency <= high):
        return 0.0
    arr = np.asarray(values, dtype=float)
    return float(arr.max() - arr.min()) * (frequency / high)


class TremorEstimator:
    """Rolling tremor score in [0, 100] for one hand."""

    def __init__(self, cfg: ControllerMovementConfig | None = None) -> None:
        self.cfg = cfg or ControllerMovementConfig()
        self._velocities: BoundedHistory[float] = BoundedHistory(
            window_capacity(self.cfg.tremor_window_s, 1 / 30)
        )
        self.score = 0.0

    def reset(self) -> None:
        self._velocities.clear()
        self.score = 0.0

    def __len__(self) -> int:
        return len(self._velocities)

    def push(self, velocity: float, dt: float) -> float:
        self._velocities.resize(window_capacity(self.cfg.tremor_window_s, dt))
        self._velocities.append(velocity)
        if len(self._velocities) >= self.cfg.tremor_min_samples:
            intensity = tremor_intensity(self._velocities.to_list(), dt, self.cfg.tremor_band_hz)
            self.score = clamp01(intensity / self.cfg.tremor_intensity_scale) * 100.0
        return self.score


class AimStabilityTracker:
    """Rolling aim stability score in [0, 100]; 100 until enough points."""

    def __init__(self, cfg: ControllerMovementConfig | None = None) -> None:
        self.cfg = cfg or ControllerMovementConfig()
        self._points: BoundedHistory[np.ndarray] = BoundedHistory(
            window_capacity(self.cfg.aim_window_s, 1 / 30)
        )
        self.score = 100.0

    def reset(self) -> None:
        self._points.clear()
        self.score = 100.0

    def push(self, position: np.ndarray, forward: np.ndarray, dt: float) -> float:
        self._points.resize(window_capacity(self.cfg.aim_window_s, dt))
        self._points.append(position + forward * self.cfg.aim_distance_m)
        if len(self._points) >= self.cfg.aim_min_points:
            pts = np.asarray(self._points.to_list())
            center = pts.mean(axis=0)
            deviation = float(np.linalg.norm(pts - center, axis=1).mean())
            self.score = clamp01(1.0 - deviation / self.cfg.aim_tolerance_m) * 100.0
        return self.score
