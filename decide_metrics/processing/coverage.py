# decide_metrics/processing/coverage.py
"""Spatial coverage grid over view yaw and pitch."""
from __future__ import annotations

import math
from typing import Dict, Sequence, Tuple

import numpy as np

from ..config import SituationalAwarenessConfig
from ..core.geometry import pitch_deg, yaw_deg


class SpatialCoverageGrid:
    """
    ``grid_size`` x ``grid_size`` cells over (yaw, pitch). Each visit adds the
    step time to the cell under the view direction, capped per cell.
    """

    def __init__(self, cfg: SituationalAwarenessConfig | None = None) -> None:
        self.cfg = cfg or SituationalAwarenessConfig()
        self.cells = np.zeros((self.cfg.grid_size, self.cfg.grid_size), dtype=float)

    def reset(self) -> None:
        self.cells.fill(0.0)

    def cell_index(self, direction: Sequence[float]) -> Tuple[int, int]:
        size = self.cfg.grid_size
        step = self.cfg.cell_size_deg
        yaw_index = int(math.floor((yaw_deg(direction) + 180.0) / step)) % size
        pitch_index = int(math.floor((pitch_deg(direction) + 90.0) / step)) % size
        return yaw_index, pitch_index

    def mark(self, direction: Sequence[float], dt: float) -> Tuple[int, int]:
        i, j = self.cell_index(direction)
        self.cells[i, j] = min(self.cells[i, j] + dt, self.cfg.cell_cap_s)
        return i, j

    @property
    def covered(self) -> np.ndarray:
        return self.cells > self.cfg.coverage_threshold_s

    def coverage_percent(self) -> float:
        return float(self.covered.sum()) / self.cells.size * 100.0

    def quadrant_coverage(self) -> Dict[str, float]:
        """Covered share of each horizontal quadrant, in percent."""
        counts = {"front": 0, "rear": 0, "left": 0, "right": 0}
        covered = self.covered
        for i in range(self.cfg.grid_size):
            n = int(covered[i].sum())
            if n == 0:
                continue
            angle = i * self.cfg.cell_size_deg - 180.0
            if -45.0 <= angle <= 45.0:
                counts["front"] += n
            elif angle >= 135.0 or angle <= -135.0:
                counts["rear"] += n
            elif 45.0 < angle < 135.0:
                counts["right"] += n
            else:
                counts["left"] += n
        per_quadrant = self.cells.size / 4.0
        return {k: v / per_quadrant * 100.0 for k, v in counts.items()}
