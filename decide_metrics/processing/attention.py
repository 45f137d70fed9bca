# decide_metrics/processing/attention.py
"""Scan-path and attention-distribution measures."""
from __future__ import annotations

from typing import Mapping, Sequence

import numpy as np

from ..core.statistics import normalized_entropy


def scan_path_length(points: Sequence[Sequence[float]]) -> float:
    """Sum of distances between consecutive gaze points."""
    if len(points) < 2:
        return 0.0
    arr = np.asarray(points, dtype=float)
    return float(np.linalg.norm(np.diff(arr, axis=0), axis=1).sum())


def scan_path_efficiency(points: Sequence[Sequence[float]]) -> float:
    """
    Path length divided by the straight distance from the first to the last
    point. 1.0 for a straight path; larger values mean more wandering. An
    empty path or one that returns to its start yields 1.0.
    """
    if len(points) < 2:
        return 1.0
    arr = np.asarray(points, dtype=float)
    optimal = float(np.linalg.norm(arr[-1] - arr[0]))
    if optimal <= 0:
        return 1.0
    return scan_path_length(points) / optimal


def attention_distribution(gaze_times: Mapping[object, float]) -> float:
    """Normalised Shannon entropy of gaze-time shares (0 focused, 1 even)."""
    return normalized_entropy(gaze_times)


def gaze_percentages(gaze_times: Mapping[str, float]) -> dict[str, float]:
    total = sum(gaze_times.values())
    return {k: (v / total * 100.0 if total > 0 else 0.0) for k, v in gaze_times.items()}
