# decide_metrics/core/statistics.py
"""Descriptive statistics shared by the metric reports.

All helpers return 0.0 for inputs too short to define the statistic, so
reports stay numeric while a session has little data.
"""
from __future__ import annotations

import math
from typing import Mapping, Sequence

import numpy as np


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def clamp01(value: float) -> float:
    return clamp(value, 0.0, 1.0)


def lerp(a: float, b: float, t: float) -> float:
    """Linear blend with ``t`` clamped to [0, 1] (never overshoots ``b``)."""
    t = clamp01(t)
    return a + (b - a) * t


def mean(values: Sequence[float]) -> float:
    if len(values) == 0:
        return 0.0
    return float(np.mean(values))


def median(values: Sequence[float]) -> float:
    if len(values) == 0:
        return 0.0
    return float(np.median(values))


def sample_variance(values: Sequence[float]) -> float:
    """Unbiased variance (n - 1 denominator)."""
    if len(values) <= 1:
        return 0.0
    return float(np.var(values, ddof=1))


def sample_std(values: Sequence[float]) -> float:
    if len(values) <= 1:
        return 0.0
    return float(np.std(values, ddof=1))


def population_variance(values: Sequence[float]) -> float:
    if len(values) == 0:
        return 0.0
    return float(np.var(values))


def percentile(values: Sequence[float], p: float) -> float:
    """
    Nearest-rank percentile.

    ``index = clamp(ceil(p / 100 * n) - 1, 0, n - 1)`` over the sorted values.
    """
    n = len(values)
    if n == 0:
        return 0.0
    ordered = sorted(values)
    index = int(math.ceil(p * n / 100.0)) - 1
    index = int(clamp(index, 0, n - 1))
    return float(ordered[index])


def coefficient_of_variation(values: Sequence[float]) -> float:
    if len(values) < 2:
        return 0.0
    m = mean(values)
    if m == 0:
        return 0.0
    return sample_std(values) / m


def normalized_entropy(weights: Mapping[object, float]) -> float:
    """Shannon entropy (base 2) of the shares, divided by log2(k)."""
    total = sum(weights.values())
    if not weights or total <= 0:
        return 0.0
    entropy = 0.0
    for w in weights.values():
        p = w / total
        if p > 0:
            entropy -= p * math.log2(p)
    max_entropy = math.log2(len(weights))
    return entropy / max_entropy if max_entropy > 0 else 0.0
