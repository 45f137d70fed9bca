# decide_metrics/core/geometry.py
"""Vector and quaternion helpers on numpy arrays.

Conventions: +z is forward, +y is up, quaternions are ``(w, x, y, z)``.
Angles are returned in degrees.
"""
from __future__ import annotations

import math
from typing import Iterable, Sequence

import numpy as np

FORWARD = np.array([0.0, 0.0, 1.0])

_EPS = 1e-12


def as_vec(v: Sequence[float]) -> np.ndarray:
    return np.asarray(v, dtype=float)


def normalize(v: Sequence[float]) -> np.ndarray:
    """Unit vector, or the zero vector for (near) zero input."""
    arr = as_vec(v)
    norm = float(np.linalg.norm(arr))
    if norm < _EPS:
        return np.zeros_like(arr)
    return arr / norm


def distance(a: Sequence[float], b: Sequence[float]) -> float:
    return float(np.linalg.norm(as_vec(a) - as_vec(b)))


def angle_between_deg(a: Sequence[float], b: Sequence[float]) -> float:
    """Unsigned angle between two vectors; 0 when either has no length."""
    va, vb = as_vec(a), as_vec(b)
    denom = float(np.linalg.norm(va) * np.linalg.norm(vb))
    if denom < _EPS:
        return 0.0
    cos = float(np.dot(va, vb)) / denom
    return math.degrees(math.acos(max(-1.0, min(1.0, cos))))


def quat_rotate(q: Sequence[float], v: Sequence[float]) -> np.ndarray:
    """Rotate vector ``v`` by unit quaternion ``q``."""
    w, x, y, z = (float(c) for c in q)
    u = np.array([x, y, z])
    vec = as_vec(v)
    return vec + 2.0 * np.cross(u, np.cross(u, vec) + w * vec)


def forward_from_rotation(q: Sequence[float]) -> np.ndarray:
    return quat_rotate(q, FORWARD)


def quat_angle_deg(q1: Sequence[float], q2: Sequence[float]) -> float:
    """Smallest rotation angle that takes ``q1`` to ``q2``."""
    a = normalize(q1)
    b = normalize(q2)
    dot = min(abs(float(np.dot(a, b))), 1.0)
    if dot > 1.0 - 1e-9:
        return 0.0
    return math.degrees(2.0 * math.acos(dot))


def yaw_deg(direction: Sequence[float]) -> float:
    """Heading around +y, 0 at +z, positive towards +x, in (-180, 180]."""
    d = as_vec(direction)
    return math.degrees(math.atan2(d[0], d[2]))


def pitch_deg(direction: Sequence[float]) -> float:
    d = normalize(direction)
    return math.degrees(math.asin(max(-1.0, min(1.0, float(d[1])))))


def wrap_angle_deg(angle: float) -> float:
    """Map an angle difference to [-180, 180)."""
    return (angle + 180.0) % 360.0 - 180.0


def centroid(points: Iterable[Sequence[float]]) -> np.ndarray:
    arr = np.asarray(list(points), dtype=float)
    return arr.mean(axis=0)
