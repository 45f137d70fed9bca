# decide_metrics/config/constants.py
"""Fixed constants shared by the metric implementations."""

from __future__ import annotations


class SamplingConstants:
    """Limits on raw data retention and throttling."""

    # Absolute upper bound for raw history, regardless of configuration
    HARD_MAX_DATA_POINTS: int = 10000

    # Tolerance when comparing elapsed time against the sampling interval (s)
    THROTTLE_EPSILON_S: float = 1e-9

    # Number of event-log lines exposed in a live snapshot
    RECENT_EVENT_COUNT: int = 10


class SceneConstants:
    """Geometry conventions of the simulated scene."""

    # Local forward axis of heads and controllers
    FORWARD = (0.0, 0.0, 1.0)

    # Category base threat levels
    HOSTILE_THREAT: float = 100.0
    UNKNOWN_THREAT: float = 50.0
    FRIENDLY_THREAT: float = 10.0


class StressCategoryThresholds:
    """Upper (exclusive) bounds of the stress categories."""

    MINIMAL: float = 20.0
    LOW: float = 40.0
    MODERATE: float = 60.0
    HIGH: float = 80.0


class DespawnReasons:
    """Despawn reasons that count as a missed classification."""

    LEFT_PLAYGROUND = "left_playground"
    TIMEOUT = "timeout"
    CLASSIFIED = "classified"

    MISSED = frozenset({LEFT_PLAYGROUND, TIMEOUT})


class ValidationMessages:
    """Standard validation and error messages."""

    INVALID_SAMPLING_RATE = "sampling_rate_hz must be a finite value > 0 (got {value!r})"
    INVALID_MAX_DATA_POINTS = "max_data_points must be >= 1 (got {value!r})"
    INVALID_WEIGHT_SUM = "stress component weights must sum to 1.0 (got {value:.6f})"
    NEGATIVE_WEIGHT = "stress component weight '{name}' must be >= 0"
    INVALID_INTERVAL = "{name} must be a finite value > 0 (got {value!r})"
    INVALID_WINDOW = "{name} must be >= 1 (got {value!r})"
