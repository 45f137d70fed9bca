# decide_metrics/config/config.py
"""
Configuration classes for the metrics engine.

This module defines every tunable of:
  - the shared metric lifecycle (sampling rate, raw history cap)
  - the individual metrics (gaze, controller, awareness, stress, ...)
  - the registry that drives them

Example:
    >>> from decide_metrics.config import MetricParameters, StressLevelConfig
    >>>
    >>> params = MetricParameters(sampling_rate_hz=60.0, auto_start=True)
    >>>
    >>> # Decouple the stress smoothing from the frame rate
    >>> stress_cfg = StressLevelConfig(smoothing_mode="time_constant")
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Dict, Literal, Tuple

from ..errors import ConfigurationError
from .constants import SamplingConstants, ValidationMessages


DEFAULT_STRESS_WEIGHTS: Dict[str, float] = {
    "heart_rate_variability": 0.2,
    "movement_jitter": 0.15,
    "reaction_time_delay": 0.15,
    "missed_targets": 0.1,
    "rapid_head_movement": 0.1,
    "trigger_pressure": 0.1,
    "environmental_stressors": 0.2,
}

DEFAULT_AWARENESS_WEIGHTS: Dict[str, float] = {
    "detection": 30.0,
    "coverage": 20.0,
    "prioritization": 25.0,
    "peripheral": 15.0,
    "scanning": 10.0,
}


def _require_positive(name: str, value: float) -> None:
    if not (isinstance(value, (int, float)) and math.isfinite(value) and value > 0):
        raise ConfigurationError(ValidationMessages.INVALID_INTERVAL.format(name=name, value=value))


def _require_window(name: str, value: int) -> None:
    if value < 1:
        raise ConfigurationError(ValidationMessages.INVALID_WINDOW.format(name=name, value=value))


@dataclass(frozen=True)
class MetricParameters:
    """
    Per-metric lifecycle parameters.

    Instances are immutable; swap them through ``update_parameters``.
    """

    # Processed samples per second; update() calls in between are dropped
    sampling_rate_hz: float = 30.0

    # Start recording as soon as the metric is constructed
    auto_start: bool = False

    # Echo raw data points and event-log lines at DEBUG level
    log_raw_data: bool = False

    # Extra statistics in analyze() (distance bands, per-type breakdowns)
    enable_advanced_analysis: bool = True

    # Raw history size; capped at SamplingConstants.HARD_MAX_DATA_POINTS
    max_data_points: int = 10000

    def __post_init__(self) -> None:
        rate = self.sampling_rate_hz
        if isinstance(rate, bool) or not isinstance(rate, (int, float)) or not math.isfinite(rate) or rate <= 0:
            raise ConfigurationError(ValidationMessages.INVALID_SAMPLING_RATE.format(value=rate))
        if self.max_data_points < 1:
            raise ConfigurationError(
                ValidationMessages.INVALID_MAX_DATA_POINTS.format(value=self.max_data_points)
            )

    @property
    def sampling_interval_s(self) -> float:
        return 1.0 / self.sampling_rate_hz

    @property
    def effective_max_data_points(self) -> int:
        return min(self.max_data_points, SamplingConstants.HARD_MAX_DATA_POINTS)


@dataclass(frozen=True)
class GazeTrackingConfig:
    """Fixation/saccade detection and scan-path settings."""

    # Gaze-point angle change below which the gaze counts as fixating (deg)
    fixation_threshold_deg: float = 2.0

    # Minimum accumulated duration of a fixation (s)
    min_fixation_duration_s: float = 0.1

    # Inter-saccade gaps at or above this are not counted as saccades (s)
    max_saccade_duration_s: float = 0.5

    # Gaze ray length; misses place the gaze point at this distance (m)
    raycast_distance_m: float = 100.0

    # Eye-openness (0..1) to pupil diameter (mm) scale
    pupil_scale_mm: float = 5.0
    base_pupil_diameter_mm: float = 3.5

    # Bounded gaze history used for the scan path
    history_size: int = 10000

    # Number of objects listed in top_gazed_objects
    top_gazed_count: int = 5

    def __post_init__(self) -> None:
        _require_positive("fixation_threshold_deg", self.fixation_threshold_deg)
        _require_positive("raycast_distance_m", self.raycast_distance_m)
        _require_window("history_size", self.history_size)


@dataclass(frozen=True)
class ControllerMovementConfig:
    """Tremor, aim stability, interaction and gesture settings."""

    # Trigger/grip value above which a press is registered
    press_threshold: float = 0.5

    # Rolling tremor window (s) and the minimum samples before analysing it
    tremor_window_s: float = 2.0
    tremor_min_samples: int = 30

    # Physiological tremor band (Hz)
    tremor_band_hz: Tuple[float, float] = (4.0, 12.0)

    # Intensity that maps to a tremor score of 100
    tremor_intensity_scale: float = 10.0

    # Rolling aim window (s), projection distance (m), minimum points
    aim_window_s: float = 1.0
    aim_distance_m: float = 10.0
    aim_min_points: int = 10

    # Mean deviation from the aim centroid that maps to a score of 0 (m)
    aim_tolerance_m: float = 0.5

    # Linear velocity or trigger value that marks a hand as active
    active_hand_threshold: float = 0.1

    # Cooldown of each gesture detector after it fires (s)
    gesture_cooldown_s: float = 0.5

    raycast_distance_m: float = 100.0

    # Bounded per-hand pose history
    history_size: int = 10000

    def __post_init__(self) -> None:
        _require_positive("tremor_window_s", self.tremor_window_s)
        _require_positive("aim_window_s", self.aim_window_s)
        _require_window("tremor_min_samples", self.tremor_min_samples)
        _require_window("history_size", self.history_size)


@dataclass(frozen=True)
class SituationalAwarenessConfig:
    """Spatial grid, threat tracking and scan detection settings."""

    # Grid cells per axis and cell size (deg); 36 x 10 deg covers the sphere
    grid_size: int = 36
    cell_size_deg: float = 10.0

    # Per-cell accumulated time cap and the coverage threshold (s)
    cell_cap_s: float = 1.0
    coverage_threshold_s: float = 0.1

    # Visibility
    detection_range_m: float = 50.0
    peripheral_fov_deg: float = 180.0
    central_fov_deg: float = 60.0
    require_line_of_sight: bool = True

    # Threats unseen for longer than this are forgotten (s)
    threat_timeout_s: float = 5.0

    # Number of highest threats checked for prioritisation
    top_threat_count: int = 3

    # Scan detection: start above, end below (deg per tick), minimum length (s)
    scan_start_deg: float = 5.0
    scan_end_deg: float = 1.0
    min_scan_duration_s: float = 0.5

    # Scans needed for a full scanning term
    scan_saturation: int = 10

    # Composite awareness score weights
    weights: Dict[str, float] = field(default_factory=lambda: dict(DEFAULT_AWARENESS_WEIGHTS))

    def __post_init__(self) -> None:
        _require_window("grid_size", self.grid_size)
        _require_positive("cell_size_deg", self.cell_size_deg)
        _require_positive("detection_range_m", self.detection_range_m)
        missing = set(DEFAULT_AWARENESS_WEIGHTS) - set(self.weights)
        if missing:
            raise ConfigurationError(f"awareness weights missing: {sorted(missing)}")


@dataclass(frozen=True)
class StressLevelConfig:
    """
    Composite stress model settings.

    ``smoothing_mode``:
      - "frame_coupled": blend factor ``clamp01(2 * dt)``; reproduces the
        reference model exactly but depends on the tick rate
      - "time_constant": blend factor ``1 - exp(-dt / tau)``; the same
        response at any tick rate
    """

    component_weights: Dict[str, float] = field(default_factory=lambda: dict(DEFAULT_STRESS_WEIGHTS))

    baseline: float = 20.0
    growth_rate: float = 0.5
    decay_rate: float = 0.1  # per second
    accumulation_bounds: Tuple[float, float] = (-10.0, 30.0)

    smoothing_mode: Literal["frame_coupled", "time_constant"] = "frame_coupled"
    smoothing_time_constant_s: float = 0.5

    # Seed for the simulated physiology
    seed: int = 0

    # Head yaw/pitch rate counted as a rapid head movement (deg/s)
    rapid_head_turn_deg_per_s: float = 120.0

    # Elapsed time at which time pressure saturates (s)
    time_pressure_phase_s: float = 300.0

    history_size: int = 10000

    def __post_init__(self) -> None:
        for name, weight in self.component_weights.items():
            if weight < 0:
                raise ConfigurationError(ValidationMessages.NEGATIVE_WEIGHT.format(name=name))
        total = sum(self.component_weights.values())
        if abs(total - 1.0) > 1e-6:
            raise ConfigurationError(ValidationMessages.INVALID_WEIGHT_SUM.format(value=total))
        if self.smoothing_mode not in ("frame_coupled", "time_constant"):
            raise ConfigurationError(f"unknown smoothing_mode: {self.smoothing_mode!r}")
        _require_positive("smoothing_time_constant_s", self.smoothing_time_constant_s)
        low, high = self.accumulation_bounds
        if low > high:
            raise ConfigurationError("accumulation_bounds must be (low, high) with low <= high")

    def weight(self, component: str) -> float:
        """Weight of a component; unknown components weigh 1.0."""
        return self.component_weights.get(component, 1.0)


@dataclass(frozen=True)
class ClassificationConfig:
    """Confusion matrix and spatial breakdown settings."""

    track_confusion_matrix: bool = True
    track_spatial_data: bool = True

    # Upper bounds of the close and mid distance bands (m)
    distance_bands_m: Tuple[float, float] = (10.0, 20.0)


@dataclass(frozen=True)
class ReactionTimeConfig:
    """Reaction-time statistics settings."""

    # Reaction times above this are outliers; spawns older than this expire (s)
    outlier_threshold_s: float = 10.0

    # Drop outliers instead of recording them flagged
    exclude_outliers: bool = False

    moving_average_window: int = 10
    track_per_type: bool = True

    def __post_init__(self) -> None:
        _require_positive("outlier_threshold_s", self.outlier_threshold_s)
        _require_window("moving_average_window", self.moving_average_window)


@dataclass(frozen=True)
class RegistryConfig:
    """Registry collection settings."""

    # Seconds between composite snapshot records
    collection_interval_s: float = 0.1

    scenario_name: str = "Unknown"

    def __post_init__(self) -> None:
        _require_positive("collection_interval_s", self.collection_interval_s)
