# decide_metrics/processing/stress.py
"""
Composite stress model.

The model has four parts:
  - PhysiologyModel: simulated heart rate, HRV, skin conductance and pupil
    diameter that follow the stress level (measured values override them)
  - compute_raw_stress: baseline plus weighted physiological, behavioural,
    environmental and performance sub-scores
  - StressDynamics: bounded accumulation and smoothing of the raw score
  - StressEventDetector: rapid increase, sustained high stress, recovery
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Sequence

import numpy as np

from ..config import StressLevelConfig
from ..config.constants import StressCategoryThresholds
from ..core.statistics import clamp, clamp01, lerp, mean
from ..domain.events import StressEvent, StressEventKind
from ..domain.samples import PhysiologicalSample


class StressCategory(Enum):
    MINIMAL = "Minimal"
    LOW = "Low"
    MODERATE = "Moderate"
    HIGH = "High"
    EXTREME = "Extreme"


def stress_category(level: float) -> StressCategory:
    if level < StressCategoryThresholds.MINIMAL:
        return StressCategory.MINIMAL
    if level < StressCategoryThresholds.LOW:
        return StressCategory.LOW
    if level < StressCategoryThresholds.MODERATE:
        return StressCategory.MODERATE
    if level < StressCategoryThresholds.HIGH:
        return StressCategory.HIGH
    return StressCategory.EXTREME


class PhysiologyModel:
    """Seeded physiological simulation driven by the current stress level."""

    def __init__(self, seed: int = 0) -> None:
        self.seed = seed
        self._rng = np.random.default_rng(seed)
        self.heart_rate = 70.0
        self.heart_rate_variability = 5.0
        self.skin_conductance = 1.0
        self.pupil_diameter = 3.5

    def initialize(self) -> None:
        """Resting values with a little per-session spread."""
        self._rng = np.random.default_rng(self.seed)
        self.heart_rate = 70.0 + float(self._rng.uniform(-5.0, 5.0))
        self.heart_rate_variability = 15.0 + float(self._rng.uniform(-3.0, 3.0))
        self.skin_conductance = 1.0
        self.pupil_diameter = 3.5

    def step(self, stress: float, dt: float) -> None:
        self.heart_rate = lerp(self.heart_rate, 60.0 + stress * 0.8, dt * 0.5)
        self.heart_rate += float(self._rng.uniform(-2.0, 2.0))
        self.heart_rate = clamp(self.heart_rate, 50.0, 180.0)
        self.heart_rate_variability = lerp(self.heart_rate_variability, 20.0 - stress * 0.15, dt)
        self.skin_conductance = lerp(self.skin_conductance, 1.0 + stress * 0.02, dt * 0.3)
        self.pupil_diameter = lerp(self.pupil_diameter, 3.5 + stress * 0.02, dt * 0.4)

    def apply_measurement(self, sample: PhysiologicalSample) -> None:
        if sample.heart_rate is not None:
            self.heart_rate = float(sample.heart_rate)
        if sample.heart_rate_variability is not None:
            self.heart_rate_variability = float(sample.heart_rate_variability)
        if sample.skin_conductance is not None:
            self.skin_conductance = float(sample.skin_conductance)
        if sample.pupil_diameter is not None:
            self.pupil_diameter = float(sample.pupil_diameter)


@dataclass
class StressInputs:
    """
    Behavioural and contextual inputs of one stress step. ``None`` means the
    corresponding source is not wired, so its term is skipped.
    """

    tremor_score: Optional[float] = None
    rapid_head_movements: Optional[int] = None
    average_reaction_time: float = 0.0
    error_count: int = 0
    stressor_intensity: Optional[float] = None
    classification_accuracy: Optional[float] = None
    elapsed: float = 0.0


def compute_raw_stress(
    cfg: StressLevelConfig, physiology: PhysiologyModel, inputs: StressInputs
) -> tuple[float, Dict[str, float]]:
    """Baseline plus all sub-scores; also returns each sub-score."""
    w = cfg.weight

    hrv_weight = w("heart_rate_variability")
    physiological = clamp01((physiology.heart_rate - 60.0) / 100.0) * 30.0 * hrv_weight
    physiological += clamp01(1.0 - physiology.heart_rate_variability / 20.0) * 20.0 * hrv_weight
    physiological += clamp01((physiology.skin_conductance - 1.0) / 2.0) * 15.0
    physiological += clamp01((physiology.pupil_diameter - 3.0) / 3.0) * 10.0

    behavioral = 0.0
    if inputs.tremor_score is not None:
        behavioral += inputs.tremor_score * 0.2 * w("movement_jitter")
    if inputs.rapid_head_movements is not None:
        behavioral += clamp01(inputs.rapid_head_movements / 10.0) * 15.0 * w("rapid_head_movement")
    if inputs.average_reaction_time > 0:
        behavioral += clamp01((inputs.average_reaction_time - 1.0) / 3.0) * 20.0 * w("reaction_time_delay")
    behavioral += clamp01(inputs.error_count / 5.0) * 15.0 * w("missed_targets")

    environmental = 0.0
    if inputs.stressor_intensity is not None:
        environmental = clamp(inputs.stressor_intensity * 10.0, 0.0, 40.0)
    environmental *= w("environmental_stressors")

    performance = 0.0
    if inputs.classification_accuracy is not None:
        performance += clamp01(1.0 - inputs.classification_accuracy) * 20.0
    performance += clamp01(inputs.elapsed / cfg.time_pressure_phase_s) * 10.0

    components = {
        "physiological": physiological,
        "behavioral": behavioral,
        "environmental": environmental,
        "performance": performance,
    }
    return cfg.baseline + sum(components.values()), components


class StressDynamics:
    """Bounded accumulation plus smoothing of the raw stress score."""

    def __init__(self, cfg: StressLevelConfig | None = None) -> None:
        self.cfg = cfg or StressLevelConfig()
        self.reset()

    def reset(self) -> None:
        self.current = 0.0
        self.peak = 0.0
        self.accumulation = 0.0

    def start(self) -> None:
        self.current = self.cfg.baseline
        self.accumulation = 0.0

    def blend_factor(self, dt: float) -> float:
        if self.cfg.smoothing_mode == "time_constant":
            return 1.0 - math.exp(-dt / self.cfg.smoothing_time_constant_s)
        return clamp01(dt * 2.0)

    def _clamp_accumulation(self) -> None:
        low, high = self.cfg.accumulation_bounds
        self.accumulation = clamp(self.accumulation, low, high)

    def step(self, raw: float, dt: float) -> float:
        if raw > self.current:
            self.accumulation += (raw - self.current) * self.cfg.growth_rate * dt
        else:
            self.accumulation -= self.cfg.decay_rate * dt
        self._clamp_accumulation()
        target = raw + self.accumulation
        self.current = clamp(lerp(self.current, target, self.blend_factor(dt)), 0.0, 100.0)
        self.peak = max(self.peak, self.current)
        return self.current

    def add_impulse(self, amount: float) -> None:
        self.accumulation += amount
        self._clamp_accumulation()


class StressEventDetector:
    """Flags notable patterns in the stress history."""

    HIGH = StressCategoryThresholds.HIGH

    def detect(self, history: Sequence[float], current: float, now: float) -> List[StressEvent]:
        events: List[StressEvent] = []
        n = len(history)
        if n >= 10:
            recent = mean(history[-10:])
            previous = mean(history[-20:][:10])
            if recent - previous > 15.0:
                events.append(StressEvent(StressEventKind.RAPID_INCREASE, recent - previous, now))
        if current > self.HIGH and sum(1 for s in history if s > self.HIGH) > 30:
            events.append(StressEvent(StressEventKind.SUSTAINED_HIGH_STRESS, current, now))
        if n >= 30:
            recent = mean(history[-10:])
            earlier = mean(history[-30:][:10])
            if earlier - recent > 20.0:
                events.append(StressEvent(StressEventKind.STRESS_RECOVERY, earlier - recent, now))
        return events
