# decide_metrics/metrics/stress_level.py
"""Composite operator stress estimate."""
from __future__ import annotations

import logging
from collections import Counter
from typing import Any, Dict, List, Optional

from ..bus import EventBus
from ..config import MetricParameters, StressLevelConfig
from ..core import statistics as stats
from ..core.buffers import BoundedHistory
from ..core.clock import SimulationClock
from ..core.geometry import angle_between_deg
from ..domain.events import StressEvent, StressEventKind
from ..domain.results import MetricAnalysisResult
from ..domain.samples import HeadSample, PhysiologicalSample
from ..domain.scenario import TargetClassified
from ..domain.values import Snapshot
from ..processing.stress import (
    PhysiologyModel,
    StressCategory,
    StressDynamics,
    StressEventDetector,
    StressInputs,
    compute_raw_stress,
    stress_category,
)
from ..sources import SampleSource, StressorSource
from .base import MetricLifecycle, build_analysis
from .classification import ClassificationMetric
from .controller_movement import ControllerMovementMetric

logger = logging.getLogger(__name__)

# Impulse added to the accumulation per unit of triggered intensity
TRIGGER_IMPACT_SCALE = 20.0


class StressLevelMetric:
    """
    Estimates operator stress in [0, 100] once per processed tick.

    The estimate combines simulated (or measured) physiology with behaviour
    from the other metrics. Every collaborator is optional; a missing one
    simply drops its term from the raw score:

      - ``controller``: tremor score feeds the movement jitter term
      - ``classification``: accuracy feeds the performance term
      - ``head_source``: rapid head turns feed the head movement term
      - ``physiological_source``: measured values replace simulated ones
      - ``stressor_source``: summed intensity feeds the environmental term
    """

    def __init__(
        self,
        parameters: MetricParameters | None = None,
        clock: SimulationClock | None = None,
        config: StressLevelConfig | None = None,
        controller: Optional[ControllerMovementMetric] = None,
        classification: Optional[ClassificationMetric] = None,
        head_source: Optional[SampleSource[HeadSample]] = None,
        physiological_source: Optional[SampleSource[PhysiologicalSample]] = None,
        stressor_source: Optional[StressorSource] = None,
        name: str = "StressLevel",
    ) -> None:
        self.config = config or StressLevelConfig()
        self.controller = controller
        self.classification = classification
        self.head_source = head_source
        self.physiological_source = physiological_source
        self.stressor_source = stressor_source
        self._lifecycle = MetricLifecycle(name, parameters, clock)
        self.physiology = PhysiologyModel(self.config.seed)
        self.dynamics = StressDynamics(self.config)
        self._detector = StressEventDetector()
        self.history: BoundedHistory[float] = BoundedHistory(self.config.history_size)
        self.stress_events: List[StressEvent] = []
        self._clear()
        if self._lifecycle.parameters.auto_start:
            self.start_recording()

    def _clear(self) -> None:
        self.dynamics.reset()
        self.history.clear()
        self.stress_events.clear()
        self.error_count = 0
        self.average_reaction_time = 0.0
        self.rapid_head_movements = 0
        self.components: Dict[str, float] = {}
        self._last_head_forward = None
        self._head_turning = False
        if self.is_recording:
            self.dynamics.start()

    @property
    def name(self) -> str:
        return self._lifecycle.name

    @property
    def is_recording(self) -> bool:
        return self._lifecycle.is_recording

    @property
    def parameters(self) -> MetricParameters:
        return self._lifecycle.parameters

    def start_recording(self) -> None:
        if self._lifecycle.start():
            self.dynamics.start()
            self.physiology.initialize()

    def stop_recording(self) -> None:
        self._lifecycle.stop()

    def reset(self) -> None:
        self._lifecycle.reset()
        self._clear()

    def update_parameters(self, parameters: MetricParameters) -> None:
        self._lifecycle.update_parameters(parameters)

    def record_data_point(self, payload: Any) -> None:
        """A :class:`PhysiologicalSample` overrides the simulated physiology."""
        if not self._lifecycle.record(payload):
            return
        if isinstance(payload, PhysiologicalSample):
            self.physiology.apply_measurement(payload)

    # -- properties ----------------------------------------------------------
    @property
    def current_stress(self) -> float:
        return self.dynamics.current

    @property
    def peak_stress(self) -> float:
        return self.dynamics.peak

    @property
    def accumulation(self) -> float:
        return self.dynamics.accumulation

    @property
    def category(self) -> StressCategory:
        return stress_category(self.dynamics.current)

    @property
    def average_stress(self) -> float:
        return stats.mean(self.history.to_list())

    # -- per tick ------------------------------------------------------------
    def update(self, dt: float) -> None:
        step = self._lifecycle.should_sample()
        if step is None:
            return
        now = self._lifecycle.now

        if self.physiological_source is not None:
            measured = self.physiological_source()
            if measured is not None:
                self.physiology.apply_measurement(measured)
        self._track_head(step)

        raw, self.components = compute_raw_stress(self.config, self.physiology, self._inputs())
        current = self.dynamics.step(raw, step)
        self.history.append(current)
        self.physiology.step(current, step)

        for event in self._detector.detect(self.history.to_list(), current, now):
            self._add_event(event)

        self._lifecycle.record(
            {"stress": current, "raw": raw, "accumulation": self.dynamics.accumulation, **self.components}
        )

    def _inputs(self) -> StressInputs:
        return StressInputs(
            tremor_score=self.controller.overall_tremor_score if self.controller is not None else None,
            rapid_head_movements=self.rapid_head_movements if self.head_source is not None else None,
            average_reaction_time=self.average_reaction_time,
            error_count=self.error_count,
            stressor_intensity=(
                sum(s.intensity for s in self.stressor_source()) if self.stressor_source is not None else None
            ),
            classification_accuracy=self.classification.accuracy if self.classification is not None else None,
            elapsed=self._lifecycle.elapsed,
        )

    def _track_head(self, dt: float) -> None:
        if self.head_source is None:
            return
        head = self.head_source()
        if head is None:
            return
        if self._last_head_forward is not None and dt > 0:
            speed = angle_between_deg(head.forward, self._last_head_forward) / dt
            turning = speed > self.config.rapid_head_turn_deg_per_s
            if turning and not self._head_turning:
                self.rapid_head_movements += 1
            self._head_turning = turning
        self._last_head_forward = head.forward

    def _add_event(self, event: StressEvent) -> None:
        self.stress_events.append(event)
        self._lifecycle.log_event(f"Stress event: {event.label} (impact {event.impact:.1f})")

    # -- external inputs -----------------------------------------------------
    def trigger_stress_response(self, intensity: float, source: str) -> None:
        """Add a stress impulse, e.g. from an explosion or a radio call."""
        impact = intensity * TRIGGER_IMPACT_SCALE
        self.dynamics.add_impulse(impact)
        self._add_event(StressEvent(StressEventKind.TRIGGERED, impact, self._lifecycle.now, source=source))

    def increment_error_count(self) -> None:
        self.error_count += 1

    def update_reaction_time(self, reaction_time: float) -> None:
        self.average_reaction_time = self.average_reaction_time * 0.9 + reaction_time * 0.1

    def subscribe(self, bus: EventBus) -> None:
        bus.subscribe(TargetClassified, self.on_target_classified)

    def unsubscribe(self, bus: EventBus) -> None:
        bus.unsubscribe(TargetClassified, self.on_target_classified)

    def on_target_classified(self, event: TargetClassified) -> None:
        if not self.is_recording:
            return
        self.update_reaction_time(event.reaction_time)
        if not event.is_correct:
            self.increment_error_count()

    # -- reporting -----------------------------------------------------------
    def category_distribution(self) -> Dict[str, float]:
        values = self.history.to_list()
        counts = Counter(stress_category(v) for v in values)
        return {c.value: (counts[c] / len(values) * 100.0 if values else 0.0) for c in StressCategory}

    def get_data(self) -> Snapshot:
        values = self.history.to_list()
        data: Dict[str, Any] = {
            "current_stress_level": self.current_stress,
            "stress_category": self.category,
            "peak_stress_level": self.peak_stress,
            "average_stress_level": self.average_stress,
            "baseline_stress_level": self.config.baseline,
            "heart_rate": self.physiology.heart_rate,
            "heart_rate_variability": self.physiology.heart_rate_variability,
            "skin_conductance": self.physiology.skin_conductance,
            "pupil_dilation": self.physiology.pupil_diameter,
            "stress_accumulation": self.accumulation,
        }
        if values:
            data["min_stress"] = min(values)
            data["max_stress"] = max(values)
            data["stress_std_dev"] = stats.sample_std(values)
            data["stress_category_distribution"] = self.category_distribution()
        data["stress_events"] = dict(Counter(e.label for e in self.stress_events))
        data["total_stress_events"] = len(self.stress_events)
        data["component_weights"] = {k: v * 100.0 for k, v in self.config.component_weights.items()}
        return self._lifecycle.snapshot(data)

    def analyze(self) -> MetricAnalysisResult:
        values = self.history.to_list()
        additional: Dict[str, Any] = {
            "peak_stress_level": self.peak_stress,
            "final_category": self.category,
            "total_stress_events": len(self.stress_events),
            "error_count": self.error_count,
        }
        if self.parameters.enable_advanced_analysis and values:
            additional["stress_category_distribution"] = self.category_distribution()
            additional["components"] = dict(self.components)
        return build_analysis(
            self.name,
            values,
            sample_count=len(values),
            duration=self._lifecycle.recording_duration,
            additional=additional,
        )

    def get_summary(self) -> str:
        return f"{self.name}: {self.current_stress:.1f} ({self.category.value}), peak {self.peak_stress:.1f}"
