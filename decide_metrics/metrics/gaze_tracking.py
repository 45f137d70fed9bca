# decide_metrics/metrics/gaze_tracking.py
"""Eye-gaze analytics: fixations, saccades, scan path and attention."""
from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import numpy as np

from ..config import GazeTrackingConfig, MetricParameters
from ..core import statistics as stats
from ..core.buffers import BoundedHistory
from ..core.clock import SimulationClock
from ..core.geometry import as_vec, normalize
from ..domain.events import FixationEvent, SaccadeEvent
from ..domain.results import MetricAnalysisResult
from ..domain.samples import GazeSample, HeadSample, Raycaster, RaycastHit, no_hit_raycaster
from ..domain.values import Snapshot
from ..processing.attention import (
    attention_distribution,
    gaze_percentages,
    scan_path_efficiency,
    scan_path_length,
)
from ..processing.fixation import FixationDetector
from ..sources import SampleSource
from .base import MetricLifecycle, build_analysis

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GazePoint:
    timestamp: float
    origin: tuple
    direction: tuple
    point: tuple
    object_name: Optional[str]


def gaze_direction(sample: GazeSample) -> np.ndarray:
    """
    Gaze direction of a sample: towards the fixation point when the tracker
    reports one, else the mean of both eye directions, else head forward.
    """
    if sample.fixation_point is not None:
        direction = normalize(as_vec(sample.fixation_point) - as_vec(sample.head_position))
        if np.any(direction):
            return direction
    if sample.left_eye_direction is not None and sample.right_eye_direction is not None:
        direction = normalize((as_vec(sample.left_eye_direction) + as_vec(sample.right_eye_direction)) * 0.5)
        if np.any(direction):
            return direction
    return normalize(sample.head_forward)


class GazeTrackingMetric:
    """
    Gaze analytics over a stream of :class:`GazeSample`.

    ``gaze_source`` supplies eye-tracker samples; when it yields nothing the
    optional ``head_source`` pose is used instead. Scan-path efficiency and
    attention distribution are recomputed when recording stops and by
    :meth:`analyze`.
    """

    def __init__(
        self,
        parameters: MetricParameters | None = None,
        clock: SimulationClock | None = None,
        config: GazeTrackingConfig | None = None,
        gaze_source: Optional[SampleSource[GazeSample]] = None,
        head_source: Optional[SampleSource[HeadSample]] = None,
        raycaster: Raycaster = no_hit_raycaster,
        name: str = "GazeTracking",
    ) -> None:
        self.config = config or GazeTrackingConfig()
        self.gaze_source = gaze_source
        self.head_source = head_source
        self.raycaster = raycaster
        self._lifecycle = MetricLifecycle(name, parameters, clock)
        self._detector = FixationDetector(self.config)
        self.gaze_history: BoundedHistory[GazePoint] = BoundedHistory(self.config.history_size)
        self.fixation_events: List[FixationEvent] = []
        self.saccade_events: List[SaccadeEvent] = []
        self.object_gaze_times: Dict[str, float] = defaultdict(float)
        self.category_gaze_times: Dict[str, float] = defaultdict(float)
        self.pupil_diameters: List[float] = []
        self._clear()
        if self._lifecycle.parameters.auto_start:
            self.start_recording()

    def _clear(self) -> None:
        self._detector.reset(self._lifecycle.now)
        self.gaze_history.clear()
        self.fixation_events.clear()
        self.saccade_events.clear()
        self.object_gaze_times.clear()
        self.category_gaze_times.clear()
        self.pupil_diameters.clear()
        self.scan_path_efficiency = 0.0
        self.visual_attention_distribution = 0.0

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
            self._detector.reset(self._lifecycle.now)

    def stop_recording(self) -> None:
        if not self.is_recording:
            return
        fixation = self._detector.flush(self._lifecycle.now)
        if fixation is not None:
            self._add_fixation(fixation)
        self._lifecycle.stop()
        self._finalize()

    def reset(self) -> None:
        self._lifecycle.reset()
        self._clear()

    def update_parameters(self, parameters: MetricParameters) -> None:
        self._lifecycle.update_parameters(parameters)

    def record_data_point(self, payload: Any) -> None:
        """Process an injected :class:`GazeSample` immediately."""
        if not self.is_recording:
            return
        if isinstance(payload, GazeSample):
            dt = self._lifecycle.now - self._lifecycle.last_sample_time
            self._lifecycle.last_sample_time = self._lifecycle.now
            self._process(payload, dt)
        else:
            self._lifecycle.record(payload)

    def update(self, dt: float) -> None:
        step = self._lifecycle.should_sample()
        if step is None:
            return
        sample = self._next_sample()
        if sample is not None:
            self._process(sample, step)

    def _next_sample(self) -> Optional[GazeSample]:
        if self.gaze_source is not None:
            sample = self.gaze_source()
            if sample is not None:
                return sample
        if self.head_source is not None:
            head = self.head_source()
            if head is not None:
                return GazeSample.from_head(head)
        return None

    def _process(self, sample: GazeSample, dt: float) -> None:
        now = self._lifecycle.now
        origin = as_vec(sample.head_position)
        direction = gaze_direction(sample)

        if sample.left_eye_openness is not None and sample.right_eye_openness is not None:
            pupil = (sample.left_eye_openness + sample.right_eye_openness) * 0.5 * self.config.pupil_scale_mm
            self.pupil_diameters.append(pupil)

        max_distance = self.config.raycast_distance_m
        hit: Optional[RaycastHit] = self.raycaster(tuple(origin), tuple(direction), max_distance)
        gaze_point = as_vec(hit.point) if hit is not None else origin + direction * max_distance

        result = self._detector.process(now, dt, origin, gaze_point, hit, self._lifecycle.elapsed)
        if result.fixation is not None:
            self._add_fixation(result.fixation)
        if result.saccade is not None:
            self.saccade_events.append(result.saccade)

        if hit is not None:
            self.object_gaze_times[hit.object_name] += dt
            if hit.target is not None:
                self.category_gaze_times[hit.target.category.value] += dt

        point = GazePoint(
            timestamp=now,
            origin=tuple(float(c) for c in origin),
            direction=tuple(float(c) for c in direction),
            point=tuple(float(c) for c in gaze_point),
            object_name=hit.object_name if hit is not None else None,
        )
        self.gaze_history.append(point)
        self._lifecycle.record(point)

    def _add_fixation(self, fixation: FixationEvent) -> None:
        self.fixation_events.append(fixation)
        self._lifecycle.log_event(
            f"Fixation completed: {fixation.object_name or 'empty'} for {fixation.duration:.2f}s"
        )

    def _finalize(self) -> None:
        points = [p.point for p in self.gaze_history]
        self.scan_path_efficiency = scan_path_efficiency(points)
        self.visual_attention_distribution = attention_distribution(self.category_gaze_times)

    # -- derived values ------------------------------------------------------
    @property
    def saccade_count(self) -> int:
        return len(self.saccade_events)

    @property
    def target_switch_count(self) -> int:
        return self._detector.switch_count

    @property
    def is_fixating(self) -> bool:
        return self._detector.is_fixating

    @property
    def average_fixation_duration(self) -> float:
        return stats.mean([f.duration for f in self.fixation_events])

    def top_gazed_objects(self) -> Dict[str, float]:
        ranked = sorted(self.object_gaze_times.items(), key=lambda kv: kv[1], reverse=True)
        return dict(ranked[: self.config.top_gazed_count])

    def get_data(self) -> Snapshot:
        amplitudes = [s.amplitude_deg for s in self.saccade_events]
        velocities = [s.velocity_deg_per_s for s in self.saccade_events]
        first = self._detector.time_to_first_entity_fixation
        data: Dict[str, Any] = {
            "total_fixations": len(self.fixation_events),
            "average_fixation_duration": self.average_fixation_duration,
            "longest_fixation": max((f.duration for f in self.fixation_events), default=0.0),
            "saccade_count": self.saccade_count,
            "average_saccade_amplitude": stats.mean(amplitudes),
            "average_saccade_velocity": stats.mean(velocities),
            "peak_saccade_velocity": max(velocities, default=0.0),
            "scan_path_length": scan_path_length([p.point for p in self.gaze_history]),
            "scan_path_efficiency": self.scan_path_efficiency,
            "visual_attention_distribution": self.visual_attention_distribution,
            "target_switch_count": self.target_switch_count,
            "time_to_first_target_fixation": first if first is not None else -1.0,
            "target_gaze_distribution": gaze_percentages(self.category_gaze_times),
            "top_gazed_objects": self.top_gazed_objects(),
        }
        if self.pupil_diameters:
            data["average_pupil_diameter"] = stats.mean(self.pupil_diameters)
            data["pupil_diameter_variance"] = stats.population_variance(self.pupil_diameters)
            data["max_pupil_dilation"] = max(self.pupil_diameters) - self.config.base_pupil_diameter_mm
        return self._lifecycle.snapshot(data)

    def analyze(self) -> MetricAnalysisResult:
        self._finalize()
        durations = [f.duration for f in self.fixation_events]
        additional: Dict[str, Any] = {
            "saccade_count": self.saccade_count,
            "scan_path_efficiency": self.scan_path_efficiency,
            "visual_attention_distribution": self.visual_attention_distribution,
            "target_switch_count": self.target_switch_count,
        }
        if self.parameters.enable_advanced_analysis and self.saccade_events:
            additional["average_saccade_velocity"] = stats.mean(
                [s.velocity_deg_per_s for s in self.saccade_events]
            )
        return build_analysis(
            self.name,
            durations,
            sample_count=len(self.fixation_events),
            duration=self._lifecycle.recording_duration,
            additional=additional,
        )

    def get_summary(self) -> str:
        return (
            f"{self.name}: {len(self.fixation_events)} fixations, "
            f"{self.saccade_count} saccades, {self.target_switch_count} target switches"
        )
