# decide_metrics/metrics/situational_awareness.py
"""Situational awareness: detection, spatial coverage, threats and scanning."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Set, Tuple

import numpy as np

from ..bus import EventBus
from ..config import MetricParameters, SituationalAwarenessConfig
from ..core import statistics as stats
from ..core.buffers import BoundedHistory
from ..core.clock import SimulationClock
from ..core.geometry import angle_between_deg, as_vec, normalize, yaw_deg
from ..domain.events import AwarenessEvent, SpatialScan
from ..domain.results import MetricAnalysisResult
from ..domain.samples import HeadSample, Raycaster, TargetCategory, Vec3, no_hit_raycaster
from ..domain.scenario import TargetDespawned, TargetDetected, TargetLost, TargetMoved, TargetSpawned
from ..domain.values import Snapshot
from ..processing.coverage import SpatialCoverageGrid
from ..processing.scanning import ScanDetector
from ..processing.threats import ThreatTracker
from ..sources import SampleSource
from .base import MetricLifecycle, build_analysis

logger = logging.getLogger(__name__)


@dataclass
class _Entity:
    identity: int
    category: TargetCategory
    position: Vec3
    spawn_time: float


class SituationalAwarenessMetric:
    """
    Measures how well the operator keeps track of the scene.

    Targets enter through :class:`TargetSpawned` events; the head pose from
    ``head_source`` defines what is visible. A target is visible when it is
    within the detection range, inside half the peripheral field of view and,
    when ``require_line_of_sight`` is set, the first raycast hit towards it is
    the target itself (or nothing at all).
    """

    def __init__(
        self,
        parameters: MetricParameters | None = None,
        clock: SimulationClock | None = None,
        config: SituationalAwarenessConfig | None = None,
        head_source: Optional[SampleSource[HeadSample]] = None,
        raycaster: Raycaster = no_hit_raycaster,
        name: str = "SituationalAwareness",
    ) -> None:
        self.config = config or SituationalAwarenessConfig()
        self.head_source = head_source
        self.raycaster = raycaster
        self._lifecycle = MetricLifecycle(name, parameters, clock)
        self.grid = SpatialCoverageGrid(self.config)
        self.threats = ThreatTracker(self.config)
        self._scans = ScanDetector(self.config)
        self.entities: Dict[int, _Entity] = {}
        self.detections: Dict[int, AwarenessEvent] = {}
        self.missed: Set[int] = set()
        self.scan_patterns: List[SpatialScan] = []
        self.score_history: BoundedHistory[float] = BoundedHistory(self._lifecycle.parameters.effective_max_data_points)
        self._clear()
        if self._lifecycle.parameters.auto_start:
            self.start_recording()

    def _clear(self) -> None:
        self.grid.reset()
        self.threats.reset()
        self._scans.reset()
        self.entities.clear()
        self.detections.clear()
        self.missed.clear()
        self.scan_patterns.clear()
        self.score_history.clear()
        self.total_objects_in_scene = 0
        self.awareness_score = 0.0
        self.threat_detection_accuracy = 0.0
        self.spatial_memory_score = 100.0
        self.average_detection_time = 0.0
        self._head: Optional[HeadSample] = None

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
            self.grid.reset()
            self._scans.reset()

    def stop_recording(self) -> None:
        if self._lifecycle.stop():
            self._finalize()

    def reset(self) -> None:
        self._lifecycle.reset()
        self._clear()

    def update_parameters(self, parameters: MetricParameters) -> None:
        self._lifecycle.update_parameters(parameters)
        self.score_history.resize(parameters.effective_max_data_points)

    def record_data_point(self, payload: Any) -> None:
        """Scene events may also be injected directly."""
        if not self.is_recording:
            return
        handler = {
            TargetSpawned: self.on_target_spawned,
            TargetMoved: self.on_target_moved,
            TargetDetected: self.on_target_detected,
            TargetLost: self.on_target_lost,
            TargetDespawned: self.on_target_despawned,
        }.get(type(payload))
        if handler is not None:
            handler(payload)
        else:
            self._lifecycle.record(payload)

    # -- visibility ----------------------------------------------------------
    def _view(self) -> Optional[HeadSample]:
        if self.head_source is not None:
            head = self.head_source()
            if head is not None:
                self._head = head
        return self._head

    def _relative(self, entity: _Entity, head: HeadSample) -> Tuple[np.ndarray, float, float]:
        offset = as_vec(entity.position) - as_vec(head.position)
        dist = float(np.linalg.norm(offset))
        return offset, dist, angle_between_deg(head.forward, offset)

    def is_visible(self, identity: int) -> bool:
        entity = self.entities.get(identity)
        head = self._view()
        if entity is None or head is None:
            return False
        offset, dist, angle = self._relative(entity, head)
        if dist > self.config.detection_range_m:
            return False
        if angle > self.config.peripheral_fov_deg / 2.0:
            return False
        if self.config.require_line_of_sight and dist > 0:
            hit = self.raycaster(head.position, tuple(float(c) for c in normalize(offset)), dist)
            if hit is not None:
                return hit.target is not None and hit.target.identity == identity
        return True

    # -- scene events --------------------------------------------------------
    def subscribe(self, bus: EventBus) -> None:
        bus.subscribe(TargetSpawned, self.on_target_spawned)
        bus.subscribe(TargetMoved, self.on_target_moved)
        bus.subscribe(TargetDetected, self.on_target_detected)
        bus.subscribe(TargetLost, self.on_target_lost)
        bus.subscribe(TargetDespawned, self.on_target_despawned)

    def unsubscribe(self, bus: EventBus) -> None:
        bus.unsubscribe(TargetSpawned, self.on_target_spawned)
        bus.unsubscribe(TargetMoved, self.on_target_moved)
        bus.unsubscribe(TargetDetected, self.on_target_detected)
        bus.unsubscribe(TargetLost, self.on_target_lost)
        bus.unsubscribe(TargetDespawned, self.on_target_despawned)

    def on_target_spawned(self, event: TargetSpawned) -> None:
        if not self.is_recording:
            return
        self.entities[event.identity] = _Entity(
            identity=event.identity,
            category=event.category,
            position=event.position,
            spawn_time=self._lifecycle.now,
        )
        self.total_objects_in_scene += 1
        if self.is_visible(event.identity):
            self._detect(event.identity)
        else:
            self.missed.add(event.identity)

    def on_target_moved(self, event: TargetMoved) -> None:
        if not self.is_recording:
            return
        entity = self.entities.get(event.identity)
        if entity is not None:
            entity.position = event.position

    def on_target_detected(self, event: TargetDetected) -> None:
        if self.is_recording and event.identity in self.entities:
            self._detect(event.identity)

    def on_target_lost(self, event: TargetLost) -> None:
        if not self.is_recording:
            return
        if self.threats.mark_lost(event.identity, self._lifecycle.now):
            self._lifecycle.log_event(f"Lost track of target {event.identity}")

    def on_target_despawned(self, event: TargetDespawned) -> None:
        if not self.is_recording:
            return
        self.entities.pop(event.identity, None)
        self.missed.discard(event.identity)
        self.threats.remove(event.identity)

    def _detect(self, identity: int) -> None:
        if identity in self.detections:
            return
        entity = self.entities[identity]
        head = self._view()
        now = self._lifecycle.now
        dist, angle = 0.0, 0.0
        direction: Vec3 = (0.0, 0.0, 0.0)
        if head is not None:
            offset, dist, angle = self._relative(entity, head)
            direction = tuple(float(c) for c in normalize(offset))
        event = AwarenessEvent(
            identity=identity,
            category=entity.category,
            detection_delay=now - entity.spawn_time,
            distance=dist,
            angle=angle,
            in_periphery=angle > self.config.central_fov_deg / 2.0,
            timestamp=now,
        )
        self.detections[identity] = event
        self.missed.discard(identity)
        self.threats.create(identity, entity.category, dist, direction, now)
        self._lifecycle.log_event(
            f"Target detected: {entity.category.value} "
            f"(delay: {event.detection_delay:.2f}s, periphery: {event.in_periphery})"
        )

    # -- per tick ------------------------------------------------------------
    def update(self, dt: float) -> None:
        step = self._lifecycle.should_sample()
        if step is None:
            return
        head = self._view()
        if head is None:
            return
        now = self._lifecycle.now

        self.grid.mark(head.forward, step)

        for identity in sorted(self.missed):
            if self.is_visible(identity):
                self._detect(identity)

        self._update_threats(head, now)

        bearings = [
            yaw_deg(as_vec(self.entities[i].position) - as_vec(head.position))
            for i in self.detections
            if i in self.entities
        ]
        scan = self._scans.update(yaw_deg(head.forward), now, bearings)
        if scan is not None:
            self.scan_patterns.append(scan)
            self._lifecycle.log_event(f"Scan completed: {scan.arc:.0f} deg in {scan.duration:.2f}s")

        self.awareness_score = self.composite_score()
        self.score_history.append(self.awareness_score)
        self._lifecycle.record({"awareness_score": self.awareness_score, "coverage": self.grid.coverage_percent()})

    def _update_threats(self, head: HeadSample, now: float) -> None:
        for threat in self.threats:
            entity = self.entities.get(threat.identity)
            if entity is not None and self.is_visible(threat.identity):
                offset, dist, _ = self._relative(entity, head)
                self.threats.observe(threat.identity, dist, tuple(float(c) for c in normalize(offset)), now)
            else:
                self.threats.mark_unseen(threat.identity)
        self.threats.expire(now)

    # -- scores --------------------------------------------------------------
    @property
    def completed_scans(self) -> int:
        return len(self.scan_patterns)

    @property
    def detection_rate(self) -> float:
        if self.total_objects_in_scene == 0:
            return 0.0
        return len(self.detections) / self.total_objects_in_scene * 100.0

    @property
    def peripheral_detection_rate(self) -> float:
        if not self.detections:
            return 0.0
        peripheral = sum(1 for e in self.detections.values() if e.in_periphery)
        return peripheral / len(self.detections) * 100.0

    def composite_score(self) -> float:
        """Weighted mean of the awareness terms that currently apply."""
        weights = self.config.weights
        terms: Dict[str, float] = {
            "coverage": self.grid.coverage_percent(),
            "prioritization": self.threats.prioritization_score(),
            "scanning": min(self.completed_scans, self.config.scan_saturation) * 100.0 / self.config.scan_saturation,
        }
        if self.total_objects_in_scene > 0:
            terms["detection"] = self.detection_rate
        if self.detections:
            terms["peripheral"] = self.peripheral_detection_rate
        weight_sum = sum(weights[k] for k in terms)
        if weight_sum <= 0:
            return 0.0
        return sum(value * weights[k] for k, value in terms.items()) / weight_sum

    def _finalize(self) -> None:
        delays = [e.detection_delay for e in self.detections.values()]
        if delays:
            self.average_detection_time = stats.mean(delays)
        if len(self.threats):
            self.threat_detection_accuracy = self.threats.detection_accuracy()
        self.spatial_memory_score = self.threats.spatial_memory_score(self._lifecycle.now)

    def get_data(self) -> Snapshot:
        quadrants = self.grid.quadrant_coverage()
        data: Dict[str, Any] = {
            "awareness_score": self.awareness_score,
            "spatial_coverage": self.grid.coverage_percent(),
            "threat_detection_accuracy": self.threat_detection_accuracy,
            "spatial_memory_score": self.spatial_memory_score,
            "total_objects_detected": len(self.detections),
            "total_objects_missed": len(self.missed),
            "detection_rate": self.detection_rate,
            "average_detection_time": self.average_detection_time,
            "peripheral_detection_rate": self.peripheral_detection_rate,
            "active_threats": self.threats.active_count,
            "total_threats_identified": len(self.threats),
            "threat_prioritization_score": self.threats.prioritization_score(),
            "completed_scans": self.completed_scans,
            "average_scan_duration": stats.mean([s.duration for s in self.scan_patterns]),
            "average_scan_arc": stats.mean([s.arc for s in self.scan_patterns]),
            "front_coverage": quadrants["front"],
            "rear_coverage": quadrants["rear"],
            "left_coverage": quadrants["left"],
            "right_coverage": quadrants["right"],
        }
        events = list(self.detections.values())
        if events:
            data["min_detection_time"] = min(e.detection_delay for e in events)
            data["max_detection_time"] = max(e.detection_delay for e in events)
            data["average_detection_distance"] = stats.mean([e.distance for e in events])
            data["average_detection_angle"] = stats.mean([e.angle for e in events])
        return self._lifecycle.snapshot(data)

    def analyze(self) -> MetricAnalysisResult:
        self._finalize()
        scores = self.score_history.to_list()
        additional: Dict[str, Any] = {
            "final_awareness_score": self.awareness_score,
            "spatial_coverage": self.grid.coverage_percent(),
            "detection_rate": self.detection_rate,
            "average_detection_time": self.average_detection_time,
            "threat_detection_accuracy": self.threat_detection_accuracy,
            "spatial_memory_score": self.spatial_memory_score,
        }
        if self.parameters.enable_advanced_analysis:
            additional["quadrant_coverage"] = self.grid.quadrant_coverage()
            additional["completed_scans"] = self.completed_scans
        return build_analysis(
            self.name,
            scores,
            sample_count=len(scores),
            duration=self._lifecycle.recording_duration,
            additional=additional,
        )

    def get_summary(self) -> str:
        return (
            f"{self.name}: score {self.awareness_score:.1f}, coverage {self.grid.coverage_percent():.1f}%, "
            f"{len(self.detections)}/{self.total_objects_in_scene} detected"
        )
