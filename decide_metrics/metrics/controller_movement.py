# decide_metrics/metrics/controller_movement.py
"""Hand-controller analytics: movement, tremor, aim, interactions, gestures."""
from __future__ import annotations

import logging
from collections import Counter
from typing import Any, Dict, List, Mapping, Optional

import numpy as np

from ..config import ControllerMovementConfig, MetricParameters
from ..core import statistics as stats
from ..core.buffers import BoundedHistory
from ..core.clock import SimulationClock
from ..core.geometry import forward_from_rotation
from ..domain.events import GestureEvent, InteractionEvent, InteractionKind
from ..domain.results import MetricAnalysisResult
from ..domain.samples import ControllerSample, Hand, Raycaster, no_hit_raycaster
from ..domain.values import Snapshot
from ..processing.gestures import GestureDetector, default_gesture_detectors
from ..processing.kinematics import ControllerFrame, HandKinematics
from ..processing.tremor import AimStabilityTracker, TremorEstimator
from ..sources import SampleSource
from .base import MetricLifecycle, build_analysis

logger = logging.getLogger(__name__)


class _HandState:
    """Everything tracked for one hand."""

    def __init__(self, hand: Hand, cfg: ControllerMovementConfig) -> None:
        self.kinematics = HandKinematics(hand)
        self.tremor = TremorEstimator(cfg)
        self.aim = AimStabilityTracker(cfg)
        self.history: BoundedHistory[ControllerFrame] = BoundedHistory(cfg.history_size)
        self.trigger_down = False
        self.grip_down = False
        self.seen = False

    def reset(self) -> None:
        self.kinematics.reset()
        self.tremor.reset()
        self.aim.reset()
        self.history.clear()
        self.trigger_down = False
        self.grip_down = False
        self.seen = False


class ControllerMovementMetric:
    """
    Tracks both hand controllers.

    ``sources`` maps each hand to a sample source. Hands without a source (or
    whose source yields nothing) are skipped for that tick. Gestures are
    evaluated on every processed tick.
    """

    def __init__(
        self,
        parameters: MetricParameters | None = None,
        clock: SimulationClock | None = None,
        config: ControllerMovementConfig | None = None,
        sources: Optional[Mapping[Hand, SampleSource[ControllerSample]]] = None,
        raycaster: Raycaster = no_hit_raycaster,
        gestures: Optional[List[GestureDetector]] = None,
        name: str = "ControllerMovement",
    ) -> None:
        self.config = config or ControllerMovementConfig()
        self.sources: Dict[Hand, SampleSource[ControllerSample]] = dict(sources or {})
        self.raycaster = raycaster
        self.gesture_detectors = (
            gestures if gestures is not None else default_gesture_detectors(self.config.gesture_cooldown_s)
        )
        self._lifecycle = MetricLifecycle(name, parameters, clock)
        self._hands = {hand: _HandState(hand, self.config) for hand in Hand}
        self.interaction_events: List[InteractionEvent] = []
        self.gesture_events: List[GestureEvent] = []
        self._clear()
        if self._lifecycle.parameters.auto_start:
            self.start_recording()

    def _clear(self) -> None:
        for state in self._hands.values():
            state.reset()
        for detector in self.gesture_detectors:
            detector.reset()
        self.interaction_events.clear()
        self.gesture_events.clear()
        self.controller_switch_count = 0
        self._last_active_hand: Optional[Hand] = None
        self.dominant_hand = Hand.RIGHT
        self.dominant_hand_usage_ratio = 0.5

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
        self._lifecycle.start()

    def stop_recording(self) -> None:
        if self._lifecycle.stop():
            self._compute_dominant_hand()

    def reset(self) -> None:
        self._lifecycle.reset()
        self._clear()

    def update_parameters(self, parameters: MetricParameters) -> None:
        self._lifecycle.update_parameters(parameters)

    def record_data_point(self, payload: Any) -> None:
        """Process an injected :class:`ControllerSample` immediately."""
        if not self.is_recording:
            return
        if isinstance(payload, ControllerSample):
            dt = self._lifecycle.now - self._lifecycle.last_sample_time
            self._lifecycle.last_sample_time = self._lifecycle.now
            self._process_hand(payload, dt)
            self._detect_gestures()
        else:
            self._lifecycle.record(payload)

    def update(self, dt: float) -> None:
        step = self._lifecycle.should_sample()
        if step is None:
            return
        for hand in Hand:
            source = self.sources.get(hand)
            sample = source() if source is not None else None
            if sample is not None:
                self._process_hand(sample, step)
        self._detect_gestures()

    # -- per-hand processing -------------------------------------------------
    def hand_state(self, hand: Hand) -> _HandState:
        return self._hands[hand]

    def _process_hand(self, sample: ControllerSample, dt: float) -> None:
        now = self._lifecycle.now
        state = self._hands[sample.hand]
        moving = state.seen
        frame = state.kinematics.step(sample, dt, now)
        state.seen = True

        self._track_press(state, sample, frame, InteractionKind.TRIGGER_PRESS, sample.trigger)
        self._track_press(state, sample, frame, InteractionKind.GRIP_PRESS, sample.grip)

        forward = forward_from_rotation(sample.rotation)
        if dt > 0:
            # First sample of a hand has no velocity yet
            if moving:
                state.tremor.push(frame.linear_velocity, dt)
            state.aim.push(frame.position, forward, dt)

        state.history.append(frame)
        self._lifecycle.record(frame)

        threshold = self.config.active_hand_threshold
        if frame.linear_velocity > threshold or sample.trigger > threshold:
            if self._last_active_hand is not None and self._last_active_hand is not sample.hand:
                self.controller_switch_count += 1
            self._last_active_hand = sample.hand

    def _track_press(
        self,
        state: _HandState,
        sample: ControllerSample,
        frame: ControllerFrame,
        kind: InteractionKind,
        value: float,
    ) -> None:
        pressed = value > self.config.press_threshold
        attr = "trigger_down" if kind is InteractionKind.TRIGGER_PRESS else "grip_down"
        was_pressed = getattr(state, attr)
        setattr(state, attr, pressed)
        if not pressed or was_pressed:
            return
        target_name = None
        if kind is InteractionKind.TRIGGER_PRESS:
            hit = self.raycaster(
                tuple(float(c) for c in frame.position),
                tuple(float(c) for c in forward_from_rotation(sample.rotation)),
                self.config.raycast_distance_m,
            )
            target_name = hit.object_name if hit is not None else None
        event = InteractionEvent(
            kind=kind,
            hand=sample.hand,
            target_name=target_name,
            timestamp=self._lifecycle.now,
            position=tuple(float(c) for c in frame.position),
        )
        self.interaction_events.append(event)
        self._lifecycle.log_event(f"{sample.hand.label} {kind.value} on {target_name or 'nothing'}")

    def _detect_gestures(self) -> None:
        histories = {hand: state.history for hand, state in self._hands.items()}
        now = self._lifecycle.now
        for detector in self.gesture_detectors:
            event = detector.evaluate(now, histories)
            if event is not None:
                self.gesture_events.append(event)
                self._lifecycle.log_event(f"Gesture detected: {event.name}")

    def _compute_dominant_hand(self) -> None:
        left = self._hands[Hand.LEFT].kinematics.total_linear
        right = self._hands[Hand.RIGHT].kinematics.total_linear
        self.dominant_hand = Hand.RIGHT if right >= left else Hand.LEFT
        total = left + right
        self.dominant_hand_usage_ratio = max(left, right) / total if total > 0 else 0.5

    # -- derived values ------------------------------------------------------
    @property
    def overall_tremor_score(self) -> float:
        return stats.mean([s.tremor.score for s in self._hands.values() if s.seen])

    @property
    def overall_aim_stability(self) -> float:
        seen = [s.aim.score for s in self._hands.values() if s.seen]
        return stats.mean(seen) if seen else 100.0

    def gesture_counts(self) -> Dict[str, int]:
        return dict(Counter(e.name for e in self.gesture_events))

    def interaction_counts(self) -> Dict[str, int]:
        return dict(Counter(e.kind.value for e in self.interaction_events))

    def average_time_between_triggers(self) -> Optional[float]:
        times = [e.timestamp for e in self.interaction_events if e.kind is InteractionKind.TRIGGER_PRESS]
        if len(times) < 2:
            return None
        return float(np.mean(np.diff(times)))

    def get_data(self) -> Snapshot:
        self._compute_dominant_hand()
        data: Dict[str, Any] = {
            "dominant_hand": self.dominant_hand.label,
            "dominant_hand_usage_ratio": self.dominant_hand_usage_ratio * 100.0,
            "controller_switch_count": self.controller_switch_count,
            "overall_tremor_score": self.overall_tremor_score,
            "overall_aim_stability": self.overall_aim_stability,
        }
        for hand, state in self._hands.items():
            prefix = hand.label.lower()
            kin = state.kinematics
            data[f"{prefix}_total_linear_movement"] = kin.total_linear
            data[f"{prefix}_total_angular_movement"] = kin.total_angular
            data[f"{prefix}_max_linear_velocity"] = kin.max_linear_velocity
            data[f"{prefix}_max_angular_velocity"] = kin.max_angular_velocity
            data[f"{prefix}_tremor_score"] = state.tremor.score
            data[f"{prefix}_aim_stability"] = state.aim.score
            if state.history:
                frames = state.history.to_list()
                press = self.config.press_threshold
                data[f"{prefix}_average_trigger_value"] = stats.mean([f.trigger for f in frames])
                data[f"{prefix}_average_grip_value"] = stats.mean([f.grip for f in frames])
                data[f"{prefix}_trigger_press_count"] = sum(1 for f in frames if f.trigger > press)
                data[f"{prefix}_grip_press_count"] = sum(1 for f in frames if f.grip > press)
        data["interaction_events"] = self.interaction_counts()
        data["total_interactions"] = len(self.interaction_events)
        data["detected_gestures"] = self.gesture_counts()
        data["total_gestures_detected"] = len(self.gesture_events)
        between = self.average_time_between_triggers()
        if between is not None:
            data["average_time_between_triggers"] = between
        return self._lifecycle.snapshot(data)

    def analyze(self) -> MetricAnalysisResult:
        self._compute_dominant_hand()
        velocities = [
            f.linear_velocity for state in self._hands.values() for f in state.history
        ]
        additional: Dict[str, Any] = {
            "dominant_hand": self.dominant_hand.label,
            "dominant_hand_usage_ratio": self.dominant_hand_usage_ratio * 100.0,
            "overall_tremor_score": self.overall_tremor_score,
            "overall_aim_stability": self.overall_aim_stability,
            "total_interactions": len(self.interaction_events),
        }
        if self.parameters.enable_advanced_analysis:
            additional["detected_gestures"] = self.gesture_counts()
            additional["controller_switch_count"] = self.controller_switch_count
        return build_analysis(
            self.name,
            velocities,
            sample_count=len(self._lifecycle.raw_data),
            duration=self._lifecycle.recording_duration,
            additional=additional,
        )

    def get_summary(self) -> str:
        return (
            f"{self.name}: dominant {self.dominant_hand.label}, tremor {self.overall_tremor_score:.1f}, "
            f"aim {self.overall_aim_stability:.1f}, {len(self.gesture_events)} gestures"
        )
