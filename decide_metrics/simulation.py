# decide_metrics/simulation.py
"""
Seeded synthetic training scenario.

Drives a complete metric stack without a VR rig: the operator's head sweeps
left and right with pauses, targets appear in front of the operator and are
classified after a random delay, and two environmental stressors switch on
and off. The same seed always produces the same session.

Example:
    >>> sim = ScenarioSimulation(SimulationConfig(duration_s=30, seed=7))
    >>> report = sim.run()
    >>> report.analysis_results["StressLevel"].mean
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Dict, List, Optional

import numpy as np

from .bus import EventBus
from .config import (
    ClassificationConfig,
    ControllerMovementConfig,
    GazeTrackingConfig,
    MetricParameters,
    ReactionTimeConfig,
    RegistryConfig,
    SituationalAwarenessConfig,
    StressLevelConfig,
)
from .config.constants import DespawnReasons
from .core.clock import SimulationClock
from .core.geometry import as_vec, normalize
from .domain.results import FinalAnalysisReport
from .domain.samples import (
    ControllerSample,
    GazeSample,
    Hand,
    HeadSample,
    RaycastHit,
    TargetCategory,
    TargetInfo,
    Vec3,
)
from .domain.scenario import (
    ScenarioEnded,
    ScenarioStarted,
    StressorActivated,
    StressorDeactivated,
    TargetClassified,
    TargetDespawned,
    TargetMoved,
    TargetSpawned,
)
from .io.loggers import DataLogger
from .metrics import (
    ClassificationMetric,
    ControllerMovementMetric,
    GazeTrackingMetric,
    ReactionTimeMetric,
    SituationalAwarenessMetric,
    StressLevelMetric,
)
from .registry import MetricsRegistry
from .sources import LatestSampleSource
from .stressors import ActiveStressors

logger = logging.getLogger(__name__)

HEAD_POSITION: Vec3 = (0.0, 1.7, 0.0)
CATEGORIES = (TargetCategory.HOSTILE, TargetCategory.FRIENDLY, TargetCategory.UNKNOWN)


@dataclass(frozen=True)
class SimulationConfig:
    """Synthetic scenario settings."""

    scenario_name: str = "Synthetic"
    duration_s: float = 60.0
    tick_rate_hz: float = 60.0
    seed: int = 0

    # Target flow
    spawn_interval_s: float = 2.5
    spawn_distance_m: tuple = (10.0, 45.0)
    spawn_bearing_deg: float = 120.0
    category_weights: tuple = (0.4, 0.3, 0.3)
    target_radius_m: float = 0.6
    target_speed_m_per_s: float = 0.8

    # Operator behaviour
    reaction_time_s: tuple = (0.6, 4.0)
    correct_probability: float = 0.8
    ignore_probability: float = 0.1
    target_timeout_s: float = 8.0

    # Head sweep: yaw rate (deg/s), sweep length and pause (s)
    sweep_rate_deg_per_s: float = 180.0
    sweep_s: float = 1.0
    pause_s: float = 1.0

    # Stressors as (name, intensity, start fraction, end fraction)
    stressors: tuple = (("Fog", 0.6, 0.3, 0.8), ("RadioChatter", 0.4, 0.5, 0.8))

    @property
    def tick_s(self) -> float:
        return 1.0 / self.tick_rate_hz


@dataclass
class SimulatedTarget:
    info: TargetInfo
    position: np.ndarray
    velocity: np.ndarray
    spawn_time: float
    classify_at: Optional[float]


class SyntheticScene:
    """Spherical targets that double as the scene raycaster."""

    def __init__(self, radius: float) -> None:
        self.radius = radius
        self.targets: Dict[int, SimulatedTarget] = {}

    def __call__(self, origin: Vec3, direction: Vec3, max_distance: float) -> Optional[RaycastHit]:
        o = as_vec(origin)
        d = normalize(direction)
        best: Optional[RaycastHit] = None
        for target in self.targets.values():
            oc = target.position - o
            along = float(np.dot(oc, d))
            if along < 0:
                continue
            miss_sq = float(np.dot(oc, oc)) - along * along
            if miss_sq > self.radius * self.radius:
                continue
            hit_distance = along - math.sqrt(max(0.0, self.radius * self.radius - miss_sq))
            if hit_distance > max_distance or (best is not None and hit_distance >= best.distance):
                continue
            point = o + d * hit_distance
            best = RaycastHit(
                point=tuple(float(c) for c in point),
                object_name=target.info.name,
                distance=hit_distance,
                target=target.info,
            )
        return best


def yaw_rotation(yaw_deg: float) -> tuple:
    half = math.radians(yaw_deg) / 2.0
    return (math.cos(half), 0.0, math.sin(half), 0.0)


def yaw_forward(yaw_deg: float) -> Vec3:
    rad = math.radians(yaw_deg)
    return (math.sin(rad), 0.0, math.cos(rad))


class ScenarioSimulation:
    """
    Builds the full metric stack and runs one synthetic session.

    Args:
        sim: Scenario settings
        parameters: Parameters shared by every metric
        registry_config: Collection interval for interval records
        stress_config: Stress model settings
        loggers: Sinks registered with the registry
    """

    def __init__(
        self,
        sim: SimulationConfig | None = None,
        parameters: MetricParameters | None = None,
        registry_config: RegistryConfig | None = None,
        stress_config: StressLevelConfig | None = None,
        loggers: Optional[List[DataLogger]] = None,
    ) -> None:
        self.sim = sim or SimulationConfig()
        self.parameters = parameters or MetricParameters()
        self._rng = np.random.default_rng(self.sim.seed)
        self.clock = SimulationClock()
        self.bus = EventBus()
        self.scene = SyntheticScene(self.sim.target_radius_m)
        self.stressors = ActiveStressors()

        self.head_source: LatestSampleSource[HeadSample] = LatestSampleSource()
        self.gaze_source: LatestSampleSource[GazeSample] = LatestSampleSource()
        self.hand_sources: Dict[Hand, LatestSampleSource[ControllerSample]] = {
            hand: LatestSampleSource() for hand in Hand
        }

        self.registry = MetricsRegistry(
            registry_config or RegistryConfig(scenario_name=self.sim.scenario_name),
            clock=self.clock,
            loggers=loggers,
            stressor_source=self.stressors,
        )
        self.metrics = self._build_metrics(stress_config or StressLevelConfig(seed=self.sim.seed))
        for metric in self.metrics.values():
            self.registry.register(metric)
        self.registry.attach_bus(self.bus)

        self._time = 0.0
        self._next_identity = 1
        self._next_spawn = 0.5
        self._trigger_until = -1.0
        self._stress_triggered = False
        self._correct = 0
        self._classified = 0

    def _build_metrics(self, stress_config: StressLevelConfig) -> Dict[str, object]:
        p, clock = self.parameters, self.clock
        classification = ClassificationMetric(p, clock, ClassificationConfig())
        controller = ControllerMovementMetric(
            p, clock, ControllerMovementConfig(), sources=self.hand_sources, raycaster=self.scene
        )
        metrics = {
            "classification": classification,
            "reaction_time": ReactionTimeMetric(p, clock, ReactionTimeConfig()),
            "controller": controller,
            "gaze": GazeTrackingMetric(
                p,
                clock,
                GazeTrackingConfig(),
                gaze_source=self.gaze_source,
                head_source=self.head_source,
                raycaster=self.scene,
            ),
            "awareness": SituationalAwarenessMetric(
                p, clock, SituationalAwarenessConfig(), head_source=self.head_source, raycaster=self.scene
            ),
            "stress": StressLevelMetric(
                p,
                clock,
                stress_config,
                controller=controller,
                classification=classification,
                head_source=self.head_source,
                stressor_source=self.stressors,
            ),
        }
        return metrics

    # -- operator ------------------------------------------------------------
    def head_yaw(self, t: float) -> float:
        """Sweep right, pause, sweep left, pause, repeat."""
        sim = self.sim
        amplitude = sim.sweep_rate_deg_per_s * sim.sweep_s / 2.0
        period = 2.0 * (sim.sweep_s + sim.pause_s)
        phase = t % period
        if phase < sim.sweep_s:
            return -amplitude + sim.sweep_rate_deg_per_s * phase
        phase -= sim.sweep_s
        if phase < sim.pause_s:
            return amplitude
        phase -= sim.pause_s
        if phase < sim.sweep_s:
            return amplitude - sim.sweep_rate_deg_per_s * phase
        return -amplitude

    def _push_samples(self, t: float) -> None:
        yaw = self.head_yaw(t)
        forward = yaw_forward(yaw)
        self.head_source.push(HeadSample(position=HEAD_POSITION, forward=forward))

        jitter = self._rng.normal(0.0, 0.003, size=3)
        eye = tuple(float(c) for c in normalize(as_vec(forward) + jitter))
        openness = float(self._rng.uniform(0.7, 0.8))
        self.gaze_source.push(
            GazeSample(
                head_position=HEAD_POSITION,
                head_forward=forward,
                left_eye_direction=eye,
                right_eye_direction=eye,
                left_eye_openness=openness,
                right_eye_openness=openness,
            )
        )

        tremor = self._rng.normal(0.0, 0.002, size=3)
        right = as_vec((0.3, 1.3, 0.45)) + tremor
        self.hand_sources[Hand.RIGHT].push(
            ControllerSample(
                hand=Hand.RIGHT,
                position=tuple(float(c) for c in right),
                rotation=yaw_rotation(yaw),
                trigger=1.0 if t < self._trigger_until else 0.0,
            )
        )
        self.hand_sources[Hand.LEFT].push(
            ControllerSample(hand=Hand.LEFT, position=(-0.3, 1.1, 0.3), rotation=yaw_rotation(yaw * 0.5))
        )

    # -- scene ---------------------------------------------------------------
    def _spawn(self, t: float) -> None:
        sim = self.sim
        identity = self._next_identity
        self._next_identity += 1
        category = CATEGORIES[int(self._rng.choice(len(CATEGORIES), p=list(sim.category_weights)))]
        bearing = math.radians(float(self._rng.uniform(-sim.spawn_bearing_deg, sim.spawn_bearing_deg)))
        dist = float(self._rng.uniform(*sim.spawn_distance_m))
        position = np.array([math.sin(bearing) * dist, 1.0, math.cos(bearing) * dist])
        heading = float(self._rng.uniform(0.0, 2.0 * math.pi))
        velocity = np.array([math.sin(heading), 0.0, math.cos(heading)]) * sim.target_speed_m_per_s
        classify_at = None
        if self._rng.random() >= sim.ignore_probability:
            classify_at = t + float(self._rng.uniform(*sim.reaction_time_s))
        target = SimulatedTarget(TargetInfo(identity, category), position, velocity, t, classify_at)
        self.scene.targets[identity] = target
        self.bus.publish(TargetSpawned(identity, category, tuple(float(c) for c in position)))

    def _classify(self, target: SimulatedTarget, t: float) -> None:
        actual = target.info.category
        if self._rng.random() < self.sim.correct_probability:
            chosen = actual
        else:
            others = [c for c in CATEGORIES if c is not actual]
            chosen = others[int(self._rng.integers(len(others)))]
        self._classified += 1
        self._correct += int(chosen is actual)
        self._trigger_until = t + 0.2
        self.bus.publish(
            TargetClassified(
                identity=target.info.identity,
                actual_category=actual,
                classified_as=chosen,
                is_correct=chosen is actual,
                reaction_time=t - target.spawn_time,
                target_position=tuple(float(c) for c in target.position),
                operator_position=HEAD_POSITION,
            )
        )
        self._despawn(target, DespawnReasons.CLASSIFIED)

    def _despawn(self, target: SimulatedTarget, reason: str) -> None:
        self.scene.targets.pop(target.info.identity, None)
        self.bus.publish(TargetDespawned(target.info.identity, reason))

    def _step_scene(self, t: float, dt: float) -> None:
        if t >= self._next_spawn:
            self._spawn(t)
            self._next_spawn = t + self.sim.spawn_interval_s

        for target in list(self.scene.targets.values()):
            target.position = target.position + target.velocity * dt
            if target.classify_at is not None and t >= target.classify_at:
                self._classify(target, t)
            elif t - target.spawn_time > self.sim.target_timeout_s:
                self._despawn(target, DespawnReasons.TIMEOUT)
            elif np.linalg.norm(target.position[[0, 2]]) > self.sim.spawn_distance_m[1] + 5.0:
                self._despawn(target, DespawnReasons.LEFT_PLAYGROUND)

        if int(round(t / dt)) % 10 == 0:
            for target in self.scene.targets.values():
                self.bus.publish(TargetMoved(target.info.identity, tuple(float(c) for c in target.position)))

    def _step_stressors(self, t: float) -> None:
        fraction = t / self.sim.duration_s
        for name, intensity, start, end in self.sim.stressors:
            active = start <= fraction < end
            if active and name not in {s.name for s in self.stressors()}:
                self.bus.publish(StressorActivated(name, intensity))
            elif not active and name in {s.name for s in self.stressors()}:
                self.bus.publish(StressorDeactivated(name))
        if not self._stress_triggered and fraction >= 0.5:
            self._stress_triggered = True
            stress = self.metrics.get("stress")
            if isinstance(stress, StressLevelMetric):
                stress.trigger_stress_response(0.5, "Explosion")

    # -- run -----------------------------------------------------------------
    def run(self) -> FinalAnalysisReport:
        sim = self.sim
        dt = sim.tick_s
        ticks = int(round(sim.duration_s * sim.tick_rate_hz))
        logger.info(
            "Running %s for %.1fs at %.0f Hz (seed %d)", sim.scenario_name, sim.duration_s, sim.tick_rate_hz, sim.seed
        )

        self.bus.publish(ScenarioStarted(sim.scenario_name, sim.duration_s))
        for _ in range(ticks):
            self._time += dt
            self._push_samples(self._time)
            self._step_stressors(self._time)
            self._step_scene(self._time, dt)
            self.registry.tick(dt)

        self.bus.publish(
            ScenarioEnded(
                scenario_name=sim.scenario_name,
                elapsed_time=self.registry.elapsed_time,
                total_classifications=self._classified,
                correct_classifications=self._correct,
            )
        )
        report = self.registry.last_report
        if report is None:
            report = self.registry.end_session(sim.scenario_name)
        return report
