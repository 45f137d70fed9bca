"""
Tests for the stress model and StressLevelMetric.
"""
import math

import numpy as np
import pytest

from decide_metrics.config import StressLevelConfig
from decide_metrics.core.clock import SimulationClock
from decide_metrics.domain.events import StressEventKind
from decide_metrics.domain.samples import HeadSample, PhysiologicalSample, TargetCategory
from decide_metrics.metrics.classification import ClassificationMetric
from decide_metrics.metrics.stress_level import StressLevelMetric
from decide_metrics.processing.stress import (
    PhysiologyModel,
    StressCategory,
    StressDynamics,
    StressEventDetector,
    StressInputs,
    compute_raw_stress,
    stress_category,
)
from decide_metrics.sources import LatestSampleSource
from decide_metrics.stressors import ActiveStressors

from conftest import HEAD, classified


class TestStressDynamics:
    def test_start_at_baseline(self):
        dynamics = StressDynamics(StressLevelConfig())
        dynamics.start()
        assert dynamics.current == 20.0
        assert dynamics.accumulation == 0.0

    def test_growth_step(self):
        dynamics = StressDynamics(StressLevelConfig())
        dynamics.start()
        current = dynamics.step(50.0, 0.1)
        # accumulation 30 * 0.5 * 0.1, lerp towards 51.5 by 0.2
        assert dynamics.accumulation == pytest.approx(1.5)
        assert current == pytest.approx(26.3)
        assert dynamics.peak == pytest.approx(26.3)

    def test_decay_step(self):
        dynamics = StressDynamics(StressLevelConfig())
        dynamics.start()
        dynamics.step(10.0, 1.0)
        assert dynamics.accumulation == pytest.approx(-0.1)

    def test_accumulation_bounds(self):
        dynamics = StressDynamics(StressLevelConfig())
        dynamics.start()
        dynamics.add_impulse(100.0)
        assert dynamics.accumulation == 30.0
        dynamics.add_impulse(-100.0)
        assert dynamics.accumulation == -10.0

    def test_blend_factor_modes(self):
        frame = StressDynamics(StressLevelConfig())
        assert frame.blend_factor(0.1) == pytest.approx(0.2)
        assert frame.blend_factor(2.0) == 1.0
        timed = StressDynamics(StressLevelConfig(smoothing_mode="time_constant"))
        assert timed.blend_factor(0.5) == pytest.approx(1.0 - math.exp(-1.0))

    def test_time_constant_is_rate_independent(self):
        cfg = StressLevelConfig(smoothing_mode="time_constant", growth_rate=0.0)
        coarse, fine = StressDynamics(cfg), StressDynamics(cfg)
        coarse.start()
        fine.start()
        for _ in range(10):
            coarse.step(60.0, 0.1)
        for _ in range(100):
            fine.step(60.0, 0.01)
        assert coarse.current == pytest.approx(fine.current, rel=1e-9)


class TestRawStress:
    def test_resting_inputs_give_baseline(self):
        physiology = PhysiologyModel()
        physiology.heart_rate = 60.0
        physiology.heart_rate_variability = 20.0
        physiology.skin_conductance = 1.0
        physiology.pupil_diameter = 3.0
        raw, components = compute_raw_stress(StressLevelConfig(), physiology, StressInputs())
        assert raw == pytest.approx(20.0)
        assert set(components) == {"physiological", "behavioral", "environmental", "performance"}
        assert all(v == pytest.approx(0.0) for v in components.values())

    def test_environmental_term_is_capped(self):
        physiology = PhysiologyModel()
        physiology.heart_rate = 60.0
        physiology.heart_rate_variability = 20.0
        physiology.pupil_diameter = 3.0
        _, components = compute_raw_stress(
            StressLevelConfig(), physiology, StressInputs(stressor_intensity=10.0)
        )
        assert components["environmental"] == pytest.approx(40.0 * 0.2)

    def test_performance_term(self):
        physiology = PhysiologyModel()
        physiology.heart_rate = 60.0
        physiology.heart_rate_variability = 20.0
        physiology.pupil_diameter = 3.0
        _, components = compute_raw_stress(
            StressLevelConfig(),
            physiology,
            StressInputs(classification_accuracy=0.5, elapsed=150.0),
        )
        assert components["performance"] == pytest.approx(10.0 + 5.0)


class TestEventDetector:
    def test_rapid_increase(self):
        events = StressEventDetector().detect([20.0] * 10 + [40.0] * 10, 40.0, 1.0)
        assert [e.kind for e in events] == [StressEventKind.RAPID_INCREASE]
        assert events[0].impact == pytest.approx(20.0)

    def test_sustained_high(self):
        events = StressEventDetector().detect([90.0] * 31, 90.0, 1.0)
        assert [e.kind for e in events] == [StressEventKind.SUSTAINED_HIGH_STRESS]

    def test_recovery(self):
        events = StressEventDetector().detect([80.0] * 20 + [50.0] * 10, 50.0, 1.0)
        assert [e.kind for e in events] == [StressEventKind.STRESS_RECOVERY]

    def test_short_history_is_quiet(self):
        assert StressEventDetector().detect([10.0, 90.0], 90.0, 1.0) == []


@pytest.mark.parametrize(
    "level, category",
    [
        (0.0, StressCategory.MINIMAL),
        (19.9, StressCategory.MINIMAL),
        (20.0, StressCategory.LOW),
        (59.9, StressCategory.MODERATE),
        (79.9, StressCategory.HIGH),
        (80.0, StressCategory.EXTREME),
    ],
)
def test_stress_category(level, category):
    assert stress_category(level) is category


class TestStressLevelMetric:
    def test_starts_at_baseline(self, clock, params):
        metric = StressLevelMetric(params, clock)
        metric.start_recording()
        data = metric.get_data().to_dict()
        assert data["current_stress_level"] == 20.0
        assert data["stress_category"] == "Low"
        assert data["baseline_stress_level"] == 20.0

    def test_bounds_hold_under_random_load(self, clock, params):
        rng = np.random.default_rng(3)
        stressors = ActiveStressors()
        metric = StressLevelMetric(params, clock, stressor_source=stressors)
        metric.start_recording()
        for i in range(2000):
            if i % 50 == 0:
                stressors.activate("Noise", float(rng.uniform(0.0, 6.0)))
            if i % 97 == 0:
                metric.trigger_stress_response(float(rng.uniform(0.0, 3.0)), "Blast")
            dt = float(rng.uniform(0.001, 0.2))
            clock.advance(dt)
            metric.update(dt)
            assert 0.0 <= metric.current_stress <= 100.0
            assert -10.0 <= metric.accumulation <= 30.0

    def test_trigger_response(self, clock, params):
        metric = StressLevelMetric(params, clock)
        metric.start_recording()
        metric.trigger_stress_response(2.0, "Explosion")
        assert metric.accumulation == 30.0
        assert metric.stress_events[-1].label == "Trigger_Explosion"
        assert metric.stress_events[-1].impact == pytest.approx(40.0)
        assert metric.get_data().value("stress_events") == {"Trigger_Explosion": 1}

    def test_same_seed_same_session(self, params):
        histories = []
        for _ in range(2):
            clock = SimulationClock()
            metric = StressLevelMetric(params, clock, StressLevelConfig(seed=5))
            metric.start_recording()
            for _ in range(300):
                clock.advance(1 / 60)
                metric.update(1 / 60)
            histories.append(metric.history.to_list())
        assert histories[0] == histories[1]

    def test_classification_events_feed_behaviour(self, clock, params, bus):
        metric = StressLevelMetric(params, clock)
        metric.subscribe(bus)
        metric.start_recording()
        bus.publish(classified(1, TargetCategory.HOSTILE, TargetCategory.FRIENDLY, reaction_time=2.0))
        bus.publish(classified(2, TargetCategory.HOSTILE, TargetCategory.HOSTILE, reaction_time=1.0))
        assert metric.error_count == 1
        assert metric.average_reaction_time == pytest.approx(0.2 * 0.9 + 0.1)

    def test_measured_physiology_overrides_simulation(self, clock, params, drive):
        source = LatestSampleSource(PhysiologicalSample(heart_rate=150.0))
        metric = StressLevelMetric(params, clock, physiological_source=source)
        metric.start_recording()
        drive(metric, 1)
        assert metric.components["physiological"] > 0.0
        metric.record_data_point(PhysiologicalSample(skin_conductance=2.5))
        assert metric.physiology.skin_conductance == 2.5

    def test_rapid_head_turns_counted_on_rising_edge(self, clock, params, drive):
        head = LatestSampleSource(HeadSample(position=HEAD, forward=(0.0, 0.0, 1.0)))
        metric = StressLevelMetric(params, clock, head_source=head)
        metric.start_recording()

        def turn(i):
            yaw = math.radians(5.0 * i if i < 10 else 45.0)
            head.push(HeadSample(position=HEAD, forward=(math.sin(yaw), 0.0, math.cos(yaw))))

        drive(metric, 20, before_tick=turn)
        # 5 deg per 1/60 s is 300 deg/s: one continuous rapid turn
        assert metric.rapid_head_movements == 1

    def test_uses_other_metrics(self, clock, params, drive):
        classification = ClassificationMetric(params, clock)
        classification.start_recording()
        classification.record_data_point(classified(1, TargetCategory.HOSTILE, TargetCategory.FRIENDLY))
        metric = StressLevelMetric(params, clock, classification=classification)
        metric.start_recording()
        drive(metric, 1)
        assert metric.components["performance"] >= 20.0

    def test_category_distribution_and_analysis(self, clock, params, drive):
        metric = StressLevelMetric(params, clock)
        metric.start_recording()
        drive(metric, 120)
        distribution = metric.category_distribution()
        assert sum(distribution.values()) == pytest.approx(100.0)
        result = metric.analyze()
        assert result.sample_count == 120
        assert result.min >= 0.0
        assert result.max <= 100.0
        assert result.additional_data.value("peak_stress_level") == pytest.approx(metric.peak_stress)

    def test_reset_while_recording_restarts_at_baseline(self, clock, params, drive):
        metric = StressLevelMetric(params, clock)
        metric.start_recording()
        metric.trigger_stress_response(1.0, "Alarm")
        drive(metric, 30)
        metric.reset()
        assert metric.current_stress == 20.0
        assert metric.stress_events == []
        assert len(metric.history) == 0
