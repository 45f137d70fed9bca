"""
Tests for MetricsRegistry: registration, ticking, logger dispatch, sessions.
"""
import logging

import pytest

from decide_metrics.config import MetricParameters, RegistryConfig
from decide_metrics.domain.results import StressorInfo
from decide_metrics.domain.samples import TargetCategory
from decide_metrics.domain.scenario import ScenarioEnded, ScenarioStarted, StressorActivated, TargetClassified
from decide_metrics.errors import ConfigurationError, DuplicateMetricError, UnknownMetricError
from decide_metrics.io.loggers import DataLogger, InMemoryDataLogger
from decide_metrics.metrics.classification import ClassificationMetric
from decide_metrics.metrics.reaction_time import ReactionTimeMetric
from decide_metrics.registry import MetricsRegistry
from decide_metrics.stressors import ActiveStressors

from conftest import classified

H, F = TargetCategory.HOSTILE, TargetCategory.FRIENDLY


class BrokenLogger(DataLogger):
    def log_data(self, entry):
        raise IOError("disk full")

    def log_final_report(self, report):
        raise IOError("disk full")


@pytest.fixture
def sink():
    return InMemoryDataLogger()


@pytest.fixture
def registry(clock, sink):
    return MetricsRegistry(RegistryConfig(collection_interval_s=0.1, scenario_name="Drill"), clock, [sink])


class TestRegistration:
    def test_register_and_get(self, registry, clock):
        metric = registry.register(ReactionTimeMetric(clock=clock))
        assert registry.get("ReactionTime") is metric
        assert "ReactionTime" in registry
        assert len(registry) == 1
        assert registry.names == ["ReactionTime"]
        assert list(registry) == [metric]

    def test_duplicate_name_rejected(self, registry, clock):
        registry.register(ReactionTimeMetric(clock=clock))
        with pytest.raises(DuplicateMetricError):
            registry.register(ReactionTimeMetric(clock=clock))

    def test_non_metric_rejected(self, registry):
        with pytest.raises(ConfigurationError):
            registry.register(object())

    def test_unknown_name(self, registry):
        with pytest.raises(UnknownMetricError):
            registry.get("Nope")
        with pytest.raises(KeyError):
            registry.start_metric("Nope")

    def test_unregister(self, registry, clock, bus):
        registry.attach_bus(bus)
        registry.register(ClassificationMetric(clock=clock))
        assert bus.handler_count(TargetClassified) == 1
        registry.unregister("Classification")
        assert "Classification" not in registry
        assert bus.handler_count(TargetClassified) == 0

    def test_loggers_added_once(self, registry, sink):
        registry.add_logger(sink)
        assert registry.loggers == [sink]
        registry.remove_logger(sink)
        assert registry.loggers == []


class TestTicking:
    def test_collection_interval(self, registry, clock, sink):
        registry.register(ReactionTimeMetric(clock=clock))
        for _ in range(30):
            assert registry.tick(1 / 60) is None
        assert sink.entries == []

        registry.start_session()
        for _ in range(60):
            registry.tick(1 / 60)
        assert len(sink.entries) == 10
        entry = sink.entries[-1]
        assert entry.scenario_name == "Drill"
        assert entry.elapsed_time == pytest.approx(1.0)
        assert set(entry.metrics) == {"ReactionTime"}
        assert entry.metrics["ReactionTime"].value("is_recording")

    def test_only_recording_metrics_update(self, registry, clock):
        metric = registry.register(ReactionTimeMetric(clock=clock))
        registry.start_session()
        registry.stop_metric("ReactionTime")
        assert not metric.is_recording
        assert not registry.is_collecting
        assert registry.tick(1.0) is None
        registry.start_metric("ReactionTime")
        assert registry.tick(1.0) is not None

    def test_failing_logger_is_isolated(self, registry, clock, sink, caplog):
        registry.add_logger(BrokenLogger())
        registry.register(ReactionTimeMetric(clock=clock))
        registry.start_session()
        with caplog.at_level(logging.WARNING, logger="decide_metrics.registry"):
            registry.tick(0.1)
            registry.end_session()
        assert len(sink.entries) == 1
        assert sink.last_report is not None
        warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert len(warnings) == 2
        assert "BrokenLogger" in warnings[0].getMessage()

    def test_active_stressors_in_entries(self, clock, sink, bus):
        stressors = ActiveStressors()
        registry = MetricsRegistry(clock=clock, loggers=[sink], stressor_source=stressors, bus=bus)
        registry.register(ReactionTimeMetric(clock=clock))
        registry.start_session()
        bus.publish(StressorActivated("Noise", 0.5))
        entry = registry.tick(0.1)
        assert entry.active_stressors == [StressorInfo("Noise", 0.5)]

    def test_forwarding_by_name(self, registry, clock):
        metric = registry.register(ReactionTimeMetric(clock=clock))
        registry.start_session()
        registry.record_data_point("ReactionTime", 0.75)
        assert metric.measurement_count == 1
        registry.update_parameters("ReactionTime", MetricParameters(sampling_rate_hz=10.0))
        assert metric.parameters.sampling_rate_hz == 10.0
        registry.reset_metric("ReactionTime")
        assert metric.measurement_count == 0


class TestSessions:
    def test_end_session_report(self, registry, clock, sink):
        classification = registry.register(ClassificationMetric(clock=clock))
        registry.register(ReactionTimeMetric(clock=clock))
        session_id = registry.start_session()
        classification.record_data_point(classified(1, H, H))
        classification.record_data_point(classified(2, H, F))
        registry.tick(2.0)

        report = registry.end_session()
        assert report.session_id == session_id
        assert report.scenario_name == "Drill"
        assert report.duration == pytest.approx(2.0)
        assert set(report.analysis_results) == {"Classification", "ReactionTime"}
        assert report.totals == {"total_classifications": 2, "correct_classifications": 1}
        assert sink.last_report is report
        assert registry.last_report is report
        assert not registry.is_collecting

    def test_new_session_resets_metrics(self, registry, clock):
        metric = registry.register(ReactionTimeMetric(clock=clock))
        first = registry.start_session()
        registry.record_data_point("ReactionTime", 1.0)
        second = registry.start_session()
        assert first != second
        assert metric.measurement_count == 0
        assert registry.elapsed_time == 0.0

    def test_bus_driven_session(self, clock, sink, bus):
        registry = MetricsRegistry(clock=clock, loggers=[sink], bus=bus)
        registry.register(ClassificationMetric(clock=clock))

        bus.publish(ScenarioStarted("Checkpoint", 30.0))
        assert registry.scenario_name == "Checkpoint"
        bus.publish(classified(1, H, H))
        registry.tick(1.0)
        bus.publish(ScenarioEnded("Checkpoint", 1.0, total_classifications=3, correct_classifications=2))

        report = sink.last_report
        assert report.scenario_name == "Checkpoint"
        assert report.duration == 1.0
        assert report.analysis_results["Classification"].sample_count == 1
        assert report.totals == {"total_classifications": 3, "correct_classifications": 2}

    def test_scenario_end_without_totals_keeps_metric_totals(self, clock, sink, bus):
        registry = MetricsRegistry(clock=clock, loggers=[sink], bus=bus)
        registry.register(ClassificationMetric(clock=clock))
        bus.publish(ScenarioStarted("Checkpoint", 30.0))
        bus.publish(classified(1, H, H))
        bus.publish(ScenarioEnded("Checkpoint", 1.0))
        assert sink.last_report.totals == {"total_classifications": 1, "correct_classifications": 1}
