"""
Tests for ReactionTimeMetric.
"""
import pytest

from decide_metrics.config import ReactionTimeConfig
from decide_metrics.domain.samples import TargetCategory
from decide_metrics.domain.scenario import TargetDespawned, TargetSpawned
from decide_metrics.metrics.reaction_time import ReactionTimeMetric

from conftest import classified

H, F = TargetCategory.HOSTILE, TargetCategory.FRIENDLY


@pytest.fixture
def metric(clock, params, bus):
    m = ReactionTimeMetric(params, clock)
    m.subscribe(bus)
    m.start_recording()
    return m


def _spawn(bus, identity, category=H):
    bus.publish(TargetSpawned(identity, category, (0.0, 0.0, 10.0)))


def test_spawn_to_classification(metric, bus, clock):
    _spawn(bus, 1)
    assert metric.tracked_targets == 1
    clock.advance(1.5)
    bus.publish(classified(1, H, F))
    assert metric.tracked_targets == 0

    data = metric.get_data().to_dict()
    assert data["total_measurements"] == 1
    assert data["average_reaction_time"] == pytest.approx(1.5)
    assert data["reaction_time_by_type"]["Hostile"]["average"] == pytest.approx(1.5)


def test_unknown_target_not_measured(metric, bus):
    bus.publish(classified(99, H, H))
    assert metric.measurement_count == 0


def test_despawn_cancels(metric, bus, clock):
    _spawn(bus, 1)
    bus.publish(TargetDespawned(1, "left_playground"))
    clock.advance(1.0)
    bus.publish(classified(1, H, H))
    assert metric.measurement_count == 0


def test_stale_spawns_expire(metric, bus, drive):
    _spawn(bus, 1)
    drive(metric, 99, dt=0.1)
    assert metric.tracked_targets == 1
    drive(metric, 2, dt=0.1)
    assert metric.tracked_targets == 0
    bus.publish(classified(1, H, H))
    assert metric.measurement_count == 0


def test_outliers_flagged_and_excluded_from_percentiles(metric):
    for value in (1.0, 2.0, 12.0):
        metric.record_data_point(value)
    data = metric.get_data().to_dict()
    assert data["total_measurements"] == 3
    assert data["max_reaction_time"] == 12.0
    assert data["percentile_95"] == 2.0
    result = metric.analyze()
    assert result.additional_data.value("outlier_count") == 1
    assert result.max == 2.0


def test_outliers_dropped_when_excluded(clock, params):
    metric = ReactionTimeMetric(params, clock, ReactionTimeConfig(exclude_outliers=True))
    metric.start_recording()
    metric.record_data_point(12.0)
    metric.record_data_point(0.8)
    assert metric.measurement_count == 1
    assert metric.max_reaction_time == 0.8


def test_percentiles(metric):
    for value in range(1, 11):
        metric.record_data_point(float(value))
    data = metric.get_data().to_dict()
    assert data["percentile_50"] == 5.0
    assert data["percentile_90"] == 9.0
    assert data["percentile_95"] == 10.0
    assert data["min_reaction_time"] == 1.0


def test_moving_average_window(metric):
    for value in range(1, 13):
        metric.record_data_point(float(value))
    assert metric.moving_average == pytest.approx(7.5)
    assert metric.average_reaction_time == pytest.approx(6.5)


def test_improvement_trend(metric):
    for value in [4.0] * 4 + [3.0] * 4 + [2.0] * 4:
        metric.record_data_point(value)
    assert metric.improvement_trend() == pytest.approx(-0.5)


def test_improvement_trend_needs_ten_measurements(metric):
    for value in (3.0, 1.0):
        metric.record_data_point(value)
    assert metric.improvement_trend() == 0.0


def test_by_type(metric, bus, clock):
    _spawn(bus, 1, H)
    _spawn(bus, 2, F)
    _spawn(bus, 3, H)
    clock.advance(1.0)
    bus.publish(classified(1, H, H))
    clock.advance(1.0)
    bus.publish(classified(2, F, F))
    bus.publish(classified(3, H, H))
    by_type = metric.by_type()
    assert by_type["Hostile"] == {"average": 1.5, "min": 1.0, "max": 2.0, "count": 2}
    assert by_type["Friendly"]["count"] == 1


def test_empty_snapshot(metric):
    data = metric.get_data().to_dict()
    assert data["min_reaction_time"] == 0.0
    assert data["reaction_time_by_type"] == {}
    assert "percentile_50" not in data


def test_reset_clears_pending(metric, bus):
    _spawn(bus, 1)
    metric.reset()
    assert metric.tracked_targets == 0
    assert metric.measurement_count == 0
