"""
Tests for SituationalAwarenessMetric.
"""
import math

import pytest

from decide_metrics.domain.samples import HeadSample, RaycastHit, TargetCategory
from decide_metrics.domain.scenario import TargetDespawned, TargetLost, TargetMoved, TargetSpawned
from decide_metrics.metrics.situational_awareness import SituationalAwarenessMetric
from decide_metrics.sources import LatestSampleSource

from conftest import HEAD, FixedRaycaster, target_hit

FORWARD = (0.0, 0.0, 1.0)
BACKWARD = (0.0, 0.0, -1.0)


def _yaw(deg: float):
    rad = math.radians(deg)
    return (math.sin(rad), 0.0, math.cos(rad))


def _at(yaw_deg: float, distance: float):
    x, _, z = _yaw(yaw_deg)
    return (x * distance, HEAD[1], z * distance)


@pytest.fixture
def head():
    return LatestSampleSource(HeadSample(position=HEAD, forward=FORWARD))


@pytest.fixture
def metric(clock, params, head):
    m = SituationalAwarenessMetric(params, clock, head_source=head)
    m.start_recording()
    return m


def test_target_in_view_is_detected_on_spawn(metric, bus):
    metric.subscribe(bus)
    bus.publish(TargetSpawned(1, TargetCategory.HOSTILE, _at(0.0, 20.0)))

    event = metric.detections[1]
    assert event.detection_delay == 0.0
    assert event.distance == pytest.approx(20.0)
    assert event.angle == pytest.approx(0.0)
    assert not event.in_periphery

    threat = metric.threats.get(1)
    assert threat.threat_level == pytest.approx(80.0)
    assert threat.tracked

    data = metric.get_data().to_dict()
    assert data["total_objects_detected"] == 1
    assert data["total_objects_missed"] == 0
    assert data["detection_rate"] == pytest.approx(100.0)
    assert data["min_detection_time"] == 0.0


def test_target_behind_is_missed_until_seen(metric, head, drive):
    metric.on_target_spawned(TargetSpawned(1, TargetCategory.HOSTILE, _at(180.0, 20.0)))
    assert metric.missed == {1}

    drive(metric, 30)
    assert 1 not in metric.detections

    head.push(HeadSample(position=HEAD, forward=BACKWARD))
    drive(metric, 1)
    assert metric.missed == set()
    assert metric.detections[1].detection_delay == pytest.approx(31 / 60)


def test_peripheral_detection(metric):
    metric.on_target_spawned(TargetSpawned(1, TargetCategory.UNKNOWN, _at(45.0, 10.0)))
    event = metric.detections[1]
    assert event.angle == pytest.approx(45.0)
    assert event.in_periphery
    assert metric.peripheral_detection_rate == pytest.approx(100.0)


def test_out_of_range_is_not_visible(metric):
    metric.on_target_spawned(TargetSpawned(1, TargetCategory.HOSTILE, _at(0.0, 60.0)))
    assert not metric.is_visible(1)
    assert metric.missed == {1}


def test_line_of_sight(clock, params, head):
    wall = RaycastHit(point=(0.0, 1.7, 5.0), object_name="Wall", distance=5.0)
    raycaster = FixedRaycaster(wall)
    metric = SituationalAwarenessMetric(params, clock, head_source=head, raycaster=raycaster)
    metric.start_recording()
    metric.on_target_spawned(TargetSpawned(1, TargetCategory.HOSTILE, _at(0.0, 20.0)))
    assert metric.missed == {1}

    raycaster.hit = target_hit(1, TargetCategory.HOSTILE, point=_at(0.0, 20.0))
    assert metric.is_visible(1)
    raycaster.hit = target_hit(2, TargetCategory.HOSTILE)
    assert not metric.is_visible(1)


def test_unseen_threat_expires(metric, head, drive):
    metric.on_target_spawned(TargetSpawned(1, TargetCategory.HOSTILE, _at(0.0, 20.0)))
    head.push(HeadSample(position=HEAD, forward=BACKWARD))
    drive(metric, 240)
    assert metric.threats.get(1) is not None
    assert metric.threats.active_count == 0
    drive(metric, 90)
    assert metric.threats.get(1) is None
    assert len(metric.detections) == 1


def test_lost_threat_reacquired_when_visible(metric, bus, drive):
    metric.subscribe(bus)
    bus.publish(TargetSpawned(1, TargetCategory.HOSTILE, _at(0.0, 20.0)))
    bus.publish(TargetLost(1))
    assert metric.get_data().value("active_threats") == 0
    drive(metric, 1)
    assert metric.get_data().value("active_threats") == 1


def test_moved_target_updates_threat(metric, bus, drive):
    metric.subscribe(bus)
    bus.publish(TargetSpawned(1, TargetCategory.HOSTILE, _at(0.0, 20.0)))
    bus.publish(TargetMoved(1, _at(0.0, 40.0)))
    drive(metric, 1)
    threat = metric.threats.get(1)
    assert threat.distance == pytest.approx(40.0)
    assert threat.threat_level == pytest.approx(60.0)


def test_despawn_forgets_target(metric, bus):
    metric.subscribe(bus)
    bus.publish(TargetSpawned(1, TargetCategory.HOSTILE, _at(0.0, 20.0)))
    bus.publish(TargetSpawned(2, TargetCategory.FRIENDLY, _at(180.0, 20.0)))
    bus.publish(TargetDespawned(1, "classified"))
    bus.publish(TargetDespawned(2, "timeout"))
    assert metric.entities == {}
    assert metric.missed == set()
    assert len(metric.threats) == 0
    assert metric.total_objects_in_scene == 2


def test_score_without_targets_uses_available_terms(metric, drive):
    drive(metric, 60)
    coverage = metric.grid.coverage_percent()
    assert coverage == pytest.approx(100.0 / 1296)
    expected = (coverage * 20.0 + 100.0 * 25.0) / (20.0 + 25.0 + 10.0)
    assert metric.awareness_score == pytest.approx(expected)
    assert len(metric.score_history) == 60


def test_score_with_detected_targets(metric, drive):
    metric.on_target_spawned(TargetSpawned(1, TargetCategory.HOSTILE, _at(0.0, 20.0)))
    metric.on_target_spawned(TargetSpawned(2, TargetCategory.HOSTILE, _at(180.0, 20.0)))
    drive(metric, 1)
    # detection 50, coverage 0, prioritization 100, peripheral 0, scanning 0
    expected = (50.0 * 30.0 + 100.0 * 25.0) / 100.0
    assert metric.awareness_score == pytest.approx(expected)


def test_sweep_counts_as_scan(metric, head, drive):
    def sweep(i):
        head.push(HeadSample(position=HEAD, forward=_yaw(6.0 * min(i, 40))))

    drive(metric, 42, before_tick=sweep)
    data = metric.get_data().to_dict()
    assert data["completed_scans"] == 1
    assert data["average_scan_arc"] == pytest.approx(240.0)
    assert data["average_scan_duration"] == pytest.approx(40 / 60)


def test_finalize_on_stop(metric, head, drive):
    metric.on_target_spawned(TargetSpawned(1, TargetCategory.HOSTILE, _at(180.0, 10.0)))
    drive(metric, 60)
    head.push(HeadSample(position=HEAD, forward=BACKWARD))
    drive(metric, 1)
    metric.stop_recording()
    data = metric.get_data().to_dict()
    assert data["average_detection_time"] == pytest.approx(61 / 60)
    assert data["threat_detection_accuracy"] == pytest.approx(100.0)
    assert data["max_detection_time"] == pytest.approx(61 / 60)

    result = metric.analyze()
    assert result.sample_count == 61
    assert result.additional_data.value("detection_rate") == pytest.approx(100.0)


def test_idle_metric_ignores_spawns(clock, params, head):
    metric = SituationalAwarenessMetric(params, clock, head_source=head)
    metric.on_target_spawned(TargetSpawned(1, TargetCategory.HOSTILE, _at(0.0, 20.0)))
    assert metric.total_objects_in_scene == 0


def test_idle_metric_ignores_despawn_and_move(metric, bus):
    metric.subscribe(bus)
    bus.publish(TargetSpawned(1, TargetCategory.HOSTILE, _at(0.0, 20.0)))
    bus.publish(TargetSpawned(2, TargetCategory.FRIENDLY, _at(180.0, 20.0)))
    metric.stop_recording()

    bus.publish(TargetMoved(1, _at(0.0, 40.0)))
    bus.publish(TargetDespawned(1, "classified"))
    bus.publish(TargetDespawned(2, "timeout"))
    assert set(metric.entities) == {1, 2}
    assert metric.missed == {2}
    assert metric.threats.get(1).distance == pytest.approx(20.0)


def test_reset_returns_to_initial_state(metric, head, params, drive):
    metric.on_target_spawned(TargetSpawned(1, TargetCategory.HOSTILE, _at(0.0, 20.0)))
    metric.on_target_spawned(TargetSpawned(2, TargetCategory.HOSTILE, _at(180.0, 20.0)))

    def sweep(i):
        head.push(HeadSample(position=HEAD, forward=_yaw(6.0 * min(i, 40))))

    drive(metric, 60, before_tick=sweep)
    assert metric.score_history
    metric.reset()

    assert metric.is_recording
    assert metric.parameters is params
    assert metric.entities == {}
    assert metric.detections == {}
    assert metric.missed == set()
    assert len(metric.threats) == 0
    assert len(metric.score_history) == 0
    assert metric.grid.coverage_percent() == 0.0
    data = metric.get_data().to_dict()
    assert data["total_objects_detected"] == 0
    assert data["total_objects_missed"] == 0
    assert data["completed_scans"] == 0
    assert data["sample_count"] == 0
