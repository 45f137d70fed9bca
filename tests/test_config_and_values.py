"""
Tests for configuration validation, the CLI config builder and snapshot values.
"""
import argparse
import math

import numpy as np
import pytest

from decide_metrics.config import (
    ConfigBuilder,
    MetricParameters,
    RegistryConfig,
    SituationalAwarenessConfig,
    StressLevelConfig,
)
from decide_metrics.domain.samples import TargetCategory
from decide_metrics.domain.values import Snapshot, SnapshotValue, ValueKind
from decide_metrics.errors import ConfigurationError


class TestMetricParameters:
    @pytest.mark.parametrize("rate", [0, -1.0, math.inf, math.nan])
    def test_invalid_sampling_rate_rejected(self, rate):
        with pytest.raises(ConfigurationError):
            MetricParameters(sampling_rate_hz=rate)

    def test_data_point_cap(self):
        assert MetricParameters(max_data_points=50000).effective_max_data_points == 10000
        assert MetricParameters(max_data_points=20).effective_max_data_points == 20
        with pytest.raises(ConfigurationError):
            MetricParameters(max_data_points=0)

    def test_interval(self):
        assert MetricParameters(sampling_rate_hz=20.0).sampling_interval_s == pytest.approx(0.05)

    def test_configuration_error_is_value_error(self):
        with pytest.raises(ValueError):
            MetricParameters(sampling_rate_hz=0)


class TestStressLevelConfig:
    def test_defaults_sum_to_one(self):
        cfg = StressLevelConfig()
        assert sum(cfg.component_weights.values()) == pytest.approx(1.0)

    def test_weights_must_sum_to_one(self):
        with pytest.raises(ConfigurationError, match="sum to 1.0"):
            StressLevelConfig(component_weights={"heart_rate_variability": 0.5})

    def test_negative_weight_rejected(self):
        with pytest.raises(ConfigurationError, match="must be >= 0"):
            StressLevelConfig(component_weights={"heart_rate_variability": 1.5, "movement_jitter": -0.5})

    def test_unknown_component_weighs_one(self):
        assert StressLevelConfig().weight("not_a_component") == 1.0

    def test_unknown_smoothing_mode(self):
        with pytest.raises(ConfigurationError):
            StressLevelConfig(smoothing_mode="instant")


def test_awareness_weights_must_be_complete():
    with pytest.raises(ConfigurationError):
        SituationalAwarenessConfig(weights={"detection": 1.0})


def test_registry_interval_must_be_positive():
    with pytest.raises(ConfigurationError):
        RegistryConfig(collection_interval_s=0.0)


def test_config_builder_from_namespace():
    args = argparse.Namespace(
        sampling_rate=45.0,
        log_raw_data=True,
        max_data_points=500,
        collection_interval=0.5,
        scenario_name="Checkpoint",
        smoothing_mode="time_constant",
        seed=11,
    )
    params = ConfigBuilder.build_metric_parameters(args)
    assert params.sampling_rate_hz == 45.0
    assert params.log_raw_data
    assert params.max_data_points == 500

    registry = ConfigBuilder.build_registry_config(args)
    assert registry.collection_interval_s == 0.5
    assert registry.scenario_name == "Checkpoint"

    stress = ConfigBuilder.build_stress_config(args)
    assert stress.smoothing_mode == "time_constant"
    assert stress.seed == 11


class TestSnapshotValues:
    def test_kinds_are_tagged(self):
        snap = Snapshot.from_dict(
            {
                "count": 3,
                "ratio": 0.5,
                "name": "Right",
                "flag": True,
                "nested": {"Hostile": 1.5},
                "items": ["a", "b"],
            }
        )
        assert snap["count"].kind is ValueKind.NUMBER
        assert snap["ratio"].kind is ValueKind.NUMBER
        assert snap["name"].kind is ValueKind.STRING
        assert snap["flag"].kind is ValueKind.BOOL
        assert snap["nested"].kind is ValueKind.MAPPING
        assert snap["items"].kind is ValueKind.SEQUENCE

    def test_bool_is_not_a_number(self):
        assert SnapshotValue.of(False).kind is ValueKind.BOOL
        assert SnapshotValue.of(np.bool_(True)).kind is ValueKind.BOOL

    def test_numpy_scalars_become_python(self):
        value = SnapshotValue.of(np.float64(2.5))
        assert value.kind is ValueKind.NUMBER
        assert type(value.payload) is float

    def test_enum_becomes_string(self):
        assert SnapshotValue.of(TargetCategory.HOSTILE).to_python() == "Hostile"

    def test_none_rejected(self):
        with pytest.raises(TypeError):
            Snapshot.from_dict({"missing": None})

    def test_round_trip_and_lookup(self):
        data = {"total": 3, "by_type": {"Hostile": {"count": 2}}, "events": ["x"]}
        snap = Snapshot.from_dict(data)
        assert snap.to_dict() == data
        assert snap.value("total") == 3
        assert snap.value("absent", -1) == -1
        assert "by_type" in snap
        assert len(snap) == 3

    def test_merged_overrides(self):
        snap = Snapshot.from_dict({"a": 1, "b": 2}).merged({"b": 5, "c": "x"})
        assert snap.to_dict() == {"a": 1, "b": 5, "c": "x"}
