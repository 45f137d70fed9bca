# decide_metrics/config/config_builder.py
"""Build configuration objects from CLI arguments.

Keeps argument parsing and configuration construction apart.
"""
from __future__ import annotations

import argparse

from .config import MetricParameters, RegistryConfig, StressLevelConfig


class ConfigBuilder:
    """Builds configuration objects from parsed CLI arguments."""

    @staticmethod
    def build_metric_parameters(args: argparse.Namespace) -> MetricParameters:
        """Parameters shared by every metric of a simulated session."""
        return MetricParameters(
            sampling_rate_hz=args.sampling_rate,
            auto_start=False,
            log_raw_data=args.log_raw_data,
            max_data_points=args.max_data_points,
        )

    @staticmethod
    def build_registry_config(args: argparse.Namespace) -> RegistryConfig:
        return RegistryConfig(
            collection_interval_s=args.collection_interval,
            scenario_name=args.scenario_name,
        )

    @staticmethod
    def build_stress_config(args: argparse.Namespace) -> StressLevelConfig:
        return StressLevelConfig(
            smoothing_mode=args.smoothing_mode,
            seed=args.seed,
        )
