"""Configuration and constants for the metrics engine."""

from .config import (
    DEFAULT_AWARENESS_WEIGHTS,
    DEFAULT_STRESS_WEIGHTS,
    ClassificationConfig,
    ControllerMovementConfig,
    GazeTrackingConfig,
    MetricParameters,
    ReactionTimeConfig,
    RegistryConfig,
    SituationalAwarenessConfig,
    StressLevelConfig,
)
from .constants import (
    DespawnReasons,
    SamplingConstants,
    SceneConstants,
    StressCategoryThresholds,
    ValidationMessages,
)
from .config_builder import ConfigBuilder

__all__ = [
    "DEFAULT_AWARENESS_WEIGHTS",
    "DEFAULT_STRESS_WEIGHTS",
    "ClassificationConfig",
    "ControllerMovementConfig",
    "GazeTrackingConfig",
    "MetricParameters",
    "ReactionTimeConfig",
    "RegistryConfig",
    "SituationalAwarenessConfig",
    "StressLevelConfig",
    "DespawnReasons",
    "SamplingConstants",
    "SceneConstants",
    "StressCategoryThresholds",
    "ValidationMessages",
    "ConfigBuilder",
]
