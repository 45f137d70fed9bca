# decide_metrics/__init__.py
"""
decide-metrics: real-time operator performance analytics for VR training.

Contains:
- Metric lifecycle and six metrics (classification, reaction time,
  controller movement, gaze tracking, situational awareness, stress level)
- Signal processors (fixation/saccade, tremor, aim, gestures, coverage,
  threats, scans, stress dynamics)
- Metric registry with interval records and final reports
- Output sinks and a seeded synthetic scenario
"""

from .bus import EventBus
from .config import MetricParameters, RegistryConfig
from .core import SimulationClock
from .errors import ConfigurationError, DecideMetricsError, DuplicateMetricError, UnknownMetricError
from .io import ConsoleReporter, DataFrameLogger, DataLogger, InMemoryDataLogger, QueuedDataLogger
from .metrics import (
    ClassificationMetric,
    ControllerMovementMetric,
    GazeTrackingMetric,
    Metric,
    ReactionTimeMetric,
    SituationalAwarenessMetric,
    StressLevelMetric,
)
from .registry import MetricsRegistry
from .sources import LatestSampleSource
from .stressors import ActiveStressors

__version__ = "0.1.0"

__all__ = [
    "EventBus",
    "MetricParameters",
    "RegistryConfig",
    "SimulationClock",
    "ConfigurationError",
    "DecideMetricsError",
    "DuplicateMetricError",
    "UnknownMetricError",
    "ConsoleReporter",
    "DataFrameLogger",
    "DataLogger",
    "InMemoryDataLogger",
    "QueuedDataLogger",
    "ClassificationMetric",
    "ControllerMovementMetric",
    "GazeTrackingMetric",
    "Metric",
    "ReactionTimeMetric",
    "SituationalAwarenessMetric",
    "StressLevelMetric",
    "MetricsRegistry",
    "LatestSampleSource",
    "ActiveStressors",
]
