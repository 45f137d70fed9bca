"""Metric implementations and the shared lifecycle helper."""

from .base import Metric, MetricLifecycle, RecordingState, build_analysis, export_json
from .classification import ClassificationMetric
from .controller_movement import ControllerMovementMetric
from .gaze_tracking import GazeTrackingMetric
from .reaction_time import ReactionTimeMetric
from .situational_awareness import SituationalAwarenessMetric
from .stress_level import StressLevelMetric

__all__ = [
    "Metric",
    "MetricLifecycle",
    "RecordingState",
    "build_analysis",
    "export_json",
    "ClassificationMetric",
    "ControllerMovementMetric",
    "GazeTrackingMetric",
    "ReactionTimeMetric",
    "SituationalAwarenessMetric",
    "StressLevelMetric",
]
