"""Domain models: raw samples, scenario events, derived events and results."""

from .events import (
    AwarenessEvent,
    FixationEvent,
    GestureEvent,
    InteractionEvent,
    InteractionKind,
    SaccadeEvent,
    SpatialScan,
    StressEvent,
    StressEventKind,
    ThreatAssessment,
)
from .results import (
    FinalAnalysisReport,
    MetricAnalysisResult,
    MetricLogEntry,
    RawDataPoint,
    StressorInfo,
)
from .samples import (
    IDENTITY_ROTATION,
    ControllerSample,
    GazeSample,
    Hand,
    HeadSample,
    PhysiologicalSample,
    Quat,
    Raycaster,
    RaycastHit,
    TargetCategory,
    TargetInfo,
    Vec3,
    no_hit_raycaster,
)
from .scenario import (
    ScenarioEnded,
    ScenarioStarted,
    StressorActivated,
    StressorDeactivated,
    TargetClassified,
    TargetDespawned,
    TargetDetected,
    TargetLost,
    TargetMoved,
    TargetSpawned,
)
from .values import Snapshot, SnapshotValue, ValueKind

__all__ = [
    "AwarenessEvent",
    "FixationEvent",
    "GestureEvent",
    "InteractionEvent",
    "InteractionKind",
    "SaccadeEvent",
    "SpatialScan",
    "StressEvent",
    "StressEventKind",
    "ThreatAssessment",
    "FinalAnalysisReport",
    "MetricAnalysisResult",
    "MetricLogEntry",
    "RawDataPoint",
    "StressorInfo",
    "IDENTITY_ROTATION",
    "ControllerSample",
    "GazeSample",
    "Hand",
    "HeadSample",
    "PhysiologicalSample",
    "Quat",
    "Raycaster",
    "RaycastHit",
    "TargetCategory",
    "TargetInfo",
    "Vec3",
    "no_hit_raycaster",
    "ScenarioEnded",
    "ScenarioStarted",
    "StressorActivated",
    "StressorDeactivated",
    "TargetClassified",
    "TargetDespawned",
    "TargetDetected",
    "TargetLost",
    "TargetMoved",
    "TargetSpawned",
    "Snapshot",
    "SnapshotValue",
    "ValueKind",
]
