"""Signal processors used by the metrics."""

from .attention import attention_distribution, gaze_percentages, scan_path_efficiency, scan_path_length
from .coverage import SpatialCoverageGrid
from .fixation import FixationDetector, GazeStep
from .gestures import (
    GestureDetector,
    GrabbingGesture,
    PointingGesture,
    WavingGesture,
    default_gesture_detectors,
)
from .kinematics import ControllerFrame, HandKinematics
from .scanning import ScanDetector, bearings_in_arc
from .stress import (
    PhysiologyModel,
    StressCategory,
    StressDynamics,
    StressEventDetector,
    StressInputs,
    compute_raw_stress,
    stress_category,
)
from .threats import ThreatTracker, prioritization_score, threat_level
from .tremor import AimStabilityTracker, TremorEstimator, tremor_intensity, zero_crossing_frequency

__all__ = [
    "attention_distribution",
    "gaze_percentages",
    "scan_path_efficiency",
    "scan_path_length",
    "SpatialCoverageGrid",
    "FixationDetector",
    "GazeStep",
    "GestureDetector",
    "GrabbingGesture",
    "PointingGesture",
    "WavingGesture",
    "default_gesture_detectors",
    "ControllerFrame",
    "HandKinematics",
    "ScanDetector",
    "bearings_in_arc",
    "PhysiologyModel",
    "StressCategory",
    "StressDynamics",
    "StressEventDetector",
    "StressInputs",
    "compute_raw_stress",
    "stress_category",
    "ThreatTracker",
    "prioritization_score",
    "threat_level",
    "AimStabilityTracker",
    "TremorEstimator",
    "tremor_intensity",
    "zero_crossing_frequency",
]
