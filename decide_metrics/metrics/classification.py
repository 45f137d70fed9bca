# decide_metrics/metrics/classification.py
"""Classification performance: accuracy, confusion matrix, error streaks."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List

import numpy as np
import pandas as pd

from ..bus import EventBus
from ..config import ClassificationConfig, MetricParameters
from ..config.constants import DespawnReasons
from ..core.clock import SimulationClock
from ..core.geometry import distance
from ..domain.results import MetricAnalysisResult
from ..domain.samples import TargetCategory
from ..domain.scenario import TargetClassified, TargetDespawned
from ..domain.values import Snapshot
from .base import MetricLifecycle, build_analysis

logger = logging.getLogger(__name__)

PREDICTED_LABELS = ("Hostile", "NonHostile")


@dataclass(frozen=True)
class ClassificationRecord:
    timestamp: float
    identity: int
    actual: TargetCategory
    classified_as: TargetCategory
    is_correct: bool
    reaction_time: float
    time_since_last: float
    distance: float


def empty_confusion_matrix() -> Dict[str, Dict[str, int]]:
    return {c.value: {p: 0 for p in PREDICTED_LABELS} for c in TargetCategory}


class ClassificationMetric:
    """
    Tracks operator classifications of scene targets.

    Precision, recall and F1 treat "Hostile" as the positive class. Each
    returns 0.0 when its denominator is zero.
    """

    def __init__(
        self,
        parameters: MetricParameters | None = None,
        clock: SimulationClock | None = None,
        config: ClassificationConfig | None = None,
        name: str = "Classification",
    ) -> None:
        self.config = config or ClassificationConfig()
        self._lifecycle = MetricLifecycle(name, parameters, clock)
        self._records: List[ClassificationRecord] = []
        self._clear()
        if self._lifecycle.parameters.auto_start:
            self.start_recording()

    def _clear(self) -> None:
        self._records.clear()
        self.confusion_matrix = empty_confusion_matrix()
        self.total_correct = 0
        self.total_incorrect = 0
        self.total_missed = 0
        self.consecutive_errors = 0
        self.max_consecutive_errors = 0
        self._last_classification_time = self._lifecycle.now

    # -- lifecycle -----------------------------------------------------------
    @property
    def name(self) -> str:
        return self._lifecycle.name

    @property
    def is_recording(self) -> bool:
        return self._lifecycle.is_recording

    @property
    def parameters(self) -> MetricParameters:
        return self._lifecycle.parameters

    def start_recording(self) -> None:
        if self._lifecycle.start():
            self._last_classification_time = self._lifecycle.now

    def stop_recording(self) -> None:
        self._lifecycle.stop()

    def reset(self) -> None:
        self._lifecycle.reset()
        self._clear()

    def update_parameters(self, parameters: MetricParameters) -> None:
        self._lifecycle.update_parameters(parameters)

    def update(self, dt: float) -> None:
        # Classifications arrive as events; nothing to poll per tick.
        self._lifecycle.should_sample()

    def record_data_point(self, payload: Any) -> None:
        if not self._lifecycle.record(payload):
            return
        if isinstance(payload, TargetClassified):
            self._record_classification(payload)

    # -- events --------------------------------------------------------------
    def subscribe(self, bus: EventBus) -> None:
        bus.subscribe(TargetClassified, self.on_target_classified)
        bus.subscribe(TargetDespawned, self.on_target_despawned)

    def unsubscribe(self, bus: EventBus) -> None:
        bus.unsubscribe(TargetClassified, self.on_target_classified)
        bus.unsubscribe(TargetDespawned, self.on_target_despawned)

    def on_target_classified(self, event: TargetClassified) -> None:
        self.record_data_point(event)

    def on_target_despawned(self, event: TargetDespawned) -> None:
        if not self.is_recording:
            return
        if event.reason in DespawnReasons.MISSED:
            self.total_missed += 1
            self._lifecycle.log_event(f"Target {event.identity} missed ({event.reason})")

    def _record_classification(self, event: TargetClassified) -> None:
        now = self._lifecycle.now
        self._records.append(
            ClassificationRecord(
                timestamp=now,
                identity=event.identity,
                actual=event.actual_category,
                classified_as=event.classified_as,
                is_correct=event.is_correct,
                reaction_time=event.reaction_time,
                time_since_last=now - self._last_classification_time,
                distance=distance(event.target_position, event.operator_position),
            )
        )
        if event.is_correct:
            self.total_correct += 1
            self.consecutive_errors = 0
        else:
            self.total_incorrect += 1
            self.consecutive_errors += 1
            self.max_consecutive_errors = max(self.max_consecutive_errors, self.consecutive_errors)

        if self.config.track_confusion_matrix:
            predicted = "Hostile" if event.classified_as is TargetCategory.HOSTILE else "NonHostile"
            self.confusion_matrix[event.actual_category.value][predicted] += 1

        self._last_classification_time = now

    # -- statistics ----------------------------------------------------------
    @property
    def total_classifications(self) -> int:
        return len(self._records)

    @property
    def accuracy(self) -> float:
        n = len(self._records)
        return self.total_correct / n if n else 0.0

    def precision(self) -> float:
        if not self.config.track_confusion_matrix:
            return 0.0
        cm = self.confusion_matrix
        tp = cm["Hostile"]["Hostile"]
        fp = cm["Friendly"]["Hostile"] + cm["Unknown"]["Hostile"]
        return tp / (tp + fp) if tp + fp else 0.0

    def recall(self) -> float:
        if not self.config.track_confusion_matrix:
            return 0.0
        cm = self.confusion_matrix
        tp = cm["Hostile"]["Hostile"]
        fn = cm["Hostile"]["NonHostile"]
        return tp / (tp + fn) if tp + fn else 0.0

    def f1_score(self) -> float:
        p, r = self.precision(), self.recall()
        return 2 * p * r / (p + r) if p + r else 0.0

    def to_frame(self) -> pd.DataFrame:
        """One row per classification."""
        return pd.DataFrame(
            {
                "timestamp": [r.timestamp for r in self._records],
                "identity": [r.identity for r in self._records],
                "actual": [r.actual.value for r in self._records],
                "classified_as": [r.classified_as.value for r in self._records],
                "is_correct": [r.is_correct for r in self._records],
                "reaction_time": [r.reaction_time for r in self._records],
                "distance": [r.distance for r in self._records],
            }
        )

    def type_accuracy(self, category: TargetCategory) -> float:
        frame = self.to_frame()
        subset = frame[frame["actual"] == category.value]
        if subset.empty:
            return 0.0
        return float(subset["is_correct"].mean())

    def accuracy_by_distance(self) -> Dict[str, float]:
        """Accuracy in the close, mid and long distance bands."""
        labels = ["close_range_accuracy", "mid_range_accuracy", "long_range_accuracy"]
        frame = self.to_frame()
        if frame.empty:
            return {label: 0.0 for label in labels}
        close, mid = self.config.distance_bands_m
        bands = pd.cut(frame["distance"], bins=[-np.inf, close, mid, np.inf], right=False, labels=labels)
        grouped = frame["is_correct"].astype(float).groupby(bands, observed=False).mean().fillna(0.0)
        return {label: float(grouped[label]) for label in labels}

    def session_totals(self) -> Dict[str, float]:
        return {
            "total_classifications": self.total_classifications,
            "correct_classifications": self.total_correct,
        }

    # -- reporting -----------------------------------------------------------
    def get_data(self) -> Snapshot:
        data: Dict[str, Any] = {
            "total_classifications": self.total_classifications,
            "total_correct": self.total_correct,
            "total_incorrect": self.total_incorrect,
            "total_missed": self.total_missed,
            "accuracy": self.accuracy,
            "consecutive_errors": self.consecutive_errors,
            "max_consecutive_errors": self.max_consecutive_errors,
        }
        if self.config.track_confusion_matrix:
            data["confusion_matrix"] = self.confusion_matrix
        if self._records:
            data["average_reaction_time"] = float(np.mean([r.reaction_time for r in self._records]))
            data["average_distance"] = float(np.mean([r.distance for r in self._records]))
        return self._lifecycle.snapshot(data)

    def analyze(self) -> MetricAnalysisResult:
        reaction_times = [r.reaction_time for r in self._records]
        additional: Dict[str, Any] = {}
        if self._records:
            additional.update(
                accuracy=self.accuracy,
                precision=self.precision(),
                recall=self.recall(),
                f1_score=self.f1_score(),
                hostile_accuracy=self.type_accuracy(TargetCategory.HOSTILE),
                friendly_accuracy=self.type_accuracy(TargetCategory.FRIENDLY),
                unknown_accuracy=self.type_accuracy(TargetCategory.UNKNOWN),
                total_missed=self.total_missed,
            )
            if self.config.track_spatial_data and self.parameters.enable_advanced_analysis:
                additional["average_classification_distance"] = float(
                    np.mean([r.distance for r in self._records])
                )
                additional["classifications_by_distance"] = self.accuracy_by_distance()
        return build_analysis(
            self.name,
            reaction_times,
            sample_count=len(self._records),
            duration=self._lifecycle.recording_duration,
            additional=additional,
        )

    def get_summary(self) -> str:
        return f"{self.name}: {self.total_classifications} classifications, accuracy {self.accuracy:.1%}"
