# decide_metrics/metrics/reaction_time.py
"""Spawn-to-classification reaction times."""
from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from typing import Any, Deque, Dict, List, Optional

import pandas as pd

from ..bus import EventBus
from ..config import MetricParameters, ReactionTimeConfig
from ..core import statistics as stats
from ..core.clock import SimulationClock
from ..core.scheduler import ScheduledEventQueue
from ..domain.results import MetricAnalysisResult
from ..domain.scenario import TargetClassified, TargetDespawned, TargetSpawned
from ..domain.values import Snapshot
from .base import MetricLifecycle, build_analysis

logger = logging.getLogger(__name__)

UNKNOWN_TYPE = "Unknown"


@dataclass(frozen=True)
class ReactionTimeRecord:
    timestamp: float
    identity: Optional[int]
    target_type: str
    reaction_time: float
    is_outlier: bool


class ReactionTimeMetric:
    """
    Measures the time from a target's spawn to its classification.

    Spawn times are kept in a scheduled queue and expire after the outlier
    threshold, so targets that are never classified do not linger.
    """

    def __init__(
        self,
        parameters: MetricParameters | None = None,
        clock: SimulationClock | None = None,
        config: ReactionTimeConfig | None = None,
        name: str = "ReactionTime",
    ) -> None:
        self.config = config or ReactionTimeConfig()
        self._lifecycle = MetricLifecycle(name, parameters, clock)
        self._records: List[ReactionTimeRecord] = []
        self._pending: ScheduledEventQueue[int] = ScheduledEventQueue()
        self._recent: Deque[float] = deque(maxlen=self.config.moving_average_window)
        self._clear()
        if self._lifecycle.parameters.auto_start:
            self.start_recording()

    def _clear(self) -> None:
        self._records.clear()
        self._pending.clear()
        self._recent.clear()
        self._total = 0.0
        self.measurement_count = 0
        self.min_reaction_time: Optional[float] = None
        self.max_reaction_time = 0.0
        self.average_reaction_time = 0.0
        self.moving_average = 0.0

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
            self._pending.clear()

    def stop_recording(self) -> None:
        self._lifecycle.stop()

    def reset(self) -> None:
        self._lifecycle.reset()
        self._clear()

    def update_parameters(self, parameters: MetricParameters) -> None:
        self._lifecycle.update_parameters(parameters)

    def update(self, dt: float) -> None:
        if self._lifecycle.should_sample() is None:
            return
        for identity, _ in self._pending.pop_due(self._lifecycle.now):
            logger.debug("Spawn of target %s expired without classification", identity)

    def record_data_point(self, payload: Any) -> None:
        if not self._lifecycle.record(payload):
            return
        if isinstance(payload, (int, float)) and not isinstance(payload, bool):
            self._record(float(payload), UNKNOWN_TYPE)

    @property
    def tracked_targets(self) -> int:
        return len(self._pending)

    # -- events --------------------------------------------------------------
    def subscribe(self, bus: EventBus) -> None:
        bus.subscribe(TargetSpawned, self.on_target_spawned)
        bus.subscribe(TargetClassified, self.on_target_classified)
        bus.subscribe(TargetDespawned, self.on_target_despawned)

    def unsubscribe(self, bus: EventBus) -> None:
        bus.unsubscribe(TargetSpawned, self.on_target_spawned)
        bus.unsubscribe(TargetClassified, self.on_target_classified)
        bus.unsubscribe(TargetDespawned, self.on_target_despawned)

    def on_target_spawned(self, event: TargetSpawned) -> None:
        if not self.is_recording:
            return
        now = self._lifecycle.now
        self._pending.schedule(event.identity, now + self.config.outlier_threshold_s, payload=now)

    def on_target_classified(self, event: TargetClassified) -> None:
        if not self.is_recording:
            return
        spawn_time = self._pending.payload(event.identity)
        if spawn_time is None:
            return
        self._pending.cancel(event.identity)
        self._record(self._lifecycle.now - spawn_time, event.actual_category.value, event.identity)

    def on_target_despawned(self, event: TargetDespawned) -> None:
        if self.is_recording:
            self._pending.cancel(event.identity)

    def _record(self, reaction_time: float, target_type: str, identity: Optional[int] = None) -> None:
        is_outlier = reaction_time > self.config.outlier_threshold_s
        if is_outlier and self.config.exclude_outliers:
            return
        self._records.append(
            ReactionTimeRecord(
                timestamp=self._lifecycle.now,
                identity=identity,
                target_type=target_type,
                reaction_time=reaction_time,
                is_outlier=is_outlier,
            )
        )
        self._total += reaction_time
        self.measurement_count += 1
        self.average_reaction_time = self._total / self.measurement_count
        if self.min_reaction_time is None or reaction_time < self.min_reaction_time:
            self.min_reaction_time = reaction_time
        self.max_reaction_time = max(self.max_reaction_time, reaction_time)
        self._recent.append(reaction_time)
        self.moving_average = stats.mean(list(self._recent))
        self._lifecycle.log_event(f"Reaction time {reaction_time:.3f}s ({target_type})")

    # -- statistics ----------------------------------------------------------
    def valid_times(self) -> List[float]:
        return [r.reaction_time for r in self._records if not r.is_outlier]

    def percentile(self, p: float) -> float:
        return stats.percentile(self.valid_times(), p)

    def by_type(self) -> Dict[str, Dict[str, float]]:
        """Average/min/max/count of reaction times per target type."""
        if not self._records:
            return {}
        frame = pd.DataFrame(
            {
                "target_type": [r.target_type for r in self._records],
                "reaction_time": [r.reaction_time for r in self._records],
            }
        )
        grouped = frame.groupby("target_type", sort=False)["reaction_time"].agg(["mean", "min", "max", "count"])
        return {
            str(target_type): {
                "average": float(row["mean"]),
                "min": float(row["min"]),
                "max": float(row["max"]),
                "count": int(row["count"]),
            }
            for target_type, row in grouped.iterrows()
        }

    def improvement_trend(self) -> float:
        """
        Relative change from the first third to the last third of all
        measurements. Negative values mean faster reactions.
        """
        n = len(self._records)
        if n < 10:
            return 0.0
        third = n // 3
        first = stats.mean([r.reaction_time for r in self._records[:third]])
        last = stats.mean([r.reaction_time for r in self._records[n - third:]])
        return (last - first) / first if first else 0.0

    # -- reporting -----------------------------------------------------------
    def get_data(self) -> Snapshot:
        data: Dict[str, Any] = {
            "total_measurements": self.measurement_count,
            "average_reaction_time": self.average_reaction_time,
            "min_reaction_time": self.min_reaction_time if self.min_reaction_time is not None else 0.0,
            "max_reaction_time": self.max_reaction_time,
            "moving_average": self.moving_average,
            "current_tracked_targets": self.tracked_targets,
        }
        if self.config.track_per_type:
            data["reaction_time_by_type"] = self.by_type()
        valid = self.valid_times()
        if valid:
            data["percentile_50"] = stats.percentile(valid, 50)
            data["percentile_90"] = stats.percentile(valid, 90)
            data["percentile_95"] = stats.percentile(valid, 95)
        return self._lifecycle.snapshot(data)

    def analyze(self) -> MetricAnalysisResult:
        valid = self.valid_times()
        additional: Dict[str, Any] = {}
        if valid:
            additional["outlier_count"] = sum(1 for r in self._records if r.is_outlier)
            additional["improvement_trend"] = self.improvement_trend()
            additional["consistency"] = stats.coefficient_of_variation(valid)
            if self.parameters.enable_advanced_analysis and self.config.track_per_type:
                additional["reaction_time_by_type"] = self.by_type()
        return build_analysis(
            self.name,
            valid,
            sample_count=self.measurement_count,
            duration=self._lifecycle.recording_duration,
            additional=additional,
        )

    def get_summary(self) -> str:
        return f"{self.name}: {self.measurement_count} measurements, mean {self.average_reaction_time:.3f}s"
