# decide_metrics/metrics/base.py
"""
Metric capability and shared lifecycle bookkeeping.

Every metric implements the :class:`Metric` protocol. The recording state
machine, sampling-rate throttle, raw history and event log are the same for
all of them and live in :class:`MetricLifecycle`, which each metric owns.

State machine::

    IDLE --start_recording--> RECORDING --stop_recording--> IDLE

``reset`` is legal in both states and keeps the state.
"""
from __future__ import annotations

import json
import logging
from enum import Enum
from typing import Any, Mapping, Optional, Protocol, Sequence, runtime_checkable

from ..config import MetricParameters
from ..config.constants import SamplingConstants
from ..core import statistics as stats
from ..core.buffers import BoundedHistory
from ..core.clock import SimulationClock
from ..domain.results import MetricAnalysisResult, RawDataPoint
from ..domain.values import Snapshot

logger = logging.getLogger(__name__)


class RecordingState(Enum):
    IDLE = "idle"
    RECORDING = "recording"


@runtime_checkable
class Metric(Protocol):
    """Capability implemented by every metric."""

    @property
    def name(self) -> str:
        ...

    @property
    def is_recording(self) -> bool:
        ...

    @property
    def parameters(self) -> MetricParameters:
        ...

    def start_recording(self) -> None:
        ...

    def stop_recording(self) -> None:
        ...

    def reset(self) -> None:
        ...

    def record_data_point(self, payload: Any) -> None:
        ...

    def update(self, dt: float) -> None:
        ...

    def get_data(self) -> Snapshot:
        ...

    def analyze(self) -> MetricAnalysisResult:
        ...

    def update_parameters(self, parameters: MetricParameters) -> None:
        ...


class MetricLifecycle:
    """Recording state, throttle, raw history and event log of one metric."""

    def __init__(
        self,
        name: str,
        parameters: MetricParameters | None = None,
        clock: SimulationClock | None = None,
    ) -> None:
        self.name = name
        self.parameters = parameters or MetricParameters()
        self.clock = clock or SimulationClock()
        self.state = RecordingState.IDLE
        self.raw_data: BoundedHistory[RawDataPoint] = BoundedHistory(
            self.parameters.effective_max_data_points
        )
        self.events: BoundedHistory[str] = BoundedHistory(SamplingConstants.HARD_MAX_DATA_POINTS)
        self.start_time = 0.0
        self.end_time = 0.0
        self.last_sample_time = 0.0

    @property
    def now(self) -> float:
        return self.clock.now

    @property
    def is_recording(self) -> bool:
        return self.state is RecordingState.RECORDING

    @property
    def elapsed(self) -> float:
        """Seconds since recording started."""
        return self.now - self.start_time

    @property
    def recording_duration(self) -> float:
        if self.is_recording:
            return self.now - self.start_time
        return max(0.0, self.end_time - self.start_time)

    def start(self) -> bool:
        """Enter RECORDING; False if already recording."""
        if self.is_recording:
            return False
        self.state = RecordingState.RECORDING
        self.start_time = self.now
        self.last_sample_time = self.now
        self.log_event(f"{self.name} started recording")
        return True

    def stop(self) -> bool:
        """Enter IDLE; False if already idle."""
        if not self.is_recording:
            return False
        self.state = RecordingState.IDLE
        self.end_time = self.now
        self.log_event(f"{self.name} stopped recording")
        return True

    def reset(self) -> None:
        self.raw_data.clear()
        self.events.clear()
        self.start_time = 0.0
        self.end_time = 0.0
        self.last_sample_time = 0.0
        if self.is_recording:
            self.start_time = self.now
            self.last_sample_time = self.now

    def should_sample(self) -> Optional[float]:
        """
        Throttle gate for ``update``. Returns the step time since the last
        processed sample, or None when the call must be dropped.
        """
        if not self.is_recording:
            return None
        elapsed = self.now - self.last_sample_time
        if elapsed + SamplingConstants.THROTTLE_EPSILON_S < self.parameters.sampling_interval_s:
            return None
        self.last_sample_time = self.now
        return elapsed

    def record(self, payload: Any) -> bool:
        if not self.is_recording:
            return False
        self.raw_data.append(RawDataPoint(timestamp=self.now, relative_time=self.elapsed, payload=payload))
        if self.parameters.log_raw_data:
            logger.debug("[%s] Data recorded: %s", self.name, payload)
        return True

    def log_event(self, description: str) -> None:
        entry = f"[{self.elapsed:.3f}s] {description}"
        self.events.append(entry)
        if self.parameters.log_raw_data:
            logger.debug("[%s] %s", self.name, entry)

    def update_parameters(self, parameters: MetricParameters) -> None:
        self.parameters = parameters
        self.raw_data.resize(parameters.effective_max_data_points)

    def snapshot(self, data: Mapping[str, Any]) -> Snapshot:
        base = {
            "metric_name": self.name,
            "recording_duration": self.recording_duration,
            "sample_count": len(self.raw_data),
            "start_time": self.start_time,
            "end_time": self.end_time,
            "is_recording": self.is_recording,
            "event_count": len(self.events),
            "events": self.events.last(SamplingConstants.RECENT_EVENT_COUNT),
        }
        base.update(data)
        return Snapshot.from_dict(base)

    def summary(self) -> str:
        return f"{self.name}: {len(self.raw_data)} samples over {self.recording_duration:.2f}s"


def export_json(metric: Metric, **kwargs: Any) -> str:
    """Serialise a metric's live snapshot."""
    return json.dumps(metric.get_data().to_dict(), **kwargs)


def build_analysis(
    name: str,
    values: Sequence[float],
    sample_count: int,
    duration: float,
    additional: Mapping[str, Any] | None = None,
) -> MetricAnalysisResult:
    """Descriptive statistics of ``values`` wrapped in a MetricAnalysisResult."""
    return MetricAnalysisResult(
        metric_name=name,
        sample_count=sample_count,
        mean=stats.mean(values),
        median=stats.median(values),
        std_dev=stats.sample_std(values),
        min=float(min(values)) if values else 0.0,
        max=float(max(values)) if values else 0.0,
        duration=duration,
        additional_data=Snapshot.from_dict(additional or {}),
    )
