"""Records produced by metrics and the registry."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

from .values import Snapshot


@dataclass(frozen=True)
class RawDataPoint:
    """One ingested payload with its simulation timestamps."""

    timestamp: float
    relative_time: float
    payload: Any


@dataclass(frozen=True)
class MetricAnalysisResult:
    """End-of-session statistics of a single metric."""

    metric_name: str
    sample_count: int
    mean: float = 0.0
    median: float = 0.0
    std_dev: float = 0.0
    min: float = 0.0
    max: float = 0.0
    duration: float = 0.0
    additional_data: Snapshot = field(default_factory=Snapshot)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "metric_name": self.metric_name,
            "sample_count": self.sample_count,
            "mean": self.mean,
            "median": self.median,
            "std_dev": self.std_dev,
            "min": self.min,
            "max": self.max,
            "duration": self.duration,
            "additional_data": self.additional_data.to_dict(),
        }


@dataclass(frozen=True)
class StressorInfo:
    name: str
    intensity: float


@dataclass(frozen=True)
class MetricLogEntry:
    """Composite snapshot record forwarded to loggers at every collection."""

    timestamp: datetime
    session_id: str
    scenario_name: str
    elapsed_time: float
    metrics: Mapping[str, Snapshot]
    active_stressors: List[StressorInfo] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "session_id": self.session_id,
            "scenario_name": self.scenario_name,
            "elapsed_time": self.elapsed_time,
            "metrics": {name: snap.to_dict() for name, snap in self.metrics.items()},
            "active_stressors": [
                {"name": s.name, "intensity": s.intensity} for s in self.active_stressors
            ],
        }


@dataclass(frozen=True)
class FinalAnalysisReport:
    """One report per session, built when the session ends."""

    scenario_name: str
    duration: float
    analysis_results: Mapping[str, MetricAnalysisResult]
    totals: Mapping[str, float] = field(default_factory=dict)
    session_id: Optional[str] = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "session_id": self.session_id,
            "scenario_name": self.scenario_name,
            "duration": self.duration,
            "totals": dict(self.totals),
            "analysis_results": {
                name: result.to_dict() for name, result in self.analysis_results.items()
            },
        }
