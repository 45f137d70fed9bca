# decide_metrics/registry.py
"""
Metric registry: owns the active metrics, drives them once per tick and
collects composite snapshots for the configured loggers.

Example:
    >>> clock = SimulationClock()
    >>> registry = MetricsRegistry(clock=clock, loggers=[InMemoryDataLogger()])
    >>> registry.register(ReactionTimeMetric(clock=clock))
    >>> registry.start_session()
    >>> for _ in range(300):
    ...     registry.tick(1 / 60)
    >>> report = registry.end_session()
"""
from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional

from .bus import EventBus
from .config import MetricParameters, RegistryConfig
from .config.constants import SamplingConstants
from .core.clock import SimulationClock
from .domain.results import FinalAnalysisReport, MetricAnalysisResult, MetricLogEntry
from .domain.scenario import ScenarioEnded, ScenarioStarted
from .domain.values import Snapshot
from .errors import ConfigurationError, DuplicateMetricError, UnknownMetricError
from .io.loggers import DataLogger
from .metrics.base import Metric
from .sources import StressorSource
from .stressors import ActiveStressors

logger = logging.getLogger(__name__)


class MetricsRegistry:
    """
    Name-keyed collection of metrics.

    Logger delivery is fire-and-forget: a logger that raises is reported at
    WARNING and the record is dropped for that logger only.
    """

    def __init__(
        self,
        config: RegistryConfig | None = None,
        clock: SimulationClock | None = None,
        loggers: Optional[List[DataLogger]] = None,
        stressor_source: Optional[StressorSource] = None,
        bus: Optional[EventBus] = None,
    ) -> None:
        self.config = config or RegistryConfig()
        self.clock = clock or SimulationClock()
        self.loggers: List[DataLogger] = list(loggers or [])
        self.stressor_source = stressor_source
        self.scenario_name = self.config.scenario_name
        self.session_id = str(uuid.uuid4())
        self.session_start_time = self.clock.now
        self._metrics: Dict[str, Metric] = {}
        self._next_collection = self.clock.now + self.config.collection_interval_s
        self.last_report: Optional[FinalAnalysisReport] = None
        self.bus: Optional[EventBus] = None
        if bus is not None:
            self.attach_bus(bus)

    # -- registration --------------------------------------------------------
    def register(self, metric: Metric) -> Metric:
        if not isinstance(metric, Metric):
            raise ConfigurationError(f"{type(metric).__name__} does not implement the Metric protocol")
        if metric.name in self._metrics:
            raise DuplicateMetricError(metric.name)
        self._metrics[metric.name] = metric
        if self.bus is not None:
            self._subscribe_metric(metric, self.bus)
        logger.debug("Registered metric %s", metric.name)
        return metric

    def unregister(self, name: str) -> Metric:
        metric = self.get(name)
        del self._metrics[name]
        if self.bus is not None and hasattr(metric, "unsubscribe"):
            metric.unsubscribe(self.bus)
        return metric

    def get(self, name: str) -> Metric:
        try:
            return self._metrics[name]
        except KeyError:
            raise UnknownMetricError(name) from None

    def __contains__(self, name: object) -> bool:
        return name in self._metrics

    def __iter__(self) -> Iterator[Metric]:
        return iter(list(self._metrics.values()))

    def __len__(self) -> int:
        return len(self._metrics)

    @property
    def names(self) -> List[str]:
        return list(self._metrics)

    def add_logger(self, data_logger: DataLogger) -> None:
        if data_logger not in self.loggers:
            self.loggers.append(data_logger)

    def remove_logger(self, data_logger: DataLogger) -> None:
        if data_logger in self.loggers:
            self.loggers.remove(data_logger)

    # -- bus -----------------------------------------------------------------
    def attach_bus(self, bus: EventBus) -> None:
        """Subscribe the registry, its metrics and its stressor tracker to ``bus``."""
        self.bus = bus
        bus.subscribe(ScenarioStarted, self.on_scenario_started)
        bus.subscribe(ScenarioEnded, self.on_scenario_ended)
        if isinstance(self.stressor_source, ActiveStressors):
            self.stressor_source.subscribe(bus)
        for metric in self._metrics.values():
            self._subscribe_metric(metric, bus)

    @staticmethod
    def _subscribe_metric(metric: Metric, bus: EventBus) -> None:
        subscribe = getattr(metric, "subscribe", None)
        if callable(subscribe):
            subscribe(bus)

    def on_scenario_started(self, event: ScenarioStarted) -> None:
        self.scenario_name = event.scenario_name
        self.start_session()

    def on_scenario_ended(self, event: ScenarioEnded) -> None:
        totals: Dict[str, float] = {}
        if event.total_classifications:
            totals = {
                "total_classifications": event.total_classifications,
                "correct_classifications": event.correct_classifications,
            }
        self.end_session(event.scenario_name, event.elapsed_time, totals)

    # -- lifecycle -----------------------------------------------------------
    def _for_each(self, action: Callable[[Metric], None], name: Optional[str] = None) -> None:
        targets = [self.get(name)] if name is not None else list(self._metrics.values())
        for metric in targets:
            action(metric)

    def start_all(self) -> None:
        self._for_each(lambda m: m.start_recording())

    def stop_all(self) -> None:
        self._for_each(lambda m: m.stop_recording())

    def reset_all(self) -> None:
        self._for_each(lambda m: m.reset())

    def start_metric(self, name: str) -> None:
        self._for_each(lambda m: m.start_recording(), name)

    def stop_metric(self, name: str) -> None:
        self._for_each(lambda m: m.stop_recording(), name)

    def reset_metric(self, name: str) -> None:
        self._for_each(lambda m: m.reset(), name)

    def start_session(self, scenario_name: Optional[str] = None) -> str:
        """Reset and start every metric under a fresh session id."""
        if scenario_name is not None:
            self.scenario_name = scenario_name
        self.session_id = str(uuid.uuid4())
        self.session_start_time = self.clock.now
        self._next_collection = self.clock.now + self.config.collection_interval_s
        self.reset_all()
        self.start_all()
        logger.info("Session %s started for scenario '%s'", self.session_id, self.scenario_name)
        return self.session_id

    def end_session(
        self,
        scenario_name: Optional[str] = None,
        duration: Optional[float] = None,
        totals: Optional[Mapping[str, float]] = None,
    ) -> FinalAnalysisReport:
        """Stop every metric and deliver one composite report to the loggers."""
        self.stop_all()
        merged: Dict[str, float] = {}
        for metric in self._metrics.values():
            session_totals = getattr(metric, "session_totals", None)
            if callable(session_totals):
                merged.update(session_totals())
        merged.update(totals or {})

        report = FinalAnalysisReport(
            scenario_name=scenario_name or self.scenario_name,
            duration=duration if duration is not None else self.elapsed_time,
            analysis_results=self.get_all_analysis_results(),
            totals=merged,
            session_id=self.session_id,
        )
        self.last_report = report
        self._dispatch("log_final_report", report)
        logger.info(
            "Session %s ended after %.2fs with %d metric reports",
            self.session_id,
            report.duration,
            len(report.analysis_results),
        )
        return report

    # -- per tick ------------------------------------------------------------
    @property
    def elapsed_time(self) -> float:
        return self.clock.now - self.session_start_time

    @property
    def is_collecting(self) -> bool:
        return any(m.is_recording for m in self._metrics.values())

    def tick(self, dt: float) -> Optional[MetricLogEntry]:
        """
        Advance the clock by ``dt``, update every recording metric and, when
        the collection interval has passed, forward a composite record.
        Returns the record when one was collected.
        """
        self.clock.advance(dt)
        for metric in list(self._metrics.values()):
            if metric.is_recording:
                metric.update(dt)

        now = self.clock.now
        if not self.is_collecting or now + SamplingConstants.THROTTLE_EPSILON_S < self._next_collection:
            return None
        interval = self.config.collection_interval_s
        while self._next_collection <= now + SamplingConstants.THROTTLE_EPSILON_S:
            self._next_collection += interval
        entry = self.collect_snapshot()
        self._dispatch("log_data", entry)
        return entry

    def collect_snapshot(self) -> MetricLogEntry:
        stressors = self.stressor_source() if self.stressor_source is not None else []
        return MetricLogEntry(
            timestamp=datetime.now(timezone.utc),
            session_id=self.session_id,
            scenario_name=self.scenario_name,
            elapsed_time=self.elapsed_time,
            metrics=self.get_all_data(),
            active_stressors=list(stressors),
        )

    def _dispatch(self, method: str, record: Any) -> None:
        for data_logger in list(self.loggers):
            try:
                getattr(data_logger, method)(record)
            except Exception:
                logger.warning(
                    "Logger %s failed in %s; record dropped",
                    type(data_logger).__name__,
                    method,
                    exc_info=True,
                )

    # -- per metric access ---------------------------------------------------
    def record_data_point(self, name: str, data: Any) -> None:
        self.get(name).record_data_point(data)

    def update_parameters(self, name: str, parameters: MetricParameters) -> None:
        self.get(name).update_parameters(parameters)

    def get_all_data(self) -> Dict[str, Snapshot]:
        return {name: metric.get_data() for name, metric in self._metrics.items()}

    def get_all_analysis_results(self) -> Dict[str, MetricAnalysisResult]:
        return {name: metric.analyze() for name, metric in self._metrics.items()}
