# decide_metrics/io/loggers.py
"""
Output sinks for interval records and final reports.

The registry hands every :class:`MetricLogEntry` and the session's
:class:`FinalAnalysisReport` to each registered logger.

Example:
    >>> frame_logger = DataFrameLogger(csv_path="out/session.csv", report_path="out/report.json")
    >>> registry = MetricsRegistry(loggers=[QueuedDataLogger(frame_logger), ConsoleReporter()])
    >>> ...
    >>> registry.end_session()
    >>> frame_logger.close()
"""
from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import Any, Dict, List, Optional

import pandas as pd

from ..domain.results import FinalAnalysisReport, MetricLogEntry

logger = logging.getLogger(__name__)


class DataLogger(ABC):
    """
    Abstract sink for metric records.

    Implementations must not block the caller for long; slow sinks should be
    wrapped in :class:`QueuedDataLogger`.
    """

    @abstractmethod
    def log_data(self, entry: MetricLogEntry) -> None:
        """
        Receive one interval record.

        Args:
            entry: Composite snapshot of all metrics
        """

    @abstractmethod
    def log_final_report(self, report: FinalAnalysisReport) -> None:
        """
        Receive the end-of-session report.

        Args:
            report: Per-metric analysis results and session totals
        """

    def flush(self) -> None:
        """Persist buffered records. No-op by default."""

    def close(self) -> None:
        """Flush and release resources."""
        self.flush()


class InMemoryDataLogger(DataLogger):
    """Keeps every record in memory (tests, notebooks, embedding)."""

    def __init__(self) -> None:
        self.entries: List[MetricLogEntry] = []
        self.reports: List[FinalAnalysisReport] = []

    def log_data(self, entry: MetricLogEntry) -> None:
        self.entries.append(entry)

    def log_final_report(self, report: FinalAnalysisReport) -> None:
        self.reports.append(report)

    @property
    def last_report(self) -> Optional[FinalAnalysisReport]:
        return self.reports[-1] if self.reports else None


class DataFrameLogger(DataLogger):
    """
    Buffers interval records as flattened rows.

    Nested metric values become dotted columns, e.g.
    ``metrics.StressLevel.current_stress_level``.

    Example:
        >>> frame_logger = DataFrameLogger(csv_path="logs/session.csv")
        >>> registry.add_logger(frame_logger)
        >>> ...
        >>> df = frame_logger.to_frame()
    """

    def __init__(self, csv_path: Optional[str] = None, report_path: Optional[str] = None):
        """
        Initialize the logger.

        Args:
            csv_path: Where :meth:`flush` writes the interval records, if set
            report_path: Where the final report is written as JSON, if set
        """
        self.csv_path = Path(csv_path) if csv_path else None
        self.report_path = Path(report_path) if report_path else None
        self._rows: List[Dict[str, Any]] = []
        self.report: Optional[FinalAnalysisReport] = None

    def __len__(self) -> int:
        return len(self._rows)

    def log_data(self, entry: MetricLogEntry) -> None:
        row = entry.to_dict()
        row["active_stressors"] = ";".join(
            f"{s['name']}={s['intensity']:g}" for s in row["active_stressors"]
        )
        self._rows.append(row)

    def log_final_report(self, report: FinalAnalysisReport) -> None:
        self.report = report
        if self.report_path is None:
            return
        self.report_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.report_path, "w", encoding="utf-8") as f:
            json.dump(report.to_dict(), f, indent=2, ensure_ascii=False)
        logger.info("Final report written to %s", self.report_path)

    def to_frame(self) -> pd.DataFrame:
        """All interval records, one row each."""
        if not self._rows:
            return pd.DataFrame()
        return pd.json_normalize(self._rows)

    def flush(self) -> None:
        if self.csv_path is None or not self._rows:
            return
        self.csv_path.parent.mkdir(parents=True, exist_ok=True)
        self.to_frame().to_csv(self.csv_path, index=False)
        logger.info("%d interval records written to %s", len(self._rows), self.csv_path)


class ConsoleReporter(DataLogger):
    """Logs a one-line summary per record and per metric report."""

    def __init__(self, verbose: bool = False):
        """
        Initialize console reporter.

        Args:
            verbose: If True, every interval record is reported, otherwise only
                the final report
        """
        self.verbose = verbose

    def log_data(self, entry: MetricLogEntry) -> None:
        if not self.verbose:
            return
        logger.info(
            "[%s] t=%.2fs metrics=%d stressors=%d",
            entry.scenario_name,
            entry.elapsed_time,
            len(entry.metrics),
            len(entry.active_stressors),
        )

    def log_final_report(self, report: FinalAnalysisReport) -> None:
        logger.info("=" * 70)
        logger.info("Scenario '%s' finished after %.2fs", report.scenario_name, report.duration)
        for name, result in report.analysis_results.items():
            logger.info(
                "  %-22s n=%-6d mean=%.3f median=%.3f std=%.3f",
                name,
                result.sample_count,
                result.mean,
                result.median,
                result.std_dev,
            )
        for key, value in report.totals.items():
            logger.info("  %s: %s", key, value)
        logger.info("=" * 70)


class QueuedDataLogger(DataLogger):
    """
    Delivers records to a wrapped logger on a single worker thread, so the
    caller never waits for I/O. Records keep their order. :meth:`close`
    drains the queue before closing the wrapped logger.
    """

    def __init__(self, inner: DataLogger):
        self.inner = inner
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="decide-logger")
        self._closed = False

    def _submit(self, fn: Any, record: Any) -> None:
        if self._closed:
            logger.warning("%s is closed; record dropped", type(self).__name__)
            return
        future = self._executor.submit(fn, record)
        future.add_done_callback(self._report_failure)

    @staticmethod
    def _report_failure(future: Future) -> None:
        error = future.exception()
        if error is not None:
            logger.warning("Queued logger delivery failed: %s", error)

    def log_data(self, entry: MetricLogEntry) -> None:
        self._submit(self.inner.log_data, entry)

    def log_final_report(self, report: FinalAnalysisReport) -> None:
        self._submit(self.inner.log_final_report, report)

    def flush(self) -> None:
        # Runs after everything queued before it
        if not self._closed:
            self._executor.submit(self.inner.flush).result()

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._executor.shutdown(wait=True)
        self.inner.close()
