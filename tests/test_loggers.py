"""
Tests for the data loggers.
"""
import json
import logging
from datetime import datetime, timezone

import pandas as pd
import pytest

from decide_metrics.domain.results import FinalAnalysisReport, MetricLogEntry, StressorInfo
from decide_metrics.domain.values import Snapshot
from decide_metrics.io.loggers import ConsoleReporter, DataFrameLogger, InMemoryDataLogger, QueuedDataLogger
from decide_metrics.metrics.base import build_analysis


def make_entry(elapsed: float = 0.1, stressors=None) -> MetricLogEntry:
    return MetricLogEntry(
        timestamp=datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc),
        session_id="session-1",
        scenario_name="Drill",
        elapsed_time=elapsed,
        metrics={
            "StressLevel": Snapshot.from_dict({"current_stress_level": 20.0 + elapsed, "stress_category": "Low"}),
            "ReactionTime": Snapshot.from_dict({"total_measurements": 2}),
        },
        active_stressors=list(stressors or []),
    )


def make_report() -> FinalAnalysisReport:
    return FinalAnalysisReport(
        scenario_name="Drill",
        duration=2.0,
        analysis_results={"ReactionTime": build_analysis("ReactionTime", [1.0, 2.0, 3.0], 3, 2.0)},
        totals={"total_classifications": 4, "correct_classifications": 3},
        session_id="session-1",
    )


def test_in_memory_logger():
    sink = InMemoryDataLogger()
    assert sink.last_report is None
    sink.log_data(make_entry())
    report = make_report()
    sink.log_final_report(report)
    assert len(sink.entries) == 1
    assert sink.last_report is report


class TestDataFrameLogger:
    def test_flattened_columns(self):
        frame_logger = DataFrameLogger()
        frame_logger.log_data(make_entry(0.1, [StressorInfo("Noise", 0.5), StressorInfo("Alarm", 1.0)]))
        frame_logger.log_data(make_entry(0.2))
        df = frame_logger.to_frame()
        assert len(frame_logger) == 2
        assert "metrics.StressLevel.current_stress_level" in df.columns
        assert "metrics.ReactionTime.total_measurements" in df.columns
        assert df["active_stressors"].tolist() == ["Noise=0.5;Alarm=1", ""]
        assert df["elapsed_time"].tolist() == [0.1, 0.2]

    def test_empty_frame(self):
        assert DataFrameLogger().to_frame().empty

    def test_flush_writes_csv(self, tmp_path):
        path = tmp_path / "out" / "session.csv"
        frame_logger = DataFrameLogger(csv_path=str(path))
        for i in range(5):
            frame_logger.log_data(make_entry(0.1 * (i + 1)))
        frame_logger.close()
        df = pd.read_csv(path)
        assert len(df) == 5
        assert df["scenario_name"].unique().tolist() == ["Drill"]
        assert df["metrics.StressLevel.stress_category"].iloc[0] == "Low"

    def test_flush_without_rows_writes_nothing(self, tmp_path):
        path = tmp_path / "session.csv"
        DataFrameLogger(csv_path=str(path)).flush()
        assert not path.exists()

    def test_final_report_json(self, tmp_path):
        path = tmp_path / "report.json"
        frame_logger = DataFrameLogger(report_path=str(path))
        frame_logger.log_final_report(make_report())
        with open(path, encoding="utf-8") as f:
            payload = json.load(f)
        assert payload["scenario_name"] == "Drill"
        assert payload["totals"]["correct_classifications"] == 3
        result = payload["analysis_results"]["ReactionTime"]
        assert result["mean"] == pytest.approx(2.0)
        assert result["median"] == pytest.approx(2.0)
        assert result["std_dev"] == pytest.approx(1.0)


class TestQueuedDataLogger:
    def test_order_preserved(self):
        inner = InMemoryDataLogger()
        queued = QueuedDataLogger(inner)
        for i in range(50):
            queued.log_data(make_entry(float(i)))
        queued.log_final_report(make_report())
        queued.close()
        assert [e.elapsed_time for e in inner.entries] == [float(i) for i in range(50)]
        assert inner.last_report is not None

    def test_records_after_close_are_dropped(self, caplog):
        inner = InMemoryDataLogger()
        queued = QueuedDataLogger(inner)
        queued.close()
        with caplog.at_level(logging.WARNING, logger="decide_metrics.io.loggers"):
            queued.log_data(make_entry())
        assert inner.entries == []
        assert "record dropped" in caplog.text

    def test_flush_runs_after_queued_records(self, tmp_path):
        path = tmp_path / "session.csv"
        queued = QueuedDataLogger(DataFrameLogger(csv_path=str(path)))
        for i in range(3):
            queued.log_data(make_entry(float(i)))
        queued.flush()
        assert len(pd.read_csv(path)) == 3
        queued.close()

    def test_inner_failure_is_logged(self, caplog):
        class Failing(InMemoryDataLogger):
            def log_data(self, entry):
                raise RuntimeError("boom")

        queued = QueuedDataLogger(Failing())
        with caplog.at_level(logging.WARNING, logger="decide_metrics.io.loggers"):
            queued.log_data(make_entry())
            queued.close()
        assert "boom" in caplog.text


class TestConsoleReporter:
    def test_final_report_summary(self, caplog):
        with caplog.at_level(logging.INFO, logger="decide_metrics.io.loggers"):
            ConsoleReporter().log_final_report(make_report())
        assert "Scenario 'Drill' finished after 2.00s" in caplog.text
        assert "ReactionTime" in caplog.text
        assert "total_classifications: 4" in caplog.text

    def test_interval_records_only_when_verbose(self, caplog):
        with caplog.at_level(logging.INFO, logger="decide_metrics.io.loggers"):
            ConsoleReporter().log_data(make_entry())
            assert caplog.text == ""
            ConsoleReporter(verbose=True).log_data(make_entry(0.5, [StressorInfo("Noise", 0.5)]))
        assert "[Drill] t=0.50s metrics=2 stressors=1" in caplog.text
