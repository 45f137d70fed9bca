# decide_metrics/errors.py
"""Exception hierarchy for the metrics engine.

Only configuration problems raise. Missing inputs (no eye tracker, nothing
under the gaze ray) are normal outcomes and are handled with defaults.
"""
from __future__ import annotations


class DecideMetricsError(Exception):
    """Root of all errors raised by this package."""


class ConfigurationError(DecideMetricsError, ValueError):
    """Invalid parameters, rejected at construction or registration time."""


class DuplicateMetricError(ConfigurationError):
    """A metric with the same name is already registered."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Metric '{name}' is already registered")
        self.name = name


class UnknownMetricError(DecideMetricsError, KeyError):
    """Lookup of a metric name that is not registered."""

    def __init__(self, name: str) -> None:
        super().__init__(name)
        self.name = name

    def __str__(self) -> str:
        return f"No metric registered under '{self.name}'"
