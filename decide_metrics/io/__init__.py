"""Output sinks for interval records and final reports."""

from .loggers import ConsoleReporter, DataFrameLogger, DataLogger, InMemoryDataLogger, QueuedDataLogger

__all__ = [
    "DataLogger",
    "InMemoryDataLogger",
    "DataFrameLogger",
    "ConsoleReporter",
    "QueuedDataLogger",
]
