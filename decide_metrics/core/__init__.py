"""Numerical building blocks: geometry, statistics, buffers and timing."""

from .buffers import BoundedHistory
from .clock import SimulationClock
from .scheduler import ScheduledEventQueue

__all__ = ["BoundedHistory", "SimulationClock", "ScheduledEventQueue"]
