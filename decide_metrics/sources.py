# decide_metrics/sources.py
"""Sample sources: zero-argument callables returning the latest sample."""
from __future__ import annotations

from typing import Callable, Generic, List, Optional, TypeVar

from .domain.results import StressorInfo

T = TypeVar("T")

SampleSource = Callable[[], Optional[T]]


class LatestSampleSource(Generic[T]):
    """
    Holds the most recent pushed sample. Producers call :meth:`push`, metrics
    call the instance once per processed tick.
    """

    def __init__(self, initial: Optional[T] = None) -> None:
        self._latest: Optional[T] = initial

    def push(self, sample: Optional[T]) -> None:
        self._latest = sample

    def clear(self) -> None:
        self._latest = None

    def __call__(self) -> Optional[T]:
        return self._latest


StressorSource = Callable[[], List[StressorInfo]]
