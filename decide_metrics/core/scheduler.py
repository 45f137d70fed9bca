# decide_metrics/core/scheduler.py
"""Keyed timers polled once per tick."""
from __future__ import annotations

import heapq
import itertools
from typing import Any, Dict, Generic, Hashable, List, Optional, Tuple, TypeVar

K = TypeVar("K", bound=Hashable)


class ScheduledEventQueue(Generic[K]):
    """
    Min-heap of ``(due_time, key)`` entries.

    Re-scheduling a key replaces its previous entry; cancelled entries are
    skipped lazily when they reach the top of the heap.
    """

    def __init__(self) -> None:
        self._heap: List[Tuple[float, int, K]] = []
        self._live: Dict[K, Tuple[int, float, Any]] = {}
        self._counter = itertools.count()

    def schedule(self, key: K, due_time: float, payload: Any = None) -> None:
        token = next(self._counter)
        self._live[key] = (token, due_time, payload)
        heapq.heappush(self._heap, (due_time, token, key))

    def cancel(self, key: K) -> bool:
        return self._live.pop(key, None) is not None

    def payload(self, key: K) -> Optional[Any]:
        entry = self._live.get(key)
        return entry[2] if entry is not None else None

    def __contains__(self, key: object) -> bool:
        return key in self._live

    def __len__(self) -> int:
        return len(self._live)

    def clear(self) -> None:
        self._heap.clear()
        self._live.clear()

    def pop_due(self, now: float) -> List[Tuple[K, Any]]:
        """Remove and return every entry with ``due_time < now``."""
        due: List[Tuple[K, Any]] = []
        while self._heap and self._heap[0][0] < now:
            _, token, key = heapq.heappop(self._heap)
            entry = self._live.get(key)
            if entry is None or entry[0] != token:
                continue
            del self._live[key]
            due.append((key, entry[2]))
        return due
