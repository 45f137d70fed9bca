# decide_metrics/core/buffers.py
"""Bounded FIFO histories."""
from __future__ import annotations

from collections import deque
from typing import Deque, Generic, Iterable, Iterator, List, Optional, TypeVar

T = TypeVar("T")


class BoundedHistory(Generic[T]):
    """
    Ordered history that evicts its oldest entries once ``maxlen`` is
    exceeded. Remaining entries keep their order.
    """

    def __init__(self, maxlen: int, items: Optional[Iterable[T]] = None) -> None:
        if maxlen < 1:
            raise ValueError("maxlen must be >= 1")
        self._items: Deque[T] = deque(items or (), maxlen=maxlen)

    @property
    def maxlen(self) -> int:
        return self._items.maxlen  # type: ignore[return-value]

    def append(self, item: T) -> None:
        self._items.append(item)

    def clear(self) -> None:
        self._items.clear()

    def resize(self, maxlen: int) -> None:
        """Change the capacity, keeping the newest entries."""
        maxlen = max(1, int(maxlen))
        if maxlen != self._items.maxlen:
            self._items = deque(self._items, maxlen=maxlen)

    def last(self, n: int) -> List[T]:
        """The ``n`` newest entries, oldest first."""
        if n <= 0:
            return []
        if n >= len(self._items):
            return list(self._items)
        return list(self._items)[-n:]

    def newest(self) -> Optional[T]:
        return self._items[-1] if self._items else None

    def to_list(self) -> List[T]:
        return list(self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)

    def __getitem__(self, index: int) -> T:
        return self._items[index]
