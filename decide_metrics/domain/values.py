"""
Tagged snapshot values.

A live snapshot is a mapping from key to :class:`SnapshotValue`. Each value
records its kind, so consumers can walk and serialise a snapshot without
inspecting Python types.

Example:
    >>> snap = Snapshot.from_dict({"total": 3, "by_type": {"Hostile": 1.5}})
    >>> snap["total"].kind
    <ValueKind.NUMBER: 'number'>
    >>> snap.to_dict()
    {'total': 3, 'by_type': {'Hostile': 1.5}}
"""
from __future__ import annotations

from collections.abc import Mapping as MappingABC
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterator, Mapping, Tuple, Union

import numpy as np


class ValueKind(Enum):
    NUMBER = "number"
    STRING = "string"
    BOOL = "bool"
    MAPPING = "mapping"
    SEQUENCE = "sequence"


Payload = Union[int, float, str, bool, "Snapshot", Tuple["SnapshotValue", ...]]


@dataclass(frozen=True)
class SnapshotValue:
    kind: ValueKind
    payload: Payload

    @classmethod
    def of(cls, value: Any) -> "SnapshotValue":
        """Wrap a plain Python value. ``None`` is rejected."""
        if isinstance(value, SnapshotValue):
            return value
        if isinstance(value, (bool, np.bool_)):
            return cls(ValueKind.BOOL, bool(value))
        if isinstance(value, np.generic):
            value = value.item()
        if isinstance(value, (int, float)):
            return cls(ValueKind.NUMBER, value)
        if isinstance(value, str):
            return cls(ValueKind.STRING, value)
        if isinstance(value, Enum):
            return cls(ValueKind.STRING, str(value.value))
        if isinstance(value, Snapshot):
            return cls(ValueKind.MAPPING, value)
        if isinstance(value, MappingABC):
            return cls(ValueKind.MAPPING, Snapshot.from_dict(value))
        if isinstance(value, (list, tuple, np.ndarray)):
            return cls(ValueKind.SEQUENCE, tuple(cls.of(v) for v in value))
        raise TypeError(f"Unsupported snapshot value: {value!r}")

    def to_python(self) -> Any:
        if self.kind is ValueKind.MAPPING:
            return self.payload.to_dict()  # type: ignore[union-attr]
        if self.kind is ValueKind.SEQUENCE:
            return [v.to_python() for v in self.payload]  # type: ignore[union-attr]
        return self.payload


class Snapshot(Mapping[str, SnapshotValue]):
    """Immutable, ordered mapping of snapshot values."""

    __slots__ = ("_items",)

    def __init__(self, items: Mapping[str, SnapshotValue] | None = None) -> None:
        self._items: Dict[str, SnapshotValue] = dict(items or {})

    @classmethod
    def from_dict(cls, data: Mapping[Any, Any]) -> "Snapshot":
        return cls({str(k): SnapshotValue.of(v) for k, v in data.items()})

    def __getitem__(self, key: str) -> SnapshotValue:
        return self._items[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        return f"Snapshot({self.to_dict()!r})"

    def value(self, key: str, default: Any = None) -> Any:
        """Plain Python value of ``key``."""
        item = self._items.get(key)
        return default if item is None else item.to_python()

    def merged(self, other: Mapping[str, Any]) -> "Snapshot":
        items = dict(self._items)
        items.update(Snapshot.from_dict(other)._items)
        return Snapshot(items)

    def to_dict(self) -> Dict[str, Any]:
        return {k: v.to_python() for k, v in self._items.items()}
