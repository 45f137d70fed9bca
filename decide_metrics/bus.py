# decide_metrics/bus.py
"""
Synchronous, type-keyed event bus.

Example:
    >>> bus = EventBus()
    >>> bus.subscribe(TargetSpawned, metric.on_target_spawned)
    >>> bus.publish(TargetSpawned(identity=1, category=TargetCategory.HOSTILE, position=(0, 0, 5)))
"""
from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any, Callable, DefaultDict, List, Type

logger = logging.getLogger(__name__)

Handler = Callable[[Any], None]


class EventBus:
    """
    Delivers each published event to the handlers subscribed to its exact
    type, in subscription order. A failing handler is logged and skipped so
    the remaining subscribers still receive the event.
    """

    def __init__(self) -> None:
        self._handlers: DefaultDict[type, List[Handler]] = defaultdict(list)

    def subscribe(self, event_type: Type[Any], handler: Handler) -> None:
        if handler not in self._handlers[event_type]:
            self._handlers[event_type].append(handler)

    def unsubscribe(self, event_type: Type[Any], handler: Handler) -> None:
        handlers = self._handlers.get(event_type)
        if handlers and handler in handlers:
            handlers.remove(handler)

    def handler_count(self, event_type: Type[Any]) -> int:
        return len(self._handlers.get(event_type, ()))

    def publish(self, event: Any) -> int:
        """Deliver ``event``; returns the number of handlers that succeeded."""
        delivered = 0
        for handler in list(self._handlers.get(type(event), ())):
            try:
                handler(event)
                delivered += 1
            except Exception:
                logger.warning("Handler %r failed for %s", handler, type(event).__name__, exc_info=True)
        return delivered

    def clear(self) -> None:
        self._handlers.clear()
