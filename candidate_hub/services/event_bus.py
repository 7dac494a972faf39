"""In-process change event bus.

Synchronous publish/subscribe keyed by event class.  Handlers run on the
thread that publishes, in registration order.  A failing handler is logged
and skipped so one subscriber can never starve the others or roll back the
store mutation that produced the event.  There is no replay: a handler only
sees events published after it subscribed.
"""

from __future__ import annotations

import logging
import threading
from collections import defaultdict
from collections.abc import Callable
from typing import Any, TypeVar

from candidate_hub.models.events import EVENT_TYPES, ChangeEvent

logger = logging.getLogger(__name__)

E = TypeVar("E")

Handler = Callable[[Any], None]


class ChangeEventBus:
    """Typed subscriber lists, one per change event class."""

    def __init__(self) -> None:
        self._handlers: defaultdict[type, list[Handler]] = defaultdict(list)
        self._lock = threading.Lock()

    def subscribe(
        self, event_type: type[E], handler: Callable[[E], None]
    ) -> Callable[[], None]:
        """Register *handler* for *event_type*; returns an unsubscribe callable."""
        if event_type not in EVENT_TYPES:
            raise TypeError(f"Unknown change event type: {event_type!r}")
        with self._lock:
            self._handlers[event_type].append(handler)

        def unsubscribe() -> None:
            with self._lock:
                handlers = self._handlers[event_type]
                if handler in handlers:
                    handlers.remove(handler)

        return unsubscribe

    def subscribe_all(self, handler: Callable[[ChangeEvent], None]) -> Callable[[], None]:
        """Register *handler* for every event type."""
        unsubscribers = [self.subscribe(t, handler) for t in EVENT_TYPES]

        def unsubscribe() -> None:
            for unsub in unsubscribers:
                unsub()

        return unsubscribe

    def subscriber_count(self, event_type: type) -> int:
        with self._lock:
            return len(self._handlers.get(event_type, []))

    def publish(self, event: ChangeEvent) -> None:
        """Deliver *event* to every handler registered for its class."""
        with self._lock:
            handlers = list(self._handlers.get(type(event), []))

        for handler in handlers:
            try:
                handler(event)
            except Exception:
                logger.exception(
                    "event_handler_failed",
                    extra={"event_type": type(event).__name__},
                )
