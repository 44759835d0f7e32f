"""Progress notifications of the batch loader.

Events and their keyword payloads:

``render_data.load``
    ``filepath``, ``index``, ``total``; a file is about to be decoded.
``render_data.complete``
    ``filepath``, ``ok``, ``total``; the file finished (``ok`` is False
    when it failed).
"""

from __future__ import annotations

import threading
from typing import Any, Callable

RENDER_DATA_LOAD = "render_data.load"
RENDER_DATA_COMPLETE = "render_data.complete"

Handler = Callable[..., Any]


class EventBus:
    """Routes loader events to subscribed handlers.

    Handlers run synchronously on whichever worker thread emitted the
    event, so they must be thread-safe themselves.
    """

    def __init__(self) -> None:
        self._subscribers: dict[str, list[Handler]] = {}
        self._lock = threading.Lock()

    def subscribe(self, event_type: str, handler: Handler) -> Callable[[], None]:
        """Add *handler* and return a callable that removes it again."""
        with self._lock:
            self._subscribers.setdefault(event_type, []).append(handler)
        return lambda: self.unsubscribe(event_type, handler)

    def unsubscribe(self, event_type: str, handler: Handler) -> None:
        with self._lock:
            handlers = self._subscribers.get(event_type)
            if handlers and handler in handlers:
                handlers.remove(handler)

    def emit(self, event_type: str, **data: Any) -> None:
        with self._lock:
            handlers = tuple(self._subscribers.get(event_type, ()))
        for handler in handlers:
            handler(**data)
