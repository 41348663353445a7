"""Event names and a small in-process event bus.

The manager only needs an object with ``emit`` and ``on``; ``EventBus`` is the
default used when none is injected.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Protocol

logger = logging.getLogger(__name__)

EventHandler = Callable[[dict[str, Any]], None]

MANAGER_INITIALIZED = "view_manager:initialized"
MANAGER_DESTROYED = "view_manager:destroyed"
VIEW_REGISTERED = "view_manager:view_registered"
NAVIGATION_QUEUED = "view_manager:navigation_queued"
NAVIGATION_STARTED = "view_manager:navigation_started"
NAVIGATION_COMPLETE = "view_manager:navigation_complete"
NAVIGATION_ERROR = "view_manager:navigation_error"
VIEW_ERROR = "view:error"

# Inbound events routed to the current view.
STATE_CHANGED = "state:changed"


def data_updated_event(view_id: str) -> str:
    """Name of the per-view data update event, e.g. ``settings:updated``."""
    return f"{view_id}:updated"


class EventSink(Protocol):
    """What the navigation core requires from an event bus."""

    def emit(self, event: str, payload: dict[str, Any] | None = None) -> None: ...

    def on(self, event: str, handler: EventHandler) -> Callable[[], None]: ...


class EventBus:
    """Synchronous publish/subscribe bus.

    Handlers run in subscription order. A failing handler is logged and does
    not stop delivery to the remaining handlers or reach the emitter.
    """

    def __init__(self) -> None:
        self._handlers: dict[str, list[EventHandler]] = {}

    def on(self, event: str, handler: EventHandler) -> Callable[[], None]:
        """Subscribe ``handler`` to ``event``; returns an unsubscribe callable."""
        handlers = self._handlers.setdefault(event, [])
        if handler not in handlers:
            handlers.append(handler)
        return lambda: self.off(event, handler)

    def off(self, event: str, handler: EventHandler) -> None:
        handlers = self._handlers.get(event)
        if handlers and handler in handlers:
            handlers.remove(handler)
            if not handlers:
                del self._handlers[event]

    def emit(self, event: str, payload: dict[str, Any] | None = None) -> None:
        for handler in list(self._handlers.get(event, ())):
            try:
                handler(dict(payload or {}))
            except Exception:
                logger.exception("Event handler failed for %s", event)

    def handler_count(self, event: str) -> int:
        return len(self._handlers.get(event, ()))

    def clear(self) -> None:
        self._handlers.clear()
