"""Document lifecycle events and an in-process dispatcher.

A host wrapper translates the host's own notifications into :class:`Event`
objects and emits them through an :class:`EventSource`. The plugin only ever
talks to the source through ``subscribe`` and ``unsubscribe``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Protocol

logger = logging.getLogger(__name__)


class EventType(Enum):
    """Lifecycle events delivered by the host."""

    DOCUMENT_OPENED = "document.opened"
    DOCUMENT_SYNCHRONIZED = "document.synchronized"
    DOCUMENT_CLOSING = "document.closing"


@dataclass
class Event:
    """A host notification about one document.

    Attributes:
        event_type: The type of event.
        document: The host document handle. The same object is delivered for
            every event of one open document.
        timestamp: When the event occurred (local time).
    """

    event_type: EventType
    document: Any
    timestamp: datetime = field(default_factory=datetime.now)


Handler = Callable[[Event], None]


class EventSource(Protocol):
    """Anything handlers can be registered with."""

    def subscribe(self, event_type: EventType, handler: Handler) -> None: ...

    def unsubscribe(self, event_type: EventType, handler: Handler) -> None: ...


class EventDispatcher:
    """Delivers events to subscribed handlers, serially and in order."""

    def __init__(self) -> None:
        self._handlers: dict[EventType, list[Handler]] = {t: [] for t in EventType}

    def subscribe(self, event_type: EventType, handler: Handler) -> None:
        """Register *handler*. Registering the same handler twice is a no-op."""
        handlers = self._handlers[event_type]
        if handler not in handlers:
            handlers.append(handler)

    def unsubscribe(self, event_type: EventType, handler: Handler) -> None:
        """Remove *handler* if it is registered."""
        handlers = self._handlers[event_type]
        if handler in handlers:
            handlers.remove(handler)

    def handlers_for(self, event_type: EventType) -> list[Handler]:
        return list(self._handlers[event_type])

    def emit(self, event: Event) -> int:
        """Call every handler for the event.

        A failing handler is logged and skipped; the host operation that
        raised the event must never be interrupted by a listener.

        Returns:
            Number of handlers that completed without raising.
        """
        succeeded = 0
        for handler in self.handlers_for(event.event_type):
            try:
                handler(event)
                succeeded += 1
            except Exception:
                logger.exception(
                    "Handler %s failed for %s",
                    getattr(handler, "__qualname__", handler),
                    event.event_type.value,
                )
        return succeeded

    def emit_document(self, event_type: EventType, document: Any) -> int:
        """Shortcut for emitting an event stamped with the current time."""
        return self.emit(Event(event_type=event_type, document=document))
