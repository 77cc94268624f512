"""Notifications published by the store and the sync coordinator.

Consumers (UI, gameplay) subscribe to named channels. Handlers run synchronously in
subscription order; an exception in one handler is logged and does not reach the
operation that emitted. A handler that emits on the channel currently dispatching is
ignored, so notifications cannot re-enter the operation that produced them.
"""

from __future__ import annotations

from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Callable

log = getLogger(__name__)


class SaveEvent(StrEnum):
    SAVE_LOADED = "save_loaded"
    SAVE_WRITTEN = "save_written"
    SAVE_DELETED = "save_deleted"
    SYNC_STARTED = "sync_started"
    SYNC_COMPLETED = "sync_completed"
    SYNC_ERROR = "sync_error"
    UNSAVED_DATA_ALERT = "unsaved_data_alert"


type EventHandler = Callable[..., Any]


class SaveEvents:
    """Lightweight publish/subscribe hub for save and sync notifications."""

    def __init__(self) -> None:
        self._handlers: dict[SaveEvent, list[EventHandler]] = {}
        self._dispatching: set[SaveEvent] = set()

    def subscribe(self, event: SaveEvent, handler: EventHandler) -> None:
        handlers = self._handlers.setdefault(event, [])
        if handler not in handlers:
            handlers.append(handler)

    def unsubscribe(self, event: SaveEvent, handler: EventHandler) -> None:
        handlers = self._handlers.get(event)
        if handlers and handler in handlers:
            handlers.remove(handler)

    def clear(self) -> None:
        self._handlers.clear()

    def emit(self, event: SaveEvent, **payload: Any) -> None:
        if event in self._dispatching:
            log.warning("Ignoring re-entrant '%s' notification", event)
            return
        handlers = list(self._handlers.get(event, ()))
        if not handlers:
            return
        self._dispatching.add(event)
        try:
            for handler in handlers:
                try:
                    handler(**payload)
                except Exception:
                    log.exception("Handler %r failed for '%s'", handler, event)
        finally:
            self._dispatching.discard(event)
