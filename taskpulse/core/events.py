"""In-process event bus connecting the task store to its subscribers."""

import contextlib
import logging
import secrets
import time
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, Field


logger = logging.getLogger(__name__)

TASK_COMPLETED = "task.completed"


def new_event_id() -> str:
    """Return a sortable, unique event id."""
    stamp = int(time.time() * 1000)
    token = secrets.token_hex(4)
    return f"evt-{stamp}-{token}"


class Event(BaseModel):
    """An event published on the bus."""

    id: str = Field(default_factory=new_event_id)
    type: str
    ts: datetime = Field(default_factory=lambda: datetime.now(UTC))
    payload: dict[str, Any] = Field(default_factory=dict)


EventHandler = Callable[[Event], None]


class EventBus:
    """Synchronous in-memory pub/sub bus.

    Handlers run in subscription order before publish() returns. A failing
    handler is logged and does not prevent the remaining handlers from running.
    """

    def __init__(self) -> None:
        self._handlers: dict[str, list[EventHandler]] = {}
        self.events_published = 0

    def subscribe(self, event_type: str, handler: EventHandler) -> Callable[[], None]:
        """Register a handler and return a callable that unsubscribes it."""
        self._handlers.setdefault(event_type, []).append(handler)

        def _unsubscribe() -> None:
            with contextlib.suppress(ValueError):
                self._handlers.get(event_type, []).remove(handler)

        return _unsubscribe

    def publish(self, event_type: str, **payload: Any) -> Event:  # noqa: ANN401
        """Publish an event to every handler subscribed to its type."""
        event = Event(type=event_type, payload=payload)
        self.events_published += 1
        self._dispatch(event)
        return event

    def _dispatch(self, event: Event) -> None:
        for handler in list(self._handlers.get(event.type, [])):
            try:
                handler(event)
            except Exception:
                logger.exception("Event handler failed", extra={"event_type": event.type, "event_id": event.id})
