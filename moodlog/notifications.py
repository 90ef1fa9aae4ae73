"""Notification collaborator.

The core emits fire-and-forget events (``invitation-issued``,
``entry-submitted``). Delivery is never awaited and a failing notifier
never fails the operation that emitted the event.
"""

import logging
from typing import Any, Literal, Protocol, runtime_checkable

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

EventName = Literal["invitation-issued", "entry-submitted"]


class NotificationEvent(BaseModel):
    """An event handed to the notification collaborator."""

    event: EventName
    payload: dict[str, Any] = Field(default_factory=dict)


@runtime_checkable
class Notifier(Protocol):
    """Receives events emitted by the core."""

    def notify(self, event: NotificationEvent) -> None:
        ...


class NullNotifier:
    """Discards every event."""

    def notify(self, event: NotificationEvent) -> None:
        pass


class LoggingNotifier:
    """Writes every event to the log at INFO level."""

    def __init__(self, name: str = "moodlog.events") -> None:
        self._logger = logging.getLogger(name)

    def notify(self, event: NotificationEvent) -> None:
        self._logger.info("event=%s payload=%s", event.event, event.payload)


class RecordingNotifier:
    """Keeps events in memory, for tests and local tooling."""

    def __init__(self) -> None:
        self.events: list[NotificationEvent] = []

    def notify(self, event: NotificationEvent) -> None:
        self.events.append(event)

    def of_type(self, name: EventName) -> list[NotificationEvent]:
        return [e for e in self.events if e.event == name]


def emit(notifier: Notifier, name: EventName, **payload: Any) -> None:
    """Hand an event to the notifier without letting delivery errors escape."""
    event = NotificationEvent(event=name, payload=payload)
    try:
        notifier.notify(event)
    except Exception:
        logger.warning("Notification delivery failed for %s", name, exc_info=True)
