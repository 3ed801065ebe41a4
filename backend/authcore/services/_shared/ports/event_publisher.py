from __future__ import annotations

from collections.abc import Callable
from typing import Any, Protocol

EventHandler = Callable[[Any], None]


class EventPublisher(Protocol):
    """
    Port for post-commit domain events.

    ``publish`` MUST return without waiting for handlers, and MUST NOT raise
    because a handler failed; failures are reported through logging.
    """

    def publish(self, event: Any) -> None: ...


class InMemoryEventPublisher(EventPublisher):
    """Record published events for assertions in unit tests."""

    def __init__(self) -> None:
        self.published: list[Any] = []

    def publish(self, event: Any) -> None:
        self.published.append(event)
