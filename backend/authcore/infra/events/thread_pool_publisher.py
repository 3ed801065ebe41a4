# authcore/infra/events/thread_pool_publisher.py
from __future__ import annotations

import logging
from collections import defaultdict
from concurrent.futures import Future, ThreadPoolExecutor
from functools import partial
from typing import Any

from authcore.services._shared.ports import EventHandler, EventPublisher

log = logging.getLogger(__name__)


class ThreadPoolEventPublisher(EventPublisher):
    """
    Dispatch events to subscribed handlers on a background thread pool.

    ``publish`` returns immediately; handler failures are logged with a
    traceback and never propagate to the publisher's caller.

    :param max_workers: Size of the worker pool.
    """

    def __init__(self, *, max_workers: int = 2) -> None:
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="authcore-events"
        )
        self._handlers: dict[type, list[EventHandler]] = defaultdict(list)

    def subscribe(self, event_type: type, handler: EventHandler) -> None:
        self._handlers[event_type].append(handler)

    def publish(self, event: Any) -> None:
        for handler in self._handlers.get(type(event), ()):
            future = self._executor.submit(handler, event)
            future.add_done_callback(partial(self._report, handler, event))

    def shutdown(self, *, wait: bool = True) -> None:
        """Stop accepting events; with ``wait`` block until queued ones ran."""
        self._executor.shutdown(wait=wait)

    @staticmethod
    def _report(handler: EventHandler, event: Any, future: Future) -> None:
        if future.cancelled():
            log.warning(
                "events.handler_cancelled handler=%s",
                getattr(handler, "__name__", type(handler).__name__),
                extra={"event": "events.handler_cancelled"},
            )
            return
        exc = future.exception()
        if exc is not None:
            log.error(
                "events.handler_failed handler=%s type=%s",
                getattr(handler, "__name__", type(handler).__name__),
                type(event).__name__,
                exc_info=(type(exc), exc, exc.__traceback__),
                extra={"event": "events.handler_failed"},
            )
