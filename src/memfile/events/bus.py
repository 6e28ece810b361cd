"""Event bus — publish/subscribe channel for entry lifecycle notifications."""

from __future__ import annotations

import asyncio
import inspect
import logging
import time
from collections import defaultdict
from collections.abc import Callable
from enum import StrEnum
from typing import Any, Literal

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class EventType(StrEnum):
    CREATE = "create"
    UPDATE = "update"
    EXPIRE = "expire"
    DELETE = "delete"
    ACCESSED = "accessed"
    CLOSE = "close"


class CacheEvent(BaseModel):
    """A single lifecycle notification.

    Successful transitions carry status "OK"; failures carry error=True and
    error_detail instead.
    """

    event: EventType
    path: str | None = None
    time: float = Field(default_factory=time.time)
    status: Literal["OK"] | None = None
    size: int | None = None
    error: bool = False
    error_detail: str | None = None

    @classmethod
    def ok(
        cls,
        event: EventType,
        path: str | None = None,
        time: float | None = None,
        size: int | None = None,
    ) -> CacheEvent:
        fields: dict[str, Any] = {"event": event, "path": path, "status": "OK", "size": size}
        if time is not None:
            fields["time"] = time
        return cls(**fields)

    @classmethod
    def failure(cls, event: EventType, path: str, exc: BaseException) -> CacheEvent:
        return cls(event=event, path=path, error=True, error_detail=str(exc))

    def to_payload(self) -> dict[str, Any]:
        """Render the notification in its external payload shape."""
        if self.error:
            return {
                "error": True,
                "errorDetail": self.error_detail,
                "path": self.path,
                "time": self.time,
            }
        payload: dict[str, Any] = {"status": self.status, "path": self.path, "time": self.time}
        if self.size is not None:
            payload["size"] = self.size
        return payload


Handler = Callable[[CacheEvent], Any]


class EventBus:
    """Synchronous fan-out of CacheEvents to subscribed handlers.

    Handlers run in subscription order at publish time. Coroutine handlers
    are scheduled as tasks on the running loop. A handler that raises is
    logged and does not affect other handlers or the publisher.
    """

    def __init__(self) -> None:
        self._handlers: dict[EventType, list[Handler]] = defaultdict(list)
        self._wildcard: list[Handler] = []
        self._tasks: set[asyncio.Task[Any]] = set()

    def subscribe(self, event: EventType | str, handler: Handler) -> Callable[[], None]:
        """Register handler for one event type. Returns an unsubscribe callable."""
        event_type = EventType(event)
        self._handlers[event_type].append(handler)
        return lambda: self.unsubscribe(event_type, handler)

    def subscribe_all(self, handler: Handler) -> Callable[[], None]:
        """Register handler for every event type."""
        self._wildcard.append(handler)
        return lambda: self.unsubscribe(None, handler)

    def unsubscribe(self, event: EventType | str | None, handler: Handler) -> bool:
        handlers = self._wildcard if event is None else self._handlers[EventType(event)]
        try:
            handlers.remove(handler)
        except ValueError:
            return False
        return True

    def handler_count(self, event: EventType | str | None = None) -> int:
        if event is None:
            return len(self._wildcard) + sum(len(h) for h in self._handlers.values())
        return len(self._handlers[EventType(event)])

    def publish(self, event: CacheEvent) -> None:
        logger.debug("Publishing %s for %s", event.event.value, event.path)
        for handler in [*self._handlers[event.event], *self._wildcard]:
            try:
                result = handler(event)
            except Exception:
                logger.exception("Handler %r failed on %s event", handler, event.event.value)
                continue
            if inspect.isawaitable(result):
                self._spawn(result, event)

    async def drain(self) -> None:
        """Wait for coroutine handlers scheduled so far."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _spawn(self, awaitable: Any, event: CacheEvent) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning(
                "No running event loop for async handler on %s event, dropped",
                event.event.value,
            )
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            return
        task = asyncio.ensure_future(awaitable, loop=loop)
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)

    def _on_task_done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("Async event handler failed: %s", task.exception())
