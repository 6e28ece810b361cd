"""Timer facility backed by the running asyncio event loop."""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Callable
from typing import Any

from memfile.errors.exceptions import SchedulerUnavailable

logger = logging.getLogger(__name__)

Callback = Callable[[], Any]


class TimerHandle:
    """Cancellable handle for a one-shot or repeating timer.

    Cancelling stops future firings only; a callback task already running
    is left to finish.
    """

    def __init__(self, interval_ms: float, repeating: bool) -> None:
        self.interval_ms = interval_ms
        self.repeating = repeating
        self.fired = 0
        self._handle: asyncio.TimerHandle | None = None
        self._cancelled = False
        self._done = False

    @property
    def active(self) -> bool:
        return not (self._cancelled or self._done)

    def cancel(self) -> None:
        if not self.active:
            return
        self._cancelled = True
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None


class Scheduler:
    """Schedules callbacks with millisecond intervals.

    A callback may be a plain function or return an awaitable; awaitables
    are wrapped in tasks that the scheduler keeps referenced until done.
    """

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task[Any]] = set()

    @property
    def available(self) -> bool:
        try:
            self._get_loop()
        except SchedulerUnavailable:
            return False
        return True

    @property
    def pending_tasks(self) -> int:
        return len(self._tasks)

    def ensure_available(self) -> None:
        """Raise SchedulerUnavailable if timers cannot be armed right now."""
        self._get_loop()

    def call_later(self, delay_ms: float, callback: Callback) -> TimerHandle:
        """Run callback once after delay_ms."""
        loop = self._get_loop()
        timer = TimerHandle(delay_ms, repeating=False)

        def fire() -> None:
            timer._handle = None
            timer._done = True
            timer.fired += 1
            self._run(callback)

        timer._handle = loop.call_later(delay_ms / 1000.0, fire)
        return timer

    def call_every(self, interval_ms: float, callback: Callback) -> TimerHandle:
        """Run callback every interval_ms until the handle is cancelled.

        Deadlines are fixed-rate from the arm time so slow callbacks do not
        make the schedule drift.
        """
        loop = self._get_loop()
        timer = TimerHandle(interval_ms, repeating=True)
        interval_s = interval_ms / 1000.0
        deadline = loop.time() + interval_s

        def fire() -> None:
            nonlocal deadline
            if not timer.active:
                return
            timer.fired += 1
            deadline += interval_s
            now = loop.time()
            if deadline <= now:
                # Fell behind; skip missed slots instead of bursting.
                missed = int((now - deadline) // interval_s) + 1
                deadline += missed * interval_s
            timer._handle = loop.call_at(deadline, fire)
            self._run(callback)

        timer._handle = loop.call_at(deadline, fire)
        return timer

    async def drain(self) -> None:
        """Wait for callback tasks that are currently in flight."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        try:
            return asyncio.get_running_loop()
        except RuntimeError as err:
            raise SchedulerUnavailable(
                "Timer policies need a running asyncio event loop"
            ) from err

    def _run(self, callback: Callback) -> None:
        try:
            result = callback()
        except Exception:
            logger.exception("Timer callback %r failed", callback)
            return
        if inspect.isawaitable(result):
            task = asyncio.ensure_future(result, loop=self._get_loop())
            self._tasks.add(task)
            task.add_done_callback(self._on_task_done)

    def _on_task_done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("Timer task failed: %s", task.exception())
