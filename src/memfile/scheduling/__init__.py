"""Scheduling — one-shot and repeating timers on the asyncio loop."""

from memfile.scheduling.timers import Scheduler, TimerHandle

__all__ = ["Scheduler", "TimerHandle"]
