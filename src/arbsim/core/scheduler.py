"""Timer abstraction for periodic engine work.

The engine only ever talks to a ``Scheduler`` and a ``Clock``. Production
runs use the asyncio implementations; tests use the virtual ones, which
advance time explicitly instead of waiting on the wall clock.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Callable, Protocol

from arbsim.logging import get_logger

logger = get_logger(__name__)

JobCallback = Callable[[], None]


class CancelHandle(Protocol):
    """Handle returned by ``Scheduler.schedule``."""

    def cancel(self) -> None: ...

    @property
    def cancelled(self) -> bool: ...


class Scheduler(Protocol):
    """Runs callbacks periodically until their handle is cancelled."""

    def schedule(self, interval: float, callback: JobCallback) -> CancelHandle: ...


class Clock(Protocol):
    """Source of the current Unix time in seconds."""

    def now(self) -> float: ...


class SystemClock:
    """Wall-clock time."""

    def now(self) -> float:
        return time.time()


# --- asyncio implementation ---


class _TaskHandle:
    def __init__(self, task: asyncio.Task[None]) -> None:
        self._task = task

    def cancel(self) -> None:
        self._task.cancel()

    @property
    def cancelled(self) -> bool:
        return self._task.cancelled() or self._task.done()


class AsyncioScheduler:
    """Fixed-rate scheduler backed by one asyncio task per job.

    Deadlines advance by exactly ``interval`` each run, so a slow callback
    delays the next run but never causes one to be skipped. Exceptions
    raised by a callback are logged and the job keeps running.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    def schedule(self, interval: float, callback: JobCallback) -> CancelHandle:
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        loop = self._loop or asyncio.get_running_loop()
        task = loop.create_task(self._run(interval, callback, loop))
        return _TaskHandle(task)

    @staticmethod
    async def _run(
        interval: float,
        callback: JobCallback,
        loop: asyncio.AbstractEventLoop,
    ) -> None:
        next_at = loop.time() + interval
        while True:
            await asyncio.sleep(max(0.0, next_at - loop.time()))
            next_at += interval
            try:
                callback()
            except Exception:
                logger.exception(
                    "scheduled_job_failed",
                    job=getattr(callback, "__qualname__", repr(callback)),
                )


# --- virtual implementation ---

# Absorbs float error from repeatedly adding fractional intervals
_EPSILON = 1e-6


class VirtualClock:
    """Manually advanced clock for deterministic tests."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self._now = start

    def now(self) -> float:
        return self._now

    def advance(self, seconds: float) -> None:
        if seconds < 0:
            raise ValueError("cannot move a clock backwards")
        self._now += seconds

    def set(self, timestamp: float) -> None:
        if timestamp < self._now:
            raise ValueError("cannot move a clock backwards")
        self._now = timestamp


@dataclass
class _VirtualJob:
    interval: float
    callback: JobCallback
    next_at: float
    cancelled: bool = False

    def cancel(self) -> None:
        self.cancelled = True


class VirtualScheduler:
    """Scheduler driven by a VirtualClock.

    Jobs only run inside ``advance``; each runs with the clock set to its
    own deadline, in deadline order, ties broken by scheduling order.

    Attributes:
        clock: The virtual clock shared with the code under test.
    """

    def __init__(self, clock: VirtualClock | None = None) -> None:
        self.clock = clock or VirtualClock()
        self._jobs: list[_VirtualJob] = []

    def schedule(self, interval: float, callback: JobCallback) -> CancelHandle:
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        job = _VirtualJob(interval, callback, self.clock.now() + interval)
        self._jobs.append(job)
        return job

    @property
    def active_jobs(self) -> int:
        """Number of jobs that have not been cancelled."""
        return sum(1 for job in self._jobs if not job.cancelled)

    def advance(self, seconds: float) -> int:
        """Move the clock forward, running every job that comes due.

        Args:
            seconds: Amount of virtual time to advance.

        Returns:
            Number of callbacks run.
        """
        target = self.clock.now() + seconds
        runs = 0
        while True:
            self._jobs = [job for job in self._jobs if not job.cancelled]
            due = [job for job in self._jobs if job.next_at <= target + _EPSILON]
            if not due:
                break
            # min() returns the first of equal deadlines, i.e. scheduling order
            job = min(due, key=lambda j: j.next_at)
            self.clock.set(max(job.next_at, self.clock.now()))
            job.next_at += job.interval
            job.callback()
            runs += 1
        self.clock.set(max(target, self.clock.now()))
        return runs
