"""Cooperative repeating-task scheduler.

The host loop (the Live screen in the CLI, or a test driving a fake clock)
calls :meth:`CooperativeScheduler.run_pending`; due callbacks run inline on
the caller's thread. There are no background threads.
"""

from __future__ import annotations

import math
import time
from collections.abc import Callable

Clock = Callable[[], float]


class ScheduledJob:
    """Cancel token for a repeating callback."""

    def __init__(self, interval: float, callback: Callable[[], None], next_due: float):
        self.interval = interval
        self.callback = callback
        self.next_due = next_due
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        """Stop future runs. Safe to call more than once."""
        self._cancelled = True


class CooperativeScheduler:
    """Runs repeating callbacks when the host loop polls it."""

    def __init__(self, clock: Clock | None = None):
        self.clock = clock or time.monotonic
        self._jobs: list[ScheduledJob] = []

    @property
    def active_jobs(self) -> list[ScheduledJob]:
        """Jobs that have not been cancelled."""
        self._jobs = [job for job in self._jobs if not job.cancelled]
        return list(self._jobs)

    def schedule_repeating(
        self, interval: float, callback: Callable[[], None]
    ) -> ScheduledJob:
        """Run ``callback`` every ``interval`` seconds until the job is cancelled."""
        if interval <= 0:
            raise ValueError("interval must be positive")
        job = ScheduledJob(interval, callback, self.clock() + interval)
        self._jobs.append(job)
        return job

    def run_pending(self) -> int:
        """Fire every due job once and return how many callbacks ran.

        A job that is several intervals overdue (the process was suspended)
        still fires only once; its next due time snaps forward to the
        interval grid, the way a throttled ``setInterval`` behaves.
        """
        now = self.clock()
        fired = 0
        for job in list(self._jobs):
            if job.cancelled or job.next_due > now:
                continue
            missed = math.floor((now - job.next_due) / job.interval) + 1
            job.next_due += missed * job.interval
            job.callback()
            fired += 1
        self._jobs = [job for job in self._jobs if not job.cancelled]
        return fired

    def seconds_until_next(self) -> float | None:
        """Time until the earliest live job is due, or None when idle."""
        jobs = self.active_jobs
        if not jobs:
            return None
        return max(0.0, min(job.next_due for job in jobs) - self.clock())
