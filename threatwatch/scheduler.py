"""Periodic driver for collection cycles.

The run loop lives on its own thread. The first cycle runs as soon as the loop
starts, then every ``interval`` seconds measured from one cycle start to the
next. A cycle in flight is never interrupted: stop and cancellation requests are
only observed between cycles.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Callable, Optional

import schedule

logger = logging.getLogger(__name__)


class SchedulerState(Enum):
    IDLE = "idle"
    RUNNING = "running"
    STOPPING = "stopping"
    STOPPED = "stopped"


@dataclass(frozen=True)
class CycleOutcome:
    started_at: datetime
    duration: float
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class CollectionScheduler:
    def __init__(
        self,
        interval: float,
        collect: Callable[[], object],
        *,
        on_cycle: Optional[Callable[[CycleOutcome], None]] = None,
        poll_interval: float = 1.0,
    ):
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.interval = interval
        self.collect = collect
        self.on_cycle = on_cycle
        self.poll_interval = poll_interval

        self.state = SchedulerState.IDLE
        self.cycles_run = 0
        self.last_outcome: Optional[CycleOutcome] = None

        self._jobs = schedule.Scheduler()
        self._period_start: Optional[datetime] = None
        self._stop = threading.Event()
        self._cancel = threading.Event()
        self._lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None

    def start(self, cancel: Optional[threading.Event] = None) -> None:
        """Launch the run loop. ``cancel`` is an external shutdown signal."""
        if self._thread is not None:
            raise RuntimeError("scheduler already started")
        if cancel is not None:
            self._cancel = cancel
        self.state = SchedulerState.RUNNING
        self._thread = threading.Thread(target=self._run, name="collection-scheduler", daemon=True)
        self._thread.start()

    def stop(self, timeout: Optional[float] = None) -> None:
        """Request a stop and wait for the run loop to exit."""
        logger.info("Stopping scheduler...")
        with self._lock:
            if self.state is SchedulerState.RUNNING:
                self.state = SchedulerState.STOPPING
            elif self.state is SchedulerState.IDLE:
                self.state = SchedulerState.STOPPED
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)

    def _should_stop(self) -> bool:
        return self._stop.is_set() or self._cancel.is_set()

    def _run(self) -> None:
        logger.info(f"Starting collection scheduler interval={self.interval:g}s")
        job = self._jobs.every(self.interval).seconds.do(self._scheduled_cycle)
        try:
            self._scheduled_cycle()
            self._anchor(job)
            while not self._should_stop():
                self._jobs.run_pending()
                self._anchor(job)
                idle = self._jobs.idle_seconds
                wait = self.poll_interval if idle is None else max(0.0, min(idle, self.poll_interval))
                self._stop.wait(wait)
            if self._cancel.is_set():
                logger.info("Cancellation received, stopping scheduler")
            else:
                logger.info("Scheduler stop signal received")
        finally:
            self._jobs.clear()
            with self._lock:
                self.state = SchedulerState.STOPPED
            logger.info("Scheduler stopped")

    def _scheduled_cycle(self) -> None:
        # schedule keeps naive local times
        self._period_start = datetime.now()
        self.run_cycle()

    def _anchor(self, job: schedule.Job) -> None:
        """Time the next run from the start of the last cycle, not its end.

        A cycle that overran its period is followed immediately; missed periods are dropped.
        """
        if self._period_start is None:
            return
        job.next_run = max(datetime.now(), self._period_start + timedelta(seconds=self.interval))
        self._period_start = None

    def run_cycle(self) -> CycleOutcome:
        started_at = datetime.now(timezone.utc)
        t0 = time.monotonic()
        error = None
        logger.info("Starting collection cycle")
        try:
            self.collect()
        except Exception as e:
            error = str(e) or e.__class__.__name__
        duration = time.monotonic() - t0

        if error is None:
            logger.info(f"Collection cycle completed duration={duration:.2f}s")
        else:
            logger.error(f"Collection cycle failed duration={duration:.2f}s error={error}")

        outcome = CycleOutcome(started_at=started_at, duration=duration, error=error)
        with self._lock:
            self.cycles_run += 1
            self.last_outcome = outcome
        if self.on_cycle is not None:
            try:
                self.on_cycle(outcome)
            except Exception as e:
                logger.error(f"on_cycle callback failed: {e}")
        return outcome
