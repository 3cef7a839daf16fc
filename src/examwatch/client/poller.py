"""PullScheduler - Periodic polling with jitter and in-flight de-duplication."""

from __future__ import annotations

import logging
import random
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from examwatch.config import ClientConfig

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL = 5.0
DEFAULT_JITTER = 0.1


@dataclass
class PollJob:
    """A named callable run periodically by the scheduler.

    Attributes:
        name: Unique job name.
        func: Work to do on each run.
        interval: Nominal seconds between runs.
        runs: Completed runs, successful or not.
        failures: Runs that raised.
        skipped: Runs skipped because a previous run was still in flight.
        last_error: Exception raised by the most recent failed run.
    """

    name: str
    func: Callable[[], object]
    interval: float
    runs: int = 0
    failures: int = 0
    skipped: int = 0
    last_error: BaseException | None = None
    _in_flight: threading.Lock = field(default_factory=threading.Lock, repr=False)

    @property
    def in_flight(self) -> bool:
        """Whether a run is currently executing."""
        return self._in_flight.locked()

    @contextmanager
    def exclusive(self) -> Iterator[bool]:
        """Hold the job's in-flight lock without blocking.

        Yields:
            True if the lock was taken, False if a run is already in flight.
        """
        acquired = self._in_flight.acquire(blocking=False)
        try:
            yield acquired
        finally:
            if acquired:
                self._in_flight.release()

    def run_once(self) -> bool:
        """Run the job unless a previous run is still executing.

        Exceptions from the job are logged and counted, not raised.

        Returns:
            True if the job ran, False if it was skipped.
        """
        with self.exclusive() as acquired:
            if not acquired:
                self.skipped += 1
                logger.debug("Job %s still in flight, skipping run", self.name)
                return False
            try:
                self.func()
                self.last_error = None
            except Exception as e:
                self.failures += 1
                self.last_error = e
                logger.warning("Poll job %s failed: %s", self.name, e)
            finally:
                self.runs += 1
        return True


class PullScheduler:
    """Runs poll jobs on their own daemon threads.

    Each delay is the job interval plus a random jitter of up to
    ``jitter * interval`` in either direction, so many clients started together
    do not poll in lockstep.
    """

    def __init__(
        self,
        interval: float = DEFAULT_INTERVAL,
        jitter: float = DEFAULT_JITTER,
        rng: random.Random | None = None,
    ) -> None:
        """Initialize the scheduler.

        Args:
            interval: Default interval for jobs added without one.
            jitter: Fraction of the interval used as jitter, in [0, 1).
            rng: Random source for jitter (seed it in tests).
        """
        if interval <= 0:
            raise ValueError("interval must be positive")
        if not 0 <= jitter < 1:
            raise ValueError("jitter must be in [0, 1)")
        self.interval = interval
        self.jitter = jitter
        self._rng = rng if rng is not None else random.Random()
        self._jobs: dict[str, PollJob] = {}
        self._threads: dict[str, threading.Thread] = {}
        self._stop = threading.Event()
        self._lock = threading.Lock()
        self._run_immediately = True
        self._started = False

    @classmethod
    def from_config(cls, config: ClientConfig) -> PullScheduler:
        """Create a scheduler using `client.poll_interval` and `client.poll_jitter`."""
        return cls(interval=config.poll_interval, jitter=config.poll_jitter)

    @property
    def running(self) -> bool:
        """Whether any job thread is alive."""
        with self._lock:
            return any(t.is_alive() for t in self._threads.values())

    def add_job(
        self,
        name: str,
        func: Callable[[], object],
        interval: float | None = None,
    ) -> PollJob:
        """Register a job. It starts polling when start() is called.

        Raises:
            ValueError: If a job with this name already exists or the
                interval is not positive
        """
        if interval is not None and interval <= 0:
            raise ValueError("interval must be positive")
        with self._lock:
            if name in self._jobs:
                raise ValueError(f"Job '{name}' already registered")
            job = PollJob(
                name=name,
                func=func,
                interval=interval if interval is not None else self.interval,
            )
            self._jobs[name] = job
            if self._started:
                self._start_thread(job)
            return job

    def get_job(self, name: str) -> PollJob:
        """Get a registered job.

        Raises:
            KeyError: If no job has this name
        """
        with self._lock:
            return self._jobs[name]

    def next_delay(self, job: PollJob) -> float:
        """Delay before the next run of a job, jitter included."""
        spread = job.interval * self.jitter
        return max(0.0, job.interval + self._rng.uniform(-spread, spread))

    def trigger(self, name: str) -> bool:
        """Run a job now on the calling thread.

        Returns:
            True if it ran, False if a run was already in flight.
        """
        return self.get_job(name).run_once()

    def start(self, run_immediately: bool = True) -> None:
        """Start one polling thread per registered job.

        Args:
            run_immediately: Run each job once before the first delay.
        """
        with self._lock:
            if self._started:
                return
            self._started = True
            self._stop.clear()
            self._run_immediately = run_immediately
            for job in self._jobs.values():
                self._start_thread(job)
        logger.info("Pull scheduler started with %d job(s)", len(self._jobs))

    def stop(self, timeout: float | None = None) -> None:
        """Stop all polling threads and wait for them to exit.

        A run already executing finishes first.
        """
        self._stop.set()
        with self._lock:
            self._started = False
            threads = list(self._threads.values())
            self._threads.clear()
        for thread in threads:
            if thread is not threading.current_thread():
                thread.join(timeout)
        logger.info("Pull scheduler stopped")

    def _start_thread(self, job: PollJob) -> None:
        thread = threading.Thread(
            target=self._loop,
            args=(job, self._run_immediately),
            name=f"poll-{job.name}",
            daemon=True,
        )
        self._threads[job.name] = thread
        thread.start()

    def _loop(self, job: PollJob, run_immediately: bool) -> None:
        if run_immediately and not self._stop.is_set():
            job.run_once()
        while not self._stop.wait(self.next_delay(job)):
            job.run_once()
