"""
=============================================================================
WORKER POOL
=============================================================================

Each accepted connection becomes one job: read the request, render or
look up the body, write it back. Tile rendering is CPU-bound and jobs
share nothing, so the pool is just a bounded queue feeding threads.

    accept thread                          worker threads
    ─────────────                          ──────────────
    offer(job) ──► [ queue, queue_size ] ──► WorkerThread ── job()
        │                                        │
        └── full → False  (server sends 503)     └── exception → logged,
                                                     thread keeps going

Sizing: start() spawns min_workers. When a job is offered while every
thread is busy, one more is spawned, up to max_workers. Threads are
never retired before shutdown().

=============================================================================
"""

import itertools
import logging
import queue
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional


logger = logging.getLogger(__name__)


# Queued once per thread by shutdown(); a thread exits when it takes one.
_STOP = object()


@dataclass
class Job:
    """A queued call and the moment it was offered."""

    func: Callable[..., Any]
    args: tuple = ()
    queued_at: float = field(default_factory=time.perf_counter)

    def __call__(self) -> None:
        self.func(*self.args)


class WorkerThread(threading.Thread):
    """Runs jobs from the pool's queue until it takes the stop marker."""

    def __init__(self, jobs: "queue.Queue[Any]", number: int):
        super().__init__(name=f"almondbread-worker-{number}", daemon=True)
        self.jobs = jobs
        self.busy = False
        self.completed = 0
        self.failed = 0

    def run(self):
        logger.debug(f"{self.name} running")

        while True:
            job = self.jobs.get()
            try:
                if job is _STOP:
                    break
                self._run(job)
            finally:
                self.jobs.task_done()

        logger.debug(f"{self.name} exited")

    def _run(self, job: Job):
        self.busy = True
        started = time.perf_counter()
        waited_ms = (started - job.queued_at) * 1000

        try:
            job()
        except Exception as e:
            self.failed += 1
            logger.exception(f"{self.name}: job raised {type(e).__name__}: {e}")
        else:
            self.completed += 1
            logger.debug(
                f"{self.name}: job took {(time.perf_counter() - started) * 1000:.1f}ms "
                f"after {waited_ms:.1f}ms in queue"
            )
        finally:
            self.busy = False


class WorkerPool:
    """
    Bounded, growing pool of worker threads.

    Usage:
        pool = WorkerPool(min_workers=4, max_workers=16, queue_size=256)
        pool.start()
        if not pool.offer(process, conn):
            ...  # saturated: answer 503
        pool.shutdown()
    """

    def __init__(self, min_workers: int = 4, max_workers: int = 16, queue_size: int = 256):
        """
        Args:
            min_workers: Threads spawned by start().
            max_workers: Most threads the pool will ever run.
            queue_size: Jobs that may wait for a thread before offer()
                starts refusing.
        """
        self.min_workers = min_workers
        self.max_workers = max_workers
        self.queue_size = queue_size

        self._jobs: "queue.Queue[Any]" = queue.Queue(maxsize=queue_size)
        self._threads: List[WorkerThread] = []
        self._numbering = itertools.count(1)
        self._lock = threading.Lock()
        self._accepting = False

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def start(self):
        """Spawn min_workers threads and begin accepting jobs."""
        with self._lock:
            if self._accepting:
                return
            while len(self._threads) < self.min_workers:
                self._spawn()
            self._accepting = True

        logger.info(f"Worker pool started: {self.min_workers}-{self.max_workers} threads")

    def shutdown(self, drain: bool = True, timeout: Optional[float] = None):
        """
        Stop accepting jobs and stop every thread.

        Args:
            drain: Let queued jobs run before the threads stop.
            timeout: Longest wait for the queue to drain, in seconds.
        """
        with self._lock:
            if not self._accepting:
                return
            self._accepting = False
            threads, self._threads = self._threads, []

        logger.info(f"Stopping worker pool ({self._jobs.qsize()} jobs queued)")

        if drain and not self._wait_until_drained(timeout):
            logger.warning(f"Queue not drained after {timeout}s, stopping anyway")

        for _ in threads:
            try:
                self._jobs.put_nowait(_STOP)
            except queue.Full:
                logger.warning("Queue full, some worker threads left running")
                break

        for thread in threads:
            thread.join(timeout=2.0)

        logger.info("Worker pool stopped")

    # =========================================================================
    # JOBS
    # =========================================================================

    def offer(self, func: Callable[..., Any], *args: Any, timeout: Optional[float] = 0) -> bool:
        """
        Queue func(*args) for a worker thread.

        Args:
            func: Callable to run.
            *args: Its positional arguments.
            timeout: Seconds to wait for room in the queue; 0 returns at
                once, None waits indefinitely.

        Returns:
            True if queued, False if the queue stayed full.

        Raises:
            RuntimeError: If the pool is not started or is shutting down.
        """
        if not self._accepting:
            raise RuntimeError("Worker pool is not accepting jobs")

        try:
            self._jobs.put(Job(func, args), block=timeout != 0, timeout=timeout)
        except queue.Full:
            return False

        self._grow_if_saturated()
        return True

    def _grow_if_saturated(self):
        with self._lock:
            if len(self._threads) >= self.max_workers:
                return
            if self._jobs.qsize() and all(thread.busy for thread in self._threads):
                self._spawn()

    def _spawn(self):
        """Start one more thread. Caller holds self._lock."""
        thread = WorkerThread(self._jobs, next(self._numbering))
        self._threads.append(thread)
        thread.start()
        logger.debug(f"Spawned {thread.name} ({len(self._threads)}/{self.max_workers})")

    def _wait_until_drained(self, timeout: Optional[float]) -> bool:
        deadline = None if timeout is None else time.monotonic() + timeout
        while self._jobs.unfinished_tasks:
            if deadline is not None and time.monotonic() >= deadline:
                return False
            time.sleep(0.05)
        return True

    # =========================================================================
    # INTROSPECTION
    # =========================================================================

    @property
    def accepting(self) -> bool:
        return self._accepting

    @property
    def size(self) -> int:
        """Threads currently in the pool."""
        return len(self._threads)

    @property
    def busy(self) -> int:
        return sum(1 for thread in self._threads if thread.busy)

    @property
    def pending(self) -> int:
        """Jobs waiting for a thread."""
        return self._jobs.qsize()

    @property
    def stats(self) -> Dict[str, int]:
        return {
            "threads": self.size,
            "busy": self.busy,
            "pending": self.pending,
            "completed": sum(thread.completed for thread in self._threads),
            "failed": sum(thread.failed for thread in self._threads),
        }
