"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/scheduler.py
Bounded worker pool for hashing jobs.

- Fixed number of worker threads, one job per worker at a time
- Bounded job queue: submit() blocks while it is full (producer backpressure)
- Results go back through a completion queue, never through shared state
- One CancellationToken per run: stop accepting jobs, abort in-flight reads,
  answer queued jobs as cancelled, then drain
"""

import itertools
import logging
import os
import queue
import threading
from typing import Any, Callable, Optional

from twinfind.core.errors import FileReadError, JobCancelled
from twinfind.core.models import Job, JobHandle, JobOutcome, ReadFailure

logger = logging.getLogger(__name__)

_STOP = object()


def default_worker_count() -> int:
    """Number of CPUs + 1: the extra thread covers time spent blocked on I/O."""
    return (os.cpu_count() or 1) + 1


class CancellationToken:
    """Run-scoped cancellation signal shared by the CLI, resolver and workers."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def __call__(self) -> bool:
        """Lets the token be passed wherever a stopped_flag callable is expected."""
        return self._event.is_set()


class Scheduler:
    """
    Owns the worker threads and both queues.

    Usage:
        with Scheduler(handler, workers=4, token=token) as scheduler:
            handle = scheduler.submit(job)
            outcome = scheduler.next_outcome()
    """

    POLL_INTERVAL = 0.05  # seconds between cancellation checks while blocked

    def __init__(
        self,
        handler: Callable[[Job, CancellationToken], Any],
        workers: Optional[int] = None,
        queue_size: Optional[int] = None,
        token: Optional[CancellationToken] = None
    ):
        self.workers = workers or default_worker_count()
        self.queue_size = queue_size or self.workers * 4
        self.token = token or CancellationToken()
        self._handler = handler
        self._jobs: "queue.Queue" = queue.Queue(maxsize=self.queue_size)
        self._results: "queue.Queue[JobOutcome]" = queue.Queue()
        self._ids = itertools.count()
        self._threads = []
        self._closed = False

    def __enter__(self) -> "Scheduler":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is not None:
            self.token.cancel()
        self.shutdown()

    def start(self) -> None:
        if self._threads:
            return
        for n in range(self.workers):
            thread = threading.Thread(target=self._worker_loop, name=f"twinfind-worker-{n}", daemon=True)
            thread.start()
            self._threads.append(thread)
        logger.debug(f"Started {self.workers} workers, queue capacity {self.queue_size}")

    def submit(self, job: Job) -> Optional[JobHandle]:
        """
        Queue a job for the pool. Blocks while the queue is full.
        Returns None when the run has been cancelled or the pool is shut down.
        """
        if self._closed:
            raise RuntimeError("Scheduler is shut down")
        handle = JobHandle(job_id=next(self._ids), job=job)
        while not self.token.cancelled:
            try:
                self._jobs.put(handle, timeout=self.POLL_INTERVAL)
                return handle
            except queue.Full:
                continue
        return None

    def next_outcome(self, timeout: Optional[float] = None) -> JobOutcome:
        """Blocks until a worker reports a finished, failed or cancelled job."""
        return self._results.get(timeout=timeout)

    def poll_outcome(self) -> Optional[JobOutcome]:
        """Non-blocking variant of next_outcome()."""
        try:
            return self._results.get_nowait()
        except queue.Empty:
            return None

    def shutdown(self) -> None:
        """Stop the workers after the queue drains and wait for them."""
        if self._closed:
            return
        self._closed = True
        for _ in self._threads:
            self._jobs.put(_STOP)
        for thread in self._threads:
            thread.join()
        self._threads = []
        logger.debug("Scheduler shut down")

    def _worker_loop(self) -> None:
        while True:
            item = self._jobs.get()
            if item is _STOP:
                return
            self._results.put(self._run(item))

    def _run(self, handle: JobHandle) -> JobOutcome:
        if self.token.cancelled:
            return JobOutcome(handle=handle, cancelled=True)
        try:
            return JobOutcome(handle=handle, value=self._handler(handle.job, self.token))
        except JobCancelled:
            return JobOutcome(handle=handle, cancelled=True)
        except FileReadError as e:
            return JobOutcome(handle=handle, failure=ReadFailure(e.record, e.reason))
        except Exception as e:
            # Handed to the resolver, which re-raises it on its own thread
            return JobOutcome(handle=handle, error=e)
