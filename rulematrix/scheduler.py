"""Thread-pool task scheduler."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable

_log = logging.getLogger("rulematrix")


class SchedulerClosedError(RuntimeError):
    """Raised when a task is submitted to a stopped scheduler."""


def _report(future: Future) -> None:
    if future.cancelled():
        return
    exc = future.exception()
    if exc is not None:
        _log.error("scheduled task failed: %r", exc, exc_info=exc)


class PoolScheduler:
    """Runs submitted tasks on a bounded pool of worker threads.

    A size of zero or less lets the pool choose its own size.
    """

    def __init__(self, size: int = 0) -> None:
        self._executor = ThreadPoolExecutor(
            max_workers=size if size > 0 else None,
            thread_name_prefix="rulematrix",
        )
        self._lock = threading.Lock()
        self._closed = False

    def submit(self, task: Callable[[], None]) -> None:
        """Queue a task; raises SchedulerClosedError after stop."""
        with self._lock:
            if self._closed:
                raise SchedulerClosedError("scheduler has been stopped")
            try:
                future = self._executor.submit(task)
            except RuntimeError as exc:
                raise SchedulerClosedError("scheduler has been stopped") from exc
        future.add_done_callback(_report)

    def stop(self) -> None:
        """Refuse new tasks and wait for queued ones to finish."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
        self._executor.shutdown(wait=True)

    def __enter__(self) -> PoolScheduler:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()