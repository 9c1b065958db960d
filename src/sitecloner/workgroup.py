"""Completion barrier over a worker thread pool."""

import logging
import threading
from concurrent.futures import Executor, ThreadPoolExecutor
from typing import Any, Callable

logger = logging.getLogger(__name__)


class WorkGroup:
    """Counts outstanding units of work and blocks until all have finished.

    Units are submitted with :meth:`spawn`, which increments the counter
    before dispatch and decrements it when the unit ends, whatever the
    outcome. Exceptions escaping a unit are logged and contained so they
    never reach sibling units.
    """

    def __init__(self, executor: Executor | None = None, max_workers: int = 16):
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="cloner"
        )
        self._pending = 0
        self._spawned = 0
        self._cond = threading.Condition()

    @property
    def pending(self) -> int:
        """Units dispatched but not yet finished."""
        with self._cond:
            return self._pending

    @property
    def spawned(self) -> int:
        """Total units dispatched over the group's lifetime."""
        with self._cond:
            return self._spawned

    def add(self, count: int = 1):
        with self._cond:
            self._pending += count
            self._spawned += count

    def done(self):
        with self._cond:
            if self._pending <= 0:
                raise RuntimeError("WorkGroup.done() called more often than add()")
            self._pending -= 1
            if self._pending == 0:
                self._cond.notify_all()

    def wait(self, timeout: float | None = None) -> bool:
        """Block until no unit is outstanding. Returns False on timeout."""
        with self._cond:
            return self._cond.wait_for(lambda: self._pending == 0, timeout=timeout)

    def spawn(self, fn: Callable[..., Any], *args: Any) -> None:
        """Run ``fn(*args)`` on the pool as one unit of work."""
        self.add()
        try:
            self._executor.submit(self._run, fn, args)
        except RuntimeError:
            logger.error("Could not dispatch %s: executor is shut down", getattr(fn, "__name__", fn))
            self.done()

    def _run(self, fn: Callable[..., Any], args: tuple):
        try:
            fn(*args)
        except Exception:
            logger.exception("Unhandled error in %s%r", getattr(fn, "__name__", fn), args)
        finally:
            self.done()

    def shutdown(self):
        """Release the pool once the group has drained."""
        if self._owns_executor:
            self._executor.shutdown(wait=True)

    def __enter__(self) -> "WorkGroup":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.wait()
        self.shutdown()
