"""Concurrent scheduler — dispatches every check of a run to a bounded pool.

One scheduler owns one ThreadPoolExecutor for one evaluation run. Each
submitted check gets a TaskHandle tracking its lifecycle:

    pending -> running -> completed | failed | discarded

A handle is discarded when the aggregator stops observing it before it
finished. Discarding never interrupts running work; it only drops the result.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import CancelledError, Future, ThreadPoolExecutor
from typing import Any

from src.evaluator.models import Check, CheckSet, ConfigError, Outcome, TaskState

logger = logging.getLogger(__name__)


class TaskHandle:
    """The evaluator's reference to one concurrent check invocation."""

    def __init__(self, check: Check) -> None:
        self.check = check
        self._state = TaskState.PENDING
        self._lock = threading.Lock()
        self._future: Future[Outcome] | None = None

    def __repr__(self) -> str:
        return f"TaskHandle({self.check.name!r}, {self._state.value})"

    @property
    def state(self) -> TaskState:
        with self._lock:
            return self._state

    @property
    def future(self) -> Future[Outcome]:
        if self._future is None:
            raise RuntimeError(f"Check {self.check.name!r} was never submitted")
        return self._future

    def done(self) -> bool:
        return self._future is not None and self._future.done()

    def outcome(self) -> Outcome:
        """Return the finished outcome. Never raises the check's own error."""
        future = self.future
        if future.cancelled():
            return Outcome.failed(CancelledError(f"{self.check.name} was cancelled"))
        error = future.exception(timeout=0)
        if error is not None:
            return Outcome.failed(error)
        return future.result(timeout=0)

    def discard(self) -> bool:
        """Stop caring about this handle. Returns False if it already finished."""
        with self._lock:
            if self._state.terminal:
                return False
            self._state = TaskState.DISCARDED
        logger.debug("Discarded %s", self.check.name)
        return True

    # Worker-side transitions; a discarded handle stays discarded.

    def _mark_running(self) -> None:
        with self._lock:
            if self._state == TaskState.PENDING:
                self._state = TaskState.RUNNING

    def _finish(self, outcome: Outcome) -> None:
        with self._lock:
            if self._state != TaskState.DISCARDED:
                self._state = TaskState.COMPLETED if outcome.ok else TaskState.FAILED


def _run_check(handle: TaskHandle, value: Any, stop_event: threading.Event) -> Outcome:
    """Execute one check inside a worker thread and wrap its result."""
    handle._mark_running()
    try:
        outcome = Outcome.of(handle.check.invoke(value, stop_event))
    except BaseException as e:
        # Interrupts are delivered to the main thread, not to pool workers
        logger.warning("Check %s failed: %s: %s", handle.check.name, type(e).__name__, e)
        outcome = Outcome.failed(e)
    handle._finish(outcome)
    return outcome


class ConcurrentScheduler:
    """Submits a check set to its own worker pool, one handle per check.

    ``max_workers=None`` sizes the pool to the number of checks. Use as a
    context manager so the pool is released once the answer is known.
    """

    def __init__(self, max_workers: int | None = None, cancel_pending: bool = False) -> None:
        if max_workers is not None and max_workers < 1:
            raise ConfigError(f"max_workers must be >= 1, got {max_workers}")
        self.max_workers = max_workers
        self.cancel_pending = cancel_pending
        self.stop_event = threading.Event()
        self._executor: ThreadPoolExecutor | None = None
        self._handles: list[TaskHandle] = []

    def __enter__(self) -> ConcurrentScheduler:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.shutdown()

    @property
    def handles(self) -> list[TaskHandle]:
        return list(self._handles)

    def pool_size(self, n_checks: int) -> int:
        return min(n_checks, self.max_workers or n_checks)

    def submit_all(self, checks: CheckSet, value: Any) -> list[TaskHandle]:
        """Dispatch every check with the shared input and return their handles."""
        if self._executor is not None:
            raise RuntimeError("ConcurrentScheduler runs a single check set")

        checks = tuple(checks)
        if not checks:
            return []

        n_workers = self.pool_size(len(checks))
        self._executor = ThreadPoolExecutor(max_workers=n_workers, thread_name_prefix="check")

        for check in checks:
            handle = TaskHandle(check)
            handle._future = self._executor.submit(_run_check, handle, value, self.stop_event)
            self._handles.append(handle)

        logger.debug("Submitted %d check(s) to %d worker(s)", len(checks), n_workers)
        return list(self._handles)

    def shutdown(self, cancel_pending: bool | None = None) -> None:
        """Release the pool without waiting on work still in flight.

        Raises the stop event for cooperative checks. With ``cancel_pending``
        checks that have not started yet are cancelled instead of drained.
        """
        self.stop_event.set()
        if self._executor is None:
            return
        cancel = self.cancel_pending if cancel_pending is None else cancel_pending
        self._executor.shutdown(wait=False, cancel_futures=cancel)

        in_flight = sum(1 for h in self._handles if not h.done())
        if in_flight:
            logger.debug(
                "Pool released with %d check(s) still in flight (%s)",
                in_flight, "queued cancelled" if cancel else "left to drain",
            )
