"""Consumes task handles in the order they finish, not the order submitted."""

from __future__ import annotations

import logging
import time
from collections.abc import Sequence
from concurrent.futures import TimeoutError as FuturesTimeout
from concurrent.futures import as_completed

from src.evaluator.models import (
    CheckFailure,
    EvaluationResult,
    EvaluationTimeout,
    FailureKind,
    Strategy,
)
from src.evaluator.scheduler import TaskHandle

logger = logging.getLogger(__name__)


def _discard_rest(handles: Sequence[TaskHandle]) -> int:
    return sum(1 for h in handles if h.discard())


def await_first_match(
    handles: Sequence[TaskHandle],
    timeout: float | None = None,
) -> EvaluationResult:
    """Block until one handle completes true, all are observed, or ``timeout``.

    Completions are consumed one at a time; the first true one delivered is
    the match and every handle not yet observed is discarded. False results
    are only counted, failures are kept in completion order. On timeout a
    single evaluation_timeout failure is appended.
    """
    t0 = time.perf_counter()
    handles = list(handles)
    if not handles:
        return EvaluationResult(satisfied=False, strategy=Strategy.CONCURRENT)

    by_future = {h.future: h for h in handles}
    failures: list[CheckFailure] = []
    observed = 0
    false_count = 0

    def _elapsed() -> float:
        return round((time.perf_counter() - t0) * 1000, 1)

    try:
        for future in as_completed(by_future, timeout=timeout):
            handle = by_future[future]
            observed += 1
            outcome = handle.outcome()

            if outcome.satisfied:
                discarded = _discard_rest(handles)
                logger.info(
                    "Concurrent: %s matched after %d completion(s), %d discarded",
                    handle.check.name, observed, discarded,
                )
                return EvaluationResult(
                    satisfied=True, matched_check=handle.check, failures=tuple(failures),
                    strategy=Strategy.CONCURRENT, invoked=len(handles), elapsed_ms=_elapsed(),
                )

            if outcome.ok:
                false_count += 1
            else:
                failures.append(CheckFailure(check=handle.check, error=outcome.error))
    except FuturesTimeout:
        discarded = _discard_rest(handles)
        logger.warning(
            "Concurrent: no match within %ss (%d observed, %d discarded)",
            timeout, observed, discarded,
        )
        failures.append(
            CheckFailure(
                check=None,
                error=EvaluationTimeout(f"No check satisfied within {timeout}s"),
                kind=FailureKind.EVALUATION_TIMEOUT,
            )
        )
        return EvaluationResult(
            satisfied=False, failures=tuple(failures),
            strategy=Strategy.CONCURRENT, invoked=len(handles), elapsed_ms=_elapsed(),
        )

    logger.info(
        "Concurrent: no match in %d check(s), %d false, %d failed",
        observed, false_count, len(failures),
    )
    return EvaluationResult(
        satisfied=False, failures=tuple(failures),
        strategy=Strategy.CONCURRENT, invoked=len(handles), elapsed_ms=_elapsed(),
    )
