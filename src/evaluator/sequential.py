"""Lazy, in-order evaluation that stops at the first satisfied check."""

from __future__ import annotations

import logging
import time
from typing import Any

from src.evaluator.models import CheckFailure, CheckSet, EvaluationResult, Strategy

logger = logging.getLogger(__name__)


def evaluate_sequential(checks: CheckSet, value: Any) -> EvaluationResult:
    """Invoke checks one at a time in order until one returns true.

    A check that raises is recorded as a failure and counts as not satisfied.
    Checks after the first true result are never invoked.
    """
    t0 = time.perf_counter()
    failures: list[CheckFailure] = []
    invoked = 0

    for check in checks:
        invoked += 1
        try:
            matched = check.invoke(value)
        except (KeyboardInterrupt, SystemExit):
            raise
        except BaseException as e:
            logger.warning("Check %s failed: %s: %s", check.name, type(e).__name__, e)
            failures.append(CheckFailure(check=check, error=e))
            continue

        if matched:
            elapsed = (time.perf_counter() - t0) * 1000
            logger.info("Sequential: %s matched after %d check(s)", check.name, invoked)
            return EvaluationResult(
                satisfied=True, matched_check=check, failures=tuple(failures),
                strategy=Strategy.SEQUENTIAL, invoked=invoked, elapsed_ms=round(elapsed, 1),
            )

    elapsed = (time.perf_counter() - t0) * 1000
    logger.info("Sequential: no match in %d check(s), %d failed", invoked, len(failures))
    return EvaluationResult(
        satisfied=False, failures=tuple(failures),
        strategy=Strategy.SEQUENTIAL, invoked=invoked, elapsed_ms=round(elapsed, 1),
    )
