"""Evaluator entry points — strategy selection and configuration.

    evaluator = Evaluator(EvaluatorConfig(strategy="concurrent", max_workers=8))
    result = evaluator.evaluate(checks, "example.com")
    if result.satisfied:
        print(result.matched_check.name)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Any

from src.evaluator.aggregator import await_first_match
from src.evaluator.models import CheckSet, ConfigError, EvaluationResult, Strategy
from src.evaluator.scheduler import ConcurrentScheduler
from src.evaluator.sequential import evaluate_sequential

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EvaluatorConfig:
    """How an evaluation run is carried out. Validated on construction."""

    strategy: Strategy = Strategy.CONCURRENT
    max_workers: int | None = None  # None = one worker per check
    timeout: float | None = None  # concurrent strategy only
    cancel_pending: bool = False

    def __post_init__(self) -> None:
        try:
            object.__setattr__(self, "strategy", Strategy(self.strategy))
        except ValueError:
            raise ConfigError(
                f"Unknown strategy {self.strategy!r} "
                f"(expected one of: {', '.join(s.value for s in Strategy)})"
            ) from None
        if self.max_workers is not None and self.max_workers < 1:
            raise ConfigError(f"max_workers must be >= 1, got {self.max_workers}")
        if self.timeout is not None and self.timeout <= 0:
            raise ConfigError(f"timeout must be > 0 seconds, got {self.timeout}")

    @classmethod
    def from_settings(cls, settings: Any) -> EvaluatorConfig:
        """Build a config from Settings, where 0 means "unset"."""
        return cls(
            strategy=settings.evaluator_strategy,
            max_workers=settings.evaluator_max_workers or None,
            timeout=settings.evaluator_timeout_seconds or None,
            cancel_pending=settings.evaluator_cancel_pending,
        )

    def override(self, **changes: Any) -> EvaluatorConfig:
        """Return a copy with the non-None ``changes`` applied."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})

    def to_dict(self) -> dict[str, Any]:
        return {
            "strategy": self.strategy.value,
            "max_workers": self.max_workers,
            "timeout": self.timeout,
            "cancel_pending": self.cancel_pending,
        }


def evaluate_concurrent(
    checks: CheckSet,
    value: Any,
    max_workers: int | None = None,
    timeout: float | None = None,
    cancel_pending: bool = False,
) -> EvaluationResult:
    """Run every check concurrently and return once any is satisfied.

    Returns without waiting for checks still in flight; they keep running
    in the background unless they observe the stop event.
    """
    with ConcurrentScheduler(max_workers=max_workers, cancel_pending=cancel_pending) as scheduler:
        handles = scheduler.submit_all(checks, value)
        return await_first_match(handles, timeout=timeout)


class Evaluator:
    """Evaluates check sets with a fixed configuration."""

    def __init__(self, config: EvaluatorConfig | None = None) -> None:
        self.config = config or EvaluatorConfig()

    def evaluate(self, checks: CheckSet, value: Any) -> EvaluationResult:
        checks = tuple(checks)
        cfg = self.config
        logger.debug("Evaluating %d check(s) with %s", len(checks), cfg.to_dict())

        if cfg.strategy == Strategy.SEQUENTIAL:
            return evaluate_sequential(checks, value)
        return evaluate_concurrent(
            checks,
            value,
            max_workers=cfg.max_workers,
            timeout=cfg.timeout,
            cancel_pending=cfg.cancel_pending,
        )


def evaluate(checks: CheckSet, value: Any, **overrides: Any) -> EvaluationResult:
    """One-shot evaluation with the default config plus ``overrides``."""
    return Evaluator(EvaluatorConfig(**overrides)).evaluate(checks, value)
