"""Checks, outcomes, failures and evaluation results."""

from __future__ import annotations

import threading
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

# ── Errors ───────────────────────────────────────────────────────────────────


class ConfigError(ValueError):
    """Invalid evaluator configuration, raised at setup time."""


class EvaluationTimeout(TimeoutError):
    """The concurrent strategy ran past its overall deadline."""


# ── Enums ────────────────────────────────────────────────────────────────────


class Strategy(str, Enum):
    SEQUENTIAL = "sequential"
    CONCURRENT = "concurrent"


class TaskState(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    DISCARDED = "discarded"

    @property
    def terminal(self) -> bool:
        return self in (TaskState.COMPLETED, TaskState.FAILED, TaskState.DISCARDED)


class FailureKind(str, Enum):
    CHECK_FAILURE = "check_failure"
    EVALUATION_TIMEOUT = "evaluation_timeout"


# ── Check ────────────────────────────────────────────────────────────────────


@dataclass(frozen=True, eq=False)
class Check:
    """A boolean-valued, possibly blocking operation over one shared input.

    Equality is identity: two checks with the same name are still distinct.
    When ``cooperative`` is set the callable also receives the run's stop
    event and may return early once it is set.
    """

    name: str
    fn: Callable[..., Any] = field(repr=False)
    cooperative: bool = False

    def invoke(self, value: Any, stop_event: threading.Event | None = None) -> bool:
        if self.cooperative:
            return bool(self.fn(value, stop_event or threading.Event()))
        return bool(self.fn(value))


CheckSet = Sequence[Check]


# ── Outcomes ─────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Outcome:
    """Result-or-error of one check invocation. Exactly one side is set."""

    value: bool | None = None
    error: BaseException | None = None

    @classmethod
    def of(cls, value: bool) -> Outcome:
        return cls(value=bool(value))

    @classmethod
    def failed(cls, error: BaseException) -> Outcome:
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def satisfied(self) -> bool:
        return self.error is None and bool(self.value)


@dataclass(frozen=True)
class CheckFailure:
    """One recorded failure: a check that raised, or the run's timeout."""

    check: Check | None
    error: BaseException
    kind: FailureKind = FailureKind.CHECK_FAILURE

    @property
    def check_name(self) -> str | None:
        return self.check.name if self.check else None

    def to_dict(self) -> dict[str, Any]:
        return {
            "check": self.check_name,
            "kind": self.kind.value,
            "error": f"{type(self.error).__name__}: {self.error}",
        }


@dataclass(frozen=True)
class EvaluationResult:
    """Aggregate answer of one evaluation call."""

    satisfied: bool
    matched_check: Check | None = None
    failures: tuple[CheckFailure, ...] = ()
    strategy: Strategy = Strategy.SEQUENTIAL
    invoked: int = 0
    elapsed_ms: float = 0.0

    def __post_init__(self) -> None:
        if self.satisfied != (self.matched_check is not None):
            raise ValueError("matched_check must be set exactly when satisfied")

    @property
    def timed_out(self) -> bool:
        return any(f.kind == FailureKind.EVALUATION_TIMEOUT for f in self.failures)

    def to_dict(self) -> dict[str, Any]:
        return {
            "satisfied": self.satisfied,
            "matched_check": self.matched_check.name if self.matched_check else None,
            "failures": [f.to_dict() for f in self.failures],
            "strategy": self.strategy.value,
            "invoked": self.invoked,
            "elapsed_ms": self.elapsed_ms,
            "timed_out": self.timed_out,
        }
