"""Short-circuiting "any check passes" evaluator — sequential and concurrent."""

from .aggregator import await_first_match
from .engine import Evaluator, EvaluatorConfig, evaluate, evaluate_concurrent
from .models import (
    Check,
    CheckFailure,
    CheckSet,
    ConfigError,
    EvaluationResult,
    EvaluationTimeout,
    FailureKind,
    Outcome,
    Strategy,
    TaskState,
)
from .scheduler import ConcurrentScheduler, TaskHandle
from .sequential import evaluate_sequential

__all__ = [
    "Check",
    "CheckFailure",
    "CheckSet",
    "ConcurrentScheduler",
    "ConfigError",
    "EvaluationResult",
    "EvaluationTimeout",
    "Evaluator",
    "EvaluatorConfig",
    "FailureKind",
    "Outcome",
    "Strategy",
    "TaskHandle",
    "TaskState",
    "await_first_match",
    "evaluate",
    "evaluate_concurrent",
    "evaluate_sequential",
]
