"""Shared test fixtures."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from typing import Any

import pytest

from src.evaluator.models import Check

# One "time unit" for timing-based scenarios, in seconds
UNIT = 0.05


class CallLog:
    """Thread-safe record of which checks were invoked, in start order."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._calls: list[str] = []

    def record(self, name: str) -> None:
        with self._lock:
            self._calls.append(name)

    @property
    def calls(self) -> list[str]:
        with self._lock:
            return list(self._calls)


@pytest.fixture
def unit() -> float:
    return UNIT


@pytest.fixture
def call_log() -> CallLog:
    return CallLog()


@pytest.fixture
def make_check(call_log: CallLog) -> Callable[..., Check]:
    """Build a recording check: sleeps ``delay`` units, then returns or raises."""

    def _make(
        name: str,
        result: Any = True,
        delay: float = 0,
        error: Exception | None = None,
        gate: threading.Event | None = None,
    ) -> Check:
        def fn(value: Any) -> Any:
            call_log.record(name)
            if gate is not None:
                gate.wait(timeout=5)
            if delay:
                time.sleep(delay * UNIT)
            if error is not None:
                raise error
            return result

        return Check(name=name, fn=fn)

    return _make


@pytest.fixture
def gate():
    """An event that blocks gated checks; always released on teardown."""
    event = threading.Event()
    yield event
    event.set()
