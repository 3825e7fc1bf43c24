"""Tests for strategy dispatch, configuration and end-to-end scenarios."""

from __future__ import annotations

import threading
import time
from types import SimpleNamespace

import pytest

from src.evaluator.engine import Evaluator, EvaluatorConfig, evaluate, evaluate_concurrent
from src.evaluator.models import Check, ConfigError, Strategy


# ── EvaluatorConfig ──────────────────────────────────────────────────────────


class TestEvaluatorConfig:
    def test_defaults(self) -> None:
        cfg = EvaluatorConfig()
        assert cfg.strategy == Strategy.CONCURRENT
        assert cfg.max_workers is None
        assert cfg.timeout is None
        assert cfg.cancel_pending is False

    def test_strategy_from_string(self) -> None:
        assert EvaluatorConfig(strategy="sequential").strategy == Strategy.SEQUENTIAL

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"strategy": "parallel"},
            {"max_workers": 0},
            {"max_workers": -3},
            {"timeout": 0},
            {"timeout": -1.5},
        ],
    )
    def test_invalid(self, kwargs) -> None:
        with pytest.raises(ConfigError):
            EvaluatorConfig(**kwargs)

    def test_from_settings_zero_means_unset(self) -> None:
        settings = SimpleNamespace(
            evaluator_strategy="concurrent",
            evaluator_max_workers=0,
            evaluator_timeout_seconds=0,
            evaluator_cancel_pending=False,
        )
        cfg = EvaluatorConfig.from_settings(settings)
        assert cfg.max_workers is None
        assert cfg.timeout is None

    def test_from_settings_values(self) -> None:
        settings = SimpleNamespace(
            evaluator_strategy="sequential",
            evaluator_max_workers=4,
            evaluator_timeout_seconds=2.5,
            evaluator_cancel_pending=True,
        )
        cfg = EvaluatorConfig.from_settings(settings)
        assert cfg.to_dict() == {
            "strategy": "sequential",
            "max_workers": 4,
            "timeout": 2.5,
            "cancel_pending": True,
        }

    def test_override_skips_none(self) -> None:
        cfg = EvaluatorConfig(max_workers=4).override(strategy="sequential", max_workers=None)
        assert cfg.strategy == Strategy.SEQUENTIAL
        assert cfg.max_workers == 4

    def test_override_validates(self) -> None:
        with pytest.raises(ConfigError):
            EvaluatorConfig().override(max_workers=0)


# ── Scenarios ────────────────────────────────────────────────────────────────


class TestScenarios:
    def test_sequential_takes_first_true_in_order(self, make_check, call_log) -> None:
        checks = [
            make_check("five", result=False, delay=5),
            make_check("one", result=True, delay=1),
            make_check("three", result=True, delay=3),
        ]
        result = Evaluator(EvaluatorConfig(strategy="sequential")).evaluate(checks, "x")
        assert result.matched_check is checks[1]
        assert call_log.calls == ["five", "one"]

    def test_concurrent_takes_first_true_to_complete(self, make_check, call_log) -> None:
        checks = [
            make_check("five", result=True, delay=10),
            make_check("one", result=True, delay=2),
            make_check("three", result=False, delay=6),
        ]
        t0 = time.perf_counter()
        result = Evaluator(EvaluatorConfig(max_workers=3)).evaluate(checks, "x")
        wall = time.perf_counter() - t0

        assert result.satisfied
        assert result.matched_check is checks[1]
        assert result.strategy == Strategy.CONCURRENT
        # Bounded by the fast check, not the slower ones
        assert wall < 0.3
        assert sorted(call_log.calls) == ["five", "one", "three"]

    @pytest.mark.parametrize("strategy", ["sequential", "concurrent"])
    def test_empty(self, strategy) -> None:
        t0 = time.perf_counter()
        result = evaluate([], "x", strategy=strategy)
        assert not result.satisfied
        assert result.failures == ()
        assert time.perf_counter() - t0 < 0.5

    @pytest.mark.parametrize("strategy", ["sequential", "concurrent"])
    def test_all_fail(self, make_check, strategy) -> None:
        checks = [make_check(f"c{i}", error=OSError(f"c{i}"), delay=i) for i in range(4)]
        result = evaluate(checks, "x", strategy=strategy)
        assert not result.satisfied
        assert len(result.failures) == len(checks)
        assert {f.check for f in result.failures} == set(checks)

    def test_single_worker_runs_in_submission_order(self, make_check, call_log, gate) -> None:
        # never-needed would also be true, but it is queued behind fast-true
        checks = [
            make_check("slow-false", result=False, delay=3),
            make_check("fast-true", result=True, delay=1),
            make_check("never-needed", result=True, gate=gate),
        ]
        result = evaluate_concurrent(checks, "x", max_workers=1)
        assert result.satisfied
        assert result.matched_check is checks[1]
        assert result.invoked == 3
        assert result.failures == ()
        assert call_log.calls[:2] == ["slow-false", "fast-true"]

    def test_queued_check_can_finish_before_earlier_one(self, make_check, gate) -> None:
        # Two workers: one is stuck on the first check, the other works
        # through the queue, so the third check completes before the first.
        checks = [
            make_check("stuck", result=True, gate=gate),
            make_check("second", result=False),
            make_check("third", result=True),
        ]
        result = evaluate_concurrent(checks, "x", max_workers=2)
        assert result.matched_check is checks[2]

    def test_concurrent_timeout(self, make_check, gate) -> None:
        checks = [make_check("hung", gate=gate), make_check("no", result=False)]
        result = evaluate(checks, "x", timeout=0.2)
        assert not result.satisfied
        assert result.timed_out

    def test_sequential_idempotent(self, make_check) -> None:
        checks = [make_check("a", result=False), make_check("b", result=True)]
        evaluator = Evaluator(EvaluatorConfig(strategy="sequential"))
        results = [evaluator.evaluate(checks, "x") for _ in range(3)]
        assert all(r.matched_check is checks[1] for r in results)


# ── Cooperative stop ─────────────────────────────────────────────────────────


class TestCooperativeStop:
    def test_stop_event_raised_after_match(self, make_check) -> None:
        finished = threading.Event()
        saw_stop: list[bool] = []

        def patient(value, stop):
            saw_stop.append(stop.wait(timeout=5))
            finished.set()
            return False

        checks = [
            Check(name="patient", fn=patient, cooperative=True),
            make_check("quick", result=True, delay=1),
        ]
        result = evaluate_concurrent(checks, "x")

        assert result.matched_check is checks[1]
        assert finished.wait(timeout=5)
        assert saw_stop == [True]

    def test_sequential_cooperative_check_runs(self) -> None:
        check = Check(name="coop", fn=lambda v, stop: v == "x", cooperative=True)
        result = evaluate([check], "x", strategy="sequential")
        assert result.matched_check is check
