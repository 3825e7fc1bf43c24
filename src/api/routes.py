"""API routes for the check registry and the evaluator.

Endpoints:
  GET  /api/status    — service status + effective evaluator config
  GET  /api/checks    — checks loaded from checks.yaml
  POST /api/checks/reload — re-read checks.yaml
  POST /api/evaluate  — does any (selected) check pass for a target?
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel

from src.checks.registry import CheckRegistry, RegistryError
from src.evaluator.engine import Evaluator, EvaluatorConfig
from src.evaluator.models import ConfigError

logger = logging.getLogger(__name__)

router = APIRouter()


# -- Request/Response models ---------------------------------------------------


class EvaluateRequest(BaseModel):
    target: str
    check_ids: list[str] | None = None
    strategy: str | None = None
    max_workers: int | None = None
    timeout: float | None = None
    cancel_pending: bool | None = None


class FailureEntry(BaseModel):
    check: str | None
    kind: str
    error: str


class EvaluateResponse(BaseModel):
    target: str
    satisfied: bool
    matched_check: str | None
    failures: list[FailureEntry]
    strategy: str
    invoked: int
    elapsed_ms: float
    timed_out: bool


# -- Endpoints -----------------------------------------------------------------


@router.get("/status")
def system_status(request: Request) -> dict[str, Any]:
    """Get service status and the evaluator defaults in effect."""
    registry: CheckRegistry = request.app.state.registry
    config: EvaluatorConfig = request.app.state.evaluator_config
    return {
        "status": "ok",
        "checks": len(registry.definitions),
        "evaluator": config.to_dict(),
    }


@router.get("/checks")
def list_checks(request: Request) -> dict[str, Any]:
    """List all checks from the registry."""
    registry: CheckRegistry = request.app.state.registry
    return {"checks": registry.to_dict()}


@router.post("/checks/reload")
def reload_checks(request: Request) -> dict[str, Any]:
    """Re-read the registry file from disk."""
    registry: CheckRegistry = request.app.state.registry
    defs = registry.reload()
    return {"status": "reloaded", "checks": len(defs)}


@router.post("/evaluate", response_model=EvaluateResponse)
def evaluate_target(req: EvaluateRequest, request: Request) -> EvaluateResponse:
    """Evaluate the registry's checks against a target; true if any passes."""
    registry: CheckRegistry = request.app.state.registry
    base: EvaluatorConfig = request.app.state.evaluator_config

    try:
        config = base.override(
            strategy=req.strategy,
            max_workers=req.max_workers,
            timeout=req.timeout,
            cancel_pending=req.cancel_pending,
        )
    except ConfigError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e

    try:
        checks = registry.build(req.check_ids)
    except RegistryError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e

    logger.info(
        "Evaluate %s: %d check(s), strategy=%s", req.target, len(checks), config.strategy.value,
    )
    result = Evaluator(config).evaluate(checks, req.target)
    return EvaluateResponse(target=req.target, **result.to_dict())
