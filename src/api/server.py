"""FastAPI server for the check evaluator."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api.routes import router
from src.checks.registry import CheckRegistry
from src.config import settings
from src.evaluator.engine import EvaluatorConfig

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize shared resources on startup."""
    # Evaluator defaults (bad settings fail here, not per request)
    app.state.evaluator_config = EvaluatorConfig.from_settings(settings)
    logger.info("Evaluator config: %s", app.state.evaluator_config.to_dict())

    # Check registry
    registry = CheckRegistry(settings.checks_file)
    registry.load()
    logger.info("Check registry loaded: %d checks", len(registry.definitions))
    app.state.registry = registry

    yield


def create_app() -> FastAPI:
    app = FastAPI(
        title="anycheck - concurrent check evaluator",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(router, prefix="/api")

    return app


app = create_app()
