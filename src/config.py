from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Central configuration loaded from environment / .env file."""

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    # Evaluator defaults
    evaluator_strategy: str = "concurrent"  # "sequential" | "concurrent"
    evaluator_max_workers: int = 0  # 0 = one worker per check
    evaluator_timeout_seconds: float = 0  # 0 = no deadline
    evaluator_cancel_pending: bool = False  # cancel queued checks once answered

    # Check registry (absolute or relative to CWD)
    checks_file: str = "checks.yaml"

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    # Logging
    log_level: str = "INFO"


settings = Settings()
