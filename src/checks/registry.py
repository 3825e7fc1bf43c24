"""Check registry — loads checks.yaml and builds probe checks from it.

    checks:
      - id: https
        type: http
        url: "https://{target}/health"
      - id: ssh
        type: tcp
        port: 22
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from src.checks.probes import dns_check, http_check, tcp_check, tls_check
from src.evaluator.models import Check

logger = logging.getLogger(__name__)

REGISTRY_PATH = Path("checks.yaml")


class RegistryError(ValueError):
    """Unknown check id or probe type."""


# ── Data models ──────────────────────────────────────────────────────────────


@dataclass
class CheckDef:
    """Definition of a single probe check from the registry."""

    id: str
    type: str  # http | tls | dns | tcp
    url: str = "https://{target}/"
    port: int = 443
    method: str = "GET"
    expected_status: int = 200
    timeout_ms: int = 10_000
    warn_days_before: int = 14  # for TLS checks


CHECK_BUILDERS = {
    "http": lambda d: http_check(d.id, d.url, d.method, d.expected_status, d.timeout_ms),
    "tls": lambda d: tls_check(d.id, d.port, d.warn_days_before, d.timeout_ms),
    "dns": lambda d: dns_check(d.id, d.timeout_ms),
    "tcp": lambda d: tcp_check(d.id, d.port, d.timeout_ms),
}


def build_check(defn: CheckDef) -> Check:
    """Turn a check definition into a runnable Check."""
    builder = CHECK_BUILDERS.get(defn.type)
    if not builder:
        raise RegistryError(f"Unknown check type: {defn.type}")
    return builder(defn)


# ── Registry ─────────────────────────────────────────────────────────────────


class CheckRegistry:
    """Loads and caches check definitions from checks.yaml."""

    def __init__(self, path: Path | str | None = None) -> None:
        self._path = Path(path) if path else REGISTRY_PATH
        self._defs: list[CheckDef] = []
        self._loaded = False

    @property
    def path(self) -> Path:
        return self._path

    def load(self, force: bool = False) -> list[CheckDef]:
        """Parse checks.yaml and return the CheckDef list."""
        if self._loaded and not force:
            return self._defs

        self._defs = []
        if not self._path.exists():
            logger.warning("Registry file not found: %s", self._path)
            self._loaded = True
            return self._defs

        try:
            raw = yaml.safe_load(self._path.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as e:
            logger.error("Failed to parse %s: %s", self._path, e)
            self._loaded = True
            return self._defs

        seen: set[str] = set()
        for entry in raw.get("checks", []) or []:
            try:
                defn = _parse_check(entry)
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping malformed check entry: %s", e)
                continue
            if defn.id in seen:
                logger.warning("Skipping duplicate check id: %s", defn.id)
                continue
            seen.add(defn.id)
            self._defs.append(defn)

        self._loaded = True
        logger.info("Loaded %d checks from %s", len(self._defs), self._path)
        return self._defs

    @property
    def definitions(self) -> list[CheckDef]:
        return self.load()

    def get(self, check_id: str) -> CheckDef | None:
        return next((d for d in self.definitions if d.id == check_id), None)

    def build(self, ids: list[str] | None = None) -> list[Check]:
        """Build checks in registry order, or in the order of ``ids``."""
        if ids is None:
            return [build_check(d) for d in self.definitions]

        checks = []
        for check_id in ids:
            defn = self.get(check_id)
            if defn is None:
                raise RegistryError(f"Check not found: {check_id}")
            checks.append(build_check(defn))
        return checks

    def to_dict(self) -> list[dict[str, Any]]:
        """Serialize all definitions for the API."""
        return [_check_to_dict(d) for d in self.definitions]

    def reload(self) -> list[CheckDef]:
        """Force reload from disk."""
        return self.load(force=True)


# ── Parsers ──────────────────────────────────────────────────────────────────


def _parse_check(raw: dict[str, Any]) -> CheckDef:
    check_type = raw.get("type", "http")
    if check_type not in CHECK_BUILDERS:
        raise ValueError(f"unknown type {check_type!r} for check {raw.get('id')!r}")

    return CheckDef(
        id=raw["id"],
        type=check_type,
        url=raw.get("url", "https://{target}/"),
        port=int(raw.get("port", 443)),
        method=raw.get("method", "GET"),
        expected_status=int(raw.get("expected_status", 200)),
        timeout_ms=int(raw.get("timeout_ms", 10_000)),
        warn_days_before=int(raw.get("warn_days_before", 14)),
    )


def _check_to_dict(d: CheckDef) -> dict[str, Any]:
    data: dict[str, Any] = {"id": d.id, "type": d.type, "timeout_ms": d.timeout_ms}
    if d.type == "http":
        data.update(url=d.url, method=d.method, expected_status=d.expected_status)
    elif d.type in ("tcp", "tls"):
        data["port"] = d.port
    if d.type == "tls":
        data["warn_days_before"] = d.warn_days_before
    return data
