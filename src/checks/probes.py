"""Network probe checks — HTTP(S), TLS cert expiry, DNS resolve, TCP connect.

Each factory returns a Check whose input is a target host name. A probe
returns True when the target passes, False when it answers but does not
pass, and raises on network errors so the evaluator records the failure.
"""

from __future__ import annotations

import logging
import socket
import ssl
import threading
from datetime import datetime, timezone

import httpx

from src.evaluator.models import Check

logger = logging.getLogger(__name__)


def http_check(
    name: str,
    url_template: str = "https://{target}/",
    method: str = "GET",
    expected_status: int = 200,
    timeout_ms: int = 10_000,
) -> Check:
    """True when the formatted URL answers ``expected_status``."""

    def probe(target: str) -> bool:
        url = url_template.format(target=target)
        with httpx.Client(timeout=timeout_ms / 1000, follow_redirects=True, verify=True) as client:
            resp = client.request(method, url)
        logger.debug("%s %s -> %d", method, url, resp.status_code)
        return resp.status_code == expected_status

    return Check(name=name, fn=probe)


def tls_check(
    name: str,
    port: int = 443,
    warn_days_before: int = 14,
    timeout_ms: int = 10_000,
) -> Check:
    """True when the certificate is valid for more than ``warn_days_before`` days."""

    def probe(target: str) -> bool:
        ctx = ssl.create_default_context()
        with socket.create_connection((target, port), timeout=timeout_ms / 1000) as sock:
            with ctx.wrap_socket(sock, server_hostname=target) as ssock:
                cert = ssock.getpeercert()

        if not cert:
            return False

        not_after = cert.get("notAfter", "")
        expiry = datetime.strptime(not_after, "%b %d %H:%M:%S %Y %Z").replace(tzinfo=timezone.utc)
        days_left = (expiry - datetime.now(timezone.utc)).days
        logger.debug("%s certificate expires in %d days", target, days_left)
        return days_left >= warn_days_before

    return Check(name=name, fn=probe)


def dns_check(name: str, timeout_ms: int = 5_000) -> Check:
    """True when the target resolves to at least one address.

    ``getaddrinfo`` has no timeout of its own, so the lookup runs on a helper
    thread and the probe stops waiting after ``timeout_ms``.
    """

    def probe(target: str) -> bool:
        found: list[str] = []
        errors: list[Exception] = []

        def _resolve() -> None:
            try:
                found.extend(sorted({a[4][0] for a in socket.getaddrinfo(target, None)}))
            except Exception as e:
                errors.append(e)

        worker = threading.Thread(target=_resolve, name=f"dns-{target}", daemon=True)
        worker.start()
        worker.join(timeout_ms / 1000)
        if worker.is_alive():
            raise TimeoutError(f"DNS lookup for {target} timed out ({timeout_ms}ms)")
        if errors:
            raise errors[0]
        logger.debug("%s resolved to %s", target, ", ".join(found[:3]))
        return bool(found)

    return Check(name=name, fn=probe)


def tcp_check(name: str, port: int = 443, timeout_ms: int = 5_000) -> Check:
    """True when a TCP connection to ``port`` can be opened."""

    def probe(target: str) -> bool:
        with socket.create_connection((target, port), timeout=timeout_ms / 1000):
            pass
        return True

    return Check(name=name, fn=probe)
