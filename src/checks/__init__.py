"""Check library — network probes and the checks.yaml registry."""

from .probes import dns_check, http_check, tcp_check, tls_check
from .registry import CheckDef, CheckRegistry, RegistryError, build_check
