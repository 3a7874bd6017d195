"""
Exporter settings.

Filled in by the CLI (click options, each with a CLUSTERPULSE_* env var
fallback) and validated once at startup.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

import httpx

from clusterpulse.collector.cluster_health import DEFAULT_NAMESPACE

DEFAULT_ES_URL = "http://localhost:9200"
DEFAULT_LISTEN_PORT = 9114

# Prometheus metric name rules, applied to the namespace prefix
_NAMESPACE_RE = re.compile(r"^[a-zA-Z_:][a-zA-Z0-9_:]*$")


class ConfigError(ValueError):
    pass


@dataclass
class ExporterConfig:
    es_url: str = DEFAULT_ES_URL
    namespace: str = DEFAULT_NAMESPACE
    timeout_seconds: float = 5.0

    listen_host: str = "0.0.0.0"
    listen_port: int = DEFAULT_LISTEN_PORT
    metrics_path: str = "/metrics"

    # TLS towards the cluster
    ca_file: Optional[str] = None
    client_cert: Optional[str] = None
    client_key: Optional[str] = None
    insecure: bool = False

    # Fresh counters per scrape request instead of process-wide ones
    ephemeral_counters: bool = False

    def validate(self) -> ExporterConfig:
        try:
            scheme = httpx.URL(self.es_url).scheme
        except httpx.InvalidURL as e:
            raise ConfigError(f"invalid cluster URL {self.es_url!r}: {e}") from e
        if scheme not in ("http", "https"):
            raise ConfigError(f"cluster URL must be http or https, got {self.es_url!r}")

        if not self.metrics_path.startswith("/"):
            raise ConfigError(f"metrics path must start with '/', got {self.metrics_path!r}")

        if self.timeout_seconds <= 0:
            raise ConfigError("timeout must be positive")

        if self.client_key and not self.client_cert:
            raise ConfigError("a client key needs a client certificate")

        if self.namespace and not _NAMESPACE_RE.match(self.namespace):
            raise ConfigError(f"invalid metric namespace {self.namespace!r}")

        return self

    def verify(self):
        """Value for httpx's `verify` argument."""
        if self.insecure:
            return False
        if self.ca_file:
            return self.ca_file
        return True

    def cert(self):
        """Value for httpx's `cert` argument, or None."""
        if not self.client_cert:
            return None
        if self.client_key:
            return (self.client_cert, self.client_key)
        return self.client_cert


def build_http_client(config: ExporterConfig) -> httpx.Client:
    """The outbound client shared by all scrapes."""
    return httpx.Client(
        timeout=config.timeout_seconds,
        verify=config.verify(),
        cert=config.cert(),
    )
