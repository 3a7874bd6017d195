"""
Fetches /_cluster/health and decodes it into a HealthSnapshot.

One GET per call, no retries. Timeouts and TLS settings belong to the
httpx.Client passed in, which may be shared by concurrent scrapes.
"""

from __future__ import annotations

import logging

import httpx

from clusterpulse.collector.errors import TransportError, UnexpectedStatus
from clusterpulse.health import HealthSnapshot

log = logging.getLogger(__name__)

HEALTH_PATH = "/_cluster/health"


def health_url(base_url: str) -> httpx.URL:
    """Join the health endpoint onto whatever path the base URL already has."""
    url = httpx.URL(base_url)
    return url.copy_with(path=url.path.rstrip("/") + HEALTH_PATH)


def _redacted(url: httpx.URL) -> str:
    # scheme://host[:port]/path -- no credentials, no query string
    host = f"[{url.host}]" if ":" in url.host else url.host
    port = f":{url.port}" if url.port else ""
    return f"{url.scheme}://{host}{port}{url.path}"


class HealthFetcher:

    def __init__(self, client: httpx.Client, base_url: str):
        self._client = client
        self._url = health_url(base_url)

    @property
    def url(self) -> str:
        return _redacted(self._url)

    def fetch(self) -> HealthSnapshot:
        """GET the health endpoint and decode the body.

        Raises TransportError, UnexpectedStatus or DecodeError. The response
        is always closed before returning, whichever way we leave.
        """
        try:
            with self._client.stream("GET", self._url) as response:
                if response.status_code != httpx.codes.OK:
                    raise UnexpectedStatus(response.status_code, url=self.url)
                body = response.read()
        except httpx.HTTPError as e:
            raise TransportError(
                f"failed to get cluster health from {self.url}: {e}"
            ) from e

        log.debug("Fetched %d bytes from %s", len(body), self.url)
        return HealthSnapshot.from_json(body)
