"""
HTTP side of the exporter.

Every scrape gets its own CollectorRegistry with a freshly built
HealthCollector in it, so concurrent scrapes never share registry state.
The outbound httpx.Client and (by default) the ScrapeCounters are the
only things shared between requests.
"""

from __future__ import annotations

import logging
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Optional

import httpx
from prometheus_client import CollectorRegistry
from prometheus_client.exposition import choose_encoder

from clusterpulse import __version__
from clusterpulse.collector.cluster_health import HealthCollector, ScrapeCounters
from clusterpulse.collector.fetcher import HealthFetcher
from clusterpulse.config import ExporterConfig, build_http_client

log = logging.getLogger(__name__)

_LANDING_PAGE = """<html>
<head><title>clusterpulse</title></head>
<body>
<h1>clusterpulse {version}</h1>
<p><a href="{path}">Metrics</a></p>
</body>
</html>
"""


def build_registry(
    config: ExporterConfig,
    client: httpx.Client,
    counters: Optional[ScrapeCounters] = None,
) -> CollectorRegistry:
    """A one-shot registry holding a single HealthCollector."""
    if config.ephemeral_counters:
        counters = None

    registry = CollectorRegistry()
    registry.register(HealthCollector(
        HealthFetcher(client, config.es_url),
        namespace=config.namespace,
        counters=counters,
    ))
    return registry


class ScrapeHandler(BaseHTTPRequestHandler):
    # Set on the subclass made by build_server()
    config: ExporterConfig = None
    client: httpx.Client = None
    counters: Optional[ScrapeCounters] = None

    server_version = f"clusterpulse/{__version__}"

    def _route(self, send_body: bool = True):
        path = self.path.split("?", 1)[0]

        if path == self.config.metrics_path:
            registry = build_registry(self.config, self.client, self.counters)
            encoder, content_type = choose_encoder(self.headers.get("Accept"))
            body = encoder(registry)
            self._respond(200, content_type, body, send_body)
        elif path == "/":
            page = _LANDING_PAGE.format(version=__version__, path=self.config.metrics_path)
            self._respond(200, "text/html; charset=utf-8", page.encode(), send_body)
        else:
            self._respond(404, "text/plain; charset=utf-8", b"Not Found\n", send_body)

    def _respond(self, code: int, content_type: str, body: bytes, send_body: bool):
        self.send_response(code)
        self.send_header("Content-Type", content_type)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        if send_body:
            self.wfile.write(body)

    # The scrape endpoint does not care about the method
    def do_GET(self):
        self._route()

    def do_POST(self):
        self._route()

    def do_HEAD(self):
        self._route(send_body=False)

    def log_message(self, format, *args):
        log.debug("%s - %s", self.address_string(), format % args)


def build_server(
    config: ExporterConfig,
    client: httpx.Client,
    counters: Optional[ScrapeCounters] = None,
) -> ThreadingHTTPServer:
    """Bind (but don't start) the scrape server."""
    handler = type("BoundScrapeHandler", (ScrapeHandler,), {
        "config": config,
        "client": client,
        "counters": counters if counters is not None else ScrapeCounters(),
    })
    server = ThreadingHTTPServer((config.listen_host, config.listen_port), handler)
    server.daemon_threads = True
    return server


def serve(config: ExporterConfig):
    """Run the exporter until interrupted."""
    client = build_http_client(config)
    server = build_server(config, client)
    host, port = server.server_address[:2]
    log.info("Serving %s on http://%s:%d%s (cluster: %s)",
             config.namespace, host, port, config.metrics_path,
             HealthFetcher(client, config.es_url).url)
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        pass
    finally:
        server.server_close()
        client.close()
        log.info("Exporter stopped")
