"""
Fake /_cluster/health server for testing without a real cluster.

    python -m clusterpulse.mock.fake_cluster_server
    clusterpulse --es-url http://localhost:9201 check
"""

from __future__ import annotations

import json
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Optional, Tuple

from clusterpulse.mock.generator import MockCluster


class _HealthHandler(BaseHTTPRequestHandler):
    cluster: MockCluster = None
    # (status_code, body) served instead of the mock cluster, if set
    fixed_response: Optional[Tuple[int, bytes]] = None

    def do_GET(self):
        if self.path.split("?", 1)[0] == "/_cluster/health":
            if self.fixed_response is not None:
                code, body = self.fixed_response
            else:
                code, body = 200, json.dumps(self.cluster.health()).encode()
            self.send_response(code)
            self.send_header("Content-Type", "application/json")
            self.send_header("Content-Length", str(len(body)))
            self.end_headers()
            self.wfile.write(body)
        else:
            self.send_response(404)
            self.send_header("Content-Length", "0")
            self.end_headers()

    def log_message(self, format, *args):
        pass  # Suppress request logging noise


def make_fake_server(
    host: str = "127.0.0.1",
    port: int = 9201,
    seed: int = 42,
    fixed_response: Optional[Tuple[int, bytes]] = None,
) -> ThreadingHTTPServer:
    """Bind a fake cluster. Pass port=0 to let the OS pick one."""
    handler = type("FakeHealthHandler", (_HealthHandler,), {
        "cluster": MockCluster(seed=seed),
        "fixed_response": fixed_response,
    })
    return ThreadingHTTPServer((host, port), handler)


def run_fake_server(host: str = "127.0.0.1", port: int = 9201):
    server = make_fake_server(host, port)
    print(f"Fake cluster running at http://{host}:{port}/_cluster/health")
    print("Press Ctrl+C to stop.\n")
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        pass
    server.server_close()
    print("\nServer stopped.")


if __name__ == "__main__":
    run_fake_server()
