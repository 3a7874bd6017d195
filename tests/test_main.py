"""Tests for the click CLI, run against the fake cluster."""

import json
import socket
import threading

from click.testing import CliRunner

from clusterpulse import __version__
from clusterpulse.main import cli
from clusterpulse.mock.fake_cluster_server import make_fake_server


def _start_test_server(**kwargs):
    server = make_fake_server(port=0, **kwargs)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    host, port = server.server_address[:2]
    return server, f"http://{host}:{port}"


def _unused_port() -> int:
    with socket.socket() as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


def test_version():
    result = CliRunner().invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_check_json_against_fake_cluster():
    server, url = _start_test_server()
    try:
        result = CliRunner().invoke(cli, ["--es-url", url, "check", "--json"])
        assert result.exit_code == 0, result.output

        records = json.loads(result.output)
        by_name = {}
        for r in records:
            by_name.setdefault(r["name"], []).append(r)

        assert by_name["clusterpulse_cluster_health_up"][0]["value"] == 1
        assert len(by_name["clusterpulse_cluster_health_status"]) == 3
        assert by_name["clusterpulse_cluster_health_active_shards"][0]["labels"] == {
            "cluster": "mock-cluster"
        }
    finally:
        server.shutdown()
        server.server_close()


def test_check_table_against_fake_cluster():
    server, url = _start_test_server()
    try:
        result = CliRunner().invoke(cli, ["--es-url", url, "--namespace", "es", "check"])
        assert result.exit_code == 0, result.output
        assert "is up" in result.output
    finally:
        server.shutdown()
        server.server_close()


def test_check_exits_nonzero_when_unreachable():
    url = f"http://127.0.0.1:{_unused_port()}"
    result = CliRunner().invoke(cli, ["--es-url", url, "--timeout", "1", "check"])
    assert result.exit_code == 1


def test_check_exits_nonzero_on_upstream_error():
    server, url = _start_test_server(fixed_response=(500, b"oops"))
    try:
        result = CliRunner().invoke(cli, ["--es-url", url, "check"])
        assert result.exit_code == 1
    finally:
        server.shutdown()
        server.server_close()


def test_es_url_from_environment():
    server, url = _start_test_server()
    try:
        result = CliRunner().invoke(
            cli, ["check", "--json"], env={"CLUSTERPULSE_ES_URL": url}
        )
        assert result.exit_code == 0, result.output
    finally:
        server.shutdown()
        server.server_close()


def test_bad_config_is_usage_error():
    result = CliRunner().invoke(cli, ["--metrics-path", "metrics", "check"])
    assert result.exit_code == 2
    assert "metrics path" in result.output
