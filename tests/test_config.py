"""Tests for exporter settings and the outbound client they build."""

import pytest

from clusterpulse.config import ConfigError, ExporterConfig, build_http_client


def test_defaults_are_valid():
    config = ExporterConfig().validate()
    assert config.es_url == "http://localhost:9200"
    assert config.namespace == "clusterpulse"
    assert config.metrics_path == "/metrics"
    assert config.ephemeral_counters is False


@pytest.mark.parametrize("overrides", [
    {"es_url": "ftp://cluster:21"},
    {"es_url": "localhost:9200/"},
    {"metrics_path": "metrics"},
    {"timeout_seconds": 0},
    {"client_key": "/tmp/key.pem"},
    {"namespace": "has-dash"},
    {"namespace": "9starts_with_digit"},
])
def test_invalid_settings_raise(overrides):
    with pytest.raises(ConfigError):
        ExporterConfig(**overrides).validate()


def test_empty_namespace_is_allowed():
    assert ExporterConfig(namespace="").validate().namespace == ""


def test_verify_modes():
    assert ExporterConfig().verify() is True
    assert ExporterConfig(ca_file="/etc/ssl/ca.pem").verify() == "/etc/ssl/ca.pem"
    assert ExporterConfig(ca_file="/etc/ssl/ca.pem", insecure=True).verify() is False


def test_cert_modes():
    assert ExporterConfig().cert() is None
    assert ExporterConfig(client_cert="c.pem").cert() == "c.pem"
    assert ExporterConfig(client_cert="c.pem", client_key="k.pem").cert() == ("c.pem", "k.pem")


def test_build_http_client_applies_timeout():
    client = build_http_client(ExporterConfig(timeout_seconds=2.5, insecure=True))
    try:
        assert client.timeout.connect == 2.5
        assert client.timeout.read == 2.5
    finally:
        client.close()
