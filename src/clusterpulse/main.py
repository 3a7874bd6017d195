"""
clusterpulse entry point.

Usage:
    clusterpulse --es-url http://localhost:9200            Run the exporter
    clusterpulse --es-url http://localhost:9200 check      One-shot scrape
    clusterpulse check --json                              Same, as JSON
"""

from __future__ import annotations

import json
import logging

import click

from clusterpulse import __version__
from clusterpulse.collector.cluster_health import DEFAULT_NAMESPACE, metric_name
from clusterpulse.config import (
    DEFAULT_ES_URL,
    DEFAULT_LISTEN_PORT,
    ConfigError,
    ExporterConfig,
    build_http_client,
)
from clusterpulse.server import build_registry, serve


log = logging.getLogger("clusterpulse")


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="clusterpulse")
@click.option("--es-url", default=DEFAULT_ES_URL, envvar="CLUSTERPULSE_ES_URL",
              show_default=True, help="Base URL of the cluster to query")
@click.option("--namespace", default=DEFAULT_NAMESPACE, envvar="CLUSTERPULSE_NAMESPACE",
              show_default=True, help="Prefix for every exported metric name")
@click.option("--timeout", default=5.0, envvar="CLUSTERPULSE_TIMEOUT",
              show_default=True, help="Timeout in seconds for the health request")
@click.option("--listen-host", default="0.0.0.0", envvar="CLUSTERPULSE_LISTEN_HOST",
              show_default=True, help="Address to serve metrics on")
@click.option("--listen-port", default=DEFAULT_LISTEN_PORT, envvar="CLUSTERPULSE_LISTEN_PORT",
              show_default=True, help="Port to serve metrics on")
@click.option("--metrics-path", default="/metrics", envvar="CLUSTERPULSE_METRICS_PATH",
              show_default=True, help="Path the scrape endpoint is served under")
@click.option("--ca-file", default=None, envvar="CLUSTERPULSE_CA_FILE",
              help="CA bundle for verifying the cluster's certificate")
@click.option("--client-cert", default=None, envvar="CLUSTERPULSE_CLIENT_CERT",
              help="Client certificate for mutual TLS")
@click.option("--client-key", default=None, envvar="CLUSTERPULSE_CLIENT_KEY",
              help="Private key for --client-cert")
@click.option("--insecure", is_flag=True, default=False, envvar="CLUSTERPULSE_INSECURE",
              help="Skip TLS certificate verification")
@click.option("--ephemeral-counters", is_flag=True, default=False,
              envvar="CLUSTERPULSE_EPHEMERAL_COUNTERS",
              help="Reset scrape counters on every request instead of keeping them process-wide")
@click.option("--verbose", is_flag=True, default=False, help="Enable debug logging")
@click.pass_context
def cli(ctx, es_url: str, namespace: str, timeout: float, listen_host: str,
        listen_port: int, metrics_path: str, ca_file: str, client_cert: str,
        client_key: str, insecure: bool, ephemeral_counters: bool, verbose: bool):
    """clusterpulse - Prometheus exporter for cluster health."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    # httpx logs every request at INFO; only interesting when debugging
    logging.getLogger("httpx").setLevel(logging.DEBUG if verbose else logging.WARNING)

    config = ExporterConfig(
        es_url=es_url,
        namespace=namespace,
        timeout_seconds=timeout,
        listen_host=listen_host,
        listen_port=listen_port,
        metrics_path=metrics_path,
        ca_file=ca_file,
        client_cert=client_cert,
        client_key=client_key,
        insecure=insecure,
        ephemeral_counters=ephemeral_counters,
    )
    try:
        config.validate()
    except ConfigError as e:
        raise click.UsageError(str(e)) from e

    log.debug("Using %s", config)

    ctx.ensure_object(dict)
    ctx.obj["config"] = config

    # No subcommand means run the exporter
    if ctx.invoked_subcommand is None:
        serve(config)


@cli.command("serve")
@click.pass_context
def serve_cmd(ctx):
    """Serve metrics until interrupted."""
    serve(ctx.obj["config"])


@cli.command()
@click.option("--json", "as_json", is_flag=True, default=False,
              help="Print samples as JSON instead of a table")
@click.pass_context
def check(ctx, as_json: bool):
    """Run one collection cycle and print what a scrape would return."""
    from rich.console import Console
    from rich.table import Table

    config: ExporterConfig = ctx.obj["config"]

    client = build_http_client(config)
    try:
        samples = [s for family in build_registry(config, client).collect() for s in family.samples]
    finally:
        client.close()

    up_name = metric_name(config.namespace, "up")
    up = next((s.value for s in samples if s.name == up_name), 0.0)

    if as_json:
        records = [
            {"name": s.name, "labels": s.labels, "value": s.value}
            for s in samples
        ]
        click.echo(json.dumps(records, indent=2))
    else:
        console = Console()
        table = Table(show_header=True, header_style="bold")
        table.add_column("Metric")
        table.add_column("Labels")
        table.add_column("Value", justify="right")

        for sample in samples:
            labels = ", ".join(f"{k}={v}" for k, v in sample.labels.items())
            table.add_row(f"[cyan]{sample.name}[/cyan]", labels, f"{sample.value:g}")
        console.print(table)

        if up == 1:
            console.print("\n[bold green]Cluster health endpoint is up.[/bold green]")
        else:
            console.print("\n[bold red]Cluster health endpoint is unreachable.[/bold red]")

    if up != 1:
        raise SystemExit(1)


if __name__ == "__main__":
    cli()
