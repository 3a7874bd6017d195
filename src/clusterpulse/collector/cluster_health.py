"""
Prometheus collector for cluster health.

Each collect() does one fetch of /_cluster/health and turns the snapshot
into gauges labelled by cluster name, plus a one-hot status gauge and
the exporter's own bookkeeping (up, total scrapes, JSON parse failures).

The field table is static and shared by every collector instance; the
server builds a fresh HealthCollector per scrape request.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Iterator, List, Optional

from prometheus_client.core import CounterMetricFamily, GaugeMetricFamily, Metric
from prometheus_client.registry import Collector

from clusterpulse.collector.errors import DecodeError, FetchError
from clusterpulse.collector.fetcher import HealthFetcher
from clusterpulse.health import STATUS_COLORS, HealthSnapshot

log = logging.getLogger(__name__)

DEFAULT_NAMESPACE = "clusterpulse"
SUBSYSTEM = "cluster_health"

CLUSTER_LABELS = ["cluster"]
STATUS_LABELS = ["cluster", "color"]


def metric_name(namespace: str, field: str) -> str:
    """<namespace>_<subsystem>_<field>, skipping an empty namespace."""
    return "_".join(part for part in (namespace, SUBSYSTEM, field) if part)


@dataclass(frozen=True)
class FieldMetric:
    field: str
    help_text: str
    value: Callable[[HealthSnapshot], float]


@dataclass(frozen=True)
class StatusMetric:
    field: str
    help_text: str

    def value(self, snapshot: HealthSnapshot, color: str) -> float:
        return 1.0 if snapshot.status == color else 0.0


FIELD_METRICS = (
    FieldMetric(
        "active_primary_shards",
        "The number of primary shards in your cluster. This is an aggregate total across all indices.",
        lambda h: float(h.active_primary_shards),
    ),
    FieldMetric(
        "active_shards",
        "Aggregate total of all shards across all indices, which includes replica shards.",
        lambda h: float(h.active_shards),
    ),
    FieldMetric(
        "delayed_unassigned_shards",
        "Shards delayed to reduce reallocation overhead.",
        lambda h: float(h.delayed_unassigned_shards),
    ),
    FieldMetric(
        "initializing_shards",
        "Count of shards that are being freshly created.",
        lambda h: float(h.initializing_shards),
    ),
    FieldMetric(
        "number_of_data_nodes",
        "Number of data nodes in the cluster.",
        lambda h: float(h.number_of_data_nodes),
    ),
    FieldMetric(
        "number_of_in_flight_fetch",
        "The number of ongoing shard info requests.",
        lambda h: float(h.number_of_in_flight_fetch),
    ),
    FieldMetric(
        "task_max_waiting_in_queue_millis",
        "Tasks max time waiting in queue.",
        lambda h: float(h.task_max_waiting_in_queue_millis),
    ),
    FieldMetric(
        "number_of_nodes",
        "Number of nodes in the cluster.",
        lambda h: float(h.number_of_nodes),
    ),
    FieldMetric(
        "number_of_pending_tasks",
        "Cluster level changes which have not yet been executed.",
        lambda h: float(h.number_of_pending_tasks),
    ),
    FieldMetric(
        "relocating_shards",
        "The number of shards that are currently moving from one node to another node.",
        lambda h: float(h.relocating_shards),
    ),
    FieldMetric(
        "unassigned_shards",
        "The number of shards that exist in the cluster state, but cannot be found in the cluster itself.",
        lambda h: float(h.unassigned_shards),
    ),
    FieldMetric(
        "active_shards_percent_as_number",
        "Percentage of shards that are active.",
        lambda h: h.active_shards_percent_as_number,
    ),
)

STATUS_METRIC = StatusMetric(
    "status",
    "Whether all primary and replica shards are allocated.",
)


class ScrapeCounters:
    """Cumulative exporter bookkeeping: total scrapes, JSON parse failures.

    One instance is normally shared by every per-request collector so the
    counters keep counting across scrapes. Scrapes can run concurrently,
    hence the lock. `up` is not kept here; it describes one cycle only.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._total_scrapes = 0.0
        self._json_parse_failures = 0.0

    def begin_scrape(self):
        with self._lock:
            self._total_scrapes += 1

    def record_parse_failure(self):
        with self._lock:
            self._json_parse_failures += 1

    def values(self) -> tuple:
        """(total_scrapes, json_parse_failures) read under the lock."""
        with self._lock:
            return self._total_scrapes, self._json_parse_failures


class HealthCollector(Collector):

    def __init__(
        self,
        fetcher: HealthFetcher,
        namespace: str = DEFAULT_NAMESPACE,
        counters: Optional[ScrapeCounters] = None,
    ):
        self._fetcher = fetcher
        self._namespace = namespace
        self._counters = counters if counters is not None else ScrapeCounters()

    @property
    def counters(self) -> ScrapeCounters:
        return self._counters

    def _name(self, field: str) -> str:
        return metric_name(self._namespace, field)

    def describe(self) -> List[Metric]:
        """Every family this collector can produce, with no samples.

        Registries call this at register time; it never touches the network.
        """
        descs: List[Metric] = [
            GaugeMetricFamily(self._name(m.field), m.help_text, labels=CLUSTER_LABELS)
            for m in FIELD_METRICS
        ]
        descs.append(
            GaugeMetricFamily(
                self._name(STATUS_METRIC.field), STATUS_METRIC.help_text, labels=STATUS_LABELS
            )
        )
        descs.extend(self._counter_families())
        return descs

    def collect(self) -> Iterator[Metric]:
        self._counters.begin_scrape()

        try:
            snapshot = self._fetcher.fetch()
        except FetchError as e:
            if isinstance(e, DecodeError):
                self._counters.record_parse_failure()
            log.warning("Failed to fetch and decode cluster health from %s: %s",
                        self._fetcher.url, e)
            yield from self._counter_families(up=0.0)
            return

        for family in self._field_families(snapshot):
            yield family
        yield self._status_family(snapshot)
        yield from self._counter_families(up=1.0)

    def _field_families(self, snapshot: HealthSnapshot) -> Iterator[Metric]:
        for m in FIELD_METRICS:
            family = GaugeMetricFamily(self._name(m.field), m.help_text, labels=CLUSTER_LABELS)
            family.add_metric([snapshot.cluster_name], m.value(snapshot))
            yield family

    def _status_family(self, snapshot: HealthSnapshot) -> Metric:
        family = GaugeMetricFamily(
            self._name(STATUS_METRIC.field), STATUS_METRIC.help_text, labels=STATUS_LABELS
        )
        # Always all three colors, so an unrecognised status reads as all zeros
        for color in STATUS_COLORS:
            family.add_metric([snapshot.cluster_name, color], STATUS_METRIC.value(snapshot, color))
        return family

    def _counter_families(self, up: Optional[float] = None) -> List[Metric]:
        """up, total_scrapes, json_parse_failures; without samples when up is None."""
        up_family = GaugeMetricFamily(
            self._name("up"),
            "Was the last scrape of the cluster health endpoint successful.",
        )
        total = CounterMetricFamily(
            self._name("total_scrapes"),
            "Current total cluster health scrapes.",
        )
        failures = CounterMetricFamily(
            self._name("json_parse_failures"),
            "Number of errors while parsing JSON.",
        )

        if up is not None:
            total_value, failures_value = self._counters.values()
            up_family.add_metric([], up)
            total.add_metric([], total_value)
            failures.add_metric([], failures_value)

        return [up_family, total, failures]
