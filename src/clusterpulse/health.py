"""
Cluster health snapshot.

Mirrors the body returned by GET /_cluster/health. Only the fields we
republish (plus a couple of useful extras) are kept; anything else the
cluster sends is ignored.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, fields

from clusterpulse.collector.errors import DecodeError

STATUS_GREEN = "green"    # all shards allocated
STATUS_YELLOW = "yellow"  # primaries allocated, some replicas not
STATUS_RED = "red"        # at least one primary unallocated

STATUS_COLORS = (STATUS_GREEN, STATUS_YELLOW, STATUS_RED)


@dataclass(frozen=True)
class HealthSnapshot:
    """One decoded /_cluster/health response."""

    cluster_name: str = ""
    status: str = ""
    timed_out: bool = False

    # Nodes
    number_of_nodes: int = 0
    number_of_data_nodes: int = 0

    # Shards
    active_primary_shards: int = 0
    active_shards: int = 0
    relocating_shards: int = 0
    initializing_shards: int = 0
    unassigned_shards: int = 0
    delayed_unassigned_shards: int = 0

    # Master task queue
    number_of_pending_tasks: int = 0
    number_of_in_flight_fetch: int = 0
    task_max_waiting_in_queue_millis: int = 0

    active_shards_percent_as_number: float = 0.0

    @classmethod
    def from_dict(cls, payload) -> HealthSnapshot:
        """Build a snapshot from decoded JSON.

        Missing keys and nulls fall back to the field default. A value of
        the wrong JSON type raises DecodeError.
        """
        if not isinstance(payload, dict):
            raise DecodeError(
                f"expected a JSON object, got {type(payload).__name__}"
            )

        values = {}
        for f in fields(cls):
            raw = payload.get(f.name)
            if raw is None:
                continue
            values[f.name] = _coerce(f.name, f.type, raw)
        return cls(**values)

    @classmethod
    def from_json(cls, body: bytes) -> HealthSnapshot:
        try:
            payload = json.loads(body, parse_constant=_reject_constant)
        except (ValueError, RecursionError) as e:
            # RecursionError: pathologically nested arrays/objects
            raise DecodeError(f"invalid JSON: {e}") from e
        return cls.from_dict(payload)


def _reject_constant(name: str):
    # NaN, Infinity and -Infinity are not JSON
    raise DecodeError(f"invalid JSON: non-standard constant {name}")


def _coerce(name: str, type_name: str, raw):
    # Field annotations are strings under `from __future__ import annotations`.
    # bool is checked first because it is a subclass of int.
    if type_name == "str":
        if isinstance(raw, str):
            return raw
    elif type_name == "bool":
        if isinstance(raw, bool):
            return raw
    elif type_name == "int":
        if isinstance(raw, int) and not isinstance(raw, bool):
            return raw
        if isinstance(raw, float) and raw.is_integer():
            return int(raw)
    elif type_name == "float":
        if isinstance(raw, (int, float)) and not isinstance(raw, bool):
            return float(raw)

    raise DecodeError(
        f"field {name!r}: expected {type_name}, got {type(raw).__name__}"
    )
