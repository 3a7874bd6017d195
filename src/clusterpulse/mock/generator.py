"""
Mock cluster health generator.

Produces fake but believable /_cluster/health bodies so we can develop
and test without a real cluster. Loosely modelled on a 5 node cluster
with 40 indices, 1 replica each, that occasionally loses a node.
"""

from __future__ import annotations

import random

from clusterpulse.health import STATUS_GREEN, STATUS_RED, STATUS_YELLOW


class MockCluster:

    def __init__(self, seed: int = 42, cluster_name: str = "mock-cluster"):
        self._rng = random.Random(seed)
        self._tick = 0
        self.cluster_name = cluster_name
        self.total_nodes = 5
        self.primary_shards = 40
        self.replicas = 1

    def health(self) -> dict:
        """One health reading, advancing the simulation clock."""
        self._tick += 1

        # A node drops out now and then, taking its shards with it
        nodes_down = 1 if self._rng.random() > 0.85 else 0
        nodes = self.total_nodes - nodes_down
        data_nodes = nodes - 1  # one dedicated master

        total_shards = self.primary_shards * (1 + self.replicas)
        lost = nodes_down * total_shards // self.total_nodes

        # Replicas get promoted first; primaries only go missing on a bad day
        unassigned_primaries = 1 if lost and self._rng.random() > 0.9 else 0
        unassigned = lost
        initializing = min(unassigned, self._rng.randint(0, 4)) if unassigned else 0
        relocating = self._rng.randint(0, 2) if not unassigned else 0
        active = total_shards - unassigned
        active_primaries = self.primary_shards - unassigned_primaries

        if unassigned_primaries:
            status = STATUS_RED
        elif unassigned:
            status = STATUS_YELLOW
        else:
            status = STATUS_GREEN

        pending = self._rng.randint(0, 3) + (5 if unassigned else 0)

        return {
            "cluster_name": self.cluster_name,
            "status": status,
            "timed_out": False,
            "number_of_nodes": nodes,
            "number_of_data_nodes": data_nodes,
            "active_primary_shards": active_primaries,
            "active_shards": active,
            "relocating_shards": relocating,
            "initializing_shards": initializing,
            "unassigned_shards": unassigned,
            "delayed_unassigned_shards": unassigned - initializing,
            "number_of_pending_tasks": pending,
            "number_of_in_flight_fetch": self._rng.randint(0, 2),
            "task_max_waiting_in_queue_millis": pending * self._rng.randint(0, 40),
            "active_shards_percent_as_number": round(100.0 * active / total_shards, 4),
        }
