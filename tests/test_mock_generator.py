"""Basic sanity checks for the mock cluster generator."""

from clusterpulse.health import STATUS_COLORS, STATUS_GREEN, STATUS_RED, STATUS_YELLOW, HealthSnapshot
from clusterpulse.mock.generator import MockCluster


def test_health_decodes_into_snapshot():
    cluster = MockCluster(seed=42)
    snap = HealthSnapshot.from_dict(cluster.health())

    assert snap.cluster_name == "mock-cluster"
    assert snap.status in STATUS_COLORS
    assert 1 <= snap.number_of_nodes <= cluster.total_nodes
    assert snap.number_of_data_nodes < snap.number_of_nodes
    assert snap.active_shards + snap.unassigned_shards == 80
    assert 0 < snap.active_shards_percent_as_number <= 100


def test_status_follows_shard_state():
    cluster = MockCluster(seed=7)
    for _ in range(200):
        h = cluster.health()
        if h["active_primary_shards"] < cluster.primary_shards:
            assert h["status"] == STATUS_RED
        elif h["unassigned_shards"]:
            assert h["status"] == STATUS_YELLOW
        else:
            assert h["status"] == STATUS_GREEN


def test_eventually_degrades():
    cluster = MockCluster(seed=42)
    statuses = {cluster.health()["status"] for _ in range(200)}
    assert STATUS_GREEN in statuses
    assert STATUS_YELLOW in statuses


def test_deterministic_with_same_seed():
    a = MockCluster(seed=99)
    b = MockCluster(seed=99)
    for _ in range(5):
        assert a.health() == b.health()


def test_counts_never_negative():
    cluster = MockCluster(seed=3)
    for _ in range(100):
        h = cluster.health()
        for key, value in h.items():
            if isinstance(value, (int, float)) and not isinstance(value, bool):
                assert value >= 0, key
