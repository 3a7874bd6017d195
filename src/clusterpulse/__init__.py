"""clusterpulse - Prometheus exporter for cluster health."""

__version__ = "0.3.0"
