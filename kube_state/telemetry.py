"""Metrics about the exporter itself.

These are kept in their own registry and served separately from the object
metrics, so that a scrape of the object metrics is not mixed with metrics
about the process producing them.
"""

from prometheus_client import CollectorRegistry, Counter, generate_latest

__all__ = ["Telemetry"]


class Telemetry:
    """Counters of the list and watch calls made by the reflectors."""

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        self.registry = registry or CollectorRegistry()
        self.list_total = Counter(
            "kube_state_list_total",
            "Number of resource list calls, by resource and result.",
            ["resource", "result"],
            registry=self.registry,
        )
        self.watch_total = Counter(
            "kube_state_watch_total",
            "Number of resource watch events, by resource and result.",
            ["resource", "result"],
            registry=self.registry,
        )

    def generate(self) -> bytes:
        """Return the exposition text of the exporter metrics."""
        return generate_latest(self.registry)
