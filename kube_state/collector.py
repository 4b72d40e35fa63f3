"""Collector exposing the metrics of one resource kind."""

from .store import MetricsStore

__all__ = ["Collector"]


class Collector:
    """Pairs a metrics store with the name of the resource kind it holds."""

    def __init__(self, name: str, store: MetricsStore) -> None:
        self.name = name
        self.store = store

    def dump(self) -> str:
        """Return the exposition text of all objects of the resource kind."""
        return self.store.dump()

    def __repr__(self) -> str:
        return f"Collector({self.name!r}, objects={len(self.store)})"
