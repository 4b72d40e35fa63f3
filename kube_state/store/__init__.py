"""
The store module holds the rendered metrics of the objects of one resource
kind, kept up to date by the reflectors watching that kind.

- Uses ObjectIdentity as the key for all objects.
- Holds the metric text of each object, rendered when the object changes.
- Implements the add/update/delete/replace contract expected by a reflector.
"""

from .store import CacheStore
from .metrics_store import CacheEntry, MetricsStore

__all__ = [
    "CacheStore",
    "CacheEntry",
    "MetricsStore",
]
