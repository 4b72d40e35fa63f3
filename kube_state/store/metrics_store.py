"""Module for the store holding the rendered metrics of each object."""

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
import logging
import threading
from typing import Any

from kube_state.metric import RenderedFamily
from kube_state.objects import ObjectIdentity

from .store import CacheStore, IdentifiedObject

__all__ = ["MetricsStore", "CacheEntry"]

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheEntry:
    """Rendered metrics of one object, one text block per metric family."""

    identity: ObjectIdentity
    families: tuple[str, ...]


def _sort_key(entry: CacheEntry) -> tuple[str, str]:
    return (entry.identity.namespace or "", entry.identity.name)


class MetricsStore(CacheStore):
    """Thread safe store of the metric text rendered for each object.

    Objects are rendered when they are added or updated, outside of the lock,
    and the resulting entry is swapped in as a whole. Readers only hold the
    lock to take a snapshot of the entries, so a scrape never waits on
    rendering and watch events never wait on a scrape writing its response.
    """

    def __init__(
        self,
        headers: Sequence[str],
        generate_func: Callable[[Any], Sequence[RenderedFamily]],
    ) -> None:
        """Initialize MetricsStore.

        Args:
            headers: The `# HELP` and `# TYPE` lines of each metric family, in
                the order the generate function returns the families.
            generate_func: Renders the metric families of one object.
        """
        self._headers = tuple(headers)
        self._generate_func = generate_func
        self._entries: dict[ObjectIdentity, CacheEntry] = {}
        self._lock = threading.Lock()

    @property
    def headers(self) -> tuple[str, ...]:
        return self._headers

    def _render(self, obj: IdentifiedObject) -> CacheEntry:
        families = self._generate_func(obj)
        if len(families) != len(self._headers):
            raise ValueError(
                f"Rendered {len(families)} metric families for {obj.identity} "
                f"but store has {len(self._headers)} headers"
            )
        return CacheEntry(
            identity=obj.identity,
            families=tuple(family.text for family in families),
        )

    def add(self, obj: IdentifiedObject) -> None:
        """Add an object to the store."""
        entry = self._render(obj)
        with self._lock:
            self._entries[entry.identity] = entry

    def update(self, obj: IdentifiedObject) -> None:
        """Update an object in the store, adding it if missing."""
        self.add(obj)

    def delete(self, obj: IdentifiedObject) -> None:
        """Delete an object from the store, ignoring objects not present."""
        with self._lock:
            self._entries.pop(obj.identity, None)

    def replace(
        self, objects: Iterable[IdentifiedObject], namespace: str | None = None
    ) -> None:
        """Replace the contents of the store with the listed objects."""
        rendered = {entry.identity: entry for entry in map(self._render, objects)}
        with self._lock:
            if namespace is not None:
                entries = {
                    identity: entry
                    for identity, entry in self._entries.items()
                    if identity.namespace != namespace
                }
                entries.update(rendered)
            else:
                entries = rendered
            removed = len(set(self._entries) - set(entries))
            self._entries = entries
        _LOGGER.debug(
            "Replaced store contents with %d objects (%d removed)",
            len(rendered),
            removed,
        )

    def list_keys(self) -> list[ObjectIdentity]:
        """Return the identities of all objects in the store."""
        with self._lock:
            return list(self._entries)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def dump(self) -> str:
        """Return the exposition text of all objects in the store.

        Every family header is written even when the store is empty, followed
        by the lines of that family for every object.
        """
        with self._lock:
            entries = sorted(self._entries.values(), key=_sort_key)
        parts: list[str] = []
        for index, header in enumerate(self._headers):
            parts.append(header)
            parts.extend(entry.families[index] for entry in entries)
        return "".join(parts)
