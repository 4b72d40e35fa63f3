"""Store interface fed by the list and watch calls of a reflector."""

from abc import ABC, abstractmethod
from collections.abc import Iterable
from typing import Protocol

from kube_state.objects import ObjectIdentity


class IdentifiedObject(Protocol):
    """An object that can be held in a store."""

    @property
    def identity(self) -> ObjectIdentity: ...


class CacheStore(ABC):
    """Abstract base class for a store kept up to date by a reflector.

    A reflector replaces the whole contents of the store after each list call
    and then applies the individual changes reported by the watch call.
    """

    @abstractmethod
    def add(self, obj: IdentifiedObject) -> None:
        """Add an object to the store."""

    @abstractmethod
    def update(self, obj: IdentifiedObject) -> None:
        """Update an object in the store, adding it if missing."""

    @abstractmethod
    def delete(self, obj: IdentifiedObject) -> None:
        """Delete an object from the store, ignoring objects not present."""

    @abstractmethod
    def replace(
        self, objects: Iterable[IdentifiedObject], namespace: str | None = None
    ) -> None:
        """Replace the contents of the store with the listed objects.

        Objects in the store but absent from `objects` are deleted. When a
        namespace is given only objects of that namespace are reconciled, so
        reflectors of different namespaces may share one store.
        """

    @abstractmethod
    def list_keys(self) -> list[ObjectIdentity]:
        """Return the identities of all objects in the store."""

    def resync(self) -> None:
        """Hook called when a reflector resyncs, a no-op by default."""
