"""Reflector keeping a store in sync with one list/watch source.

The reflector lists all objects, replaces the store contents with them and
then applies every change reported by the watch stream. Whenever the stream
closes or fails it starts over with a fresh list, since events missed while
the stream was down cannot be detected otherwise.
"""

import asyncio
from collections.abc import Callable
import logging
from typing import Any

from .config import ReflectorConfig
from .exceptions import (
    InputException,
    KubeStateException,
    ListWatchException,
    WatchExpiredError,
)
from .listwatch import EventType, ListerWatcher, WatchEvent
from .objects import BaseObject
from .store import CacheStore
from .telemetry import Telemetry

__all__ = ["Reflector"]

_LOGGER = logging.getLogger(__name__)

ParseFunc = Callable[[dict[str, Any]], BaseObject]


class Reflector:
    """Feeds the objects of one list/watch source into a store."""

    def __init__(
        self,
        resource: str,
        lister_watcher: ListerWatcher,
        store: CacheStore,
        parse: ParseFunc,
        namespace: str | None = None,
        config: ReflectorConfig | None = None,
        telemetry: Telemetry | None = None,
    ) -> None:
        """Initialize the Reflector.

        Args:
            resource: Name of the resource kind, used in logs and telemetry.
            lister_watcher: Source of the objects.
            store: Store receiving the objects.
            parse: Converts a raw object from the source to a typed object.
            namespace: Namespace watched, None when watching all namespaces.
                A list only reconciles the objects of this namespace.
            config: Timing of list and watch calls.
            telemetry: Counts list and watch results when set.
        """
        self._resource = resource
        self._lister_watcher = lister_watcher
        self._store = store
        self._parse = parse
        self._namespace = namespace
        self._config = config or ReflectorConfig()
        self._telemetry = telemetry
        self._last_resource_version = ""

    @property
    def last_resource_version(self) -> str:
        """Resource version of the last list or watch event applied."""
        return self._last_resource_version

    @property
    def name(self) -> str:
        return self._lister_watcher.description

    async def run(self) -> None:
        """List and watch until cancelled."""
        _LOGGER.info("Starting reflector for %s", self.name)
        backoff = self._config.resync_backoff_initial
        try:
            while True:
                try:
                    await self._list()
                except Exception as err:
                    self._count_list("error")
                    self._log_failure("List of", err, backoff)
                    await asyncio.sleep(backoff)
                    backoff = self._next_backoff(backoff)
                    continue
                backoff = self._config.resync_backoff_initial
                try:
                    await self._watch()
                except WatchExpiredError as err:
                    _LOGGER.info("Watch of %s expired, resyncing: %s", self.name, err)
                    self._count_watch("error")
                except Exception as err:
                    self._count_watch("error")
                    self._log_failure("Watch of", err, backoff)
                    await asyncio.sleep(backoff)
                    backoff = self._next_backoff(backoff)
                else:
                    _LOGGER.debug("Watch of %s closed, resyncing", self.name)
                self._store.resync()
        except asyncio.CancelledError:
            _LOGGER.info("Reflector for %s stopped", self.name)
            raise

    def _next_backoff(self, backoff: float) -> float:
        return min(backoff * 2, self._config.resync_backoff_max)

    def _log_failure(self, action: str, err: Exception, backoff: float) -> None:
        """Log a failed list or watch, with a traceback if it was unexpected."""
        if isinstance(err, KubeStateException):
            _LOGGER.warning(
                "%s %s failed, resyncing in %.1fs: %s", action, self.name, backoff, err
            )
        else:
            _LOGGER.exception(
                "%s %s failed unexpectedly, resyncing in %.1fs", action, self.name, backoff
            )

    async def _list(self) -> None:
        object_list = await self._lister_watcher.list()
        objects = []
        for doc in object_list.items:
            try:
                objects.append(self._parse(doc))
            except InputException as err:
                _LOGGER.warning("Skipping invalid object in %s: %s", self.name, err)
        self._store.replace(objects, namespace=self._namespace)
        self._last_resource_version = object_list.resource_version
        self._count_list("success")
        _LOGGER.debug(
            "Listed %d objects of %s at resource version %s",
            len(objects),
            self.name,
            self._last_resource_version,
        )

    async def _watch(self) -> None:
        async for event in self._lister_watcher.watch(self._last_resource_version):
            self._apply(event)

    def _apply(self, event: WatchEvent) -> None:
        """Apply one watch event to the store."""
        if event.type == EventType.ERROR:
            status = event.object
            error_cls = (
                WatchExpiredError if status.get("code") == 410 else ListWatchException
            )
            raise error_cls(
                self.name,
                f"{status.get('reason', 'Unknown')}: {status.get('message', '')}",
                status=status.get("code"),
            )
        if event.type == EventType.BOOKMARK:
            metadata = event.object.get("metadata") or {}
            self._last_resource_version = metadata.get(
                "resourceVersion", self._last_resource_version
            )
            return
        obj = self._parse(event.object)
        _LOGGER.debug("%s %s %s", event.type, self._resource, obj.identity)
        if event.type == EventType.ADDED:
            self._store.add(obj)
        elif event.type == EventType.MODIFIED:
            self._store.update(obj)
        elif event.type == EventType.DELETED:
            self._store.delete(obj)
        self._last_resource_version = obj.resource_version
        self._count_watch("success")

    def _count_list(self, result: str) -> None:
        if self._telemetry is not None:
            self._telemetry.list_total.labels(self._resource, result).inc()

    def _count_watch(self, result: str) -> None:
        if self._telemetry is not None:
            self._telemetry.watch_total.labels(self._resource, result).inc()
