"""List and watch access to one resource kind in one namespace.

A `ListerWatcher` lists the current objects along with the resource version of
the listing, then streams the changes that happened after that version. The
`KubeListWatch` implementation calls the API server through the `kubernetes`
client, whose calls are blocking and run in worker threads.
"""

from abc import ABC, abstractmethod
import asyncio
from collections.abc import AsyncGenerator, Callable
from dataclasses import dataclass, field
from enum import StrEnum
import json
import logging
import threading
from typing import Any, TYPE_CHECKING

from kubernetes import watch
from kubernetes.client.exceptions import ApiException
from urllib3.exceptions import HTTPError

from .exceptions import ListWatchException, WatchExpiredError

__all__ = [
    "EventType",
    "WatchEvent",
    "ObjectList",
    "ListerWatcher",
    "KubeListWatch",
]

_LOGGER = logging.getLogger(__name__)

NAMESPACE_ALL = ""

# Marks the end of the watch stream on the event queue.
_STREAM_CLOSED = object()


class EventType(StrEnum):
    """Type of a watch event."""

    ADDED = "ADDED"
    MODIFIED = "MODIFIED"
    DELETED = "DELETED"
    BOOKMARK = "BOOKMARK"
    ERROR = "ERROR"


@dataclass
class WatchEvent:
    """A change to an object reported by a watch call."""

    type: EventType
    object: dict[str, Any]
    """The raw object, or a Status object for error events."""


@dataclass
class ObjectList:
    """Result of a list call."""

    items: list[dict[str, Any]] = field(default_factory=list)
    resource_version: str = ""


class ListerWatcher(ABC):
    """Lists and watches the objects of one resource kind."""

    @property
    @abstractmethod
    def description(self) -> str:
        """Human readable description used in logs."""

    @abstractmethod
    async def list(self) -> ObjectList:
        """List all objects and the resource version of the listing."""

    @abstractmethod
    async def watch(self, resource_version: str) -> AsyncGenerator[WatchEvent, None]:
        """Stream the changes made after the resource version.

        The generator ends when the server closes the stream.
        """
        if TYPE_CHECKING:
            yield WatchEvent(EventType.ERROR, {})


ListFunc = Callable[..., Any]


class KubeListWatch(ListerWatcher):
    """ListerWatcher calling the API server with the kubernetes client.

    The list function is one of the generated `list_*` methods of a
    kubernetes API object, already bound to a namespace if the kind is
    namespaced, e.g. `functools.partial(core_api.list_namespaced_pod, "ns")`.
    """

    def __init__(
        self,
        resource: str,
        list_func: ListFunc,
        namespace: str = NAMESPACE_ALL,
        field_selector: str | None = None,
        request_timeout: float | None = None,
        watch_timeout: int | None = None,
    ) -> None:
        self._resource = resource
        self._list_func = list_func
        self._namespace = namespace
        self._field_selector = field_selector
        self._request_timeout = request_timeout
        self._watch_timeout = watch_timeout

    @property
    def description(self) -> str:
        namespace = self._namespace or "all namespaces"
        if self._field_selector:
            return f"{self._resource} ({namespace}, {self._field_selector})"
        return f"{self._resource} ({namespace})"

    def _selector_kwargs(self) -> dict[str, Any]:
        if self._field_selector:
            return {"field_selector": self._field_selector}
        return {}

    def _list_sync(self) -> ObjectList:
        kwargs = self._selector_kwargs()
        if self._request_timeout is not None:
            kwargs["_request_timeout"] = self._request_timeout
        try:
            response = self._list_func(_preload_content=False, **kwargs)
            doc = json.loads(response.data)
        except ApiException as err:
            raise ListWatchException(
                self.description, str(err.reason), status=err.status
            ) from err
        except (HTTPError, ValueError) as err:
            raise ListWatchException(self.description, str(err)) from err
        metadata = doc.get("metadata") or {}
        return ObjectList(
            items=list(doc.get("items") or ()),
            resource_version=metadata.get("resourceVersion", ""),
        )

    async def list(self) -> ObjectList:
        """List all objects in a worker thread."""
        return await asyncio.to_thread(self._list_sync)

    def _stream(
        self,
        stream: watch.Watch,
        resource_version: str,
        put: Callable[[Any], None],
    ) -> None:
        """Run the blocking watch stream, handing each event to `put`."""
        kwargs = self._selector_kwargs()
        if self._watch_timeout is not None:
            kwargs["timeout_seconds"] = self._watch_timeout
        try:
            for event in stream.stream(
                self._list_func,
                resource_version=resource_version,
                allow_watch_bookmarks=True,
                **kwargs,
            ):
                put(WatchEvent(EventType(event["type"]), event["raw_object"]))
        except ApiException as err:
            error_cls = WatchExpiredError if err.status == 410 else ListWatchException
            put(error_cls(self.description, str(err.reason), status=err.status))
        except (HTTPError, ValueError, KeyError) as err:
            put(ListWatchException(self.description, str(err)))
        finally:
            put(_STREAM_CLOSED)

    async def watch(self, resource_version: str) -> AsyncGenerator[WatchEvent, None]:
        """Stream the changes made after the resource version.

        The blocking stream runs in a daemon thread so that it never holds up
        shutdown; closing this generator stops the stream.
        """
        loop = asyncio.get_running_loop()
        queue: asyncio.Queue[Any] = asyncio.Queue()
        stream = watch.Watch()

        def put(item: Any) -> None:
            try:
                loop.call_soon_threadsafe(queue.put_nowait, item)
            except RuntimeError:
                # The event loop is closed, nobody is listening anymore.
                stream.stop()

        thread = threading.Thread(
            target=self._stream,
            args=(stream, resource_version, put),
            name=f"watch {self.description}",
            daemon=True,
        )
        thread.start()
        try:
            while True:
                item = await queue.get()
                if item is _STREAM_CLOSED:
                    return
                if isinstance(item, ListWatchException):
                    raise item
                yield item
        finally:
            stream.stop()
