"""Tests for list and watch calls through the kubernetes client."""

from collections.abc import Iterator
import json
from typing import Any
from unittest.mock import MagicMock, patch

from kubernetes.client.exceptions import ApiException
import pytest

from kube_state.exceptions import ListWatchException, WatchExpiredError
from kube_state.listwatch import EventType, KubeListWatch


class FakeWatch:
    """Replacement for the kubernetes watch returning canned events."""

    def __init__(
        self, events: list[dict[str, Any]], error: Exception | None = None
    ) -> None:
        self._events = events
        self._error = error
        self.kwargs: dict[str, Any] = {}
        self.stopped = False

    def stream(self, func: Any, **kwargs: Any) -> Iterator[dict[str, Any]]:
        self.kwargs = kwargs
        yield from self._events
        if self._error is not None:
            raise self._error

    def stop(self) -> None:
        self.stopped = True


def _list_response(doc: dict[str, Any]) -> MagicMock:
    response = MagicMock()
    response.data = json.dumps(doc).encode()
    return response


async def test_list() -> None:
    """Test listing objects and the resource version of the listing."""
    list_func = MagicMock(
        return_value=_list_response(
            {
                "kind": "PodList",
                "metadata": {"resourceVersion": "100"},
                "items": [{"metadata": {"name": "a"}}, {"metadata": {"name": "b"}}],
            }
        )
    )
    lister_watcher = KubeListWatch(
        "pods", list_func, field_selector="spec.nodeName=n1", request_timeout=5.0
    )
    result = await lister_watcher.list()
    assert result.resource_version == "100"
    assert [item["metadata"]["name"] for item in result.items] == ["a", "b"]
    list_func.assert_called_once_with(
        _preload_content=False, field_selector="spec.nodeName=n1", _request_timeout=5.0
    )


async def test_list_api_error() -> None:
    """Test an API error on list."""
    list_func = MagicMock(side_effect=ApiException(status=403, reason="Forbidden"))
    lister_watcher = KubeListWatch("pods", list_func, namespace="default")
    with pytest.raises(ListWatchException, match="pods \\(default\\) failed: Forbidden") as err:
        await lister_watcher.list()
    assert err.value.status == 403


async def test_list_invalid_response() -> None:
    """Test a response that is not JSON."""
    response = MagicMock()
    response.data = b"not json"
    lister_watcher = KubeListWatch("pods", MagicMock(return_value=response))
    with pytest.raises(ListWatchException):
        await lister_watcher.list()


async def test_watch() -> None:
    """Test streaming watch events."""
    fake_watch = FakeWatch(
        [
            {"type": "ADDED", "raw_object": {"metadata": {"name": "a"}}},
            {"type": "DELETED", "raw_object": {"metadata": {"name": "a"}}},
        ]
    )
    lister_watcher = KubeListWatch("pods", MagicMock(), watch_timeout=30)
    with patch("kube_state.listwatch.watch.Watch", return_value=fake_watch):
        events = [event async for event in lister_watcher.watch("5")]
    assert [event.type for event in events] == [EventType.ADDED, EventType.DELETED]
    assert events[0].object == {"metadata": {"name": "a"}}
    assert fake_watch.kwargs == {
        "resource_version": "5",
        "allow_watch_bookmarks": True,
        "timeout_seconds": 30,
    }
    assert fake_watch.stopped


async def test_watch_expired() -> None:
    """Test a 410 Gone error ends the watch with an expired error."""
    fake_watch = FakeWatch(
        [{"type": "ADDED", "raw_object": {"metadata": {"name": "a"}}}],
        error=ApiException(status=410, reason="Expired: too old resource version"),
    )
    lister_watcher = KubeListWatch("pods", MagicMock())
    events = []
    with patch("kube_state.listwatch.watch.Watch", return_value=fake_watch):
        with pytest.raises(WatchExpiredError, match="too old resource version"):
            async for event in lister_watcher.watch("5"):
                events.append(event)
    assert len(events) == 1


async def test_watch_api_error() -> None:
    """Test other API errors end the watch with a list/watch error."""
    fake_watch = FakeWatch([], error=ApiException(status=500, reason="Internal"))
    lister_watcher = KubeListWatch("pods", MagicMock())
    with patch("kube_state.listwatch.watch.Watch", return_value=fake_watch):
        with pytest.raises(ListWatchException) as err:
            async for _ in lister_watcher.watch("5"):
                pass
    assert not isinstance(err.value, WatchExpiredError)
    assert err.value.status == 500


def test_description() -> None:
    """Test the description of a source used in logs."""
    assert KubeListWatch("pods", MagicMock()).description == "pods (all namespaces)"
    assert KubeListWatch("pods", MagicMock(), namespace="a").description == "pods (a)"
