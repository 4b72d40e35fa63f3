"""Exceptions related to kube-state."""

__all__ = [
    "KubeStateException",
    "InputException",
    "ConfigException",
    "ListWatchException",
    "WatchExpiredError",
    "KubeClientException",
    "MetricRenderError",
]


class KubeStateException(Exception):
    """Generic base exception used for this library."""


class InputException(KubeStateException):
    """Raised when an object from the API server is not formatted as expected."""


class ConfigException(KubeStateException):
    """Raised when the exporter configuration is invalid or incomplete."""


class ListWatchException(KubeStateException):
    """Raised when a list or watch call against the API server fails."""

    def __init__(self, resource: str, message: str, status: int | None = None) -> None:
        super().__init__(f"List/watch for {resource} failed: {message}")
        self.resource = resource
        self.message = message
        self.status = status


class WatchExpiredError(ListWatchException):
    """Raised when the watch stream reports an error event such as 410 Gone."""


class KubeClientException(KubeStateException):
    """Raised when a client for the API server cannot be created."""


class MetricRenderError(KubeStateException):
    """Raised when a metric cannot be rendered as exposition text."""
