"""Task tracking service for kube-state.

Reflectors run as long lived background tasks owned by the service. Shutting
the service down cancels all of them and waits for them to finish, so that no
store is written after shutdown returns.
"""

import asyncio
from abc import ABC, abstractmethod
from functools import partial
import logging
from typing import Any, Coroutine, Set

_LOGGER = logging.getLogger(__name__)

__all__: list[str] = []

DEFAULT_SHUTDOWN_TIMEOUT = 10.0


class TaskService(ABC):
    """Service for tracking long running background tasks."""

    @abstractmethod
    def create_background_task(
        self, coro: Coroutine[None, None, Any], name: str | None = None
    ) -> asyncio.Task[Any]:
        """Create and track a new long running background task.

        Args:
            coro: The coroutine to run as a task
            name: Name of the task, used in logs

        Returns:
            The created task
        """

    @abstractmethod
    async def shutdown(self, timeout: float = DEFAULT_SHUTDOWN_TIMEOUT) -> None:
        """Cancel all background tasks and wait for them to finish.

        Args:
            timeout: Grace period in seconds for the tasks to finish
        """

    @abstractmethod
    def get_num_background_tasks(self) -> int:
        """Get the number of running background tasks."""


class TaskServiceImpl(TaskService):
    """Service for tracking long running background tasks."""

    def __init__(self) -> None:
        """Initialize the task service."""
        self._background_tasks: Set[asyncio.Task[Any]] = set()

    def create_background_task(
        self, coro: Coroutine[None, None, Any], name: str | None = None
    ) -> asyncio.Task[Any]:
        """Create and track a new background task.

        Args:
            coro: The coroutine to run as a task
            name: Name of the task, used in logs

        Returns:
            The created task
        """
        task = asyncio.create_task(coro, name=name)
        self._background_tasks.add(task)
        task.add_done_callback(partial(self._task_done, self._background_tasks))
        return task

    def _task_done(
        self, task_set: Set[asyncio.Task[Any]], task: asyncio.Task[Any]
    ) -> None:
        """Callback when a task is done.

        Args:
            task: The completed task
        """
        try:
            # This will raise any exception that occurred in the task
            task.result()
        except asyncio.CancelledError:
            pass
        except Exception as e:
            _LOGGER.error("Task %s failed: %s", task.get_name(), e)
        finally:
            task_set.discard(task)

    async def shutdown(self, timeout: float = DEFAULT_SHUTDOWN_TIMEOUT) -> None:
        """Cancel all background tasks and wait for them to finish.

        Args:
            timeout: Grace period in seconds for the tasks to finish
        """
        tasks = list(self._background_tasks)
        if not tasks:
            _LOGGER.debug("No background tasks to cancel")
            return
        _LOGGER.debug("Cancelling %d background tasks", len(tasks))
        for task in tasks:
            task.cancel()
        _, pending = await asyncio.wait(tasks, timeout=timeout)
        if pending:
            _LOGGER.warning(
                "%d background tasks did not stop within %.1fs: %s",
                len(pending),
                timeout,
                [task.get_name() for task in pending],
            )

    def get_num_background_tasks(self) -> int:
        """Get the number of running background tasks."""
        return len(self._background_tasks)
