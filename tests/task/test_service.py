"""Tests for the TaskServiceImpl."""

import asyncio
import logging
from typing import Any

import pytest

from kube_state.task import get_task_service, task_service_context
from kube_state.task.service import TaskServiceImpl

_LOGGER = logging.getLogger(__name__)


@pytest.fixture
def task_service() -> TaskServiceImpl:
    """Fixture for creating a TaskServiceImpl instance."""
    return TaskServiceImpl()


async def test_create_and_complete_task(task_service: TaskServiceImpl) -> None:
    """Test creating and completing a background task."""

    async def test_task() -> Any:
        await asyncio.sleep(0.01)
        return "done"

    task = task_service.create_background_task(test_task(), name="test")
    assert task.get_name() == "test"
    assert task_service.get_num_background_tasks() == 1

    assert await task == "done"
    await asyncio.sleep(0)
    assert task_service.get_num_background_tasks() == 0


async def test_task_failure(
    task_service: TaskServiceImpl, caplog: pytest.LogCaptureFixture
) -> None:
    """Test a failing task is logged and removed."""

    async def failing_task() -> Any:
        raise ValueError("Test error")

    task = task_service.create_background_task(failing_task(), name="failing")
    with pytest.raises(ValueError, match="Test error"):
        await task
    await asyncio.sleep(0)

    assert task_service.get_num_background_tasks() == 0
    assert "Task failing failed: Test error" in caplog.text


async def test_shutdown(task_service: TaskServiceImpl) -> None:
    """Test shutdown cancels all running tasks."""

    async def forever() -> Any:
        await asyncio.Event().wait()

    tasks = [task_service.create_background_task(forever()) for _ in range(3)]
    assert task_service.get_num_background_tasks() == 3

    await task_service.shutdown()

    assert task_service.get_num_background_tasks() == 0
    assert all(task.cancelled() for task in tasks)


async def test_shutdown_timeout(
    task_service: TaskServiceImpl, caplog: pytest.LogCaptureFixture
) -> None:
    """Test shutdown gives up on tasks that ignore cancellation."""
    release = asyncio.Event()

    async def stubborn() -> Any:
        while not release.is_set():
            try:
                await release.wait()
            except asyncio.CancelledError:
                continue

    task = task_service.create_background_task(stubborn(), name="stubborn")
    await task_service.shutdown(timeout=0.05)
    assert "did not stop" in caplog.text
    assert not task.done()

    release.set()
    await task


async def test_shutdown_without_tasks(task_service: TaskServiceImpl) -> None:
    """Test shutdown with nothing running."""
    await task_service.shutdown()
    assert task_service.get_num_background_tasks() == 0


def test_task_service_context() -> None:
    """Test the context scopes the current task service."""
    service = TaskServiceImpl()
    with task_service_context(service) as current:
        assert current is service
        assert get_task_service() is service
    assert get_task_service() is not service
