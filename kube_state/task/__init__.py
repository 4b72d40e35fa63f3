"""Task tracking module for kube-state.

This module provides a task service owning the background tasks started by
the builder, so that they can all be cancelled together on shutdown.
"""

from .context import task_service_context, get_task_service
from .service import TaskService, TaskServiceImpl

__all__ = ["get_task_service", "task_service_context", "TaskService", "TaskServiceImpl"]
