# src/projctx/tasks/ledger.py
"""
Task ledger: the ordered, append-and-mutate-in-place task list of a project.

Task ids are creation-order positions. Because tasks are never deleted the
sequence stays dense, so `tasks[task_id]` is the task with that id. If task
deletion is ever added, ids have to come from a separate counter instead.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Dict, List, Optional

from projctx.errors import NotFoundError
from projctx.projects.registry import ProjectRegistry
from projctx.store.schema import (
    Task,
    TaskPriority,
    TaskStatus,
    coerce_int,
    require_text,
    utcnow,
)

logger = logging.getLogger(__name__)

# display order for grouped listings
STATUS_ORDER: List[TaskStatus] = [
    TaskStatus.PENDING,
    TaskStatus.IN_PROGRESS,
    TaskStatus.DONE,
    TaskStatus.CANCELLED,
]


class TaskLedger:
    def __init__(
        self,
        registry: ProjectRegistry,
        *,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.registry = registry
        self._now = clock or utcnow

    def add_task(
        self,
        project: str,
        title: str,
        description: Optional[str] = None,
        priority: TaskPriority | str | None = None,
    ) -> Task:
        title = require_text(title, field="title")
        priority = (
            TaskPriority.MEDIUM
            if priority is None or priority == ""
            else TaskPriority.parse(priority, field="priority")
        )

        with self.registry.editing(project) as doc:
            now = self._now()
            task = Task(
                id=len(doc.tasks),
                title=title,
                description=description or None,
                status=TaskStatus.PENDING,
                priority=priority,
                created_at=now,
                updated_at=now,
            )
            doc.tasks.append(task)
        logger.info("added task %d to %r", task.id, project)
        return task

    def list_tasks(
        self,
        project: str,
        status: TaskStatus | str | None = None,
    ) -> Optional[Dict[TaskStatus, List[Task]]]:
        """
        Group the project's tasks by status in STATUS_ORDER, dropping empty
        groups. Each group keeps insertion order.

        Returns None when the project has no document or no tasks at all; a
        status filter that matches nothing returns {}.
        """
        if status is not None and status != "":
            status = TaskStatus.parse(status, field="status")
        else:
            status = None

        doc = self.registry.get(project)
        if doc is None or not doc.tasks:
            return None

        tasks = [t for t in doc.tasks if status is None or t.status == status]
        grouped: Dict[TaskStatus, List[Task]] = {}
        for st in STATUS_ORDER:
            members = [t for t in tasks if t.status == st]
            if members:
                grouped[st] = members
        return grouped

    def complete_task(self, project: str, task_id: int) -> Task:
        return self.set_status(project, task_id, TaskStatus.DONE)

    def set_status(self, project: str, task_id: int, status: TaskStatus | str) -> Task:
        """
        Look up the task at position `task_id`, set its status and refresh
        updated_at. Raises NotFoundError for an unknown project or id.
        """
        task_id = coerce_int(task_id, field="task_id")
        status = TaskStatus.parse(status, field="status")

        doc = self.registry.get(project)
        if doc is None:
            raise NotFoundError(f'Project "{project}" not found')
        if task_id < 0 or task_id >= len(doc.tasks):
            raise NotFoundError(f"Task with ID {task_id} not found")

        with self.registry.editing(project, create=False) as doc:
            task = doc.tasks[task_id]
            task.status = status
            task.updated_at = max(self._now(), task.created_at)
        logger.info("task %d of %r -> %s", task_id, project, status.value)
        return task
