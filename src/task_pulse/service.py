"""Task lifecycle wiring: store, clock and the scoring engine."""

from __future__ import annotations

import logging
from typing import Iterable

from .clock import Clock, SystemClock
from .metrics import compute_insights, compute_metrics
from .models import Insights, SortOption, Task, TaskMetrics
from .normalize import (
    normalize_effort,
    normalize_owner,
    normalize_priority,
    normalize_status,
    normalize_tags,
    normalize_title,
    parse_due_date,
)
from .sorting import sort_tasks
from .storage import TaskFilter, TaskStore
from .transitions import apply_status_transition

logger = logging.getLogger(__name__)

# Marks "leave the due date alone" in update_task, since None clears it.
KEEP = object()


class TaskService:
    def __init__(self, store: TaskStore, clock: Clock | None = None) -> None:
        self.store = store
        self.clock = clock or SystemClock()

    def list_tasks(
        self,
        task_filter: TaskFilter | None = None,
        sort: SortOption | None = None,
    ) -> list[tuple[Task, TaskMetrics]]:
        tasks = self.store.list(task_filter)
        now = self.clock.now()
        sort_tasks(tasks, sort or SortOption(), now)
        return [(task, compute_metrics(now, task)) for task in tasks]

    def get_task(self, task_id: int) -> tuple[Task, TaskMetrics]:
        task = self.store.get(task_id)
        return task, compute_metrics(self.clock.now(), task)

    def create_task(
        self,
        title: str,
        *,
        description: str = "",
        status: str = "",
        priority: str = "",
        owner: str = "",
        effort_hours: int | None = None,
        tags: Iterable[str] | None = None,
        due_date: str | None = None,
    ) -> Task:
        target = normalize_status(status)
        task = Task(
            title=normalize_title(title),
            description=description.strip(),
            status="",
            priority=normalize_priority(priority),
            owner=normalize_owner(owner),
            effort_hours=normalize_effort(effort_hours),
            tags=normalize_tags(tags),
            due_date=parse_due_date(due_date),
        )
        # Fresh records skip the adjacency check but still get timestamps.
        apply_status_transition(self.clock.now(), task, target, force=True)
        return self.store.create(task)

    def update_task(
        self,
        task_id: int,
        *,
        title: str | None = None,
        description: str | None = None,
        priority: str | None = None,
        owner: str | None = None,
        effort_hours: int | None = None,
        tags: Iterable[str] | None = None,
        due_date: object = KEEP,
        status: str | None = None,
        force: bool = False,
    ) -> Task:
        task = self.store.get(task_id)

        if title is not None:
            task.title = normalize_title(title)
        if description is not None:
            task.description = description.strip()
        if priority is not None:
            task.priority = normalize_priority(priority)
        if owner is not None:
            task.owner = normalize_owner(owner)
        if effort_hours is not None:
            task.effort_hours = normalize_effort(effort_hours)
        if tags is not None:
            task.tags = normalize_tags(tags)
        if due_date is not KEEP:
            task.due_date = parse_due_date(due_date)  # type: ignore[arg-type]
        if status is not None:
            previous = task.status
            apply_status_transition(self.clock.now(), task, status, force=force)
            logger.info(
                "Task %d status %s -> %s%s",
                task_id,
                previous,
                task.status,
                " (forced)" if force else "",
            )

        return self.store.update(task)

    def move_task(self, task_id: int, status: str, *, force: bool = False) -> Task:
        return self.update_task(task_id, status=status, force=force)

    def delete_task(self, task_id: int) -> None:
        self.store.delete(task_id)

    def insights(self, task_filter: TaskFilter | None = None) -> Insights:
        tasks = self.store.list(task_filter)
        return compute_insights(self.clock.now(), tasks)
