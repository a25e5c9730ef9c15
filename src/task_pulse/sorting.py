"""Stable multi-key ordering of task collections."""

from __future__ import annotations

import datetime as dt
from typing import Any, Callable

from .models import PRIORITY_WEIGHTS, SortOption, Task
from .scoring import compute_score

# Stand-in for missing timestamps so keys stay comparable.
_EPOCH = dt.datetime.min.replace(tzinfo=dt.timezone.utc)


def _stamp(value: dt.datetime | None) -> dt.datetime:
    return value if value is not None else _EPOCH


def _key_fn(by: str, now: dt.datetime) -> Callable[[Task], Any]:
    if by == "priority":
        return lambda task: (PRIORITY_WEIGHTS.get(task.priority, 0), _stamp(task.updated_at))
    if by == "due_date":
        return lambda task: (task.due_date, _stamp(task.updated_at))
    if by == "created_at":
        return lambda task: _stamp(task.created_at)
    if by == "updated_at":
        return lambda task: _stamp(task.updated_at)
    if by == "title":
        return lambda task: (task.title.lower(), _stamp(task.updated_at))
    return lambda task: (compute_score(now, task), _stamp(task.updated_at))


def sort_tasks(tasks: list[Task], option: SortOption, now: dt.datetime) -> None:
    """Sort ``tasks`` in place.

    Ties on the primary key fall back to ``updated_at`` in the same
    direction. For ``due_date`` undated tasks always come last, whatever
    the order.
    """
    if len(tasks) < 2:
        return

    descending = option.descending
    key = _key_fn(option.by, now)

    if option.by != "due_date":
        tasks.sort(key=key, reverse=descending)
        return

    dated = [task for task in tasks if task.due_date is not None]
    undated = [task for task in tasks if task.due_date is None]
    dated.sort(key=key, reverse=descending)
    undated.sort(key=lambda task: _stamp(task.updated_at), reverse=descending)
    tasks[:] = dated + undated
