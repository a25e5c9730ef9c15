"""Status state machine with guarded and forced transitions."""

from __future__ import annotations

import datetime as dt
from types import MappingProxyType

from .models import (
    STATUS_BLOCKED,
    STATUS_DONE,
    STATUS_IN_PROGRESS,
    STATUS_TODO,
    IllegalTransitionError,
    MissingTaskError,
    Task,
    UnknownStatusError,
)
from .normalize import normalize_status

ALLOWED_TRANSITIONS = MappingProxyType(
    {
        STATUS_TODO: frozenset({STATUS_IN_PROGRESS, STATUS_BLOCKED}),
        STATUS_IN_PROGRESS: frozenset({STATUS_BLOCKED, STATUS_DONE}),
        STATUS_BLOCKED: frozenset({STATUS_IN_PROGRESS, STATUS_TODO}),
        STATUS_DONE: frozenset(),
    }
)


def validate_transition(current: str, target: str, force: bool = False) -> None:
    if current == target or force:
        return
    allowed = ALLOWED_TRANSITIONS.get(current)
    if allowed is None:
        raise UnknownStatusError(f"Unknown current status: {current}")
    if target not in allowed:
        raise IllegalTransitionError(f"Transition not allowed: {current} -> {target}")


def apply_status_transition(
    now: dt.datetime,
    task: Task | None,
    new_status: str,
    force: bool = False,
) -> Task:
    """Validate and apply a status change to ``task`` in place.

    Records without a status yet (fresh records being created) skip the
    adjacency check. Timestamp side effects run on every successful call,
    self-transitions included, and never overwrite an existing
    ``started_at``.
    """
    if task is None:
        raise MissingTaskError("No task given for status transition")

    target = normalize_status(new_status)
    if task.status:
        validate_transition(task.status, target, force)

    task.status = target
    if target == STATUS_IN_PROGRESS:
        if task.started_at is None:
            task.started_at = now
        task.completed_at = None
    elif target == STATUS_DONE:
        if task.started_at is None:
            task.started_at = now
        if task.completed_at is None:
            task.completed_at = now
    elif target == STATUS_TODO:
        task.started_at = None
        task.completed_at = None
    elif target == STATUS_BLOCKED:
        task.completed_at = None
    return task
