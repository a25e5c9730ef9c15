"""Core task models, vocabulary and errors."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
import datetime as dt
from types import MappingProxyType
from typing import Any

STATUS_TODO = "todo"
STATUS_IN_PROGRESS = "in_progress"
STATUS_BLOCKED = "blocked"
STATUS_DONE = "done"
VALID_STATUSES = (STATUS_TODO, STATUS_IN_PROGRESS, STATUS_BLOCKED, STATUS_DONE)

VALID_PRIORITIES = ("low", "medium", "high", "critical")
PRIORITY_WEIGHTS = MappingProxyType({"low": 1, "medium": 2, "high": 3, "critical": 4})

DEFAULT_STATUS = STATUS_TODO
DEFAULT_PRIORITY = "medium"
DEFAULT_OWNER = "unassigned"
DEFAULT_EFFORT_HOURS = 1
MAX_EFFORT_HOURS = 200
MAX_TITLE_LENGTH = 200
MAX_TAGS = 8
MAX_TAG_LENGTH = 24

RISK_ON_TRACK = "on_track"
RISK_AT_RISK = "at_risk"
RISK_OVERDUE = "overdue"
RISK_UNSCHEDULED = "unscheduled"
RISK_BLOCKED = "blocked"
RISK_COMPLETED = "completed"

VALID_SORT_KEYS = ("score", "priority", "due_date", "created_at", "updated_at", "title")
VALID_SORT_ORDERS = ("asc", "desc")
DEFAULT_SORT_KEY = "score"
DEFAULT_SORT_ORDER = "desc"

TIMESTAMP_FIELDS = ("due_date", "started_at", "completed_at", "created_at", "updated_at")


def _iso(value: dt.datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


@dataclass(slots=True)
class Task:
    title: str
    id: int | None = None
    description: str = ""
    status: str = DEFAULT_STATUS
    priority: str = DEFAULT_PRIORITY
    owner: str = DEFAULT_OWNER
    effort_hours: int = DEFAULT_EFFORT_HOURS
    tags: list[str] = field(default_factory=list)
    due_date: dt.datetime | None = None
    started_at: dt.datetime | None = None
    completed_at: dt.datetime | None = None
    created_at: dt.datetime | None = None
    updated_at: dt.datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        for key in TIMESTAMP_FIELDS:
            data[key] = _iso(data[key])
        return data


@dataclass(slots=True)
class TaskMetrics:
    risk: str
    score: float
    age_hours: float
    cycle_hours: float | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(slots=True)
class Insights:
    total: int = 0
    by_status: dict[str, int] = field(default_factory=dict)
    by_priority: dict[str, int] = field(default_factory=dict)
    overdue: int = 0
    at_risk: int = 0
    blocked: int = 0
    done: int = 0
    average_age_hours: float = 0.0
    average_cycle_hours: float = 0.0
    workload_hours: int = 0
    focus_index: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class SortOption:
    by: str = DEFAULT_SORT_KEY
    order: str = DEFAULT_SORT_ORDER

    @property
    def descending(self) -> bool:
        return self.order == "desc"


class TaskError(Exception):
    """Base error for task operations."""

    kind = "task_error"


class TaskValidationError(TaskError):
    """Raised when task input or a requested change is invalid."""

    kind = "validation_error"


class InvalidStatusError(TaskValidationError):
    kind = "invalid_status"


class InvalidPriorityError(TaskValidationError):
    kind = "invalid_priority"


class TagTooLongError(TaskValidationError):
    kind = "tag_too_long"


class TooManyTagsError(TaskValidationError):
    kind = "too_many_tags"


class InvalidFieldError(TaskValidationError):
    """Raised for malformed title, effort or due date input."""

    kind = "invalid_field"


class UnknownStatusError(TaskValidationError):
    """Raised when a transition starts from a status outside the table."""

    kind = "unknown_status"


class IllegalTransitionError(TaskValidationError):
    """Raised for a non-forced transition along a disallowed edge."""

    kind = "illegal_transition"


class MissingTaskError(TaskValidationError):
    kind = "missing_task"


class TaskNotFoundError(TaskError):
    """Raised when a task cannot be located."""

    kind = "not_found"
