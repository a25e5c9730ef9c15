"""Risk classification and urgency scoring."""

from __future__ import annotations

import datetime as dt
from decimal import ROUND_HALF_UP, Decimal

from .models import (
    PRIORITY_WEIGHTS,
    RISK_AT_RISK,
    RISK_BLOCKED,
    RISK_COMPLETED,
    RISK_ON_TRACK,
    RISK_OVERDUE,
    RISK_UNSCHEDULED,
    STATUS_BLOCKED,
    STATUS_DONE,
    Task,
)

AT_RISK_WINDOW = dt.timedelta(hours=48)

# (hours remaining upper bound, bonus); first match wins.
DUE_BONUSES = ((0.0, 20.0), (48.0, 10.0), (96.0, 5.0))
STATUS_BONUSES = {STATUS_BLOCKED: 7.0, STATUS_DONE: -5.0}
EFFORT_FACTOR = 0.1


def round_half_up(value: float, places: int) -> float:
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(repr(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def hours_between(start: dt.datetime, end: dt.datetime) -> float:
    return (end - start).total_seconds() / 3600.0


def compute_risk(now: dt.datetime, task: Task) -> str:
    if task.status == STATUS_DONE:
        return RISK_COMPLETED
    if task.status == STATUS_BLOCKED:
        return RISK_BLOCKED
    if task.due_date is None:
        return RISK_UNSCHEDULED
    if task.due_date < now:
        return RISK_OVERDUE
    if task.due_date - now <= AT_RISK_WINDOW:
        return RISK_AT_RISK
    return RISK_ON_TRACK


def _due_bonus(now: dt.datetime, due_date: dt.datetime | None) -> float:
    if due_date is None:
        return 0.0
    remaining = hours_between(now, due_date)
    for limit, bonus in DUE_BONUSES:
        if remaining <= limit:
            return bonus
    return 0.0


def compute_score(now: dt.datetime, task: Task) -> float:
    """Higher is more urgent. Rounded to one decimal, half up."""
    score = PRIORITY_WEIGHTS.get(task.priority, 0) * 10.0
    score += _due_bonus(now, task.due_date)
    score += STATUS_BONUSES.get(task.status, 0.0)
    score += task.effort_hours * EFFORT_FACTOR
    return round_half_up(score, 1)
