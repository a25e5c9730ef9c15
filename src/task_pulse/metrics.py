"""Per-task metrics and collection-wide insights."""

from __future__ import annotations

import datetime as dt
from typing import Iterable

from .models import (
    RISK_AT_RISK,
    RISK_BLOCKED,
    RISK_COMPLETED,
    RISK_OVERDUE,
    STATUS_DONE,
    Insights,
    Task,
    TaskMetrics,
)
from .scoring import compute_risk, compute_score, hours_between, round_half_up

RISK_BUCKETS = {
    RISK_OVERDUE: "overdue",
    RISK_AT_RISK: "at_risk",
    RISK_BLOCKED: "blocked",
    RISK_COMPLETED: "done",
}


def _clamped_hours(start: dt.datetime, end: dt.datetime) -> float:
    return round_half_up(max(hours_between(start, end), 0.0), 2)


def compute_metrics(now: dt.datetime, task: Task) -> TaskMetrics:
    age = 0.0
    if task.created_at is not None:
        age = _clamped_hours(task.created_at, now)

    cycle = None
    if task.started_at is not None and task.completed_at is not None:
        cycle = _clamped_hours(task.started_at, task.completed_at)

    return TaskMetrics(
        risk=compute_risk(now, task),
        score=compute_score(now, task),
        age_hours=age,
        cycle_hours=cycle,
    )


def compute_insights(now: dt.datetime, tasks: Iterable[Task]) -> Insights:
    insights = Insights()
    age_sum = 0.0
    cycle_sum = 0.0
    cycle_count = 0

    for task in tasks:
        insights.total += 1
        insights.by_status[task.status] = insights.by_status.get(task.status, 0) + 1
        insights.by_priority[task.priority] = insights.by_priority.get(task.priority, 0) + 1

        metrics = compute_metrics(now, task)
        bucket = RISK_BUCKETS.get(metrics.risk)
        if bucket is not None:
            setattr(insights, bucket, getattr(insights, bucket) + 1)

        age_sum += metrics.age_hours
        if metrics.cycle_hours is not None:
            cycle_sum += metrics.cycle_hours
            cycle_count += 1

        if task.status != STATUS_DONE:
            insights.workload_hours += task.effort_hours

    if insights.total:
        insights.average_age_hours = round_half_up(age_sum / insights.total, 2)
        insights.focus_index = round_half_up(insights.done / insights.total, 2)
    if cycle_count:
        insights.average_cycle_hours = round_half_up(cycle_sum / cycle_count, 2)
    return insights
