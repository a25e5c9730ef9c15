from __future__ import annotations

import datetime as dt

from task_pulse.metrics import compute_insights, compute_metrics
from task_pulse.models import Insights, Task

NOW = dt.datetime(2026, 2, 6, 12, 0, tzinfo=dt.timezone.utc)


def _ago(hours: float) -> dt.datetime:
    return NOW - dt.timedelta(hours=hours)


def _task(task_id: int, **overrides) -> Task:
    values = {
        "id": task_id,
        "title": f"Task {task_id}",
        "status": "todo",
        "priority": "medium",
        "effort_hours": 8,
        "created_at": _ago(4),
    }
    values.update(overrides)
    return Task(**values)


def test_compute_metrics_age_and_cycle() -> None:
    task = _task(1, started_at=_ago(5), completed_at=_ago(2))
    metrics = compute_metrics(NOW, task)
    assert metrics.age_hours == 4.0
    assert metrics.cycle_hours == 3.0
    assert metrics.risk == "unscheduled"
    assert metrics.score == 20.8


def test_compute_metrics_without_cycle() -> None:
    metrics = compute_metrics(NOW, _task(1, started_at=_ago(5)))
    assert metrics.cycle_hours is None


def test_compute_metrics_clamps_negative_durations() -> None:
    task = _task(
        1,
        created_at=NOW + dt.timedelta(hours=2),
        started_at=NOW + dt.timedelta(hours=2),
        completed_at=NOW + dt.timedelta(hours=1),
    )
    metrics = compute_metrics(NOW, task)
    assert metrics.age_hours == 0.0
    assert metrics.cycle_hours == 0.0


def test_compute_metrics_rounds_to_two_decimals() -> None:
    task = _task(1, created_at=NOW - dt.timedelta(minutes=20))
    assert compute_metrics(NOW, task).age_hours == 0.33


def test_compute_metrics_without_created_at() -> None:
    assert compute_metrics(NOW, _task(1, created_at=None)).age_hours == 0.0


def test_compute_insights_empty_collection() -> None:
    insights = compute_insights(NOW, [])
    assert insights == Insights()
    assert insights.total == 0
    assert insights.average_age_hours == 0.0
    assert insights.average_cycle_hours == 0.0
    assert insights.focus_index == 0.0


def test_compute_insights_aggregates() -> None:
    tasks = [
        _task(1, priority="low", effort_hours=2, created_at=_ago(2), due_date=_ago(1)),
        _task(2, priority="high", effort_hours=5, created_at=_ago(4), due_date=NOW + dt.timedelta(hours=3)),
        _task(3, status="blocked", priority="high", effort_hours=3, created_at=_ago(6)),
        _task(
            4,
            status="done",
            priority="critical",
            effort_hours=10,
            created_at=_ago(8),
            started_at=_ago(6),
            completed_at=_ago(2),
        ),
    ]
    insights = compute_insights(NOW, tasks)

    assert insights.total == 4
    assert insights.by_status == {"todo": 2, "blocked": 1, "done": 1}
    assert insights.by_priority == {"low": 1, "high": 2, "critical": 1}
    assert insights.overdue == 1
    assert insights.at_risk == 1
    assert insights.blocked == 1
    assert insights.done == 1
    assert insights.average_age_hours == 5.0
    assert insights.average_cycle_hours == 4.0
    assert insights.workload_hours == 10
    assert insights.focus_index == 0.25


def test_compute_insights_focus_index_rounding() -> None:
    tasks = [
        _task(1, status="done"),
        _task(2),
        _task(3),
    ]
    insights = compute_insights(NOW, tasks)
    assert insights.focus_index == 0.33
    assert insights.workload_hours == 16
