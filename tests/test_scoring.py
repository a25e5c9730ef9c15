from __future__ import annotations

import datetime as dt

import pytest

from task_pulse.models import VALID_PRIORITIES, VALID_STATUSES, Task
from task_pulse.scoring import compute_risk, compute_score, round_half_up

NOW = dt.datetime(2026, 2, 6, 12, 0, tzinfo=dt.timezone.utc)


def _task(**overrides) -> Task:
    values = {
        "id": 1,
        "title": "Task",
        "status": "todo",
        "priority": "medium",
        "effort_hours": 8,
        "created_at": NOW - dt.timedelta(hours=4),
    }
    values.update(overrides)
    return Task(**values)


def _hours(value: float) -> dt.datetime:
    return NOW + dt.timedelta(hours=value)


def test_risk_follows_due_date_for_open_tasks() -> None:
    assert compute_risk(NOW, _task()) == "unscheduled"
    assert compute_risk(NOW, _task(due_date=_hours(-2))) == "overdue"
    assert compute_risk(NOW, _task(due_date=_hours(24))) == "at_risk"
    assert compute_risk(NOW, _task(due_date=_hours(48))) == "at_risk"
    assert compute_risk(NOW, _task(due_date=_hours(48.5))) == "on_track"
    assert compute_risk(NOW, _task(due_date=_hours(7 * 24))) == "on_track"


def test_risk_due_exactly_now_is_at_risk() -> None:
    assert compute_risk(NOW, _task(due_date=NOW)) == "at_risk"


@pytest.mark.parametrize("offset", [None, -48, -1, 0, 1, 47, 72, 500])
def test_status_risk_takes_precedence_over_due_date(offset) -> None:
    due = None if offset is None else _hours(offset)
    assert compute_risk(NOW, _task(status="done", due_date=due)) == "completed"
    assert compute_risk(NOW, _task(status="blocked", due_date=due)) == "blocked"


def test_score_for_high_priority_due_soon() -> None:
    task = _task(priority="high", due_date=_hours(2), effort_hours=5)
    assert compute_score(NOW, task) == 40.5
    assert compute_risk(NOW, task) == "at_risk"


def test_score_for_overdue_medium_task() -> None:
    task = _task(due_date=_hours(-2))
    assert compute_risk(NOW, task) == "overdue"
    # 20 base + 20 overdue + 0.8 effort
    assert compute_score(NOW, task) == 40.8


def test_score_due_bands() -> None:
    base = {"priority": "low", "effort_hours": 0}
    assert compute_score(NOW, _task(**base)) == 10.0
    assert compute_score(NOW, _task(due_date=NOW, **base)) == 30.0
    assert compute_score(NOW, _task(due_date=_hours(48), **base)) == 20.0
    assert compute_score(NOW, _task(due_date=_hours(72), **base)) == 15.0
    assert compute_score(NOW, _task(due_date=_hours(96), **base)) == 15.0
    assert compute_score(NOW, _task(due_date=_hours(97), **base)) == 10.0


def test_score_status_adjustments_stack_with_due_bonus() -> None:
    blocked = _task(status="blocked", due_date=_hours(-1), effort_hours=0)
    done = _task(status="done", due_date=_hours(-1), effort_hours=0)
    assert compute_score(NOW, blocked) == 20 + 20 + 7
    assert compute_score(NOW, done) == 20 + 20 - 5


def test_score_unknown_priority_weighs_zero() -> None:
    assert compute_score(NOW, _task(priority="mystery", effort_hours=3)) == 0.3


@pytest.mark.parametrize("status", VALID_STATUSES)
@pytest.mark.parametrize("offset", [None, -5, 0, 10, 60, 90, 200])
def test_score_is_monotonic_in_priority(status, offset) -> None:
    due = None if offset is None else _hours(offset)
    scores = [
        compute_score(NOW, _task(priority=priority, status=status, due_date=due))
        for priority in VALID_PRIORITIES
    ]
    assert scores == sorted(scores)


def test_round_half_up() -> None:
    assert round_half_up(0.25, 1) == 0.3
    assert round_half_up(2.675, 2) == 2.68
    assert round_half_up(1.005, 2) == 1.01
    assert round_half_up(40.44, 1) == 40.4
