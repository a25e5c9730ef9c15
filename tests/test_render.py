from __future__ import annotations

import datetime as dt
import json

from task_pulse import render
from task_pulse.metrics import compute_insights, compute_metrics
from task_pulse.models import Task

NOW = dt.datetime(2026, 2, 6, 12, 0, tzinfo=dt.timezone.utc)


def _task(task_id: int, title: str, status: str = "todo", priority: str = "medium", **extra) -> Task:
    return Task(
        id=task_id,
        title=title,
        status=status,
        priority=priority,
        created_at=NOW - dt.timedelta(hours=6),
        updated_at=NOW,
        **extra,
    )


def _rows(*tasks: Task):
    return [(task, compute_metrics(NOW, task)) for task in tasks]


def _columns(*items: tuple[str, int]) -> list[dict[str, int | str]]:
    return [{"name": name, "width": width} for name, width in items]


def test_render_task_list_plain_shape_stable() -> None:
    rows = _rows(
        _task(1, "alpha", due_date=NOW - dt.timedelta(hours=1)),
        _task(2, "beta", status="blocked", priority="high"),
    )
    columns = _columns(("id", 4), ("title", 12), ("risk", 11), ("score", 6), ("due", 10))

    output = render.render_task_list_plain(rows, columns)
    lines = output.splitlines()
    assert lines[0].startswith("id")
    assert "owner" not in lines[0]
    assert "overdue" in lines[2]
    assert "2026-02-06" in lines[2]
    assert "blocked" in lines[3]
    assert "37.1" in lines[3]
    assert len(lines) == 4


def test_render_task_list_plain_applies_truncation() -> None:
    rows = _rows(_task(1, "a-very-long-task-title"))
    output = render.render_task_list_plain(rows, _columns(("title", 8), ("due", 10)))
    assert "a-very-…" in output
    assert "-" in output.splitlines()[2]


def test_render_task_list_plain_empty() -> None:
    assert render.render_task_list_plain([], _columns(("title", 8))) == "No tasks found."


def test_render_task_list_json_includes_metrics() -> None:
    rows = _rows(_task(1, "alpha", tags=["ops"]))
    payload = json.loads(render.render_task_list_json(rows))
    assert payload[0]["title"] == "alpha"
    assert payload[0]["risk"] == "unscheduled"
    assert payload[0]["score"] == 20.1
    assert payload[0]["age_hours"] == 6.0
    assert payload[0]["cycle_hours"] is None
    assert payload[0]["created_at"] == "2026-02-06T06:00:00+00:00"
    assert payload[0]["tags"] == ["ops"]


def test_render_task_detail_plain() -> None:
    task = _task(
        3,
        "Finish",
        status="done",
        description="All wrapped up",
        started_at=NOW - dt.timedelta(hours=3),
        completed_at=NOW - dt.timedelta(hours=1),
    )
    output = render.render_task_detail_plain(task, compute_metrics(NOW, task))
    assert output.splitlines()[0] == "Finish"
    assert "completed" in output
    assert "cycle      2.00h" in output
    assert output.rstrip().endswith("All wrapped up")


def test_render_rich_outputs_build() -> None:
    from rich.console import Console

    task = _task(1, "alpha", status="in_progress")
    rows = _rows(task)
    console = Console(record=True, width=120)
    console.print(render.render_task_list_rich(rows, _columns(("id", 4), ("title", 12), ("status", 12))))
    console.print(render.render_task_detail_rich(task, rows[0][1]))
    console.print(render.render_insights_rich(compute_insights(NOW, [task])))
    text = console.export_text()
    assert "alpha" in text
    assert "in_progress" in text
    assert "focus" in text


def test_render_insights_plain_and_json() -> None:
    tasks = [_task(1, "a"), _task(2, "b", status="done"), _task(3, "c", priority="odd")]
    insights = compute_insights(NOW, tasks)

    plain = render.render_insights_plain(insights)
    assert "total      3" in plain
    assert "status     todo=2 in_progress=0 blocked=0 done=1" in plain
    assert "priority   low=0 medium=2 high=0 critical=0 odd=1" in plain

    payload = json.loads(render.render_insights_json(insights))
    assert payload["total"] == 3
    assert payload["focus_index"] == 0.33
    assert payload["by_status"] == {"todo": 2, "done": 1}
