"""Renderers for list, detail and insights command output."""

from __future__ import annotations

import json
from typing import Iterable

from .models import VALID_PRIORITIES, VALID_STATUSES, Insights, Task, TaskMetrics

STATUS_LABELS = {
    "todo": "TODO",
    "in_progress": "IN PROGRESS",
    "blocked": "BLOCKED",
    "done": "DONE",
}

TaskRow = tuple[Task, TaskMetrics]


def _column_name(column: dict[str, int | str]) -> str:
    return str(column["name"])


def _column_width(column: dict[str, int | str]) -> int:
    return int(column["width"])


def _priority_style(priority: str) -> str:
    return {
        "critical": "bold red",
        "high": "bold yellow",
        "medium": "cyan",
        "low": "dim",
    }.get(priority, "white")


def _status_style(status: str) -> str:
    return {
        "todo": "magenta",
        "in_progress": "cyan",
        "blocked": "yellow",
        "done": "green",
    }.get(status, "white")


def _risk_style(risk: str) -> str:
    return {
        "overdue": "bold red",
        "at_risk": "yellow",
        "blocked": "yellow",
        "on_track": "green",
        "completed": "dim green",
    }.get(risk, "dim")


def _date_label(task: Task) -> str:
    if task.due_date is None:
        return "-"
    return task.due_date.date().isoformat()


def _task_list_row(task: Task, metrics: TaskMetrics) -> dict[str, str]:
    return {
        "id": str(task.id),
        "title": task.title,
        "status": task.status,
        "priority": task.priority,
        "owner": task.owner,
        "effort": f"{task.effort_hours}h",
        "due": _date_label(task),
        "risk": metrics.risk,
        "score": f"{metrics.score:.1f}",
        "age": f"{metrics.age_hours:.1f}h",
    }


def _truncate(value: str, width: int) -> str:
    if width <= 0:
        return ""
    if len(value) <= width:
        return value
    if width == 1:
        return "…"
    return f"{value[: width - 1]}…"


def render_task_list_plain(rows: Iterable[TaskRow], columns: list[dict[str, int | str]]) -> str:
    data = [_task_list_row(task, metrics) for task, metrics in rows]
    if not data:
        return "No tasks found."

    headers = [_column_name(column) for column in columns]
    widths = {name: _column_width(column) for name, column in zip(headers, columns)}

    lines = []
    lines.append("  ".join(_truncate(name, widths[name]).ljust(widths[name]) for name in headers))
    lines.append("  ".join("-" * widths[name] for name in headers))
    for row in data:
        lines.append(
            "  ".join(_truncate(row[name], widths[name]).ljust(widths[name]) for name in headers)
        )
    return "\n".join(lines)


def render_task_list_rich(rows: Iterable[TaskRow], columns: list[dict[str, int | str]]):
    from rich import box
    from rich.table import Table
    from rich.text import Text

    data = list(rows)
    if not data:
        return "No tasks found."

    table = Table(box=box.SIMPLE_HEAVY, show_header=True, header_style="bold white", pad_edge=False)
    for column in columns:
        name = _column_name(column)
        width = _column_width(column)
        table.add_column(
            name,
            style="bold" if name == "title" else "",
            justify="right" if name in {"id", "score", "age"} else "left",
            min_width=width,
            max_width=width,
            overflow="ellipsis",
            no_wrap=True,
        )

    for task, metrics in data:
        row = _task_list_row(task, metrics)
        rendered: list[str | Text] = []
        for column in columns:
            name = _column_name(column)
            value = row[name]
            if name == "status":
                rendered.append(Text(value, style=_status_style(value)))
            elif name == "priority":
                rendered.append(Text(value, style=_priority_style(value)))
            elif name == "risk":
                rendered.append(Text(value, style=_risk_style(value)))
            else:
                rendered.append(value)
        table.add_row(*rendered)
    return table


def _task_payload(task: Task, metrics: TaskMetrics) -> dict:
    payload = task.to_dict()
    payload.update(metrics.to_dict())
    return payload


def render_task_list_json(rows: Iterable[TaskRow]) -> str:
    return json.dumps([_task_payload(task, metrics) for task, metrics in rows], indent=2)


def render_task_detail_json(task: Task, metrics: TaskMetrics) -> str:
    return json.dumps(_task_payload(task, metrics), indent=2)


def _detail_pairs(task: Task, metrics: TaskMetrics) -> list[tuple[str, str]]:
    def stamp(value) -> str:
        return value.isoformat() if value is not None else "-"

    cycle = "-" if metrics.cycle_hours is None else f"{metrics.cycle_hours:.2f}h"
    return [
        ("id", str(task.id)),
        ("status", task.status),
        ("priority", task.priority),
        ("owner", task.owner),
        ("effort", f"{task.effort_hours}h"),
        ("tags", ", ".join(task.tags) or "-"),
        ("due", stamp(task.due_date)),
        ("started", stamp(task.started_at)),
        ("completed", stamp(task.completed_at)),
        ("created", stamp(task.created_at)),
        ("updated", stamp(task.updated_at)),
        ("risk", metrics.risk),
        ("score", f"{metrics.score:.1f}"),
        ("age", f"{metrics.age_hours:.2f}h"),
        ("cycle", cycle),
    ]


def render_task_detail_plain(task: Task, metrics: TaskMetrics) -> str:
    lines = [task.title, "=" * len(task.title)]
    for label, value in _detail_pairs(task, metrics):
        lines.append(f"{label:<10} {value}")
    if task.description:
        lines.append("")
        lines.append(task.description)
    return "\n".join(lines)


def render_task_detail_rich(task: Task, metrics: TaskMetrics):
    from rich.console import Group
    from rich.panel import Panel
    from rich.table import Table
    from rich.text import Text

    grid = Table.grid(padding=(0, 2))
    grid.add_column(style="dim")
    grid.add_column()
    for label, value in _detail_pairs(task, metrics):
        if label == "status":
            grid.add_row(label, Text(value, style=_status_style(value)))
        elif label == "priority":
            grid.add_row(label, Text(value, style=_priority_style(value)))
        elif label == "risk":
            grid.add_row(label, Text(value, style=_risk_style(value)))
        else:
            grid.add_row(label, value)

    parts = [grid]
    if task.description:
        parts.extend([Text(""), Text(task.description)])
    return Panel(Group(*parts), title=Text(task.title, style="bold"), expand=False)


def _insight_counts(insights: Insights) -> list[tuple[str, str]]:
    return [
        ("total", str(insights.total)),
        ("overdue", str(insights.overdue)),
        ("at_risk", str(insights.at_risk)),
        ("blocked", str(insights.blocked)),
        ("done", str(insights.done)),
        ("avg age", f"{insights.average_age_hours:.2f}h"),
        ("avg cycle", f"{insights.average_cycle_hours:.2f}h"),
        ("workload", f"{insights.workload_hours}h"),
        ("focus", f"{insights.focus_index:.2f}"),
    ]


def _breakdown(counts: dict[str, int], order: tuple[str, ...]) -> str:
    known = [f"{key}={counts.get(key, 0)}" for key in order]
    extra = [f"{key}={value}" for key, value in sorted(counts.items()) if key not in order]
    return " ".join(known + extra)


def render_insights_plain(insights: Insights) -> str:
    lines = [f"{label:<10} {value}" for label, value in _insight_counts(insights)]
    lines.append(f"{'status':<10} {_breakdown(insights.by_status, VALID_STATUSES)}")
    lines.append(f"{'priority':<10} {_breakdown(insights.by_priority, VALID_PRIORITIES)}")
    return "\n".join(lines)


def render_insights_rich(insights: Insights):
    from rich import box
    from rich.table import Table

    table = Table(box=box.SIMPLE_HEAVY, show_header=True, header_style="bold white", pad_edge=False)
    table.add_column("metric", style="bold")
    table.add_column("value", justify="right")
    for label, value in _insight_counts(insights):
        table.add_row(label, value)
    for status in VALID_STATUSES:
        table.add_row(
            f"[{_status_style(status)}]{STATUS_LABELS[status]}[/]",
            str(insights.by_status.get(status, 0)),
        )
    for priority in VALID_PRIORITIES:
        table.add_row(
            f"[{_priority_style(priority)}]{priority}[/]",
            str(insights.by_priority.get(priority, 0)),
        )
    return table


def render_insights_json(insights: Insights) -> str:
    return json.dumps(insights.to_dict(), indent=2)
