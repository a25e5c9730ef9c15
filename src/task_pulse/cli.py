"""CLI entrypoint for task-pulse."""

from __future__ import annotations

import logging
from pathlib import Path
import sys
from typing import Annotated

import typer

from . import render, storage
from .logging_setup import setup_logging
from .models import TaskError, TaskValidationError
from .normalize import normalize_priority, normalize_sort, normalize_status, parse_enum_list
from .service import KEEP, TaskService
from .storage import TaskFilter, TaskStore

RootOption = Annotated[Path | None, typer.Option("--root", help="Explicit .task-pulse path")]
JsonOption = Annotated[bool, typer.Option("--json", help="Emit JSON")]
StatusFilterOption = Annotated[
    str | None,
    typer.Option("--status", help="Comma-separated statuses"),
]
PriorityFilterOption = Annotated[
    str | None,
    typer.Option("--priority", help="Comma-separated priorities"),
]
OwnerFilterOption = Annotated[str | None, typer.Option("--owner")]
TagFilterOption = Annotated[str | None, typer.Option("--tag")]
SearchOption = Annotated[str | None, typer.Option("--search", "-q", help="Match title or description")]

app = typer.Typer(help="Score, rank and track work items")


def _can_render_rich_output() -> bool:
    return sys.stdout.isatty()


def _print_rich(renderable) -> None:
    from rich.console import Console

    Console().print(renderable)


def _warn_config(message: str) -> None:
    typer.echo(f"Warning: {message}", err=True)


def _echo_root_notice(root: Path, multiple_found: bool) -> None:
    typer.echo(f"Using root: {root}", err=True)
    if multiple_found:
        typer.echo("Warning: multiple .task-pulse roots found; using nearest ancestor.", err=True)


def _resolve_existing_root(root: Path | None) -> Path:
    if root is not None:
        resolved = root.resolve()
        if not resolved.exists():
            raise typer.BadParameter(f"root not found: {resolved}")
        return resolved

    found, multiple = storage.choose_root(Path.cwd())
    if found is None or not found.exists():
        raise TaskValidationError(
            "No .task-pulse root found from current directory upward. Run 'task-pulse init' first."
        )
    _echo_root_notice(found, multiple)
    return found


def _resolve_init_root(root: Path | None) -> Path:
    if root is not None:
        return root.resolve()
    found, multiple = storage.choose_root(Path.cwd())
    if found is not None:
        _echo_root_notice(found, multiple)
        return found
    return storage.default_init_root(Path.cwd())


def _service(root: Path | None = None, *, init: bool = False) -> TaskService:
    resolved = _resolve_init_root(root) if init else _resolve_existing_root(root)
    store = TaskStore(resolved)
    store.ensure_layout()
    return TaskService(store)


def _build_filter(
    status: str | None,
    priority: str | None,
    owner: str | None,
    tag: str | None,
    search: str | None,
) -> TaskFilter:
    return TaskFilter(
        statuses=parse_enum_list(status, normalize_status),
        priorities=parse_enum_list(priority, normalize_priority),
        owner=(owner or "").strip(),
        tag=(tag or "").strip(),
        query=(search or "").strip(),
    )


def _run_and_handle(fn) -> None:
    try:
        fn()
    except TaskError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc


@app.callback()
def root_callback(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log debug output")] = False,
) -> None:
    """Score, rank and track work items."""
    setup_logging(logging.DEBUG if verbose else logging.WARNING)


@app.command("init")
def init_cmd(root: RootOption = None) -> None:
    """Initialize the .task-pulse directory layout."""

    def _inner() -> None:
        svc = _service(root, init=True)
        cfg_path = storage.config_path(svc.store.root)
        typer.echo(f"Initialized root: {svc.store.root}")
        if storage.write_default_config_if_missing(svc.store.root):
            typer.echo(f"Created config: {cfg_path}")
        else:
            typer.echo(f"Using existing config: {cfg_path}")

    _run_and_handle(_inner)


@app.command("create")
def create_cmd(
    title: Annotated[str, typer.Argument(help="Task title")],
    description: Annotated[str, typer.Option("--description", "-d")] = "",
    status: Annotated[str, typer.Option("--status")] = "",
    priority: Annotated[str, typer.Option("--priority")] = "",
    owner: Annotated[str, typer.Option("--owner")] = "",
    effort: Annotated[int, typer.Option("--effort", help="Estimated hours")] = 0,
    tag: Annotated[list[str], typer.Option("--tag", help="Can be repeated")] = [],
    due: Annotated[str | None, typer.Option("--due", help="ISO-8601 due date")] = None,
    root: RootOption = None,
) -> None:
    """Create a task."""

    def _inner() -> None:
        svc = _service(root)
        task = svc.create_task(
            title,
            description=description,
            status=status,
            priority=priority,
            owner=owner,
            effort_hours=effort,
            tags=tag,
            due_date=due,
        )
        typer.echo(f"Created: {task.title} (#{task.id})")

    _run_and_handle(_inner)


@app.command("list")
def list_cmd(
    status: StatusFilterOption = None,
    priority: PriorityFilterOption = None,
    owner: OwnerFilterOption = None,
    tag: TagFilterOption = None,
    search: SearchOption = None,
    sort: Annotated[str | None, typer.Option("--sort", help="score, priority, due_date, created_at, updated_at, title")] = None,
    order: Annotated[str | None, typer.Option("--order", help="asc or desc")] = None,
    as_json: JsonOption = False,
    root: RootOption = None,
) -> None:
    """List tasks ranked by score (or another sort key)."""

    def _inner() -> None:
        svc = _service(root)
        default_sort = storage.resolve_default_sort(svc.store.root, warn=_warn_config)
        option = normalize_sort(sort or default_sort.by, order or default_sort.order)
        rows = svc.list_tasks(_build_filter(status, priority, owner, tag, search), option)
        columns = storage.resolve_list_table_columns(svc.store.root, warn=_warn_config)

        if as_json:
            typer.echo(render.render_task_list_json(rows))
        elif _can_render_rich_output():
            _print_rich(render.render_task_list_rich(rows, columns))
        else:
            typer.echo(render.render_task_list_plain(rows, columns))

    _run_and_handle(_inner)


@app.command("view")
def view_cmd(
    task_id: Annotated[int, typer.Argument(help="Task id")],
    as_json: JsonOption = False,
    root: RootOption = None,
) -> None:
    """Show one task with its metrics."""

    def _inner() -> None:
        svc = _service(root)
        task, metrics = svc.get_task(task_id)
        if as_json:
            typer.echo(render.render_task_detail_json(task, metrics))
        elif _can_render_rich_output():
            _print_rich(render.render_task_detail_rich(task, metrics))
        else:
            typer.echo(render.render_task_detail_plain(task, metrics))

    _run_and_handle(_inner)


@app.command("update")
def update_cmd(
    task_id: Annotated[int, typer.Argument(help="Task id")],
    title: Annotated[str | None, typer.Option("--title")] = None,
    description: Annotated[str | None, typer.Option("--description", "-d")] = None,
    priority: Annotated[str | None, typer.Option("--priority")] = None,
    owner: Annotated[str | None, typer.Option("--owner")] = None,
    effort: Annotated[int | None, typer.Option("--effort")] = None,
    tag: Annotated[list[str], typer.Option("--tag", help="Replaces tags; can be repeated")] = [],
    clear_tags: Annotated[bool, typer.Option("--clear-tags")] = False,
    due: Annotated[str | None, typer.Option("--due")] = None,
    clear_due: Annotated[bool, typer.Option("--clear-due")] = False,
    status: Annotated[str | None, typer.Option("--status")] = None,
    force: Annotated[bool, typer.Option("--force", help="Bypass transition rules")] = False,
    root: RootOption = None,
) -> None:
    """Update task fields, optionally changing status."""

    def _inner() -> None:
        if clear_due and due is not None:
            raise TaskValidationError("--due and --clear-due cannot be combined")
        if clear_tags and tag:
            raise TaskValidationError("--tag and --clear-tags cannot be combined")

        tags = [] if clear_tags else (list(tag) or None)
        if clear_due:
            due_value: object = None
        elif due is not None:
            due_value = due
        else:
            due_value = KEEP

        svc = _service(root)
        task = svc.update_task(
            task_id,
            title=title,
            description=description,
            priority=priority,
            owner=owner,
            effort_hours=effort,
            tags=tags,
            due_date=due_value,
            status=status,
            force=force,
        )
        typer.echo(f"Updated: {task.title} (#{task.id})")

    _run_and_handle(_inner)


@app.command("move")
def move_cmd(
    task_id: Annotated[int, typer.Argument(help="Task id")],
    status: Annotated[str, typer.Argument(help="todo, in_progress, blocked, done")],
    force: Annotated[bool, typer.Option("--force", help="Bypass transition rules")] = False,
    root: RootOption = None,
) -> None:
    """Move a task to another status."""

    def _inner() -> None:
        svc = _service(root)
        task = svc.move_task(task_id, status, force=force)
        typer.echo(f"Moved: {task.title} (#{task.id}) -> {task.status}")

    _run_and_handle(_inner)


@app.command("delete")
def delete_cmd(
    task_id: Annotated[int, typer.Argument(help="Task id")],
    root: RootOption = None,
) -> None:
    """Permanently delete a task."""

    def _inner() -> None:
        svc = _service(root)
        svc.delete_task(task_id)
        typer.echo(f"Deleted: #{task_id}")

    _run_and_handle(_inner)


@app.command("insights")
def insights_cmd(
    status: StatusFilterOption = None,
    priority: PriorityFilterOption = None,
    owner: OwnerFilterOption = None,
    tag: TagFilterOption = None,
    search: SearchOption = None,
    as_json: JsonOption = False,
    root: RootOption = None,
) -> None:
    """Show workload, risk and throughput insights."""

    def _inner() -> None:
        svc = _service(root)
        insights = svc.insights(_build_filter(status, priority, owner, tag, search))
        if as_json:
            typer.echo(render.render_insights_json(insights))
        elif _can_render_rich_output():
            _print_rich(render.render_insights_rich(insights))
        else:
            typer.echo(render.render_insights_plain(insights))

    _run_and_handle(_inner)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
