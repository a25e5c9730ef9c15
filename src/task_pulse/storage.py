"""File-backed task store, frontmatter IO and config for task-pulse."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
import datetime as dt
import logging
import os
from pathlib import Path
from typing import Any, Callable

import yaml

from .clock import Clock, SystemClock
from .models import (
    DEFAULT_EFFORT_HOURS,
    TIMESTAMP_FIELDS,
    InvalidFieldError,
    SortOption,
    Task,
    TaskNotFoundError,
    TaskValidationError,
)
from .normalize import (
    normalize_effort,
    normalize_owner,
    normalize_priority,
    normalize_sort,
    normalize_status,
    normalize_tags,
    normalize_title,
    parse_due_date,
)

logger = logging.getLogger(__name__)

ROOT_DIR_NAME = ".task-pulse"
ROOT_ENV_VAR = "TASK_PULSE_ROOT"
ITEMS_DIR = "items"
TASK_META_KEYS = [f.name for f in fields(Task) if f.name != "description"]
REQUIRED_META_KEYS = ("id", "title", "status", "priority")

LIST_TABLE_COLUMN_NAMES = (
    "id",
    "title",
    "status",
    "priority",
    "owner",
    "effort",
    "due",
    "risk",
    "score",
    "age",
)
DEFAULT_LIST_TABLE_COLUMNS = [
    {"name": "id", "width": 5},
    {"name": "title", "width": 32},
    {"name": "status", "width": 11},
    {"name": "priority", "width": 8},
    {"name": "risk", "width": 11},
    {"name": "score", "width": 6},
    {"name": "due", "width": 10},
]


def discover_roots(start: Path) -> list[Path]:
    start = start.resolve()
    roots: list[Path] = []
    for candidate in [start, *start.parents]:
        root = candidate / ROOT_DIR_NAME
        if root.is_dir():
            roots.append(root)
    return roots


def choose_root(start: Path) -> tuple[Path | None, bool]:
    env_root = os.environ.get(ROOT_ENV_VAR, "").strip()
    if env_root:
        return Path(env_root).expanduser().resolve(), False
    roots = discover_roots(start)
    if not roots:
        return None, False
    return roots[0], len(roots) > 1


def default_init_root(start: Path) -> Path:
    return start.resolve() / ROOT_DIR_NAME


def ensure_layout(root: Path) -> None:
    (root / ITEMS_DIR).mkdir(parents=True, exist_ok=True)


def config_path(root: Path) -> Path:
    return root / "config.yaml"


def default_config(
    sort: SortOption | None = None,
    list_columns: list[dict[str, int | str]] | None = None,
) -> dict[str, Any]:
    sort = sort or SortOption()
    columns = list_columns if list_columns is not None else DEFAULT_LIST_TABLE_COLUMNS
    return {
        "settings": {
            "default_sort": {"by": sort.by, "order": sort.order},
            "list_table": {"columns": [dict(column) for column in columns]},
        }
    }


def write_default_config_if_missing(root: Path, **kwargs: Any) -> bool:
    path = config_path(root)
    if path.exists():
        return False
    payload = yaml.safe_dump(default_config(**kwargs), sort_keys=False, default_flow_style=False)
    path.write_text(payload, encoding="utf-8")
    logger.info("Wrote default config to %s", path)
    return True


def read_config(root: Path, warn: Callable[[str], None] | None = None) -> dict[str, Any]:
    path = config_path(root)
    if not path.exists():
        return {}
    try:
        payload = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError:
        if warn is not None:
            warn(f"Unable to parse config at {path}. Falling back to defaults.")
        return {}
    if not isinstance(payload, dict):
        if warn is not None:
            warn(f"Invalid config format at {path}. Falling back to defaults.")
        return {}
    return payload


def _settings(root: Path, warn: Callable[[str], None] | None) -> dict[str, Any]:
    data = read_config(root, warn=warn)
    for key in data.keys():
        if key != "settings" and warn is not None:
            warn(f"Unsupported config key '{key}' in {config_path(root)}. Ignoring.")
    settings = data.get("settings", {})
    if not isinstance(settings, dict):
        if warn is not None:
            warn(f"Invalid settings section in {config_path(root)}. Using defaults.")
        return {}
    return settings


def resolve_default_sort(root: Path, warn: Callable[[str], None] | None = None) -> SortOption:
    raw = _settings(root, warn).get("default_sort")
    if raw is None:
        return SortOption()
    if not isinstance(raw, dict):
        if warn is not None:
            warn(f"Invalid settings.default_sort in {config_path(root)}. Using defaults.")
        return SortOption()
    return normalize_sort(str(raw.get("by") or ""), str(raw.get("order") or ""))


def resolve_list_table_columns(
    root: Path,
    warn: Callable[[str], None] | None = None,
) -> list[dict[str, int | str]]:
    defaults = [dict(column) for column in DEFAULT_LIST_TABLE_COLUMNS]
    list_table = _settings(root, warn).get("list_table")
    if list_table is None:
        return defaults
    raw_columns = list_table.get("columns") if isinstance(list_table, dict) else None
    if not isinstance(raw_columns, list):
        if warn is not None:
            warn(f"Invalid settings.list_table.columns in {config_path(root)}. Using defaults.")
        return defaults

    columns: list[dict[str, int | str]] = []
    seen: set[str] = set()
    for entry in raw_columns:
        if not isinstance(entry, dict):
            if warn is not None:
                warn(f"Invalid list column entry {entry!r}. Ignoring.")
            continue
        name = str(entry.get("name", ""))
        width = entry.get("width")
        if name not in LIST_TABLE_COLUMN_NAMES:
            if warn is not None:
                warn(f"Unsupported list column '{name}'. Ignoring.")
            continue
        if not isinstance(width, int) or isinstance(width, bool) or width <= 0:
            if warn is not None:
                warn(f"Invalid width for list column '{name}'. Ignoring.")
            continue
        if name in seen:
            if warn is not None:
                warn(f"Duplicate list column '{name}'. Keeping first.")
            continue
        seen.add(name)
        columns.append({"name": name, "width": width})

    if not columns:
        if warn is not None:
            warn(f"No valid settings.list_table.columns in {config_path(root)}. Using defaults.")
        return defaults
    return columns


def split_frontmatter(text: str) -> tuple[dict[str, Any], str]:
    if not text.startswith("---\n"):
        return {}, text
    marker = "\n---\n"
    end = text.find(marker, 4)
    if end < 0:
        return {}, text
    raw = text[4:end]
    body = text[end + len(marker) :]
    data = yaml.safe_load(raw) or {}
    if not isinstance(data, dict):
        data = {}
    return data, body


def render_frontmatter(data: dict[str, Any], body: str) -> str:
    ordered: dict[str, Any] = {}
    for key in TASK_META_KEYS:
        if key in data:
            ordered[key] = data[key]
    dumped = yaml.safe_dump(ordered, sort_keys=False, default_flow_style=False).strip()
    body = body.strip()
    if not body:
        return f"---\n{dumped}\n---\n"
    return f"---\n{dumped}\n---\n\n{body}\n"


def task_path(root: Path, task_id: int) -> Path:
    return root / ITEMS_DIR / f"{task_id:05d}.md"


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _loaded_timestamp(key: str, raw: Any) -> dt.datetime | None:
    # Unquoted YAML dates load as ``date``; read them as midnight UTC.
    if isinstance(raw, dt.date) and not isinstance(raw, dt.datetime):
        raw = dt.datetime.combine(raw, dt.time())
    if raw is not None and not isinstance(raw, (str, dt.datetime)):
        raise InvalidFieldError(f"{key} must be a timestamp, got {raw!r}")
    return parse_due_date(raw)


def _loaded_tags(raw: Any) -> list[str]:
    if raw is None or isinstance(raw, str):
        return normalize_tags(raw)
    if not isinstance(raw, list) or not all(isinstance(tag, str) for tag in raw):
        raise InvalidFieldError(f"tags must be a list of strings, got {raw!r}")
    return normalize_tags(raw)


def _validate_metadata(data: dict[str, Any]) -> dict[str, Any]:
    values = {key: data[key] for key in TASK_META_KEYS if key in data}
    if not _is_int(values["id"]) or values["id"] <= 0:
        raise InvalidFieldError(f"id must be a positive integer, got {values['id']!r}")
    for key in ("title", "status", "priority", "owner"):
        if values.get(key) is not None and not isinstance(values[key], str):
            raise InvalidFieldError(f"{key} must be a string, got {values[key]!r}")
    values["title"] = normalize_title(values["title"])
    values["status"] = normalize_status(values["status"])
    values["priority"] = normalize_priority(values["priority"])
    values["owner"] = normalize_owner(values.get("owner"))

    effort = values.get("effort_hours", DEFAULT_EFFORT_HOURS)
    if not _is_int(effort):
        raise InvalidFieldError(f"effort_hours must be an integer, got {effort!r}")
    values["effort_hours"] = normalize_effort(effort)

    values["tags"] = _loaded_tags(values.get("tags"))
    for key in TIMESTAMP_FIELDS:
        if key in values:
            values[key] = _loaded_timestamp(key, values[key])
    return values


def parse_task(path: Path) -> Task:
    """Load one task file, rejecting records the rest of the app cannot score."""
    try:
        data, body = split_frontmatter(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise TaskValidationError(f"Unable to parse frontmatter in {path}: {exc}") from exc
    missing = [key for key in REQUIRED_META_KEYS if key not in data]
    if missing:
        raise TaskValidationError(f"Task metadata missing keys {missing} in {path}")
    try:
        values = _validate_metadata(data)
    except TaskValidationError as exc:
        raise TaskValidationError(f"Invalid task file {path}: {exc}") from exc
    values["description"] = body.strip()
    return Task(**values)


def write_task(root: Path, task: Task) -> Path:
    if task.id is None:
        raise ValueError("Cannot write a task without an id")
    path = task_path(root, task.id)
    path.parent.mkdir(parents=True, exist_ok=True)
    data = task.to_dict()
    path.write_text(render_frontmatter(data, task.description), encoding="utf-8")
    return path


@dataclass(slots=True)
class TaskFilter:
    statuses: list[str] = field(default_factory=list)
    priorities: list[str] = field(default_factory=list)
    owner: str = ""
    query: str = ""
    tag: str = ""

    def matches(self, task: Task) -> bool:
        if self.statuses and task.status not in self.statuses:
            return False
        if self.priorities and task.priority not in self.priorities:
            return False
        if self.owner and task.owner != self.owner:
            return False
        if self.query:
            needle = self.query.lower()
            if needle not in task.title.lower() and needle not in task.description.lower():
                return False
        tag = self.tag.strip().lower()
        if tag and tag not in (value.lower() for value in task.tags):
            return False
        return True


class TaskStore:
    """Stores one frontmatter markdown file per task under ``root/items``."""

    def __init__(self, root: Path, clock: Clock | None = None) -> None:
        self.root = root.resolve()
        self.clock = clock or SystemClock()

    def ensure_layout(self) -> None:
        ensure_layout(self.root)

    def _load_all(self) -> list[Task]:
        items_dir = self.root / ITEMS_DIR
        if not items_dir.exists():
            return []
        return [parse_task(path) for path in sorted(items_dir.glob("*.md"))]

    def _next_id(self) -> int:
        ids = [task.id for task in self._load_all() if task.id is not None]
        return max(ids, default=0) + 1

    def list(self, task_filter: TaskFilter | None = None) -> list[Task]:
        tasks = self._load_all()
        if task_filter is not None:
            tasks = [task for task in tasks if task_filter.matches(task)]
        logger.debug("Loaded %d tasks from %s", len(tasks), self.root)
        return tasks

    def get(self, task_id: int) -> Task:
        path = task_path(self.root, task_id)
        if not path.exists():
            raise TaskNotFoundError(f"Task not found: {task_id}")
        return parse_task(path)

    def create(self, task: Task) -> Task:
        now = self.clock.now()
        task.id = self._next_id()
        task.created_at = task.created_at or now
        task.updated_at = now
        write_task(self.root, task)
        logger.info("Created task %d (%s)", task.id, task.title)
        return task

    def update(self, task: Task) -> Task:
        if task.id is None or not task_path(self.root, task.id).exists():
            raise TaskNotFoundError(f"Task not found: {task.id}")
        task.updated_at = self.clock.now()
        write_task(self.root, task)
        logger.info("Updated task %d", task.id)
        return task

    def delete(self, task_id: int) -> None:
        path = task_path(self.root, task_id)
        if not path.exists():
            raise TaskNotFoundError(f"Task not found: {task_id}")
        path.unlink()
        logger.info("Deleted task %d", task_id)
