"""Input validation and canonicalization for task fields."""

from __future__ import annotations

import datetime as dt
from typing import Callable, Iterable

from .models import (
    DEFAULT_EFFORT_HOURS,
    DEFAULT_OWNER,
    DEFAULT_PRIORITY,
    DEFAULT_SORT_KEY,
    DEFAULT_SORT_ORDER,
    DEFAULT_STATUS,
    MAX_EFFORT_HOURS,
    MAX_TAG_LENGTH,
    MAX_TAGS,
    MAX_TITLE_LENGTH,
    VALID_PRIORITIES,
    VALID_SORT_KEYS,
    VALID_SORT_ORDERS,
    VALID_STATUSES,
    InvalidFieldError,
    InvalidPriorityError,
    InvalidStatusError,
    SortOption,
    TagTooLongError,
    TooManyTagsError,
)


def _clean(raw: str | None) -> str:
    return (raw or "").strip().lower()


def normalize_status(raw: str | None) -> str:
    value = _clean(raw)
    if not value:
        return DEFAULT_STATUS
    if value not in VALID_STATUSES:
        raise InvalidStatusError(f"Invalid status: {value}")
    return value


def normalize_priority(raw: str | None) -> str:
    value = _clean(raw)
    if not value:
        return DEFAULT_PRIORITY
    if value not in VALID_PRIORITIES:
        raise InvalidPriorityError(f"Invalid priority: {value}")
    return value


def normalize_tags(tags: Iterable[str] | None) -> list[str]:
    """Lowercase, trim and dedupe tags, keeping first-seen order."""
    if not tags:
        return []
    if isinstance(tags, str):
        tags = [tags]
    result: list[str] = []
    seen: set[str] = set()
    for tag in tags:
        value = _clean(tag)
        if not value:
            continue
        if len(value) > MAX_TAG_LENGTH:
            raise TagTooLongError(f"Tag too long (max {MAX_TAG_LENGTH}): {value}")
        if value not in seen:
            seen.add(value)
            result.append(value)
    if len(result) > MAX_TAGS:
        raise TooManyTagsError(f"Too many tags: {len(result)} (max {MAX_TAGS})")
    return result


def normalize_sort(by: str | None, order: str | None) -> SortOption:
    """Degrade unknown sort parameters to defaults instead of failing."""
    key = _clean(by)
    if key not in VALID_SORT_KEYS:
        key = DEFAULT_SORT_KEY
    direction = _clean(order)
    if direction not in VALID_SORT_ORDERS:
        direction = DEFAULT_SORT_ORDER
    return SortOption(by=key, order=direction)


def normalize_title(raw: str | None) -> str:
    value = (raw or "").strip()
    if not value:
        raise InvalidFieldError("title is required")
    if len(value) > MAX_TITLE_LENGTH:
        raise InvalidFieldError(f"title is too long (max {MAX_TITLE_LENGTH})")
    return value


def normalize_owner(raw: str | None) -> str:
    return (raw or "").strip() or DEFAULT_OWNER


def normalize_effort(value: int | None) -> int:
    if not value:
        return DEFAULT_EFFORT_HOURS
    if value < 0 or value > MAX_EFFORT_HOURS:
        raise InvalidFieldError(f"effort_hours must be between 1 and {MAX_EFFORT_HOURS}")
    return value


def parse_due_date(raw: str | dt.datetime | None) -> dt.datetime | None:
    """Parse an ISO-8601 timestamp; naive values are taken as UTC."""
    if raw is None:
        return None
    if isinstance(raw, dt.datetime):
        parsed = raw
    else:
        value = raw.strip()
        if not value:
            return None
        if value.endswith(("Z", "z")):
            value = value[:-1] + "+00:00"
        try:
            parsed = dt.datetime.fromisoformat(value)
        except ValueError as exc:
            raise InvalidFieldError(f"Invalid date (use ISO-8601 / RFC 3339): {raw}") from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=dt.timezone.utc)
    return parsed


def parse_enum_list(raw: str | None, normalizer: Callable[[str], str]) -> list[str]:
    """Split a comma-separated filter and normalize each entry."""
    if not raw or not raw.strip():
        return []
    values: list[str] = []
    for entry in raw.split(","):
        token = entry.strip()
        if not token:
            continue
        value = normalizer(token)
        if value not in values:
            values.append(value)
    return values
