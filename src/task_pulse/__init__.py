"""Task scoring, risk classification, status transitions and ranking."""

from __future__ import annotations

from .metrics import compute_insights, compute_metrics
from .normalize import normalize_priority, normalize_sort, normalize_status, normalize_tags
from .scoring import compute_risk, compute_score
from .sorting import sort_tasks
from .transitions import apply_status_transition, validate_transition

__all__ = [
    "apply_status_transition",
    "compute_insights",
    "compute_metrics",
    "compute_risk",
    "compute_score",
    "normalize_priority",
    "normalize_sort",
    "normalize_status",
    "normalize_tags",
    "sort_tasks",
    "validate_transition",
]
