"""
Derived read-only views: search, statistics, progress and history.

Backend reads here always go to the API; cached entries are never used to
answer a query, although listing still refreshes the cache.
"""

from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from labellerr_mcp import config
from labellerr_mcp.types import (
    ActiveOperations,
    HistoryPage,
    ProjectProgress,
    ProjectSearchResult,
    ProjectStatistics,
    SystemHealth,
)

_STAT_FIELDS = ("total_files", "annotated_files", "reviewed_files", "accepted_files")


def _count(value) -> int:
    """Coerce an optional numeric API field to int, defaulting to 0."""
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


def compute_completion_percentage(total, accepted) -> int:
    """Percentage of *accepted* out of *total*, rounded half up; 0 when total is 0/None."""
    total = _count(total)
    if not total:
        return 0
    ratio = Decimal(100 * _count(accepted)) / Decimal(total)
    return int(ratio.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def _backend_percentage(value):
    """The backend's own percentage, kept as sent; numeric strings are parsed."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return None
    return parsed if math.isfinite(parsed) else None


def search_projects(client, state, query: str) -> ProjectSearchResult:
    """Case-insensitive substring match on project name or data type."""
    listing = client.get_all_projects()
    projects = listing.get("projects") or []
    state.refresh_projects(projects)
    needle = (query or "").lower()
    matches = [
        p
        for p in projects
        if isinstance(p, dict)
        and (
            needle in str(p.get("project_name") or "").lower()
            or needle in str(p.get("data_type") or "").lower()
        )
    ]
    return {"projects": matches}


def project_statistics(client, project_id: str) -> ProjectStatistics:
    """Fresh file counts for a project. Missing fields read as zero."""
    project = client.get_project_details(project_id).get("project") or {}
    stats: dict[str, Any] = {"project_id": project_id}
    for field in _STAT_FIELDS:
        stats[field] = _count(project.get(field))
    percentage = _backend_percentage(project.get("completion_percentage"))
    if percentage is None:
        percentage = compute_completion_percentage(stats["total_files"], stats["accepted_files"])
    stats["completion_percentage"] = percentage
    return stats  # type: ignore[return-value]


def project_progress(client, project_id: str) -> ProjectProgress:
    project = client.get_project_details(project_id).get("project") or {}
    total = _count(project.get("total_files"))
    accepted = _count(project.get("accepted_files"))
    return {
        "success": True,
        "project_id": project_id,
        "progress": {
            "total_files": total,
            "annotated": _count(project.get("annotated_files")),
            "reviewed": _count(project.get("reviewed_files")),
            "accepted": accepted,
            "completion_percentage": compute_completion_percentage(total, accepted),
        },
    }


def operation_history(state, limit=config.DEFAULT_HISTORY_LIMIT, status=None) -> HistoryPage:
    """Newest-first page of the log; ``total`` counts all records matching *status*."""
    matching = [r for r in state.operations() if not status or r.get("status") == status]
    return {
        "total": len(matching),
        "operations": state.query_history(limit=limit, status=status),
    }


def active_operations(state) -> ActiveOperations:
    return {
        "active_operations": state.query_active(config.ACTIVE_WINDOW_MS),
        "total_operations": state.operation_count,
    }


def system_health(state, connected: bool) -> SystemHealth:
    return {
        "status": "healthy",
        "connected": connected,
        "active_projects": len(state.projects()),
        "active_datasets": len(state.datasets()),
        "operations_performed": state.operation_count,
        "last_operation": state.last_operation,
    }
