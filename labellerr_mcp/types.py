"""Typed shapes for session state and derived query results.

These TypedDicts document the shape of plain dicts passed around the
server. They are optional — runtime behavior is unchanged (plain dicts).
"""

from __future__ import annotations

from typing import Any, Literal, TypedDict

OperationStatus = Literal["success", "failed", "in_progress"]


class OperationRecord(TypedDict, total=False):
    """One entry of the operation log; one per tool call attempt."""

    timestamp: str
    tool: str
    duration_ms: int
    status: OperationStatus
    args: dict[str, Any]
    error: str


class HistoryPage(TypedDict):
    """Return type of queries.operation_history()."""

    total: int
    operations: list[OperationRecord]


class ActiveOperations(TypedDict):
    active_operations: list[OperationRecord]
    total_operations: int


class SystemHealth(TypedDict):
    status: str
    connected: bool
    active_projects: int
    active_datasets: int
    operations_performed: int
    last_operation: OperationRecord | None


class ProgressCounts(TypedDict):
    total_files: int
    annotated: int
    reviewed: int
    accepted: int
    completion_percentage: int


class ProjectProgress(TypedDict):
    """Return type of queries.project_progress()."""

    success: bool
    project_id: str
    progress: ProgressCounts


class ProjectStatistics(TypedDict):
    """Return type of queries.project_statistics()."""

    project_id: str
    total_files: int
    annotated_files: int
    reviewed_files: int
    accepted_files: int
    completion_percentage: float


class ProjectSearchResult(TypedDict):
    projects: list[dict[str, Any]]
