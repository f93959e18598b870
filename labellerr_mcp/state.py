"""
Session state: project/dataset caches and the operation log.

One SessionState lives as long as the server. The caches are advisory:
entries are overwritten wholesale (last write wins, no merge) and never
evicted. The operation log is append-only and never trimmed.
"""

from __future__ import annotations

import threading
from datetime import datetime, timedelta, timezone
from typing import Any

from labellerr_mcp import config
from labellerr_mcp._utils import _parse_iso_timestamp, utc_now_iso
from labellerr_mcp.types import OperationRecord


def make_record(tool, status, duration_ms=None, args=None, error=None) -> OperationRecord:
    """Build an OperationRecord stamped with the current time."""
    record: OperationRecord = {"timestamp": utc_now_iso(), "tool": tool, "status": status}
    if duration_ms is not None:
        record["duration_ms"] = duration_ms
    if args:
        record["args"] = dict(args)
    if error is not None:
        record["error"] = error
    return record


class SessionState:
    """Process-local caches and operation history for one server."""

    def __init__(self):
        self._lock = threading.Lock()
        self._projects: dict[str, dict[str, Any]] = {}
        self._datasets: dict[str, dict[str, Any]] = {}
        self._operations: list[OperationRecord] = []

    # -------------------------------------------------------------------
    # Caches
    # -------------------------------------------------------------------

    def put_project(self, project_id, record: dict[str, Any]) -> None:
        with self._lock:
            self._projects[str(project_id)] = record

    def put_dataset(self, dataset_id, record: dict[str, Any]) -> None:
        with self._lock:
            self._datasets[str(dataset_id)] = record

    def refresh_projects(self, projects) -> int:
        """Cache every listed project under its ``project_id``.

        Entries without an id are skipped. Returns the number cached.
        """
        cached = 0
        for project in projects or []:
            if isinstance(project, dict) and project.get("project_id"):
                self.put_project(project["project_id"], project)
                cached += 1
        return cached

    def refresh_datasets(self, datasets) -> int:
        """Cache every listed dataset under its ``dataset_id``."""
        cached = 0
        for dataset in datasets or []:
            if isinstance(dataset, dict) and dataset.get("dataset_id"):
                self.put_dataset(dataset["dataset_id"], dataset)
                cached += 1
        return cached

    def get_project(self, project_id):
        with self._lock:
            return self._projects.get(project_id)

    def get_dataset(self, dataset_id):
        with self._lock:
            return self._datasets.get(dataset_id)

    def projects(self) -> dict[str, dict[str, Any]]:
        """Snapshot of the project cache in insertion order."""
        with self._lock:
            return dict(self._projects)

    def datasets(self) -> dict[str, dict[str, Any]]:
        with self._lock:
            return dict(self._datasets)

    # -------------------------------------------------------------------
    # Operation log
    # -------------------------------------------------------------------

    def append_operation(self, record: OperationRecord) -> None:
        with self._lock:
            self._operations.append(record)

    def operations(self) -> list[OperationRecord]:
        """Snapshot of the whole log, oldest first."""
        with self._lock:
            return list(self._operations)

    @property
    def operation_count(self) -> int:
        with self._lock:
            return len(self._operations)

    @property
    def last_operation(self) -> OperationRecord | None:
        with self._lock:
            return self._operations[-1] if self._operations else None

    def query_active(self, window_ms=config.ACTIVE_WINDOW_MS, now=None) -> list[OperationRecord]:
        """Records still in progress or stamped within *window_ms* of *now*."""
        now = now or datetime.now(timezone.utc)
        cutoff = now - timedelta(milliseconds=window_ms)
        active = []
        for record in self.operations():
            if record.get("status") == "in_progress":
                active.append(record)
                continue
            ts = _parse_iso_timestamp(record.get("timestamp"))
            if ts is not None and ts > cutoff:
                active.append(record)
        return active

    def query_history(
        self, limit=config.DEFAULT_HISTORY_LIMIT, status=None
    ) -> list[OperationRecord]:
        """Most recent *limit* records (optionally of one *status*), newest first."""
        history = self.operations()
        if status:
            history = [r for r in history if r.get("status") == status]
        if limit <= 0:
            return []
        return list(reversed(history[-limit:]))
