"""Monitoring tools: job status, project progress, session activity (4 tools).

Monitoring calls are logged without ``duration_ms``.
"""

from __future__ import annotations

from labellerr_mcp import queries
from labellerr_mcp.mcp_server._core import ToolContext


def monitor_job_status(ctx: ToolContext, args: dict) -> dict:
    return ctx.client.get_job_status(args["job_id"])


def monitor_project_progress(ctx: ToolContext, args: dict) -> dict:
    return queries.project_progress(ctx.client, args["project_id"])


def monitor_active_operations(ctx: ToolContext, args: dict) -> dict:
    """Operations in progress or from the last five minutes."""
    return queries.active_operations(ctx.state)


def monitor_system_health(ctx: ToolContext, args: dict) -> dict:
    return queries.system_health(ctx.state, connected=ctx.client is not None)


def register(catalog):
    """Register all monitoring tools with the tool catalog."""
    catalog.add(
        "monitor_job_status",
        monitor_job_status,
        "Get the status of a background job.",
        {
            "type": "object",
            "properties": {"job_id": {"type": "string"}},
            "required": ["job_id"],
        },
    )
    catalog.add(
        "monitor_project_progress",
        monitor_project_progress,
        "Get annotation progress (file counts and completion percentage) of a project.",
        {
            "type": "object",
            "properties": {"project_id": {"type": "string"}},
            "required": ["project_id"],
        },
    )
    catalog.add(
        "monitor_active_operations",
        monitor_active_operations,
        "List operations that are in progress or ran in the last five minutes.",
        {"type": "object", "properties": {}},
    )
    catalog.add(
        "monitor_system_health",
        monitor_system_health,
        "Report connection status and session cache/operation counts.",
        {"type": "object", "properties": {}},
    )
