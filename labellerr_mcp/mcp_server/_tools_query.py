"""Query tools: statistics, dataset info, history, search (4 tools)."""

from __future__ import annotations

from labellerr_mcp import config, queries
from labellerr_mcp.exceptions import InvalidArguments
from labellerr_mcp.mcp_server._core import ToolContext


def query_project_statistics(ctx: ToolContext, args: dict) -> dict:
    return queries.project_statistics(ctx.client, args["project_id"])


def query_dataset_info(ctx: ToolContext, args: dict) -> dict:
    return ctx.client.get_dataset(args["dataset_id"])


def query_operation_history(ctx: ToolContext, args: dict) -> dict:
    limit = args.get("limit", config.DEFAULT_HISTORY_LIMIT)
    if isinstance(limit, bool) or not isinstance(limit, int):
        raise InvalidArguments(f"limit must be an integer, got: {limit!r}")
    return queries.operation_history(ctx.state, limit=limit, status=args.get("status"))


def query_search_projects(ctx: ToolContext, args: dict) -> dict:
    return queries.search_projects(ctx.client, ctx.state, args["query"])


def register(catalog):
    """Register all query tools with the tool catalog."""
    catalog.add(
        "query_project_statistics",
        query_project_statistics,
        "Get file counts and completion percentage for a project (fresh from the API).",
        {
            "type": "object",
            "properties": {"project_id": {"type": "string"}},
            "required": ["project_id"],
        },
    )
    catalog.add(
        "query_dataset_info",
        query_dataset_info,
        "Get detailed information about a dataset.",
        {
            "type": "object",
            "properties": {"dataset_id": {"type": "string"}},
            "required": ["dataset_id"],
        },
    )
    catalog.add(
        "query_operation_history",
        query_operation_history,
        "Show recent operations, newest first.",
        {
            "type": "object",
            "properties": {
                "limit": {"type": "integer", "minimum": 1, "default": config.DEFAULT_HISTORY_LIMIT},
                "status": {"type": "string", "enum": list(config.VALID_OPERATION_STATUSES)},
            },
        },
    )
    catalog.add(
        "query_search_projects",
        query_search_projects,
        "Search projects by name or data type (case-insensitive substring).",
        {
            "type": "object",
            "properties": {"query": {"type": "string"}},
            "required": ["query"],
        },
    )
