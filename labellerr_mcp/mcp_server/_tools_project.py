"""Project tools: create, list, inspect, rotation settings (4 tools)."""

from __future__ import annotations

from labellerr_mcp import config
from labellerr_mcp._utils import utc_now_iso
from labellerr_mcp.mcp_server._core import ToolContext


def project_create(ctx: ToolContext, args: dict) -> dict:
    """Create a project and remember it in the project cache."""
    result = ctx.client.create_project(args)
    project_id = result.get("project_id")
    if project_id:
        ctx.state.put_project(
            project_id,
            {
                "id": project_id,
                "name": args.get("project_name"),
                "data_type": args.get("data_type"),
                "created_at": utc_now_iso(),
                **args,
            },
        )
    return result


def project_list(ctx: ToolContext, args: dict) -> dict:
    result = ctx.client.get_all_projects()
    ctx.state.refresh_projects(result.get("projects"))
    return result


def project_get(ctx: ToolContext, args: dict) -> dict:
    return ctx.client.get_project_details(args["project_id"])


def project_update_rotation(ctx: ToolContext, args: dict) -> dict:
    return ctx.client.update_rotation_config(args["project_id"], args["rotation_config"])


_ROTATION_SCHEMA = {
    "type": "object",
    "description": "How many annotators/reviewers see each file.",
    "properties": {
        "annotation_rotation_count": {"type": "integer", "minimum": 1},
        "review_rotation_count": {"type": "integer", "minimum": 1},
        "client_review_rotation_count": {"type": "integer", "minimum": 1},
    },
}


def register(catalog):
    """Register all project tools with the tool catalog."""
    catalog.add(
        "project_create",
        project_create,
        "Create a new annotation project. Optionally uploads local files or a "
        "folder first and links the resulting connection.",
        {
            "type": "object",
            "properties": {
                "project_name": {"type": "string", "description": "Display name of the project"},
                "data_type": {"type": "string", "enum": list(config.VALID_DATA_TYPES)},
                "created_by": {"type": "string", "description": "Email of the project owner"},
                "dataset_id": {"type": "string", "description": "Existing dataset to attach"},
                "annotation_guide": {
                    "type": "array",
                    "description": "Annotation questions (question, option_type, options)",
                    "items": {"type": "object"},
                },
                "rotation_config": _ROTATION_SCHEMA,
                "autolabel": {"type": "boolean", "default": False},
                "files_to_upload": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "Local file paths to upload",
                },
                "folder_to_upload": {"type": "string", "description": "Local folder to upload"},
            },
            "required": ["project_name", "data_type", "created_by"],
        },
    )
    catalog.add(
        "project_list",
        project_list,
        "List all projects for the configured client.",
        {"type": "object", "properties": {}},
    )
    catalog.add(
        "project_get",
        project_get,
        "Get detailed information about one project.",
        {
            "type": "object",
            "properties": {"project_id": {"type": "string"}},
            "required": ["project_id"],
        },
    )
    catalog.add(
        "project_update_rotation",
        project_update_rotation,
        "Update the annotation/review rotation settings of a project.",
        {
            "type": "object",
            "properties": {
                "project_id": {"type": "string"},
                "rotation_config": _ROTATION_SCHEMA,
            },
            "required": ["project_id", "rotation_config"],
        },
    )
