"""Annotation tools: pre-annotation uploads and exports (5 tools)."""

from __future__ import annotations

from labellerr_mcp import config
from labellerr_mcp.mcp_server._core import ToolContext


def annotation_upload_preannotations(ctx: ToolContext, args: dict) -> dict:
    return ctx.client.upload_preannotations(
        args["project_id"], args["annotation_format"], args["annotation_file"]
    )


def annotation_upload_preannotations_async(ctx: ToolContext, args: dict) -> dict:
    return ctx.client.upload_preannotations_async(
        args["project_id"], args["annotation_format"], args["annotation_file"]
    )


def annotation_export(ctx: ToolContext, args: dict) -> dict:
    return ctx.client.create_export(
        args["project_id"],
        args["export_name"],
        args["export_format"],
        args["statuses"],
        export_description=args.get("export_description"),
    )


def annotation_check_export_status(ctx: ToolContext, args: dict) -> dict:
    return ctx.client.check_export_status(args["project_id"], args["export_ids"])


def annotation_download_export(ctx: ToolContext, args: dict) -> dict:
    return ctx.client.download_export(args["project_id"], args["export_id"])


_FORMAT = {"type": "string", "enum": list(config.VALID_ANNOTATION_FORMATS)}

_PREANNOTATION_SCHEMA = {
    "type": "object",
    "properties": {
        "project_id": {"type": "string"},
        "annotation_format": _FORMAT,
        "annotation_file": {"type": "string", "description": "Local path of the annotation file"},
    },
    "required": ["project_id", "annotation_format", "annotation_file"],
}


def register(catalog):
    """Register all annotation tools with the tool catalog."""
    catalog.add(
        "annotation_upload_preannotations",
        annotation_upload_preannotations,
        "Upload pre-annotations for a project and start processing them.",
        _PREANNOTATION_SCHEMA,
    )
    catalog.add(
        "annotation_upload_preannotations_async",
        annotation_upload_preannotations_async,
        "Upload pre-annotations and return immediately with the job id.",
        _PREANNOTATION_SCHEMA,
    )
    catalog.add(
        "annotation_export",
        annotation_export,
        "Create an export of a project's annotations.",
        {
            "type": "object",
            "properties": {
                "project_id": {"type": "string"},
                "export_name": {"type": "string"},
                "export_description": {"type": "string"},
                "export_format": _FORMAT,
                "statuses": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "File statuses to include, e.g. review or client_review",
                },
            },
            "required": ["project_id", "export_name", "export_format", "statuses"],
        },
    )
    catalog.add(
        "annotation_check_export_status",
        annotation_check_export_status,
        "Check the status of one or more exports.",
        {
            "type": "object",
            "properties": {
                "project_id": {"type": "string"},
                "export_ids": {"type": "array", "items": {"type": "string"}},
            },
            "required": ["project_id", "export_ids"],
        },
    )
    catalog.add(
        "annotation_download_export",
        annotation_download_export,
        "Get a download URL for a finished export.",
        {
            "type": "object",
            "properties": {
                "project_id": {"type": "string"},
                "export_id": {"type": "string"},
            },
            "required": ["project_id", "export_id"],
        },
    )
