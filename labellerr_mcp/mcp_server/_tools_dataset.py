"""Dataset tools: create, upload, list, inspect (5 tools)."""

from __future__ import annotations

from labellerr_mcp import config
from labellerr_mcp._utils import utc_now_iso
from labellerr_mcp.mcp_server._core import ToolContext


def dataset_create(ctx: ToolContext, args: dict) -> dict:
    """Create a dataset and remember it in the dataset cache."""
    result = ctx.client.create_dataset(args)
    dataset_id = result.get("dataset_id")
    if dataset_id:
        ctx.state.put_dataset(
            dataset_id,
            {
                "id": dataset_id,
                "name": args.get("dataset_name"),
                "data_type": args.get("data_type"),
                "created_at": utc_now_iso(),
            },
        )
    return result


def dataset_upload_files(ctx: ToolContext, args: dict) -> dict:
    return ctx.client.upload_files(args["files"], args.get("data_type"))


def dataset_upload_folder(ctx: ToolContext, args: dict) -> dict:
    return ctx.client.upload_folder(args["folder_path"], args.get("data_type"))


def dataset_list(ctx: ToolContext, args: dict) -> dict:
    """List linked and unlinked datasets; every returned dataset is cached."""
    result = ctx.client.get_all_datasets(args.get("data_type") or "image")
    ctx.state.refresh_datasets([*result.get("linked", []), *result.get("unlinked", [])])
    return result


def dataset_get(ctx: ToolContext, args: dict) -> dict:
    return ctx.client.get_dataset(args["dataset_id"])


_DATA_TYPE = {"type": "string", "enum": list(config.VALID_DATA_TYPES)}


def register(catalog):
    """Register all dataset tools with the tool catalog."""
    catalog.add(
        "dataset_create",
        dataset_create,
        "Create a new dataset.",
        {
            "type": "object",
            "properties": {
                "dataset_name": {"type": "string"},
                "data_type": _DATA_TYPE,
                "dataset_description": {"type": "string"},
                "connection_id": {
                    "type": "string",
                    "description": "Connection returned by dataset_upload_files/folder",
                },
            },
            "required": ["dataset_name", "data_type"],
        },
    )
    catalog.add(
        "dataset_upload_files",
        dataset_upload_files,
        "Register local files for upload and return a temporary connection id.",
        {
            "type": "object",
            "properties": {
                "files": {"type": "array", "items": {"type": "string"}},
                "data_type": _DATA_TYPE,
            },
            "required": ["files", "data_type"],
        },
    )
    catalog.add(
        "dataset_upload_folder",
        dataset_upload_folder,
        "Upload every file of the given data type found directly in a local folder.",
        {
            "type": "object",
            "properties": {
                "folder_path": {"type": "string"},
                "data_type": _DATA_TYPE,
            },
            "required": ["folder_path", "data_type"],
        },
    )
    catalog.add(
        "dataset_list",
        dataset_list,
        "List linked and unlinked datasets of one data type.",
        {
            "type": "object",
            "properties": {"data_type": {**_DATA_TYPE, "default": "image"}},
        },
    )
    catalog.add(
        "dataset_get",
        dataset_get,
        "Get detailed information about one dataset.",
        {
            "type": "object",
            "properties": {"dataset_id": {"type": "string"}},
            "required": ["dataset_id"],
        },
    )
