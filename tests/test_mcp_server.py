"""Tests for the MCP server: tool routing, session side effects, resources.

Mocks at LabellerrClient level. Verifies each tool reaches the right client
method, that every call is logged exactly once, and that protocol errors
carry the right JSON-RPC codes.
"""

import pytest

mcp_mod = pytest.importorskip("labellerr_mcp.mcp_server", reason="mcp package not installed")

import asyncio  # noqa: E402
import json  # noqa: E402
from unittest.mock import MagicMock  # noqa: E402

from mcp import types  # noqa: E402
from mcp.shared.exceptions import McpError  # noqa: E402
from mcp.types import INTERNAL_ERROR, INVALID_PARAMS, INVALID_REQUEST, METHOD_NOT_FOUND  # noqa: E402

from labellerr_mcp import config  # noqa: E402
from labellerr_mcp.exceptions import LabellerrError  # noqa: E402
from labellerr_mcp.mcp_server import (  # noqa: E402
    CATALOG,
    HISTORY_URI,
    LabellerrMCPServer,
    ToolCategory,
    classify,
    parse_resource_uri,
    resource_uri,
)


_CREATE_ARGS = {"project_name": "Cats", "data_type": "image", "created_by": "owner@example.com"}


def _uris(resources):
    return [str(r.uri).rstrip("/") for r in resources]


def _mock_client(**method_returns):
    client = MagicMock()
    for name, val in method_returns.items():
        getattr(client, name).return_value = val
    return client


def _server(**method_returns):
    return LabellerrMCPServer(client=_mock_client(**method_returns))


def _call(app, name, arguments=None):
    """Call a tool and decode its JSON text payload."""
    content = app.call_tool(name, arguments or {})
    assert len(content) == 1
    assert content[0].type == "text"
    return json.loads(content[0].text)


def _error(app, name, arguments=None):
    with pytest.raises(McpError) as exc_info:
        app.call_tool(name, arguments or {})
    return exc_info.value.error


# ---------------------------------------------------------------------------
# Catalog and classification
# ---------------------------------------------------------------------------


class TestCatalog:
    def test_tool_count(self):
        assert len(CATALOG.descriptors()) == 22

    def test_names_unique(self):
        names = [t.name for t in CATALOG.descriptors()]
        assert len(names) == len(set(names))

    def test_every_tool_has_schema_and_description(self):
        for tool in CATALOG.descriptors():
            assert tool.description
            assert tool.inputSchema["type"] == "object"

    def test_grouped_in_prefix_order(self):
        categories = [classify(t.name) for t in CATALOG.descriptors()]
        order = list(ToolCategory)
        assert [order.index(c) for c in categories] == sorted(order.index(c) for c in categories)

    def test_per_category_counts(self):
        counts = {c: len(CATALOG.operations(c)) for c in ToolCategory}
        assert counts == {
            ToolCategory.PROJECT: 4,
            ToolCategory.DATASET: 5,
            ToolCategory.ANNOTATION: 5,
            ToolCategory.MONITOR: 4,
            ToolCategory.QUERY: 4,
        }

    def test_list_tools_without_credentials(self):
        app = LabellerrMCPServer(client=None)
        assert len(app.list_tools()) == 22

    def test_rejects_unprefixed_names(self):
        with pytest.raises(ValueError):
            mcp_mod.ToolCatalog().add("delete_everything", lambda ctx, args: None, "x", {})


class TestClassify:
    @pytest.mark.parametrize(
        "name, category",
        [
            ("project_create", ToolCategory.PROJECT),
            ("dataset_list", ToolCategory.DATASET),
            ("annotation_export", ToolCategory.ANNOTATION),
            ("monitor_system_health", ToolCategory.MONITOR),
            ("query_search_projects", ToolCategory.QUERY),
            ("project_", ToolCategory.PROJECT),
        ],
    )
    def test_known_prefixes(self, name, category):
        assert classify(name) is category

    @pytest.mark.parametrize("name", ["invalid_tool", "projects_list", "", "Project_create"])
    def test_unknown_prefixes(self, name):
        assert classify(name) is None

    def test_timed_categories(self):
        assert ToolCategory.PROJECT.timed
        assert ToolCategory.DATASET.timed
        assert ToolCategory.ANNOTATION.timed
        assert not ToolCategory.MONITOR.timed
        assert not ToolCategory.QUERY.timed


# ---------------------------------------------------------------------------
# Routing errors
# ---------------------------------------------------------------------------


class TestRoutingErrors:
    def test_unknown_tool(self):
        app = _server()
        err = _error(app, "invalid_tool")
        assert err.code == METHOD_NOT_FOUND
        assert err.message == "Unknown tool: invalid_tool"
        ops = app.state.operations()
        assert len(ops) == 1
        assert ops[0]["status"] == "failed"
        assert ops[0]["tool"] == "invalid_tool"
        assert ops[0]["error"] == "Unknown tool: invalid_tool"

    def test_unknown_operation_in_known_category(self):
        app = _server()
        err = _error(app, "project_delete")
        assert err.code == METHOD_NOT_FOUND
        assert err.message == "Unknown project tool: project_delete"
        assert app.state.operation_count == 1

    def test_missing_client(self):
        app = LabellerrMCPServer(client=None)
        err = _error(app, "monitor_system_health")
        assert err.code == INTERNAL_ERROR
        assert "not initialized" in err.message
        assert app.state.last_operation["status"] == "failed"

    def test_missing_required_argument(self):
        app = _server()
        err = _error(app, "project_get", {})
        assert err.code == INVALID_PARAMS
        assert "project_id" in err.message
        app.router.client.get_project_details.assert_not_called()
        assert app.state.last_operation["status"] == "failed"

    def test_refresh_client_reads_config(self, monkeypatch):
        app = LabellerrMCPServer(client=None)
        assert app.refresh_client() is True
        assert app.client is not None
        monkeypatch.setattr(config, "API_KEY", "")
        assert app.refresh_client() is False
        assert _error(app, "project_list").code == INTERNAL_ERROR


# ---------------------------------------------------------------------------
# Backend errors
# ---------------------------------------------------------------------------


class TestBackendErrors:
    def test_backend_failure_is_logged_then_raised(self):
        app = _server()
        app.router.client.get_all_projects.side_effect = LabellerrError(
            "API request failed: quota exceeded", status=429
        )
        err = _error(app, "project_list")
        assert err.code == INTERNAL_ERROR
        assert err.message == "Tool execution failed: API request failed: quota exceeded"
        last = app.state.last_operation
        assert last["status"] == "failed"
        assert last["error"] == "API request failed: quota exceeded"
        assert app.state.operation_count == 1

    def test_failed_create_does_not_cache(self):
        app = _server()
        app.router.client.create_project.side_effect = LabellerrError("API request failed: bad")
        _error(app, "project_create", _CREATE_ARGS)
        assert app.state.projects() == {}

    def test_unexpected_exception_is_wrapped(self):
        app = _server()
        app.router.client.get_dataset.side_effect = RuntimeError("kaboom")
        err = _error(app, "dataset_get", {"dataset_id": "d1"})
        assert err.code == INTERNAL_ERROR
        assert "kaboom" in err.message


# ---------------------------------------------------------------------------
# Project / dataset tools and cache side effects
# ---------------------------------------------------------------------------



class TestProjectTools:
    def test_result_is_pretty_json(self):
        result = {"success": True, "projects": [], "total": 0}
        app = _server(get_all_projects=result)
        content = app.call_tool("project_list", {})
        assert content[0].text == json.dumps(result, indent=2)

    def test_create_caches_each_project(self):
        app = _server()
        app.router.client.create_project.side_effect = [
            {"success": True, "project_id": f"p{i}"} for i in range(3)
        ]
        for _ in range(3):
            _call(app, "project_create", _CREATE_ARGS)
        projects = app.state.projects()
        assert list(projects) == ["p0", "p1", "p2"]
        cached = projects["p1"]
        assert cached["id"] == "p1"
        assert cached["name"] == "Cats"
        assert cached["data_type"] == "image"
        assert cached["created_by"] == "owner@example.com"
        assert cached["created_at"]

    def test_list_caches_exact_records(self):
        listed = [
            {"project_id": "p1", "project_name": "A", "data_type": "image"},
            {"project_id": "p2", "project_name": "B", "data_type": "video"},
        ]
        app = _server(get_all_projects={"success": True, "projects": listed, "total": 2})
        app.state.put_project("p0", {"id": "p0"})
        _call(app, "project_list")
        projects = app.state.projects()
        assert len(projects) >= 2
        assert projects["p1"] == listed[0]
        assert projects["p2"] == listed[1]
        assert "p0" in projects

    def test_get_does_not_cache(self):
        app = _server(get_project_details={"success": True, "project": {"project_id": "p1"}})
        _call(app, "project_get", {"project_id": "p1"})
        app.router.client.get_project_details.assert_called_once_with("p1")
        assert app.state.projects() == {}

    def test_update_rotation(self):
        app = _server(update_rotation_config={"success": True})
        rotation = {"annotation_rotation_count": 2}
        _call(app, "project_update_rotation", {"project_id": "p1", "rotation_config": rotation})
        app.router.client.update_rotation_config.assert_called_once_with("p1", rotation)

    def test_success_record_has_duration_and_args(self):
        app = _server(get_project_details={"success": True})
        _call(app, "project_get", {"project_id": "p1"})
        record = app.state.last_operation
        assert record["status"] == "success"
        assert isinstance(record["duration_ms"], int)
        assert record["args"] == {"project_id": "p1"}


class TestDatasetTools:
    def test_create_caches_dataset(self):
        app = _server(create_dataset={"success": True, "dataset_id": "d1"})
        _call(app, "dataset_create", {"dataset_name": "Set", "data_type": "image"})
        cached = app.state.get_dataset("d1")
        assert cached["name"] == "Set"
        assert cached["data_type"] == "image"

    def test_list_caches_linked_and_unlinked(self):
        app = _server(
            get_all_datasets={
                "linked": [{"dataset_id": "d1"}],
                "unlinked": [{"dataset_id": "d2"}],
                "total": 2,
            }
        )
        _call(app, "dataset_list", {"data_type": "video"})
        app.router.client.get_all_datasets.assert_called_once_with("video")
        assert set(app.state.datasets()) == {"d1", "d2"}

    def test_list_defaults_to_image(self):
        app = _server(get_all_datasets={"linked": [], "unlinked": [], "total": 0})
        _call(app, "dataset_list")
        app.router.client.get_all_datasets.assert_called_once_with("image")

    def test_upload_files(self):
        app = _server(upload_files={"success": True, "connection_id": "c1"})
        _call(app, "dataset_upload_files", {"files": ["/a.jpg"], "data_type": "image"})
        app.router.client.upload_files.assert_called_once_with(["/a.jpg"], "image")

    def test_upload_folder(self):
        app = _server(upload_folder={"success": True})
        _call(app, "dataset_upload_folder", {"folder_path": "/data", "data_type": "audio"})
        app.router.client.upload_folder.assert_called_once_with("/data", "audio")


class TestAnnotationTools:
    def test_upload_preannotations(self):
        app = _server(upload_preannotations={"job_id": "j1"})
        args = {"project_id": "p1", "annotation_format": "json", "annotation_file": "/a.json"}
        assert _call(app, "annotation_upload_preannotations", args) == {"job_id": "j1"}
        app.router.client.upload_preannotations.assert_called_once_with("p1", "json", "/a.json")

    def test_upload_preannotations_async(self):
        app = _server(upload_preannotations_async={"job_id": "j1", "async": True})
        args = {"project_id": "p1", "annotation_format": "json", "annotation_file": "/a.json"}
        assert _call(app, "annotation_upload_preannotations_async", args)["async"] is True

    def test_export(self):
        app = _server(create_export={"export_id": "r1"})
        args = {
            "project_id": "p1",
            "export_name": "e",
            "export_format": "json",
            "statuses": ["accepted"],
        }
        _call(app, "annotation_export", args)
        app.router.client.create_export.assert_called_once_with(
            "p1", "e", "json", ["accepted"], export_description=None
        )

    def test_check_and_download(self):
        app = _server(check_export_status={"exports": []}, download_export={"download_url": "u"})
        _call(app, "annotation_check_export_status", {"project_id": "p1", "export_ids": ["r1"]})
        assert _call(app, "annotation_download_export", {"project_id": "p1", "export_id": "r1"}) == {
            "download_url": "u"
        }
        assert app.state.operation_count == 2


# ---------------------------------------------------------------------------
# Monitor / query tools
# ---------------------------------------------------------------------------


class TestMonitorTools:
    def test_records_have_no_duration(self):
        app = _server()
        _call(app, "monitor_system_health")
        record = app.state.last_operation
        assert record["status"] == "success"
        assert "duration_ms" not in record

    def test_system_health_counts(self):
        app = _server(create_dataset={"dataset_id": "d1"})
        _call(app, "dataset_create", {"dataset_name": "S", "data_type": "image"})
        health = _call(app, "monitor_system_health")
        assert health["connected"] is True
        assert health["active_datasets"] == 1
        assert health["operations_performed"] == 1
        assert health["last_operation"]["tool"] == "dataset_create"

    def test_active_operations(self):
        app = _server(get_project_details={})
        _call(app, "project_get", {"project_id": "p1"})
        result = _call(app, "monitor_active_operations")
        assert result["total_operations"] == 1
        assert [op["tool"] for op in result["active_operations"]] == ["project_get"]

    def test_project_progress(self):
        app = _server(get_project_details={"project": {"total_files": 3, "accepted_files": 2}})
        result = _call(app, "monitor_project_progress", {"project_id": "p1"})
        assert result["progress"]["completion_percentage"] == 67

    def test_job_status(self):
        app = _server(get_job_status={"job_id": "j1", "status": "completed"})
        assert _call(app, "monitor_job_status", {"job_id": "j1"})["status"] == "completed"


class TestQueryTools:
    def test_operation_history(self):
        app = _server(get_project_details={})
        for i in range(5):
            _call(app, "project_get", {"project_id": f"p{i}"})
        result = _call(app, "query_operation_history", {"limit": 3})
        assert result["total"] == 5
        assert [op["args"]["project_id"] for op in result["operations"]] == ["p4", "p3", "p2"]
        assert "duration_ms" not in app.state.last_operation

    def test_operation_history_status_filter(self):
        app = _server()
        _error(app, "nope_tool")
        result = _call(app, "query_operation_history", {"status": "failed"})
        assert result["total"] == 1
        assert result["operations"][0]["tool"] == "nope_tool"

    def test_operation_history_rejects_non_integer_limit(self):
        app = _server()
        assert _error(app, "query_operation_history", {"limit": "3"}).code == INVALID_PARAMS

    def test_search_projects_updates_cache(self):
        listed = [{"project_id": "p1", "project_name": "Birds", "data_type": "image"}]
        app = _server(get_all_projects={"projects": listed})
        assert _call(app, "query_search_projects", {"query": "BIRD"}) == {"projects": listed}
        assert app.state.get_project("p1") == listed[0]

    def test_project_statistics(self):
        app = _server(get_project_details={"project": {"total_files": 4, "accepted_files": 2}})
        stats = _call(app, "query_project_statistics", {"project_id": "p1"})
        assert stats["completion_percentage"] == 50
        assert stats["reviewed_files"] == 0

    def test_dataset_info(self):
        app = _server(get_dataset={"dataset": {"dataset_id": "d1"}})
        assert _call(app, "query_dataset_info", {"dataset_id": "d1"}) == {"dataset": {"dataset_id": "d1"}}


# ---------------------------------------------------------------------------
# Resources
# ---------------------------------------------------------------------------


class TestResourceURIs:
    def test_round_trip(self):
        for kind, entity_id in [("project", "p1"), ("dataset", "a b/c?d"), ("project", "ünï")]:
            assert parse_resource_uri(resource_uri(kind, entity_id)) == (kind, entity_id)

    def test_history(self):
        assert parse_resource_uri(HISTORY_URI) == ("history", None)
        assert parse_resource_uri(HISTORY_URI + "/") == ("history", None)

    @pytest.mark.parametrize(
        "uri", ["labellerr://export/x", "labellerr://project", "other://project/p1", "garbage"]
    )
    def test_invalid(self, uri):
        app = _server()
        with pytest.raises(McpError) as exc_info:
            app.read_resource(uri)
        assert exc_info.value.error.code == INVALID_REQUEST


class TestResources:
    def test_only_history_when_empty(self):
        resources = _server().list_resources()
        assert _uris(resources) == [HISTORY_URI]

    def test_order_project_dataset_history(self):
        app = _server(
            create_project={"project_id": "p1"},
            create_dataset={"dataset_id": "d1"},
        )
        _call(app, "dataset_create", {"dataset_name": "Set", "data_type": "image"})
        _call(app, "project_create", _CREATE_ARGS)
        resources = app.list_resources()
        assert _uris(resources) == [
            "labellerr://project/p1",
            "labellerr://dataset/d1",
            HISTORY_URI,
        ]
        assert resources[0].name == "Cats"
        assert resources[0].description == "Project: Cats (image)"
        assert resources[1].description == "Dataset: Set"
        assert all(r.mimeType == "application/json" for r in resources)

    def test_listed_project_named_by_project_name(self):
        app = _server(get_all_projects={"projects": [{"project_id": "p7", "project_name": "Seven"}]})
        _call(app, "project_list")
        assert app.list_resources()[0].name == "Seven"

    def test_read_uncached_dataset_not_found(self):
        app = _server()
        with pytest.raises(McpError) as exc_info:
            app.read_resource("labellerr://dataset/X")
        assert exc_info.value.error.code == INVALID_REQUEST
        assert "Resource not found" in exc_info.value.error.message

    def test_read_dataset_after_list(self):
        record = {"dataset_id": "X", "name": "Listed", "files_count": 12}
        app = _server(get_all_datasets={"linked": [record], "unlinked": []})
        _call(app, "dataset_list")
        contents = app.read_resource("labellerr://dataset/X")
        assert len(contents) == 1
        assert contents[0].mime_type == "application/json"
        assert json.loads(contents[0].content) == record

    def test_read_dataset_after_create(self):
        app = _server(create_dataset={"dataset_id": "X"})
        _call(app, "dataset_create", {"dataset_name": "Made", "data_type": "text"})
        contents = app.read_resource("labellerr://dataset/X")
        assert json.loads(contents[0].content) == app.state.get_dataset("X")

    def test_project_get_is_not_resolvable(self):
        app = _server(get_project_details={"project": {"project_id": "p1"}})
        _call(app, "project_get", {"project_id": "p1"})
        with pytest.raises(McpError):
            app.read_resource("labellerr://project/p1")

    def test_read_history_is_entire_log(self):
        app = _server(get_project_details={})
        for i in range(12):
            _call(app, "project_get", {"project_id": f"p{i}"})
        _error(app, "bogus")
        history = json.loads(app.read_resource(HISTORY_URI)[0].content)
        assert len(history) == 13
        assert history[0]["args"]["project_id"] == "p0"
        assert history[-1]["status"] == "failed"

    def test_resource_reads_do_not_touch_client(self):
        app = _server()
        app.list_resources()
        app.read_resource(HISTORY_URI)
        assert app.router.client.method_calls == []

    def test_id_with_special_characters(self):
        app = _server(create_project={"project_id": "team/one two"})
        _call(app, "project_create", _CREATE_ARGS)
        uri = str(app.list_resources()[0].uri)
        assert json.loads(app.read_resource(uri)[0].content)["id"] == "team/one two"


# ---------------------------------------------------------------------------
# Protocol wiring
# ---------------------------------------------------------------------------


class TestProtocolHandlers:
    def test_handlers_registered(self):
        handlers = _server().server.request_handlers
        for request_type in (
            types.ListToolsRequest,
            types.CallToolRequest,
            types.ListResourcesRequest,
            types.ReadResourceRequest,
        ):
            assert request_type in handlers

    def test_list_tools_handler(self):
        app = _server()
        handler = app.server.request_handlers[types.ListToolsRequest]
        result = asyncio.run(handler(types.ListToolsRequest(method="tools/list")))
        assert len(result.root.tools) == 22

    def test_list_resources_handler(self):
        app = _server()
        handler = app.server.request_handlers[types.ListResourcesRequest]
        result = asyncio.run(handler(types.ListResourcesRequest(method="resources/list")))
        assert _uris(result.root.resources) == [HISTORY_URI]


def _wire_call(app, name, arguments=None):
    """Send tools/call through the registered request handler."""
    handler = app.server.request_handlers[types.CallToolRequest]
    request = types.CallToolRequest(
        method="tools/call",
        params=types.CallToolRequestParams(name=name, arguments=arguments),
    )
    return asyncio.run(handler(request))


def _wire_error(app, name, arguments=None):
    with pytest.raises(McpError) as exc_info:
        _wire_call(app, name, arguments)
    return exc_info.value.error


class TestCallToolHandler:
    def test_success_returns_text_result(self):
        app = _server(get_project_details={"project": {"project_id": "p1"}})
        result = _wire_call(app, "project_get", {"project_id": "p1"}).root
        assert result.isError is False
        assert json.loads(result.content[0].text) == {"project": {"project_id": "p1"}}
        assert app.state.last_operation["status"] == "success"

    def test_missing_required_argument_is_logged(self):
        app = _server()
        args = {"project_name": "Cats", "data_type": "image"}
        err = _wire_error(app, "project_create", args)
        assert err.code == INVALID_PARAMS
        assert "created_by" in err.message
        assert app.state.operation_count == 1
        assert app.state.last_operation["status"] == "failed"
        app.router.client.create_project.assert_not_called()

    def test_arguments_outside_schema_reach_the_router(self):
        app = _server()
        result = _wire_call(app, "query_operation_history", {"limit": 0}).root
        assert json.loads(result.content[0].text) == {"total": 0, "operations": []}
        assert app.state.operation_count == 1

    def test_each_attempt_logged_once(self):
        app = _server()
        _wire_error(app, "project_create", {"project_name": "Cats", "data_type": "image"})
        _wire_call(app, "query_operation_history", {"limit": 0})
        assert app.state.operation_count == 2

    def test_unknown_tool_code(self):
        app = _server()
        err = _wire_error(app, "bogus_tool")
        assert err.code == METHOD_NOT_FOUND
        assert err.message == "Unknown tool: bogus_tool"
        assert app.state.operation_count == 1

    def test_unknown_operation_code(self):
        err = _wire_error(_server(), "dataset_delete", {"dataset_id": "d1"})
        assert err.code == METHOD_NOT_FOUND
        assert err.message == "Unknown dataset tool: dataset_delete"

    def test_missing_client_code(self):
        app = LabellerrMCPServer(client=None)
        err = _wire_error(app, "project_list")
        assert err.code == INTERNAL_ERROR
        assert app.state.last_operation["status"] == "failed"

    def test_backend_failure_code(self):
        app = _server()
        app.router.client.get_all_projects.side_effect = LabellerrError("API request failed: boom")
        err = _wire_error(app, "project_list")
        assert err.code == INTERNAL_ERROR
        assert err.message == "Tool execution failed: API request failed: boom"
        assert app.state.last_operation["error"] == "API request failed: boom"

    def test_null_arguments(self):
        app = _server()
        result = _wire_call(app, "monitor_system_health", None).root
        assert json.loads(result.content[0].text)["status"] == "healthy"
