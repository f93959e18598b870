"""MCP server exposing the Labellerr API as tools and session state as resources.

Package structure:
  __init__.py            — tool catalog, LabellerrMCPServer, main()
  __main__.py            — ``python -m labellerr_mcp.mcp_server`` entry point
  _core.py               — ToolCategory, ToolCatalog, ToolRouter
  _resources.py          — ResourceExposer and the labellerr:// URI scheme
  _tools_project.py      — 4 project tools
  _tools_dataset.py      — 5 dataset tools
  _tools_annotation.py   — 5 annotation/export tools
  _tools_monitor.py      — 4 monitoring tools
  _tools_query.py        — 4 query tools

Run: python -m labellerr_mcp.mcp_server
"""

from __future__ import annotations

import asyncio
import sys
from collections.abc import Iterable

from mcp import types
from mcp.server import Server
from mcp.server.lowlevel.helper_types import ReadResourceContents
from mcp.shared.exceptions import McpError

from labellerr_mcp import config
from labellerr_mcp.api import _mask_token
from labellerr_mcp.client import LabellerrClient
from labellerr_mcp.exceptions import ProtocolError, SetupError
from labellerr_mcp.mcp_server import (
    _tools_annotation,
    _tools_dataset,
    _tools_monitor,
    _tools_project,
    _tools_query,
)
from labellerr_mcp.mcp_server._core import ToolCatalog, ToolCategory, ToolRouter, classify
from labellerr_mcp.mcp_server._resources import (
    HISTORY_URI,
    ResourceExposer,
    parse_resource_uri,
    resource_uri,
)
from labellerr_mcp.state import SessionState

CATALOG = ToolCatalog()

for _mod in [_tools_project, _tools_dataset, _tools_annotation, _tools_monitor, _tools_query]:
    _mod.register(CATALOG)


def _mcp_error(error: ProtocolError) -> McpError:
    return McpError(types.ErrorData(code=error.code, message=str(error)))


def build_client() -> LabellerrClient | None:
    """Client from configured credentials, or None when any are missing."""
    try:
        return LabellerrClient()
    except SetupError:
        return None


class LabellerrMCPServer:
    """Owns session state for the lifetime of one MCP server."""

    def __init__(self, client: LabellerrClient | None = None, catalog: ToolCatalog = CATALOG):
        self.state = SessionState()
        self.catalog = catalog
        self.router = ToolRouter(catalog, self.state, client)
        self.resources = ResourceExposer(self.state)
        self.server: Server = Server(config.SERVER_NAME, version=config.VERSION)
        self._register_handlers()

    @classmethod
    def from_config(cls) -> LabellerrMCPServer:
        return cls(client=build_client())

    @property
    def client(self) -> LabellerrClient | None:
        return self.router.client

    def refresh_client(self) -> bool:
        """Re-read credentials from config; returns True when a client is available."""
        self.router.client = build_client()
        return self.router.client is not None

    # -------------------------------------------------------------------
    # Protocol operations
    # -------------------------------------------------------------------

    def list_tools(self) -> list[types.Tool]:
        return self.catalog.descriptors()

    def call_tool(self, name: str, arguments: dict | None) -> list[types.TextContent]:
        try:
            text = self.router.dispatch(name, arguments)
        except ProtocolError as e:
            raise _mcp_error(e) from e
        return [types.TextContent(type="text", text=text)]

    def list_resources(self) -> list[types.Resource]:
        return self.resources.list_resources()

    def read_resource(self, uri) -> list[ReadResourceContents]:
        try:
            text = self.resources.read_resource(str(uri))
        except ProtocolError as e:
            raise _mcp_error(e) from e
        return [ReadResourceContents(content=text, mime_type=config.RESOURCE_MIME_TYPE)]

    def _register_handlers(self):
        server = self.server

        @server.list_tools()
        async def handle_list_tools() -> list[types.Tool]:
            return self.list_tools()

        # Not @server.call_tool(): the router validates and logs every call,
        # and McpError must propagate to the client with its code.
        async def handle_call_tool(req: types.CallToolRequest) -> types.ServerResult:
            content = self.call_tool(req.params.name, req.params.arguments)
            return types.ServerResult(types.CallToolResult(content=content, isError=False))

        server.request_handlers[types.CallToolRequest] = handle_call_tool

        @server.list_resources()
        async def handle_list_resources() -> list[types.Resource]:
            return self.list_resources()

        @server.read_resource()
        async def handle_read_resource(uri) -> Iterable[ReadResourceContents]:
            return self.read_resource(uri)

    async def run_stdio(self):
        from mcp.server.stdio import stdio_server

        async with stdio_server() as (read_stream, write_stream):
            await self.server.run(
                read_stream, write_stream, self.server.create_initialization_options()
            )


def main():
    """Run the MCP server (stdio transport)."""
    app = LabellerrMCPServer.from_config()
    missing = config.missing_credentials()
    if missing:
        print(
            f"[SETUP_NEEDED] Missing required environment variables: {', '.join(missing)}. "
            "Tool calls will fail until they are set.",
            file=sys.stderr,
        )
    else:
        print(
            f"Labellerr MCP server running on stdio (client_id={_mask_token(config.CLIENT_ID)})",
            file=sys.stderr,
        )
    asyncio.run(app.run_stdio())


__all__ = [
    "CATALOG",
    "HISTORY_URI",
    "LabellerrMCPServer",
    "ResourceExposer",
    "ToolCatalog",
    "ToolCategory",
    "ToolRouter",
    "build_client",
    "classify",
    "main",
    "parse_resource_uri",
    "resource_uri",
]
