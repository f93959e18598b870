"""
labellerr-mcp exception hierarchy.

All custom exceptions live here to avoid circular imports.
"""

from mcp.types import INTERNAL_ERROR, INVALID_PARAMS, INVALID_REQUEST, METHOD_NOT_FOUND


class LabellerrError(Exception):
    """Backend failure: non-success HTTP status, network error, bad response."""

    def __init__(self, message, status=None):
        super().__init__(message)
        self.status = status


class SetupError(LabellerrError):
    """Credentials missing or unusable."""


class HTTPError(Exception):
    """Raised by _http_request for HTTP errors that callers want to handle."""

    def __init__(self, code, reason, body, headers=None):
        self.code = code
        self.reason = reason
        self.body = body
        self.headers = headers or {}


class ProtocolError(Exception):
    """Error surfaced to MCP clients with a JSON-RPC error code."""

    code = INTERNAL_ERROR


class UnknownTool(ProtocolError):
    """No tool category prefix matches the requested name."""

    code = METHOD_NOT_FOUND


class UnknownOperation(UnknownTool):
    """The category matched but the operation name did not."""


class InvalidArguments(ProtocolError):
    code = INVALID_PARAMS


class InvalidResourceURI(ProtocolError):
    code = INVALID_REQUEST


class ResourceNotFound(InvalidResourceURI):
    """The URI is well-formed but nothing is cached under it."""


class ClientNotInitialized(ProtocolError):
    code = INTERNAL_ERROR


class ToolExecutionError(ProtocolError):
    """Wraps a downstream failure raised while running a tool."""

    code = INTERNAL_ERROR
