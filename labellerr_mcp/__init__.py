"""labellerr-mcp — MCP server exposing the Labellerr annotation platform API."""

from labellerr_mcp.client import LabellerrClient
from labellerr_mcp.config import VERSION
from labellerr_mcp.exceptions import LabellerrError, ProtocolError, SetupError
from labellerr_mcp.state import SessionState
from labellerr_mcp.types import (
    ActiveOperations,
    HistoryPage,
    OperationRecord,
    ProjectProgress,
    ProjectStatistics,
    SystemHealth,
)

__all__ = [
    "VERSION",
    "LabellerrClient",
    "LabellerrError",
    "ProtocolError",
    "SetupError",
    "SessionState",
    "ActiveOperations",
    "HistoryPage",
    "OperationRecord",
    "ProjectProgress",
    "ProjectStatistics",
    "SystemHealth",
]
