"""Core: tool categories, the tool catalog, and the tool router."""

from __future__ import annotations

import enum
import json
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from mcp import types

from labellerr_mcp.client import LabellerrClient
from labellerr_mcp.exceptions import (
    ClientNotInitialized,
    InvalidArguments,
    ProtocolError,
    ToolExecutionError,
    UnknownOperation,
    UnknownTool,
)
from labellerr_mcp.state import SessionState, make_record


class ToolCategory(enum.Enum):
    """Tool families, keyed by name prefix. Definition order is match order."""

    PROJECT = "project_"
    DATASET = "dataset_"
    ANNOTATION = "annotation_"
    MONITOR = "monitor_"
    QUERY = "query_"

    @property
    def label(self) -> str:
        return self.value.rstrip("_")

    @property
    def timed(self) -> bool:
        """Whether calls in this category record ``duration_ms``."""
        return self not in (ToolCategory.MONITOR, ToolCategory.QUERY)


def classify(name: str) -> ToolCategory | None:
    """Return the category whose prefix *name* starts with, or None."""
    for category in ToolCategory:
        if name.startswith(category.value):
            return category
    return None


@dataclass
class ToolContext:
    """What an operation handler may touch."""

    client: LabellerrClient
    state: SessionState


Handler = Callable[[ToolContext, dict], Any]


@dataclass(frozen=True)
class Operation:
    descriptor: types.Tool
    handler: Handler

    @property
    def required(self) -> list[str]:
        return list(self.descriptor.inputSchema.get("required", []))


class ToolCatalog:
    """Static, ordered list of tool descriptors grouped by category."""

    def __init__(self):
        self._tables: dict[ToolCategory, dict[str, Operation]] = {c: {} for c in ToolCategory}

    def add(self, name: str, handler: Handler, description: str, input_schema: dict) -> None:
        category = classify(name)
        if category is None:
            raise ValueError(f"Tool name {name!r} has no known category prefix")
        if name in self._tables[category]:
            raise ValueError(f"Duplicate tool name {name!r}")
        descriptor = types.Tool(name=name, description=description, inputSchema=input_schema)
        self._tables[category][name] = Operation(descriptor, handler)

    def operations(self, category: ToolCategory) -> dict[str, Operation]:
        return self._tables[category]

    def descriptors(self) -> list[types.Tool]:
        """All tools, category by category in prefix order."""
        return [op.descriptor for table in self._tables.values() for op in table.values()]


def _format_result(result) -> str:
    """Tool results are always pretty-printed JSON text."""
    return json.dumps(result, indent=2, ensure_ascii=False, default=str)


class ToolRouter:
    """Routes tool calls to operations and logs every attempt in session state."""

    def __init__(self, catalog: ToolCatalog, state: SessionState, client: LabellerrClient | None):
        self.catalog = catalog
        self.state = state
        self.client = client

    def _resolve(self, name: str) -> tuple[ToolCategory, Operation]:
        category = classify(name)
        if category is None:
            raise UnknownTool(f"Unknown tool: {name}")
        operation = self.catalog.operations(category).get(name)
        if operation is None:
            raise UnknownOperation(f"Unknown {category.label} tool: {name}")
        return category, operation

    def dispatch(self, name: str, arguments: dict[str, Any] | None = None) -> str:
        """Run tool *name* and return its JSON text.

        Exactly one OperationRecord is appended per call. Failures are logged
        with ``status="failed"`` before the error is raised.
        """
        args = dict(arguments or {})
        start = time.perf_counter()
        try:
            if self.client is None:
                raise ClientNotInitialized(
                    "Labellerr client not initialized. Please check your environment variables."
                )
            category, operation = self._resolve(name)
            missing = [key for key in operation.required if args.get(key) in (None, "")]
            if missing:
                raise InvalidArguments(
                    f"Missing required argument(s) for {name}: {', '.join(missing)}"
                )
            context = ToolContext(client=self.client, state=self.state)
            result = operation.handler(context, args)
        except ProtocolError as e:
            self.state.append_operation(make_record(name, "failed", args=args, error=str(e)))
            raise
        except Exception as e:
            self.state.append_operation(make_record(name, "failed", args=args, error=str(e)))
            raise ToolExecutionError(f"Tool execution failed: {e}") from e

        duration_ms = None
        if category.timed:
            duration_ms = round((time.perf_counter() - start) * 1000)
        record = make_record(name, "success", duration_ms=duration_ms, args=args)
        self.state.append_operation(record)
        return _format_result(result)
