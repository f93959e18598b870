"""Resources: read-only views of cached projects, datasets and the operation log.

URIs: ``labellerr://project/<id>``, ``labellerr://dataset/<id>`` and the
fixed ``labellerr://history``. Ids are percent-encoded in URIs.
"""

from __future__ import annotations

import json
import re
import urllib.parse

from mcp import types

from labellerr_mcp import config
from labellerr_mcp.exceptions import InvalidResourceURI, ResourceNotFound
from labellerr_mcp.state import SessionState

HISTORY_URI = f"{config.RESOURCE_SCHEME}://history"

_KINDS = ("project", "dataset")
_URI_RE = re.compile(rf"^{re.escape(config.RESOURCE_SCHEME)}://(\w+)/(.+)$")


def resource_uri(kind: str, entity_id: str) -> str:
    return f"{config.RESOURCE_SCHEME}://{kind}/{urllib.parse.quote(str(entity_id), safe='')}"


def parse_resource_uri(uri: str) -> tuple[str, str | None]:
    """Split *uri* into ``(kind, id)``; the history URI gives ``("history", None)``."""
    uri = str(uri)
    if uri.rstrip("/") == HISTORY_URI:
        return "history", None
    match = _URI_RE.match(uri)
    if not match or match.group(1) not in _KINDS:
        raise InvalidResourceURI(f"Invalid resource URI: {uri}")
    return match.group(1), urllib.parse.unquote(match.group(2))


def _to_json(payload) -> str:
    return json.dumps(payload, indent=2, ensure_ascii=False, default=str)


class ResourceExposer:
    """Renders session state as MCP resources. Never calls the API."""

    def __init__(self, state: SessionState):
        self.state = state

    def list_resources(self) -> list[types.Resource]:
        """Projects, then datasets, then the history resource."""
        resources = []
        for project_id, project in self.state.projects().items():
            name = project.get("name") or project.get("project_name") or project_id
            data_type = project.get("data_type") or "unknown"
            resources.append(
                types.Resource(
                    uri=resource_uri("project", project_id),
                    name=str(name),
                    mimeType=config.RESOURCE_MIME_TYPE,
                    description=f"Project: {name} ({data_type})",
                )
            )
        for dataset_id, dataset in self.state.datasets().items():
            name = dataset.get("name") or dataset.get("dataset_name") or dataset_id
            resources.append(
                types.Resource(
                    uri=resource_uri("dataset", dataset_id),
                    name=str(name),
                    mimeType=config.RESOURCE_MIME_TYPE,
                    description=f"Dataset: {name}",
                )
            )
        resources.append(
            types.Resource(
                uri=HISTORY_URI,
                name="Operation History",
                mimeType=config.RESOURCE_MIME_TYPE,
                description="History of all operations performed",
            )
        )
        return resources

    def read_resource(self, uri: str) -> str:
        """JSON text of the resource at *uri*.

        Only cached entities resolve; anything else raises ResourceNotFound.
        """
        kind, entity_id = parse_resource_uri(uri)
        if kind == "history":
            return _to_json(self.state.operations())
        if kind == "project":
            record = self.state.get_project(entity_id)
        else:
            record = self.state.get_dataset(entity_id)
        if record is None:
            raise ResourceNotFound(f"Resource not found: {uri}")
        return _to_json(record)
