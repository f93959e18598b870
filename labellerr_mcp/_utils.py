"""
Shared pure-utility functions for labellerr-mcp.

These helpers have no business logic. They are used across client.py,
state.py and queries.py.
"""

import os
import uuid
from datetime import datetime, timezone

from labellerr_mcp import config
from labellerr_mcp.exceptions import LabellerrError


def utc_now_iso():
    """Current UTC time as an ISO-8601 string with millisecond precision."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _parse_iso_timestamp(ts):
    """Parse an ISO timestamp into a datetime."""
    if not ts:
        return None
    try:
        # Handle both "2026-01-15T10:30:00Z" and "2026-01-15T10:30:00.000Z"
        clean = ts.replace("Z", "+00:00")
        parsed = datetime.fromisoformat(clean)
    except (ValueError, TypeError, AttributeError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def generate_uuid():
    """Random request nonce; the API wants a fresh one on most list calls."""
    return str(uuid.uuid4())


def files_in_folder(folder_path, data_type):
    """Return files directly inside *folder_path* whose extension matches *data_type*.

    Subdirectories are not descended into. Unknown data types match nothing.
    """
    extensions = config.DATA_TYPE_EXTENSIONS.get(data_type, ())
    try:
        names = sorted(os.listdir(folder_path))
    except OSError as e:
        raise LabellerrError(f"Cannot read folder '{folder_path}': {e.strerror or e}") from e
    files = []
    for name in names:
        full_path = os.path.join(folder_path, name)
        if os.path.isfile(full_path) and os.path.splitext(name)[1].lower() in extensions:
            files.append(full_path)
    return files
