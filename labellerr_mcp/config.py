"""
labellerr-mcp shared configuration and constants.
Standalone module — no imports from other project files.
"""

import os

# ---------------------------------------------------------------------------
# .env path and helpers
# ---------------------------------------------------------------------------

_PACKAGE_DIR = os.path.dirname(os.path.abspath(__file__))
_PROJECT_ROOT = os.path.dirname(_PACKAGE_DIR)

ENV_PATH = os.path.join(_PROJECT_ROOT, ".env")

# Keys that may also come from the process environment (which wins over .env).
_ENV_KEYS = (
    "LABELLERR_API_KEY",
    "LABELLERR_API_SECRET",
    "LABELLERR_CLIENT_ID",
    "LABELLERR_BASE_URL",
    "LABELLERR_HTTP_TIMEOUT_SECONDS",
    "LABELLERR_HTTP_MAX_RESPONSE_BYTES",
    "LABELLERR_HTTP_LOG",
    "LABELLERR_HTTP_LOG_SAMPLE_RATE",
)


def load_env():
    env = {}
    if os.path.exists(ENV_PATH):
        with open(ENV_PATH) as f:
            for line in f:
                line = line.strip()
                if line and not line.startswith("#") and "=" in line:
                    key, val = line.split("=", 1)
                    env[key.strip()] = val.strip()
    for key in _ENV_KEYS:
        value = os.environ.get(key)
        if value is not None:
            env[key] = value
    return env


def _env_bool(key, default=False):
    """Parse common boolean env formats."""
    raw = env.get(key)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(key, default):
    """Parse integer env values with fallback."""
    raw = env.get(key)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(key, default):
    """Parse float env values with fallback."""
    raw = env.get(key)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

VERSION = "1.0.0"
SERVER_NAME = "labellerr-mcp-server"

ALLOWED_ORIGIN = "https://pro.labellerr.com"
SDK_SOURCE = "mcp-sdk"

RESOURCE_SCHEME = "labellerr"
RESOURCE_MIME_TYPE = "application/json"

# Operations newer than this (or still in progress) count as "active".
ACTIVE_WINDOW_MS = 300_000
DEFAULT_HISTORY_LIMIT = 10

VALID_OPERATION_STATUSES = ("success", "failed", "in_progress")
VALID_DATA_TYPES = ("image", "video", "audio", "document", "text")
VALID_ANNOTATION_FORMATS = ("json", "coco_json", "csv", "png")

DATA_TYPE_EXTENSIONS = {
    "image": (".jpg", ".jpeg", ".png", ".tiff"),
    "video": (".mp4",),
    "audio": (".mp3", ".wav"),
    "document": (".pdf",),
    "text": (".txt",),
}

# ---------------------------------------------------------------------------
# Module-level settings (loaded from .env / environment)
# ---------------------------------------------------------------------------

env = load_env()

API_KEY = env.get("LABELLERR_API_KEY", "")
API_SECRET = env.get("LABELLERR_API_SECRET", "")
CLIENT_ID = env.get("LABELLERR_CLIENT_ID", "")
BASE_URL = env.get("LABELLERR_BASE_URL", "") or "https://api.labellerr.com"
HTTP_TIMEOUT_SECONDS = _env_int("LABELLERR_HTTP_TIMEOUT_SECONDS", 60)
HTTP_MAX_RESPONSE_BYTES = _env_int("LABELLERR_HTTP_MAX_RESPONSE_BYTES", 20_000_000)
HTTP_LOG_ENABLED = _env_bool("LABELLERR_HTTP_LOG", False)
HTTP_LOG_SAMPLE_RATE = min(1.0, max(0.0, _env_float("LABELLERR_HTTP_LOG_SAMPLE_RATE", 1.0)))


def missing_credentials():
    """Return the names of required credential variables that are unset."""
    values = {
        "LABELLERR_API_KEY": API_KEY,
        "LABELLERR_API_SECRET": API_SECRET,
        "LABELLERR_CLIENT_ID": CLIENT_ID,
    }
    return [name for name, value in values.items() if not value]
