"""
HTTP request layer and logging helpers for labellerr-mcp.
"""

import hashlib
import json
import re
import sys
import time
import urllib.error
import urllib.parse
import urllib.request
import uuid

from labellerr_mcp import config
from labellerr_mcp.exceptions import HTTPError, LabellerrError

_SECRET_QUERY_KEYS = frozenset({"api_key", "api_secret", "client_id", "email_id"})


# ---------------------------------------------------------------------------
# Security helpers
# ---------------------------------------------------------------------------


def _mask_token(token):
    """Show only first 6 chars of a token for safe logging."""
    return token[:6] + "..." if len(token) > 6 else token


def _sanitize_error(body, max_len=500):
    """Truncate and clean error body for safe display."""
    if not body:
        return ""
    cleaned = re.sub(r"<[^>]+>", "", body)
    cleaned = re.sub(r"\s+", " ", cleaned).strip()
    if len(cleaned) > max_len:
        return cleaned[:max_len] + "... [truncated]"
    return cleaned


def _sanitize_url_for_log(url):
    """Mask sensitive query params in URLs before logging."""
    parsed = urllib.parse.urlsplit(url)
    if not parsed.query:
        return url
    pairs = urllib.parse.parse_qsl(parsed.query, keep_blank_values=True)
    masked = []
    for key, value in pairs:
        if key.lower() in _SECRET_QUERY_KEYS:
            masked.append((key, "***"))
        else:
            masked.append((key, value))
    safe_query = urllib.parse.urlencode(masked, doseq=True)
    return urllib.parse.urlunsplit(
        (parsed.scheme, parsed.netloc, parsed.path, safe_query, parsed.fragment)
    )


# ---------------------------------------------------------------------------
# Request bodies
# ---------------------------------------------------------------------------


def _encode_body(data, headers):
    """JSON-encode *data* for the request body, setting Content-Type on *headers*."""
    if data is None:
        return None
    headers["Content-Type"] = "application/json"
    return json.dumps(data).encode("utf-8")


# ---------------------------------------------------------------------------
# HTTP request layer
# ---------------------------------------------------------------------------


def _log_http_event(**fields):
    """Emit structured HTTP logs to stderr when enabled."""
    if not config.HTTP_LOG_ENABLED:
        return
    print("[HTTP] " + json.dumps(fields, ensure_ascii=False, sort_keys=True), file=sys.stderr)


def _is_sampled_request(request_id):
    """Decide if a request should be logged based on sample rate."""
    rate = config.HTTP_LOG_SAMPLE_RATE
    if rate <= 0:
        return False
    if rate >= 1:
        return True
    if not request_id:
        return False
    digest = hashlib.sha256(request_id.encode("utf-8")).digest()
    bucket = int.from_bytes(digest[:4], "big") / 4294967295.0
    return bucket < rate


def _http_request(url, data=None, headers=None, method="GET"):
    """Make a single HTTP request (no retries).
    Returns parsed JSON on success (an empty body decodes to {}).
    Raises HTTPError for HTTP errors (caller extracts the remote message).
    Raises LabellerrError on network/timeout/parse errors."""
    headers = dict(headers or {})
    body = _encode_body(data, headers)
    request_id = headers.get("X-Request-Id")
    safe_url = _sanitize_url_for_log(url)
    sampled = _is_sampled_request(request_id)
    timeout = max(1, config.HTTP_TIMEOUT_SECONDS)
    start = time.perf_counter()

    req = urllib.request.Request(url, data=body, headers=headers, method=method)
    if sampled:
        _log_http_event(
            phase="request",
            method=method,
            url=safe_url,
            request_id=request_id,
            timeout_seconds=timeout,
        )
    try:
        with urllib.request.urlopen(req, timeout=timeout) as resp:
            content_type = resp.headers.get("Content-Type", "")
            raw = resp.read(config.HTTP_MAX_RESPONSE_BYTES + 1)
            if len(raw) > config.HTTP_MAX_RESPONSE_BYTES:
                raise LabellerrError(
                    "Response too large from Labellerr API "
                    f"(>{config.HTTP_MAX_RESPONSE_BYTES} bytes)."
                )
            if sampled:
                _log_http_event(
                    phase="response",
                    method=method,
                    url=safe_url,
                    status=getattr(resp, "status", 200),
                    content_type=content_type,
                    bytes=len(raw),
                    latency_ms=round((time.perf_counter() - start) * 1000, 2),
                    request_id=request_id,
                )
            if not raw.strip():
                return {}
            try:
                return json.loads(raw.decode("utf-8"))
            except (json.JSONDecodeError, UnicodeDecodeError):
                if content_type and "json" not in content_type.lower():
                    raise LabellerrError(
                        f"Unexpected Content-Type from server ({content_type}). "
                        "This may be a proxy or network issue."
                    ) from None
                raise LabellerrError(
                    "Unexpected response from Labellerr API (not valid JSON)."
                ) from None
    except urllib.error.HTTPError as e:
        error_body = (
            e.read(config.HTTP_MAX_RESPONSE_BYTES).decode("utf-8", errors="replace")
            if e.fp
            else ""
        )
        if sampled:
            _log_http_event(
                phase="response",
                method=method,
                url=safe_url,
                status=e.code,
                latency_ms=round((time.perf_counter() - start) * 1000, 2),
                request_id=request_id,
            )
        raise HTTPError(e.code, e.reason, error_body, headers=e.headers) from e
    except TimeoutError as e:
        if sampled:
            _log_http_event(
                phase="network_error",
                method=method,
                url=safe_url,
                error="timeout",
                request_id=request_id,
            )
        raise LabellerrError(f"Request timed out after {timeout} seconds.") from e
    except urllib.error.URLError as e:
        if sampled:
            _log_http_event(
                phase="network_error",
                method=method,
                url=safe_url,
                error=f"url_error: {e.reason}",
                request_id=request_id,
            )
        raise LabellerrError(f"Connection failed: {e.reason}") from e


def _remote_message(error):
    """Pull the API's own error message out of an HTTPError body."""
    try:
        payload = json.loads(error.body) if error.body else None
    except json.JSONDecodeError:
        payload = None
    if isinstance(payload, dict):
        message = payload.get("message")
        if message:
            return _sanitize_error(str(message))
    return f"Request failed with status {error.code}"


def labellerr_request(method, path, credentials, body=None, headers=None):
    """Make an authenticated request against the Labellerr API.

    *credentials* is an (api_key, api_secret, client_id) triple; the
    credential headers are attached to every call. Every failure is raised
    as LabellerrError with an ``API request failed:`` prefix.
    """
    api_key, api_secret, client_id = credentials
    url = config.BASE_URL + path
    all_headers = {
        "api_key": api_key,
        "api_secret": api_secret,
        "client_id": client_id,
        "source": config.SDK_SOURCE,
        "origin": config.ALLOWED_ORIGIN,
        "Accept": "application/json",
        "X-Request-Id": str(uuid.uuid4()),
    }
    all_headers.update(headers or {})
    try:
        return _http_request(url, body, all_headers, method)
    except HTTPError as e:
        raise LabellerrError(f"API request failed: {_remote_message(e)}", status=e.code) from e
    except LabellerrError as e:
        raise LabellerrError(f"API request failed: {e}") from e
