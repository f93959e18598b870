"""
Shared test fixtures for labellerr-mcp tests.
Patches config module to avoid loading a real .env and making API calls.
"""

import pytest


@pytest.fixture(autouse=True)
def _isolate_config(monkeypatch):
    """Ensure every test starts with a clean, credentialed config state."""
    from labellerr_mcp import config

    monkeypatch.setattr(config, "env", {})
    monkeypatch.setattr(config, "API_KEY", "fake-key")
    monkeypatch.setattr(config, "API_SECRET", "fake-secret")
    monkeypatch.setattr(config, "CLIENT_ID", "fake-client")
    monkeypatch.setattr(config, "BASE_URL", "https://api.labellerr.test")
    monkeypatch.setattr(config, "HTTP_LOG_ENABLED", False)
