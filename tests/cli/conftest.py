"""Shared fixtures for CLI execution tests."""

from __future__ import annotations

import pytest

BASE_URL = "http://dash.test"


@pytest.fixture()
def cli_env(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Point the CLI at a mocked dashboard with server 7 selected."""
    env = {
        "GAMEDASH_BASE_URL": BASE_URL,
        "GAMEDASH_SERVER_ID": "7",
        "GAMEDASH_TOKEN": "test-token-123",
    }
    for key, value in env.items():
        monkeypatch.setenv(key, value)
    monkeypatch.delenv("GAMEDASH_COOKIE", raising=False)
    return env
