"""
Shared fixtures for dashboard tests.

Both apps are built with injected fakes, so no pytest child processes or
browsers are started.
"""

from __future__ import annotations

import base64
from pathlib import Path

import pytest

from shared.config import AppConfig

AUTH_USER = "dashboard-user"
AUTH_PASSWORD = "dashboard-pass"


def _make_config(results_dir: Path, **overrides) -> AppConfig:
    values = dict(
        log_level="INFO",
        log_file=None,
        log_stdout=True,
        results_dir=str(results_dir),
        port=3000,
        auth_username=AUTH_USER,
        auth_password=AUTH_PASSWORD,
        test_user_email=None,
        test_user_password=None,
        teams_webhook_url=None,
        notify_always=False,
        run_url=None,
    )
    values.update(overrides)
    return AppConfig(**values)


def _basic_auth(user: str, password: str) -> dict[str, str]:
    token = base64.b64encode(f"{user}:{password}".encode()).decode()
    return {"Authorization": f"Basic {token}"}


@pytest.fixture
def auth_headers() -> dict[str, str]:
    return _basic_auth(AUTH_USER, AUTH_PASSWORD)


@pytest.fixture
def make_config():
    """Factory for an AppConfig rooted at a results directory; keyword overrides win."""
    return _make_config


@pytest.fixture
def basic_auth():
    return _basic_auth


@pytest.fixture
def results_dir(tmp_path) -> Path:
    path = tmp_path / "test-results"
    path.mkdir()
    return path
