"""
Environment-based configuration for the storefront E2E suite.

This module exposes a small, typed configuration surface shared by the
browser suite, the dashboards and the CLI scripts. All values are sourced
from environment variables with sensible, non-secret defaults.

No secrets or credentials are hard-coded here; they must be provided via
the environment (or tooling such as python-dotenv in local development).
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional


def _bool_env(name: str, default: bool) -> bool:
    raw = (os.getenv(name) or str(default)).strip().lower()
    return raw in ("true", "1", "yes")


@dataclass(frozen=True)
class AppConfig:
    """
    Top-level application configuration.

    Flow-specific knobs (batch windows, chunk files, timeouts) live in
    `suite.flow_config`; this config only carries cross-cutting concerns.
    """

    log_level: str

    # Optional file path for structured JSON logs; when set, logs are written
    # to file (and stdout if log_stdout).
    log_file: Optional[str]
    log_stdout: bool

    # Root for every artifact the suite writes (progress file, reports, screenshots).
    results_dir: str

    # Dashboard HTTP port and basic-auth pair for the jobs server.
    port: int
    auth_username: Optional[str]
    auth_password: Optional[str]

    # Storefront account used by the authenticated flows.
    test_user_email: Optional[str]
    test_user_password: Optional[str]

    # Teams notification configuration
    teams_webhook_url: Optional[str]
    notify_always: bool
    run_url: Optional[str]

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Construct configuration from environment variables."""
        return cls(
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_file=os.getenv("LOG_FILE") or None,
            log_stdout=_bool_env("LOG_STDOUT", True),
            results_dir=os.getenv("RESULTS_DIR", "test-results"),
            port=int(os.getenv("PORT", "3000")),
            auth_username=os.getenv("AUTH_USERNAME") or None,
            auth_password=os.getenv("AUTH_PASSWORD") or None,
            test_user_email=os.getenv("TEST_USER_EMAIL") or None,
            test_user_password=os.getenv("TEST_USER_PASSWORD") or None,
            teams_webhook_url=os.getenv("TEAMS_WEBHOOK_URL") or None,
            notify_always=_bool_env("NOTIFY_ALWAYS", False),
            run_url=os.getenv("GITHUB_RUN_URL") or os.getenv("RUN_URL") or None,
        )


def get_config() -> AppConfig:
    """
    Helper to obtain the current configuration.

    In simple scripts, calling this function directly is sufficient. In
    longer-lived processes, construct a single `AppConfig` at startup and
    pass it explicitly.
    """

    return AppConfig.from_env()
