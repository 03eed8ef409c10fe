"""
Exception types raised by the browser suite.

Health checks raise HealthCheckError subclasses so a test failure message
already says what broke and where. Flow steps raise FlowStepError with a
machine-readable error_type that ends up in the result records.
"""

from __future__ import annotations

from typing import Optional


class HealthCheckError(AssertionError):
    """Base class for page health assertion failures."""


class PageHealthError(HealthCheckError):
    def __init__(self, message: str, url: str, indicator: Optional[str] = None) -> None:
        super().__init__(message)
        self.url = url
        self.indicator = indicator


class ElementMissingError(HealthCheckError):
    def __init__(self, description: str, selector: str, url: str) -> None:
        super().__init__(
            f"[Critical Element Missing] {description} not found.\n"
            f"  Selector: {selector}\n"
            f"  URL: {url}\n"
            "  This may indicate a broken user flow or unexpected page state."
        )
        self.description = description
        self.selector = selector
        self.url = url


class NavigationFailedError(HealthCheckError):
    def __init__(self, context: str, expected_path: str, actual_url: str) -> None:
        super().__init__(
            f"[Navigation Failed] {context}\n"
            f"  Expected URL to contain: {expected_path}\n"
            f"  Actual URL: {actual_url}"
        )
        self.expected_path = expected_path
        self.actual_url = actual_url


class FlowStepError(Exception):
    """A flow step failed in a way the result record should classify."""

    def __init__(self, error_type: str, message: str) -> None:
        super().__init__(message)
        self.error_type = error_type


class MissingCredentialsError(RuntimeError):
    """TEST_USER_EMAIL / TEST_USER_PASSWORD are not set."""


class LinkLoadError(RuntimeError):
    """A links or chunk file could not be read or parsed."""
