"""
Browser context creation for the storefront tests (viewport, locale, base URL).
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from playwright.async_api import Browser, BrowserContext

from suite.regions import RegionConfig

DEFAULT_VIEWPORT = {"width": 1280, "height": 720}
DEFAULT_NAVIGATION_TIMEOUT_MS = 30000


def headless_from_env() -> bool:
    return (os.getenv("HEADLESS") or "true").strip().lower() in ("true", "1", "yes")


async def create_browser_context(
    browser: Browser,
    base_url: Optional[str] = None,
    region: Optional[RegionConfig] = None,
    storage_state: Optional[str | Path] = None,
) -> BrowserContext:
    """
    Create a context whose relative `page.goto("/path")` calls resolve
    against `base_url`. A storage state file is only used when it exists.
    """
    kwargs: dict = {"viewport": DEFAULT_VIEWPORT}
    if base_url:
        kwargs["base_url"] = base_url
    if region is not None:
        kwargs["locale"] = region.locale
    if storage_state is not None and Path(storage_state).exists():
        kwargs["storage_state"] = str(storage_state)

    context = await browser.new_context(**kwargs)
    context.set_default_navigation_timeout(DEFAULT_NAVIGATION_TIMEOUT_MS)
    return context
