"""
Region-aware base class for page objects.

Localized locators (greeting, sign-in/out links) depend on the storefront the
page is on. The region is taken from the constructor, else from the page URL,
else from the run configuration; after every navigation it is re-derived from
the URL and locators are rebuilt when it changed.
"""

from __future__ import annotations

import asyncio
from typing import Optional

from playwright.async_api import Locator, Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from suite.environments import get_test_config, parse_region_from_host
from suite.regions import RegionConfig, get_region

GREETING_SELECTOR = "header p.hidden.lg\\:flex"


class BasePage:
    path: str = "/"

    def __init__(self, page: Page, region: RegionConfig | str | None = None) -> None:
        self.page = page
        if isinstance(region, str):
            region = get_region(region)
        if region is None:
            region = parse_region_from_host(page.url or "") or get_test_config().region
        self.region: RegionConfig = region
        self._build_locators()

    def _build_locators(self) -> None:
        """Create locators; called again whenever the region changes."""

    def refresh_region_from_url(self) -> bool:
        """Re-derive the region from the current URL. Returns True if it changed."""
        detected = parse_region_from_host(self.page.url or "")
        if detected is None or detected.code == self.region.code:
            return False
        self.region = detected
        self._build_locators()
        return True

    async def open(self, path: Optional[str] = None, **goto_kwargs) -> None:
        await self.page.goto(path if path is not None else self.path, **goto_kwargs)
        self.refresh_region_from_url()

    async def goto(self) -> None:
        await self.open()

    def greeting_locator(self) -> Locator:
        return self.page.locator(GREETING_SELECTOR).filter(
            has_text=f"{self.region.translations.greeting},"
        )

    def get_current_url(self) -> str:
        return self.page.url

    @staticmethod
    async def _is_visible_within(locator: Locator, timeout: int) -> bool:
        try:
            await locator.wait_for(state="visible", timeout=timeout)
            return True
        except PlaywrightTimeoutError:
            return False

    @staticmethod
    async def _is_hidden_within(locator: Locator, timeout: int) -> bool:
        try:
            await locator.wait_for(state="hidden", timeout=timeout)
            return True
        except PlaywrightTimeoutError:
            return False

    @classmethod
    async def _wait_for_any(cls, locators: list[Locator], timeout: int) -> bool:
        """True as soon as any locator becomes visible; False if none does within timeout."""
        tasks = [asyncio.ensure_future(cls._is_visible_within(loc, timeout)) for loc in locators]
        try:
            for next_done in asyncio.as_completed(tasks):
                if await next_done:
                    return True
            return False
        finally:
            for task in tasks:
                task.cancel()

    @staticmethod
    async def _visible_text(locator: Locator, timeout: int = 5000) -> str:
        await locator.wait_for(state="visible", timeout=timeout)
        return await locator.text_content() or ""
