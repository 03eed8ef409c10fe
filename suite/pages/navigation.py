"""Header navigation: homepage load, burger menu and category links."""

from __future__ import annotations

import asyncio

from shared.logging import get_logger
from suite.navigation_links import (
    MENU_BURGER_SELECTOR,
    NAV_CONTAINER_SELECTOR,
    NavigationLink,
)
from suite.pages.base import BasePage
from suite.results import Viewport

logger = get_logger(__name__)

DEFAULT_VIEWPORT = {"width": 1280, "height": 720}


class NavigationPage(BasePage):
    def _build_locators(self) -> None:
        self.menu_burger = self.page.locator(MENU_BURGER_SELECTOR).first
        self.navigation_container = self.page.locator(NAV_CONTAINER_SELECTOR).first

    async def go_to_homepage(self, base_url: str) -> None:
        await self.page.goto(base_url, wait_until="domcontentloaded", timeout=30000)
        self.refresh_region_from_url()
        await asyncio.sleep(0.5)

    async def open_menu(self) -> bool:
        try:
            if await self.navigation_container.is_visible():
                return True
            await self.menu_burger.click(timeout=5000)
            await self.navigation_container.wait_for(state="visible", timeout=3000)
            return True
        except Exception as e:
            logger.warning("navigation_menu_open_failed", error=str(e))
            return False

    async def navigate_to_link(self, link: NavigationLink, base_url: str) -> None:
        """Go straight to the category URL instead of clicking through the menu."""
        await self.page.goto(
            f"{base_url.rstrip('/')}{link.url}", wait_until="domcontentloaded", timeout=30000
        )
        await asyncio.sleep(2)

    async def click_navigation_link(self, link: NavigationLink) -> None:
        await self.open_menu()
        selector = link.selector or f'nav a[href="{link.url}"]'
        await self.page.locator(selector).first.click(timeout=5000)
        await self.page.wait_for_load_state("domcontentloaded", timeout=30000)

    async def get_viewport(self) -> Viewport:
        size = self.page.viewport_size or DEFAULT_VIEWPORT
        return Viewport(width=size["width"], height=size["height"])

    async def get_page_height(self) -> int:
        try:
            return int(await self.page.evaluate("() => document.body.scrollHeight"))
        except Exception:
            return 0

    async def wait_for_page_ready(self, timeout: int = 10000) -> None:
        await self.page.wait_for_load_state("domcontentloaded", timeout=timeout)
        await asyncio.sleep(1)
