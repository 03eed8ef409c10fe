"""Printbox designer journey: product page, theme selection, designer."""

from __future__ import annotations

import asyncio
import re
from dataclasses import dataclass
from typing import Optional

from playwright.async_api import Page

from suite.pages.base import BasePage
from suite.popups import dismiss_cookie_consent, dismiss_klaviyo_popup
from suite.regions import RegionConfig

DESIGN_BUTTON_SELECTOR = (
    "a.link_option_panel_design_url, a.cta-button, "
    'a:has-text("Start My Book"), button:has-text("Start My Book")'
)
PRINTBOX_IFRAME_SELECTOR = 'iframe[src*="printbox"], iframe[src*="getprintbox"]'
THEME_CARD_SELECTOR = "div.bg-white.rounded-\\[4px\\].shadow-md"
THEMES_URL_PATTERN = re.compile(r"/themes/")
DESIGNER_URL_PATTERN = re.compile(r"/qdesigner/")

DESIGNER_UI_SCRIPT = """() => {
    const html = document.body.innerHTML.toLowerCase();
    const keywords = ['designer', 'canvas', 'toolbar', 'printbox', 'editor'];
    return keywords.some(k => html.includes(k)) || document.querySelector('iframe') !== null;
}"""


@dataclass
class DesignerValidation:
    success: bool
    error_popup: bool
    iframe_loaded: bool
    designer_ui_visible: bool
    error_text: Optional[str] = None


class PrintboxDesignerPage(BasePage):
    def __init__(self, page: Page, region: RegionConfig | str | None = None) -> None:
        super().__init__(page, region)

    def _build_locators(self) -> None:
        page = self.page
        self.design_button = page.locator(DESIGN_BUTTON_SELECTOR).first
        self.design_your_own_theme_card = page.locator(THEME_CARD_SELECTOR).first
        self.first_theme_select_button = page.locator(
            f'{THEME_CARD_SELECTOR} p.text-\\[\\#F02480\\].uppercase:has-text("Select")'
        ).first
        self.error_popup = page.locator('div:has-text("ERROR")').first
        self.error_message = page.locator(
            "text=/It seems that some error has occurred|please save your project|undefined|null/i"
        ).first
        self.printbox_iframe = page.locator(PRINTBOX_IFRAME_SELECTOR).first

    async def goto(self, url: str) -> None:  # type: ignore[override]
        await self.open(url, wait_until="domcontentloaded")

    async def wait_for_product_page_load(self, timeout: int = 10000) -> bool:
        try:
            await self.page.wait_for_load_state("networkidle", timeout=timeout / 2)
            await dismiss_cookie_consent(self.page, 3000)
            await asyncio.sleep(1)
            await self.design_button.wait_for(state="visible", timeout=timeout / 2)
            return True
        except Exception:
            return False

    async def click_start_my_book(self) -> None:
        await dismiss_klaviyo_popup(self.page, 6000)
        await asyncio.sleep(0.5)
        await self.design_button.scroll_into_view_if_needed()
        await self.design_button.click()

    async def wait_for_theme_selection_page(self, timeout: int = 5000) -> bool:
        try:
            await self.page.wait_for_url(THEMES_URL_PATTERN, timeout=timeout)
            await self.design_your_own_theme_card.wait_for(state="visible", timeout=3000)
            return True
        except Exception:
            return False

    async def select_first_theme(self) -> None:
        await dismiss_klaviyo_popup(self.page, 6000)
        await asyncio.sleep(0.5)
        await self.first_theme_select_button.click()

    async def wait_for_designer_page(self, timeout: int = 15000) -> bool:
        try:
            await self.page.wait_for_url(DESIGNER_URL_PATTERN, timeout=timeout)
            return True
        except Exception:
            return False

    async def has_error_popup(self) -> bool:
        if await self._is_visible_within(self.error_popup, 2000):
            return True
        return await self._is_visible_within(self.error_message, 1000)

    async def get_error_text(self) -> Optional[str]:
        try:
            if await self._is_visible_within(self.error_popup, 1000):
                return await self.error_popup.text_content()
            if await self._is_visible_within(self.error_message, 1000):
                return await self.error_message.text_content()
        except Exception:
            return None
        return None

    async def is_printbox_iframe_loaded(self) -> bool:
        """An attached iframe only counts once it points somewhere other than about:blank."""
        try:
            await self.printbox_iframe.wait_for(state="attached", timeout=5000)
            src = await self.printbox_iframe.get_attribute("src")
        except Exception:
            return False
        return bool(src and src.strip() and src != "about:blank")

    async def is_designer_ui_visible(self) -> bool:
        try:
            await asyncio.sleep(2)
            return bool(await self.page.evaluate(DESIGNER_UI_SCRIPT))
        except Exception:
            return False

    async def validate_designer(self) -> DesignerValidation:
        error_popup = await self.has_error_popup()
        iframe_loaded = await self.is_printbox_iframe_loaded()
        designer_ui_visible = await self.is_designer_ui_visible()
        error_text = await self.get_error_text() if error_popup else None
        return DesignerValidation(
            success=not error_popup and iframe_loaded and designer_ui_visible,
            error_popup=error_popup,
            iframe_loaded=iframe_loaded,
            designer_ui_visible=designer_ui_visible,
            error_text=error_text,
        )
