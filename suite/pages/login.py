"""Sign-in page and the header account menu (greeting, sign out)."""

from __future__ import annotations

import asyncio
import re

from playwright.async_api import BrowserContext
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from shared.logging import get_logger
from suite.pages.base import BasePage
from suite.popups import dismiss_klaviyo_popup

logger = get_logger(__name__)

GOOGLE_IFRAME_SELECTOR = 'iframe[title*="Sign in with Google"]'
GOOGLE_CONTAINER_SELECTOR = "div.button_google_login"
GOOGLE_NEXT_BUTTON_SELECTOR = 'button[jsname="LgbsSe"]:has-text("Next")'

LOGIN_REDIRECT_PATTERN = re.compile(r"/(account|dashboard|home|$)")
ACCOUNT_PATTERN = re.compile(r"/account")


class LoginPage(BasePage):
    path = "/login/signin/"

    def _build_locators(self) -> None:
        page = self.page
        t = self.region.translations
        self.email_input = page.locator('input[type="email"], input[name="email"], #email')
        self.password_input = page.locator('input[type="password"], input[name="password"], #password')
        self.sign_in_button = page.locator('button[type="submit"], button:has-text("Login")')
        self.google_sign_in_button = page.locator(GOOGLE_CONTAINER_SELECTOR).first
        self.facebook_sign_in_button = page.locator("button.button_facebook_login")
        self.forgot_password_link = page.locator(f'div.cursor-pointer:has-text("{t.forgot_password}")')
        self.register_link = page.locator(
            'a:has-text("Looking to create a new account?"), a.link_login_section--register'
        )
        self.error_message = page.locator('.error, [role="alert"], .alert-error')
        self.success_message = page.locator('.success, [role="status"], .alert-success')
        self.user_greeting = self.greeting_locator()
        self.sign_out_menu_item = page.locator(
            f'a:has-text("{t.sign_out}"), button:has-text("{t.sign_out}")'
        )
        self.sign_in_link = page.locator(
            f'a:has-text("{t.sign_in}"), button:has-text("{t.sign_in}"), a:has-text("{t.login}")'
        )

    async def sign_in(self, email: str, password: str) -> None:
        await self.email_input.fill(email)
        await self.password_input.fill(password)
        await self.sign_in_button.click()

    async def click_google_sign_in(self) -> None:
        """Click the Google button inside its iframe, falling back to the container div."""
        container = self.page.locator(GOOGLE_CONTAINER_SELECTOR)
        await container.wait_for(state="visible", timeout=10000)
        await asyncio.sleep(1.5)

        if await self.page.locator(GOOGLE_IFRAME_SELECTOR).count() > 0:
            try:
                frame = self.page.frame_locator(GOOGLE_IFRAME_SELECTOR).first
                button = frame.locator('div[role="button"]').first
                await button.wait_for(state="visible", timeout=5000)
                await button.click()
                return
            except PlaywrightTimeoutError:
                logger.debug("google_iframe_click_failed")

        await container.click()

    async def click_facebook_sign_in(self) -> None:
        await self.facebook_sign_in_button.click()

    async def click_forgot_password(self) -> None:
        await self.forgot_password_link.click()

    async def click_register(self) -> None:
        await self.register_link.click()

    async def hover_user_greeting(self) -> None:
        await dismiss_klaviyo_popup(self.page, 6000)
        await self.user_greeting.hover()

    async def click_sign_out(self) -> None:
        await dismiss_klaviyo_popup(self.page, 8000)
        await self.hover_user_greeting()
        await self.sign_out_menu_item.wait_for(state="visible", timeout=10000)
        try:
            await self.sign_out_menu_item.click(timeout=5000)
        except PlaywrightTimeoutError:
            # A late popup can intercept the click; clear it and force through once.
            await dismiss_klaviyo_popup(self.page, 3000)
            await self.sign_out_menu_item.click(force=True)

    async def is_logged_in(self) -> bool:
        return await self._is_visible_within(self.user_greeting, 5000)

    async def is_logged_out(self) -> bool:
        return await self._is_visible_within(self.sign_in_link, 5000)

    async def wait_for_successful_login(self) -> None:
        await self.page.wait_for_url(LOGIN_REDIRECT_PATTERN, timeout=30000)
        await self.user_greeting.wait_for(state="visible", timeout=30000)

    async def get_error_message(self) -> str:
        return await self._visible_text(self.error_message)

    async def sign_in_with_google(self, context: BrowserContext, email: str, password: str) -> None:
        async with context.expect_page() as popup_info:
            await self.click_google_sign_in()
        popup = await popup_info.value
        await popup.wait_for_load_state("load")

        email_field = popup.locator('input[type="email"]')
        if await self._is_visible_within(email_field, 5000):
            await email_field.fill(email)
            await popup.locator(GOOGLE_NEXT_BUTTON_SELECTOR).click()
            await popup.wait_for_load_state("networkidle")

            password_field = popup.locator('input[type="password"]')
            await password_field.wait_for(state="visible", timeout=10000)
            await password_field.fill(password)

            next_button = popup.locator(GOOGLE_NEXT_BUTTON_SELECTOR)
            await next_button.wait_for(state="visible", timeout=10000)
            await next_button.click()

        await self.page.wait_for_url(ACCOUNT_PATTERN, timeout=30000)
