"""Account registration page."""

from __future__ import annotations

import re
from dataclasses import dataclass

from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from suite.pages.base import BasePage

REGISTRATION_SUCCESS_PATTERN = re.compile(r"/account/edit/")


@dataclass
class RegistrationData:
    first_name: str
    last_name: str
    email: str
    password: str
    accept_terms: bool = True
    subscribe_newsletter: bool = False


class RegisterPage(BasePage):
    path = "/login/register/"

    def _build_locators(self) -> None:
        page = self.page
        t = self.region.translations
        self.first_name_input = page.locator(
            'input[name="firstName"], input[name="first_name"], #firstName'
        )
        self.last_name_input = page.locator('input[name="lastName"], input[name="last_name"], #lastName')
        self.email_input = page.locator('input[type="email"], input[name="email"], #email')
        self.password_input = page.locator('input[type="password"]')
        self.register_button = page.locator(
            'button[type="submit"], button:has-text("Register"), button:has-text("Sign up")'
        )
        self.google_sign_up_button = page.locator("div.button_google_login").first
        self.facebook_sign_up_button = page.locator("button.button_facebook_login")
        self.sign_in_link = page.locator(f'a:has-text("{t.sign_in}"), a:has-text("{t.login}")')
        self.terms_checkbox = page.locator(
            'input[type="checkbox"][name*="terms"], input[type="checkbox"][name*="agree"]'
        )
        self.newsletter_checkbox = page.locator('input[type="checkbox"][name*="newsletter"]')
        self.error_message = page.locator('.error, [role="alert"], .alert-error')
        self.success_message = page.locator('.success, [role="status"], .alert-success')
        self.header_greeting = self.greeting_locator()
        self.password_error = page.locator("#password-error")

    async def register(self, data: RegistrationData) -> None:
        await self.first_name_input.fill(data.first_name)
        await self.last_name_input.fill(data.last_name)
        await self.email_input.fill(data.email)
        await self.password_input.fill(data.password)

        # Checkboxes differ per region; only tick the ones that exist.
        if data.accept_terms and await self.terms_checkbox.count() > 0:
            await self.terms_checkbox.check()
        if data.subscribe_newsletter and await self.newsletter_checkbox.count() > 0:
            await self.newsletter_checkbox.check()

        await self.register_button.click()

    async def click_google_sign_up(self) -> None:
        container = self.page.locator("div.button_google_login")
        await container.wait_for(state="visible", timeout=10000)
        if await container.is_visible():
            await container.click()
        else:
            frame = self.page.frame_locator('iframe[title*="Sign in with Google"]')
            await frame.locator("body").click()

    async def click_facebook_sign_up(self) -> None:
        await self.facebook_sign_up_button.click()

    async def click_sign_in(self) -> None:
        await self.sign_in_link.click()

    async def wait_for_successful_registration(self) -> None:
        await self.page.wait_for_url(REGISTRATION_SUCCESS_PATTERN, timeout=30000)

    async def is_registration_successful(self) -> bool:
        try:
            await self.wait_for_successful_registration()
            return True
        except PlaywrightTimeoutError:
            return False

    async def get_error_message(self) -> str:
        return await self._visible_text(self.error_message)

    async def get_header_greeting(self) -> str:
        return await self._visible_text(self.header_greeting)

    async def verify_header_greeting(self, first_name: str) -> bool:
        try:
            greeting = await self.get_header_greeting()
        except PlaywrightTimeoutError:
            return False
        return f"{self.region.translations.greeting}, {first_name}" in greeting
