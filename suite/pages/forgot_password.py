"""Forgot-password modal opened from the sign-in page."""

from __future__ import annotations

from playwright.async_api import Locator

from suite.pages.base import BasePage


class ForgotPasswordPage(BasePage):
    path = "/login/signin/"

    def _build_locators(self) -> None:
        page = self.page
        self.modal_overlay = page.locator("div.fixed.flex.items-center.justify-center")
        self.modal = page.locator("#login-modal")
        self.error_message = page.locator('#login-modal p[class*="color-[#b94a48]"]')
        self.forgot_password_wrapper = page.locator(".forgot_password_wrapper")
        self.email_input = page.locator('#login-modal input[name="email"]')
        self.submit_button = page.locator("button.button_forgot_password--submit")
        self.return_to_sign_in_link = page.locator(
            f'.forgot_password_wrapper :has-text("{self.region.translations.return_to_sign_in}")'
        )
        self.success_wrapper = page.locator(".sending_password_link_wrapper")
        self.return_to_sign_in_button = page.locator(
            "button.button_sending_password_link--submit, div.button_sending_password_link--submit"
        )
        self.success_message = page.locator(".sending_password_link_wrapper")

    async def wait_for_modal_to_appear(self) -> None:
        await self.modal.wait_for(state="visible", timeout=5000)
        await self.forgot_password_wrapper.wait_for(state="visible", timeout=5000)

    async def is_modal_visible(self) -> bool:
        return await self._is_visible_within(self.modal, 2000)

    async def is_modal_closed(self) -> bool:
        return await self._is_hidden_within(self.modal, 5000)

    async def fill_email_in_modal(self, email: str) -> None:
        await self.email_input.wait_for(state="visible", timeout=5000)
        await self.email_input.fill(email)

    async def click_send_password_link(self) -> None:
        await self.submit_button.click()

    async def request_password_reset(self, email: str) -> None:
        await self.fill_email_in_modal(email)
        await self.click_send_password_link()

    async def wait_for_success_screen(self) -> None:
        await self.success_wrapper.wait_for(state="visible", timeout=10000)

    async def is_reset_request_successful(self) -> bool:
        return await self._is_visible_within(self.success_wrapper, 10000)

    async def get_success_message(self) -> str:
        return await self._visible_text(self.success_message)

    async def click_return_to_sign_in_link(self) -> None:
        await self.return_to_sign_in_link.click()

    async def click_return_to_sign_in_button(self) -> None:
        await self.return_to_sign_in_button.wait_for(state="visible", timeout=5000)
        await self.return_to_sign_in_button.click()

    def get_email_input(self) -> Locator:
        return self.email_input

    async def get_error_message(self) -> str:
        return await self._visible_text(self.error_message)

    async def is_error_visible(self) -> bool:
        return await self._is_visible_within(self.error_message, 5000)
