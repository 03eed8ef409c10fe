"""Forgot-password modal: reset request, API payload and empty-email validation."""

from __future__ import annotations

import asyncio
import os
import re

import pytest
import pytest_asyncio
from playwright.async_api import expect

from suite.pages.forgot_password import ForgotPasswordPage
from suite.pages.login import LoginPage

pytestmark = [pytest.mark.e2e, pytest.mark.auth]

SEND_PASSWORD_API = "/api/v2.0/account/sendpassword"
UUID_PATTERN = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE)


@pytest.fixture
def reset_email(credentials) -> str:
    """A registered, password-based account; defaults to the test user."""
    return os.getenv("FORGOT_PASSWORD_TEST_EMAIL") or credentials.email


@pytest_asyncio.fixture
async def pages(page, test_config) -> tuple[LoginPage, ForgotPasswordPage]:
    login_page = LoginPage(page, test_config.region)
    await login_page.goto()
    await login_page.click_forgot_password()
    forgot = ForgotPasswordPage(page, test_config.region)
    await forgot.wait_for_modal_to_appear()
    await asyncio.sleep(0.5)
    return login_page, forgot


def _is_send_password(response) -> bool:
    return SEND_PASSWORD_API in response.url


@pytest.mark.asyncio
async def test_password_reset_flow_returns_to_sign_in(page, pages, reset_email):
    _, forgot = pages

    async with page.expect_response(_is_send_password, timeout=15000) as response_info:
        await forgot.request_password_reset(reset_email)
    response = await response_info.value
    assert response.status == 200

    body = await response.json()
    assert body["status"]
    data = body["data"]
    for key in ("successUrl", "customerId", "resetPasswordUrl", "firstName"):
        assert data.get(key), f"{key} missing from reset response"

    await forgot.wait_for_success_screen()
    assert await forgot.is_reset_request_successful()
    assert await forgot.get_success_message()

    await forgot.click_return_to_sign_in_button()
    assert await forgot.is_modal_closed()
    await expect(page).to_have_url(re.compile(r"/login/signin/.*email="))


@pytest.mark.asyncio
async def test_reset_api_response_shape(page, pages, reset_email):
    _, forgot = pages

    async with page.expect_response(_is_send_password, timeout=15000) as response_info:
        await forgot.fill_email_in_modal(reset_email)
        await forgot.click_send_password_link()
    body = await (await response_info.value).json()

    assert body["status"]
    data = body["data"]
    assert "/login/send-password/" in data["successUrl"]
    assert UUID_PATTERN.match(data["customerId"])
    assert "reset-password" in data["resetPasswordUrl"]
    assert data["firstName"]


@pytest.mark.asyncio
async def test_empty_email_shows_localized_error(page, pages):
    login_page, forgot = pages

    await forgot.click_send_password_link()
    await asyncio.sleep(1)

    message = login_page.region.error_messages.enter_email_address
    await expect(page.locator(f'#login-modal p:has-text("{message}")')).to_be_visible(timeout=5000)
