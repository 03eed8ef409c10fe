"""Registration page: form, new-account creation, validation and OAuth buttons."""

from __future__ import annotations

import re
import time

import pytest
import pytest_asyncio
from playwright.async_api import expect

from suite.pages.register import RegisterPage, RegistrationData

pytestmark = [pytest.mark.e2e, pytest.mark.auth]

IS_INVALID = "el => !el.validity.valid"


@pytest_asyncio.fixture
async def register_page(page, test_config) -> RegisterPage:
    register_page = RegisterPage(page, test_config.region)
    await register_page.goto()
    return register_page


@pytest.mark.asyncio
async def test_registration_page_displays_form(page, register_page):
    await expect(page).to_have_url(re.compile(r"/login/register/"))
    await expect(register_page.email_input).to_be_visible()
    await expect(register_page.password_input).to_be_visible()
    await expect(register_page.register_button).to_be_visible()


@pytest.mark.asyncio
async def test_register_new_user_greets_by_first_name(register_page):
    first_name = "TestUser"
    await register_page.register(
        RegistrationData(
            first_name=first_name,
            last_name="LastName",
            email=f"e2e.user+{int(time.time() * 1000)}@example.com",
            password="TestPass123",
        )
    )

    assert await register_page.is_registration_successful()
    await register_page.header_greeting.wait_for(state="visible", timeout=5000)
    assert await register_page.verify_header_greeting(first_name)


@pytest.mark.asyncio
async def test_invalid_email_is_rejected_by_form(register_page):
    await register_page.register(
        RegistrationData(first_name="Test", last_name="User", email="invalid-email", password="TestPass123")
    )

    assert await register_page.email_input.evaluate(IS_INVALID)


@pytest.mark.asyncio
async def test_empty_required_fields_are_rejected(register_page):
    await register_page.register_button.click()

    first_name_invalid = await register_page.first_name_input.evaluate(IS_INVALID)
    email_invalid = await register_page.email_input.evaluate(IS_INVALID)
    assert first_name_invalid or email_invalid


@pytest.mark.asyncio
async def test_sign_in_link_opens_sign_in(page, register_page):
    await register_page.click_sign_in()

    await expect(page).to_have_url(re.compile(r"/login/signin/"))


@pytest.mark.asyncio
async def test_google_sign_up_button_visible(register_page):
    await expect(register_page.google_sign_up_button).to_be_visible()


@pytest.mark.asyncio
async def test_facebook_sign_up_button_visible(register_page):
    await expect(register_page.facebook_sign_up_button).to_be_visible()
