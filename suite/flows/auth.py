"""
Storefront sign-in shared by every authenticated product flow.

Credentials come from TEST_USER_EMAIL / TEST_USER_PASSWORD only; there is no
fallback account.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from playwright.async_api import Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from shared.config import get_config
from shared.logging import get_logger
from suite.environments import EnvironmentName, get_base_url
from suite.errors import FlowStepError, MissingCredentialsError
from suite.pages.login import LoginPage
from suite.popups import dismiss_cookie_consent, dismiss_klaviyo_popup
from suite.regions import RegionConfig, get_region

logger = get_logger(__name__)


@dataclass(frozen=True)
class Credentials:
    email: str
    password: str

    def __repr__(self) -> str:
        return f"Credentials(email={self.email!r}, password='***')"


@dataclass(frozen=True)
class AuthResult:
    success: bool
    base_url: str
    region: str


def get_credentials() -> Credentials:
    config = get_config()
    if not config.test_user_email or not config.test_user_password:
        raise MissingCredentialsError(
            "TEST_USER_EMAIL and TEST_USER_PASSWORD must be set for authenticated flows"
        )
    return Credentials(email=config.test_user_email, password=config.test_user_password)


async def dismiss_popups(page: Page, timeout: int = 3000) -> None:
    await dismiss_cookie_consent(page, timeout)
    await dismiss_klaviyo_popup(page, timeout)


async def authenticate_user(
    page: Page,
    region: RegionConfig | str,
    credentials: Optional[Credentials] = None,
    environment: EnvironmentName = "live",
) -> AuthResult:
    """
    Sign in from the homepage: dismiss overlays, open the sign-in page and submit.

    A redirect away from the sign-in page counts as success; when it does not
    happen in time the header greeting is checked instead.
    """
    if isinstance(region, str):
        region = get_region(region)
    credentials = credentials or get_credentials()
    base_url = get_base_url(region, environment)

    logger.info("auth_started", region=region.code, base_url=base_url)

    await page.goto(base_url, timeout=30000)
    await dismiss_popups(page, 5000)

    await page.goto(f"{base_url}/login/signin/", timeout=30000)
    await dismiss_popups(page, 3000)

    login_page = LoginPage(page, region)
    await login_page.sign_in(credentials.email, credentials.password)

    try:
        await login_page.wait_for_successful_login()
        logger.info("auth_completed", region=region.code, via="redirect")
    except PlaywrightTimeoutError:
        if not await login_page.is_logged_in():
            raise FlowStepError("LoginError", "User should be logged in") from None
        logger.info("auth_completed", region=region.code, via="greeting")

    return AuthResult(success=True, base_url=base_url, region=region.code)
