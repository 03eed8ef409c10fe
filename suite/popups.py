"""
Dismissal of the storefront's marketing popup (Klaviyo) and cookie banner (Cookiebot).

Both overlays can intercept clicks on header elements, so flows call these
after every navigation. Every helper is a no-op when its overlay is absent
and never raises.
"""

from __future__ import annotations

import asyncio

from playwright.async_api import Locator, Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from shared.logging import get_logger

logger = get_logger(__name__)

KLAVIYO_DIALOG_SELECTOR = 'div[role="dialog"][aria-modal="true"][aria-label="POPUP Form"]'

# Most specific first; the hashed class names come from the live Klaviyo markup.
KLAVIYO_CLOSE_SELECTORS: tuple[str, ...] = (
    'div[role="dialog"][aria-modal="true"] button[aria-label="Close dialog"]',
    'div[role="dialog"][aria-modal="true"] .klaviyo-close-form',
    'button[aria-label="Close dialog"]',
    ".klaviyo-close-form",
    "button.needsclick.go3894874857",
    'form[action*="klaviyo"] button[aria-label="Close dialog"]',
    ".needsclick.kl-private-reset-css-Xuajs1 button",
)

KLAVIYO_CLOSE_WAIT_MS = 1000
KLAVIYO_HIDDEN_TIMEOUT_MS = 5000
KLAVIYO_SETTLE_MS = 1000

COOKIEBOT_DIALOG_SELECTOR = "#CybotCookiebotDialog"
COOKIEBOT_ALLOW_ALL_SELECTOR = "button#CybotCookiebotDialogBodyLevelButtonLevelOptinAllowAll"
COOKIEBOT_MAX_WAIT_MS = 3000
COOKIEBOT_SETTLE_MS = 500


async def _appears(locator: Locator, timeout: int) -> bool:
    try:
        await locator.wait_for(state="visible", timeout=timeout)
        return True
    except PlaywrightTimeoutError:
        return False


async def dismiss_klaviyo_popup(page: Page, timeout: int = 5000) -> bool:
    """
    Close the Klaviyo signup dialog if it shows up within `timeout` ms.

    Returns True when the dialog was present and a close action was taken.
    """
    try:
        dialog = page.locator(KLAVIYO_DIALOG_SELECTOR)
        if not await _appears(dialog, timeout):
            return False

        for selector in KLAVIYO_CLOSE_SELECTORS:
            close_button = page.locator(selector).first
            if not await _appears(close_button, KLAVIYO_CLOSE_WAIT_MS):
                continue
            await close_button.click(force=True)
            try:
                await dialog.wait_for(state="hidden", timeout=KLAVIYO_HIDDEN_TIMEOUT_MS)
            except PlaywrightTimeoutError:
                logger.debug("klaviyo_popup_still_visible", selector=selector)
            await asyncio.sleep(KLAVIYO_SETTLE_MS / 1000)
            logger.info("popup_dismissed", popup="klaviyo", selector=selector)
            return True

        await page.keyboard.press("Escape")
        await asyncio.sleep(KLAVIYO_SETTLE_MS / 1000)
        logger.info("popup_dismissed", popup="klaviyo", selector="Escape")
        return True
    except Exception as e:
        logger.debug("klaviyo_popup_dismiss_error", error=str(e))
        return False


async def dismiss_cookie_consent(page: Page, timeout: int = 5000) -> bool:
    """Accept all cookies on the Cookiebot banner. Returns True if the banner was handled."""
    try:
        dialog = page.locator(COOKIEBOT_DIALOG_SELECTOR)
        if not await _appears(dialog, min(timeout, COOKIEBOT_MAX_WAIT_MS)):
            return False

        await asyncio.sleep(COOKIEBOT_SETTLE_MS / 1000)

        allow_all = page.locator(COOKIEBOT_ALLOW_ALL_SELECTOR)
        await allow_all.wait_for(state="visible", timeout=COOKIEBOT_MAX_WAIT_MS)
        await allow_all.click(force=True)

        try:
            await dialog.wait_for(state="hidden", timeout=COOKIEBOT_MAX_WAIT_MS)
            logger.info("popup_dismissed", popup="cookiebot")
        except PlaywrightTimeoutError:
            logger.warning("cookie_dialog_still_visible")

        await asyncio.sleep(COOKIEBOT_SETTLE_MS / 1000)
        return True
    except Exception as e:
        logger.debug("cookie_consent_dismiss_error", error=str(e))
        return False


async def dismiss_popups(page: Page, timeout: int = 3000) -> None:
    """Dismiss the cookie banner, then the Klaviyo popup."""
    await dismiss_cookie_consent(page, timeout)
    await dismiss_klaviyo_popup(page, timeout)
