"""
Printbox designer link validation.

Each product link is walked from the product page through theme selection
(and sign-in when the storefront asks for it) into the Printbox designer,
recording one boolean checkpoint per step. Failures are classified with
`categorize_error` so batch summaries can group them.
"""

from __future__ import annotations

import asyncio
import re
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from playwright.async_api import BrowserContext, Page

from shared.logging import get_logger
from suite.flow_config import PrintboxConfig
from suite.flows.auth import Credentials
from suite.pages.login import LoginPage
from suite.pages.printbox_designer import PrintboxDesignerPage
from suite.popups import dismiss_klaviyo_popup
from suite.results import ErrorInfo, LinkValidationResult, PrintboxCheckpoints, PrintboxTestResult

logger = get_logger(__name__)

# Checked in order; the first keyword hit wins.
ERROR_CATEGORIES: list[tuple[tuple[str, ...], str]] = [
    (("product page", "start my book"), "ProductPageLoadError"),
    (("theme", "select"), "ThemeSelectionError"),
    (("login", "auth"), "LoginError"),
    (("designer page", "qdesigner"), "DesignerPageLoadError"),
    (("error popup",), "ErrorPopupDetected"),
    (("iframe",), "IframeLoadError"),
    (("designer ui", "ui not visible"), "DesignerUIError"),
    (("timeout",), "TimeoutError"),
]

CHECKPOINT_DISPLAY_NAMES: dict[str, str] = {
    "product_page_loaded": "ProductPageLoad",
    "theme_page_loaded": "ThemePageLoad",
    "login_completed": "Login",
    "designer_page_loaded": "DesignerPageLoad",
    "error_popup_absent": "ErrorPopupCheck",
    "iframe_loaded": "IframeLoad",
    "designer_ui_visible": "DesignerUICheck",
}

HAVE_ACCOUNT_SELECTOR = "text=/Have an account already|Login/i"
ERROR_MODAL_SELECTOR = ".ModalsContainer.ErrorPopup"
DESIGN_YOUR_OWN_THEME_SELECTOR = "div.bg-white.rounded-\\[4px\\]"


def categorize_error(message: str) -> str:
    lowered = message.lower()
    for keywords, category in ERROR_CATEGORIES:
        if any(keyword in lowered for keyword in keywords):
            return category
    return "UnknownError"


def get_failed_checkpoint(checkpoints: PrintboxCheckpoints) -> str:
    name = checkpoints.first_unset()
    if name is None:
        return "Unknown"
    return CHECKPOINT_DISPLAY_NAMES.get(name, "Unknown")


def _url_part(url: str) -> str:
    segments = [s for s in url.split("?")[0].split("/") if s]
    return re.sub(r"[^a-zA-Z0-9_-]", "_", "_".join(segments[-2:]))[:50]


async def capture_failure_screenshot(
    page: Page, index: int, url: str, screenshots_dir: str | Path
) -> Optional[str]:
    directory = Path(screenshots_dir)
    try:
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / f"failure_{index}_{_url_part(url)}_{int(time.time() * 1000)}.png"
        await page.screenshot(path=str(path), full_page=True)
    except Exception as e:
        logger.warning("failure_screenshot_failed", index=index, error=str(e))
        return None
    return str(path)


async def _sign_in_from_redirect(page: Page, credentials: Credentials) -> None:
    if "/register/" in page.url:
        try:
            await page.locator(HAVE_ACCOUNT_SELECTOR).first.click(timeout=3000)
            await asyncio.sleep(1)
        except Exception:
            logger.debug("have_account_link_not_found", url=page.url)
    await LoginPage(page).sign_in(credentials.email, credentials.password)
    await asyncio.sleep(2)


async def validate_product_link(
    page: Page,
    url: str,
    index: int,
    config: PrintboxConfig,
    credentials: Credentials,
) -> PrintboxTestResult:
    started = time.monotonic()
    console_errors: list[str] = []

    def on_console(message) -> None:
        if message.type == "error":
            console_errors.append(message.text)

    capture_console = config.validation.capture_console_errors
    if capture_console:
        page.on("console", on_console)

    result = PrintboxTestResult(
        url=url, index=index, timestamp=datetime.now(timezone.utc).isoformat()
    )
    checkpoints = result.checkpoints

    try:
        designer = PrintboxDesignerPage(page)
        logger.info("printbox_link_started", index=index, url=url)
        await designer.goto(url)

        checkpoints.product_page_loaded = await designer.wait_for_product_page_load(
            config.timeouts.product_page_load
        )
        if not checkpoints.product_page_loaded:
            raise RuntimeError('Product page did not load - "Start My Book" button not found')

        await designer.click_start_my_book()
        checkpoints.theme_page_loaded = await designer.wait_for_theme_selection_page(
            config.timeouts.theme_page_load
        )
        if not checkpoints.theme_page_loaded:
            raise RuntimeError("Theme selection page did not load")

        await designer.select_first_theme()
        await asyncio.sleep(2)

        if "/login/" in page.url:
            logger.info("printbox_login_redirect", index=index)
            await _sign_in_from_redirect(page, credentials)
        # No redirect means the session is already signed in.
        checkpoints.login_completed = True

        checkpoints.designer_page_loaded = await designer.wait_for_designer_page(
            config.timeouts.designer_page_load
        )
        if not checkpoints.designer_page_loaded:
            raise RuntimeError("Designer page did not load - URL does not contain /qdesigner/")

        validation = await designer.validate_designer()
        checkpoints.error_popup_absent = not validation.error_popup
        checkpoints.iframe_loaded = validation.iframe_loaded
        checkpoints.designer_ui_visible = validation.designer_ui_visible
        result.error_text = validation.error_text
        result.final_url = designer.get_current_url()
        result.success = validation.success

        if not result.success:
            messages = []
            if validation.error_popup:
                messages.append("Error popup detected")
            if not validation.iframe_loaded:
                messages.append("Printbox iframe not loaded")
            if not validation.designer_ui_visible:
                messages.append("Designer UI not visible")
            raise RuntimeError(", ".join(messages))

        logger.info("printbox_link_passed", index=index)
    except Exception as e:
        message = str(e)
        result.success = False
        result.error = ErrorInfo(
            type=categorize_error(message),
            message=message,
            checkpoint=get_failed_checkpoint(checkpoints),
        )
        logger.warning(
            "printbox_link_failed",
            index=index,
            url=url,
            error_type=result.error.type,
            checkpoint=result.error.checkpoint,
        )
        if config.validation.capture_screenshot_on_failure:
            result.screenshot_path = await capture_failure_screenshot(
                page, index, url, config.paths.screenshots_dir
            )
    finally:
        result.duration = int((time.monotonic() - started) * 1000)
        if capture_console:
            page.remove_listener("console", on_console)
            result.console_errors = console_errors

    return result


async def login_for_batch(page: Page, credentials: Credentials) -> bool:
    try:
        login_page = LoginPage(page)
        await login_page.goto()
        await login_page.sign_in(credentials.email, credentials.password)
        await login_page.wait_for_successful_login()
    except Exception as e:
        logger.error("batch_login_failed", error=str(e))
        return False
    logger.info("batch_login_succeeded")
    return True


async def clear_session(context: BrowserContext) -> None:
    logger.info("session_cleared")
    await context.clear_cookies()
    await context.clear_permissions()


async def validate_designer_link_fast(
    page: Page,
    url: str,
    index: int,
    expected_host: Optional[str] = None,
) -> LinkValidationResult:
    """
    Session-reuse variant for batch runs: the storage state already carries
    consent, popup dismissal and sign-in, so only the designer path is walked.

    `expected_host`, when given, must appear in both the themes and designer URLs.
    """
    started = time.monotonic()
    result = LinkValidationResult(
        url=url, index=index, timestamp=datetime.now(timezone.utc).isoformat()
    )
    step = "ProductPageLoad"

    try:
        await page.goto(url, wait_until="domcontentloaded", timeout=15000)
        await dismiss_klaviyo_popup(page, 3000)

        start_button = page.get_by_role("link", name="Start My Book").first
        await start_button.scroll_into_view_if_needed(timeout=5000)
        await start_button.wait_for(state="visible", timeout=10000)
        try:
            await start_button.click(timeout=5000)
        except Exception:
            logger.debug("start_my_book_click_blocked", index=index)
            await dismiss_klaviyo_popup(page, 3000)
            await start_button.click(force=True)

        step = "ThemePageLoad"
        await page.wait_for_url("**/themes/**", timeout=15000)
        if expected_host and expected_host not in page.url:
            raise RuntimeError(f"Theme page loaded on unexpected host: {page.url}")
        await asyncio.sleep(3)

        own_theme = (
            page.locator(DESIGN_YOUR_OWN_THEME_SELECTOR)
            .filter(has_text="Design Your Own Theme")
            .first
        )
        await own_theme.wait_for(state="visible", timeout=10000)
        await own_theme.scroll_into_view_if_needed()
        await own_theme.click()

        step = "DesignerPageLoad"
        await page.wait_for_url("**/qdesigner/**", timeout=45000)
        if expected_host and expected_host not in page.url:
            raise RuntimeError(f"Designer page loaded on unexpected host: {page.url}")
        await asyncio.sleep(10)

        step = "ErrorPopupCheck"
        error_modal = page.locator(ERROR_MODAL_SELECTOR)
        try:
            modal_visible = await error_modal.is_visible()
        except Exception:
            modal_visible = False
        if modal_visible:
            text = await error_modal.locator(".popup-content-wrapper").text_content()
            result.error_text = text
            raise RuntimeError(f"Designer error popup appeared: {text}")

        result.success = True
        result.final_url = page.url
    except Exception as e:
        message = str(e) or "Unknown error"
        result.error = ErrorInfo(type=categorize_error(message), message=message, checkpoint=step)
        logger.warning("printbox_fast_link_failed", index=index, url=url, checkpoint=step)
    finally:
        result.duration = int((time.monotonic() - started) * 1000)

    return result
