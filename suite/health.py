"""
Page health assertions used after every navigation in the browser tests.

Detects blank pages, 5xx and maintenance pages, bot challenges and network
error pages, and turns missing elements or wrong URLs into failures that
name the selector and the URL.
"""

from __future__ import annotations

from playwright.async_api import Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from shared.logging import get_logger
from suite.errors import ElementMissingError, NavigationFailedError, PageHealthError

logger = get_logger(__name__)

ERROR_INDICATORS: tuple[str, ...] = (
    "500 Internal Server Error",
    "503 Service Unavailable",
    "502 Bad Gateway",
    "504 Gateway Timeout",
    "Something went wrong",
    "Site under maintenance",
    "We are currently performing maintenance",
    "Checking your browser",
    "Access denied",
    "Page not found",
    "This page isn't working",
    "ERR_CONNECTION_REFUSED",
    "ERR_NAME_NOT_RESOLVED",
)

ERROR_TITLES: tuple[str, ...] = ("error", "500", "503", "502", "504", "not found", "maintenance")

MIN_BODY_TEXT_LENGTH = 50


def find_error_indicator(text: str) -> str | None:
    lowered = text.lower()
    for indicator in ERROR_INDICATORS:
        if indicator.lower() in lowered:
            return indicator
    return None


async def assert_page_healthy(page: Page, context: str) -> None:
    try:
        await page.wait_for_load_state("domcontentloaded", timeout=15000)
    except PlaywrightTimeoutError:
        logger.debug("health_check_load_state_timeout", context=context)

    try:
        body_text = await page.locator("body").text_content() or ""
    except Exception:
        body_text = ""

    if len(body_text.strip()) < MIN_BODY_TEXT_LENGTH:
        raise PageHealthError(
            f"[{context}] Page appears blank or failed to load. URL: {page.url}", page.url
        )

    indicator = find_error_indicator(body_text)
    if indicator:
        raise PageHealthError(
            f'[{context}] Error page detected: "{indicator}". URL: {page.url}',
            page.url,
            indicator,
        )

    try:
        title = await page.title()
    except Exception:
        title = ""
    lowered_title = title.lower()
    for error_title in ERROR_TITLES:
        if error_title in lowered_title:
            raise PageHealthError(
                f'[{context}] Error page detected in title: "{title}". URL: {page.url}',
                page.url,
                error_title,
            )

    logger.info("health_check_ok", context=context)


async def assert_element_visible(
    page: Page,
    selector: str,
    description: str,
    timeout: int = 10000,
) -> None:
    try:
        await page.locator(selector).first.wait_for(state="visible", timeout=timeout)
    except PlaywrightTimeoutError:
        raise ElementMissingError(description, selector, page.url) from None


async def assert_url_contains(
    page: Page,
    expected_path: str,
    context: str,
    timeout: int = 15000,
) -> None:
    try:
        await page.wait_for_url(f"**{expected_path}**", timeout=timeout)
    except PlaywrightTimeoutError:
        raise NavigationFailedError(context, expected_path, page.url) from None


async def assert_navigation_successful(page: Page, expected_path: str, context: str) -> None:
    """URL check followed by the page health check; use after every goto."""
    await assert_url_contains(page, expected_path, context)
    await assert_page_healthy(page, context)
