"""
Per-click page instrumentation for the navigation monitor.

Collects failed responses, console errors and uncaught page errors between
resets, decides whether a category page actually rendered content, and writes
the screenshot and detailed log for failed clicks.
"""

from __future__ import annotations

import asyncio
import json
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from playwright.async_api import ConsoleMessage as PlaywrightConsoleMessage
from playwright.async_api import Page, Response
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from shared.logging import get_logger
from suite.navigation_links import MAIN_CONTENT_SELECTOR, MIN_PAGE_HEIGHT, PRODUCT_ELEMENT_SELECTORS
from suite.results import ConsoleMessage, FailedRequest, NavigationTestResult

logger = get_logger(__name__)

CONTENT_SETTLE_MS = 500
MAIN_CONTENT_TIMEOUT_MS = 3000


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class PageState:
    failed_requests: list[FailedRequest] = field(default_factory=list)
    console_errors: list[ConsoleMessage] = field(default_factory=list)
    page_errors: list[str] = field(default_factory=list)
    listeners_attached: bool = False


def setup_page_monitoring(page: Page, state: PageState) -> None:
    """Attach response/console/pageerror listeners that feed `state`. Idempotent per state."""
    if state.listeners_attached:
        return

    def on_response(response: Response) -> None:
        if response.status >= 400:
            state.failed_requests.append(
                FailedRequest(
                    url=response.url,
                    status=response.status,
                    status_text=response.status_text,
                    timestamp=_now_iso(),
                )
            )

    def on_console(message: PlaywrightConsoleMessage) -> None:
        if message.type == "error":
            state.console_errors.append(
                ConsoleMessage(type=message.type, text=message.text, timestamp=_now_iso())
            )

    def on_page_error(error) -> None:
        state.page_errors.append(getattr(error, "message", None) or str(error))

    page.on("response", on_response)
    page.on("console", on_console)
    page.on("pageerror", on_page_error)
    state.listeners_attached = True


def reset_page_state(state: PageState) -> None:
    state.failed_requests.clear()
    state.console_errors.clear()
    state.page_errors.clear()


@dataclass(frozen=True)
class ContentCheck:
    loaded: bool
    error_details: Optional[str] = None


async def is_content_loaded(page: Page) -> ContentCheck:
    """
    Three-layer blank-page detection:

    1. the `<main class="relative">` wrapper becomes visible,
    2. the document is at least MIN_PAGE_HEIGHT pixels tall,
    3. at least one product-like element exists.
    """
    try:
        await asyncio.sleep(CONTENT_SETTLE_MS / 1000)

        try:
            await page.locator(MAIN_CONTENT_SELECTOR).first.wait_for(
                state="visible", timeout=MAIN_CONTENT_TIMEOUT_MS
            )
        except PlaywrightTimeoutError:
            return ContentCheck(
                False, 'Main content element (<main class="relative">) not visible'
            )

        page_height = await page.evaluate("() => document.body.scrollHeight")
        if page_height < MIN_PAGE_HEIGHT:
            return ContentCheck(
                False,
                f"Page too short: {page_height}px (minimum: {MIN_PAGE_HEIGHT}px) - likely blank screen",
            )

        for selector in PRODUCT_ELEMENT_SELECTORS:
            if await page.locator(selector).count() > 0:
                return ContentCheck(True)

        return ContentCheck(
            False, "No product elements found - page may be blank or content failed to load"
        )
    except Exception as e:
        return ContentCheck(False, f"Content validation error: {e}")


def sanitize_name(name: str) -> str:
    return re.sub(r"[^a-z0-9]", "-", name.lower())


def _file_timestamp(moment: datetime) -> str:
    return re.sub(r"[:.]", "-", moment.isoformat())


async def capture_screenshot(page: Page, link_name: str, screenshots_dir: str | Path) -> str:
    directory = Path(screenshots_dir)
    directory.mkdir(parents=True, exist_ok=True)
    filename = f"{sanitize_name(link_name)}-{_file_timestamp(datetime.now(timezone.utc))}.png"
    path = directory / filename
    await page.screenshot(path=str(path), full_page=True)
    return str(path)


def save_detailed_log(
    result: NavigationTestResult,
    logs_dir: str | Path,
    click_index: Optional[int] = None,
) -> Path:
    """
    Write one JSON log per failed click.

    The click index prefixes the name, keeping one file per click.
    """
    directory = Path(logs_dir)
    directory.mkdir(parents=True, exist_ok=True)
    stamp = _file_timestamp(datetime.fromisoformat(result.timestamp))
    stem = f"{sanitize_name(result.link_name)}-{stamp}"
    if click_index is not None:
        stem = f"{click_index:05d}-{stem}"
    path = directory / f"{stem}.json"
    path.write_text(json.dumps(result.to_json_dict(), indent=2), encoding="utf-8")
    return path
