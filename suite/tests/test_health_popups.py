"""
Unit tests for page health assertions and overlay dismissal.

No network or browser required (mocked Playwright page/locators).
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from suite.errors import ElementMissingError, NavigationFailedError, PageHealthError
from suite.health import (
    assert_element_visible,
    assert_page_healthy,
    assert_url_contains,
    find_error_indicator,
)
from suite.popups import (
    COOKIEBOT_ALLOW_ALL_SELECTOR,
    COOKIEBOT_DIALOG_SELECTOR,
    KLAVIYO_CLOSE_SELECTORS,
    KLAVIYO_DIALOG_SELECTOR,
    dismiss_cookie_consent,
    dismiss_klaviyo_popup,
    dismiss_popups,
)

HEALTHY_BODY = "Personalised photo books, canvas prints and gifts. " * 3


def _page(body: str = HEALTHY_BODY, title: str = "Photo Books | Printerpix") -> MagicMock:
    page = MagicMock()
    page.url = "https://qa.printerpix.co.uk/photo-books-q/"
    page.wait_for_load_state = AsyncMock()
    page.wait_for_url = AsyncMock()
    page.title = AsyncMock(return_value=title)
    body_locator = MagicMock()
    body_locator.text_content = AsyncMock(return_value=body)
    page.locator.return_value = body_locator
    return page


# --- Health ---


def test_find_error_indicator_case_insensitive():
    assert find_error_indicator("oops: 503 SERVICE UNAVAILABLE") == "503 Service Unavailable"
    assert find_error_indicator("all good") is None


@pytest.mark.asyncio
async def test_healthy_page_passes():
    await assert_page_healthy(_page(), "Photo Books")


@pytest.mark.asyncio
async def test_blank_page_fails():
    with pytest.raises(PageHealthError, match="blank"):
        await assert_page_healthy(_page(body="   "), "Cart Page")


@pytest.mark.asyncio
async def test_error_text_fails():
    body = HEALTHY_BODY + " Something went wrong"
    with pytest.raises(PageHealthError, match="Something went wrong"):
        await assert_page_healthy(_page(body=body), "Cart Page")


@pytest.mark.asyncio
async def test_error_title_fails():
    with pytest.raises(PageHealthError, match="title"):
        await assert_page_healthy(_page(title="503 Maintenance"), "Cart Page")


@pytest.mark.asyncio
async def test_load_state_timeout_is_tolerated():
    page = _page()
    page.wait_for_load_state = AsyncMock(side_effect=PlaywrightTimeoutError("slow"))
    await assert_page_healthy(page, "Cart Page")


@pytest.mark.asyncio
async def test_missing_element_names_selector():
    page = _page()
    locator = MagicMock()
    locator.first.wait_for = AsyncMock(side_effect=PlaywrightTimeoutError("nope"))
    page.locator.return_value = locator

    with pytest.raises(ElementMissingError) as exc_info:
        await assert_element_visible(page, ".cart-item", "Cart items")
    assert ".cart-item" in str(exc_info.value)


@pytest.mark.asyncio
async def test_wrong_url_fails():
    page = _page()
    page.wait_for_url = AsyncMock(side_effect=PlaywrightTimeoutError("nope"))
    with pytest.raises(NavigationFailedError):
        await assert_url_contains(page, "/cart/shipping", "Shipping")
    page.wait_for_url.assert_awaited_once_with("**/cart/shipping**", timeout=15000)


# --- Popups ---


def _popup_page(visible: set[str]) -> tuple[MagicMock, dict[str, MagicMock]]:
    """Page whose locators are visible only for selectors in `visible`."""
    page = MagicMock()
    page.keyboard.press = AsyncMock()
    locators: dict[str, MagicMock] = {}

    def locator(selector: str) -> MagicMock:
        if selector not in locators:
            loc = MagicMock()

            async def wait_for(state="visible", timeout=None, _selector=selector):
                if state == "visible" and _selector not in visible:
                    raise PlaywrightTimeoutError("hidden")

            loc.wait_for = AsyncMock(side_effect=wait_for)
            loc.click = AsyncMock()
            loc.first = loc
            locators[selector] = loc
        return locators[selector]

    page.locator.side_effect = locator
    return page, locators


@pytest.mark.asyncio
@patch("suite.popups.asyncio.sleep", new_callable=AsyncMock)
async def test_klaviyo_absent(mock_sleep):
    page, _ = _popup_page(set())
    assert await dismiss_klaviyo_popup(page, 100) is False


@pytest.mark.asyncio
@patch("suite.popups.asyncio.sleep", new_callable=AsyncMock)
async def test_klaviyo_closed_with_first_visible_button(mock_sleep):
    second = KLAVIYO_CLOSE_SELECTORS[1]
    page, locators = _popup_page({KLAVIYO_DIALOG_SELECTOR, second})

    assert await dismiss_klaviyo_popup(page, 100) is True
    locators[second].click.assert_awaited_once_with(force=True)
    page.keyboard.press.assert_not_awaited()


@pytest.mark.asyncio
@patch("suite.popups.asyncio.sleep", new_callable=AsyncMock)
async def test_klaviyo_falls_back_to_escape(mock_sleep):
    page, _ = _popup_page({KLAVIYO_DIALOG_SELECTOR})
    assert await dismiss_klaviyo_popup(page, 100) is True
    page.keyboard.press.assert_awaited_once_with("Escape")


@pytest.mark.asyncio
@patch("suite.popups.asyncio.sleep", new_callable=AsyncMock)
async def test_cookie_banner_accepted(mock_sleep):
    page, locators = _popup_page({COOKIEBOT_DIALOG_SELECTOR, COOKIEBOT_ALLOW_ALL_SELECTOR})
    assert await dismiss_cookie_consent(page, 100) is True
    locators[COOKIEBOT_ALLOW_ALL_SELECTOR].click.assert_awaited_once_with(force=True)


@pytest.mark.asyncio
@patch("suite.popups.asyncio.sleep", new_callable=AsyncMock)
async def test_cookie_banner_absent(mock_sleep):
    page, _ = _popup_page(set())
    assert await dismiss_cookie_consent(page, 100) is False


@pytest.mark.asyncio
@patch("suite.popups.asyncio.sleep", new_callable=AsyncMock)
async def test_dismissal_without_popups_is_repeatable_noop(mock_sleep):
    page, locators = _popup_page(set())

    for _ in range(5):
        await dismiss_popups(page, 100)
        assert await dismiss_klaviyo_popup(page, 100) is False
        assert await dismiss_cookie_consent(page, 100) is False

    assert all(loc.click.await_count == 0 for loc in locators.values())
    page.keyboard.press.assert_not_awaited()


@pytest.mark.asyncio
@patch("suite.popups.asyncio.sleep", new_callable=AsyncMock)
async def test_dismissal_swallows_page_errors(mock_sleep):
    page = MagicMock()
    page.locator.side_effect = RuntimeError("Target page, context or browser has been closed")

    for _ in range(3):
        assert await dismiss_klaviyo_popup(page, 100) is False
        assert await dismiss_cookie_consent(page, 100) is False
