"""
Designer-based photo product flows (photo books and photo calendars).

The full flows design a product from category page to cart with uploaded
fixture images. `validate_photo_book_link` is the lighter batch check that
stops once the designer has opened without an error modal.
"""

from __future__ import annotations

import asyncio
import re
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

from playwright.async_api import Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from shared.logging import get_logger
from suite.environments import EnvironmentName, get_base_url
from suite.errors import FlowStepError
from suite.fixture_images import ensure_fixture_images
from suite.flow_config import PhotoBooksConfig
from suite.flows.checkout import handle_upsell_pages
from suite.flows.printbox import ERROR_MODAL_SELECTOR, capture_failure_screenshot, categorize_error
from suite.health import assert_element_visible, assert_page_healthy
from suite.popups import dismiss_klaviyo_popup
from suite.regions import RegionConfig, get_region
from suite.results import ErrorInfo, PhotoBooksTestResult

logger = get_logger(__name__)

CTA_DESIGN_BUTTON = "#cta-design-button"
PHOTO_BOOKS_CATEGORY_PATH = "/photo-books-q/"
HARDCOVER_PHOTO_BOOK_PATH = "/photo-books/hardcover-photo-book/"
LARGE_HARDCOVER_PHOTO_BOOK_PATH = "/photo-books/large-hardcover-photo-book/"
PHOTO_CALENDARS_CATEGORY_PATH = "/photo-gifts/photo-calendars/"

CALENDAR_PRODUCT_PATHS: dict[str, str] = {
    "GB": "/photo-calendars/wedding-personalised-wall-calendar/",
    "US": "/photo-calendars/personalized-photo-calendars/",
}

THEMES_OR_DESIGNER_URL = re.compile(r"/(themes|qdesigner)/")
DESIGNER_URL = re.compile(r"/(qdesigner|designer)/")
POST_DESIGN_URL = re.compile(r"/(extras|cart|upsell)/")

CALENDAR_IMAGE_COUNT = 13
MAX_CALENDAR_POPUPS = 10


@dataclass
class PhotoProductResult:
    success: bool
    reached_cart: bool = False
    upsells_skipped: int = 0
    screenshots: list[str] = field(default_factory=list)


class _Screenshots:
    def __init__(self, page: Page, directory: Path, region_code: str) -> None:
        self.page = page
        self.directory = directory
        self.region_code = region_code
        self.paths: list[str] = []

    async def take(self, name: str, full_page: bool = True) -> None:
        path = self.directory / f"{name}-{self.region_code}-{int(time.time() * 1000)}.png"
        await self.page.screenshot(path=str(path), full_page=full_page)
        self.paths.append(str(path))


async def _open_and_check(page: Page, url: str, context: str) -> None:
    await page.goto(url, timeout=30000)
    await assert_page_healthy(page, context)
    await dismiss_klaviyo_popup(page, 3000)
    await page.wait_for_load_state("domcontentloaded", timeout=15000)


async def _click_create_button(page: Page) -> None:
    button = page.locator(f"{CTA_DESIGN_BUTTON}:visible").first
    await button.wait_for(state="visible", timeout=15000)
    await button.scroll_into_view_if_needed()
    await button.click()


async def run_photo_book_flow(
    page: Page,
    region: RegionConfig | str,
    results_dir: str | Path = "test-results/photo-books",
    environment: EnvironmentName = "live",
    images_dir: Optional[str | Path] = None,
) -> PhotoProductResult:
    """Hardcover photo book: category, product, theme, auto-create, order, upsells."""
    if isinstance(region, str):
        region = get_region(region)
    base_url = get_base_url(region, environment)
    directory = Path(results_dir)
    directory.mkdir(parents=True, exist_ok=True)
    shots = _Screenshots(page, directory, region.code)

    logger.info("photo_book_flow_started", region=region.code)

    await _open_and_check(page, f"{base_url}{PHOTO_BOOKS_CATEGORY_PATH}", "Photo Books Category Page")
    if "photo-books" not in page.url:
        raise FlowStepError("ProductPageLoadError", f"Expected a photo-books URL, got {page.url}")
    await shots.take("photobooks")

    await _open_and_check(
        page, f"{base_url}{HARDCOVER_PHOTO_BOOK_PATH}", "Hardcover Photo Book Product Page"
    )
    await assert_element_visible(page, CTA_DESIGN_BUTTON, "Create Your Photo Book button")
    await _click_create_button(page)

    await page.wait_for_url(THEMES_OR_DESIGNER_URL, timeout=30000)
    if "/themes/" in page.url:
        await page.wait_for_load_state("domcontentloaded", timeout=15000)
        await dismiss_klaviyo_popup(page, 3000)
        theme = page.locator("text=Classic Black").first
        await theme.wait_for(state="visible", timeout=15000)
        await page.locator("text=Classic Black").locator("xpath=..").locator("text=SELECT").first.click()
        await page.wait_for_url("**/qdesigner/photobook**", timeout=90000)

    await page.wait_for_url("**/qdesigner/photobook**", timeout=30000)
    await shots.take("designer", full_page=False)

    await page.wait_for_load_state("domcontentloaded", timeout=15000)
    await asyncio.sleep(2)

    designer = page.frame_locator("iframe").first
    auto_create = designer.locator(
        '.AddPhotosButton, div[role="button"]:has-text("Auto-Create My Book")'
    ).first
    await auto_create.wait_for(state="visible", timeout=30000)
    await auto_create.click()

    computer = designer.locator("text=Computer").first
    await computer.wait_for(state="visible", timeout=15000)
    await computer.click()

    images = ensure_fixture_images(images_dir)
    await designer.locator('input[type="file"]').set_input_files([str(p) for p in images])
    await asyncio.sleep(2)
    await shots.take("upload", full_page=False)

    magic = designer.locator('.smart-next-step-button, div[role="button"]:has-text("Do the magic")').first
    await magic.wait_for(state="visible", timeout=15000)
    await magic.click()

    await designer.locator(".UserPhotoList").wait_for(state="visible", timeout=120000)
    await shots.take("editor", full_page=False)

    order = designer.locator('div[role="button"]:has-text("Order"), .Button:has-text("Order")').first
    await order.wait_for(state="visible", timeout=15000)
    await order.click()

    checkbox = designer.locator('[data-sid="validationPopupCheckBox"]')
    await checkbox.wait_for(state="visible", timeout=15000)
    await checkbox.click()

    serious_flaws = designer.locator("text=I am aware that there are serious flaws")
    try:
        if await serious_flaws.is_visible():
            await serious_flaws.click()
    except Exception:
        logger.debug("second_validation_checkbox_absent")
    await asyncio.sleep(0.5)

    proceed = designer.locator('[data-sid="validationPopupConfirm"]')
    await proceed.wait_for(state="visible", timeout=5000)
    await proceed.click()

    await page.wait_for_url("**/extras/**", timeout=30000)
    await page.wait_for_load_state("domcontentloaded", timeout=15000)
    await asyncio.sleep(1)
    upsells = await handle_upsell_pages(page)

    logger.info("photo_book_flow_completed", region=region.code, upsells_skipped=upsells)
    return PhotoProductResult(
        success=True,
        reached_cart="/cart" in page.url,
        upsells_skipped=upsells,
        screenshots=shots.paths,
    )


async def _dismiss_calendar_popups(page: Page) -> int:
    """Accept the resolution review modal and decline upgrade popups until neither shows."""
    handled = 0
    review_modal = page.locator('.modal.show .modal-dialog:has-text("Review your project")')
    no_thanks = page.locator("#no-change-prod")
    while handled < MAX_CALENDAR_POPUPS:
        await asyncio.sleep(1)
        try:
            await review_modal.wait_for(state="visible", timeout=1000)
            await page.locator(".modal.show button.btn.confirm.btn-primary").first.click()
            handled += 1
            await asyncio.sleep(2)
            continue
        except PlaywrightTimeoutError:
            pass
        try:
            await no_thanks.wait_for(state="visible", timeout=1000)
            await no_thanks.click()
            handled += 1
            await asyncio.sleep(2)
            continue
        except PlaywrightTimeoutError:
            break
    return handled


async def run_photo_calendar_flow(
    page: Page,
    region: RegionConfig | str,
    results_dir: str | Path = "test-results/photo-calendars",
    environment: EnvironmentName = "live",
    images_dir: Optional[str | Path] = None,
) -> PhotoProductResult:
    """Wall calendar: category, product, theme, Uploadcare upload, add to cart, upsells."""
    if isinstance(region, str):
        region = get_region(region)
    base_url = get_base_url(region, environment)
    directory = Path(results_dir)
    directory.mkdir(parents=True, exist_ok=True)
    shots = _Screenshots(page, directory, region.code)

    logger.info("photo_calendar_flow_started", region=region.code)

    await _open_and_check(
        page, f"{base_url}{PHOTO_CALENDARS_CATEGORY_PATH}", "Photo Calendars Category Page"
    )
    await shots.take("calendars-category")

    product_path = CALENDAR_PRODUCT_PATHS.get(region.code, CALENDAR_PRODUCT_PATHS["GB"])
    await _open_and_check(page, f"{base_url}{product_path}", "Calendar Product Page")
    await assert_element_visible(page, CTA_DESIGN_BUTTON, "Create Your Calendar button")
    await shots.take("calendars-product")
    await _click_create_button(page)

    await page.wait_for_url("**/themes/**", timeout=30000)
    await page.wait_for_load_state("domcontentloaded", timeout=15000)
    await dismiss_klaviyo_popup(page, 3000)
    await shots.take("calendars-themes")

    try:
        await page.wait_for_selector('img[src*="theme"], .theme-card, [class*="theme"]', timeout=15000)
    except Exception:
        logger.debug("calendar_theme_cards_not_detected")
    await asyncio.sleep(2)
    await page.evaluate("() => window.scrollBy(0, 300)")
    await asyncio.sleep(1)

    select_button = page.locator('p.text-\\[\\#F02480\\]:has-text("Select")').first
    await select_button.wait_for(state="visible", timeout=15000)
    await select_button.locator("xpath=..").click()

    await page.wait_for_url(DESIGNER_URL, timeout=90000)
    await page.wait_for_load_state("domcontentloaded", timeout=15000)
    await asyncio.sleep(2)
    await shots.take("calendars-designer", full_page=False)

    await asyncio.sleep(3)
    await page.locator('.uploadcare--panel, [class*="uploadcare"]').first.wait_for(
        state="visible", timeout=15000
    )

    images = ensure_fixture_images(images_dir)[:CALENDAR_IMAGE_COUNT]
    upload_button = page.locator(
        'button:has-text("Upload Your Photos"), .uploadcare--tab__action-button'
    ).first
    async with page.expect_file_chooser(timeout=15000) as chooser_info:
        await upload_button.click()
    chooser = await chooser_info.value
    await chooser.set_files([str(p) for p in images])
    await asyncio.sleep(5)
    await shots.take("calendars-upload", full_page=False)

    add_button = page.locator(
        '.uploadcare--dialog button:has-text("Add"), .uploadcare--panel button:has-text("Add")'
    ).first
    await add_button.wait_for(state="visible", timeout=15000)
    await add_button.click()

    await asyncio.sleep(5)
    await shots.take("calendars-editor", full_page=False)

    add_to_cart = page.locator('button:has-text("ADD TO CART"), #custom-pp-design-btn').first
    await add_to_cart.wait_for(state="visible", timeout=15000)
    await add_to_cart.click()
    await asyncio.sleep(2)

    popups = await _dismiss_calendar_popups(page)
    logger.info("calendar_popups_handled", count=popups)

    await asyncio.sleep(2)
    await page.wait_for_url(POST_DESIGN_URL, timeout=30000)

    upsells = 0
    if "/cart" not in page.url:
        await page.wait_for_load_state("domcontentloaded", timeout=15000)
        await asyncio.sleep(1)
        upsells = await handle_upsell_pages(page)

    logger.info("photo_calendar_flow_completed", region=region.code, upsells_skipped=upsells)
    return PhotoProductResult(
        success=True,
        reached_cart="/cart" in page.url,
        upsells_skipped=upsells,
        screenshots=shots.paths,
    )


def _origin(url: str) -> str:
    parsed = urlparse(url)
    return f"{parsed.scheme}://{parsed.netloc}"


async def validate_photo_book_link(
    page: Page,
    url: str,
    index: int,
    config: PhotoBooksConfig,
    product_path: str = LARGE_HARDCOVER_PHOTO_BOOK_PATH,
) -> PhotoBooksTestResult:
    """
    Landing link -> product -> themes -> designer, on a session that is already
    signed in with overlays dismissed. Never raises.
    """
    started = time.monotonic()
    result = PhotoBooksTestResult(
        url=url, index=index, timestamp=datetime.now(timezone.utc).isoformat()
    )
    checkpoints = result.checkpoints
    timeouts = config.timeouts
    origin = _origin(url)

    try:
        await page.goto(url, wait_until="domcontentloaded", timeout=timeouts.category_page_load)
        await dismiss_klaviyo_popup(page, 3000)
        checkpoints.category_page_loaded = True

        await page.goto(
            f"{origin}{product_path}", wait_until="domcontentloaded", timeout=timeouts.product_page_load
        )
        checkpoints.category_selected = True

        await asyncio.sleep(2)
        await dismiss_klaviyo_popup(page, 2000)
        href = await page.locator(CTA_DESIGN_BUTTON).first.get_attribute("href")
        if not href:
            raise RuntimeError("Product page did not load - Create Yours Now button href not found")
        checkpoints.product_page_loaded = True

        await page.goto(f"{origin}{href}", wait_until="domcontentloaded", timeout=timeouts.navigation)
        await page.wait_for_url("**/themes/**", timeout=timeouts.theme_page_load)
        checkpoints.theme_page_loaded = True

        await asyncio.sleep(1.5)
        own_theme = page.locator(config.selectors.design_theme_button).first
        await own_theme.wait_for(state="visible", timeout=10000)
        await own_theme.scroll_into_view_if_needed()
        await own_theme.click()

        await page.wait_for_url("**/qdesigner/photobook**", timeout=timeouts.designer_page_load)
        checkpoints.designer_page_loaded = True
        result.final_url = page.url

        if config.check_error_popup:
            await asyncio.sleep(2)
            error_modal = page.locator(ERROR_MODAL_SELECTOR)
            try:
                modal_visible = await error_modal.is_visible()
            except Exception:
                modal_visible = False
            if modal_visible:
                result.error_text = await error_modal.locator(".popup-content-wrapper").text_content()
                raise RuntimeError(f"Designer error popup appeared: {result.error_text}")
        checkpoints.error_popup_absent = True

        result.success = True
    except Exception as e:
        message = str(e) or "Unknown error"
        failed_at = checkpoints.first_unset()
        result.error = ErrorInfo(
            type=categorize_error(message),
            message=message,
            checkpoint=checkpoints.key_of(failed_at) if failed_at else "Unknown",
        )
        logger.warning("photo_book_link_failed", index=index, url=url, checkpoint=result.error.checkpoint)
        if config.capture_screenshot_on_failure:
            result.screenshot_path = await capture_failure_screenshot(
                page, index, url, config.paths.screenshots_dir
            )
    finally:
        result.duration = int((time.monotonic() - started) * 1000)

    return result
