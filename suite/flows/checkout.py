"""
Checkout flows: upsell skipping, cart-to-payment walk, and the per-product
cart checkout run that stops before payment.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

from playwright.async_api import Page

from shared.logging import get_logger
from suite.data_loader import ProductTestData, ShippingAddress, build_product_url
from suite.environments import get_base_url
from suite.errors import FlowStepError
from suite.flow_config import CartCheckoutConfig
from suite.health import assert_element_visible, assert_page_healthy
from suite.pages.cart import CartPage
from suite.pages.checkout import CheckoutPage
from suite.pages.product import ProductPage
from suite.regions import RegionConfig, get_region
from suite.results import CartCheckoutTestResult, ErrorInfo

logger = get_logger(__name__)

CART_ITEM_SELECTOR = '.cart-item, .cart_item, [data-testid="cart-item"]'
BEGIN_CHECKOUT_SELECTOR = ".cta_cart--begin-checkout"
CONTINUE_TO_PAYMENT_SELECTOR = ".button_shipping--continue-to-payment"

SKIP_UPSELL_SCRIPT = """() => {
    const noThanks = document.getElementById('no-change-prod');
    if (noThanks) { noThanks.click(); return 'no-thanks'; }
    for (const btn of document.querySelectorAll('button')) {
        if (btn.textContent && btn.textContent.includes('Keep As Is')) { btn.click(); return 'keep-as-is'; }
    }
    return null;
}"""


@dataclass
class CheckoutResult:
    success: bool
    upsells_skipped: int = 0
    reached_payment: bool = False
    screenshots: list[str] = field(default_factory=list)


def _now_ms() -> int:
    return int(time.time() * 1000)


async def handle_upsell_pages(page: Page, max_upsells: int = 15) -> int:
    """Click through upsell offers until the cart is reached. Returns how many were skipped."""
    skipped = 0
    while "/cart" not in page.url and skipped < max_upsells:
        try:
            await page.wait_for_load_state("domcontentloaded", timeout=15000)
        except Exception as e:
            logger.debug("upsell_page_load_wait_failed", error=str(e))
        await asyncio.sleep(1)

        if "/cart" in page.url:
            break

        try:
            clicked = await page.evaluate(SKIP_UPSELL_SCRIPT)
        except Exception as e:
            logger.debug("upsell_skip_failed", error=str(e))
            break
        if not clicked:
            break

        skipped += 1
        logger.info("upsell_skipped", count=skipped, button=clicked)
        await asyncio.sleep(1.5)

    logger.info("upsells_handled", count=skipped)
    return skipped


async def _screenshot(page: Page, directory: Path, name: str) -> str:
    path = directory / name
    await page.screenshot(path=str(path), full_page=True)
    return str(path)


async def complete_checkout_flow(
    page: Page,
    region: RegionConfig | str,
    results_dir: str | Path = "test-results/checkout",
) -> CheckoutResult:
    """Walk cart, shipping and payment pages, health-checking and screenshotting each."""
    region_code = region.code if isinstance(region, RegionConfig) else region.upper()
    directory = Path(results_dir)
    directory.mkdir(parents=True, exist_ok=True)
    screenshots: list[str] = []

    await page.wait_for_url("**/cart**", timeout=30000)
    await assert_page_healthy(page, "Cart Page")
    await assert_element_visible(page, CART_ITEM_SELECTOR, "Cart items")
    screenshots.append(await _screenshot(page, directory, f"cart-{region_code}-{_now_ms()}.png"))

    begin_checkout = page.locator(BEGIN_CHECKOUT_SELECTOR)
    await begin_checkout.wait_for(state="visible", timeout=15000)
    await begin_checkout.click()

    await page.wait_for_url("**/cart/shipping**", timeout=20000)
    await page.wait_for_load_state("domcontentloaded", timeout=15000)
    await assert_page_healthy(page, "Shipping Page")
    await assert_element_visible(page, CONTINUE_TO_PAYMENT_SELECTOR, "Continue to Payment button")
    screenshots.append(await _screenshot(page, directory, f"shipping-{region_code}-{_now_ms()}.png"))

    continue_to_payment = page.locator(CONTINUE_TO_PAYMENT_SELECTOR)
    await continue_to_payment.wait_for(state="visible", timeout=15000)
    await continue_to_payment.click()

    await page.wait_for_url("**/cart/payment**", timeout=20000)
    await page.wait_for_load_state("domcontentloaded", timeout=15000)
    await assert_page_healthy(page, "Payment Page")
    screenshots.append(await _screenshot(page, directory, f"payment-{region_code}-{_now_ms()}.png"))

    logger.info("checkout_reached_payment", region=region_code, screenshots=len(screenshots))
    return CheckoutResult(success=True, reached_payment=True, screenshots=screenshots)


async def run_cart_checkout_product(
    page: Page,
    product: ProductTestData,
    index: int,
    region: RegionConfig | str,
    address: ShippingAddress,
    config: CartCheckoutConfig,
    environment: str = "live",
) -> CartCheckoutTestResult:
    """
    Product page -> cart -> checkout for one product, stopping before payment.

    Never raises: any failure is recorded on the returned result together
    with the last checkpoint that passed.
    """
    if isinstance(region, str):
        region = get_region(region)

    started = time.monotonic()
    result = CartCheckoutTestResult(
        product_url=product.url,
        product_name=product.name,
        region=region.code,
        index=index,
        timestamp=datetime.now(timezone.utc).isoformat(),
    )
    checkpoints = result.checkpoints

    product_page = ProductPage(page, region, config.timeouts)
    cart_page = CartPage(page, region, config.timeouts)
    checkout_page = CheckoutPage(page, region, config.timeouts)

    try:
        await product_page.goto(build_product_url(get_base_url(region, environment), product))
        if not await product_page.wait_for_product_page_load():
            raise FlowStepError("ProductPageLoadError", "No add-to-cart or design button appeared")
        checkpoints.product_page_loaded = True

        if await product_page.has_direct_add_to_cart():
            await product_page.add_to_cart()
            checkpoints.added_to_cart = True
        elif await product_page.has_designer_flow():
            result.error = ErrorInfo(
                type="DESIGNER_FLOW_REQUIRED",
                message="This product requires going through the designer flow",
                checkpoint="addedToCart",
            )
            return result

        await product_page.go_to_cart()
        await cart_page.wait_for_cart_load()
        checkpoints.cart_page_loaded = True

        if await cart_page.is_cart_empty():
            result.error = ErrorInfo(
                type="EMPTY_CART",
                message="Cart is empty after adding product",
                checkpoint="cartPageLoaded",
            )
            return result
        checkpoints.added_to_cart = True

        await cart_page.proceed_to_checkout()
        await checkout_page.wait_for_checkout_load()
        checkpoints.checkout_page_loaded = True

        await checkout_page.fill_shipping_address(address)
        checkpoints.shipping_form_filled = True

        await checkout_page.select_shipping_method(0)
        checkpoints.shipping_method_selected = True

        validation = await checkout_page.stop_before_payment(config.paths.screenshots_dir)
        checkpoints.stopped_before_payment = True
        result.screenshot_path = validation.screenshot_path

        if validation.success:
            result.success = True
        else:
            result.error = ErrorInfo(
                type="VALIDATION_FAILED",
                message="; ".join(validation.errors),
                checkpoint="stoppedBeforePayment",
            )
    except Exception as e:
        last_passed = checkpoints.last_passed()
        result.error = ErrorInfo(
            type=getattr(e, "error_type", None) or type(e).__name__ or "UNKNOWN_ERROR",
            message=str(e) or "Unknown error occurred",
            checkpoint=checkpoints.key_of(last_passed) if last_passed else "none",
        )
        if config.capture_screenshot_on_failure:
            screenshot_path = (
                Path(config.paths.screenshots_dir) / f"error-{region.code}-{index}-{_now_ms()}.png"
            )
            try:
                await page.screenshot(path=str(screenshot_path), full_page=True)
                result.screenshot_path = str(screenshot_path)
            except Exception:
                logger.debug("checkout_error_screenshot_failed", index=index)
        logger.error(
            "cart_checkout_failed",
            index=index,
            product=product.name,
            checkpoint=result.error.checkpoint,
            error=result.error.message,
        )
    finally:
        result.duration = int((time.monotonic() - started) * 1000)

    return result
