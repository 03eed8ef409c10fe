"""
Unit tests for the per-product cart checkout run and the checkout page's
stop-before-payment inspection. Page objects and Playwright are mocked.
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from suite.data_loader import ProductTestData, ShippingAddress
from suite.errors import FlowStepError
from suite.flow_config import CartCheckoutConfig, FlowPaths
from suite.flows.checkout import run_cart_checkout_product
from suite.pages.checkout import CheckoutPage, CheckoutValidationResult

PRODUCT = ProductTestData(
    id="pb-8x8",
    name="Photo Book 8x8",
    category="photo-books",
    url="/photo-books-q/",
)

ADDRESS = ShippingAddress(
    first_name="Ada",
    last_name="Lovelace",
    email="qa@example.com",
    phone="07700900000",
    address_line1="1 Test Street",
    city="London",
    state="Greater London",
    postal_code="SW1A 1AA",
    country="GB",
)


@pytest.fixture
def checkout_config(tmp_path):
    return CartCheckoutConfig(
        batch_start=1,
        batch_size=5,
        products_dir=tmp_path / "data",
        checkout_data_file=tmp_path / "data" / "checkout-data.json",
        paths=FlowPaths.under(tmp_path / "cart-checkout"),
    )


@pytest.fixture
def pages():
    """Patch the three page objects the flow builds; yields their instances."""
    product_page = MagicMock()
    product_page.goto = AsyncMock()
    product_page.wait_for_product_page_load = AsyncMock(return_value=True)
    product_page.has_direct_add_to_cart = AsyncMock(return_value=True)
    product_page.has_designer_flow = AsyncMock(return_value=False)
    product_page.add_to_cart = AsyncMock()
    product_page.go_to_cart = AsyncMock()

    cart_page = MagicMock()
    cart_page.wait_for_cart_load = AsyncMock()
    cart_page.is_cart_empty = AsyncMock(return_value=False)
    cart_page.proceed_to_checkout = AsyncMock()

    checkout_page = MagicMock()
    checkout_page.wait_for_checkout_load = AsyncMock()
    checkout_page.fill_shipping_address = AsyncMock()
    checkout_page.select_shipping_method = AsyncMock()
    checkout_page.stop_before_payment = AsyncMock(
        return_value=CheckoutValidationResult(
            success=True,
            form_filled=True,
            order_summary_visible=True,
            payment_section_reached=True,
            screenshot_path="checkout-state.png",
        )
    )

    with (
        patch("suite.flows.checkout.ProductPage", return_value=product_page),
        patch("suite.flows.checkout.CartPage", return_value=cart_page),
        patch("suite.flows.checkout.CheckoutPage", return_value=checkout_page),
    ):
        yield product_page, cart_page, checkout_page


def _browser_page() -> MagicMock:
    page = MagicMock()
    page.url = "https://www.printerpix.co.uk/"
    page.screenshot = AsyncMock()
    return page


# --- run_cart_checkout_product ---


@pytest.mark.asyncio
async def test_checkout_run_stops_before_payment(pages, checkout_config):
    product_page, _, checkout_page = pages

    result = await run_cart_checkout_product(
        _browser_page(), PRODUCT, 1, "GB", ADDRESS, checkout_config
    )

    assert result.success is True
    assert result.error is None
    assert result.checkpoints.stopped_before_payment is True
    assert result.screenshot_path == "checkout-state.png"
    product_page.goto.assert_awaited_once_with("https://www.printerpix.co.uk/photo-books-q/")
    checkout_page.fill_shipping_address.assert_awaited_once_with(ADDRESS)
    checkout_page.stop_before_payment.assert_awaited_once_with(checkout_config.paths.screenshots_dir)


@pytest.mark.asyncio
async def test_missing_payment_section_fails_validation(pages, checkout_config):
    _, _, checkout_page = pages
    checkout_page.stop_before_payment.return_value = CheckoutValidationResult(
        success=False,
        form_filled=True,
        order_summary_visible=True,
        payment_section_reached=False,
        errors=["Payment section not reached"],
    )

    result = await run_cart_checkout_product(
        _browser_page(), PRODUCT, 2, "GB", ADDRESS, checkout_config
    )

    assert result.checkpoints.stopped_before_payment is True
    assert result.success is False
    assert result.error.type == "VALIDATION_FAILED"
    assert result.error.checkpoint == "stoppedBeforePayment"
    assert result.error.message == "Payment section not reached"
    assert result.to_json_dict()["checkpoints"]["stoppedBeforePayment"] is True


@pytest.mark.asyncio
async def test_designer_only_product_is_reported(pages, checkout_config):
    product_page, cart_page, _ = pages
    product_page.has_direct_add_to_cart.return_value = False
    product_page.has_designer_flow.return_value = True

    result = await run_cart_checkout_product(
        _browser_page(), PRODUCT, 3, "GB", ADDRESS, checkout_config
    )

    assert result.success is False
    assert result.error.type == "DESIGNER_FLOW_REQUIRED"
    assert result.checkpoints.product_page_loaded is True
    cart_page.wait_for_cart_load.assert_not_awaited()


@pytest.mark.asyncio
async def test_step_error_records_last_checkpoint_and_screenshot(pages, checkout_config):
    _, _, checkout_page = pages
    checkout_page.wait_for_checkout_load.side_effect = FlowStepError(
        "CheckoutLoadError", "Checkout form never appeared"
    )
    page = _browser_page()

    result = await run_cart_checkout_product(page, PRODUCT, 4, "GB", ADDRESS, checkout_config)

    assert result.success is False
    assert result.error.checkpoint == "cartPageLoaded"
    assert result.checkpoints.stopped_before_payment is False
    page.screenshot.assert_awaited_once()
    assert Path(result.screenshot_path).name.startswith("error-GB-4-")


@pytest.mark.asyncio
async def test_empty_cart_is_reported(pages, checkout_config):
    _, cart_page, checkout_page = pages
    cart_page.is_cart_empty.return_value = True

    result = await run_cart_checkout_product(
        _browser_page(), PRODUCT, 5, "GB", ADDRESS, checkout_config
    )

    assert result.error.type == "EMPTY_CART"
    checkout_page.wait_for_checkout_load.assert_not_awaited()


# --- CheckoutPage.stop_before_payment ---


def _checkout_page(visible_markers: tuple[str, ...], field_value: str = "Ada") -> MagicMock:
    """Page whose locators are visible only when their selector contains a marker."""
    page = MagicMock()
    page.url = "https://www.printerpix.co.uk/checkout"
    page.screenshot = AsyncMock()

    def locator(selector: str) -> MagicMock:
        loc = MagicMock()

        async def wait_for(state="visible", timeout=None):
            if not any(marker in selector for marker in visible_markers):
                raise PlaywrightTimeoutError("not visible")

        loc.wait_for = AsyncMock(side_effect=wait_for)
        loc.input_value = AsyncMock(return_value=field_value)
        loc.all = AsyncMock(return_value=[])
        loc.first = loc
        return loc

    page.locator.side_effect = locator
    return page


@pytest.mark.asyncio
async def test_stop_before_payment_without_payment_section(tmp_path):
    page = _checkout_page(("order-summary",))

    validation = await CheckoutPage(page, "GB").stop_before_payment(tmp_path / "shots")

    assert validation.success is False
    assert validation.form_filled is True
    assert validation.order_summary_visible is True
    assert validation.payment_section_reached is False
    assert validation.errors == ["Payment section not reached"]
    assert Path(validation.screenshot_path).parent == tmp_path / "shots"
    assert Path(validation.screenshot_path).name.startswith("checkout-state-")
    page.screenshot.assert_awaited_once_with(path=validation.screenshot_path, full_page=True)


@pytest.mark.asyncio
async def test_stop_before_payment_all_checks_pass(tmp_path):
    page = _checkout_page(("order-summary", "payment-section"))

    validation = await CheckoutPage(page, "GB").stop_before_payment(tmp_path)

    assert validation.success is True
    assert validation.errors == []


@pytest.mark.asyncio
async def test_stop_before_payment_collects_every_problem(tmp_path):
    page = _checkout_page((), field_value="")
    page.screenshot.side_effect = RuntimeError("page closed")
    error_element = MagicMock()
    error_element.text_content = AsyncMock(return_value="  Postcode is required ")
    checkout = CheckoutPage(page, "GB")
    checkout.form_errors.all = AsyncMock(return_value=[error_element])

    validation = await checkout.stop_before_payment(tmp_path)

    assert validation.errors == [
        "Form not fully filled",
        "Order summary not visible",
        "Payment section not reached",
        "Postcode is required",
    ]
    assert validation.screenshot_path is None
