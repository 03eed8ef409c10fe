"""
Checkout page: shipping form, shipping method and order summary.

Checkout runs stop at the payment step. Nothing here clicks place-order or
submits payment; `stop_before_payment` only inspects and screenshots the page.
"""

from __future__ import annotations

import asyncio
import re
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from playwright.async_api import Locator, Page

from shared.logging import get_logger
from suite.data_loader import ShippingAddress
from suite.flow_config import CartCheckoutTimeouts
from suite.pages.base import BasePage
from suite.popups import dismiss_cookie_consent, dismiss_klaviyo_popup
from suite.regions import RegionConfig

logger = get_logger(__name__)

CHECKOUT_URL_PATTERN = re.compile(r"/(checkout|secure)")


@dataclass
class OrderSummary:
    subtotal: str = ""
    shipping: str = ""
    tax: str = ""
    total: str = ""


@dataclass
class CheckoutValidationResult:
    success: bool
    form_filled: bool
    order_summary_visible: bool
    payment_section_reached: bool
    errors: list[str] = field(default_factory=list)
    screenshot_path: Optional[str] = None


def _any_of(page: Page, *selectors: str) -> Locator:
    return page.locator(", ".join(selectors))


class CheckoutPage(BasePage):
    path = "/checkout"

    def __init__(
        self,
        page: Page,
        region: RegionConfig | str | None = None,
        timeouts: Optional[CartCheckoutTimeouts] = None,
    ) -> None:
        self.timeouts = timeouts or CartCheckoutTimeouts()
        super().__init__(page, region)

    def _build_locators(self) -> None:
        page = self.page
        self.first_name_input = _any_of(
            page,
            'input[name="firstName"]', 'input[name="first_name"]', 'input[name="firstname"]',
            "#firstName", "#first-name", '[data-testid="firstName"]',
        )
        self.last_name_input = _any_of(
            page,
            'input[name="lastName"]', 'input[name="last_name"]', 'input[name="lastname"]',
            "#lastName", "#last-name", '[data-testid="lastName"]',
        )
        self.email_input = _any_of(
            page, 'input[name="email"]', 'input[type="email"]', "#email", '[data-testid="email"]'
        )
        self.phone_input = _any_of(
            page,
            'input[name="phone"]', 'input[name="telephone"]', 'input[type="tel"]',
            "#phone", "#telephone", '[data-testid="phone"]',
        )
        self.address_line1_input = _any_of(
            page,
            'input[name="address1"]', 'input[name="addressLine1"]', 'input[name="street"]',
            'input[name="address"]', "#address1", "#street-address", '[data-testid="address1"]',
        )
        self.address_line2_input = _any_of(
            page,
            'input[name="address2"]', 'input[name="addressLine2"]', 'input[name="apartment"]',
            "#address2", '[data-testid="address2"]',
        )
        self.city_input = _any_of(page, 'input[name="city"]', "#city", '[data-testid="city"]')
        self.state_input = _any_of(
            page,
            'input[name="state"]', 'input[name="region"]', 'input[name="province"]',
            'select[name="state"]', 'select[name="region"]', "#state", "#region",
            '[data-testid="state"]',
        )
        self.postal_code_input = _any_of(
            page,
            'input[name="postcode"]', 'input[name="postalCode"]', 'input[name="zip"]',
            'input[name="zipcode"]', "#postcode", "#postal-code", "#zip", '[data-testid="postcode"]',
        )
        self.country_select = _any_of(
            page, 'select[name="country"]', "#country", '[data-testid="country"]'
        )
        self.shipping_method_options = _any_of(
            page,
            '[data-testid="shipping-method"]', ".shipping-method",
            'input[name="shipping_method"]', ".shipping-option",
        )
        self.order_summary = _any_of(
            page, '[data-testid="order-summary"]', ".order-summary", "#order-summary", ".checkout-summary"
        )
        self.order_subtotal = _any_of(page, '[data-testid="order-subtotal"]', ".order-subtotal", ".subtotal")
        self.order_shipping = _any_of(page, '[data-testid="order-shipping"]', ".order-shipping", ".shipping-cost")
        self.order_tax = _any_of(page, '[data-testid="order-tax"]', ".order-tax", ".tax-amount")
        self.order_total = _any_of(
            page, '[data-testid="order-total"]', ".order-total", ".total", ".grand-total"
        )
        self.payment_section = _any_of(
            page,
            '[data-testid="payment-section"]', ".payment-section", "#payment-section",
            ".payment-form", "#payment",
        )
        self.form_errors = _any_of(page, ".form-error", ".error-message", ".field-error", '[role="alert"]')

    async def goto(self) -> None:
        await self.open(self.path, timeout=self.timeouts.navigation)
        await dismiss_cookie_consent(self.page, 3000)
        await dismiss_klaviyo_popup(self.page, 3000)

    async def wait_for_checkout_load(self) -> bool:
        return await self._wait_for_any(
            [self.first_name_input.first, self.email_input.first, self.order_summary.first],
            self.timeouts.checkout_page_load,
        )

    async def _fill_if_visible(self, locator: Locator, value: Optional[str]) -> None:
        if not value:
            return
        if await self._is_visible_within(locator.first, 3000):
            await locator.first.fill(value, timeout=self.timeouts.form_fill)

    async def _select_by_label_or_value(self, locator: Locator, value: str) -> None:
        try:
            await locator.select_option(label=value, timeout=self.timeouts.form_fill)
        except Exception:
            await locator.select_option(value=value, timeout=self.timeouts.form_fill)

    async def fill_shipping_address(self, address: ShippingAddress) -> None:
        """Fill only the fields the region's checkout actually renders."""
        await self._fill_if_visible(self.first_name_input, address.first_name)
        await self._fill_if_visible(self.last_name_input, address.last_name)
        await self._fill_if_visible(self.email_input, address.email)
        await self._fill_if_visible(self.phone_input, address.phone)
        await self._fill_if_visible(self.address_line1_input, address.address_line1)
        await self._fill_if_visible(self.address_line2_input, address.address_line2)
        await self._fill_if_visible(self.city_input, address.city)

        state = self.state_input.first
        if await self._is_visible_within(state, 3000):
            tag_name = await state.evaluate("el => el.tagName.toLowerCase()")
            if tag_name == "select":
                await self._select_by_label_or_value(state, address.state)
            else:
                await state.fill(address.state, timeout=self.timeouts.form_fill)

        await self._fill_if_visible(self.postal_code_input, address.postal_code)

        country = self.country_select.first
        if await self._is_visible_within(country, 3000):
            await self._select_by_label_or_value(country, address.country)

    async def select_shipping_method(self, method_index: int = 0) -> bool:
        options = await self.shipping_method_options.all()
        if len(options) <= method_index:
            return False
        await options[method_index].click()
        await asyncio.sleep(1)
        return True

    async def _text_or_empty(self, locator: Locator) -> str:
        try:
            return (await locator.first.text_content() or "").strip()
        except Exception:
            return ""

    async def get_order_summary(self) -> OrderSummary:
        return OrderSummary(
            subtotal=await self._text_or_empty(self.order_subtotal),
            shipping=await self._text_or_empty(self.order_shipping),
            tax=await self._text_or_empty(self.order_tax),
            total=await self._text_or_empty(self.order_total),
        )

    async def get_form_errors(self) -> list[str]:
        errors: list[str] = []
        for element in await self.form_errors.all():
            text = await element.text_content()
            if text and text.strip():
                errors.append(text.strip())
        return errors

    async def validate_form_is_filled(self) -> bool:
        values = []
        for locator in (self.first_name_input, self.last_name_input, self.email_input):
            try:
                values.append(await locator.first.input_value())
            except Exception:
                values.append("")
        return all(values)

    async def is_order_summary_visible(self) -> bool:
        return await self._is_visible_within(self.order_summary.first, 5000)

    async def is_payment_section_visible(self) -> bool:
        return await self._is_visible_within(self.payment_section.first, 5000)

    def is_on_checkout_page(self) -> bool:
        return bool(CHECKOUT_URL_PATTERN.search(self.page.url))

    async def stop_before_payment(self, screenshots_dir: str | Path) -> CheckoutValidationResult:
        """Inspect the filled checkout without submitting anything and take a screenshot."""
        errors: list[str] = []

        form_filled = await self.validate_form_is_filled()
        if not form_filled:
            errors.append("Form not fully filled")

        summary_visible = await self.is_order_summary_visible()
        if not summary_visible:
            errors.append("Order summary not visible")

        payment_reached = await self.is_payment_section_visible()
        if not payment_reached:
            errors.append("Payment section not reached")

        errors.extend(await self.get_form_errors())

        directory = Path(screenshots_dir)
        directory.mkdir(parents=True, exist_ok=True)
        screenshot_path: Optional[str] = str(
            directory / f"checkout-state-{int(time.time() * 1000)}.png"
        )
        try:
            await self.page.screenshot(path=screenshot_path, full_page=True)
        except Exception as e:
            logger.warning("checkout_screenshot_failed", error=str(e))
            screenshot_path = None

        return CheckoutValidationResult(
            success=not errors,
            form_filled=form_filled,
            order_summary_visible=summary_visible,
            payment_section_reached=payment_reached,
            errors=errors,
            screenshot_path=screenshot_path,
        )
