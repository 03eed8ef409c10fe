"""Shopping cart page."""

from __future__ import annotations

import asyncio
import re
from dataclasses import dataclass
from typing import Optional

from playwright.async_api import Page

from suite.flow_config import CartCheckoutTimeouts
from suite.pages.base import BasePage
from suite.popups import dismiss_cookie_consent, dismiss_klaviyo_popup
from suite.regions import RegionConfig

CHECKOUT_URL_PATTERN = re.compile(r"/(checkout|secure)")

CART_ITEM_NAME_SELECTOR = '[data-testid="cart-item-name"], .cart-item-name, .product-name, .item-name'
CART_ITEM_PRICE_SELECTOR = '[data-testid="cart-item-price"], .cart-item-price, .product-price, .item-price'
CART_ITEM_REMOVE_SELECTOR = (
    '[data-testid="remove-item"], .remove-item, button:has-text("Remove"), .cart-item-remove'
)


@dataclass
class CartItem:
    name: str
    quantity: int
    price: str


class CartPage(BasePage):
    path = "/cart"

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
        self.cart_items = page.locator(
            '[data-testid="cart-items"], .cart-items, .cart-item-list, #cart-items'
        )
        self.cart_item_row = page.locator(
            '[data-testid="cart-item"], .cart-item, .cart-item-row, .cart-product'
        )
        self.subtotal_display = page.locator(
            '[data-testid="cart-subtotal"], .cart-subtotal, .subtotal, :has-text("Subtotal") + *'
        )
        self.total_display = page.locator(
            '[data-testid="cart-total"], .cart-total, .order-total, .total'
        )
        self.proceed_to_checkout_button = page.locator(
            'button:has-text("Checkout"), button:has-text("Proceed to Checkout"), '
            'a:has-text("Checkout"), a:has-text("Proceed to Checkout"), '
            '[data-testid="checkout-button"], .checkout-button'
        )
        self.promo_code_input = page.locator(
            'input[name="promo"], input[name="coupon"], input[name="promoCode"], '
            '[data-testid="promo-input"], #promo-code'
        )
        self.apply_promo_code_button = page.locator(
            'button:has-text("Apply"), [data-testid="apply-promo"]'
        )
        self.empty_cart_message = page.locator(
            '[data-testid="empty-cart"], .empty-cart, '
            ':has-text("Your cart is empty"), :has-text("Your basket is empty")'
        )

    async def goto(self) -> None:
        await self.open(self.path, timeout=self.timeouts.navigation)
        await dismiss_cookie_consent(self.page, 3000)
        await dismiss_klaviyo_popup(self.page, 3000)

    async def wait_for_cart_load(self) -> bool:
        return await self._wait_for_any(
            [
                self.cart_item_row.first,
                self.empty_cart_message.first,
                self.proceed_to_checkout_button.first,
            ],
            self.timeouts.cart_page_load,
        )

    async def is_cart_empty(self) -> bool:
        if await self._is_visible_within(self.empty_cart_message.first, 3000):
            return True
        return await self.get_cart_item_count() == 0

    async def get_cart_item_count(self) -> int:
        try:
            return await self.cart_item_row.count()
        except Exception:
            return 0

    async def get_cart_items(self) -> list[CartItem]:
        items: list[CartItem] = []
        for i in range(await self.get_cart_item_count()):
            row = self.cart_item_row.nth(i)
            try:
                name = await row.locator(CART_ITEM_NAME_SELECTOR).first.text_content() or ""
            except Exception:
                name = ""
            try:
                price = await row.locator(CART_ITEM_PRICE_SELECTOR).first.text_content() or ""
            except Exception:
                price = ""
            try:
                quantity_raw = await row.locator('input[name="quantity"]').input_value()
            except Exception:
                quantity_raw = "1"
            quantity = int(quantity_raw) if quantity_raw.strip().isdigit() else 1
            items.append(CartItem(name=name.strip(), quantity=quantity or 1, price=price.strip()))
        return items

    async def update_quantity(self, item_index: int, quantity: int) -> None:
        row = self.cart_item_row.nth(item_index)
        await row.locator('input[name="quantity"], .quantity-input').fill(str(quantity))
        update_button = row.locator('button:has-text("Update")')
        if await self._is_visible_within(update_button, 2000):
            await update_button.click()
        await asyncio.sleep(1)

    async def remove_item(self, item_index: int) -> None:
        row = self.cart_item_row.nth(item_index)
        await row.locator(CART_ITEM_REMOVE_SELECTOR).first.click()
        await asyncio.sleep(2)

    async def get_subtotal(self) -> str:
        try:
            return (await self.subtotal_display.first.text_content() or "").strip()
        except Exception:
            return ""

    async def get_total(self) -> str:
        try:
            return (await self.total_display.first.text_content() or "").strip()
        except Exception:
            return ""

    async def apply_promo_code(self, code: str) -> bool:
        if not await self._is_visible_within(self.promo_code_input, 3000):
            return False
        await self.promo_code_input.fill(code)
        await self.apply_promo_code_button.click()
        await asyncio.sleep(2)
        return True

    async def proceed_to_checkout(self) -> None:
        await self.proceed_to_checkout_button.first.click(timeout=self.timeouts.add_to_cart_action)
        await self.page.wait_for_url(CHECKOUT_URL_PATTERN, timeout=self.timeouts.navigation)

    def is_cart_page(self) -> bool:
        return "/cart" in self.page.url
