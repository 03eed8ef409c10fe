"""Product detail page: direct add-to-cart products and designer-flow products."""

from __future__ import annotations

import re
from typing import Optional

from playwright.async_api import Page

from suite.flow_config import CartCheckoutTimeouts
from suite.pages.base import BasePage
from suite.popups import dismiss_cookie_consent, dismiss_klaviyo_popup
from suite.regions import RegionConfig

CART_URL_PATTERN = re.compile(r"/cart")


class ProductPage(BasePage):
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
        self.add_to_cart_button = page.locator(
            'button:has-text("Add to Cart"), button:has-text("Add to Basket"), '
            '[data-testid="add-to-cart"], .add-to-cart-button'
        )
        self.buy_now_button = page.locator(
            'button:has-text("Buy Now"), button:has-text("Buy"), [data-testid="buy-now"]'
        )
        self.start_design_button = page.locator(
            'button:has-text("Start"), button:has-text("Create Now"), button:has-text("Design Now"), '
            'a:has-text("Start"), a:has-text("Create Now"), [data-testid="start-design"]'
        )
        self.product_title = page.locator('h1, [data-testid="product-title"]')
        self.product_price = page.locator('.price, [data-testid="product-price"], .product-price')
        self.quantity_input = page.locator(
            'input[name="quantity"], input[type="number"], [data-testid="quantity"]'
        )
        self.size_selector = page.locator('select[name="size"], [data-testid="size-selector"]')
        self.cart_icon = page.locator(
            '[href="/cart"], [data-testid="cart-icon"], .cart-icon, a[aria-label*="cart"]'
        )
        self.cart_count = page.locator('[data-testid="cart-count"], .cart-count, .cart-badge')
        self.mini_cart_popup = page.locator('[data-testid="mini-cart"], .mini-cart, .cart-popup')

    async def goto(self, product_url: str) -> None:  # type: ignore[override]
        await self.open(product_url, timeout=self.timeouts.navigation)
        await self.dismiss_popups()

    async def dismiss_popups(self) -> None:
        await dismiss_cookie_consent(self.page, 5000)
        await dismiss_klaviyo_popup(self.page, 5000)

    async def wait_for_product_page_load(self) -> bool:
        return await self._wait_for_any(
            [
                self.add_to_cart_button.first,
                self.start_design_button.first,
                self.buy_now_button.first,
            ],
            self.timeouts.product_page_load,
        )

    async def has_direct_add_to_cart(self) -> bool:
        return await self._is_visible_within(self.add_to_cart_button.first, 3000)

    async def has_designer_flow(self) -> bool:
        return await self._is_visible_within(self.start_design_button.first, 3000)

    async def add_to_cart(self) -> None:
        await self.add_to_cart_button.first.click(timeout=self.timeouts.add_to_cart_action)
        await self.wait_for_cart_update()

    async def start_design(self) -> None:
        await self.start_design_button.first.click(timeout=self.timeouts.add_to_cart_action)

    async def set_quantity(self, quantity: int) -> None:
        if await self._is_visible_within(self.quantity_input, 3000):
            await self.quantity_input.fill(str(quantity))

    async def select_size(self, size: str) -> None:
        if await self._is_visible_within(self.size_selector, 3000):
            await self.size_selector.select_option(size)

    async def wait_for_cart_update(self) -> None:
        # The cart badge or mini-cart usually shows within a few seconds; cap the wait at 3s.
        await self._wait_for_any([self.cart_count, self.mini_cart_popup], 3000)

    async def get_cart_count(self) -> int:
        try:
            if not await self._is_visible_within(self.cart_count, 3000):
                return 0
            text = (await self.cart_count.text_content() or "0").strip()
            return int(text) if text.isdigit() else 0
        except Exception:
            return 0

    async def go_to_cart(self) -> None:
        await self.cart_icon.first.click(timeout=self.timeouts.add_to_cart_action)
        await self.page.wait_for_url(CART_URL_PATTERN, timeout=self.timeouts.navigation)

    async def get_product_title(self) -> str:
        return (await self.product_title.first.text_content() or "").strip()

    async def get_product_price(self) -> str:
        try:
            return (await self.product_price.first.text_content() or "").strip()
        except Exception:
            return ""

    async def is_product_page(self) -> bool:
        return (
            await self.has_direct_add_to_cart()
            or await self.has_designer_flow()
            or await self._is_visible_within(self.buy_now_button.first, 3000)
        )
