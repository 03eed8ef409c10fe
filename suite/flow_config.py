"""
Per-flow configuration built from environment variables.

Each getter returns a frozen dataclass. Credentials are never part of these
configs; flows obtain them through `suite.flows.auth.get_credentials()`.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return int(raw)


def _results_root() -> Path:
    return Path(os.getenv("RESULTS_DIR", "test-results"))


@dataclass(frozen=True)
class FlowPaths:
    results_dir: Path
    screenshots_dir: Path
    logs_dir: Path
    reports_dir: Path

    @classmethod
    def under(cls, results_dir: Path) -> "FlowPaths":
        return cls(
            results_dir=results_dir,
            screenshots_dir=results_dir / "screenshots",
            logs_dir=results_dir / "logs",
            reports_dir=results_dir / "reports",
        )

    def ensure(self) -> None:
        for path in (self.results_dir, self.screenshots_dir, self.logs_dir, self.reports_dir):
            path.mkdir(parents=True, exist_ok=True)


@dataclass(frozen=True)
class PrintboxTimeouts:
    product_page_load: int = 15000
    theme_page_load: int = 15000
    designer_page_load: int = 45000
    iframe_load: int = 20000
    designer_ui_load: int = 15000
    navigation: int = 45000


@dataclass(frozen=True)
class PrintboxValidation:
    check_error_popup: bool = True
    check_iframe_loaded: bool = True
    check_designer_ui: bool = True
    capture_screenshot_on_failure: bool = True
    capture_console_errors: bool = True


@dataclass(frozen=True)
class PrintboxConfig:
    batch_start: int
    batch_size: int
    batch_refresh_interval: int
    links_file: str
    chunk_id: str
    is_chunk: bool
    paths: FlowPaths
    timeouts: PrintboxTimeouts = field(default_factory=PrintboxTimeouts)
    validation: PrintboxValidation = field(default_factory=PrintboxValidation)


def get_printbox_config() -> PrintboxConfig:
    links_file = os.getenv("CHUNK_FILE") or os.getenv("LINKS_FILE") or "final.json"
    return PrintboxConfig(
        batch_start=_int_env("BATCH_START", 1),
        batch_size=_int_env("BATCH_SIZE", 10),
        batch_refresh_interval=_int_env("BATCH_REFRESH_INTERVAL", 100),
        links_file=links_file,
        chunk_id=os.getenv("CHUNK_ID", "0"),
        is_chunk=bool(os.getenv("CHUNK_FILE")),
        paths=FlowPaths.under(_results_root() / "printbox"),
    )


@dataclass(frozen=True)
class PhotoBooksTimeouts:
    category_page_load: int = 15000
    product_page_load: int = 15000
    theme_page_load: int = 15000
    designer_page_load: int = 45000
    designer_wait_time: int = 5000
    navigation: int = 45000


@dataclass(frozen=True)
class PhotoBooksSelectors:
    category_link: str = 'a[href*="/photo-books/"][class*="link_slide_show_product_category"]'
    create_button: str = 'button:has-text("Create Yours Now"), a:has-text("Create Yours Now")'
    design_theme_button: str = 'div.bg-white.rounded-\\[4px\\]:has-text("Design Your Own Theme")'


@dataclass(frozen=True)
class PhotoBooksConfig:
    batch_start: int
    batch_size: int
    batch_refresh_interval: int
    links_file: str
    chunk_id: str
    paths: FlowPaths
    timeouts: PhotoBooksTimeouts = field(default_factory=PhotoBooksTimeouts)
    selectors: PhotoBooksSelectors = field(default_factory=PhotoBooksSelectors)
    check_error_popup: bool = True
    capture_screenshot_on_failure: bool = True


def get_photo_books_config() -> PhotoBooksConfig:
    links_file = os.getenv("CHUNK_FILE") or os.getenv("LINKS_FILE") or "photo-books.json"
    return PhotoBooksConfig(
        batch_start=_int_env("BATCH_START", 1),
        batch_size=_int_env("BATCH_SIZE", 10),
        batch_refresh_interval=_int_env("BATCH_REFRESH_INTERVAL", 100),
        links_file=links_file,
        chunk_id=os.getenv("CHUNK_ID", "0"),
        paths=FlowPaths.under(_results_root() / "photo-books-optimized"),
    )


@dataclass(frozen=True)
class CartCheckoutTimeouts:
    product_page_load: int = 30000
    add_to_cart_action: int = 15000
    cart_page_load: int = 20000
    checkout_page_load: int = 30000
    form_fill: int = 10000
    navigation: int = 45000


@dataclass(frozen=True)
class CartCheckoutSelectors:
    add_to_cart_button: str = (
        'button:has-text("Add to Cart"), button:has-text("Add to Basket"), '
        '[data-testid="add-to-cart"]'
    )
    cart_icon: str = '[href="/cart"], [data-testid="cart-icon"], .cart-icon'
    cart_count: str = '[data-testid="cart-count"], .cart-count, .cart-badge'
    cart_items: str = '[data-testid="cart-items"], .cart-items, .cart-item-list'
    cart_item_row: str = '[data-testid="cart-item"], .cart-item, .cart-item-row'
    proceed_to_checkout_button: str = (
        'button:has-text("Checkout"), button:has-text("Proceed to Checkout"), '
        '[data-testid="checkout-button"]'
    )
    empty_cart_message: str = '[data-testid="empty-cart"], .empty-cart, :has-text("Your cart is empty")'
    checkout_form: str = 'form[data-testid="checkout-form"], .checkout-form, #checkout-form'
    first_name_input: str = 'input[name="firstName"], input[name="first_name"], #firstName'
    last_name_input: str = 'input[name="lastName"], input[name="last_name"], #lastName'
    email_input: str = 'input[name="email"], input[type="email"], #email'
    phone_input: str = 'input[name="phone"], input[name="telephone"], input[type="tel"], #phone'
    address_line1_input: str = (
        'input[name="address1"], input[name="addressLine1"], input[name="street"], #address1'
    )
    address_line2_input: str = 'input[name="address2"], input[name="addressLine2"], #address2'
    city_input: str = 'input[name="city"], #city'
    state_input: str = 'input[name="state"], input[name="region"], select[name="state"], #state'
    postal_code_input: str = (
        'input[name="postcode"], input[name="postalCode"], input[name="zip"], #postcode'
    )
    country_select: str = 'select[name="country"], #country'
    shipping_method_options: str = (
        '[data-testid="shipping-method"], .shipping-method, input[name="shipping_method"]'
    )
    order_summary: str = '[data-testid="order-summary"], .order-summary, #order-summary'
    payment_section: str = '[data-testid="payment-section"], .payment-section, #payment-section'


@dataclass(frozen=True)
class CartCheckoutConfig:
    batch_start: int
    batch_size: int
    products_dir: Path
    checkout_data_file: Path
    paths: FlowPaths
    timeouts: CartCheckoutTimeouts = field(default_factory=CartCheckoutTimeouts)
    selectors: CartCheckoutSelectors = field(default_factory=CartCheckoutSelectors)
    verify_cart_item_added: bool = True
    verify_checkout_form_filled: bool = True
    capture_screenshot_on_failure: bool = True
    # Checkout runs must never submit payment.
    stop_before_payment: bool = True


def get_cart_checkout_config() -> CartCheckoutConfig:
    products_dir = Path(os.getenv("CART_CHECKOUT_DATA_DIR", "data/cart-checkout"))
    return CartCheckoutConfig(
        batch_start=_int_env("BATCH_START", 1),
        batch_size=_int_env("BATCH_SIZE", 5),
        products_dir=products_dir,
        checkout_data_file=products_dir / "checkout-data.json",
        paths=FlowPaths.under(_results_root() / "cart-checkout"),
    )


@dataclass(frozen=True)
class BatchWindow:
    """1-based inclusive window over a links file, used by the batch link validation."""

    start_index: int
    end_index: Optional[int]
    batch_number: int

    @property
    def size(self) -> Optional[int]:
        if self.end_index is None:
            return None
        return max(0, self.end_index - self.start_index + 1)


def get_batch_window() -> BatchWindow:
    end_raw = os.getenv("END_INDEX")
    return BatchWindow(
        start_index=_int_env("START_INDEX", 1),
        end_index=int(end_raw) if end_raw and end_raw.strip() else None,
        batch_number=_int_env("BATCH_NUMBER", 1),
    )


def get_link_schedule() -> str:
    """Monitor link order from LINK_SCHEDULE: `random` (default) or `shuffle`."""
    value = os.getenv("LINK_SCHEDULE", "random").strip().lower() or "random"
    if value not in ("random", "shuffle"):
        raise ValueError(f"Invalid LINK_SCHEDULE: {value}. Must be 'random' or 'shuffle'.")
    return value
