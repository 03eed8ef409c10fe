"""Reusable multi-page flows built on the page objects."""

from suite.flows.auth import AuthResult, Credentials, authenticate_user, dismiss_popups, get_credentials
from suite.flows.checkout import (
    CheckoutResult,
    complete_checkout_flow,
    handle_upsell_pages,
    run_cart_checkout_product,
)
from suite.flows.photo_products import (
    PhotoProductResult,
    run_photo_book_flow,
    run_photo_calendar_flow,
    validate_photo_book_link,
)
from suite.flows.printbox import (
    capture_failure_screenshot,
    categorize_error,
    clear_session,
    get_failed_checkpoint,
    login_for_batch,
    validate_designer_link_fast,
    validate_product_link,
)

__all__ = [
    "AuthResult",
    "CheckoutResult",
    "Credentials",
    "PhotoProductResult",
    "authenticate_user",
    "capture_failure_screenshot",
    "categorize_error",
    "clear_session",
    "complete_checkout_flow",
    "dismiss_popups",
    "get_credentials",
    "get_failed_checkpoint",
    "handle_upsell_pages",
    "login_for_batch",
    "run_cart_checkout_product",
    "run_photo_book_flow",
    "run_photo_calendar_flow",
    "validate_designer_link_fast",
    "validate_photo_book_link",
    "validate_product_link",
]
