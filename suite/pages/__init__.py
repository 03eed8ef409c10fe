"""Page objects for the storefront, one class per page."""

from suite.pages.base import BasePage
from suite.pages.cart import CartItem, CartPage
from suite.pages.checkout import CheckoutPage, CheckoutValidationResult, OrderSummary
from suite.pages.forgot_password import ForgotPasswordPage
from suite.pages.login import LoginPage
from suite.pages.navigation import NavigationPage
from suite.pages.printbox_designer import DesignerValidation, PrintboxDesignerPage
from suite.pages.product import ProductPage
from suite.pages.register import RegisterPage, RegistrationData

__all__ = [
    "BasePage",
    "CartItem",
    "CartPage",
    "CheckoutPage",
    "CheckoutValidationResult",
    "DesignerValidation",
    "ForgotPasswordPage",
    "LoginPage",
    "NavigationPage",
    "OrderSummary",
    "PrintboxDesignerPage",
    "ProductPage",
    "RegisterPage",
    "RegistrationData",
]
