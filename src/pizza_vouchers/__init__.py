"""
Pizza Vouchers - command-line client for pizza.de vouchers.

This package provides tools to:
- Log in to the pizza.de API with the mobile app's password hash
- List the vouchers redeemed on an account
- Redeem new voucher codes
- Print a voucher table with the total remaining value
"""

from .client import PizzaClient
from .errors import (
    ApplicationError,
    AuthenticationFailed,
    LoginCancelled,
    PizzaError,
    TransportError,
    VoucherQueryFailed,
    VoucherRedeemFailed,
)
from .models import ApiError, Credentials, Session, Voucher, normalize_vouchers
from .report import render_vouchers
from .session import get_password_hash

__all__ = [
    "PizzaClient",
    "ApiError",
    "Credentials",
    "Session",
    "Voucher",
    "normalize_vouchers",
    "render_vouchers",
    "get_password_hash",
    "PizzaError",
    "TransportError",
    "ApplicationError",
    "AuthenticationFailed",
    "VoucherQueryFailed",
    "VoucherRedeemFailed",
    "LoginCancelled",
]
