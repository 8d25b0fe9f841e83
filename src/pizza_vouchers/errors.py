from .models import ApiError


class PizzaError(Exception):
    """Base class for everything the voucher client raises."""


class TransportError(PizzaError):
    """The request failed before pizza.de returned a usable API response."""


class ApplicationError(PizzaError):
    """pizza.de answered with `success: false`."""

    def __init__(self, error: ApiError | None = None):
        self.error = error
        super().__init__(str(error) if error else "An error occurred during the pizza.de operation.")


class AuthenticationFailed(ApplicationError):
    pass


class VoucherQueryFailed(ApplicationError):
    pass


class VoucherRedeemFailed(ApplicationError):
    pass


class LoginCancelled(PizzaError):
    """The user aborted the password prompt."""

    def __init__(self) -> None:
        super().__init__("Login cancelled.")
