"""
Domain exceptions for the exchange.

Every rejection raised by the engine is a ``ValidationError``; the caller
surfaces the message to the user and no state has been mutated.
"""

from typing import Any, Optional


class ExchangeError(Exception):
    """Base class for all exchange errors."""


class ValidationError(ExchangeError):
    """Raised when an operation is rejected before it touches the ledger."""

    def __init__(self, message: str, field: Optional[str] = None, value: Any = None):
        self.message = message
        self.field = field
        self.value = value
        super().__init__(message)


class AccountRequired(ValidationError):
    """Raised when an operation needs an onboarded account and there is none."""

    def __init__(self, action: str = "continue"):
        super().__init__(f"Please onboard to {action}", field="account")


class InsufficientCredits(ValidationError):
    """Raised when a seller lists more credits than the account holds."""

    def __init__(self, account_id: str, requested: float, available: float):
        self.account_id = account_id
        self.requested = requested
        self.available = available
        super().__init__(
            f"Invalid credit amount: account {account_id} requested {requested}, "
            f"available {available}",
            field="credit_amount",
            value=requested,
        )


class OrderNotFound(ValidationError):
    """Raised when an order is not in the book (unknown or already matched)."""

    def __init__(self, order_id: str):
        self.order_id = order_id
        super().__init__(
            f"Order {order_id} is not open in the order book",
            field="order_id",
            value=order_id,
        )
