# tickmarket/errors.py
from __future__ import annotations

from .models import OrderId


class OrderNotFound(KeyError):
    """Raised by callers that require a result for an id the book no longer holds."""

    def __init__(self, order_id: OrderId) -> None:
        super().__init__(order_id)
        self.order_id = order_id


class InvariantViolation(AssertionError):
    """Clearing produced inconsistent quantities. Never caught inside the package."""
