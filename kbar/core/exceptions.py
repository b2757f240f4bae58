"""Ordering exceptions."""
from typing import List, Optional


class OrderingError(Exception):
    """Base exception for the ordering core."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class StorageError(OrderingError):
    """Raised when the key-value store fails to read, write or remove a record."""

    def __init__(self, operation: str, key: str, message: Optional[str] = None):
        self.operation = operation
        self.key = key
        super().__init__(message or f"Failed to {operation} '{key}'")


class OrderNotFoundError(OrderingError):
    """Raised when an order id is not in the persisted order list."""

    def __init__(self, order_id: str):
        self.order_id = order_id
        super().__init__(f"Order {order_id} not found")


class OutstandingOrderError(OrderingError):
    """Raised when another order is still awaiting payment."""

    def __init__(self, order_id: str, order_number: str):
        self.order_id = order_id
        self.order_number = order_number
        super().__init__(
            f"You have an unpaid order (#{order_number}). "
            "Please complete payment before creating a new order."
        )


class EmptyOrderError(OrderingError):
    """Raised when an order would be created without items."""

    def __init__(self, message: str = "Your order is empty. Add some items first!"):
        super().__init__(message)


class InvalidQuantityError(OrderingError):
    """Raised when a quantity is not a positive integer."""

    def __init__(self, quantity: object):
        self.quantity = quantity
        super().__init__(f"Quantity must be a positive integer, got {quantity!r}")


class BroadcastError(OrderingError):
    """Raised after a publish in which one or more subscribers failed."""

    def __init__(self, errors: List[BaseException]):
        self.errors = errors
        super().__init__(f"{len(errors)} subscriber(s) failed during publish")
