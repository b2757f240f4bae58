"""Cart and order models."""
import logging
import uuid
from datetime import datetime
from enum import Enum
from typing import Any, Iterable, List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator
from pydantic.alias_generators import to_camel

from kbar.core.exceptions import EmptyOrderError
from kbar.services.menu.base import MenuItem

logger = logging.getLogger(__name__)


class OrderStatus(str, Enum):
    """Order lifecycle states."""

    PENDING_PAYMENT = "pending_payment"
    PAYMENT_PROCESSING = "payment_processing"
    PAYMENT_FAILED = "payment_failed"
    PREPARING = "preparing"
    READY = "ready"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    def __str__(self) -> str:
        """Return the string value of the status."""
        return self.value


class OrderOrigin(str, Enum):
    """Where an order was placed from."""

    CART = "cart"
    MENU = "menu"
    QUICK = "quick"

    def __str__(self) -> str:
        return self.value


# Only one order may sit in these states at a time
OUTSTANDING_STATUSES = frozenset({OrderStatus.PENDING_PAYMENT, OrderStatus.PAYMENT_PROCESSING})

# Orders counted by the unpaid badge
UNPAID_STATUSES = frozenset(OUTSTANDING_STATUSES | {OrderStatus.PAYMENT_FAILED})

TERMINAL_STATUSES = frozenset({OrderStatus.COMPLETED, OrderStatus.CANCELLED})


class StoredModel(BaseModel):
    """Base for models persisted as camelCase JSON."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CartItem(StoredModel):
    """A line in the cart."""

    id: str
    name: str
    price: float
    quantity: int = Field(default=1, ge=1)
    emoji: str = "🍽️"

    @property
    def line_total(self) -> float:
        return self.price * self.quantity

    @classmethod
    def from_menu_item(cls, item: MenuItem, quantity: int = 1) -> "CartItem":
        """Build a cart line from a menu item."""
        return cls(
            id=item.id,
            name=item.name,
            price=item.price,
            quantity=quantity,
            emoji=item.emoji,
        )


class OrderItem(CartItem):
    """Snapshot of a cart line embedded in an order."""

    model_config = ConfigDict(frozen=True)


def compute_total(items: Iterable[CartItem]) -> float:
    """Sum of price times quantity, rounded to cents."""
    return round(sum(item.price * item.quantity for item in items), 2)


def compute_item_count(items: Iterable[CartItem]) -> int:
    return sum(item.quantity for item in items)


class Order(StoredModel):
    """An order and its lifecycle state."""

    id: str
    order_number: str
    items: List[OrderItem]
    status: OrderStatus = OrderStatus.PENDING_PAYMENT
    timestamp: datetime
    origin: OrderOrigin = Field(default=OrderOrigin.CART, alias="type")
    payment_window_start: Optional[datetime] = None  # Countdown anchor, reset on retry
    points_awarded: bool = False

    @model_validator(mode="before")
    @classmethod
    def _drop_stored_total(cls, data: Any) -> Any:
        # total is always recomputed from items; a stale stored value is discarded
        if isinstance(data, dict) and "total" in data:
            data = dict(data)
            stored = data.pop("total")
            items = data.get("items") or []
            try:
                expected = round(
                    sum(float(i["price"]) * int(i["quantity"]) for i in items), 2
                )
            except (KeyError, TypeError, ValueError):
                return data
            if stored is not None and abs(float(stored) - expected) >= 0.005:
                logger.warning(
                    f"[ORDER] Stored total {stored} for order {data.get('id')} "
                    f"disagrees with items ({expected}); using recomputed total"
                )
        return data

    @computed_field
    @property
    def total(self) -> float:
        return compute_total(self.items)

    @property
    def item_count(self) -> int:
        return compute_item_count(self.items)

    @property
    def countdown_start(self) -> datetime:
        return self.payment_window_start or self.timestamp

    def is_outstanding(self) -> bool:
        return self.status in OUTSTANDING_STATUSES


def new_order_id() -> str:
    """Generate a short opaque order token."""
    return uuid.uuid4().hex[:7]


def build_order(items: Sequence[CartItem], origin: OrderOrigin, now: datetime) -> Order:
    """Create a new order in pending_payment from cart-like lines."""
    if not items:
        raise EmptyOrderError()

    order_id = new_order_id()
    return Order(
        id=order_id,
        order_number=f"ORD-{order_id.upper()}",
        items=[OrderItem(**item.model_dump()) for item in items],
        status=OrderStatus.PENDING_PAYMENT,
        timestamp=now,
        origin=origin,
        payment_window_start=now,
    )
