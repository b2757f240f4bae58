"""Quick-order draft builder."""
import logging
from typing import List

from kbar.core.exceptions import EmptyOrderError
from kbar.services.menu.base import MenuItem
from kbar.services.ordering.cart import validate_quantity
from kbar.services.ordering.models import (
    CartItem,
    Order,
    OrderOrigin,
    compute_item_count,
    compute_total,
)
from kbar.services.ordering.state_machine import OrderStateMachine

logger = logging.getLogger(__name__)


class QuickOrderSession:
    """Unpersisted draft collected from quick-order taps.

    Each menu item appears at most once; tapping an item already in the
    draft does nothing. Quantities change through update_quantity.
    """

    def __init__(self):
        self.items: List[CartItem] = []

    def add_distinct_item(self, item: MenuItem, quantity: int = 1) -> bool:
        """Add an item to the draft. Returns False if it was already there."""
        quantity = validate_quantity(quantity)
        if any(line.id == item.id for line in self.items):
            return False
        self.items.append(CartItem.from_menu_item(item, quantity))
        return True

    def update_quantity(self, item_id: str, quantity: int) -> None:
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
            return
        self.items = [
            line.model_copy(update={"quantity": quantity}) if line.id == item_id else line
            for line in self.items
        ]

    def remove_item(self, item_id: str) -> None:
        self.items = [line for line in self.items if line.id != item_id]

    def clear(self) -> None:
        self.items = []

    def total(self) -> float:
        return compute_total(self.items)

    def item_count(self) -> int:
        return compute_item_count(self.items)

    def is_empty(self) -> bool:
        return not self.items

    async def finalize(self, machine: OrderStateMachine) -> Order:
        """Turn the draft into a pending order and discard it.

        The draft is kept if the order cannot be created.
        """
        if self.is_empty():
            raise EmptyOrderError("Your quick order is empty. Tap an item first!")
        order = await machine.create_order(self.items, OrderOrigin.QUICK)
        logger.info(f"[QUICK ORDER] Finalized {len(self.items)} items into {order.order_number}")
        self.clear()
        return order
