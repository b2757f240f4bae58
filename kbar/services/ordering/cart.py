"""Cart aggregator."""
import logging
from typing import List

from kbar.core.exceptions import BroadcastError, InvalidQuantityError, StorageError
from kbar.services.menu.base import MenuItem
from kbar.services.notifications.broadcaster import Broadcaster
from kbar.services.ordering.models import CartItem, compute_item_count, compute_total
from kbar.services.storage.repository import PersistedStore

logger = logging.getLogger(__name__)


def validate_quantity(quantity: object) -> int:
    """Return quantity if it is a positive integer, else raise InvalidQuantityError."""
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
        raise InvalidQuantityError(quantity)
    return quantity


class CartAggregator:
    """
    In-memory view of the cart backed by the persisted cart record.

    Mutations update the view first, then persist the whole cart. If the
    write fails the view is rolled back and the StorageError propagates, so
    a failed change never looks applied.
    """

    def __init__(self, store: PersistedStore, broadcaster: Broadcaster):
        self.store = store
        self.broadcaster = broadcaster
        self.items: List[CartItem] = []

    async def load(self) -> List[CartItem]:
        """Re-read the cart from storage."""
        self.items = await self.store.get_cart()
        return list(self.items)

    async def add_item(self, item: MenuItem, quantity: int = 1) -> List[CartItem]:
        """Add quantity of a menu item, merging with an existing line."""
        quantity = validate_quantity(quantity)
        updated = []
        merged = False
        for line in self.items:
            if line.id == item.id:
                line = line.model_copy(update={"quantity": line.quantity + quantity})
                merged = True
            updated.append(line)
        if not merged:
            updated.append(CartItem.from_menu_item(item, quantity))

        await self._commit(updated, f"added {quantity} x {item.name}")
        return list(self.items)

    async def update_quantity(self, item_id: str, quantity: int) -> List[CartItem]:
        """Set a line's quantity. Values below 1 are ignored; use remove_item."""
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
            logger.debug(f"[CART] Ignored quantity {quantity!r} for item {item_id}")
            return list(self.items)
        if not any(line.id == item_id for line in self.items):
            return list(self.items)

        updated = [
            line.model_copy(update={"quantity": quantity}) if line.id == item_id else line
            for line in self.items
        ]
        await self._commit(updated, f"set item {item_id} quantity to {quantity}")
        return list(self.items)

    async def remove_item(self, item_id: str) -> List[CartItem]:
        updated = [line for line in self.items if line.id != item_id]
        await self._commit(updated, f"removed item {item_id}")
        return list(self.items)

    async def clear(self) -> None:
        previous = self.items
        self.items = []
        try:
            await self.store.remove_cart()
        except StorageError:
            self.items = previous
            logger.error("[CART] Failed to clear cart; kept previous contents")
            raise
        logger.info("[CART] Cleared")
        await self._notify()

    def total(self) -> float:
        return compute_total(self.items)

    def item_count(self) -> int:
        return compute_item_count(self.items)

    async def _commit(self, updated: List[CartItem], action: str) -> None:
        previous = self.items
        self.items = updated
        try:
            await self.store.save_cart(updated)
        except StorageError:
            self.items = previous
            logger.error(f"[CART] Failed to persist cart ({action}); rolled back")
            raise
        logger.info(f"[CART] {action.capitalize()} - {self.item_count()} items, ${self.total():.2f}")
        await self._notify()

    async def _notify(self) -> None:
        try:
            await self.broadcaster.publish()
        except BroadcastError as e:
            logger.warning(f"[CART] Cart saved but {len(e.errors)} subscriber(s) failed to refresh")
