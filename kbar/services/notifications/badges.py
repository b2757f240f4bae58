"""Badge counts for the cart and unpaid orders."""
import logging
from typing import Optional

from kbar.services.notifications.broadcaster import Broadcaster, Unsubscribe
from kbar.services.ordering.models import UNPAID_STATUSES, compute_item_count
from kbar.services.storage.repository import PersistedStore

logger = logging.getLogger(__name__)


class BadgeCounter:
    """Keeps cart and unpaid-order counts in step with persisted state."""

    def __init__(self, store: PersistedStore):
        self.store = store
        self.cart_count = 0
        self.unpaid_orders_count = 0
        self.refresh_count = 0
        self._unsubscribe: Optional[Unsubscribe] = None

    async def refresh(self) -> None:
        """Recompute both counts from storage."""
        cart = await self.store.get_cart()
        orders = await self.store.get_orders()
        self.cart_count = compute_item_count(cart)
        self.unpaid_orders_count = sum(1 for order in orders if order.status in UNPAID_STATUSES)
        self.refresh_count += 1
        logger.debug(
            f"[BADGES] cart={self.cart_count} unpaid={self.unpaid_orders_count}"
        )

    def attach(self, broadcaster: Broadcaster) -> None:
        """Refresh on every publish until detached."""
        self.detach()
        self._unsubscribe = broadcaster.subscribe(self.refresh)

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
