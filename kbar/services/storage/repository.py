"""Typed access to the persisted cart, order and loyalty records."""
import logging
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from kbar.core.exceptions import StorageError
from kbar.services.ordering.models import CartItem, Order
from kbar.services.storage.base import KeyValueStore

logger = logging.getLogger(__name__)


class StorageKey(str, Enum):
    """Physical keys of the logical records."""

    CART = "userCart"
    ORDERS = "userOrders"
    LOYALTY_POINTS = "userLoyaltyPoints"
    OUTSTANDING_ORDER = "outstandingOrderId"

    def __str__(self) -> str:
        return self.value


class PersistedStore:
    """Repository over a key-value store for cart, orders and loyalty points."""

    def __init__(self, store: KeyValueStore):
        self.store = store

    async def _get(self, key: StorageKey) -> Optional[Any]:
        try:
            return await self.store.get(key.value)
        except Exception as e:
            logger.error(f"[STORE] Read failed for {key.value}: {type(e).__name__}: {e}", exc_info=True)
            raise StorageError("read", key.value) from e

    async def _set_many(self, values: Dict[StorageKey, Any]) -> None:
        names = ", ".join(key.value for key in values)
        try:
            await self.store.set_many({key.value: value for key, value in values.items()})
        except Exception as e:
            logger.error(f"[STORE] Write failed for {names}: {type(e).__name__}: {e}", exc_info=True)
            raise StorageError("write", names) from e

    async def _remove(self, key: StorageKey) -> None:
        try:
            await self.store.remove(key.value)
        except Exception as e:
            logger.error(f"[STORE] Remove failed for {key.value}: {type(e).__name__}: {e}", exc_info=True)
            raise StorageError("remove", key.value) from e

    # Cart

    async def get_cart(self) -> List[CartItem]:
        raw = await self._get(StorageKey.CART)
        try:
            return [CartItem.model_validate(item) for item in raw or []]
        except ValidationError as e:
            raise StorageError("decode", StorageKey.CART.value) from e

    async def save_cart(self, items: List[CartItem]) -> None:
        await self._set_many(
            {StorageKey.CART: [item.model_dump(mode="json", by_alias=True) for item in items]}
        )

    async def remove_cart(self) -> None:
        await self._remove(StorageKey.CART)

    # Orders

    async def get_orders(self) -> List[Order]:
        raw = await self._get(StorageKey.ORDERS)
        try:
            return [Order.model_validate(order) for order in raw or []]
        except ValidationError as e:
            raise StorageError("decode", StorageKey.ORDERS.value) from e

    async def get_outstanding_order_id(self) -> Optional[str]:
        return await self._get(StorageKey.OUTSTANDING_ORDER)

    async def save_orders(
        self,
        orders: List[Order],
        outstanding_order_id: Optional[str] = None,
        loyalty_points: Optional[int] = None,
    ) -> None:
        """Rewrite the full order list together with the outstanding-order index.

        When ``loyalty_points`` is given the balance is written in the same
        call, so an award can never land without its order update.
        """
        values: Dict[StorageKey, Any] = {
            StorageKey.ORDERS: [order.model_dump(mode="json", by_alias=True) for order in orders],
            StorageKey.OUTSTANDING_ORDER: outstanding_order_id,
        }
        if loyalty_points is not None:
            values[StorageKey.LOYALTY_POINTS] = loyalty_points
        await self._set_many(values)

    # Loyalty

    async def get_loyalty_points(self) -> int:
        raw = await self._get(StorageKey.LOYALTY_POINTS)
        if raw is None:
            return 0
        try:
            return max(0, int(raw))
        except (TypeError, ValueError) as e:
            raise StorageError("decode", StorageKey.LOYALTY_POINTS.value) from e

    async def save_loyalty_points(self, points: int) -> None:
        await self._set_many({StorageKey.LOYALTY_POINTS: points})
