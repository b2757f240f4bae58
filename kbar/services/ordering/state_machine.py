"""Order lifecycle and payment state machine."""
import asyncio
import logging
from typing import Callable, Dict, List, Optional, Sequence

from pydantic import BaseModel

from kbar.core.exceptions import BroadcastError, OrderNotFoundError, OutstandingOrderError
from kbar.services.loyalty.tiers import points_for_total
from kbar.services.notifications.broadcaster import Broadcaster
from kbar.services.ordering.clock import Clock, SystemClock
from kbar.services.ordering.countdown import PaymentCountdown, remaining_window_seconds
from kbar.services.ordering.models import (
    CartItem,
    Order,
    OrderOrigin,
    OrderStatus,
    TERMINAL_STATUSES,
    build_order,
)
from kbar.services.ordering.payment import PaymentSettlement
from kbar.services.ordering.transitions import OrderTransitionHandler, OrderTrigger
from kbar.services.storage.repository import PersistedStore

logger = logging.getLogger(__name__)


class TransitionResult(BaseModel):
    """Outcome of a trigger. ``applied`` is False when it was a no-op."""

    order: Order
    applied: bool
    previous_status: OrderStatus
    trigger: OrderTrigger
    points_earned: int = 0


def _outstanding_id(orders: Sequence[Order]) -> Optional[str]:
    return next((order.id for order in orders if order.is_outstanding()), None)


class OrderStateMachine:
    """
    Owns every change to the persisted order list.

    Each change reads the full list, applies one transition and writes the
    list back whole, under a lock held by the machine. The id of the order
    awaiting payment, if any, is written alongside as an index. Pending
    orders get a payment countdown task that cancels them when the window
    runs out.
    """

    def __init__(
        self,
        store: PersistedStore,
        broadcaster: Broadcaster,
        settlement: PaymentSettlement,
        clock: Optional[Clock] = None,
        timeout_seconds: int = 300,
        tick_seconds: float = 1.0,
        purge_failed_on_clear: bool = False,
    ):
        self.store = store
        self.broadcaster = broadcaster
        self.settlement = settlement
        self.clock = clock or SystemClock()
        self.timeout_seconds = timeout_seconds
        self.tick_seconds = tick_seconds
        self.purge_failed_on_clear = purge_failed_on_clear
        self._lock = asyncio.Lock()
        self._countdowns: Dict[str, PaymentCountdown] = {}

    # Queries

    async def list_orders(self) -> List[Order]:
        """All orders, newest first."""
        orders = await self.store.get_orders()
        return sorted(orders, key=lambda order: order.timestamp, reverse=True)

    async def get_order(self, order_id: str) -> Order:
        for order in await self.store.get_orders():
            if order.id == order_id:
                return order
        raise OrderNotFoundError(order_id)

    async def get_outstanding_order(self) -> Optional[Order]:
        orders = await self.store.get_orders()
        return await self._find_outstanding(orders)

    async def get_current_order(self) -> Optional[Order]:
        """The newest order being prepared, for the order-status banner."""
        for order in await self.list_orders():
            if order.status == OrderStatus.PREPARING:
                return order
        return None

    def remaining_seconds(self, order: Order) -> int:
        """Seconds left in the order's payment window (0 unless pending)."""
        if order.status != OrderStatus.PENDING_PAYMENT:
            return 0
        countdown = self._countdowns.get(order.id)
        if countdown is not None:
            return countdown.remaining_seconds()
        return remaining_window_seconds(order.countdown_start, self.clock.now(), self.timeout_seconds)

    def countdown(self, order_id: str) -> Optional[PaymentCountdown]:
        return self._countdowns.get(order_id)

    # Creation

    async def create_order(
        self, items: Sequence[CartItem], origin: OrderOrigin = OrderOrigin.CART
    ) -> Order:
        """
        Create an order in pending_payment and start its countdown.

        Raises:
            EmptyOrderError: no items were given
            OutstandingOrderError: another order is still awaiting payment
        """
        async with self._lock:
            orders = await self.store.get_orders()
            outstanding = await self._find_outstanding(orders)
            if outstanding is not None:
                logger.warning(
                    f"[ORDER] Rejected new {origin} order: {outstanding.order_number} is still unpaid"
                )
                raise OutstandingOrderError(outstanding.id, outstanding.order_number)

            order = build_order(items, origin, now=self.clock.now())
            orders.append(order)
            await self.store.save_orders(orders, outstanding_order_id=order.id)

        logger.info(
            f"[ORDER] Created {order.order_number} ({origin}) - "
            f"{order.item_count} items, total ${order.total:.2f}"
        )
        self._arm(order)
        await self._notify()
        return order

    # Triggers

    async def pay(self, order_id: str) -> TransitionResult:
        """
        Start payment and apply the settlement outcome.

        Returns the result of the settlement step, or the no-op result when
        the order was not awaiting payment.
        """
        started = await self._apply(order_id, OrderTrigger.PAY)
        if not started.applied:
            return started

        try:
            succeeded = await self.settlement.settle(started.order)
        except Exception as e:
            logger.error(
                f"[PAYMENT] Settlement error for {started.order.order_number}: "
                f"{type(e).__name__}: {e}",
                exc_info=True,
            )
            succeeded = False

        trigger = OrderTrigger.SETTLEMENT_SUCCEEDED if succeeded else OrderTrigger.SETTLEMENT_FAILED
        return await self._apply(order_id, trigger)

    async def cancel(self, order_id: str) -> TransitionResult:
        return await self._apply(order_id, OrderTrigger.CANCEL)

    async def retry(self, order_id: str) -> TransitionResult:
        """Put a failed or cancelled order back into pending_payment with a fresh window."""
        return await self._apply(order_id, OrderTrigger.RETRY)

    async def expire(self, order_id: str) -> TransitionResult:
        """Cancel an order whose payment window has run out."""
        return await self._apply(
            order_id,
            OrderTrigger.TIMEOUT,
            guard=lambda order: self.remaining_seconds(order) == 0,
        )

    async def mark_ready(self, order_id: str) -> TransitionResult:
        return await self._apply(order_id, OrderTrigger.MARK_READY)

    async def mark_completed(self, order_id: str) -> TransitionResult:
        return await self._apply(order_id, OrderTrigger.MARK_COMPLETED)

    # History

    async def clear_history(self, purge_failed: Optional[bool] = None) -> int:
        """
        Drop completed and cancelled orders, keeping active ones.

        Args:
            purge_failed: also drop payment_failed orders; defaults to the
                machine's configured policy

        Returns:
            Number of orders removed
        """
        if purge_failed is None:
            purge_failed = self.purge_failed_on_clear
        purged_statuses = set(TERMINAL_STATUSES)
        if purge_failed:
            purged_statuses.add(OrderStatus.PAYMENT_FAILED)

        async with self._lock:
            orders = await self.store.get_orders()
            kept = [order for order in orders if order.status not in purged_statuses]
            removed = len(orders) - len(kept)
            await self.store.save_orders(kept, outstanding_order_id=_outstanding_id(kept))

        logger.info(f"[ORDER] Cleared history - removed {removed}, kept {len(kept)}")
        await self._notify()
        return removed

    # Lifecycle

    async def resume(self) -> None:
        """
        Re-arm countdowns for persisted pending orders.

        Orders whose window already ran out are cancelled now. Orders left in
        payment_processing by an interrupted settlement are marked failed so
        they can be retried.
        """
        for order in await self.store.get_orders():
            if order.status == OrderStatus.PENDING_PAYMENT:
                if self.remaining_seconds(order) == 0:
                    await self.expire(order.id)
                else:
                    self._arm(order)
            elif order.status == OrderStatus.PAYMENT_PROCESSING:
                logger.warning(
                    f"[PAYMENT] Settlement for {order.order_number} was interrupted; marking failed"
                )
                await self._apply(order.id, OrderTrigger.SETTLEMENT_FAILED)

    async def shutdown(self) -> None:
        """Disarm every countdown."""
        countdowns = list(self._countdowns.values())
        self._countdowns.clear()
        for countdown in countdowns:
            countdown.cancel()
        for countdown in countdowns:
            await countdown.wait()

    # Internals

    async def _find_outstanding(
        self, orders: Sequence[Order], exclude: Optional[str] = None
    ) -> Optional[Order]:
        indexed_id = await self.store.get_outstanding_order_id()
        if indexed_id is not None and indexed_id != exclude:
            for order in orders:
                if order.id == indexed_id and order.is_outstanding():
                    return order
        # Index missing or stale: fall back to the list itself
        for order in orders:
            if order.is_outstanding() and order.id != exclude:
                return order
        return None

    async def _apply(
        self,
        order_id: str,
        trigger: OrderTrigger,
        guard: Optional[Callable[[Order], bool]] = None,
    ) -> TransitionResult:
        async with self._lock:
            orders = await self.store.get_orders()
            index = next((i for i, order in enumerate(orders) if order.id == order_id), None)
            if index is None:
                raise OrderNotFoundError(order_id)
            order = orders[index]

            next_status = OrderTransitionHandler.next_status(order.status, trigger)
            if next_status is None or (guard is not None and not guard(order)):
                logger.info(
                    f"[ORDER] Ignored {trigger} for {order.order_number} in {order.status}"
                )
                return TransitionResult(
                    order=order, applied=False, previous_status=order.status, trigger=trigger
                )

            if trigger == OrderTrigger.RETRY:
                other = await self._find_outstanding(orders, exclude=order.id)
                if other is not None:
                    raise OutstandingOrderError(other.id, other.order_number)

            update = {"status": next_status}
            if trigger == OrderTrigger.RETRY:
                update["payment_window_start"] = self.clock.now()

            points_earned = 0
            balance = None
            if trigger == OrderTrigger.SETTLEMENT_SUCCEEDED and not order.points_awarded:
                points_earned = points_for_total(order.total)
                balance = await self.store.get_loyalty_points() + points_earned
                update["points_awarded"] = True

            updated = order.model_copy(update=update)
            orders[index] = updated
            await self.store.save_orders(
                orders,
                outstanding_order_id=_outstanding_id(orders),
                loyalty_points=balance,
            )

        logger.info(
            f"[ORDER] {updated.order_number}: {order.status.value} -> {next_status.value} ({trigger})"
        )
        if points_earned:
            logger.info(f"[LOYALTY] {updated.order_number} earned {points_earned} points, balance {balance}")

        if next_status == OrderStatus.PENDING_PAYMENT:
            self._arm(updated)
        else:
            self._disarm(order_id)
        await self._notify()

        return TransitionResult(
            order=updated,
            applied=True,
            previous_status=order.status,
            trigger=trigger,
            points_earned=points_earned,
        )

    def _arm(self, order: Order) -> None:
        self._disarm(order.id)
        countdown = PaymentCountdown(
            order_id=order.id,
            window_start=order.countdown_start,
            timeout_seconds=self.timeout_seconds,
            clock=self.clock,
            on_expire=self.expire,
            tick_seconds=self.tick_seconds,
        )
        self._countdowns[order.id] = countdown
        countdown.start()

    def _disarm(self, order_id: str) -> None:
        countdown = self._countdowns.pop(order_id, None)
        if countdown is not None:
            countdown.cancel()

    async def _notify(self) -> None:
        try:
            await self.broadcaster.publish()
        except BroadcastError as e:
            # The order list is already saved; subscribers refresh on the next publish
            logger.warning(f"[ORDER] Change saved but {len(e.errors)} subscriber(s) failed to refresh")
