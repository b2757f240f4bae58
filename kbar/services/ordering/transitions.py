"""Order state transition rules."""
from enum import Enum
from typing import Dict, List, Optional, Tuple

from kbar.services.ordering.models import OrderStatus


class OrderTrigger(str, Enum):
    """Events that move an order between states."""

    PAY = "pay"
    SETTLEMENT_SUCCEEDED = "settlement_succeeded"
    SETTLEMENT_FAILED = "settlement_failed"
    TIMEOUT = "timeout"
    CANCEL = "cancel"
    RETRY = "retry"
    MARK_READY = "mark_ready"
    MARK_COMPLETED = "mark_completed"

    def __str__(self) -> str:
        return self.value


TRANSITIONS: Dict[Tuple[OrderStatus, OrderTrigger], OrderStatus] = {
    (OrderStatus.PENDING_PAYMENT, OrderTrigger.PAY): OrderStatus.PAYMENT_PROCESSING,
    (OrderStatus.PAYMENT_PROCESSING, OrderTrigger.SETTLEMENT_SUCCEEDED): OrderStatus.PREPARING,
    (OrderStatus.PAYMENT_PROCESSING, OrderTrigger.SETTLEMENT_FAILED): OrderStatus.PAYMENT_FAILED,
    (OrderStatus.PENDING_PAYMENT, OrderTrigger.TIMEOUT): OrderStatus.CANCELLED,
    (OrderStatus.PENDING_PAYMENT, OrderTrigger.CANCEL): OrderStatus.CANCELLED,
    (OrderStatus.PAYMENT_FAILED, OrderTrigger.CANCEL): OrderStatus.CANCELLED,
    (OrderStatus.PAYMENT_FAILED, OrderTrigger.RETRY): OrderStatus.PENDING_PAYMENT,
    (OrderStatus.CANCELLED, OrderTrigger.RETRY): OrderStatus.PENDING_PAYMENT,
    (OrderStatus.PREPARING, OrderTrigger.MARK_READY): OrderStatus.READY,
    (OrderStatus.READY, OrderTrigger.MARK_COMPLETED): OrderStatus.COMPLETED,
}


class OrderTransitionHandler:
    """Looks up the target state for a trigger."""

    @staticmethod
    def next_status(status: OrderStatus, trigger: OrderTrigger) -> Optional[OrderStatus]:
        """Return the state the trigger leads to, or None if it does not apply."""
        return TRANSITIONS.get((status, trigger))

    @staticmethod
    def available_triggers(status: OrderStatus) -> List[OrderTrigger]:
        """Triggers that lead somewhere from this state, in table order."""
        return [trigger for (source, trigger) in TRANSITIONS if source == status]
