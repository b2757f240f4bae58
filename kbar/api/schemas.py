"""Shared API response models."""
from typing import List, Optional

from pydantic import BaseModel

from kbar.services.ordering.models import CartItem, Order
from kbar.services.ordering.state_machine import OrderStateMachine, TransitionResult
from kbar.services.ordering.transitions import OrderTransitionHandler, OrderTrigger

# Triggers a client may send; the rest are fired by settlement and the countdown
USER_TRIGGERS = frozenset({
    OrderTrigger.PAY,
    OrderTrigger.CANCEL,
    OrderTrigger.RETRY,
    OrderTrigger.MARK_READY,
    OrderTrigger.MARK_COMPLETED,
})


class LineResponse(BaseModel):
    """Cart, draft or order line."""
    id: str
    name: str
    price: float
    quantity: int
    emoji: str

    @classmethod
    def from_item(cls, item: CartItem) -> "LineResponse":
        return cls(
            id=item.id,
            name=item.name,
            price=item.price,
            quantity=item.quantity,
            emoji=item.emoji,
        )


class OrderResponse(BaseModel):
    """Order response model."""
    id: str
    order_number: str
    status: str
    origin: str
    items: List[LineResponse]
    total: float
    item_count: int
    timestamp: str
    remaining_seconds: int = 0
    points_awarded: bool = False
    actions: List[str] = []


class TransitionResponse(BaseModel):
    """Result of an order action."""
    applied: bool
    previous_status: str
    trigger: str
    points_earned: int = 0
    order: OrderResponse


def order_response(order: Order, machine: OrderStateMachine) -> OrderResponse:
    return OrderResponse(
        id=order.id,
        order_number=order.order_number,
        status=order.status.value,
        origin=order.origin.value,
        items=[LineResponse.from_item(item) for item in order.items],
        total=order.total,
        item_count=order.item_count,
        timestamp=order.timestamp.isoformat(),
        remaining_seconds=machine.remaining_seconds(order),
        points_awarded=order.points_awarded,
        actions=[
            trigger.value
            for trigger in OrderTransitionHandler.available_triggers(order.status)
            if trigger in USER_TRIGGERS
        ],
    )


def transition_response(result: TransitionResult, machine: OrderStateMachine) -> TransitionResponse:
    return TransitionResponse(
        applied=result.applied,
        previous_status=result.previous_status.value,
        trigger=result.trigger.value,
        points_earned=result.points_earned,
        order=order_response(result.order, machine),
    )


class QuantityRequest(BaseModel):
    """Quantity change request."""
    quantity: int


class AddItemRequest(BaseModel):
    """Add a menu item by id."""
    item_id: str
    quantity: int = 1


class PlaceOrderRequest(AddItemRequest):
    """Order a single menu item directly."""
    pay_now: bool = False


class SubmitRequest(BaseModel):
    """Cart submission options."""
    pay_now: bool = False


class ReviewResponse(BaseModel):
    """Order review screen state."""
    orders: List[OrderResponse]
    current_order: Optional[OrderResponse] = None
    show_payment_for: Optional[str] = None
