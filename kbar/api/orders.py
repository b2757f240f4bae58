"""Order API endpoints."""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends

from kbar.api.menu import require_menu_item
from kbar.api.schemas import (
    OrderResponse,
    PlaceOrderRequest,
    ReviewResponse,
    TransitionResponse,
    order_response,
    transition_response,
)
from kbar.core.dependencies import (
    ServiceContainer,
    get_checkout,
    get_machine,
    get_menu_repository,
    get_services,
)
from kbar.services.menu.repository import MenuRepository
from kbar.services.ordering.checkout import CheckoutService
from kbar.services.ordering.state_machine import OrderStateMachine

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/api/orders", response_model=List[OrderResponse])
async def list_orders(machine: OrderStateMachine = Depends(get_machine)):
    """All orders, newest first."""
    orders = await machine.list_orders()
    logger.info(f"[ORDERS] Listing {len(orders)} orders")
    return [order_response(order, machine) for order in orders]


@router.get("/api/orders/review", response_model=ReviewResponse)
async def review_orders(services: ServiceContainer = Depends(get_services)):
    """
    Order review screen state.

    Includes the order the payment dialog should open for, if one was
    requested. The request is consumed, so the next call does not repeat it.
    """
    machine = services.machine
    orders = await machine.list_orders()
    current = await machine.get_current_order()
    show_payment_for = services.payment_prompt.consume()
    return ReviewResponse(
        orders=[order_response(order, machine) for order in orders],
        current_order=order_response(current, machine) if current else None,
        show_payment_for=show_payment_for,
    )


@router.get("/api/orders/outstanding", response_model=Optional[OrderResponse])
async def get_outstanding_order(machine: OrderStateMachine = Depends(get_machine)):
    """The order awaiting payment, if any."""
    order = await machine.get_outstanding_order()
    return order_response(order, machine) if order else None


@router.post("/api/orders/menu", response_model=OrderResponse)
async def order_from_menu(
    body: PlaceOrderRequest,
    checkout: CheckoutService = Depends(get_checkout),
    machine: OrderStateMachine = Depends(get_machine),
    menu_repository: MenuRepository = Depends(get_menu_repository),
):
    """Order one menu item directly."""
    item = await require_menu_item(menu_repository, body.item_id)
    order = await checkout.order_now(item, body.quantity, pay_now=body.pay_now)
    return order_response(order, machine)


@router.delete("/api/orders/history")
async def clear_order_history(
    purge_failed: Optional[bool] = None,
    machine: OrderStateMachine = Depends(get_machine),
):
    """Remove completed and cancelled orders. Loyalty points are kept."""
    removed = await machine.clear_history(purge_failed=purge_failed)
    return {"removed": removed}


@router.get("/api/orders/{order_id}", response_model=OrderResponse)
async def get_order(order_id: str, machine: OrderStateMachine = Depends(get_machine)):
    """Get one order."""
    order = await machine.get_order(order_id)
    return order_response(order, machine)


@router.post("/api/orders/{order_id}/pay", response_model=TransitionResponse)
async def pay_order(order_id: str, machine: OrderStateMachine = Depends(get_machine)):
    """Pay for an order awaiting payment."""
    logger.info(f"[ORDERS] Payment requested for {order_id}")
    result = await machine.pay(order_id)
    return transition_response(result, machine)


@router.post("/api/orders/{order_id}/cancel", response_model=TransitionResponse)
async def cancel_order(order_id: str, machine: OrderStateMachine = Depends(get_machine)):
    """Cancel an unpaid or failed order."""
    result = await machine.cancel(order_id)
    return transition_response(result, machine)


@router.post("/api/orders/{order_id}/retry", response_model=TransitionResponse)
async def retry_order(order_id: str, machine: OrderStateMachine = Depends(get_machine)):
    """Reopen a failed or cancelled order for payment."""
    result = await machine.retry(order_id)
    return transition_response(result, machine)


@router.post("/api/orders/{order_id}/ready", response_model=TransitionResponse)
async def mark_order_ready(order_id: str, machine: OrderStateMachine = Depends(get_machine)):
    """Kitchen marks an order ready."""
    result = await machine.mark_ready(order_id)
    return transition_response(result, machine)


@router.post("/api/orders/{order_id}/complete", response_model=TransitionResponse)
async def mark_order_completed(order_id: str, machine: OrderStateMachine = Depends(get_machine)):
    """Kitchen marks an order completed."""
    result = await machine.mark_completed(order_id)
    return transition_response(result, machine)
