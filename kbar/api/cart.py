"""Cart API endpoints."""
import logging
from typing import List

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from kbar.api.menu import require_menu_item
from kbar.api.schemas import (
    AddItemRequest,
    LineResponse,
    OrderResponse,
    QuantityRequest,
    SubmitRequest,
    order_response,
)
from kbar.core.dependencies import get_cart, get_checkout, get_machine, get_menu_repository
from kbar.services.menu.repository import MenuRepository
from kbar.services.ordering.cart import CartAggregator
from kbar.services.ordering.checkout import CheckoutService
from kbar.services.ordering.state_machine import OrderStateMachine

router = APIRouter()
logger = logging.getLogger(__name__)


class CartResponse(BaseModel):
    """Cart response model."""
    items: List[LineResponse]
    total: float
    item_count: int


def cart_response(cart: CartAggregator) -> CartResponse:
    return CartResponse(
        items=[LineResponse.from_item(item) for item in cart.items],
        total=cart.total(),
        item_count=cart.item_count(),
    )


@router.get("/api/cart", response_model=CartResponse)
async def get_cart_contents(cart: CartAggregator = Depends(get_cart)):
    """Get the cart, re-read from storage."""
    await cart.load()
    return cart_response(cart)


@router.post("/api/cart/items", response_model=CartResponse)
async def add_cart_item(
    body: AddItemRequest,
    cart: CartAggregator = Depends(get_cart),
    menu_repository: MenuRepository = Depends(get_menu_repository),
):
    """Add a menu item to the cart."""
    item = await require_menu_item(menu_repository, body.item_id)
    await cart.add_item(item, body.quantity)
    return cart_response(cart)


@router.patch("/api/cart/items/{item_id}", response_model=CartResponse)
async def update_cart_item(
    item_id: str,
    body: QuantityRequest,
    cart: CartAggregator = Depends(get_cart),
):
    """Change a line's quantity. Quantities below 1 are ignored."""
    await cart.update_quantity(item_id, body.quantity)
    return cart_response(cart)


@router.delete("/api/cart/items/{item_id}", response_model=CartResponse)
async def remove_cart_item(item_id: str, cart: CartAggregator = Depends(get_cart)):
    """Remove a line from the cart."""
    await cart.remove_item(item_id)
    return cart_response(cart)


@router.delete("/api/cart", response_model=CartResponse)
async def clear_cart(cart: CartAggregator = Depends(get_cart)):
    """Empty the cart."""
    await cart.clear()
    return cart_response(cart)


@router.post("/api/cart/submit", response_model=OrderResponse)
async def submit_cart(
    body: SubmitRequest,
    checkout: CheckoutService = Depends(get_checkout),
    machine: OrderStateMachine = Depends(get_machine),
):
    """Turn the cart into an order awaiting payment."""
    order = await checkout.submit_cart(pay_now=body.pay_now)
    logger.info(f"[CART] Submitted as {order.order_number} (pay_now={body.pay_now})")
    return order_response(order, machine)
