"""Badge count endpoint."""
from fastapi import APIRouter, Depends
from pydantic import BaseModel

from kbar.core.dependencies import ServiceContainer, get_services

router = APIRouter()


class BadgeResponse(BaseModel):
    """Tab badge counts."""
    cart_count: int
    unpaid_orders_count: int


@router.get("/api/badges", response_model=BadgeResponse)
async def get_badges(services: ServiceContainer = Depends(get_services)):
    """Current badge counts, as last refreshed by a change notification."""
    return BadgeResponse(
        cart_count=services.badges.cart_count,
        unpaid_orders_count=services.badges.unpaid_orders_count,
    )
