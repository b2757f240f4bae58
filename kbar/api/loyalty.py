"""Loyalty API endpoints."""
from fastapi import APIRouter, Depends

from kbar.core.dependencies import get_loyalty
from kbar.services.loyalty.service import LoyaltyAccount, LoyaltyService

router = APIRouter()


@router.get("/api/loyalty", response_model=LoyaltyAccount)
async def get_loyalty_account(loyalty: LoyaltyService = Depends(get_loyalty)):
    """Point balance, tier and progress to the next tier."""
    return await loyalty.get_account()


@router.post("/api/loyalty/reset", response_model=LoyaltyAccount)
async def reset_loyalty_account(loyalty: LoyaltyService = Depends(get_loyalty)):
    """Administrative reset of the point balance."""
    return await loyalty.reset()
