"""Loyalty account service."""
import logging

from pydantic import BaseModel

from kbar.services.loyalty.tiers import TierProgress, get_progress, get_tier
from kbar.services.storage.repository import PersistedStore

logger = logging.getLogger(__name__)


class LoyaltyAccount(BaseModel):
    """Point balance with its derived tier."""

    points: int
    tier: str
    progress: TierProgress

    @classmethod
    def from_points(cls, points: int) -> "LoyaltyAccount":
        return cls(points=points, tier=get_tier(points), progress=get_progress(points))


class LoyaltyService:
    """Reads and adjusts the persisted loyalty balance.

    Paid orders award points through the order state machine, which writes
    the balance together with the order under its lock. This service only
    reads the balance and performs the administrative reset.
    """

    def __init__(self, store: PersistedStore):
        self.store = store

    async def get_account(self) -> LoyaltyAccount:
        points = await self.store.get_loyalty_points()
        return LoyaltyAccount.from_points(points)

    async def reset(self) -> LoyaltyAccount:
        """Administrative reset of the balance to zero."""
        await self.store.save_loyalty_points(0)
        logger.warning("[LOYALTY] Balance reset to 0")
        return LoyaltyAccount.from_points(0)
