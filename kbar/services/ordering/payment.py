"""
Payment settlement.

There is no real gateway: settlement is simulated with a fixed latency and a
random outcome. The state machine only relies on ``settle`` returning once
with success or failure.
"""
import asyncio
import logging
import random
from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Optional

from kbar.services.ordering.models import Order

logger = logging.getLogger(__name__)


class PaymentSettlement(ABC):
    """Charges an order's total."""

    @abstractmethod
    async def settle(self, order: Order) -> bool:
        """Return True when the charge succeeded."""
        pass


class SimulatedSettlement(PaymentSettlement):
    """Settlement that succeeds with a fixed probability after a delay."""

    def __init__(
        self,
        latency_seconds: float = 2.0,
        success_rate: float = 0.8,
        rng: Optional[random.Random] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if not 0.0 <= success_rate <= 1.0:
            raise ValueError("success_rate must be between 0 and 1")
        self.latency_seconds = latency_seconds
        self.success_rate = success_rate
        self.rng = rng or random.Random()
        self.sleep = sleep

    async def settle(self, order: Order) -> bool:
        logger.info(f"[PAYMENT] Settling {order.order_number} for ${order.total:.2f}")
        await self.sleep(self.latency_seconds)
        ok = self.rng.random() < self.success_rate
        logger.info(f"[PAYMENT] Settlement {'approved' if ok else 'declined'} for {order.order_number}")
        return ok
