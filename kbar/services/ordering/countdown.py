"""Payment countdown for a pending order."""
import asyncio
import logging
import math
from datetime import datetime
from typing import Awaitable, Callable, Optional

from kbar.core.exceptions import StorageError
from kbar.services.ordering.clock import Clock

logger = logging.getLogger(__name__)


def remaining_window_seconds(window_start: datetime, now: datetime, timeout_seconds: int) -> int:
    """Whole seconds left in a payment window, between 0 and the timeout."""
    elapsed = max(0.0, (now - window_start).total_seconds())
    return max(0, timeout_seconds - math.floor(elapsed))


class PaymentCountdown:
    """
    Repeating tick task that expires an unpaid order.

    Remaining time is always derived from the window start rather than
    counted down, so a countdown created after a restart resumes where the
    old one left off.
    """

    def __init__(
        self,
        order_id: str,
        window_start: datetime,
        timeout_seconds: int,
        clock: Clock,
        on_expire: Callable[[str], Awaitable[object]],
        tick_seconds: float = 1.0,
    ):
        self.order_id = order_id
        self.window_start = window_start
        self.timeout_seconds = timeout_seconds
        self.clock = clock
        self.on_expire = on_expire
        self.tick_seconds = tick_seconds
        self.fired = False
        self._task: Optional[asyncio.Task] = None

    def remaining_seconds(self) -> int:
        return remaining_window_seconds(self.window_start, self.clock.now(), self.timeout_seconds)

    def start(self) -> None:
        if self._task is not None:
            return
        self._task = asyncio.get_running_loop().create_task(
            self._run(), name=f"payment-countdown-{self.order_id}"
        )

    async def _run(self) -> None:
        try:
            while self.remaining_seconds() > 0:
                await self.clock.sleep(self.tick_seconds)
            logger.info(f"[COUNTDOWN] Payment window for order {self.order_id} expired")
            # The order stays pending until the expiry is written, so keep trying each tick
            while True:
                try:
                    await self.on_expire(self.order_id)
                    break
                except StorageError as e:
                    logger.warning(
                        f"[COUNTDOWN] Could not expire order {self.order_id} ({e}); "
                        f"retrying in {self.tick_seconds}s"
                    )
                    await self.clock.sleep(self.tick_seconds)
            self.fired = True
        except asyncio.CancelledError:
            logger.debug(f"[COUNTDOWN] Countdown for order {self.order_id} disarmed")
            raise
        except Exception as e:
            logger.error(
                f"[COUNTDOWN] Expiry failed for order {self.order_id}: {type(e).__name__}: {e}",
                exc_info=True,
            )

    def cancel(self) -> None:
        """Disarm the countdown. A no-op from inside its own expiry callback."""
        if self._task is None or self._task.done():
            return
        if self._task is asyncio.current_task():
            return
        self._task.cancel()

    @property
    def active(self) -> bool:
        return self._task is not None and not self._task.done()

    async def wait(self) -> None:
        """Wait for the countdown task to finish, however it ends."""
        if self._task is not None:
            await asyncio.gather(self._task, return_exceptions=True)
