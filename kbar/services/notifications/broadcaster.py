"""Process-wide change notifications.

Every mutation of the cart or the order list ends with a ``publish()``.
Subscribers re-read persisted state to recompute whatever they display,
so the signal carries no payload.
"""
import inspect
import logging
from typing import Awaitable, Callable, List, Optional, Union

from kbar.core.exceptions import BroadcastError

logger = logging.getLogger(__name__)

Callback = Callable[[], Optional[Awaitable[None]]]
Unsubscribe = Callable[[], None]


class _Subscription:
    def __init__(self, callback: Callback):
        self.callback = callback


class Broadcaster:
    """Zero-argument pub/sub registry."""

    def __init__(self):
        self._subscriptions: List[_Subscription] = []

    def subscribe(self, callback: Callback) -> Unsubscribe:
        """Register a callback and return a handle that removes it."""
        subscription = _Subscription(callback)
        self._subscriptions.append(subscription)

        def unsubscribe() -> None:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)

        return unsubscribe

    async def publish(self) -> None:
        """
        Invoke every subscriber in registration order.

        Async callbacks are awaited before the next subscriber runs. A failing
        subscriber does not stop the rest; once all have run, the failures are
        raised together as a BroadcastError.
        """
        errors: List[BaseException] = []
        for subscription in list(self._subscriptions):
            try:
                result: Union[None, Awaitable[None]] = subscription.callback()
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.error(
                    f"[BROADCAST] Subscriber {subscription.callback!r} failed: "
                    f"{type(e).__name__}: {e}",
                    exc_info=True,
                )
                errors.append(e)
        if errors:
            raise BroadcastError(errors)

    def __len__(self) -> int:
        return len(self._subscriptions)
