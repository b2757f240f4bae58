"""Service wiring and FastAPI dependencies."""
import logging
from typing import Dict, Optional

from fastapi import Depends, Request

from kbar.core.config import Settings, settings as default_settings
from kbar.services.loyalty.service import LoyaltyService
from kbar.services.menu.in_memory_menu import InMemoryMenuProvider
from kbar.services.menu.repository import MenuRepository
from kbar.services.notifications.badges import BadgeCounter
from kbar.services.notifications.broadcaster import Broadcaster
from kbar.services.notifications.payment_prompt import PaymentPrompt
from kbar.services.ordering.cart import CartAggregator
from kbar.services.ordering.checkout import CheckoutService
from kbar.services.ordering.clock import Clock
from kbar.services.ordering.payment import PaymentSettlement, SimulatedSettlement
from kbar.services.ordering.quick_order import QuickOrderSession
from kbar.services.ordering.state_machine import OrderStateMachine
from kbar.services.storage.base import KeyValueStore
from kbar.services.storage.repository import PersistedStore

logger = logging.getLogger(__name__)


class ServiceContainer:
    """Builds the ordering services around one store and one broadcaster."""

    def __init__(
        self,
        store: KeyValueStore,
        settings: Optional[Settings] = None,
        settlement: Optional[PaymentSettlement] = None,
        clock: Optional[Clock] = None,
        menu_repository: Optional[MenuRepository] = None,
    ):
        self.settings = settings or default_settings
        self.persisted = PersistedStore(store)
        self.broadcaster = Broadcaster()
        self.settlement = settlement or SimulatedSettlement(
            latency_seconds=self.settings.settlement_latency_seconds,
            success_rate=self.settings.settlement_success_rate,
        )
        self.machine = OrderStateMachine(
            store=self.persisted,
            broadcaster=self.broadcaster,
            settlement=self.settlement,
            clock=clock,
            timeout_seconds=self.settings.payment_timeout_seconds,
            tick_seconds=self.settings.countdown_tick_seconds,
            purge_failed_on_clear=self.settings.purge_failed_on_clear,
        )
        self.cart = CartAggregator(self.persisted, self.broadcaster)
        self.loyalty = LoyaltyService(self.persisted)
        self.payment_prompt = PaymentPrompt()
        self.checkout = CheckoutService(self.machine, self.cart, self.payment_prompt)
        self.badges = BadgeCounter(self.persisted)
        self.menu_repository = menu_repository or MenuRepository(
            provider=InMemoryMenuProvider(self.settings.menu_file)
        )
        self.quick_sessions: Dict[str, QuickOrderSession] = {}

    async def start(self) -> None:
        """Load persisted state and resume pending payment countdowns."""
        self.badges.attach(self.broadcaster)
        await self.cart.load()
        await self.badges.refresh()
        await self.machine.resume()
        logger.info(f"[STARTUP] {self.settings.venue_name} ordering services ready")

    async def shutdown(self) -> None:
        await self.machine.shutdown()
        self.badges.detach()
        self.quick_sessions.clear()

    def get_quick_session(self, session_id: str) -> QuickOrderSession:
        """Get the draft for a session id, or a fresh unsaved one.

        Reading never registers a session; only keep_quick_session does.
        """
        draft = self.quick_sessions.get(session_id)
        return draft if draft is not None else QuickOrderSession()

    def keep_quick_session(self, session_id: str, draft: QuickOrderSession) -> None:
        """Hold a draft with items; an emptied draft is dropped."""
        if draft.is_empty():
            self.discard_quick_session(session_id)
        else:
            self.quick_sessions[session_id] = draft

    def discard_quick_session(self, session_id: str) -> None:
        self.quick_sessions.pop(session_id, None)


def get_services(request: Request) -> ServiceContainer:
    """Get the service container created at startup."""
    return request.app.state.services


def get_menu_repository(services: ServiceContainer = Depends(get_services)) -> MenuRepository:
    """Get menu repository instance."""
    return services.menu_repository


def get_cart(services: ServiceContainer = Depends(get_services)) -> CartAggregator:
    return services.cart


def get_machine(services: ServiceContainer = Depends(get_services)) -> OrderStateMachine:
    return services.machine


def get_checkout(services: ServiceContainer = Depends(get_services)) -> CheckoutService:
    return services.checkout


def get_loyalty(services: ServiceContainer = Depends(get_services)) -> LoyaltyService:
    return services.loyalty
