"""Shared test fixtures and configuration."""
import os
from pathlib import Path
from typing import List, Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

# Set test environment variables before importing the app
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("VENUE_NAME", "Test Bar")

from kbar.core.config import Settings
from kbar.core.dependencies import ServiceContainer
from kbar.db.models import Base
from kbar.main import create_app
from kbar.services.loyalty.service import LoyaltyService
from kbar.services.menu.in_memory_menu import InMemoryMenuProvider
from kbar.services.menu.repository import MenuRepository
from kbar.services.notifications.broadcaster import Broadcaster
from kbar.services.ordering.cart import CartAggregator
from kbar.services.ordering.clock import ManualClock
from kbar.services.ordering.models import Order
from kbar.services.ordering.payment import PaymentSettlement
from kbar.services.ordering.state_machine import OrderStateMachine
from kbar.services.storage.in_memory_store import InMemoryKeyValueStore
from kbar.services.storage.repository import PersistedStore


# Test database URL (in-memory SQLite)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


class ScriptedSettlement(PaymentSettlement):
    """Settlement returning queued outcomes, then a default."""

    def __init__(self, outcomes: Optional[List[bool]] = None, default: bool = True):
        self.outcomes = list(outcomes or [])
        self.default = default
        self.calls: List[str] = []

    async def settle(self, order: Order) -> bool:
        self.calls.append(order.id)
        return self.outcomes.pop(0) if self.outcomes else self.default


class FlakyStore(InMemoryKeyValueStore):
    """In-memory store whose writes and removals can be made to fail."""

    def __init__(self):
        super().__init__()
        self.fail_writes = False

    async def set(self, key, value):
        if self.fail_writes:
            raise OSError("disk full")
        await super().set(key, value)

    async def set_many(self, values):
        if self.fail_writes:
            raise OSError("disk full")
        await super().set_many(values)

    async def remove(self, key):
        if self.fail_writes:
            raise OSError("disk full")
        await super().remove(key)


@pytest.fixture
def test_settings():
    """Override settings for testing."""
    return Settings(
        database_url=TEST_DATABASE_URL,
        venue_name="Test Bar",
        payment_timeout_seconds=300,
        countdown_tick_seconds=1.0,
        settlement_latency_seconds=0.0,
        settlement_success_rate=1.0,
        purge_failed_on_clear=False,
    )


@pytest.fixture
async def test_db_engine():
    """Create test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # Create all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    # Drop all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def test_session_factory(test_db_engine):
    """Session factory bound to the test engine."""
    return async_sessionmaker(
        test_db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest.fixture
def kv_store():
    """Fresh in-memory key-value store."""
    return FlakyStore()


@pytest.fixture
def persisted(kv_store):
    return PersistedStore(kv_store)


@pytest.fixture
def broadcaster():
    return Broadcaster()


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def settlement():
    return ScriptedSettlement()


@pytest.fixture
async def machine(persisted, broadcaster, settlement, clock):
    """Order state machine on the in-memory store and a manual clock."""
    order_machine = OrderStateMachine(
        store=persisted,
        broadcaster=broadcaster,
        settlement=settlement,
        clock=clock,
        timeout_seconds=300,
        tick_seconds=1.0,
    )
    yield order_machine
    await order_machine.shutdown()


@pytest.fixture
def cart(persisted, broadcaster):
    return CartAggregator(persisted, broadcaster)


@pytest.fixture
def loyalty(persisted):
    return LoyaltyService(persisted)


@pytest.fixture
def menu_repository():
    """Menu repository over the venue's bundled menu."""
    return MenuRepository(InMemoryMenuProvider())


@pytest.fixture
def test_menu_path():
    """Return path to test menu YAML file."""
    return Path(__file__).parent / "fixtures" / "test_menu.yaml"


@pytest.fixture
def test_menu_repository(test_menu_path):
    """Create menu repository with test data."""
    provider = InMemoryMenuProvider(menu_file=str(test_menu_path))
    return MenuRepository(provider)


@pytest.fixture
async def mojito(menu_repository):
    return await menu_repository.get_item_by_id("1")


@pytest.fixture
async def ipa(menu_repository):
    return await menu_repository.get_item_by_id("5")


@pytest.fixture
async def wings(menu_repository):
    return await menu_repository.get_item_by_id("6")


@pytest.fixture
def test_client(test_settings, settlement, clock):
    """Create FastAPI test client over in-memory services."""
    def services_factory():
        return ServiceContainer(
            InMemoryKeyValueStore(),
            settings=test_settings,
            settlement=settlement,
            clock=clock,
        )

    app = create_app(services_factory)

    with TestClient(app) as client:
        yield client
