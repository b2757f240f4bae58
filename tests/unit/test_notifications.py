"""Unit tests for the broadcaster, badge counter and payment prompt."""
import pytest

from kbar.core.exceptions import BroadcastError
from kbar.services.notifications.badges import BadgeCounter
from kbar.services.notifications.broadcaster import Broadcaster
from kbar.services.notifications.payment_prompt import PaymentPrompt
from kbar.services.ordering.models import CartItem


class TestBroadcaster:
    """Test pub/sub delivery."""

    @pytest.mark.asyncio
    async def test_publish_in_registration_order(self, broadcaster):
        calls = []
        broadcaster.subscribe(lambda: calls.append("a"))
        broadcaster.subscribe(lambda: calls.append("b"))
        broadcaster.subscribe(lambda: calls.append("c"))

        await broadcaster.publish()

        assert calls == ["a", "b", "c"]

    @pytest.mark.asyncio
    async def test_async_callbacks_awaited_in_order(self, broadcaster):
        calls = []

        async def first():
            calls.append("first")

        broadcaster.subscribe(first)
        broadcaster.subscribe(lambda: calls.append("second"))

        await broadcaster.publish()

        assert calls == ["first", "second"]

    @pytest.mark.asyncio
    async def test_unsubscribe(self, broadcaster):
        calls = []
        unsubscribe = broadcaster.subscribe(lambda: calls.append(1))

        unsubscribe()
        unsubscribe()
        await broadcaster.publish()

        assert calls == []
        assert len(broadcaster) == 0

    @pytest.mark.asyncio
    async def test_same_callback_twice_unsubscribes_separately(self, broadcaster):
        calls = []

        def callback():
            calls.append(1)

        first = broadcaster.subscribe(callback)
        broadcaster.subscribe(callback)
        first()

        await broadcaster.publish()

        assert calls == [1]

    @pytest.mark.asyncio
    async def test_failing_subscriber_does_not_block_others(self, broadcaster):
        calls = []

        def broken():
            raise RuntimeError("boom")

        broadcaster.subscribe(lambda: calls.append("before"))
        broadcaster.subscribe(broken)
        broadcaster.subscribe(lambda: calls.append("after"))

        with pytest.raises(BroadcastError) as exc_info:
            await broadcaster.publish()

        assert calls == ["before", "after"]
        assert len(exc_info.value.errors) == 1
        assert isinstance(exc_info.value.errors[0], RuntimeError)

    @pytest.mark.asyncio
    async def test_every_publish_is_delivered(self, broadcaster):
        """Test rapid publishes are not debounced away."""
        calls = []
        broadcaster.subscribe(lambda: calls.append(1))

        for _ in range(5):
            await broadcaster.publish()

        assert len(calls) == 5

    @pytest.mark.asyncio
    async def test_instances_are_isolated(self):
        first, second = Broadcaster(), Broadcaster()
        calls = []
        first.subscribe(lambda: calls.append("first"))

        await second.publish()

        assert calls == []


class TestBadgeCounter:
    """Test badge counts follow cart and order changes."""

    @pytest.mark.asyncio
    async def test_cart_badge_updates_on_add(self, persisted, broadcaster, cart, mojito, ipa):
        badges = BadgeCounter(persisted)
        badges.attach(broadcaster)

        await cart.add_item(mojito, 2)
        await cart.add_item(ipa, 1)

        assert badges.cart_count == 3

        await cart.clear()
        assert badges.cart_count == 0

    @pytest.mark.asyncio
    async def test_unpaid_badge_follows_order_lifecycle(self, persisted, broadcaster, machine, settlement):
        badges = BadgeCounter(persisted)
        badges.attach(broadcaster)
        line = CartItem(id="1", name="Mojito", price=7.99, quantity=1)

        order = await machine.create_order([line])
        assert badges.unpaid_orders_count == 1

        settlement.outcomes = [False]
        await machine.pay(order.id)
        assert badges.unpaid_orders_count == 1

        await machine.retry(order.id)
        await machine.pay(order.id)
        assert badges.unpaid_orders_count == 0

    @pytest.mark.asyncio
    async def test_two_counters_refresh_independently(self, persisted, broadcaster, cart, mojito):
        """Test two views mounted at once both see the change."""
        menu_badges = BadgeCounter(persisted)
        tab_badges = BadgeCounter(persisted)
        menu_badges.attach(broadcaster)
        tab_badges.attach(broadcaster)

        await cart.add_item(mojito, 4)

        assert menu_badges.cart_count == 4
        assert tab_badges.cart_count == 4

    @pytest.mark.asyncio
    async def test_detach_stops_refreshing(self, persisted, broadcaster, cart, mojito):
        badges = BadgeCounter(persisted)
        badges.attach(broadcaster)
        badges.detach()

        await cart.add_item(mojito, 1)

        assert badges.cart_count == 0
        assert badges.refresh_count == 0


class TestPaymentPrompt:
    """Test the one-shot payment dialog request."""

    def test_consume_clears_request(self):
        prompt = PaymentPrompt()
        prompt.request("abc1234")

        assert prompt.pending is True
        assert prompt.consume() == "abc1234"
        assert prompt.pending is False
        assert prompt.consume() is None

    def test_latest_request_wins(self):
        prompt = PaymentPrompt()
        prompt.request("first")
        prompt.request("second")

        assert prompt.consume() == "second"
