"""Unit tests for the cart aggregator."""
import random

import pytest

from kbar.core.exceptions import InvalidQuantityError, StorageError


class TestCartOperations:
    """Test cart mutations and reductions."""

    @pytest.mark.asyncio
    async def test_add_new_item(self, cart, mojito, persisted):
        """Test adding an item appends a line and persists the cart."""
        await cart.add_item(mojito, 2)

        assert len(cart.items) == 1
        assert cart.items[0].id == "1"
        assert cart.items[0].quantity == 2
        assert cart.items[0].emoji == "🍹"

        stored = await persisted.get_cart()
        assert [(line.id, line.quantity) for line in stored] == [("1", 2)]

    @pytest.mark.asyncio
    async def test_repeated_add_increments_quantity(self, cart, mojito):
        """Test adding the same item merges into one line."""
        await cart.add_item(mojito, 1)
        await cart.add_item(mojito, 3)

        assert len(cart.items) == 1
        assert cart.items[0].quantity == 4

    @pytest.mark.asyncio
    @pytest.mark.parametrize("quantity", [0, -2, 1.5, True, "2"])
    async def test_add_rejects_invalid_quantity(self, cart, mojito, quantity):
        """Test non-positive or non-integer quantities change nothing."""
        with pytest.raises(InvalidQuantityError):
            await cart.add_item(mojito, quantity)
        assert cart.items == []

    @pytest.mark.asyncio
    async def test_update_quantity(self, cart, mojito, ipa):
        await cart.add_item(mojito, 1)
        await cart.add_item(ipa, 1)

        await cart.update_quantity("5", 4)

        assert {line.id: line.quantity for line in cart.items} == {"1": 1, "5": 4}

    @pytest.mark.asyncio
    async def test_update_quantity_below_one_is_ignored(self, cart, mojito, broadcaster):
        """Test the quantity floor is 1; removal must be explicit."""
        await cart.add_item(mojito, 2)
        calls = []
        broadcaster.subscribe(lambda: calls.append(1))

        await cart.update_quantity("1", 0)

        assert cart.items[0].quantity == 2
        assert calls == []

    @pytest.mark.asyncio
    async def test_remove_last_item_persists_empty_cart(self, cart, mojito, persisted, broadcaster):
        """Test removing the final line still persists and notifies."""
        await cart.add_item(mojito, 1)
        calls = []
        broadcaster.subscribe(lambda: calls.append(1))

        await cart.remove_item("1")

        assert cart.items == []
        assert await persisted.get_cart() == []
        assert calls == [1]

    @pytest.mark.asyncio
    async def test_clear_removes_record(self, cart, mojito, ipa, kv_store):
        await cart.add_item(mojito, 1)
        await cart.add_item(ipa, 2)

        await cart.clear()

        assert cart.items == []
        assert "userCart" not in kv_store.keys()

    @pytest.mark.asyncio
    async def test_total_and_item_count(self, cart, mojito, ipa):
        """Test Mojito x2 and IPA x1 total 22.48 over 3 items."""
        await cart.add_item(mojito, 2)
        await cart.add_item(ipa, 1)

        assert cart.total() == 22.48
        assert cart.item_count() == 3

    @pytest.mark.asyncio
    async def test_load_refreshes_snapshot(self, cart, persisted, broadcaster, mojito):
        """Test a second view of the cart sees changes after load."""
        from kbar.services.ordering.cart import CartAggregator

        other = CartAggregator(persisted, broadcaster)
        await cart.add_item(mojito, 2)

        assert other.items == []
        await other.load()
        assert other.item_count() == 2


class TestCartInvariants:
    """Test cart invariants over random operation sequences."""

    @pytest.mark.asyncio
    async def test_random_sequences_keep_ids_unique_and_quantities_positive(
        self, cart, menu_repository
    ):
        menu = await menu_repository.get_menu()
        rng = random.Random(1234)

        for _ in range(300):
            item = rng.choice(menu.items)
            action = rng.choice(["add", "update", "remove"])
            if action == "add":
                await cart.add_item(item, rng.randint(1, 4))
            elif action == "update":
                await cart.update_quantity(item.id, rng.randint(-2, 5))
            else:
                await cart.remove_item(item.id)

            ids = [line.id for line in cart.items]
            assert len(ids) == len(set(ids))
            assert all(line.quantity >= 1 for line in cart.items)
            expected = round(sum(line.price * line.quantity for line in cart.items), 2)
            assert cart.total() == expected
            assert cart.item_count() == sum(line.quantity for line in cart.items)


class TestCartStorageFailures:
    """Test the cart view rolls back when persistence fails."""

    @pytest.mark.asyncio
    async def test_failed_add_rolls_back(self, cart, mojito, ipa, kv_store):
        await cart.add_item(mojito, 1)
        kv_store.fail_writes = True

        with pytest.raises(StorageError):
            await cart.add_item(ipa, 2)

        assert [(line.id, line.quantity) for line in cart.items] == [("1", 1)]

    @pytest.mark.asyncio
    async def test_failed_clear_keeps_items(self, cart, mojito, kv_store):
        await cart.add_item(mojito, 3)
        kv_store.fail_writes = True

        with pytest.raises(StorageError):
            await cart.clear()

        assert cart.item_count() == 3

    @pytest.mark.asyncio
    async def test_failed_write_does_not_notify(self, cart, mojito, kv_store, broadcaster):
        calls = []
        broadcaster.subscribe(lambda: calls.append(1))
        kv_store.fail_writes = True

        with pytest.raises(StorageError):
            await cart.add_item(mojito, 1)

        assert calls == []
