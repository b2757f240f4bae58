"""Unit tests for menu service and repository."""
import pytest

from kbar.services.menu.in_memory_menu import InMemoryMenuProvider
from kbar.services.menu.repository import MenuRepository


class TestMenuService:
    """Test menu repository and provider."""

    @pytest.mark.asyncio
    async def test_load_menu_from_yaml(self, test_menu_repository):
        """Test loading menu from YAML file."""
        menu = await test_menu_repository.get_menu()

        # Verify items parsed correctly
        assert [item.name for item in menu.items] == ["Margarita", "Stout", "Nachos"]
        assert menu.items[0].price == 8.00
        assert menu.items[0].is_popular is True
        assert menu.items[2].is_spicy is True

        # Categories follow first use when not listed
        assert menu.categories == ["Cocktails", "Beers", "Snacks"]

    @pytest.mark.asyncio
    async def test_bundled_menu(self, menu_repository):
        """Test the venue menu ships with its eight items."""
        menu = await menu_repository.get_menu()

        assert len(menu.items) == 8
        assert len(menu.categories) == len(set(menu.categories))
        names = [item.name for item in menu.items]
        assert "Mojito" in names
        assert "Bartender's Special" in names

    @pytest.mark.asyncio
    async def test_bundled_prices(self, mojito, ipa, wings):
        assert (mojito.price, mojito.emoji) == (7.99, "🍹")
        assert ipa.price == 6.50
        assert wings.price == 9.50
        assert wings.is_spicy is True

    @pytest.mark.asyncio
    async def test_get_item_by_id(self, test_menu_repository):
        """Test get_item_by_id returns correct MenuItem."""
        item = await test_menu_repository.get_item_by_id("b1")

        assert item is not None
        assert item.name == "Stout"
        assert item.category == "Beers"

    @pytest.mark.asyncio
    async def test_get_item_by_id_not_found(self, test_menu_repository):
        """Test get_item_by_id returns None for non-existent item."""
        assert await test_menu_repository.get_item_by_id("nonexistent") is None

    @pytest.mark.asyncio
    async def test_sections_group_by_category(self, test_menu_repository):
        sections = await test_menu_repository.get_sections()

        assert [section.title for section in sections] == ["Cocktails", "Beers", "Snacks"]
        assert [item.id for item in sections[0].data] == ["m1"]

    @pytest.mark.asyncio
    async def test_search_matches_name_and_description(self, test_menu_repository):
        """Test search is case-insensitive over name and description."""
        by_name = await test_menu_repository.search("STOUT")
        by_description = await test_menu_repository.search("salsa")

        assert [item.id for item in by_name] == ["b1"]
        assert [item.id for item in by_description] == ["s1"]

    @pytest.mark.asyncio
    async def test_search_drops_empty_sections(self, test_menu_repository):
        sections = await test_menu_repository.get_sections("lime")

        assert [section.title for section in sections] == ["Cocktails"]
        assert await test_menu_repository.search("pizza") == []

    @pytest.mark.asyncio
    async def test_blank_query_returns_everything(self, test_menu_repository):
        sections = await test_menu_repository.get_sections("   ")

        assert sum(len(section.data) for section in sections) == 3

    @pytest.mark.asyncio
    async def test_get_menu_text(self, test_menu_repository):
        """Test get_menu_text returns formatted string."""
        text = await test_menu_repository.get_menu_text()

        assert text.startswith("Menu:")
        assert "Cocktails:" in text
        assert "🍸 Margarita $8.00" in text
        assert "[popular]" in text
        assert "[spicy]" in text

    @pytest.mark.asyncio
    async def test_menu_cached_after_first_load(self, test_menu_path):
        provider = InMemoryMenuProvider(menu_file=str(test_menu_path))
        repository = MenuRepository(provider)

        first = await repository.get_menu()
        second = await repository.get_menu()

        assert first is second
