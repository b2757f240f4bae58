"""Menu repository."""
from typing import List, Optional
from kbar.services.menu.base import Menu, MenuItem, MenuProvider, MenuSection


class MenuRepository:
    """Repository for menu operations."""

    def __init__(self, provider: MenuProvider):
        self.provider = provider

    async def get_menu(self) -> Menu:
        """Get the full menu."""
        return await self.provider.get_menu()

    async def get_item_by_id(self, item_id: str) -> Optional[MenuItem]:
        """Get item by id."""
        return await self.provider.get_item_by_id(item_id)

    async def get_sections(self, query: Optional[str] = None) -> List[MenuSection]:
        """
        Group menu items by category, optionally filtered by a search query.

        The query matches name or description case-insensitively. Sections
        left without items are dropped.
        """
        menu = await self.get_menu()
        needle = query.lower().strip() if query else ""
        sections = []
        for category in menu.categories:
            data = [
                item
                for item in menu.items
                if item.category == category
                and (
                    not needle
                    or needle in item.name.lower()
                    or needle in item.description.lower()
                )
            ]
            if data:
                sections.append(MenuSection(title=category, data=data))
        return sections

    async def search(self, query: str) -> List[MenuItem]:
        """Flat list of items matching a search query."""
        return [item for section in await self.get_sections(query) for item in section.data]

    async def get_menu_text(self) -> str:
        """Get menu as formatted text."""
        lines = ["Menu:"]
        for section in await self.get_sections():
            lines.append(f"\n{section.title}:")
            for item in section.data:
                flags = [
                    label
                    for label, on in (
                        ("popular", item.is_popular),
                        ("spicy", item.is_spicy),
                        ("special", item.is_special),
                    )
                    if on
                ]
                flags_str = f" [{', '.join(flags)}]" if flags else ""
                lines.append(f"  - {item.emoji} {item.name} ${item.price:.2f} - {item.description}{flags_str}")
        return "\n".join(lines)
