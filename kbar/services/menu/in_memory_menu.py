"""In-memory menu provider."""
import yaml
from pathlib import Path
from typing import List, Optional
from kbar.services.menu.base import Menu, MenuItem, MenuProvider


class InMemoryMenuProvider(MenuProvider):
    """In-memory menu provider using YAML configuration."""

    def __init__(self, menu_file: Optional[str] = None):
        """Initialize with optional menu file path."""
        if menu_file is None:
            menu_file = Path(__file__).parent / "data" / "menu.yaml"
        self.menu_file = Path(menu_file)
        self._menu: Optional[Menu] = None

    async def _load_menu(self) -> Menu:
        """Load menu from YAML file."""
        if self._menu is None:
            with open(self.menu_file, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
            items = [MenuItem(**item) for item in data.get("items", [])]
            categories: List[str] = data.get("categories") or []
            # Categories not listed explicitly follow in order of first use
            for item in items:
                if item.category not in categories:
                    categories.append(item.category)
            self._menu = Menu(items=items, categories=categories)
        return self._menu

    async def get_menu(self) -> Menu:
        """Get the full menu."""
        return await self._load_menu()

    async def get_item_by_id(self, item_id: str) -> Optional[MenuItem]:
        """Get a menu item by id."""
        menu = await self._load_menu()
        for item in menu.items:
            if item.id == item_id:
                return item
        return None
