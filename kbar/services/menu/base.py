"""Menu provider interface."""
from abc import ABC, abstractmethod
from typing import List, Optional
from pydantic import BaseModel


class MenuItem(BaseModel):
    """Menu item model."""

    id: str
    name: str
    category: str
    price: float
    description: str = ""
    emoji: str = "🍽️"
    is_popular: bool = False
    is_spicy: bool = False
    is_special: bool = False


class MenuSection(BaseModel):
    """Menu items grouped under one category title."""

    title: str
    data: List[MenuItem]


class Menu(BaseModel):
    """Menu model."""

    items: List[MenuItem]
    categories: List[str] = []


class MenuProvider(ABC):
    """Abstract base class for menu providers."""

    @abstractmethod
    async def get_menu(self) -> Menu:
        """Get the full menu."""
        pass

    @abstractmethod
    async def get_item_by_id(self, item_id: str) -> Optional[MenuItem]:
        """Get a menu item by id."""
        pass
