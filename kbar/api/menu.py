"""Menu API endpoints."""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel

from kbar.core.dependencies import get_menu_repository
from kbar.services.menu.base import MenuItem, MenuSection
from kbar.services.menu.repository import MenuRepository

router = APIRouter()
logger = logging.getLogger(__name__)


class MenuResponse(BaseModel):
    """Menu response model."""
    items: List[MenuItem]
    categories: List[str] = []


@router.get("/api/menu", response_model=MenuResponse)
async def get_menu(
    request: Request,
    menu_repository: MenuRepository = Depends(get_menu_repository),
):
    """Get the full menu."""
    logger.info(
        f"[MENU] Request received - Client: {request.client.host if request.client else 'unknown'}"
    )
    menu = await menu_repository.get_menu()
    logger.info(f"[MENU] Menu loaded - {len(menu.items)} items, {len(menu.categories)} categories")
    return MenuResponse(items=menu.items, categories=menu.categories)


@router.get("/api/menu/sections", response_model=List[MenuSection])
async def get_menu_sections(
    q: Optional[str] = None,
    menu_repository: MenuRepository = Depends(get_menu_repository),
):
    """Menu grouped by category, filtered by an optional search query."""
    return await menu_repository.get_sections(q)


@router.get("/api/menu/search", response_model=List[MenuItem])
async def search_menu(
    q: str,
    menu_repository: MenuRepository = Depends(get_menu_repository),
):
    """Items whose name or description matches the query."""
    items = await menu_repository.search(q)
    logger.info(f"[MENU] Search '{q}' matched {len(items)} items")
    return items


@router.get("/api/menu/items/{item_id}", response_model=MenuItem)
async def get_menu_item(
    item_id: str,
    menu_repository: MenuRepository = Depends(get_menu_repository),
):
    """Get a single menu item."""
    item = await menu_repository.get_item_by_id(item_id)
    if not item:
        raise HTTPException(status_code=404, detail=f"Menu item '{item_id}' not found")
    return item


async def require_menu_item(menu_repository: MenuRepository, item_id: str) -> MenuItem:
    """Look up a menu item or fail with 404."""
    item = await menu_repository.get_item_by_id(item_id)
    if not item:
        logger.warning(f"[MENU] Unknown menu item requested: {item_id}")
        raise HTTPException(status_code=404, detail=f"Menu item '{item_id}' not found")
    return item
