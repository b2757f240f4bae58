"""Quick-order API endpoints."""
import logging
from typing import List

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from kbar.api.menu import require_menu_item
from kbar.api.schemas import (
    AddItemRequest,
    LineResponse,
    OrderResponse,
    QuantityRequest,
    order_response,
)
from kbar.core.dependencies import ServiceContainer, get_services
from kbar.services.ordering.quick_order import QuickOrderSession

router = APIRouter()
logger = logging.getLogger(__name__)


class DraftResponse(BaseModel):
    """Quick-order draft response model."""
    session_id: str
    items: List[LineResponse]
    total: float
    item_count: int
    added: bool = True


def draft_response(session_id: str, draft: QuickOrderSession, added: bool = True) -> DraftResponse:
    return DraftResponse(
        session_id=session_id,
        items=[LineResponse.from_item(item) for item in draft.items],
        total=draft.total(),
        item_count=draft.item_count(),
        added=added,
    )


@router.get("/api/quick-order/{session_id}", response_model=DraftResponse)
async def get_draft(session_id: str, services: ServiceContainer = Depends(get_services)):
    """Get the quick-order draft."""
    return draft_response(session_id, services.get_quick_session(session_id))


@router.post("/api/quick-order/{session_id}/items", response_model=DraftResponse)
async def add_draft_item(
    session_id: str,
    body: AddItemRequest,
    services: ServiceContainer = Depends(get_services),
):
    """Add an item to the draft. Re-adding an item already there does nothing."""
    item = await require_menu_item(services.menu_repository, body.item_id)
    draft = services.get_quick_session(session_id)
    added = draft.add_distinct_item(item, body.quantity)
    services.keep_quick_session(session_id, draft)
    return draft_response(session_id, draft, added=added)


@router.patch("/api/quick-order/{session_id}/items/{item_id}", response_model=DraftResponse)
async def update_draft_item(
    session_id: str,
    item_id: str,
    body: QuantityRequest,
    services: ServiceContainer = Depends(get_services),
):
    """Change a draft line's quantity."""
    draft = services.get_quick_session(session_id)
    draft.update_quantity(item_id, body.quantity)
    return draft_response(session_id, draft)


@router.delete("/api/quick-order/{session_id}/items/{item_id}", response_model=DraftResponse)
async def remove_draft_item(
    session_id: str,
    item_id: str,
    services: ServiceContainer = Depends(get_services),
):
    """Remove a line from the draft."""
    draft = services.get_quick_session(session_id)
    draft.remove_item(item_id)
    services.keep_quick_session(session_id, draft)
    return draft_response(session_id, draft)


@router.delete("/api/quick-order/{session_id}")
async def discard_draft(session_id: str, services: ServiceContainer = Depends(get_services)):
    """Discard the draft."""
    services.discard_quick_session(session_id)
    return {"discarded": True}


@router.post("/api/quick-order/{session_id}/finalize", response_model=OrderResponse)
async def finalize_draft(session_id: str, services: ServiceContainer = Depends(get_services)):
    """Place the draft as an order awaiting payment."""
    draft = services.get_quick_session(session_id)
    order = await draft.finalize(services.machine)
    services.discard_quick_session(session_id)
    logger.info(f"[QUICK ORDER] Session {session_id} placed {order.order_number}")
    return order_response(order, services.machine)
