"""Kitchen screen API endpoints"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Path

from kitchen_display.api.deps import get_screen, raise_for_outcome
from kitchen_display.kitchen.screen import KitchenScreen
from kitchen_display.schemas.history import HistoryState
from kitchen_display.schemas.kitchen import (
    Feedback,
    GroupedItem,
    ItemReadyRequest,
    ItemStatusRequest,
    MutationOutcome,
    OrderView,
    ScreenState,
    StatusChangeRequest,
    ViewRequest,
)

router = APIRouter()


@router.get("/orders", response_model=ScreenState, response_model_by_alias=True)
async def list_orders(screen: KitchenScreen = Depends(get_screen)):
    """Orders in the current view, with timers and voice numbers"""
    return screen.screen_state()


@router.post("/refresh", response_model=ScreenState, response_model_by_alias=True)
async def refresh_orders(screen: KitchenScreen = Depends(get_screen)):
    """Refetch every order from the order service"""
    if not await screen.controller.refresh():
        raise HTTPException(status_code=502, detail="Failed to fetch orders")
    return screen.screen_state()


@router.post("/orders/{order_id}/accept", response_model=MutationOutcome, response_model_by_alias=True)
async def accept_order(order_id: str, screen: KitchenScreen = Depends(get_screen)):
    return raise_for_outcome(await screen.controller.accept_order(order_id))


@router.post("/orders/{order_id}/ready", response_model=MutationOutcome, response_model_by_alias=True)
async def mark_ready(order_id: str, screen: KitchenScreen = Depends(get_screen)):
    return raise_for_outcome(await screen.controller.mark_ready(order_id))


@router.post("/orders/{order_id}/complete", response_model=MutationOutcome, response_model_by_alias=True)
async def complete_order(order_id: str, screen: KitchenScreen = Depends(get_screen)):
    return raise_for_outcome(await screen.controller.complete_order(order_id))


@router.patch("/orders/{order_id}/status", response_model=MutationOutcome, response_model_by_alias=True)
async def change_status(
    order_id: str,
    body: StatusChangeRequest,
    screen: KitchenScreen = Depends(get_screen),
):
    return raise_for_outcome(await screen.controller.change_status(order_id, body.status))


@router.patch(
    "/orders/{order_id}/items/{item_index}",
    response_model=MutationOutcome,
    response_model_by_alias=True,
)
async def update_item_status(
    order_id: str,
    body: ItemStatusRequest,
    item_index: int = Path(ge=0),
    screen: KitchenScreen = Depends(get_screen),
):
    return raise_for_outcome(await screen.controller.set_item_status(order_id, item_index, body.status))


@router.post("/items/ready", response_model=List[MutationOutcome], response_model_by_alias=True)
async def mark_item_ready(body: ItemReadyRequest, screen: KitchenScreen = Depends(get_screen)):
    """Mark ready every preparing order containing the item"""
    return await screen.controller.mark_ready_by_item(body.item_name)


@router.get("/history", response_model=HistoryState, response_model_by_alias=True)
async def get_history(screen: KitchenScreen = Depends(get_screen)):
    return screen.controller.history_state()


@router.post("/history/undo", response_model=MutationOutcome, response_model_by_alias=True)
async def undo(screen: KitchenScreen = Depends(get_screen)):
    return raise_for_outcome(await screen.controller.undo())


@router.post("/history/redo", response_model=MutationOutcome, response_model_by_alias=True)
async def redo(screen: KitchenScreen = Depends(get_screen)):
    return raise_for_outcome(await screen.controller.redo())


@router.get("/views/all-day", response_model=List[GroupedItem], response_model_by_alias=True)
async def all_day(screen: KitchenScreen = Depends(get_screen)):
    """Item totals across the selected day"""
    return screen.all_day()


@router.get("/views/recently-completed", response_model=List[OrderView], response_model_by_alias=True)
async def recently_completed(screen: KitchenScreen = Depends(get_screen)):
    return screen.completed()


@router.put("/view", response_model=ScreenState, response_model_by_alias=True)
async def set_view(body: ViewRequest, screen: KitchenScreen = Depends(get_screen)):
    screen.set_view(body.view_mode, body.sort_by, body.selected_date)
    return screen.screen_state()


@router.get("/feedback", response_model=List[Feedback], response_model_by_alias=True)
async def drain_feedback(screen: KitchenScreen = Depends(get_screen)):
    """Toasts raised since the last call"""
    return screen.feedback.drain()
