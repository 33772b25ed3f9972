from fastapi import APIRouter, Depends
from app.core.context import RequestContext
from app.core.dependencies import require_permission
from app.modules.selections.schemas import (
    CampSelection, CampSelectionWithCamp, SelectCampRequest, SelectionResult, CancelResult
)
from app.modules.selections.service import InventoryLedger
from typing import List, Optional

router = APIRouter(prefix="/selections", tags=["selections"])


@router.get("/me", response_model=Optional[CampSelectionWithCamp])
async def get_my_selection(context: RequestContext = Depends(require_permission("selections:read"))):
    """Current active selection with its camp, or null"""
    return InventoryLedger(context).get_active_selection(context.user.id)


@router.get("/me/history", response_model=List[CampSelection])
async def list_my_selections(context: RequestContext = Depends(require_permission("selections:read"))):
    """All selections of the current user, active and cancelled"""
    return InventoryLedger(context).list_selections(context.user.id)


@router.post("", response_model=SelectionResult, status_code=201)
async def select_camp(
    request: SelectCampRequest,
    context: RequestContext = Depends(require_permission("selections:create"))
):
    """Reserve one bed in a camp for the current user"""
    return InventoryLedger(context).select_camp(context.user.id, request.camp_id)


@router.delete("/me", response_model=CancelResult)
async def cancel_selection(context: RequestContext = Depends(require_permission("selections:cancel"))):
    """Cancel the current selection and release its bed"""
    return InventoryLedger(context).cancel_selection(context.user.id)
