from fastapi import APIRouter, Depends
from app.core.context import RequestContext
from app.core.dependencies import require_permission
from app.core.errors import CampNotFound
from app.modules.camps.schemas import (
    Camp, CampCreate, CampUpdate, CampCapacityUpdate, CampResult, DeleteResult
)
from app.modules.camps.service import CampService
from typing import List

router = APIRouter(prefix="/camps", tags=["camps"])


@router.get("", response_model=List[Camp])
async def list_camps(context: RequestContext = Depends(require_permission("camps:read"))):
    """List all camps, newest first"""
    return CampService(context).list_camps()


@router.get("/{camp_id}", response_model=Camp)
async def get_camp(
    camp_id: str,
    context: RequestContext = Depends(require_permission("camps:read"))
):
    return CampService(context).get_camp(camp_id)


@router.post("", response_model=CampResult, status_code=201)
async def add_camp(
    camp_data: CampCreate,
    context: RequestContext = Depends(require_permission("camps:create"))
):
    """Add a camp (volunteers only)"""
    return CampResult(camp=CampService(context).add_camp(camp_data))


@router.patch("/{camp_id}", response_model=CampResult)
async def update_camp(
    camp_id: str,
    camp_data: CampUpdate,
    context: RequestContext = Depends(require_permission("camps:update"))
):
    """Edit camp details (volunteers only). Bed counts are not editable here."""
    return CampResult(camp=CampService(context).update_camp(camp_id, camp_data))


@router.put("/{camp_id}/capacity", response_model=CampResult)
async def resize_camp(
    camp_id: str,
    capacity_data: CampCapacityUpdate,
    context: RequestContext = Depends(require_permission("camps:update"))
):
    """Change total bed capacity, keeping occupied beds occupied (volunteers only)"""
    return CampResult(camp=CampService(context).resize_camp(camp_id, capacity_data.capacity))


@router.delete("/{camp_id}", response_model=DeleteResult)
async def delete_camp(
    camp_id: str,
    context: RequestContext = Depends(require_permission("camps:delete"))
):
    """Delete a camp without active selections (volunteers only)"""
    if not CampService(context).delete_camp(camp_id):
        raise CampNotFound()
    return DeleteResult(message="Camp deleted")
