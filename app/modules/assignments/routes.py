from fastapi import APIRouter, Depends
from app.core.context import RequestContext
from app.core.dependencies import require_permission
from app.modules.assignments.schemas import AssignmentCreate, AssignmentResult, VolunteerAssignment
from app.modules.assignments.service import AssignmentService
from typing import List

router = APIRouter(prefix="/assignments", tags=["assignments"])


@router.post("", response_model=AssignmentResult, status_code=201)
async def record_assignment(
    assignment_data: AssignmentCreate,
    context: RequestContext = Depends(require_permission("assignments:create"))
):
    """Record that the current volunteer worked a camp"""
    assignment = AssignmentService(context).record_assignment(context.user.id, assignment_data.camp_id)
    return AssignmentResult(assignment=assignment)


@router.get("/me", response_model=List[VolunteerAssignment])
async def list_my_assignments(context: RequestContext = Depends(require_permission("assignments:read"))):
    """Assignment history of the current volunteer, newest first"""
    return AssignmentService(context).list_assignments(context.user.id)
