from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class VolunteerAssignment(BaseModel):
    id: str
    volunteer_id: str
    camp_id: str
    created_at: Optional[datetime] = None
    camp_name: Optional[str] = None

    class Config:
        from_attributes = True


class AssignmentCreate(BaseModel):
    camp_id: str


class AssignmentResult(BaseModel):
    success: bool = True
    assignment: VolunteerAssignment
