from pydantic import BaseModel
from typing import Optional, Literal
from datetime import datetime

from app.modules.camps.schemas import Camp

SelectionStatus = Literal["active", "cancelled"]
ACTIVE = "active"
CANCELLED = "cancelled"


class CampSelection(BaseModel):
    id: str
    user_id: str
    camp_id: str
    status: SelectionStatus = ACTIVE
    selected_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None

    @property
    def is_active(self) -> bool:
        return self.status == ACTIVE

    class Config:
        from_attributes = True


class CampSelectionWithCamp(CampSelection):
    camp: Optional[Camp] = None


class SelectCampRequest(BaseModel):
    camp_id: str


class SelectionResult(BaseModel):
    success: bool = True
    selection: CampSelection
    camp: Camp


class CancelResult(BaseModel):
    success: bool = True
    message: str = "Camp selection cancelled"
    selection: CampSelection
    camp: Optional[Camp] = None
