from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional, List, Literal
from datetime import datetime

AmbulanceAvailability = Literal["Yes", "No", "Nearby"]
CampType = Literal["default", "volunteer-added"]


def _clean_name(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("Camp name must not be empty")
    return value


def _clean_resources(value):
    if value is None:
        return []
    seen = []
    for item in value:
        item = str(item).strip()
        if item and item not in seen:
            seen.append(item)
    return seen


class Camp(BaseModel):
    id: str
    name: str
    beds: int
    original_beds: int
    resources: List[str] = []
    contact: Optional[str] = None
    ambulance: str = "No"
    type: CampType = "default"
    added_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("resources", mode="before")
    @classmethod
    def normalize_resources(cls, value):
        return _clean_resources(value)

    @property
    def occupied_beds(self) -> int:
        return self.original_beds - self.beds

    class Config:
        from_attributes = True


class CampCreate(BaseModel):
    name: str = Field(min_length=1)
    beds: int = Field(ge=0)
    resources: List[str] = []
    contact: Optional[str] = None
    ambulance: AmbulanceAvailability = "No"

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        return _clean_name(value)

    @field_validator("resources", mode="before")
    @classmethod
    def normalize_resources(cls, value):
        return _clean_resources(value)


class CampUpdate(BaseModel):
    # Bed counts are owned by the ledger and cannot be edited here
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(default=None, min_length=1)
    resources: Optional[List[str]] = None
    contact: Optional[str] = None
    ambulance: Optional[AmbulanceAvailability] = None

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return _clean_name(value)

    @field_validator("resources", mode="before")
    @classmethod
    def normalize_resources(cls, value):
        if value is None:
            return None
        return _clean_resources(value)


class CampCapacityUpdate(BaseModel):
    capacity: int = Field(ge=0)


class CampResult(BaseModel):
    success: bool = True
    camp: Camp


class DeleteResult(BaseModel):
    success: bool = True
    message: str
