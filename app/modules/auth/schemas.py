from pydantic import BaseModel, EmailStr, Field
from typing import Optional, Literal, List
from datetime import datetime

Role = Literal["refugee", "volunteer"]


class UserIdentity(BaseModel):
    """Verified caller identity. The ledger only relies on ``id`` and ``role``."""
    id: str
    role: Role
    email: Optional[str] = None
    name: Optional[str] = None

    @property
    def is_volunteer(self) -> bool:
        return self.role == "volunteer"

    @property
    def is_refugee(self) -> bool:
        return self.role == "refugee"


class Profile(BaseModel):
    id: str
    email: str
    name: str
    role: Role
    age: Optional[int] = None
    contact: Optional[str] = None
    address: Optional[str] = None
    needs: Optional[str] = None
    skills: Optional[str] = None
    availability: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user_id: str
    email: str
    role: Role


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6)
    name: str = Field(min_length=1)
    role: Role
    age: Optional[int] = Field(default=None, ge=0)
    contact: Optional[str] = None
    address: Optional[str] = None
    needs: Optional[str] = None
    skills: Optional[str] = None
    availability: Optional[str] = None


class RegisterResponse(BaseModel):
    user_id: str
    email: str
    role: Role
    message: str


class MeResponse(BaseModel):
    id: str
    role: Role
    email: Optional[str] = None
    name: Optional[str] = None
    permissions: List[str]
