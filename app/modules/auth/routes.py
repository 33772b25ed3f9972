from fastapi import APIRouter, Depends
from app.core.authorization import get_role_permissions
from app.core.dependencies import get_auth_service, get_current_token, get_current_user
from app.modules.auth.schemas import (
    LoginRequest, RegisterRequest, TokenResponse, RegisterResponse, MeResponse, UserIdentity
)
from app.modules.auth.service import AuthService

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=RegisterResponse, status_code=201)
async def register(
    register_data: RegisterRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Register a new refugee or volunteer"""
    return service.register(register_data)


@router.post("/login", response_model=TokenResponse)
async def login(
    login_data: LoginRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Login and get access token"""
    return service.login(login_data)


@router.post("/logout", status_code=200)
async def logout(
    token: str = Depends(get_current_token),
    service: AuthService = Depends(get_auth_service)
):
    """Logout and invalidate token"""
    service.logout(token)
    return {"message": "Logged out successfully"}


@router.get("/me", response_model=MeResponse)
async def me(current_user: UserIdentity = Depends(get_current_user)):
    """Get current authenticated user and their permissions (for frontend UI)."""
    return MeResponse(**current_user.model_dump(), permissions=get_role_permissions(current_user.role))
