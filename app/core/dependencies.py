"""
Core dependencies for route protection and request context
"""

from fastapi import Depends, Security
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from app.core.authorization import authorize
from app.core.context import RequestContext
from app.core.events import ChangeNotifier
from app.database.store import CampStore, get_store
from app.database.supabase_client import get_supabase
from app.modules.auth.schemas import UserIdentity
from app.modules.auth.service import AuthService
from supabase import Client
import logging

logger = logging.getLogger(__name__)

security = HTTPBearer()

_notifier = ChangeNotifier()


def get_notifier() -> ChangeNotifier:
    return _notifier


def get_auth_service(
    supabase: Client = Depends(get_supabase),
    store: CampStore = Depends(get_store)
) -> AuthService:
    return AuthService(supabase, store)


def get_current_token(
    credentials: HTTPAuthorizationCredentials = Security(security)
) -> str:
    """Extract JWT token from Authorization header"""
    return credentials.credentials


def get_current_user(
    token: str = Depends(get_current_token),
    auth_service: AuthService = Depends(get_auth_service)
) -> UserIdentity:
    """Verify the bearer token server-side and resolve the caller's role"""
    return auth_service.verify_credentials(token)


def get_request_context(
    user: UserIdentity = Depends(get_current_user),
    store: CampStore = Depends(get_store)
) -> RequestContext:
    return RequestContext(user=user, store=store)


def require_permission(required_permission: str):
    """Factory function to create permission check dependency"""
    def check_permission(context: RequestContext = Depends(get_request_context)) -> RequestContext:
        authorize(context.user, required_permission)
        return context
    return check_permission
