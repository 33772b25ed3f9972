"""
Authorization gate for ledger operations.

Evaluated inside every mutating service call before the store is touched,
so bed counts can only change through the paths a role is allowed to use.
"""
import logging

from app.config.permissions_config import ROLE_PERMISSIONS
from app.core.errors import NotAuthorized
from app.modules.auth.schemas import UserIdentity

logger = logging.getLogger(__name__)

DENIED_MESSAGES = {
    "camps:create": "Only volunteers can add camps",
    "camps:update": "Only volunteers can edit camps",
    "camps:delete": "Only volunteers can delete camps",
    "assignments:create": "Only volunteers can be assigned to camps",
    "assignments:read": "Only volunteers have assignment history",
}


def get_role_permissions(role: str) -> list:
    return sorted(ROLE_PERMISSIONS.get(role, frozenset()))


def has_permission(user: UserIdentity, permission: str) -> bool:
    return permission in ROLE_PERMISSIONS.get(user.role, frozenset())


def authorize(user: UserIdentity, permission: str) -> None:
    """Raise NotAuthorized unless the user's role grants ``permission``."""
    if not has_permission(user, permission):
        logger.warning(f"Denied {permission} for user {user.id} with role {user.role}")
        raise NotAuthorized(DENIED_MESSAGES.get(permission, f"Insufficient permissions. Required: {permission}"))


def authorize_self(user: UserIdentity, user_id: str) -> None:
    """Users may only act on their own selections and history."""
    if user.id != user_id:
        logger.warning(f"User {user.id} attempted to act on behalf of {user_id}")
        raise NotAuthorized("You can only manage your own records")
