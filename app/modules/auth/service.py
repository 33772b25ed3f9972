import hashlib
import time
import logging
from supabase import Client
from app.core.errors import ConstraintViolation, LedgerError, Unauthenticated
from app.database.store import CampStore
from app.modules.auth.schemas import (
    LoginRequest, RegisterRequest, TokenResponse, RegisterResponse, UserIdentity
)
from fastapi import HTTPException
from typing import Dict

logger = logging.getLogger(__name__)

# In-memory cache for verify_credentials to reduce Supabase auth calls (e.g. many parallel requests with same token)
_AUTH_USER_CACHE: Dict[str, tuple] = {}
_AUTH_CACHE_TTL_SEC = 60
_AUTH_CACHE_MAX_SIZE = 500

PROFILE_FIELDS = ("name", "role", "age", "contact", "address", "needs", "skills", "availability")


def clear_auth_cache():
    _AUTH_USER_CACHE.clear()


class AuthService:
    def __init__(self, supabase: Client, store: CampStore):
        self.supabase = supabase
        self.store = store

    def register(self, register_data: RegisterRequest) -> RegisterResponse:
        """Register a new user with Supabase Auth and create their profile with the chosen role"""
        try:
            auth_response = self.supabase.auth.sign_up({
                "email": register_data.email,
                "password": register_data.password,
                "options": {
                    "data": {"name": register_data.name, "role": register_data.role}
                }
            })

            if not auth_response.user:
                raise HTTPException(status_code=400, detail="Failed to register user")

            profile = {"id": auth_response.user.id, "email": register_data.email}
            for field in PROFILE_FIELDS:
                profile[field] = getattr(register_data, field)
            self.store.insert_profile(profile)
            logger.info(f"Registered {register_data.role} {auth_response.user.id}")

            return RegisterResponse(
                user_id=auth_response.user.id,
                email=auth_response.user.email or register_data.email,
                role=register_data.role,
                message="User registered successfully"
            )
        except HTTPException:
            raise
        except ConstraintViolation:
            raise HTTPException(status_code=400, detail="User with this email already exists")
        except LedgerError:
            raise
        except Exception as e:
            error_message = str(e)
            if "already registered" in error_message.lower() or "already exists" in error_message.lower():
                raise HTTPException(status_code=400, detail="User with this email already exists")
            raise HTTPException(status_code=500, detail=f"Registration failed: {error_message}")

    def login(self, login_data: LoginRequest) -> TokenResponse:
        """Authenticate user using Supabase Auth"""
        try:
            auth_response = self.supabase.auth.sign_in_with_password({
                "email": login_data.email,
                "password": login_data.password
            })

            if not auth_response.user or not auth_response.session:
                raise HTTPException(status_code=401, detail="Invalid email or password")

            identity = self._identity_for(auth_response.user.id, auth_response.user.email)
            return TokenResponse(
                access_token=auth_response.session.access_token,
                token_type="bearer",
                user_id=auth_response.user.id,
                email=auth_response.user.email or login_data.email,
                role=identity.role
            )
        except (HTTPException, LedgerError):
            raise
        except Exception as e:
            error_message = str(e)
            if "invalid" in error_message.lower() or "credentials" in error_message.lower():
                raise HTTPException(status_code=401, detail="Invalid email or password")
            raise HTTPException(status_code=500, detail=f"Login failed: {error_message}")

    def verify_credentials(self, token: str) -> UserIdentity:
        """Resolve a bearer token to a verified identity with its profile role. Uses short TTL cache."""
        cache_key = hashlib.sha256(token.encode()).hexdigest()
        now = time.monotonic()
        cached = _AUTH_USER_CACHE.get(cache_key)
        if cached is not None:
            identity, expiry = cached
            if now < expiry:
                return identity
            # A parallel request may already have evicted it
            _AUTH_USER_CACHE.pop(cache_key, None)

        try:
            user_response = self.supabase.auth.get_user(jwt=token)
        except Exception as e:
            logger.info(f"Token verification failed: {e}")
            raise Unauthenticated()
        if not user_response or not user_response.user:
            raise Unauthenticated()

        identity = self._identity_for(user_response.user.id, user_response.user.email)
        if len(_AUTH_USER_CACHE) < _AUTH_CACHE_MAX_SIZE:
            _AUTH_USER_CACHE[cache_key] = (identity, now + _AUTH_CACHE_TTL_SEC)
        return identity

    def logout(self, token: str) -> bool:
        """Logout user using Supabase Auth"""
        _AUTH_USER_CACHE.pop(hashlib.sha256(token.encode()).hexdigest(), None)
        try:
            # Supabase Auth tokens are stateless JWTs, so logout is mainly client-side
            self.supabase.auth.sign_out()
            return True
        except Exception as e:
            logger.warning(f"Sign out failed: {e}")
            return False

    def _identity_for(self, user_id: str, email: str = None) -> UserIdentity:
        profile = self.store.get_profile(user_id)
        if not profile:
            # Authenticated but never completed registration
            raise Unauthenticated("No profile found for this account")
        return UserIdentity(
            id=user_id,
            role=profile["role"],
            email=profile.get("email") or email,
            name=profile.get("name"),
        )
