from supabase import create_client, Client
from app.config import settings
from app.core.errors import StoreUnavailable
import logging

logger = logging.getLogger(__name__)


def _connect(key: str, purpose: str) -> Client:
    if not settings.supabase_url or not key:
        raise StoreUnavailable(f"Supabase is not configured ({purpose}); set SUPABASE_URL and its key")
    logger.info(f"Connecting to Supabase at {settings.supabase_url} ({purpose})")
    return create_client(settings.supabase_url, key)


class SupabaseClient:
    """Process-wide Supabase clients: one for auth calls, one for camp data."""
    _auth_client: Client = None
    _data_client: Client = None

    @classmethod
    def get_auth_client(cls) -> Client:
        if cls._auth_client is None:
            cls._auth_client = _connect(settings.supabase_key, "auth")
        return cls._auth_client

    @classmethod
    def get_data_client(cls) -> Client:
        """Camp data goes through the service role so the ledger functions can run;
        role checks happen in the services before any store call."""
        if cls._data_client is None:
            if settings.supabase_service_role_key:
                cls._data_client = _connect(settings.supabase_service_role_key, "camp data")
            else:
                logger.warning("SUPABASE_SERVICE_ROLE_KEY not set; camp data uses the anon key and is subject to RLS")
                cls._data_client = cls.get_auth_client()
        return cls._data_client

    @classmethod
    def reset(cls):
        cls._auth_client = None
        cls._data_client = None


def get_supabase() -> Client:
    return SupabaseClient.get_auth_client()
