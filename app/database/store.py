"""
Persistent store contract used by the ledger services.

Two implementations exist: ``SupabaseCampStore`` (PostgREST tables plus the
ledger RPC functions) and ``InMemoryCampStore`` (single process, used for
local development and tests). ``get_store`` returns the one selected by
``settings.store_backend``.
"""

from typing import Any, Callable, Dict, List, Optional, Protocol, Tuple
import logging

from app.config import settings
from app.modules.assignments.schemas import VolunteerAssignment
from app.modules.camps.schemas import Camp
from app.modules.selections.schemas import CampSelection

logger = logging.getLogger(__name__)

CAMPS_TABLE = "camps"
SELECTIONS_TABLE = "camp_selections"
ASSIGNMENTS_TABLE = "volunteer_assignments"
PROFILES_TABLE = "profiles"

# Row change payload: {"table", "eventType" (INSERT | UPDATE | DELETE), "new", "old"}
ChangeHandler = Callable[[Dict[str, Any]], None]

DEFAULT_CAMPS = [
    {
        "name": "Central School Grounds",
        "beds": 24,
        "original_beds": 24,
        "resources": ["Food", "Water", "Medical Aid", "Blankets"],
        "contact": "+91 98765 43210",
        "ambulance": "Yes",
        "type": "default",
    },
    {
        "name": "Community Hall",
        "beds": 12,
        "original_beds": 12,
        "resources": ["Food", "Water", "Blankets", "Clothing"],
        "contact": "+91 98765 11223",
        "ambulance": "Nearby",
        "type": "default",
    },
    {
        "name": "Government High School",
        "beds": 30,
        "original_beds": 30,
        "resources": ["Food", "Water", "First Aid", "Hygiene Kits"],
        "contact": "+91 98765 77889",
        "ambulance": "Yes",
        "type": "default",
    },
]


class CampStore(Protocol):
    # Profiles
    def get_profile(self, user_id: str) -> Optional[Dict[str, Any]]: ...
    def insert_profile(self, profile: Dict[str, Any]) -> Dict[str, Any]: ...

    # Camps
    def list_camps(self) -> List[Camp]: ...
    def get_camp(self, camp_id: str) -> Camp: ...
    def find_camp_by_name(self, name: str, camp_type: Optional[str] = None) -> Optional[Camp]: ...
    def insert_camp(self, camp: Dict[str, Any]) -> Camp: ...
    def update_camp(self, camp_id: str, changes: Dict[str, Any]) -> Camp: ...
    def update_camp_beds(
        self, camp_id: str, new_beds: int, expected_beds: int, original_beds: Optional[int] = None
    ) -> Camp: ...
    def delete_camp(self, camp_id: str) -> bool: ...

    # Selections
    def count_active_selections(self, camp_id: str) -> int: ...
    def get_active_selection(self, user_id: str) -> Optional[CampSelection]: ...
    def list_selections(self, user_id: str) -> List[CampSelection]: ...
    def insert_selection(self, selection: Dict[str, Any]) -> CampSelection: ...
    def update_selection_status(self, selection_id: str, status: str, timestamp: Optional[str]) -> CampSelection: ...
    def commit_selection(self, user_id: str, camp_id: str, expected_beds: int) -> Tuple[CampSelection, Camp]: ...
    def commit_cancellation(self, selection_id: str, cancelled_at: str) -> Tuple[CampSelection, Optional[Camp]]: ...

    # Assignments
    def insert_assignment(self, volunteer_id: str, camp_id: str) -> VolunteerAssignment: ...
    def list_assignments(self, volunteer_id: str) -> List[VolunteerAssignment]: ...

    # Change feed
    def subscribe(self, table: str, handler: ChangeHandler) -> Callable[[], None]: ...


class TableSubscriptions:
    """Per-store registry of row change handlers, invoked after each committed write."""

    def __init__(self):
        self._handlers: Dict[str, List[ChangeHandler]] = {}

    def subscribe(self, table: str, handler: ChangeHandler) -> Callable[[], None]:
        self._handlers.setdefault(table, []).append(handler)
        logger.debug(f"Subscribed {getattr(handler, '__name__', handler)} to {table} changes")

        def unsubscribe():
            handlers = self._handlers.get(table, [])
            if handler in handlers:
                handlers.remove(handler)
        return unsubscribe

    def emit(self, table: str, event_type: str, new: Optional[Dict[str, Any]] = None,
             old: Optional[Dict[str, Any]] = None) -> None:
        payload = {"table": table, "eventType": event_type, "new": new, "old": old}
        for handler in list(self._handlers.get(table, [])):
            try:
                handler(payload)
            except Exception as e:
                logger.error(f"Change handler error for {table}: {e}")


def seed_default_camps(store: CampStore) -> int:
    """Insert the default camps that are not present yet. Returns how many were created.

    Only an existing default camp counts; a volunteer-added camp may share the name.
    """
    created = 0
    for camp in DEFAULT_CAMPS:
        if store.find_camp_by_name(camp["name"], camp_type="default") is not None:
            logger.debug(f"Default camp already present: {camp['name']}")
            continue
        store.insert_camp(dict(camp))
        created += 1
        logger.info(f"Seeded default camp: {camp['name']}")
    return created


class StoreProvider:
    _store: Optional[CampStore] = None

    @classmethod
    def get_store(cls) -> CampStore:
        if cls._store is None:
            if settings.uses_memory_store:
                from app.database.memory_store import InMemoryCampStore
                cls._store = InMemoryCampStore()
            else:
                from app.database.supabase_client import SupabaseClient
                from app.database.supabase_store import SupabaseCampStore
                cls._store = SupabaseCampStore(SupabaseClient.get_data_client())
            logger.info(f"Using {type(cls._store).__name__} for camp data")
        return cls._store

    @classmethod
    def set_store(cls, store: Optional[CampStore]):
        cls._store = store

    @classmethod
    def reset_store(cls):
        cls._store = None


def get_store() -> CampStore:
    return StoreProvider.get_store()
