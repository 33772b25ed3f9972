"""
Supabase-backed store.

Plain reads and writes go through PostgREST tables. The two ledger commits
(select / cancel) call the Postgres functions ``ledger_select_camp`` and
``ledger_cancel_selection`` so that the selection row and the bed count are
written in one transaction (see supabase/migrations).
"""
from contextlib import contextmanager
from typing import Any, Callable, Dict, List, Optional, Tuple
import logging

import httpx
from postgrest.exceptions import APIError
from supabase import Client

from app.core.errors import (
    CampNotFound, Conflict, ConstraintViolation, LedgerError, StoreUnavailable,
)
from app.database.store import (
    ASSIGNMENTS_TABLE, CAMPS_TABLE, PROFILES_TABLE, SELECTIONS_TABLE,
    ChangeHandler, TableSubscriptions,
)
from app.modules.assignments.schemas import VolunteerAssignment
from app.modules.camps.schemas import Camp
from app.modules.selections.schemas import ACTIVE, CampSelection

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = "23505"
FOREIGN_KEY_VIOLATION = "23503"
CHECK_VIOLATION = "23514"
SERIALIZATION_FAILURE = "40001"
NO_DATA_FOUND = "P0002"


@contextmanager
def store_errors(operation: str):
    """Translate PostgREST / transport failures into ledger errors."""
    try:
        yield
    except LedgerError:
        raise
    except APIError as e:
        code = getattr(e, "code", None)
        if code == UNIQUE_VIOLATION:
            raise ConstraintViolation(e.message or "Duplicate record")
        if code == SERIALIZATION_FAILURE:
            raise Conflict()
        if code in (FOREIGN_KEY_VIOLATION, NO_DATA_FOUND):
            raise CampNotFound()
        if code == CHECK_VIOLATION:
            raise ConstraintViolation(e.message or "Operation violates a data constraint")
        logger.error(f"Supabase error during {operation}: {code} {e.message}")
        raise StoreUnavailable()
    except httpx.HTTPError as e:
        logger.error(f"Supabase unreachable during {operation}: {e}")
        raise StoreUnavailable()


def _camp_or_none(data: Optional[Dict[str, Any]]) -> Optional[Camp]:
    if not data or data.get("id") is None:
        return None
    return Camp(**data)


def _assignment(row: Dict[str, Any]) -> VolunteerAssignment:
    row = dict(row)
    camp = row.pop("camps", None) or {}
    return VolunteerAssignment(**row, camp_name=camp.get("name"))


class SupabaseCampStore:
    def __init__(self, supabase: Client):
        self.supabase = supabase
        self._subscriptions = TableSubscriptions()

    # Profiles

    def get_profile(self, user_id: str) -> Optional[Dict[str, Any]]:
        with store_errors("get_profile"):
            result = self.supabase.table(PROFILES_TABLE)\
                .select("*")\
                .eq("id", user_id)\
                .limit(1)\
                .execute()
        return result.data[0] if result.data else None

    def insert_profile(self, profile: Dict[str, Any]) -> Dict[str, Any]:
        with store_errors("insert_profile"):
            result = self.supabase.table(PROFILES_TABLE).insert(profile).execute()
        if not result.data:
            raise StoreUnavailable("Failed to create profile")
        self._subscriptions.emit(PROFILES_TABLE, "INSERT", new=result.data[0])
        return result.data[0]

    # Camps

    def list_camps(self) -> List[Camp]:
        with store_errors("list_camps"):
            result = self.supabase.table(CAMPS_TABLE)\
                .select("*")\
                .order("created_at", desc=True)\
                .execute()
        return [Camp(**row) for row in result.data or []]

    def get_camp(self, camp_id: str) -> Camp:
        with store_errors("get_camp"):
            result = self.supabase.table(CAMPS_TABLE)\
                .select("*")\
                .eq("id", camp_id)\
                .limit(1)\
                .execute()
        if not result.data:
            raise CampNotFound()
        return Camp(**result.data[0])

    def find_camp_by_name(self, name: str, camp_type: Optional[str] = None) -> Optional[Camp]:
        with store_errors("find_camp_by_name"):
            query = self.supabase.table(CAMPS_TABLE).select("*").eq("name", name)
            if camp_type is not None:
                query = query.eq("type", camp_type)
            result = query.limit(1).execute()
        return Camp(**result.data[0]) if result.data else None

    def insert_camp(self, camp: Dict[str, Any]) -> Camp:
        with store_errors("insert_camp"):
            result = self.supabase.table(CAMPS_TABLE).insert(camp).execute()
        if not result.data:
            raise StoreUnavailable("Failed to create camp")
        self._subscriptions.emit(CAMPS_TABLE, "INSERT", new=result.data[0])
        return Camp(**result.data[0])

    def update_camp(self, camp_id: str, changes: Dict[str, Any]) -> Camp:
        with store_errors("update_camp"):
            result = self.supabase.table(CAMPS_TABLE)\
                .update(changes)\
                .eq("id", camp_id)\
                .execute()
        if not result.data:
            raise CampNotFound()
        self._subscriptions.emit(CAMPS_TABLE, "UPDATE", new=result.data[0])
        return Camp(**result.data[0])

    def update_camp_beds(
        self, camp_id: str, new_beds: int, expected_beds: int, original_beds: Optional[int] = None
    ) -> Camp:
        """Conditional update: only applies while ``beds`` still equals ``expected_beds``."""
        changes: Dict[str, Any] = {"beds": new_beds}
        if original_beds is not None:
            changes["original_beds"] = original_beds
        with store_errors("update_camp_beds"):
            result = self.supabase.table(CAMPS_TABLE)\
                .update(changes)\
                .eq("id", camp_id)\
                .eq("beds", expected_beds)\
                .execute()
        if not result.data:
            # Either the camp is gone or another writer moved the counter
            self.get_camp(camp_id)
            raise Conflict()
        self._subscriptions.emit(CAMPS_TABLE, "UPDATE", new=result.data[0])
        return Camp(**result.data[0])

    def delete_camp(self, camp_id: str) -> bool:
        # The delete trigger rejects camps that still have active selections,
        # so only cancelled history rows go away with the camp
        with store_errors("delete_camp"):
            history = self.supabase.table(SELECTIONS_TABLE)\
                .select("*")\
                .eq("camp_id", camp_id)\
                .execute()
            result = self.supabase.table(CAMPS_TABLE)\
                .delete()\
                .eq("id", camp_id)\
                .execute()
        if not result.data:
            return False
        for selection in history.data or []:
            self._subscriptions.emit(SELECTIONS_TABLE, "DELETE", old=selection)
        self._subscriptions.emit(CAMPS_TABLE, "DELETE", old=result.data[0])
        return True

    # Selections

    def count_active_selections(self, camp_id: str) -> int:
        with store_errors("count_active_selections"):
            result = self.supabase.table(SELECTIONS_TABLE)\
                .select("id", count="exact")\
                .eq("camp_id", camp_id)\
                .eq("status", ACTIVE)\
                .execute()
        if result.count is not None:
            return result.count
        return len(result.data or [])

    def get_active_selection(self, user_id: str) -> Optional[CampSelection]:
        with store_errors("get_active_selection"):
            result = self.supabase.table(SELECTIONS_TABLE)\
                .select("*")\
                .eq("user_id", user_id)\
                .eq("status", ACTIVE)\
                .limit(1)\
                .execute()
        return CampSelection(**result.data[0]) if result.data else None

    def list_selections(self, user_id: str) -> List[CampSelection]:
        with store_errors("list_selections"):
            result = self.supabase.table(SELECTIONS_TABLE)\
                .select("*")\
                .eq("user_id", user_id)\
                .order("selected_at", desc=True)\
                .execute()
        return [CampSelection(**row) for row in result.data or []]

    def insert_selection(self, selection: Dict[str, Any]) -> CampSelection:
        # camp_selections_one_active_per_user turns a second active row into 23505
        with store_errors("insert_selection"):
            result = self.supabase.table(SELECTIONS_TABLE).insert(selection).execute()
        if not result.data:
            raise StoreUnavailable("Failed to create camp selection")
        self._subscriptions.emit(SELECTIONS_TABLE, "INSERT", new=result.data[0])
        return CampSelection(**result.data[0])

    def update_selection_status(self, selection_id: str, status: str, timestamp: Optional[str]) -> CampSelection:
        with store_errors("update_selection_status"):
            result = self.supabase.table(SELECTIONS_TABLE)\
                .update({"status": status, "cancelled_at": timestamp})\
                .eq("id", selection_id)\
                .execute()
        if not result.data:
            raise ConstraintViolation("Selection not found")
        self._subscriptions.emit(SELECTIONS_TABLE, "UPDATE", new=result.data[0])
        return CampSelection(**result.data[0])

    def commit_selection(self, user_id: str, camp_id: str, expected_beds: int) -> Tuple[CampSelection, Camp]:
        with store_errors("commit_selection"):
            result = self.supabase.rpc("ledger_select_camp", {
                "p_user_id": user_id,
                "p_camp_id": camp_id,
                "p_expected_beds": expected_beds,
            }).execute()
        payload = result.data or {}
        selection = CampSelection(**payload["selection"])
        camp = Camp(**payload["camp"])
        self._subscriptions.emit(SELECTIONS_TABLE, "INSERT", new=payload["selection"])
        self._subscriptions.emit(CAMPS_TABLE, "UPDATE", new=payload["camp"])
        return selection, camp

    def commit_cancellation(self, selection_id: str, cancelled_at: str) -> Tuple[CampSelection, Optional[Camp]]:
        with store_errors("commit_cancellation"):
            result = self.supabase.rpc("ledger_cancel_selection", {
                "p_selection_id": selection_id,
                "p_cancelled_at": cancelled_at,
            }).execute()
        payload = result.data or {}
        selection = CampSelection(**payload["selection"])
        camp = _camp_or_none(payload.get("camp"))
        self._subscriptions.emit(SELECTIONS_TABLE, "UPDATE", new=payload["selection"])
        if camp is not None:
            self._subscriptions.emit(CAMPS_TABLE, "UPDATE", new=payload["camp"])
        return selection, camp

    # Assignments

    def insert_assignment(self, volunteer_id: str, camp_id: str) -> VolunteerAssignment:
        with store_errors("insert_assignment"):
            result = self.supabase.table(ASSIGNMENTS_TABLE).insert({
                "volunteer_id": volunteer_id,
                "camp_id": camp_id,
            }).execute()
        if not result.data:
            raise StoreUnavailable("Failed to record assignment")
        self._subscriptions.emit(ASSIGNMENTS_TABLE, "INSERT", new=result.data[0])
        return _assignment(result.data[0])

    def list_assignments(self, volunteer_id: str) -> List[VolunteerAssignment]:
        with store_errors("list_assignments"):
            result = self.supabase.table(ASSIGNMENTS_TABLE)\
                .select("*, camps(id, name)")\
                .eq("volunteer_id", volunteer_id)\
                .order("created_at", desc=True)\
                .execute()
        return [_assignment(row) for row in result.data or []]

    # Change feed

    def subscribe(self, table: str, handler: ChangeHandler) -> Callable[[], None]:
        """Register a handler for writes committed through this store instance."""
        return self._subscriptions.subscribe(table, handler)
