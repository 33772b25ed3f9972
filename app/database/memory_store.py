"""Thread-safe in-process store with the same guarantees as the Postgres schema."""
import copy
import threading
import uuid
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple

from app.core.errors import CampNotFound, Conflict, ConstraintViolation
from app.database.store import (
    ASSIGNMENTS_TABLE, CAMPS_TABLE, PROFILES_TABLE, SELECTIONS_TABLE,
    ChangeHandler, TableSubscriptions,
)
from app.modules.assignments.schemas import VolunteerAssignment
from app.modules.camps.schemas import Camp
from app.modules.selections.schemas import ACTIVE, CampSelection

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class InMemoryCampStore:
    def __init__(self):
        self._lock = threading.RLock()
        self._profiles: Dict[str, Dict[str, Any]] = {}
        # Insertion ordered; newest-first listings iterate in reverse
        self._camps: Dict[str, Dict[str, Any]] = {}
        self._selections: Dict[str, Dict[str, Any]] = {}
        self._assignments: Dict[str, Dict[str, Any]] = {}
        self._subscriptions = TableSubscriptions()

    # Profiles

    def get_profile(self, user_id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            profile = self._profiles.get(user_id)
            return dict(profile) if profile else None

    def insert_profile(self, profile: Dict[str, Any]) -> Dict[str, Any]:
        with self._lock:
            if any(p["email"] == profile["email"] for p in self._profiles.values()):
                raise ConstraintViolation("User with this email already exists")
            row = dict(profile)
            row.setdefault("id", str(uuid.uuid4()))
            row.setdefault("created_at", _now())
            self._profiles[row["id"]] = row
        self._subscriptions.emit(PROFILES_TABLE, "INSERT", new=dict(row))
        return dict(row)

    # Camps

    def list_camps(self) -> List[Camp]:
        with self._lock:
            return [Camp(**row) for row in reversed(list(self._camps.values()))]

    def get_camp(self, camp_id: str) -> Camp:
        with self._lock:
            row = self._camps.get(camp_id)
            if row is None:
                raise CampNotFound()
            return Camp(**row)

    def find_camp_by_name(self, name: str, camp_type: Optional[str] = None) -> Optional[Camp]:
        with self._lock:
            for row in self._camps.values():
                if row["name"] == name and camp_type in (None, row["type"]):
                    return Camp(**row)
        return None

    def insert_camp(self, camp: Dict[str, Any]) -> Camp:
        row = {
            "resources": [],
            "contact": None,
            "ambulance": "No",
            "type": "volunteer-added",
            "added_by": None,
        }
        row.update(copy.deepcopy(camp))
        row.setdefault("original_beds", row.get("beds", 0))
        self._check_beds(row["beds"], row["original_beds"])
        row["id"] = row.get("id") or str(uuid.uuid4())
        row["created_at"] = row["updated_at"] = _now()
        with self._lock:
            self._camps[row["id"]] = row
            created = Camp(**row)
        self._subscriptions.emit(CAMPS_TABLE, "INSERT", new=created.model_dump(mode="json"))
        return created

    def update_camp(self, camp_id: str, changes: Dict[str, Any]) -> Camp:
        with self._lock:
            row = self._camps.get(camp_id)
            if row is None:
                raise CampNotFound()
            old = Camp(**row)
            row.update(copy.deepcopy(changes))
            self._check_beds(row["beds"], row["original_beds"])
            row["updated_at"] = _now()
            updated = Camp(**row)
        self._emit_camp_update(old, updated)
        return updated

    def update_camp_beds(
        self, camp_id: str, new_beds: int, expected_beds: int, original_beds: Optional[int] = None
    ) -> Camp:
        with self._lock:
            old, updated = self._set_beds_locked(camp_id, new_beds, expected_beds, original_beds)
        self._emit_camp_update(old, updated)
        return updated

    def delete_camp(self, camp_id: str) -> bool:
        with self._lock:
            row = self._camps.get(camp_id)
            if row is None:
                return False
            if self._count_active_locked(camp_id):
                raise ConstraintViolation("Camp has active selections and cannot be deleted")
            old = Camp(**self._camps.pop(camp_id))
            removed = [s for s in self._selections.values() if s["camp_id"] == camp_id]
            for selection in removed:
                del self._selections[selection["id"]]
            for assignment_id in [a["id"] for a in self._assignments.values() if a["camp_id"] == camp_id]:
                del self._assignments[assignment_id]
        for selection in removed:
            self._subscriptions.emit(SELECTIONS_TABLE, "DELETE", old=dict(selection))
        self._subscriptions.emit(CAMPS_TABLE, "DELETE", old=old.model_dump(mode="json"))
        return True

    # Selections

    def count_active_selections(self, camp_id: str) -> int:
        with self._lock:
            return self._count_active_locked(camp_id)

    def get_active_selection(self, user_id: str) -> Optional[CampSelection]:
        with self._lock:
            for row in self._selections.values():
                if row["user_id"] == user_id and row["status"] == ACTIVE:
                    return CampSelection(**row)
        return None

    def list_selections(self, user_id: str) -> List[CampSelection]:
        with self._lock:
            return [
                CampSelection(**row)
                for row in reversed(list(self._selections.values()))
                if row["user_id"] == user_id
            ]

    def insert_selection(self, selection: Dict[str, Any]) -> CampSelection:
        with self._lock:
            row = self._insert_selection_locked(selection)
        self._subscriptions.emit(SELECTIONS_TABLE, "INSERT", new=dict(row))
        return CampSelection(**row)

    def update_selection_status(self, selection_id: str, status: str, timestamp: Optional[str]) -> CampSelection:
        with self._lock:
            row = self._selections.get(selection_id)
            if row is None:
                raise ConstraintViolation("Selection not found")
            old = dict(row)
            if status == ACTIVE and row["status"] != ACTIVE:
                raise ConstraintViolation("Cancelled selections cannot be reactivated")
            row["status"] = status
            row["cancelled_at"] = timestamp
            new = dict(row)
        self._subscriptions.emit(SELECTIONS_TABLE, "UPDATE", new=new, old=old)
        return CampSelection(**new)

    def commit_selection(self, user_id: str, camp_id: str, expected_beds: int) -> Tuple[CampSelection, Camp]:
        with self._lock:
            camp = self._camps.get(camp_id)
            if camp is None:
                raise CampNotFound()
            if camp["beds"] != expected_beds or camp["beds"] <= 0:
                raise Conflict()
            row = self._insert_selection_locked({"user_id": user_id, "camp_id": camp_id, "status": ACTIVE})
            old, updated = self._set_beds_locked(camp_id, expected_beds - 1, expected_beds)
        self._subscriptions.emit(SELECTIONS_TABLE, "INSERT", new=dict(row))
        self._emit_camp_update(old, updated)
        return CampSelection(**row), updated

    def commit_cancellation(self, selection_id: str, cancelled_at: str) -> Tuple[CampSelection, Optional[Camp]]:
        with self._lock:
            row = self._selections.get(selection_id)
            if row is None or row["status"] != ACTIVE:
                raise Conflict()
            old_selection = dict(row)
            row["status"] = "cancelled"
            row["cancelled_at"] = cancelled_at
            new_selection = dict(row)
            camp_update = None
            camp = self._camps.get(row["camp_id"])
            if camp is not None:
                beds = min(camp["beds"] + 1, camp["original_beds"])
                camp_update = self._set_beds_locked(camp["id"], beds, camp["beds"])
        self._subscriptions.emit(SELECTIONS_TABLE, "UPDATE", new=new_selection, old=old_selection)
        if camp_update is None:
            return CampSelection(**new_selection), None
        self._emit_camp_update(*camp_update)
        return CampSelection(**new_selection), camp_update[1]

    # Assignments

    def insert_assignment(self, volunteer_id: str, camp_id: str) -> VolunteerAssignment:
        with self._lock:
            if camp_id not in self._camps:
                raise CampNotFound()
            row = {
                "id": str(uuid.uuid4()),
                "volunteer_id": volunteer_id,
                "camp_id": camp_id,
                "created_at": _now(),
            }
            self._assignments[row["id"]] = row
            camp_name = self._camps[camp_id]["name"]
        self._subscriptions.emit(ASSIGNMENTS_TABLE, "INSERT", new=dict(row))
        return VolunteerAssignment(**row, camp_name=camp_name)

    def list_assignments(self, volunteer_id: str) -> List[VolunteerAssignment]:
        with self._lock:
            return [
                VolunteerAssignment(**row, camp_name=self._camps.get(row["camp_id"], {}).get("name"))
                for row in reversed(list(self._assignments.values()))
                if row["volunteer_id"] == volunteer_id
            ]

    # Change feed

    def subscribe(self, table: str, handler: ChangeHandler) -> Callable[[], None]:
        return self._subscriptions.subscribe(table, handler)

    # Internals, caller holds the lock

    @staticmethod
    def _check_beds(beds: int, original_beds: int) -> None:
        if beds < 0 or original_beds < 0 or beds > original_beds:
            raise ConstraintViolation("Bed count must stay between 0 and the camp capacity")

    def _count_active_locked(self, camp_id: str) -> int:
        return sum(1 for s in self._selections.values() if s["camp_id"] == camp_id and s["status"] == ACTIVE)

    def _insert_selection_locked(self, selection: Dict[str, Any]) -> Dict[str, Any]:
        if selection["camp_id"] not in self._camps:
            raise CampNotFound()
        status = selection.get("status", ACTIVE)
        if status == ACTIVE and any(
            s["user_id"] == selection["user_id"] and s["status"] == ACTIVE
            for s in self._selections.values()
        ):
            raise ConstraintViolation("User already has an active camp selection")
        row = {
            "id": str(uuid.uuid4()),
            "user_id": selection["user_id"],
            "camp_id": selection["camp_id"],
            "status": status,
            "selected_at": _now(),
            "cancelled_at": None,
        }
        self._selections[row["id"]] = row
        return row

    def _set_beds_locked(
        self, camp_id: str, new_beds: int, expected_beds: int, original_beds: Optional[int] = None
    ) -> Tuple[Camp, Camp]:
        row = self._camps.get(camp_id)
        if row is None:
            raise CampNotFound()
        if row["beds"] != expected_beds:
            raise Conflict()
        capacity = row["original_beds"] if original_beds is None else original_beds
        self._check_beds(new_beds, capacity)
        old = Camp(**row)
        row["beds"] = new_beds
        row["original_beds"] = capacity
        row["updated_at"] = _now()
        return old, Camp(**row)

    def _emit_camp_update(self, old: Camp, new: Camp) -> None:
        self._subscriptions.emit(
            CAMPS_TABLE, "UPDATE", new=new.model_dump(mode="json"), old=old.model_dump(mode="json")
        )
