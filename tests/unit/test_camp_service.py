"""Tests for CampService: creation, edits, capacity and deletion."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from app.core.errors import CampNotFound, ConstraintViolation, NotAuthorized
from app.database.store import DEFAULT_CAMPS, seed_default_camps
from app.modules.camps.schemas import CampCreate, CampUpdate
from app.modules.camps.service import CampService
from app.modules.selections.service import InventoryLedger
from tests.conftest import REFUGEE_A, REFUGEE_B, VOLUNTEER, make_context


def camps_for(user, store):
    return CampService(make_context(user, store))


class TestAddCamp:
    def test_volunteer_adds_camp_with_fixed_capacity(self, store):
        camp = camps_for(VOLUNTEER, store).add_camp(CampCreate(
            name="  Railway Colony School ",
            beds=15,
            resources=["Food", "Water", "Food", " "],
            ambulance="Yes",
        ))

        assert camp.name == "Railway Colony School"
        assert camp.beds == 15
        assert camp.original_beds == 15
        assert camp.type == "volunteer-added"
        assert camp.added_by == VOLUNTEER.id
        assert camp.resources == ["Food", "Water"]

    def test_refugee_cannot_add_camp(self, store):
        with pytest.raises(NotAuthorized, match="Only volunteers can add camps"):
            camps_for(REFUGEE_A, store).add_camp(CampCreate(name="Nope", beds=2))
        assert store.list_camps() == []

    def test_negative_beds_rejected(self):
        with pytest.raises(ValidationError):
            CampCreate(name="Broken", beds=-1)

    def test_list_is_newest_first(self, store):
        service = camps_for(VOLUNTEER, store)
        service.add_camp(CampCreate(name="First", beds=1))
        service.add_camp(CampCreate(name="Second", beds=1))

        assert [c.name for c in camps_for(REFUGEE_A, store).list_camps()] == ["Second", "First"]


class TestUpdateCamp:
    def test_updates_descriptive_fields_only(self, store, camp):
        updated = camps_for(VOLUNTEER, store).update_camp(
            camp.id, CampUpdate(contact="+91 90000 12345", ambulance="Yes")
        )

        assert updated.contact == "+91 90000 12345"
        assert updated.ambulance == "Yes"
        assert updated.beds == camp.beds

    def test_bed_fields_are_not_editable(self):
        with pytest.raises(ValidationError):
            CampUpdate(beds=100)

    def test_blank_name_rejected(self):
        with pytest.raises(ValidationError):
            CampUpdate(name="   ")

    def test_name_is_stripped(self, store, camp):
        updated = camps_for(VOLUNTEER, store).update_camp(camp.id, CampUpdate(name="  Riverside Camp B  "))

        assert updated.name == "Riverside Camp B"

    def test_refugee_cannot_edit(self, store, camp):
        with pytest.raises(NotAuthorized):
            camps_for(REFUGEE_A, store).update_camp(camp.id, CampUpdate(name="Mine now"))

    def test_empty_update_returns_camp(self, store, camp):
        assert camps_for(VOLUNTEER, store).update_camp(camp.id, CampUpdate()).name == camp.name


class TestResizeCamp:
    def test_grow_keeps_occupied_beds(self, store, camp):
        InventoryLedger(make_context(REFUGEE_A, store)).select_camp(REFUGEE_A.id, camp.id)

        resized = camps_for(VOLUNTEER, store).resize_camp(camp.id, 10)

        assert resized.original_beds == 10
        assert resized.beds == 9

    def test_shrink_below_occupancy_rejected(self, store, camp):
        for user in (REFUGEE_A, REFUGEE_B):
            InventoryLedger(make_context(user, store)).select_camp(user.id, camp.id)

        with pytest.raises(ConstraintViolation):
            camps_for(VOLUNTEER, store).resize_camp(camp.id, 1)

        unchanged = store.get_camp(camp.id)
        assert (unchanged.beds, unchanged.original_beds) == (1, 3)

    def test_shrink_to_occupancy(self, store, camp):
        InventoryLedger(make_context(REFUGEE_A, store)).select_camp(REFUGEE_A.id, camp.id)

        resized = camps_for(VOLUNTEER, store).resize_camp(camp.id, 1)

        assert (resized.beds, resized.original_beds) == (0, 1)

    def test_refugee_cannot_resize(self, store, camp):
        with pytest.raises(NotAuthorized):
            camps_for(REFUGEE_A, store).resize_camp(camp.id, 50)


class TestDeleteCamp:
    def test_rejected_while_a_selection_is_active(self, store, camp):
        InventoryLedger(make_context(REFUGEE_A, store)).select_camp(REFUGEE_A.id, camp.id)

        with pytest.raises(ConstraintViolation):
            camps_for(VOLUNTEER, store).delete_camp(camp.id)

        assert store.get_camp(camp.id).beds == camp.beds - 1
        assert store.get_active_selection(REFUGEE_A.id) is not None

    def test_store_rejects_even_when_check_is_skipped(self, store, camp, monkeypatch):
        InventoryLedger(make_context(REFUGEE_A, store)).select_camp(REFUGEE_A.id, camp.id)
        monkeypatch.setattr(store, "count_active_selections", lambda camp_id: 0)

        with pytest.raises(ConstraintViolation):
            camps_for(VOLUNTEER, store).delete_camp(camp.id)

    def test_deleted_after_cancellation_with_history(self, store, camp):
        ledger = InventoryLedger(make_context(REFUGEE_A, store))
        ledger.select_camp(REFUGEE_A.id, camp.id)
        ledger.cancel_selection(REFUGEE_A.id)
        store.insert_assignment(VOLUNTEER.id, camp.id)

        assert camps_for(VOLUNTEER, store).delete_camp(camp.id) is True

        with pytest.raises(CampNotFound):
            store.get_camp(camp.id)
        assert store.list_selections(REFUGEE_A.id) == []
        assert store.list_assignments(VOLUNTEER.id) == []

    def test_unknown_camp(self, store):
        with pytest.raises(CampNotFound):
            camps_for(VOLUNTEER, store).delete_camp("missing")

    def test_refugee_cannot_delete(self, store, camp):
        with pytest.raises(NotAuthorized):
            camps_for(REFUGEE_A, store).delete_camp(camp.id)


class TestDefaultCamps:
    def test_seeding_is_idempotent(self, store):
        assert seed_default_camps(store) == len(DEFAULT_CAMPS)
        assert seed_default_camps(store) == 0

        camps = store.list_camps()
        assert {c.name for c in camps} == {c["name"] for c in DEFAULT_CAMPS}
        assert all(c.type == "default" and c.beds == c.original_beds for c in camps)

    def test_existing_default_camp_is_left_alone(self, store):
        store.insert_camp({"name": "Community Hall", "beds": 2, "original_beds": 5, "type": "default"})

        assert seed_default_camps(store) == len(DEFAULT_CAMPS) - 1
        assert store.find_camp_by_name("Community Hall", camp_type="default").beds == 2

    def test_volunteer_camp_with_default_name_does_not_block_seeding(self, store):
        camps_for(VOLUNTEER, store).add_camp(CampCreate(name="Community Hall", beds=2))

        assert seed_default_camps(store) == len(DEFAULT_CAMPS)

        defaults = [c for c in store.list_camps() if c.type == "default"]
        assert sorted(c.name for c in defaults) == sorted(c["name"] for c in DEFAULT_CAMPS)
        assert store.find_camp_by_name("Community Hall", camp_type="volunteer-added").beds == 2
