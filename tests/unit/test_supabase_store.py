"""Tests for SupabaseCampStore against a mocked Supabase client."""

from __future__ import annotations

from unittest.mock import Mock

import httpx
import pytest
from postgrest.exceptions import APIError

from app.core.errors import CampNotFound, Conflict, ConstraintViolation, StoreUnavailable
from app.database.supabase_store import SupabaseCampStore
from tests.conftest import create_mock_supabase

CAMP_ROW = {
    "id": "camp-1",
    "name": "Central School Grounds",
    "beds": 24,
    "original_beds": 24,
    "resources": ["Food", "Water"],
    "contact": "+91 98765 43210",
    "ambulance": "Yes",
    "type": "default",
    "added_by": None,
    "created_at": "2025-07-20T19:10:14+00:00",
    "updated_at": "2025-07-20T19:10:14+00:00",
}

SELECTION_ROW = {
    "id": "sel-1",
    "user_id": "user-1",
    "camp_id": "camp-1",
    "status": "active",
    "selected_at": "2025-07-21T08:00:00+00:00",
    "cancelled_at": None,
}


def api_error(code, message="boom"):
    return APIError({"message": message, "code": code, "hint": None, "details": None})


class TestCampReads:
    def test_list_camps_newest_first(self):
        client, query = create_mock_supabase(data=[CAMP_ROW])

        camps = SupabaseCampStore(client).list_camps()

        client.table.assert_called_with("camps")
        query.order.assert_called_with("created_at", desc=True)
        assert camps[0].name == "Central School Grounds"

    def test_get_camp_missing(self):
        client, _ = create_mock_supabase(data=[])
        with pytest.raises(CampNotFound):
            SupabaseCampStore(client).get_camp("camp-404")

    def test_null_resources_become_empty(self):
        client, _ = create_mock_supabase(data=[{**CAMP_ROW, "resources": None}])
        assert SupabaseCampStore(client).get_camp("camp-1").resources == []

    def test_find_default_camp_by_name_filters_type(self):
        client, query = create_mock_supabase(data=[CAMP_ROW])

        camp = SupabaseCampStore(client).find_camp_by_name("Central School Grounds", camp_type="default")

        query.eq.assert_any_call("name", "Central School Grounds")
        query.eq.assert_any_call("type", "default")
        assert camp.name == "Central School Grounds"


class TestConditionalBedUpdate:
    def test_guarded_by_expected_beds(self):
        client, query = create_mock_supabase(data=[{**CAMP_ROW, "beds": 20, "original_beds": 30}])

        camp = SupabaseCampStore(client).update_camp_beds("camp-1", 20, expected_beds=14, original_beds=30)

        query.update.assert_called_with({"beds": 20, "original_beds": 30})
        query.eq.assert_any_call("id", "camp-1")
        query.eq.assert_any_call("beds", 14)
        assert camp.beds == 20

    def test_no_rows_updated_is_conflict(self):
        client, query = create_mock_supabase()
        query.execute.side_effect = [Mock(data=[]), Mock(data=[CAMP_ROW])]

        with pytest.raises(Conflict):
            SupabaseCampStore(client).update_camp_beds("camp-1", 23, expected_beds=24)

    def test_no_rows_and_no_camp_is_not_found(self):
        client, query = create_mock_supabase()
        query.execute.side_effect = [Mock(data=[]), Mock(data=[])]

        with pytest.raises(CampNotFound):
            SupabaseCampStore(client).update_camp_beds("camp-1", 23, expected_beds=24)


class TestLedgerCommits:
    def test_commit_selection_calls_rpc(self):
        client, _ = create_mock_supabase(data={
            "selection": SELECTION_ROW,
            "camp": {**CAMP_ROW, "beds": 23},
        })
        store = SupabaseCampStore(client)
        events = []
        store.subscribe("camp_selections", events.append)
        store.subscribe("camps", events.append)

        selection, camp = store.commit_selection("user-1", "camp-1", expected_beds=24)

        client.rpc.assert_called_once_with("ledger_select_camp", {
            "p_user_id": "user-1",
            "p_camp_id": "camp-1",
            "p_expected_beds": 24,
        })
        assert selection.status == "active"
        assert camp.beds == 23
        assert [(e["table"], e["eventType"]) for e in events] == [
            ("camp_selections", "INSERT"), ("camps", "UPDATE"),
        ]

    @pytest.mark.parametrize("code, error", [
        ("23505", ConstraintViolation),
        ("40001", Conflict),
        ("P0002", CampNotFound),
        ("XX000", StoreUnavailable),
    ])
    def test_commit_selection_error_mapping(self, code, error):
        client, query = create_mock_supabase()
        query.execute.side_effect = api_error(code)
        store = SupabaseCampStore(client)
        events = []
        store.subscribe("camps", events.append)

        with pytest.raises(error):
            store.commit_selection("user-1", "camp-1", expected_beds=24)
        assert events == []

    def test_commit_cancellation_with_deleted_camp(self):
        cancelled = {**SELECTION_ROW, "status": "cancelled", "cancelled_at": "2025-07-22T08:00:00+00:00"}
        client, _ = create_mock_supabase(data={"selection": cancelled, "camp": None})

        selection, camp = SupabaseCampStore(client).commit_cancellation("sel-1", "2025-07-22T08:00:00+00:00")

        client.rpc.assert_called_once_with("ledger_cancel_selection", {
            "p_selection_id": "sel-1",
            "p_cancelled_at": "2025-07-22T08:00:00+00:00",
        })
        assert selection.status == "cancelled"
        assert camp is None

    def test_transport_failure_is_store_unavailable(self):
        client, query = create_mock_supabase()
        query.execute.side_effect = httpx.ConnectError("connection refused")

        with pytest.raises(StoreUnavailable):
            SupabaseCampStore(client).commit_cancellation("sel-1", "2025-07-22T08:00:00+00:00")


class TestSelectionsAndAssignments:
    def test_insert_second_active_selection_violates_unique_index(self):
        client, query = create_mock_supabase()
        query.execute.side_effect = api_error("23505", "duplicate key value violates unique constraint")

        with pytest.raises(ConstraintViolation):
            SupabaseCampStore(client).insert_selection({"user_id": "user-1", "camp_id": "camp-1"})

    def test_get_active_selection_filters_on_status(self):
        client, query = create_mock_supabase(data=[SELECTION_ROW])

        selection = SupabaseCampStore(client).get_active_selection("user-1")

        query.eq.assert_any_call("user_id", "user-1")
        query.eq.assert_any_call("status", "active")
        assert selection.id == "sel-1"

    def test_get_active_selection_none(self):
        client, _ = create_mock_supabase(data=[])
        assert SupabaseCampStore(client).get_active_selection("user-1") is None

    def test_update_selection_status(self):
        cancelled = {**SELECTION_ROW, "status": "cancelled", "cancelled_at": "2025-07-22T08:00:00+00:00"}
        client, query = create_mock_supabase(data=[cancelled])

        selection = SupabaseCampStore(client).update_selection_status("sel-1", "cancelled", "2025-07-22T08:00:00+00:00")

        query.update.assert_called_with({"status": "cancelled", "cancelled_at": "2025-07-22T08:00:00+00:00"})
        assert selection.status == "cancelled"

    def test_count_active_selections_uses_exact_count(self):
        client, query = create_mock_supabase(data=[], count=2)

        assert SupabaseCampStore(client).count_active_selections("camp-1") == 2
        query.select.assert_called_with("id", count="exact")

    def test_delete_blocked_by_trigger(self):
        client, query = create_mock_supabase()
        query.execute.side_effect = [
            Mock(data=[SELECTION_ROW]),
            api_error("23514", "Camp has active selections and cannot be deleted"),
        ]
        events = []
        store = SupabaseCampStore(client)
        store.subscribe("camp_selections", events.append)

        with pytest.raises(ConstraintViolation):
            store.delete_camp("camp-1")
        assert events == []

    def test_delete_reports_removed_history(self):
        cancelled = {**SELECTION_ROW, "status": "cancelled", "cancelled_at": "2025-07-22T08:00:00+00:00"}
        client, query = create_mock_supabase()
        query.execute.side_effect = [Mock(data=[cancelled]), Mock(data=[CAMP_ROW])]
        events = []
        store = SupabaseCampStore(client)
        store.subscribe("camp_selections", events.append)
        store.subscribe("camps", events.append)

        assert store.delete_camp("camp-1") is True

        assert [(e["table"], e["eventType"]) for e in events] == [
            ("camp_selections", "DELETE"),
            ("camps", "DELETE"),
        ]
        assert events[0]["old"]["id"] == "sel-1"

    def test_list_assignments_flattens_camp_name(self):
        client, query = create_mock_supabase(data=[{
            "id": "asg-1",
            "volunteer_id": "vol-1",
            "camp_id": "camp-1",
            "created_at": "2025-07-21T09:00:00+00:00",
            "camps": {"id": "camp-1", "name": "Community Hall"},
        }])

        assignments = SupabaseCampStore(client).list_assignments("vol-1")

        query.select.assert_called_with("*, camps(id, name)")
        assert assignments[0].camp_name == "Community Hall"

    def test_assignment_for_unknown_camp(self):
        client, query = create_mock_supabase()
        query.execute.side_effect = api_error("23503")

        with pytest.raises(CampNotFound):
            SupabaseCampStore(client).insert_assignment("vol-1", "camp-404")
