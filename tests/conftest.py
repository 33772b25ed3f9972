"""
Root test configuration and fixtures.

- unit/: services, stores and the change notifier, no HTTP
- api/: FastAPI routes through TestClient against the in-process store

Every test gets a fresh InMemoryCampStore installed as the process store;
nothing here talks to Supabase.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path
from unittest.mock import MagicMock, Mock

import pytest

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

os.environ.setdefault("STORE_BACKEND", "memory")

from app.core.context import RequestContext  # noqa: E402
from app.database.memory_store import InMemoryCampStore  # noqa: E402
from app.database.store import StoreProvider  # noqa: E402
from app.modules.auth.schemas import UserIdentity  # noqa: E402
from app.modules.auth.service import clear_auth_cache  # noqa: E402

REFUGEE_A = UserIdentity(id="refugee-a", role="refugee", email="asha@example.com", name="Asha")
REFUGEE_B = UserIdentity(id="refugee-b", role="refugee", email="bilal@example.com", name="Bilal")
VOLUNTEER = UserIdentity(id="volunteer-1", role="volunteer", email="vera@example.com", name="Vera")


def make_context(user: UserIdentity, store) -> RequestContext:
    return RequestContext(user=user, store=store)


def create_mock_supabase(data=None, count=None):
    """Mock Supabase client whose query builder chains back to itself."""
    query = MagicMock()
    for method in ("select", "insert", "update", "delete", "eq", "in_", "order", "limit"):
        getattr(query, method).return_value = query
    query.execute.return_value = Mock(data=data, count=count)

    client = MagicMock()
    client.table.return_value = query
    client.rpc.return_value = query
    return client, query


@pytest.fixture(autouse=True)
def reset_auth_cache():
    clear_auth_cache()
    yield
    clear_auth_cache()


@pytest.fixture
def store():
    memory_store = InMemoryCampStore()
    StoreProvider.set_store(memory_store)
    yield memory_store
    StoreProvider.reset_store()


@pytest.fixture
def camp(store):
    return store.insert_camp({
        "name": "Riverside Relief Camp",
        "beds": 3,
        "original_beds": 3,
        "resources": ["Food", "Water"],
        "contact": "+91 90000 00001",
        "ambulance": "Nearby",
        "type": "volunteer-added",
        "added_by": VOLUNTEER.id,
    })


@pytest.fixture
def last_bed_camp(store):
    return store.insert_camp({"name": "Hilltop Shelter", "beds": 1, "original_beds": 1})
