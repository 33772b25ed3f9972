from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from app.core.dependencies import get_auth_service, get_current_user
from app.core.errors import Unauthenticated
from app.main import app
from tests.conftest import REFUGEE_A, REFUGEE_B, VOLUNTEER

TOKENS = {"token-a": REFUGEE_A, "token-b": REFUGEE_B, "token-v": VOLUNTEER}


class StubAuthService:
    logged_out = []

    def logout(self, token):
        self.logged_out.append(token)
        return True

    def verify_credentials(self, token):
        if token not in TOKENS:
            raise Unauthenticated()
        return TOKENS[token]


@pytest.fixture
def client(store):
    """TestClient whose caller is switched with ``client.login(user)``."""
    current = {"user": REFUGEE_A}
    app.dependency_overrides[get_current_user] = lambda: current["user"]
    app.dependency_overrides[get_auth_service] = StubAuthService

    with TestClient(app) as test_client:
        test_client.login = lambda user: current.update(user=user)
        yield test_client

    app.dependency_overrides.clear()
    StubAuthService.logged_out.clear()
