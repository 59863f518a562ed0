"""Tests for the user endpoints and the consistency gate."""

from datetime import timedelta
from unittest.mock import patch

from starlette.requests import Request

from api.middleware.consistency import is_allowed_while_suspended, route_key
from modules.audit import InconsistencyType
from modules.identity.exceptions import IdentityStoreError
from tests.conftest import START, bearer, make_identity


class TestGetMe:
    def test_consistent_user(self, client, seed_user):
        seed_user()

        response = client.get("/api/users/me", headers=bearer())

        assert response.status_code == 200
        data = response.json()
        assert data["role"] == "viewer"
        assert data["profile"]["name"] == "Test User"
        assert data["consistency"] is None

    def test_new_user_gets_suspended_placeholder(self, client, identities, log_service):
        identities.add(make_identity())

        response = client.get("/api/users/me", headers=bearer())

        assert response.status_code == 200
        consistency = response.json()["consistency"]
        assert consistency["is_suspended"] is True
        assert consistency["needs_data_completion"] is True
        assert consistency["missing_fields"] == ["email", "name", "role"]
        [entry] = log_service.for_user("user-1")
        assert entry.type == InconsistencyType.MISSING_PROFILE_RECORD


class TestGate:
    def test_divergent_user_blocked_from_other_routes(self, client, seed_user):
        seed_user(role="editor")

        response = client.patch("/api/users/me", json={"name": "New"}, headers=bearer())

        assert response.status_code == 403
        detail = response.json()["detail"]
        assert detail["error"] == "ACCOUNT_SUSPENDED"
        assert detail["details"]["inconsistencies"] == [
            {"field": "role", "identity_value": "viewer", "profile_value": "editor"}
        ]
        assert detail["details"]["suspension_expires_at"] is not None

    def test_suspended_user_reaches_allow_listed_routes(self, client, seed_user):
        seed_user(role="editor")
        headers = bearer()

        assert client.get("/api/users/me", headers=headers).status_code == 200
        assert client.get("/api/users/me/suspension", headers=headers).status_code == 200

    def test_expired_suspension_deletes_account(self, client, seed_user, profiles, clock):
        seed_user(role="editor")
        client.get("/api/users/me", headers=bearer())
        clock.set(START + timedelta(days=30))

        response = client.get("/api/users/me", headers=bearer())

        assert response.status_code == 403
        assert response.json()["detail"]["error"] == "ACCOUNT_DELETED"
        assert profiles.get("user-1") is None

    def test_missing_identity_record(self, client, seed_user):
        seed_user(identity=False)

        response = client.get("/api/users/me", headers=bearer())

        assert response.status_code == 403
        assert response.json()["detail"]["error"] == "IDENTITY_RECORD_MISSING"

    def test_failed_identity_lookup_is_rejected(self, client, seed_user, identities):
        seed_user()

        with patch.object(identities, "get_user", side_effect=IdentityStoreError("timeout", user_id="user-1")):
            response = client.get("/api/users/me", headers=bearer())

        assert response.status_code == 403
        assert response.json()["detail"]["error"] == "IDENTITY_RECORD_MISSING"

    def test_admin_bypasses_check(self, client, profiles):
        response = client.get("/api/users/me", headers=bearer("boss", role="admin"))

        assert response.status_code == 200
        assert response.json()["consistency"] is None
        assert profiles.get("boss") is None


class TestSuspensionStatus:
    def test_days_remaining(self, client, seed_user, clock):
        seed_user(role="editor")
        client.get("/api/users/me", headers=bearer())
        clock.set(START + timedelta(days=5))

        data = client.get("/api/users/me/suspension", headers=bearer()).json()

        assert data["is_temporarily_suspended"] is True
        assert data["days_remaining"] == 25
        assert data["suspension_reason"] == "Data inconsistency detected"


class TestCompleteProfile:
    def test_completion_restores_access(self, client, seed_user, log_service):
        seed_user(name="")
        headers = bearer()
        client.get("/api/users/me", headers=headers)

        response = client.post(
            "/api/users/me/complete-profile",
            json={"name": "A", "email": "a@example.com"},
            headers=headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["is_temporarily_suspended"] is False
        assert data["missing_fields"] == []
        completed = [e for e in log_service.for_user("user-1") if e.type == InconsistencyType.PROFILE_COMPLETED]
        assert len(completed) == 1
        assert client.patch("/api/users/me", json={"name": "Ada"}, headers=headers).status_code == 200

    def test_invalid_input(self, client, seed_user):
        seed_user(name="")

        response = client.post(
            "/api/users/me/complete-profile",
            json={"name": "", "email": "nope"},
            headers=bearer(),
        )

        assert response.status_code == 400
        detail = response.json()["detail"]
        assert detail["error"] == "VALIDATION_ERROR"
        assert set(detail["details"]["fields"]) == {"name", "email"}


class TestUpdateName:
    def test_active_user_can_rename(self, client, seed_user, identities):
        seed_user()

        response = client.patch("/api/users/me", json={"name": "Grace"}, headers=bearer())

        assert response.status_code == 200
        assert response.json()["name"] == "Grace"
        assert identities.get_user("user-1").display_name == "Grace"


class TestRouteKey:
    @staticmethod
    def request(method, path):
        return Request({"type": "http", "method": method, "path": path, "headers": [], "query_string": b""})

    def test_trailing_slash_ignored(self):
        assert route_key(self.request("get", "/api/users/me/")) == "GET /api/users/me"

    def test_allow_list_matches_method_and_path(self):
        allowed = ["GET /api/users/me"]
        assert is_allowed_while_suspended(self.request("GET", "/api/users/me"), allowed) is True
        assert is_allowed_while_suspended(self.request("PATCH", "/api/users/me"), allowed) is False
