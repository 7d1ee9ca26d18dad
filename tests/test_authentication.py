# tests/test_authentication.py
import pytest
from rest_framework import exceptions

from core import authentication
from core.authentication import admin_status, resolve_session
from core.exceptions import PermissionDeniedError
from core.session import SessionContext

CLAIMS = {
    "uid": "fan-1",
    "name": "Amina",
    "email": "amina@example.com",
    "picture": "https://img/amina.png",
}


@pytest.fixture
def valid_token(monkeypatch):
    def verify(token):
        if token != "good-token":
            raise ValueError("bad token")
        return dict(CLAIMS)

    monkeypatch.setattr(authentication, "verify_token", verify)


class TestAdminStatus:
    def test_not_listed(self, store):
        assert admin_status(store, "fan-1") == (False, False)

    def test_admin_and_super_admin(self, store):
        store.seed("admins/a1", {"role": "admin"})
        store.seed("admins/a2", {"role": "super-admin"})
        assert admin_status(store, "a1") == (True, False)
        assert admin_status(store, "a2") == (True, True)

    def test_denied_read_means_not_admin(self, store):
        store.inject("get", PermissionDeniedError("admins/fan-1", "get"), path_prefix="admins/")
        assert admin_status(store, "fan-1") == (False, False)


class TestResolveSession:
    def test_builds_session_and_records_presence(self, store, valid_token):
        session = resolve_session("good-token", store)

        assert session.uid == "fan-1"
        assert session.display_name == "Amina"
        assert session.photo_url == "https://img/amina.png"
        assert not session.is_admin
        assert store.data("fans/fan-1")["lastActive"] == store.now

    def test_rejects_invalid_token(self, store, valid_token):
        with pytest.raises(exceptions.AuthenticationFailed):
            resolve_session("forged", store)
        assert store.data("fans/fan-1") is None


class TestBearerAuthentication:
    def test_session_endpoint_with_bearer_token(self, store, api_client, valid_token):
        store.seed("admins/fan-1", {"role": "admin"})

        response = api_client.get("/api/v1/users/me/", HTTP_AUTHORIZATION="Bearer good-token")

        assert response.status_code == 200
        assert response.data["uid"] == "fan-1"
        assert response.data["is_admin"] is True

    def test_bad_token_is_401(self, store, api_client, valid_token):
        response = api_client.get("/api/v1/users/me/", HTTP_AUTHORIZATION="Bearer forged")
        assert response.status_code == 401

    def test_missing_token_is_401(self, store, api_client):
        response = api_client.get("/api/v1/users/me/")
        assert response.status_code == 401


class TestSessionLifetime:
    def test_close_releases_owned_watches(self, store):
        session = SessionContext(uid="fan-1")
        session.own(store.watch_document("messages/m1", lambda s: None))
        assert store.active_watches == 1

        session.close()
        session.close()

        assert store.active_watches == 0
        assert session.closed

    def test_watch_owned_after_close_is_released(self, store):
        session = SessionContext(uid="fan-1")
        session.close()
        subscription = session.own(store.watch_document("messages/m1", lambda s: None))
        assert not subscription.active
        assert store.active_watches == 0
