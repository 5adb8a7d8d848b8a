"""
tests/test_api_auth.py -- Integration tests for account and session routes.

These tests exercise the full stack: FastAPI routing -> auth dependency
injection -> UserStore -> response model serialization.

Coverage:
  - POST /api/users: 201 shape, no password leak, 409 duplicate, 422 bad input
  - POST /api/login: 200 with token + refresh_token, 401 wrong password/unknown email,
    429 with Retry-After once the per-IP limit is used up
  - POST /api/refresh: 200 new JWT, 400 missing header, 401 unknown/revoked/expired
  - POST /api/revoke: 204, idempotent, revoked token no longer refreshes
  - PUT  /api/users: 200 update, 401 without/with bad token, 409 taken email

Fixtures used (from conftest.py):
  - api_client: (client, token, user) -- user is walt@breakingbad.com / "123456"
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from uuid import UUID

import pytest
from fastapi.testclient import TestClient

from api.limiter import limiter
from auth.models import User
from auth.tokens import decode_access_token, hash_refresh_token
from conftest import auth_header, register_and_login
from core.config import get_settings

ApiClient = tuple[TestClient, str, User]


class TestCreateUser:
    def test_create_user(self, api_client: ApiClient) -> None:
        client, _token, _user = api_client
        resp = client.post("/api/users", json={"email": "jesse@breakingbad.com", "password": "capncook"})
        assert resp.status_code == 201, resp.text
        data = resp.json()
        assert data["email"] == "jesse@breakingbad.com"
        assert data["is_chirpy_red"] is False
        UUID(data["id"])
        assert data["created_at"] and data["updated_at"]

    def test_response_never_includes_password(self, api_client: ApiClient) -> None:
        client, _token, _user = api_client
        resp = client.post("/api/users", json={"email": "skyler@breakingbad.com", "password": "taxes"})
        assert resp.status_code == 201
        assert "password" not in resp.text
        assert "hashed_password" not in resp.json()

    def test_duplicate_email_conflict(self, api_client: ApiClient) -> None:
        client, _token, user = api_client
        resp = client.post("/api/users", json={"email": user.email, "password": "whatever"})
        assert resp.status_code == 409
        assert resp.json()["error"]["code"] == "email_taken"

    def test_invalid_email_rejected(self, api_client: ApiClient) -> None:
        client, _token, _user = api_client
        resp = client.post("/api/users", json={"email": "not-an-email", "password": "pw"})
        assert resp.status_code == 422
        assert resp.json()["error"]["code"] == "validation_error"

    def test_missing_password_rejected(self, api_client: ApiClient) -> None:
        client, _token, _user = api_client
        resp = client.post("/api/users", json={"email": "hank@dea.gov"})
        assert resp.status_code == 422

    def test_password_over_72_bytes_rejected(self, api_client: ApiClient) -> None:
        client, _token, _user = api_client
        resp = client.post("/api/users", json={"email": "marie@dea.gov", "password": "p" * 73})
        assert resp.status_code == 422


class TestLogin:
    def test_login_success(self, api_client: ApiClient) -> None:
        client, _token, user = api_client
        resp = client.post("/api/login", json={"email": user.email, "password": "123456"})
        assert resp.status_code == 200, resp.text
        assert resp.headers["cache-control"] == "no-store"
        data = resp.json()
        assert data["id"] == str(user.id)
        assert data["email"] == user.email
        assert data["is_chirpy_red"] is False
        assert decode_access_token(data["token"]) == user.id
        assert len(data["refresh_token"]) == 64

    def test_refresh_token_stored_as_hash(self, api_client: ApiClient) -> None:
        client, _token, user = api_client
        data = client.post("/api/login", json={"email": user.email, "password": "123456"}).json()
        store = client.app.state.user_store
        assert store.get_refresh_token(data["refresh_token"]) is None
        record = store.get_refresh_token(hash_refresh_token(data["refresh_token"]))
        assert record is not None
        assert record.user_id == user.id

    def test_wrong_password(self, api_client: ApiClient) -> None:
        client, _token, user = api_client
        resp = client.post("/api/login", json={"email": user.email, "password": "wrong"})
        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "bad_credentials"

    def test_unknown_email_same_error(self, api_client: ApiClient) -> None:
        """Unknown email and wrong password are indistinguishable to the caller."""
        client, _token, _user = api_client
        resp = client.post("/api/login", json={"email": "gus@pollos.com", "password": "123456"})
        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "bad_credentials"


class TestRefreshAndRevoke:
    def test_refresh_returns_new_access_token(self, api_client: ApiClient) -> None:
        client, _token, _user = api_client
        login = register_and_login(client, "mike@ehrmantraut.com")
        resp = client.post("/api/refresh", headers=auth_header(login["refresh_token"]))
        assert resp.status_code == 200, resp.text
        assert decode_access_token(resp.json()["token"]) == UUID(login["id"])

    def test_refresh_missing_header(self, api_client: ApiClient) -> None:
        client, _token, _user = api_client
        resp = client.post("/api/refresh")
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "missing_token"

    def test_refresh_unknown_token(self, api_client: ApiClient) -> None:
        client, _token, _user = api_client
        resp = client.post("/api/refresh", headers=auth_header("f" * 64))
        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "invalid_refresh_token"

    def test_access_token_is_not_a_refresh_token(self, api_client: ApiClient) -> None:
        client, token, _user = api_client
        resp = client.post("/api/refresh", headers=auth_header(token))
        assert resp.status_code == 401

    def test_revoke_then_refresh_fails(self, api_client: ApiClient) -> None:
        client, _token, _user = api_client
        login = register_and_login(client, "lydia@madrigal.com")
        headers = auth_header(login["refresh_token"])

        resp = client.post("/api/revoke", headers=headers)
        assert resp.status_code == 204
        assert resp.content == b""

        resp = client.post("/api/refresh", headers=headers)
        assert resp.status_code == 401

    def test_revoke_is_idempotent(self, api_client: ApiClient) -> None:
        client, _token, _user = api_client
        assert client.post("/api/revoke", headers=auth_header("e" * 64)).status_code == 204

    def test_revoke_missing_header(self, api_client: ApiClient) -> None:
        client, _token, _user = api_client
        assert client.post("/api/revoke").status_code == 400

    def test_expired_refresh_token(self, api_client: ApiClient) -> None:
        client, _token, user = api_client
        store = client.app.state.user_store
        past = (datetime.now(timezone.utc) - timedelta(minutes=1)).isoformat(timespec="microseconds")
        store.create_refresh_token(user.id, hash_refresh_token("d" * 64), past)
        resp = client.post("/api/refresh", headers=auth_header("d" * 64))
        assert resp.status_code == 401

    def test_each_login_gets_its_own_refresh_token(self, api_client: ApiClient) -> None:
        client, _token, _user = api_client
        first = register_and_login(client, "tuco@salamanca.com")
        second = client.post("/api/login", json={"email": "tuco@salamanca.com", "password": "04234"}).json()
        assert first["refresh_token"] != second["refresh_token"]

        client.post("/api/revoke", headers=auth_header(first["refresh_token"]))
        resp = client.post("/api/refresh", headers=auth_header(second["refresh_token"]))
        assert resp.status_code == 200


class TestUpdateUser:
    def test_update_own_credentials(self, api_client: ApiClient) -> None:
        client, _token, _user = api_client
        login = register_and_login(client, "todd@alquist.com", "meth")
        resp = client.put(
            "/api/users",
            json={"email": "todd@vamonos.com", "password": "pest"},
            headers=auth_header(login["token"]),
        )
        assert resp.status_code == 200, resp.text
        data = resp.json()
        assert data["id"] == login["id"]
        assert data["email"] == "todd@vamonos.com"

        old = client.post("/api/login", json={"email": "todd@alquist.com", "password": "meth"})
        assert old.status_code == 401
        new = client.post("/api/login", json={"email": "todd@vamonos.com", "password": "pest"})
        assert new.status_code == 200

    def test_update_requires_token(self, api_client: ApiClient) -> None:
        client, _token, _user = api_client
        resp = client.put("/api/users", json={"email": "x@y.com", "password": "pw"})
        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "unauthorized"

    def test_update_with_invalid_token(self, api_client: ApiClient) -> None:
        client, _token, _user = api_client
        resp = client.put("/api/users", json={"email": "x@y.com", "password": "pw"}, headers=auth_header("bogus"))
        assert resp.status_code == 401

    def test_update_to_taken_email(self, api_client: ApiClient) -> None:
        client, _token, user = api_client
        login = register_and_login(client, "badger@breakingbad.com")
        resp = client.put(
            "/api/users",
            json={"email": user.email, "password": "pw"},
            headers=auth_header(login["token"]),
        )
        assert resp.status_code == 409


class TestLoginRateLimit:
    @pytest.fixture(autouse=True)
    def _fresh_limiter(self, monkeypatch):
        monkeypatch.setattr(get_settings(), "login_rate_limit", "3/minute")
        limiter.reset()
        yield
        limiter.reset()

    def test_limit_returns_429(self, api_client: ApiClient) -> None:
        client, _token, user = api_client
        bad = {"email": user.email, "password": "wrong"}
        codes = [client.post("/api/login", json=bad).status_code for _ in range(3)]
        assert codes == [401, 401, 401]

        resp = client.post("/api/login", json=bad)
        assert resp.status_code == 429
        assert resp.json()["error"]["code"] == "rate_limited"
        assert int(resp.headers["Retry-After"]) > 0

    def test_limit_applies_to_correct_password_too(self, api_client: ApiClient) -> None:
        client, _token, user = api_client
        for _ in range(3):
            client.post("/api/login", json={"email": user.email, "password": "wrong"})
        resp = client.post("/api/login", json={"email": user.email, "password": "123456"})
        assert resp.status_code == 429
