"""
tests/test_api_users.py -- Integration tests for account and session endpoints.

Covers:
  - POST /api/users: 201 without password hash, 409 on duplicate, 422 on bad body
  - POST /api/login: tokens + user, no-store, generic 401 for both failure causes
  - POST /api/refresh: new access token; 401 once revoked
  - POST /api/revoke: 204 even for unknown tokens; 401 without a bearer header
  - PUT /api/users: requires access token, swaps credentials, refresh survives
  - 401 responses carry WWW-Authenticate: Bearer and the error envelope

Fixtures used (from conftest.py):
  api_client  -- module-scoped TestClient
  login_user  -- registers a unique account and logs in
  auth_header -- builds an Authorization: Bearer header
"""

from __future__ import annotations

import uuid

import pytest
from fastapi.testclient import TestClient
from jose import jwt


def _email() -> str:
    return f"u-{uuid.uuid4().hex[:10]}@example.com"


class TestCreateUser:
    def test_create_returns_public_fields(self, api_client: TestClient) -> None:
        email = _email()
        resp = api_client.post("/api/users", json={"email": email, "password": "secret1"})
        assert resp.status_code == 201, resp.text
        data = resp.json()
        assert data["email"] == email
        assert data["is_chirpy_red"] is False
        assert uuid.UUID(data["id"])
        assert data["created_at"] and data["updated_at"]
        assert "password" not in data and "hashed_password" not in data

    def test_duplicate_email_is_409(self, api_client: TestClient) -> None:
        email = _email()
        api_client.post("/api/users", json={"email": email, "password": "secret1"})
        resp = api_client.post("/api/users", json={"email": email, "password": "secret2"})
        assert resp.status_code == 409
        assert resp.json()["error"]["code"] == "conflict"

    def test_missing_password_is_422(self, api_client: TestClient) -> None:
        resp = api_client.post("/api/users", json={"email": _email()})
        assert resp.status_code == 422
        assert resp.json()["error"]["code"] == "validation_error"

    def test_password_over_72_bytes_is_422(self, api_client: TestClient) -> None:
        resp = api_client.post("/api/users", json={"email": _email(), "password": "x" * 73})
        assert resp.status_code == 422


class TestLogin:
    def test_login_returns_user_and_tokens(self, api_client: TestClient) -> None:
        email = _email()
        api_client.post("/api/users", json={"email": email, "password": "secret1"})
        resp = api_client.post("/api/login", json={"email": email, "password": "secret1"})
        assert resp.status_code == 200, resp.text
        assert resp.headers["cache-control"] == "no-store"
        data = resp.json()
        assert data["email"] == email
        assert data["token"].count(".") == 2, "access token should be a JWT"
        assert len(data["refresh_token"]) == 64

    def test_wrong_password_and_unknown_email_match(self, api_client: TestClient) -> None:
        email = _email()
        api_client.post("/api/users", json={"email": email, "password": "secret1"})

        wrong = api_client.post("/api/login", json={"email": email, "password": "nope"})
        unknown = api_client.post("/api/login", json={"email": _email(), "password": "secret1"})

        assert wrong.status_code == unknown.status_code == 401
        assert wrong.json() == unknown.json()
        assert wrong.json()["error"]["message"] == "Incorrect email or password"
        assert wrong.headers["www-authenticate"] == "Bearer"

    def test_huge_expires_in_seconds_is_clamped(self, api_client: TestClient) -> None:
        email = _email()
        api_client.post("/api/users", json={"email": email, "password": "secret1"})
        resp = api_client.post(
            "/api/login", json={"email": email, "password": "secret1", "expires_in_seconds": 10**15}
        )
        assert resp.status_code == 200, resp.text
        claims = jwt.get_unverified_claims(resp.json()["token"])
        assert claims["exp"] - claims["iat"] == pytest.approx(3600, abs=1)

    def test_expires_in_seconds_accepted(self, api_client: TestClient) -> None:
        email = _email()
        api_client.post("/api/users", json={"email": email, "password": "secret1"})
        resp = api_client.post(
            "/api/login", json={"email": email, "password": "secret1", "expires_in_seconds": 7200}
        )
        assert resp.status_code == 200


class TestRefreshAndRevoke:
    def test_refresh_then_revoke(self, api_client: TestClient, login_user, auth_header) -> None:
        data = login_user(api_client)

        resp = api_client.post("/api/refresh", headers=auth_header(data["refresh_token"]))
        assert resp.status_code == 200, resp.text
        assert resp.headers["cache-control"] == "no-store"
        new_token = resp.json()["token"]
        assert new_token != data["token"]

        resp = api_client.post("/api/revoke", headers=auth_header(data["refresh_token"]))
        assert resp.status_code == 204
        assert resp.content == b""

        resp = api_client.post("/api/refresh", headers=auth_header(data["refresh_token"]))
        assert resp.status_code == 401

    def test_refresh_without_header(self, api_client: TestClient) -> None:
        resp = api_client.post("/api/refresh")
        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "unauthorized"

    def test_refresh_with_unknown_token(self, api_client: TestClient, auth_header) -> None:
        resp = api_client.post("/api/refresh", headers=auth_header("a" * 64))
        assert resp.status_code == 401

    def test_revoke_unknown_token_is_204(self, api_client: TestClient, auth_header) -> None:
        resp = api_client.post("/api/revoke", headers=auth_header("b" * 64))
        assert resp.status_code == 204

    def test_revoke_twice_is_204(self, api_client: TestClient, login_user, auth_header) -> None:
        data = login_user(api_client)
        assert api_client.post("/api/revoke", headers=auth_header(data["refresh_token"])).status_code == 204
        assert api_client.post("/api/revoke", headers=auth_header(data["refresh_token"])).status_code == 204

    def test_revoke_without_bearer_is_401(self, api_client: TestClient) -> None:
        resp = api_client.post("/api/revoke", headers={"Authorization": "Basic abc"})
        assert resp.status_code == 401


class TestUpdateUser:
    def test_update_requires_access_token(self, api_client: TestClient) -> None:
        resp = api_client.put("/api/users", json={"email": _email(), "password": "secret2"})
        assert resp.status_code == 401
        assert resp.headers["www-authenticate"] == "Bearer"

    def test_update_rejects_refresh_token_as_access(self, api_client: TestClient, login_user, auth_header) -> None:
        data = login_user(api_client)
        resp = api_client.put(
            "/api/users",
            json={"email": _email(), "password": "secret2"},
            headers=auth_header(data["refresh_token"]),
        )
        assert resp.status_code == 401

    def test_update_swaps_credentials(self, api_client: TestClient, login_user, auth_header) -> None:
        data = login_user(api_client)
        new_email = _email()

        resp = api_client.put(
            "/api/users",
            json={"email": new_email, "password": "secret2"},
            headers=auth_header(data["token"]),
        )
        assert resp.status_code == 200, resp.text
        assert resp.json()["email"] == new_email
        assert resp.json()["id"] == data["id"]

        assert api_client.post("/api/login", json={"email": new_email, "password": "secret2"}).status_code == 200
        assert api_client.post("/api/login", json={"email": new_email, "password": "secret1"}).status_code == 401

    def test_refresh_token_survives_password_change(self, api_client: TestClient, login_user, auth_header) -> None:
        data = login_user(api_client)
        api_client.put(
            "/api/users",
            json={"email": _email(), "password": "secret2"},
            headers=auth_header(data["token"]),
        )
        resp = api_client.post("/api/refresh", headers=auth_header(data["refresh_token"]))
        assert resp.status_code == 200

    def test_update_to_taken_email_is_409(self, api_client: TestClient, login_user, auth_header) -> None:
        taken = _email()
        api_client.post("/api/users", json={"email": taken, "password": "secret1"})
        data = login_user(api_client)
        resp = api_client.put(
            "/api/users",
            json={"email": taken, "password": "secret2"},
            headers=auth_header(data["token"]),
        )
        assert resp.status_code == 409
