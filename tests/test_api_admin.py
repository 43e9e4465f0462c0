"""
tests/test_api_admin.py -- Integration tests for health, metrics and reset.

Covers:
  - GET /api/healthz: 200 {"status": "ok"}, no auth
  - GET /admin/metrics counts requests under /app/
  - POST /admin/reset in dev: zeroes hits, deletes users (old logins fail)
  - POST /admin/reset outside dev: 403, nothing deleted
  - unknown route -> 404 in the error envelope
"""

from __future__ import annotations

import uuid

from fastapi.testclient import TestClient

from api.main import create_app


def _hits(client: TestClient) -> int:
    html = client.get("/admin/metrics").text
    return int(html.split("visited ")[1].split(" times")[0])


def test_healthz(api_client: TestClient) -> None:
    resp = api_client.get("/api/healthz", headers={})
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_unknown_route_uses_error_envelope(api_client: TestClient) -> None:
    resp = api_client.get("/api/does-not-exist")
    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "http_404"


class TestMetrics:
    def test_app_requests_are_counted(self, api_client: TestClient) -> None:
        before = _hits(api_client)
        assert api_client.get("/app/").status_code == 200
        api_client.get("/app/")
        assert _hits(api_client) == before + 2

    def test_other_paths_not_counted(self, api_client: TestClient) -> None:
        before = _hits(api_client)
        api_client.get("/api/healthz")
        api_client.get("/admin/metrics")
        assert _hits(api_client) == before

    def test_metrics_is_html(self, api_client: TestClient) -> None:
        resp = api_client.get("/admin/metrics")
        assert resp.headers["content-type"].startswith("text/html")
        assert "Welcome, Chirpy Admin" in resp.text


class TestReset:
    def test_reset_in_dev(self, api_client: TestClient, login_user) -> None:
        email = f"gone-{uuid.uuid4().hex[:8]}@example.com"
        login_user(api_client, email)
        api_client.get("/app/")

        resp = api_client.post("/admin/reset")
        assert resp.status_code == 200
        assert resp.text == "Hits reset to 0 and database reset to empty"
        assert _hits(api_client) == 0
        assert api_client.get("/api/chirps").json() == []

        resp = api_client.post("/api/login", json={"email": email, "password": "secret1"})
        assert resp.status_code == 401

    def test_reset_forbidden_outside_dev(self, settings_factory, login_user) -> None:
        db_url = f"sqlite:///file:admin_prod_{uuid.uuid4().hex}?mode=memory&cache=shared&uri=true"
        app = create_app(settings_factory(platform="prod", db_url=db_url))
        with TestClient(app) as client:
            email = f"kept-{uuid.uuid4().hex[:8]}@example.com"
            login_user(client, email)

            resp = client.post("/admin/reset")
            assert resp.status_code == 403

            resp = client.post("/api/login", json={"email": email, "password": "secret1"})
            assert resp.status_code == 200
