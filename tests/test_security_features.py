"""Tests covering security and hardening features."""

from __future__ import annotations

from conftest import build_app

from models import db


def test_cors_allows_configured_origin(tmp_path):
    app = build_app(tmp_path, CORS_ORIGINS=["https://client.example"])
    client = app.test_client()

    response = client.get("/api/health", headers={"Origin": "https://client.example"})

    assert response.status_code == 200
    assert response.headers.get("Access-Control-Allow-Origin") == "https://client.example"
    assert response.headers.get("X-Request-ID")


def test_incoming_request_id_is_echoed(client):
    response = client.get("/api/health", headers={"X-Request-ID": "req-123"})

    assert response.headers["X-Request-ID"] == "req-123"


def test_rate_limit_exceeded_returns_json(tmp_path):
    app = build_app(tmp_path, RATE_LIMIT="2 per minute", RATELIMIT_ENABLED=True)
    client = app.test_client()

    client.get("/api/health")
    client.get("/api/health")
    response = client.get("/api/health")

    assert response.status_code == 429
    payload = response.get_json()
    assert payload["success"] is False
    assert payload["error"] == "Too Many Requests"
    assert "request_id" in payload


def test_auth_endpoints_use_stricter_limit(tmp_path):
    app = build_app(tmp_path, AUTH_RATE_LIMIT="2 per minute", RATELIMIT_ENABLED=True)
    with app.app_context():
        db.create_all()
    client = app.test_client()

    credentials = {"email": "nobody@example.com", "password": "Password123"}
    statuses = [client.post("/api/auth/login", json=credentials).status_code for _ in range(3)]

    assert statuses == [401, 401, 429]


def test_json_error_shape_for_invalid_request(client):
    response = client.post(
        "/api/auth/register",
        data="not-json",
        content_type="text/plain",
    )

    assert response.status_code == 400
    payload = response.get_json()
    assert payload["success"] is False
    assert payload["error"] == "Bad Request"
    assert "Request content type" in payload["detail"]
    assert payload["request_id"]


def test_missing_token_uses_error_shape(client):
    response = client.get("/api/auth/me")

    assert response.status_code == 401
    payload = response.get_json()
    assert payload["error"] == "Unauthorized"
    assert payload["request_id"]


def test_garbage_token_is_rejected(client):
    response = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-token"})

    assert response.status_code == 401
    assert response.get_json()["error"] == "Unauthorized"


def test_unknown_route_returns_json_404(client):
    response = client.get("/api/nope")

    assert response.status_code == 404
    assert response.get_json()["error"] == "Not Found"
