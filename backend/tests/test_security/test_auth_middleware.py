"""Tests for per-user bearer token authentication."""

import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..'))
os.environ.setdefault("DATABASE_URL", "sqlite:///test.db")

from fastapi.testclient import TestClient

from app.db.database import create_db_and_tables
from app.main import app
from app.models.user import hash_token, new_token


def _client():
    create_db_and_tables()
    return TestClient(app)


def test_missing_auth_header_returns_401():
    resp = _client().get("/api/v1/tasks")
    assert resp.status_code == 401
    assert resp.json() == {"detail": "Unauthenticated."}


def test_malformed_auth_header_returns_401():
    client = _client()
    for header in ("Token abc", "Bearer ", "Bearer", "abc"):
        resp = client.get("/api/v1/tasks", headers={"Authorization": header})
        assert resp.status_code == 401, header


def test_unknown_token_returns_401():
    resp = _client().get("/api/v1/tasks", headers={"Authorization": f"Bearer {new_token()}"})
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Unauthenticated."


def test_valid_token_passes(make_user):
    _, headers = make_user()
    resp = _client().get("/api/v1/tasks", headers=headers)
    assert resp.status_code == 200
    print("  PASS: valid_token_passes")


def test_token_resolves_to_its_own_user(make_user):
    client = _client()
    _, alice = make_user()
    _, bob = make_user()
    created = client.post("/api/v1/tasks", json={"text": "Milik Alice"}, headers=alice).json()

    assert [t["id"] for t in client.get("/api/v1/tasks", headers=alice).json()] == [created["id"]]
    assert client.get("/api/v1/tasks", headers=bob).json() == []


def test_health_exempt_from_auth():
    resp = _client().get("/health")
    assert resp.status_code == 200


def test_root_exempt_from_auth():
    resp = _client().get("/")
    assert resp.status_code == 200


def test_options_preflight_not_blocked():
    resp = _client().options(
        "/api/v1/tasks",
        headers={"Origin": "http://localhost:5173", "Access-Control-Request-Method": "GET"},
    )
    assert resp.status_code != 401


def test_token_stored_hashed():
    token = new_token()
    digest = hash_token(token)
    assert digest != token
    assert len(digest) == 64
    assert hash_token(token) == digest
    assert new_token() != token
