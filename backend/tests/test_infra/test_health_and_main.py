"""Tests for health endpoint and main app."""

import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..'))
os.environ.setdefault("DATABASE_URL", "sqlite:///test.db")
os.environ.setdefault("RESET_ENABLED", "false")

import asyncio
from unittest.mock import MagicMock, patch

from app.api.health import VERSION, HealthStatus, health_check, set_reset_scheduler
from app.db.database import create_db_and_tables

# === HealthStatus Model Tests ===


def test_health_status_model():
    from datetime import datetime, timezone
    status = HealthStatus(
        status="healthy",
        version="0.1.0",
        checks={"database": {"status": "ok", "detail": "test"}},
        dependencies={"database": "ok"},
        timestamp=datetime.now(timezone.utc),
    )
    assert status.status == "healthy"
    assert status.dependencies["database"] == "ok"
    print("  PASS: health_status_model")


# === Health Endpoint Tests ===


def test_health_check_returns_status():
    """health_check should report database, scheduler and audit log."""
    create_db_and_tables()
    set_reset_scheduler(None)
    result = asyncio.run(health_check())
    assert isinstance(result, HealthStatus)
    assert result.version == VERSION
    assert result.checks["database"]["status"] == "ok"
    assert "journal_mode" in result.checks["database"]["detail"]
    assert result.checks["reset_scheduler"]["status"] == "disabled"
    assert "activity_log" in result.checks
    assert result.status == "healthy"
    # dependencies should mirror checks
    assert result.dependencies == {name: c["status"] for name, c in result.checks.items()}
    print("  PASS: health_check_returns_status")


def test_health_degraded_when_scheduler_not_running():
    create_db_and_tables()
    set_reset_scheduler(None)
    with patch("app.api.health.settings") as mock_settings:
        mock_settings.reset_enabled = True
        mock_settings.activity_log_enabled = True
        result = asyncio.run(health_check())
    assert result.checks["reset_scheduler"]["status"] == "warning"
    assert result.status == "degraded"


def test_health_degraded_when_last_reset_pass_failed():
    create_db_and_tables()
    scheduler = MagicMock(is_running=True)
    scheduler.get_status.return_value = {
        "interval_minutes": 60, "last_reset_count": 0, "last_error": "database is locked",
    }
    set_reset_scheduler(scheduler)
    try:
        with patch("app.api.health.settings") as mock_settings:
            mock_settings.reset_enabled = True
            mock_settings.activity_log_enabled = True
            result = asyncio.run(health_check())
    finally:
        set_reset_scheduler(None)
    assert result.checks["reset_scheduler"]["status"] == "warning"
    assert "database is locked" in result.checks["reset_scheduler"]["detail"]
    assert result.status == "degraded"


# === Main App Tests ===


def test_root_endpoint():
    from fastapi.testclient import TestClient

    from app.main import app

    client = TestClient(app)
    response = client.get("/")
    assert response.status_code == 200
    data = response.json()
    assert data["name"] == "SyariahOS"
    assert data["version"] == VERSION
    assert data["status"] == "running"
    print("  PASS: root_endpoint")


def test_app_lifespan_starts_and_stops():
    from fastapi.testclient import TestClient

    from app.main import app

    with TestClient(app) as client:
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] in ("healthy", "degraded")


def test_routes_registered():
    from app.main import app

    paths = {route.path for route in app.routes}
    for path in (
        "/health",
        "/api/v1/tasks",
        "/api/v1/tasks/{task_id}",
        "/api/v1/tasks/{task_id}/toggle",
        "/api/v1/tasks/{task_id}/progress",
        "/api/v1/tasks/{task_id}/history/{entry_id}",
        "/api/v1/dashboard",
        "/api/v1/activity",
    ):
        assert path in paths, path


if __name__ == "__main__":
    print("Testing Health & Main:")
    test_health_status_model()
    test_health_check_returns_status()
    test_root_endpoint()
    test_routes_registered()
    print("\nAll Health & Main tests passed!")
