"""Health check endpoint — database and background scheduler status."""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter
from pydantic import BaseModel

from app.config import settings
from app.services.reset_scheduler import ResetScheduler

router = APIRouter()

VERSION = "0.1.0"

_reset_scheduler: ResetScheduler | None = None


def set_reset_scheduler(scheduler: ResetScheduler | None) -> None:
    global _reset_scheduler
    _reset_scheduler = scheduler


class HealthStatus(BaseModel):
    status: str  # "healthy" | "degraded" | "unhealthy"
    version: str
    checks: dict[str, dict]
    dependencies: dict[str, str]  # Simplified view for frontend
    timestamp: datetime


@router.get("/health", response_model=HealthStatus)
async def health_check() -> HealthStatus:
    """Check the database and the recurring-task reset scheduler."""
    checks: dict[str, dict] = {}
    overall_healthy = True
    has_warning = False

    # 1. Database
    try:
        from sqlalchemy import text

        from app.db.database import engine

        with engine.connect() as conn:
            conn.execute(text("SELECT 1")).fetchone()
            if engine.dialect.name == "sqlite":
                wal = conn.execute(text("PRAGMA journal_mode")).fetchone()
                checks["database"] = {"status": "ok", "detail": f"journal_mode={wal[0]}"}
            else:
                checks["database"] = {"status": "ok", "detail": engine.dialect.name}
    except Exception as e:
        checks["database"] = {"status": "error", "detail": str(e)}
        overall_healthy = False

    # 2. Reset scheduler (informational, never causes unhealthy)
    if not settings.reset_enabled:
        checks["reset_scheduler"] = {"status": "disabled", "detail": "set RESET_ENABLED=true to activate"}
    elif _reset_scheduler is not None and _reset_scheduler.is_running:
        status = _reset_scheduler.get_status()
        checks["reset_scheduler"] = {
            "status": "ok",
            "detail": f"every {status['interval_minutes']:.0f} min, last reset count={status['last_reset_count']}",
        }
        if status["last_error"]:
            checks["reset_scheduler"]["status"] = "warning"
            checks["reset_scheduler"]["detail"] += f", last pass failed: {status['last_error']}"
            has_warning = True
    else:
        checks["reset_scheduler"] = {"status": "warning", "detail": "not running"}
        has_warning = True

    # 3. Activity log
    checks["activity_log"] = {
        "status": "ok" if settings.activity_log_enabled else "disabled",
        "detail": "audit trail of task mutations",
    }

    dependencies = {name: check["status"] for name, check in checks.items()}

    if overall_healthy:
        status = "degraded" if has_warning else "healthy"
    else:
        status = "unhealthy"

    return HealthStatus(
        status=status,
        version=VERSION,
        checks=checks,
        dependencies=dependencies,
        timestamp=datetime.now(timezone.utc),
    )
