"""SyariahOS FastAPI Application.

Entry point for the task tracking backend.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.health import VERSION, set_reset_scheduler
from app.api.health import router as health_router
from app.api.v1.activity import router as activity_router
from app.api.v1.dashboard import router as dashboard_router
from app.api.v1.tasks import router as tasks_router
from app.config import settings
from app.db.database import create_db_and_tables
from app.middleware.auth import UserTokenAuthMiddleware
from app.services.reset_scheduler import ResetScheduler
from app.services.task_reset import TaskResetService

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown."""
    logging.getLogger("app").setLevel(settings.log_level.upper())

    # Startup: create tables
    create_db_and_tables()

    reset_scheduler = ResetScheduler(
        service=TaskResetService(),
        check_interval_minutes=settings.reset_check_interval_minutes,
        enabled=settings.reset_enabled,
    )
    await reset_scheduler.start()
    set_reset_scheduler(reset_scheduler)

    yield

    # Shutdown
    reset_scheduler.stop()
    set_reset_scheduler(None)


app = FastAPI(
    title="SyariahOS",
    description="Task tracking backend: targets, progress history, recurring resets",
    version=VERSION,
    lifespan=lifespan,
)

# Middleware (order matters: last added = outermost)
app.add_middleware(UserTokenAuthMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.cors_origins.split(",") if o.strip()],
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type"],
)


# Global exception handler: internal details never reach the client
@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    if isinstance(exc, HTTPException):
        raise exc
    logger.error("Unhandled exception on %s %s: %s", request.method, request.url.path, exc, exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error."},
    )


# Routes
app.include_router(health_router)
app.include_router(tasks_router)
app.include_router(dashboard_router)
app.include_router(activity_router)


@app.get("/")
async def root():
    return {"name": "SyariahOS", "version": VERSION, "status": "running"}
