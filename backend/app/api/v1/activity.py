"""Activity API endpoint — the caller's own audit trail.

GET /api/v1/activity?limit=50 — most recent events first
"""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from app.middleware.auth import get_current_user_id
from app.models.activity import SubjectType
from app.services.activity_log import ActivityLogger

router = APIRouter(prefix="/api/v1", tags=["activity"])

_logger = ActivityLogger()


class ActivityResponse(BaseModel):
    id: str
    action: str
    subject_type: SubjectType | None = Field(default=None, serialization_alias="subjectType")
    subject_id: str | None = Field(default=None, serialization_alias="subjectId")
    details: dict = Field(default_factory=dict)
    timestamp: datetime


@router.get("/activity", response_model=list[ActivityResponse])
async def list_activity(
    limit: int = Query(default=50, ge=1, le=200),
    user_id: str = Depends(get_current_user_id),
) -> list[ActivityResponse]:
    """List the caller's recent activity events."""
    return [
        ActivityResponse(
            id=e.id,
            action=e.action,
            subject_type=e.subject_type,
            subject_id=e.subject_id,
            details=e.details,
            timestamp=e.timestamp,
        )
        for e in _logger.recent(user_id, limit=limit)
    ]
