"""Activity log model — audit trail of task mutations.

Tracks what happened, to which task or history entry, and by whom.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Literal
from uuid import uuid4

from sqlmodel import JSON, Column, SQLModel, String
from sqlmodel import Field as SQLField

SubjectType = Literal["task", "task_history"]


class ActivityLog(SQLModel, table=True):
    """An audit event stored in SQLite."""

    __tablename__ = "activity_log"

    id: str = SQLField(default_factory=lambda: str(uuid4()), primary_key=True)
    user_id: str | None = SQLField(default=None, index=True)
    action: str  # "task.created", "task.completed", "history.deleted", etc.
    subject_type: SubjectType | None = SQLField(default=None, sa_column=Column(String))
    subject_id: str | None = None
    details: dict = SQLField(default_factory=dict, sa_column=Column(JSON))
    timestamp: datetime = SQLField(default_factory=lambda: datetime.now(timezone.utc))
