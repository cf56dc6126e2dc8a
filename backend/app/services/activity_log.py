"""Activity Logger — fire-and-forget audit events for task mutations.

Called by the task service after a mutation has committed. Writes happen in
their own session so an audit failure can never roll back the mutation; such
failures are logged and dropped.
"""

from __future__ import annotations

import logging

from sqlalchemy.engine import Engine
from sqlmodel import Session, col, select

from app.config import settings
from app.db.database import engine as db_engine
from app.models.activity import ActivityLog
from app.models.task import Task, TaskHistory

logger = logging.getLogger(__name__)


class ActivityLogger:
    """Records high-level audit events (task.created, history.deleted, ...)."""

    def __init__(self, engine: Engine | None = None, enabled: bool | None = None) -> None:
        self.engine = engine or db_engine
        self.enabled = settings.activity_log_enabled if enabled is None else enabled

    def log(
        self,
        action: str,
        user_id: str | None,
        subject: Task | TaskHistory | None = None,
        details: dict | None = None,
    ) -> ActivityLog | None:
        """Persist one event. Returns the stored entry, or None if skipped/failed."""
        if not self.enabled:
            return None

        entry = ActivityLog(user_id=user_id, action=action, details=details or {})
        if isinstance(subject, Task):
            entry.subject_type = "task"
            entry.subject_id = subject.id
        elif isinstance(subject, TaskHistory):
            entry.subject_type = "task_history"
            entry.subject_id = subject.id

        try:
            with Session(self.engine, expire_on_commit=False) as session:
                session.add(entry)
                session.commit()
        except Exception as e:
            logger.warning("Activity log write failed for %s (non-fatal): %s", action, e)
            return None
        return entry

    def log_crud(self, action: str, user_id: str | None, subject: Task | TaskHistory, **details) -> ActivityLog | None:
        """Log a mutation of a task or history entry."""
        return self.log(action, user_id, subject=subject, details=details)

    def recent(self, user_id: str, limit: int = 50) -> list[ActivityLog]:
        """A user's most recent events, newest first."""
        with Session(self.engine, expire_on_commit=False) as session:
            stmt = (
                select(ActivityLog)
                .where(ActivityLog.user_id == user_id)
                .order_by(col(ActivityLog.timestamp).desc())
                .limit(limit)
            )
            return list(session.exec(stmt).all())
