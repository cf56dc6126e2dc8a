"""Task and TaskHistory models.

Includes: Task (SQL), TaskHistory (SQL), TaskRecord (task + owned history).

A task's current_value / progress / completed are derived from the sum of its
history values; see app.engines.task_progress.reconcile.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Literal
from uuid import uuid4

from sqlmodel import Field as SQLField
from sqlmodel import SQLModel

ResetCycle = Literal["one-time", "daily", "weekly", "monthly", "yearly"]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes (SQLite drops tzinfo; everything is stored in UTC)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class Task(SQLModel, table=True):
    """A trackable unit of work owned by a user, optionally with a numeric target."""

    __tablename__ = "task"

    id: str = SQLField(default_factory=lambda: str(uuid4()), primary_key=True)
    user_id: str = SQLField(foreign_key="app_user.id", index=True, ondelete="CASCADE")
    text: str
    category: str | None = SQLField(default=None, index=True)
    reset_cycle: str | None = None  # ResetCycle
    has_limit: bool = False
    target_value: float | None = None
    unit: str | None = None
    increment_value: float = 1.0
    per_check_enabled: bool = False
    # Derived fields, recomputed from history on every mutation
    current_value: float = 0.0
    progress: int = 0
    completed: bool = False
    last_reset_at: datetime | None = None
    created_at: datetime = SQLField(default_factory=utcnow)
    updated_at: datetime = SQLField(default_factory=utcnow)


class TaskHistory(SQLModel, table=True):
    """One progress delta applied to a task."""

    __tablename__ = "task_history"

    id: str = SQLField(default_factory=lambda: str(uuid4()), primary_key=True)
    task_id: str = SQLField(foreign_key="task.id", index=True, ondelete="CASCADE")
    value: float
    note: str | None = None
    timestamp: datetime = SQLField(default_factory=utcnow)
    created_at: datetime = SQLField(default_factory=utcnow)
    updated_at: datetime = SQLField(default_factory=utcnow)


@dataclass
class TaskRecord:
    """A task together with the history entries it exclusively owns.

    History is kept newest-first. Only the progress engine appends to,
    edits or removes from it.
    """

    task: Task
    history: list[TaskHistory] = field(default_factory=list)

    def find_entry(self, entry_id: str) -> TaskHistory | None:
        for entry in self.history:
            if entry.id == entry_id:
                return entry
        return None

    @property
    def total(self) -> float:
        return sum(entry.value for entry in self.history)
