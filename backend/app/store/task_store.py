"""Task Store — SQLModel persistence for tasks and their history.

Every mutation runs as one unit:

    with store.transaction() as session:
        record = gate.assert_owns_task(session, user_id, task_id, for_update=True)
        engine.toggle(record)
        store.save_task_with_history(session, record)

for_update selects the task row FOR UPDATE, which serializes concurrent
mutations of the same task on PostgreSQL. SQLite ignores the clause; its
single-writer lock plus busy_timeout gives the same ordering.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.engine import Engine
from sqlmodel import Session, col, select

from app.db.database import engine as db_engine
from app.engines.task_progress import NotFoundError
from app.models.task import Task, TaskHistory, TaskRecord, utcnow

logger = logging.getLogger(__name__)


class TaskStore:
    """Durable storage for tasks and their history entries."""

    def __init__(self, engine: Engine | None = None) -> None:
        self.engine = engine or db_engine

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """Yield a session; commit on success, roll back on any exception."""
        with Session(self.engine, expire_on_commit=False) as session:
            try:
                yield session
                session.commit()
            except Exception:
                session.rollback()
                raise

    # === Reads ===

    def load_task_with_history(
        self,
        session: Session,
        task_id: str,
        for_update: bool = False,
    ) -> TaskRecord | None:
        """Load a task and its history (newest first), or None."""
        task = session.get(Task, task_id, with_for_update=for_update)
        if task is None:
            return None
        history = session.exec(
            select(TaskHistory)
            .where(TaskHistory.task_id == task_id)
            .order_by(col(TaskHistory.timestamp).desc(), col(TaskHistory.created_at).desc())
        ).all()
        return TaskRecord(task=task, history=list(history))

    def list_tasks(
        self,
        session: Session,
        user_id: str,
        category: str | None = None,
        search: str | None = None,
        cycle: str | None = None,
    ) -> list[Task]:
        """List a user's tasks newest first, with optional filters."""
        stmt = select(Task).where(Task.user_id == user_id)
        if category:
            stmt = stmt.where(Task.category == category)
        if search:
            stmt = stmt.where(col(Task.text).contains(search))
        if cycle:
            stmt = stmt.where(Task.reset_cycle == cycle)
        stmt = stmt.order_by(col(Task.created_at).desc())
        return list(session.exec(stmt).all())

    def list_records(self, session: Session, user_id: str) -> list[TaskRecord]:
        """All of a user's tasks with their history."""
        tasks = self.list_tasks(session, user_id)
        if not tasks:
            return []
        by_task: dict[str, list[TaskHistory]] = {t.id: [] for t in tasks}
        rows = session.exec(
            select(TaskHistory)
            .where(col(TaskHistory.task_id).in_(list(by_task)))
            .order_by(col(TaskHistory.timestamp).desc())
        ).all()
        for row in rows:
            by_task[row.task_id].append(row)
        return [TaskRecord(task=t, history=by_task[t.id]) for t in tasks]

    def list_recurring_tasks(self, session: Session, cycles: list[str]) -> list[Task]:
        """Tasks of every user whose reset_cycle is one of the given cycles."""
        stmt = select(Task).where(col(Task.reset_cycle).in_(cycles))
        return list(session.exec(stmt).all())

    # === Writes ===

    def create_task(self, session: Session, task: Task) -> TaskRecord:
        """Insert a new task with empty history."""
        session.add(task)
        session.flush()
        logger.info("Created task %s for user %s", task.id, task.user_id)
        return TaskRecord(task=task, history=[])

    def save_task_with_history(self, session: Session, record: TaskRecord) -> TaskRecord:
        """Upsert the task and its history rows; drop rows no longer in the record."""
        task = record.task
        task.updated_at = utcnow()
        session.add(task)

        keep_ids = {entry.id for entry in record.history}
        for row in self._history_rows(session, task.id):
            if row.id not in keep_ids:
                session.delete(row)

        for entry in record.history:
            session.add(entry)
        session.flush()
        return record

    def delete_task(self, session: Session, record: TaskRecord) -> None:
        """Delete a task and, with it, its history."""
        for row in self._history_rows(session, record.task.id):
            session.delete(row)
        session.flush()  # history rows first: task_history.task_id references task.id
        session.delete(record.task)
        session.flush()
        logger.info("Deleted task %s", record.task.id)

    @staticmethod
    def _history_rows(session: Session, task_id: str) -> list[TaskHistory]:
        return list(session.exec(select(TaskHistory).where(TaskHistory.task_id == task_id)).all())


class AuthorizationGate:
    """Resolves a task for the acting user before any engine operation.

    A task that exists but belongs to someone else is reported exactly like a
    missing one, so task ids of other users cannot be probed.
    """

    def __init__(self, store: TaskStore) -> None:
        self.store = store

    def assert_owns_task(
        self,
        session: Session,
        user_id: str,
        task_id: str,
        for_update: bool = False,
    ) -> TaskRecord:
        """Return the user's task with history.

        Raises:
            NotFoundError: If the task is missing or owned by another user.
        """
        record = self.store.load_task_with_history(session, task_id, for_update=for_update)
        if record is None or record.task.user_id != user_id:
            raise NotFoundError(f"Task not found: {task_id}")
        return record
