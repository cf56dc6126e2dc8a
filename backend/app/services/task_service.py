"""Task Service — one transaction per task operation.

Flow for every mutation:
    Authorization Gate (ownership, row lock) → Progress Engine → Task Store
    → commit → Activity Logger
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from app.engines.task_progress import (
    UNSET,
    ProgressChange,
    TaskProgressEngine,
    is_limited,
    reconcile,
    validate_task_config,
)
from app.models.task import Task, TaskHistory, TaskRecord
from app.services.activity_log import ActivityLogger
from app.store.task_store import AuthorizationGate, TaskStore

logger = logging.getLogger(__name__)

# Fields a user may set on create/update; the derived ones are engine-owned.
EDITABLE_FIELDS = frozenset({
    "text",
    "category",
    "reset_cycle",
    "has_limit",
    "target_value",
    "unit",
    "increment_value",
    "per_check_enabled",
})


class TaskService:
    """Entry point for task CRUD and progress operations, scoped to a user."""

    def __init__(
        self,
        store: TaskStore | None = None,
        engine: TaskProgressEngine | None = None,
        activity: ActivityLogger | None = None,
    ) -> None:
        self.store = store or TaskStore()
        self.gate = AuthorizationGate(self.store)
        self.engine = engine or TaskProgressEngine()
        self.activity = activity or ActivityLogger(engine=self.store.engine)

    # === Reads ===

    def list_tasks(
        self,
        user_id: str,
        category: str | None = None,
        search: str | None = None,
        cycle: str | None = None,
    ) -> list[Task]:
        with self.store.transaction() as session:
            return self.store.list_tasks(session, user_id, category=category, search=search, cycle=cycle)

    def get_task(self, user_id: str, task_id: str) -> TaskRecord:
        with self.store.transaction() as session:
            return self.gate.assert_owns_task(session, user_id, task_id)

    # === Task CRUD ===

    def create_task(self, user_id: str, fields: dict[str, Any]) -> TaskRecord:
        """Create a task with empty history and zero progress.

        Raises:
            ValidationError: If the target/increment configuration is invalid.
        """
        task = Task(user_id=user_id, **_editable(fields))
        if task.increment_value is None:
            task.increment_value = 1.0
        validate_task_config(task)
        reconcile(task, [])

        with self.store.transaction() as session:
            record = self.store.create_task(session, task)
        self.activity.log_crud("task.created", user_id, record.task)
        return record

    def update_task(self, user_id: str, task_id: str, changes: dict[str, Any]) -> TaskRecord:
        """Apply a partial update, then reconcile against the new configuration.

        Dropping the target of a limited task keeps its completed state: the
        history total is aligned to 1 or 0 for the binary rules.

        Raises:
            NotFoundError: If the user does not own the task.
            ValidationError: If the resulting configuration is invalid.
        """
        changes = _editable(changes)
        with self.store.transaction() as session:
            record = self.gate.assert_owns_task(session, user_id, task_id, for_update=True)
            was_limited = is_limited(record.task)
            _, _, was_completed = reconcile(record.task, record.history)
            for key, value in changes.items():
                setattr(record.task, key, value)
            validate_task_config(record.task)
            if was_limited and not is_limited(record.task):
                self.engine.align_to_binary(record, was_completed)
            else:
                reconcile(record.task, record.history)
            self.store.save_task_with_history(session, record)

        if changes:
            self.activity.log_crud("task.updated", user_id, record.task, fields=sorted(changes))
        return record

    def delete_task(self, user_id: str, task_id: str) -> None:
        """Delete a task together with its history."""
        with self.store.transaction() as session:
            record = self.gate.assert_owns_task(session, user_id, task_id, for_update=True)
            self.store.delete_task(session, record)
        self.activity.log_crud("task.deleted", user_id, record.task, text=record.task.text)

    # === Progress operations ===

    def toggle(self, user_id: str, task_id: str) -> TaskRecord:
        record, _ = self._mutate(user_id, task_id, self.engine.toggle)
        return record

    def add_progress(self, user_id: str, task_id: str, value: float, note: str | None = None) -> TaskRecord:
        record, _ = self._mutate(
            user_id, task_id, lambda r: self.engine.add_progress(r, value, note=note)
        )
        return record

    def update_history(
        self,
        user_id: str,
        task_id: str,
        entry_id: str,
        value: Any = UNSET,
        note: Any = UNSET,
    ) -> tuple[TaskRecord, TaskHistory]:
        """Edit a history entry; returns the reconciled task and the entry."""
        record, change = self._mutate(
            user_id,
            task_id,
            lambda r: self.engine.edit_history_entry(r, entry_id, value=value, note=note),
        )
        return record, change.entry

    def delete_history(self, user_id: str, task_id: str, entry_id: str) -> TaskRecord:
        record, _ = self._mutate(
            user_id, task_id, lambda r: self.engine.delete_history_entry(r, entry_id)
        )
        return record

    def _mutate(
        self,
        user_id: str,
        task_id: str,
        operation: Callable[[TaskRecord], ProgressChange],
    ) -> tuple[TaskRecord, ProgressChange]:
        with self.store.transaction() as session:
            record = self.gate.assert_owns_task(session, user_id, task_id, for_update=True)
            change = operation(record)
            self.store.save_task_with_history(session, record)

        task = record.task
        subject = task if change.action.startswith("task.") else change.entry
        self.activity.log_crud(
            change.action,
            user_id,
            subject,
            task_id=task.id,
            current_value=task.current_value,
            progress=task.progress,
            completed=task.completed,
        )
        return record, change


def _editable(fields: dict[str, Any]) -> dict[str, Any]:
    unknown = set(fields) - EDITABLE_FIELDS
    if unknown:
        logger.debug("Ignoring non-editable task fields: %s", sorted(unknown))
    return {k: v for k, v in fields.items() if k in EDITABLE_FIELDS}
