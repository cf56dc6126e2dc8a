"""Task Progress Engine — history-driven reconciliation of task progress.

A task's derived state is a pure function of its history:

    total         = sum(history[].value)
    current_value = max(total, 0)

    limited task (has_limit, target_value > 0):
        progress  = min(100, round_half_up(100 * current_value / target_value))
        completed = current_value >= target_value

    binary task:
        completed = current_value > 0
        progress  = 100 if completed else 0

current_value is deliberately not clamped to target_value: an increment that
overshoots the target is kept in full, only progress is capped.

Every operation below appends, edits or removes exactly one history entry and
then calls reconcile(). The engine does no I/O; TaskStore persists the record
and the caller writes the activity log.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime

from app.models.task import Task, TaskHistory, TaskRecord, utcnow

logger = logging.getLogger(__name__)

# Float sums of user-entered deltas are rounded to this many places so that
# e.g. 0.1 + 0.2 compares equal to a 0.3 target.
_SUM_PRECISION = 6

RESET_NOTE = "cycle reset"
TARGET_REMOVED_NOTE = "target removed"


class TaskEngineError(Exception):
    """Base class for progress engine failures surfaced to the caller."""


class ValidationError(TaskEngineError):
    """Bad input value, e.g. a negative progress delta."""


class NotFoundError(TaskEngineError):
    """Task or history entry does not exist (or is not owned by the caller)."""


class InvalidOperationError(TaskEngineError):
    """Operation does not apply to the task's mode."""


class _Unset:
    def __repr__(self) -> str:
        return "UNSET"


UNSET = _Unset()


@dataclass
class ProgressChange:
    """Outcome of one engine operation, used for persistence and audit."""

    action: str
    entry: TaskHistory | None = None
    removed: bool = False


def is_limited(task: Task) -> bool:
    """True when the task is tracked against a positive numeric target."""
    return bool(task.has_limit) and (task.target_value or 0) > 0


def progress_percent(current_value: float, target_value: float | None) -> int:
    """Integer percentage of target reached, rounded half up and capped at 100."""
    if not target_value or target_value <= 0:
        return 0
    raw = 100 * max(current_value, 0.0) / target_value
    if raw >= 100 or not math.isfinite(raw):
        return 100
    return int(math.floor(raw + 0.5))


def reconcile(task: Task, history: list[TaskHistory]) -> tuple[float, int, bool]:
    """Recompute (current_value, progress, completed) from the full history.

    Assigns the result to the task and returns it.
    """
    total = round(sum(entry.value for entry in history), _SUM_PRECISION)
    current_value = max(total, 0.0)

    if is_limited(task):
        progress = progress_percent(current_value, task.target_value)
        completed = current_value >= task.target_value
    else:
        completed = current_value > 0
        progress = 100 if completed else 0

    task.current_value = current_value
    task.progress = progress
    task.completed = completed
    return current_value, progress, completed


def validate_task_config(task: Task) -> None:
    """Check the configuration fields that reconciliation depends on.

    Raises:
        ValidationError: If a limited task has no positive target, or the
            increment is not positive, or either is not a finite number.
    """
    if task.has_limit and (task.target_value is None or task.target_value <= 0):
        raise ValidationError("targetValue must be a positive number when hasLimit is enabled")
    if task.target_value is not None and task.target_value < 0:
        raise ValidationError("targetValue must not be negative")
    if task.increment_value is None or not task.increment_value > 0:
        raise ValidationError("incrementValue must be a positive number")
    for name, number in (("targetValue", task.target_value), ("incrementValue", task.increment_value)):
        if number is not None and not math.isfinite(number):
            raise ValidationError(f"{name} must be a finite number")


class TaskProgressEngine:
    """Applies progress operations to a TaskRecord.

    Stateless: all state lives in the record. Each method mutates the record
    in place (task fields and history list) and returns a ProgressChange.

    Usage:
        engine = TaskProgressEngine()
        change = engine.toggle(record)
        change = engine.add_progress(record, 5, note="morning run")
        change = engine.edit_history_entry(record, entry_id, value=3)
        change = engine.delete_history_entry(record, entry_id)
    """

    def toggle(self, record: TaskRecord, now: datetime | None = None) -> ProgressChange:
        """Check or un-check a task.

        - binary task: completes with a +1 entry, un-completes with a
          compensating -current_value entry.
        - limited task with per-check: each check adds increment_value until
          the target is reached; checking a completed task un-checks it.
        - limited task without per-check: completes by topping current_value
          up to target_value, un-completes with -current_value.
        """
        task = record.task
        current_value, _, was_completed = reconcile(task, record.history)

        if was_completed:
            delta = -current_value
        elif is_limited(task) and task.per_check_enabled:
            delta = task.increment_value
        elif is_limited(task):
            delta = task.target_value - current_value
        else:
            delta = 1.0

        entry = self._append(record, delta, note=None, now=now)
        reconcile(task, record.history)

        if task.completed:
            action = "task.completed"
        elif was_completed:
            action = "task.uncompleted"
        else:
            action = "task.progressed"
        logger.debug("Toggled task %s: delta=%s -> %s", task.id, delta, action)
        return ProgressChange(action=action, entry=entry)

    def add_progress(
        self,
        record: TaskRecord,
        value: float,
        note: str | None = None,
        now: datetime | None = None,
    ) -> ProgressChange:
        """Record an explicit progress amount on a limited task.

        Raises:
            ValidationError: If value is not a positive number, or would push
                the history total past the float range.
            InvalidOperationError: If the task is a binary task.
        """
        if value is None or not value > 0 or math.isinf(value):
            raise ValidationError("value must be a positive number")
        if not record.task.has_limit:
            raise InvalidOperationError("This task does not support progress tracking")
        if not math.isfinite(record.total + value):
            raise ValidationError("value is too large")

        entry = self._append(record, value, note=note, now=now)
        reconcile(record.task, record.history)
        action = "task.completed" if record.task.completed else "task.progressed"
        return ProgressChange(action=action, entry=entry)

    def edit_history_entry(
        self,
        record: TaskRecord,
        entry_id: str,
        *,
        value: float | _Unset = UNSET,
        note: str | None | _Unset = UNSET,
        now: datetime | None = None,
    ) -> ProgressChange:
        """Replace an entry's value and/or note, then reconcile.

        Editing the value may complete or un-complete the task.

        Raises:
            NotFoundError: If the entry does not belong to this task.
            ValidationError: If the new value is negative.
        """
        entry = record.find_entry(entry_id)
        if entry is None:
            raise NotFoundError(f"History entry not found: {entry_id}")

        if value is not UNSET:
            if value is None or not value >= 0 or math.isinf(value):
                raise ValidationError("value must be at least 0")
            if not math.isfinite(record.total - entry.value + value):
                raise ValidationError("value is too large")
            entry.value = value
        if note is not UNSET:
            entry.note = note
        entry.updated_at = now or utcnow()

        reconcile(record.task, record.history)
        return ProgressChange(action="history.updated", entry=entry)

    def delete_history_entry(self, record: TaskRecord, entry_id: str) -> ProgressChange:
        """Remove an entry, then reconcile from what remains.

        With no entries left the task is back at 0 / 0% / not completed,
        whatever its completed flag was before.

        Raises:
            NotFoundError: If the entry does not belong to this task.
        """
        entry = record.find_entry(entry_id)
        if entry is None:
            raise NotFoundError(f"History entry not found: {entry_id}")

        record.history.remove(entry)
        reconcile(record.task, record.history)
        return ProgressChange(action="history.deleted", entry=entry, removed=True)

    def reset_cycle(self, record: TaskRecord, now: datetime | None = None) -> ProgressChange:
        """Start a new reset cycle: bring current_value back to 0.

        Appends a compensating entry (skipped when already at 0) so the
        history sum stays the source of truth.
        """
        now = now or utcnow()
        current_value, _, _ = reconcile(record.task, record.history)

        entry = None
        if current_value != 0:
            entry = self._append(record, -current_value, note=RESET_NOTE, now=now)
        record.task.last_reset_at = now
        reconcile(record.task, record.history)
        return ProgressChange(action="task.reset", entry=entry)

    def align_to_binary(
        self,
        record: TaskRecord,
        completed: bool,
        now: datetime | None = None,
    ) -> ProgressChange:
        """Bring the history total to 1 (completed) or 0 after a task drops its target.

        Keeps the completed flag the task had under its old target instead of
        re-reading a partial amount as a binary check.
        """
        total = round(record.total, _SUM_PRECISION)
        wanted = 1.0 if completed else 0.0

        entry = None
        if total != wanted:
            entry = self._append(record, wanted - total, note=TARGET_REMOVED_NOTE, now=now)
        reconcile(record.task, record.history)
        return ProgressChange(action="task.updated", entry=entry)

    @staticmethod
    def _append(
        record: TaskRecord,
        value: float,
        note: str | None,
        now: datetime | None,
    ) -> TaskHistory:
        now = now or utcnow()
        entry = TaskHistory(
            task_id=record.task.id,
            value=value,
            note=note,
            timestamp=now,
            created_at=now,
            updated_at=now,
        )
        record.history.insert(0, entry)
        return entry
