"""Task Reset Service — start a new cycle for recurring tasks.

A task with reset_cycle daily/weekly/monthly/yearly is reset once its cycle
has elapsed since last_reset_at (or immediately if it was never reset).
"one-time" tasks and tasks without a cycle are never reset.

Resets go through TaskProgressEngine.reset_cycle, which appends a
compensating history entry instead of zeroing fields directly.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta

from app.engines.task_progress import TaskProgressEngine
from app.models.task import Task, as_utc, utcnow
from app.services.activity_log import ActivityLogger
from app.store.task_store import TaskStore

logger = logging.getLogger(__name__)

CYCLE_DAYS: dict[str, int] = {
    "daily": 1,
    "weekly": 7,
    "monthly": 30,
    "yearly": 365,
}


class TaskResetService:
    """Resets recurring tasks whose cycle has elapsed."""

    def __init__(
        self,
        store: TaskStore | None = None,
        engine: TaskProgressEngine | None = None,
        activity: ActivityLogger | None = None,
    ) -> None:
        self.store = store or TaskStore()
        self.engine = engine or TaskProgressEngine()
        self.activity = activity or ActivityLogger(engine=self.store.engine)

    @staticmethod
    def should_reset(task: Task, now: datetime | None = None) -> bool:
        """Check if a task's reset cycle has elapsed."""
        days = CYCLE_DAYS.get(task.reset_cycle or "")
        if days is None:
            return False
        if task.last_reset_at is None:
            return True
        now = as_utc(now or utcnow())
        return as_utc(task.last_reset_at) < now - timedelta(days=days)

    def reset_eligible_tasks(self, now: datetime | None = None) -> int:
        """Reset every eligible task. Returns the number of tasks reset."""
        now = as_utc(now or utcnow())
        reset: list[Task] = []

        with self.store.transaction() as session:
            for task in self.store.list_recurring_tasks(session, list(CYCLE_DAYS)):
                if not self.should_reset(task, now):
                    continue
                record = self.store.load_task_with_history(session, task.id, for_update=True)
                if record is None:
                    continue
                self.engine.reset_cycle(record, now=now)
                self.store.save_task_with_history(session, record)
                reset.append(record.task)

        for task in reset:
            self.activity.log_crud("task.reset", task.user_id, task, cycle=task.reset_cycle)
        if reset:
            logger.info("Reset %d recurring task(s)", len(reset))
        return len(reset)
