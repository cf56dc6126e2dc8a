"""Dashboard Service — KPI, goal progress and weekly activity for one user.

Read-only aggregation over the user's tasks and history.
"""

from __future__ import annotations

from collections import OrderedDict
from datetime import datetime, timedelta

from app.engines.task_progress import progress_percent
from app.models.task import TaskRecord, as_utc, utcnow
from app.store.task_store import TaskStore

UNCATEGORIZED = "Uncategorized"

# Tasks in this category feed the Kepatuhan Syariah (sharia compliance) score.
KEPATUHAN_CATEGORY = "Kepatuhan"


def _rate(part: float, whole: float) -> int:
    return progress_percent(part, whole) if whole > 0 else 0


def kpi_data(records: list[TaskRecord]) -> dict:
    """Completion counts overall and per category, plus the Kepatuhan Syariah score."""
    total = len(records)
    completed = sum(1 for r in records if r.task.completed)

    by_category: OrderedDict[str, list[TaskRecord]] = OrderedDict()
    for r in records:
        by_category.setdefault(r.task.category or UNCATEGORIZED, []).append(r)

    tasks_by_category = []
    for category, items in by_category.items():
        done = sum(1 for r in items if r.task.completed)
        tasks_by_category.append({
            "category": category,
            "total": len(items),
            "completed": done,
            "rate": _rate(done, len(items)),
        })

    kepatuhan = by_category.get(KEPATUHAN_CATEGORY, [])
    kepatuhan_done = sum(1 for r in kepatuhan if r.task.completed)

    return {
        "total_tasks": total,
        "completed_tasks": completed,
        "completion_percentage": _rate(completed, total),
        "tasks_by_category": tasks_by_category,
        "kepatuhan_syariah_score": _rate(kepatuhan_done, len(kepatuhan)),
    }


def goal_progress(records: list[TaskRecord]) -> dict:
    """Summed current/target values of limited tasks, per category and overall."""
    limited = [r.task for r in records if r.task.has_limit and (r.task.target_value or 0) > 0]

    by_category: OrderedDict[str, list] = OrderedDict()
    for task in limited:
        by_category.setdefault(task.category or UNCATEGORIZED, []).append(task)

    goals = []
    for category, tasks in by_category.items():
        current = sum(t.current_value for t in tasks)
        target = sum(t.target_value for t in tasks)
        goals.append({
            "category": category,
            "current_value": current,
            "target_value": target,
            "progress": progress_percent(current, target),
        })

    overall_current = sum(t.current_value for t in limited)
    overall_target = sum(t.target_value for t in limited)
    return {
        "goals": goals,
        "overall_progress": progress_percent(overall_current, overall_target),
    }


def chart_trend(records: list[TaskRecord], weeks: int = 8, now: datetime | None = None) -> dict:
    """Number of history entries recorded in each of the last `weeks` weeks (Monday start)."""
    now = as_utc(now or utcnow())
    this_monday = (now - timedelta(days=now.weekday())).replace(hour=0, minute=0, second=0, microsecond=0)
    starts = [this_monday - timedelta(weeks=i) for i in range(weeks - 1, -1, -1)]

    timestamps = [as_utc(e.timestamp) for r in records for e in r.history]
    labels, values = [], []
    for start in starts:
        end = start + timedelta(days=7)
        labels.append(f"{start:%b %d} - {end - timedelta(days=1):%b %d}")
        values.append(sum(1 for ts in timestamps if start <= ts < end))
    return {"labels": labels, "values": values}


class DashboardService:
    """Builds the dashboard payload for a user."""

    def __init__(self, store: TaskStore | None = None) -> None:
        self.store = store or TaskStore()

    def get_dashboard_data(self, user_id: str, now: datetime | None = None) -> dict:
        with self.store.transaction() as session:
            records = self.store.list_records(session, user_id)
        goals = goal_progress(records)
        return {
            "kpi": kpi_data(records),
            "goals": goals["goals"],
            "overall_progress": goals["overall_progress"],
            "chart_trend": chart_trend(records, now=now),
        }
