"""Tests for the dashboard aggregation and GET /api/v1/dashboard."""

import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..'))
os.environ.setdefault("DATABASE_URL", "sqlite:///test.db")

from datetime import datetime, timedelta, timezone

from app.engines.task_progress import reconcile
from app.models.task import Task, TaskHistory, TaskRecord
from app.services.dashboard import UNCATEGORIZED, DashboardService, chart_trend, goal_progress, kpi_data

# A Wednesday
NOW = datetime(2026, 4, 15, 12, 0, tzinfo=timezone.utc)


def _record(values=(), category=None, timestamps=None, **fields) -> TaskRecord:
    task = Task(text="t", user_id="u", category=category, **fields)
    timestamps = timestamps or [NOW] * len(values)
    history = [TaskHistory(task_id=task.id, value=v, timestamp=ts) for v, ts in zip(values, timestamps)]
    reconcile(task, history)
    return TaskRecord(task=task, history=history)


def test_kpi_data_counts_by_category():
    records = [
        _record([1], category="Ibadah"),
        _record([], category="Ibadah"),
        _record([1], category="Keuangan"),
        _record([]),
    ]
    kpi = kpi_data(records)
    assert kpi["total_tasks"] == 4
    assert kpi["completed_tasks"] == 2
    assert kpi["completion_percentage"] == 50

    by_category = {c["category"]: c for c in kpi["tasks_by_category"]}
    assert by_category["Ibadah"] == {"category": "Ibadah", "total": 2, "completed": 1, "rate": 50}
    assert by_category["Keuangan"]["rate"] == 100
    assert by_category[UNCATEGORIZED]["completed"] == 0
    print("  PASS: kpi_data")


def test_kpi_data_empty():
    kpi = kpi_data([])
    assert kpi == {
        "total_tasks": 0,
        "completed_tasks": 0,
        "completion_percentage": 0,
        "tasks_by_category": [],
        "kepatuhan_syariah_score": 0,
    }


def test_kepatuhan_syariah_score():
    records = [
        _record([1], category="Kepatuhan"),
        _record([1], category="Kepatuhan"),
        _record([], category="Kepatuhan"),
        _record([], category="Ibadah"),
    ]
    assert kpi_data(records)["kepatuhan_syariah_score"] == 67
    # No Kepatuhan tasks at all
    assert kpi_data([_record([1], category="Ibadah")])["kepatuhan_syariah_score"] == 0


def test_goal_progress_sums_limited_tasks_only():
    records = [
        _record([30], category="Tilawah", has_limit=True, target_value=60),
        _record([60], category="Tilawah", has_limit=True, target_value=60),
        _record([250], category="Infaq", has_limit=True, target_value=100),
        _record([1], category="Tilawah"),  # binary, not a goal
    ]
    result = goal_progress(records)
    goals = {g["category"]: g for g in result["goals"]}
    assert goals["Tilawah"]["current_value"] == 90
    assert goals["Tilawah"]["target_value"] == 120
    assert goals["Tilawah"]["progress"] == 75
    # Overshoot is kept in the sum, progress capped
    assert goals["Infaq"]["current_value"] == 250
    assert goals["Infaq"]["progress"] == 100
    # (90 + 250) / (120 + 100) capped
    assert result["overall_progress"] == 100


def test_goal_progress_without_goals():
    assert goal_progress([_record([1])]) == {"goals": [], "overall_progress": 0}


def test_chart_trend_weekly_buckets():
    this_week = NOW - timedelta(days=1)
    last_week = NOW - timedelta(days=7)
    long_ago = NOW - timedelta(weeks=20)
    records = [
        _record([1, 1, 1], timestamps=[this_week, NOW, last_week]),
        _record([5], timestamps=[long_ago]),
    ]
    trend = chart_trend(records, weeks=8, now=NOW)
    assert len(trend["labels"]) == 8
    assert len(trend["values"]) == 8
    assert trend["values"][-1] == 2
    assert trend["values"][-2] == 1
    assert sum(trend["values"]) == 3
    # Current week starts on Monday 13 April
    assert trend["labels"][-1] == "Apr 13 - Apr 19"


def test_dashboard_endpoint(client, make_user, seed_task):
    user_id, headers = make_user()
    seed_task(user_id, history=[1], category="Ibadah")
    seed_task(user_id, history=[20], category="Tilawah", has_limit=True, target_value=40)

    response = client.get("/api/v1/dashboard", headers=headers)
    assert response.status_code == 200
    data = response.json()
    assert data["kpi"]["totalTasks"] == 2
    assert data["kpi"]["completedTasks"] == 1
    assert data["kpi"]["completionPercentage"] == 50
    assert data["kpi"]["kepatuhanSyariahScore"] == 0
    assert {c["category"] for c in data["kpi"]["tasksByCategory"]} == {"Ibadah", "Tilawah"}
    assert data["goals"] == [{"category": "Tilawah", "currentValue": 20, "targetValue": 40, "progress": 50}]
    assert data["overallProgress"] == 50
    assert sum(data["chartTrend"]["values"]) == 2
    print("  PASS: dashboard_endpoint")


def test_dashboard_scoped_to_user(client, make_user, seed_task):
    alice_id, _ = make_user()
    _, bob = make_user()
    seed_task(alice_id, history=[1])

    data = client.get("/api/v1/dashboard", headers=bob).json()
    assert data["kpi"]["totalTasks"] == 0
    assert data["goals"] == []


def test_dashboard_service_direct(isolated_store):
    store, user_id = isolated_store
    with store.transaction() as session:
        store.create_task(session, Task(user_id=user_id, text="Sedekah subuh"))

    data = DashboardService(store).get_dashboard_data(user_id, now=NOW)
    assert data["kpi"]["total_tasks"] == 1
    assert data["overall_progress"] == 0
    assert data["chart_trend"]["values"] == [0] * 8


def test_dashboard_endpoint_kepatuhan_score(client, make_user, seed_task):
    user_id, headers = make_user()
    seed_task(user_id, history=[1], category="Kepatuhan", text="Bayar zakat fitrah")
    seed_task(user_id, category="Kepatuhan", text="Hindari riba")

    data = client.get("/api/v1/dashboard", headers=headers).json()
    assert data["kpi"]["kepatuhanSyariahScore"] == 50
