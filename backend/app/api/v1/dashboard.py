"""Dashboard API endpoint.

GET /api/v1/dashboard — KPI, goal progress and weekly history activity
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from app.middleware.auth import get_current_user_id
from app.services.dashboard import DashboardService

router = APIRouter(prefix="/api/v1", tags=["dashboard"])

_service = DashboardService()


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CategoryStats(_CamelModel):
    category: str
    total: int
    completed: int
    rate: int


class KpiData(_CamelModel):
    total_tasks: int
    completed_tasks: int
    completion_percentage: int
    tasks_by_category: list[CategoryStats]
    kepatuhan_syariah_score: int


class GoalProgress(_CamelModel):
    category: str
    current_value: float
    target_value: float
    progress: int


class ChartTrend(_CamelModel):
    labels: list[str]
    values: list[int]


class DashboardResponse(_CamelModel):
    kpi: KpiData
    goals: list[GoalProgress]
    overall_progress: int
    chart_trend: ChartTrend


@router.get("/dashboard", response_model=DashboardResponse)
async def get_dashboard(user_id: str = Depends(get_current_user_id)) -> DashboardResponse:
    """Summary of the caller's tasks."""
    return DashboardResponse.model_validate(_service.get_dashboard_data(user_id))
