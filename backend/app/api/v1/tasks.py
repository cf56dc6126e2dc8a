"""Task API endpoints — CRUD plus progress operations.

GET    /api/v1/tasks                              — list own tasks (?category=&search=&cycle=)
POST   /api/v1/tasks                              — create task
GET    /api/v1/tasks/{task_id}                    — task with history
PUT    /api/v1/tasks/{task_id}                    — partial update
DELETE /api/v1/tasks/{task_id}                    — delete task and history
PATCH  /api/v1/tasks/{task_id}/toggle             — check / un-check
POST   /api/v1/tasks/{task_id}/progress           — add a custom progress amount
PUT    /api/v1/tasks/{task_id}/history/{entry_id} — edit a history entry
DELETE /api/v1/tasks/{task_id}/history/{entry_id} — delete a history entry

Field names on the wire are camelCase (currentValue, hasLimit, ...).
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from app.config import settings
from app.engines.task_progress import (
    UNSET,
    InvalidOperationError,
    NotFoundError,
    ValidationError,
)
from app.middleware.auth import get_current_user_id
from app.models.task import ResetCycle, Task, TaskHistory, TaskRecord
from app.services.task_service import TaskService

router = APIRouter(prefix="/api/v1", tags=["tasks"])

_service: TaskService | None = None


def set_service(service: TaskService) -> None:
    """Replace the task service (tests, alternative stores)."""
    global _service
    _service = service


def get_service() -> TaskService:
    global _service
    if _service is None:
        _service = TaskService()
    return _service


@contextmanager
def _engine_errors() -> Iterator[None]:
    """Translate progress engine errors into HTTP errors."""
    try:
        yield
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    except InvalidOperationError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e


# === Request / Response Models ===


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CreateTaskRequest(_CamelModel):
    """Request to create a task."""

    text: str = Field(min_length=1, max_length=settings.task_text_max_length)
    category: str | None = Field(default=None, max_length=100)
    reset_cycle: ResetCycle | None = None
    has_limit: bool = False
    target_value: float | None = Field(default=None, ge=0, allow_inf_nan=False)
    unit: str | None = Field(default=None, max_length=50)
    increment_value: float = Field(default=1.0, gt=0, allow_inf_nan=False)
    per_check_enabled: bool = False

    @model_validator(mode="after")
    def _target_required_with_limit(self):
        if self.has_limit and not self.target_value:
            raise ValueError("Target value is required when has limit is enabled.")
        return self


class UpdateTaskRequest(_CamelModel):
    """Request to update a task. All fields optional."""

    text: str | None = Field(default=None, min_length=1, max_length=settings.task_text_max_length)
    category: str | None = Field(default=None, max_length=100)
    reset_cycle: ResetCycle | None = None
    has_limit: bool | None = None
    target_value: float | None = Field(default=None, ge=0, allow_inf_nan=False)
    unit: str | None = Field(default=None, max_length=50)
    increment_value: float | None = Field(default=None, gt=0, allow_inf_nan=False)
    per_check_enabled: bool | None = None

    def changes(self) -> dict:
        """Fields explicitly sent, minus nulls for columns that cannot be null."""
        data = self.model_dump(exclude_unset=True)
        for key in ("text", "has_limit", "increment_value", "per_check_enabled"):
            if data.get(key, 0) is None:
                data.pop(key)
        return data


class AddProgressRequest(_CamelModel):
    """Custom progress amount; must be positive."""

    value: float = Field(allow_inf_nan=False)
    note: str | None = Field(default=None, max_length=settings.history_note_max_length)


class UpdateHistoryRequest(_CamelModel):
    """Edit a history entry. Omitted fields are left unchanged."""

    value: float | None = Field(default=None, allow_inf_nan=False)
    note: str | None = Field(default=None, max_length=settings.history_note_max_length)


class TaskHistoryResponse(_CamelModel):
    id: str
    task_id: str
    value: float
    note: str | None = None
    timestamp: datetime
    created_at: datetime
    updated_at: datetime


class TaskResponse(_CamelModel):
    id: str
    text: str
    completed: bool
    category: str | None = None
    progress: int
    has_limit: bool
    current_value: float
    target_value: float | None = None
    unit: str | None = None
    reset_cycle: str | None = None
    per_check_enabled: bool
    increment_value: float
    last_reset_at: datetime | None = None
    created_at: datetime
    updated_at: datetime
    history: list[TaskHistoryResponse] | None = None


def _history_response(entry: TaskHistory) -> TaskHistoryResponse:
    return TaskHistoryResponse(
        id=entry.id,
        task_id=entry.task_id,
        value=entry.value,
        note=entry.note,
        timestamp=entry.timestamp,
        created_at=entry.created_at,
        updated_at=entry.updated_at,
    )


def _to_response(task: Task, history: list[TaskHistory] | None = None) -> TaskResponse:
    return TaskResponse(
        id=task.id,
        text=task.text,
        completed=task.completed,
        category=task.category,
        progress=task.progress,
        has_limit=task.has_limit,
        current_value=task.current_value,
        target_value=task.target_value,
        unit=task.unit,
        reset_cycle=task.reset_cycle,
        per_check_enabled=task.per_check_enabled,
        increment_value=task.increment_value,
        last_reset_at=task.last_reset_at,
        created_at=task.created_at,
        updated_at=task.updated_at,
        history=[_history_response(e) for e in history] if history is not None else None,
    )


def _record_response(record: TaskRecord) -> TaskResponse:
    return _to_response(record.task, record.history)


# === Endpoints ===


@router.get("/tasks", response_model=list[TaskResponse])
async def list_tasks(
    category: str | None = Query(default=None),
    search: str | None = Query(default=None, max_length=255),
    cycle: ResetCycle | None = Query(default=None),
    user_id: str = Depends(get_current_user_id),
) -> list[TaskResponse]:
    """List the caller's tasks, newest first."""
    tasks = get_service().list_tasks(user_id, category=category, search=search, cycle=cycle)
    return [_to_response(t) for t in tasks]


@router.post("/tasks", response_model=TaskResponse, status_code=201)
async def create_task(
    request: CreateTaskRequest,
    user_id: str = Depends(get_current_user_id),
) -> TaskResponse:
    """Create a task with empty history."""
    with _engine_errors():
        record = get_service().create_task(user_id, request.model_dump())
    return _record_response(record)


@router.get("/tasks/{task_id}", response_model=TaskResponse)
async def get_task(task_id: str, user_id: str = Depends(get_current_user_id)) -> TaskResponse:
    """Get one of the caller's tasks with its history (newest first)."""
    with _engine_errors():
        record = get_service().get_task(user_id, task_id)
    return _record_response(record)


@router.put("/tasks/{task_id}", response_model=TaskResponse)
async def update_task(
    task_id: str,
    request: UpdateTaskRequest,
    user_id: str = Depends(get_current_user_id),
) -> TaskResponse:
    """Update task fields; progress is recomputed against the new target."""
    with _engine_errors():
        record = get_service().update_task(user_id, task_id, request.changes())
    return _record_response(record)


@router.delete("/tasks/{task_id}", status_code=204)
async def delete_task(task_id: str, user_id: str = Depends(get_current_user_id)) -> None:
    """Delete a task and its history."""
    with _engine_errors():
        get_service().delete_task(user_id, task_id)


@router.patch("/tasks/{task_id}/toggle", response_model=TaskResponse)
async def toggle_task(task_id: str, user_id: str = Depends(get_current_user_id)) -> TaskResponse:
    """Check or un-check a task (adds one history entry)."""
    with _engine_errors():
        record = get_service().toggle(user_id, task_id)
    return _record_response(record)


@router.post("/tasks/{task_id}/progress", response_model=TaskResponse)
async def add_progress(
    task_id: str,
    request: AddProgressRequest,
    user_id: str = Depends(get_current_user_id),
) -> TaskResponse:
    """Record a custom progress amount on a task with a target."""
    with _engine_errors():
        record = get_service().add_progress(user_id, task_id, request.value, note=request.note)
    return _record_response(record)


@router.put("/tasks/{task_id}/history/{entry_id}", response_model=TaskHistoryResponse)
async def update_history(
    task_id: str,
    entry_id: str,
    request: UpdateHistoryRequest,
    user_id: str = Depends(get_current_user_id),
) -> TaskHistoryResponse:
    """Edit a history entry's value and/or note, then recompute the task."""
    sent = request.model_fields_set
    with _engine_errors():
        _, entry = get_service().update_history(
            user_id,
            task_id,
            entry_id,
            value=request.value if "value" in sent else UNSET,
            note=request.note if "note" in sent else UNSET,
        )
    return _history_response(entry)


@router.delete("/tasks/{task_id}/history/{entry_id}", status_code=204)
async def delete_history(
    task_id: str,
    entry_id: str,
    user_id: str = Depends(get_current_user_id),
) -> None:
    """Delete a history entry, then recompute the task."""
    with _engine_errors():
        get_service().delete_history(user_id, task_id, entry_id)
