"""Shared test fixtures for SyariahOS backend tests."""

import os
import sys
from uuid import uuid4

import pytest

# Ensure backend is on the path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))
os.environ.setdefault("DATABASE_URL", "sqlite:///test.db")
os.environ.setdefault("RESET_ENABLED", "false")

from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel, create_engine

from app.api.v1.activity import router as activity_router
from app.api.v1.dashboard import router as dashboard_router
from app.api.v1.tasks import router as tasks_router
from app.db.database import create_db_and_tables, engine
from app.engines.task_progress import reconcile
from app.middleware.auth import UserTokenAuthMiddleware
from app.models.task import Task, TaskHistory, TaskRecord
from app.models.user import User, hash_token, new_token
from app.store.task_store import TaskStore


def _insert_user(db_engine) -> tuple[User, str]:
    user = User(
        name="Test User",
        email=f"{uuid4().hex[:12]}@example.com",
        token_hash="",
    )
    token = new_token()
    user.token_hash = hash_token(token)
    with Session(db_engine, expire_on_commit=False) as session:
        session.add(user)
        session.commit()
    return user, token


@pytest.fixture
def client():
    """Test app with the task, dashboard and activity routers behind token auth."""
    create_db_and_tables()
    test_app = FastAPI()
    test_app.add_middleware(UserTokenAuthMiddleware)
    test_app.include_router(tasks_router)
    test_app.include_router(dashboard_router)
    test_app.include_router(activity_router)
    return TestClient(test_app)


@pytest.fixture
def make_user():
    """Factory: create a user in the shared test DB, return (user_id, auth headers)."""
    create_db_and_tables()

    def _make() -> tuple[str, dict]:
        user, token = _insert_user(engine)
        return user.id, {"Authorization": f"Bearer {token}"}

    return _make


@pytest.fixture
def seed_task():
    """Factory: insert a task (and optional history values) directly through the store."""
    store = TaskStore()

    def _seed(user_id: str, history: list[float] | None = None, **fields) -> TaskRecord:
        fields.setdefault("text", "Tilawah 1 juz")
        fields.setdefault("category", "Ibadah")
        with store.transaction() as session:
            record = store.create_task(session, Task(user_id=user_id, **fields))
            record.history = [TaskHistory(task_id=record.task.id, value=v) for v in (history or [])]
            reconcile(record.task, record.history)
            store.save_task_with_history(session, record)
        return record

    return _seed


@pytest.fixture
def isolated_store(tmp_path):
    """TaskStore on a private SQLite file, plus one owning user id."""
    db_engine = create_engine(
        f"sqlite:///{tmp_path / 'isolated.db'}",
        connect_args={"check_same_thread": False},
    )
    SQLModel.metadata.create_all(db_engine)
    user, _ = _insert_user(db_engine)
    return TaskStore(engine=db_engine), user.id
