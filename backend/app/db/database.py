"""Database setup — SQLite with WAL mode via SQLModel/SQLAlchemy.

Design decisions:
- SQLModel: one class per table doubles as the Pydantic schema
- SQLite WAL mode: readers (dashboard, task list) never block the writer
- Alembic for migrations: autogenerate from SQLModel table definitions

What goes where:
- app_user: bearer-token identities
- task, task_history: task state and the progress deltas it is derived from
- activity_log: audit trail
"""

from __future__ import annotations

import os

from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

from app.config import settings


def get_database_url() -> str:
    """Get database URL, ensuring the data directory exists."""
    url = settings.database_url
    if url.startswith("sqlite:///"):
        db_path = url.replace("sqlite:///", "")
        db_dir = os.path.dirname(db_path)
        if db_dir:
            os.makedirs(db_dir, exist_ok=True)
    return url


@event.listens_for(Engine, "connect")
def set_sqlite_pragmas(dbapi_connection, connection_record):
    """Enable WAL mode and foreign keys for SQLite connections."""
    if type(dbapi_connection).__module__.split(".")[0] != "sqlite3":
        return
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA synchronous=NORMAL")  # Safe with WAL
    cursor.execute("PRAGMA busy_timeout=5000")    # 5s wait on lock
    cursor.execute("PRAGMA foreign_keys=ON")      # task_history cascades with task
    cursor.close()


_connect_args = {"check_same_thread": False} if settings.database_url.startswith("sqlite") else {}

engine = create_engine(
    get_database_url(),
    echo=False,
    connect_args=_connect_args,
)


def create_db_and_tables():
    """Create all tables defined by SQLModel metadata."""
    # Import table classes so SQLModel metadata registers them
    from app.models.activity import ActivityLog  # noqa: F401
    from app.models.task import Task, TaskHistory  # noqa: F401
    from app.models.user import User  # noqa: F401

    SQLModel.metadata.create_all(engine)


def get_session():
    """Dependency for FastAPI endpoints."""
    with Session(engine, expire_on_commit=False) as session:
        yield session
