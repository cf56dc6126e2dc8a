"""User model — bearer-token identities that own tasks."""

from __future__ import annotations

import hashlib
import secrets
from datetime import datetime, timezone
from uuid import uuid4

from sqlmodel import Field as SQLField
from sqlmodel import SQLModel


class User(SQLModel, table=True):
    """An account. Only a SHA-256 digest of its API token is stored."""

    __tablename__ = "app_user"

    id: str = SQLField(default_factory=lambda: str(uuid4()), primary_key=True)
    name: str
    email: str = SQLField(unique=True, index=True)
    token_hash: str = SQLField(index=True)
    created_at: datetime = SQLField(default_factory=lambda: datetime.now(timezone.utc))


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def new_token() -> str:
    """Generate a fresh URL-safe API token."""
    return secrets.token_urlsafe(32)
