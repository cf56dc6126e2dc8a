"""Bearer token authentication middleware.

Each user has a personal API token (issued by scripts/create_user.py). The
middleware hashes the presented token, resolves the owning user and stores
its id on request.state.user_id for the routers.

Missing and unknown tokens both get 401 "Unauthenticated.".

Exempt paths: /health, /docs, /openapi.json, /redoc, /
"""

from __future__ import annotations

import logging

from fastapi import HTTPException, Request
from sqlmodel import Session, select
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

from app.db.database import engine as db_engine
from app.models.user import User, hash_token

logger = logging.getLogger(__name__)

# Paths that don't require authentication
_EXEMPT_PATHS = frozenset({"/health", "/docs", "/openapi.json", "/redoc", "/"})

_UNAUTHENTICATED = {"detail": "Unauthenticated."}


class UserTokenAuthMiddleware(BaseHTTPMiddleware):
    """Resolves `Authorization: Bearer <token>` to a user id."""

    async def dispatch(self, request: Request, call_next):
        if request.url.path in _EXEMPT_PATHS or request.method == "OPTIONS":
            return await call_next(request)

        token = self._extract_token(request)
        if token is None:
            return JSONResponse(status_code=401, content=_UNAUTHENTICATED)

        user_id = self._resolve_user_id(token)
        if user_id is None:
            logger.warning(
                "Invalid API token from %s on %s",
                request.client.host if request.client else "unknown",
                request.url.path,
            )
            return JSONResponse(status_code=401, content=_UNAUTHENTICATED)

        request.state.user_id = user_id
        return await call_next(request)

    @staticmethod
    def _extract_token(request: Request) -> str | None:
        auth_header = request.headers.get("Authorization", "")
        if auth_header.startswith("Bearer ") and auth_header[7:].strip():
            return auth_header[7:].strip()
        return None

    @staticmethod
    def _resolve_user_id(token: str) -> str | None:
        with Session(db_engine) as session:
            user = session.exec(select(User).where(User.token_hash == hash_token(token))).first()
            return user.id if user else None


def get_current_user_id(request: Request) -> str:
    """FastAPI dependency: the authenticated user's id."""
    user_id = getattr(request.state, "user_id", None)
    if not user_id:
        raise HTTPException(status_code=401, detail="Unauthenticated.")
    return user_id
