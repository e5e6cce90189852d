"""
Shared FastAPI dependencies.

Centralizes the common dependencies so routers import from a single place:
DB session, session/identity resolution, role guards, notification sink,
pagination.
"""

from __future__ import annotations

from typing import Optional, TypedDict

from fastapi import Cookie, Depends, Header, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from database import get_db
from db_models import User
from domain.enums import UserRole
from domain.errors import PermissionDeniedError, UnauthorizedError
from middleware.auth import resolve_token, user_id_from_token
from services.notification_service import DatabaseNotificationSink, NotificationSink


class Pagination(TypedDict):
    page: int
    limit: int
    offset: int


def pagination_params(
    page: int = Query(1, ge=1, le=100_000),
    limit: int = Query(settings.default_page_limit, ge=1, le=settings.max_page_limit),
) -> Pagination:
    return {"page": page, "limit": limit, "offset": (page - 1) * limit}


def product_pagination_params(
    page: int = Query(1, ge=1, le=100_000),
    limit: int = Query(12, ge=1, le=settings.max_page_limit),
) -> Pagination:
    return {"page": page, "limit": limit, "offset": (page - 1) * limit}


async def get_current_user(
    authorization: Optional[str] = Header(None, alias="Authorization"),
    token: Optional[str] = Cookie(None, alias=settings.auth_cookie_name),
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Resolve the session token to a User row.

    Raises 401 when no token is sent, the token is invalid/expired, or the
    user it names no longer exists.
    """
    raw = resolve_token(authorization, token)
    if not raw:
        raise UnauthorizedError("Unauthorized")

    user_id = user_id_from_token(raw)
    q = await db.execute(select(User).where(User.id == user_id))
    user = q.scalar_one_or_none()
    if not user:
        raise UnauthorizedError("Unauthorized")
    return user


def require_roles(*roles: UserRole):
    """
    Dependency factory: authenticated user whose role is one of `roles`.

    Usage:
        @router.post("/vouchers")
        async def create(user: User = Depends(require_roles(UserRole.SELLER, UserRole.COMPANY))):
            ...
    """
    allowed = {r.value for r in roles}

    async def _require(user: User = Depends(get_current_user)) -> User:
        if user.role not in allowed:
            raise PermissionDeniedError("Forbidden")
        return user

    return _require


def get_notification_sink(db: AsyncSession = Depends(get_db)) -> NotificationSink:
    """Notification sink bound to the request's session."""
    return DatabaseNotificationSink(db)
