"""
Session token helpers.

Clients authenticate with a short-lived HS256 JWT issued by POST /auth/login:
  - Authorization: Bearer <jwt>   (preferred, used by the mobile app)
  - `token` cookie                 (set by /auth/login for the web dashboard)

The token's `sub` is the user id; the role is always re-read from the
database so a role upgrade takes effect without re-login.
"""
import logging
from datetime import datetime, timezone, timedelta
from typing import Optional

import jwt

from config import settings
from domain.errors import ServerError, UnauthorizedError

logger = logging.getLogger(__name__)


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def parse_bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    parts = authorization.split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None
    token = parts[1].strip()
    return token or None


def decode_access_token(token: str) -> dict:
    if not settings.jwt_secret:
        raise ServerError("Server auth misconfigured (JWT secret missing).")
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=["HS256"],
            issuer=settings.jwt_issuer,
            options={"require": ["exp", "iat", "iss", "sub"]},
        )
        return payload
    except jwt.ExpiredSignatureError:
        raise UnauthorizedError("Session expired.")
    except jwt.InvalidTokenError:
        raise UnauthorizedError("Invalid session token.")


def issue_access_token(*, user_id: int, role: str) -> str:
    now = _now_utc()
    exp = now.replace(microsecond=0) + timedelta(minutes=settings.jwt_access_ttl_minutes)
    payload = {
        "iss": settings.jwt_issuer,
        "sub": str(user_id),
        "role": role,
        "iat": int(now.timestamp()),
        "exp": int(exp.timestamp()),
    }
    if not settings.jwt_secret:
        raise ServerError("Server auth misconfigured (JWT secret missing).")
    return jwt.encode(payload, settings.jwt_secret, algorithm="HS256")


def resolve_token(authorization: Optional[str], cookie_token: Optional[str]) -> Optional[str]:
    """Pick the session token: Authorization header first, then cookie."""
    return parse_bearer_token(authorization) or (cookie_token or None)


def user_id_from_token(token: str) -> int:
    payload = decode_access_token(token)
    try:
        return int(payload["sub"])
    except (KeyError, TypeError, ValueError):
        logger.warning("Session token carries a non-numeric subject")
        raise UnauthorizedError("Invalid session token.")
