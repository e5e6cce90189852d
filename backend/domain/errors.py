"""
Custom domain exceptions for consistent error handling.

These exceptions are mapped to `{"error": <message>}` responses by the
exception handlers in main.py.
"""
import functools
import logging

from fastapi import HTTPException, status

logger = logging.getLogger(__name__)


class DomainError(HTTPException):
    """Base class for all domain-specific errors."""
    def __init__(self, message: str, status_code: int = status.HTTP_400_BAD_REQUEST, details: dict | None = None):
        super().__init__(status_code=status_code, detail=message)
        self.message = message
        self.details = details or {}


class NotFoundError(DomainError):
    """Resource not found (404)."""
    def __init__(self, resource_type: str, identifier: str | None = None, details: dict | None = None):
        message = f"{resource_type} not found"
        if identifier is not None:
            details = {**(details or {}), "id": identifier}
        super().__init__(message, status_code=status.HTTP_404_NOT_FOUND, details=details)


class ValidationError(DomainError):
    """Validation error (400)."""
    def __init__(self, message: str, field: str | None = None, details: dict | None = None):
        if field:
            message = f"Validation error on {field}: {message}"
        super().__init__(message, status_code=status.HTTP_400_BAD_REQUEST, details=details)


class PermissionDeniedError(DomainError):
    """Role or ownership mismatch (403)."""
    def __init__(self, message: str = "Forbidden", details: dict | None = None):
        super().__init__(message, status_code=status.HTTP_403_FORBIDDEN, details=details)


class UnauthorizedError(DomainError):
    """Missing or invalid session (401)."""
    def __init__(self, message: str = "Unauthorized", details: dict | None = None):
        super().__init__(message, status_code=status.HTTP_401_UNAUTHORIZED, details=details)


class ConflictError(DomainError):
    """Duplicate resource or a status that no longer allows the change (400)."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, status_code=status.HTTP_400_BAD_REQUEST, details=details)


class ServerError(DomainError):
    """Unexpected failure surfaced with a fixed, endpoint-specific message (500)."""
    def __init__(self, message: str = "Internal server error"):
        super().__init__(message, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)


def failure_message(message: str):
    """
    Endpoint decorator: unexpected exceptions become a 500 with `message`.

    HTTP/domain errors pass through untouched. The original exception and
    traceback are logged server-side only.
    """
    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            try:
                return await func(*args, **kwargs)
            except HTTPException:
                raise
            except Exception:
                logger.exception(f"{message} ({func.__name__})")
                raise ServerError(message)
        return wrapper
    return decorator
