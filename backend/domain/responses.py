"""
Response helpers for consistent response formatting.

- Single entity: the serialized entity itself
- Lists: { "<key>": [...], "pagination": { page, limit, total, pages } }
- Errors: { "error": "<message>" } (see main.py handlers)
"""
import math
from typing import Any

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Standard error body."""
    error: str = Field(..., description="Human-readable error message")


class PaginationMeta(BaseModel):
    """Page-based pagination metadata."""
    page: int = Field(..., description="1-based page number")
    limit: int = Field(..., description="Number of items per page")
    total: int = Field(..., description="Total number of matching items")
    pages: int = Field(..., description="Total number of pages")


def dump(model_cls: type[BaseModel], obj: Any) -> dict[str, Any]:
    """Serialize an ORM object through a response model, camelCase keys."""
    return model_cls.model_validate(obj).model_dump(by_alias=True, mode="json")


def paginated_response(
    key: str,
    items: list[Any],
    *,
    page: int,
    limit: int,
    total: int,
) -> dict[str, Any]:
    """
    Create a standardized paginated response.

    Args:
        key: Name of the list field (e.g. "orders")
        items: Already-serialized items for this page
        page: 1-based page number
        limit: Page size
        total: Total number of matching rows

    Returns:
        dict: { key: items, "pagination": { page, limit, total, pages } }
    """
    meta = PaginationMeta(
        page=page,
        limit=limit,
        total=total,
        pages=math.ceil(total / limit) if limit else 0,
    )
    return {key: items, "pagination": meta.model_dump()}
