"""
Notification inbox for the authenticated user.
"""
import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from db_models import User
from deps import get_current_user
from domain.errors import failure_message
from domain.responses import dump
from models import NotificationResponse
from services import notification_service

logger = logging.getLogger(__name__)
router = APIRouter(tags=["notifications"])


@router.get("/notifications")
@failure_message("Failed to fetch notifications")
async def list_notifications(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    notifications = await notification_service.list_notifications(
        db, receiver_id=user.id, limit=limit, offset=offset
    )
    return {"notifications": [dump(NotificationResponse, n) for n in notifications]}
