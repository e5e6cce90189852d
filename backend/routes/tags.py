"""
User tag endpoints: badge catalog (public) and admin tag management.
"""
import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from db_models import User
from deps import get_current_user
from domain.enums import TagType
from domain.errors import failure_message
from domain.responses import dump
from models import UserTagResponse
from services import tag_service

logger = logging.getLogger(__name__)
router = APIRouter(tags=["tags"])


class TagRequest(BaseModel):
    user_id: int = Field(..., gt=0, alias="userId")
    tag: TagType


@router.get("/tags")
@failure_message("Failed to fetch tags")
async def list_tags():
    return {"tags": tag_service.list_tag_types()}


@router.post("/tags")
@failure_message("Failed to create tag")
async def add_tag(
    body: TagRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    user_tag = await tag_service.add_tag(db, actor=user, user_id=body.user_id, tag=body.tag)
    await db.commit()
    return dump(UserTagResponse, user_tag)


@router.delete("/tags")
@failure_message("Failed to remove tag")
async def remove_tag(
    body: TagRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await tag_service.remove_tag(db, actor=user, user_id=body.user_id, tag=body.tag)
    await db.commit()
    return {"message": "Tag removed successfully"}
