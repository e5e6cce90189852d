"""
Tag service: admin-assigned badges on user accounts.
"""
import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from db_models import User, UserTag
from domain.enums import TagType
from domain.errors import ConflictError, NotFoundError
from services.policies import Action, authorize

logger = logging.getLogger(__name__)


def list_tag_types() -> list[str]:
    return [t.value for t in TagType]


async def _has_tag(db: AsyncSession, *, user_id: int, tag: str) -> bool:
    existing = await db.execute(
        select(UserTag.id).where(UserTag.user_id == user_id, UserTag.tag == tag)
    )
    return existing.scalar_one_or_none() is not None


async def add_tag(db: AsyncSession, *, actor: User, user_id: int, tag: TagType) -> UserTag:
    authorize(actor, Action.MANAGE_TAGS)

    target = (await db.execute(select(User.id).where(User.id == user_id))).scalar_one_or_none()
    if target is None:
        raise NotFoundError("User", str(user_id))

    if await _has_tag(db, user_id=user_id, tag=tag.value):
        raise ConflictError("Tag already exists for this user")

    user_tag = UserTag(user_id=user_id, tag=tag.value, added_by=actor.id)
    db.add(user_tag)
    try:
        await db.flush()
    except IntegrityError:
        await db.rollback()
        raise ConflictError("Tag already exists for this user")

    res = await db.execute(
        select(UserTag)
        .options(selectinload(UserTag.user))
        .where(UserTag.id == user_tag.id)
    )
    logger.info(f"Tag {tag.value} added to user {user_id} by admin {actor.id}")
    return res.scalar_one()


async def remove_tag(db: AsyncSession, *, actor: User, user_id: int, tag: TagType) -> None:
    authorize(actor, Action.MANAGE_TAGS)

    res = await db.execute(
        select(UserTag).where(UserTag.user_id == user_id, UserTag.tag == tag.value)
    )
    user_tag = res.scalar_one_or_none()
    if not user_tag:
        raise NotFoundError("Tag")

    await db.delete(user_tag)
    await db.flush()
    logger.info(f"Tag {tag.value} removed from user {user_id} by admin {actor.id}")
