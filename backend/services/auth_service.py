"""
Account service: registration, credential checks and dashboard slugs.
"""
import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from db_models import User
from domain.enums import SELLING_ROLES, UserRole
from domain.errors import ConflictError, UnauthorizedError, ValidationError
from utils.security import hash_password, verify_password
from utils.validators import slugify

logger = logging.getLogger(__name__)


async def get_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    res = await db.execute(select(User).where(User.email == email.lower()))
    return res.scalar_one_or_none()


async def unique_dashboard_slug(db: AsyncSession, name: str) -> str:
    """slugify(name), suffixed -2, -3, ... until unused."""
    base = slugify(name)
    res = await db.execute(
        select(User.dashboard_slug).where(User.dashboard_slug.like(f"{base}%"))
    )
    taken = set(res.scalars().all())
    if base not in taken:
        return base
    n = 2
    while f"{base}-{n}" in taken:
        n += 1
    return f"{base}-{n}"


async def register_user(
    db: AsyncSession,
    *,
    email: str,
    password: str,
    name: str,
    phone: Optional[str],
    role: UserRole,
) -> User:
    if role == UserRole.ADMIN:
        raise ValidationError("Cannot self-register as admin")
    if await get_user_by_email(db, email):
        raise ConflictError("User already exists")

    user = User(
        email=email.lower(),
        name=name,
        phone=phone,
        password_hash=hash_password(password),
        role=role.value,
        tags=[],
    )
    if role in SELLING_ROLES:
        user.dashboard_slug = await unique_dashboard_slug(db, name)

    db.add(user)
    try:
        await db.flush()
    except IntegrityError:
        # Email or dashboard slug claimed by a concurrent registration
        await db.rollback()
        raise ConflictError("User already exists")
    logger.info(f"Registered user {user.id} ({user.role})")
    return user


async def authenticate(db: AsyncSession, *, email: str, password: str) -> User:
    user = await get_user_by_email(db, email)
    if not user or not verify_password(password, user.password_hash):
        raise UnauthorizedError("Invalid credentials")
    return user


PROFILE_FIELDS = ("name", "phone", "bio", "location", "website", "avatar")


async def update_profile(db: AsyncSession, *, user: User, changes: dict) -> User:
    """Apply the provided profile fields; keys left out of `changes` stay as they are."""
    unknown = set(changes) - set(PROFILE_FIELDS)
    if unknown:
        raise ValidationError(f"Unknown profile fields: {', '.join(sorted(unknown))}")
    if "name" in changes and not changes["name"]:
        raise ValidationError("Name cannot be empty")

    for field, value in changes.items():
        setattr(user, field, value)
    await db.flush()
    logger.info(f"User {user.id} updated profile fields {sorted(changes)}")
    return user
