"""
Voucher service: discount codes created by sellers and companies.
"""
import logging
from datetime import datetime, timezone

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from database import utcnow
from db_models import User, Voucher
from domain.enums import UserRole
from domain.errors import ConflictError, ValidationError

logger = logging.getLogger(__name__)


def _naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


async def list_vouchers(
    db: AsyncSession,
    *,
    actor: User,
    active_only: bool = False,
    limit: int = 10,
    offset: int = 0,
) -> tuple[list[Voucher], int]:
    """Sellers/companies see their own vouchers; everyone else sees all."""
    conditions = []
    if actor.role in (UserRole.SELLER.value, UserRole.COMPANY.value):
        conditions.append(Voucher.created_by_id == actor.id)
    if active_only:
        conditions.extend([
            Voucher.is_active.is_(True),
            Voucher.valid_until >= utcnow(),
            Voucher.used_count < Voucher.max_uses,
        ])

    total = (await db.execute(
        select(func.count()).select_from(Voucher).where(*conditions)
    )).scalar_one()
    res = await db.execute(
        select(Voucher)
        .options(selectinload(Voucher.created_by))
        .where(*conditions)
        .order_by(Voucher.created_at.desc(), Voucher.id.desc())
        .limit(limit)
        .offset(offset)
    )
    return res.scalars().all(), total


async def _code_taken(db: AsyncSession, code: str) -> bool:
    existing = await db.execute(select(Voucher.id).where(Voucher.code == code))
    return existing.scalar_one_or_none() is not None


async def create_voucher(
    db: AsyncSession,
    *,
    creator: User,
    code: str,
    discount: float,
    type: str,
    valid_from: datetime,
    valid_until: datetime,
    max_uses: int,
) -> Voucher:
    if await _code_taken(db, code):
        raise ConflictError("Voucher code already exists")
    valid_from = _naive_utc(valid_from)
    valid_until = _naive_utc(valid_until)
    if valid_until <= valid_from:
        raise ValidationError("validUntil must be after validFrom")

    voucher = Voucher(
        code=code,
        discount=discount,
        type=type,
        valid_from=valid_from,
        valid_until=valid_until,
        max_uses=max_uses,
        created_by_id=creator.id,
    )
    db.add(voucher)
    try:
        await db.flush()
    except IntegrityError:
        await db.rollback()
        raise ConflictError("Voucher code already exists")
    await db.refresh(voucher, attribute_names=["created_by"])
    logger.info(f"Voucher {code} created by user {creator.id}")
    return voucher
