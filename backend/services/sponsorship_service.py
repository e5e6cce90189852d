"""
Sponsorship service: company ↔ seller sponsorship deals.
"""
import logging
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from db_models import Sponsorship, User
from domain.enums import SponsorshipStatus, UserRole
from domain.errors import NotFoundError, PermissionDeniedError, ValidationError
from services import notification_service as notify
from services.notification_service import NotificationSink
from services.policies import Action, authorize, is_admin

logger = logging.getLogger(__name__)


def _sponsorship_query():
    return select(Sponsorship).options(
        selectinload(Sponsorship.company),
        selectinload(Sponsorship.seller),
    )


async def get_sponsorship(db: AsyncSession, sponsorship_id: int) -> Sponsorship:
    res = await db.execute(
        _sponsorship_query()
        .where(Sponsorship.id == sponsorship_id)
        .execution_options(populate_existing=True)
    )
    sponsorship = res.scalar_one_or_none()
    if not sponsorship:
        raise NotFoundError("Sponsorship", str(sponsorship_id))
    return sponsorship


async def list_sponsorships(
    db: AsyncSession,
    *,
    actor: User,
    status: Optional[str] = None,
    limit: int = 10,
    offset: int = 0,
) -> tuple[list[Sponsorship], int]:
    if actor.role == UserRole.COMPANY.value:
        conditions = [Sponsorship.company_id == actor.id]
    elif actor.role == UserRole.SELLER.value:
        conditions = [Sponsorship.seller_id == actor.id]
    elif is_admin(actor):
        conditions = []
    else:
        raise PermissionDeniedError("Forbidden")
    if status:
        conditions.append(Sponsorship.status == status)

    total = (await db.execute(
        select(func.count()).select_from(Sponsorship).where(*conditions)
    )).scalar_one()
    res = await db.execute(
        _sponsorship_query()
        .where(*conditions)
        .order_by(Sponsorship.created_at.desc(), Sponsorship.id.desc())
        .limit(limit)
        .offset(offset)
    )
    return res.scalars().all(), total


async def _require_role(db: AsyncSession, user_id: Optional[int], role: UserRole, field: str) -> int:
    if user_id is None:
        raise ValidationError(f"{field} is required")
    res = await db.execute(select(User.role).where(User.id == user_id))
    found = res.scalar_one_or_none()
    if found != role.value:
        raise ValidationError(f"{field} must reference a {role.value.lower()}")
    return user_id


async def create_sponsorship(
    db: AsyncSession,
    *,
    actor: User,
    company_id: Optional[int],
    seller_id: Optional[int],
    amount: float,
    description: Optional[str],
    terms: Optional[str],
    duration: Optional[int],
    benefits: list[str],
) -> Sponsorship:
    """A company proposes to a seller, or a seller applies to a company."""
    if actor.role == UserRole.COMPANY.value:
        company_id = actor.id
        seller_id = await _require_role(db, seller_id, UserRole.SELLER, "sellerId")
    elif actor.role == UserRole.SELLER.value:
        seller_id = actor.id
        company_id = await _require_role(db, company_id, UserRole.COMPANY, "companyId")
    else:
        raise PermissionDeniedError("Forbidden")

    sponsorship = Sponsorship(
        company_id=company_id,
        seller_id=seller_id,
        amount=amount,
        description=description,
        terms=terms,
        duration=duration,
        benefits=benefits or [],
        status=SponsorshipStatus.PENDING.value,
    )
    db.add(sponsorship)
    await db.flush()
    return await get_sponsorship(db, sponsorship.id)


async def set_status(
    db: AsyncSession,
    *,
    sponsorship_id: int,
    actor: User,
    status: SponsorshipStatus,
    sink: NotificationSink,
) -> Sponsorship:
    authorize(actor, Action.DECIDE_SPONSORSHIP)
    sponsorship = await get_sponsorship(db, sponsorship_id)

    sponsorship.status = status.value
    await db.commit()
    logger.info(f"Sponsorship {sponsorship.id} {status.value} by admin {actor.id}")

    if status == SponsorshipStatus.APPROVED:
        await notify.dispatch(
            sink,
            receiver_id=sponsorship.seller_id,
            sender_id=actor.id,
            template=notify.sponsorship_approved(sponsorship.company.name, sponsorship.amount),
        )

    return await get_sponsorship(db, sponsorship.id)
