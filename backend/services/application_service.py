"""
Application service: role-upgrade requests reviewed by admins.

Approving an application switches the applicant's role (and gives new
sellers/companies a dashboard slug). The applicant is notified of the
decision after it is committed.
"""
import logging
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from database import utcnow
from db_models import Application, User
from domain.enums import SELLING_ROLES, ApplicationStatus, UserRole
from domain.errors import ConflictError, NotFoundError
from services import notification_service as notify
from services.auth_service import unique_dashboard_slug
from services.notification_service import NotificationSink
from services.policies import Action, authorize, is_admin

logger = logging.getLogger(__name__)


async def get_application(db: AsyncSession, application_id: int) -> Application:
    res = await db.execute(
        select(Application)
        .options(selectinload(Application.user))
        .where(Application.id == application_id)
        .execution_options(populate_existing=True)
    )
    application = res.scalar_one_or_none()
    if not application:
        raise NotFoundError("Application", str(application_id))
    return application


async def list_applications(
    db: AsyncSession,
    *,
    actor: User,
    status: Optional[str] = None,
    limit: int = 10,
    offset: int = 0,
) -> tuple[list[Application], int]:
    conditions = []
    if not is_admin(actor):
        conditions.append(Application.user_id == actor.id)
    if status:
        conditions.append(Application.status == status)

    total = (await db.execute(
        select(func.count()).select_from(Application).where(*conditions)
    )).scalar_one()
    res = await db.execute(
        select(Application)
        .options(selectinload(Application.user))
        .where(*conditions)
        .order_by(Application.created_at.desc(), Application.id.desc())
        .limit(limit)
        .offset(offset)
    )
    return res.scalars().all(), total


async def create_application(
    db: AsyncSession,
    *,
    applicant: User,
    requested_role: UserRole,
    business_name: Optional[str],
    business_type: Optional[str],
    description: Optional[str],
    documents: list[str],
) -> Application:
    existing = await db.execute(
        select(Application.id).where(
            Application.user_id == applicant.id,
            Application.requested_role == requested_role.value,
            Application.status == ApplicationStatus.PENDING.value,
        )
    )
    if existing.scalar_one_or_none() is not None:
        raise ConflictError("You already have a pending application for this role")

    application = Application(
        user_id=applicant.id,
        requested_role=requested_role.value,
        business_name=business_name,
        business_type=business_type,
        description=description,
        documents=documents or [],
        status=ApplicationStatus.PENDING.value,
    )
    db.add(application)
    await db.flush()
    await db.refresh(application, attribute_names=["user"])
    return application


async def review_application(
    db: AsyncSession,
    *,
    application_id: int,
    actor: User,
    status: ApplicationStatus,
    review_notes: Optional[str],
    sink: NotificationSink,
) -> Application:
    authorize(actor, Action.REVIEW_APPLICATION)
    application = await get_application(db, application_id)

    application.status = status.value
    application.review_notes = review_notes
    application.reviewed_at = utcnow()
    application.reviewed_by = actor.id

    if status == ApplicationStatus.APPROVED:
        applicant = application.user
        applicant.role = application.requested_role
        if UserRole(applicant.role) in SELLING_ROLES and not applicant.dashboard_slug:
            applicant.dashboard_slug = await unique_dashboard_slug(db, applicant.name)

    await db.commit()
    logger.info(f"Application {application.id} {status.value} by admin {actor.id}")

    role = application.requested_role.lower()
    template = None
    if status == ApplicationStatus.APPROVED:
        template = notify.application_approved(role)
    elif status == ApplicationStatus.REJECTED:
        template = notify.application_rejected(role)
    if template:
        await notify.dispatch(
            sink,
            receiver_id=application.user_id,
            sender_id=actor.id,
            template=template,
        )

    return await get_application(db, application.id)
