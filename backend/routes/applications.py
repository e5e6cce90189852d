"""
Role-upgrade application endpoints.
"""
import logging

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from db_models import User
from deps import Pagination, get_current_user, get_notification_sink, pagination_params
from domain.enums import ApplicationStatus, UserRole
from domain.errors import failure_message
from domain.responses import dump, paginated_response
from models import ApplicationResponse
from services import application_service
from services.notification_service import NotificationSink

logger = logging.getLogger(__name__)
router = APIRouter(tags=["applications"])

# Roles that can be requested through an application
REQUESTABLE_ROLES = (UserRole.SELLER, UserRole.COMPANY, UserRole.STAKEHOLDER)


class ApplicationCreateRequest(BaseModel):
    requested_role: UserRole = Field(..., alias="requestedRole")
    business_name: str | None = Field(default=None, alias="businessName", max_length=200)
    business_type: str | None = Field(default=None, alias="businessType", max_length=100)
    description: str | None = Field(default=None, max_length=2000)
    documents: list[str] = Field(default_factory=list)

    @field_validator("requested_role")
    @classmethod
    def _requestable(cls, v):
        if v not in REQUESTABLE_ROLES:
            raise ValueError("requestedRole must be SELLER, COMPANY or STAKEHOLDER")
        return v


class ApplicationReviewRequest(BaseModel):
    status: ApplicationStatus
    review_notes: str | None = Field(default=None, alias="reviewNotes", max_length=2000)


@router.get("/applications")
@failure_message("Failed to fetch applications")
async def list_applications(
    status: ApplicationStatus | None = Query(None),
    pagination: Pagination = Depends(pagination_params),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    applications, total = await application_service.list_applications(
        db,
        actor=user,
        status=status.value if status else None,
        limit=pagination["limit"],
        offset=pagination["offset"],
    )
    return paginated_response(
        "applications",
        [dump(ApplicationResponse, a) for a in applications],
        page=pagination["page"],
        limit=pagination["limit"],
        total=total,
    )


@router.post("/applications")
@failure_message("Failed to create application")
async def create_application(
    body: ApplicationCreateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    application = await application_service.create_application(
        db,
        applicant=user,
        requested_role=body.requested_role,
        business_name=body.business_name,
        business_type=body.business_type,
        description=body.description,
        documents=body.documents,
    )
    await db.commit()
    return dump(ApplicationResponse, application)


@router.put("/applications/{application_id}")
@failure_message("Failed to update application")
async def review_application(
    application_id: int,
    body: ApplicationReviewRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    sink: NotificationSink = Depends(get_notification_sink),
):
    application = await application_service.review_application(
        db,
        application_id=application_id,
        actor=user,
        status=body.status,
        review_notes=body.review_notes,
        sink=sink,
    )
    return dump(ApplicationResponse, application)
