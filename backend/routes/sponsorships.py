"""
Sponsorship endpoints: company/seller proposals and admin decisions.
"""
import logging

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from db_models import User
from deps import Pagination, get_current_user, get_notification_sink, pagination_params
from domain.enums import SponsorshipStatus
from domain.errors import failure_message
from domain.responses import dump, paginated_response
from models import SponsorshipResponse
from services import sponsorship_service
from services.notification_service import NotificationSink

logger = logging.getLogger(__name__)
router = APIRouter(tags=["sponsorships"])


class SponsorshipCreateRequest(BaseModel):
    company_id: int | None = Field(default=None, alias="companyId")
    seller_id: int | None = Field(default=None, alias="sellerId")
    amount: float = Field(..., gt=0)
    description: str | None = Field(default=None, max_length=2000)
    terms: str | None = Field(default=None, max_length=4000)
    duration: int | None = Field(default=None, ge=1, le=120)
    benefits: list[str] = Field(default_factory=list)


class SponsorshipStatusRequest(BaseModel):
    status: SponsorshipStatus


@router.get("/sponsorships")
@failure_message("Failed to fetch sponsorships")
async def list_sponsorships(
    status: SponsorshipStatus | None = Query(None),
    pagination: Pagination = Depends(pagination_params),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    sponsorships, total = await sponsorship_service.list_sponsorships(
        db,
        actor=user,
        status=status.value if status else None,
        limit=pagination["limit"],
        offset=pagination["offset"],
    )
    return paginated_response(
        "sponsorships",
        [dump(SponsorshipResponse, s) for s in sponsorships],
        page=pagination["page"],
        limit=pagination["limit"],
        total=total,
    )


@router.post("/sponsorships")
@failure_message("Failed to create sponsorship")
async def create_sponsorship(
    body: SponsorshipCreateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    sponsorship = await sponsorship_service.create_sponsorship(
        db,
        actor=user,
        company_id=body.company_id,
        seller_id=body.seller_id,
        amount=body.amount,
        description=body.description,
        terms=body.terms,
        duration=body.duration,
        benefits=body.benefits,
    )
    await db.commit()
    return dump(SponsorshipResponse, sponsorship)


@router.put("/sponsorships/{sponsorship_id}")
@failure_message("Failed to update sponsorship")
async def update_sponsorship(
    sponsorship_id: int,
    body: SponsorshipStatusRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    sink: NotificationSink = Depends(get_notification_sink),
):
    sponsorship = await sponsorship_service.set_status(
        db,
        sponsorship_id=sponsorship_id,
        actor=user,
        status=body.status,
        sink=sink,
    )
    return dump(SponsorshipResponse, sponsorship)
