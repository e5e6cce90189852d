"""
Voucher endpoints: discount codes for sellers and companies.
"""
import logging
from datetime import datetime

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field, model_validator
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from db_models import User
from deps import Pagination, get_current_user, pagination_params, require_roles
from domain.enums import UserRole, VoucherType
from domain.errors import failure_message
from domain.responses import dump, paginated_response
from models import VoucherResponse
from services import voucher_service

logger = logging.getLogger(__name__)
router = APIRouter(tags=["vouchers"])


class VoucherCreateRequest(BaseModel):
    code: str = Field(..., min_length=3, max_length=50, pattern=r"^[A-Za-z0-9_-]+$")
    discount: float = Field(..., gt=0)
    type: VoucherType = VoucherType.PERCENTAGE
    valid_from: datetime = Field(..., alias="validFrom")
    valid_until: datetime = Field(..., alias="validUntil")
    max_uses: int = Field(1, ge=1, alias="maxUses")

    @model_validator(mode="after")
    def _percentage_cap(self):
        if self.type == VoucherType.PERCENTAGE and self.discount > 100:
            raise ValueError("Percentage discount cannot exceed 100")
        return self


@router.get("/vouchers")
@failure_message("Failed to fetch vouchers")
async def list_vouchers(
    active: bool = Query(False),
    pagination: Pagination = Depends(pagination_params),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    vouchers, total = await voucher_service.list_vouchers(
        db,
        actor=user,
        active_only=active,
        limit=pagination["limit"],
        offset=pagination["offset"],
    )
    return paginated_response(
        "vouchers",
        [dump(VoucherResponse, v) for v in vouchers],
        page=pagination["page"],
        limit=pagination["limit"],
        total=total,
    )


@router.post("/vouchers")
@failure_message("Failed to create voucher")
async def create_voucher(
    body: VoucherCreateRequest,
    user: User = Depends(require_roles(UserRole.SELLER, UserRole.COMPANY)),
    db: AsyncSession = Depends(get_db),
):
    voucher = await voucher_service.create_voucher(
        db,
        creator=user,
        code=body.code.upper(),
        discount=body.discount,
        type=body.type.value,
        valid_from=body.valid_from,
        valid_until=body.valid_until,
        max_uses=body.max_uses,
    )
    await db.commit()
    return dump(VoucherResponse, voucher)
