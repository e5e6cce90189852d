"""
Standalone payment endpoints.

  POST /payments               customer records a payment for their order
  GET  /payments               role-scoped list (optional orderId filter)
  GET  /payments/{id}          single payment (payer, sellers on the order, admin)
  POST /payments/{id}/verify   admin sets CONFIRMED / REJECTED
"""
import logging

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from db_models import User
from deps import Pagination, get_current_user, get_notification_sink, pagination_params
from domain.enums import PaymentMethod, PaymentStatus
from domain.errors import failure_message
from domain.responses import dump, paginated_response
from models import PaymentResponse
from services import payment_workflow
from services.notification_service import NotificationSink
from services.policies import Action, authorize
from utils.validators import validate_phone_number

logger = logging.getLogger(__name__)
router = APIRouter(tags=["payments"])


class PaymentCreateRequest(BaseModel):
    order_id: int = Field(..., gt=0, alias="orderId")
    method: PaymentMethod
    phone_number: str | None = Field(default=None, alias="phoneNumber")
    transaction_code: str | None = Field(default=None, alias="transactionCode", max_length=100)
    mpesa_message: str | None = Field(default=None, alias="mpesaMessage", max_length=2000)

    @field_validator("phone_number")
    @classmethod
    def _phone(cls, v):
        return validate_phone_number(v) if v else None


class VerifyPaymentRequest(BaseModel):
    status: PaymentStatus


@router.post("/payments")
@failure_message("Failed to create payment")
async def create_payment(
    body: PaymentCreateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    payment = await payment_workflow.create_payment(
        db,
        order_id=body.order_id,
        actor=user,
        method=body.method.value,
        phone_number=body.phone_number,
        transaction_code=body.transaction_code,
        mpesa_message=body.mpesa_message,
    )
    return dump(PaymentResponse, payment)


@router.get("/payments")
@failure_message("Failed to fetch payments")
async def list_payments(
    order_id: int | None = Query(None, alias="orderId"),
    pagination: Pagination = Depends(pagination_params),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    payments, total = await payment_workflow.list_payments(
        db,
        actor=user,
        order_id=order_id,
        limit=pagination["limit"],
        offset=pagination["offset"],
    )
    return paginated_response(
        "payments",
        [dump(PaymentResponse, p) for p in payments],
        page=pagination["page"],
        limit=pagination["limit"],
        total=total,
    )


@router.get("/payments/{payment_id}")
@failure_message("Failed to fetch payment")
async def get_payment(
    payment_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    payment = await payment_workflow.get_payment(db, payment_id)
    authorize(user, Action.READ_PAYMENT, payment)
    return dump(PaymentResponse, payment)


@router.post("/payments/{payment_id}/verify")
@failure_message("Failed to verify payment")
async def verify_payment(
    payment_id: int,
    body: VerifyPaymentRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    sink: NotificationSink = Depends(get_notification_sink),
):
    payment = await payment_workflow.verify_payment(
        db,
        payment_id=payment_id,
        actor=user,
        status=body.status,
        sink=sink,
    )
    return dump(PaymentResponse, payment)
