"""
Order endpoints: checkout, order lookup, and the order-embedded payment claim.

  POST /orders                          customer checkout
  GET  /orders                          role-scoped order list
  GET  /orders/{id}                     single order (customer, seller, staff)
  POST /orders/{id}/payment             customer submits mobile-money proof
  POST /orders/{id}/approve-payment     seller/admin approves or rejects it
"""
import logging

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from db_models import User
from deps import Pagination, get_current_user, get_notification_sink, pagination_params, require_roles
from domain.constants import MAX_LINE_QUANTITY
from domain.enums import ApprovalAction, OrderStatus, PaymentType, UserRole
from domain.errors import failure_message
from domain.responses import dump, paginated_response
from models import OrderResponse
from services import catalog_service, payment_workflow
from services.notification_service import NotificationSink
from services.policies import Action, authorize
from utils.validators import validate_phone_number

logger = logging.getLogger(__name__)
router = APIRouter(tags=["orders"])


class CartItem(BaseModel):
    """One checkout line; stock is checked again when the order is placed."""
    product_id: int = Field(..., gt=0, alias="productId")
    quantity: int = Field(..., ge=1, le=MAX_LINE_QUANTITY)


class OrderCreateRequest(BaseModel):
    items: list[CartItem] = Field(..., min_length=1)
    delivery_address: str | None = Field(default=None, alias="deliveryAddress", max_length=500)
    payment_type: PaymentType = Field(PaymentType.BEFORE_DELIVERY, alias="paymentType")


class PaymentClaimRequest(BaseModel):
    phone: str = Field(..., min_length=1, max_length=30)
    reference: str = Field(..., min_length=1, max_length=100)
    mpesa_message: str | None = Field(default=None, alias="mpesaMessage", max_length=2000)

    @field_validator("phone")
    @classmethod
    def _phone(cls, v):
        return validate_phone_number(v)

    @field_validator("reference")
    @classmethod
    def _reference(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("reference is required")
        return v.upper()


class ApprovePaymentRequest(BaseModel):
    action: ApprovalAction
    notes: str | None = Field(default=None, max_length=1000)


@router.post("/orders")
@failure_message("Failed to create order")
async def create_order(
    body: OrderCreateRequest,
    user: User = Depends(require_roles(UserRole.CUSTOMER)),
    db: AsyncSession = Depends(get_db),
    sink: NotificationSink = Depends(get_notification_sink),
):
    order = await catalog_service.create_order(
        db,
        customer=user,
        items=[{"product_id": i.product_id, "quantity": i.quantity} for i in body.items],
        delivery_address=body.delivery_address,
        payment_type=body.payment_type.value,
        sink=sink,
    )
    return dump(OrderResponse, order)


@router.get("/orders")
@failure_message("Failed to fetch orders")
async def list_orders(
    status: OrderStatus | None = Query(None),
    pagination: Pagination = Depends(pagination_params),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    orders, total = await catalog_service.list_orders(
        db,
        actor=user,
        status=status.value if status else None,
        limit=pagination["limit"],
        offset=pagination["offset"],
    )
    return paginated_response(
        "orders",
        [dump(OrderResponse, o) for o in orders],
        page=pagination["page"],
        limit=pagination["limit"],
        total=total,
    )


@router.get("/orders/{order_id}")
@failure_message("Failed to fetch order")
async def get_order(
    order_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    order = await payment_workflow.get_order(db, order_id)
    authorize(user, Action.READ_ORDER, order)
    return dump(OrderResponse, order)


@router.post("/orders/{order_id}/payment")
@failure_message("Failed to submit payment")
async def submit_payment(
    order_id: int,
    body: PaymentClaimRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    sink: NotificationSink = Depends(get_notification_sink),
):
    order = await payment_workflow.submit_claim(
        db,
        order_id=order_id,
        actor=user,
        phone=body.phone,
        reference=body.reference,
        mpesa_message=body.mpesa_message,
        sink=sink,
    )
    return dump(OrderResponse, order)


@router.post("/orders/{order_id}/approve-payment")
@failure_message("Failed to process payment approval")
async def approve_payment(
    order_id: int,
    body: ApprovePaymentRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    sink: NotificationSink = Depends(get_notification_sink),
):
    order = await payment_workflow.decide_claim(
        db,
        order_id=order_id,
        actor=user,
        action=body.action,
        notes=body.notes,
        sink=sink,
    )
    return dump(OrderResponse, order)
