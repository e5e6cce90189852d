"""
Payment workflow: every payment status transition in the marketplace.

Two approval paths share this module:
  - order-embedded claim: customer submits mobile-money proof on the order
    (PENDING → SUBMITTED), a seller of the order or an admin approves or
    rejects it (→ APPROVED | REJECTED, APPROVE also confirms the order)
  - standalone Payment row: customer creates it (PENDING), an admin
    verifies it (→ CONFIRMED | REJECTED, CONFIRMED also confirms the order)

Status writes are compare-and-swap: the UPDATE only matches while the row
still has the status read at the start of the call, otherwise ConflictError.
Notifications go out after the commit and are best-effort (see
notification_service.dispatch).
"""
import logging
import secrets
import time
from typing import Optional

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from database import utcnow
from db_models import Order, OrderItem, Payment, PaymentApprovalLog, Product, User
from domain.constants import PAYMENT_REFERENCE_PREFIX, PAYMENT_REFERENCE_SUFFIX_BYTES
from domain.enums import (
    ApprovalAction,
    OrderPaymentStatus,
    OrderStatus,
    PaymentStatus,
    UserRole,
)
from domain.errors import ConflictError, NotFoundError
from services import notification_service as notify
from services.notification_service import NotificationSink
from services.policies import Action, authorize, order_seller_ids

logger = logging.getLogger(__name__)


# ── Transition tables ───────────────────────────────────────────────
# event → {current status: next status}. A missing entry is a Conflict.

SUBMIT = "SUBMIT"

CLAIM_TRANSITIONS: dict[str, dict[str, str]] = {
    SUBMIT: {
        OrderPaymentStatus.PENDING.value: OrderPaymentStatus.SUBMITTED.value,
        OrderPaymentStatus.SUBMITTED.value: OrderPaymentStatus.SUBMITTED.value,
    },
    ApprovalAction.APPROVE.value: {
        OrderPaymentStatus.PENDING.value: OrderPaymentStatus.APPROVED.value,
        OrderPaymentStatus.SUBMITTED.value: OrderPaymentStatus.APPROVED.value,
        OrderPaymentStatus.APPROVED.value: OrderPaymentStatus.APPROVED.value,
    },
    ApprovalAction.REJECT.value: {
        OrderPaymentStatus.PENDING.value: OrderPaymentStatus.REJECTED.value,
        OrderPaymentStatus.SUBMITTED.value: OrderPaymentStatus.REJECTED.value,
        OrderPaymentStatus.REJECTED.value: OrderPaymentStatus.REJECTED.value,
    },
}

# Admin verification overwrites unconditionally, including terminal states
PAYMENT_TRANSITIONS: dict[str, set[str]] = {
    PaymentStatus.PENDING.value: {s.value for s in PaymentStatus},
    PaymentStatus.CONFIRMED.value: {s.value for s in PaymentStatus},
    PaymentStatus.REJECTED.value: {s.value for s in PaymentStatus},
}


def next_claim_status(event: str, current: str) -> str:
    target = CLAIM_TRANSITIONS[event].get(current)
    if target is None:
        raise ConflictError(f"Payment is already {current.lower()} for this order")
    return target


def generate_reference_number() -> str:
    """PAY<epoch-ms><hex>, e.g. PAY1718000000000a3f9."""
    millis = int(time.time() * 1000)
    return f"{PAYMENT_REFERENCE_PREFIX}{millis}{secrets.token_hex(PAYMENT_REFERENCE_SUFFIX_BYTES)}"


# ── Loading ─────────────────────────────────────────────────────────

def order_query():
    return select(Order).options(
        selectinload(Order.items).selectinload(OrderItem.product),
        selectinload(Order.approval_logs),
        selectinload(Order.payment),
        selectinload(Order.customer),
    )


async def get_order(db: AsyncSession, order_id: int) -> Order:
    """Order with items, products, approval logs and payment loaded; NotFound if absent."""
    res = await db.execute(
        order_query()
        .where(Order.id == order_id)
        .execution_options(populate_existing=True)
    )
    order = res.scalar_one_or_none()
    if not order:
        raise NotFoundError("Order", str(order_id))
    return order


def _payment_query():
    return select(Payment).options(
        selectinload(Payment.order).selectinload(Order.items).selectinload(OrderItem.product),
        selectinload(Payment.user),
    )


async def get_payment(db: AsyncSession, payment_id: int) -> Payment:
    res = await db.execute(
        _payment_query()
        .where(Payment.id == payment_id)
        .execution_options(populate_existing=True)
    )
    payment = res.scalar_one_or_none()
    if not payment:
        raise NotFoundError("Payment", str(payment_id))
    return payment


async def _swap_order_payment_status(
    db: AsyncSession,
    *,
    order_id: int,
    expected: str,
    values: dict,
) -> None:
    result = await db.execute(
        update(Order)
        .where(Order.id == order_id, Order.payment_status == expected)
        .values(updated_at=utcnow(), **values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        await db.rollback()
        logger.warning(f"Order {order_id} payment status changed concurrently (expected {expected})")
        raise ConflictError("Order payment status changed, please retry")


# ── Order-embedded claim ────────────────────────────────────────────

async def submit_claim(
    db: AsyncSession,
    *,
    order_id: int,
    actor: User,
    phone: str,
    reference: str,
    mpesa_message: Optional[str],
    sink: NotificationSink,
) -> Order:
    """
    Record a customer's mobile-money proof on the order and mark it SUBMITTED.

    Every distinct seller in the order is told to review the claim.
    """
    order = await get_order(db, order_id)
    authorize(actor, Action.SUBMIT_PAYMENT_CLAIM, order)

    current = order.payment_status
    target = next_claim_status(SUBMIT, current)
    seller_ids = sorted(order_seller_ids(order))

    await _swap_order_payment_status(
        db,
        order_id=order.id,
        expected=current,
        values={
            "payment_phone": phone,
            "payment_reference": reference,
            "payment_details": mpesa_message,
            "payment_status": target,
        },
    )
    await db.commit()
    logger.info(f"Order {order.id}: payment claim {current} -> {target} by user {actor.id}")

    template = notify.payment_submitted(notify.order_number(order.id))
    for seller_id in seller_ids:
        await notify.dispatch(
            sink,
            receiver_id=seller_id,
            sender_id=actor.id,
            order_id=order.id,
            template=template,
        )

    return await get_order(db, order.id)


async def decide_claim(
    db: AsyncSession,
    *,
    order_id: int,
    actor: User,
    action: ApprovalAction,
    notes: Optional[str],
    sink: NotificationSink,
) -> Order:
    """
    Approve or reject the order's payment claim.

    APPROVE sets the order CONFIRMED; REJECT leaves the order status alone.
    Each successful call appends one PaymentApprovalLog row.
    """
    order = await get_order(db, order_id)
    authorize(actor, Action.DECIDE_PAYMENT_CLAIM, order)

    current = order.payment_status
    target = next_claim_status(action.value, current)

    values = {"payment_status": target}
    if action == ApprovalAction.APPROVE:
        values["status"] = OrderStatus.CONFIRMED.value

    await _swap_order_payment_status(db, order_id=order.id, expected=current, values=values)
    db.add(PaymentApprovalLog(
        order_id=order.id,
        approver_id=actor.id,
        action=action.value,
        notes=notes or None,
    ))
    await db.commit()
    logger.info(f"Order {order.id}: payment {action.value} ({current} -> {target}) by user {actor.id}")

    number = notify.order_number(order.id)
    if action == ApprovalAction.APPROVE:
        template = notify.payment_approved(number)
    else:
        template = notify.payment_rejected(number, notes)
    await notify.dispatch(
        sink,
        receiver_id=order.customer_id,
        sender_id=actor.id,
        order_id=order.id,
        template=template,
    )

    return await get_order(db, order.id)


# ── Standalone Payment ──────────────────────────────────────────────

async def create_payment(
    db: AsyncSession,
    *,
    order_id: int,
    actor: User,
    method: str,
    phone_number: Optional[str],
    transaction_code: Optional[str],
    mpesa_message: Optional[str],
) -> Payment:
    res = await db.execute(
        select(Order).where(Order.id == order_id, Order.customer_id == actor.id)
    )
    order = res.scalar_one_or_none()
    if not order:
        raise NotFoundError("Order", str(order_id))

    existing = await db.execute(select(Payment.id).where(Payment.order_id == order.id))
    if existing.scalar_one_or_none() is not None:
        raise ConflictError("Payment already exists for this order")

    payment = Payment(
        order_id=order.id,
        user_id=actor.id,
        amount=order.total,
        method=method,
        phone_number=phone_number,
        transaction_code=transaction_code,
        mpesa_message=mpesa_message,
        reference_number=generate_reference_number(),
        status=PaymentStatus.PENDING.value,
    )
    db.add(payment)
    try:
        await db.commit()
    except IntegrityError:
        # Lost the race against a concurrent create for the same order
        await db.rollback()
        raise ConflictError("Payment already exists for this order")

    logger.info(f"Payment {payment.reference_number} created for order {order.id}")
    return await get_payment(db, payment.id)


async def verify_payment(
    db: AsyncSession,
    *,
    payment_id: int,
    actor: User,
    status: PaymentStatus,
    sink: NotificationSink,
) -> Payment:
    """
    Admin sets the payment status. CONFIRMED also confirms the order and
    notifies the customer. Terminal statuses may be overwritten.
    """
    authorize(actor, Action.VERIFY_PAYMENT)
    payment = await get_payment(db, payment_id)

    current = payment.status
    if status.value not in PAYMENT_TRANSITIONS.get(current, set()):
        raise ConflictError(f"Payment cannot move from {current} to {status.value}")

    result = await db.execute(
        update(Payment)
        .where(Payment.id == payment.id, Payment.status == current)
        .values(status=status.value, updated_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        await db.rollback()
        raise ConflictError("Payment status changed, please retry")

    if status == PaymentStatus.CONFIRMED:
        await db.execute(
            update(Order)
            .where(Order.id == payment.order_id)
            .values(status=OrderStatus.CONFIRMED.value, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
    await db.commit()
    logger.info(f"Payment {payment.id}: {current} -> {status.value} by admin {actor.id}")

    if status == PaymentStatus.CONFIRMED:
        await notify.dispatch(
            sink,
            receiver_id=payment.order.customer_id,
            order_id=payment.order_id,
            template=notify.order_confirmed(notify.order_number(payment.order_id)),
        )

    return await get_payment(db, payment.id)


async def list_payments(
    db: AsyncSession,
    *,
    actor: User,
    order_id: Optional[int] = None,
    limit: int = 10,
    offset: int = 0,
) -> tuple[list[Payment], int]:
    """Role-scoped payments: customers see their own, sellers those on their orders."""
    conditions = []
    if actor.role == UserRole.CUSTOMER.value:
        conditions.append(Payment.user_id == actor.id)
    elif actor.role in (UserRole.SELLER.value, UserRole.COMPANY.value):
        seller_orders = (
            select(OrderItem.order_id)
            .join(Product, OrderItem.product_id == Product.id)
            .where(Product.seller_id == actor.id)
        )
        conditions.append(Payment.order_id.in_(seller_orders))
    if order_id is not None:
        conditions.append(Payment.order_id == order_id)

    total = (await db.execute(
        select(func.count()).select_from(Payment).where(*conditions)
    )).scalar_one()
    res = await db.execute(
        _payment_query()
        .where(*conditions)
        .order_by(Payment.created_at.desc(), Payment.id.desc())
        .limit(limit)
        .offset(offset)
    )
    return res.scalars().all(), total
