"""
Notification service: records notifications and forwards them to a channel.

The workflow code depends only on the `NotificationSink` protocol. The default
`DatabaseNotificationSink` stores a Notification row and hands the message to
the EMAIL/SMS channel stubs (log-only). `dispatch()` is the best-effort entry
point used by workflows: a failing notification is logged and swallowed so it
can never undo the state change that triggered it.
"""
import logging
from typing import Optional, Protocol

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from db_models import Notification
from domain.constants import ORDER_NUMBER_LENGTH
from domain.enums import NotificationType

logger = logging.getLogger(__name__)


class NotificationSink(Protocol):
    async def send(
        self,
        *,
        receiver_id: int,
        title: str,
        message: str,
        type: str,
        sender_id: Optional[int] = None,
        order_id: Optional[int] = None,
    ) -> None:
        ...


# ── Channels (delivery stubs) ───────────────────────────────────────

async def send_email(receiver_id: int, title: str, message: str) -> None:
    # Integration point for an email provider
    logger.info(f"Sending email '{title}' to user {receiver_id}")


async def send_sms(receiver_id: int, title: str, message: str) -> None:
    # Integration point for an SMS gateway
    logger.info(f"Sending SMS '{title}' to user {receiver_id}")


_CHANNELS = {
    NotificationType.EMAIL.value: send_email,
    NotificationType.SMS.value: send_sms,
}


class DatabaseNotificationSink:
    """Persist the notification, commit it, then forward it to its channel."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def send(
        self,
        *,
        receiver_id: int,
        title: str,
        message: str,
        type: str,
        sender_id: Optional[int] = None,
        order_id: Optional[int] = None,
    ) -> None:
        notification = Notification(
            receiver_id=receiver_id,
            sender_id=sender_id,
            order_id=order_id,
            type=type,
            title=title,
            message=message,
        )
        self.db.add(notification)
        try:
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        channel = _CHANNELS.get(type)
        if channel:
            await channel(receiver_id, title, message)


async def dispatch(
    sink: NotificationSink,
    *,
    receiver_id: int,
    template: dict,
    sender_id: Optional[int] = None,
    order_id: Optional[int] = None,
    type: Optional[str] = None,
) -> bool:
    """
    Best-effort send of a rendered template.

    Returns True on success, False if the sink raised (the error is logged).
    """
    try:
        await sink.send(
            receiver_id=receiver_id,
            sender_id=sender_id,
            order_id=order_id,
            type=type or settings.notification_default_channel,
            title=template["title"],
            message=template["message"],
        )
        return True
    except Exception as e:
        logger.warning(
            f"Notification '{template.get('title')}' to user {receiver_id} failed: {e}",
            exc_info=True,
        )
        return False


async def list_notifications(
    db: AsyncSession,
    *,
    receiver_id: int,
    limit: int = 50,
    offset: int = 0,
) -> list[Notification]:
    res = await db.execute(
        select(Notification)
        .where(Notification.receiver_id == receiver_id)
        .order_by(Notification.sent_at.desc(), Notification.id.desc())
        .limit(limit)
        .offset(offset)
    )
    return res.scalars().all()


# ── Templates ───────────────────────────────────────────────────────

def order_number(order_id: int) -> str:
    return str(order_id).zfill(ORDER_NUMBER_LENGTH)[-ORDER_NUMBER_LENGTH:]


def order_confirmed(number: str) -> dict:
    return {
        "title": "Order Confirmed",
        "message": f"Your order #{number} has been confirmed and is being processed.",
    }


def new_order(number: str, payment_type: str) -> dict:
    return {
        "title": "New Order Received",
        "message": (
            f"You have received a new order #{number}. "
            f"Payment type: {payment_type.replace('_', ' ', 1).lower()}."
        ),
    }


def payment_submitted(number: str) -> dict:
    return {
        "title": "Payment Submitted for Approval",
        "message": (
            f"Customer has submitted payment details for order #{number}. "
            "Please review and approve."
        ),
    }


def payment_approved(number: str) -> dict:
    return {
        "title": "Payment Approved",
        "message": (
            f"Your payment for order #{number} has been approved. "
            "Your order will be processed shortly."
        ),
    }


def payment_rejected(number: str, reason: Optional[str] = None) -> dict:
    tail = f"Reason: {reason}" if reason else "Please contact support for assistance."
    return {
        "title": "Payment Rejected",
        "message": f"Your payment for order #{number} has been rejected. {tail}",
    }


def application_approved(role: str) -> dict:
    return {
        "title": "Application Approved",
        "message": f"Congratulations! Your application to become a {role} has been approved.",
    }


def application_rejected(role: str) -> dict:
    return {
        "title": "Application Update",
        "message": (
            f"Your application to become a {role} has been reviewed. "
            "Please check your dashboard for details."
        ),
    }


def sponsorship_approved(company_name: str, amount: float) -> dict:
    return {
        "title": "Sponsorship Approved",
        "message": f"Your sponsorship application with {company_name} for ${amount:g} has been approved!",
    }


def review_received(product_name: str, rating: int) -> dict:
    return {
        "title": "New Review Received",
        "message": f"You received a {rating}-star review for {product_name}.",
    }
