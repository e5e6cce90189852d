"""
Authorization policy: one place that answers "may this user do that?".

Routers and services call `authorize(user, action, resource)`; it raises
PermissionDeniedError (403) on deny. Ownership rules (customer of an order,
seller of a line item, author of a review) are derived here and nowhere else.
"""
import logging
from enum import Enum
from typing import Any, Optional

from db_models import Order, Payment, Review, User
from domain.enums import UserRole
from domain.errors import PermissionDeniedError

logger = logging.getLogger(__name__)


class Action(str, Enum):
    READ_ORDER = "order:read"
    SUBMIT_PAYMENT_CLAIM = "order:submit_payment"
    DECIDE_PAYMENT_CLAIM = "order:approve_payment"
    READ_PAYMENT = "payment:read"
    VERIFY_PAYMENT = "payment:verify"
    DELETE_REVIEW = "review:delete"
    MODERATE_REVIEW = "review:moderate"
    REPLY_REVIEW = "review:reply"
    MANAGE_TAGS = "tag:manage"
    REVIEW_APPLICATION = "application:review"
    DECIDE_SPONSORSHIP = "sponsorship:decide"


def is_admin(user: User) -> bool:
    return user.role == UserRole.ADMIN.value


def order_seller_ids(order: Order) -> set[int]:
    """Distinct sellers across an order's line items (items.product must be loaded)."""
    return {item.product.seller_id for item in order.items if item.product is not None}


def _can_read_order(user: User, order: Order) -> bool:
    if user.role in (UserRole.ADMIN.value, UserRole.STAKEHOLDER.value):
        return True
    if order.customer_id == user.id:
        return True
    return user.id in order_seller_ids(order)


def _can_submit_claim(user: User, order: Order) -> bool:
    # Customers may only claim their own orders; staff roles may act on any
    if user.role == UserRole.CUSTOMER.value:
        return order.customer_id == user.id
    return True


def _can_decide_claim(user: User, order: Order) -> bool:
    return is_admin(user) or user.id in order_seller_ids(order)


def _can_read_payment(user: User, payment: Payment) -> bool:
    if is_admin(user) or payment.user_id == user.id:
        return True
    return payment.order is not None and user.id in order_seller_ids(payment.order)


def _can_delete_review(user: User, review: Review) -> bool:
    return is_admin(user) or review.user_id == user.id


def _can_reply_review(user: User, review: Review) -> bool:
    return is_admin(user) or (review.product is not None and review.product.seller_id == user.id)


_RULES = {
    Action.READ_ORDER: _can_read_order,
    Action.SUBMIT_PAYMENT_CLAIM: _can_submit_claim,
    Action.DECIDE_PAYMENT_CLAIM: _can_decide_claim,
    Action.READ_PAYMENT: _can_read_payment,
    Action.VERIFY_PAYMENT: lambda user, _resource: is_admin(user),
    Action.DELETE_REVIEW: _can_delete_review,
    Action.MODERATE_REVIEW: lambda user, _resource: is_admin(user),
    Action.REPLY_REVIEW: _can_reply_review,
    Action.MANAGE_TAGS: lambda user, _resource: is_admin(user),
    Action.REVIEW_APPLICATION: lambda user, _resource: is_admin(user),
    Action.DECIDE_SPONSORSHIP: lambda user, _resource: is_admin(user),
}


def can(user: User, action: Action, resource: Optional[Any] = None) -> bool:
    return _RULES[action](user, resource)


def authorize(user: User, action: Action, resource: Optional[Any] = None) -> None:
    """Raise PermissionDeniedError unless `user` may perform `action` on `resource`."""
    if not can(user, action, resource):
        logger.info(f"Denied {action.value} for user {user.id} ({user.role})")
        raise PermissionDeniedError("Forbidden")
