"""
Review service: product reviews, likes, seller replies and moderation.
"""
import logging
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from db_models import Product, Review, ReviewLike, ReviewReply, User
from domain.errors import ConflictError, NotFoundError, ValidationError
from services import notification_service as notify
from services.catalog_service import has_delivered_purchase
from services.notification_service import NotificationSink
from services.policies import Action, authorize

logger = logging.getLogger(__name__)


def _review_query():
    return select(Review).options(
        selectinload(Review.user),
        selectinload(Review.product),
        selectinload(Review.likes),
        selectinload(Review.replies).selectinload(ReviewReply.user),
    )


async def get_review(db: AsyncSession, review_id: int) -> Review:
    res = await db.execute(
        _review_query()
        .where(Review.id == review_id)
        .execution_options(populate_existing=True)
    )
    review = res.scalar_one_or_none()
    if not review:
        raise NotFoundError("Review", str(review_id))
    return review


async def list_reviews(
    db: AsyncSession,
    *,
    product_id: Optional[int] = None,
    limit: int = 10,
    offset: int = 0,
) -> tuple[list[Review], int]:
    conditions = [Review.is_visible.is_(True)]
    if product_id is not None:
        conditions.append(Review.product_id == product_id)

    total = (await db.execute(
        select(func.count()).select_from(Review).where(*conditions)
    )).scalar_one()
    res = await db.execute(
        _review_query()
        .where(*conditions)
        .order_by(Review.created_at.desc(), Review.id.desc())
        .limit(limit)
        .offset(offset)
    )
    return res.scalars().all(), total


async def _has_reviewed(db: AsyncSession, *, product_id: int, user_id: int) -> bool:
    res = await db.execute(
        select(Review.id).where(Review.product_id == product_id, Review.user_id == user_id)
    )
    return res.scalar_one_or_none() is not None


async def create_review(
    db: AsyncSession,
    *,
    customer: User,
    product_id: int,
    rating: int,
    comment: Optional[str],
    images: list[str],
    sink: NotificationSink,
) -> Review:
    """
    One review per product per customer, only for products the customer
    received (order DELIVERED). The product's seller is notified.
    """
    if await _has_reviewed(db, product_id=product_id, user_id=customer.id):
        raise ConflictError("You have already reviewed this product")

    if not await has_delivered_purchase(db, customer_id=customer.id, product_id=product_id):
        raise ValidationError("You can only review products from delivered orders")

    product = (await db.execute(select(Product).where(Product.id == product_id))).scalar_one()

    review = Review(
        product_id=product_id,
        user_id=customer.id,
        rating=rating,
        comment=comment,
        images=images or [],
    )
    db.add(review)
    try:
        await db.commit()
    except IntegrityError:
        # A concurrent request inserted the same (product, user) review
        await db.rollback()
        raise ConflictError("You have already reviewed this product")
    logger.info(f"Review {review.id} ({rating}*) on product {product_id} by user {customer.id}")

    await notify.dispatch(
        sink,
        receiver_id=product.seller_id,
        sender_id=customer.id,
        template=notify.review_received(product.name, rating),
    )
    return await get_review(db, review.id)


async def delete_review(db: AsyncSession, *, review_id: int, actor: User) -> None:
    review = await get_review(db, review_id)
    authorize(actor, Action.DELETE_REVIEW, review)
    await db.delete(review)
    await db.flush()


async def set_visibility(db: AsyncSession, *, review_id: int, actor: User, is_visible: bool) -> Review:
    authorize(actor, Action.MODERATE_REVIEW)
    review = await get_review(db, review_id)
    review.is_visible = is_visible
    await db.flush()
    return review


async def _find_like(db: AsyncSession, *, review_id: int, user_id: int) -> Optional[ReviewLike]:
    res = await db.execute(
        select(ReviewLike).where(ReviewLike.review_id == review_id, ReviewLike.user_id == user_id)
    )
    return res.scalar_one_or_none()


async def toggle_like(db: AsyncSession, *, review_id: int, actor: User) -> bool:
    """Like the review, or remove the like if present. Returns the new state."""
    await get_review(db, review_id)

    like = await _find_like(db, review_id=review_id, user_id=actor.id)
    if like:
        await db.delete(like)
        await db.flush()
        return False

    db.add(ReviewLike(review_id=review_id, user_id=actor.id))
    try:
        await db.flush()
    except IntegrityError:
        await db.rollback()
        raise ConflictError("Review already liked")
    return True


async def _has_replied(db: AsyncSession, *, review_id: int, user_id: int) -> bool:
    res = await db.execute(
        select(ReviewReply.id).where(ReviewReply.review_id == review_id, ReviewReply.user_id == user_id)
    )
    return res.scalar_one_or_none() is not None


async def create_reply(db: AsyncSession, *, review_id: int, actor: User, comment: str) -> ReviewReply:
    review = await get_review(db, review_id)
    authorize(actor, Action.REPLY_REVIEW, review)

    if await _has_replied(db, review_id=review_id, user_id=actor.id):
        raise ConflictError("You have already replied to this review")

    reply = ReviewReply(review_id=review_id, user_id=actor.id, comment=comment)
    db.add(reply)
    try:
        await db.flush()
    except IntegrityError:
        await db.rollback()
        raise ConflictError("You have already replied to this review")
    await db.refresh(reply, attribute_names=["user"])
    return reply
