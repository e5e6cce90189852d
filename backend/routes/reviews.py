"""
Review endpoints: product reviews, likes, seller replies, admin moderation.
"""
import logging

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from db_models import User
from deps import Pagination, get_current_user, get_notification_sink, pagination_params, require_roles
from domain.constants import MAX_RATING, MIN_RATING
from domain.enums import UserRole
from domain.errors import failure_message
from domain.responses import dump, paginated_response
from models import ReviewReplyResponse, ReviewResponse
from services import review_service
from services.notification_service import NotificationSink

logger = logging.getLogger(__name__)
router = APIRouter(tags=["reviews"])


class ReviewCreateRequest(BaseModel):
    product_id: int = Field(..., gt=0, alias="productId")
    rating: int = Field(..., ge=MIN_RATING, le=MAX_RATING)
    comment: str | None = Field(default=None, max_length=2000)
    images: list[str] = Field(default_factory=list)


class ReviewVisibilityRequest(BaseModel):
    is_visible: bool = Field(..., alias="isVisible")


class ReplyRequest(BaseModel):
    comment: str = Field(..., min_length=1, max_length=2000)


@router.get("/reviews")
@failure_message("Failed to fetch reviews")
async def list_reviews(
    product_id: int | None = Query(None, alias="productId"),
    pagination: Pagination = Depends(pagination_params),
    db: AsyncSession = Depends(get_db),
):
    reviews, total = await review_service.list_reviews(
        db,
        product_id=product_id,
        limit=pagination["limit"],
        offset=pagination["offset"],
    )
    return paginated_response(
        "reviews",
        [dump(ReviewResponse, r) for r in reviews],
        page=pagination["page"],
        limit=pagination["limit"],
        total=total,
    )


@router.post("/reviews")
@failure_message("Failed to create review")
async def create_review(
    body: ReviewCreateRequest,
    user: User = Depends(require_roles(UserRole.CUSTOMER)),
    db: AsyncSession = Depends(get_db),
    sink: NotificationSink = Depends(get_notification_sink),
):
    review = await review_service.create_review(
        db,
        customer=user,
        product_id=body.product_id,
        rating=body.rating,
        comment=body.comment,
        images=body.images,
        sink=sink,
    )
    return dump(ReviewResponse, review)


@router.delete("/reviews/{review_id}")
@failure_message("Failed to delete review")
async def delete_review(
    review_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await review_service.delete_review(db, review_id=review_id, actor=user)
    await db.commit()
    return {"message": "Review deleted successfully"}


@router.put("/reviews/{review_id}")
@failure_message("Failed to update review")
async def update_review(
    review_id: int,
    body: ReviewVisibilityRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    review = await review_service.set_visibility(
        db, review_id=review_id, actor=user, is_visible=body.is_visible
    )
    await db.commit()
    return dump(ReviewResponse, review)


@router.post("/reviews/{review_id}/like")
@failure_message("Failed to process like")
async def like_review(
    review_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    liked = await review_service.toggle_like(db, review_id=review_id, actor=user)
    await db.commit()
    return {"liked": liked, "message": "Review liked" if liked else "Review unliked"}


@router.post("/reviews/{review_id}/reply")
@failure_message("Failed to create reply")
async def reply_to_review(
    review_id: int,
    body: ReplyRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    reply = await review_service.create_reply(
        db, review_id=review_id, actor=user, comment=body.comment
    )
    await db.commit()
    return dump(ReviewReplyResponse, reply)
