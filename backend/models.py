"""
Pydantic response models.

Built from ORM rows (`from_attributes`) and dumped with camelCase aliases via
domain.responses.dump(). Request bodies live next to their routers.
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from domain.constants import ORDER_NUMBER_LENGTH


class ApiModel(BaseModel):
    """Shared base: allows construction by Python name or alias, and from ORM rows."""
    model_config = ConfigDict(populate_by_name=True, from_attributes=True)


# ── Users ───────────────────────────────────────────────────────────

class UserSummary(ApiModel):
    id: int
    name: str
    email: str
    role: str


class UserResponse(ApiModel):
    id: int
    email: str
    name: str
    phone: Optional[str] = None
    role: str
    dashboard_slug: Optional[str] = Field(default=None, alias="dashboardSlug")
    tags: List[str] = Field(default_factory=list)
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")

    @field_validator("tags", mode="before")
    @classmethod
    def _tag_names(cls, v):
        return [getattr(t, "tag", t) for t in (v or [])]


class ProfileResponse(UserResponse):
    """The authenticated user's own account, with public profile fields."""
    avatar: Optional[str] = None
    bio: Optional[str] = None
    location: Optional[str] = None
    website: Optional[str] = None


class LoginResponse(ApiModel):
    token: str
    user: UserResponse


class UserTagResponse(ApiModel):
    id: int
    user_id: int = Field(..., alias="userId")
    tag: str
    added_by: Optional[int] = Field(default=None, alias="addedBy")
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    user: Optional[UserSummary] = None


# ── Catalog ─────────────────────────────────────────────────────────

class ProductResponse(ApiModel):
    id: int
    seller_id: int = Field(..., alias="sellerId")
    name: str
    description: Optional[str] = None
    price: float
    stock: int
    type: str
    images: List[str] = Field(default_factory=list)
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    seller: Optional[UserSummary] = None


class ProductBrief(ApiModel):
    id: int
    name: str
    type: str
    seller_id: int = Field(..., alias="sellerId")


class OrderItemResponse(ApiModel):
    id: int
    product_id: int = Field(..., alias="productId")
    quantity: int
    price: float
    product: Optional[ProductBrief] = None


class ApprovalLogResponse(ApiModel):
    id: int
    approver_id: int = Field(..., alias="approverId")
    action: str
    notes: Optional[str] = None
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")


class OrderResponse(ApiModel):
    id: int
    customer_id: int = Field(..., alias="customerId")
    customer: Optional[UserSummary] = None
    total: float
    status: str
    payment_type: str = Field(..., alias="paymentType")
    payment_status: str = Field(..., alias="paymentStatus")
    delivery_address: Optional[str] = Field(default=None, alias="deliveryAddress")
    payment_phone: Optional[str] = Field(default=None, alias="paymentPhone")
    payment_reference: Optional[str] = Field(default=None, alias="paymentReference")
    payment_details: Optional[str] = Field(default=None, alias="paymentDetails")
    items: List[OrderItemResponse] = Field(default_factory=list)
    approval_logs: List[ApprovalLogResponse] = Field(default_factory=list, alias="approvalLogs")
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    updated_at: Optional[datetime] = Field(default=None, alias="updatedAt")

    @computed_field(alias="orderNumber")
    @property
    def order_number(self) -> str:
        return str(self.id).zfill(ORDER_NUMBER_LENGTH)[-ORDER_NUMBER_LENGTH:]


class OrderBrief(ApiModel):
    id: int
    customer_id: int = Field(..., alias="customerId")
    total: float
    status: str
    payment_status: str = Field(..., alias="paymentStatus")


# ── Payments ────────────────────────────────────────────────────────

class PaymentResponse(ApiModel):
    id: int
    order_id: int = Field(..., alias="orderId")
    user_id: int = Field(..., alias="userId")
    amount: float
    method: str
    phone_number: Optional[str] = Field(default=None, alias="phoneNumber")
    transaction_code: Optional[str] = Field(default=None, alias="transactionCode")
    mpesa_message: Optional[str] = Field(default=None, alias="mpesaMessage")
    reference_number: str = Field(..., alias="referenceNumber")
    status: str
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    updated_at: Optional[datetime] = Field(default=None, alias="updatedAt")
    order: Optional[OrderBrief] = None
    user: Optional[UserSummary] = None


# ── Notifications ───────────────────────────────────────────────────

class NotificationResponse(ApiModel):
    id: int
    receiver_id: int = Field(..., alias="receiverId")
    sender_id: Optional[int] = Field(default=None, alias="senderId")
    order_id: Optional[int] = Field(default=None, alias="orderId")
    type: str
    title: str
    message: str
    sent_at: Optional[datetime] = Field(default=None, alias="sentAt")


# ── Reviews ─────────────────────────────────────────────────────────

class ReviewLikeResponse(ApiModel):
    id: int
    user_id: int = Field(..., alias="userId")


class ReviewReplyResponse(ApiModel):
    id: int
    review_id: int = Field(..., alias="reviewId")
    user_id: int = Field(..., alias="userId")
    comment: str
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    user: Optional[UserSummary] = None


class ReviewProduct(ApiModel):
    id: int
    name: str


class ReviewResponse(ApiModel):
    id: int
    product_id: int = Field(..., alias="productId")
    user_id: int = Field(..., alias="userId")
    rating: int
    comment: Optional[str] = None
    images: List[str] = Field(default_factory=list)
    is_visible: bool = Field(..., alias="isVisible")
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    user: Optional[UserSummary] = None
    product: Optional[ReviewProduct] = None
    likes: List[ReviewLikeResponse] = Field(default_factory=list)
    replies: List[ReviewReplyResponse] = Field(default_factory=list)


# ── Vouchers / Applications / Sponsorships ──────────────────────────

class VoucherResponse(ApiModel):
    id: int
    code: str
    discount: float
    type: str
    valid_from: datetime = Field(..., alias="validFrom")
    valid_until: datetime = Field(..., alias="validUntil")
    max_uses: int = Field(..., alias="maxUses")
    used_count: int = Field(..., alias="usedCount")
    is_active: bool = Field(..., alias="isActive")
    created_by_id: int = Field(..., alias="createdById")
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    created_by: Optional[UserSummary] = Field(default=None, alias="createdBy")


class ApplicationResponse(ApiModel):
    id: int
    user_id: int = Field(..., alias="userId")
    requested_role: str = Field(..., alias="requestedRole")
    business_name: Optional[str] = Field(default=None, alias="businessName")
    business_type: Optional[str] = Field(default=None, alias="businessType")
    description: Optional[str] = None
    documents: List[str] = Field(default_factory=list)
    status: str
    review_notes: Optional[str] = Field(default=None, alias="reviewNotes")
    reviewed_at: Optional[datetime] = Field(default=None, alias="reviewedAt")
    reviewed_by: Optional[int] = Field(default=None, alias="reviewedBy")
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    user: Optional[UserSummary] = None


class SponsorshipResponse(ApiModel):
    id: int
    company_id: int = Field(..., alias="companyId")
    seller_id: int = Field(..., alias="sellerId")
    amount: float
    description: Optional[str] = None
    terms: Optional[str] = None
    duration: Optional[int] = None
    benefits: List[str] = Field(default_factory=list)
    status: str
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    company: Optional[UserSummary] = None
    seller: Optional[UserSummary] = None
