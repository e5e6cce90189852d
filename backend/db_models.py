"""
SQLAlchemy ORM models for the Poultry Market API.

Tables:
    users                  accounts of every role
    user_tags              admin-assigned badges (VERIFIED, TRUSTED, ...)
    products               listings owned by sellers and companies
    orders / order_items   customer purchases and their line items
    payments               standalone payment records (one per order)
    payment_approval_logs  append-only audit of approve/reject decisions
    notifications          messages sent to users (never mutated)
    reviews / review_likes / review_replies
    vouchers               discount codes created by sellers/companies
    applications           role-upgrade requests
    sponsorships           company ↔ seller sponsorship deals
"""
from sqlalchemy import (
    Column, Integer, String, Float, Boolean, DateTime, Text, ForeignKey, JSON,
    UniqueConstraint, Index,
)
from sqlalchemy.orm import relationship

from database import Base, utcnow


class User(Base):
    """Marketplace account; `role` drives every permission check."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    name = Column(String(200), nullable=False)
    phone = Column(String(30), nullable=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default="CUSTOMER", index=True)
    dashboard_slug = Column(String(200), unique=True, nullable=True)  # sellers/companies only
    avatar = Column(String(500), nullable=True)
    bio = Column(Text, nullable=True)
    location = Column(String(200), nullable=True)
    website = Column(String(300), nullable=True)
    created_at = Column(DateTime, default=utcnow)

    # Relationships
    tags = relationship("UserTag", back_populates="user", foreign_keys="UserTag.user_id", lazy="selectin")
    products = relationship("Product", back_populates="seller", lazy="select")


class UserTag(Base):
    __tablename__ = "user_tags"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    tag = Column(String(30), nullable=False)
    added_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, default=utcnow)

    user = relationship("User", back_populates="tags", foreign_keys=[user_id])

    __table_args__ = (
        UniqueConstraint("user_id", "tag", name="uq_user_tag"),
    )


# ════════════════════════════════════════════════════════════════════
# Catalog & Orders
# ════════════════════════════════════════════════════════════════════

class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, autoincrement=True)
    seller_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Float, nullable=False)
    stock = Column(Integer, nullable=False, default=0)
    type = Column(String(30), nullable=False, index=True)
    images = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime, default=utcnow, index=True)

    seller = relationship("User", back_populates="products")


class Order(Base):
    """
    Customer purchase.

    `payment_status` tracks the inline payment claim (PENDING → SUBMITTED →
    APPROVED | REJECTED); `status` is the fulfilment lifecycle.
    """
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, autoincrement=True)
    customer_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    total = Column(Float, nullable=False, default=0.0)
    status = Column(String(30), nullable=False, default="PENDING", index=True)
    payment_type = Column(String(30), nullable=False, default="BEFORE_DELIVERY")
    payment_status = Column(String(20), nullable=False, default="PENDING", index=True)
    delivery_address = Column(Text, nullable=True)

    # Payment claim submitted by the customer (mobile-money proof)
    payment_phone = Column(String(30), nullable=True)
    payment_reference = Column(String(100), nullable=True)
    payment_details = Column(Text, nullable=True)

    created_at = Column(DateTime, default=utcnow, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    customer = relationship("User", foreign_keys=[customer_id])
    items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan")
    approval_logs = relationship(
        "PaymentApprovalLog",
        back_populates="order",
        order_by="PaymentApprovalLog.id.desc()",
    )
    payment = relationship("Payment", back_populates="order", uselist=False)

    __table_args__ = (
        Index("ix_orders_customer_created", "customer_id", "created_at"),
    )


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    quantity = Column(Integer, nullable=False, default=1)
    price = Column(Float, nullable=False)  # unit price snapshot at checkout

    order = relationship("Order", back_populates="items")
    product = relationship("Product")


# ════════════════════════════════════════════════════════════════════
# Payments
# ════════════════════════════════════════════════════════════════════

class Payment(Base):
    """
    Standalone payment record. At most one per order (uq_payment_order).

    Lifecycle: PENDING → CONFIRMED | REJECTED (admin verification).
    """
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    amount = Column(Float, nullable=False)
    method = Column(String(30), nullable=False)
    phone_number = Column(String(30), nullable=True)
    transaction_code = Column(String(100), nullable=True)
    mpesa_message = Column(Text, nullable=True)
    reference_number = Column(String(40), unique=True, nullable=False)
    status = Column(String(20), nullable=False, default="PENDING", index=True)
    created_at = Column(DateTime, default=utcnow, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    order = relationship("Order", back_populates="payment")
    user = relationship("User")

    __table_args__ = (
        UniqueConstraint("order_id", name="uq_payment_order"),
    )


class PaymentApprovalLog(Base):
    """Append-only audit row, one per approve/reject call."""
    __tablename__ = "payment_approval_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    approver_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    action = Column(String(10), nullable=False)  # APPROVE | REJECT
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow)

    order = relationship("Order", back_populates="approval_logs")
    approver = relationship("User")


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    receiver_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    sender_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=True, index=True)
    type = Column(String(10), nullable=False, default="EMAIL")
    title = Column(String(200), nullable=False)
    message = Column(Text, nullable=False)
    sent_at = Column(DateTime, default=utcnow, index=True)


# ════════════════════════════════════════════════════════════════════
# Reviews
# ════════════════════════════════════════════════════════════════════

class Review(Base):
    __tablename__ = "reviews"

    id = Column(Integer, primary_key=True, autoincrement=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    rating = Column(Integer, nullable=False)
    comment = Column(Text, nullable=True)
    images = Column(JSON, nullable=False, default=list)
    is_visible = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=utcnow, index=True)

    user = relationship("User")
    product = relationship("Product")
    likes = relationship("ReviewLike", cascade="all, delete-orphan")
    replies = relationship("ReviewReply", cascade="all, delete-orphan", order_by="ReviewReply.created_at")

    __table_args__ = (
        UniqueConstraint("product_id", "user_id", name="uq_review_product_user"),
    )


class ReviewLike(Base):
    __tablename__ = "review_likes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    review_id = Column(Integer, ForeignKey("reviews.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime, default=utcnow)

    __table_args__ = (
        UniqueConstraint("review_id", "user_id", name="uq_review_like"),
    )


class ReviewReply(Base):
    __tablename__ = "review_replies"

    id = Column(Integer, primary_key=True, autoincrement=True)
    review_id = Column(Integer, ForeignKey("reviews.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    comment = Column(Text, nullable=False)
    created_at = Column(DateTime, default=utcnow)

    user = relationship("User")

    __table_args__ = (
        UniqueConstraint("review_id", "user_id", name="uq_review_reply"),
    )


# ════════════════════════════════════════════════════════════════════
# Vouchers, Applications, Sponsorships
# ════════════════════════════════════════════════════════════════════

class Voucher(Base):
    __tablename__ = "vouchers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    code = Column(String(50), unique=True, nullable=False, index=True)
    discount = Column(Float, nullable=False)
    type = Column(String(20), nullable=False, default="PERCENTAGE")  # PERCENTAGE | FIXED
    valid_from = Column(DateTime, nullable=False)
    valid_until = Column(DateTime, nullable=False)
    max_uses = Column(Integer, nullable=False, default=1)
    used_count = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    created_by_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    created_at = Column(DateTime, default=utcnow, index=True)

    created_by = relationship("User")


class Application(Base):
    """Role-upgrade request (e.g. CUSTOMER → SELLER), reviewed by an admin."""
    __tablename__ = "applications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    requested_role = Column(String(20), nullable=False)
    business_name = Column(String(200), nullable=True)
    business_type = Column(String(100), nullable=True)
    description = Column(Text, nullable=True)
    documents = Column(JSON, nullable=False, default=list)
    status = Column(String(20), nullable=False, default="PENDING", index=True)
    review_notes = Column(Text, nullable=True)
    reviewed_at = Column(DateTime, nullable=True)
    reviewed_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, default=utcnow, index=True)

    user = relationship("User", foreign_keys=[user_id])


class Sponsorship(Base):
    __tablename__ = "sponsorships"

    id = Column(Integer, primary_key=True, autoincrement=True)
    company_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    seller_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    amount = Column(Float, nullable=False)
    description = Column(Text, nullable=True)
    terms = Column(Text, nullable=True)
    duration = Column(Integer, nullable=True)  # months
    benefits = Column(JSON, nullable=False, default=list)
    status = Column(String(20), nullable=False, default="PENDING", index=True)
    created_at = Column(DateTime, default=utcnow, index=True)

    company = relationship("User", foreign_keys=[company_id])
    seller = relationship("User", foreign_keys=[seller_id])
