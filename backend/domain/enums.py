"""
Domain enums shared by models, services and request validation.
"""

from enum import Enum


class UserRole(str, Enum):
    CUSTOMER = "CUSTOMER"
    SELLER = "SELLER"
    COMPANY = "COMPANY"
    STAKEHOLDER = "STAKEHOLDER"
    ADMIN = "ADMIN"


class ProductType(str, Enum):
    EGGS = "EGGS"
    CHICKEN_MEAT = "CHICKEN_MEAT"
    CHICKEN_FEED = "CHICKEN_FEED"
    CHICKS = "CHICKS"
    HATCHING_EGGS = "HATCHING_EGGS"


class OrderStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    PACKED = "PACKED"
    OUT_FOR_DELIVERY = "OUT_FOR_DELIVERY"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"


class OrderPaymentStatus(str, Enum):
    """Status of the payment claim embedded in an order."""
    PENDING = "PENDING"
    SUBMITTED = "SUBMITTED"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class PaymentType(str, Enum):
    BEFORE_DELIVERY = "BEFORE_DELIVERY"
    AFTER_DELIVERY = "AFTER_DELIVERY"


class ApprovalAction(str, Enum):
    APPROVE = "APPROVE"
    REJECT = "REJECT"


class PaymentStatus(str, Enum):
    """Status of a standalone Payment row."""
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    REJECTED = "REJECTED"


class PaymentMethod(str, Enum):
    CASH_ON_DELIVERY = "CASH_ON_DELIVERY"
    MPESA = "MPESA"
    BANK_TRANSFER = "BANK_TRANSFER"


class NotificationType(str, Enum):
    EMAIL = "EMAIL"
    SMS = "SMS"
    IN_APP = "IN_APP"


class ApplicationStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class SponsorshipStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class VoucherType(str, Enum):
    PERCENTAGE = "PERCENTAGE"
    FIXED = "FIXED"


class TagType(str, Enum):
    VERIFIED = "VERIFIED"
    TRUSTED = "TRUSTED"
    RECOMMENDED = "RECOMMENDED"
    PREMIUM = "PREMIUM"
    FEATURED = "FEATURED"
    ORGANIC = "ORGANIC"
    LOCAL = "LOCAL"
    BESTSELLER = "BESTSELLER"


# Roles that sell through the marketplace and own products
SELLING_ROLES = (UserRole.SELLER, UserRole.COMPANY)

# Product types each selling role may list
ALLOWED_PRODUCT_TYPES = {
    UserRole.SELLER: (ProductType.EGGS, ProductType.CHICKEN_MEAT),
    UserRole.COMPANY: (ProductType.CHICKEN_FEED, ProductType.CHICKS, ProductType.HATCHING_EGGS),
}
