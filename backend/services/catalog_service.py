"""
Catalog service: product listings and customer checkout.
"""
import logging
from typing import Optional

from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from db_models import Order, OrderItem, Product, User
from domain.enums import (
    ALLOWED_PRODUCT_TYPES,
    OrderPaymentStatus,
    OrderStatus,
    UserRole,
)
from domain.errors import PermissionDeniedError, ValidationError
from services import notification_service as notify
from services.notification_service import NotificationSink
from services.payment_workflow import order_query, get_order

logger = logging.getLogger(__name__)


# ── Products ────────────────────────────────────────────────────────

async def list_products(
    db: AsyncSession,
    *,
    type: Optional[str] = None,
    seller_id: Optional[int] = None,
    search: Optional[str] = None,
    limit: int = 12,
    offset: int = 0,
) -> tuple[list[Product], int]:
    conditions = []
    if type:
        conditions.append(Product.type == type)
    if seller_id is not None:
        conditions.append(Product.seller_id == seller_id)
    if search:
        pattern = f"%{search.lower()}%"
        conditions.append(or_(
            func.lower(Product.name).like(pattern),
            func.lower(Product.description).like(pattern),
        ))

    total = (await db.execute(
        select(func.count()).select_from(Product).where(*conditions)
    )).scalar_one()
    res = await db.execute(
        select(Product)
        .options(selectinload(Product.seller))
        .where(*conditions)
        .order_by(Product.created_at.desc(), Product.id.desc())
        .limit(limit)
        .offset(offset)
    )
    return res.scalars().all(), total


async def create_product(
    db: AsyncSession,
    *,
    seller: User,
    name: str,
    description: Optional[str],
    price: float,
    stock: int,
    type: str,
    images: list[str],
) -> Product:
    """SELLER lists eggs/meat, COMPANY lists feed/chicks/hatching eggs."""
    try:
        allowed = ALLOWED_PRODUCT_TYPES[UserRole(seller.role)]
    except (KeyError, ValueError):
        raise PermissionDeniedError("Forbidden")

    if type not in {t.value for t in allowed}:
        if seller.role == UserRole.SELLER.value:
            raise ValidationError("Sellers can only sell eggs and chicken meat")
        raise ValidationError("Companies can only sell chicken feed, chicks, and hatching eggs")

    product = Product(
        seller_id=seller.id,
        name=name,
        description=description,
        price=price,
        stock=stock,
        type=type,
        images=images or [],
    )
    db.add(product)
    await db.flush()
    await db.refresh(product, attribute_names=["seller"])
    return product


# ── Orders ──────────────────────────────────────────────────────────

async def create_order(
    db: AsyncSession,
    *,
    customer: User,
    items: list[dict],
    delivery_address: Optional[str],
    payment_type: str,
    sink: NotificationSink,
) -> Order:
    """
    items: [{product_id:int, quantity:int}]

    Validates stock, snapshots unit prices, decrements stock and notifies each
    distinct seller. Orders always start PENDING / payment PENDING.
    """
    if not items:
        raise ValidationError("Order must contain at least one item")

    total = 0.0
    lines = []
    for item in items:
        product = (await db.execute(
            select(Product).where(Product.id == item["product_id"])
        )).scalar_one_or_none()
        if not product:
            raise ValidationError(f"Product {item['product_id']} not found")
        if product.stock < item["quantity"]:
            raise ValidationError(f"Insufficient stock for {product.name}")

        total += product.price * item["quantity"]
        lines.append((product, item["quantity"]))

    order = Order(
        customer_id=customer.id,
        total=round(total, 2),
        status=OrderStatus.PENDING.value,
        payment_status=OrderPaymentStatus.PENDING.value,
        payment_type=payment_type,
        delivery_address=delivery_address,
    )
    order.items = [
        OrderItem(product_id=product.id, quantity=quantity, price=product.price)
        for product, quantity in lines
    ]
    db.add(order)

    for product, quantity in lines:
        result = await db.execute(
            update(Product)
            .where(Product.id == product.id, Product.stock >= quantity)
            .values(stock=Product.stock - quantity)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            await db.rollback()
            raise ValidationError(f"Insufficient stock for {product.name}")

    await db.commit()
    logger.info(f"Order {order.id} created by customer {customer.id} (total={order.total})")

    seller_ids = sorted({product.seller_id for product, _ in lines})
    template = notify.new_order(notify.order_number(order.id), payment_type)
    for seller_id in seller_ids:
        await notify.dispatch(
            sink,
            receiver_id=seller_id,
            sender_id=customer.id,
            order_id=order.id,
            template=template,
        )

    return await get_order(db, order.id)


def _scope_conditions(actor: User) -> list:
    if actor.role == UserRole.CUSTOMER.value:
        return [Order.customer_id == actor.id]
    if actor.role in (UserRole.SELLER.value, UserRole.COMPANY.value):
        seller_orders = (
            select(OrderItem.order_id)
            .join(Product, OrderItem.product_id == Product.id)
            .where(Product.seller_id == actor.id)
        )
        return [Order.id.in_(seller_orders)]
    return []


async def list_orders(
    db: AsyncSession,
    *,
    actor: User,
    status: Optional[str] = None,
    limit: int = 10,
    offset: int = 0,
) -> tuple[list[Order], int]:
    conditions = _scope_conditions(actor)
    if status:
        conditions.append(Order.status == status)

    total = (await db.execute(
        select(func.count()).select_from(Order).where(*conditions)
    )).scalar_one()
    res = await db.execute(
        order_query()
        .where(*conditions)
        .order_by(Order.created_at.desc(), Order.id.desc())
        .limit(limit)
        .offset(offset)
    )
    return res.scalars().all(), total


async def has_delivered_purchase(db: AsyncSession, *, customer_id: int, product_id: int) -> bool:
    res = await db.execute(
        select(OrderItem.id)
        .join(Order, OrderItem.order_id == Order.id)
        .where(
            Order.customer_id == customer_id,
            Order.status == OrderStatus.DELIVERED.value,
            OrderItem.product_id == product_id,
        )
        .limit(1)
    )
    return res.scalar_one_or_none() is not None
