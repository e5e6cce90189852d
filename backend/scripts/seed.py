"""
Seed the database with demo accounts, products and vouchers.

Accounts (password: password123):
  admin@poultry.com     ADMIN
  company@poultry.com   COMPANY  "Premium Poultry Co."
  seller@poultry.com    SELLER   "Farm Fresh Seller"
  customer@poultry.com  CUSTOMER "John Customer"

Run from the backend/ directory:
    python -m scripts.seed
"""
import asyncio
import logging
import os
from datetime import timedelta

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from database import async_session, init_db, utcnow
from db_models import Product, User, UserTag, Voucher
from domain.enums import ProductType, TagType, UserRole, VoucherType
from utils.security import hash_password

logger = logging.getLogger(__name__)

DEMO_PASSWORD = "password123"

USERS = [
    ("admin@poultry.com", "Admin User", UserRole.ADMIN, None),
    ("company@poultry.com", "Premium Poultry Co.", UserRole.COMPANY, "premium-poultry"),
    ("seller@poultry.com", "Farm Fresh Seller", UserRole.SELLER, "farm-fresh"),
    ("customer@poultry.com", "John Customer", UserRole.CUSTOMER, None),
]

TAGS = [
    ("company@poultry.com", TagType.VERIFIED),
    ("company@poultry.com", TagType.TRUSTED),
    ("seller@poultry.com", TagType.VERIFIED),
    ("seller@poultry.com", TagType.RECOMMENDED),
]

PRODUCTS = [
    ("company@poultry.com", "Premium Chicken Feed", "High-quality chicken feed for optimal growth",
     25.99, 100, ProductType.CHICKEN_FEED),
    ("company@poultry.com", "Rhode Island Red Chicks", "Healthy Rhode Island Red chicks, 1 week old",
     5.99, 50, ProductType.CHICKS),
    ("company@poultry.com", "Fertile Hatching Eggs", "Premium quality hatching eggs from heritage breeds",
     12.99, 200, ProductType.HATCHING_EGGS),
    ("seller@poultry.com", "Fresh Farm Eggs", "Free-range chicken eggs, collected daily",
     4.99, 500, ProductType.EGGS),
    ("seller@poultry.com", "Organic Chicken Meat", "Pasture-raised organic chicken meat",
     8.99, 30, ProductType.CHICKEN_MEAT),
]

VOUCHERS = [
    ("company@poultry.com", "WELCOME10", 10, 30, 100),
    ("seller@poultry.com", "FRESH20", 20, 15, 50),
]


async def seed(db: AsyncSession) -> dict[str, User]:
    """Insert the demo data. Skips entirely if the admin account already exists."""
    existing = await db.execute(select(User).where(User.email == USERS[0][0]))
    if existing.scalar_one_or_none():
        logger.info("Seed data already present, skipping")
        return {}

    password_hash = hash_password(DEMO_PASSWORD)
    users: dict[str, User] = {}
    for email, name, role, slug in USERS:
        user = User(email=email, name=name, role=role.value, dashboard_slug=slug, password_hash=password_hash)
        db.add(user)
        users[email] = user
    await db.flush()

    admin = users["admin@poultry.com"]
    for email, tag in TAGS:
        db.add(UserTag(user_id=users[email].id, tag=tag.value, added_by=admin.id))

    for email, name, description, price, stock, ptype in PRODUCTS:
        db.add(Product(
            seller_id=users[email].id,
            name=name,
            description=description,
            price=price,
            stock=stock,
            type=ptype.value,
            images=[],
        ))

    now = utcnow()
    for email, code, discount, days, max_uses in VOUCHERS:
        db.add(Voucher(
            code=code,
            discount=discount,
            type=VoucherType.PERCENTAGE.value,
            valid_from=now,
            valid_until=now + timedelta(days=days),
            max_uses=max_uses,
            created_by_id=users[email].id,
        ))

    await db.commit()
    logger.info(f"Seeded {len(USERS)} users, {len(PRODUCTS)} products, {len(VOUCHERS)} vouchers")
    return users


async def main():
    os.makedirs("data", exist_ok=True)
    await init_db()
    async with async_session() as db:
        users = await seed(db)
    if users:
        print(f"✅ Seeded demo accounts (password: {DEMO_PASSWORD}):")
        for email, _, role, _ in USERS:
            print(f"   {role.value:<9} {email}")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    asyncio.run(main())
