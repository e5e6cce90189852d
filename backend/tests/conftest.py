"""
Pytest configuration and shared fixtures for the Poultry Market API tests.

Provides an in-memory SQLite session per test, an httpx AsyncClient bound to
the FastAPI app (get_db overridden to the test session), and factories for
users, products and orders.
"""
from typing import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from config import settings
from database import Base, get_db
from main import app

# ── Test Configuration ───────────────────────────────────────────────
# Set test-only values for settings that would normally come from .env
if not settings.jwt_secret:
    settings.jwt_secret = "test-jwt-secret-for-pytest-only-0123456789"


# ── Database Fixtures ────────────────────────────────────────────────


@pytest.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Create an in-memory SQLite database session for each test.

    Uses StaticPool to allow in-memory SQLite with async SQLAlchemy.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async_session_maker = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )

    async with async_session_maker() as session:
        yield session

    await engine.dispose()


@pytest.fixture(autouse=True)
def _reset_rate_limiter():
    from middleware.rate_limit import limiter
    limiter.reset()
    yield
    limiter.reset()


@pytest.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """
    HTTP client for the FastAPI app with the test DB session.

    The notification sink resolves through get_db, so it writes to the same
    session unless a test overrides get_notification_sink itself.
    """
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ── Notification sinks ────────────────────────────────────────────────


class RecordingSink:
    """In-memory NotificationSink; set `fail=True` to make every send raise."""

    def __init__(self, fail: bool = False):
        self.sent: list[dict] = []
        self.fail = fail

    async def send(self, *, receiver_id, title, message, type, sender_id=None, order_id=None):
        if self.fail:
            raise RuntimeError("notification transport down")
        self.sent.append({
            "receiver_id": receiver_id,
            "sender_id": sender_id,
            "order_id": order_id,
            "type": type,
            "title": title,
            "message": message,
        })


@pytest.fixture
def recording_sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def failing_sink() -> RecordingSink:
    return RecordingSink(fail=True)


# ── Test Data Fixtures ────────────────────────────────────────────────


@pytest.fixture
def make_user(db_session: AsyncSession):
    """Factory: await make_user("SELLER", name="Farm Fresh") -> User."""
    from db_models import User
    from utils.security import hash_password

    counter = {"n": 0}

    async def _make(role: str = "CUSTOMER", *, name: str | None = None, email: str | None = None,
                    password: str = "password123"):
        counter["n"] += 1
        user = User(
            email=email or f"{role.lower()}{counter['n']}@poultry.test",
            name=name or f"{role.title()} {counter['n']}",
            role=role,
            password_hash=hash_password(password),
            tags=[],
        )
        db_session.add(user)
        await db_session.commit()
        return user

    return _make


@pytest.fixture
def make_product(db_session: AsyncSession):
    from db_models import Product

    async def _make(seller, *, name: str = "Fresh Farm Eggs", price: float = 10.0, stock: int = 100,
                    type: str | None = None):
        product = Product(
            seller_id=seller.id,
            name=name,
            description=f"{name} from {seller.name}",
            price=price,
            stock=stock,
            type=type or ("EGGS" if seller.role == "SELLER" else "CHICKEN_FEED"),
            images=[],
        )
        db_session.add(product)
        await db_session.commit()
        return product

    return _make


@pytest.fixture
def make_order(db_session: AsyncSession):
    """Factory: await make_order(customer, [(product, qty), ...], status="PENDING") -> Order."""
    from db_models import Order, OrderItem

    async def _make(customer, lines, *, status: str = "PENDING", payment_status: str = "PENDING"):
        order = Order(
            customer_id=customer.id,
            total=sum(p.price * q for p, q in lines),
            status=status,
            payment_status=payment_status,
            payment_type="BEFORE_DELIVERY",
            delivery_address="12 Market Road, Nakuru",
        )
        order.items = [OrderItem(product_id=p.id, quantity=q, price=p.price) for p, q in lines]
        db_session.add(order)
        await db_session.commit()
        return order

    return _make


@pytest.fixture
def auth_headers():
    """Bearer headers for a user: auth_headers(user) -> {"Authorization": ...}."""
    from middleware.auth import issue_access_token

    def _headers(user) -> dict:
        token = issue_access_token(user_id=user.id, role=user.role)
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
async def marketplace(make_user, make_product, make_order):
    """
    Order O1 (total 1000) by customer C1 for a product of seller S1, plus an
    admin, an unrelated seller S2 and a second customer C2.
    """
    admin = await make_user("ADMIN", name="Admin User")
    seller = await make_user("SELLER", name="Farm Fresh Seller")
    other_seller = await make_user("SELLER", name="Other Seller")
    customer = await make_user("CUSTOMER", name="John Customer")
    other_customer = await make_user("CUSTOMER", name="Jane Customer")
    eggs = await make_product(seller, name="Fresh Farm Eggs", price=500.0, stock=50)
    order = await make_order(customer, [(eggs, 2)])
    return {
        "admin": admin,
        "seller": seller,
        "other_seller": other_seller,
        "customer": customer,
        "other_customer": other_customer,
        "product": eggs,
        "order": order,
    }
