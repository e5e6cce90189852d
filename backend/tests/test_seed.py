"""
Tests for the demo seed script.
"""
import pytest
from sqlalchemy import func, select

from db_models import Product, User, Voucher
from scripts.seed import seed
from services.auth_service import authenticate


class TestSeed:

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_seed_is_idempotent(self, db_session):
        users = await seed(db_session)
        assert set(users) == {"admin@poultry.com", "company@poultry.com", "seller@poultry.com",
                              "customer@poultry.com"}
        assert await seed(db_session) == {}

        counts = []
        for model in (User, Product, Voucher):
            counts.append((await db_session.execute(select(func.count()).select_from(model))).scalar_one())
        assert counts == [4, 5, 2]

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_demo_accounts_can_log_in(self, db_session):
        await seed(db_session)
        user = await authenticate(db_session, email="seller@poultry.com", password="password123")
        assert user.role == "SELLER"
        assert user.dashboard_slug == "farm-fresh"
