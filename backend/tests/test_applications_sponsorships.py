"""
Tests for role-upgrade applications and company/seller sponsorships.
"""
import pytest
from sqlalchemy import select

from db_models import Notification


async def _titles_for(db, user_id: int) -> list[str]:
    res = await db.execute(select(Notification.title).where(Notification.receiver_id == user_id))
    return list(res.scalars().all())


class TestApplications:

    APPLY = {"requestedRole": "SELLER", "businessName": "Kamau Farm", "businessType": "Layers"}

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_apply_once_per_role(self, client, make_user, auth_headers):
        customer = await make_user("CUSTOMER")
        headers = auth_headers(customer)

        resp = await client.post("/applications", json=self.APPLY, headers=headers)
        assert resp.status_code == 200
        assert resp.json()["status"] == "PENDING"
        assert resp.json()["user"]["id"] == customer.id

        resp = await client.post("/applications", json=self.APPLY, headers=headers)
        assert resp.status_code == 400
        assert resp.json() == {"error": "You already have a pending application for this role"}

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_admin_role_cannot_be_requested(self, client, make_user, auth_headers):
        customer = await make_user("CUSTOMER")
        resp = await client.post("/applications", json={"requestedRole": "ADMIN"}, headers=auth_headers(customer))
        assert resp.status_code == 400

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_approval_upgrades_role(self, client, db_session, make_user, auth_headers):
        admin = await make_user("ADMIN")
        customer = await make_user("CUSTOMER", name="Mary Kamau")
        app_id = (await client.post("/applications", json=self.APPLY, headers=auth_headers(customer))).json()["id"]

        resp = await client.put(f"/applications/{app_id}", json={"status": "APPROVED", "reviewNotes": "Welcome"},
                                headers=auth_headers(admin))
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "APPROVED"
        assert data["reviewedBy"] == admin.id
        assert data["reviewedAt"] is not None

        me = (await client.get("/auth/me", headers=auth_headers(customer))).json()
        assert me["role"] == "SELLER"
        assert me["dashboardSlug"] == "mary-kamau"
        assert await _titles_for(db_session, customer.id) == ["Application Approved"]

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_rejection_notifies_and_keeps_role(self, client, db_session, make_user, auth_headers):
        admin = await make_user("ADMIN")
        customer = await make_user("CUSTOMER")
        app_id = (await client.post("/applications", json=self.APPLY, headers=auth_headers(customer))).json()["id"]

        resp = await client.put(f"/applications/{app_id}", json={"status": "REJECTED"}, headers=auth_headers(admin))
        assert resp.json()["status"] == "REJECTED"
        assert (await client.get("/auth/me", headers=auth_headers(customer))).json()["role"] == "CUSTOMER"
        assert await _titles_for(db_session, customer.id) == ["Application Update"]

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_only_admin_reviews(self, client, make_user, auth_headers):
        customer = await make_user("CUSTOMER")
        app_id = (await client.post("/applications", json=self.APPLY, headers=auth_headers(customer))).json()["id"]
        resp = await client.put(f"/applications/{app_id}", json={"status": "APPROVED"},
                                headers=auth_headers(customer))
        assert resp.status_code == 403

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_list_scoping(self, client, make_user, auth_headers):
        admin = await make_user("ADMIN")
        first = await make_user("CUSTOMER")
        second = await make_user("CUSTOMER")
        await client.post("/applications", json=self.APPLY, headers=auth_headers(first))
        await client.post("/applications", json={"requestedRole": "COMPANY"}, headers=auth_headers(second))

        resp = await client.get("/applications", headers=auth_headers(first))
        assert resp.json()["pagination"]["total"] == 1
        resp = await client.get("/applications", headers=auth_headers(admin))
        assert resp.json()["pagination"]["total"] == 2
        resp = await client.get("/applications?status=APPROVED", headers=auth_headers(admin))
        assert resp.json()["applications"] == []


class TestSponsorships:

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_company_proposes_admin_approves(self, client, db_session, make_user, auth_headers):
        admin = await make_user("ADMIN")
        company = await make_user("COMPANY", name="Premium Poultry Co.")
        seller = await make_user("SELLER")

        resp = await client.post("/sponsorships", json={"sellerId": seller.id, "amount": 500, "duration": 6},
                                 headers=auth_headers(company))
        assert resp.status_code == 200
        sponsorship = resp.json()
        assert sponsorship["companyId"] == company.id
        assert sponsorship["status"] == "PENDING"

        resp = await client.put(f"/sponsorships/{sponsorship['id']}", json={"status": "APPROVED"},
                                headers=auth_headers(admin))
        assert resp.status_code == 200
        assert resp.json()["status"] == "APPROVED"
        assert await _titles_for(db_session, seller.id) == ["Sponsorship Approved"]

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_seller_applies_to_company(self, client, make_user, auth_headers):
        company = await make_user("COMPANY")
        seller = await make_user("SELLER")
        resp = await client.post("/sponsorships", json={"companyId": company.id, "amount": 100},
                                 headers=auth_headers(seller))
        assert resp.status_code == 200
        assert resp.json()["sellerId"] == seller.id

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_counterparty_must_have_right_role(self, client, make_user, auth_headers):
        company = await make_user("COMPANY")
        customer = await make_user("CUSTOMER")
        resp = await client.post("/sponsorships", json={"sellerId": customer.id, "amount": 100},
                                 headers=auth_headers(company))
        assert resp.status_code == 400

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_customers_are_403(self, client, make_user, auth_headers):
        customer = await make_user("CUSTOMER")
        assert (await client.get("/sponsorships", headers=auth_headers(customer))).status_code == 403
        resp = await client.post("/sponsorships", json={"amount": 100}, headers=auth_headers(customer))
        assert resp.status_code == 403

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_only_admin_decides(self, client, make_user, auth_headers):
        company = await make_user("COMPANY")
        seller = await make_user("SELLER")
        sid = (await client.post("/sponsorships", json={"sellerId": seller.id, "amount": 50},
                                 headers=auth_headers(company))).json()["id"]
        resp = await client.put(f"/sponsorships/{sid}", json={"status": "APPROVED"}, headers=auth_headers(company))
        assert resp.status_code == 403
