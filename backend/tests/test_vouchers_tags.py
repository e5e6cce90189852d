"""
Tests for vouchers and admin-managed user tags.
"""
from datetime import datetime, timedelta, timezone

import pytest

from services import tag_service, voucher_service


def _voucher(code="fresh20", days=15, **overrides):
    now = datetime.now(timezone.utc).replace(microsecond=0)
    body = {
        "code": code,
        "discount": 20,
        "type": "PERCENTAGE",
        "validFrom": now.isoformat(),
        "validUntil": (now + timedelta(days=days)).isoformat(),
        "maxUses": 50,
    }
    body.update(overrides)
    return body


class TestVouchers:

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_create_uppercases_code(self, client, make_user, auth_headers):
        seller = await make_user("SELLER")
        resp = await client.post("/vouchers", json=_voucher(), headers=auth_headers(seller))
        assert resp.status_code == 200
        data = resp.json()
        assert data["code"] == "FRESH20"
        assert data["usedCount"] == 0
        assert data["isActive"] is True
        assert data["createdBy"]["id"] == seller.id

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_duplicate_code_is_400(self, client, make_user, auth_headers):
        company = await make_user("COMPANY")
        await client.post("/vouchers", json=_voucher("WELCOME10"), headers=auth_headers(company))
        resp = await client.post("/vouchers", json=_voucher("welcome10"), headers=auth_headers(company))
        assert resp.status_code == 400
        assert resp.json() == {"error": "Voucher code already exists"}

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_code_taken_by_concurrent_create_is_400(self, client, make_user, auth_headers, monkeypatch):
        headers = auth_headers(await make_user("SELLER"))
        await client.post("/vouchers", json=_voucher("EASTER5"), headers=headers)

        async def not_taken(*args, **kwargs):
            return False

        monkeypatch.setattr(voucher_service, "_code_taken", not_taken)
        resp = await client.post("/vouchers", json=_voucher("EASTER5"), headers=headers)
        assert resp.status_code == 400
        assert resp.json() == {"error": "Voucher code already exists"}

    @pytest.mark.api
    @pytest.mark.asyncio
    @pytest.mark.parametrize("overrides", [
        {"discount": 150},
        {"code": "no spaces"},
        {"maxUses": 0},
    ])
    async def test_invalid_voucher_is_400(self, client, make_user, auth_headers, overrides):
        seller = await make_user("SELLER")
        resp = await client.post("/vouchers", json=_voucher(**overrides), headers=auth_headers(seller))
        assert resp.status_code == 400

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_window_must_be_positive(self, client, make_user, auth_headers):
        seller = await make_user("SELLER")
        resp = await client.post("/vouchers", json=_voucher(days=-1), headers=auth_headers(seller))
        assert resp.status_code == 400
        assert resp.json() == {"error": "validUntil must be after validFrom"}

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_customers_cannot_create(self, client, make_user, auth_headers):
        customer = await make_user("CUSTOMER")
        resp = await client.post("/vouchers", json=_voucher(), headers=auth_headers(customer))
        assert resp.status_code == 403

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_list_scoping(self, client, make_user, auth_headers):
        seller = await make_user("SELLER")
        company = await make_user("COMPANY")
        customer = await make_user("CUSTOMER")
        await client.post("/vouchers", json=_voucher("FRESH20"), headers=auth_headers(seller))
        await client.post("/vouchers", json=_voucher("WELCOME10"), headers=auth_headers(company))

        resp = await client.get("/vouchers", headers=auth_headers(seller))
        assert [v["code"] for v in resp.json()["vouchers"]] == ["FRESH20"]

        resp = await client.get("/vouchers?active=true", headers=auth_headers(customer))
        assert resp.json()["pagination"]["total"] == 2


class TestTags:

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_tag_catalog_is_public(self, client):
        resp = await client.get("/tags")
        assert resp.status_code == 200
        assert "VERIFIED" in resp.json()["tags"]

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_admin_adds_and_removes_tag(self, client, db_session, make_user, auth_headers):
        admin = await make_user("ADMIN")
        seller = await make_user("SELLER")
        headers = auth_headers(admin)
        body = {"userId": seller.id, "tag": "VERIFIED"}

        resp = await client.post("/tags", json=body, headers=headers)
        assert resp.status_code == 200
        assert resp.json()["tag"] == "VERIFIED"
        assert resp.json()["addedBy"] == admin.id

        resp = await client.post("/tags", json=body, headers=headers)
        assert resp.status_code == 400
        assert resp.json() == {"error": "Tag already exists for this user"}

        await db_session.refresh(seller, attribute_names=["tags"])
        resp = await client.get("/auth/me", headers=auth_headers(seller))
        assert resp.json()["tags"] == ["VERIFIED"]

        resp = await client.request("DELETE", "/tags", json=body, headers=headers)
        assert resp.json() == {"message": "Tag removed successfully"}
        resp = await client.request("DELETE", "/tags", json=body, headers=headers)
        assert resp.status_code == 404

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_non_admin_is_403(self, client, make_user, auth_headers):
        seller = await make_user("SELLER")
        resp = await client.post("/tags", json={"userId": seller.id, "tag": "TRUSTED"}, headers=auth_headers(seller))
        assert resp.status_code == 403

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_unknown_user_is_404(self, client, make_user, auth_headers):
        admin = await make_user("ADMIN")
        resp = await client.post("/tags", json={"userId": 99999, "tag": "TRUSTED"}, headers=auth_headers(admin))
        assert resp.status_code == 404
        assert resp.json() == {"error": "User not found"}

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_tag_added_by_concurrent_request_is_400(self, client, make_user, auth_headers, monkeypatch):
        headers = auth_headers(await make_user("ADMIN"))
        body = {"userId": (await make_user("SELLER")).id, "tag": "TRUSTED"}
        assert (await client.post("/tags", json=body, headers=headers)).status_code == 200

        async def no_tag(*args, **kwargs):
            return False

        monkeypatch.setattr(tag_service, "_has_tag", no_tag)
        resp = await client.post("/tags", json=body, headers=headers)
        assert resp.status_code == 400
        assert resp.json() == {"error": "Tag already exists for this user"}
