"""
Tests for products and checkout.

Tests: GET/POST /products, POST/GET /orders, GET /orders/{id}.
"""
import pytest
from sqlalchemy import select

from db_models import Notification, Product
from domain.constants import MAX_LINE_QUANTITY


class TestProducts:

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_public_list_with_filters(self, client, make_user, make_product):
        seller = await make_user("SELLER", name="Farm Fresh")
        company = await make_user("COMPANY", name="Premium Poultry")
        await make_product(seller, name="Fresh Farm Eggs")
        await make_product(seller, name="Organic Chicken Meat", type="CHICKEN_MEAT")
        await make_product(company, name="Layer Feed")

        resp = await client.get("/products")
        assert resp.status_code == 200
        data = resp.json()
        assert data["pagination"] == {"page": 1, "limit": 12, "total": 3, "pages": 1}
        assert data["products"][0]["seller"]["name"] in ("Farm Fresh", "Premium Poultry")

        resp = await client.get("/products?type=CHICKEN_MEAT")
        assert [p["name"] for p in resp.json()["products"]] == ["Organic Chicken Meat"]

        resp = await client.get(f"/products?sellerId={company.id}")
        assert [p["name"] for p in resp.json()["products"]] == ["Layer Feed"]

        resp = await client.get("/products?search=EGGS")
        assert [p["name"] for p in resp.json()["products"]] == ["Fresh Farm Eggs"]

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_pagination(self, client, make_user, make_product):
        seller = await make_user("SELLER")
        for i in range(5):
            await make_product(seller, name=f"Tray {i}")

        resp = await client.get("/products?page=2&limit=2")
        data = resp.json()
        assert len(data["products"]) == 2
        assert data["pagination"]["pages"] == 3

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_seller_lists_eggs(self, client, make_user, auth_headers):
        seller = await make_user("SELLER")
        body = {"name": "Kienyeji Eggs", "price": 15.5, "stock": 200, "type": "EGGS"}
        resp = await client.post("/products", json=body, headers=auth_headers(seller))
        assert resp.status_code == 200
        assert resp.json()["sellerId"] == seller.id
        assert resp.json()["seller"]["id"] == seller.id

    @pytest.mark.api
    @pytest.mark.asyncio
    @pytest.mark.parametrize("role,ptype,message", [
        ("SELLER", "CHICKEN_FEED", "Sellers can only sell eggs and chicken meat"),
        ("COMPANY", "EGGS", "Companies can only sell chicken feed, chicks, and hatching eggs"),
    ])
    async def test_role_product_type_rules(self, client, make_user, auth_headers, role, ptype, message):
        user = await make_user(role)
        body = {"name": "Something", "price": 1.0, "stock": 1, "type": ptype}
        resp = await client.post("/products", json=body, headers=auth_headers(user))
        assert resp.status_code == 400
        assert resp.json() == {"error": message}

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_customer_cannot_list_products(self, client, make_user, auth_headers):
        customer = await make_user("CUSTOMER")
        body = {"name": "Eggs", "price": 1.0, "stock": 1, "type": "EGGS"}
        resp = await client.post("/products", json=body, headers=auth_headers(customer))
        assert resp.status_code == 403


class TestCheckout:

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_create_order_snapshots_prices_and_decrements_stock(
        self, client, db_session, make_user, make_product, auth_headers,
    ):
        seller = await make_user("SELLER")
        company = await make_user("COMPANY")
        customer = await make_user("CUSTOMER")
        eggs = await make_product(seller, price=12.5, stock=10)
        feed = await make_product(company, price=30.0, stock=3)

        body = {
            "items": [{"productId": eggs.id, "quantity": 4}, {"productId": feed.id, "quantity": 1}],
            "deliveryAddress": "Plot 7, Eldoret",
            "paymentType": "AFTER_DELIVERY",
        }
        resp = await client.post("/orders", json=body, headers=auth_headers(customer))
        assert resp.status_code == 200
        order = resp.json()
        assert order["total"] == 80.0
        assert order["status"] == "PENDING"
        assert order["paymentStatus"] == "PENDING"
        assert order["paymentType"] == "AFTER_DELIVERY"
        assert {i["price"] for i in order["items"]} == {12.5, 30.0}

        res = await db_session.execute(select(Product.id, Product.stock).order_by(Product.id))
        assert dict(res.all()) == {eggs.id: 6, feed.id: 2}

        res = await db_session.execute(select(Notification.receiver_id, Notification.title))
        assert sorted(res.all()) == sorted([
            (seller.id, "New Order Received"),
            (company.id, "New Order Received"),
        ])

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_insufficient_stock_is_400(self, client, make_user, make_product, auth_headers):
        seller = await make_user("SELLER")
        customer = await make_user("CUSTOMER")
        eggs = await make_product(seller, name="Fresh Farm Eggs", stock=2)
        resp = await client.post("/orders", json={"items": [{"productId": eggs.id, "quantity": 3}]},
                                 headers=auth_headers(customer))
        assert resp.status_code == 400
        assert resp.json() == {"error": "Insufficient stock for Fresh Farm Eggs"}

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_unknown_product_is_400(self, client, make_user, auth_headers):
        customer = await make_user("CUSTOMER")
        resp = await client.post("/orders", json={"items": [{"productId": 4242, "quantity": 1}]},
                                 headers=auth_headers(customer))
        assert resp.status_code == 400
        assert resp.json() == {"error": "Product 4242 not found"}

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_empty_cart_is_400(self, client, make_user, auth_headers):
        customer = await make_user("CUSTOMER")
        resp = await client.post("/orders", json={"items": []}, headers=auth_headers(customer))
        assert resp.status_code == 400

    @pytest.mark.api
    @pytest.mark.asyncio
    @pytest.mark.parametrize("line", [
        {"productId": 1},
        {"productId": 1, "quantity": 0},
        {"productId": 1, "quantity": MAX_LINE_QUANTITY + 1},
        {"productId": 0, "quantity": 1},
    ])
    async def test_cart_line_bounds_are_400(self, client, make_user, make_product, auth_headers, line):
        customer = await make_user("CUSTOMER")
        eggs = await make_product(await make_user("SELLER"), stock=MAX_LINE_QUANTITY * 2)
        if line["productId"]:
            line = {**line, "productId": eggs.id}
        resp = await client.post("/orders", json={"items": [line]}, headers=auth_headers(customer))
        assert resp.status_code == 400
        assert eggs.stock == MAX_LINE_QUANTITY * 2

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_only_customers_check_out(self, client, marketplace, auth_headers):
        m = marketplace
        resp = await client.post("/orders", json={"items": [{"productId": m["product"].id, "quantity": 1}]},
                                 headers=auth_headers(m["seller"]))
        assert resp.status_code == 403


class TestOrderReads:

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_list_is_scoped_by_role(self, client, marketplace, auth_headers):
        m = marketplace

        async def total_for(user):
            resp = await client.get("/orders", headers=auth_headers(user))
            assert resp.status_code == 200
            return resp.json()["pagination"]["total"]

        assert await total_for(m["customer"]) == 1
        assert await total_for(m["other_customer"]) == 0
        assert await total_for(m["seller"]) == 1
        assert await total_for(m["other_seller"]) == 0
        assert await total_for(m["admin"]) == 1

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_status_filter(self, client, marketplace, auth_headers):
        resp = await client.get("/orders?status=DELIVERED", headers=auth_headers(marketplace["admin"]))
        assert resp.json()["orders"] == []
        resp = await client.get("/orders?status=PENDING", headers=auth_headers(marketplace["admin"]))
        assert len(resp.json()["orders"]) == 1

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_get_order_access(self, client, marketplace, auth_headers):
        m = marketplace
        url = f"/orders/{m['order'].id}"

        resp = await client.get(url, headers=auth_headers(m["seller"]))
        assert resp.status_code == 200
        assert resp.json()["customer"]["id"] == m["customer"].id
        assert resp.json()["items"][0]["product"]["name"] == "Fresh Farm Eggs"

        assert (await client.get(url, headers=auth_headers(m["other_customer"]))).status_code == 403
        assert (await client.get("/orders/777777", headers=auth_headers(m["admin"]))).status_code == 404
