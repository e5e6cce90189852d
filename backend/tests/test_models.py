"""
Tests for response models and the serialization helpers.
"""
import pytest

from domain.responses import dump, paginated_response
from models import OrderResponse, UserResponse


class TestResponseModels:

    @pytest.mark.unit
    def test_order_response_camel_case_and_order_number(self):
        data = dump(OrderResponse, {
            "id": 42,
            "customer_id": 3,
            "total": 1000.0,
            "status": "PENDING",
            "payment_type": "BEFORE_DELIVERY",
            "payment_status": "SUBMITTED",
            "payment_reference": "QGH7XK2LMN",
        })
        assert data["orderNumber"] == "00000042"
        assert data["paymentStatus"] == "SUBMITTED"
        assert data["paymentReference"] == "QGH7XK2LMN"
        assert data["items"] == []
        assert data["approvalLogs"] == []
        assert "payment_status" not in data

    @pytest.mark.unit
    def test_user_response_flattens_tags(self):
        class Tag:
            def __init__(self, tag):
                self.tag = tag

        data = dump(UserResponse, {
            "id": 1, "email": "seller@poultry.com", "name": "Farm Fresh Seller", "role": "SELLER",
            "dashboard_slug": "farm-fresh", "tags": [Tag("VERIFIED"), Tag("RECOMMENDED")],
        })
        assert data["tags"] == ["VERIFIED", "RECOMMENDED"]
        assert data["dashboardSlug"] == "farm-fresh"


class TestPaginatedResponse:

    @pytest.mark.unit
    @pytest.mark.parametrize("total,limit,pages", [(0, 10, 0), (10, 10, 1), (11, 10, 2)])
    def test_pages(self, total, limit, pages):
        body = paginated_response("orders", [], page=1, limit=limit, total=total)
        assert body == {"orders": [], "pagination": {"page": 1, "limit": limit, "total": total, "pages": pages}}
