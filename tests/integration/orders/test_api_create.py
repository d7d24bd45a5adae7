"""Integration tests for Order creation endpoint.

Covers:
- Success 201: create a valid order with lines.
- Validation 400: invalid payloads (missing lines, zero quantity).
- Business 404/400: unknown product, insufficient stock.
- Stock reservation: inventory decremented on creation, untouched on failure.
"""

from __future__ import annotations

from decimal import Decimal

import pytest

from modules.core.models import OutboxEvent
from modules.orders.constants import OrderStatus
from modules.orders.models import Order, OrderAudit

pytestmark = pytest.mark.integration

URL = "/api/v1/orders/"


@pytest.fixture()
def order_payload(product_a, product_b):
    return {
        "customer_id": 42,
        "lines": [
            {"product_id": product_a.product_id, "quantity": 2, "unit_price": "10.00"},
            {"product_id": product_b.product_id, "quantity": 1, "unit_price": "25.50"},
        ],
    }


# ===========================================================================
# Success (201)
# ===========================================================================


class TestOrderCreateSuccess:
    def test_create_returns_201(self, auth_client, order_payload):
        response = auth_client.post(URL, order_payload, format="json")
        assert response.status_code == 201

    def test_create_returns_order_data(self, auth_client, order_payload):
        data = auth_client.post(URL, order_payload, format="json").data

        assert data["status"] == OrderStatus.UNPROCESSED
        assert data["customer_id"] == 42
        assert len(data["lines"]) == 2
        assert {line["product_id"] for line in data["lines"]} == {1, 2}

    def test_create_calculates_total(self, auth_client, order_payload):
        response = auth_client.post(URL, order_payload, format="json")
        # 2 * 10.00 + 1 * 25.50 = 45.50
        assert Decimal(response.data["total_amount"]) == Decimal("45.50")

    def test_create_reserves_stock(
        self, auth_client, order_payload, product_a, product_b
    ):
        auth_client.post(URL, order_payload, format="json")

        product_a.refresh_from_db()
        product_b.refresh_from_db()
        assert product_a.available_stock == 98  # 100 - 2
        assert product_b.available_stock == 49  # 50 - 1

    def test_create_writes_no_audit_row(self, auth_client, order_payload):
        response = auth_client.post(URL, order_payload, format="json")
        assert not OrderAudit.objects.filter(order_id=response.data["id"]).exists()

    def test_create_stores_order_created_event(self, auth_client, order_payload):
        response = auth_client.post(URL, order_payload, format="json")

        event = OutboxEvent.objects.get(aggregate_id=response.data["id"])
        assert event.event_type == "ORDER_CREATED"
        assert event.payload["total_amount"] == "45.50"
        assert len(event.payload["lines"]) == 2


# ===========================================================================
# Validation (400)
# ===========================================================================


class TestOrderCreateValidation:
    def test_missing_customer_id_returns_400(self, auth_client, order_payload):
        del order_payload["customer_id"]
        response = auth_client.post(URL, order_payload, format="json")
        assert response.status_code == 400

    def test_empty_lines_returns_400(self, auth_client):
        response = auth_client.post(
            URL, {"customer_id": 42, "lines": []}, format="json"
        )
        assert response.status_code == 400

    def test_zero_quantity_returns_400(self, auth_client, order_payload):
        order_payload["lines"][0]["quantity"] = 0
        response = auth_client.post(URL, order_payload, format="json")

        assert response.status_code == 400
        assert response.data["type"] == "validation_error"
        assert response.data["errors"][0]["attr"] == "lines.0.quantity"

    def test_negative_price_returns_400(self, auth_client, order_payload):
        order_payload["lines"][1]["unit_price"] = "-1.00"
        response = auth_client.post(URL, order_payload, format="json")
        assert response.status_code == 400


# ===========================================================================
# Business errors
# ===========================================================================


class TestOrderCreateBusinessErrors:
    def test_unknown_product_returns_404(self, auth_client):
        payload = {
            "customer_id": 42,
            "lines": [{"product_id": 999, "quantity": 1, "unit_price": "1.00"}],
        }
        response = auth_client.post(URL, payload, format="json")

        assert response.status_code == 404
        error = response.data["errors"][0]
        assert error["code"] == "RESOURCE_NOT_FOUND"
        assert error["resource"] == "Product"

    def test_insufficient_stock_returns_400_with_details(
        self, auth_client, low_stock_product
    ):
        payload = {
            "customer_id": 42,
            "lines": [
                {
                    "product_id": low_stock_product.product_id,
                    "quantity": 5,
                    "unit_price": "15.00",
                }
            ],
        }
        response = auth_client.post(URL, payload, format="json")

        assert response.status_code == 400
        error = response.data["errors"][0]
        assert error["code"] == "INSUFFICIENT_STOCK"
        assert error["product_id"] == low_stock_product.product_id
        assert error["requested_quantity"] == 5
        assert error["available_stock"] == 2

    def test_failed_line_leaves_every_product_untouched(
        self, auth_client, product_a, low_stock_product
    ):
        payload = {
            "customer_id": 42,
            "lines": [
                {"product_id": product_a.product_id, "quantity": 3, "unit_price": "1"},
                {
                    "product_id": low_stock_product.product_id,
                    "quantity": 3,
                    "unit_price": "1",
                },
            ],
        }
        response = auth_client.post(URL, payload, format="json")

        assert response.status_code == 400
        product_a.refresh_from_db()
        low_stock_product.refresh_from_db()
        assert product_a.available_stock == 100
        assert low_stock_product.available_stock == 2
        assert not Order.objects.exists()
        assert not OutboxEvent.objects.exists()

    def test_repeated_product_lines_are_checked_together(
        self, auth_client, low_stock_product
    ):
        line = {
            "product_id": low_stock_product.product_id,
            "quantity": 2,
            "unit_price": "15.00",
        }
        response = auth_client.post(
            URL, {"customer_id": 42, "lines": [line, line]}, format="json"
        )

        assert response.status_code == 400
        assert response.data["errors"][0]["requested_quantity"] == 4


class TestOrderCreateAuth:
    def test_unauthenticated_returns_401(self, api_client, order_payload):
        response = api_client.post(URL, order_payload, format="json")
        assert response.status_code == 401
