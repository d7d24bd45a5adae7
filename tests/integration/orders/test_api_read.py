"""Integration tests for Order list and retrieve endpoints.

Covers:
- List all: returns 200 with paginated results.
- Soft-deleted orders are hidden.
- Retrieve success: returns 200 with lines.
- Retrieve 404: non-existent, deleted or malformed ID.
- Authentication enforcement.
"""

from __future__ import annotations

from decimal import Decimal
from uuid import uuid4

import pytest

from modules.orders.constants import OrderStatus

pytestmark = pytest.mark.integration

URL = "/api/v1/orders/"


class TestOrderList:
    def test_list_returns_paginated_orders(self, auth_client, make_order):
        make_order()
        make_order(customer_id=7)

        response = auth_client.get(URL)

        assert response.status_code == 200
        assert response.data["count"] == 2
        assert len(response.data["results"]) == 2

    def test_list_newest_first(self, auth_client, make_order):
        first = make_order()
        second = make_order()

        ids = [row["id"] for row in auth_client.get(URL).data["results"]]

        assert ids == [str(second.id), str(first.id)]

    def test_list_hides_deleted_orders(self, auth_client, make_order, order_service):
        kept = make_order()
        deleted = make_order()
        order_service.delete_order(deleted.id)

        results = auth_client.get(URL).data["results"]

        assert [row["id"] for row in results] == [str(kept.id)]

    def test_list_requires_auth(self, api_client):
        assert api_client.get(URL).status_code == 401


class TestOrderRetrieve:
    def test_retrieve_returns_order_with_lines(self, auth_client, make_order):
        order = make_order(quantity=3, unit_price=Decimal("12.50"))

        response = auth_client.get(f"{URL}{order.id}/")

        assert response.status_code == 200
        data = response.data
        assert data["status"] == OrderStatus.UNPROCESSED
        assert Decimal(data["total_amount"]) == Decimal("37.50")
        [line] = data["lines"]
        assert line["quantity"] == 3
        assert Decimal(line["unit_price"]) == Decimal("12.50")
        assert Decimal(line["line_total"]) == Decimal("37.50")

    def test_retrieve_unknown_returns_404(self, auth_client):
        response = auth_client.get(f"{URL}{uuid4()}/")

        assert response.status_code == 404
        assert response.data["errors"][0]["resource"] == "Order"

    def test_retrieve_malformed_id_returns_404(self, auth_client):
        assert auth_client.get(f"{URL}not-a-uuid/").status_code == 404

    def test_retrieve_deleted_returns_404(self, auth_client, make_order, order_service):
        order = make_order()
        order_service.delete_order(order.id)

        assert auth_client.get(f"{URL}{order.id}/").status_code == 404
