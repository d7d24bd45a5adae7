"""Integration tests for Order mutation endpoints.

Covers:
- PUT: line replacement on UNPROCESSED orders, stock re-reservation.
- PATCH status: lifecycle transitions, illegal transitions (400).
- DELETE: soft delete (204), stock release, 404 afterwards.
"""

from __future__ import annotations

from decimal import Decimal
from uuid import uuid4

import pytest

from modules.core.models import OutboxEvent
from modules.orders.constants import OrderStatus
from modules.orders.models import Order, OrderAudit

pytestmark = pytest.mark.integration

URL = "/api/v1/orders/"


def _lines(product, quantity, unit_price="20.00"):
    return {
        "lines": [
            {
                "product_id": product.product_id,
                "quantity": quantity,
                "unit_price": unit_price,
            }
        ]
    }


# ===========================================================================
# PUT: Line replacement
# ===========================================================================


class TestPutLines:
    def test_put_replaces_lines_and_total(self, auth_client, make_order, product_b):
        order = make_order(quantity=5)

        response = auth_client.put(
            f"{URL}{order.id}/", _lines(product_b, 2, "25.50"), format="json"
        )

        assert response.status_code == 200
        assert Decimal(response.data["total_amount"]) == Decimal("51.00")
        assert [line["product_id"] for line in response.data["lines"]] == [
            product_b.product_id
        ]

    def test_put_moves_reservations(
        self, auth_client, make_order, product_a, product_b
    ):
        order = make_order(quantity=5)

        auth_client.put(f"{URL}{order.id}/", _lines(product_b, 2), format="json")

        product_a.refresh_from_db()
        product_b.refresh_from_db()
        assert product_a.available_stock == 100
        assert product_b.available_stock == 48

    def test_put_audits_lines_with_actor(self, auth_client, make_order, product_a):
        order = make_order(quantity=5, unit_price=Decimal("10.00"))

        auth_client.put(f"{URL}{order.id}/", _lines(product_a, 1), format="json")

        audit = OrderAudit.objects.get(order_id=order.id)
        assert audit.field_name == "ORDER_LINES"
        assert audit.old_value == "1x5@10.00"
        assert audit.new_value == "1x1@20.00"
        assert audit.changed_by == "alice"

    def test_put_on_processing_order_returns_400(
        self, auth_client, make_order, order_service, product_a
    ):
        order = make_order()
        order_service.update_order_status(order.id, OrderStatus.PROCESSING)

        response = auth_client.put(
            f"{URL}{order.id}/", _lines(product_a, 1), format="json"
        )

        assert response.status_code == 400
        assert response.data["errors"][0]["code"] == "INVALID_ORDER_STATE"

    def test_put_insufficient_stock_keeps_old_lines(
        self, auth_client, make_order, product_a, low_stock_product
    ):
        order = make_order(quantity=5)

        response = auth_client.put(
            f"{URL}{order.id}/", _lines(low_stock_product, 10), format="json"
        )

        assert response.status_code == 400
        product_a.refresh_from_db()
        assert product_a.available_stock == 95
        assert [line.product_id for line in Order.objects.get(pk=order.pk).lines.all()] == [
            product_a.product_id
        ]

    def test_put_unknown_order_returns_404(self, auth_client, product_a):
        response = auth_client.put(
            f"{URL}{uuid4()}/", _lines(product_a, 1), format="json"
        )
        assert response.status_code == 404


# ===========================================================================
# PATCH: Status change
# ===========================================================================


class TestPatchStatus:
    def test_patch_advances_status(self, auth_client, make_order):
        order = make_order()

        response = auth_client.patch(
            f"{URL}{order.id}/status/",
            {"status": OrderStatus.PROCESSING},
            format="json",
        )

        assert response.status_code == 200
        assert response.data["status"] == OrderStatus.PROCESSING

    def test_patch_records_audit_and_event(self, auth_client, make_order):
        order = make_order()

        auth_client.patch(
            f"{URL}{order.id}/status/",
            {"status": OrderStatus.PROCESSING},
            format="json",
        )

        audit = OrderAudit.objects.get(order_id=order.id)
        assert (audit.old_value, audit.new_value) == ("UNPROCESSED", "PROCESSING")
        assert OutboxEvent.objects.filter(
            aggregate_id=str(order.id), event_type="ORDER_STATUS_CHANGED"
        ).exists()

    def test_patch_illegal_transition_returns_400(self, auth_client, make_order):
        order = make_order()

        response = auth_client.patch(
            f"{URL}{order.id}/status/",
            {"status": OrderStatus.SHIPPED},
            format="json",
        )

        assert response.status_code == 400
        error = response.data["errors"][0]
        assert error["code"] == "INVALID_ORDER_STATE"
        assert error["current_status"] == "UNPROCESSED"
        assert error["target_status"] == "SHIPPED"

    def test_patch_unknown_status_returns_400(self, auth_client, make_order):
        order = make_order()

        response = auth_client.patch(
            f"{URL}{order.id}/status/", {"status": "LOST"}, format="json"
        )

        assert response.status_code == 400
        assert response.data["type"] == "validation_error"

    def test_cancel_releases_stock_and_emits_cancellation(
        self, auth_client, make_order, product_a
    ):
        order = make_order(quantity=2)

        response = auth_client.patch(
            f"{URL}{order.id}/status/",
            {"status": OrderStatus.CANCELLED, "reason": "Customer request"},
            format="json",
        )

        assert response.status_code == 200
        product_a.refresh_from_db()
        assert product_a.available_stock == 100
        cancelled = OutboxEvent.objects.get(
            aggregate_id=str(order.id), event_type="ORDER_CANCELLED"
        )
        assert cancelled.payload["reason"] == "Customer request"

    def test_cancel_shipped_order_returns_400(
        self, auth_client, make_order, order_service
    ):
        order = make_order()
        for status in (
            OrderStatus.PROCESSING,
            OrderStatus.PROCESSED,
            OrderStatus.SHIPPED,
        ):
            order_service.update_order_status(order.id, status)

        response = auth_client.patch(
            f"{URL}{order.id}/status/",
            {"status": OrderStatus.CANCELLED},
            format="json",
        )

        assert response.status_code == 400


# ===========================================================================
# DELETE: Soft delete
# ===========================================================================


class TestDelete:
    def test_delete_returns_204(self, auth_client, make_order):
        order = make_order()
        assert auth_client.delete(f"{URL}{order.id}/").status_code == 204

    def test_delete_is_soft(self, auth_client, make_order):
        order = make_order()

        auth_client.delete(f"{URL}{order.id}/")

        stored = Order.objects.get(pk=order.pk)
        assert stored.deleted_at is not None
        assert stored.status == OrderStatus.UNPROCESSED

    def test_delete_unprocessed_releases_stock(
        self, auth_client, make_order, product_a
    ):
        order = make_order(quantity=4)

        auth_client.delete(f"{URL}{order.id}/")

        product_a.refresh_from_db()
        assert product_a.available_stock == 100

    def test_delete_twice_returns_404(self, auth_client, make_order):
        order = make_order()
        auth_client.delete(f"{URL}{order.id}/")

        assert auth_client.delete(f"{URL}{order.id}/").status_code == 404
