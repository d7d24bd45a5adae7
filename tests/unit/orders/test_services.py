"""Unit tests for OrderService.

Covers:
- Order creation with all-or-nothing stock reservation.
- Line replacement (UNPROCESSED only) with stock re-balancing.
- Status changes: audit rows, events, stock release on cancellation.
- Soft deletion and the audit trail of deleted orders.
- Queries (get, list, history).
"""

from __future__ import annotations

from decimal import Decimal
from uuid import uuid4

import pytest
from pydantic import ValidationError

from modules.inventory.exceptions import InsufficientStock, ProductNotFound
from modules.orders.constants import (
    AUDIT_FIELD_DELETED,
    AUDIT_FIELD_ORDER_LINES,
    AUDIT_FIELD_STATUS,
    ORDERS_TOPIC,
    SYSTEM_ACTOR,
    OrderStatus,
)
from modules.orders.dtos import CreateOrderDTO, OrderLineDTO, UpdateOrderDTO
from modules.orders.events import (
    OrderCancelled,
    OrderCreated,
    OrderStatusChanged,
    OrderUpdated,
)
from modules.orders.exceptions import InvalidOrderState, OrderNotFound
from modules.orders.models import Order, OrderAudit, OrderLine

pytestmark = pytest.mark.unit


def _line(product, quantity, unit_price="10.00"):
    return OrderLineDTO(
        product_id=product.product_id, quantity=quantity, unit_price=unit_price
    )


# ===========================================================================
# create_order
# ===========================================================================


class TestCreateOrderSuccess:
    def test_creates_unprocessed_order_with_lines(self, order_service, order_dto):
        order = order_service.create_order(order_dto)

        assert order.status == OrderStatus.UNPROCESSED
        assert order.customer_id == 42
        assert order.is_deleted is False
        assert len(order.lines.all()) == 2

    def test_total_is_sum_of_line_totals(self, order_service, order_dto):
        order = order_service.create_order(order_dto)

        # 2 * 10.00 + 1 * 25.50
        assert order.total_amount == Decimal("45.50")
        assert sorted(line.line_total for line in order.lines.all()) == [
            Decimal("20.00"),
            Decimal("25.50"),
        ]

    def test_reserves_stock(self, order_service, order_dto, product_a, product_b):
        order_service.create_order(order_dto)

        product_a.refresh_from_db()
        product_b.refresh_from_db()
        assert product_a.available_stock == 98
        assert product_b.available_stock == 49

    def test_publishes_order_created(self, order_service, order_dto, publisher):
        order = order_service.create_order(order_dto)

        assert len(publisher.published) == 1
        event, topic = publisher.published[0]
        assert topic == ORDERS_TOPIC
        assert isinstance(event, OrderCreated)
        assert event.order_id == order.id
        assert event.customer_id == 42
        assert event.status == OrderStatus.UNPROCESSED
        assert event.total_amount == Decimal("45.50")
        assert sorted((line.product_id, line.quantity) for line in event.lines) == [
            (1, 2),
            (2, 1),
        ]

    def test_creation_writes_no_audit_row(self, order_service, order_dto):
        order = order_service.create_order(order_dto)
        assert not OrderAudit.objects.filter(order_id=order.id).exists()

    def test_same_product_on_two_lines_is_reserved_together(
        self, order_service, low_stock_product
    ):
        dto = CreateOrderDTO(
            customer_id=1,
            lines=[_line(low_stock_product, 1), _line(low_stock_product, 1)],
        )
        order_service.create_order(dto)

        low_stock_product.refresh_from_db()
        assert low_stock_product.available_stock == 0

    def test_persisted_total_matches_lines_and_event(
        self, order_service, product_a, product_b, publisher
    ):
        dto = CreateOrderDTO(
            customer_id=1,
            lines=[_line(product_a, 3, "19.99"), _line(product_b, 7, "0.01")],
        )
        order = order_service.create_order(dto)

        stored = Order.objects.get(id=order.id)
        line_sum = sum(line.line_total for line in stored.lines.all())
        assert stored.total_amount == line_sum == Decimal("60.04")

        event, _ = publisher.published[0]
        assert event.total_amount == stored.total_amount
        assert sum(line.unit_price * line.quantity for line in event.lines) == (
            stored.total_amount
        )

    def test_sub_cent_price_is_rejected_before_any_write(self, product_a):
        with pytest.raises(ValidationError):
            CreateOrderDTO(customer_id=1, lines=[_line(product_a, 1, "0.005")])

        product_a.refresh_from_db()
        assert product_a.available_stock == 100
        assert not Order.objects.exists()


class TestCreateOrderFailures:
    def test_insufficient_stock_raises_with_details(
        self, order_service, low_stock_product
    ):
        dto = CreateOrderDTO(customer_id=1, lines=[_line(low_stock_product, 5)])

        with pytest.raises(InsufficientStock) as exc_info:
            order_service.create_order(dto)

        assert exc_info.value.details() == {
            "product_id": low_stock_product.product_id,
            "requested_quantity": 5,
            "available_stock": 2,
        }

    def test_partial_failure_changes_nothing(
        self, order_service, publisher, product_a, low_stock_product
    ):
        dto = CreateOrderDTO(
            customer_id=1,
            lines=[_line(product_a, 5), _line(low_stock_product, 10)],
        )
        with pytest.raises(InsufficientStock):
            order_service.create_order(dto)

        product_a.refresh_from_db()
        low_stock_product.refresh_from_db()
        assert product_a.available_stock == 100
        assert low_stock_product.available_stock == 2
        assert Order.objects.count() == 0
        assert OrderLine.objects.count() == 0
        assert publisher.events == []

    def test_combined_quantity_over_stock_raises(
        self, order_service, low_stock_product
    ):
        dto = CreateOrderDTO(
            customer_id=1,
            lines=[_line(low_stock_product, 2), _line(low_stock_product, 1)],
        )
        with pytest.raises(InsufficientStock):
            order_service.create_order(dto)

        low_stock_product.refresh_from_db()
        assert low_stock_product.available_stock == 2

    def test_unknown_product_raises(self, order_service):
        dto = CreateOrderDTO(
            customer_id=1,
            lines=[OrderLineDTO(product_id=999, quantity=1, unit_price="1.00")],
        )
        with pytest.raises(ProductNotFound):
            order_service.create_order(dto)
        assert Order.objects.count() == 0


# ===========================================================================
# update_order
# ===========================================================================


class TestUpdateOrder:
    def test_replaces_lines_and_total(self, order_service, make_order, product_b):
        order = make_order(quantity=2)

        updated = order_service.update_order(
            order.id, UpdateOrderDTO(lines=[_line(product_b, 3, "5.00")])
        )

        lines = list(updated.lines.all())
        assert [(line.product_id, line.quantity) for line in lines] == [
            (product_b.product_id, 3)
        ]
        assert updated.total_amount == Decimal("15.00")

    def test_rebalances_stock(self, order_service, make_order, product_a, product_b):
        order = make_order(quantity=2)

        order_service.update_order(
            order.id, UpdateOrderDTO(lines=[_line(product_a, 5), _line(product_b, 1)])
        )

        product_a.refresh_from_db()
        product_b.refresh_from_db()
        assert product_a.available_stock == 95
        assert product_b.available_stock == 49

    def test_old_stock_counts_toward_new_lines(
        self, order_service, make_order, product_a
    ):
        product_a.available_stock = 2
        product_a.save()
        order = make_order(quantity=2)

        order_service.update_order(order.id, UpdateOrderDTO(lines=[_line(product_a, 2)]))

        product_a.refresh_from_db()
        assert product_a.available_stock == 0

    def test_writes_order_lines_audit(self, order_service, make_order, product_b):
        order = make_order(quantity=2)

        order_service.update_order(
            order.id,
            UpdateOrderDTO(lines=[_line(product_b, 3, "5.00")]),
            changed_by="alice",
        )

        audit = OrderAudit.objects.get(order_id=order.id)
        assert audit.field_name == AUDIT_FIELD_ORDER_LINES
        assert audit.old_value == "1x2@10.00"
        assert audit.new_value == "2x3@5.00"
        assert audit.changed_by == "alice"

    def test_publishes_order_updated(
        self, order_service, make_order, publisher, product_b
    ):
        order = make_order()
        publisher.published.clear()

        order_service.update_order(
            order.id, UpdateOrderDTO(lines=[_line(product_b, 1, "7.50")])
        )

        [event] = publisher.events
        assert isinstance(event, OrderUpdated)
        assert event.order_id == order.id
        assert event.total_amount == Decimal("7.50")

    def test_rejected_once_processing(self, order_service, make_order, product_a):
        order = make_order(quantity=2)
        order_service.update_order_status(order.id, OrderStatus.PROCESSING)

        with pytest.raises(InvalidOrderState):
            order_service.update_order(
                order.id, UpdateOrderDTO(lines=[_line(product_a, 1)])
            )

        product_a.refresh_from_db()
        assert product_a.available_stock == 98

    def test_insufficient_stock_keeps_old_lines(
        self, order_service, make_order, product_a, low_stock_product
    ):
        order = make_order(quantity=2)

        with pytest.raises(InsufficientStock):
            order_service.update_order(
                order.id, UpdateOrderDTO(lines=[_line(low_stock_product, 3)])
            )

        order.refresh_from_db()
        product_a.refresh_from_db()
        assert [line.product_id for line in order.lines.all()] == [1]
        assert order.total_amount == Decimal("20.00")
        assert product_a.available_stock == 98
        assert not OrderAudit.objects.filter(order_id=order.id).exists()

    def test_missing_order_raises(self, order_service, product_a):
        with pytest.raises(OrderNotFound):
            order_service.update_order(
                uuid4(), UpdateOrderDTO(lines=[_line(product_a, 1)])
            )


# ===========================================================================
# update_order_status
# ===========================================================================


class TestUpdateOrderStatus:
    def test_cancel_unprocessed_restores_stock(
        self, order_service, make_order, product_a
    ):
        order = make_order(quantity=2)
        product_a.refresh_from_db()
        assert product_a.available_stock == 98

        order = order_service.update_order_status(
            order.id, OrderStatus.CANCELLED, changed_by="alice"
        )

        product_a.refresh_from_db()
        assert order.status == OrderStatus.CANCELLED
        assert product_a.available_stock == 100
        [audit] = OrderAudit.objects.filter(order_id=order.id)
        assert audit.field_name == AUDIT_FIELD_STATUS
        assert audit.old_value == "UNPROCESSED"
        assert audit.new_value == "CANCELLED"
        assert audit.changed_by == "alice"

    def test_cancel_after_processing_keeps_stock_reserved(
        self, order_service, make_order, product_a
    ):
        order = make_order(quantity=2)
        order_service.update_order_status(order.id, OrderStatus.PROCESSING)
        order_service.update_order_status(order.id, OrderStatus.CANCELLED)

        product_a.refresh_from_db()
        assert product_a.available_stock == 98

    def test_publishes_status_changed(self, order_service, make_order, publisher):
        order = make_order()
        publisher.published.clear()

        order_service.update_order_status(order.id, OrderStatus.PROCESSING)

        [event] = publisher.events
        assert isinstance(event, OrderStatusChanged)
        assert event.old_status == "UNPROCESSED"
        assert event.new_status == "PROCESSING"
        assert event.customer_id == 42

    def test_cancel_also_publishes_order_cancelled(
        self, order_service, make_order, publisher
    ):
        order = make_order()
        publisher.published.clear()

        order_service.update_order_status(
            order.id, OrderStatus.CANCELLED, changed_by="alice"
        )

        assert [type(event) for event in publisher.events] == [
            OrderStatusChanged,
            OrderCancelled,
        ]
        cancelled = publisher.of_type(OrderCancelled)[0]
        assert cancelled.reason == "Cancelled from UNPROCESSED by alice"

    def test_cancel_reason_is_forwarded(self, order_service, make_order, publisher):
        order = make_order()
        order_service.update_order_status(
            order.id, OrderStatus.CANCELLED, reason="Customer changed their mind"
        )
        cancelled = publisher.of_type(OrderCancelled)[0]
        assert cancelled.reason == "Customer changed their mind"

    def test_default_actor_is_system(self, order_service, make_order):
        order = make_order()
        order_service.update_order_status(order.id, OrderStatus.PROCESSING)
        assert OrderAudit.objects.get(order_id=order.id).changed_by == SYSTEM_ACTOR

    def test_missing_order_raises(self, order_service):
        with pytest.raises(OrderNotFound):
            order_service.update_order_status(uuid4(), OrderStatus.PROCESSING)


# ===========================================================================
# delete_order
# ===========================================================================


class TestDeleteOrder:
    def test_soft_deletes_and_audits(self, order_service, make_order):
        order = make_order()

        order_service.delete_order(order.id, changed_by="alice")

        order.refresh_from_db()
        assert order.is_deleted is True
        assert order.status == OrderStatus.UNPROCESSED
        audit = OrderAudit.objects.get(order_id=order.id)
        assert (audit.field_name, audit.old_value, audit.new_value) == (
            AUDIT_FIELD_DELETED,
            "false",
            "true",
        )
        assert audit.changed_by == "alice"

    def test_deleting_unprocessed_releases_stock(
        self, order_service, make_order, product_a
    ):
        order = make_order(quantity=4)
        order_service.delete_order(order.id)

        product_a.refresh_from_db()
        assert product_a.available_stock == 100

    def test_deleting_processing_keeps_stock(self, order_service, make_order, product_a):
        order = make_order(quantity=4)
        order_service.update_order_status(order.id, OrderStatus.PROCESSING)
        order_service.delete_order(order.id)

        product_a.refresh_from_db()
        assert product_a.available_stock == 96

    def test_deleted_order_is_hidden(self, order_service, make_order):
        order = make_order()
        order_service.delete_order(order.id)

        with pytest.raises(OrderNotFound):
            order_service.get_order(order.id)
        assert not order_service.list_orders().filter(id=order.id).exists()
        with pytest.raises(OrderNotFound):
            order_service.delete_order(order.id)
        with pytest.raises(OrderNotFound):
            order_service.update_order_status(order.id, OrderStatus.PROCESSING)


# ===========================================================================
# Queries
# ===========================================================================


class TestQueries:
    def test_get_order_malformed_id_raises(self, order_service):
        with pytest.raises(OrderNotFound):
            order_service.get_order("not-a-uuid")

    def test_list_orders_filters(self, order_service, make_order):
        first = make_order(customer_id=1)
        make_order(customer_id=2)
        order_service.update_order_status(first.id, OrderStatus.PROCESSING)

        assert [o.id for o in order_service.list_orders({"customer_id": 1})] == [
            first.id
        ]
        assert [
            o.id for o in order_service.list_orders({"status": OrderStatus.PROCESSING})
        ] == [first.id]

    def test_history_is_newest_first(self, order_service, make_order):
        order = make_order()
        order_service.update_order_status(order.id, OrderStatus.PROCESSING)
        order_service.update_order_status(order.id, OrderStatus.PROCESSED)

        history = order_service.get_order_history(order.id)

        assert [entry.new_value for entry in history] == ["PROCESSED", "PROCESSING"]

    def test_history_of_deleted_order_is_readable(self, order_service, make_order):
        order = make_order()
        order_service.delete_order(order.id)

        history = order_service.get_order_history(order.id)

        assert [entry.field_name for entry in history] == [AUDIT_FIELD_DELETED]

    def test_history_of_unknown_order_raises(self, order_service):
        with pytest.raises(OrderNotFound):
            order_service.get_order_history(uuid4())
