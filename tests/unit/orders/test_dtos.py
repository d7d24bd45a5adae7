"""Unit tests for the order DTOs (pydantic v2, frozen)."""

from __future__ import annotations

from decimal import Decimal

import pytest
from pydantic import ValidationError

from modules.orders.constants import OrderStatus
from modules.orders.dtos import (
    CreateOrderDTO,
    OrderAuditDTO,
    OrderLineDTO,
    UpdateOrderDTO,
    UpdateOrderStatusDTO,
)
from modules.orders.models import OrderAudit

pytestmark = pytest.mark.unit


def _line(**overrides):
    data = {"product_id": 1, "quantity": 1, "unit_price": "10.00"}
    data.update(overrides)
    return OrderLineDTO(**data)


class TestOrderLineDTO:
    def test_valid(self):
        line = _line(quantity=3)
        assert line.unit_price == Decimal("10.00")
        assert line.quantity == 3

    @pytest.mark.parametrize(
        "overrides",
        [
            {"product_id": 0},
            {"quantity": 0},
            {"quantity": -1},
            {"unit_price": "-0.01"},
            {"unit_price": "0.005"},
        ],
    )
    def test_invalid(self, overrides):
        with pytest.raises(ValidationError):
            _line(**overrides)

    def test_free_line_is_valid(self):
        assert _line(unit_price="0").unit_price == Decimal("0")

    @pytest.mark.parametrize("price", ["2.5", "2.50", "2.500"])
    def test_price_normalized_to_cents(self, price):
        assert str(_line(unit_price=price).unit_price) == "2.50"

    def test_is_frozen(self):
        line = _line()
        with pytest.raises(ValidationError):
            line.quantity = 5


class TestCreateOrderDTO:
    def test_valid(self):
        dto = CreateOrderDTO(customer_id=1, lines=[_line(), _line(product_id=2)])
        assert len(dto.lines) == 2

    def test_requires_lines(self):
        with pytest.raises(ValidationError, match="at least one line"):
            CreateOrderDTO(customer_id=1, lines=[])

    def test_requires_positive_customer(self):
        with pytest.raises(ValidationError):
            CreateOrderDTO(customer_id=0, lines=[_line()])


class TestUpdateDTOs:
    def test_update_requires_lines(self):
        with pytest.raises(ValidationError):
            UpdateOrderDTO(lines=[])

    def test_status_must_be_known(self):
        assert UpdateOrderStatusDTO(status="SHIPPED").status == OrderStatus.SHIPPED
        with pytest.raises(ValidationError):
            UpdateOrderStatusDTO(status="LOST")


class TestOrderAuditDTO:
    def test_from_entity(self):
        audit = OrderAudit.objects.create(
            order_id="0190b0f4-0000-7000-8000-000000000001",
            field_name="STATUS",
            old_value="UNPROCESSED",
            new_value="PROCESSING",
            changed_by="alice",
        )

        dto = OrderAuditDTO.from_entity(audit)

        dumped = dto.model_dump(mode="json")
        assert dumped["order_id"] == "0190b0f4-0000-7000-8000-000000000001"
        assert dumped["old_value"] == "UNPROCESSED"
        assert dumped["new_value"] == "PROCESSING"
        assert dumped["changed_by"] == "alice"
