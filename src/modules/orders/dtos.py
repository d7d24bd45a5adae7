"""Order DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.
These are the contracts between the API layer (DRF Serializers)
and the Service layer.  DTOs are immutable (``frozen=True``).

- ``OrderLineDTO``: input for a single order line.
- ``CreateOrderDTO``: input for order creation (nested lines).
- ``UpdateOrderDTO``: input for replacing an order's lines.
- ``UpdateOrderStatusDTO``: input for a status change.
- ``OrderAuditDTO``: output for one audit trail entry.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator

from modules.orders.constants import CENT, OrderStatus

if TYPE_CHECKING:
    from modules.orders.models import OrderAudit


# ---------------------------------------------------------------------------
# Input DTOs
# ---------------------------------------------------------------------------


class OrderLineDTO(BaseModel):
    """Immutable DTO for one requested order line.

    ``unit_price`` is quoted by the caller; the order service does not own
    the product catalogue.  A product may appear on several lines, the
    quantities are reserved together.
    """

    model_config = ConfigDict(frozen=True)

    product_id: int
    quantity: int
    unit_price: Decimal

    @field_validator("product_id")
    @classmethod
    def product_id_must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Product ID must be positive.")
        return v

    @field_validator("quantity")
    @classmethod
    def quantity_must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Quantity must be at least 1.")
        return v

    @field_validator("unit_price")
    @classmethod
    def unit_price_must_be_whole_cents(cls, v: Decimal) -> Decimal:
        if v < 0:
            raise ValueError("Unit price cannot be negative.")
        if v != v.quantize(CENT):
            raise ValueError("Unit price cannot have more than 2 decimal places.")
        return v.quantize(CENT)


def _lines_must_not_be_empty(v: List[OrderLineDTO]) -> List[OrderLineDTO]:
    if not v:
        raise ValueError("Order must have at least one line.")
    return v


class CreateOrderDTO(BaseModel):
    """Immutable DTO for order creation requests."""

    model_config = ConfigDict(frozen=True)

    customer_id: int
    lines: List[OrderLineDTO]

    @field_validator("customer_id")
    @classmethod
    def customer_id_must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Customer ID must be positive.")
        return v

    @field_validator("lines")
    @classmethod
    def lines_must_not_be_empty(cls, v: List[OrderLineDTO]) -> List[OrderLineDTO]:
        return _lines_must_not_be_empty(v)


class UpdateOrderDTO(BaseModel):
    """Immutable DTO replacing the full line set of an UNPROCESSED order."""

    model_config = ConfigDict(frozen=True)

    lines: List[OrderLineDTO]

    @field_validator("lines")
    @classmethod
    def lines_must_not_be_empty(cls, v: List[OrderLineDTO]) -> List[OrderLineDTO]:
        return _lines_must_not_be_empty(v)


class UpdateOrderStatusDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: OrderStatus


# ---------------------------------------------------------------------------
# Output DTOs
# ---------------------------------------------------------------------------


class OrderAuditDTO(BaseModel):
    """Immutable DTO for one audit trail entry."""

    model_config = ConfigDict(frozen=True)

    id: UUID
    order_id: UUID
    field_name: str
    old_value: Optional[str]
    new_value: Optional[str]
    changed_at: datetime
    changed_by: str

    @classmethod
    def from_entity(cls, audit: OrderAudit) -> OrderAuditDTO:
        return cls(
            id=audit.id,
            order_id=audit.order_id,
            field_name=audit.field_name,
            old_value=audit.old_value,
            new_value=audit.new_value,
            changed_at=audit.changed_at,
            changed_by=audit.changed_by,
        )
