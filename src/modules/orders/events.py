"""Domain events for the Orders bounded context.

These are the message contracts consumed by the notification and
analytics modules.  ``aggregate_id`` is the order id.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from shared.domain.events import DomainEvent


@dataclass(frozen=True)
class OrderLineSnapshot:
    product_id: int
    quantity: int
    unit_price: Decimal


@dataclass(frozen=True, kw_only=True)
class OrderCreated(DomainEvent):
    """Raised when an order is created."""

    event_type = "ORDER_CREATED"

    customer_id: int
    status: str
    total_amount: Decimal
    order_date: datetime
    lines: List[OrderLineSnapshot] = field(default_factory=list)

    @property
    def order_id(self):
        return self.aggregate_id


@dataclass(frozen=True, kw_only=True)
class OrderUpdated(DomainEvent):
    """Raised when an order's lines are replaced."""

    event_type = "ORDER_UPDATED"

    customer_id: int
    total_amount: Decimal

    @property
    def order_id(self):
        return self.aggregate_id


@dataclass(frozen=True, kw_only=True)
class OrderStatusChanged(DomainEvent):
    """Raised after every successful status transition."""

    event_type = "ORDER_STATUS_CHANGED"

    customer_id: int
    old_status: str
    new_status: str

    @property
    def order_id(self):
        return self.aggregate_id


@dataclass(frozen=True, kw_only=True)
class OrderCancelled(DomainEvent):
    """Raised, next to ``OrderStatusChanged``, when an order is cancelled."""

    event_type = "ORDER_CANCELLED"

    customer_id: int
    reason: Optional[str] = None

    @property
    def order_id(self):
        return self.aggregate_id
