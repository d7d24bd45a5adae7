"""Analytics read models.

Denormalized projections of the order stream, maintained by the event
handlers in ``handlers.py``.  They are never written by the order module
and can be rebuilt by replaying the outbox.

- ``OrderAnalytics``: one row per order, with its lines as JSON.
- ``CustomerAnalytics``: running totals and per-status counters per
  customer.
- ``DailyMetrics``: per-day totals and lifecycle counters.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from django.db import models
from django.utils import timezone

from modules.core.models import BaseModel
from modules.orders.constants import OrderStatus

ZERO = Decimal("0.00")
CENT = Decimal("0.01")


def _average(total: Decimal, count: int) -> Decimal:
    if count <= 0:
        return ZERO
    return (total / count).quantize(CENT, rounding=ROUND_HALF_UP)


class OrderAnalytics(BaseModel):
    """Denormalized order record."""

    order_id = models.UUIDField(unique=True)
    customer_id = models.PositiveBigIntegerField(db_index=True)
    status = models.CharField(max_length=20, choices=OrderStatus.choices)
    total_amount = models.DecimalField(max_digits=12, decimal_places=2)
    order_date = models.DateTimeField(db_index=True)
    processed_date = models.DateTimeField(null=True, blank=True, default=None)
    shipped_date = models.DateTimeField(null=True, blank=True, default=None)
    item_count = models.PositiveIntegerField(default=0)
    items = models.JSONField(default=list)

    class Meta:
        db_table = "order_analytics"
        ordering = ["-order_date"]
        indexes = [
            models.Index(fields=["status"], name="order_analytics_status_idx"),
        ]

    def update_status(self, new_status: str, changed_at=None) -> None:
        """Apply *new_status*, stamping the PROCESSED / SHIPPED dates."""
        changed_at = changed_at or timezone.now()
        self.status = new_status
        if new_status == OrderStatus.PROCESSED:
            self.processed_date = changed_at
        elif new_status == OrderStatus.SHIPPED:
            self.shipped_date = changed_at

    def __str__(self) -> str:
        return f"OrderAnalytics {self.order_id} ({self.status})"


# Status -> counter column on CustomerAnalytics.
STATUS_COUNTER_FIELDS = {
    OrderStatus.UNPROCESSED: "orders_unprocessed",
    OrderStatus.PROCESSING: "orders_processing",
    OrderStatus.PROCESSED: "orders_processed",
    OrderStatus.SHIPPED: "orders_shipped",
    OrderStatus.CANCELLED: "orders_cancelled",
}


class CustomerAnalytics(BaseModel):
    """Aggregated statistics of one customer."""

    customer_id = models.PositiveBigIntegerField(unique=True)
    total_orders = models.PositiveIntegerField(default=0)
    total_revenue = models.DecimalField(max_digits=14, decimal_places=2, default=ZERO)
    average_order_value = models.DecimalField(
        max_digits=12, decimal_places=2, default=ZERO
    )
    first_order_date = models.DateTimeField(null=True, blank=True, default=None)
    last_order_date = models.DateTimeField(null=True, blank=True, default=None)

    orders_unprocessed = models.PositiveIntegerField(default=0)
    orders_processing = models.PositiveIntegerField(default=0)
    orders_processed = models.PositiveIntegerField(default=0)
    orders_shipped = models.PositiveIntegerField(default=0)
    orders_cancelled = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = "customer_analytics"
        ordering = ["-total_revenue"]

    def add_order(self, amount: Decimal, order_date) -> None:
        self.total_orders += 1
        self.total_revenue += amount
        self.average_order_value = _average(self.total_revenue, self.total_orders)
        if self.first_order_date is None or order_date < self.first_order_date:
            self.first_order_date = order_date
        if self.last_order_date is None or order_date > self.last_order_date:
            self.last_order_date = order_date

    def adjust_revenue(self, delta: Decimal) -> None:
        self.total_revenue += delta
        self.average_order_value = _average(self.total_revenue, self.total_orders)

    def increment_status_count(self, status: str) -> None:
        field = STATUS_COUNTER_FIELDS[OrderStatus(status)]
        setattr(self, field, getattr(self, field) + 1)

    def decrement_status_count(self, status: str) -> None:
        """Counters never go below zero."""
        field = STATUS_COUNTER_FIELDS[OrderStatus(status)]
        setattr(self, field, max(0, getattr(self, field) - 1))

    def __str__(self) -> str:
        return f"CustomerAnalytics {self.customer_id}"


class DailyMetrics(BaseModel):
    """Order totals and lifecycle counters of one calendar day."""

    date = models.DateField(unique=True)
    total_orders = models.PositiveIntegerField(default=0)
    total_revenue = models.DecimalField(max_digits=14, decimal_places=2, default=ZERO)
    average_order_value = models.DecimalField(
        max_digits=12, decimal_places=2, default=ZERO
    )
    orders_created = models.PositiveIntegerField(default=0)
    orders_processed = models.PositiveIntegerField(default=0)
    orders_shipped = models.PositiveIntegerField(default=0)
    orders_cancelled = models.PositiveIntegerField(default=0)

    # Only these statuses are counted per day.
    COUNTED_STATUSES = {
        OrderStatus.PROCESSED: "orders_processed",
        OrderStatus.SHIPPED: "orders_shipped",
        OrderStatus.CANCELLED: "orders_cancelled",
    }

    class Meta:
        db_table = "daily_metrics"
        ordering = ["-date"]

    def add_order(self, amount: Decimal) -> None:
        self.total_orders += 1
        self.orders_created += 1
        self.total_revenue += amount
        self.average_order_value = _average(self.total_revenue, self.total_orders)

    def adjust_revenue(self, delta: Decimal) -> None:
        self.total_revenue += delta
        self.average_order_value = _average(self.total_revenue, self.total_orders)

    def record_status(self, status: str) -> bool:
        """Bump the counter of *status*; ``False`` if it is not counted."""
        field = self.COUNTED_STATUSES.get(OrderStatus(status))
        if field is None:
            return False
        setattr(self, field, getattr(self, field) + 1)
        return True

    def __str__(self) -> str:
        return f"DailyMetrics {self.date}"
