"""Analytics service layer.

Projects order events onto the read models and answers reporting
queries.  Each ``record_*`` method runs in one transaction and locks the
aggregates it touches, so concurrent consumers never lose an increment.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Dict, List

import structlog
from django.db import transaction
from django.utils import timezone

from modules.analytics.exceptions import (
    CustomerAnalyticsNotFound,
    OrderAnalyticsNotFound,
)
from modules.orders.constants import OrderStatus

if TYPE_CHECKING:
    from modules.analytics.models import (
        CustomerAnalytics,
        DailyMetrics,
        OrderAnalytics,
    )
    from modules.analytics.repositories.interfaces import IAnalyticsRepository
    from modules.orders.events import OrderCreated, OrderStatusChanged, OrderUpdated

logger = structlog.get_logger(__name__)

RECENT_METRICS_DAYS = 30

# Statuses counted in the daily metrics of the day they are reached.
DAILY_STATUSES = frozenset(
    {
        OrderStatus.PROCESSED.value,
        OrderStatus.SHIPPED.value,
        OrderStatus.CANCELLED.value,
    }
)


class AnalyticsService:
    def __init__(self, repository: IAnalyticsRepository) -> None:
        self._repo = repository

    # ------------------------------------------------------------------
    # Projections
    # ------------------------------------------------------------------

    @transaction.atomic
    def record_order_created(self, event: OrderCreated) -> OrderAnalytics:
        log = logger.bind(order_id=str(event.order_id), customer_id=event.customer_id)

        order = self._repo.create_order(
            order_id=event.order_id,
            customer_id=event.customer_id,
            status=event.status,
            total_amount=event.total_amount,
            order_date=event.order_date,
            item_count=len(event.lines),
            items=[
                {
                    "product_id": line.product_id,
                    "quantity": line.quantity,
                    "unit_price": str(line.unit_price),
                    "line_total": str(line.unit_price * line.quantity),
                }
                for line in event.lines
            ],
        )

        customer = self._repo.get_or_create_customer_for_update(event.customer_id)
        customer.add_order(event.total_amount, event.order_date)
        customer.increment_status_count(event.status)
        self._repo.save(customer)

        daily = self._repo.get_or_create_daily_for_update(
            timezone.localdate(event.order_date)
        )
        daily.add_order(event.total_amount)
        self._repo.save(daily)

        log.info("analytics.order_recorded", total_amount=str(event.total_amount))
        return order

    @transaction.atomic
    def record_order_updated(self, event: OrderUpdated) -> None:
        """Carry a new order total into the order, customer and day rows."""
        log = logger.bind(order_id=str(event.order_id))
        order = self._repo.get_order_for_update(event.order_id)
        if order is None:
            log.warning("analytics.order_missing", event_type=event.event_type)
            return

        delta = event.total_amount - order.total_amount
        order.total_amount = event.total_amount
        self._repo.save(order)
        if not delta:
            return

        customer = self._repo.get_customer_for_update(order.customer_id)
        if customer is not None:
            customer.adjust_revenue(delta)
            self._repo.save(customer)

        daily = self._repo.get_or_create_daily_for_update(
            timezone.localdate(order.order_date)
        )
        daily.adjust_revenue(delta)
        self._repo.save(daily)
        log.info("analytics.order_total_updated", delta=str(delta))

    @transaction.atomic
    def record_status_changed(self, event: OrderStatusChanged) -> None:
        log = logger.bind(
            order_id=str(event.order_id),
            old_status=event.old_status,
            new_status=event.new_status,
        )

        order = self._repo.get_order_for_update(event.order_id)
        if order is not None:
            order.update_status(event.new_status, changed_at=event.occurred_on)
            self._repo.save(order)
        else:
            log.warning("analytics.order_missing", event_type=event.event_type)

        customer = self._repo.get_customer_for_update(event.customer_id)
        if customer is not None:
            customer.decrement_status_count(event.old_status)
            customer.increment_status_count(event.new_status)
            self._repo.save(customer)

        if event.new_status in DAILY_STATUSES:
            daily = self._repo.get_or_create_daily_for_update(
                timezone.localdate(event.occurred_on)
            )
            daily.record_status(event.new_status)
            self._repo.save(daily)

        log.info("analytics.status_recorded")

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_order_analytics(self, order_id: Any) -> OrderAnalytics:
        order = self._repo.get_order(order_id)
        if order is None:
            raise OrderAnalyticsNotFound(order_id)
        return order

    def get_customer_analytics(self, customer_id: int) -> CustomerAnalytics:
        customer = self._repo.get_customer(customer_id)
        if customer is None:
            raise CustomerAnalyticsNotFound(customer_id)
        return customer

    def orders_by_status(self, status: str) -> List[OrderAnalytics]:
        return self._repo.list_orders_by_status(OrderStatus(status))

    def count_by_status(self, status: str) -> int:
        return self._repo.count_orders_by_status(OrderStatus(status))

    def top_customers_by_revenue(self, limit: int = 10) -> List[CustomerAnalytics]:
        return self._repo.top_customers_by_revenue(limit)

    def daily_metrics(self, start: date, end: date) -> List[DailyMetrics]:
        return self._repo.daily_between(start, end)

    def recent_metrics(self) -> List[DailyMetrics]:
        """Latest ``RECENT_METRICS_DAYS`` days with activity, newest first."""
        return self._repo.recent_daily(RECENT_METRICS_DAYS)

    def total_revenue(self) -> Decimal:
        return self._repo.total_revenue()

    def summary(self) -> Dict[str, Any]:
        """Order counts per status, total revenue and the latest day."""
        counts = self._repo.counts_by_status(list(OrderStatus))
        summary: Dict[str, Any] = {
            f"total_{status.lower()}": count for status, count in counts.items()
        }
        summary["total_revenue"] = self._repo.total_revenue()

        recent = self._repo.recent_daily(1)
        if recent:
            latest = recent[0]
            summary["latest_date"] = latest.date
            summary["latest_orders"] = latest.total_orders
            summary["latest_revenue"] = latest.total_revenue
            summary["latest_average_order_value"] = latest.average_order_value
        return summary


def build_analytics_service() -> AnalyticsService:
    from modules.analytics.repositories.django_repository import (
        AnalyticsDjangoRepository,
    )

    return AnalyticsService(repository=AnalyticsDjangoRepository())
