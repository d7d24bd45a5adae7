"""Django ORM implementation of the analytics repository."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any, List, Optional

from django.core.exceptions import ValidationError
from django.db.models import Sum

from modules.analytics.models import (
    ZERO,
    CustomerAnalytics,
    DailyMetrics,
    OrderAnalytics,
)
from modules.analytics.repositories.interfaces import IAnalyticsRepository


class AnalyticsDjangoRepository(IAnalyticsRepository):
    def create_order(self, **fields: Any) -> OrderAnalytics:
        return OrderAnalytics.objects.create(**fields)

    def get_order(self, order_id: Any) -> Optional[OrderAnalytics]:
        try:
            return OrderAnalytics.objects.filter(order_id=order_id).first()
        except (ValueError, ValidationError):
            return None

    def get_order_for_update(self, order_id: Any) -> Optional[OrderAnalytics]:
        return (
            OrderAnalytics.objects.select_for_update()
            .filter(order_id=order_id)
            .first()
        )

    def list_orders_by_status(self, status: str) -> List[OrderAnalytics]:
        return list(OrderAnalytics.objects.filter(status=status).order_by("-order_date"))

    def count_orders_by_status(self, status: str) -> int:
        return OrderAnalytics.objects.filter(status=status).count()

    def get_customer(self, customer_id: int) -> Optional[CustomerAnalytics]:
        return CustomerAnalytics.objects.filter(customer_id=customer_id).first()

    def get_customer_for_update(self, customer_id: int) -> Optional[CustomerAnalytics]:
        return (
            CustomerAnalytics.objects.select_for_update()
            .filter(customer_id=customer_id)
            .first()
        )

    def get_or_create_customer_for_update(self, customer_id: int) -> CustomerAnalytics:
        customer, _ = CustomerAnalytics.objects.select_for_update().get_or_create(
            customer_id=customer_id
        )
        return customer

    def top_customers_by_revenue(self, limit: int) -> List[CustomerAnalytics]:
        return list(
            CustomerAnalytics.objects.order_by("-total_revenue", "customer_id")[:limit]
        )

    def total_revenue(self) -> Decimal:
        total = CustomerAnalytics.objects.aggregate(total=Sum("total_revenue"))["total"]
        return total if total is not None else ZERO

    def get_or_create_daily_for_update(self, day: date) -> DailyMetrics:
        metrics, _ = DailyMetrics.objects.select_for_update().get_or_create(date=day)
        return metrics

    def daily_between(self, start: date, end: date) -> List[DailyMetrics]:
        return list(
            DailyMetrics.objects.filter(date__gte=start, date__lte=end).order_by("date")
        )

    def recent_daily(self, limit: int) -> List[DailyMetrics]:
        return list(DailyMetrics.objects.order_by("-date")[:limit])

    def save(self, entity: Any) -> Any:
        entity.save()
        return entity
