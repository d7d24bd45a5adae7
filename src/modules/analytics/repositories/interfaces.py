"""Analytics repository interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Dict, List, Optional

if TYPE_CHECKING:
    from modules.analytics.models import (
        CustomerAnalytics,
        DailyMetrics,
        OrderAnalytics,
    )


class IAnalyticsRepository(ABC):
    """Storage of the three analytics read models.

    The ``*_for_update`` readers lock the returned row for the rest of the
    caller's transaction; ``get_or_create_*`` variants insert an empty
    aggregate when none exists yet.
    """

    # Order read model

    @abstractmethod
    def create_order(self, **fields: Any) -> OrderAnalytics: ...

    @abstractmethod
    def get_order(self, order_id: Any) -> Optional[OrderAnalytics]: ...

    @abstractmethod
    def get_order_for_update(self, order_id: Any) -> Optional[OrderAnalytics]: ...

    @abstractmethod
    def list_orders_by_status(self, status: str) -> List[OrderAnalytics]: ...

    @abstractmethod
    def count_orders_by_status(self, status: str) -> int: ...

    # Customer aggregates

    @abstractmethod
    def get_customer(self, customer_id: int) -> Optional[CustomerAnalytics]: ...

    @abstractmethod
    def get_customer_for_update(
        self, customer_id: int
    ) -> Optional[CustomerAnalytics]: ...

    @abstractmethod
    def get_or_create_customer_for_update(
        self, customer_id: int
    ) -> CustomerAnalytics: ...

    @abstractmethod
    def top_customers_by_revenue(self, limit: int) -> List[CustomerAnalytics]: ...

    @abstractmethod
    def total_revenue(self) -> Decimal: ...

    # Daily aggregates

    @abstractmethod
    def get_or_create_daily_for_update(self, day: date) -> DailyMetrics: ...

    @abstractmethod
    def daily_between(self, start: date, end: date) -> List[DailyMetrics]: ...

    @abstractmethod
    def recent_daily(self, limit: int) -> List[DailyMetrics]: ...

    @abstractmethod
    def save(self, entity: Any) -> Any: ...

    def counts_by_status(self, statuses) -> Dict[str, int]:
        return {status: self.count_orders_by_status(status) for status in statuses}
