"""Analytics exceptions."""

from __future__ import annotations

from shared.domain.exceptions import ResourceNotFound


class OrderAnalyticsNotFound(ResourceNotFound):
    def __init__(self, order_id) -> None:
        super().__init__("OrderAnalytics", "order_id", order_id)


class CustomerAnalyticsNotFound(ResourceNotFound):
    def __init__(self, customer_id) -> None:
        super().__init__("CustomerAnalytics", "customer_id", customer_id)
