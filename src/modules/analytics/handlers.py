"""Order event consumers of the analytics module.

Each handler claims the event id under the ``analytics`` consumer before
projecting it, so a redelivered event never counts twice.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable

import structlog
from django.db import transaction

from modules.analytics.services import AnalyticsService, build_analytics_service
from modules.core.models import ProcessedEvent
from modules.orders.events import OrderCreated, OrderStatusChanged, OrderUpdated
from shared.domain.bus import IEventHandler
from shared.domain.events import DomainEvent

logger = structlog.get_logger(__name__)

CONSUMER = "analytics"


class _AnalyticsHandler(ABC):
    def __init__(
        self,
        service_factory: Callable[[], AnalyticsService] = build_analytics_service,
    ) -> None:
        self._service_factory = service_factory

    def handle(self, event: DomainEvent) -> None:
        log = logger.bind(
            consumer=CONSUMER,
            event_type=event.event_type,
            event_id=str(event.event_id),
            order_id=str(event.aggregate_id),
        )
        with transaction.atomic():
            if not ProcessedEvent.claim(CONSUMER, event.event_id, event.event_type):
                log.info("analytics.event_duplicate")
                return
            self.project(self._service_factory(), event)
        log.debug("analytics.event_processed")

    @abstractmethod
    def project(self, service: AnalyticsService, event: DomainEvent) -> None:
        """Apply *event* to the analytics projections."""


class OrderCreatedHandler(_AnalyticsHandler, IEventHandler[OrderCreated]):
    def project(self, service, event):
        service.record_order_created(event)


class OrderUpdatedHandler(_AnalyticsHandler, IEventHandler[OrderUpdated]):
    def project(self, service, event):
        service.record_order_updated(event)


class OrderStatusChangedHandler(_AnalyticsHandler, IEventHandler[OrderStatusChanged]):
    def project(self, service, event):
        service.record_status_changed(event)


order_created_handler = OrderCreatedHandler()
order_updated_handler = OrderUpdatedHandler()
order_status_changed_handler = OrderStatusChangedHandler()
