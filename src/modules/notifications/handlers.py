"""Order event consumers of the notifications module.

Delivery from the outbox is at-least-once: each handler claims the event
id first and ignores events it has already processed.  Sending is queued
only after the claiming transaction commits.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from functools import partial
from typing import Callable, List

import structlog
from django.db import transaction

from modules.core.models import ProcessedEvent
from modules.notifications.models import NotificationLog
from modules.notifications.services import (
    NotificationService,
    build_notification_service,
)
from modules.orders.events import OrderCancelled, OrderCreated, OrderStatusChanged
from shared.domain.bus import IEventHandler
from shared.domain.events import DomainEvent

logger = structlog.get_logger(__name__)

CONSUMER = "notifications"


def _enqueue(notification_id: str) -> None:
    from modules.notifications.tasks import send_notification

    send_notification.delay(notification_id)


class _NotificationHandler(ABC):
    def __init__(
        self,
        service_factory: Callable[[], NotificationService] = build_notification_service,
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
                log.info("notification.event_duplicate")
                return
            notifications = self.create_notifications(self._service_factory(), event)
            for notification in notifications:
                transaction.on_commit(partial(_enqueue, str(notification.id)))
        log.info("notification.event_processed", count=len(notifications))

    @abstractmethod
    def create_notifications(
        self, service: NotificationService, event: DomainEvent
    ) -> List[NotificationLog]:
        """Record the notifications *event* calls for."""


class OrderCreatedHandler(_NotificationHandler, IEventHandler[OrderCreated]):
    def create_notifications(self, service, event):
        return service.notify_order_created(event)


class OrderStatusChangedHandler(
    _NotificationHandler, IEventHandler[OrderStatusChanged]
):
    def create_notifications(self, service, event):
        return service.notify_status_changed(event)


class OrderCancelledHandler(_NotificationHandler, IEventHandler[OrderCancelled]):
    def create_notifications(self, service, event):
        return service.notify_order_cancelled(event)


order_created_handler = OrderCreatedHandler()
order_status_changed_handler = OrderStatusChangedHandler()
order_cancelled_handler = OrderCancelledHandler()
