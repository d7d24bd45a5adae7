"""Notification service layer.

Turns order events into notification rows and performs single delivery
attempts.  Retrying is the job of the ``notifications.send_notification``
task, which re-queues the row with exponential backoff until the attempt
budget (``NOTIFICATION_MAX_ATTEMPTS``) is spent.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional

import structlog
from django.conf import settings
from django.db import transaction

from modules.notifications.exceptions import NotificationNotFound
from modules.notifications.models import NotificationLog, NotificationType

if TYPE_CHECKING:
    from django.db.models import QuerySet

    from modules.notifications.channels import NotificationChannel
    from modules.notifications.repositories.interfaces import INotificationRepository
    from modules.orders.events import OrderCancelled, OrderCreated, OrderStatusChanged

logger = structlog.get_logger(__name__)


def customer_email(customer_id: int) -> str:
    return f"customer{customer_id}@example.com"


def customer_phone(customer_id: int) -> str:
    return f"+1234567890{customer_id}"


class NotificationService:
    """Application service for customer notifications."""

    def __init__(
        self,
        repository: INotificationRepository,
        channels: Mapping[str, NotificationChannel],
        max_attempts: Optional[int] = None,
    ) -> None:
        self._repo = repository
        self._channels = channels
        self._max_attempts = max_attempts or settings.NOTIFICATION_MAX_ATTEMPTS

    # ------------------------------------------------------------------
    # Event -> notification rows
    # ------------------------------------------------------------------

    def notify_order_created(self, event: OrderCreated) -> List[NotificationLog]:
        """Confirmation email plus a confirmation SMS."""
        return [
            self._create(
                event,
                NotificationType.EMAIL,
                recipient=customer_email(event.customer_id),
                subject=f"Order Confirmation - Order #{event.order_id}",
                message=(
                    f"Your order #{event.order_id} has been received "
                    "and is being processed."
                ),
            ),
            self._create(
                event,
                NotificationType.SMS,
                recipient=customer_phone(event.customer_id),
                message=(
                    f"Order #{event.order_id} confirmed! "
                    f"Total: ${event.total_amount:.2f}"
                ),
            ),
        ]

    def notify_status_changed(self, event: OrderStatusChanged) -> List[NotificationLog]:
        return [
            self._create(
                event,
                NotificationType.SMS,
                recipient=customer_phone(event.customer_id),
                message=(
                    f"Order #{event.order_id} status updated: "
                    f"{event.old_status} -> {event.new_status}"
                ),
            )
        ]

    def notify_order_cancelled(self, event: OrderCancelled) -> List[NotificationLog]:
        reason = f" Reason: {event.reason}" if event.reason else ""
        return [
            self._create(
                event,
                NotificationType.EMAIL,
                recipient=customer_email(event.customer_id),
                subject=f"Order Cancelled - Order #{event.order_id}",
                message=f"Your order #{event.order_id} has been cancelled.{reason}",
            )
        ]

    def _create(
        self, event: Any, type: str, recipient: str, message: str, subject: str = ""
    ) -> NotificationLog:
        notification = self._repo.create(
            order_id=event.order_id,
            customer_id=event.customer_id,
            event_id=event.event_id,
            type=type,
            recipient=recipient,
            subject=subject,
            message=message,
        )
        logger.info(
            "notification.created",
            notification_id=str(notification.id),
            order_id=str(event.order_id),
            type=type,
        )
        return notification

    # ------------------------------------------------------------------
    # Delivery
    # ------------------------------------------------------------------

    @transaction.atomic
    def deliver(self, notification_id: Any) -> NotificationLog:
        """Make one delivery attempt and record its outcome.

        The row ends SENT on success, RETRY after a failure with attempts
        left, FAILED once ``max_attempts`` attempts have failed.  Rows that
        are already SENT or FAILED are returned untouched.

        Raises:
            NotificationNotFound: no such notification.
        """
        notification = self._repo.get_for_update(notification_id)
        if notification is None:
            raise NotificationNotFound(notification_id)
        if notification.is_final:
            return notification

        notification.increment_attempt()
        log = logger.bind(
            notification_id=str(notification.id),
            order_id=str(notification.order_id),
            type=notification.type,
            attempt=notification.attempt_count,
        )

        channel = self._channels[notification.type]
        if channel.send(notification):
            notification.mark_as_sent()
            log.info("notification.sent")
        else:
            error = f"Notification failed for type: {notification.type}"
            if notification.attempt_count >= self._max_attempts:
                notification.mark_as_failed(error)
                log.error("notification.failed", max_attempts=self._max_attempts)
            else:
                notification.mark_for_retry(error)
                log.warning("notification.retry_scheduled")

        return self._repo.save(notification)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_notification(self, notification_id: Any) -> NotificationLog:
        notification = self._repo.get_by_id(notification_id)
        if notification is None:
            raise NotificationNotFound(notification_id)
        return notification

    def list_notifications(self, filters: Optional[Dict[str, Any]] = None) -> QuerySet:
        return self._repo.list(filters)

    def retry_backoff(self, attempt_count: int) -> int:
        """Seconds to wait before attempt ``attempt_count + 1``."""
        return settings.NOTIFICATION_RETRY_BACKOFF * 2 ** max(attempt_count - 1, 0)


def build_notification_service() -> NotificationService:
    from modules.notifications.channels import build_channels
    from modules.notifications.repositories.django_repository import (
        NotificationDjangoRepository,
    )

    return NotificationService(
        repository=NotificationDjangoRepository(),
        channels=build_channels(),
    )

