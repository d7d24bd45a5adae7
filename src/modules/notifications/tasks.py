"""Background tasks of the notifications module."""

import structlog
from celery import shared_task

from modules.notifications.exceptions import NotificationDeliveryFailed
from modules.notifications.models import NotificationStatus
from modules.notifications.services import build_notification_service

logger = structlog.get_logger(__name__)


@shared_task(
    bind=True,
    name="notifications.send_notification",
    ignore_result=True,
    max_retries=None,
)
def send_notification(self, notification_id: str):
    """Attempt delivery; re-queue with exponential backoff while it fails.

    The attempt budget lives on the row (``NOTIFICATION_MAX_ATTEMPTS``),
    so Celery's own retry limit is disabled.
    """
    service = build_notification_service()
    notification = service.deliver(notification_id)

    if notification.status == NotificationStatus.RETRY:
        countdown = service.retry_backoff(notification.attempt_count)
        logger.info(
            "notification.requeued",
            notification_id=notification_id,
            attempt=notification.attempt_count,
            countdown=countdown,
        )
        raise self.retry(
            exc=NotificationDeliveryFailed(notification.error_message),
            countdown=countdown,
        )
    return notification.status
