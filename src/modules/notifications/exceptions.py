"""Notification exceptions."""

from __future__ import annotations

from shared.domain.exceptions import DomainError, ResourceNotFound


class NotificationNotFound(ResourceNotFound):
    def __init__(self, notification_id) -> None:
        super().__init__("Notification", "id", notification_id)


class NotificationDeliveryFailed(DomainError):
    """A channel refused the message; the delivery task retries it."""

    code = "NOTIFICATION_DELIVERY_FAILED"
