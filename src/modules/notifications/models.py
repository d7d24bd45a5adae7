"""Notification log: one row per message sent to a customer.

Rows start PENDING, move to RETRY after a failed attempt and end as SENT
or, once the attempt budget is spent, FAILED.
"""

from __future__ import annotations

from django.db import models
from django.utils import timezone

from modules.core.models import BaseModel


class NotificationType(models.TextChoices):
    EMAIL = "EMAIL", "Email"
    SMS = "SMS", "SMS"


class NotificationStatus(models.TextChoices):
    PENDING = "PENDING", "Pending"
    SENT = "SENT", "Sent"
    RETRY = "RETRY", "Retry"
    FAILED = "FAILED", "Failed"


class NotificationLog(BaseModel):
    order_id = models.UUIDField(db_index=True)
    customer_id = models.PositiveBigIntegerField()
    event_id = models.UUIDField(null=True, blank=True)
    type = models.CharField(max_length=10, choices=NotificationType.choices)
    recipient = models.CharField(max_length=255)
    subject = models.CharField(max_length=255, blank=True, default="")
    message = models.TextField()
    status = models.CharField(
        max_length=10,
        choices=NotificationStatus.choices,
        default=NotificationStatus.PENDING,
    )
    attempt_count = models.PositiveIntegerField(default=0)
    error_message = models.TextField(null=True, blank=True, default=None)  # noqa: DJ01
    sent_at = models.DateTimeField(null=True, blank=True, default=None)
    last_attempt_at = models.DateTimeField(null=True, blank=True, default=None)

    class Meta:
        db_table = "notification_logs"
        ordering = ["-created_at"]
        indexes = [
            models.Index(
                fields=["status", "created_at"],
                name="notif_status_created_idx",
            ),
        ]

    # ------------------------------------------------------------------
    # State transitions
    # ------------------------------------------------------------------

    def increment_attempt(self) -> None:
        self.attempt_count += 1
        self.last_attempt_at = timezone.now()

    def mark_as_sent(self) -> None:
        self.status = NotificationStatus.SENT
        self.sent_at = timezone.now()
        self.error_message = None

    def mark_for_retry(self, error: str) -> None:
        self.status = NotificationStatus.RETRY
        self.error_message = error

    def mark_as_failed(self, error: str) -> None:
        self.status = NotificationStatus.FAILED
        self.error_message = error

    @property
    def is_final(self) -> bool:
        return self.status in {NotificationStatus.SENT, NotificationStatus.FAILED}

    def __str__(self) -> str:
        return f"{self.type} to {self.recipient} [{self.status}]"
