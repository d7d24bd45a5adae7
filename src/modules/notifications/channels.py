"""Simulated delivery channels.

No real provider is wired: each channel waits the configured delay and
succeeds with a fixed probability (email 80%, SMS 85% by default).  The
random source is injectable so tests can force either outcome.
"""

from __future__ import annotations

import random
import time
from typing import Dict, Optional, Protocol

import structlog
from django.conf import settings

from modules.notifications.models import NotificationLog, NotificationType

logger = structlog.get_logger(__name__)


class NotificationChannel(Protocol):
    def send(self, notification: NotificationLog) -> bool: ...


class SimulatedChannel:
    """Channel that succeeds with probability ``success_rate``."""

    def __init__(
        self,
        name: str,
        success_rate: float,
        delay_ms: int = 0,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.name = name
        self.success_rate = success_rate
        self.delay_ms = delay_ms
        self._rng = rng or random.Random()

    def send(self, notification: NotificationLog) -> bool:
        log = logger.bind(
            channel=self.name,
            notification_id=str(notification.id),
            recipient=notification.recipient,
        )
        log.info("notification.send_attempted")
        if self.delay_ms:
            time.sleep(self.delay_ms / 1000)

        if self._rng.random() < self.success_rate:
            log.info("notification.channel_accepted")
            return True
        log.warning("notification.channel_rejected")
        return False


def build_channels(
    rng: Optional[random.Random] = None,
) -> Dict[str, NotificationChannel]:
    """Channels per notification type, configured from settings."""
    return {
        NotificationType.EMAIL.value: SimulatedChannel(
            "email",
            settings.NOTIFICATION_EMAIL_SUCCESS_RATE,
            settings.NOTIFICATION_SIMULATED_DELAY_MS,
            rng,
        ),
        NotificationType.SMS.value: SimulatedChannel(
            "sms",
            settings.NOTIFICATION_SMS_SUCCESS_RATE,
            settings.NOTIFICATION_SIMULATED_DELAY_MS,
            rng,
        ),
    }
