"""Notification repository interface.

Replaces a process-global store: the service only sees this contract,
tests can hand it any implementation.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, Optional

from modules.core.repositories.interfaces import IRepository, Queryable

if TYPE_CHECKING:
    from modules.notifications.models import NotificationLog


class INotificationRepository(IRepository["NotificationLog"]):
    @abstractmethod
    def create(self, **fields: Any) -> NotificationLog:
        """Persist a new PENDING notification."""

    @abstractmethod
    def get_for_update(self, id: Any) -> Optional[NotificationLog]:
        """Read a notification holding its row lock."""

    @abstractmethod
    def list(
        self, filters: Optional[Dict[str, Any]] = None
    ) -> Queryable[NotificationLog]:
        """Notifications, newest first, optionally filtered."""
