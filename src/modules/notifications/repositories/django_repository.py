"""Django ORM implementation of the Notification repository."""

from __future__ import annotations

from typing import Any, Dict, Optional

from django.core.exceptions import ValidationError
from django.db.models import QuerySet

from modules.notifications.models import NotificationLog
from modules.notifications.repositories.interfaces import INotificationRepository


class NotificationDjangoRepository(INotificationRepository):
    def create(self, **fields: Any) -> NotificationLog:
        return NotificationLog.objects.create(**fields)

    def get_by_id(self, id: Any) -> Optional[NotificationLog]:
        try:
            return NotificationLog.objects.filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_for_update(self, id: Any) -> Optional[NotificationLog]:
        try:
            return NotificationLog.objects.select_for_update().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> QuerySet:
        queryset = NotificationLog.objects.all()
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    def save(self, entity: NotificationLog) -> NotificationLog:
        entity.save()
        return entity

    def delete(self, entity: NotificationLog) -> bool:
        entity.delete()
        return True
