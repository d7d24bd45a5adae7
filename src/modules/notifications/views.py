"""Notification API views (read-only)."""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from rest_framework.filters import OrderingFilter
from rest_framework.mixins import ListModelMixin
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from modules.notifications.filters import NotificationFilter
from modules.notifications.models import NotificationLog
from modules.notifications.serializers import NotificationLogSerializer
from modules.notifications.services import build_notification_service


class NotificationViewSet(ListModelMixin, GenericViewSet):
    queryset = NotificationLog.objects.none()
    serializer_class = NotificationLogSerializer
    filterset_class = NotificationFilter
    filter_backends = [DjangoFilterBackend, OrderingFilter]
    ordering_fields = ["created_at", "status"]
    ordering = ["-created_at"]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = build_notification_service()

    def get_queryset(self):
        return self._service.list_notifications()

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/notifications/{pk}/"""
        notification = self._service.get_notification(pk)
        return Response(NotificationLogSerializer(notification).data)
