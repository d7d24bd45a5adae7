from __future__ import annotations

from rest_framework import serializers

from modules.notifications.models import NotificationLog


class NotificationLogSerializer(serializers.ModelSerializer):
    class Meta:
        model = NotificationLog
        fields = [
            "id",
            "order_id",
            "customer_id",
            "type",
            "recipient",
            "subject",
            "message",
            "status",
            "attempt_count",
            "error_message",
            "sent_at",
            "last_attempt_at",
            "created_at",
        ]
        read_only_fields = fields
