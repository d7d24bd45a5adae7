import django_filters

from modules.notifications.models import (
    NotificationLog,
    NotificationStatus,
    NotificationType,
)


class NotificationFilter(django_filters.FilterSet):
    order_id = django_filters.UUIDFilter(field_name="order_id")
    customer_id = django_filters.NumberFilter(field_name="customer_id")
    type = django_filters.ChoiceFilter(choices=NotificationType.choices)
    status = django_filters.ChoiceFilter(choices=NotificationStatus.choices)

    class Meta:
        model = NotificationLog
        fields = ["order_id", "customer_id", "type", "status"]
