from django.apps import AppConfig


class AnalyticsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "modules.analytics"
    label = "analytics"

    def ready(self) -> None:
        from modules.analytics.handlers import (
            order_created_handler,
            order_status_changed_handler,
            order_updated_handler,
        )
        from modules.orders.events import (
            OrderCreated,
            OrderStatusChanged,
            OrderUpdated,
        )
        from shared.infrastructure.bus import event_bus

        event_bus.subscribe(OrderCreated, order_created_handler)
        event_bus.subscribe(OrderUpdated, order_updated_handler)
        event_bus.subscribe(OrderStatusChanged, order_status_changed_handler)
