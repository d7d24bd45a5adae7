from __future__ import annotations

from rest_framework import serializers

from modules.analytics.models import CustomerAnalytics, DailyMetrics, OrderAnalytics
from modules.orders.constants import OrderStatus


class OrderAnalyticsSerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderAnalytics
        fields = [
            "order_id",
            "customer_id",
            "status",
            "total_amount",
            "order_date",
            "processed_date",
            "shipped_date",
            "item_count",
            "items",
            "updated_at",
        ]
        read_only_fields = fields


class CustomerAnalyticsSerializer(serializers.ModelSerializer):
    class Meta:
        model = CustomerAnalytics
        fields = [
            "customer_id",
            "total_orders",
            "total_revenue",
            "average_order_value",
            "first_order_date",
            "last_order_date",
            "orders_unprocessed",
            "orders_processing",
            "orders_processed",
            "orders_shipped",
            "orders_cancelled",
            "updated_at",
        ]
        read_only_fields = fields


class DailyMetricsSerializer(serializers.ModelSerializer):
    class Meta:
        model = DailyMetrics
        fields = [
            "date",
            "total_orders",
            "total_revenue",
            "average_order_value",
            "orders_created",
            "orders_processed",
            "orders_shipped",
            "orders_cancelled",
        ]
        read_only_fields = fields


class SummarySerializer(serializers.Serializer):
    total_unprocessed = serializers.IntegerField()
    total_processing = serializers.IntegerField()
    total_processed = serializers.IntegerField()
    total_shipped = serializers.IntegerField()
    total_cancelled = serializers.IntegerField()
    total_revenue = serializers.DecimalField(max_digits=14, decimal_places=2)
    latest_date = serializers.DateField(required=False)
    latest_orders = serializers.IntegerField(required=False)
    latest_revenue = serializers.DecimalField(
        max_digits=14, decimal_places=2, required=False
    )
    latest_average_order_value = serializers.DecimalField(
        max_digits=12, decimal_places=2, required=False
    )


# ---------------------------------------------------------------------------
# Query parameters
# ---------------------------------------------------------------------------


class TopCustomersQuerySerializer(serializers.Serializer):
    limit = serializers.IntegerField(min_value=1, max_value=100, default=10)


class DailyMetricsQuerySerializer(serializers.Serializer):
    start_date = serializers.DateField()
    end_date = serializers.DateField()

    def validate(self, attrs):
        if attrs["start_date"] > attrs["end_date"]:
            raise serializers.ValidationError(
                {"end_date": "end_date must not be before start_date."}
            )
        return attrs


class OrderStatusPathSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=OrderStatus.choices)
