"""Analytics API views (read-only reporting endpoints)."""

from __future__ import annotations

from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from modules.analytics.serializers import (
    CustomerAnalyticsSerializer,
    DailyMetricsQuerySerializer,
    DailyMetricsSerializer,
    OrderAnalyticsSerializer,
    OrderStatusPathSerializer,
    SummarySerializer,
    TopCustomersQuerySerializer,
)
from modules.analytics.services import build_analytics_service


class AnalyticsView(APIView):
    """Base view wiring the analytics service."""

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = build_analytics_service()

    def _status(self, status: str) -> str:
        serializer = OrderStatusPathSerializer(data={"status": status.upper()})
        serializer.is_valid(raise_exception=True)
        return serializer.validated_data["status"]


class OrderAnalyticsView(AnalyticsView):
    @extend_schema(responses={200: OrderAnalyticsSerializer})
    def get(self, request: Request, order_id) -> Response:
        """GET /api/v1/analytics/orders/{order_id}/"""
        order = self._service.get_order_analytics(order_id)
        return Response(OrderAnalyticsSerializer(order).data)


class CustomerAnalyticsView(AnalyticsView):
    @extend_schema(responses={200: CustomerAnalyticsSerializer})
    def get(self, request: Request, customer_id: int) -> Response:
        """GET /api/v1/analytics/customers/{customer_id}/"""
        customer = self._service.get_customer_analytics(customer_id)
        return Response(CustomerAnalyticsSerializer(customer).data)


class OrdersByStatusView(AnalyticsView):
    @extend_schema(responses={200: OrderAnalyticsSerializer(many=True)})
    def get(self, request: Request, status: str) -> Response:
        orders = self._service.orders_by_status(self._status(status))
        return Response(OrderAnalyticsSerializer(orders, many=True).data)


class OrderCountByStatusView(AnalyticsView):
    def get(self, request: Request, status: str) -> Response:
        status = self._status(status)
        return Response(
            {"status": status, "count": self._service.count_by_status(status)}
        )


class TopCustomersView(AnalyticsView):
    @extend_schema(
        parameters=[OpenApiParameter("limit", int, required=False)],
        responses={200: CustomerAnalyticsSerializer(many=True)},
    )
    def get(self, request: Request) -> Response:
        """GET /api/v1/analytics/customers/top-revenue/?limit=10"""
        query = TopCustomersQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        customers = self._service.top_customers_by_revenue(
            query.validated_data["limit"]
        )
        return Response(CustomerAnalyticsSerializer(customers, many=True).data)


class DailyMetricsView(AnalyticsView):
    @extend_schema(
        parameters=[
            OpenApiParameter("start_date", str, required=True),
            OpenApiParameter("end_date", str, required=True),
        ],
        responses={200: DailyMetricsSerializer(many=True)},
    )
    def get(self, request: Request) -> Response:
        """GET /api/v1/analytics/metrics/daily/?start_date=&end_date= (ISO dates)"""
        query = DailyMetricsQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        metrics = self._service.daily_metrics(
            query.validated_data["start_date"], query.validated_data["end_date"]
        )
        return Response(DailyMetricsSerializer(metrics, many=True).data)


class RecentMetricsView(AnalyticsView):
    @extend_schema(responses={200: DailyMetricsSerializer(many=True)})
    def get(self, request: Request) -> Response:
        metrics = self._service.recent_metrics()
        return Response(DailyMetricsSerializer(metrics, many=True).data)


class SummaryView(AnalyticsView):
    @extend_schema(responses={200: SummarySerializer})
    def get(self, request: Request) -> Response:
        return Response(SummarySerializer(self._service.summary()).data)
