"""Analytics URL configuration (mounted under ``api/v1/analytics/``)."""

from __future__ import annotations

from django.urls import path

from modules.analytics import views

urlpatterns = [
    path(
        "orders/status/<str:status>/",
        views.OrdersByStatusView.as_view(),
        name="analytics-orders-by-status",
    ),
    path(
        "orders/count/<str:status>/",
        views.OrderCountByStatusView.as_view(),
        name="analytics-order-count",
    ),
    path(
        "orders/<uuid:order_id>/",
        views.OrderAnalyticsView.as_view(),
        name="analytics-order",
    ),
    path(
        "customers/top-revenue/",
        views.TopCustomersView.as_view(),
        name="analytics-top-customers",
    ),
    path(
        "customers/<int:customer_id>/",
        views.CustomerAnalyticsView.as_view(),
        name="analytics-customer",
    ),
    path("metrics/daily/", views.DailyMetricsView.as_view(), name="analytics-daily"),
    path("metrics/recent/", views.RecentMetricsView.as_view(), name="analytics-recent"),
    path("summary/", views.SummaryView.as_view(), name="analytics-summary"),
]
