"""Order API views.

Exposes the ``OrderService`` via HTTP using DRF ViewSets.  Domain
exceptions propagate to ``api_exception_handler``, which renders them
(404 for missing orders or products, 400 for illegal state or stock).
"""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import BaseThrottle
from rest_framework.viewsets import GenericViewSet

from modules.orders.dtos import (
    CreateOrderDTO,
    OrderAuditDTO,
    OrderLineDTO,
    UpdateOrderDTO,
    UpdateOrderStatusDTO,
)
from modules.orders.filters import OrderFilter
from modules.orders.models import Order
from modules.orders.serializers import (
    CreateOrderSerializer,
    OrderSerializer,
    UpdateOrderSerializer,
    UpdateOrderStatusSerializer,
)
from modules.orders.services import build_order_service


def _line_dtos(lines: list[dict]) -> list[OrderLineDTO]:
    return [
        OrderLineDTO(
            product_id=line["product_id"],
            quantity=line["quantity"],
            unit_price=line["unit_price"],
        )
        for line in lines
    ]


class OrderViewSet(GenericViewSet):
    """ViewSet for Order operations.

    Does **not** extend ``ModelViewSet``; ORM access goes through the
    service and repository layer.
    """

    queryset = Order.objects.none()
    serializer_class = OrderSerializer
    filterset_class = OrderFilter
    ordering_fields = ["order_date", "created_at", "total_amount", "status"]
    ordering = ["-created_at", "-id"]
    filter_backends = [DjangoFilterBackend, OrderingFilter]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = build_order_service()

    def get_throttles(self) -> list[BaseThrottle]:
        """Throttle scope per action."""
        throttle_scope: str | None
        if self.action == "create":
            throttle_scope = "order_creation"
        elif self.action in {"list", "retrieve", "history"}:
            throttle_scope = "order_listing"
        else:
            throttle_scope = None
        self.throttle_scope = throttle_scope
        return super().get_throttles()

    def get_queryset(self):
        return self._service.list_orders()

    def _actor(self, request: Request) -> str:
        return request.user.get_username()

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    @extend_schema(request=CreateOrderSerializer, responses={201: OrderSerializer})
    def create(self, request: Request) -> Response:
        """POST /api/v1/orders/"""
        serializer = CreateOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        data = serializer.validated_data
        dto = CreateOrderDTO(
            customer_id=data["customer_id"],
            lines=_line_dtos(data["lines"]),
        )
        order = self._service.create_order(dto)
        return Response(OrderSerializer(order).data, status=status.HTTP_201_CREATED)

    # ------------------------------------------------------------------
    # List / Retrieve
    # ------------------------------------------------------------------

    def list(self, request: Request) -> Response:
        """GET /api/v1/orders/

        Filtering (``customer_id``, ``status``, date and total ranges) is
        handled by ``OrderFilter``, ordering by ``OrderingFilter``.
        Soft-deleted orders are never listed.  Results are paginated.
        """
        queryset = self.filter_queryset(self.get_queryset())
        page = self.paginate_queryset(queryset)
        serializer = OrderSerializer(page, many=True)
        return self.get_paginated_response(serializer.data)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/"""
        order = self._service.get_order(pk)
        return Response(OrderSerializer(order).data)

    # ------------------------------------------------------------------
    # Update lines
    # ------------------------------------------------------------------

    @extend_schema(request=UpdateOrderSerializer, responses={200: OrderSerializer})
    def update(self, request: Request, pk: str | None = None) -> Response:
        """PUT /api/v1/orders/{pk}/

        Replaces the order lines.  Only UNPROCESSED orders accept it.
        """
        serializer = UpdateOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        dto = UpdateOrderDTO(lines=_line_dtos(serializer.validated_data["lines"]))
        order = self._service.update_order(pk, dto, changed_by=self._actor(request))
        return Response(OrderSerializer(order).data)

    # ------------------------------------------------------------------
    # Status change
    # ------------------------------------------------------------------

    @extend_schema(
        request=UpdateOrderStatusSerializer, responses={200: OrderSerializer}
    )
    @action(detail=True, methods=["patch"], url_path="status")
    def change_status(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/orders/{pk}/status/"""
        serializer = UpdateOrderStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        dto = UpdateOrderStatusDTO(status=serializer.validated_data["status"])
        order = self._service.update_order_status(
            pk,
            dto.status,
            changed_by=self._actor(request),
            reason=serializer.validated_data["reason"] or None,
        )
        return Response(OrderSerializer(order).data)

    # ------------------------------------------------------------------
    # Delete
    # ------------------------------------------------------------------

    def destroy(self, request: Request, pk: str | None = None) -> Response:
        """DELETE /api/v1/orders/{pk}/ (soft delete)."""
        self._service.delete_order(pk, changed_by=self._actor(request))
        return Response(status=status.HTTP_204_NO_CONTENT)

    # ------------------------------------------------------------------
    # Audit history
    # ------------------------------------------------------------------

    @action(detail=True, methods=["get"])
    def history(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/history/ (newest first)."""
        entries = self._service.get_order_history(pk)
        return Response(
            [
                OrderAuditDTO.from_entity(entry).model_dump(mode="json")
                for entry in entries
            ]
        )
