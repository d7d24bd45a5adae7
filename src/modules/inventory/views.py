"""Inventory API views.

Stock is only ever mutated by the order use cases, so the HTTP surface
is read-only: list every product's counter or fetch one by product id.
"""

from __future__ import annotations

from rest_framework.filters import OrderingFilter
from rest_framework.mixins import ListModelMixin
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from modules.inventory.models import Inventory
from modules.inventory.repositories.django_repository import InventoryDjangoRepository
from modules.inventory.serializers import InventorySerializer
from modules.inventory.services import InventoryService


class InventoryViewSet(ListModelMixin, GenericViewSet):
    """ViewSet exposing ``InventoryService`` queries."""

    queryset = Inventory.objects.all()
    serializer_class = InventorySerializer
    filter_backends = [OrderingFilter]
    ordering_fields = ["product_id", "available_stock"]
    ordering = ["product_id"]
    lookup_field = "product_id"
    lookup_value_regex = r"\d+"

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = InventoryService(
            inventory_repository=InventoryDjangoRepository()
        )

    def retrieve(self, request: Request, product_id: str | None = None) -> Response:
        """GET /api/v1/inventory/{product_id}/

        Unknown products raise ``ProductNotFound`` (404 via the API
        exception handler).
        """
        inventory = self._service.get_inventory(int(product_id))
        return Response(InventorySerializer(inventory).data)
