"""Inventory DRF serializers (read-only)."""

from __future__ import annotations

from rest_framework import serializers

from modules.inventory.models import Inventory


class InventorySerializer(serializers.ModelSerializer):
    """Read serializer for a product's stock counter."""

    class Meta:
        model = Inventory
        fields = [
            "id",
            "product_id",
            "product_name",
            "available_stock",
            "updated_at",
        ]
        read_only_fields = fields
