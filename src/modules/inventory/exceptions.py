"""Inventory domain exceptions."""

from __future__ import annotations

from typing import Any, Dict

from shared.domain.exceptions import DomainError, ResourceNotFound


class ProductNotFound(ResourceNotFound):
    """No inventory row exists for the referenced product."""

    def __init__(self, product_id: int) -> None:
        super().__init__("Product", "id", product_id)
        self.product_id = product_id


class InsufficientStock(DomainError):
    """Not enough available stock to reserve the requested quantity."""

    code = "INSUFFICIENT_STOCK"

    def __init__(
        self, product_id: int, requested_quantity: int, available_stock: int
    ) -> None:
        super().__init__(
            f"Insufficient stock for product {product_id}. "
            f"Requested: {requested_quantity}, Available: {available_stock}"
        )
        self.product_id = product_id
        self.requested_quantity = requested_quantity
        self.available_stock = available_stock

    def details(self) -> Dict[str, Any]:
        return {
            "product_id": self.product_id,
            "requested_quantity": self.requested_quantity,
            "available_stock": self.available_stock,
        }
