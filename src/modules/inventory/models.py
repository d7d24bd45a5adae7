"""Inventory model: per-product available stock.

Business rules implemented:
- One row per product (``product_id`` is unique).
- ``available_stock`` never goes negative (DB check constraint + the
  sufficiency check performed under the row lock before every reservation).
- Stock is only mutated through ``reserve_stock`` / ``release_stock``.
"""

from __future__ import annotations

import structlog
from django.db import models

from modules.core.models import BaseModel

logger = structlog.get_logger(__name__)


class Inventory(BaseModel):
    """Stock counter for one catalogue product.

    ``product_id`` is the catalogue's identifier; the catalogue itself is
    owned by another service, only the name is mirrored here for display.
    """

    product_id = models.PositiveBigIntegerField(unique=True)
    product_name = models.CharField(max_length=255)
    available_stock = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = "inventory"
        ordering = ["product_id"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(available_stock__gte=0),
                name="inventory_available_stock_non_negative",
            ),
        ]

    # ------------------------------------------------------------------
    # Stock operations
    # ------------------------------------------------------------------

    def has_sufficient_stock(self, quantity: int) -> bool:
        return self.available_stock >= quantity

    def reserve_stock(self, quantity: int) -> None:
        """Decrement stock.  Callers check sufficiency under the same lock."""
        if quantity <= 0:
            raise ValueError("Reservation quantity must be positive.")
        if not self.has_sufficient_stock(quantity):
            raise ValueError(
                f"Cannot reserve {quantity} of product {self.product_id}: "
                f"only {self.available_stock} available."
            )
        self.available_stock -= quantity

    def release_stock(self, quantity: int) -> None:
        """Return previously reserved stock."""
        if quantity <= 0:
            raise ValueError("Release quantity must be positive.")
        self.available_stock += quantity

    # ------------------------------------------------------------------
    # Display
    # ------------------------------------------------------------------

    def __str__(self) -> str:
        return f"{self.product_id} - {self.product_name} ({self.available_stock})"
