"""Django ORM implementation of the Inventory repository.

Row locks use ``select_for_update()`` (a no-op on SQLite, which
serializes writers at the database level instead).
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional

import structlog

from modules.inventory.models import Inventory
from modules.inventory.repositories.interfaces import IInventoryRepository

logger = structlog.get_logger(__name__)


class InventoryDjangoRepository(IInventoryRepository):
    """Concrete Inventory repository backed by Django ORM."""

    def get_by_product_id(self, product_id: int) -> Optional[Inventory]:
        return Inventory.objects.filter(product_id=product_id).first()

    def get_for_update(self, product_id: int) -> Optional[Inventory]:
        return (
            Inventory.objects.select_for_update().filter(product_id=product_id).first()
        )

    def lock_many(self, product_ids: Iterable[int]) -> Dict[int, Inventory]:
        ids = sorted(set(product_ids))
        rows = (
            Inventory.objects.select_for_update()
            .filter(product_id__in=ids)
            .order_by("product_id")
        )
        return {row.product_id: row for row in rows}

    def list(self) -> List[Inventory]:
        return list(Inventory.objects.all())

    def save(self, entity: Inventory) -> Inventory:
        entity.save(update_fields=["available_stock", "updated_at"])
        logger.debug(
            "inventory.saved",
            product_id=entity.product_id,
            available_stock=entity.available_stock,
        )
        return entity
