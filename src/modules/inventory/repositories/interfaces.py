"""Inventory repository interface.

The Service Layer depends exclusively on this contract (DIP).  Locked
reads must be called inside a transaction; the lock is held until that
transaction ends.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Dict, Iterable, List, Optional

if TYPE_CHECKING:
    from modules.inventory.models import Inventory


class IInventoryRepository(ABC):
    """Repository contract for per-product inventory rows."""

    @abstractmethod
    def get_by_product_id(self, product_id: int) -> Optional[Inventory]:
        """Plain (unlocked) read of one product's inventory."""

    @abstractmethod
    def get_for_update(self, product_id: int) -> Optional[Inventory]:
        """Read one product's inventory with an exclusive row lock."""

    @abstractmethod
    def lock_many(self, product_ids: Iterable[int]) -> Dict[int, Inventory]:
        """Lock several rows in ascending ``product_id`` order.

        Acquiring locks in one canonical order means two transactions
        touching overlapping products can never deadlock each other.
        Missing products are absent from the returned mapping.
        """

    @abstractmethod
    def list(self) -> List[Inventory]:
        """All inventory rows ordered by product id."""

    @abstractmethod
    def save(self, entity: Inventory) -> Inventory:
        """Persist stock changes."""
