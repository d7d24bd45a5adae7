"""Inventory service layer.

Stock is reserved when an order is created or its lines are replaced and
released when an UNPROCESSED order is cancelled, deleted or has its lines
replaced.

Multi-line reservations follow a validate-then-mutate protocol:

1. Every line is checked for sufficiency *before* any row is touched.
2. All affected rows are locked up-front in ascending ``product_id``
   order (no deadlocks between concurrent orders).
3. Sufficiency is re-checked under the locks, then every row is mutated.

Everything runs inside one ``transaction.atomic`` block, so a failure on
any line leaves every row unchanged.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Dict, Iterable, List, Protocol

import structlog
from django.db import transaction

from modules.inventory.exceptions import InsufficientStock, ProductNotFound
from modules.inventory.models import Inventory
from modules.inventory.repositories.interfaces import IInventoryRepository

logger = structlog.get_logger(__name__)


class StockLine(Protocol):
    product_id: int
    quantity: int


def quantities_by_product(lines: Iterable[StockLine]) -> Dict[int, int]:
    """Sum quantities per product (an order may list a product twice)."""
    totals: Dict[int, int] = defaultdict(int)
    for line in lines:
        totals[line.product_id] += line.quantity
    return dict(totals)


class InventoryService:
    """Application service for stock checks, reservation and release."""

    def __init__(self, inventory_repository: IInventoryRepository) -> None:
        self._inventory_repo = inventory_repository

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_inventory(self, product_id: int) -> Inventory:
        inventory = self._inventory_repo.get_by_product_id(product_id)
        if inventory is None:
            raise ProductNotFound(product_id)
        return inventory

    def list_inventory(self) -> List[Inventory]:
        return self._inventory_repo.list()

    def check_sufficient(self, product_id: int, quantity: int) -> bool:
        """Return whether *quantity* units of *product_id* are available.

        Raises:
            ProductNotFound: the product has no inventory row.
        """
        return self.get_inventory(product_id).has_sufficient_stock(quantity)

    def validate_lines(self, lines: Iterable[StockLine]) -> None:
        """Check sufficiency of every line without taking locks.

        Raises:
            ProductNotFound: a product has no inventory row.
            InsufficientStock: a product cannot cover its requested quantity.
        """
        for product_id, quantity in quantities_by_product(lines).items():
            if not self.check_sufficient(product_id, quantity):
                available = self._inventory_repo.get_by_product_id(product_id)
                raise InsufficientStock(
                    product_id=product_id,
                    requested_quantity=quantity,
                    available_stock=available.available_stock if available else 0,
                )

    # ------------------------------------------------------------------
    # Single-product commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def reserve(self, product_id: int, quantity: int) -> Inventory:
        """Lock, check and decrement one product's stock."""
        inventory = self._inventory_repo.get_for_update(product_id)
        if inventory is None:
            raise ProductNotFound(product_id)
        if not inventory.has_sufficient_stock(quantity):
            raise InsufficientStock(
                product_id=product_id,
                requested_quantity=quantity,
                available_stock=inventory.available_stock,
            )
        inventory.reserve_stock(quantity)
        self._inventory_repo.save(inventory)
        logger.info(
            "inventory.reserved",
            product_id=product_id,
            quantity=quantity,
            remaining=inventory.available_stock,
        )
        return inventory

    @transaction.atomic
    def release(self, product_id: int, quantity: int) -> Inventory:
        """Lock and increment one product's stock."""
        inventory = self._inventory_repo.get_for_update(product_id)
        if inventory is None:
            raise ProductNotFound(product_id)
        inventory.release_stock(quantity)
        self._inventory_repo.save(inventory)
        logger.info(
            "inventory.released",
            product_id=product_id,
            quantity=quantity,
            restored_stock=inventory.available_stock,
        )
        return inventory

    # ------------------------------------------------------------------
    # Multi-line commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def reserve_lines(self, lines: Iterable[StockLine]) -> None:
        """Reserve stock for every line, all-or-nothing.

        Raises:
            ProductNotFound: a product has no inventory row.
            InsufficientStock: a product cannot cover its requested quantity
                (checked again under lock, so a concurrent reservation that
                won the race is detected here).
        """
        requested = quantities_by_product(lines)
        self.validate_lines(_as_lines(requested))

        locked = self._inventory_repo.lock_many(requested)
        for product_id, quantity in sorted(requested.items()):
            inventory = locked.get(product_id)
            if inventory is None:
                raise ProductNotFound(product_id)
            if not inventory.has_sufficient_stock(quantity):
                logger.warning(
                    "inventory.reservation_race_lost",
                    product_id=product_id,
                    requested=quantity,
                    available=inventory.available_stock,
                )
                raise InsufficientStock(
                    product_id=product_id,
                    requested_quantity=quantity,
                    available_stock=inventory.available_stock,
                )

        for product_id, quantity in sorted(requested.items()):
            inventory = locked[product_id]
            inventory.reserve_stock(quantity)
            self._inventory_repo.save(inventory)
            logger.info(
                "inventory.reserved",
                product_id=product_id,
                quantity=quantity,
                remaining=inventory.available_stock,
            )

    @transaction.atomic
    def release_lines(self, lines: Iterable[StockLine]) -> None:
        """Return the stock of every line, all-or-nothing."""
        released = quantities_by_product(lines)
        locked = self._inventory_repo.lock_many(released)
        for product_id, quantity in sorted(released.items()):
            inventory = locked.get(product_id)
            if inventory is None:
                raise ProductNotFound(product_id)
            inventory.release_stock(quantity)
            self._inventory_repo.save(inventory)
            logger.info(
                "inventory.released",
                product_id=product_id,
                quantity=quantity,
                restored_stock=inventory.available_stock,
            )


class _Line:
    __slots__ = ("product_id", "quantity")

    def __init__(self, product_id: int, quantity: int) -> None:
        self.product_id = product_id
        self.quantity = quantity


def _as_lines(quantities: Dict[int, int]) -> List[_Line]:
    return [_Line(product_id, quantity) for product_id, quantity in quantities.items()]
