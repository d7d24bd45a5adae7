"""Order repository interface.

Extends ``IRepository[Order]`` with the methods the Order aggregate
needs: creation together with its lines, line replacement, locked reads,
status sweeps and the audit trail.

The Service Layer depends exclusively on this contract (DIP).
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional
from uuid import UUID

from modules.core.repositories.interfaces import IRepository, Queryable

if TYPE_CHECKING:
    from modules.orders.models import Order, OrderAudit


class IOrderRepository(IRepository["Order"]):
    """Repository contract for the Order aggregate root.

    The Order aggregate includes its OrderLine children.  Mutations must
    run inside the caller's transaction.
    """

    @abstractmethod
    def create(self, customer_id: int, lines: Iterable[Dict[str, Any]]) -> Order:
        """Create an UNPROCESSED order and its lines, total computed.

        Each line dict holds ``product_id``, ``quantity`` and ``unit_price``.
        """

    @abstractmethod
    def replace_lines(self, order: Order, lines: Iterable[Dict[str, Any]]) -> Order:
        """Swap the full line set of *order* and recompute its total."""

    @abstractmethod
    def get_by_id(self, id: Any) -> Optional[Order]:
        """Retrieve a live order with prefetched lines."""

    @abstractmethod
    def get_including_deleted(self, id: Any) -> Optional[Order]:
        """Retrieve an order whether or not it was soft-deleted."""

    @abstractmethod
    def get_for_update(self, id: Any) -> Optional[Order]:
        """Retrieve a live order holding an exclusive row lock."""

    @abstractmethod
    def list(self, filters: Optional[Dict[str, Any]] = None) -> Queryable[Order]:
        """Live orders, newest first, optionally filtered."""

    @abstractmethod
    def list_ids_by_status(self, status: str) -> List[UUID]:
        """Ids of live orders currently in *status*, oldest first."""

    @abstractmethod
    def add_audit(
        self,
        order_id: UUID,
        field_name: str,
        old_value: Optional[str],
        new_value: Optional[str],
        changed_by: str,
    ) -> OrderAudit:
        """Append one entry to the order's audit trail."""

    @abstractmethod
    def list_audit(self, order_id: UUID) -> List[OrderAudit]:
        """Audit trail of the order, newest first."""
