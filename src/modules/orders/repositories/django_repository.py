"""Django ORM implementation of the Order repository.

Satisfies ``IOrderRepository`` using Django's QuerySet API.  Writes run
in the caller's ``transaction.atomic()`` block (the service defines the
unit of work), so order, lines, inventory and audit commit together.

Concurrency control on order mutations uses ``select_for_update()``
(``get_for_update``), which serializes concurrent status changes of the
same order.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional
from uuid import UUID

import structlog
from django.core.exceptions import ValidationError
from django.db.models import QuerySet

from modules.orders.constants import OrderStatus
from modules.orders.models import Order, OrderAudit, OrderLine
from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)


class OrderDjangoRepository(IOrderRepository):
    """Concrete Order repository backed by Django ORM."""

    # ------------------------------------------------------------------
    # Create / replace lines (aggregate root + children)
    # ------------------------------------------------------------------

    def create(self, customer_id: int, lines: Iterable[Dict[str, Any]]) -> Order:
        order = Order(customer_id=customer_id, status=OrderStatus.UNPROCESSED)
        order.save()
        created = self._add_lines(order, lines)

        order.calculate_total_amount(created)
        order.save(update_fields=["total_amount", "updated_at"])

        logger.info(
            "order.persisted",
            order_id=str(order.id),
            line_count=len(created),
        )
        return order

    def replace_lines(self, order: Order, lines: Iterable[Dict[str, Any]]) -> Order:
        OrderLine.objects.filter(order=order).delete()
        created = self._add_lines(order, lines)

        order.calculate_total_amount(created)
        order.save(update_fields=["total_amount", "updated_at"])
        return order

    def _add_lines(
        self, order: Order, lines: Iterable[Dict[str, Any]]
    ) -> List[OrderLine]:
        created = []
        for line_data in lines:
            line = OrderLine(
                order=order,
                product_id=line_data["product_id"],
                quantity=line_data["quantity"],
                unit_price=line_data["unit_price"],
            )
            line.save()
            created.append(line)
        return created

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get_by_id(self, id: Any) -> Optional[Order]:
        """Retrieve a live order with its lines prefetched.

        Returns ``None`` for non-existent, soft-deleted or malformed IDs.
        """
        try:
            return Order.objects.alive().prefetch_related("lines").filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_including_deleted(self, id: Any) -> Optional[Order]:
        try:
            return Order.objects.filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_for_update(self, id: Any) -> Optional[Order]:
        """Retrieve a live order with a row-level lock (SELECT FOR UPDATE).

        Must be called inside a transaction; the lock is held until it
        ends.  Returns ``None`` for non-existent or malformed IDs.
        """
        try:
            return (
                Order.objects.select_for_update()
                .alive()
                .prefetch_related("lines")
                .filter(id=id)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> QuerySet:
        """Live orders with eager-loaded lines.

        Supported filter keys: ``status``, ``customer_id`` (any Django
        lookup on ``Order`` works).
        """
        queryset = Order.objects.alive().prefetch_related("lines")
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    def list_ids_by_status(self, status: str) -> List[UUID]:
        return list(
            Order.objects.alive()
            .filter(status=status)
            .order_by("created_at")
            .values_list("id", flat=True)
        )

    # ------------------------------------------------------------------
    # Save / Delete (IRepository contract)
    # ------------------------------------------------------------------

    def save(self, entity: Order) -> Order:
        entity.save()
        logger.debug("order.saved", order_id=str(entity.id), status=entity.status)
        return entity

    def delete(self, entity: Order) -> bool:
        """Soft-delete *entity*; ``False`` if it was already deleted."""
        count, _ = entity.delete()
        if count:
            logger.info("order.soft_deleted", order_id=str(entity.id))
        return bool(count)

    # ------------------------------------------------------------------
    # Audit trail
    # ------------------------------------------------------------------

    def add_audit(
        self,
        order_id: UUID,
        field_name: str,
        old_value: Optional[str],
        new_value: Optional[str],
        changed_by: str,
    ) -> OrderAudit:
        audit = OrderAudit(
            order_id=order_id,
            field_name=field_name,
            old_value=old_value,
            new_value=new_value,
            changed_by=changed_by,
        )
        audit.save()

        logger.info(
            "order.audit_added",
            order_id=str(order_id),
            field_name=field_name,
            old_value=old_value,
            new_value=new_value,
            changed_by=changed_by,
        )
        return audit

    def list_audit(self, order_id: UUID) -> List[OrderAudit]:
        return list(
            OrderAudit.objects.filter(order_id=order_id).order_by("-changed_at", "-id")
        )
