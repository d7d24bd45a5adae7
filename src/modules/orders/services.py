"""Order service layer (Use Cases).

Orchestrates order creation, line updates, status changes, soft deletion
and the periodic status progression sweep.  Every command is atomic: the
order, its lines, the inventory counters, the audit row and the outbox
event commit together or not at all.

Business rules enforced:
- Stock for every line is validated before any row is touched, then
  reserved under row locks taken in ascending product order.
- Lines can only be replaced while the order is UNPROCESSED.
- Status transitions follow the lifecycle state machine; a transition to
  the current status is a no-op.
- Stock is released when an UNPROCESSED order is cancelled or deleted.
- Every state-changing command except creation appends an audit row.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional
from uuid import UUID

import structlog
from django.db import transaction

from modules.orders.constants import (
    AUDIT_FIELD_DELETED,
    AUDIT_FIELD_ORDER_LINES,
    AUDIT_FIELD_STATUS,
    ORDERS_TOPIC,
    PROGRESSION_STAGES,
    SYSTEM_ACTOR,
    OrderStatus,
    get_next_status,
)
from modules.orders.events import (
    OrderCancelled,
    OrderCreated,
    OrderLineSnapshot,
    OrderStatusChanged,
    OrderUpdated,
)
from modules.orders.exceptions import InvalidOrderState, OrderNotFound

if TYPE_CHECKING:
    from django.db.models import QuerySet

    from modules.inventory.services import InventoryService
    from modules.orders.dtos import CreateOrderDTO, UpdateOrderDTO
    from modules.orders.models import Order, OrderAudit, OrderLine
    from modules.orders.repositories.interfaces import IOrderRepository
    from shared.domain.bus import IEventPublisher

logger = structlog.get_logger(__name__)


class OrderService:
    """Application service for Order use-cases.

    Receives its collaborators via constructor injection (DIP).
    """

    def __init__(
        self,
        order_repository: IOrderRepository,
        inventory_service: InventoryService,
        event_publisher: IEventPublisher,
    ) -> None:
        self._order_repo = order_repository
        self._inventory = inventory_service
        self._publisher = event_publisher

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def create_order(self, dto: CreateOrderDTO) -> Order:
        """Create an UNPROCESSED order and reserve stock for its lines.

        Raises:
            ProductNotFound: a product has no inventory row.
            InsufficientStock: a product cannot cover its quantity.  No
                stock is reserved and no order is persisted.
        """
        log = logger.bind(customer_id=dto.customer_id, line_count=len(dto.lines))
        log.info("order.creation_started")

        self._inventory.reserve_lines(dto.lines)
        order = self._order_repo.create(
            customer_id=dto.customer_id,
            lines=[line.model_dump() for line in dto.lines],
        )

        self._publish(
            OrderCreated(
                aggregate_id=order.id,
                customer_id=order.customer_id,
                status=order.status,
                total_amount=order.total_amount,
                order_date=order.order_date,
                lines=_snapshot_lines(order.lines.all()),
            )
        )
        log.info(
            "order.created",
            order_id=str(order.id),
            total_amount=str(order.total_amount),
        )
        return self._reload(order)

    @transaction.atomic
    def update_order(
        self,
        order_id: UUID,
        dto: UpdateOrderDTO,
        changed_by: str = SYSTEM_ACTOR,
    ) -> Order:
        """Replace the lines of an UNPROCESSED order.

        The stock of the old lines is released before the new lines are
        validated and reserved, so the inventory ends up reflecting only
        the new lines.

        Raises:
            OrderNotFound: order does not exist or was deleted.
            InvalidOrderState: order is no longer UNPROCESSED.
            ProductNotFound / InsufficientStock: as in ``create_order``.
        """
        order = self._get_for_update(order_id)
        log = logger.bind(order_id=str(order.id), status=order.status)

        if order.status != OrderStatus.UNPROCESSED:
            log.warning("order.update_not_allowed")
            raise InvalidOrderState(
                order.status,
                message=f"Cannot update order in {order.status} status",
            )

        old_lines = list(order.lines.all())
        self._inventory.release_lines(old_lines)
        self._inventory.reserve_lines(dto.lines)
        self._order_repo.replace_lines(
            order, [line.model_dump() for line in dto.lines]
        )
        order = self._reload(order)

        self._order_repo.add_audit(
            order_id=order.id,
            field_name=AUDIT_FIELD_ORDER_LINES,
            old_value=_summarize_lines(old_lines),
            new_value=_summarize_lines(order.lines.all()),
            changed_by=changed_by,
        )
        self._publish(
            OrderUpdated(
                aggregate_id=order.id,
                customer_id=order.customer_id,
                total_amount=order.total_amount,
            )
        )
        log.info("order.updated", total_amount=str(order.total_amount))
        return order

    @transaction.atomic
    def update_order_status(
        self,
        order_id: UUID,
        new_status: str,
        changed_by: str = SYSTEM_ACTOR,
        reason: Optional[str] = None,
    ) -> Order:
        """Transition an order to *new_status*.

        Acquires a row-level lock on the order before validating the
        transition, so concurrent status changes of one order serialize.

        Raises:
            OrderNotFound: order does not exist or was deleted.
            InvalidOrderState: the lifecycle forbids the transition.
        """
        order = self._get_for_update(order_id)
        self._change_status(order, OrderStatus(new_status), changed_by, reason)
        return self._reload(order)

    @transaction.atomic
    def delete_order(self, order_id: UUID, changed_by: str = SYSTEM_ACTOR) -> None:
        """Soft-delete an order, releasing its stock if still UNPROCESSED.

        Raises:
            OrderNotFound: order does not exist or was already deleted.
        """
        order = self._get_for_update(order_id)
        log = logger.bind(order_id=str(order.id), status=order.status)

        if order.status == OrderStatus.UNPROCESSED:
            self._inventory.release_lines(order.lines.all())

        self._order_repo.delete(order)
        self._order_repo.add_audit(
            order_id=order.id,
            field_name=AUDIT_FIELD_DELETED,
            old_value="false",
            new_value="true",
            changed_by=changed_by,
        )
        log.info("order.deleted")

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_order(self, order_id: UUID) -> Order:
        """Retrieve a live order.

        Raises:
            OrderNotFound: order does not exist or was deleted.
        """
        order = self._order_repo.get_by_id(order_id)
        if order is None:
            raise OrderNotFound(order_id)
        return order

    def list_orders(self, filters: Optional[Dict[str, Any]] = None) -> QuerySet:
        """Live orders, optionally filtered by ``customer_id`` / ``status``."""
        return self._order_repo.list(filters)

    def get_order_history(self, order_id: UUID) -> List[OrderAudit]:
        """Audit trail of an order, newest first.

        Soft-deleted orders keep their history readable.

        Raises:
            OrderNotFound: no order with that id was ever created.
        """
        if self._order_repo.get_including_deleted(order_id) is None:
            raise OrderNotFound(order_id)
        return self._order_repo.list_audit(order_id)

    # ------------------------------------------------------------------
    # Scheduled sweep
    # ------------------------------------------------------------------

    def progress_order_statuses(self) -> Dict[str, int]:
        """Advance every live, non-terminal order by one lifecycle stage.

        The ids of each stage are captured before any order moves, so an
        order advances at most once per sweep.  Each transition commits on
        its own (audit + event); an order whose status changed since the
        snapshot is skipped, and a failing order is logged without
        aborting the sweep.
        """
        snapshot = {
            current: self._order_repo.list_ids_by_status(current)
            for current in PROGRESSION_STAGES
        }
        log = logger.bind(
            **{f"{status.lower()}_count": len(ids) for status, ids in snapshot.items()}
        )
        log.info("order.progression.started")

        advanced = skipped = failed = 0
        for current in PROGRESSION_STAGES:
            target = get_next_status(current)
            for order_id in snapshot[current]:
                try:
                    moved = self._advance(order_id, current, target)
                except Exception as exc:
                    failed += 1
                    log.error(
                        "order.progression.failed",
                        order_id=str(order_id),
                        current_status=current,
                        target_status=target,
                        error=str(exc),
                        exc_info=True,
                    )
                    continue
                if moved:
                    advanced += 1
                else:
                    skipped += 1

        result = {"advanced": advanced, "skipped": skipped, "failed": failed}
        log.info("order.progression.completed", **result)
        return result

    @transaction.atomic
    def _advance(self, order_id: UUID, current: str, target: str) -> bool:
        order = self._order_repo.get_for_update(order_id)
        if order is None or order.status != current:
            return False
        self._change_status(order, OrderStatus(target), SYSTEM_ACTOR, None)
        return True

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _get_for_update(self, order_id: UUID) -> Order:
        order = self._order_repo.get_for_update(order_id)
        if order is None:
            raise OrderNotFound(order_id)
        return order

    def _reload(self, order: Order) -> Order:
        """Re-fetch with prefetched lines for output."""
        return self._order_repo.get_by_id(order.id) or order

    def _change_status(
        self,
        order: Order,
        new_status: OrderStatus,
        changed_by: str,
        reason: Optional[str],
    ) -> None:
        """Apply a validated transition to a locked order."""
        old_status = OrderStatus(order.status)
        log = logger.bind(
            order_id=str(order.id),
            current_status=old_status,
            new_status=new_status,
            changed_by=changed_by,
        )

        if not order.can_transition_to(new_status):
            log.warning("order.invalid_transition")
            raise InvalidOrderState(old_status, new_status)
        if old_status == new_status:
            log.debug("order.status_unchanged")
            return

        if (
            new_status == OrderStatus.CANCELLED
            and old_status == OrderStatus.UNPROCESSED
        ):
            self._inventory.release_lines(order.lines.all())

        order.status = new_status
        self._order_repo.save(order)
        self._order_repo.add_audit(
            order_id=order.id,
            field_name=AUDIT_FIELD_STATUS,
            old_value=old_status.value,
            new_value=new_status.value,
            changed_by=changed_by,
        )

        self._publish(
            OrderStatusChanged(
                aggregate_id=order.id,
                customer_id=order.customer_id,
                old_status=old_status.value,
                new_status=new_status.value,
            )
        )
        if new_status == OrderStatus.CANCELLED:
            self._publish(
                OrderCancelled(
                    aggregate_id=order.id,
                    customer_id=order.customer_id,
                    reason=reason
                    or f"Cancelled from {old_status.value} by {changed_by}",
                )
            )
        log.info("order.status_updated")

    def _publish(self, event) -> None:
        self._publisher.publish(event, ORDERS_TOPIC)


def _snapshot_lines(lines: Iterable[OrderLine]) -> List[OrderLineSnapshot]:
    return [
        OrderLineSnapshot(
            product_id=line.product_id,
            quantity=line.quantity,
            unit_price=line.unit_price,
        )
        for line in lines
    ]


def _summarize_lines(lines: Iterable[OrderLine]) -> str:
    return ";".join(line.summary() for line in lines)


def build_order_service() -> OrderService:
    """Wire ``OrderService`` with its Django/outbox collaborators."""
    from modules.core.outbox import OutboxEventPublisher
    from modules.inventory.repositories.django_repository import (
        InventoryDjangoRepository,
    )
    from modules.inventory.services import InventoryService
    from modules.orders.repositories.django_repository import OrderDjangoRepository

    return OrderService(
        order_repository=OrderDjangoRepository(),
        inventory_service=InventoryService(
            inventory_repository=InventoryDjangoRepository()
        ),
        event_publisher=OutboxEventPublisher(),
    )
