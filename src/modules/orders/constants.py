"""Order domain constants.

Defines status choices and the order lifecycle state machine:

    UNPROCESSED -> PROCESSING -> PROCESSED -> SHIPPED

CANCELLED is reachable from every non-terminal status.  SHIPPED and
CANCELLED are terminal.  A transition to the current status is always
accepted (idempotent no-op).
"""

from decimal import Decimal

from django.db import models


class OrderStatus(models.TextChoices):
    UNPROCESSED = "UNPROCESSED", "Unprocessed"
    PROCESSING = "PROCESSING", "Processing"
    PROCESSED = "PROCESSED", "Processed"
    SHIPPED = "SHIPPED", "Shipped"
    CANCELLED = "CANCELLED", "Cancelled"


NEXT_STATUS: dict[str, str] = {
    OrderStatus.UNPROCESSED: OrderStatus.PROCESSING,
    OrderStatus.PROCESSING: OrderStatus.PROCESSED,
    OrderStatus.PROCESSED: OrderStatus.SHIPPED,
}

TERMINAL_STATES: set[str] = {OrderStatus.SHIPPED, OrderStatus.CANCELLED}


def is_terminal(status: str) -> bool:
    return status in TERMINAL_STATES


def get_next_status(status: str) -> OrderStatus:
    """Successor of *status* in the lifecycle; terminal states map to themselves."""
    return OrderStatus(NEXT_STATUS.get(status, status))


def can_transition_to(current: str, target: str) -> bool:
    if current == target:
        return True
    if is_terminal(current):
        return False
    if target == OrderStatus.CANCELLED:
        return True
    return NEXT_STATUS.get(current) == target


# Audit trail field names
AUDIT_FIELD_ORDER_LINES = "ORDER_LINES"
AUDIT_FIELD_STATUS = "STATUS"
AUDIT_FIELD_DELETED = "DELETED"

SYSTEM_ACTOR = "SYSTEM"

# Smallest money unit; prices and totals carry two decimal places
CENT = Decimal("0.01")

# Outbox topic for every order event
ORDERS_TOPIC = "orders"

# Statuses the sweep advances, latest stage first
PROGRESSION_STAGES: tuple[OrderStatus, ...] = tuple(
    OrderStatus(status) for status in reversed(list(NEXT_STATUS))
)

PROGRESSION_LOCK_KEY = "orders:status-progression:lock"
