"""Order, OrderLine and OrderAudit models.

Business rules implemented:
- ``total_amount`` always equals the sum of the line totals
  (``calculate_total_amount`` is called whenever the line set changes).
- OrderLine ``line_total`` is always ``quantity * unit_price`` (calculated
  on save).
- Status transitions follow the lifecycle in ``constants.py`` (enforced at
  the service layer through ``Order.can_transition_to``).
- Soft delete via ``deleted_at`` (inherited from SoftDeleteModel); the
  deleted flag is orthogonal to ``status``.
- OrderAudit rows are append-only.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable, Optional

from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from modules.core.models import BaseModel, SoftDeleteModel
from modules.orders import constants
from modules.orders.constants import CENT, SYSTEM_ACTOR, OrderStatus


class Order(SoftDeleteModel):
    """Order aggregate root.

    ``customer_id`` references a customer owned by another service, so it
    is stored as a plain identifier rather than a foreign key.  The order
    exclusively owns its lines: they are created, replaced and (on hard
    delete) removed together with it.
    """

    customer_id = models.PositiveBigIntegerField(db_index=True)
    status = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
        default=OrderStatus.UNPROCESSED,
    )
    order_date = models.DateTimeField(default=timezone.now)
    total_amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
    )

    class Meta:
        db_table = "orders"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status"], name="orders_status_idx"),
            models.Index(fields=["-created_at"], name="orders_created_idx"),
        ]

    # ------------------------------------------------------------------
    # State Machine helpers
    # ------------------------------------------------------------------

    @property
    def is_terminal(self) -> bool:
        """Return ``True`` if the order is in a terminal state."""
        return constants.is_terminal(self.status)

    def can_transition_to(self, new_status: str) -> bool:
        """Check whether transitioning to *new_status* is valid."""
        return constants.can_transition_to(self.status, new_status)

    # ------------------------------------------------------------------
    # Totals
    # ------------------------------------------------------------------

    def calculate_total_amount(
        self, lines: Optional[Iterable[OrderLine]] = None
    ) -> Decimal:
        """Recompute ``total_amount`` from *lines* (default: the persisted lines)."""
        if lines is None:
            lines = self.lines.all()
        self.total_amount = sum((line.line_total for line in lines), Decimal("0.00"))
        return self.total_amount

    # ------------------------------------------------------------------
    # Display
    # ------------------------------------------------------------------

    def __str__(self) -> str:
        return f"Order {self.id} ({self.status})"


class OrderLine(BaseModel):
    """Line item of an order.

    ``unit_price`` is supplied by the caller at order time and never
    changes afterwards; ``line_total`` is recalculated on every save.
    """

    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="lines",
    )
    product_id = models.PositiveBigIntegerField()
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    unit_price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0"))],
    )
    line_total = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        editable=False,
    )

    class Meta:
        db_table = "order_lines"
        ordering = ["created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gte=1),
                name="order_lines_quantity_positive",
            ),
            models.CheckConstraint(
                condition=models.Q(unit_price__gte=0),
                name="order_lines_unit_price_non_negative",
            ),
        ]

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def clean(self) -> None:
        super().clean()
        if self.quantity is not None and self.quantity < 1:
            raise ValidationError({"quantity": "Quantity must be at least 1."})
        if self.unit_price is not None and self.unit_price < 0:
            raise ValidationError({"unit_price": "Unit price cannot be negative."})

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def calculate_line_total(self) -> Decimal:
        self.line_total = (Decimal(self.quantity) * Decimal(self.unit_price)).quantize(
            CENT, rounding=ROUND_HALF_UP
        )
        return self.line_total

    def save(self, *args: Any, **kwargs: Any) -> None:
        self.calculate_line_total()
        update_fields = kwargs.get("update_fields")
        if update_fields is not None and "line_total" not in update_fields:
            kwargs["update_fields"] = list(update_fields) + ["line_total"]
        super().save(*args, **kwargs)

    def summary(self) -> str:
        """Compact ``product x quantity @ price`` form used in audit values."""
        return f"{self.product_id}x{self.quantity}@{self.unit_price}"

    def __str__(self) -> str:
        return f"{self.product_id} x{self.quantity} (${self.line_total})"


class OrderAudit(BaseModel):
    """Append-only, field-level change log of an order.

    One row per state-changing operation: ``ORDER_LINES`` on line
    replacement, ``STATUS`` on transitions and ``DELETED`` on soft delete.
    ``order_id`` is kept as a plain column so the trail outlives any
    physical removal of the order.  Rows are never edited or deleted.
    """

    order_id = models.UUIDField(db_index=True)
    field_name = models.CharField(max_length=50)
    old_value = models.TextField(null=True, blank=True)  # noqa: DJ01
    new_value = models.TextField(null=True, blank=True)  # noqa: DJ01
    changed_at = models.DateTimeField(default=timezone.now)
    changed_by = models.CharField(max_length=150, default=SYSTEM_ACTOR)

    class Meta:
        db_table = "order_audit"
        ordering = ["-changed_at", "-id"]
        indexes = [
            models.Index(
                fields=["order_id", "-changed_at"],
                name="order_audit_order_changed_idx",
            ),
        ]

    def save(self, *args: Any, **kwargs: Any) -> None:
        if not self._state.adding:
            raise ValidationError("Audit records are immutable.")
        super().save(*args, **kwargs)

    def delete(self, *args: Any, **kwargs: Any):
        raise ValidationError("Audit records are immutable.")

    def __str__(self) -> str:
        return f"{self.order_id} : {self.field_name} {self.old_value} -> {self.new_value}"
