"""Order domain exceptions.

Raised by the Service Layer when business rules are violated and
rendered by ``modules.core.exceptions.api_exception_handler``.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from shared.domain.exceptions import DomainError, ResourceNotFound


class OrderNotFound(ResourceNotFound):
    """The requested order does not exist or has been soft-deleted."""

    def __init__(self, order_id: Any) -> None:
        super().__init__("Order", "id", order_id)
        self.order_id = order_id


class InvalidOrderState(DomainError):
    """An illegal status transition, or a mutation the current status forbids."""

    code = "INVALID_ORDER_STATE"

    def __init__(
        self,
        current_status: str,
        target_status: Optional[str] = None,
        message: Optional[str] = None,
    ) -> None:
        if message is None:
            message = (
                f"Cannot transition order from {current_status} to {target_status}"
            )
        super().__init__(message)
        self.current_status = current_status
        self.target_status = target_status

    def details(self) -> Dict[str, Any]:
        details: Dict[str, Any] = {"current_status": str(self.current_status)}
        if self.target_status is not None:
            details["target_status"] = str(self.target_status)
        return details
