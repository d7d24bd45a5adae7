"""Domain error taxonomy shared by every bounded context.

Services raise these; the API layer renders them through
``modules.core.exceptions.api_exception_handler``.  ``code`` is stable
and safe to expose to clients.
"""

from __future__ import annotations

from typing import Any, Dict


class DomainError(Exception):
    """Base class for business rule violations."""

    code = "DOMAIN_ERROR"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def details(self) -> Dict[str, Any]:
        """Structured context attached to the error response."""
        return {}


class ResourceNotFound(DomainError):
    """A referenced resource does not exist (or has been soft-deleted)."""

    code = "RESOURCE_NOT_FOUND"

    def __init__(self, resource: str, field: str, value: Any) -> None:
        super().__init__(f"{resource} not found with {field}: {value}")
        self.resource = resource
        self.field = field
        self.value = value

    def details(self) -> Dict[str, Any]:
        return {"resource": self.resource, "field": self.field, "value": str(self.value)}
