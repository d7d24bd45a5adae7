"""Domain events primitives for the order platform.

Events are immutable dataclasses.  Every concrete event class registers
itself by name so an event read back from the outbox (a JSON payload plus
its ``event_type``) can be rebuilt into the original type.
"""

from __future__ import annotations

from contextvars import ContextVar
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, ClassVar, Dict, Type
from uuid import UUID, uuid4

from pydantic import TypeAdapter

correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="")

_EVENT_REGISTRY: Dict[str, Type["DomainEvent"]] = {}


def current_correlation_id() -> str:
    """Correlation id of the request (or task) currently being served."""
    return correlation_id_var.get() or str(uuid4())


@dataclass(frozen=True, kw_only=True)
class DomainEvent:
    """Base domain event (immutable).

    ``event_type`` is the stable wire name consumers route on;
    ``occurred_on`` is the event timestamp.
    """

    event_type: ClassVar[str] = ""

    aggregate_id: UUID
    event_id: UUID = field(default_factory=uuid4)
    occurred_on: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    correlation_id: str = field(default_factory=current_correlation_id)

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        if cls.event_type:
            _EVENT_REGISTRY[cls.event_type] = cls

    def to_payload(self) -> Dict[str, Any]:
        """JSON-safe representation, ``event_type`` included."""
        payload = _normalize_for_json(asdict(self))
        payload["event_type"] = self.event_type
        return payload

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> DomainEvent:
        data = {key: value for key, value in payload.items() if key != "event_type"}
        return TypeAdapter(cls).validate_python(data)


def event_class_for(event_type: str) -> Type[DomainEvent]:
    """Return the registered event class for *event_type*.

    Raises:
        KeyError: no event class is registered under that name.
    """
    return _EVENT_REGISTRY[event_type]


def _normalize_for_json(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (list, tuple)):
        return [_normalize_for_json(item) for item in value]
    if isinstance(value, dict):
        return {key: _normalize_for_json(val) for key, val in value.items()}
    return value
