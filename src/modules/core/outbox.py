"""Transactional outbox: publisher (write side) and relay (read side).

``OutboxEventPublisher`` stores events in the caller's transaction.
``OutboxRelay`` drains committed rows to the event bus and records the
outcome of each delivery on the row itself.
"""

from __future__ import annotations

from typing import Optional

import structlog
from django.conf import settings
from django.db import transaction
from django.db.models import Q

from modules.core.models import EventStatus, OutboxEvent
from shared.domain.bus import IEventBus
from shared.domain.events import DomainEvent, event_class_for

logger = structlog.get_logger(__name__)


class OutboxEventPublisher:
    """``IEventPublisher`` backed by the ``outbox_events`` table."""

    def __init__(self, relay_on_commit: bool = True) -> None:
        self._relay_on_commit = relay_on_commit

    def publish(self, event: DomainEvent, topic: str) -> None:
        OutboxEvent.objects.create(
            event_id=event.event_id,
            event_type=event.event_type,
            aggregate_id=str(event.aggregate_id),
            correlation_id=event.correlation_id,
            payload=event.to_payload(),
            topic=topic,
        )
        logger.info(
            "outbox.event_stored",
            event_type=event.event_type,
            event_id=str(event.event_id),
            aggregate_id=str(event.aggregate_id),
            topic=topic,
        )
        if self._relay_on_commit:
            transaction.on_commit(_schedule_relay)


def _schedule_relay() -> None:
    from modules.core.tasks import relay_outbox_events

    try:
        relay_outbox_events.delay()
    except Exception:
        # The periodic relay picks the rows up if the broker is unreachable now
        logger.warning("outbox.relay_schedule_failed", exc_info=True)


class OutboxRelay:
    """Publishes committed outbox rows on the event bus (at-least-once)."""

    def __init__(
        self,
        bus: IEventBus,
        batch_size: Optional[int] = None,
        max_retries: Optional[int] = None,
    ) -> None:
        self._bus = bus
        self._batch_size = batch_size or settings.OUTBOX_RELAY_BATCH_SIZE
        self._max_retries = (
            max_retries if max_retries is not None else settings.OUTBOX_MAX_RETRIES
        )

    def relay_pending(self) -> dict[str, int]:
        """Deliver one batch of pending (or retryable failed) events.

        Rows are locked with ``SKIP LOCKED`` so concurrent relays never
        deliver the same row at the same time.  A failing row is marked
        FAILED and retried on a later run until ``max_retries``.
        """
        published = failed = 0
        with transaction.atomic():
            rows = list(
                OutboxEvent.objects.select_for_update(skip_locked=True)
                .filter(
                    Q(status=EventStatus.PENDING)
                    | Q(status=EventStatus.FAILED, retry_count__lt=self._max_retries)
                )
                .order_by("created_at")[: self._batch_size]
            )
            for row in rows:
                if self._deliver(row):
                    published += 1
                else:
                    failed += 1

        if rows:
            logger.info(
                "outbox.relay_completed",
                published=published,
                failed=failed,
            )
        return {"published": published, "failed": failed}

    def _deliver(self, row: OutboxEvent) -> bool:
        log = logger.bind(
            event_type=row.event_type,
            event_id=str(row.event_id),
            aggregate_id=row.aggregate_id,
            attempt=row.retry_count + 1,
        )
        try:
            with transaction.atomic():
                event = event_class_for(row.event_type).from_payload(row.payload)
                self._bus.publish(event)
        except Exception as exc:
            log.error("outbox.delivery_failed", error=str(exc), exc_info=True)
            row.mark_as_failed(str(exc))
            return False

        row.mark_as_published()
        log.info("outbox.delivered")
        return True
