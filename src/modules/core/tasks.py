"""Background tasks of the core module."""

import structlog
from celery import shared_task

from modules.core.outbox import OutboxRelay
from shared.infrastructure.bus import event_bus

logger = structlog.get_logger(__name__)


@shared_task(name="core.relay_outbox_events", ignore_result=True)
def relay_outbox_events():
    """Deliver committed domain events to the subscribed consumers."""
    result = OutboxRelay(bus=event_bus).relay_pending()
    logger.debug("relay_outbox_events.executed", **result)
    return result
