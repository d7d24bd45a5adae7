"""Background tasks of the orders module."""

import structlog
from celery import shared_task
from django.conf import settings
from django.core.cache import cache

from modules.orders.constants import PROGRESSION_LOCK_KEY
from modules.orders.services import build_order_service

logger = structlog.get_logger(__name__)


@shared_task(name="orders.progress_order_statuses", ignore_result=True)
def progress_order_statuses():
    """Scheduled sweep advancing every live order by one lifecycle stage.

    A cache lock keeps sweeps from overlapping when one run outlasts the
    beat interval; the lock expires by itself if the worker dies.
    """
    if not cache.add(
        PROGRESSION_LOCK_KEY, "locked", settings.ORDER_STATUS_PROGRESSION_LOCK_TIMEOUT
    ):
        logger.info("order.progression.skipped", reason="sweep_already_running")
        return None

    try:
        return build_order_service().progress_order_statuses()
    finally:
        cache.delete(PROGRESSION_LOCK_KEY)
