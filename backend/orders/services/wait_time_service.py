import logging
import math
from typing import Dict, Iterable

from django.conf import settings
from django.utils import timezone

from orders.models import Order
from orders.store import OrderStore

logger = logging.getLogger(__name__)


class WaitTimeService:
    """Queue length and wait estimate for a café."""

    @staticmethod
    def estimate(orders: Iterable[Order], now=None) -> Dict[str, int]:
        """
        Estimate the wait from already-loaded queue entries, in queue order.

        The newest queued order's estimated_ready_time is used when present.
        Orders accepted without an estimate fall back to the average total
        preparation time of the queue (items must be prefetched with their
        menu items).
        """
        orders = list(orders)
        if not orders:
            return {
                "queue_length": 0,
                "estimated_wait_time_minutes": 0,
                "currently_serving_position": 0,
            }

        now = now or timezone.now()
        last = orders[-1]
        if last.estimated_ready_time:
            seconds_left = (last.estimated_ready_time - now).total_seconds()
            wait = max(0, math.ceil(seconds_left / 60))
        else:
            wait = WaitTimeService._average_preparation_minutes(orders)

        serving = orders[0].queue_position
        if serving is None:
            # Active orders always carry a position after renumbering
            logger.warning("Queue head has no queue_position; reporting position 1")
            serving = 1

        return {
            "queue_length": len(orders),
            "estimated_wait_time_minutes": wait,
            "currently_serving_position": serving,
        }

    @staticmethod
    def _average_preparation_minutes(orders) -> int:
        # TODO: drop once no ACCEPTED order is left without an estimated_ready_time
        default_minutes = settings.ORDER_DEFAULT_PREPARATION_MINUTES
        totals = [
            sum(
                (item.menu_item.preparation_time or default_minutes) * item.quantity
                for item in order.items.all()
            )
            for order in orders
        ]
        return max(0, math.ceil(sum(totals) / len(totals)))

    @staticmethod
    def get_queue_info(cafe_id, now=None) -> Dict[str, int]:
        OrderStore.get_cafe(cafe_id)
        orders = OrderStore.active_for_cafe(cafe_id).prefetch_related("items__menu_item")
        return WaitTimeService.estimate(orders, now=now)
