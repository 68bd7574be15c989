import logging

from django.db.models import Count

from orders.serializers import PublicQueueEntrySerializer, QueueEntrySerializer
from orders.store import OrderStore, translate_store_errors

logger = logging.getLogger(__name__)


class QueueService:
    """
    Per-café queue projection.

    The queue is never stored on its own: it is the café's ACCEPTED and
    IN_PROGRESS orders ordered by queue_position, read fresh from the
    database on every call.
    """

    @staticmethod
    def _queue_queryset(cafe_id):
        return OrderStore.active_for_cafe(cafe_id).annotate(item_count=Count("items"))

    @staticmethod
    def get_queue(cafe_id) -> list:
        """Staff view of the queue, contact details included."""
        OrderStore.get_cafe(cafe_id)
        orders = QueueService._queue_queryset(cafe_id)
        return QueueEntrySerializer(orders, many=True).data

    @staticmethod
    def get_public_queue(cafe_id) -> list:
        """Anonymized queue for public boards: masked names, no contact details."""
        OrderStore.get_cafe(cafe_id)
        orders = QueueService._queue_queryset(cafe_id)
        return PublicQueueEntrySerializer(orders, many=True).data

    @staticmethod
    def renumber_queue(cafe_id) -> int:
        """
        Reassign dense 1..N positions to the café's active orders.

        Takes the café lock itself; returns the number of orders whose
        position changed. Running it twice in a row changes nothing the
        second time.
        """
        with translate_store_errors("renumber_queue", cafe_id=str(cafe_id)):
            OrderStore.lock_cafe(cafe_id)
            return QueueService.renumber_locked(cafe_id)

    @staticmethod
    def renumber_locked(cafe_id) -> int:
        """Renumbering pass for callers that already hold the café lock."""
        changed = []
        for rank, order in enumerate(OrderStore.active_for_cafe(cafe_id), start=1):
            if order.queue_position != rank:
                order.queue_position = rank
                changed.append(order)

        if changed:
            OrderStore.save_positions(changed)
            logger.debug(f"Renumbered {len(changed)} queue positions for cafe {cafe_id}")
        return len(changed)
