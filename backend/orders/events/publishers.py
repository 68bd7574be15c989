import logging

from django.db import DatabaseError, transaction

from orders.exceptions import OrderError, PublishError

logger = logging.getLogger(__name__)


class OrderEventPublisher:
    """
    Publishes order events once the surrounding transaction has committed.

    Subscribers never hear about a write that was rolled back. A failed
    publish is logged and dropped; the committed order state stands.
    """

    @staticmethod
    def _after_commit(description, send):
        if transaction.get_connection().in_atomic_block:
            logger.debug(f"Deferring {description} until commit")
            transaction.on_commit(lambda: OrderEventPublisher._deliver(description, send))
        else:
            OrderEventPublisher._deliver(description, send)

    @staticmethod
    def _deliver(description, send):
        from orders.services.notification_service import OrderNotificationService

        try:
            send(OrderNotificationService())
        except PublishError as e:
            logger.warning(f"Dropped {description}: could not publish {e.event} to {e.topic}: {e.message}")
        except (OrderError, DatabaseError) as e:
            logger.warning(f"Dropped {description}: could not build payload: {e}", exc_info=True)

    @staticmethod
    def order_created(order):
        """Publish order:new to the café's staff."""
        logger.info(f"Publishing order:new for order {order.id}")
        OrderEventPublisher._after_commit(
            f"order:new for order {order.id}",
            lambda service: service.order_created(order),
        )

    @staticmethod
    def order_updated(order, previous_status):
        """Publish order:updated to the customer and the café's staff."""
        logger.info(f"Publishing order:updated for order {order.id}: {previous_status} -> {order.status}")
        OrderEventPublisher._after_commit(
            f"order:updated for order {order.id}",
            lambda service: service.order_updated(order, previous_status),
        )

    @staticmethod
    def queue_updated(cafe_id):
        """Publish queue:updated to the public board and the café's staff."""
        logger.info(f"Publishing queue:updated for cafe {cafe_id}")
        OrderEventPublisher._after_commit(
            f"queue:updated for cafe {cafe_id}",
            lambda service: service.queue_updated(cafe_id),
        )
