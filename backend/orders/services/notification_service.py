import logging
from typing import Any, Dict, Iterable, Tuple

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer

from orders.events.topics import CafeStaff, OrderEvent, OrderOwner, PublicQueue, Topic
from orders.exceptions import PublishError
from orders.serializers import OrderSerializer

from .queue_service import QueueService
from .wait_time_service import WaitTimeService

logger = logging.getLogger(__name__)


class OrderNotificationService:
    """
    Fans order events out to channel-layer groups.

    Delivery is at-most-once: a subscriber that is not connected when an
    event is sent never sees it and must re-read the queue itself.
    """

    def __init__(self, channel_layer=None):
        self.channel_layer = channel_layer or get_channel_layer()

    def emit(self, topic: Topic, event: OrderEvent, data: Dict[str, Any]):
        """Send one event to one topic. Raises PublishError if the layer rejects it."""
        if not self.channel_layer:
            logger.warning("No channel layer available for order notifications")
            return

        logger.debug(f"Sending {event.value} to {topic.group_name}")
        try:
            async_to_sync(self.channel_layer.group_send)(
                topic.group_name,
                {
                    "type": event.handler_type,
                    "event": event.value,
                    "data": data,
                },
            )
        except Exception as e:
            raise PublishError(topic.group_name, event.value, str(e)) from e

    def deliver(self, deliveries: Iterable[Tuple[Topic, Dict[str, Any]]], event: OrderEvent):
        """Send each (topic, data) pair, then report the topics that failed."""
        failed = []
        for topic, data in deliveries:
            try:
                self.emit(topic, event, data)
            except PublishError as e:
                failed.append(e.topic)
        if failed:
            raise PublishError(", ".join(failed), event.value)

    def order_created(self, order):
        self.emit(
            CafeStaff(str(order.cafe_id)),
            OrderEvent.NEW,
            {"order": OrderSerializer(order).data},
        )

    def order_updated(self, order, previous_status=None):
        data = {
            "order": OrderSerializer(order).data,
            "previous_status": str(previous_status) if previous_status else None,
        }
        self.deliver(
            [(OrderOwner(order.customer_id), data), (CafeStaff(str(order.cafe_id)), data)],
            OrderEvent.UPDATED,
        )

    def queue_updated(self, cafe_id):
        """Public board gets the anonymized queue; staff get the full one."""
        info = WaitTimeService.get_queue_info(cafe_id)
        public = {
            "cafe_id": str(cafe_id),
            "queue": QueueService.get_public_queue(cafe_id),
            "info": info,
        }
        staff = {
            "cafe_id": str(cafe_id),
            "queue": QueueService.get_queue(cafe_id),
            "info": info,
        }
        self.deliver(
            [(PublicQueue(str(cafe_id)), public), (CafeStaff(str(cafe_id)), staff)],
            OrderEvent.QUEUE_UPDATED,
        )
