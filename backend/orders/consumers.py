import json
import logging

from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncWebsocketConsumer
from django.core.serializers.json import DjangoJSONEncoder

from core_backend.identity import Identity
from .events.topics import CafeStaff, OrderOwner, PublicQueue, topic_for
from .permissions import can_subscribe
from .store import coerce_uuid

logger = logging.getLogger(__name__)


class OrderEventsConsumer(AsyncWebsocketConsumer):
    """
    Realtime order events for customers, café staff and queue boards.

    Client messages are ``{"type": ..., "payload": {...}}``:
        subscribe / unsubscribe  payload {"topic": "order_owner" | "cafe_staff" | "public_queue", "id": ...}
        ping
    Server events are forwarded as ``{"type": "order:updated", "data": {...}}``.
    """

    async def connect(self):
        self.identity = self.scope.get("identity") or Identity.anonymous()
        self.subscriptions = {}
        await self.accept()

        if self.identity.is_authenticated:
            await self._join(OrderOwner(self.identity.subscriber_id))

        logger.info(
            f"OrderEventsConsumer: connected {self.identity.role} "
            f"{self.identity.subscriber_id or 'anonymous'}"
        )
        await self.send_message(
            "connected",
            {
                "subscriber_id": self.identity.subscriber_id,
                "role": str(self.identity.role),
                "subscriptions": sorted(self.subscriptions),
            },
        )

    async def disconnect(self, close_code):
        for group_name in list(getattr(self, "subscriptions", {})):
            await self.channel_layer.group_discard(group_name, self.channel_name)
        logger.debug(f"OrderEventsConsumer: disconnected with code {close_code}")

    async def receive(self, text_data=None, bytes_data=None):
        try:
            message = json.loads(text_data or "")
        except json.JSONDecodeError:
            await self.send_error("invalid_message", "Messages must be JSON objects.")
            return
        if not isinstance(message, dict):
            await self.send_error("invalid_message", "Messages must be JSON objects.")
            return

        message_type = message.get("type")
        payload = message.get("payload") or {}
        if not isinstance(payload, dict):
            await self.send_error("invalid_message", "Message payload must be a JSON object.")
            return

        if message_type == "ping":
            await self.send_message("pong", {})
        elif message_type == "subscribe":
            await self.subscribe(payload)
        elif message_type == "unsubscribe":
            await self.unsubscribe(payload)
        else:
            await self.send_error("unknown_type", f"Unknown message type {message_type!r}.")

    async def subscribe(self, payload):
        try:
            topic = self._canonical(topic_for(payload.get("topic"), payload.get("id")))
        except ValueError as e:
            await self.send_error("invalid_topic", str(e))
            return

        allowed = topic is not None and await database_sync_to_async(can_subscribe)(
            self.identity, topic
        )
        if not allowed:
            logger.warning(
                f"OrderEventsConsumer: {self.identity.subscriber_id or 'anonymous'} "
                f"denied {payload.get('topic')} {payload.get('id')}"
            )
            await self.send_error("forbidden", "You cannot subscribe to this topic.")
            return

        await self._join(topic)
        await self.send_message(
            "subscribed", {"topic": topic.kind, "id": topic.key}
        )

    async def unsubscribe(self, payload):
        try:
            topic = self._canonical(topic_for(payload.get("topic"), payload.get("id")))
        except ValueError as e:
            await self.send_error("invalid_topic", str(e))
            return

        if topic is not None and topic.group_name in self.subscriptions:
            await self.channel_layer.group_discard(topic.group_name, self.channel_name)
            del self.subscriptions[topic.group_name]
        await self.send_message(
            "unsubscribed", {"topic": payload.get("topic"), "id": payload.get("id")}
        )

    @staticmethod
    def _canonical(topic):
        """Café topics use the canonical UUID form so every client lands in the same group."""
        if isinstance(topic, (CafeStaff, PublicQueue)):
            cafe_pk = coerce_uuid(topic.cafe_id)
            return type(topic)(str(cafe_pk)) if cafe_pk else None
        return topic

    async def _join(self, topic):
        await self.channel_layer.group_add(topic.group_name, self.channel_name)
        self.subscriptions[topic.group_name] = topic
        logger.debug(f"OrderEventsConsumer: joined {topic.group_name}")

    async def send_message(self, message_type, data):
        await self.send(
            text_data=json.dumps({"type": message_type, "data": data}, cls=DjangoJSONEncoder)
        )

    async def send_error(self, code, message):
        await self.send_message("error", {"code": code, "message": message})

    # Channel-layer handlers

    async def order_new(self, event):
        await self.send_message(event["event"], event["data"])

    async def order_updated(self, event):
        await self.send_message(event["event"], event["data"])

    async def queue_updated(self, event):
        await self.send_message(event["event"], event["data"])
