"""
Typed realtime topics and the events published on them.

A topic names an audience (one customer, one café's staff, one café's
public queue board) and maps to exactly one channel-layer group.
"""
import hashlib
import re
from dataclasses import dataclass
from enum import Enum
from typing import ClassVar


class OrderEvent(str, Enum):
    NEW = "order:new"
    UPDATED = "order:updated"
    QUEUE_UPDATED = "queue:updated"

    @property
    def handler_type(self) -> str:
        """Channel-layer message type; Channels dispatches ``order.new`` to ``order_new``."""
        return self.value.replace(":", ".")


_SAFE_KEY = re.compile(r"[A-Za-z0-9_.-]{1,80}")


def _group_key(value) -> str:
    """
    Group-safe form of a topic key.

    Short keys made of group-name characters are kept readable behind "_";
    any other key becomes a digest behind ".". Distinct keys always give
    distinct group names, and every name fits the 100 character layer limit.
    """
    value = str(value)
    if _SAFE_KEY.fullmatch(value):
        return f"_{value}"
    return "." + hashlib.sha256(value.encode()).hexdigest()[:32]


@dataclass(frozen=True)
class Topic:
    prefix: ClassVar[str] = ""
    kind: ClassVar[str] = ""

    @property
    def key(self) -> str:
        raise NotImplementedError

    @property
    def group_name(self) -> str:
        return f"{self.prefix}{_group_key(self.key)}"

    def __str__(self):
        return self.group_name


@dataclass(frozen=True)
class OrderOwner(Topic):
    """The customer who placed an order."""

    customer_id: str
    prefix: ClassVar[str] = "user"
    kind: ClassVar[str] = "order_owner"

    @property
    def key(self) -> str:
        return str(self.customer_id)


@dataclass(frozen=True)
class CafeStaff(Topic):
    """Staff dashboard of one café."""

    cafe_id: str
    prefix: ClassVar[str] = "cafe"
    kind: ClassVar[str] = "cafe_staff"

    @property
    def key(self) -> str:
        return str(self.cafe_id)


@dataclass(frozen=True)
class PublicQueue(Topic):
    """Public queue board of one café. Open to unauthenticated watchers."""

    cafe_id: str
    prefix: ClassVar[str] = "queue"
    kind: ClassVar[str] = "public_queue"

    @property
    def key(self) -> str:
        return str(self.cafe_id)


TOPIC_KINDS = {topic.kind: topic for topic in (OrderOwner, CafeStaff, PublicQueue)}


def topic_for(kind: str, identifier) -> Topic:
    """Build a topic from a client's ``{topic, id}`` request."""
    topic_class = TOPIC_KINDS.get(kind) if isinstance(kind, str) else None
    if topic_class is None:
        raise ValueError(f"Unknown topic {kind!r}")
    if identifier in (None, ""):
        raise ValueError(f"Topic {kind!r} requires an id")
    return topic_class(str(identifier))
