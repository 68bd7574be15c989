"""
Role capabilities for the order engine.

Roles come from the identity provider's token. Each role maps to a fixed set
of capabilities, built once at import time.
"""
from cafes.models import Cafe
from core_backend.identity import Identity, Role
from orders.events.topics import CafeStaff, OrderOwner, PublicQueue, Topic
from orders.store import coerce_uuid


class Capability:
    PLACE_ORDERS = "place_orders"
    VIEW_OWN_ORDERS = "view_own_orders"
    WATCH_PUBLIC_QUEUE = "watch_public_queue"
    WATCH_CAFE_ORDERS = "watch_cafe_orders"
    MANAGE_CAFE_ORDERS = "manage_cafe_orders"
    VIEW_CAFE_STATS = "view_cafe_stats"
    ACCESS_ALL_CAFES = "access_all_cafes"


_CUSTOMER = frozenset({
    Capability.PLACE_ORDERS,
    Capability.VIEW_OWN_ORDERS,
    Capability.WATCH_PUBLIC_QUEUE,
})

_CAFE_OWNER = _CUSTOMER | {
    Capability.WATCH_CAFE_ORDERS,
    Capability.MANAGE_CAFE_ORDERS,
    Capability.VIEW_CAFE_STATS,
}

_STAFF = _CAFE_OWNER | {Capability.ACCESS_ALL_CAFES}

ROLE_CAPABILITIES = {
    Role.ADMIN: _STAFF,
    Role.DEV: _STAFF,
    Role.MOD: _CUSTOMER | {Capability.WATCH_CAFE_ORDERS, Capability.ACCESS_ALL_CAFES},
    Role.CAFE_OWNER: _CAFE_OWNER,
    Role.USER: _CUSTOMER,
    # Applied to run a café but not approved yet: still a customer
    Role.PENDING_CAFE: _CUSTOMER,
    Role.ANONYMOUS: frozenset({Capability.WATCH_PUBLIC_QUEUE}),
}


def has_capability(role, capability) -> bool:
    return capability in ROLE_CAPABILITIES.get(role, frozenset())


def can_access_cafe(identity: Identity, cafe: Cafe, capability) -> bool:
    """Owners reach their own cafés; ACCESS_ALL_CAFES reaches any café."""
    if not has_capability(identity.role, capability):
        return False
    if has_capability(identity.role, Capability.ACCESS_ALL_CAFES):
        return True
    return cafe.is_owned_by(identity.subscriber_id)


def can_subscribe(identity: Identity, topic: Topic) -> bool:
    """
    Whether ``identity`` may join ``topic``.

    Hits the database for café topics; call it through
    ``database_sync_to_async`` from consumers.
    """
    if isinstance(topic, PublicQueue):
        cafe_pk = coerce_uuid(topic.cafe_id)
        return (
            cafe_pk is not None
            and has_capability(identity.role, Capability.WATCH_PUBLIC_QUEUE)
            and Cafe.objects.filter(pk=cafe_pk, is_active=True).exists()
        )

    if isinstance(topic, OrderOwner):
        return (
            identity.is_authenticated
            and has_capability(identity.role, Capability.VIEW_OWN_ORDERS)
            and identity.subscriber_id == topic.customer_id
        )

    if isinstance(topic, CafeStaff):
        if not identity.is_authenticated:
            return False
        cafe_pk = coerce_uuid(topic.cafe_id)
        cafe = Cafe.objects.filter(pk=cafe_pk).first() if cafe_pk else None
        return cafe is not None and can_access_cafe(
            identity, cafe, Capability.WATCH_CAFE_ORDERS
        )

    return False
