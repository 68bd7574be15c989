"""
Data access for orders.

Every read and write the order engine makes goes through OrderStore so that
locking, not-found handling and database failure reporting live in one place.
"""
import logging
import uuid
from contextlib import contextmanager

from django.db import DatabaseError, transaction
from django.db.models import F
from django.utils import timezone

from cafes.models import Cafe, MenuItem
from core_backend.utils.pii import PIIProtection

from .exceptions import CafeNotFoundError, OrderNotFoundError, StoreError
from .models import Order, OrderItem

logger = logging.getLogger(__name__)


def coerce_uuid(value):
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError, AttributeError):
        return None


@contextmanager
def translate_store_errors(operation, **context):
    """
    Run a block in one transaction and report database failures as StoreError.

    The transaction is rolled back before the StoreError leaves the block, so
    callers never observe a partial write.
    """
    try:
        with transaction.atomic():
            yield
    except DatabaseError as e:
        logger.error(
            f"Order store failure during {operation} "
            f"({PIIProtection.scrub_pii_from_dict(context)}): {e}",
            exc_info=True,
        )
        raise StoreError(str(e), operation=operation) from e


class OrderStore:
    """Transactional reads and writes over orders and order items."""

    @staticmethod
    def get_cafe(cafe_id) -> Cafe:
        pk = coerce_uuid(cafe_id)
        if pk is None:
            raise CafeNotFoundError(cafe_id)
        try:
            return Cafe.objects.get(pk=pk)
        except Cafe.DoesNotExist:
            raise CafeNotFoundError(cafe_id)

    @staticmethod
    def lock_cafe(cafe_id) -> Cafe:
        """
        Lock the café row for the rest of the current transaction.

        Renumbering a café's queue happens under this lock, so two transitions
        for the same café cannot interleave their position writes.
        """
        pk = coerce_uuid(cafe_id)
        if pk is None:
            raise CafeNotFoundError(cafe_id)
        try:
            return Cafe.objects.select_for_update().get(pk=pk)
        except Cafe.DoesNotExist:
            raise CafeNotFoundError(cafe_id)

    @staticmethod
    def get(order_id, for_update=False) -> Order:
        pk = coerce_uuid(order_id)
        if pk is None:
            raise OrderNotFoundError(order_id)
        queryset = Order.objects.select_related("cafe")
        if for_update:
            queryset = queryset.select_for_update()
        try:
            return queryset.get(pk=pk)
        except Order.DoesNotExist:
            raise OrderNotFoundError(order_id)

    @staticmethod
    def menu_items_for_cafe(cafe, menu_item_ids):
        """Menu items of ``cafe`` keyed by id; ids from other cafés are left out."""
        pks = [pk for pk in (coerce_uuid(i) for i in menu_item_ids) if pk is not None]
        return {item.id: item for item in MenuItem.objects.filter(cafe=cafe, id__in=pks)}

    @staticmethod
    def create_with_items(cafe, order_fields, lines) -> Order:
        """
        Create an order and all of its items in one transaction.

        ``lines`` are dicts with ``menu_item``, ``quantity``, ``unit_price``
        and ``customizations``; prices are already resolved by the caller.
        """
        with translate_store_errors("create_with_items", cafe_id=str(cafe.pk)):
            order = Order.objects.create(cafe=cafe, **order_fields)
            OrderItem.objects.bulk_create(
                [
                    OrderItem(
                        order=order,
                        menu_item=line["menu_item"],
                        quantity=line["quantity"],
                        unit_price=line["unit_price"],
                        customizations=line.get("customizations") or {},
                    )
                    for line in lines
                ]
            )
        return order

    @staticmethod
    def update(order, **fields) -> Order:
        """Write the given fields and bump updated_at."""
        for name, value in fields.items():
            setattr(order, name, value)
        order.save(update_fields=[*fields.keys(), "updated_at"])
        return order

    @staticmethod
    def active_for_cafe(cafe_id):
        """ACCEPTED and IN_PROGRESS orders in queue order."""
        return Order.objects.for_cafe(cafe_id).active().order_by(
            F("queue_position").asc(nulls_last=True),
            "accepted_at",
            "created_at",
        )

    @staticmethod
    def save_positions(orders):
        now = timezone.now()
        for order in orders:
            order.updated_at = now
        Order.objects.bulk_update(orders, ["queue_position", "updated_at"])

    @staticmethod
    def _filtered(queryset, statuses=None, limit=None):
        if statuses:
            queryset = queryset.filter(status__in=list(statuses))
        queryset = queryset.with_items().order_by("-created_at")
        if limit:
            queryset = queryset[:limit]
        return list(queryset)

    @staticmethod
    def list_for_cafe(cafe_id, statuses=None, limit=None):
        return OrderStore._filtered(Order.objects.for_cafe(cafe_id), statuses, limit)

    @staticmethod
    def list_for_customer(customer_id, statuses=None, limit=None):
        return OrderStore._filtered(
            Order.objects.filter(customer_id=str(customer_id)), statuses, limit
        )
