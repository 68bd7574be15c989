from datetime import timedelta
from decimal import Decimal
from django.utils import timezone
import logging

from orders.events.publishers import OrderEventPublisher
from orders.exceptions import AccessDeniedError, InvalidTransitionError, ValidationError
from orders.models import Order
from orders.serializers import AcceptOrderSerializer, CancelOrderSerializer, OrderCreateSerializer
from orders.store import OrderStore, translate_store_errors

from .queue_service import QueueService

logger = logging.getLogger(__name__)


class OrderService:
    """Core service for order lifecycle management - creating orders and moving them through the queue."""

    # Valid status transitions for order state machine
    VALID_STATUS_TRANSITIONS = {
        Order.OrderStatus.PENDING: [
            Order.OrderStatus.ACCEPTED,
            Order.OrderStatus.CANCELLED,
        ],
        Order.OrderStatus.ACCEPTED: [
            Order.OrderStatus.IN_PROGRESS,
            Order.OrderStatus.CANCELLED,
        ],
        Order.OrderStatus.IN_PROGRESS: [
            Order.OrderStatus.READY,
            Order.OrderStatus.CANCELLED,
        ],
        Order.OrderStatus.READY: [
            Order.OrderStatus.COMPLETED,
        ],
        Order.OrderStatus.COMPLETED: [],
        Order.OrderStatus.CANCELLED: [],
    }

    @staticmethod
    def _validated(serializer_class, data):
        serializer = serializer_class(data=data)
        if not serializer.is_valid():
            raise ValidationError("Invalid order data.", detail=serializer.errors)
        return serializer.validated_data

    @staticmethod
    def create_order(cafe_id, customer_id, items, order_meta=None) -> Order:
        """
        Creates a PENDING order with all of its items.

        Each line names a menu item of this café and a quantity; unit prices
        are snapshotted from the menu unless the line carries its own.
        The total is computed here and never changes afterwards.
        """
        if not customer_id:
            raise ValidationError(
                "Customer is required.", detail={"customer_id": ["This field is required."]}
            )

        data = OrderService._validated(
            OrderCreateSerializer, {**(order_meta or {}), "items": items}
        )

        with translate_store_errors("create_order", cafe_id=str(cafe_id)):
            cafe = OrderStore.get_cafe(cafe_id)
            if not cafe.is_active:
                raise ValidationError(
                    "Cafe is not accepting orders.",
                    detail={"cafe_id": [f"Cafe {cafe.name} is inactive."]},
                )

            menu = OrderStore.menu_items_for_cafe(
                cafe, [line["menu_item_id"] for line in data["items"]]
            )
            lines, errors = [], {}
            for index, line in enumerate(data["items"]):
                menu_item = menu.get(line["menu_item_id"])
                if menu_item is None:
                    errors[index] = {
                        "menu_item_id": [f"Menu item {line['menu_item_id']} does not exist at this cafe."]
                    }
                    continue
                if not menu_item.is_available:
                    errors[index] = {"menu_item_id": [f"{menu_item.name} is not available."]}
                    continue

                unit_price = line.get("unit_price") or menu_item.price
                if unit_price <= 0:
                    errors[index] = {"unit_price": ["Unit price must be greater than zero."]}
                    continue

                lines.append(
                    {
                        "menu_item": menu_item,
                        "quantity": line["quantity"],
                        "unit_price": unit_price,
                        "customizations": line.get("customizations") or {},
                    }
                )

            if errors:
                raise ValidationError("Invalid order items.", detail={"items": errors})

            total_amount = sum(
                (line["unit_price"] * line["quantity"] for line in lines), Decimal("0.00")
            )
            if total_amount > Order.MAX_TOTAL_AMOUNT:
                raise ValidationError(
                    "Invalid order items.",
                    detail={"items": [f"Order total {total_amount} exceeds {Order.MAX_TOTAL_AMOUNT}."]},
                )
            order = OrderStore.create_with_items(
                cafe,
                {
                    "customer_id": str(customer_id),
                    "customer_name": data["customer_name"],
                    "customer_phone": data["customer_phone"],
                    "customer_email": data["customer_email"],
                    "order_type": data["order_type"],
                    "notes": data["notes"],
                    "status": Order.OrderStatus.PENDING,
                    "total_amount": total_amount,
                },
                lines,
            )

        logger.info(
            f"Created order {order.id} at cafe {cafe.id} with {len(lines)} items, total {total_amount}"
        )
        OrderEventPublisher.order_created(order)
        return order

    @staticmethod
    def transition_order(order_id, new_status, params=None) -> Order:
        """
        Moves an order to ``new_status`` and applies that transition's side effects.

        params:
            ACCEPTED   {"estimated_minutes": int > 0}
            CANCELLED  {"reason": str}, optional
        Everything runs in one transaction under the café lock: other callers
        see the order and its café's queue before or after, never in between.
        """
        params = params or {}
        try:
            new_status = Order.OrderStatus(new_status)
        except ValueError:
            raise ValidationError(
                f"Unknown order status {new_status!r}.",
                detail={"status": [f"Must be one of {', '.join(Order.OrderStatus.values)}."]},
            )

        with translate_store_errors(
            "transition_order", order_id=str(order_id), new_status=new_status.value
        ):
            order = OrderStore.get(order_id)
            OrderStore.lock_cafe(order.cafe_id)
            order = OrderStore.get(order_id, for_update=True)

            previous_status = order.status
            if new_status not in OrderService.VALID_STATUS_TRANSITIONS.get(previous_status, []):
                raise InvalidTransitionError(previous_status, new_status.value)

            fields = OrderService._transition_fields(order, new_status, params)
            OrderStore.update(order, status=new_status, **fields)
            QueueService.renumber_locked(order.cafe_id)
            order.refresh_from_db(fields=["queue_position", "updated_at"])

        queue_changed = (
            previous_status in Order.ACTIVE_STATUSES or new_status in Order.ACTIVE_STATUSES
        )
        logger.info(f"Order {order.id} transitioned {previous_status} -> {new_status}")

        OrderEventPublisher.order_updated(order, previous_status)
        if queue_changed:
            OrderEventPublisher.queue_updated(order.cafe_id)
        return order

    @staticmethod
    def _transition_fields(order, new_status, params) -> dict:
        now = timezone.now()

        if new_status == Order.OrderStatus.ACCEPTED:
            data = OrderService._validated(AcceptOrderSerializer, params)
            return {
                "accepted_at": now,
                "estimated_ready_time": now + timedelta(minutes=data["estimated_minutes"]),
                "queue_position": OrderStore.active_for_cafe(order.cafe_id).count() + 1,
            }

        if new_status == Order.OrderStatus.IN_PROGRESS:
            return {"started_at": now}

        if new_status == Order.OrderStatus.READY:
            return {"ready_at": now, "queue_position": None}

        if new_status == Order.OrderStatus.COMPLETED:
            return {"completed_at": now, "queue_position": None}

        if new_status == Order.OrderStatus.CANCELLED:
            reason = (OrderService._validated(CancelOrderSerializer, params)["reason"] or "").strip()
            fields = {"cancelled_at": now, "queue_position": None}
            if reason:
                note = f"Cancellation reason: {reason}"
                fields["notes"] = f"{order.notes}\n{note}" if order.notes else note
            return fields

        return {}

    @staticmethod
    def accept_order(order_id, estimated_minutes) -> Order:
        return OrderService.transition_order(
            order_id, Order.OrderStatus.ACCEPTED, {"estimated_minutes": estimated_minutes}
        )

    @staticmethod
    def start_preparation(order_id) -> Order:
        return OrderService.transition_order(order_id, Order.OrderStatus.IN_PROGRESS)

    @staticmethod
    def mark_ready(order_id) -> Order:
        return OrderService.transition_order(order_id, Order.OrderStatus.READY)

    @staticmethod
    def complete_order(order_id) -> Order:
        return OrderService.transition_order(order_id, Order.OrderStatus.COMPLETED)

    @staticmethod
    def cancel_order(order_id, reason=None) -> Order:
        return OrderService.transition_order(
            order_id, Order.OrderStatus.CANCELLED, {"reason": reason}
        )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @staticmethod
    def _normalize_statuses(statuses):
        if not statuses:
            return None
        if isinstance(statuses, str):
            statuses = [statuses]
        unknown = [s for s in statuses if s not in Order.OrderStatus.values]
        if unknown:
            raise ValidationError(
                "Unknown order status filter.",
                detail={"status": [f"Unknown status {s!r}." for s in unknown]},
            )
        return list(statuses)

    @staticmethod
    def get_order(order_id) -> Order:
        return OrderStore.get(order_id)

    @staticmethod
    def get_customer_order(order_id, customer_id) -> Order:
        """An order as seen by a customer: only the customer who placed it may read it."""
        order = OrderStore.get(order_id)
        if order.customer_id != str(customer_id):
            logger.warning(f"Customer {customer_id} denied access to order {order.id}")
            raise AccessDeniedError("You do not have access to this order.")
        return order

    @staticmethod
    def list_cafe_orders(cafe_id, statuses=None, limit=None):
        OrderStore.get_cafe(cafe_id)
        return OrderStore.list_for_cafe(
            cafe_id, OrderService._normalize_statuses(statuses), limit
        )

    @staticmethod
    def list_customer_orders(customer_id, statuses=None, limit=None):
        return OrderStore.list_for_customer(
            customer_id, OrderService._normalize_statuses(statuses), limit
        )
