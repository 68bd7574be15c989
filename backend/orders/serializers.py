from decimal import Decimal

from rest_framework import serializers

from .models import Order, OrderItem


# ============================================================================
# INPUT
# ============================================================================


class OrderItemInputSerializer(serializers.Serializer):
    """One requested line. A missing unit_price means "use the current menu price"."""

    menu_item_id = serializers.UUIDField()
    quantity = serializers.IntegerField(min_value=1, max_value=OrderItem.MAX_QUANTITY)
    unit_price = serializers.DecimalField(
        max_digits=10,
        decimal_places=2,
        min_value=Decimal("0.01"),
        required=False,
    )
    customizations = serializers.DictField(required=False, default=dict)


class OrderCreateSerializer(serializers.Serializer):
    items = OrderItemInputSerializer(many=True, allow_empty=False)
    order_type = serializers.ChoiceField(
        choices=Order.OrderType.choices,
        default=Order.OrderType.PICKUP,
    )
    customer_name = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    customer_phone = serializers.CharField(max_length=30, required=False, allow_blank=True, default="")
    customer_email = serializers.EmailField(required=False, allow_blank=True, default="")
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class AcceptOrderSerializer(serializers.Serializer):
    estimated_minutes = serializers.IntegerField(min_value=1)


class CancelOrderSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, allow_null=True, default=None)


# ============================================================================
# OUTPUT
# ============================================================================


class OrderItemSerializer(serializers.ModelSerializer):
    menu_item_name = serializers.CharField(source="menu_item.name", read_only=True)

    class Meta:
        model = OrderItem
        fields = [
            "id",
            "menu_item",
            "menu_item_name",
            "quantity",
            "unit_price",
            "customizations",
        ]


class OrderSerializer(serializers.ModelSerializer):
    """Full order as seen by its customer and the café's staff."""

    items = OrderItemSerializer(many=True, read_only=True)
    cafe_id = serializers.UUIDField(read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "cafe_id",
            "customer_id",
            "customer_name",
            "customer_phone",
            "customer_email",
            "order_type",
            "status",
            "total_amount",
            "estimated_ready_time",
            "queue_position",
            "notes",
            "items",
            "created_at",
            "updated_at",
            "accepted_at",
            "started_at",
            "ready_at",
            "completed_at",
            "cancelled_at",
        ]
        read_only_fields = fields


class QueueEntrySerializer(serializers.ModelSerializer):
    """Staff view of a queue entry, contact details included."""

    customer_display_name = serializers.ReadOnlyField()
    item_count = serializers.IntegerField(read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "customer_display_name",
            "customer_name",
            "customer_phone",
            "customer_email",
            "status",
            "estimated_ready_time",
            "queue_position",
            "item_count",
            "created_at",
        ]
        read_only_fields = fields


class PublicQueueEntrySerializer(serializers.ModelSerializer):
    """Queue board entry for unauthenticated watchers. No contact fields."""

    customer_display_name = serializers.ReadOnlyField()
    item_count = serializers.IntegerField(read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "customer_display_name",
            "status",
            "estimated_ready_time",
            "queue_position",
            "item_count",
        ]
        read_only_fields = fields
