import uuid
from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import Q
from django.utils.translation import gettext_lazy as _

from cafes.models import Cafe, MenuItem
from core_backend.utils.pii import PIIProtection


class OrderQuerySet(models.QuerySet):
    def for_cafe(self, cafe_id):
        return self.filter(cafe_id=cafe_id)

    def active(self):
        """Orders that occupy a queue slot."""
        return self.filter(status__in=Order.ACTIVE_STATUSES)

    def with_items(self):
        return self.prefetch_related("items__menu_item")


class Order(models.Model):
    """
    A customer's order at one café.

    Orders move through the lifecycle in OrderService and are never
    hard-deleted. ``total_amount`` is fixed at creation; ``queue_position``
    is only set while the order is ACCEPTED or IN_PROGRESS.
    """

    class OrderStatus(models.TextChoices):
        PENDING = "PENDING", _("Pending")
        ACCEPTED = "ACCEPTED", _("Accepted")
        IN_PROGRESS = "IN_PROGRESS", _("In Progress")
        READY = "READY", _("Ready")
        COMPLETED = "COMPLETED", _("Completed")
        CANCELLED = "CANCELLED", _("Cancelled")

    class OrderType(models.TextChoices):
        PICKUP = "PICKUP", _("Pickup")
        DINE_IN = "DINE_IN", _("Dine In")
        DELIVERY = "DELIVERY", _("Delivery")

    ACTIVE_STATUSES = (OrderStatus.ACCEPTED, OrderStatus.IN_PROGRESS)
    TERMINAL_STATUSES = (OrderStatus.COMPLETED, OrderStatus.CANCELLED)

    # Largest value total_amount (max_digits=10, decimal_places=2) can hold
    MAX_TOTAL_AMOUNT = Decimal("99999999.99")

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    cafe = models.ForeignKey(
        Cafe,
        on_delete=models.PROTECT,
        related_name="orders",
    )
    customer_id = models.CharField(
        max_length=255,
        db_index=True,
        help_text=_("Subscriber id of the customer who placed the order"),
    )

    # Contact details, captured at order time for pickup call-outs
    customer_name = models.CharField(max_length=255, blank=True, default="")
    customer_phone = models.CharField(max_length=30, blank=True, default="")
    customer_email = models.EmailField(blank=True, default="")

    order_type = models.CharField(
        max_length=20,
        choices=OrderType.choices,
        default=OrderType.PICKUP,
    )
    status = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
        default=OrderStatus.PENDING,
        db_index=True,
    )
    total_amount = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=0,
        help_text=_("Sum of unit_price x quantity over all items, fixed at creation"),
    )
    estimated_ready_time = models.DateTimeField(null=True, blank=True)
    queue_position = models.PositiveIntegerField(
        null=True,
        blank=True,
        help_text=_("1-based rank in the café queue while ACCEPTED or IN_PROGRESS"),
    )
    notes = models.TextField(blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    accepted_at = models.DateTimeField(null=True, blank=True)
    started_at = models.DateTimeField(null=True, blank=True)
    ready_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)

    objects = OrderQuerySet.as_manager()

    class Meta:
        db_table = "orders"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["cafe", "status", "queue_position"], name="order_cafe_queue_idx"),
            models.Index(fields=["cafe", "created_at"], name="order_cafe_created_idx"),
            models.Index(fields=["customer_id", "created_at"], name="order_customer_created_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(total_amount__gte=0),
                name="order_total_amount_non_negative",
            ),
        ]

    def __str__(self):
        return f"Order {self.id} ({self.get_status_display()})"

    @property
    def is_active(self):
        return self.status in self.ACTIVE_STATUSES

    @property
    def is_terminal(self):
        return self.status in self.TERMINAL_STATUSES

    @property
    def customer_display_name(self):
        """Anonymized name shown on public queue boards."""
        return PIIProtection.mask_display_name(self.customer_name)


class OrderItem(models.Model):
    """One line of an order. ``unit_price`` is the menu price snapshot taken at order time."""

    MAX_QUANTITY = 1000

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name="items")
    menu_item = models.ForeignKey(
        MenuItem,
        on_delete=models.PROTECT,
        related_name="order_items",
    )
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    unit_price = models.DecimalField(max_digits=10, decimal_places=2)
    customizations = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "order_items"
        ordering = ["created_at"]
        constraints = [
            models.CheckConstraint(
                condition=Q(quantity__gte=1),
                name="order_item_quantity_positive",
            ),
            models.CheckConstraint(
                condition=Q(unit_price__gt=0),
                name="order_item_unit_price_positive",
            ),
        ]

    def __str__(self):
        return f"{self.quantity} x {self.menu_item_id} on {self.order_id}"

    @property
    def line_total(self):
        return self.unit_price * self.quantity
