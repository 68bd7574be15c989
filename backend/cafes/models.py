import uuid
from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models
from django.utils.translation import gettext_lazy as _


class Cafe(models.Model):
    """
    Root entity for multi-tenancy.
    Each café is a tenant that owns a menu and receives orders.

    Applications, approval and menu management happen elsewhere; the order
    engine only needs to know that the café exists, who owns it, and whether
    it is taking orders.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(
        max_length=255,
        help_text=_("Display name for the café (e.g., Corner Coffee)")
    )
    slug = models.SlugField(
        unique=True,
        help_text=_("URL-safe identifier used in public menu links")
    )
    owner_id = models.CharField(
        max_length=255,
        db_index=True,
        help_text=_("Subscriber id of the café owner, as issued by the identity provider")
    )
    is_active = models.BooleanField(
        default=True,
        help_text=_("Inactive cafés do not accept new orders")
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'cafes'
        ordering = ['name']
        indexes = [
            models.Index(fields=['is_active'], name='cafe_active_idx'),
        ]

    def __str__(self):
        return self.name

    def is_owned_by(self, subscriber_id):
        return bool(subscriber_id) and self.owner_id == str(subscriber_id)


class MenuItem(models.Model):
    """A sellable item on a café's menu."""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    cafe = models.ForeignKey(
        Cafe,
        on_delete=models.CASCADE,
        related_name='menu_items',
    )
    name = models.CharField(max_length=200, help_text=_("Name of the menu item."))
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.01'))],
        help_text=_("Current selling price. Orders snapshot this at order time."),
    )
    preparation_time = models.PositiveIntegerField(
        null=True,
        blank=True,
        help_text=_("Minutes to prepare one unit. Used for queue wait estimates."),
    )
    is_available = models.BooleanField(
        default=True,
        help_text=_("Unavailable items cannot be ordered."),
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'menu_items'
        ordering = ['name']
        indexes = [
            models.Index(fields=['cafe', 'is_available'], name='menu_item_cafe_avail_idx'),
        ]

    def __str__(self):
        return f"{self.name} ({self.cafe_id})"
