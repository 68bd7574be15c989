"""
Shared test fixtures for all backend tests.

This module provides reusable pytest fixtures for common test objects
like cafés, menu items, customers, orders and identity tokens.
"""
import pytest
import jwt
from decimal import Decimal
from datetime import timedelta
from django.conf import settings
from django.utils import timezone

from cafes.models import Cafe, MenuItem
from core_backend.identity import Role
from orders.models import Order, OrderItem
from orders.services import OrderService


# ============================================================================
# CAFE FIXTURES
# ============================================================================

@pytest.fixture
def cafe_owner_id():
    return "owner-corner-coffee"


@pytest.fixture
def cafe(db, cafe_owner_id):
    """Create test café (Corner Coffee)"""
    return Cafe.objects.create(
        name='Corner Coffee',
        slug='corner-coffee',
        owner_id=cafe_owner_id,
        is_active=True
    )


@pytest.fixture
def other_cafe(db):
    """Create a second café owned by someone else (Bean Bar)"""
    return Cafe.objects.create(
        name='Bean Bar',
        slug='bean-bar',
        owner_id='owner-bean-bar',
        is_active=True
    )


@pytest.fixture
def inactive_cafe(db):
    """Create inactive test café"""
    return Cafe.objects.create(
        name='Closed Cafe',
        slug='closed-cafe',
        owner_id='owner-closed',
        is_active=False
    )


# ============================================================================
# MENU FIXTURES
# ============================================================================

@pytest.fixture
def latte(cafe):
    return MenuItem.objects.create(
        cafe=cafe,
        name='Latte',
        price=Decimal('10.00'),
        preparation_time=5
    )


@pytest.fixture
def muffin(cafe):
    return MenuItem.objects.create(
        cafe=cafe,
        name='Blueberry Muffin',
        price=Decimal('5.00'),
        preparation_time=2
    )


@pytest.fixture
def cold_brew(cafe):
    """Menu item without a preparation time"""
    return MenuItem.objects.create(
        cafe=cafe,
        name='Cold Brew',
        price=Decimal('4.50'),
        preparation_time=None
    )


@pytest.fixture
def sold_out_item(cafe):
    return MenuItem.objects.create(
        cafe=cafe,
        name='Pumpkin Spice',
        price=Decimal('6.00'),
        is_available=False
    )


@pytest.fixture
def other_cafe_item(other_cafe):
    return MenuItem.objects.create(
        cafe=other_cafe,
        name='Espresso',
        price=Decimal('3.00'),
        preparation_time=1
    )


# ============================================================================
# CUSTOMER FIXTURES
# ============================================================================

@pytest.fixture
def customer_id():
    return "customer-maria"


@pytest.fixture
def other_customer_id():
    return "customer-liam"


# ============================================================================
# ORDER FIXTURES
# ============================================================================

@pytest.fixture
def order_items(latte, muffin):
    """Two lattes at 10.00 and one muffin at 5.00 (total 25.00)"""
    return [
        {'menu_item_id': str(latte.id), 'quantity': 2, 'unit_price': '10.00'},
        {'menu_item_id': str(muffin.id), 'quantity': 1, 'unit_price': '5.00'},
    ]


@pytest.fixture
def order_factory(cafe, customer_id, latte):
    """
    Create PENDING orders through the lifecycle engine.

    Usage:
        order = order_factory()
        order = order_factory(customer_name='Maria', items=[...])
    """
    def create(items=None, customer=None, target_cafe=None, **meta):
        return OrderService.create_order(
            (target_cafe or cafe).id,
            customer or customer_id,
            items or [{'menu_item_id': str(latte.id), 'quantity': 1}],
            meta,
        )
    return create


@pytest.fixture
def accepted_order_factory(order_factory):
    """Create an order and accept it with the given estimate"""
    def create(estimated_minutes=15, **kwargs):
        order = order_factory(**kwargs)
        return OrderService.accept_order(order.id, estimated_minutes)
    return create


@pytest.fixture
def legacy_accepted_order(cafe, customer_id, latte, cold_brew):
    """
    ACCEPTED order without an estimated_ready_time, written directly.

    Models orders accepted before estimates were required. Items: two
    lattes (5 min each) and one cold brew (no preparation time).
    """
    order = Order.objects.create(
        cafe=cafe,
        customer_id=customer_id,
        status=Order.OrderStatus.ACCEPTED,
        total_amount=Decimal('24.50'),
        queue_position=1,
        accepted_at=timezone.now() - timedelta(minutes=5),
    )
    OrderItem.objects.create(order=order, menu_item=latte, quantity=2, unit_price=Decimal('10.00'))
    OrderItem.objects.create(order=order, menu_item=cold_brew, quantity=1, unit_price=Decimal('4.50'))
    return order


# ============================================================================
# REALTIME FIXTURES
# ============================================================================

class RecordingChannelLayer:
    """Channel layer double that records group_send calls"""

    def __init__(self):
        self.sent = []

    async def group_send(self, group, message):
        self.sent.append((group, message))

    def events(self, event=None, group=None):
        return [
            (g, m) for g, m in self.sent
            if (event is None or m['event'] == event) and (group is None or g == group)
        ]


class FailingChannelLayer:
    """Channel layer double whose transport is down"""

    async def group_send(self, group, message):
        raise ConnectionError("redis unavailable")


@pytest.fixture
def recording_channel_layer(monkeypatch):
    layer = RecordingChannelLayer()
    monkeypatch.setattr(
        'orders.services.notification_service.get_channel_layer', lambda: layer
    )
    return layer


@pytest.fixture
def failing_channel_layer(monkeypatch):
    layer = FailingChannelLayer()
    monkeypatch.setattr(
        'orders.services.notification_service.get_channel_layer', lambda: layer
    )
    return layer


# ============================================================================
# IDENTITY FIXTURES
# ============================================================================

@pytest.fixture
def make_token():
    """
    Sign identity tokens the way the identity provider does.

    Usage:
        token = make_token('customer-maria', Role.USER)
    """
    def create(sub, role=Role.USER, expires_in=timedelta(hours=1), secret=None):
        payload = {'sub': sub, 'role': str(role), 'exp': timezone.now() + expires_in}
        return jwt.encode(
            payload,
            secret or settings.IDENTITY_TOKEN_SECRET,
            algorithm=settings.IDENTITY_TOKEN_ALGORITHMS[0],
        )
    return create
