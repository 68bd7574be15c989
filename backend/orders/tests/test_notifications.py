"""
Realtime Notification Tests

Events go out only after the transaction commits, reach the right
audiences, and a failing transport never fails the order operation.
"""
import hashlib
import logging
import pytest

from orders.events.topics import CafeStaff, OrderEvent, OrderOwner, PublicQueue, topic_for
from orders.exceptions import PublishError
from orders.models import Order
from orders.services import OrderNotificationService, OrderService


class TestTopics:
    """Typed topics and their channel-layer groups"""

    def test_group_names(self):
        assert OrderOwner('customer-maria').group_name == 'user_customer-maria'
        assert CafeStaff('abc').group_name == 'cafe_abc'
        assert PublicQueue('abc').group_name == 'queue_abc'

    def test_unsafe_ids_are_hashed(self):
        digest = hashlib.sha256('auth0|user 1'.encode()).hexdigest()[:32]
        assert OrderOwner('auth0|user 1').group_name == f'user.{digest}'

    @pytest.mark.parametrize('first, second', [
        ('a@b', 'a_b'),
        ('auth0|user 1', 'auth0_user_1'),
        ('x' * 81, 'x' * 82),
    ])
    def test_distinct_ids_never_share_a_group(self, first, second):
        """
        CRITICAL: Verify two customers never land in the same realtime group

        A shared group would leak one customer's order updates (with contact
        details) to the other.
        """
        assert OrderOwner(first).group_name != OrderOwner(second).group_name

    def test_hashed_id_never_matches_readable_id(self):
        unsafe = OrderOwner('a@b')
        readable = OrderOwner(unsafe.group_name[len('user.'):])

        assert unsafe.group_name != readable.group_name

    def test_group_names_fit_layer_limit(self):
        assert len(OrderOwner('x' * 500).group_name) < 100
        assert len(OrderOwner('x' * 80).group_name) < 100

    @pytest.mark.parametrize('kind', [['a'], {'a': 1}, 7, None])
    def test_topic_for_rejects_non_string_kinds(self, kind):
        with pytest.raises(ValueError):
            topic_for(kind, 'abc')

    def test_topics_are_value_objects(self):
        assert PublicQueue('abc') == PublicQueue('abc')
        assert PublicQueue('abc') != CafeStaff('abc')
        assert len({OrderOwner('a'), OrderOwner('a')}) == 1

    def test_topic_for(self):
        assert topic_for('cafe_staff', 'abc') == CafeStaff('abc')
        assert topic_for('order_owner', 7) == OrderOwner('7')

    @pytest.mark.parametrize('kind, identifier', [('kitchen', 'abc'), ('public_queue', None), ('cafe_staff', '')])
    def test_topic_for_rejects_bad_requests(self, kind, identifier):
        with pytest.raises(ValueError):
            topic_for(kind, identifier)

    def test_event_handler_types(self):
        assert OrderEvent.NEW.handler_type == 'order.new'
        assert OrderEvent.UPDATED.handler_type == 'order.updated'
        assert OrderEvent.QUEUE_UPDATED.handler_type == 'queue.updated'


@pytest.mark.django_db
@pytest.mark.integration
class TestOrderEventPublishing:

    def test_nothing_sent_before_commit(self, order_factory, recording_channel_layer):
        """
        CRITICAL: Verify subscribers never hear about uncommitted writes
        """
        order_factory()
        assert recording_channel_layer.sent == []

    def test_order_created_goes_to_cafe_staff(
        self, cafe, order_factory, recording_channel_layer, django_capture_on_commit_callbacks
    ):
        with django_capture_on_commit_callbacks(execute=True):
            order = order_factory()

        sent = recording_channel_layer.events(OrderEvent.NEW.value)
        assert len(sent) == 1
        group, message = sent[0]
        assert group == f'cafe_{cafe.id}'
        assert message['type'] == 'order.new'
        assert message['data']['order']['id'] == str(order.id)
        assert message['data']['order']['status'] == Order.OrderStatus.PENDING

    def test_order_created_not_sent_to_customer(
        self, order_factory, customer_id, recording_channel_layer, django_capture_on_commit_callbacks
    ):
        with django_capture_on_commit_callbacks(execute=True):
            order_factory()

        assert recording_channel_layer.events(group=f'user_{customer_id}') == []

    def test_transition_notifies_customer_staff_and_queue(
        self, cafe, customer_id, order_factory, recording_channel_layer,
        django_capture_on_commit_callbacks
    ):
        """
        CRITICAL: Verify acceptance reaches the customer, the staff and the public board
        """
        order = order_factory(customer_name='Maria', customer_phone='+1-555-123-4567')

        with django_capture_on_commit_callbacks(execute=True):
            OrderService.accept_order(order.id, 15)

        updated = recording_channel_layer.events(OrderEvent.UPDATED.value)
        assert {g for g, _ in updated} == {f'user_{customer_id}', f'cafe_{cafe.id}'}
        for _, message in updated:
            assert message['data']['order']['status'] == Order.OrderStatus.ACCEPTED
            assert message['data']['previous_status'] == Order.OrderStatus.PENDING

        public = recording_channel_layer.events(OrderEvent.QUEUE_UPDATED.value, f'queue_{cafe.id}')
        assert len(public) == 1
        payload = public[0][1]['data']
        assert payload['info']['queue_length'] == 1
        assert payload['queue'][0]['customer_display_name'] == 'M***'
        assert 'customer_phone' not in payload['queue'][0]

        staff = recording_channel_layer.events(OrderEvent.QUEUE_UPDATED.value, f'cafe_{cafe.id}')
        assert len(staff) == 1
        assert staff[0][1]['data']['queue'][0]['customer_phone'] == '+1-555-123-4567'

    def test_queue_event_reflects_renumbered_queue(
        self, cafe, accepted_order_factory, recording_channel_layer,
        django_capture_on_commit_callbacks
    ):
        first = accepted_order_factory()
        second = accepted_order_factory()

        with django_capture_on_commit_callbacks(execute=True):
            OrderService.cancel_order(first.id, 'customer request')

        (_, message), = recording_channel_layer.events(OrderEvent.QUEUE_UPDATED.value, f'queue_{cafe.id}')
        queue = message['data']['queue']
        assert [(e['id'], e['queue_position']) for e in queue] == [(str(second.id), 1)]

    def test_completion_does_not_publish_queue_update(
        self, order_factory, recording_channel_layer, django_capture_on_commit_callbacks
    ):
        order = order_factory()
        OrderService.accept_order(order.id, 5)
        OrderService.start_preparation(order.id)
        OrderService.mark_ready(order.id)

        with django_capture_on_commit_callbacks(execute=True):
            OrderService.complete_order(order.id)

        assert recording_channel_layer.events(OrderEvent.QUEUE_UPDATED.value) == []
        assert len(recording_channel_layer.events(OrderEvent.UPDATED.value)) == 2

    def test_rejected_transition_publishes_nothing(
        self, order_factory, recording_channel_layer, django_capture_on_commit_callbacks
    ):
        from orders.exceptions import InvalidTransitionError

        order = order_factory()

        with django_capture_on_commit_callbacks(execute=True) as callbacks:
            with pytest.raises(InvalidTransitionError):
                OrderService.mark_ready(order.id)

        assert callbacks == []
        assert recording_channel_layer.sent == []


@pytest.mark.django_db
class TestPublishFailures:

    def test_transport_failure_does_not_fail_transition(
        self, order_factory, failing_channel_layer, django_capture_on_commit_callbacks, caplog
    ):
        """
        CRITICAL: Verify a dead transport is logged and the committed state stands
        """
        order = order_factory()

        with caplog.at_level(logging.WARNING, logger='orders.events.publishers'):
            with django_capture_on_commit_callbacks(execute=True):
                result = OrderService.accept_order(order.id, 5)

        assert result.status == Order.OrderStatus.ACCEPTED
        order.refresh_from_db()
        assert order.status == Order.OrderStatus.ACCEPTED
        assert 'Dropped order:updated' in caplog.text
        assert 'Dropped queue:updated' in caplog.text

    def test_emit_raises_publish_error(self, failing_channel_layer):
        service = OrderNotificationService()

        with pytest.raises(PublishError) as exc_info:
            service.emit(PublicQueue('abc'), OrderEvent.QUEUE_UPDATED, {})

        assert exc_info.value.topic == 'queue_abc'
        assert exc_info.value.event == 'queue:updated'

    def test_deliver_attempts_every_topic(self):
        class FlakyLayer:
            def __init__(self):
                self.attempts = []

            async def group_send(self, group, message):
                self.attempts.append(group)
                if group.startswith('user_'):
                    raise ConnectionError('boom')

        layer = FlakyLayer()
        service = OrderNotificationService(channel_layer=layer)

        with pytest.raises(PublishError) as exc_info:
            service.deliver(
                [(OrderOwner('c1'), {}), (CafeStaff('abc'), {})], OrderEvent.UPDATED
            )

        assert layer.attempts == ['user_c1', 'cafe_abc']
        assert exc_info.value.topic == 'user_c1'

    def test_missing_channel_layer_is_skipped(self, monkeypatch, caplog):
        monkeypatch.setattr(
            'orders.services.notification_service.get_channel_layer', lambda: None
        )
        service = OrderNotificationService()

        with caplog.at_level(logging.WARNING):
            service.emit(PublicQueue('abc'), OrderEvent.QUEUE_UPDATED, {})

        assert 'No channel layer available' in caplog.text
