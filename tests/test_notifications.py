import json
import uuid
from unittest import mock

import pytest
from django.core.signals import request_finished
from django.db import close_old_connections

from core.exceptions import TenantRequired
from notifications.channels import InMemoryChannelLayer, get_channel_layer, tenant_channel_name
from notifications.events import EventType, OrderEvent
from notifications.publisher import EventPublisher
from notifications.signals import order_event_received
from notifications.sinks import CeleryEventSink
from notifications.streams import EventStream, tenant_event_stream
from notifications.tasks import deliver_order_event
from orders.models import Order


def close_stream(response):
    # as the test client does, so closing does not touch the test transaction
    request_finished.disconnect(close_old_connections)
    try:
        response.close()
    finally:
        request_finished.connect(close_old_connections)


def payload(tenant_id, n=0):
    return {"event_type": EventType.ORDER_STATUS_CHANGED, "order_id": str(uuid.uuid4()), "tenant_id": str(tenant_id), "n": n}


class TestInMemoryChannelLayer:
    def test_channel_name(self):
        tenant_id = uuid.uuid4()
        assert tenant_channel_name(tenant_id) == f"orders/{tenant_id}"

    def test_delivers_in_order_to_the_right_tenant_only(self):
        layer = InMemoryChannelLayer()
        a, b = uuid.uuid4(), uuid.uuid4()
        sub_a = layer.subscribe(a)
        sub_b = layer.subscribe(b)

        for n in range(3):
            layer.publish(a, payload(a, n))

        assert [sub_a.get(timeout=0.1)["n"] for _ in range(3)] == [0, 1, 2]
        assert sub_b.get(timeout=0.01) is None

    def test_late_subscribers_miss_earlier_events(self):
        layer = InMemoryChannelLayer()
        tenant_id = uuid.uuid4()
        assert layer.publish(tenant_id, payload(tenant_id)) == 0

        with layer.subscribe(tenant_id) as subscription:
            assert subscription.get(timeout=0.01) is None
            assert layer.subscriber_count(tenant_id) == 1
        assert layer.subscriber_count(tenant_id) == 0

    def test_every_subscriber_gets_a_copy(self):
        layer = InMemoryChannelLayer()
        tenant_id = uuid.uuid4()
        first, second = layer.subscribe(tenant_id), layer.subscribe(tenant_id)
        assert layer.publish(tenant_id, payload(tenant_id)) == 2
        assert first.get(timeout=0.1) == second.get(timeout=0.1)


@pytest.mark.django_db
class TestEventDelivery:
    @pytest.fixture
    def order(self, acme):
        return Order.objects.create(tenant=acme, order_number="ORD-1")

    def test_broker_side_enqueues_on_topic_queue(self, order):
        event = OrderEvent.from_order(order, EventType.ORDER_CREATED)
        with mock.patch("notifications.tasks.deliver_order_event.apply_async") as apply_async:
            CeleryEventSink().publish_to_broker("order-events", event)

        apply_async.assert_called_once_with(args=["order-events", event.to_payload()], queue="order-events", retry=False)

    def test_delivery_task_reemits_signal(self, order):
        event = OrderEvent.from_order(order, EventType.ORDER_CREATED)
        received = []

        def receiver(sender, topic, event, **kwargs):
            received.append((topic, event))

        def broken(sender, **kwargs):
            raise RuntimeError("consumer bug")

        order_event_received.connect(receiver)
        order_event_received.connect(broken)
        try:
            deliver_order_event("order-events", event.to_payload())
        finally:
            order_event_received.disconnect(receiver)
            order_event_received.disconnect(broken)

        assert received == [("order-events", event)]

    def test_unknown_event_type_is_rejected(self, order):
        with pytest.raises(ValueError):
            OrderEvent.from_order(order, "OrderDeleted")

    def test_transition_reaches_live_subscribers_and_consumers(self, acme_client, acme, django_capture_on_commit_callbacks):
        order_id = acme_client.post("/api/orders/", {"order_number": "ORD-LIVE"}, format="json").data["id"]
        received = []

        def receiver(sender, event, **kwargs):
            received.append(event)

        order_event_received.connect(receiver)
        try:
            with get_channel_layer().subscribe(acme.pk) as subscription:
                with django_capture_on_commit_callbacks(execute=True):
                    acme_client.patch(f"/api/orders/{order_id}/status/", {"new_status": "APPROVED"}, format="json")
                live = subscription.get(timeout=1)
        finally:
            order_event_received.disconnect(receiver)

        assert live["event_type"] == EventType.ORDER_STATUS_CHANGED
        assert live["order_id"] == order_id
        assert live["status"] == "APPROVED"
        assert live["version"] == 1
        assert [e.status for e in received] == ["APPROVED"]

    def test_publisher_hands_event_to_both_sinks_on_commit(self, order, sink, django_capture_on_commit_callbacks):
        with django_capture_on_commit_callbacks(execute=True):
            event = EventPublisher(sink=sink).publish(order, EventType.ORDER_CREATED)
        assert sink.broker == [("order-events", event)]
        assert sink.channel == [(order.tenant_id, event)]


class TestEventStream:
    def test_requires_a_tenant(self):
        with pytest.raises(TenantRequired):
            tenant_event_stream(None)

    def test_streams_events_published_after_subscribing(self, settings):
        settings.ORDER_EVENTS = {**settings.ORDER_EVENTS, "STREAM_HEARTBEAT_SECONDS": 0.05}
        tenant_id = uuid.uuid4()
        layer = get_channel_layer()

        response = tenant_event_stream(tenant_id)
        assert response["Content-Type"] == "text/event-stream"
        assert layer.subscriber_count(tenant_id) == 1

        chunks = iter(response.streaming_content)
        assert next(chunks) == b": connected\n\n"
        assert next(chunks) == b": keepalive\n\n"

        layer.publish(tenant_id, payload(tenant_id))
        frame = next(chunks).decode()
        assert frame.startswith(f"event: {EventType.ORDER_STATUS_CHANGED}\ndata: ")

        close_stream(response)
        assert layer.subscriber_count(tenant_id) == 0

    @pytest.mark.django_db
    def test_stream_endpoint_subscribes_caller_tenant(self, acme_client, acme):
        response = acme_client.get("/api/orders/stream/")
        try:
            assert response.status_code == 200
            assert response["Content-Type"].startswith("text/event-stream")
            assert get_channel_layer().subscriber_count(acme.pk) == 1
        finally:
            close_stream(response)
        assert get_channel_layer().subscriber_count(acme.pk) == 0


class FakeSubscription:
    def __init__(self, payloads):
        self.payloads = list(payloads)
        self.closed = False

    def get(self, timeout=None):
        return self.payloads.pop(0) if self.payloads else None

    def close(self):
        self.closed = True


def test_stream_drops_events_older_than_what_it_already_sent():
    order_id = str(uuid.uuid4())
    other_id = str(uuid.uuid4())

    def event(oid, status, version):
        return {"event_type": EventType.ORDER_STATUS_CHANGED, "order_id": oid, "status": status, "version": version}

    stream = EventStream(FakeSubscription([
        event(order_id, "IN_TRANSIT", 2),
        event(order_id, "APPROVED", 1),
        event(other_id, "APPROVED", 1),
        event(order_id, "SHIPPED", 3),
    ]), heartbeat=0)

    frames = [next(stream) for _ in range(5)]
    statuses = [json.loads(f.split("data: ", 1)[1])["status"] for f in frames[1:4]]

    assert frames[0] == ": connected\n\n"
    assert statuses == ["IN_TRANSIT", "APPROVED", "SHIPPED"]
    assert frames[4] == ": keepalive\n\n"

    stream.close()
    assert stream.subscription.closed
