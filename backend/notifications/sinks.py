import logging

from django.conf import settings

from .channels import get_channel_layer

logger = logging.getLogger(__name__)


class EventSink:
    """Where order events go. Both methods must return without waiting on consumers."""

    def publish_to_broker(self, topic, event):
        raise NotImplementedError

    def publish_to_tenant_channel(self, tenant_id, event):
        raise NotImplementedError


class CeleryEventSink(EventSink):
    """
    Broker side: enqueue ``deliver_order_event`` on the queue named by the
    topic. Enqueueing does not wait for a worker, so the request never blocks
    on consumers; ``retry=False`` makes an unreachable broker fail fast.

    Live side: hand the payload to the configured channel layer.
    """

    def publish_to_broker(self, topic, event):
        from .tasks import deliver_order_event

        deliver_order_event.apply_async(
            args=[topic, event.to_payload()],
            queue=topic,
            retry=False,
        )

    def publish_to_tenant_channel(self, tenant_id, event):
        get_channel_layer().publish(tenant_id, event.to_payload())


def default_sink():
    return CeleryEventSink()


def broker_topic():
    return settings.ORDER_EVENTS.get("BROKER_TOPIC", "order-events")
