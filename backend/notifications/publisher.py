import logging

from django.db import transaction

from .events import OrderEvent
from .sinks import broker_topic, default_sink

logger = logging.getLogger(__name__)


class EventPublisher:
    """
    Turns a committed order change into notifications.

    ``publish`` snapshots the order immediately and hands the event to both
    sinks once the surrounding transaction commits (right away when there is
    none). The sinks are independent: one failing does not stop the other,
    and neither failure reaches the caller; the order row is the source of
    truth and event delivery is best-effort.
    """

    def __init__(self, sink=None):
        self.sink = sink or default_sink()

    def publish(self, order, event_type):
        event = OrderEvent.from_order(order, event_type)
        transaction.on_commit(lambda: self.dispatch(event))
        return event

    def dispatch(self, event):
        logger.info(
            "Publishing order event: type=%s, order_id=%s, tenant_id=%s, status=%s",
            event.event_type, event.order_id, event.tenant_id, event.status,
        )

        # live channel before the broker, so a slow enqueue cannot delay live frames behind a later commit
        try:
            self.sink.publish_to_tenant_channel(event.tenant_id, event)
        except Exception:
            logger.exception("Live channel publish failed for tenant %s (order %s)", event.tenant_id, event.order_id)

        try:
            self.sink.publish_to_broker(broker_topic(), event)
        except Exception:
            logger.exception("Broker publish failed for order %s (%s)", event.order_id, event.event_type)
