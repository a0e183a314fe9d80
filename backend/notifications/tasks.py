import logging

from celery import shared_task

from .events import OrderEvent
from .signals import order_event_received

logger = logging.getLogger(__name__)


@shared_task(name="notifications.deliver_order_event", ignore_result=True)
def deliver_order_event(topic, payload):
    """
    Broker-side consumer for order events.
    Re-emits each event as ``order_event_received`` for downstream receivers.
    """
    event = OrderEvent.from_payload(payload)
    logger.info(
        "Received order event: topic=%s, type=%s, order_id=%s, tenant_id=%s",
        topic, event.event_type, event.order_id, event.tenant_id,
    )

    responses = order_event_received.send_robust(sender=OrderEvent, topic=topic, event=event)
    for receiver, response in responses:
        if isinstance(response, Exception):
            logger.error(
                "order_event_received receiver %r failed for order %s",
                receiver, event.order_id, exc_info=response,
            )
    return None
