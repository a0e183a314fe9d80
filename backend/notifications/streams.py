"""Server-sent-events stream over a tenant's live channel."""

import json
import logging

from django.conf import settings
from django.http import StreamingHttpResponse
from rest_framework.renderers import BaseRenderer

from core.exceptions import TenantRequired
from .channels import get_channel_layer

logger = logging.getLogger(__name__)


class EventStreamRenderer(BaseRenderer):
    media_type = "text/event-stream"
    format = "event-stream"
    charset = "utf-8"

    def render(self, data, accepted_media_type=None, renderer_context=None):
        # only used for error bodies; events are streamed directly
        return json.dumps(data).encode(self.charset)


def format_event(payload):
    return f"event: {payload['event_type']}\ndata: {json.dumps(payload)}\n\n"


class EventStream:
    """
    Iterator of SSE frames read from one subscription.
    Django calls ``close()`` when the response ends, which releases the subscription
    even if iteration never started.
    """

    def __init__(self, subscription, heartbeat):
        self.subscription = subscription
        self.heartbeat = heartbeat
        self.started = False
        self.closed = False
        # order_id -> last version sent
        self.sent_versions = {}

    def __iter__(self):
        return self

    def __next__(self):
        if self.closed:
            raise StopIteration
        if not self.started:
            self.started = True
            return ": connected\n\n"

        while True:
            payload = self.subscription.get(timeout=self.heartbeat)
            if payload is None:
                return ": keepalive\n\n"
            if self.is_stale(payload):
                logger.debug("Dropping stale event for order %s (version %s)", payload.get("order_id"), payload.get("version"))
                continue
            return format_event(payload)

    def is_stale(self, payload):
        """True if a newer or equal version of this order was already sent."""
        order_id = payload.get("order_id")
        version = payload.get("version")
        if order_id is None or version is None:
            return False
        last = self.sent_versions.get(order_id)
        if last is not None and version <= last:
            return True
        self.sent_versions[order_id] = version
        return False

    def close(self):
        if self.closed:
            return
        self.closed = True
        self.subscription.close()
        logger.debug("Live subscription closed: %s", getattr(self.subscription, "channel", "?"))


def tenant_event_stream(tenant_id):
    """
    Subscribe to ``orders/{tenant_id}`` now and stream what arrives from here on.

    The subscription is taken before the response is returned, so events
    published after this call are delivered and earlier ones never are.
    """
    if tenant_id is None:
        raise TenantRequired()

    heartbeat = settings.ORDER_EVENTS.get("STREAM_HEARTBEAT_SECONDS", 15)
    subscription = get_channel_layer().subscribe(tenant_id)
    logger.info("Live subscription opened for tenant %s", tenant_id)

    response = StreamingHttpResponse(EventStream(subscription, heartbeat), content_type="text/event-stream")
    response["Cache-Control"] = "no-cache"
    response["X-Accel-Buffering"] = "no"
    return response
