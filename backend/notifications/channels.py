"""
Live per-tenant notification channels.

A channel is addressed as ``orders/{tenant_id}``. Delivery reaches only the
subscriptions open at publish time; nothing is stored for late subscribers.
Two layers are provided:

- InMemoryChannelLayer: single-process fan-out (development, tests).
- RedisChannelLayer: Redis pub/sub, shared by every web and worker process.
"""

from functools import lru_cache
import json
import logging
import queue
import threading

import redis
from django.conf import settings
from django.utils.module_loading import import_string

logger = logging.getLogger(__name__)


def tenant_channel_name(tenant_id):
    prefix = settings.ORDER_EVENTS.get("LIVE_CHANNEL_PREFIX", "orders")
    return f"{prefix}/{tenant_id}"


class Subscription:
    """Handle returned by ``subscribe``; use as a context manager."""

    def get(self, timeout=None):
        """Next payload, or None if nothing arrived within ``timeout`` seconds."""
        raise NotImplementedError

    def close(self):
        raise NotImplementedError

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


class BaseChannelLayer:
    def publish(self, tenant_id, payload: dict):
        raise NotImplementedError

    def subscribe(self, tenant_id) -> Subscription:
        raise NotImplementedError


class _QueueSubscription(Subscription):
    def __init__(self, layer, channel):
        self.layer = layer
        self.channel = channel
        self.queue = queue.Queue()

    def get(self, timeout=None):
        try:
            return self.queue.get(timeout=timeout)
        except queue.Empty:
            return None

    def close(self):
        self.layer._unsubscribe(self)


class InMemoryChannelLayer(BaseChannelLayer):
    def __init__(self):
        self._lock = threading.Lock()
        self._subscriptions = {}

    def publish(self, tenant_id, payload):
        channel = tenant_channel_name(tenant_id)
        # one lock for fan-out keeps each subscriber's queue in publish order
        with self._lock:
            subscribers = list(self._subscriptions.get(channel, ()))
            for subscription in subscribers:
                subscription.queue.put_nowait(payload)
        logger.debug("Published to %s (%d subscriber(s))", channel, len(subscribers))
        return len(subscribers)

    def subscribe(self, tenant_id):
        channel = tenant_channel_name(tenant_id)
        subscription = _QueueSubscription(self, channel)
        with self._lock:
            self._subscriptions.setdefault(channel, set()).add(subscription)
        return subscription

    def subscriber_count(self, tenant_id):
        with self._lock:
            return len(self._subscriptions.get(tenant_channel_name(tenant_id), ()))

    def _unsubscribe(self, subscription):
        with self._lock:
            subscribers = self._subscriptions.get(subscription.channel)
            if subscribers is None:
                return
            subscribers.discard(subscription)
            if not subscribers:
                del self._subscriptions[subscription.channel]


class _RedisSubscription(Subscription):
    def __init__(self, pubsub, channel):
        self.pubsub = pubsub
        self.channel = channel

    def get(self, timeout=None):
        message = self.pubsub.get_message(timeout=timeout or 0)
        if message is None or message.get("type") != "message":
            return None
        return json.loads(message["data"])

    def close(self):
        try:
            self.pubsub.unsubscribe(self.channel)
        finally:
            self.pubsub.close()


class RedisChannelLayer(BaseChannelLayer):
    def __init__(self, url=None, socket_timeout=None):
        url = url or settings.REDIS_URL
        socket_timeout = socket_timeout or settings.ORDER_EVENTS.get("REDIS_SOCKET_TIMEOUT", 2)
        self.client = redis.Redis.from_url(url, socket_timeout=socket_timeout)

    def publish(self, tenant_id, payload):
        channel = tenant_channel_name(tenant_id)
        receivers = self.client.publish(channel, json.dumps(payload))
        logger.debug("Published to %s (%d receiver(s))", channel, receivers)
        return receivers

    def subscribe(self, tenant_id):
        channel = tenant_channel_name(tenant_id)
        pubsub = self.client.pubsub(ignore_subscribe_messages=True)
        pubsub.subscribe(channel)
        return _RedisSubscription(pubsub, channel)


@lru_cache(maxsize=None)
def _load_layer(path):
    return import_string(path)()


def get_channel_layer() -> BaseChannelLayer:
    """The configured live channel layer (one instance per process)."""
    return _load_layer(settings.ORDER_EVENTS["LIVE_CHANNEL_BACKEND"])
