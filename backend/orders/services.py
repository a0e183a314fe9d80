"""
Order lifecycle: create, read and transition orders for the bound tenant.

The tenant always comes from ``core.tenant_context``; no method takes a tenant
argument. Reads and writes both require the bound tenant to exist and be
active. Every state-affecting call publishes an order event after commit.
"""

import logging
import uuid

from django.db import IntegrityError, transaction
from rest_framework.exceptions import ValidationError

from core.exceptions import Conflict, NotFound, TenantNotFound
from core.tenant_context import require_current_tenant
from notifications.events import EventType
from notifications.publisher import EventPublisher
from .models import Order, OrderStatus
from .repository import OrderRepository, PageParams
from .state_machine import validate_transition

logger = logging.getLogger(__name__)

ORDER_INPUT_FIELDS = (
    "order_number",
    "description",
    "destination_address",
    "weight",
    "latitude",
    "longitude",
    "tracking_notes",
)


class OrderLifecycleService:
    def __init__(self, repository=None, publisher=None):
        self.repository = repository or OrderRepository()
        self.publisher = publisher or EventPublisher()

    def _active_tenant(self):
        tenant_id = require_current_tenant()
        tenant = self.repository.find_active_tenant(tenant_id)
        if tenant is None:
            raise TenantNotFound()
        return tenant

    def _get_owned(self, tenant, order_id):
        try:
            order_id = uuid.UUID(str(order_id))
        except ValueError:
            raise NotFound("Order not found.") from None

        order = self.repository.find_by_id(tenant.pk, order_id)
        if order is None:
            # same answer whether the id is unknown or owned by another tenant
            raise NotFound("Order not found.")
        return order

    def create_order(self, data, actor_email=None):
        """
        Create an order for the bound tenant. Any supplied status is ignored;
        new orders always start PENDING. ``actor_email`` links the creator when
        that user belongs to the same tenant.
        """
        tenant = self._active_tenant()

        order = Order(**{field: data[field] for field in ORDER_INPUT_FIELDS if field in data})
        order.tenant = tenant
        order.status = OrderStatus.PENDING
        order.created_by = self.repository.find_user_by_email_and_tenant(actor_email, tenant.pk)

        try:
            with transaction.atomic():
                saved = self.repository.save(order)
                self.publisher.publish(saved, EventType.ORDER_CREATED)
        except IntegrityError:
            raise ValidationError({"order_number": ["An order with this order number already exists."]})

        logger.info("Created order: id=%s, order_number=%s, tenant_id=%s", saved.pk, saved.order_number, tenant.pk)
        return saved

    def get_orders(self, page_params=None):
        tenant = self._active_tenant()
        return self.repository.find_page(tenant.pk, page_params or PageParams())

    def get_order_by_id(self, order_id):
        tenant = self._active_tenant()
        return self._get_owned(tenant, order_id)

    def transition_status(self, order_id, requested):
        """
        Move an order along one lifecycle edge.

        The write is conditioned on the status read here; if a concurrent
        transition committed in between, nothing is written and Conflict is
        raised so the caller can retry against the new state.
        """
        tenant = self._active_tenant()

        with transaction.atomic():
            order = self._get_owned(tenant, order_id)
            previous = OrderStatus(order.status)
            if requested not in OrderStatus.values:
                raise ValidationError({"new_status": [f"Unknown order status: {requested}"]})
            target = validate_transition(previous, requested)

            if not self.repository.update_status(order, previous, target):
                logger.warning(
                    "Concurrent transition detected: id=%s, expected=%s, requested=%s",
                    order.pk, previous, target,
                )
                raise Conflict()

            self.publisher.publish(order, EventType.ORDER_STATUS_CHANGED)

        logger.info("Order status transitioned: id=%s, from=%s, to=%s", order.pk, previous, target)
        return order

    def status_summary(self):
        """Order count per status (all six, zeros included) for the bound tenant."""
        tenant = self._active_tenant()
        return {
            status.value: self.repository.count_by_status(tenant.pk, status)
            for status in OrderStatus
        }
