import uuid

from django.conf import settings
from django.db import models

from core.models import TenantAwareModel


class OrderStatus(models.TextChoices):
    PENDING = "PENDING", "Pending"
    APPROVED = "APPROVED", "Approved"
    IN_TRANSIT = "IN_TRANSIT", "In transit"
    SHIPPED = "SHIPPED", "Shipped"
    DELIVERED = "DELIVERED", "Delivered"
    CANCELLED = "CANCELLED", "Cancelled"


class Order(TenantAwareModel):
    """
    A delivery order owned by exactly one tenant.

    ``status`` is only written through OrderLifecycleService.transition_status,
    which bumps ``version`` on every change.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    order_number = models.CharField(max_length=100, unique=True)
    description = models.TextField(blank=True, null=True)
    destination_address = models.TextField(blank=True, null=True)
    weight = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    latitude = models.FloatField(null=True, blank=True)
    longitude = models.FloatField(null=True, blank=True)
    tracking_notes = models.TextField(blank=True, null=True)
    status = models.CharField(max_length=20, choices=OrderStatus.choices, default=OrderStatus.PENDING)
    version = models.PositiveIntegerField(default=0)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="created_orders",
    )

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["tenant", "status"], name="order_tenant_status_idx"),
            models.Index(fields=["tenant", "created_at"], name="order_tenant_created_idx"),
        ]

    def __str__(self):
        return f"{self.order_number} ({self.status})"
