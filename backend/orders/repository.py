"""
Persistence boundary for the order lifecycle.

Every tenant-scoped read takes the tenant id as an explicit argument; nothing
in here looks at the bound TenantContext.
"""

from dataclasses import dataclass

from django.contrib.auth import get_user_model
from django.core.paginator import EmptyPage, Page, Paginator
from django.db.models import F
from django.utils import timezone

from tenants.models import Tenant
from .models import Order

ORDERING_FIELDS = ("created_at", "updated_at", "order_number", "status")


@dataclass(frozen=True)
class PageParams:
    page: int = 1
    size: int = 20
    ordering: str = "-created_at"


class OrderRepository:
    def find_by_id(self, tenant_id, order_id):
        """The order with ``order_id`` owned by ``tenant_id``, else None."""
        return (
            Order.objects.for_tenant(tenant_id)
            .select_related("tenant")
            .filter(pk=order_id)
            .first()
        )

    def find_page(self, tenant_id, page_params: PageParams) -> Page:
        # id breaks ties so pages stay stable
        qs = Order.objects.for_tenant(tenant_id).order_by(page_params.ordering, "id")
        paginator = Paginator(qs, page_params.size)
        try:
            return paginator.page(page_params.page)
        except EmptyPage:
            return Page([], page_params.page, paginator)

    def count_by_status(self, tenant_id, status) -> int:
        return Order.objects.for_tenant(tenant_id).filter(status=status).count()

    def save(self, order):
        order.save()
        return order

    def save_all(self, orders):
        return Order.objects.bulk_create(orders)

    def update_status(self, order, expected_status, new_status) -> bool:
        """
        Write ``new_status`` only if the row still holds ``expected_status``.

        Returns False when another writer got there first. On success the
        in-memory ``order`` is refreshed with the new status and version.
        """
        updated = (
            Order.objects.filter(pk=order.pk, tenant_id=order.tenant_id, status=expected_status)
            .update(status=new_status, version=F("version") + 1, updated_at=timezone.now())
        )
        if updated:
            order.refresh_from_db(fields=["status", "version", "updated_at"])
        return bool(updated)

    def find_active_tenant(self, tenant_id):
        if tenant_id is None:
            return None
        return Tenant.objects.active().filter(pk=tenant_id).first()

    def find_user_by_email_and_tenant(self, email, tenant_id):
        if not email or tenant_id is None:
            return None
        User = get_user_model()
        return User.objects.filter(email__iexact=email, tenant_id=tenant_id).first()
