from django.db import models

from core.tenant_context import get_current_tenant


class TenantQuerySet(models.QuerySet):
    def for_tenant(self, tenant_id):
        """Rows owned by ``tenant_id``. No tenant means no rows."""
        if tenant_id is None:
            return self.none()
        return self.filter(tenant_id=tenant_id)

    def for_current_tenant(self):
        return self.for_tenant(get_current_tenant())


class TenantManager(models.Manager.from_queryset(TenantQuerySet)):
    """
    Plain manager with tenant helpers.

    It never filters implicitly: callers pass the tenant id (repositories) or
    ask for the bound one explicitly, so admin, migrations and shell keep
    seeing every row.
    """
    pass
