from django.db import models

from .managers import TenantManager


class TimeStampedModel(models.Model):
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class TenantAwareModel(TimeStampedModel):
    """
    Base for rows owned by a tenant.
    Deleting the tenant deletes the row; the owner cannot change after creation.
    """
    tenant = models.ForeignKey(
        "tenants.Tenant",
        on_delete=models.CASCADE,
        related_name="%(class)ss",
    )

    objects = TenantManager()

    class Meta:
        abstract = True

    def save(self, *args, **kwargs):
        if not self._state.adding and self.pk is not None:
            original = type(self).objects.filter(pk=self.pk).values_list("tenant_id", flat=True).first()
            if original is not None and original != self.tenant_id:
                raise ValueError(f"{type(self).__name__} {self.pk} cannot move to another tenant.")
        super().save(*args, **kwargs)
