import uuid

from django.db import models
from django.utils.text import slugify


class TenantQuerySet(models.QuerySet):
    def active(self):
        return self.filter(is_active=True)


class Tenant(models.Model):
    """
    An isolated customer organisation. Owns its orders and users.
    An inactive tenant is soft-disabled: its rows stay, but no new work is accepted.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=200, unique=True)
    slug = models.SlugField(max_length=100, unique=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = TenantQuerySet.as_manager()

    class Meta:
        ordering = ["name"]

    def clean(self):
        if not self.slug:
            self.slug = slugify(self.name)

    def save(self, *args, **kwargs):
        if not self.slug:
            self.slug = slugify(self.name)
        super().save(*args, **kwargs)

    def __str__(self):
        return self.name
