from django.contrib import admin


class TenantSafeAdmin(admin.ModelAdmin):
    """Base admin that filters by tenant but allows superusers to see all."""

    def get_queryset(self, request):
        qs = super().get_queryset(request)

        if request.user.is_superuser:
            return qs

        tenant_id = getattr(request.user, "tenant_id", None)
        if tenant_id:
            return qs.filter(tenant_id=tenant_id)

        return qs.none()

    def get_readonly_fields(self, request, obj=None):
        readonly = list(super().get_readonly_fields(request, obj))
        # owner is fixed once the row exists
        if obj is not None and "tenant" not in readonly:
            readonly.append("tenant")
        return readonly

    def save_model(self, request, obj, form, change):
        """Automatically assign tenant when tenant user creates objects."""
        if not change and not request.user.is_superuser:
            tenant_id = getattr(request.user, "tenant_id", None)
            if tenant_id:
                obj.tenant_id = tenant_id
        obj.save()
