from django.contrib import admin

from .models import User


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    ordering = ("email",)
    list_display = ("email", "tenant", "role", "is_active", "is_staff")
    list_filter = ("role", "is_active", "tenant")
    search_fields = ("email",)
    fields = ("email", "tenant", "role", "is_active", "is_staff", "last_login", "created_at", "updated_at")
    readonly_fields = ("created_at", "updated_at", "last_login")

    def get_queryset(self, request):
        qs = super().get_queryset(request)
        if request.user.is_superuser:
            return qs
        return qs.filter(tenant_id=getattr(request.user, "tenant_id", None))
