from django.contrib import admin

from core.admin import TenantSafeAdmin
from .models import Order


@admin.register(Order)
class OrderAdmin(TenantSafeAdmin):
    list_display = ("order_number", "tenant", "status", "weight", "created_at")
    list_filter = ("status", "tenant")
    search_fields = ("order_number", "destination_address")
    # status only changes through OrderLifecycleService.transition_status
    readonly_fields = ("id", "status", "version", "created_by", "created_at", "updated_at")
