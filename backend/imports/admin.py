from django.contrib import admin

from core.admin import TenantSafeAdmin
from .models import ImportJob


@admin.register(ImportJob)
class ImportJobAdmin(TenantSafeAdmin):
    list_display = ("id", "tenant", "original_name", "status", "rows_committed", "imported_count", "created_at")
    list_filter = ("status", "tenant")
    search_fields = ("original_name", "submitted_by__email")
    readonly_fields = (
        "status", "rows_committed", "chunks_committed", "imported_count",
        "skipped_count", "error", "started_at", "completed_at",
    )
