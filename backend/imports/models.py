"""
Order import jobs.

One ImportJob per uploaded CSV. The pipeline commits the file in chunks and
advances ``rows_committed`` in the same transaction as each chunk, so a
failed job restarts exactly after its last committed chunk.
"""

from django.conf import settings
from django.db import models
from django.utils import timezone

from core.models import TenantAwareModel


def default_chunk_size():
    return settings.ORDER_IMPORT.get("CHUNK_SIZE", 10)


def import_upload_path(instance, filename):
    upload_dir = settings.ORDER_IMPORT.get("UPLOAD_DIR", "imports")
    return f"{upload_dir}/{instance.tenant_id}/{timezone.now():%Y/%m}/{filename}"


class ImportJob(TenantAwareModel):
    STATUS_PENDING = "pending"
    STATUS_PROCESSING = "processing"
    STATUS_DONE = "done"
    STATUS_FAILED = "failed"
    STATUS_CHOICES = [
        (STATUS_PENDING, "Pending"),
        (STATUS_PROCESSING, "Processing"),
        (STATUS_DONE, "Done"),
        (STATUS_FAILED, "Failed"),
    ]

    submitted_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="import_jobs",
    )
    source = models.FileField(upload_to=import_upload_path)
    original_name = models.CharField(max_length=255, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING)
    chunk_size = models.PositiveIntegerField(default=default_chunk_size)
    rows_committed = models.PositiveIntegerField(default=0)
    chunks_committed = models.PositiveIntegerField(default=0)
    imported_count = models.PositiveIntegerField(default=0)
    skipped_count = models.PositiveIntegerField(default=0)
    error = models.TextField(blank=True, null=True)
    started_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [models.Index(fields=["tenant", "status", "created_at"], name="importjob_tenant_status_idx")]

    def mark_started(self):
        self.status = self.STATUS_PROCESSING
        self.started_at = timezone.now()
        self.completed_at = None
        self.error = None
        self.save(update_fields=["status", "started_at", "completed_at", "error", "updated_at"])

    def record_chunk(self, rows, imported, skipped):
        self.rows_committed += rows
        self.chunks_committed += 1
        self.imported_count += imported
        self.skipped_count += skipped
        self.save(update_fields=["rows_committed", "chunks_committed", "imported_count", "skipped_count", "updated_at"])

    def mark_completed(self):
        self.status = self.STATUS_DONE
        self.completed_at = timezone.now()
        self.save(update_fields=["status", "completed_at", "updated_at"])

    def mark_failed(self, error):
        self.status = self.STATUS_FAILED
        self.completed_at = timezone.now()
        self.error = error
        self.save(update_fields=["status", "completed_at", "error", "updated_at"])

    def __str__(self):
        return f"Import {self.pk} ({self.tenant}) - {self.status}"
