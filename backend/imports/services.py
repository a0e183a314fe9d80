"""Starting and restarting order imports for the bound tenant."""

import logging

from django.db import transaction
from rest_framework.exceptions import ValidationError

from core.exceptions import TenantNotFound
from core.tenant_context import require_current_tenant
from orders.repository import OrderRepository
from .models import ImportJob
from .tasks import run_order_import

logger = logging.getLogger(__name__)


def _enqueue(job):
    # the worker must see the committed row
    transaction.on_commit(lambda: run_order_import.delay(str(job.pk)))


def start_import(upload, submitted_by=None, repository=None):
    """Store ``upload`` as a new ImportJob of the bound tenant and queue it."""
    tenant_id = require_current_tenant()
    tenant = (repository or OrderRepository()).find_active_tenant(tenant_id)
    if tenant is None:
        raise TenantNotFound()

    with transaction.atomic():
        job = ImportJob(
            tenant=tenant,
            submitted_by=submitted_by,
            original_name=getattr(upload, "name", "") or "",
        )
        job.source.save(job.original_name or "orders.csv", upload, save=False)
        job.save()
        _enqueue(job)

    logger.info("Queued import %s (%s) for tenant %s", job.pk, job.original_name, tenant_id)
    return job


def restart_import(job):
    """Queue a failed job again; it resumes after its last committed chunk."""
    if job.status != ImportJob.STATUS_FAILED:
        raise ValidationError({"status": f"Only failed imports can be restarted (current: {job.status})."})

    with transaction.atomic():
        job.status = ImportJob.STATUS_PENDING
        job.save(update_fields=["status", "updated_at"])
        _enqueue(job)

    logger.info("Re-queued import %s from row %d", job.pk, job.rows_committed)
    return job
