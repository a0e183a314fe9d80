import logging

from celery import shared_task

from core.tenant_context import tenant_scope
from .models import ImportJob
from .pipeline import BatchImportPipeline

logger = logging.getLogger(__name__)


@shared_task(name="imports.run_order_import", ignore_result=True)
def run_order_import(job_id):
    """
    Run one ImportJob with its tenant bound for the whole run.
    Failures are recorded on the job; restarting it resumes from the last committed chunk.
    """
    try:
        job = ImportJob.objects.select_related("tenant").get(pk=job_id)
    except ImportJob.DoesNotExist:
        logger.error("ImportJob %s not found", job_id)
        return

    with tenant_scope(job.tenant_id):
        try:
            BatchImportPipeline().run(job)
        except Exception:
            # already logged and stored on the job by the pipeline
            return
