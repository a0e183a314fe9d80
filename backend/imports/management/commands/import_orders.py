import logging
import os

from django.core.files import File
from django.core.management.base import BaseCommand, CommandError

from core.tenant_context import tenant_scope
from imports.models import ImportJob
from imports.pipeline import BatchImportPipeline
from tenants.models import Tenant

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = "Import orders from a CSV file into one tenant, committing every chunk as it goes."

    def add_arguments(self, parser):
        parser.add_argument("csv_path", nargs="?", help="CSV with columns orderNumber,description,destinationAddress,weight")
        parser.add_argument("--tenant", required=True, help="Slug of the tenant that will own the orders")
        parser.add_argument("--resume", metavar="JOB_ID", help="Resume a failed import job instead of starting a new one")

    def handle(self, *args, **options):
        try:
            tenant = Tenant.objects.active().get(slug=options["tenant"])
        except Tenant.DoesNotExist:
            raise CommandError(f"No active tenant with slug '{options['tenant']}'")

        if options["resume"]:
            try:
                job = ImportJob.objects.for_tenant(tenant.pk).filter(pk=int(options["resume"])).first()
            except ValueError:
                raise CommandError(f"Invalid import job id: {options['resume']}")
            if job is None:
                raise CommandError(f"Import job {options['resume']} not found for tenant '{tenant.slug}'")
        else:
            path = options["csv_path"]
            if not path or not os.path.isfile(path):
                raise CommandError(f"CSV file not found: {path}")
            name = os.path.basename(path)
            job = ImportJob(tenant=tenant, original_name=name)
            with open(path, "rb") as fh:
                job.source.save(name, File(fh), save=False)
            job.save()

        self.stdout.write(self.style.MIGRATE_HEADING(f"Importing {job.original_name} into {tenant.slug} (job {job.pk})"))

        with tenant_scope(tenant.pk):
            try:
                BatchImportPipeline().run(job)
            except Exception as exc:
                raise CommandError(
                    f"Import failed after {job.rows_committed} committed rows: {exc}. "
                    f"Re-run with --resume {job.pk} to continue."
                ) from exc

        self.stdout.write(self.style.SUCCESS(
            f"Imported {job.imported_count} orders, skipped {job.skipped_count} rows"
        ))
