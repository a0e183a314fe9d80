"""
Chunked CSV import of orders.

    orderNumber,description,destinationAddress,weight
    ORD-1,Pallet of tiles,12 Harbour Rd,120.50

Rows with a blank orderNumber are skipped. A weight that does not parse is
left unset. Every ``chunk_size`` rows are written in one transaction together
with the job's progress counters; the tenant is resolved from the bound
TenantContext once per chunk, and a missing tenant aborts the run.
"""

import codecs
import csv
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from itertools import islice
import logging

from django.db import transaction

from core.exceptions import TenantRequired
from core.tenant_context import require_current_tenant
from orders.models import Order, OrderStatus
from orders.repository import OrderRepository

logger = logging.getLogger(__name__)

CSV_COLUMNS = ("orderNumber", "description", "destinationAddress", "weight")

WEIGHT_QUANTUM = Decimal("0.01")
MAX_WEIGHT = Decimal("99999999.99")


class ImportFormatError(ValueError):
    pass


@dataclass(frozen=True)
class OrderCsvRecord:
    line_number: int
    order_number: str
    description: str
    destination_address: str
    weight: str


def read_records(lines, skip=0):
    """
    Yield an OrderCsvRecord per data row of ``lines`` (any iterable of text
    lines), after checking and skipping the header and the first ``skip`` rows.
    """
    reader = csv.reader(lines)
    header = next(reader, None)
    if header is None:
        return
    if tuple(col.strip() for col in header) != CSV_COLUMNS:
        raise ImportFormatError(f"Unexpected CSV header {header!r}; expected {','.join(CSV_COLUMNS)}")

    for index, row in enumerate(reader):
        if index < skip:
            continue
        values = [value.strip() for value in (row + [""] * len(CSV_COLUMNS))[:len(CSV_COLUMNS)]]
        yield OrderCsvRecord(index + 2, *values)


def parse_weight(raw):
    """Decimal rounded to two places, or None for blank, malformed or out-of-range input."""
    if not raw:
        return None
    try:
        value = Decimal(raw)
        if not value.is_finite():
            return None
        value = value.quantize(WEIGHT_QUANTUM, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        return None
    if abs(value) > MAX_WEIGHT:
        return None
    return value


def process_record(record):
    """Map one CSV record to an unsaved Order, or None to skip it."""
    if not record.order_number:
        logger.warning("Skipping CSV line %s with blank orderNumber", record.line_number)
        return None

    order = Order(
        order_number=record.order_number,
        description=record.description or None,
        destination_address=record.destination_address or None,
        status=OrderStatus.PENDING,
    )

    if record.weight:
        order.weight = parse_weight(record.weight)
        if order.weight is None:
            logger.warning("Invalid weight value '%s' for order %s", record.weight, record.order_number)

    return order


def chunked(iterable, size):
    iterator = iter(iterable)
    while True:
        chunk = list(islice(iterator, size))
        if not chunk:
            return
        yield chunk


class BatchImportPipeline:
    def __init__(self, repository=None):
        self.repository = repository or OrderRepository()

    def resolve_tenant(self, job):
        tenant_id = require_current_tenant()
        if tenant_id != job.tenant_id:
            raise TenantRequired(f"Import job {job.pk} does not belong to the bound tenant.")

        tenant = self.repository.find_active_tenant(tenant_id)
        if tenant is None:
            raise TenantRequired(f"No active tenant for id {tenant_id}.")
        return tenant

    def write_chunk(self, job, records):
        orders = []
        skipped = 0
        for record in records:
            order = process_record(record)
            if order is None:
                skipped += 1
            else:
                orders.append(order)

        with transaction.atomic():
            tenant = self.resolve_tenant(job)
            for order in orders:
                order.tenant = tenant
            self.repository.save_all(orders)
            job.record_chunk(rows=len(records), imported=len(orders), skipped=skipped)

        logger.info(
            "Import %s: committed chunk %s (%d imported, %d skipped)",
            job.pk, job.chunks_committed, len(orders), skipped,
        )

    def run(self, job):
        """
        Import ``job.source`` from the first uncommitted row.

        Any failure rolls back only the chunk in flight, marks the job failed and
        is re-raised; a later run resumes after ``job.rows_committed`` rows.
        """
        if job.status == job.STATUS_DONE:
            logger.info("Import %s already completed; nothing to do", job.pk)
            return job

        job.mark_started()
        logger.info("Import %s started for tenant %s (resuming after %d rows)", job.pk, job.tenant_id, job.rows_committed)

        try:
            with job.source.open("rb") as source:
                lines = codecs.iterdecode(source, "utf-8-sig")
                for records in chunked(read_records(lines, skip=job.rows_committed), job.chunk_size):
                    self.write_chunk(job, records)
        except Exception as exc:
            # Saved outside the failed chunk's transaction, so it survives the rollback.
            job.mark_failed(str(exc))
            logger.exception("Import %s failed after %d committed chunk(s)", job.pk, job.chunks_committed)
            raise

        job.mark_completed()
        logger.info(
            "Import %s completed: %d imported, %d skipped",
            job.pk, job.imported_count, job.skipped_count,
        )
        return job
