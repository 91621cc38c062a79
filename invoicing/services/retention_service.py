# invoicing/services/retention_service.py

"""
RETENTION CLEANUP

Run periodically (manage.py cleanup_expired_records).

An issued invoice is purged once its retention_locked_until date has
passed and none of its receipts is still locked. The purge removes the
invoice with its receipts, credit note, payments and lines.

Model delete() refuses to remove issued records, so the purge goes
through queryset deletes inside one transaction, together with one
RECORDS_PURGED audit entry per business. Audit logs themselves are
never purged.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field

from django.db import transaction
from django.db.models import Q
from django.utils import timezone

from audit.models import AuditEventType
from audit.services.audit_service import log_audit_event
from businesses.models import Business
from invoicing.models import CreditNote, Invoice, InvoiceItem, Payment, Receipt

logger = logging.getLogger(__name__)


@dataclass
class RetentionRunResult:
    invoices: int = 0
    receipts: int = 0
    credit_notes: int = 0
    payments: int = 0
    businesses: int = 0
    invoice_numbers: list[str] = field(default_factory=list)


def expired_invoices(today=None):
    today = today or timezone.localdate()
    still_locked = Receipt.objects.filter(retention_locked_until__gte=today).values("invoice_id")
    return (
        Invoice.objects.filter(retention_locked_until__lt=today)
        .exclude(pk__in=still_locked)
        .order_by("business_id", "invoice_number")
    )


def purge_expired_records(*, today=None, dry_run: bool = False) -> RetentionRunResult:
    today = today or timezone.localdate()
    result = RetentionRunResult()

    rows = list(expired_invoices(today).values("id", "business_id", "invoice_number"))
    result.invoices = len(rows)
    result.invoice_numbers = [row["invoice_number"] for row in rows]

    by_business = defaultdict(list)
    for row in rows:
        by_business[row["business_id"]].append(row)
    result.businesses = len(by_business)

    ids = [row["id"] for row in rows]
    scope = Q(invoice_id__in=ids)
    result.receipts = Receipt.objects.filter(scope).count()
    result.credit_notes = CreditNote.objects.filter(original_invoice_id__in=ids).count()
    result.payments = Payment.objects.filter(scope).count()

    if dry_run or not ids:
        logger.info(
            "Retention cleanup finished",
            extra={"invoices": result.invoices, "dry_run": dry_run},
        )
        return result

    with transaction.atomic():
        Receipt.objects.filter(scope).delete()
        CreditNote.objects.filter(original_invoice_id__in=ids).delete()
        Payment.objects.filter(scope).delete()
        InvoiceItem.objects.filter(scope).delete()
        Invoice.objects.filter(pk__in=ids).delete()

        businesses = Business.objects.in_bulk(list(by_business))
        for business_id, purged in by_business.items():
            log_audit_event(
                event_type=AuditEventType.RECORDS_PURGED,
                entity_type="retention_cleanup",
                business=businesses[business_id],
                metadata={
                    "purged_on": today.isoformat(),
                    "invoice_count": len(purged),
                    "invoice_numbers": [row["invoice_number"] for row in purged],
                },
            )

    logger.info(
        "Retention cleanup finished",
        extra={
            "invoices": result.invoices,
            "receipts": result.receipts,
            "payments": result.payments,
            "businesses": result.businesses,
            "dry_run": dry_run,
        },
    )
    return result
