# invoicing/services/issue_service.py

"""
INVOICE ISSUANCE

Turns a draft into a legal document, atomically:
- email-verified issuer + invoices_per_month tier check
- status draft -> issued, issued_at / issued_by / issue_date
- verification_id, retention lock (RetentionPolicy for the jurisdiction)
- issuer / recipient / tax snapshots
- invoice_hash over the stored values
- audit INVOICE_ISSUED
"""

from __future__ import annotations

import logging
import uuid

from django.db import transaction
from django.utils import timezone

from audit.models import AuditEventType
from audit.services.audit_service import log_audit_event_safely, retention_locked_until
from billing.services.tier_catalog import FEATURE_INVOICES_PER_MONTH
from billing.services.tier_service import require_feature
from invoicing.models import Invoice
from invoicing.services import snapshots
from invoicing.services.exceptions import EmailNotVerifiedError, InvoiceNotFoundError
from invoicing.services.hashing import compute_invoice_hash
from invoicing.services.invoice_lifecycle import validate_transition
from notifications.models import Notification
from notifications.services.notification_service import notify_safely
from permissions.roles import is_platform_admin

logger = logging.getLogger(__name__)


@transaction.atomic
def issue_invoice(*, invoice: Invoice, user, issue_date=None, request=None) -> Invoice:
    if not getattr(user, "email_verified", False) and not is_platform_admin(user):
        raise EmailNotVerifiedError("Please verify your email address before issuing invoices.")

    try:
        invoice = Invoice.objects.select_for_update().select_related("business").get(pk=invoice.pk)
    except Invoice.DoesNotExist as exc:
        raise InvoiceNotFoundError("Invoice not found") from exc

    validate_transition(invoice=invoice, target_status=Invoice.STATUS_ISSUED)

    business = invoice.business
    require_feature(
        business=business,
        feature=FEATURE_INVOICES_PER_MONTH,
        user=user,
        message="You have reached your monthly invoice limit. Upgrade to issue more invoices.",
    )

    now = timezone.now()
    today = timezone.localdate()

    invoice.status = Invoice.STATUS_ISSUED
    invoice.issued_at = now
    invoice.issued_by = user
    invoice.issue_date = issue_date or invoice.issue_date or today
    invoice.verification_id = invoice.verification_id or uuid.uuid4()
    invoice.retention_locked_until = retention_locked_until(
        jurisdiction=business.jurisdiction or "NG",
        entity_type="invoice",
        start=invoice.issue_date,
    )
    invoice.issuer_snapshot = snapshots.issuer_snapshot(business)
    invoice.recipient_snapshot = snapshots.recipient_snapshot(invoice.client)
    invoice.tax_schema_snapshot = snapshots.tax_schema_snapshot(business, invoice.items.all())
    invoice.tax_schema_version = snapshots.TAX_SCHEMA_VERSION
    invoice.invoice_hash = compute_invoice_hash(
        invoice_id=invoice.id,
        invoice_number=invoice.invoice_number,
        total_amount=invoice.total_amount,
        issued_at=now,
        verification_id=invoice.verification_id,
    )
    invoice.save()

    log_audit_event_safely(
        event_type=AuditEventType.INVOICE_ISSUED,
        entity_type="invoice",
        entity_id=invoice.id,
        actor=user,
        business=business,
        previous_state={"status": Invoice.STATUS_DRAFT},
        new_state={
            "status": Invoice.STATUS_ISSUED,
            "invoice_number": invoice.invoice_number,
            "total_amount": str(invoice.total_amount),
        },
        request=request,
    )
    notify_safely(
        user=user,
        business=business,
        type=Notification.TYPE_INVOICE_ISSUED,
        title=f"Invoice {invoice.invoice_number} issued",
        message=f"{invoice.total_amount} {invoice.currency}",
        entity_type="invoice",
        entity_id=invoice.id,
    )

    logger.info(
        "Invoice issued",
        extra={"invoice_id": str(invoice.id), "business_id": str(business.id)},
    )
    return invoice
