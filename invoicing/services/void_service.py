# invoicing/services/void_service.py

"""
VOID SERVICE

void_invoice():
- reason required (>= 10 chars after trimming)
- only issued / sent / viewed invoices can be voided
- creates exactly one CreditNote for the full invoice total
  (CN-{invoice_number}); a second attempt raises DuplicateCreditNoteError
- status -> voided, voided_at / voided_by / void_reason
- audit INVOICE_VOIDED (best-effort)
"""

from __future__ import annotations

import logging
import uuid

from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction
from django.utils import timezone

from audit.models import AuditEventType
from audit.services.audit_service import log_audit_event_safely
from invoicing.models import CreditNote, Invoice
from invoicing.services.exceptions import (
    DuplicateCreditNoteError,
    InvalidInvoiceStateError,
    InvoiceNotFoundError,
    InvoiceValidationError,
)
from invoicing.services.hashing import compute_credit_note_hash
from invoicing.services.invoice_lifecycle import VOIDABLE_STATES, validate_transition
from invoicing.services.sanitize import sanitize_text
from notifications.models import Notification
from notifications.services.notification_service import notify_safely

logger = logging.getLogger(__name__)

MIN_REASON_LENGTH = 10


def validate_void_reason(reason) -> str:
    cleaned = sanitize_text(reason)
    if len(cleaned) < MIN_REASON_LENGTH:
        raise InvoiceValidationError(
            f"A void reason of at least {MIN_REASON_LENGTH} characters is required"
        )
    return cleaned


@transaction.atomic
def void_invoice(*, invoice_id, user, reason, visible_invoices=None, request=None) -> CreditNote:
    reason = validate_void_reason(reason)

    qs = visible_invoices if visible_invoices is not None else Invoice.objects.all()
    try:
        invoice = qs.select_for_update().select_related("business").filter(pk=invoice_id).first()
    except (ValidationError, ValueError, TypeError) as exc:
        raise InvoiceNotFoundError("Invoice not found") from exc
    if invoice is None:
        raise InvoiceNotFoundError("Invoice not found")

    if CreditNote.objects.filter(original_invoice=invoice).exists():
        raise DuplicateCreditNoteError(f"Invoice {invoice.invoice_number} already has a credit note")

    if invoice.status not in VOIDABLE_STATES:
        raise InvalidInvoiceStateError(f"Cannot void invoice with status: {invoice.status}")
    validate_transition(invoice=invoice, target_status=Invoice.STATUS_VOIDED)

    issued_at = timezone.now()
    credit_note_number = f"CN-{invoice.invoice_number}"

    try:
        with transaction.atomic():
            credit_note = CreditNote.objects.create(
                business=invoice.business,
                original_invoice=invoice,
                credit_note_number=credit_note_number,
                reason=reason,
                amount=invoice.total_amount,
                currency=invoice.currency,
                issued_at=issued_at,
                issued_by=user,
                verification_id=uuid.uuid4(),
                credit_note_hash=compute_credit_note_hash(
                    credit_note_number=credit_note_number,
                    amount=invoice.total_amount,
                    issued_at=issued_at,
                ),
            )
    except IntegrityError as exc:
        raise DuplicateCreditNoteError(f"Invoice {invoice.invoice_number} already has a credit note") from exc

    previous_status = invoice.status
    invoice.status = Invoice.STATUS_VOIDED
    invoice.voided_at = issued_at
    invoice.voided_by = user
    invoice.void_reason = reason
    invoice.save(update_fields=["status", "voided_at", "voided_by", "void_reason", "updated_at"])

    log_audit_event_safely(
        event_type=AuditEventType.INVOICE_VOIDED,
        entity_type="invoice",
        entity_id=invoice.id,
        actor=user,
        business=invoice.business,
        previous_state={"status": previous_status},
        new_state={"status": Invoice.STATUS_VOIDED, "void_reason": reason},
        metadata={
            "credit_note_number": credit_note.credit_note_number,
            "credit_note_amount": str(credit_note.amount),
        },
        request=request,
    )
    notify_safely(
        user=user,
        business=invoice.business,
        type=Notification.TYPE_INVOICE_VOIDED,
        title=f"Invoice {invoice.invoice_number} voided",
        message=f"Credit note {credit_note.credit_note_number} issued",
        entity_type="invoice",
        entity_id=invoice.id,
    )

    logger.info(
        "Invoice voided",
        extra={"invoice_id": str(invoice.id), "business_id": str(invoice.business_id)},
    )
    return credit_note
