# invoicing/services/payment_service.py

"""
PAYMENT SERVICE

record_payment():
- validates + sanitises input
- locks the invoice; only issued/sent/viewed invoices accept payments
- amount_paid += amount; status -> paid exactly when amount_paid >= total
- creates the receipt in the same transaction
- best-effort: audit PAYMENT_RECORDED + RECEIPT_ISSUED, notification
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from django.db import transaction
from django.utils import timezone

from audit.models import AuditEventType
from audit.services.audit_service import log_audit_event_safely
from invoicing.models import Invoice, Payment, Receipt
from invoicing.services.exceptions import (
    InvalidInvoiceStateError,
    InvoiceNotFoundError,
    InvoiceValidationError,
)
from invoicing.services.invoice_lifecycle import PAYABLE_STATES, validate_transition
from invoicing.services.receipt_service import create_receipt_for_payment
from invoicing.services.sanitize import sanitize_text
from notifications.models import Notification
from notifications.services.notification_service import notify_safely

logger = logging.getLogger(__name__)

TWOPLACES = Decimal("0.01")
MAX_PAYMENT_AMOUNT = Decimal("999999999.99")

MAX_PAYMENT_METHOD_LENGTH = 100
MAX_PAYMENT_REFERENCE_LENGTH = 255
MAX_NOTES_LENGTH = 1000


@dataclass(frozen=True)
class PaymentResult:
    payment: Payment
    invoice: Invoice
    receipt: Receipt


# ============================================================
# VALIDATION
# ============================================================


def _validate_uuid(value, *, field: str) -> uuid.UUID:
    try:
        return value if isinstance(value, uuid.UUID) else uuid.UUID(str(value))
    except (ValueError, TypeError, AttributeError) as exc:
        raise InvoiceValidationError(f"Invalid {field} format") from exc


def _validate_amount(value) -> Decimal:
    if isinstance(value, bool):
        raise InvoiceValidationError("Amount must be a positive number")
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError) as exc:
        raise InvoiceValidationError("Amount must be a positive number") from exc

    if not amount.is_finite() or amount <= 0:
        raise InvoiceValidationError("Amount must be a positive number")
    if amount > MAX_PAYMENT_AMOUNT:
        raise InvoiceValidationError("Amount exceeds maximum allowed value")

    amount = amount.quantize(TWOPLACES, rounding=ROUND_HALF_UP)
    if amount <= 0:
        raise InvoiceValidationError("Amount must be a positive number")
    return amount


def _validate_text(value, *, field: str, max_length: int) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        raise InvoiceValidationError(f"{field} must be a string")
    if len(value) > max_length:
        raise InvoiceValidationError(f"{field} must be {max_length} characters or less")
    return sanitize_text(value)


def _validate_payment_date(value) -> date:
    if value is None or value == "":
        return timezone.localdate()
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(str(value), "%Y-%m-%d").date()
    except ValueError as exc:
        raise InvoiceValidationError("Invalid payment_date format. Use YYYY-MM-DD") from exc


# ============================================================
# COMMAND
# ============================================================


@transaction.atomic
def record_payment(
    *,
    invoice_id,
    user,
    amount,
    payment_method=None,
    payment_reference=None,
    payment_date=None,
    notes=None,
    visible_invoices=None,
    request=None,
) -> PaymentResult:
    """
    visible_invoices: optional queryset restricting which invoices the
    caller may see (anything outside it is reported as not found).
    """
    invoice_id = _validate_uuid(invoice_id, field="invoice_id")
    amount = _validate_amount(amount)
    payment_method = _validate_text(payment_method, field="payment_method", max_length=MAX_PAYMENT_METHOD_LENGTH)
    payment_reference = _validate_text(
        payment_reference, field="payment_reference", max_length=MAX_PAYMENT_REFERENCE_LENGTH
    )
    notes = _validate_text(notes, field="notes", max_length=MAX_NOTES_LENGTH)
    payment_date = _validate_payment_date(payment_date)

    qs = visible_invoices if visible_invoices is not None else Invoice.objects.all()
    invoice = qs.select_for_update().select_related("business").filter(pk=invoice_id).first()
    if invoice is None:
        raise InvoiceNotFoundError("Invoice not found")

    if invoice.status not in PAYABLE_STATES:
        raise InvalidInvoiceStateError(f"Cannot record payment for invoice with status: {invoice.status}")

    previous_state = {"status": invoice.status, "amount_paid": str(invoice.amount_paid)}

    payment = Payment.objects.create(
        business=invoice.business,
        invoice=invoice,
        amount=amount,
        payment_method=payment_method,
        payment_reference=payment_reference,
        payment_date=payment_date,
        notes=notes,
        recorded_by=user,
    )

    invoice.amount_paid = Decimal(invoice.amount_paid) + amount
    fully_paid = invoice.amount_paid >= Decimal(invoice.total_amount)
    if fully_paid:
        validate_transition(invoice=invoice, target_status=Invoice.STATUS_PAID)
        invoice.status = Invoice.STATUS_PAID
    invoice.save(update_fields=["amount_paid", "status", "updated_at"])

    receipt = create_receipt_for_payment(payment=payment)

    log_audit_event_safely(
        event_type=AuditEventType.PAYMENT_RECORDED,
        entity_type="payment",
        entity_id=payment.id,
        actor=user,
        business=invoice.business,
        previous_state=previous_state,
        new_state={
            "status": invoice.status,
            "amount_paid": str(invoice.amount_paid),
            "payment_amount": str(amount),
        },
        metadata={
            "invoice_id": str(invoice.id),
            "payment_method": payment_method,
            "fully_paid": fully_paid,
        },
        request=request,
    )
    log_audit_event_safely(
        event_type=AuditEventType.RECEIPT_ISSUED,
        entity_type="receipt",
        entity_id=receipt.id,
        actor=user,
        business=invoice.business,
        new_state={
            "receipt_number": receipt.receipt_number,
            "amount": str(receipt.amount),
            "currency": receipt.currency,
        },
        metadata={"invoice_id": str(invoice.id), "payment_id": str(payment.id)},
        request=request,
    )
    notify_safely(
        user=user,
        business=invoice.business,
        type=Notification.TYPE_PAYMENT_RECEIVED,
        title=f"Payment received for {invoice.invoice_number}",
        message=f"{amount} {invoice.currency}" + (" (fully paid)" if fully_paid else ""),
        entity_type="invoice",
        entity_id=invoice.id,
    )

    logger.info(
        "Payment recorded",
        extra={
            "invoice_id": str(invoice.id),
            "business_id": str(invoice.business_id),
            "fully_paid": fully_paid,
        },
    )
    return PaymentResult(payment=payment, invoice=invoice, receipt=receipt)
