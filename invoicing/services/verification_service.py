# invoicing/services/verification_service.py

"""
PUBLIC VERIFICATION

Anonymous lookups by verification_id. Only snapshot data leaves this
module; live business/client rows are never exposed.

- verify_invoice():  authenticity summary for the verification portal
- view_invoice():    full issued invoice for its recipient (sent -> viewed)
- verify_receipt():  receipt summary with a recomputed hash check
"""

from __future__ import annotations

import logging
import uuid

from django.db import transaction

from audit.models import AuditEventType
from audit.services.audit_service import log_audit_event_safely
from billing.services.tier_service import get_business_tier
from invoicing.models import Invoice, Receipt
from invoicing.services.exceptions import (
    InvalidInvoiceStateError,
    InvoiceNotFoundError,
    InvoiceValidationError,
)
from invoicing.services.hashing import invoice_hash_matches, receipt_hash_matches
from invoicing.services.invoice_lifecycle import can_transition
from invoicing.services.snapshots import issuer_name

logger = logging.getLogger(__name__)

PAYMENT_STATUS_LABELS = {
    Invoice.STATUS_PAID: "Paid",
    Invoice.STATUS_VOIDED: "Voided",
    Invoice.STATUS_CREDITED: "Credited",
    Invoice.STATUS_SENT: "Sent - Awaiting Payment",
    Invoice.STATUS_VIEWED: "Viewed - Awaiting Payment",
    Invoice.STATUS_ISSUED: "Issued - Awaiting Payment",
}


def payment_status_label(status: str) -> str:
    return PAYMENT_STATUS_LABELS.get(status, "Unknown")


def _parse_verification_id(value) -> uuid.UUID:
    if not value:
        raise InvoiceValidationError("Verification ID is required")
    try:
        return uuid.UUID(str(value).strip())
    except (ValueError, TypeError) as exc:
        raise InvoiceValidationError("Invalid verification ID format") from exc


def _issued_invoice(verification_id) -> Invoice:
    vid = _parse_verification_id(verification_id)
    invoice = Invoice.objects.select_related("business").filter(verification_id=vid).first()
    if invoice is None:
        raise InvoiceNotFoundError("Invoice not found")
    if invoice.status == Invoice.STATUS_DRAFT:
        raise InvalidInvoiceStateError("This invoice has not been issued")
    return invoice


def _iso(value):
    return value.isoformat() if value else None


# ============================================================
# INVOICE VERIFICATION (PORTAL)
# ============================================================


def verify_invoice(*, verification_id, request=None) -> dict:
    invoice = _issued_invoice(verification_id)

    snapshot = invoice.issuer_snapshot or {}
    tier = get_business_tier(invoice.business)

    log_audit_event_safely(
        event_type=AuditEventType.INVOICE_VIEWED,
        entity_type="invoice",
        entity_id=invoice.id,
        business=invoice.business,
        metadata={
            "verification_type": "public_portal",
            "issuer_tier": tier,
            "snapshot_used": bool(snapshot),
        },
        request=request,
    )

    return {
        "verified": True,
        "invoice": {
            "invoice_number": invoice.invoice_number,
            "issue_date": _iso(invoice.issue_date),
            "issued_at": _iso(invoice.issued_at),
            "issuer_name": issuer_name(invoice),
            "issuer_identity": {
                "legal_name": snapshot.get("legal_name") or None,
                "contact_email": snapshot.get("contact_email") or None,
                "contact_phone": snapshot.get("contact_phone") or None,
            },
            "payment_status": payment_status_label(invoice.status),
            "total_amount": str(invoice.total_amount),
            "currency": invoice.currency,
            "integrity_valid": bool(invoice.invoice_hash),
            "hash_matches": invoice_hash_matches(invoice),
        },
        "issuer_tier": tier,
    }


# ============================================================
# INVOICE VIEW (RECIPIENT PAGE)
# ============================================================


def view_invoice(*, verification_id, request=None) -> dict:
    invoice = _issued_invoice(verification_id)

    if invoice.status == Invoice.STATUS_SENT:
        with transaction.atomic():
            locked = Invoice.objects.select_for_update().get(pk=invoice.pk)
            if locked.status == Invoice.STATUS_SENT and can_transition(
                from_status=locked.status, to_status=Invoice.STATUS_VIEWED
            ):
                locked.status = Invoice.STATUS_VIEWED
                locked.save(update_fields=["status", "updated_at"])
            invoice = locked

    log_audit_event_safely(
        event_type=AuditEventType.INVOICE_VIEWED,
        entity_type="invoice",
        entity_id=invoice.id,
        business=invoice.business,
        metadata={"view_type": "public_view_page"},
        request=request,
    )

    items = [
        {
            "description": item.description,
            "quantity": str(item.quantity),
            "unit_price": str(item.unit_price),
            "tax_rate": str(item.tax_rate),
            "discount_percent": str(item.discount_percent),
            "tax_amount": str(item.tax_amount),
            "amount": str(item.amount),
            "sort_order": item.sort_order,
        }
        for item in invoice.items.order_by("sort_order", "id")
    ]

    return {
        "success": True,
        "invoice": {
            "invoice_number": invoice.invoice_number,
            "status": invoice.status,
            "payment_status": payment_status_label(invoice.status),
            "issue_date": _iso(invoice.issue_date),
            "due_date": _iso(invoice.due_date),
            "issued_at": _iso(invoice.issued_at),
            "currency": invoice.currency,
            "subtotal": str(invoice.subtotal),
            "discount_amount": str(invoice.discount_amount),
            "tax_amount": str(invoice.tax_amount),
            "total_amount": str(invoice.total_amount),
            "amount_paid": str(invoice.amount_paid),
            "balance_due": str(invoice.balance_due),
            "notes": invoice.notes,
            "terms": invoice.terms,
            "issuer_name": issuer_name(invoice),
            "issuer_snapshot": invoice.issuer_snapshot or {},
            "recipient_snapshot": invoice.recipient_snapshot or {},
            "tax_schema_snapshot": invoice.tax_schema_snapshot or {},
            "verification_id": str(invoice.verification_id),
            "invoice_hash": invoice.invoice_hash,
            "items": items,
        },
    }


# ============================================================
# RECEIPT VERIFICATION
# ============================================================


def verify_receipt(*, verification_id, request=None) -> dict:
    vid = _parse_verification_id(verification_id)
    receipt = Receipt.objects.filter(verification_id=vid).first()
    if receipt is None:
        raise InvoiceNotFoundError("Receipt not found")

    issuer = receipt.issuer_snapshot or {}
    payer = receipt.payer_snapshot or {}
    invoice_snap = receipt.invoice_snapshot or {}
    payment_snap = receipt.payment_snapshot or {}

    integrity_valid = receipt_hash_matches(receipt)
    if not integrity_valid:
        logger.warning(
            "Receipt hash mismatch",
            extra={"receipt_id": str(receipt.id), "business_id": str(receipt.business_id)},
        )

    log_audit_event_safely(
        event_type=AuditEventType.RECEIPT_VIEWED,
        entity_type="receipt",
        entity_id=receipt.id,
        business=receipt.business,
        metadata={"verification_type": "public_portal", "integrity_valid": integrity_valid},
        request=request,
    )

    return {
        "verified": True,
        "receipt": {
            "receipt_number": receipt.receipt_number,
            "amount": str(receipt.amount),
            "currency": receipt.currency,
            "issued_at": _iso(receipt.issued_at),
            "issuer_name": issuer.get("legal_name") or issuer.get("business_name") or "Unknown Business",
            "invoice_reference": invoice_snap.get("invoice_number"),
            "payer_name": payer.get("name") or None,
            "payment_method": payment_snap.get("payment_method") or None,
            "payment_date": payment_snap.get("payment_date"),
            "integrity_valid": integrity_valid,
        },
    }
