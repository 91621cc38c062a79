# invoicing/services/receipt_service.py

"""
RECEIPT SERVICE

One immutable receipt per payment, created inside the payment's
transaction. Idempotent: a second call for the same payment returns the
existing receipt.

Numbering: RCP-{invoice_prefix or INV}-{seq:03d} from
business.next_receipt_number (row-locked).
"""

from __future__ import annotations

from django.db import transaction
from django.utils import timezone

from audit.services.audit_service import retention_locked_until
from businesses.models import Business
from invoicing.models import Payment, Receipt
from invoicing.services import snapshots
from invoicing.services.hashing import compute_receipt_hash


def allocate_receipt_number(business: Business) -> str:
    locked = Business.objects.select_for_update().get(pk=business.pk)
    seq = locked.next_receipt_number
    locked.next_receipt_number = seq + 1
    locked.save(update_fields=["next_receipt_number"])
    return f"RCP-{locked.invoice_prefix or 'INV'}-{seq:03d}"


@transaction.atomic
def create_receipt_for_payment(*, payment: Payment) -> Receipt:
    existing = Receipt.objects.filter(payment=payment).first()
    if existing is not None:
        return existing

    invoice = payment.invoice
    business = invoice.business

    receipt_number = allocate_receipt_number(business)
    issued_at = timezone.now()

    receipt = Receipt(
        business=business,
        currency_account=invoice.currency_account,
        invoice=invoice,
        payment=payment,
        receipt_number=receipt_number,
        amount=payment.amount,
        currency=invoice.currency,
        issued_at=issued_at,
        issuer_snapshot=invoice.issuer_snapshot or snapshots.issuer_snapshot(business),
        payer_snapshot=snapshots.payer_snapshot(invoice),
        invoice_snapshot={
            "invoice_id": str(invoice.id),
            "invoice_number": invoice.invoice_number,
            "total_amount": str(invoice.total_amount),
            "amount_paid": str(invoice.amount_paid),
            "issue_date": invoice.issue_date.isoformat() if invoice.issue_date else None,
        },
        payment_snapshot={
            "payment_id": str(payment.id),
            "amount": str(payment.amount),
            "payment_method": payment.payment_method,
            "payment_reference": payment.payment_reference,
            "payment_date": payment.payment_date.isoformat() if payment.payment_date else None,
        },
        retention_locked_until=retention_locked_until(
            jurisdiction=business.jurisdiction,
            entity_type="receipt",
        ),
    )
    receipt.receipt_hash = compute_receipt_hash(
        receipt_number=receipt_number,
        invoice_id=invoice.id,
        payment_id=payment.id,
        amount=payment.amount,
        currency=receipt.currency,
        issued_at=issued_at,
    )
    receipt.save()
    return receipt
