# invoicing/services/hashing.py

"""
DOCUMENT INTEGRITY HASHES

All hashes are lowercase hex SHA-256. Inputs are the stored field values,
so a hash can be recomputed from the database at any time.
"""

from __future__ import annotations

import hashlib


def _sha256(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def compute_invoice_hash(*, invoice_id, invoice_number: str, total_amount, issued_at, verification_id) -> str:
    return _sha256(
        f"{invoice_id}{invoice_number}{total_amount}{issued_at.isoformat()}{verification_id or ''}"
    )


def compute_credit_note_hash(*, credit_note_number: str, amount, issued_at) -> str:
    return _sha256(f"{credit_note_number}{amount}{issued_at.isoformat()}")


def compute_receipt_hash(*, receipt_number: str, invoice_id, payment_id, amount, currency: str, issued_at) -> str:
    return _sha256(
        "|".join(
            [
                str(receipt_number),
                str(invoice_id),
                str(payment_id),
                str(amount),
                str(currency),
                issued_at.isoformat(),
            ]
        )
    )


def invoice_hash_matches(invoice) -> bool:
    if not invoice.invoice_hash or invoice.issued_at is None:
        return False
    return invoice.invoice_hash == compute_invoice_hash(
        invoice_id=invoice.id,
        invoice_number=invoice.invoice_number,
        total_amount=invoice.total_amount,
        issued_at=invoice.issued_at,
        verification_id=invoice.verification_id,
    )


def receipt_hash_matches(receipt) -> bool:
    return receipt.receipt_hash == compute_receipt_hash(
        receipt_number=receipt.receipt_number,
        invoice_id=receipt.invoice_id,
        payment_id=receipt.payment_id,
        amount=receipt.amount,
        currency=receipt.currency,
        issued_at=receipt.issued_at,
    )
