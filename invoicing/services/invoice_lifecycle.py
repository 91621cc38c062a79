"""
INVOICE LIFECYCLE DOMAIN RULES

This module defines the ONLY allowed lifecycle transitions
for Invoice entities.

    draft -> issued -> {sent -> viewed} -> paid
    issued | sent | viewed -> voided -> credited

DESIGN PRINCIPLES:
- No database writes
- No side effects
- Single source of truth (Invoice.save() consults it too)
"""

from invoicing.models import Invoice
from invoicing.services.exceptions import InvalidInvoiceStateError

# ============================================================
# DOMAIN ERRORS
# ============================================================


class InvalidInvoiceTransitionError(InvalidInvoiceStateError):
    pass


# ============================================================
# STATE DEFINITIONS
# ============================================================

TERMINAL_STATES = {
    Invoice.STATUS_PAID,
    Invoice.STATUS_CREDITED,
}

ALLOWED_TRANSITIONS = {
    Invoice.STATUS_DRAFT: {
        Invoice.STATUS_ISSUED,
    },
    Invoice.STATUS_ISSUED: {
        Invoice.STATUS_SENT,
        Invoice.STATUS_VIEWED,
        Invoice.STATUS_PAID,
        Invoice.STATUS_VOIDED,
    },
    Invoice.STATUS_SENT: {
        Invoice.STATUS_VIEWED,
        Invoice.STATUS_PAID,
        Invoice.STATUS_VOIDED,
    },
    Invoice.STATUS_VIEWED: {
        Invoice.STATUS_PAID,
        Invoice.STATUS_VOIDED,
    },
    Invoice.STATUS_VOIDED: {
        Invoice.STATUS_CREDITED,
    },
}

PAYABLE_STATES = set(Invoice.OPEN_STATUSES)
VOIDABLE_STATES = set(Invoice.OPEN_STATUSES)


# ============================================================
# DOMAIN RULES
# ============================================================


def can_transition(*, from_status: str, to_status: str) -> bool:
    if from_status in TERMINAL_STATES:
        return False

    return to_status in ALLOWED_TRANSITIONS.get(from_status, set())


def validate_transition(*, invoice: Invoice, target_status: str):
    if not can_transition(
        from_status=invoice.status,
        to_status=target_status,
    ):
        raise InvalidInvoiceTransitionError(
            f"Invoice {invoice.invoice_number} cannot transition from "
            f"'{invoice.status}' to '{target_status}'"
        )
