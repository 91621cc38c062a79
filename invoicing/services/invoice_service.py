# invoicing/services/invoice_service.py

"""
DRAFT INVOICE SERVICE

Responsibilities:
- Allocate invoice numbers ({invoice_prefix}-{seq:04d}) under a row lock
- Compute line and invoice totals from items
- Create / update / delete DRAFT invoices

Totals (per line):
    gross    = quantity * unit_price
    discount = gross * discount_percent / 100
    net      = gross - discount            -> item.amount
    tax      = net * tax_rate / 100        -> item.tax_amount

Invoice:
    subtotal        = sum(gross)
    discount_amount = sum(discount)
    tax_amount      = sum(tax)
    total_amount    = subtotal - discount_amount + tax_amount
"""

from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from django.db import transaction

from audit.models import AuditEventType
from audit.services.audit_service import log_audit_event_safely
from businesses.models import Business, Client, CurrencyAccount
from invoicing.models import Invoice, InvoiceItem
from invoicing.services.exceptions import (
    InvalidInvoiceStateError,
    InvoiceValidationError,
)
from invoicing.services.sanitize import sanitize_text

logger = logging.getLogger(__name__)

TWOPLACES = Decimal("0.01")
HUNDRED = Decimal("100")

EDITABLE_FIELDS = ("client", "currency_account", "issue_date", "due_date", "notes", "terms", "exchange_rate_to_primary")


def _money(v) -> Decimal:
    return Decimal(str(v or "0.00")).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def _decimal(value, *, field: str) -> Decimal:
    try:
        return Decimal(str(value if value is not None else "0"))
    except (InvalidOperation, ValueError, TypeError) as exc:
        raise InvoiceValidationError(f"{field} must be a number") from exc


# ============================================================
# TOTALS
# ============================================================


def compute_line(*, quantity, unit_price, tax_rate=0, discount_percent=0) -> dict:
    qty = _decimal(quantity, field="quantity")
    price = _decimal(unit_price, field="unit_price")
    rate = _decimal(tax_rate, field="tax_rate")
    disc = _decimal(discount_percent, field="discount_percent")

    if qty <= 0:
        raise InvoiceValidationError("quantity must be greater than 0")
    if price < 0:
        raise InvoiceValidationError("unit_price cannot be negative")
    if not (0 <= rate <= HUNDRED):
        raise InvoiceValidationError("tax_rate must be between 0 and 100")
    if not (0 <= disc <= HUNDRED):
        raise InvoiceValidationError("discount_percent must be between 0 and 100")

    gross = _money(qty * price)
    discount = _money(gross * disc / HUNDRED)
    net = gross - discount
    tax = _money(net * rate / HUNDRED)

    return {"gross": gross, "discount": discount, "amount": net, "tax_amount": tax}


def calculate_totals(lines: list[dict]) -> dict:
    subtotal = sum((line["gross"] for line in lines), Decimal("0.00"))
    discount = sum((line["discount"] for line in lines), Decimal("0.00"))
    tax = sum((line["tax_amount"] for line in lines), Decimal("0.00"))

    return {
        "subtotal": _money(subtotal),
        "discount_amount": _money(discount),
        "tax_amount": _money(tax),
        "total_amount": _money(subtotal - discount + tax),
    }


# ============================================================
# NUMBERING
# ============================================================


def allocate_invoice_number(business: Business) -> str:
    """
    Must run inside a transaction: the business row is locked until commit.
    """
    locked = Business.objects.select_for_update().get(pk=business.pk)
    seq = locked.next_invoice_number
    locked.next_invoice_number = seq + 1
    locked.save(update_fields=["next_invoice_number"])
    return f"{locked.invoice_prefix or 'INV'}-{seq:04d}"


# ============================================================
# HELPERS
# ============================================================


def _resolve_client(business: Business, client) -> Client | None:
    if client is None or client == "":
        return None
    if not isinstance(client, Client):
        client = Client.objects.filter(id=client).first()
        if client is None:
            raise InvoiceValidationError("Client not found")
    if client.business_id != business.id:
        raise InvoiceValidationError("Client does not belong to this business")
    return client


def _resolve_currency_account(business: Business, account) -> CurrencyAccount | None:
    if account is None or account == "":
        return (
            CurrencyAccount.objects.filter(business=business, is_default=True).first()
            or CurrencyAccount.objects.filter(business=business, currency=business.default_currency).first()
        )
    if not isinstance(account, CurrencyAccount):
        account = CurrencyAccount.objects.filter(id=account).first()
        if account is None:
            raise InvoiceValidationError("Currency account not found")
    if account.business_id != business.id:
        raise InvoiceValidationError("Currency account does not belong to this business")
    return account


def _replace_items(invoice: Invoice, items: list[dict]) -> dict:
    invoice.items.all().delete()

    lines = []
    for index, raw in enumerate(items or []):
        description = sanitize_text(raw.get("description"))
        if not description:
            raise InvoiceValidationError("Every item needs a description")

        line = compute_line(
            quantity=raw.get("quantity", 1),
            unit_price=raw.get("unit_price", 0),
            tax_rate=raw.get("tax_rate", 0),
            discount_percent=raw.get("discount_percent", 0),
        )
        lines.append(line)

        InvoiceItem.objects.create(
            invoice=invoice,
            description=description[:500],
            quantity=_decimal(raw.get("quantity", 1), field="quantity"),
            unit_price=_money(raw.get("unit_price", 0)),
            tax_rate=_decimal(raw.get("tax_rate", 0), field="tax_rate"),
            discount_percent=_decimal(raw.get("discount_percent", 0), field="discount_percent"),
            tax_amount=line["tax_amount"],
            amount=line["amount"],
            sort_order=raw.get("sort_order", index),
        )

    return calculate_totals(lines)


def _state(invoice: Invoice) -> dict:
    return {
        "status": invoice.status,
        "invoice_number": invoice.invoice_number,
        "client_id": str(invoice.client_id) if invoice.client_id else None,
        "currency": invoice.currency,
        "total_amount": str(invoice.total_amount),
    }


def _assert_draft(invoice: Invoice, action: str):
    if invoice.status != Invoice.STATUS_DRAFT:
        raise InvalidInvoiceStateError(f"Only draft invoices can be {action}")


# ============================================================
# COMMANDS
# ============================================================


@transaction.atomic
def create_invoice(
    *,
    business: Business,
    user,
    client=None,
    currency_account=None,
    items: list[dict] | None = None,
    issue_date=None,
    due_date=None,
    notes: str = "",
    terms: str = "",
    exchange_rate_to_primary=None,
    request=None,
) -> Invoice:
    client = _resolve_client(business, client)
    account = _resolve_currency_account(business, currency_account)

    if due_date and issue_date and due_date < issue_date:
        raise InvoiceValidationError("due_date cannot be before issue_date")

    invoice = Invoice.objects.create(
        business=business,
        client=client,
        currency_account=account,
        currency=account.currency if account else business.default_currency,
        invoice_number=allocate_invoice_number(business),
        issue_date=issue_date,
        due_date=due_date,
        notes=sanitize_text(notes),
        terms=sanitize_text(terms),
        exchange_rate_to_primary=exchange_rate_to_primary,
        created_by=user,
    )

    totals = _replace_items(invoice, items or [])
    for field, value in totals.items():
        setattr(invoice, field, value)
    invoice.save(update_fields=[*totals.keys(), "updated_at"])

    log_audit_event_safely(
        event_type=AuditEventType.INVOICE_CREATED,
        entity_type="invoice",
        entity_id=invoice.id,
        actor=user,
        business=business,
        new_state=_state(invoice),
        request=request,
    )

    logger.info(
        "Draft invoice created",
        extra={"invoice_id": str(invoice.id), "business_id": str(business.id)},
    )
    return invoice


@transaction.atomic
def update_draft_invoice(*, invoice: Invoice, user, data: dict, items: list[dict] | None = None, request=None) -> Invoice:
    invoice = Invoice.objects.select_for_update().get(pk=invoice.pk)
    _assert_draft(invoice, "edited")

    previous = _state(invoice)
    business = invoice.business

    if "client" in data:
        invoice.client = _resolve_client(business, data["client"])
    if "currency_account" in data:
        account = _resolve_currency_account(business, data["currency_account"])
        invoice.currency_account = account
        invoice.currency = account.currency if account else business.default_currency
    for field in ("issue_date", "due_date", "exchange_rate_to_primary"):
        if field in data:
            setattr(invoice, field, data[field])
    for field in ("notes", "terms"):
        if field in data:
            setattr(invoice, field, sanitize_text(data[field]))

    if invoice.due_date and invoice.issue_date and invoice.due_date < invoice.issue_date:
        raise InvoiceValidationError("due_date cannot be before issue_date")

    if items is not None:
        for field, value in _replace_items(invoice, items).items():
            setattr(invoice, field, value)

    invoice.save()

    log_audit_event_safely(
        event_type=AuditEventType.INVOICE_UPDATED,
        entity_type="invoice",
        entity_id=invoice.id,
        actor=user,
        business=business,
        previous_state=previous,
        new_state=_state(invoice),
        request=request,
    )
    return invoice


@transaction.atomic
def delete_draft_invoice(*, invoice: Invoice, user, request=None) -> None:
    invoice = Invoice.objects.select_for_update().get(pk=invoice.pk)
    _assert_draft(invoice, "deleted")

    snapshot = _state(invoice)
    business = invoice.business
    invoice_id = invoice.id
    invoice.delete()

    log_audit_event_safely(
        event_type=AuditEventType.INVOICE_DELETED,
        entity_type="invoice",
        entity_id=invoice_id,
        actor=user,
        business=business,
        previous_state=snapshot,
        request=request,
    )
