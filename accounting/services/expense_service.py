# PATH: accounting/services/expense_service.py

"""
EXPENSE SERVICE

Responsibilities:
- Validate expense payload
- Resolve the currency account (must belong to the business)
- Create the Expense in the account's currency
- Audit EXPENSE_CREATED (best-effort)

Security:
- Recording expenses requires the expense.manage capability on the business.
"""

from __future__ import annotations

from datetime import date as date_type
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from django.db import transaction
from django.utils import timezone

from accounting.models import Expense
from accounting.services.exceptions import ExpensePermissionError, ExpenseValidationError
from audit.models import AuditEventType
from audit.services.audit_service import log_audit_event_safely
from businesses.models import CurrencyAccount
from invoicing.services.sanitize import sanitize_text
from permissions.roles import CAP_EXPENSE_MANAGE, has_capability

TWOPLACES = Decimal("0.01")
MAX_AMOUNT = Decimal("999999999.99")

VALID_CATEGORIES = {value for value, _label in Expense.CATEGORY_CHOICES}


def _money(v) -> Decimal:
    try:
        return Decimal(str(v if v is not None else "0.00")).quantize(TWOPLACES, rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError) as exc:
        raise ExpenseValidationError("amount must be a number") from exc


def _normalize_expense_date(expense_date) -> date_type:
    if expense_date is None:
        return timezone.localdate()
    if isinstance(expense_date, date_type):
        return expense_date
    raise ExpenseValidationError("expense_date must be a date")


def _snapshot(expense: Expense) -> dict:
    return {
        "category": expense.category,
        "vendor": expense.vendor,
        "amount": str(expense.amount),
        "currency": expense.currency,
        "expense_date": expense.expense_date.isoformat(),
        "currency_account_id": str(expense.currency_account_id),
    }


@transaction.atomic
def create_expense(
    *,
    business,
    user,
    currency_account_id,
    amount,
    category: str = "other",
    description: str = "",
    vendor: str = "",
    expense_date=None,
    exchange_rate_to_primary=None,
    receipt_url: str = "",
    notes: str = "",
    request=None,
) -> Expense:
    if not has_capability(user, business, CAP_EXPENSE_MANAGE):
        raise ExpensePermissionError("You do not have permission to record expenses.")

    account = CurrencyAccount.objects.filter(id=currency_account_id).first()
    if account is None:
        raise ExpenseValidationError("Currency account not found")
    if account.business_id != business.id:
        raise ExpensePermissionError("Currency account does not belong to this business")

    amt = _money(amount)
    if amt < Decimal("0.00"):
        raise ExpenseValidationError("Amount cannot be negative")
    if amt > MAX_AMOUNT:
        raise ExpenseValidationError("Amount exceeds maximum allowed value")

    category = (category or "other").strip().lower()
    if category not in VALID_CATEGORIES:
        raise ExpenseValidationError(f"Invalid category '{category}'")

    rate = None
    if exchange_rate_to_primary not in (None, ""):
        try:
            rate = Decimal(str(exchange_rate_to_primary))
        except (InvalidOperation, ValueError) as exc:
            raise ExpenseValidationError("exchange_rate_to_primary must be a number") from exc
        if rate <= 0:
            raise ExpenseValidationError("exchange_rate_to_primary must be > 0")

    expense = Expense.objects.create(
        business=business,
        currency_account=account,
        user=user,
        category=category,
        description=sanitize_text(description)[:500],
        vendor=sanitize_text(vendor)[:255],
        amount=amt,
        currency=account.currency,
        exchange_rate_to_primary=rate,
        expense_date=_normalize_expense_date(expense_date),
        receipt_url=(receipt_url or "").strip(),
        notes=sanitize_text(notes),
    )

    log_audit_event_safely(
        event_type=AuditEventType.EXPENSE_CREATED,
        entity_type="expense",
        entity_id=expense.id,
        actor=user,
        business=business,
        new_state=_snapshot(expense),
        request=request,
    )
    return expense
