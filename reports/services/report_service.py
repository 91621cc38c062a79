"""
======================================================
PATH: reports/services/report_service.py
======================================================
REPORT GENERATION

generate_report() builds one named report for one business and one
calendar year. Financial reports are always scoped to a single currency
account: amounts in different currencies are never summed here (the
dashboard summary does cross-currency totals with frozen rates).

Gates, in order:
    1. business access (membership, or platform admin)
    2. reports_enabled
    3. compliance_exports_enabled for compliance report types
    4. currency account (financial reports)
======================================================
"""

from __future__ import annotations

import logging
import uuid
from collections import OrderedDict
from decimal import ROUND_HALF_UP, Decimal

from django.db.models import Count, Sum
from django.utils import timezone

from accounting.models import Expense
from audit.models import AuditEventType, AuditLog
from audit.services.audit_service import log_audit_event_safely
from billing.services import tier_catalog as catalog
from billing.services.tier_service import require_feature
from businesses.models import CurrencyAccount
from businesses.services.business_service import resolve_business_for_user
from invoicing.models import CreditNote, Invoice, Payment, Receipt
from permissions.roles import CAP_REPORTS_VIEW, has_capability
from reports.models import ExportManifest
from reports.services.csv_format import rows_to_csv

logger = logging.getLogger(__name__)

TWOPLACES = Decimal("0.01")
ZERO = Decimal("0.00")

EXPORT_HISTORY_LIMIT = 500

REPORT_INVOICE_REGISTER = "invoice-register"
REPORT_REVENUE_BY_PERIOD = "revenue-by-period"
REPORT_REVENUE_BY_CLIENT = "revenue-by-client"
REPORT_OUTSTANDING = "outstanding-report"
REPORT_RECEIPT_REGISTER = "receipt-register"
REPORT_EXPENSE_REGISTER = "expense-register"
REPORT_EXPENSE_BY_CATEGORY = "expense-by-category"
REPORT_EXPENSE_BY_VENDOR = "expense-by-vendor"
REPORT_INCOME_STATEMENT = "income-statement"
REPORT_CASH_FLOW = "cash-flow-summary"
REPORT_TAX = "tax-report"
REPORT_AUDIT_EXPORT = "audit-export"
REPORT_EXPORT_HISTORY = "export-history"

FINANCIAL_REPORT_TYPES = frozenset(
    {
        REPORT_INVOICE_REGISTER,
        REPORT_REVENUE_BY_PERIOD,
        REPORT_REVENUE_BY_CLIENT,
        REPORT_OUTSTANDING,
        REPORT_RECEIPT_REGISTER,
        REPORT_EXPENSE_REGISTER,
        REPORT_EXPENSE_BY_CATEGORY,
        REPORT_EXPENSE_BY_VENDOR,
        REPORT_INCOME_STATEMENT,
        REPORT_CASH_FLOW,
        REPORT_TAX,
    }
)

COMPLIANCE_REPORT_TYPES = frozenset({REPORT_AUDIT_EXPORT, REPORT_EXPORT_HISTORY, REPORT_TAX})

REPORT_TYPES = FINANCIAL_REPORT_TYPES | COMPLIANCE_REPORT_TYPES

REVENUE_EXCLUDED_STATUSES = (Invoice.STATUS_DRAFT, Invoice.STATUS_VOIDED)

FORMAT_JSON = "json"
FORMAT_CSV = "csv"


# ============================================================
# ERRORS
# ============================================================


class ReportError(Exception):
    """Base exception for report generation (400)."""


class ReportValidationError(ReportError):
    """Bad report request (400)."""


class ReportAccessDenied(ReportError):
    """Caller may not read this report (403)."""


# ============================================================
# HELPERS
# ============================================================


def _q2(amount) -> Decimal:
    return (amount or ZERO).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def _snapshot_name(snapshot) -> str:
    if isinstance(snapshot, dict):
        return snapshot.get("name") or "Unknown"
    return "Unknown"


def _month(value) -> str:
    if value is None:
        return "Unknown"
    if hasattr(value, "astimezone"):
        value = timezone.localtime(value)
    return value.strftime("%Y-%m")


def _parse_year(year) -> int:
    try:
        year = int(year)
    except (TypeError, ValueError) as exc:
        raise ReportValidationError("year must be a four-digit year") from exc
    if year < 1900 or year > 9999:
        raise ReportValidationError("year must be a four-digit year")
    return year


def _resolve_currency_account(*, business, currency_account_id) -> CurrencyAccount:
    try:
        account_id = uuid.UUID(str(currency_account_id))
    except ValueError as exc:
        raise ReportValidationError("Currency account not found") from exc

    account = CurrencyAccount.objects.filter(id=account_id).first()
    if account is None:
        raise ReportValidationError("Currency account not found")
    if account.business_id != business.id:
        raise ReportAccessDenied("Currency account does not belong to this business")
    return account


# ============================================================
# REVENUE REPORTS
# ============================================================


def _invoices(business, account, year):
    return Invoice.objects.filter(
        business=business,
        currency_account=account,
        issue_date__year=year,
    )


def _invoice_register(*, business, account, year, currency):
    invoices = list(
        _invoices(business, account, year)
        .exclude(status=Invoice.STATUS_DRAFT)
        .order_by("issue_date", "invoice_number")
    )
    ids = [inv.id for inv in invoices]

    credit_by_invoice = {
        row["original_invoice_id"]: row["total"]
        for row in CreditNote.objects.filter(original_invoice_id__in=ids)
        .values("original_invoice_id")
        .annotate(total=Sum("amount"))
    }
    receipts_by_invoice = {
        row["invoice_id"]: row["n"]
        for row in Receipt.objects.filter(invoice_id__in=ids).values("invoice_id").annotate(n=Count("id"))
    }

    rows = []
    total_amount = total_paid = ZERO
    for inv in invoices:
        outstanding = inv.total_amount - inv.amount_paid
        total_amount += inv.total_amount
        total_paid += inv.amount_paid
        rows.append(
            {
                "invoice_number": inv.invoice_number,
                "issue_date": inv.issue_date,
                "due_date": inv.due_date,
                "client_name": _snapshot_name(inv.recipient_snapshot),
                "subtotal": inv.subtotal,
                "tax_amount": inv.tax_amount,
                "discount_amount": inv.discount_amount,
                "total_amount": inv.total_amount,
                "amount_paid": inv.amount_paid,
                "outstanding_balance": _q2(outstanding),
                "credit_note_amount": _q2(credit_by_invoice.get(inv.id)),
                "receipt_count": receipts_by_invoice.get(inv.id, 0),
                "currency": inv.currency,
                "status": inv.status,
                "invoice_hash": inv.invoice_hash,
            }
        )

    summary = {
        "total_invoices": len(rows),
        "total_amount": _q2(total_amount),
        "total_paid": _q2(total_paid),
        "total_outstanding": _q2(total_amount - total_paid),
        "currency": currency,
    }
    return rows, summary


def _revenue_by_period(*, business, account, year, currency):
    monthly: dict[str, dict] = {}
    total_revenue = total_tax = ZERO
    count = 0

    qs = _invoices(business, account, year).exclude(status__in=REVENUE_EXCLUDED_STATUSES)
    for inv in qs.only("issue_date", "total_amount", "tax_amount"):
        period = _month(inv.issue_date)
        bucket = monthly.setdefault(period, {"period": period, "revenue": ZERO, "tax": ZERO, "count": 0})
        bucket["revenue"] += inv.total_amount
        bucket["tax"] += inv.tax_amount
        bucket["count"] += 1
        total_revenue += inv.total_amount
        total_tax += inv.tax_amount
        count += 1

    rows = [
        {**b, "revenue": _q2(b["revenue"]), "tax": _q2(b["tax"])}
        for _, b in sorted(monthly.items())
    ]
    summary = {
        "total_revenue": _q2(total_revenue),
        "total_tax": _q2(total_tax),
        "total_invoices": count,
        "currency": currency,
    }
    return rows, summary


def _revenue_by_client(*, business, account, year, currency):
    clients: dict[str, dict] = {}

    qs = _invoices(business, account, year).exclude(status__in=REVENUE_EXCLUDED_STATUSES)
    for inv in qs.only("total_amount", "tax_amount", "recipient_snapshot", "status"):
        name = _snapshot_name(inv.recipient_snapshot)
        bucket = clients.setdefault(
            name,
            {"client": name, "revenue": ZERO, "tax": ZERO, "count": 0, "paid_count": 0},
        )
        bucket["revenue"] += inv.total_amount
        bucket["tax"] += inv.tax_amount
        bucket["count"] += 1
        if inv.status == Invoice.STATUS_PAID:
            bucket["paid_count"] += 1

    rows = sorted(
        ({**b, "revenue": _q2(b["revenue"]), "tax": _q2(b["tax"])} for b in clients.values()),
        key=lambda r: r["revenue"],
        reverse=True,
    )
    return rows, {"total_clients": len(rows), "currency": currency}


def _outstanding(*, business, account, year, currency):
    today = timezone.localdate()
    rows = []
    total = ZERO

    qs = (
        _invoices(business, account, year)
        .filter(status__in=Invoice.OPEN_STATUSES)
        .order_by("due_date", "invoice_number")
    )
    for inv in qs:
        outstanding = inv.total_amount - inv.amount_paid
        if outstanding <= 0:
            continue
        days_overdue = (today - inv.due_date).days if inv.due_date else 0
        total += outstanding
        rows.append(
            {
                "invoice_number": inv.invoice_number,
                "client_name": _snapshot_name(inv.recipient_snapshot),
                "issue_date": inv.issue_date,
                "due_date": inv.due_date,
                "total_amount": inv.total_amount,
                "amount_paid": inv.amount_paid,
                "outstanding_balance": _q2(outstanding),
                "days_overdue": max(0, days_overdue),
                "status": inv.status,
                "currency": currency,
            }
        )

    return rows, {"total_outstanding": _q2(total), "total_invoices": len(rows), "currency": currency}


# ============================================================
# RECEIPTS
# ============================================================


def _receipt_register(*, business, account, year, currency):
    receipts = Receipt.objects.filter(
        business=business,
        currency_account=account,
        issued_at__year=year,
    ).order_by("issued_at")

    rows = []
    total = ZERO
    for r in receipts:
        payment = r.payment_snapshot or {}
        total += r.amount
        rows.append(
            {
                "receipt_number": r.receipt_number,
                "amount": r.amount,
                "currency": r.currency,
                "issued_at": r.issued_at,
                "invoice_number": (r.invoice_snapshot or {}).get("invoice_number", ""),
                "payer_name": _snapshot_name(r.payer_snapshot),
                "payment_method": payment.get("payment_method", ""),
                "payment_date": payment.get("payment_date", ""),
                "receipt_hash": r.receipt_hash,
                "verification_id": str(r.verification_id),
            }
        )

    return rows, {"total_receipts": len(rows), "total_amount": _q2(total), "currency": currency}


# ============================================================
# EXPENSES
# ============================================================


def _expenses(business, account, year):
    return Expense.objects.filter(business=business, currency_account=account, expense_date__year=year)


def _expense_register(*, business, account, year, currency):
    rows = [
        {
            "expense_date": e.expense_date,
            "category": e.category,
            "description": e.description,
            "vendor": e.vendor,
            "amount": e.amount,
            "currency": e.currency,
            "notes": e.notes,
        }
        for e in _expenses(business, account, year).order_by("expense_date", "created_at")
    ]
    total = sum((r["amount"] for r in rows), ZERO)
    return rows, {"total_expenses": _q2(total), "total_records": len(rows), "currency": currency}


def _group_expenses(qs, key: str, label: str, default=None):
    groups: dict[str, dict] = {}
    for e in qs:
        name = getattr(e, key) or default or ""
        bucket = groups.setdefault(name, {label: name, "total_amount": ZERO, "count": 0})
        bucket["total_amount"] += e.amount
        bucket["count"] += 1

    return sorted(
        ({**b, "total_amount": _q2(b["total_amount"])} for b in groups.values()),
        key=lambda r: r["total_amount"],
        reverse=True,
    )


def _expense_by_category(*, business, account, year, currency):
    rows = _group_expenses(_expenses(business, account, year), "category", "category")
    return rows, {"total_categories": len(rows), "currency": currency}


def _expense_by_vendor(*, business, account, year, currency):
    rows = _group_expenses(_expenses(business, account, year), "vendor", "vendor", default="Unspecified")
    return rows, {"total_vendors": len(rows), "currency": currency}


# ============================================================
# ACCOUNTING
# ============================================================


def _credit_notes(business, account, year):
    return CreditNote.objects.filter(
        business=business,
        original_invoice__currency_account=account,
        issued_at__year=year,
    )


def _income_statement(*, business, account, year, currency):
    # voided invoices stay in gross revenue; their credit notes reverse them
    invoices = _invoices(business, account, year).exclude(status=Invoice.STATUS_DRAFT)
    totals = invoices.aggregate(gross=Sum("total_amount"), tax=Sum("tax_amount"))
    gross = totals["gross"] or ZERO
    tax = totals["tax"] or ZERO

    credits = _credit_notes(business, account, year).aggregate(total=Sum("amount"))["total"] or ZERO

    breakdown: dict[str, Decimal] = {}
    total_expenses = ZERO
    for e in _expenses(business, account, year).only("category", "amount"):
        breakdown[e.category] = breakdown.get(e.category, ZERO) + e.amount
        total_expenses += e.amount

    net_revenue = gross - credits
    net_income = net_revenue - total_expenses

    data = {
        "gross_revenue": _q2(gross),
        "credit_notes": _q2(credits),
        "net_revenue": _q2(net_revenue),
        "tax_collected": _q2(tax),
        "total_expenses": _q2(total_expenses),
        "expense_breakdown": {k: _q2(v) for k, v in sorted(breakdown.items())},
        "net_income": _q2(net_income),
        "currency": currency,
        "period": f"{year}-01-01 to {year}-12-31",
    }
    summary = {
        "net_income": data["net_income"],
        "gross_revenue": data["gross_revenue"],
        "total_expenses": data["total_expenses"],
        "currency": currency,
    }
    return data, summary


def _cash_flow(*, business, account, year, currency):
    months = OrderedDict(
        (f"{year}-{m:02d}", {"period": f"{year}-{m:02d}", "inflow": ZERO, "outflow": ZERO, "net": ZERO})
        for m in range(1, 13)
    )

    payments = Payment.objects.filter(
        business=business,
        invoice__currency_account=account,
        payment_date__year=year,
    ).only("amount", "payment_date")
    total_in = ZERO
    for p in payments:
        months[_month(p.payment_date)]["inflow"] += p.amount
        total_in += p.amount

    total_out = ZERO
    for e in _expenses(business, account, year).only("amount", "expense_date"):
        months[_month(e.expense_date)]["outflow"] += e.amount
        total_out += e.amount

    rows = []
    for m in months.values():
        rows.append(
            {
                "period": m["period"],
                "inflow": _q2(m["inflow"]),
                "outflow": _q2(m["outflow"]),
                "net": _q2(m["inflow"] - m["outflow"]),
            }
        )

    summary = {
        "total_inflow": _q2(total_in),
        "total_outflow": _q2(total_out),
        "net_position": _q2(total_in - total_out),
        "currency": currency,
    }
    return rows, summary


# ============================================================
# COMPLIANCE
# ============================================================


def _tax_report(*, business, account, year, currency):
    # voided invoices stay in tax collected; their credit notes reverse them
    monthly: dict[str, dict] = {}

    def bucket(period):
        return monthly.setdefault(
            period,
            {
                "period": period,
                "taxable_amount": ZERO,
                "tax_collected": ZERO,
                "credit_note_adjustment": ZERO,
                "credited_tax": ZERO,
                "credited_taxable": ZERO,
                "invoice_count": 0,
            },
        )

    invoices = _invoices(business, account, year).exclude(status=Invoice.STATUS_DRAFT)
    for inv in invoices.only("issue_date", "subtotal", "tax_amount"):
        b = bucket(_month(inv.issue_date))
        b["taxable_amount"] += inv.subtotal
        b["tax_collected"] += inv.tax_amount
        b["invoice_count"] += 1

    for cn in _credit_notes(business, account, year).select_related("original_invoice"):
        b = bucket(_month(cn.issued_at))
        b["credit_note_adjustment"] += cn.amount
        b["credited_tax"] += cn.original_invoice.tax_amount
        b["credited_taxable"] += cn.original_invoice.subtotal

    rows = []
    totals = {
        "taxable": ZERO,
        "tax": ZERO,
        "adjustment": ZERO,
        "credited_taxable": ZERO,
        "net_tax": ZERO,
        "invoices": 0,
    }
    for _, b in sorted(monthly.items()):
        net_tax = b["tax_collected"] - b["credited_tax"]
        rows.append(
            {
                "period": b["period"],
                "taxable_amount": _q2(b["taxable_amount"]),
                "tax_collected": _q2(b["tax_collected"]),
                "credit_note_adjustment": _q2(b["credit_note_adjustment"]),
                "net_tax": _q2(net_tax),
                "invoice_count": b["invoice_count"],
                "currency": currency,
            }
        )
        totals["taxable"] += b["taxable_amount"]
        totals["tax"] += b["tax_collected"]
        totals["adjustment"] += b["credit_note_adjustment"]
        totals["credited_taxable"] += b["credited_taxable"]
        totals["net_tax"] += net_tax
        totals["invoices"] += b["invoice_count"]

    summary = {
        "total_taxable_amount": _q2(totals["taxable"]),
        "total_tax_collected": _q2(totals["tax"]),
        "total_credit_note_adjustments": _q2(totals["adjustment"]),
        "net_taxable": _q2(totals["taxable"] - totals["credited_taxable"]),
        "net_tax": _q2(totals["net_tax"]),
        "total_invoices": totals["invoices"],
        "currency": currency,
    }
    return rows, summary


def _audit_export(*, business, year, **_):
    logs = AuditLog.objects.filter(business=business, timestamp_utc__year=year).order_by("timestamp_utc")

    rows = [
        {
            "timestamp": log.timestamp_utc,
            "event_type": log.event_type,
            "entity_type": log.entity_type,
            "entity_id": str(log.entity_id) if log.entity_id else None,
            "actor_id": str(log.actor_id) if log.actor_id else None,
            "actor_role": log.actor_role,
            "event_hash": log.event_hash,
            "previous_state": log.previous_state,
            "new_state": log.new_state,
            "metadata": log.metadata,
        }
        for log in logs
    ]
    event_types = sorted({r["event_type"] for r in rows})
    return rows, {"total_events": len(rows), "event_types": event_types}


def _export_history(*, business, year, **_):
    manifests = ExportManifest.objects.filter(business=business, timestamp_utc__year=year).order_by(
        "-timestamp_utc"
    )[:EXPORT_HISTORY_LIMIT]

    rows = [
        {
            "id": str(m.id),
            "export_type": m.export_type,
            "format": m.format,
            "record_count": m.record_count,
            "timestamp_utc": m.timestamp_utc,
            "integrity_hash": m.integrity_hash,
            "actor_email": m.actor_email,
            "scope": m.scope,
        }
        for m in manifests
    ]
    return rows, {"total_exports": len(rows)}


_BUILDERS = {
    REPORT_INVOICE_REGISTER: _invoice_register,
    REPORT_REVENUE_BY_PERIOD: _revenue_by_period,
    REPORT_REVENUE_BY_CLIENT: _revenue_by_client,
    REPORT_OUTSTANDING: _outstanding,
    REPORT_RECEIPT_REGISTER: _receipt_register,
    REPORT_EXPENSE_REGISTER: _expense_register,
    REPORT_EXPENSE_BY_CATEGORY: _expense_by_category,
    REPORT_EXPENSE_BY_VENDOR: _expense_by_vendor,
    REPORT_INCOME_STATEMENT: _income_statement,
    REPORT_CASH_FLOW: _cash_flow,
    REPORT_TAX: _tax_report,
    REPORT_AUDIT_EXPORT: _audit_export,
    REPORT_EXPORT_HISTORY: _export_history,
}


# ============================================================
# ENTRY POINT
# ============================================================


def generate_report(
    *,
    user,
    report_type: str,
    year,
    format: str = FORMAT_JSON,
    business_id=None,
    currency_account_id=None,
    request=None,
) -> dict:
    """
    Build a report.

    Returns a dict with report_type, generated_at, currency,
    currency_account_id, data and summary. For CSV requests over a
    non-empty row list it also carries `csv` and `filename`.

    Raises:
        BusinessServiceError   business not found / not a member
        TierLimitExceeded      reports / compliance gates
        ReportError            everything else
    """
    if not report_type or year in (None, ""):
        raise ReportValidationError("report_type and year are required")
    year = _parse_year(year)
    if format not in (FORMAT_JSON, FORMAT_CSV):
        raise ReportValidationError("format must be json or csv")

    business = resolve_business_for_user(user=user, business_id=business_id)
    if not has_capability(user, business, CAP_REPORTS_VIEW):
        raise ReportAccessDenied("You do not have access to this business")

    require_feature(
        business=business,
        feature=catalog.FEATURE_REPORTS,
        user=user,
        message="Reports require a Professional subscription or higher.",
    )
    if report_type in COMPLIANCE_REPORT_TYPES:
        require_feature(
            business=business,
            feature=catalog.FEATURE_COMPLIANCE_EXPORTS,
            user=user,
            message="Compliance reports require a Business subscription.",
        )

    builder = _BUILDERS.get(report_type)
    if builder is None:
        raise ReportValidationError(f"Unknown report type: {report_type}")

    if report_type in FINANCIAL_REPORT_TYPES and not currency_account_id:
        raise ReportValidationError(
            "currency_account_id is required for financial reports. Select a currency account."
        )

    account = None
    currency = business.default_currency
    if currency_account_id:
        account = _resolve_currency_account(business=business, currency_account_id=currency_account_id)
        currency = account.currency

    data, summary = builder(business=business, account=account, year=year, currency=currency)
    record_count = len(data) if isinstance(data, list) else 1

    logger.info(
        "Report generated",
        extra={
            "report_type": report_type,
            "business_id": str(business.id),
            "year": year,
            "record_count": record_count,
        },
    )

    log_audit_event_safely(
        event_type=AuditEventType.DATA_EXPORTED,
        entity_type="report",
        actor=user,
        business=business,
        metadata={
            "report_type": report_type,
            "year": year,
            "format": format,
            "currency_account_id": str(account.id) if account else None,
            "currency": currency,
            "record_count": record_count,
        },
        request=request,
    )

    result = {
        "report_type": report_type,
        "generated_at": timezone.now(),
        "currency": currency,
        "currency_account_id": str(account.id) if account else None,
        "data": data,
        "summary": summary,
    }

    if format == FORMAT_CSV and isinstance(data, list) and data:
        result["csv"] = rows_to_csv(data)
        result["filename"] = f"{report_type}-{currency}-{year}.csv"

    return result
