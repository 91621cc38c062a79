"""
======================================================
PATH: reports/services/export_service.py
======================================================
RECORD EXPORTS (CHAIN OF CUSTODY)

export_records() dumps one record type for a business as CSV or JSON.

Every successful export:
- hashes the exact content handed out (sha256)
- writes an immutable ExportManifest (who / what / scope / where from)
- writes a DATA_EXPORTED audit event referencing the manifest

A denied export (tier or capability) writes nothing.
======================================================
"""

from __future__ import annotations

import hashlib
import json
import logging
import uuid
from decimal import ROUND_HALF_UP, Decimal

from django.core.serializers.json import DjangoJSONEncoder
from django.db import transaction
from django.utils import timezone
from django.utils.dateparse import parse_date

from accounting.models import Expense
from audit.models import AuditEventType, AuditLog
from audit.services.audit_service import get_client_ip, get_user_agent, log_audit_event_safely
from billing.services import tier_catalog as catalog
from billing.services.tier_service import require_feature
from businesses.models import Client
from businesses.services.business_service import resolve_business_for_user
from invoicing.models import Invoice, Payment
from permissions.roles import CAP_DATA_EXPORT, actor_role_for, has_capability
from reports.models import ExportManifest
from reports.services.csv_format import rows_to_csv
from reports.services.report_service import ReportAccessDenied, ReportValidationError

logger = logging.getLogger(__name__)

AUDIT_EXPORT_LIMIT = 10000
TWOPLACES = Decimal("0.01")

EXPORT_INVOICES = "invoices"
EXPORT_AUDIT_LOGS = "audit_logs"
EXPORT_PAYMENTS = "payments"
EXPORT_CLIENTS = "clients"
EXPORT_EXPENSES = "expenses"

EXPORT_COLUMNS = {
    EXPORT_INVOICES: [
        "invoice_number",
        "client_name",
        "client_email",
        "status",
        "issue_date",
        "due_date",
        "subtotal",
        "tax_amount",
        "discount_amount",
        "total_amount",
        "amount_paid",
        "currency",
        "exchange_rate_to_primary",
        "primary_currency_equivalent",
        "primary_currency",
        "created_at",
        "issued_at",
        "issuer_snapshot",
        "recipient_snapshot",
        "tax_schema_version",
    ],
    EXPORT_AUDIT_LOGS: [
        "event_type",
        "entity_type",
        "entity_id",
        "timestamp_utc",
        "actor_role",
        "metadata",
    ],
    EXPORT_PAYMENTS: [
        "invoice_number",
        "invoice_total",
        "payment_amount",
        "payment_method",
        "payment_reference",
        "payment_date",
        "notes",
        "recorded_at",
    ],
    EXPORT_CLIENTS: [
        "name",
        "email",
        "phone",
        "tax_id",
        "address",
        "notes",
        "created_at",
        "updated_at",
    ],
    EXPORT_EXPENSES: [
        "expense_date",
        "category",
        "description",
        "vendor",
        "amount",
        "currency",
        "exchange_rate_to_primary",
        "primary_currency_equivalent",
        "primary_currency",
        "notes",
        "created_at",
    ],
}

EXPORT_TYPES = tuple(EXPORT_COLUMNS)

FORMAT_CSV = ExportManifest.FORMAT_CSV
FORMAT_JSON = ExportManifest.FORMAT_JSON


def primary_currency_equivalent(*, amount, currency: str, rate, primary_currency: str) -> Decimal:
    """
    amount if it is already in the primary currency, else amount * rate
    (a missing rate counts as 1).
    """
    amount = amount or Decimal("0")
    if (currency or primary_currency) == primary_currency:
        return amount
    return (amount * (rate or Decimal("1"))).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def compute_integrity_hash(content: str) -> str:
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


def _date_bound(value, label: str):
    if value in (None, ""):
        return None
    parsed = parse_date(str(value)[:10])
    if parsed is None:
        raise ReportValidationError(f"{label} must be a date (YYYY-MM-DD)")
    return parsed


# ============================================================
# ROW BUILDERS
# ============================================================


def _invoice_rows(*, business, currency_account_id, date_from, date_to):
    qs = Invoice.objects.filter(business=business).select_related("client")
    if currency_account_id:
        qs = qs.filter(currency_account_id=currency_account_id)
    if date_from:
        qs = qs.filter(created_at__date__gte=date_from)
    if date_to:
        qs = qs.filter(created_at__date__lte=date_to)

    primary = business.default_currency
    rows = []
    for inv in qs.order_by("-created_at"):
        client = inv.client
        rows.append(
            {
                "invoice_number": inv.invoice_number,
                "client_name": client.name if client else "",
                "client_email": client.email if client else "",
                "status": inv.status,
                "issue_date": inv.issue_date,
                "due_date": inv.due_date,
                "subtotal": inv.subtotal,
                "tax_amount": inv.tax_amount,
                "discount_amount": inv.discount_amount,
                "total_amount": inv.total_amount,
                "amount_paid": inv.amount_paid,
                "currency": inv.currency,
                "exchange_rate_to_primary": inv.exchange_rate_to_primary,
                "primary_currency_equivalent": primary_currency_equivalent(
                    amount=inv.total_amount,
                    currency=inv.currency,
                    rate=inv.exchange_rate_to_primary,
                    primary_currency=primary,
                ),
                "primary_currency": primary,
                "created_at": inv.created_at,
                "issued_at": inv.issued_at,
                "issuer_snapshot": inv.issuer_snapshot,
                "recipient_snapshot": inv.recipient_snapshot,
                "tax_schema_version": inv.tax_schema_version,
            }
        )
    return rows


def _audit_log_rows(*, business, date_from, date_to, **_):
    qs = AuditLog.objects.filter(business=business)
    if date_from:
        qs = qs.filter(timestamp_utc__date__gte=date_from)
    if date_to:
        qs = qs.filter(timestamp_utc__date__lte=date_to)

    return [
        {
            "event_type": log.event_type,
            "entity_type": log.entity_type,
            "entity_id": str(log.entity_id) if log.entity_id else None,
            "timestamp_utc": log.timestamp_utc,
            "actor_role": log.actor_role,
            "metadata": log.metadata,
        }
        for log in qs.order_by("-timestamp_utc")[:AUDIT_EXPORT_LIMIT]
    ]


def _payment_rows(*, business, currency_account_id, date_from, date_to):
    qs = Payment.objects.filter(business=business).select_related("invoice")
    if currency_account_id:
        qs = qs.filter(invoice__currency_account_id=currency_account_id)
    if date_from:
        qs = qs.filter(payment_date__gte=date_from)
    if date_to:
        qs = qs.filter(payment_date__lte=date_to)

    return [
        {
            "invoice_number": p.invoice.invoice_number,
            "invoice_total": p.invoice.total_amount,
            "payment_amount": p.amount,
            "payment_method": p.payment_method,
            "payment_reference": p.payment_reference,
            "payment_date": p.payment_date,
            "notes": p.notes,
            "recorded_at": p.created_at,
        }
        for p in qs.order_by("-payment_date", "-created_at")
    ]


def _client_rows(*, business, **_):
    return [
        {
            "name": c.name,
            "email": c.email,
            "phone": c.phone,
            "tax_id": c.tax_id,
            "address": c.address,
            "notes": c.notes,
            "created_at": c.created_at,
            "updated_at": c.updated_at,
        }
        for c in Client.objects.filter(business=business).order_by("name")
    ]


def _expense_rows(*, business, currency_account_id, date_from, date_to):
    qs = Expense.objects.filter(business=business)
    if currency_account_id:
        qs = qs.filter(currency_account_id=currency_account_id)
    if date_from:
        qs = qs.filter(expense_date__gte=date_from)
    if date_to:
        qs = qs.filter(expense_date__lte=date_to)

    primary = business.default_currency
    return [
        {
            "expense_date": e.expense_date,
            "category": e.category,
            "description": e.description,
            "vendor": e.vendor,
            "amount": e.amount,
            "currency": e.currency,
            "exchange_rate_to_primary": e.exchange_rate_to_primary,
            "primary_currency_equivalent": primary_currency_equivalent(
                amount=e.amount,
                currency=e.currency,
                rate=e.exchange_rate_to_primary,
                primary_currency=primary,
            ),
            "primary_currency": primary,
            "notes": e.notes,
            "created_at": e.created_at,
        }
        for e in qs.order_by("-expense_date", "-created_at")
    ]


_ROW_BUILDERS = {
    EXPORT_INVOICES: _invoice_rows,
    EXPORT_AUDIT_LOGS: _audit_log_rows,
    EXPORT_PAYMENTS: _payment_rows,
    EXPORT_CLIENTS: _client_rows,
    EXPORT_EXPENSES: _expense_rows,
}


# ============================================================
# ENTRY POINT
# ============================================================


@transaction.atomic
def export_records(
    *,
    user,
    export_type: str,
    format: str = FORMAT_CSV,
    business_id=None,
    currency_account_id=None,
    date_from=None,
    date_to=None,
    filters: dict | None = None,
    request=None,
) -> dict:
    business = resolve_business_for_user(user=user, business_id=business_id)

    require_feature(
        business=business,
        feature=catalog.FEATURE_EXPORTS,
        user=user,
        message="Data exports require a Professional subscription. Upgrade to export your financial records.",
    )

    if not has_capability(user, business, CAP_DATA_EXPORT):
        raise ReportAccessDenied("You do not have permission to export records for this business")

    if not export_type:
        raise ReportValidationError("Export type is required")
    if export_type not in EXPORT_COLUMNS:
        raise ReportValidationError(f"Invalid export type. Must be one of: {', '.join(EXPORT_TYPES)}")

    format = format or FORMAT_CSV
    if format not in (FORMAT_CSV, FORMAT_JSON):
        raise ReportValidationError("format must be csv or json")

    if currency_account_id:
        try:
            currency_account_id = uuid.UUID(str(currency_account_id))
        except ValueError as exc:
            raise ReportValidationError("Invalid currency_account_id") from exc

    start = _date_bound(date_from, "date_from")
    end = _date_bound(date_to, "date_to")

    rows = _ROW_BUILDERS[export_type](
        business=business,
        currency_account_id=currency_account_id,
        date_from=start,
        date_to=end,
    )
    columns = EXPORT_COLUMNS[export_type]

    generated_at = timezone.now()
    filename = f"{export_type}_export_{generated_at.date().isoformat()}.{format}"

    if format == FORMAT_CSV:
        content = rows_to_csv(rows, columns)
    else:
        content = json.dumps(rows, cls=DjangoJSONEncoder, indent=2)

    integrity_hash = compute_integrity_hash(content)
    actor_role = actor_role_for(user, business) or ""

    manifest = ExportManifest.objects.create(
        export_type=export_type,
        actor=user,
        actor_email=getattr(user, "email", "") or "",
        actor_role=actor_role,
        business=business,
        scope={
            "date_from": date_from or None,
            "date_to": date_to or None,
            "business_id": str(business.id),
            "filters": filters or {},
        },
        record_count=len(rows),
        integrity_hash=integrity_hash,
        format=format,
        source_ip=get_client_ip(request),
        user_agent=get_user_agent(request),
        timestamp_utc=generated_at,
    )

    export_id = uuid.uuid4()

    log_audit_event_safely(
        event_type=AuditEventType.DATA_EXPORTED,
        entity_type=export_type,
        actor=user,
        business=business,
        metadata={
            "export_id": str(export_id),
            "manifest_id": str(manifest.id),
            "export_type": export_type,
            "format": format,
            "record_count": len(rows),
            "date_range": {"from": date_from or None, "to": date_to or None},
            "integrity_hash": integrity_hash,
            "actor_email": manifest.actor_email,
            "actor_role": actor_role,
        },
        request=request,
    )

    logger.info(
        "Records exported",
        extra={
            "export_type": export_type,
            "business_id": str(business.id),
            "record_count": len(rows),
            "manifest_id": str(manifest.id),
        },
    )

    return {
        "export_id": str(export_id),
        "manifest_id": str(manifest.id),
        "data": content,
        "filename": filename,
        "record_count": len(rows),
        "generated_at": generated_at,
        "integrity_hash": integrity_hash,
    }
