# businesses/services/summary_service.py

"""
BUSINESS DASHBOARD SUMMARY

Revenue, outstanding and expense totals across every currency account of a
business, converted to the business's default currency with the rates
frozen on each document (reports.services.currency_aggregation).
"""

from __future__ import annotations

from django.db.models import Count

from accounting.models import Expense
from businesses.models import Business, CurrencyAccount
from invoicing.models import Invoice
from reports.services.currency_aggregation import aggregate_amounts

REVENUE_EXCLUDED_STATUSES = (Invoice.STATUS_DRAFT, Invoice.STATUS_VOIDED, Invoice.STATUS_CREDITED)


def business_summary(business: Business) -> dict:
    primary_currency = business.default_currency

    invoices = Invoice.objects.filter(business=business).exclude(status__in=REVENUE_EXCLUDED_STATUSES)

    revenue = aggregate_amounts(
        (
            {
                "amount": row["total_amount"],
                "currency": row["currency"],
                "exchange_rate_to_primary": row["exchange_rate_to_primary"],
            }
            for row in invoices.values("total_amount", "currency", "exchange_rate_to_primary")
        ),
        primary_currency,
    )

    outstanding = aggregate_amounts(
        (
            {
                "amount": row["total_amount"] - row["amount_paid"],
                "currency": row["currency"],
                "exchange_rate_to_primary": row["exchange_rate_to_primary"],
            }
            for row in invoices.filter(status__in=Invoice.OPEN_STATUSES).values(
                "total_amount", "amount_paid", "currency", "exchange_rate_to_primary"
            )
        ),
        primary_currency,
    )

    expenses = aggregate_amounts(
        Expense.objects.filter(business=business).values("amount", "currency", "exchange_rate_to_primary"),
        primary_currency,
    )

    status_counts = {
        row["status"]: row["n"]
        for row in Invoice.objects.filter(business=business).values("status").annotate(n=Count("id"))
    }

    return {
        "business_id": str(business.id),
        "primary_currency": primary_currency,
        "currency_accounts": [
            {"id": str(acc.id), "currency": acc.currency, "name": acc.name, "is_default": acc.is_default}
            for acc in CurrencyAccount.objects.filter(business=business)
        ],
        "revenue": revenue,
        "outstanding": outstanding,
        "expenses": expenses,
        "invoice_counts": status_counts,
    }
