# notifications/services/overdue_service.py

"""
OVERDUE INVOICE ALERTS

Run daily (manage.py check_overdue_invoices).

- Candidates: issued / sent invoices whose due_date is before today
- At most one INVOICE_OVERDUE alert per invoice per 24 hours
- In-app notification for every owner/admin of the business
- Email (Brevo) to owners who have not opted out, when email is configured
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import timedelta

from django.conf import settings
from django.utils import timezone

from invoicing.models import Invoice
from notifications.models import Notification
from notifications.services.brevo import (
    EmailDeliveryError,
    is_email_configured,
    send_transactional_email,
)
from notifications.services.notification_service import (
    business_managers,
    notify_safely,
    recently_notified,
)
from permissions.roles import ROLE_OWNER

logger = logging.getLogger(__name__)

OVERDUE_STATUSES = (Invoice.STATUS_ISSUED, Invoice.STATUS_SENT)
ALERT_INTERVAL = timedelta(hours=24)


@dataclass
class OverdueRunResult:
    checked: int = 0
    alerted: int = 0
    skipped_recent: int = 0
    notifications: int = 0
    emails_sent: int = 0
    email_failures: int = 0
    invoice_numbers: list[str] = field(default_factory=list)


def overdue_invoices(today=None):
    today = today or timezone.localdate()
    return (
        Invoice.objects.filter(status__in=OVERDUE_STATUSES, due_date__lt=today)
        .select_related("business", "client")
        .order_by("due_date")
    )


def _email_owner(*, user, invoice: Invoice, days_overdue: int) -> None:
    business_name = (invoice.issuer_snapshot or {}).get("business_name") or invoice.business.name
    client_name = (invoice.recipient_snapshot or {}).get("name") or "your client"
    link = f"{settings.APP_URL}/invoices/{invoice.id}"

    send_transactional_email(
        to_email=user.email,
        to_name=user.full_name or user.email,
        subject=f"Invoice {invoice.invoice_number} is {days_overdue} day(s) overdue",
        html_content=(
            f"<p>Invoice <strong>{invoice.invoice_number}</strong> for {client_name} "
            f"({invoice.balance_due} {invoice.currency} outstanding) was due on "
            f"{invoice.due_date.isoformat()}.</p>"
            f'<p><a href="{link}">Open the invoice</a></p>'
        ),
        sender_name=business_name,
    )


def check_overdue_invoices(*, today=None, dry_run: bool = False) -> OverdueRunResult:
    today = today or timezone.localdate()
    result = OverdueRunResult()
    email_enabled = is_email_configured()

    for invoice in overdue_invoices(today):
        result.checked += 1

        if recently_notified(entity_id=invoice.id, type=Notification.TYPE_INVOICE_OVERDUE, within=ALERT_INTERVAL):
            result.skipped_recent += 1
            continue

        result.alerted += 1
        result.invoice_numbers.append(invoice.invoice_number)
        if dry_run:
            continue

        days_overdue = (today - invoice.due_date).days
        managers = list(business_managers(invoice.business))

        for user in managers:
            created = notify_safely(
                user=user,
                business=invoice.business,
                type=Notification.TYPE_INVOICE_OVERDUE,
                title=f"Invoice {invoice.invoice_number} is overdue",
                message=f"{invoice.balance_due} {invoice.currency} outstanding, {days_overdue} day(s) past due",
                entity_type="invoice",
                entity_id=invoice.id,
            )
            if created is not None:
                result.notifications += 1

        if not email_enabled:
            continue

        owners = [
            user
            for user in managers
            if user.email_overdue_alerts
            and user.business_memberships.filter(business=invoice.business, role=ROLE_OWNER).exists()
        ]
        for user in owners:
            try:
                _email_owner(user=user, invoice=invoice, days_overdue=days_overdue)
            except EmailDeliveryError:
                result.email_failures += 1
                logger.exception(
                    "Overdue alert email failed",
                    extra={"invoice_id": str(invoice.id), "user_id": str(user.id)},
                )
                continue
            result.emails_sent += 1

    logger.info(
        "Overdue invoice check finished",
        extra={
            "checked": result.checked,
            "alerted": result.alerted,
            "skipped_recent": result.skipped_recent,
            "dry_run": dry_run,
        },
    )
    return result
