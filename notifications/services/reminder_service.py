# notifications/services/reminder_service.py

"""
CLIENT PAYMENT REMINDERS

Run daily (manage.py send_due_date_reminders).

For every user with email_payment_reminders on, look at the open invoices
they created (issued / sent / viewed) and:
- before the due date: remind on each day of reminder_schedule, or on
  reminder_days_before when the schedule is empty
- after the due date: remind on each day of overdue_reminder_schedule
  when overdue_reminder_enabled is on

Each reminder emails the client (when email is configured and the client
has an address) and leaves an in-app notification for the invoice creator.
The same reminder is never repeated for an invoice within 24 hours.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import timedelta

from django.contrib.auth import get_user_model
from django.template.loader import render_to_string
from django.utils import timezone

from invoicing.models import Invoice
from invoicing.services.delivery_service import verification_url
from invoicing.services.snapshots import issuer_name
from notifications.models import Notification
from notifications.services.brevo import (
    EmailDeliveryError,
    is_email_configured,
    send_transactional_email,
)
from notifications.services.notification_service import notify_safely

logger = logging.getLogger(__name__)

REMINDER_INTERVAL = timedelta(hours=24)
REMINDER_TYPES = (Notification.TYPE_PAYMENT_REMINDER, Notification.TYPE_OVERDUE_REMINDER)


@dataclass(frozen=True)
class ReminderStep:
    days: int
    overdue: bool

    @property
    def label(self) -> str:
        if self.overdue:
            return f"{self.days} day(s) overdue"
        return f"due in {self.days} day(s)"

    def due_date(self, today):
        return today - timedelta(days=self.days) if self.overdue else today + timedelta(days=self.days)


@dataclass
class ReminderRunResult:
    users: int = 0
    checked: int = 0
    skipped_recent: int = 0
    reminders: int = 0
    emails_sent: int = 0
    email_failures: int = 0
    reminded: list[str] = field(default_factory=list)


def reminder_steps(user) -> list[ReminderStep]:
    before = user.reminder_schedule or [user.reminder_days_before]
    steps = [ReminderStep(days=int(d), overdue=False) for d in before]
    if user.overdue_reminder_enabled:
        steps += [ReminderStep(days=int(d), overdue=True) for d in user.overdue_reminder_schedule or []]
    return steps


def _already_reminded(invoice: Invoice, step: ReminderStep) -> bool:
    return Notification.objects.filter(
        entity_id=invoice.id,
        type__in=REMINDER_TYPES,
        message__contains=f"({step.label})",
        created_at__gte=timezone.now() - REMINDER_INTERVAL,
    ).exists()


def client_email(invoice: Invoice) -> str:
    if invoice.client_id and invoice.client.email:
        return invoice.client.email
    return (invoice.recipient_snapshot or {}).get("email") or ""


def _email_client(*, user, invoice: Invoice, step: ReminderStep, to_email: str) -> None:
    business_name = issuer_name(invoice)
    client_name = (invoice.recipient_snapshot or {}).get("name") or "Customer"

    if step.overdue:
        subject = f"Overdue: Invoice {invoice.invoice_number} was due {step.days} day(s) ago"
    else:
        subject = f"Reminder: Invoice {invoice.invoice_number} is due in {step.days} day(s)"

    html = render_to_string(
        "notifications/email/payment_reminder.html",
        {
            "invoice": invoice,
            "step": step,
            "issuer_name": business_name,
            "client_name": client_name,
            "balance_due": invoice.balance_due,
            "custom_message": user.reminder_email_template,
            "verification_url": verification_url(invoice),
        },
    )
    send_transactional_email(
        to_email=to_email,
        to_name=client_name,
        subject=subject,
        html_content=html,
        sender_name=business_name,
    )


def send_due_date_reminders(*, today=None, dry_run: bool = False) -> ReminderRunResult:
    today = today or timezone.localdate()
    result = ReminderRunResult()
    email_enabled = is_email_configured()

    users = get_user_model().objects.filter(email_payment_reminders=True, is_active=True)
    for user in users:
        result.users += 1

        for step in reminder_steps(user):
            invoices = (
                Invoice.objects.filter(
                    created_by=user,
                    status__in=Invoice.OPEN_STATUSES,
                    due_date=step.due_date(today),
                )
                .select_related("business", "client")
                .order_by("invoice_number")
            )

            for invoice in invoices:
                result.checked += 1
                if _already_reminded(invoice, step):
                    result.skipped_recent += 1
                    continue

                result.reminded.append(f"{invoice.invoice_number} ({step.label})")
                if dry_run:
                    continue

                to_email = client_email(invoice)
                client_name = (invoice.recipient_snapshot or {}).get("name") or "Customer"

                if email_enabled and to_email:
                    try:
                        _email_client(user=user, invoice=invoice, step=step, to_email=to_email)
                    except EmailDeliveryError:
                        result.email_failures += 1
                        logger.exception(
                            "Payment reminder email failed",
                            extra={"invoice_id": str(invoice.id), "user_id": str(user.id)},
                        )
                    else:
                        result.emails_sent += 1

                created = notify_safely(
                    user=user,
                    business=invoice.business,
                    type=Notification.TYPE_OVERDUE_REMINDER if step.overdue else Notification.TYPE_PAYMENT_REMINDER,
                    title="Overdue Reminder Sent" if step.overdue else "Payment Reminder Sent",
                    message=f"Reminder sent to {client_name} for invoice {invoice.invoice_number} ({step.label})",
                    entity_type="invoice",
                    entity_id=invoice.id,
                )
                if created is not None:
                    result.reminders += 1

    logger.info(
        "Due date reminders finished",
        extra={
            "users": result.users,
            "checked": result.checked,
            "reminders": result.reminders,
            "emails_sent": result.emails_sent,
            "dry_run": dry_run,
        },
    )
    return result
